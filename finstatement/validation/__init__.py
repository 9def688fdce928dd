"""Output validation."""

from .fidelity import check_numeric_fidelity, extract_numeric_tokens, find_missing_numeric_tokens

__all__ = ["check_numeric_fidelity", "extract_numeric_tokens", "find_missing_numeric_tokens"]
