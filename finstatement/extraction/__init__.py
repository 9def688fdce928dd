"""LLM-arbitrated stages: candidate selection and content reformatting."""

from .candidate_selector import CandidateSelector, parse_selection
from .reformatter import ContentReformatter, parse_reformat

__all__ = [
    "CandidateSelector",
    "parse_selection",
    "ContentReformatter",
    "parse_reformat",
]
