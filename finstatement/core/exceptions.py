"""
Core exception hierarchy for finstatement.

All custom exceptions inherit from FinStatementError for consistent error handling.
Every failure mode of the extraction pipeline maps to exactly one class here, so
callers can tell a missing statement apart from a flaky upstream service.
"""

from typing import Optional


class FinStatementError(Exception):
    """Base exception for all finstatement errors."""

    def __init__(self, message: str, context: Optional[dict] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | Context: {self.context}"
        return self.message


# Configuration Errors
class ConfigurationError(FinStatementError):
    """Configuration error."""
    pass


class MissingConfigError(ConfigurationError):
    """Required configuration is missing."""
    pass


class ConfigInvalid(ConfigurationError):
    """Structured document config is missing a required field."""
    pass


# Upstream (transport) Errors
class UpstreamError(FinStatementError):
    """Transport-level failure from an external client."""
    pass


class UpstreamTimeout(UpstreamError):
    """External call exceeded its timeout."""
    pass


class UpstreamUnavailable(UpstreamError):
    """External service could not be reached or returned a server error."""
    pass


# Retrieval Errors
class RetrievalFailed(FinStatementError):
    """Vector index call errored, timed out, or returned zero candidates."""
    pass


class RetrievalTimeout(RetrievalFailed, UpstreamTimeout):
    """Vector index call timed out."""
    pass


class RetrievalUnavailable(RetrievalFailed, UpstreamUnavailable):
    """Vector index could not be reached."""
    pass


# Selection Errors
class SelectionError(FinStatementError):
    """Error while disambiguating retrieved candidates."""
    pass


class SelectionParseFailed(SelectionError):
    """Model output for disambiguation was not valid JSON or lacked element_id."""

    def __init__(self, message: str, raw_response: Optional[str] = None, context: Optional[dict] = None):
        self.raw_response = raw_response
        super().__init__(message, context)


class SelectionUnresolved(SelectionError):
    """Selected element_id does not exist in the document array."""
    pass


# Document Errors
class DocumentLoadError(FinStatementError):
    """Document array could not be loaded."""
    pass


class MissingSourceContent(FinStatementError):
    """Resolved element has no usable raw content."""
    pass


# Reformat Errors
class ReformatFailed(FinStatementError):
    """Error during content reformatting."""
    pass


class ReformatParseFailed(ReformatFailed):
    """Model output for reformatting was not valid JSON or lacked reformatted_content."""

    def __init__(self, message: str, raw_response: Optional[str] = None, context: Optional[dict] = None):
        self.raw_response = raw_response
        super().__init__(message, context)


class NumericDriftDetected(ReformatFailed):
    """Reformatted content lost numeric values present in the source."""

    def __init__(self, missing_tokens: list[str]):
        self.missing_tokens = missing_tokens
        super().__init__(
            f"Reformatted content dropped {len(missing_tokens)} numeric value(s)",
            {"missing_tokens": missing_tokens},
        )
