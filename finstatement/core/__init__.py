"""
Core domain layer for finstatement.

This module provides:
- Exception hierarchy for consistent error handling
- Immutable domain models shared by every pipeline stage

Usage:
    from finstatement.core import DocConfig, Element, RetrievalFailed
"""

from .exceptions import (
    ConfigInvalid,
    ConfigurationError,
    DocumentLoadError,
    FinStatementError,
    MissingConfigError,
    MissingSourceContent,
    NumericDriftDetected,
    ReformatFailed,
    ReformatParseFailed,
    RetrievalFailed,
    RetrievalTimeout,
    RetrievalUnavailable,
    SelectionError,
    SelectionParseFailed,
    SelectionUnresolved,
    UpstreamError,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from .models import (
    Candidate,
    DocConfig,
    Element,
    IndexHit,
    PipelineResult,
    ReformatResponse,
    SelectionDecision,
    SelectionResponse,
)

__all__ = [
    # Exceptions
    "FinStatementError",
    "ConfigurationError",
    "MissingConfigError",
    "ConfigInvalid",
    "DocumentLoadError",
    "UpstreamError",
    "UpstreamTimeout",
    "UpstreamUnavailable",
    "RetrievalFailed",
    "RetrievalTimeout",
    "RetrievalUnavailable",
    "SelectionError",
    "SelectionParseFailed",
    "SelectionUnresolved",
    "MissingSourceContent",
    "ReformatFailed",
    "ReformatParseFailed",
    "NumericDriftDetected",
    # Models
    "DocConfig",
    "Element",
    "IndexHit",
    "Candidate",
    "SelectionResponse",
    "ReformatResponse",
    "SelectionDecision",
    "PipelineResult",
]
