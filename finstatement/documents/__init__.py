"""
Document array handling.

This module provides:
- ElementIndex: per-run id lookup over a document array
- load_elements: read an unstructured.io JSON export into Elements
"""

from .element_index import ElementIndex
from .loader import DocumentLoadError, element_from_record, elements_from_records, load_elements

__all__ = [
    "ElementIndex",
    "DocumentLoadError",
    "element_from_record",
    "elements_from_records",
    "load_elements",
]
