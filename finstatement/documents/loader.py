"""
Load a document array from an unstructured.io JSON export.

The export is a list of element records:

    {
        "type": "Table",
        "element_id": "3f2a...",
        "text": "Total assets 500",
        "metadata": {"filename": "hood-10Q.pdf", "text_as_html": "<table>...</table>", ...},
        "embeddings": [0.01, ...]
    }

Table markup lives in metadata.text_as_html; elements without it load with
empty raw_content.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from ..core.exceptions import DocumentLoadError
from ..core.models import PREVIEW_CHARS, Element
from ..infrastructure.logger import get_logger

logger = get_logger("finstatement.documents.loader")


def element_from_record(record: dict[str, Any], position: int = 0) -> Element:
    """
    Convert one unstructured element record into an Element.

    Args:
        record: Element record from the export
        position: Index of the record, used in error messages

    Returns:
        Element

    Raises:
        DocumentLoadError: If the record is not an object, has no element_id,
            or holds values an Element cannot take (e.g. non-numeric embeddings).
    """
    if not isinstance(record, dict):
        raise DocumentLoadError(
            f"Element at index {position} is not an object",
            {"index": position, "type": type(record).__name__},
        )

    element_id = record.get("element_id")
    if not element_id:
        raise DocumentLoadError(f"Element at index {position} has no element_id", {"index": position})

    metadata = dict(record.get("metadata") or {})
    text = record.get("text") or ""
    raw_content = metadata.pop("text_as_html", "") or ""

    if "text_preview" not in metadata:
        metadata["text_preview"] = text[:PREVIEW_CHARS] + ("..." if len(text) > PREVIEW_CHARS else "")

    try:
        return Element(
            element_id=str(element_id),
            source_name=metadata.get("filename", "") or "",
            raw_content=raw_content,
            text=text,
            element_type=record.get("type"),
            embedding=tuple(record.get("embeddings") or ()),
            metadata=metadata,
        )
    except (TypeError, ValidationError) as e:
        raise DocumentLoadError(
            f"Element {element_id} at index {position} is invalid: {e}",
            {"index": position, "element_id": str(element_id)},
        ) from e


def elements_from_records(records: Iterable[dict[str, Any]]) -> tuple[Element, ...]:
    """Convert export records into an immutable document array."""
    return tuple(element_from_record(record, i) for i, record in enumerate(records))


def load_elements(path: str | Path) -> tuple[Element, ...]:
    """
    Load a document array from a JSON file.

    Args:
        path: Path to the unstructured JSON export

    Returns:
        Tuple of Elements in file order

    Raises:
        DocumentLoadError: If the file is missing, not JSON, or not a list of records.
    """
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            records = json.load(f)
    except FileNotFoundError as e:
        raise DocumentLoadError(f"Document file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise DocumentLoadError(f"Document file is not valid JSON: {path}", {"error": str(e)}) from e

    if not isinstance(records, list):
        raise DocumentLoadError(f"Expected a list of elements in {path}", {"type": type(records).__name__})

    elements = elements_from_records(records)
    tables = sum(1 for e in elements if e.raw_content)
    logger.info(f"Loaded {len(elements)} elements ({tables} with table markup) from {path.name}")
    return elements
