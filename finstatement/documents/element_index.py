"""Per-run lookup of elements by id."""

from __future__ import annotations

from typing import Iterator, Sequence

from ..core.exceptions import SelectionUnresolved
from ..core.models import Element


class ElementIndex:
    """
    Read-only map from element_id to Element over one document array.

    Built fresh for every pipeline run. When an id occurs more than once
    the first occurrence wins, matching a linear scan of the array.
    """

    def __init__(self, elements: Sequence[Element]):
        self._elements: dict[str, Element] = {}
        for element in elements:
            self._elements.setdefault(element.element_id, element)
        self._size = len(elements)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._elements

    def __iter__(self) -> Iterator[Element]:
        return iter(self._elements.values())

    def get(self, element_id: str) -> Element | None:
        return self._elements.get(element_id)

    def resolve(self, element_id: str) -> Element:
        """
        Return the element with `element_id`.

        Raises:
            SelectionUnresolved: If no element has that id.
        """
        element = self._elements.get(element_id)
        if element is None:
            raise SelectionUnresolved(
                f"Selected element '{element_id}' not found in document array",
                {"element_id": element_id, "document_count": self._size},
            )
        return element
