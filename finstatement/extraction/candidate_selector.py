"""
Candidate selection stage.

Asks the language model which retrieved element holds the requested
statement, decodes its answer strictly, and checks the chosen id against the
document array. A malformed answer is never replaced by the top-ranked
candidate; the stage fails instead.
"""

from __future__ import annotations

from typing import Sequence

from pydantic import ValidationError

from ..core.exceptions import SelectionParseFailed
from ..core.models import Candidate, DocConfig, Element, SelectionDecision, SelectionResponse
from ..documents.element_index import ElementIndex
from ..infrastructure.logger import get_logger
from ..llm.client import LanguageModel
from .prompts import build_selection_prompt

logger = get_logger("finstatement.extraction.candidate_selector")


def parse_selection(raw_response: str) -> SelectionDecision:
    """
    Decode the model's raw answer into a SelectionDecision.

    The answer must be exactly one JSON object with a non-empty string
    element_id. Prose, code fences and empty answers are rejected.

    Raises:
        SelectionParseFailed: If the answer does not match the expected shape.
    """
    if not raw_response or not raw_response.strip():
        raise SelectionParseFailed("Empty selection response", raw_response)

    try:
        response = SelectionResponse.model_validate_json(raw_response)
    except ValidationError as e:
        raise SelectionParseFailed(
            "Selection response is not a valid JSON object with element_id",
            raw_response,
            {"errors": [err["msg"] for err in e.errors()]},
        ) from e

    return SelectionDecision(element_id=response.element_id, source_name=response.filename)


class CandidateSelector:
    """Pick the one candidate that contains the requested statement."""

    def __init__(self, llm: LanguageModel, max_retries: int = 1, temperature: float = 0.0):
        """
        Args:
            llm: Language model client
            max_retries: Extra attempts after an unparseable answer (0 or 1)
            temperature: Sampling temperature, pinned to 0 by default
        """
        if max_retries not in (0, 1):
            raise ValueError(f"max_retries must be 0 or 1, got {max_retries}")
        self.llm = llm
        self.max_retries = max_retries
        self.temperature = temperature

    async def decide(self, candidates: Sequence[Candidate], config: DocConfig) -> SelectionDecision:
        """
        Ask the model to choose among `candidates`.

        Returns:
            The decoded SelectionDecision (not yet resolved).

        Raises:
            SelectionParseFailed: If every attempt produced an unparseable answer.
        """
        attempts = self.max_retries + 1
        attempt = 0
        while True:
            attempt += 1
            prompt = build_selection_prompt(candidates, config, strict=attempt > 1)
            raw_response = await self.llm.complete(prompt, temperature=self.temperature)

            try:
                decision = parse_selection(raw_response)
            except SelectionParseFailed as e:
                logger.warning(
                    f"Selection attempt {attempt}/{attempts} unparseable: {(raw_response or '')[:200]!r}"
                )
                if attempt >= attempts:
                    e.context["attempts"] = attempts
                    raise
                continue

            logger.info(f"Model selected element {decision.element_id} ({decision.source_name or 'unknown'})")
            return decision

    async def select(
        self,
        candidates: Sequence[Candidate],
        config: DocConfig,
        elements: ElementIndex,
    ) -> tuple[SelectionDecision, Element]:
        """
        Choose a candidate and resolve it against the document array.

        Resolution runs against the full document array, so an id outside
        the retrieved candidates is accepted as long as the array holds it.

        Returns:
            The decision and the Element it refers to.

        Raises:
            SelectionParseFailed: If the model's answer could not be decoded.
            SelectionUnresolved: If the chosen id is not in the document array.
        """
        decision = await self.decide(candidates, config)
        element = elements.resolve(decision.element_id)

        if decision.element_id not in {c.element_id for c in candidates}:
            logger.warning(
                f"Selected element {decision.element_id} was not among the "
                f"{len(candidates)} retrieved candidates"
            )
        return decision, element
