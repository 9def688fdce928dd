"""Content reformatting stage."""

from __future__ import annotations

from pydantic import ValidationError

from ..core.exceptions import ReformatParseFailed
from ..core.models import ReformatResponse
from ..infrastructure.logger import get_logger
from ..llm.client import LanguageModel
from ..validation.fidelity import check_numeric_fidelity
from .prompts import build_reformat_prompt

logger = get_logger("finstatement.extraction.reformatter")


def parse_reformat(raw_response: str) -> str:
    """
    Decode the model's raw answer and return reformatted_content.

    Raises:
        ReformatParseFailed: If the answer is not a JSON object with a non-empty reformatted_content.
    """
    if not raw_response or not raw_response.strip():
        raise ReformatParseFailed("Empty reformat response", raw_response)

    try:
        response = ReformatResponse.model_validate_json(raw_response)
    except ValidationError as e:
        raise ReformatParseFailed(
            "Reformat response is not a valid JSON object with reformatted_content",
            raw_response,
            {"errors": [err["msg"] for err in e.errors()]},
        ) from e

    return response.reformatted_content


class ContentReformatter:
    """Repair and enrich table markup without changing its data."""

    def __init__(
        self,
        llm: LanguageModel,
        enforce_numeric_fidelity: bool = True,
        temperature: float = 0.0,
    ):
        self.llm = llm
        self.enforce_numeric_fidelity = enforce_numeric_fidelity
        self.temperature = temperature

    async def reformat(self, raw_content: str) -> str:
        """
        Reformat `raw_content` with one language-model call.

        Args:
            raw_content: Source table markup (possibly malformed)

        Returns:
            Cleaned markup

        Raises:
            ReformatParseFailed: If the model's answer could not be decoded.
            NumericDriftDetected: If numbers from the source are missing in the output.
        """
        prompt = build_reformat_prompt(raw_content)
        raw_response = await self.llm.complete(prompt, temperature=self.temperature)
        reformatted = parse_reformat(raw_response)

        if self.enforce_numeric_fidelity:
            check_numeric_fidelity(raw_content, reformatted)

        logger.info(f"Reformatted content: {len(raw_content)} -> {len(reformatted)} chars")
        return reformatted
