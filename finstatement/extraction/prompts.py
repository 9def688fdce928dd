"""Prompt templates for the selection and reformatting stages."""

from __future__ import annotations

from typing import Sequence

from ..core.models import Candidate, DocConfig

CANDIDATE_BLOCK_TEMPLATE = (
    "Document {index}:\n"
    "- Element ID: {element_id}\n"
    "- Source/Filename: {source_name}\n"
    "- Content snippet: {preview}..."
)

SELECTION_PROMPT = (
    "You are responsible for identifying which document from the returned results "
    "is most likely to be the {report_type} from {company_name}'s {document_type}.\n\n"
    "Below are the documents that were retrieved:\n\n"
    "{formatted_candidates}\n\n"
    "Identify exactly one document that contains the {report_type} for "
    "{company_name}'s {document_type}.\n"
    "Return your answer as a JSON object with the following format:\n\n"
    '{{\n  "element_id": "the element_id of the identified document",\n'
    '  "filename": "the source/filename of the identified document"\n}}\n\n'
    "Return ONLY the JSON object: no markdown formatting, no code fences, and no "
    "text before or after the JSON.\n"
    "Copy the element_id and source/filename exactly as they appear above."
)

SELECTION_RETRY_REMINDER = (
    "\n\nIMPORTANT: Your previous answer could not be parsed. Respond with a single "
    'JSON object of the form {"element_id": "...", "filename": "..."} and nothing '
    "else. The element_id must be one of the Element IDs listed above."
)

REFORMAT_PROMPT = (
    "You are a system responsible for formatting HTML tables. You will be passed "
    "HTML-like content extracted from a financial filing that may contain formatting "
    "issues such as malformed tags, missing closing elements or inconsistent spacing.\n"
    "Assess the content, fix the mistakes, and improve the formatting while staying "
    "critically accurate to the underlying data. Do not alter, invent, reorder or drop "
    "any numeric or textual value; every number must appear exactly as written.\n\n"
    "Below is the provided table content:\n\n"
    "{table_content}\n\n"
    "Return your answer as a JSON object with the following format:\n\n"
    '{{\n  "reformatted_content": "your improved HTML-formatted content"\n}}\n\n'
    "Return ONLY the JSON object: no markdown formatting, no code fences, and no "
    "text before or after the JSON."
)


def format_candidates(candidates: Sequence[Candidate]) -> str:
    """Render candidates as numbered blocks separated by blank lines."""
    return "\n\n".join(
        CANDIDATE_BLOCK_TEMPLATE.format(
            index=i,
            element_id=candidate.element_id,
            source_name=candidate.source_name or "unknown",
            preview=candidate.preview,
        )
        for i, candidate in enumerate(candidates, 1)
    )


def build_selection_prompt(candidates: Sequence[Candidate], config: DocConfig, strict: bool = False) -> str:
    """Build the disambiguation prompt, optionally with the stricter retry reminder."""
    prompt = SELECTION_PROMPT.format(
        report_type=config.report_type,
        company_name=config.company_name,
        document_type=config.document_type,
        formatted_candidates=format_candidates(candidates),
    )
    if strict:
        prompt += SELECTION_RETRY_REMINDER
    return prompt


def build_reformat_prompt(raw_content: str) -> str:
    """Build the table repair prompt for `raw_content`."""
    return REFORMAT_PROMPT.format(table_content=raw_content)
