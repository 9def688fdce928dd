"""Tests for candidate selection."""

import asyncio
import json

import pytest

from conftest import ScriptedLLM, make_hit
from finstatement.core.exceptions import SelectionParseFailed, SelectionUnresolved
from finstatement.core.models import Candidate
from finstatement.documents.element_index import ElementIndex
from finstatement.extraction.candidate_selector import CandidateSelector, parse_selection
from finstatement.extraction.prompts import SELECTION_RETRY_REMINDER, format_candidates


@pytest.fixture
def candidates():
    return [
        Candidate.from_hit(make_hit("e2", 0.91, preview="Revenue 1,234.5")),
        Candidate.from_hit(make_hit("e1", 0.88, preview="Total Assets 500")),
    ]


def select(selector, candidates, config, elements):
    return asyncio.run(selector.select(candidates, config, ElementIndex(elements)))


class TestParseSelection:
    """Tests for strict decoding of the selection answer."""

    def test_valid(self):
        decision = parse_selection('{"element_id": "e1", "filename": "f.pdf"}')
        assert decision.element_id == "e1"
        assert decision.source_name == "f.pdf"

    def test_filename_optional(self):
        assert parse_selection('{"element_id": "e1"}').source_name is None

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "The balance sheet is Document 2.",
            '```json\n{"element_id": "e1"}\n```',
            'Answer: {"element_id": "e1"}',
            '["e1"]',
            '{"filename": "f.pdf"}',
            '{"element_id": ""}',
            '{"element_id": "  "}',
            '{"element_id": 1}',
        ],
    )
    def test_rejects(self, raw):
        with pytest.raises(SelectionParseFailed):
            parse_selection(raw)

    def test_keeps_raw_response(self):
        with pytest.raises(SelectionParseFailed) as exc_info:
            parse_selection("not json")
        assert exc_info.value.raw_response == "not json"


class TestCandidateSelector:
    """Tests for CandidateSelector."""

    def test_selects_and_resolves(self, candidates, doc_config, elements):
        """Test a valid answer resolves to the element."""
        llm = ScriptedLLM('{"element_id": "e1", "filename": "hood-10Q.pdf"}')
        decision, element = select(CandidateSelector(llm), candidates, doc_config, elements)
        assert decision.element_id == "e1"
        assert element is elements[0]
        assert llm.call_count == 1
        assert llm.temperatures == [0.0]

    def test_prompt_lists_candidates_in_order(self, candidates, doc_config, elements):
        """Test the prompt embeds the candidate blocks and the request."""
        llm = ScriptedLLM('{"element_id": "e1"}')
        select(CandidateSelector(llm), candidates, doc_config, elements)
        prompt = llm.prompts[0]
        assert format_candidates(candidates) in prompt
        assert prompt.index("Document 1:\n- Element ID: e2") < prompt.index("Document 2:\n- Element ID: e1")
        assert "Balance Sheet" in prompt
        assert "Robinhood" in prompt
        assert "10-Q" in prompt

    def test_retry_after_parse_failure(self, candidates, doc_config, elements):
        """Test one bounded retry with a stricter prompt."""
        llm = ScriptedLLM("It is document 2.", json.dumps({"element_id": "e1", "filename": "f.pdf"}))
        decision, _ = select(CandidateSelector(llm), candidates, doc_config, elements)
        assert decision.element_id == "e1"
        assert llm.call_count == 2
        assert SELECTION_RETRY_REMINDER not in llm.prompts[0]
        assert llm.prompts[1].endswith(SELECTION_RETRY_REMINDER)

    def test_fails_after_retry(self, candidates, doc_config, elements):
        """Test prose twice raises and never falls back to the top candidate."""
        llm = ScriptedLLM("The first one.", "Still the first one.")
        with pytest.raises(SelectionParseFailed) as exc_info:
            select(CandidateSelector(llm), candidates, doc_config, elements)
        assert llm.call_count == 2
        assert exc_info.value.raw_response == "Still the first one."
        assert exc_info.value.context["attempts"] == 2

    def test_no_retry_when_disabled(self, candidates, doc_config, elements):
        """Test max_retries=0 makes a single attempt."""
        llm = ScriptedLLM("prose")
        with pytest.raises(SelectionParseFailed) as exc_info:
            select(CandidateSelector(llm, max_retries=0), candidates, doc_config, elements)
        assert llm.call_count == 1
        assert exc_info.value.context["attempts"] == 1

    def test_invalid_retry_count(self):
        """Test only 0 or 1 retries are allowed."""
        with pytest.raises(ValueError):
            CandidateSelector(ScriptedLLM(), max_retries=2)

    def test_unknown_id_unresolved(self, candidates, doc_config, elements):
        """Test an id absent from the document array raises SelectionUnresolved."""
        llm = ScriptedLLM('{"element_id": "zzz", "filename": "f.pdf"}')
        with pytest.raises(SelectionUnresolved) as exc_info:
            select(CandidateSelector(llm), candidates, doc_config, elements)
        assert exc_info.value.context["element_id"] == "zzz"
        assert llm.call_count == 1

    def test_id_outside_candidates_accepted(self, candidates, doc_config, elements):
        """Test an id in the document array but not retrieved still resolves."""
        llm = ScriptedLLM('{"element_id": "e3"}')
        decision, element = select(CandidateSelector(llm), candidates, doc_config, elements)
        assert element.element_id == "e3"

    def test_unresolved_is_not_retried(self, candidates, doc_config, elements):
        """Test only parse failures consume the retry."""
        llm = ScriptedLLM('{"element_id": "missing"}', '{"element_id": "e1"}')
        with pytest.raises(SelectionUnresolved):
            select(CandidateSelector(llm), candidates, doc_config, elements)
        assert llm.call_count == 1
