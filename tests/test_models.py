"""Tests for domain models."""

import pytest
from pydantic import ValidationError

from finstatement.core.exceptions import ConfigInvalid
from finstatement.core.models import Candidate, DocConfig, Element, IndexHit, PipelineResult


class TestDocConfig:
    """Tests for DocConfig parsing."""

    def test_parse_camel_case(self):
        """Test wire names are accepted."""
        config = DocConfig.parse({
            "docName": "hood-10Q.pdf",
            "companyName": "Robinhood",
            "docType": "10-Q",
            "reportType": "Balance Sheet",
        })
        assert config.document_name == "hood-10Q.pdf"
        assert config.company_name == "Robinhood"
        assert config.document_type == "10-Q"
        assert config.report_type == "Balance Sheet"

    def test_parse_snake_case(self):
        """Test field names are accepted."""
        config = DocConfig.parse({
            "document_name": "a.pdf",
            "company_name": "Acme",
            "document_type": "10-K",
            "report_type": "Cash Flow",
        })
        assert config.company_name == "Acme"

    def test_parse_returns_existing_instance(self, doc_config):
        """Test an existing DocConfig passes through."""
        assert DocConfig.parse(doc_config) is doc_config

    def test_parse_missing_field(self):
        """Test a missing field raises ConfigInvalid."""
        with pytest.raises(ConfigInvalid) as exc_info:
            DocConfig.parse({"docName": "a.pdf", "companyName": "Acme", "docType": "10-K"})
        assert "reportType" in exc_info.value.context["fields"]

    def test_parse_whitespace_field(self):
        """Test whitespace-only values count as empty."""
        with pytest.raises(ConfigInvalid):
            DocConfig.parse({
                "docName": "a.pdf",
                "companyName": "   ",
                "docType": "10-K",
                "reportType": "Balance Sheet",
            })

    def test_parse_non_mapping(self):
        """Test non-mapping input raises ConfigInvalid."""
        with pytest.raises(ConfigInvalid):
            DocConfig.parse(["a.pdf"])

    def test_frozen(self, doc_config):
        """Test configs are immutable."""
        with pytest.raises(ValidationError):
            doc_config.company_name = "Other"


class TestElement:
    """Tests for Element."""

    def test_preview_from_metadata(self):
        """Test stored preview wins."""
        element = Element(element_id="e1", text="long text", metadata={"text_preview": "short"})
        assert element.preview == "short"

    def test_preview_truncates(self):
        """Test generated preview is truncated to 500 chars."""
        element = Element(element_id="e1", text="x" * 600)
        assert element.preview == "x" * 500 + "..."

    def test_empty_id_rejected(self):
        """Test element_id must be non-empty."""
        with pytest.raises(ValidationError):
            Element(element_id="")


def test_candidate_from_hit():
    """Test hits map onto candidates field by field."""
    hit = IndexHit(id="e1", source_name="f.pdf", score=0.8, preview="p", metadata={"page_number": 3})
    candidate = Candidate.from_hit(hit)
    assert candidate.element_id == "e1"
    assert candidate.source_name == "f.pdf"
    assert candidate.score == 0.8
    assert candidate.metadata == {"page_number": 3}


def test_pipeline_result_wire_shape():
    """Test the result serialises to the original wire keys."""
    result = PipelineResult(original_content="<table/>", reformatted_content="<table></table>")
    assert result.model_dump() == {
        "original_content": "<table/>",
        "reformatted_content": "<table></table>",
    }


def test_pipeline_result_rejects_empty():
    """Test both contents must be non-empty."""
    with pytest.raises(ValidationError):
        PipelineResult(original_content="", reformatted_content="x")
