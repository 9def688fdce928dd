"""
Pydantic models for the statement extraction pipeline.

Everything here is immutable: a run receives a DocConfig and a document
array, and only ever produces new values from them.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigInvalid

PREVIEW_CHARS = 500


class DocConfig(BaseModel):
    """Which statement to extract from which filing."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, str_strip_whitespace=True)

    document_name: str = Field(..., min_length=1, alias="docName")
    company_name: str = Field(..., min_length=1, alias="companyName")
    document_type: str = Field(..., min_length=1, alias="docType")
    report_type: str = Field(..., min_length=1, alias="reportType")

    @classmethod
    def parse(cls, raw: DocConfig | Mapping[str, Any]) -> DocConfig:
        """
        Validate raw input into a DocConfig.

        Args:
            raw: Existing DocConfig or a mapping using snake_case or camelCase keys.

        Returns:
            Validated DocConfig.

        Raises:
            ConfigInvalid: If any field is missing or empty.
        """
        if isinstance(raw, cls):
            return raw
        if not isinstance(raw, Mapping):
            raise ConfigInvalid(
                "Document config must be a mapping",
                {"received_type": type(raw).__name__},
            )
        try:
            return cls.model_validate(dict(raw))
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            raise ConfigInvalid("Invalid document config", {"fields": fields}) from e


class Element(BaseModel):
    """One indexed content chunk of a parsed filing."""

    model_config = ConfigDict(frozen=True)

    element_id: str = Field(..., min_length=1)
    source_name: str = ""
    raw_content: str = ""
    text: str = ""
    element_type: Optional[str] = None
    embedding: tuple[float, ...] = ()
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def preview(self) -> str:
        """Short text preview, as stored alongside the vector."""
        if preview := self.metadata.get("text_preview"):
            return str(preview)
        text = self.text or self.raw_content
        if len(text) > PREVIEW_CHARS:
            return text[:PREVIEW_CHARS] + "..."
        return text


class IndexHit(BaseModel):
    """Raw hit returned by a vector index."""

    model_config = ConfigDict(frozen=True)

    id: str
    source_name: str = ""
    score: float
    preview: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class Candidate(BaseModel):
    """A retrieved element offered to the selector."""

    model_config = ConfigDict(frozen=True)

    element_id: str
    source_name: str = ""
    score: float
    preview: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_hit(cls, hit: IndexHit) -> Candidate:
        return cls(
            element_id=hit.id,
            source_name=hit.source_name,
            score=hit.score,
            preview=hit.preview,
            metadata=hit.metadata,
        )


class SelectionResponse(BaseModel):
    """Wire shape of the disambiguation answer."""

    model_config = ConfigDict(strict=True, extra="ignore")

    element_id: str = Field(..., min_length=1)
    filename: Optional[str] = None

    @field_validator("element_id")
    @classmethod
    def validate_element_id(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("element_id must not be blank")
        return v


class ReformatResponse(BaseModel):
    """Wire shape of the reformatting answer."""

    model_config = ConfigDict(strict=True, extra="ignore")

    reformatted_content: str = Field(..., min_length=1)

    @field_validator("reformatted_content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reformatted_content must not be blank")
        return v


class SelectionDecision(BaseModel):
    """The element the model chose as the statement source."""

    model_config = ConfigDict(frozen=True)

    element_id: str
    source_name: Optional[str] = None


class PipelineResult(BaseModel):
    """Final output of a successful run."""

    model_config = ConfigDict(frozen=True)

    original_content: str = Field(..., min_length=1)
    reformatted_content: str = Field(..., min_length=1)
