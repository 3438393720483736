"""Pydantic models for document data.

Hierarchy:
  PageText: one page of extracted text, in physical page order.
  PassageMetadata: where a passage came from inside its document.
  Passage: a chunk of page text, the atomic unit of retrieval.
"""

from pydantic import BaseModel, field_validator


class PageText(BaseModel):
    """Text of a single PDF page.

    Empty pages are kept as empty strings so page numbers stay accurate.
    """

    page_number: int
    text: str = ""


class PassageMetadata(BaseModel):
    """Provenance of a passage.

    Attributes:
        doc_id:      Id of the owning document (also the vector index namespace).
        page_number: 1-based physical page the passage was cut from.
        ordinal:     0-based position of the passage within the whole document.
    """

    doc_id: str
    page_number: int
    ordinal: int


class Passage(BaseModel):
    """A non-empty chunk of extracted text plus its provenance."""

    model_config = {"frozen": True}

    text: str
    metadata: PassageMetadata

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Passage text must be a non-empty string.")
        return value
