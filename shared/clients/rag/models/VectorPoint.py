"""VectorPoint model: metadata stored alongside each passage vector in a RAG backend."""

import uuid

from pydantic import BaseModel

from shared.models.document import Passage, PassageMetadata


class VectorPoint(BaseModel):
    """Payload stored alongside each passage vector.

    The doc_id field is the namespace key: every search and delete is
    filtered on it, so passages of different documents never mix.

    Attributes:
        doc_id:      Document id, the namespace of the point.
        ordinal:     Zero-based position of this passage within the document.
        page_number: Physical page the passage was cut from.
        text:        Raw text content of the passage.
    """

    doc_id: str
    ordinal: int
    page_number: int
    text: str

    @classmethod
    def from_passage(cls, passage: Passage) -> "VectorPoint":
        return cls(
            doc_id=passage.metadata.doc_id,
            ordinal=passage.metadata.ordinal,
            page_number=passage.metadata.page_number,
            text=passage.text,
        )

    def to_passage(self) -> Passage:
        return Passage(
            text=self.text,
            metadata=PassageMetadata(doc_id=self.doc_id, page_number=self.page_number, ordinal=self.ordinal),
        )

    def get_point_id(self) -> str:
        """Build a deterministic UUID5 point id.

        The same passage of the same document always maps to the same id, so
        a repeated or racing build overwrites rather than duplicates.
        """
        return str(uuid.uuid5(uuid.NAMESPACE_OID, f"{self.doc_id}:{self.ordinal}"))
