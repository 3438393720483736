"""Pydantic models for retrieval results and answers."""

from pydantic import BaseModel

from shared.models.document import Passage


class RetrievalHit(BaseModel):
    """A passage returned by a similarity search, with its score."""

    passage: Passage
    score: float


class Answer(BaseModel):
    """Result of one question against one document."""

    context: str
    question: str
    answer: str
