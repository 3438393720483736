"""Typed errors raised by the PDF chat pipeline.

Every error carries the doc_id it belongs to, a human-readable message and a
machine-readable reason so callers can tell "no content found" apart from
"upstream unavailable" and "malformed upstream response".
"""

from typing import Literal

ErrorReason = Literal[
    "invalid_input",
    "not_found",
    "no_content",
    "unavailable",
    "malformed",
]


class PipelineError(Exception):
    """Base class for all pipeline errors.

    Attributes:
        doc_id (str): The document the failing operation worked on ("" if unknown).
        message (str): Human-readable cause.
        reason (ErrorReason): Machine-readable failure category.
    """

    stage = "pipeline"

    def __init__(self, doc_id: str, message: str, reason: ErrorReason = "unavailable"):
        self.doc_id = doc_id
        self.message = message
        self.reason = reason
        super().__init__(f"[{self.stage}] doc_id={doc_id!r}: {message}")


class InputValidationError(PipelineError):
    """Bad or missing input. Raised before any network call is made."""

    stage = "validation"

    def __init__(self, doc_id: str, message: str, reason: ErrorReason = "invalid_input"):
        super().__init__(doc_id, message, reason)


class ExtractionError(PipelineError):
    """The source document is empty, unreadable or no longer resolves."""

    stage = "extraction"


class EmbeddingError(PipelineError):
    """The embedding provider is unreachable or returned a malformed/mismatched response."""

    stage = "embedding"


class VectorIndexError(PipelineError):
    """The vector store is unreachable or the namespace is missing on search."""

    stage = "index"


class IngestionError(PipelineError):
    """Malformed passages or embeddings handed to a namespace build."""

    stage = "ingestion"


class GenerationError(PipelineError):
    """The answer-generation call failed or returned a malformed payload."""

    stage = "generation"


class ClientRequestError(Exception):
    """A backend request returned a non-2xx status.

    Attributes:
        url (str): The requested URL.
        status_code (int): The HTTP status code returned by the backend.
    """

    def __init__(self, url: str, status_code: int, body: str = ""):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"Request to {url} failed with status {status_code}")

    def is_transient(self) -> bool:
        return self.status_code >= 500
