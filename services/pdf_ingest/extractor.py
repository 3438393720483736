"""PDF text extraction.

Turns raw PDF bytes into page-level text blocks in physical page order.
Pages without extractable text are kept as empty strings so downstream
chunking sees accurate page numbers.
"""

import io
import logging

from pypdf import PasswordType, PdfReader
from pypdf.errors import PyPdfError

from shared.exceptions.pipeline_errors import ExtractionError
from shared.models.document import PageText


def extract_pages(data: bytes, doc_id: str = "", logger: logging.Logger | None = None) -> list[PageText]:
    """Extract the text of every page of a PDF.

    Args:
        data: The raw PDF byte stream.
        doc_id: The document the bytes belong to, for error context.
        logger: Receives the per-document page summary, usually HelperConfig.get_logger().

    Returns:
        list[PageText]: One entry per page, 1-based page numbers, in page order.

    Raises:
        ExtractionError: If the stream is empty, not a PDF, encrypted or unreadable.
    """
    if not data:
        raise ExtractionError(doc_id, "The PDF byte stream is empty.", reason="no_content")

    try:
        reader = PdfReader(io.BytesIO(data))
        # encrypted files with an empty user password are still readable
        if reader.is_encrypted and reader.decrypt("") == PasswordType.NOT_DECRYPTED:
            raise ExtractionError(doc_id, "The PDF is encrypted.", reason="malformed")
        pages = [
            PageText(page_number=page_number, text=page.extract_text() or "")
            for page_number, page in enumerate(reader.pages, 1)
        ]
    except ExtractionError:
        raise
    except (PyPdfError, ValueError, KeyError, TypeError, OSError) as exc:
        raise ExtractionError(doc_id, f"The PDF could not be read: {exc}", reason="malformed") from exc

    if not pages:
        raise ExtractionError(doc_id, "The PDF has no pages.", reason="no_content")

    if logger is not None:
        logger.debug(
            "Extracted %d pages (%d with text) for doc_id=%s.",
            len(pages), sum(1 for page in pages if page.text.strip()), doc_id,
        )
    return pages
