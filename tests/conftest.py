"""
Pytest configuration and shared fixtures for the test suite.
Sets the environment every client expects and builds small PDFs in memory.
"""
import logging

import pytest

from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import ColorLogger
from shared.models.config import PipelineConfig


BASE_ENV = {
    "EMBED_ENGINE": "ollama",
    "EMBED_MODEL": "nomic-embed-text",
    "EMBED_OLLAMA_BASE_URL": "http://ollama.test",
    "RAG_ENGINE": "qdrant",
    "RAG_QDRANT_BASE_URL": "http://qdrant.test",
    "RAG_QDRANT_COLLECTION": "pdfchat",
    "LLM_ENGINE": "ollama",
    "LLM_CHAT_MODEL": "llama3.1",
    "LLM_OLLAMA_BASE_URL": "http://ollama.test",
    "SOURCE_ENGINE": "http",
    "SOURCE_HTTP_BASE_URL": "http://files.test",
    "APP_API_KEY": "test-key",
}

# tunables that would leak in from a developer's shell
CLEARED_ENV = [
    "EMBED_DIMENSION",
    "EMBED_DISTANCE",
    "EMBED_OLLAMA_API_KEY",
    "RAG_QDRANT_API_KEY",
    "LLM_OLLAMA_API_KEY",
    "SOURCE_HTTP_API_KEY",
    "SOURCE_HTTP_PATH_TEMPLATE",
    "EMBED_OLLAMA_TRUNCATE",
    "EMBED_OLLAMA_KEEP_ALIVE",
    "LLM_OLLAMA_KEEP_ALIVE",
    "LLM_OLLAMA_NUM_CTX",
    "LLM_TEMPERATURE",
    "LLM_MAX_TOKENS",
    "CHUNK_SIZE",
    "CHUNK_OVERLAP",
    "TOP_K",
    "MAX_CONTEXT_CHARS",
    "CONTEXT_SEPARATOR",
    "HISTORY_AWARE",
    "HISTORY_REWRITE_MIN_TURNS",
    "EMBED_BATCH_SIZE",
    "EMBED_CONCURRENCY",
    "UPSERT_BATCH_SIZE",
    "EMBED_RETRY_ATTEMPTS",
    "RAG_RETRY_ATTEMPTS",
    "LLM_RETRY_ATTEMPTS",
    "SOURCE_RETRY_ATTEMPTS",
]


@pytest.fixture(autouse=True)
def base_env(monkeypatch):
    """Required configuration for all four clients, nothing else."""
    for key in CLEARED_ENV:
        monkeypatch.delenv(key, raising=False)
    for key, value in BASE_ENV.items():
        monkeypatch.setenv(key, value)
    return monkeypatch


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=ColorLogger(logging.getLogger("tests")))


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    return PipelineConfig()


# ----- In-memory PDFs -----
def _escape_pdf_text(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def build_pdf(page_texts: list[str]) -> bytes:
    """Build a minimal PDF with one line of Helvetica text per page ("" = blank page)."""
    page_ids = [4 + 2 * i for i in range(len(page_texts))]
    kids = " ".join(f"{page_id} 0 R" for page_id in page_ids)
    objects: list[bytes] = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        f"<< /Type /Pages /Kids [{kids}] /Count {len(page_texts)} >>".encode(),
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    ]
    for page_id, text in zip(page_ids, page_texts):
        stream = f"BT /F1 12 Tf 72 720 Td ({_escape_pdf_text(text)}) Tj ET".encode("latin-1") if text else b""
        objects.append(
            (
                "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
                f"/Resources << /Font << /F1 3 0 R >> >> /Contents {page_id + 1} 0 R >>"
            ).encode()
        )
        objects.append(b"<< /Length %d >>\nstream\n" % len(stream) + stream + b"\nendstream")

    out = bytearray(b"%PDF-1.4\n")
    offsets: list[int] = []
    for number, body in enumerate(objects, 1):
        offsets.append(len(out))
        out += f"{number} 0 obj\n".encode() + body + b"\nendobj\n"
    xref_offset = len(out)
    out += f"xref\n0 {len(objects) + 1}\n".encode()
    out += b"0000000000 65535 f \n"
    for offset in offsets:
        out += f"{offset:010d} 00000 n \n".encode()
    out += f"trailer\n<< /Size {len(objects) + 1} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n".encode()
    return bytes(out)


@pytest.fixture
def pdf_factory():
    """Returns build_pdf so tests can create documents with chosen page texts."""
    return build_pdf
