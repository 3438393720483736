"""Ingestion service.

Downloads a document's PDF, extracts its pages, splits them into passages,
embeds the passages and builds the document's namespace in the RAG backend.
A namespace that already holds passages is reused without re-embedding.

Known behaviour: reuse is keyed on doc_id only. If a document's content changes
while its doc_id stays the same, the old passages keep being served until the
namespace is deleted (do_delete) and the document is ingested again.
"""

import asyncio

from services.pdf_ingest.chunker import split_pages
from services.pdf_ingest.extractor import extract_pages
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.source.SourceClientInterface import SourceClientInterface
from shared.exceptions.pipeline_errors import EmbeddingError, IngestionError, InputValidationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import PipelineConfig
from shared.models.document import Passage


class IngestionService:
    """Builds or reuses the vector index namespace of a document, at most once per doc_id."""

    def __init__(
        self,
        helper_config: HelperConfig,
        pipeline_config: PipelineConfig,
        source_client: SourceClientInterface,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._config = pipeline_config
        self._source = source_client
        self._embed = embed_client
        self._rag = rag_client

        # one lock per doc_id; check-and-build runs inside it
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}
        self._lock_entries = 0

    ##########################################
    ############### CORE INGEST ##############
    ##########################################

    async def do_ingest(self, doc_id: str, owner_id: str) -> bool:
        """Ensure the namespace of a document exists, building it if needed.

        A namespace that is already built is reused after one lock-free count.
        Otherwise the existence check and the build run as one critical section
        per doc_id, so racing first-time ingestions produce a single build and a
        single embedding run, and nobody reuses a namespace mid-build.

        Args:
            doc_id (str): The document id (namespace key).
            owner_id (str): The owner of the document, used to locate its file.

        Returns:
            bool: True if the namespace was built by this call, False if it was reused.

        Raises:
            InputValidationError: If doc_id or owner_id is empty.
            ExtractionError: If the file cannot be downloaded or read.
            EmbeddingError: If embedding fails or returns a mismatched result.
            IngestionError: If the passages are unusable (e.g. no text in the PDF).
            VectorIndexError: If the RAG backend fails.
        """
        if not doc_id or not doc_id.strip():
            raise InputValidationError(doc_id, "doc_id must not be empty.")
        if not owner_id or not owner_id.strip():
            raise InputValidationError(doc_id, "owner_id must not be empty.")

        if await self._is_settled_namespace(doc_id):
            self.logging.debug("Namespace %r already exists, reusing existing embeddings.", doc_id)
            return False

        async with self._doc_lock(doc_id):
            if await self._rag.do_namespace_exists(doc_id):
                self.logging.info("Namespace %r already exists, reusing existing embeddings.", doc_id)
                return False

            self.logging.info("Ingesting document %r for owner %r...", doc_id, owner_id, color="cyan")
            data = await self._source.do_download(owner_id=owner_id, doc_id=doc_id)
            pages = extract_pages(data, doc_id=doc_id, logger=self.logging)
            passages = split_pages(
                pages,
                doc_id=doc_id,
                max_chunk_chars=self._config.chunk_size,
                overlap_chars=self._config.chunk_overlap,
            )
            self.logging.info("Split document %r (%d pages) into %d passages.", doc_id, len(pages), len(passages))
            if not passages:
                raise IngestionError(doc_id, "The document contains no extractable text.", reason="no_content")

            embeddings = await self.do_embed_passages(doc_id, passages)
            await self._rag.do_build_namespace(
                doc_id=doc_id,
                passages=passages,
                embeddings=embeddings,
                batch_size=self._config.upsert_batch_size,
            )
            self.logging.info("Document %r ingested.", doc_id, color="green")
            return True

    async def do_embed_passages(self, doc_id: str, passages: list[Passage]) -> list[list[float]]:
        """Embed passages in batches, running up to embed_concurrency batches at once.

        Args:
            doc_id (str): The owning document.
            passages (list[Passage]): Passages in ordinal order.

        Returns:
            list[list[float]]: One vector per passage, in passage order.

        Raises:
            EmbeddingError: If any batch fails or the total count does not match.
        """
        if not passages:
            return []
        batch_size = self._config.embed_batch_size
        batches = [
            [passage.text for passage in passages[start: start + batch_size]]
            for start in range(0, len(passages), batch_size)
        ]
        sem = asyncio.Semaphore(self._config.embed_concurrency)

        async def _embed_batch(texts: list[str]) -> list[list[float]]:
            async with sem:
                return await self._embed.do_embed(texts, doc_id=doc_id)

        # gather keeps batch order, so ordinals line up with vectors
        results = await asyncio.gather(*[_embed_batch(batch) for batch in batches])
        embeddings = [vector for batch_vectors in results for vector in batch_vectors]
        if len(embeddings) != len(passages):
            raise EmbeddingError(
                doc_id, f"Got {len(embeddings)} vectors for {len(passages)} passages.", reason="malformed"
            )
        return embeddings

    async def do_delete(self, doc_id: str) -> None:
        """Remove all passages of a document from the RAG backend.

        Raises:
            InputValidationError: If doc_id is empty.
            VectorIndexError: If the RAG backend fails.
        """
        if not doc_id or not doc_id.strip():
            raise InputValidationError(doc_id, "doc_id must not be empty.")
        async with self._doc_lock(doc_id):
            await self._rag.do_delete_namespace(doc_id)

    ##########################################
    ################ LOCKING #################
    ##########################################

    async def _is_settled_namespace(self, doc_id: str) -> bool:
        """Lock-free reuse check for the common case of an already built document.

        Only trusted when no lock was held or taken while the count ran, so a
        build in progress is never mistaken for a finished one; otherwise the
        caller takes the locked path.
        """
        if doc_id in self._locks:
            return False
        entries = self._lock_entries
        exists = await self._rag.do_namespace_exists(doc_id)
        return exists and doc_id not in self._locks and self._lock_entries == entries

    def _doc_lock(self, doc_id: str) -> "_DocLock":
        return _DocLock(self, doc_id)


class _DocLock:
    """Async context manager holding the per-doc_id lock; drops the lock once nobody uses it."""

    def __init__(self, service: IngestionService, doc_id: str):
        self._service = service
        self._doc_id = doc_id

    async def __aenter__(self) -> None:
        service = self._service
        lock = service._locks.setdefault(self._doc_id, asyncio.Lock())
        service._lock_users[self._doc_id] = service._lock_users.get(self._doc_id, 0) + 1
        service._lock_entries += 1
        try:
            await lock.acquire()
        except BaseException:
            self._leave()
            raise

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._service._locks[self._doc_id].release()
        self._leave()

    def _leave(self) -> None:
        service = self._service
        service._lock_users[self._doc_id] -= 1
        if service._lock_users[self._doc_id] == 0:
            del service._lock_users[self._doc_id]
            del service._locks[self._doc_id]
