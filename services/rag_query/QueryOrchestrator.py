"""Conversational retrieval orchestrator.

One execution per question:

    START -> ENSURE_INDEX -> [REWRITE_QUERY_WITH_HISTORY] -> EMBED_QUERY -> RETRIEVE
          -> ASSEMBLE_CONTEXT -> GENERATE_ANSWER -> DONE

ERROR is reachable from every state. Nothing is retried here: stage errors
propagate to the caller unchanged (client-level retry policies still apply
to the individual backend calls).
"""

from enum import Enum

from services.pdf_ingest.IngestionService import IngestionService
from services.rag_query.context_assembler import assemble_context
from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.exceptions.pipeline_errors import InputValidationError, PipelineError, VectorIndexError
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatTurn, sort_history
from shared.models.config import PipelineConfig
from shared.models.search import Answer


class QueryState(str, Enum):
    START = "START"
    ENSURE_INDEX = "ENSURE_INDEX"
    REWRITE_QUERY_WITH_HISTORY = "REWRITE_QUERY_WITH_HISTORY"
    EMBED_QUERY = "EMBED_QUERY"
    RETRIEVE = "RETRIEVE"
    ASSEMBLE_CONTEXT = "ASSEMBLE_CONTEXT"
    GENERATE_ANSWER = "GENERATE_ANSWER"
    DONE = "DONE"
    ERROR = "ERROR"


class QueryOrchestrator:
    """Ties ingestion, retrieval, context assembly and answer generation together."""

    def __init__(
        self,
        helper_config: HelperConfig,
        pipeline_config: PipelineConfig,
        ingestion_service: IngestionService,
        embed_client: EmbedClientInterface,
        rag_client: RAGClientInterface,
        llm_client: LLMClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._config = pipeline_config
        self._ingestion = ingestion_service
        self._embed = embed_client
        self._rag = rag_client
        self._llm = llm_client

    ##########################################
    ################ CORE ####################
    ##########################################

    def should_rewrite(self, history: list[ChatTurn]) -> bool:
        """History-aware rewriting runs when enabled and the history is long enough."""
        return (
            self._config.history_aware
            and len(history) > 0
            and len(history) >= self._config.history_rewrite_min_turns
        )

    async def do_query(
        self,
        doc_id: str,
        question: str,
        owner_id: str,
        history: list[ChatTurn] | None = None,
    ) -> Answer:
        """Answer a question about a document.

        Args:
            doc_id (str): The document (namespace) to ask about.
            question (str): The user's question.
            owner_id (str): The document owner, needed if the document still has to be ingested.
            history (list[ChatTurn] | None): Prior turns of the conversation, any order.

        Returns:
            Answer: {context, question, answer} with a non-empty answer.

        Raises:
            InputValidationError: If doc_id, question or owner_id is empty (no network call is made).
            VectorIndexError: With reason "no_content" if nothing relevant was retrieved.
            PipelineError: Any stage error, propagated unchanged.
        """
        state = QueryState.START
        self._log_state(doc_id, state)
        if not doc_id or not doc_id.strip():
            raise InputValidationError(doc_id or "", "doc_id must not be empty.")
        if not question or not question.strip():
            raise InputValidationError(doc_id, "question must not be empty.")
        if not owner_id or not owner_id.strip():
            raise InputValidationError(doc_id, "owner_id must not be empty.")

        ordered_history = sort_history(history)
        try:
            state = self._log_state(doc_id, QueryState.ENSURE_INDEX)
            await self._ingestion.do_ingest(doc_id=doc_id, owner_id=owner_id)

            search_query = question
            if self.should_rewrite(ordered_history):
                state = self._log_state(doc_id, QueryState.REWRITE_QUERY_WITH_HISTORY)
                search_query = await self._llm.do_rewrite_query(question, ordered_history, doc_id=doc_id)
                self.logging.debug("Rewrote question for doc_id=%s into %r.", doc_id, search_query[:120])

            state = self._log_state(doc_id, QueryState.EMBED_QUERY)
            query_vectors = await self._embed.do_embed(search_query, doc_id=doc_id)

            state = self._log_state(doc_id, QueryState.RETRIEVE)
            hits = await self._rag.do_search(doc_id, query_vectors[0], self._config.top_k)
            if not hits:
                raise VectorIndexError(doc_id, "No passages matched the question.", reason="no_content")

            state = self._log_state(doc_id, QueryState.ASSEMBLE_CONTEXT)
            context = assemble_context(hits, self._config.max_context_chars, self._config.context_separator)
            if not context:
                raise VectorIndexError(
                    doc_id, "The best passage does not fit into the context budget.", reason="no_content"
                )

            state = self._log_state(doc_id, QueryState.GENERATE_ANSWER)
            answer = await self._llm.do_generate(
                context=context,
                question=question,
                history=ordered_history if self._config.history_aware else None,
                doc_id=doc_id,
            )
        except PipelineError as exc:
            self.logging.error("Query for doc_id=%s failed in state %s: %s", doc_id, state.value, exc)
            self._log_state(doc_id, QueryState.ERROR)
            raise

        self._log_state(doc_id, QueryState.DONE)
        return Answer(context=context, question=question, answer=answer)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _log_state(self, doc_id: str, state: QueryState) -> QueryState:
        self.logging.debug("doc_id=%s -> %s", doc_id, state.value)
        return state
