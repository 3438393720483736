"""Document chat service: the ingestion and query triggers consumed by the web app.

Ingestion failures propagate so the caller can hold back the "ready to chat"
state. Questions never raise: every failure becomes {success: False, error_message}.
Persisting the resulting human/ai turn pair is left to the caller.
"""

from server.models.responses import AskResponse, IngestResponse
from services.pdf_ingest.IngestionService import IngestionService
from services.rag_query.QueryOrchestrator import QueryOrchestrator
from shared.exceptions.pipeline_errors import PipelineError
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatTurn

GENERIC_ERROR_MESSAGE = "An error occurred while processing the request."

_REASON_MESSAGES = {
    "invalid_input": None,
    "not_found": "The document could not be found. Please upload it again.",
    "no_content": "No relevant content was found in the document for this question.",
    "unavailable": "A backend service is currently unavailable. Please try again later.",
    "malformed": "A backend service returned an unexpected response. Please try again later.",
}


class DocumentChatService:
    """Boundary between the web app and the pipeline."""

    def __init__(
        self,
        helper_config: HelperConfig,
        ingestion_service: IngestionService,
        query_orchestrator: QueryOrchestrator,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._ingestion = ingestion_service
        self._orchestrator = query_orchestrator

    ##########################################
    ################ CORE ####################
    ##########################################

    async def ingest(self, doc_id: str, owner_id: str) -> IngestResponse:
        """Build or reuse the index of a freshly stored document.

        Raises:
            PipelineError: Any ingestion failure, unchanged.
        """
        built = await self._ingestion.do_ingest(doc_id=doc_id, owner_id=owner_id)
        return IngestResponse(completed=True, reused=not built)

    async def ask(
        self,
        doc_id: str,
        owner_id: str,
        question: str,
        history: list[ChatTurn] | None = None,
    ) -> AskResponse:
        """Answer a question about a document without ever raising.

        Returns:
            AskResponse: success with answer and context, or failure with a readable message.
        """
        self.logging.info("Question received: doc_id=%s owner_id=%s question=%r", doc_id, owner_id, (question or "")[:80])
        try:
            result = await self._orchestrator.do_query(
                doc_id=doc_id,
                question=question,
                owner_id=owner_id,
                history=history,
            )
        except PipelineError as exc:
            self.logging.error("Question for doc_id=%s failed (%s/%s): %s", doc_id, exc.stage, exc.reason, exc.message)
            return AskResponse(success=False, error_message=self.get_error_message(exc))
        except Exception as exc:
            self.logging.exception("Unexpected error answering question for doc_id=%s: %s", doc_id, exc)
            return AskResponse(success=False, error_message=GENERIC_ERROR_MESSAGE)

        return AskResponse(success=True, answer=result.answer, context=result.context)

    async def delete(self, doc_id: str) -> None:
        """Remove the index of a deleted document.

        Raises:
            PipelineError: Any failure, unchanged.
        """
        await self._ingestion.do_delete(doc_id)

    ##########################################
    ############### HELPERS ##################
    ##########################################

    @staticmethod
    def get_error_message(exc: PipelineError) -> str:
        """Returns the user-facing message for a pipeline error; input errors keep their own message."""
        return _REASON_MESSAGES.get(exc.reason) or exc.message
