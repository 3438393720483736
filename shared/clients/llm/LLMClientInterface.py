from abc import abstractmethod

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.clients.llm.prompts import build_answer_messages, build_rewrite_messages
from shared.exceptions.pipeline_errors import ClientRequestError, GenerationError
from shared.helper.HelperConfig import HelperConfig
from shared.models.chat import ChatTurn


class LLMClientInterface(ClientInterface):
    """Answer generator. Model identity, temperature and output length are fixed configuration."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # chat / completion config
        self.chat_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_CHAT_MODEL", default=None)
        self.temperature = float(helper_config.get_number_val(f"{self.get_client_type().upper()}_TEMPERATURE", default=0.0))
        self.max_tokens = int(helper_config.get_number_val(f"{self.get_client_type().upper()}_MAX_TOKENS", default=512))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "llm"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_chat(self) -> str:
        """Returns the endpoint path for chat/completion requests (e.g. "/api/chat")."""
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Build the backend-specific request body for a chat/completion request.

        Args:
            messages (list[dict]): OpenAI-format messages
                (e.g. [{"role": "user", "content": "..."}]).

        Returns:
            dict: JSON-serialisable request body.
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    def extract_chat_response(self, response_data: dict) -> str:
        """Extract the assistant reply text from a raw chat API response.

        Args:
            response_data (dict): The parsed JSON response body.

        Returns:
            str: The assistant reply text.

        Raises:
            ValueError: If the response does not contain a reply field.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_chat(self, messages: list[dict], doc_id: str = "") -> str:
        """Send a chat/completion request and return the non-empty assistant reply.

        Args:
            messages (list[dict]): OpenAI-format messages.
            doc_id (str): The document the conversation is about, for error context.

        Returns:
            str: The stripped assistant reply text.

        Raises:
            GenerationError: If the request fails or times out, or the reply is missing or empty.
        """
        body = self.get_chat_payload(messages)
        try:
            response = await self.do_request(
                method="POST",
                endpoint=self._get_endpoint_chat(),
                json=body,
                raise_on_error=True,
            )
        except (httpx.HTTPError, ClientRequestError) as exc:
            raise GenerationError(doc_id, f"Chat request to {self.get_engine_name()} failed: {exc}") from exc

        try:
            reply = self.extract_chat_response(response.json())
        except (ValueError, TypeError, AttributeError) as exc:
            raise GenerationError(doc_id, f"Malformed chat response: {exc}", reason="malformed") from exc
        if not isinstance(reply, str) or not reply.strip():
            raise GenerationError(doc_id, "Chat response contained an empty answer.", reason="malformed")
        return reply.strip()

    async def do_generate(
        self,
        context: str,
        question: str,
        history: list[ChatTurn] | None = None,
        doc_id: str = "",
    ) -> str:
        """Answer a question grounded in the given context.

        Args:
            context (str): The assembled document excerpts.
            question (str): The user's question.
            history (list[ChatTurn] | None): Prior turns, passed in history-aware mode.
            doc_id (str): The document asked about.

        Returns:
            str: The answer.
        """
        return await self.do_chat(build_answer_messages(context, question, history), doc_id=doc_id)

    async def do_rewrite_query(self, question: str, history: list[ChatTurn], doc_id: str = "") -> str:
        """Rewrite a follow-up question into a standalone search query.

        Args:
            question (str): The follow-up question.
            history (list[ChatTurn]): The conversation so far.
            doc_id (str): The document asked about.

        Returns:
            str: The standalone search query.
        """
        return await self.do_chat(build_rewrite_messages(question, history), doc_id=doc_id)
