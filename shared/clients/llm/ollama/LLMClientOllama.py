from shared.clients.llm.LLMClientInterface import LLMClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class LLMClientOllama(LLMClientInterface):
    """Answer generator backed by a local Ollama server (/api/chat, non-streaming).

    LLM_OLLAMA_NUM_CTX sets the model context window; it has to hold the
    system prompt with MAX_CONTEXT_CHARS of excerpts plus the chat history.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._keep_alive = self.get_config_val("KEEP_ALIVE", default="5m", val_type="string")
        self._num_ctx = int(self.get_config_val("NUM_CTX", default=0, val_type="number"))

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Ollama"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="KEEP_ALIVE", val_type="string", default="5m"),
            EnvConfig(env_key="NUM_CTX", val_type="number", default=0),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/api/version"

    def _get_endpoint_chat(self) -> str:
        return "/api/chat"

    ################ PAYLOAD BUILDER ##################
    def get_chat_payload(self, messages: list[dict]) -> dict:
        """Build the Ollama chat request body.

        Args:
            messages (list[dict]): OpenAI-format messages.

        Returns:
            dict: {"model", "messages", "stream": False, "keep_alive", "options": {temperature, num_predict[, num_ctx]}}
        """
        options = {"temperature": self.temperature, "num_predict": self.max_tokens}
        if self._num_ctx:
            options["num_ctx"] = self._num_ctx
        return {
            "model": self.chat_model,
            "messages": messages,
            "stream": False,
            "keep_alive": self._keep_alive,
            "options": options,
        }

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_chat_response(self, response_data: dict) -> str:
        """Read the assistant message of a non-streaming /api/chat reply.

        A reply cut off by num_predict is still returned, with a warning.

        Raises:
            ValueError: If Ollama reports an error or the reply has no message content.
        """
        if "error" in response_data:
            raise ValueError(f"Ollama reported an error: {response_data['error']}")
        content = (response_data.get("message") or {}).get("content")
        if content is None:
            raise ValueError(f"No assistant message in Ollama reply (keys: {sorted(response_data)}).")
        if response_data.get("done_reason") == "length":
            self.logging.warning(
                "Answer from %s was cut off at LLM_MAX_TOKENS=%d.", self.chat_model, self.max_tokens
            )
        return content
