from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientOllama(EmbedClientInterface):
    """Passage and question embeddings from a local Ollama server (/api/embed).

    Inputs longer than the model context are truncated by Ollama unless
    EMBED_OLLAMA_TRUNCATE=false, in which case the request fails instead.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._keep_alive = self.get_config_val("KEEP_ALIVE", default="5m", val_type="string")
        self._truncate = self.get_config_val("TRUNCATE", default=True, val_type="bool")

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
            EnvConfig(env_key="TRUNCATE", val_type="bool", default=True),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/api/version"

    def get_endpoint_embedding(self) -> str:
        return "/api/embed"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        return {
            "model": self.embed_model,
            "input": texts,
            "truncate": self._truncate,
            "keep_alive": self._keep_alive,
        }

    ##########################################
    ################# OTHER ##################
    ##########################################

    async def _fetch_model_vector_size(self) -> int:
        # /api/show lists the architecture parameters, e.g. "nomic-bert.embedding_length"
        response = await self.do_request(
            method="POST",
            json={"model": self.embed_model},
            endpoint="/api/show",
            raise_on_error=True,
        )
        details = response.json().get("model_info") or {}
        lengths = [value for key, value in details.items() if key.endswith(".embedding_length")]
        if not lengths:
            raise ValueError(f"Ollama does not report an embedding length for '{self.embed_model}'.")
        return int(lengths[0])

    def extract_embeddings_from_response(self, response_data: dict | list) -> list[list[float]]:
        """Read the vectors of an /api/embed reply, one per input and in input order.

        Raises:
            ValueError: If Ollama reports an error or any vector is missing or empty.
        """
        if not isinstance(response_data, dict):
            raise ValueError("Ollama embedding reply is not a JSON object.")
        if "error" in response_data:
            raise ValueError(f"Ollama reported an error: {response_data['error']}")
        vectors = response_data.get("embeddings")
        if not isinstance(vectors, list) or not all(isinstance(vector, list) and vector for vector in vectors):
            raise ValueError(f"No usable embeddings in Ollama reply (keys: {sorted(response_data)}).")
        return [[float(x) for x in vector] for vector in vectors]
