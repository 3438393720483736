from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class EmbedClientHuggingface(EmbedClientInterface):
    """Embedding client for the Hugging Face inference feature-extraction pipeline.

    Works with sentence-transformers models such as
    "sentence-transformers/all-MiniLM-L6-v2", which return one pooled vector per input.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default="https://router.huggingface.co/hf-inference", val_type="string")
        self._api_key = self.get_config_val("API_KEY", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Huggingface"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default="https://router.huggingface.co/hf-inference"),
            EnvConfig(env_key="API_KEY", val_type="string", default=None),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        return {"Authorization": f"Bearer {self._api_key}"}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return f"/models/{self.embed_model}"

    def get_endpoint_embedding(self) -> str:
        return f"/models/{self.embed_model}/pipeline/feature-extraction"

    ################ PAYLOAD BUILDER ##################
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the feature-extraction request body.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: {"inputs": [...], "options": {"wait_for_model": True}}
        """
        return {"inputs": texts, "options": {"wait_for_model": True}}

    ##########################################
    ################# OTHER ##################
    ##########################################

    async def _fetch_model_vector_size(self) -> int:
        # the inference API has no model details endpoint, so embed a single sample text
        vectors = await self.do_embed("dimension check")
        return len(vectors[0])

    def extract_embeddings_from_response(self, response_data: dict | list) -> list[list[float]]:
        """Extract embedding vectors from a feature-extraction response.

        Args:
            response_data (dict | list): The parsed JSON body, a list of vectors.

        Returns:
            list[list[float]]: Embedding vectors in input order.

        Raises:
            ValueError: If the body is an error object or not a list of flat numeric vectors.
        """
        if isinstance(response_data, dict):
            raise ValueError(f"Hugging Face returned an error object: {response_data.get('error', response_data)}")
        if not isinstance(response_data, list) or not response_data:
            raise ValueError("Hugging Face response does not contain embeddings.")
        vectors: list[list[float]] = []
        for vector in response_data:
            # token-level output means the model is not a sentence embedding model
            if not isinstance(vector, list) or not vector or isinstance(vector[0], list):
                raise ValueError("Hugging Face response is not a list of pooled sentence vectors.")
            vectors.append([float(x) for x in vector])
        return vectors
