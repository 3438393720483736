from abc import abstractmethod

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.exceptions.pipeline_errors import ClientRequestError, EmbeddingError
from shared.helper.HelperConfig import HelperConfig


class EmbedClientInterface(ClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

        # model and embedding config, fixed for the lifetime of the client
        self.embed_distance = helper_config.get_string_val(f"{self.get_client_type().upper()}_DISTANCE", default="Cosine")
        self.embed_model = helper_config.get_string_val(f"{self.get_client_type().upper()}_MODEL", default=None)
        self.embed_dimension = helper_config.get_number_val(f"{self.get_client_type().upper()}_DIMENSION", default=0)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "embed"
        """
        return "embed"

    ################ ENDPOINTS ##################
    @abstractmethod
    def get_endpoint_embedding(self) -> str:
        """
        Returns the endpoint path for embedding requests.

        Returns:
            str: The endpoint path for embedding requests (e.g. "/api/embed")
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_embed_payload(self, texts: list[str]) -> dict:
        """Build the backend-specific request body for an embedding request.

        Args:
            texts (list[str]): The texts to embed.

        Returns:
            dict: JSON-serialisable request body (e.g. {"model": "...", "input": [...]}).
        """
        pass

    ##########################################
    ################# OTHER ##################
    ##########################################

    @abstractmethod
    async def _fetch_model_vector_size(self) -> int:
        """
        Asks the backend for the output dimension of the configured model.

        Returns:
            int: The dimension of the embedding vectors produced by the model.

        Raises:
            ValueError: If the backend does not expose the dimension.
        """
        pass

    @abstractmethod
    def extract_embeddings_from_response(self, response_data: dict | list) -> list[list[float]]:
        """Extract embedding vectors from a raw embedding API response.

        Response format differs by backend:
        - Ollama /api/embed: {"embeddings": [[...], [...]]}, already ordered
        - HF feature-extraction: [[...], [...]], already ordered

        Args:
            response_data (dict | list): The parsed JSON response body.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the input texts.

        Raises:
            ValueError: If the response format is invalid or embeddings are empty.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_fetch_embedding_vector_size(self) -> tuple[int, str]:
        """
        Resolve the output vector dimension and distance metric of the configured embedding model.

        EMBED_DIMENSION wins when set; otherwise the backend is asked.

        Returns:
            tuple[int, str]: The number of dimensions produced by the embedding model and the distance metric.

        Raises:
            EmbeddingError: If the backend cannot be reached or the dimension cannot be determined.
        """
        if self.embed_dimension:
            return int(self.embed_dimension), self.embed_distance
        try:
            vector_size = await self._fetch_model_vector_size()
        except (httpx.HTTPError, ClientRequestError) as exc:
            raise EmbeddingError("", f"Could not fetch model details for '{self.embed_model}': {exc}") from exc
        except ValueError as exc:
            raise EmbeddingError("", str(exc), reason="malformed") from exc
        self.embed_dimension = vector_size
        return vector_size, self.embed_distance

    async def do_embed(self, texts: list[str] | str, doc_id: str = "") -> list[list[float]]:
        """Send an embedding request and return the extracted vectors.

        Normalises the input to a list, builds the backend-specific payload via
        get_embed_payload(), sends the request, and extracts the vectors via
        extract_embeddings_from_response(). One vector per input text is
        required; any other count is fatal.

        Args:
            texts (list[str] | str): One or more texts to embed.
            doc_id (str): The document the texts belong to, for error context.

        Returns:
            list[list[float]]: Embedding vectors in the same order as the inputs.

        Raises:
            EmbeddingError: If the backend is unreachable, answers with an error,
                returns a malformed body or a vector count that differs from the input count.
        """
        texts = [texts] if isinstance(texts, str) else list(texts)
        if not texts:
            return []
        body = self.get_embed_payload(texts)
        try:
            response = await self.do_request(
                method="POST",
                endpoint=self.get_endpoint_embedding(),
                json=body,
                raise_on_error=True,
            )
        except (httpx.HTTPError, ClientRequestError) as exc:
            raise EmbeddingError(doc_id, f"Embedding request to {self.get_engine_name()} failed: {exc}") from exc

        try:
            vectors = self.extract_embeddings_from_response(response.json())
        except (ValueError, TypeError) as exc:
            raise EmbeddingError(doc_id, f"Malformed embedding response: {exc}", reason="malformed") from exc

        if len(vectors) != len(texts):
            self.logging.error(
                "Embedding count mismatch for doc_id=%s: %d texts, %d vectors.",
                doc_id, len(texts), len(vectors),
            )
            raise EmbeddingError(
                doc_id,
                f"Provider returned {len(vectors)} vectors for {len(texts)} texts.",
                reason="malformed",
            )
        return vectors
