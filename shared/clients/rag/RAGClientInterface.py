from abc import abstractmethod
from typing import Any
import json

import httpx
from pydantic import ValidationError as PydanticValidationError
from shared.clients.ClientInterface import ClientInterface
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.exceptions.pipeline_errors import ClientRequestError, IngestionError, VectorIndexError
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Passage
from shared.models.search import RetrievalHit


class RAGClientInterface(ClientInterface):
    """Namespaced nearest-neighbour store: one namespace per document id.

    Namespaces live as a doc_id payload partition inside one collection.
    Similarity is the collection's configured distance and stays the same
    for the lifetime of the collection.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self.vector_size: int | None = None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        """
        Returns the type of the client. E.g. "rag"
        """
        return "rag"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_points(self) -> str:
        """
        Returns the endpoint path for points upsert requests (e.g. "/collections/my_col/points").
        """
        pass

    @abstractmethod
    def _get_endpoint_search(self) -> str:
        """
        Returns the endpoint path for similarity search requests (e.g. "/collections/my_col/points/search").
        """
        pass

    @abstractmethod
    def _get_endpoint_delete_points(self) -> str:
        """
        Returns the endpoint path for deleting points by filter (e.g. "/collections/my_col/points/delete").
        """
        pass

    @abstractmethod
    def _get_endpoint_count(self) -> str:
        """
        Returns the endpoint path for counting points matching a filter (e.g. "/collections/my_col/points/count").
        """
        pass

    @abstractmethod
    def _get_endpoint_check_collection_existence(self) -> str:
        """
        Returns the endpoint path for collection existence check requests (e.g. "/collections/my_col/exists").
        """
        pass

    @abstractmethod
    def _get_endpoint_create_collection(self) -> str:
        """
        Returns the endpoint path for create collection requests (e.g. "/collections/my_col").
        """
        pass

    @abstractmethod
    def _get_endpoint_create_payload_index(self) -> str:
        """
        Returns the endpoint path for creating a payload index (e.g. "/collections/my_col/index").
        """
        pass

    ################ PAYLOAD BUILDER ##################
    @abstractmethod
    def get_namespace_filter(self, doc_id: str) -> dict:
        """
        Builds the backend-specific filter that restricts a request to one namespace.

        Args:
            doc_id (str): The namespace key.

        Returns:
            dict: The filter expression.
        """
        pass

    @abstractmethod
    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        """
        Builds the request payload for creating the collection.
        """
        pass

    @abstractmethod
    def get_payload_index_payload(self) -> dict:
        """
        Builds the request payload for indexing the doc_id payload field.
        """
        pass

    @abstractmethod
    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        """
        Builds the request payload for upserting points.

        Args:
            points (list[dict[str, Any]]): Points with "id", "vector" and "payload" keys.
        """
        pass

    @abstractmethod
    def get_search_payload(self, doc_id: str, query_vector: list[float], k: int) -> dict:
        """
        Builds the request payload for a top-k similarity search restricted to one namespace.
        """
        pass

    @abstractmethod
    def get_count_payload(self, doc_id: str) -> dict:
        """
        Builds the request payload for counting the points of one namespace.
        """
        pass

    @abstractmethod
    def get_delete_payload(self, doc_id: str) -> dict:
        """
        Builds the request payload for deleting all points of one namespace.
        """
        pass

    ########### RESPONSE PARSER ##############
    @abstractmethod
    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        """
        Extracts the raw hits of a search response.

        Returns:
            list[dict]: Dicts with at least "score" and "payload" keys.
        """
        pass

    @abstractmethod
    def extract_count(self, raw_response: dict) -> int:
        """
        Extracts the point count of a count response.
        """
        pass

    @abstractmethod
    def extract_collection_exists(self, raw_response: dict) -> bool:
        """
        Extracts the flag of a collection existence response.
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def _do_json_request(self, doc_id: str, method: str, endpoint: str, payload: dict | None = None) -> dict:
        """Send a JSON request and translate transport and status failures into VectorIndexError."""
        try:
            resp = await self.do_request(
                method=method,
                content=json.dumps(payload) if payload is not None else None,
                endpoint=endpoint,
                additional_headers={"Content-Type": "application/json"},
                raise_on_error=True,
            )
        except (httpx.HTTPError, ClientRequestError) as exc:
            raise VectorIndexError(doc_id, f"{self.get_engine_name()} request {method} {endpoint} failed: {exc}") from exc
        try:
            return resp.json()
        except ValueError as exc:
            raise VectorIndexError(doc_id, f"{self.get_engine_name()} returned a non-JSON body.", reason="malformed") from exc

    async def do_existence_check(self) -> bool:
        """Check if the collection exists in the rag backend.

        Returns:
            bool: True if the collection exists, False otherwise.
        """
        raw = await self._do_json_request("", "GET", self._get_endpoint_check_collection_existence())
        return self.extract_collection_exists(raw)

    async def do_create_collection(self, vector_size: int, distance: str = "Cosine") -> None:
        """Create the collection and the doc_id payload index.

        Args:
            vector_size (int): The size of the vectors in the collection.
            distance (str): The distance metric for the vectors.
        """
        await self._do_json_request(
            "", "PUT", self._get_endpoint_create_collection(), self.get_create_collection_payload(vector_size, distance)
        )
        await self._do_json_request("", "PUT", self._get_endpoint_create_payload_index(), self.get_payload_index_payload())

    async def do_ensure_collection(self, vector_size: int, distance: str = "Cosine") -> bool:
        """Create the collection if missing and remember the vector size for build checks.

        Returns:
            bool: True if the collection was created, False if it already existed.

        Raises:
            ValueError: If the distance is not a similarity (higher score = closer).
        """
        if distance.lower() not in ("cosine", "dot"):
            raise ValueError(f"Unsupported distance '{distance}': search ranking needs Cosine or Dot.")
        self.vector_size = vector_size
        if await self.do_existence_check():
            self.logging.info("RAG collection on %s already exists.", self.get_engine_name())
            return False
        await self.do_create_collection(vector_size=vector_size, distance=distance)
        self.logging.info(
            "Created RAG collection on %s (size=%d, distance=%s).", self.get_engine_name(), vector_size, distance
        )
        return True

    async def do_count(self, doc_id: str) -> int:
        """Count the points of one namespace."""
        raw = await self._do_json_request(doc_id, "POST", self._get_endpoint_count(), self.get_count_payload(doc_id))
        return self.extract_count(raw)

    async def do_namespace_exists(self, doc_id: str) -> bool:
        """Check whether the namespace of a document holds any passages.

        Args:
            doc_id (str): The namespace key.

        Returns:
            bool: True if at least one passage is stored for the document.

        Raises:
            VectorIndexError: If doc_id is empty or the backend is unreachable.
        """
        if not doc_id:
            raise VectorIndexError(doc_id, "No namespace value provided.", reason="invalid_input")
        return await self.do_count(doc_id) > 0

    async def do_build_namespace(
        self,
        doc_id: str,
        passages: list[Passage],
        embeddings: list[list[float]],
        batch_size: int = 100,
    ) -> int:
        """Create the namespace of a document and upsert all (vector, passage) pairs.

        Point ids are deterministic, so repeating a build overwrites the same points.
        If an upsert batch fails, the points stored so far are deleted before the
        error is raised, so a namespace never holds part of a document.

        Args:
            doc_id (str): The namespace key.
            passages (list[Passage]): All passages of the document, in ordinal order.
            embeddings (list[list[float]]): One vector per passage, same order.
            batch_size (int): Max points per upsert request.

        Returns:
            int: The number of points upserted.

        Raises:
            IngestionError: If passages is empty, a passage text is empty or not a string,
                a passage belongs to another document, or the embedding count or
                dimension does not match.
            VectorIndexError: If the backend rejects or cannot receive the upsert.
        """
        if not doc_id:
            raise IngestionError(doc_id, "No namespace value provided.", reason="invalid_input")
        if not passages:
            raise IngestionError(doc_id, "Refusing to build a namespace without passages.", reason="no_content")
        if len(embeddings) != len(passages):
            raise IngestionError(
                doc_id, f"Got {len(embeddings)} embeddings for {len(passages)} passages.", reason="malformed"
            )

        points: list[dict[str, Any]] = []
        for passage, vector in zip(passages, embeddings):
            if not isinstance(passage.text, str) or not passage.text.strip():
                raise IngestionError(doc_id, f"Passage {passage.metadata.ordinal} has no text.", reason="malformed")
            if passage.metadata.doc_id != doc_id:
                raise IngestionError(
                    doc_id, f"Passage {passage.metadata.ordinal} belongs to '{passage.metadata.doc_id}'.", reason="malformed"
                )
            if not vector or (self.vector_size and len(vector) != self.vector_size):
                raise IngestionError(
                    doc_id,
                    f"Vector of passage {passage.metadata.ordinal} has dimension {len(vector)}, expected {self.vector_size}.",
                    reason="malformed",
                )
            point = VectorPoint.from_passage(passage)
            points.append({"id": point.get_point_id(), "vector": vector, "payload": point.model_dump()})

        # upsert in batches to avoid oversized requests
        try:
            for batch_start in range(0, len(points), batch_size):
                batch = points[batch_start: batch_start + batch_size]
                await self._do_json_request(doc_id, "PUT", self._get_endpoint_points(), self.get_upsert_payload(batch))
        except VectorIndexError:
            await self._discard_partial_namespace(doc_id)
            raise

        self.logging.info("Built namespace %r on %s: %d points upserted.", doc_id, self.get_engine_name(), len(points))
        return len(points)

    async def _discard_partial_namespace(self, doc_id: str) -> None:
        """Remove the points of an interrupted build, so the namespace reads as missing again."""
        self.logging.warning("Build of namespace %r failed, removing the points stored so far.", doc_id)
        try:
            await self.do_delete_namespace(doc_id)
        except VectorIndexError as exc:
            # the caller re-raises the upsert failure; a later ingest cannot repair this namespace
            self.logging.error("Could not remove partial namespace %r: %s", doc_id, exc)

    async def do_search(self, doc_id: str, query_vector: list[float], k: int) -> list[RetrievalHit]:
        """Nearest-neighbour search restricted to one namespace.

        Args:
            doc_id (str): The namespace key.
            query_vector (list[float]): The embedded question.
            k (int): Maximum number of hits.

        Returns:
            list[RetrievalHit]: At most k hits, ordered by non-increasing similarity.

        Raises:
            VectorIndexError: If the namespace does not exist, the backend is
                unreachable, or the response is malformed.
        """
        if not doc_id:
            raise VectorIndexError(doc_id, "No namespace value provided.", reason="invalid_input")
        if k <= 0:
            return []
        raw = await self._do_json_request(doc_id, "POST", self._get_endpoint_search(), self.get_search_payload(doc_id, query_vector, k))

        hits: list[RetrievalHit] = []
        try:
            for raw_hit in self.extract_search_hits(raw):
                point = VectorPoint.model_validate(raw_hit.get("payload") or {})
                hits.append(RetrievalHit(passage=point.to_passage(), score=float(raw_hit["score"])))
        except (KeyError, TypeError, ValueError, PydanticValidationError) as exc:
            raise VectorIndexError(doc_id, f"Malformed search hit: {exc}", reason="malformed") from exc

        if not hits and not await self.do_namespace_exists(doc_id):
            raise VectorIndexError(doc_id, f"Namespace '{doc_id}' does not exist.", reason="not_found")

        # stable sort keeps backend order for equal scores
        hits.sort(key=lambda hit: hit.score, reverse=True)
        return hits[:k]

    async def do_delete_namespace(self, doc_id: str) -> None:
        """Deletes all passages of a document.

        Raises:
            VectorIndexError: If doc_id is empty or the backend rejects the delete.
        """
        if not doc_id:
            raise VectorIndexError(doc_id, "No namespace value provided.", reason="invalid_input")
        await self._do_json_request(doc_id, "POST", self._get_endpoint_delete_points(), self.get_delete_payload(doc_id))
        self.logging.info("Deleted namespace %r on %s.", doc_id, self.get_engine_name())
