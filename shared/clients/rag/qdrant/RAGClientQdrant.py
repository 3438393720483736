from typing import Any

from shared.helper.HelperConfig import HelperConfig
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.models.config import EnvConfig


class RAGClientQdrant(RAGClientInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._collection_name = self.get_config_val("COLLECTION", default=None, val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Qdrant"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="COLLECTION", val_type="string", default=None)
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"api-key": f"{self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return "/healthz"

    def _get_endpoint_points(self) -> str:
        # wait=true: the upsert is visible to searches once the call returns
        return f"/collections/{self._collection_name}/points?wait=true"

    def _get_endpoint_search(self) -> str:
        return f"/collections/{self._collection_name}/points/search"

    def _get_endpoint_delete_points(self) -> str:
        return f"/collections/{self._collection_name}/points/delete?wait=true"

    def _get_endpoint_count(self) -> str:
        return f"/collections/{self._collection_name}/points/count"

    def _get_endpoint_check_collection_existence(self) -> str:
        return f"/collections/{self._collection_name}/exists"

    def _get_endpoint_create_collection(self) -> str:
        return f"/collections/{self._collection_name}"

    def _get_endpoint_create_payload_index(self) -> str:
        return f"/collections/{self._collection_name}/index?wait=true"

    ##########################################
    ########### PAYLOAD BUILDER ##############
    ##########################################

    def get_namespace_filter(self, doc_id: str) -> dict:
        return {"must": [{"key": "doc_id", "match": {"value": doc_id}}]}

    def get_create_collection_payload(self, vector_size: int, distance: str) -> dict:
        # Qdrant expects capitalized distance names ("Cosine", "Dot")
        return {"vectors": {"size": vector_size, "distance": distance.capitalize()}}

    def get_payload_index_payload(self) -> dict:
        return {"field_name": "doc_id", "field_schema": "keyword"}

    def get_upsert_payload(self, points: list[dict[str, Any]]) -> dict:
        return {"points": points}

    def get_search_payload(self, doc_id: str, query_vector: list[float], k: int) -> dict:
        return {
            "vector": query_vector,
            "filter": self.get_namespace_filter(doc_id),
            "limit": k,
            "with_payload": True,
            "with_vector": False,
        }

    def get_count_payload(self, doc_id: str) -> dict:
        return {"filter": self.get_namespace_filter(doc_id), "exact": True}

    def get_delete_payload(self, doc_id: str) -> dict:
        return {"filter": self.get_namespace_filter(doc_id)}

    ##########################################
    ########### RESPONSE PARSER ##############
    ##########################################

    def extract_search_hits(self, raw_response: dict) -> list[dict]:
        result = raw_response.get("result")
        if not isinstance(result, list):
            raise ValueError("Qdrant search response has no result list.")
        return result

    def extract_count(self, raw_response: dict) -> int:
        return int((raw_response.get("result") or {}).get("count", 0))

    def extract_collection_exists(self, raw_response: dict) -> bool:
        return bool((raw_response.get("result") or {}).get("exists"))
