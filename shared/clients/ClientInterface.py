from abc import ABC, abstractmethod

import httpx
from httpx._types import QueryParamTypes, RequestContent
from typing import Any
from shared.exceptions.pipeline_errors import ClientRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.helper.RetryPolicy import RetryPolicy
from shared.models.config import EnvConfig


class ClientInterface(ABC):
    """Base for every backend client of the pipeline (embedding, vector index, LLM, file source).

    Subclasses name their type and engine, list the env keys they need and
    describe how to reach the backend. This class owns the httpx session,
    the config key scheme <TYPE>_<ENGINE>_<KEY> and the retrying request path.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        client_type = self.get_client_type().upper()
        self.timeout = helper_config.get_number_val(f"{client_type}_TIMEOUT", default=30.0)
        self.retry_policy: RetryPolicy = helper_config.get_retry_policy(self.get_client_type())
        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """Read every declared config key once, so a missing value fails at construction.

        Raises:
            ValueError: If a required value is missing or cannot be parsed.
        """
        for entry in self._get_required_config():
            self.get_config_val(raw_key=entry.env_key, default=entry.default, val_type=entry.val_type)

    @property
    def is_booted(self) -> bool:
        return self._client is not None

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """Capability of the client, e.g. "embed", "rag", "llm" or "source"."""
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """Backend product, e.g. "Ollama" or "Qdrant"."""
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """Env keys (without the <TYPE>_<ENGINE>_ prefix) this engine reads."""
        pass

    def _get_config_key_name(self, raw_key: str) -> str:
        """E.g. "COLLECTION" on the Qdrant RAG client becomes "RAG_QDRANT_COLLECTION"."""
        return "_".join((self.get_client_type(), self.get_engine_name(), raw_key)).upper()

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """Read an engine-scoped env value.

        Args:
            raw_key (str): Key without prefix.
            default (Any): Value used when the variable is unset; None makes it required.
            val_type (str): "string", "number" or "bool".
        """
        readers = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "bool": self._helper_config.get_bool_val,
        }
        reader = readers.get(val_type)
        if reader is None:
            raise ValueError(
                f"Unsupported value type '{val_type}' for '{raw_key}' "
                f"of {self.get_client_type()} client '{self.get_engine_name()}'."
            )
        return reader(self._get_config_key_name(raw_key), default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """Headers that authenticate against the backend; empty when no key is configured."""
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """Backend root, e.g. "http://localhost:6333"."""
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        """Path answered with 2xx while the backend is usable."""
        pass

    def _build_url(self, endpoint: str) -> str:
        path = endpoint.strip().lstrip("/")
        return self._get_base_url().rstrip("/") + (f"/{path}" if path else "")

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        """GET the health endpoint.

        Raises:
            ClientRequestError: On a non-2xx answer.
            httpx.TransportError: If the backend cannot be reached.
        """
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck(), raise_on_error=True)

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Open the HTTP session. Tests pass an httpx.MockTransport."""
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        content: RequestContent | None = None,
        json: dict | list | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = False,
    ) -> httpx.Response:
        """Send one request to the backend under the client's RetryPolicy.

        Only transport errors and, with raise_on_error, 5xx answers are retried.
        When both content and json are given, content wins.

        Returns:
            httpx.Response: The last response.

        Raises:
            RuntimeError: If boot() has not been called.
            httpx.TransportError: If the backend stays unreachable.
            ClientRequestError: On a non-2xx answer when raise_on_error is True.
        """
        if not self.is_booted:
            raise RuntimeError(
                f"{self.get_client_type()} client '{self.get_engine_name()}' used before boot()."
            )

        url = self._build_url(endpoint)
        # httpx sets Content-Type for json bodies
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        body = {"content": content} if content is not None else {"json": json} if json is not None else {}

        async def send_once() -> httpx.Response:
            response = await self._client.request(
                method, url, headers=headers, params=params, timeout=self.timeout, **body
            )
            if raise_on_error and not response.is_success:
                excerpt = response.text[:200]
                self.logging.error("%s %s answered %d: %s", method, url, response.status_code, excerpt)
                raise ClientRequestError(url, response.status_code, excerpt)
            return response

        label = f"{self.get_client_type()} {method} {endpoint or '/'}"
        return await self.retry_policy.run(send_once, label=label, logger=self.logging)
