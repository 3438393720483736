from abc import abstractmethod

import httpx
from shared.clients.ClientInterface import ClientInterface
from shared.exceptions.pipeline_errors import ClientRequestError, ExtractionError
from shared.helper.HelperConfig import HelperConfig


class SourceClientInterface(ClientInterface):
    """Fetches the stored bytes of an uploaded document."""

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_client_type(self) -> str:
        return "source"

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_endpoint_download(self, owner_id: str, doc_id: str) -> str:
        """
        Returns the endpoint path that serves the stored file of a document.

        Args:
            owner_id (str): The owner of the document.
            doc_id (str): The document id.

        Returns:
            str: The endpoint path (e.g. "/users/u1/files/d1").
        """
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_download(self, owner_id: str, doc_id: str) -> bytes:
        """Download the stored file of a document.

        Args:
            owner_id (str): The owner of the document.
            doc_id (str): The document id.

        Returns:
            bytes: The raw file content, never empty.

        Raises:
            ExtractionError: If the file no longer resolves (404 or empty body)
                or the storage backend cannot be reached.
        """
        endpoint = self._get_endpoint_download(owner_id, doc_id)
        try:
            response = await self.do_request(method="GET", endpoint=endpoint, raise_on_error=True)
        except ClientRequestError as exc:
            reason = "not_found" if exc.status_code in (404, 410) else "unavailable"
            raise ExtractionError(doc_id, f"Download of the source file failed: {exc}", reason=reason) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(doc_id, f"Storage backend unreachable: {exc}") from exc

        if not response.content:
            raise ExtractionError(doc_id, "Download returned no body.", reason="no_content")
        self.logging.debug("Downloaded %d bytes for doc_id=%s.", len(response.content), doc_id)
        return response.content
