from urllib.parse import quote

from shared.clients.source.SourceClientInterface import SourceClientInterface
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig


class SourceClientHttp(SourceClientInterface):
    """Reads uploaded files from a plain HTTP file store.

    SOURCE_HTTP_PATH_TEMPLATE is formatted with owner_id and doc_id.
    """

    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._base_url = self.get_config_val("BASE_URL", default=None, val_type="string")
        self._api_key = self.get_config_val("API_KEY", default="", val_type="string")
        self._path_template = self.get_config_val("PATH_TEMPLATE", default="/users/{owner_id}/files/{doc_id}", val_type="string")

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def _get_engine_name(self) -> str:
        return "Http"

    ################ CONFIG ##################
    def _get_required_config(self) -> list[EnvConfig]:
        return [
            EnvConfig(env_key="BASE_URL", val_type="string", default=None),
            EnvConfig(env_key="API_KEY", val_type="string", default=""),
            EnvConfig(env_key="PATH_TEMPLATE", val_type="string", default="/users/{owner_id}/files/{doc_id}"),
        ]

    ################ AUTH ##################
    def _get_auth_header(self) -> dict:
        if self._api_key:
            return {"Authorization": f"Bearer {self._api_key}"}
        return {}

    ################ ENDPOINTS ##################
    def _get_base_url(self) -> str:
        return self._base_url

    def _get_endpoint_healthcheck(self) -> str:
        return ""

    def _get_endpoint_download(self, owner_id: str, doc_id: str) -> str:
        return self._path_template.format(owner_id=quote(owner_id, safe=""), doc_id=quote(doc_id, safe=""))
