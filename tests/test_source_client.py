"""Unit tests for the HTTP document source client."""
import httpx
import pytest

from shared.clients.source.SourceClientManager import SourceClientManager
from shared.clients.source.http.SourceClientHttp import SourceClientHttp
from shared.exceptions.pipeline_errors import ExtractionError


async def _booted_client(helper_config, handler) -> SourceClientHttp:
    client = SourceClientHttp(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(handler))
    return client


@pytest.mark.unit
class TestSourceClientHttp:

    @pytest.mark.asyncio
    async def test_download_returns_bytes(self, helper_config):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"%PDF-1.4 bytes")

        client = await _booted_client(helper_config, handler)
        try:
            data = await client.do_download(owner_id="user 1", doc_id="doc/1")
        finally:
            await client.close()

        assert data == b"%PDF-1.4 bytes"
        assert seen[0].url.raw_path == b"/users/user%201/files/doc%2F1"

    @pytest.mark.asyncio
    async def test_custom_path_template_and_auth(self, helper_config, base_env):
        base_env.setenv("SOURCE_HTTP_PATH_TEMPLATE", "/files/{doc_id}?owner={owner_id}")
        base_env.setenv("SOURCE_HTTP_API_KEY", "store-key")
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, content=b"data")

        client = await _booted_client(helper_config, handler)
        try:
            await client.do_download(owner_id="u1", doc_id="d1")
        finally:
            await client.close()

        assert seen[0].url.path == "/files/d1"
        assert seen[0].url.params["owner"] == "u1"
        assert seen[0].headers["Authorization"] == "Bearer store-key"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [404, 410])
    async def test_missing_file_is_not_found(self, helper_config, status):
        client = await _booted_client(helper_config, lambda request: httpx.Response(status))
        try:
            with pytest.raises(ExtractionError) as exc_info:
                await client.do_download(owner_id="u1", doc_id="d1")
        finally:
            await client.close()

        assert exc_info.value.reason == "not_found"
        assert exc_info.value.doc_id == "d1"

    @pytest.mark.asyncio
    async def test_empty_body_is_no_content(self, helper_config):
        client = await _booted_client(helper_config, lambda request: httpx.Response(200, content=b""))
        try:
            with pytest.raises(ExtractionError) as exc_info:
                await client.do_download(owner_id="u1", doc_id="d1")
        finally:
            await client.close()

        assert exc_info.value.reason == "no_content"

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self, helper_config):
        client = await _booted_client(helper_config, lambda request: httpx.Response(502))
        try:
            with pytest.raises(ExtractionError) as exc_info:
                await client.do_download(owner_id="u1", doc_id="d1")
        finally:
            await client.close()

        assert exc_info.value.reason == "unavailable"

    def test_manager_builds_http_client(self, helper_config):
        assert isinstance(SourceClientManager(helper_config=helper_config).get_client(), SourceClientHttp)
