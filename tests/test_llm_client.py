"""Unit tests for the Ollama answer generator client and the prompt builders."""
import json
from datetime import datetime, timedelta

import httpx
import pytest

from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.llm.ollama.LLMClientOllama import LLMClientOllama
from shared.clients.llm.prompts import build_answer_messages, build_rewrite_messages
from shared.exceptions.pipeline_errors import GenerationError
from shared.models.chat import ChatTurn

T0 = datetime(2024, 5, 1, 12, 0, 0)


def _history() -> list[ChatTurn]:
    # deliberately out of order
    return [
        ChatTurn(role="ai", text="Alpha is the first letter.", created_at=T0 + timedelta(seconds=1)),
        ChatTurn(role="human", text="What is Alpha?", created_at=T0),
    ]


def _reply(content) -> dict:
    return {"model": "llama3.1", "message": {"role": "assistant", "content": content}, "done": True}


@pytest.mark.unit
class TestPrompts:

    def test_answer_messages_embed_context_then_history_then_question(self):
        messages = build_answer_messages("CONTEXT TEXT", "And Beta?", _history())

        assert messages[0]["role"] == "system"
        assert "CONTEXT TEXT" in messages[0]["content"]
        assert messages[1:] == [
            {"role": "user", "content": "What is Alpha?"},
            {"role": "assistant", "content": "Alpha is the first letter."},
            {"role": "user", "content": "And Beta?"},
        ]

    def test_answer_messages_without_history(self):
        messages = build_answer_messages("ctx", "Question?")

        assert [m["role"] for m in messages] == ["system", "user"]

    def test_rewrite_messages_end_with_instruction(self):
        messages = build_rewrite_messages("And Beta?", _history())

        assert messages[0]["content"] == "What is Alpha?"
        assert messages[-1]["role"] == "user"
        assert "And Beta?" in messages[-1]["content"]


@pytest.mark.unit
class TestLLMClientOllama:

    @pytest.mark.asyncio
    async def test_generate_sends_chat_request(self, helper_config):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/chat"
            seen.append(json.loads(request.content))
            return httpx.Response(200, json=_reply("  Alpha is a letter.  "))

        client = LLMClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        try:
            answer = await client.do_generate(context="ctx", question="What is Alpha?", doc_id="doc-1")
        finally:
            await client.close()

        assert answer == "Alpha is a letter."
        body = seen[0]
        assert body["model"] == "llama3.1"
        assert body["stream"] is False
        assert body["options"] == {"temperature": 0.0, "num_predict": 512}
        assert body["keep_alive"] == "5m"
        assert body["messages"][-1] == {"role": "user", "content": "What is Alpha?"}

    def test_context_window_is_sent_when_configured(self, helper_config, base_env):
        base_env.setenv("LLM_OLLAMA_NUM_CTX", "8192")

        payload = LLMClientOllama(helper_config=helper_config).get_chat_payload([{"role": "user", "content": "q"}])

        assert payload["options"]["num_ctx"] == 8192

    def test_cut_off_answer_is_kept(self, helper_config):
        client = LLMClientOllama(helper_config=helper_config)

        content = client.extract_chat_response({"message": {"content": "Alpha is"}, "done_reason": "length"})

        assert content == "Alpha is"

    @pytest.mark.asyncio
    async def test_empty_answer_is_malformed(self, helper_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=_reply("   "))

        client = LLMClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(GenerationError) as exc_info:
                await client.do_generate(context="ctx", question="q", doc_id="doc-1")
        finally:
            await client.close()

        assert exc_info.value.reason == "malformed"

    @pytest.mark.asyncio
    async def test_missing_message_is_malformed(self, helper_config):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"done": True})

        client = LLMClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(GenerationError) as exc_info:
                await client.do_generate(context="ctx", question="q")
        finally:
            await client.close()

        assert exc_info.value.reason == "malformed"

    @pytest.mark.asyncio
    async def test_timeout_is_unavailable(self, helper_config):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        client = LLMClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        try:
            with pytest.raises(GenerationError) as exc_info:
                await client.do_generate(context="ctx", question="q", doc_id="doc-1")
        finally:
            await client.close()

        assert exc_info.value.reason == "unavailable"
        assert exc_info.value.doc_id == "doc-1"

    @pytest.mark.asyncio
    async def test_rewrite_query_returns_standalone_question(self, helper_config):
        seen: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json=_reply("What is Beta in the alphabet?"))

        client = LLMClientOllama(helper_config=helper_config)
        await client.boot(transport=httpx.MockTransport(handler))
        try:
            query = await client.do_rewrite_query("And Beta?", _history(), doc_id="doc-1")
        finally:
            await client.close()

        assert query == "What is Beta in the alphabet?"
        assert [m["role"] for m in seen[0]["messages"]] == ["user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_request_before_boot_raises(self, helper_config):
        client = LLMClientOllama(helper_config=helper_config)

        with pytest.raises(RuntimeError):
            await client.do_request(method="GET")

    def test_manager_builds_ollama_client(self, helper_config):
        assert isinstance(LLMClientManager(helper_config=helper_config).get_client(), LLMClientOllama)
