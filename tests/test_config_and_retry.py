"""Unit tests for HelperConfig, PipelineConfig and RetryPolicy."""
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from shared.exceptions.pipeline_errors import ClientRequestError
from shared.helper.RetryPolicy import RetryPolicy, is_transient_error
from shared.models.config import PipelineConfig


@pytest.mark.unit
class TestHelperConfig:

    def test_string_value_and_default(self, helper_config, base_env):
        base_env.setenv("SOME_KEY", "  value  ")

        assert helper_config.get_string_val("some_key") == "value"
        assert helper_config.get_string_val("OTHER_KEY", default="fallback") == "fallback"

    def test_missing_required_value_raises(self, helper_config):
        with pytest.raises(ValueError):
            helper_config.get_string_val("NOT_SET_ANYWHERE")
        with pytest.raises(ValueError):
            helper_config.get_number_val("NOT_SET_ANYWHERE")
        with pytest.raises(ValueError):
            helper_config.get_bool_val("NOT_SET_ANYWHERE")

    def test_numbers_keep_their_type(self, helper_config, base_env):
        base_env.setenv("AN_INT", "42")
        base_env.setenv("A_FLOAT", "0.25")
        base_env.setenv("NOT_A_NUMBER", "abc")

        assert helper_config.get_number_val("AN_INT") == 42
        assert isinstance(helper_config.get_number_val("AN_INT"), int)
        assert helper_config.get_number_val("A_FLOAT") == 0.25
        with pytest.raises(ValueError):
            helper_config.get_number_val("NOT_A_NUMBER")

    @pytest.mark.parametrize("raw,expected", [("true", True), ("YES", True), ("1", True), ("off", False), ("0", False)])
    def test_bool_values(self, helper_config, base_env, raw, expected):
        base_env.setenv("A_FLAG", raw)

        assert helper_config.get_bool_val("A_FLAG") is expected

    def test_invalid_bool_raises(self, helper_config, base_env):
        base_env.setenv("A_FLAG", "maybe")

        with pytest.raises(ValueError):
            helper_config.get_bool_val("A_FLAG", default=False)

    def test_retry_policy_per_stage(self, helper_config, base_env):
        base_env.setenv("LLM_RETRY_ATTEMPTS", "3")
        base_env.setenv("LLM_RETRY_BACKOFF", "0.1")

        policy = helper_config.get_retry_policy("llm")

        assert policy.attempts == 3
        assert policy.backoff_seconds == 0.1
        assert helper_config.get_retry_policy("embed").attempts == 1


@pytest.mark.unit
class TestPipelineConfig:

    def test_defaults_from_empty_environment(self, helper_config):
        config = PipelineConfig.from_helper_config(helper_config)

        assert config == PipelineConfig()
        assert config.chunk_size == 1000
        assert config.chunk_overlap == 200
        assert config.top_k == 4
        assert config.context_separator == "\n\n"
        assert config.history_aware is True

    def test_values_from_environment(self, helper_config, base_env):
        base_env.setenv("CHUNK_SIZE", "500")
        base_env.setenv("CHUNK_OVERLAP", "50")
        base_env.setenv("TOP_K", "8")
        base_env.setenv("CONTEXT_SEPARATOR", "\\n---\\n")
        base_env.setenv("HISTORY_AWARE", "false")

        config = PipelineConfig.from_helper_config(helper_config)

        assert (config.chunk_size, config.chunk_overlap, config.top_k) == (500, 50, 8)
        assert config.context_separator == "\n---\n"
        assert config.history_aware is False

    def test_overlap_must_be_smaller_than_size(self):
        with pytest.raises(ValueError):
            PipelineConfig(chunk_size=100, chunk_overlap=100)

    def test_config_is_immutable(self):
        config = PipelineConfig()

        with pytest.raises(ValueError):
            config.top_k = 10


@pytest.mark.unit
class TestRetryPolicy:

    def test_transient_errors(self):
        request = httpx.Request("GET", "http://backend.test")

        assert is_transient_error(httpx.ConnectError("refused", request=request))
        assert is_transient_error(ClientRequestError("http://backend.test", 503))
        assert not is_transient_error(ClientRequestError("http://backend.test", 404))
        assert not is_transient_error(ValueError("bad body"))

    def test_delay_grows_and_is_capped(self):
        policy = RetryPolicy(attempts=5, backoff_seconds=1.0, max_backoff_seconds=3.0)

        assert [policy.get_delay(n) for n in range(1, 5)] == [1.0, 2.0, 3.0, 3.0]

    @pytest.mark.asyncio
    async def test_retries_transient_failure_then_succeeds(self):
        operation = AsyncMock(side_effect=[ClientRequestError("http://backend.test", 502), "ok"])
        policy = RetryPolicy(attempts=3, backoff_seconds=0.5)

        with patch("shared.helper.RetryPolicy.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await policy.run(operation, label="test")

        assert result == "ok"
        assert operation.await_count == 2
        sleep.assert_awaited_once_with(0.5)

    @pytest.mark.asyncio
    async def test_gives_up_after_attempts(self):
        operation = AsyncMock(side_effect=ClientRequestError("http://backend.test", 500))
        policy = RetryPolicy(attempts=3, backoff_seconds=0.0)

        with pytest.raises(ClientRequestError):
            await policy.run(operation, label="test")

        assert operation.await_count == 3

    @pytest.mark.asyncio
    async def test_client_errors_are_not_retried(self):
        operation = AsyncMock(side_effect=ClientRequestError("http://backend.test", 400))
        policy = RetryPolicy(attempts=3, backoff_seconds=0.0)

        with pytest.raises(ClientRequestError):
            await policy.run(operation, label="test")

        assert operation.await_count == 1
