"""Tests for lore_extractor.core.oracle_client module.

Tests the OracleClient class with a mocked litellm Router:
- call(): message building, defaults, returned text
- Credential check
- Failure classification and retry
- Response-shape validation
- Cost tracking integration
"""

from types import SimpleNamespace

import pytest
from unittest.mock import AsyncMock, patch

from lore_extractor.core.config import API_KEY_ENV_VAR, OracleConfig
from lore_extractor.core.errors import ErrorCode, PipelineError
from lore_extractor.core.oracle_client import (
    OracleClient,
    classify_exception,
    status_code_of,
    validate_completion,
)
from lore_extractor.core.result import Err, Ok


class ProviderError(Exception):
    """Mimics a litellm exception carrying an HTTP status."""

    def __init__(self, status_code: int, message: str = "provider error"):
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# Helper tests
# =============================================================================


class TestStatusCode:
    """Tests for status_code_of() and classify_exception()."""

    def test_reads_status_code_attribute(self):
        assert status_code_of(ProviderError(429)) == 429

    def test_reads_response_status(self):
        exc = Exception("http")
        exc.response = SimpleNamespace(status_code=502)
        assert status_code_of(exc) == 502

    def test_timeout_maps_to_408(self):
        assert status_code_of(TimeoutError()) == 408

    def test_unknown_has_no_status(self):
        assert status_code_of(ValueError("x")) is None

    def test_classify_transient(self):
        error = classify_exception(ProviderError(503), phase="event")
        assert error.code == ErrorCode.ORACLE_API_ERROR
        assert error.recoverable
        assert error.phase == "event"

    def test_classify_permanent(self):
        assert not classify_exception(ProviderError(401)).recoverable


class TestValidateCompletion:
    """Response shape is checked before any field is read."""

    def test_valid_dict(self, completion):
        result = validate_completion(completion("hello"))
        assert isinstance(result, Ok)
        assert result.value.content == "hello"

    def test_valid_object(self):
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="hi"))],
            usage=None,
        )
        result = validate_completion(response)
        assert isinstance(result, Ok)
        assert result.value.content == "hi"

    def test_none(self):
        assert isinstance(validate_completion(None), Err)

    def test_empty_choices(self):
        assert isinstance(validate_completion({"choices": []}), Err)

    def test_missing_content(self):
        assert isinstance(validate_completion({"choices": [{"message": {}}]}), Err)

    def test_blank_content(self, completion):
        assert isinstance(validate_completion(completion("   ")), Err)


# =============================================================================
# OracleClient tests
# =============================================================================


class TestOracleClient:
    """Tests for OracleClient.call()."""

    @pytest.mark.asyncio
    async def test_returns_content(self, completion, oracle_client, mock_router):
        mock_router.acompletion.return_value = completion('{"characters": []}')
        text = await oracle_client.call("Extract", "You are an analyst.")
        assert text == '{"characters": []}'

    @pytest.mark.asyncio
    async def test_builds_system_and_user_messages(self, oracle_client, mock_router):
        await oracle_client.call("User prompt", "System prompt", temperature=0.2, max_tokens=8000)

        call_kwargs = mock_router.acompletion.call_args.kwargs
        assert call_kwargs["model"] == "deepseek/deepseek-chat"
        assert call_kwargs["temperature"] == 0.2
        assert call_kwargs["max_tokens"] == 8000
        assert call_kwargs["timeout"] == OracleConfig.TIMEOUT_SECONDS
        assert call_kwargs["messages"] == [
            {"role": "system", "content": "System prompt"},
            {"role": "user", "content": "User prompt"},
        ]

    @pytest.mark.asyncio
    async def test_defaults_temperature_and_budget(self, oracle_client, mock_router):
        await oracle_client.call("p", "s")
        call_kwargs = mock_router.acompletion.call_args.kwargs
        assert call_kwargs["temperature"] == OracleConfig.TEMPERATURE
        assert call_kwargs["max_tokens"] == OracleConfig.MAX_TOKENS

    @pytest.mark.asyncio
    async def test_missing_key_fails_fast(self, oracle_client, mock_router, monkeypatch):
        monkeypatch.delenv(API_KEY_ENV_VAR, raising=False)
        with pytest.raises(PipelineError) as exc_info:
            await oracle_client.call("p", "s", phase="character")
        assert exc_info.value.code == ErrorCode.ORACLE_KEY_MISSING
        assert not exc_info.value.recoverable
        mock_router.acompletion.assert_not_called()

    @pytest.mark.asyncio
    async def test_two_transient_failures_then_success(self, completion, oracle_client, mock_router, no_sleep):
        mock_router.acompletion.side_effect = [
            ProviderError(503),
            ProviderError(429),
            completion("finally"),
        ]
        assert await oracle_client.call("p", "s") == "finally"
        assert mock_router.acompletion.await_count == 3
        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_exhausted_retries_raise_api_error(self, oracle_client, mock_router, no_sleep):
        mock_router.acompletion.side_effect = ProviderError(500)
        with pytest.raises(PipelineError) as exc_info:
            await oracle_client.call("p", "s", phase="event")
        assert exc_info.value.code == ErrorCode.ORACLE_API_ERROR
        assert exc_info.value.status_code == 500
        assert mock_router.acompletion.await_count == 3
        assert no_sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_permanent_status_not_retried(self, oracle_client, mock_router, no_sleep):
        mock_router.acompletion.side_effect = ProviderError(401, "unauthorized")
        with pytest.raises(PipelineError) as exc_info:
            await oracle_client.call("p", "s")
        assert not exc_info.value.recoverable
        assert mock_router.acompletion.await_count == 1
        no_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_choices_is_response_invalid(self, oracle_client, mock_router):
        mock_router.acompletion.return_value = {"choices": []}
        with pytest.raises(PipelineError) as exc_info:
            await oracle_client.call("p", "s", phase="object")
        assert exc_info.value.code == ErrorCode.ORACLE_RESPONSE_INVALID
        assert exc_info.value.phase == "object"
        assert mock_router.acompletion.await_count == 1

    @pytest.mark.asyncio
    async def test_none_content_is_response_invalid(self, completion, oracle_client, mock_router):
        mock_router.acompletion.return_value = completion(None)
        with pytest.raises(PipelineError) as exc_info:
            await oracle_client.call("p", "s")
        assert exc_info.value.code == ErrorCode.ORACLE_RESPONSE_INVALID

    @pytest.mark.asyncio
    async def test_tracks_costs(self, oracle_client, mock_router, cost_tracker):
        await oracle_client.call("p", "s", phase="character")
        assert cost_tracker.call_count == 1
        assert cost_tracker.total_prompt_tokens == 100
        assert cost_tracker.total_completion_tokens == 50
        assert "character" in cost_tracker.by_phase()

    @pytest.mark.asyncio
    async def test_attempt_timeout_is_retried(self, api_key, no_sleep):
        async def slow(**kwargs):
            raise TimeoutError()

        with patch("lore_extractor.core.oracle_client.get_router") as get_router:
            get_router.return_value.acompletion = AsyncMock(side_effect=slow)
            client = OracleClient(sleep=no_sleep, max_attempts=2)
            with pytest.raises(PipelineError) as exc_info:
                await client.call("p", "s")

        assert exc_info.value.status_code == 408
        assert exc_info.value.recoverable
        assert no_sleep.await_count == 1
