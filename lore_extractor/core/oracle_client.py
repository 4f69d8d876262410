"""Oracle client for the extraction pipeline.

Provides a single call(prompt, system_prompt, ...) -> text interface that
absorbs the boilerplate every agent would otherwise repeat:
- Credential check (fail fast, never retried)
- Message building
- Per-attempt timeout
- Classification of failures into recoverable / non-recoverable
- Response-shape validation before any field is read
- Retry with exponential backoff for transient failures
- Cost tracking

The client returns raw text. Turning it into structured data is the job of
core/contract.py, so the two failure modes (transport vs. contract) stay
distinguishable.

Usage:
    client = OracleClient(cost_tracker=tracker)
    text = await client.call(
        prompt="List every character in: ...",
        system_prompt="You are a literary analyst.",
        temperature=0.2,
        max_tokens=8000,
        phase="character",
    )
"""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError

from lore_extractor.core.config import API_KEY_ENV_VAR, ORACLE_MODEL, OracleConfig, RetryConfig
from lore_extractor.core.cost_tracker import CostTracker
from lore_extractor.core.errors import (
    PipelineError,
    oracle_api_error,
    oracle_key_missing_error,
    oracle_response_error,
)
from lore_extractor.core.oracle_router import get_router
from lore_extractor.core.result import Err, Ok, Result
from lore_extractor.core.retry import retry_with_backoff
from lore_extractor.pydantic_models.oracle_responses import ChatCompletion

logger = logging.getLogger(__name__)

# Suppress LiteLLM debug noise (done once at module load)
logging.getLogger("litellm").setLevel(logging.ERROR)
logging.getLogger("httpx").setLevel(logging.ERROR)


def status_code_of(exc: BaseException) -> int | None:
    """HTTP status carried by a provider exception, if any.

    litellm exceptions expose ``status_code``; httpx-style errors carry it on
    ``response``. Timeouts map to 408 so they count as transient.
    """
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    if isinstance(status, int):
        return status
    if isinstance(exc, TimeoutError):
        return 408
    return None


def classify_exception(exc: Exception, phase: str = "") -> PipelineError:
    """Turn a transport exception into an ORACLE_API_ERROR."""
    if isinstance(exc, PipelineError):
        return exc
    status = status_code_of(exc)
    label = f"HTTP {status}" if status is not None else type(exc).__name__
    return oracle_api_error(f"Oracle request failed ({label}): {exc}", phase=phase, status_code=status)


def validate_completion(response: Any) -> Result[ChatCompletion, str]:
    """Check the transport shape of a completion.

    Accepts a plain dict or any object exposing the same attributes (litellm
    ModelResponse). Returns Err with a readable reason instead of raising.
    """
    if response is None:
        return Err("empty response")
    try:
        return Ok(ChatCompletion.model_validate(response, from_attributes=True))
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(p) for p in first.get("loc", ()))
        return Err(f"{location or 'response'}: {first.get('msg', 'invalid')}")


class OracleClient:
    """Client for prompt/response exchanges with the text-generation service."""

    def __init__(
        self,
        model: str = ORACLE_MODEL,
        cost_tracker: CostTracker | None = None,
        timeout: float = OracleConfig.TIMEOUT_SECONDS,
        max_attempts: int = RetryConfig.MAX_ATTEMPTS,
        base_delay: float = RetryConfig.BASE_DELAY_SECONDS,
        api_key_env: str = API_KEY_ENV_VAR,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            model: litellm model identifier.
            cost_tracker: Optional tracker; every successful call is recorded.
            timeout: Per-attempt wall-clock limit in seconds.
            max_attempts: Attempts per call, including the first.
            base_delay: Backoff base in seconds.
            api_key_env: Environment variable holding the credential.
            sleep: Backoff sleep, injectable for tests.
        """
        self.model = model
        self.cost_tracker = cost_tracker
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.api_key_env = api_key_env
        self._sleep = sleep

    def _require_key(self, phase: str) -> None:
        if not os.environ.get(self.api_key_env):
            raise oracle_key_missing_error(self.api_key_env, phase=phase)

    async def call(
        self,
        prompt: str,
        system_prompt: str,
        temperature: float | None = None,
        max_tokens: int | None = None,
        phase: str = "",
    ) -> str:
        """Send one prompt and return the completion text.

        Args:
            prompt: User message content.
            system_prompt: System message content.
            temperature: Sampling temperature. Defaults to OracleConfig.TEMPERATURE.
            max_tokens: Completion budget. Defaults to OracleConfig.MAX_TOKENS.
            phase: Phase name for error context and cost tracking.

        Returns:
            The first choice's message content.

        Raises:
            PipelineError: ORACLE_KEY_MISSING, ORACLE_API_ERROR (after retries
                for transient statuses) or ORACLE_RESPONSE_INVALID.
        """
        self._require_key(phase)

        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]

        def _on_retry(attempt: int, delay: float, error: PipelineError) -> None:
            logger.warning(
                f"Oracle attempt {attempt}/{self.max_attempts} failed ({error.message}); "
                f"retrying in {delay:.1f}s"
            )

        return await retry_with_backoff(
            lambda: self._attempt(
                messages,
                temperature if temperature is not None else OracleConfig.TEMPERATURE,
                max_tokens if max_tokens is not None else OracleConfig.MAX_TOKENS,
                phase,
            ),
            max_attempts=self.max_attempts,
            base_delay=self.base_delay,
            sleep=self._sleep,
            on_retry=_on_retry,
        )

    async def _attempt(
        self,
        messages: list[dict[str, str]],
        temperature: float,
        max_tokens: int,
        phase: str,
    ) -> str:
        """One request: call, classify failures, validate shape, record usage."""
        router = get_router(self.model, self.api_key_env)
        try:
            response = await asyncio.wait_for(
                router.acompletion(
                    model=self.model,
                    messages=messages,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    timeout=self.timeout,
                ),
                timeout=self.timeout,
            )
        except Exception as e:
            raise classify_exception(e, phase) from e

        validated = validate_completion(response)
        if isinstance(validated, Err):
            raise oracle_response_error(f"Invalid oracle response: {validated.error}", phase=phase)
        completion = validated.value

        if self.cost_tracker:
            self.cost_tracker.record(self.model, completion.usage, phase=phase)

        logger.debug(f"Oracle call ok ({phase}): {len(completion.content)} chars")
        return completion.content
