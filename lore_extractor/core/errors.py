"""Structured error types for the lore extraction pipeline.

Provides typed errors for:
- Input and text validation failures
- Oracle API errors (with transient/permanent classification)
- Oracle contract errors (bad response shape, unparseable JSON)
- Persistence, cancellation and run-timeout failures

Every failure that reaches the caller is a PipelineError; unknown exceptions
are wrapped by from_exception() so raw tracebacks never leak.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from lore_extractor.core.config import RetryConfig

SNIPPET_LIMIT = 500


class ErrorCode(Enum):
    """Machine-readable error codes surfaced to the caller."""
    INVALID_INPUT = "INVALID_INPUT"                      # Missing universe id or text
    INVALID_PDF = "INVALID_PDF"                          # Text failed validation
    ORACLE_KEY_MISSING = "ORACLE_KEY_MISSING"
    ORACLE_API_ERROR = "ORACLE_API_ERROR"                # Transport / HTTP failure
    ORACLE_RESPONSE_INVALID = "ORACLE_RESPONSE_INVALID"  # No choices / empty content
    JSON_PARSE_ERROR = "JSON_PARSE_ERROR"
    PERSISTENCE_ERROR = "PERSISTENCE_ERROR"
    CANCELLED = "CANCELLED"
    RUN_TIMEOUT = "RUN_TIMEOUT"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


def truncate(text: str | None, limit: int = SNIPPET_LIMIT) -> str | None:
    """Cut diagnostic text down to a safe snippet."""
    if text is None:
        return None
    return text if len(text) <= limit else text[:limit]


def is_recoverable_status(status_code: int | None) -> bool:
    """Transient statuses: request timeout, rate limit and the 5xx family."""
    if status_code is None:
        return False
    return status_code in RetryConfig.RECOVERABLE_STATUSES or 500 <= status_code < 600


@dataclass(eq=False)
class PipelineError(Exception):
    """Typed pipeline failure with context."""

    code: ErrorCode
    message: str
    phase: str = ""
    recoverable: bool = False
    status_code: int | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"{self.code.value}: {self.message}"]
        if self.phase:
            parts.append(f"phase={self.phase}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.recoverable:
            parts.append("recoverable")
        return " | ".join(parts)

    def to_dict(self) -> dict:
        """Caller-facing error object (code, message, phase, recoverable)."""
        return {
            "code": self.code.value,
            "message": self.message,
            "phase": self.phase,
            "recoverable": self.recoverable,
        }


class JobStateError(RuntimeError):
    """Illegal job transition (progress going backwards, mutating a terminal job)."""


# Factory functions for common error types

def invalid_input_error(message: str, phase: str = "input") -> PipelineError:
    """Create an input error (missing required fields)."""
    return PipelineError(code=ErrorCode.INVALID_INPUT, message=message, phase=phase)


def text_validation_error(violations: list[str], phase: str = "validation") -> PipelineError:
    """Create a text validation error listing every violated rule."""
    return PipelineError(
        code=ErrorCode.INVALID_PDF,
        message="Invalid text: " + "; ".join(violations),
        phase=phase,
        details={"violations": violations},
    )


def oracle_key_missing_error(env_var: str, phase: str = "") -> PipelineError:
    """Create the fail-fast error for an unset oracle credential."""
    return PipelineError(
        code=ErrorCode.ORACLE_KEY_MISSING,
        message=f"{env_var} is not configured",
        phase=phase,
    )


def oracle_api_error(
    message: str,
    phase: str = "",
    status_code: int | None = None,
) -> PipelineError:
    """Create an oracle API error, recoverable iff the status is transient."""
    return PipelineError(
        code=ErrorCode.ORACLE_API_ERROR,
        message=truncate(message),
        phase=phase,
        recoverable=is_recoverable_status(status_code),
        status_code=status_code,
    )


def oracle_response_error(message: str, phase: str = "") -> PipelineError:
    """Create an error for a response with no usable content."""
    return PipelineError(
        code=ErrorCode.ORACLE_RESPONSE_INVALID,
        message=message,
        phase=phase,
    )


def json_parse_error(
    message: str,
    phase: str = "",
    raw_response: str | None = None,
) -> PipelineError:
    """Create a contract parse error carrying a truncated snippet of the payload."""
    return PipelineError(
        code=ErrorCode.JSON_PARSE_ERROR,
        message=message,
        phase=phase,
        details={"snippet": truncate(raw_response)},
    )


def persistence_error(message: str, phase: str = "persistence") -> PipelineError:
    """Create a repository failure error."""
    return PipelineError(code=ErrorCode.PERSISTENCE_ERROR, message=truncate(message), phase=phase)


def cancelled_error(phase: str = "") -> PipelineError:
    return PipelineError(code=ErrorCode.CANCELLED, message="Processing cancelled", phase=phase)


def run_timeout_error(timeout_seconds: float, phase: str = "") -> PipelineError:
    return PipelineError(
        code=ErrorCode.RUN_TIMEOUT,
        message=f"Run exceeded {timeout_seconds}s",
        phase=phase,
    )


def from_exception(exc: BaseException, phase: str = "") -> PipelineError:
    """Wrap any exception as a PipelineError without leaking internals.

    PipelineErrors pass through untouched (phase filled in if missing).
    """
    if isinstance(exc, PipelineError):
        if not exc.phase and phase:
            exc.phase = phase
        return exc
    return PipelineError(
        code=ErrorCode.UNKNOWN_ERROR,
        message=truncate(f"{type(exc).__name__}: {exc}"),
        phase=phase,
    )
