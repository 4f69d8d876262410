"""Core utilities for the lore extraction pipeline."""

from lore_extractor.core.config import (
    API_KEY_ENV_VAR,
    ORACLE_MODEL,
    ConsolidationConfig,
    ExtractionLimits,
    JobSteps,
    OracleConfig,
    ProgressCheckpoints,
    RelationshipLimits,
    RetryConfig,
    TextLimits,
)
from lore_extractor.core.errors import (
    ErrorCode,
    JobStateError,
    PipelineError,
    cancelled_error,
    from_exception,
    invalid_input_error,
    is_recoverable_status,
    json_parse_error,
    oracle_api_error,
    oracle_key_missing_error,
    oracle_response_error,
    persistence_error,
    run_timeout_error,
    text_validation_error,
)
from lore_extractor.core.result import Err, Ok, Result
from lore_extractor.core.pipeline_logger import LogEntry, RunLogger, configure_logging
from lore_extractor.core.cost_tracker import CallUsage, CostTracker
from lore_extractor.core.retry import retry_with_backoff
from lore_extractor.core.oracle_client import OracleClient, classify_exception, validate_completion
from lore_extractor.core.contract import parse_oracle_json, strip_fences
from lore_extractor.core.text_validator import TextValidation, Violation, validate_text
from lore_extractor.core.similarity import edit_distance, find_duplicates, similarity
from lore_extractor.core.repository import InMemoryRepository, Repository
from lore_extractor.core.job_tracker import JobTracker

__all__ = [
    # Config
    "API_KEY_ENV_VAR",
    "ORACLE_MODEL",
    "ConsolidationConfig",
    "ExtractionLimits",
    "JobSteps",
    "OracleConfig",
    "ProgressCheckpoints",
    "RelationshipLimits",
    "RetryConfig",
    "TextLimits",
    # Errors
    "ErrorCode",
    "JobStateError",
    "PipelineError",
    "cancelled_error",
    "from_exception",
    "invalid_input_error",
    "is_recoverable_status",
    "json_parse_error",
    "oracle_api_error",
    "oracle_key_missing_error",
    "oracle_response_error",
    "persistence_error",
    "run_timeout_error",
    "text_validation_error",
    # Results
    "Err",
    "Ok",
    "Result",
    # Logging and cost
    "LogEntry",
    "RunLogger",
    "configure_logging",
    "CallUsage",
    "CostTracker",
    # Oracle
    "retry_with_backoff",
    "OracleClient",
    "classify_exception",
    "validate_completion",
    "parse_oracle_json",
    "strip_fences",
    # Validation and similarity
    "TextValidation",
    "Violation",
    "validate_text",
    "edit_distance",
    "find_duplicates",
    "similarity",
    # Persistence and job state
    "InMemoryRepository",
    "Repository",
    "JobTracker",
]
