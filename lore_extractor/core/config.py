"""Centralized configuration for the lore extraction pipeline.

All magic numbers, thresholds, and configuration constants are documented here.
Each constant includes:
- What it controls
- Why this value was chosen
- What changing it affects
"""

import os
from typing import Final


# =============================================================================
# Oracle Provider Configuration
# =============================================================================
#
# The oracle is any chat-completion model litellm can reach. DeepSeek is the
# default; to switch, set ORACLE_MODEL to another litellm model string and
# ORACLE_API_KEY_ENV to the name of the variable holding its key, e.g.
#   ORACLE_MODEL=openrouter/openai/gpt-4o-mini
#   ORACLE_API_KEY_ENV=OPENROUTER_API_KEY
#
# =============================================================================

API_KEY_ENV_VAR: Final[str] = os.environ.get("ORACLE_API_KEY_ENV", "DEEPSEEK_API_KEY")
"""Environment variable name that holds the oracle credential.

Checked before every call; a missing value fails the run immediately with
ORACLE_KEY_MISSING instead of burning retries on 401s.
"""

ORACLE_MODEL: Final[str] = os.environ.get("ORACLE_MODEL", "deepseek/deepseek-chat")
"""Default litellm model identifier for every oracle call.

Use --model CLI flag to override for a single run.
"""


# Oracle Call Configuration

class OracleConfig:
    """Default parameters for oracle API calls."""

    TIMEOUT_SECONDS: Final[float] = 30.0
    """Wall-clock limit for a single attempt.

    This is the only bound on an unresponsive provider; a timed-out attempt
    is classified as HTTP 408 and therefore retried.
    """

    TEMPERATURE: Final[float] = 0.3
    """Sampling temperature when the caller does not pass one.

    Extractors override this with ExtractionLimits.TEMPERATURE.
    """

    MAX_TOKENS: Final[int] = 4000
    """Completion token budget when the caller does not pass one."""


# Retry Configuration

class RetryConfig:
    """Configuration for oracle retry behavior.

    Uses exponential backoff: wait times are 1s, 2s between three attempts.
    No sleep follows the final attempt.
    """

    MAX_ATTEMPTS: Final[int] = 3
    """Maximum attempts (including the first) before giving up."""

    BASE_DELAY_SECONDS: Final[float] = 1.0
    """Delay before the first retry; doubled for each subsequent retry."""

    RECOVERABLE_STATUSES: Final[frozenset[int]] = frozenset({408, 429, 500, 502, 503, 504})
    """HTTP statuses treated as transient.

    Any other 5xx is also treated as transient (see errors.is_recoverable_status).
    Everything else (400, 401, 403, 404, 422...) fails on the first attempt.
    """


# Input Text Validation

class TextLimits:
    """Sanity bounds applied to the decoded source text before any oracle call.

    Used by: text_validator.py:validate_text()
    """

    MIN_LENGTH: Final[int] = 100
    """Shorter texts cannot contain a narrative worth extracting."""

    MAX_LENGTH: Final[int] = 10_000_000
    """Upper bound (characters). Protects memory and cost on a bad upload."""

    MIN_READABLE_RATIO: Final[float] = 0.5
    """Minimum share of readable characters.

    Below this the text is almost certainly a failed decode (binary noise,
    mojibake) rather than prose.
    """

    BINARY_MARKERS: Final[tuple[str, ...]] = (
        "\x00",
        "%PDF",
        "endstream",
        "endobj",
        "JFIF",
        "\xff\xd8\xff",
        "\x89PNG",
    )
    """Signatures of raw document containers and image formats.

    Their presence means the caller passed undecoded bytes instead of text.
    """


# Entity Extraction

class ExtractionLimits:
    """Per-kind prompt sizing for the four entity extractors.

    Characters get the largest window because they are spread across the
    whole work; objects the smallest because they are few and usually
    introduced early. Budgets are completion tokens.

    Used by: prompts/extraction_prompt.py, agents/entity_extractor.py
    """

    TEXT_CAPS: Final[dict[str, int]] = {
        "character": 50_000,
        "event": 40_000,
        "location": 30_000,
        "object": 20_000,
    }
    """Characters of source text embedded in each kind's prompt."""

    TOKEN_BUDGETS: Final[dict[str, int]] = {
        "character": 8000,
        "event": 7000,
        "location": 6000,
        "object": 4000,
    }
    """max_tokens passed to the oracle for each kind."""

    TEMPERATURE: Final[float] = 0.2
    """Low temperature: the same text should yield the same entities."""

    CONTINUATION_MARKER: Final[str] = "\n[... text continues ...]"
    """Appended to the embedded text when it was truncated."""


# Consolidation

class ConsolidationConfig:
    """Duplicate detection and merge acceptance.

    Used by: similarity.py, agents/consolidator.py
    """

    SIMILARITY_THRESHOLD: Final[float] = 0.7
    """Minimum normalized edit-distance similarity to form a candidate pair.

    0.7 catches one-letter typos in short names ("Jon" / "Jonh" = 0.75)
    while leaving most distinct names alone. Every candidate costs one
    oracle call, so lowering this raises cost quickly.
    """

    MERGE_CONFIDENCE: Final[float] = 0.7
    """Oracle confidence must be strictly greater than this to merge."""

    ADJUDICATION_MAX_TOKENS: Final[int] = 500
    """The verdict is a tiny JSON object."""

    ADJUDICATION_TEMPERATURE: Final[float] = 0.1

    DESCRIPTION_SEPARATOR: Final[str] = "\n\n"
    """Joins the two descriptions of merged records."""


# Relationship Extraction

class RelationshipLimits:
    """Size of the entity subset sent to the relationship prompt.

    The first N of each kind (input order) are sent. Resolution afterwards
    uses the full persisted set.

    Used by: agents/relationship_agent.py
    """

    CHARACTERS: Final[int] = 20
    LOCATIONS: Final[int] = 10
    EVENTS: Final[int] = 10
    OBJECTS: Final[int] = 15

    DESCRIPTION_CHARS: Final[int] = 200
    """Per-entity description excerpt included in the prompt."""

    MAX_TOKENS: Final[int] = 4000
    TEMPERATURE: Final[float] = 0.3


# Job Progress

class ProgressCheckpoints:
    """Progress percentages reported at each orchestrator phase.

    Values only ever increase within a run; the job tracker enforces this.
    """

    STARTED: Final[int] = 5
    VALIDATION: Final[int] = 10
    EXTRACTION_START: Final[int] = 30
    EXTRACTION_STEP: Final[int] = 2
    """Added per kind before its call (30, 32, 34, 36)."""
    EXTRACTION_DONE: Final[int] = 40
    CONSOLIDATION: Final[int] = 50
    PERSISTENCE: Final[int] = 60
    PAGES: Final[int] = 85
    RELATIONSHIPS: Final[int] = 90
    DONE: Final[int] = 100


class JobSteps:
    """Human-readable current_step labels shown to progress observers."""

    STARTED: Final[str] = "Starting processing"
    VALIDATING: Final[str] = "Validating text"
    EXTRACTING: Final[str] = "Extracting entities"
    CONSOLIDATING: Final[str] = "Consolidating duplicates"
    PERSISTING: Final[str] = "Creating entities"
    PAGES: Final[str] = "Generating pages"
    RELATIONSHIPS: Final[str] = "Extracting relationships"
    DONE: Final[str] = "Completed"
    FAILED: Final[str] = "Processing failed"
