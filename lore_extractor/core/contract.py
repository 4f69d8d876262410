"""Contract extraction for oracle output.

Models often wrap JSON in a markdown fence even when told not to. This module
strips that wrapper and parses the payload. Parsing is all-or-nothing: there
is no repair step, because a repaired payload silently drops entities and the
caller would never know.
"""

import json
import re
from typing import Any

from lore_extractor.core.errors import json_parse_error

_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*[ \t]*\n?")
_CLOSING_FENCE = re.compile(r"\n?```\s*$")


def strip_fences(text: str) -> str:
    """Remove a leading ```/```json marker and a trailing ``` marker."""
    cleaned = text.strip()
    cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
    cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned.strip()


def parse_oracle_json(text: str, phase: str = "") -> Any:
    """Parse an oracle response into a structured value.

    Args:
        text: Raw completion text, optionally fenced.
        phase: Phase name recorded on the error.

    Returns:
        The decoded JSON value (dict, list, scalar).

    Raises:
        PipelineError: JSON_PARSE_ERROR with a snippet of at most 500 chars.
    """
    cleaned = strip_fences(text or "")
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise json_parse_error(
            f"Oracle returned invalid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            phase=phase,
            raw_response=text,
        ) from e
