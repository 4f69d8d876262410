"""Sanity checks for decoded source text.

Runs before any oracle call so a bad upload fails in milliseconds instead of
after four expensive extraction prompts. Every rule is evaluated and every
violation reported, so the caller gets complete diagnostics in one pass.
"""

import re
from dataclasses import dataclass, field

from lore_extractor.core.config import TextLimits

# Letters (incl. accented Latin), digits, whitespace and common punctuation
_READABLE = re.compile(r"[a-zA-ZÀ-ÿ0-9\s.,;:!?'\"()\-]")
_ALPHANUMERIC = re.compile(r"[a-zA-Z0-9]")


@dataclass(frozen=True)
class Violation:
    """One failed rule."""

    code: str  # empty, too_short, too_long, binary_content, low_readability, no_alphanumeric
    message: str


@dataclass
class TextValidation:
    """Outcome of validate_text()."""

    valid: bool
    violations: list[Violation] = field(default_factory=list)

    @property
    def codes(self) -> list[str]:
        return [v.code for v in self.violations]

    @property
    def messages(self) -> list[str]:
        return [v.message for v in self.violations]


def readable_ratio(text: str) -> float:
    """Share of characters that look like prose."""
    if not text:
        return 0.0
    return len(_READABLE.findall(text)) / len(text)


def find_binary_markers(text: str) -> list[str]:
    """Return every binary/container signature present in the text."""
    return [marker for marker in TextLimits.BINARY_MARKERS if marker in text]


def validate_text(text: str | None) -> TextValidation:
    """Validate decoded text before extraction.

    Rules:
    - not empty or whitespace-only
    - at least TextLimits.MIN_LENGTH characters
    - at most TextLimits.MAX_LENGTH characters
    - no binary or raw-document signatures
    - readable-character ratio >= TextLimits.MIN_READABLE_RATIO
    - at least one alphanumeric character

    Returns:
        TextValidation with valid=False and all violations if any rule fails.
    """
    violations: list[Violation] = []
    text = text or ""

    if not text.strip():
        violations.append(Violation("empty", "Text is empty"))

    if len(text) < TextLimits.MIN_LENGTH:
        violations.append(Violation(
            "too_short",
            f"Text too short ({len(text)} characters, minimum {TextLimits.MIN_LENGTH})",
        ))

    if len(text) > TextLimits.MAX_LENGTH:
        violations.append(Violation(
            "too_long",
            f"Text too long ({len(text):,} characters, maximum {TextLimits.MAX_LENGTH:,})",
        ))

    markers = find_binary_markers(text)
    if markers:
        violations.append(Violation(
            "binary_content",
            f"Text contains binary or raw document data ({', '.join(repr(m) for m in markers)})",
        ))

    if text:
        ratio = readable_ratio(text)
        if ratio < TextLimits.MIN_READABLE_RATIO:
            violations.append(Violation(
                "low_readability",
                f"Text has too few readable characters ({ratio:.0%})",
            ))

    if not _ALPHANUMERIC.search(text):
        violations.append(Violation("no_alphanumeric", "Text has no alphanumeric characters"))

    return TextValidation(valid=not violations, violations=violations)
