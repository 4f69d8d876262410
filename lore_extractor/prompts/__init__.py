"""Prompt templates for the oracle."""

from lore_extractor.prompts.extraction_prompt import (
    SYSTEM_PROMPTS,
    build_extraction_prompt,
    cap_text,
)
from lore_extractor.prompts.consolidation_prompt import (
    ADJUDICATION_SYSTEM_PROMPT,
    build_adjudication_prompt,
)
from lore_extractor.prompts.relationship_prompt import (
    RELATIONSHIP_SYSTEM_PROMPT,
    SUGGESTED_TYPES,
    build_relationship_prompt,
)

__all__ = [
    "SYSTEM_PROMPTS",
    "build_extraction_prompt",
    "cap_text",
    "ADJUDICATION_SYSTEM_PROMPT",
    "build_adjudication_prompt",
    "RELATIONSHIP_SYSTEM_PROMPT",
    "SUGGESTED_TYPES",
    "build_relationship_prompt",
]
