"""Relationship extraction prompt.

The oracle only sees names and short descriptions of a bounded subset of
entities, never the source text. It must name endpoints exactly as listed,
because resolution back to ids is an exact (case-insensitive) name match.
"""

import json

from lore_extractor.core.config import RelationshipLimits
from lore_extractor.pydantic_models.entities import Entity

RELATIONSHIP_SYSTEM_PROMPT = """You are an expert in analysing relationships in narratives.

Return ONLY a valid JSON object. No markdown, no commentary."""

SUGGESTED_TYPES: tuple[str, ...] = (
    "friend",
    "enemy",
    "family",
    "romantic",
    "mentor",
    "rival",
    "ally",
    "owner",
    "located_at",
    "occurs_at",
    "participates_in",
)


def _entity_lines(entities: list[Entity]) -> str:
    if not entities:
        return "(none)"
    rows = []
    for entity in entities:
        row = {"name": entity.name}
        if entity.description:
            row["description"] = entity.description[:RelationshipLimits.DESCRIPTION_CHARS]
        rows.append(row)
    return json.dumps(rows, indent=2, ensure_ascii=False)


def build_relationship_prompt(
    characters: list[Entity],
    locations: list[Entity],
    events: list[Entity],
    objects: list[Entity],
    universe_description: str,
) -> str:
    """Build the relationship prompt from already-bounded entity lists."""
    types = "\n".join(f"- {t}" for t in SUGGESTED_TYPES)
    return f"""Identify the most important relationships between the entities below.

CHARACTERS:
{_entity_lines(characters)}

LOCATIONS:
{_entity_lines(locations)}

EVENTS:
{_entity_lines(events)}

OBJECTS:
{_entity_lines(objects)}

UNIVERSE CONTEXT:
{universe_description or "(no description)"}

Suggested relationship types (others are allowed when none fits):
{types}

Rules:
1. Use entity names EXACTLY as listed above. Do not shorten, translate or add titles.
2. Cover character-character, character-location, character-event, character-object and event-location links.
3. strength is between 0 and 1 (1 = very strong relationship).
4. Limit to the 20-30 most relevant relationships.

Return JSON:
{{
  "relationships": [
    {{
      "from_entity_type": "character",
      "from_entity_name": "Name",
      "to_entity_type": "character",
      "to_entity_name": "Other Name",
      "relationship_type": "friend",
      "description": "short description",
      "strength": 0.9
    }}
  ]
}}"""
