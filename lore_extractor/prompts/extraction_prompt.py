"""Entity extraction prompts, one per kind.

Each prompt embeds a capped prefix of the source text. The caps differ per
kind (see ExtractionLimits.TEXT_CAPS) and a continuation marker tells the
model the text was cut so it does not treat the last sentence as the ending.
"""

from lore_extractor.core.config import ExtractionLimits
from lore_extractor.pydantic_models.entities import EntityKind


def cap_text(text: str, limit: int) -> str:
    """First ``limit`` characters, plus the continuation marker if truncated."""
    if len(text) <= limit:
        return text
    return text[:limit] + ExtractionLimits.CONTINUATION_MARKER


CHARACTER_SYSTEM_PROMPT = """You are an expert literary analyst who catalogues the characters of a fictional work.

Return ONLY a valid JSON object. No markdown, no commentary."""

LOCATION_SYSTEM_PROMPT = """You are an expert in literary world-building who catalogues the places of a fictional work.

Return ONLY a valid JSON object. No markdown, no commentary."""

EVENT_SYSTEM_PROMPT = """You are an expert in narrative structure who catalogues the events of a fictional work.

Return ONLY a valid JSON object. No markdown, no commentary."""

OBJECT_SYSTEM_PROMPT = """You are an expert literary analyst who catalogues the significant objects of a fictional work.

Return ONLY a valid JSON object. No markdown, no commentary."""


_CHARACTER_INSTRUCTIONS = """Identify EVERY character in the text below, including minor ones.

For each character capture:
- name: the fullest name used in the text
- aliases: nicknames, titles and other names the character goes by
- description: who they are and what they do in the story (2-4 sentences)
- role: one of protagonist, antagonist, supporting, minor
- personality: dominant traits, in a short phrase
- occupation: profession or social function, if stated
- abilities: skills, talents or powers (list of short strings)

Rules:
1. One entry per character. If the text calls the same person by several names, use one entry and put the other names in aliases.
2. Do not invent facts the text does not support. Omit a field rather than guess.

Return JSON:
{
  "characters": [
    {
      "name": "Full Name",
      "aliases": ["Nickname"],
      "description": "...",
      "role": "protagonist",
      "personality": "...",
      "occupation": "...",
      "abilities": ["..."]
    }
  ]
}"""

_LOCATION_INSTRUCTIONS = """Identify EVERY named or clearly described place in the text below.

For each location capture:
- name
- aliases: other names for the place
- type: city, building, region, planet, room, forest...
- description: what it looks like and what happens there (2-4 sentences)
- country: country, kingdom or larger region it belongs to, if stated
- significance: why the place matters to the story

Rules:
1. One entry per place.
2. Do not invent facts the text does not support. Omit a field rather than guess.

Return JSON:
{
  "locations": [
    {
      "name": "Place Name",
      "aliases": [],
      "type": "city",
      "description": "...",
      "country": "...",
      "significance": "..."
    }
  ]
}"""

_EVENT_INSTRUCTIONS = """Identify the significant events of the story in the text below, in the order they happen.

For each event capture:
- name: a short title
- aliases: other ways the text refers to it
- description: what happens (2-4 sentences)
- date: when it happens, as the text states it (date, era, chapter, "the night of the storm")
- significance: consequences for the story
- involved_characters: names of the characters who take part, exactly as they appear in the text

Rules:
1. One entry per event. Skip trivial everyday actions.
2. Do not invent facts the text does not support. Omit a field rather than guess.

Return JSON:
{
  "events": [
    {
      "name": "Event Title",
      "aliases": [],
      "description": "...",
      "date": "...",
      "significance": "...",
      "involved_characters": ["Character Name"]
    }
  ]
}"""

_OBJECT_INSTRUCTIONS = """Identify the significant objects in the text below: artifacts, weapons, relics, documents, vehicles, heirlooms.

For each object capture:
- name
- aliases: other names for the object
- type: weapon, artifact, document, vehicle...
- description: what it is and its role in the story (1-3 sentences)
- owner: name of the character who owns or carries it, if any
- powers: special properties or abilities (list of short strings)

Rules:
1. Only objects that matter to the plot or to a character. Skip scenery.
2. Do not invent facts the text does not support. Omit a field rather than guess.

Return JSON:
{
  "objects": [
    {
      "name": "Object Name",
      "aliases": [],
      "type": "weapon",
      "description": "...",
      "owner": "Character Name",
      "powers": ["..."]
    }
  ]
}"""


SYSTEM_PROMPTS: dict[EntityKind, str] = {
    EntityKind.CHARACTER: CHARACTER_SYSTEM_PROMPT,
    EntityKind.LOCATION: LOCATION_SYSTEM_PROMPT,
    EntityKind.EVENT: EVENT_SYSTEM_PROMPT,
    EntityKind.OBJECT: OBJECT_SYSTEM_PROMPT,
}

_INSTRUCTIONS: dict[EntityKind, str] = {
    EntityKind.CHARACTER: _CHARACTER_INSTRUCTIONS,
    EntityKind.LOCATION: _LOCATION_INSTRUCTIONS,
    EntityKind.EVENT: _EVENT_INSTRUCTIONS,
    EntityKind.OBJECT: _OBJECT_INSTRUCTIONS,
}


def build_extraction_prompt(kind: EntityKind, text: str, limit: int | None = None) -> str:
    """Build the user prompt for one kind.

    Args:
        kind: Entity kind to extract.
        text: Full source text.
        limit: Override for the kind's character cap.

    Returns:
        Instructions followed by the capped text.
    """
    cap = limit if limit is not None else ExtractionLimits.TEXT_CAPS[kind.value]
    return f"""{_INSTRUCTIONS[kind]}

TEXT:
{cap_text(text, cap)}"""
