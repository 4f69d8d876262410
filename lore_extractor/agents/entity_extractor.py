"""Entity extractors: one oracle call per kind over a capped slice of the text.

Each extractor builds its kind's prompt, calls the oracle with the kind's
token budget at low temperature, parses the answer through the contract
extractor and maps every item to a typed record. Items that cannot be
mapped (no name, not an object) are dropped with a warning; a response that
cannot be parsed at all raises, and the orchestrator treats that as fatal.
"""

from typing import Any

from pydantic import ValidationError

from lore_extractor.core.config import ExtractionLimits
from lore_extractor.core.contract import parse_oracle_json
from lore_extractor.core.errors import oracle_response_error
from lore_extractor.core.oracle_client import OracleClient
from lore_extractor.core.pipeline_logger import RunLogger
from lore_extractor.prompts.extraction_prompt import SYSTEM_PROMPTS, build_extraction_prompt
from lore_extractor.pydantic_models.entities import (
    ENTITY_MODELS,
    Character,
    Entity,
    EntityKind,
    Event,
    Location,
    LoreObject,
)
from lore_extractor.pydantic_models.oracle_responses import EntityEnvelope


def map_entities(kind: EntityKind, items: list[Any], logger: RunLogger) -> list[Entity]:
    """Map raw oracle items to typed records, dropping unusable ones."""
    model = ENTITY_MODELS[kind]
    entities: list[Entity] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning(f"Skipped {kind.value} item #{index}: not an object", item=str(item))
            continue
        try:
            entities.append(model.model_validate(item))
        except ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            logger.warning(
                f"Skipped {kind.value} item #{index}: invalid {fields}",
                name=str(item.get("name", "")),
            )
    return entities


def quality_warnings(entities: list[Entity]) -> list[str]:
    """Non-fatal gaps worth reporting: missing descriptions, characters without a role."""
    warnings = []
    for entity in entities:
        label = f"{entity.kind.value.capitalize()} '{entity.name}'"
        if not entity.description:
            warnings.append(f"{label} has no description")
        if isinstance(entity, Character) and not entity.role:
            warnings.append(f"{label} has no role")
    return warnings


async def extract_entities(
    kind: EntityKind,
    text: str,
    client: OracleClient,
    logger: RunLogger,
) -> list[Entity]:
    """Extract every entity of one kind.

    Args:
        kind: Entity kind to extract.
        text: Full decoded source text (capped inside the prompt).
        client: Oracle client.
        logger: Run logger.

    Returns:
        Typed records in the order the oracle listed them.

    Raises:
        PipelineError: Oracle failures, JSON_PARSE_ERROR, or
            ORACLE_RESPONSE_INVALID when the answer lacks the expected list.
    """
    phase = kind.value
    raw = await client.call(
        prompt=build_extraction_prompt(kind, text),
        system_prompt=SYSTEM_PROMPTS[kind],
        temperature=ExtractionLimits.TEMPERATURE,
        max_tokens=ExtractionLimits.TOKEN_BUDGETS[kind.value],
        phase=phase,
    )
    payload = parse_oracle_json(raw, phase=phase)

    try:
        envelope = EntityEnvelope.from_payload(payload, kind.plural)
    except ValidationError as e:
        raise oracle_response_error(
            f"Expected a '{kind.plural}' list in the oracle answer",
            phase=phase,
        ) from e

    entities = map_entities(kind, envelope.items, logger)
    logger.info(f"Extracted {len(entities)} {kind.plural}", returned=len(envelope.items))
    return entities


async def extract_characters(text: str, client: OracleClient, logger: RunLogger) -> list[Character]:
    return await extract_entities(EntityKind.CHARACTER, text, client, logger)


async def extract_locations(text: str, client: OracleClient, logger: RunLogger) -> list[Location]:
    return await extract_entities(EntityKind.LOCATION, text, client, logger)


async def extract_events(text: str, client: OracleClient, logger: RunLogger) -> list[Event]:
    return await extract_entities(EntityKind.EVENT, text, client, logger)


async def extract_objects(text: str, client: OracleClient, logger: RunLogger) -> list[LoreObject]:
    return await extract_entities(EntityKind.OBJECT, text, client, logger)


EXTRACTORS = {
    EntityKind.CHARACTER: extract_characters,
    EntityKind.LOCATION: extract_locations,
    EntityKind.EVENT: extract_events,
    EntityKind.OBJECT: extract_objects,
}
"""Extractor per kind, in the order the extraction phase runs them."""
