"""Relationship agent: ask the oracle for triples, resolve names to persisted ids.

The oracle gets a bounded subset of entities (first N of each kind) plus the
universe description. Resolution uses a case-insensitive exact-name lookup
over the FULL persisted entity set. A triple whose endpoint does not resolve
is dropped with a warning; there is no fuzzy fallback.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from lore_extractor.core.config import RelationshipLimits
from lore_extractor.core.contract import parse_oracle_json
from lore_extractor.core.errors import oracle_response_error
from lore_extractor.core.oracle_client import OracleClient
from lore_extractor.core.pipeline_logger import RunLogger
from lore_extractor.prompts.relationship_prompt import (
    RELATIONSHIP_SYSTEM_PROMPT,
    build_relationship_prompt,
)
from lore_extractor.pydantic_models.entities import Entity, EntityKind
from lore_extractor.pydantic_models.relationships import (
    Relationship,
    RelationshipEnvelope,
    RelationshipTriple,
)

PHASE = "relationships"

NameLookup = dict[str, tuple[EntityKind, str]]


@dataclass
class RelationshipExtraction:
    """Resolved relationships plus what was proposed and dropped."""

    relationships: list[Relationship] = field(default_factory=list)
    proposed: int = 0
    dropped: list[str] = field(default_factory=list)


def _key(name: str) -> str:
    return name.strip().casefold()


def build_name_lookup(persisted: dict[EntityKind, list[dict[str, Any]]]) -> NameLookup:
    """Map lower-cased name -> (kind, id).

    Kinds are registered in EntityKind order (character, location, event,
    object) and within a kind in row order; the first registration of a
    name wins.
    """
    lookup: NameLookup = {}
    for kind in EntityKind:
        for row in persisted.get(kind, []):
            name, entity_id = row.get("name"), row.get("id")
            if not name or not entity_id:
                continue
            lookup.setdefault(_key(name), (kind, str(entity_id)))
    return lookup


def parse_triples(payload: Any, logger: RunLogger) -> list[RelationshipTriple]:
    """Validate the envelope, then each triple; malformed triples are skipped."""
    try:
        envelope = RelationshipEnvelope.model_validate(payload)
    except ValidationError as e:
        raise oracle_response_error("Expected a 'relationships' list in the oracle answer", phase=PHASE) from e

    triples: list[RelationshipTriple] = []
    for index, item in enumerate(envelope.relationships):
        try:
            triples.append(RelationshipTriple.model_validate(item))
        except ValidationError:
            logger.warning(f"Skipped malformed relationship #{index}")
    return triples


def resolve_triples(
    triples: list[RelationshipTriple],
    lookup: NameLookup,
    logger: RunLogger,
) -> tuple[list[Relationship], list[str]]:
    """Resolve both endpoints of every triple; drop those that fail.

    Returns:
        (resolved relationships, human-readable descriptions of dropped triples)
    """
    resolved: list[Relationship] = []
    dropped: list[str] = []
    for triple in triples:
        source = lookup.get(_key(triple.from_entity_name))
        target = lookup.get(_key(triple.to_entity_name))
        if source is None or target is None:
            missing = [
                name for name, hit in
                ((triple.from_entity_name, source), (triple.to_entity_name, target))
                if hit is None
            ]
            label = f"{triple.from_entity_name} -[{triple.relationship_type}]-> {triple.to_entity_name}"
            dropped.append(label)
            logger.warning(f"Dropped relationship {label}: unknown entity {', '.join(repr(m) for m in missing)}")
            continue

        resolved.append(Relationship(
            from_kind=source[0],
            from_id=source[1],
            to_kind=target[0],
            to_id=target[1],
            relationship_type=triple.relationship_type,
            description=triple.description,
            strength=triple.strength,
        ))
    return resolved, dropped


async def extract_relationships(
    characters: list[Entity],
    locations: list[Entity],
    events: list[Entity],
    objects: list[Entity],
    universe_description: str,
    lookup: NameLookup,
    client: OracleClient,
    logger: RunLogger,
) -> RelationshipExtraction:
    """Propose relationships for a bounded subset and resolve them.

    Args:
        characters, locations, events, objects: Consolidated entities, in order.
        universe_description: Free-text context for the universe.
        lookup: Name lookup built from every persisted entity.
        client: Oracle client.
        logger: Run logger.

    Raises:
        PipelineError: Oracle or contract failure (the caller decides severity).
    """
    prompt = build_relationship_prompt(
        characters[:RelationshipLimits.CHARACTERS],
        locations[:RelationshipLimits.LOCATIONS],
        events[:RelationshipLimits.EVENTS],
        objects[:RelationshipLimits.OBJECTS],
        universe_description,
    )
    raw = await client.call(
        prompt=prompt,
        system_prompt=RELATIONSHIP_SYSTEM_PROMPT,
        temperature=RelationshipLimits.TEMPERATURE,
        max_tokens=RelationshipLimits.MAX_TOKENS,
        phase=PHASE,
    )
    triples = parse_triples(parse_oracle_json(raw, phase=PHASE), logger)
    relationships, dropped = resolve_triples(triples, lookup, logger)

    logger.info(
        f"Resolved {len(relationships)} of {len(triples)} proposed relationships",
        dropped=len(dropped),
    )
    return RelationshipExtraction(relationships=relationships, proposed=len(triples), dropped=dropped)
