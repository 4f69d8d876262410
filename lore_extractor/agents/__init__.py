"""Agents that talk to the oracle.

- entity_extractor: one extraction call per entity kind
- consolidator: duplicate adjudication and deterministic merging
- relationship_agent: relationship triples and name resolution
"""

from lore_extractor.agents.entity_extractor import (
    EXTRACTORS,
    extract_characters,
    extract_entities,
    extract_events,
    extract_locations,
    extract_objects,
    map_entities,
    quality_warnings,
)
from lore_extractor.agents.consolidator import adjudicate, consolidate, merge_entities
from lore_extractor.agents.relationship_agent import (
    RelationshipExtraction,
    build_name_lookup,
    extract_relationships,
    parse_triples,
    resolve_triples,
)

__all__ = [
    "EXTRACTORS",
    "extract_characters",
    "extract_entities",
    "extract_events",
    "extract_locations",
    "extract_objects",
    "map_entities",
    "quality_warnings",
    "adjudicate",
    "consolidate",
    "merge_entities",
    "RelationshipExtraction",
    "build_name_lookup",
    "extract_relationships",
    "parse_triples",
    "resolve_triples",
]
