"""Lore Extraction Pipeline.

Turns the decoded text of a fictional work into a persisted knowledge
graph: characters, locations, events and objects, de-duplicated within each
kind, plus the relationships between them.

Architecture:
    core/             - oracle client, retry, contract parsing, validation,
                        similarity, repository, job tracking, logging, errors
    prompts/          - oracle prompt templates
    agents/           - extractors, consolidator, relationship agent
    pydantic_models/  - entity, relationship, job and result models
    phases/           - phase runner classes for the pipeline

Usage:
    from lore_extractor import InMemoryRepository, process_universe

    result = await process_universe("dune", text, InMemoryRepository())
    payload = result.to_response()

CLI:
    lore-extract books/dune.txt --universe-id dune
"""

from lore_extractor.core import InMemoryRepository, PipelineError, Repository
from lore_extractor.orchestrator import Orchestrator, process_universe
from lore_extractor.pydantic_models import (
    Character,
    EntityKind,
    Event,
    JobSnapshot,
    JobStatus,
    Location,
    LoreObject,
    PipelineResult,
    Relationship,
)

__all__ = [
    # Main entry points
    "Orchestrator",
    "process_universe",
    # Storage
    "Repository",
    "InMemoryRepository",
    # Errors
    "PipelineError",
    # Models
    "EntityKind",
    "Character",
    "Location",
    "Event",
    "LoreObject",
    "Relationship",
    "JobStatus",
    "JobSnapshot",
    "PipelineResult",
]
