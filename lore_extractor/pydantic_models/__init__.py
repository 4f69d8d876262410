"""Pydantic models for the lore extraction pipeline.

Modules:
- entities: Character, Location, Event, LoreObject and EntityKind
- relationships: oracle triples and resolved Relationship records
- oracle_responses: transport and contract schemas for oracle answers
- pipeline: consolidation records, pages and the PipelineResult
- job: processing-job status, progress events and snapshots
"""

from lore_extractor.pydantic_models.entities import (
    ENTITY_MODELS,
    Character,
    Entity,
    EntityKind,
    Event,
    Location,
    LoreObject,
)
from lore_extractor.pydantic_models.relationships import (
    Relationship,
    RelationshipEnvelope,
    RelationshipTriple,
)
from lore_extractor.pydantic_models.oracle_responses import (
    ChatCompletion,
    EntityEnvelope,
)
from lore_extractor.pydantic_models.pipeline import (
    ConsolidationResult,
    ConsolidationStats,
    DuplicateCandidate,
    MergeRecord,
    MergeVerdict,
    PageRecord,
    PipelineResult,
    PipelineStats,
)
from lore_extractor.pydantic_models.job import JobSnapshot, JobStatus, ProgressEvent

__all__ = [
    # Entities
    "ENTITY_MODELS",
    "Character",
    "Entity",
    "EntityKind",
    "Event",
    "Location",
    "LoreObject",
    # Relationships
    "Relationship",
    "RelationshipEnvelope",
    "RelationshipTriple",
    # Oracle responses
    "ChatCompletion",
    "EntityEnvelope",
    # Pipeline
    "ConsolidationResult",
    "ConsolidationStats",
    "DuplicateCandidate",
    "MergeRecord",
    "MergeVerdict",
    "PageRecord",
    "PipelineResult",
    "PipelineStats",
    # Job
    "JobSnapshot",
    "JobStatus",
    "ProgressEvent",
]
