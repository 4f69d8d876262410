"""Pydantic schemas for pipeline internal communication and the run result.

- DuplicateCandidate / MergeVerdict / MergeRecord: consolidation
- ConsolidationStats / ConsolidationResult: consolidator output
- PageRecord: derived per-entity page
- PipelineStats / PipelineResult: terminal output of one run
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from lore_extractor.pydantic_models.entities import Entity, EntityKind


class DuplicateCandidate(BaseModel):
    """Two indices into one kind's list whose names look alike."""

    model_config = ConfigDict(frozen=True)

    i: int
    j: int
    similarity: float


class MergeVerdict(BaseModel):
    """Oracle's answer to "do these two records denote the same referent?"."""

    model_config = ConfigDict(extra="ignore")

    same_entity: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str | None = None

    @field_validator("confidence", mode="before")
    @classmethod
    def _percent_to_unit(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and 1.0 < value <= 100.0:
            return value / 100.0
        return value


class MergeRecord(BaseModel):
    """Audit of one accepted merge. Reported, never persisted."""

    kind: EntityKind
    original_names: list[str]
    merged_into: str
    confidence: float

    def describe(self) -> str:
        return (
            f"Merged {self.kind.value} '{self.original_names[1]}' into "
            f"'{self.merged_into}' (confidence {self.confidence:.2f})"
        )


class ConsolidationStats(BaseModel):
    original_count: int = 0
    consolidated_count: int = 0
    duplicates_removed: int = 0
    adjudication_failures: int = 0


class ConsolidationResult(BaseModel):
    """Survivors (original relative order), merge audit and counts."""

    consolidated: list[Entity] = []
    merges: list[MergeRecord] = []
    stats: ConsolidationStats = ConsolidationStats()


class PageRecord(BaseModel):
    """A derived page for the universe or one entity. Slugs are the repository's job."""

    entity_type: str  # UNIVERSE, CHARACTER, LOCATION, EVENT, OBJECT
    entity_id: str
    title: str
    description: str | None = None
    status: str = "published"


class PipelineStats(BaseModel):
    characters: int = 0
    locations: int = 0
    events: int = 0
    objects: int = 0
    pages_created: int = 0
    relationships_created: int = 0
    consolidations_performed: int = 0

    def to_response(self) -> dict[str, int]:
        return {
            "characters": self.characters,
            "locations": self.locations,
            "events": self.events,
            "objects": self.objects,
            "pagesCreated": self.pages_created,
            "relationshipsCreated": self.relationships_created,
            "consolidationsPerformed": self.consolidations_performed,
        }


class PipelineResult(BaseModel):
    """Terminal output of one run.

    On success ``warnings`` is populated; on failure ``error`` (the typed
    error dict: code, message, phase, recoverable) and ``logs``.
    """

    success: bool
    stats: PipelineStats = PipelineStats()
    duration: float = 0.0
    warnings: list[str] = []
    error: dict[str, Any] | None = None
    logs: list[dict[str, Any]] = []
    log_summary: dict[str, Any] = {}
    usage: dict[str, Any] = {}

    def to_response(self) -> dict[str, Any]:
        """Entrypoint payload (camelCase stats, success/failure shapes)."""
        if self.success:
            return {
                "success": True,
                "stats": self.stats.to_response(),
                "duration": round(self.duration, 3),
                "warnings": list(self.warnings),
            }
        return {
            "success": False,
            "error": self.error,
            "duration": round(self.duration, 3),
            "logs": list(self.logs),
        }
