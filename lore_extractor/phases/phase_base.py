"""Base classes for pipeline phases.

The context is split into three parts so responsibilities are clear:
- **ExtractionResources** (frozen): collaborators created once per run:
  oracle client, repository, run logger, cost tracker, job tracker.
- **ExtractionConfig** (frozen): settings that never change mid-run:
  universe id, model name, consolidation thresholds, feature flags.
- **PipelineState** (mutable): the data that accumulates as each phase runs:
  source text, extracted and consolidated entities, persisted ids, counts.

PhaseContext wraps all three and exposes convenience properties so phases can
write ``ctx.client`` instead of ``ctx.resources.client``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from lore_extractor.core.config import ORACLE_MODEL, ConsolidationConfig
from lore_extractor.core.cost_tracker import CostTracker
from lore_extractor.core.job_tracker import JobTracker
from lore_extractor.core.oracle_client import OracleClient
from lore_extractor.core.pipeline_logger import RunLogger
from lore_extractor.core.repository import Repository
from lore_extractor.pydantic_models.entities import Entity, EntityKind
from lore_extractor.pydantic_models.pipeline import MergeRecord


# Split Context Classes

@dataclass(frozen=True)
class ExtractionResources:
    """Per-run collaborators - created once, never replaced."""

    client: OracleClient
    repository: Repository
    logger: RunLogger
    cost_tracker: CostTracker
    job: JobTracker


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuration - set at run start, never modified."""

    universe_id: str
    model: str = ORACLE_MODEL
    similarity_threshold: float = ConsolidationConfig.SIMILARITY_THRESHOLD
    merge_confidence: float = ConsolidationConfig.MERGE_CONFIDENCE
    generate_pages: bool = True
    extract_relationships: bool = True


@dataclass
class PipelineState:
    """Mutable state that accumulates during the run.

    Each field is written by exactly one phase and read by downstream phases:
    - text, universe: Written by Validation
    - extracted: Written by Extraction, read by Consolidation
    - consolidated, merges: Written by Consolidation, read by Persistence
    - persisted: Written by Persistence (records carry ids), read by
      PageGeneration and Relationship
    - pages_created / relationships_created: Written by the best-effort phases
    - current_phase: Written by every phase on start, read by error handling
    """

    text: str = ""
    universe: dict[str, Any] = field(default_factory=dict)
    extracted: dict[EntityKind, list[Entity]] = field(default_factory=dict)
    consolidated: dict[EntityKind, list[Entity]] = field(default_factory=dict)
    merges: list[MergeRecord] = field(default_factory=list)
    persisted: dict[EntityKind, list[Entity]] = field(default_factory=dict)
    pages_created: int = 0
    relationships_created: int = 0
    current_phase: str = ""


class PhaseContext:
    """Slim context holding references to the three component contexts.

    This is what phases receive. It provides:
    - resources: Per-run collaborators (client, repository, logger, job)
    - config: Immutable configuration (universe id, thresholds, flags)
    - state: Mutable pipeline state (results from each phase)
    """

    def __init__(self, resources: ExtractionResources, config: ExtractionConfig, state: PipelineState):
        self.resources = resources
        self.config = config
        self.state = state

    # -- Resource properties (read-only) --

    @property
    def client(self) -> OracleClient:
        return self.resources.client

    @property
    def repository(self) -> Repository:
        return self.resources.repository

    @property
    def logger(self) -> RunLogger:
        return self.resources.logger

    @property
    def cost_tracker(self) -> CostTracker:
        return self.resources.cost_tracker

    @property
    def job(self) -> JobTracker:
        return self.resources.job

    # -- Config properties (read-only) --

    @property
    def universe_id(self) -> str:
        return self.config.universe_id

    @property
    def model(self) -> str:
        return self.config.model

    # -- State properties (read-write) --

    @property
    def text(self) -> str:
        return self.state.text

    @text.setter
    def text(self, value: str) -> None:
        self.state.text = value

    @property
    def universe(self) -> dict[str, Any]:
        return self.state.universe

    @universe.setter
    def universe(self, value: dict[str, Any]) -> None:
        self.state.universe = value

    @property
    def extracted(self) -> dict[EntityKind, list[Entity]]:
        return self.state.extracted

    @property
    def consolidated(self) -> dict[EntityKind, list[Entity]]:
        return self.state.consolidated

    @property
    def merges(self) -> list[MergeRecord]:
        return self.state.merges

    @property
    def persisted(self) -> dict[EntityKind, list[Entity]]:
        return self.state.persisted

    @property
    def current_phase(self) -> str:
        return self.state.current_phase

    @current_phase.setter
    def current_phase(self, value: str) -> None:
        self.state.current_phase = value

    def counts(self) -> dict[str, int]:
        """Persisted entity counts by collection name."""
        return {kind.plural: len(self.persisted.get(kind, [])) for kind in EntityKind}


T = TypeVar("T")


class PhaseRunner(ABC, Generic[T]):
    """Base class for pipeline phase runners.

    Each phase:
    - Has a name for logging and error context
    - Takes a PhaseContext with shared state
    - Produces a typed result
    - Reports its progress checkpoint to the job tracker
    """

    name: str = "unnamed"

    def __init__(self, context: PhaseContext):
        """Initialize the phase runner.

        Args:
            context: Shared pipeline context.
        """
        self.context = context
        self.logger = context.logger

    @abstractmethod
    async def run(self) -> T:
        """Execute the phase.

        Returns:
            Phase-specific result type.
        """
        pass

    def log(self, message: str, level: str = "info", **data):
        """Log a message with phase context."""
        if level == "debug":
            self.logger.debug(f"[{self.name}] {message}", **data)
        elif level == "warning":
            self.logger.warning(f"[{self.name}] {message}", **data)
        elif level == "error":
            self.logger.error(f"[{self.name}] {message}", **data)
        else:
            self.logger.info(f"[{self.name}] {message}", **data)

    def start(self, total: int = 0, model: str = ""):
        """Signal phase start."""
        self.context.current_phase = self.name
        self.logger.start_phase(self.name, total, model)

    def end(self):
        """Signal phase end."""
        self.logger.end_phase()

    async def checkpoint(self, progress: int, step: str) -> None:
        """Advance the job to a progress checkpoint."""
        await self.context.job.advance(progress, step)
