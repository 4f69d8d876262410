"""Consolidation phase - merge near-duplicates within each kind."""

from dataclasses import dataclass, field

from lore_extractor.agents.consolidator import consolidate
from lore_extractor.core.config import JobSteps, ProgressCheckpoints
from lore_extractor.phases.phase_base import PhaseRunner
from lore_extractor.pydantic_models.entities import EntityKind
from lore_extractor.pydantic_models.pipeline import ConsolidationStats


@dataclass
class ConsolidationPhaseResult:
    """Result from the consolidation phase."""

    stats: dict[EntityKind, ConsolidationStats] = field(default_factory=dict)

    @property
    def duplicates_removed(self) -> int:
        return sum(s.duplicates_removed for s in self.stats.values())


class ConsolidationPhase(PhaseRunner[ConsolidationPhaseResult]):
    """Phase 3: per-kind duplicate detection and oracle-adjudicated merging.

    Kinds are consolidated independently; a character is never merged with
    a location however similar the names.
    """

    name = "consolidation"

    async def run(self) -> ConsolidationPhaseResult:
        self.start(len(EntityKind), model=self.context.model)
        await self.checkpoint(ProgressCheckpoints.CONSOLIDATION, JobSteps.CONSOLIDATING)
        result = ConsolidationPhaseResult()

        for kind in EntityKind:
            outcome = await consolidate(
                self.context.extracted.get(kind, []),
                self.context.client,
                self.logger,
                threshold=self.context.config.similarity_threshold,
                merge_confidence=self.context.config.merge_confidence,
            )
            self.context.consolidated[kind] = outcome.consolidated
            self.context.merges.extend(outcome.merges)
            result.stats[kind] = outcome.stats
            if outcome.stats.duplicates_removed:
                self.log(
                    f"{kind.plural}: {outcome.stats.original_count} -> {outcome.stats.consolidated_count}",
                )

        self.logger.phase_result(
            "Consolidation",
            f"{result.duplicates_removed} duplicates merged",
            failures=sum(s.adjudication_failures for s in result.stats.values()),
        )
        self.end()
        return result
