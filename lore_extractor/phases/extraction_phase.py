"""Extraction phase - one oracle call per entity kind, in a fixed order.

Kinds run sequentially (character, location, event, object); the job
advances two points per kind from the extraction checkpoint. Any failure is
fatal: a run never persists a partial entity set.
"""

from dataclasses import dataclass, field

from lore_extractor.agents.entity_extractor import EXTRACTORS, quality_warnings
from lore_extractor.core.config import JobSteps, ProgressCheckpoints
from lore_extractor.phases.phase_base import PhaseRunner
from lore_extractor.pydantic_models.entities import EntityKind


@dataclass
class ExtractionResult:
    """Result from the extraction phase."""

    counts: dict[str, int] = field(default_factory=dict)
    quality_warnings: int = 0


class ExtractionPhase(PhaseRunner[ExtractionResult]):
    """Phase 2: entity extraction for all four kinds."""

    name = "extraction"

    async def run(self) -> ExtractionResult:
        self.start(len(EXTRACTORS), model=self.context.model)
        result = ExtractionResult()

        for index, (kind, extractor) in enumerate(EXTRACTORS.items()):
            progress = ProgressCheckpoints.EXTRACTION_START + index * ProgressCheckpoints.EXTRACTION_STEP
            await self.checkpoint(progress, f"Extracting {kind.plural}")

            entities = await extractor(self.context.text, self.context.client, self.logger)
            self.context.extracted[kind] = entities
            result.counts[kind.plural] = len(entities)

            for warning in quality_warnings(entities):
                self.logger.warning(warning)
                result.quality_warnings += 1

        await self.checkpoint(ProgressCheckpoints.EXTRACTION_DONE, JobSteps.EXTRACTING)
        self.logger.phase_result(
            "Extraction",
            f"{sum(result.counts.values())} entities",
            **{kind.plural: result.counts.get(kind.plural, 0) for kind in EntityKind},
        )
        self.end()
        return result
