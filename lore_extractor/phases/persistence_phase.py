"""Persistence phase - bulk insert the consolidated entities.

One insert per kind. The repository returns ids in row order; they are
written back onto the records so later phases can link pages and
relationships to stored rows.
"""

from dataclasses import dataclass, field

from lore_extractor.core.config import JobSteps, ProgressCheckpoints
from lore_extractor.core.errors import PipelineError, persistence_error
from lore_extractor.phases.phase_base import PhaseRunner
from lore_extractor.pydantic_models.entities import EntityKind


@dataclass
class PersistenceResult:
    """Result from the persistence phase."""

    counts: dict[str, int] = field(default_factory=dict)


class PersistencePhase(PhaseRunner[PersistenceResult]):
    """Phase 4: entity persistence. Failure here is fatal."""

    name = "persistence"

    async def run(self) -> PersistenceResult:
        self.start(len(EntityKind))
        await self.checkpoint(ProgressCheckpoints.PERSISTENCE, JobSteps.PERSISTING)
        result = PersistenceResult()

        for kind in EntityKind:
            entities = self.context.consolidated.get(kind, [])
            if not entities:
                self.context.persisted[kind] = []
                result.counts[kind.plural] = 0
                continue

            try:
                ids = await self.context.repository.insert_entities(
                    self.context.universe_id,
                    kind,
                    [entity.to_row() for entity in entities],
                )
            except PipelineError:
                raise
            except Exception as e:
                raise persistence_error(
                    f"Could not insert {kind.plural}: {type(e).__name__}: {e}",
                    phase=self.name,
                ) from e

            if len(ids) != len(entities):
                raise persistence_error(
                    f"Repository returned {len(ids)} ids for {len(entities)} {kind.plural}",
                    phase=self.name,
                )

            self.context.persisted[kind] = [
                entity.model_copy(update={"id": str(entity_id)})
                for entity, entity_id in zip(entities, ids)
            ]
            result.counts[kind.plural] = len(ids)

        self.logger.phase_result(
            "Persistence",
            f"{sum(result.counts.values())} entities stored",
            **result.counts,
        )
        self.end()
        return result
