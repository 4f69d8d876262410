"""Relationship phase - propose, resolve and store relationships.

Best effort, like page generation. The name lookup is built from what the
repository actually holds for the universe, so resolution only ever links
rows that exist.
"""

from lore_extractor.agents.relationship_agent import (
    RelationshipExtraction,
    build_name_lookup,
    extract_relationships,
)
from lore_extractor.core.config import JobSteps, ProgressCheckpoints
from lore_extractor.core.errors import PipelineError, from_exception
from lore_extractor.core.result import Err, Ok, Result
from lore_extractor.phases.phase_base import PhaseRunner
from lore_extractor.pydantic_models.entities import EntityKind


class RelationshipPhase(PhaseRunner[Result[RelationshipExtraction, PipelineError]]):
    """Phase 6: relationship extraction (best effort)."""

    name = "relationships"

    async def run(self) -> Result[RelationshipExtraction, PipelineError]:
        self.start(model=self.context.model)
        await self.checkpoint(ProgressCheckpoints.RELATIONSHIPS, JobSteps.RELATIONSHIPS)

        persisted = self.context.persisted
        if sum(len(entities) for entities in persisted.values()) < 2:
            self.log("Fewer than two entities, nothing to relate")
            self.end()
            return Ok(RelationshipExtraction())

        try:
            extraction = await self._extract()
        except Exception as e:
            error = from_exception(e, phase=self.name)
            self.logger.warning(f"Relationship extraction failed: {error.message}", code=error.code.value)
            self.end()
            return Err(error)

        self.logger.phase_result(
            "Relationships",
            f"{self.context.state.relationships_created} stored",
            proposed=extraction.proposed,
            dropped=len(extraction.dropped),
        )
        self.end()
        return Ok(extraction)

    async def _extract(self) -> RelationshipExtraction:
        repository = self.context.repository
        universe_id = self.context.universe_id

        rows = {kind: await repository.list_entities(universe_id, kind) for kind in EntityKind}
        lookup = build_name_lookup(rows)
        self.log(f"Name lookup holds {len(lookup)} names", "debug")

        persisted = self.context.persisted
        extraction = await extract_relationships(
            persisted.get(EntityKind.CHARACTER, []),
            persisted.get(EntityKind.LOCATION, []),
            persisted.get(EntityKind.EVENT, []),
            persisted.get(EntityKind.OBJECT, []),
            self.context.universe.get("description") or "",
            lookup,
            self.context.client,
            self.logger,
        )

        if extraction.relationships:
            ids = await repository.insert_relationships(
                universe_id,
                [relationship.to_row() for relationship in extraction.relationships],
            )
            self.context.state.relationships_created = len(ids)
        return extraction
