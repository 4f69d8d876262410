"""Page generation phase - derived page records for the universe and its entities.

Best effort: a failure is logged as a warning and returned as Err; the job
is never flipped to error from here.
"""

from lore_extractor.core.config import JobSteps, ProgressCheckpoints
from lore_extractor.core.errors import PipelineError, from_exception
from lore_extractor.core.result import Err, Ok, Result
from lore_extractor.phases.phase_base import PhaseRunner
from lore_extractor.pydantic_models.entities import EntityKind
from lore_extractor.pydantic_models.pipeline import PageRecord

UNIVERSE_PAGE_TYPE = "UNIVERSE"


class PageGenerationPhase(PhaseRunner[Result[int, PipelineError]]):
    """Phase 5: page records (best effort)."""

    name = "pages"

    def build_pages(self) -> list[PageRecord]:
        """Universe page first, then one page per persisted entity, kind by kind."""
        universe = self.context.universe
        pages = [PageRecord(
            entity_type=UNIVERSE_PAGE_TYPE,
            entity_id=self.context.universe_id,
            title=universe.get("name") or self.context.universe_id,
            description=universe.get("description") or None,
        )]
        for kind in EntityKind:
            for entity in self.context.persisted.get(kind, []):
                if not entity.id:
                    continue
                pages.append(PageRecord(
                    entity_type=kind.value.upper(),
                    entity_id=entity.id,
                    title=entity.name,
                    description=entity.description,
                ))
        return pages

    async def run(self) -> Result[int, PipelineError]:
        self.start()
        await self.checkpoint(ProgressCheckpoints.PAGES, JobSteps.PAGES)

        try:
            pages = self.build_pages()
            created = await self.context.repository.upsert_pages(
                self.context.universe_id,
                [page.model_dump() for page in pages],
            )
        except Exception as e:
            error = from_exception(e, phase=self.name)
            self.logger.warning(f"Page generation failed: {error.message}", code=error.code.value)
            self.end()
            return Err(error)

        self.context.state.pages_created = created
        self.logger.phase_result("Pages", f"{created} pages")
        self.end()
        return Ok(created)
