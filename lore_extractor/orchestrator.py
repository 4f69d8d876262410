"""Pipeline orchestrator - runs every phase of the lore pipeline in order.

Phases are separate classes so each one can be tested and reasoned about in
isolation. Between phases, data flows through a shared PipelineState (see
phase_base.py): one phase writes its output, the next phase reads it.

High-level flow:
  Validation → Extraction → Consolidation → Persistence
  → PageGeneration (best effort) → Relationships (best effort)
  → universe active → job completed

Any exception raised before the job is completed aborts the run: the job is
marked error and a failure PipelineResult is returned. Cancellation marks
the job error too, then propagates.
"""

import asyncio

from lore_extractor.core import (
    CostTracker,
    JobTracker,
    OracleClient,
    PipelineError,
    Repository,
    RunLogger,
    cancelled_error,
    from_exception,
    invalid_input_error,
    run_timeout_error,
)
from lore_extractor.core.config import ORACLE_MODEL, ConsolidationConfig
from lore_extractor.core.job_tracker import ProgressListener
from lore_extractor.core.result import Err
from lore_extractor.phases import (
    ConsolidationPhase,
    ExtractionConfig,
    ExtractionPhase,
    ExtractionResources,
    PageGenerationPhase,
    PersistencePhase,
    PhaseContext,
    PipelineState,
    RelationshipPhase,
    ValidationPhase,
)
from lore_extractor.pydantic_models import PipelineResult, PipelineStats

UNIVERSE_ACTIVE = "active"


class Orchestrator:
    """Pipeline orchestrator coordinating phase runners.

    One instance runs one universe at a time; the context of the latest run
    stays on ``self.context`` for inspection.
    """

    def __init__(
        self,
        repository: Repository,
        client: OracleClient | None = None,
        model: str = ORACLE_MODEL,
        similarity_threshold: float = ConsolidationConfig.SIMILARITY_THRESHOLD,
        merge_confidence: float = ConsolidationConfig.MERGE_CONFIDENCE,
        generate_pages: bool = True,
        extract_relationships: bool = True,
        listeners: list[ProgressListener] | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            repository: Entity store, scoped by universe id.
            client: Oracle client. Defaults to a litellm-backed OracleClient
                    for ``model`` with a fresh cost tracker per run.
            model: litellm model identifier.
            similarity_threshold: Name similarity for duplicate candidates.
            merge_confidence: Verdict confidence a merge must exceed.
            generate_pages: Whether to run the page generation phase.
            extract_relationships: Whether to run the relationship phase.
            listeners: Callbacks receiving every job ProgressEvent.
        """
        self.repository = repository
        self.client = client
        self.model = model
        self.similarity_threshold = similarity_threshold
        self.merge_confidence = merge_confidence
        self.generate_pages = generate_pages
        self.extract_relationships = extract_relationships
        self.listeners = list(listeners or [])
        self.context: PhaseContext | None = None

        # Best-effort phase outcomes of the latest run
        self._pages_result = None
        self._relationships_result = None

    def _build_context(self, universe_id: str, text: str) -> PhaseContext:
        logger = RunLogger(run_id=universe_id)
        if self.client is not None:
            client = self.client
            cost_tracker = getattr(client, "cost_tracker", None) or CostTracker()
        else:
            cost_tracker = CostTracker()
            client = OracleClient(model=self.model, cost_tracker=cost_tracker)

        resources = ExtractionResources(
            client=client,
            repository=self.repository,
            logger=logger,
            cost_tracker=cost_tracker,
            job=JobTracker(universe_id, self.repository, listeners=self.listeners),
        )
        config = ExtractionConfig(
            universe_id=universe_id,
            model=getattr(client, "model", self.model),
            similarity_threshold=self.similarity_threshold,
            merge_confidence=self.merge_confidence,
            generate_pages=self.generate_pages,
            extract_relationships=self.extract_relationships,
        )
        return PhaseContext(resources=resources, config=config, state=PipelineState(text=text or ""))

    async def run(self, universe_id: str, text: str, timeout: float | None = None) -> PipelineResult:
        """Run the complete pipeline for one universe.

        Args:
            universe_id: Universe the extracted entities belong to.
            text: Decoded source text.
            timeout: Optional wall-clock limit for the whole run, in seconds.

        Returns:
            PipelineResult; ``success`` is False for every fatal failure.

        Raises:
            asyncio.CancelledError: The run was cancelled (job marked error first).
        """
        self.context = ctx = self._build_context(universe_id, text)
        self._pages_result = None
        self._relationships_result = None
        logger = ctx.logger
        logger.start_pipeline(universe_id)

        if not universe_id:
            error = invalid_input_error("universe_id is required")
            logger.error(f"Pipeline failed: {error.message}", code=error.code.value)
            logger.end_pipeline(success=False)
            return self._failure(error)

        deadline = asyncio.timeout(timeout)
        try:
            try:
                async with deadline:
                    await self._run_phases()
            except TimeoutError as e:
                if deadline.expired():
                    raise run_timeout_error(timeout, phase=ctx.current_phase) from e
                raise
        except asyncio.CancelledError:
            error = cancelled_error(phase=ctx.current_phase)
            logger.error(f"Pipeline cancelled during {error.phase or 'startup'}")
            await self._mark_failed(error)
            logger.end_pipeline(success=False, stats=self.get_stats())
            raise
        except Exception as e:
            error = from_exception(e, phase=ctx.current_phase)
            logger.error(f"Pipeline failed: {error.message}", code=error.code.value, phase=error.phase)
            await self._mark_failed(error)
            logger.end_pipeline(success=False, stats=self.get_stats())
            return self._failure(error)

        logger.end_pipeline(success=True, stats=self.get_stats())
        return PipelineResult(
            success=True,
            stats=self._pipeline_stats(),
            duration=logger.total_seconds(),
            warnings=logger.warnings(),
            log_summary=logger.log_summary(),
            usage=ctx.cost_tracker.to_dict(),
        )

    async def _run_phases(self) -> None:
        ctx = self.context
        await ctx.job.start()

        # Phase 1-4: fatal on failure
        await ValidationPhase(ctx).run()
        await ExtractionPhase(ctx).run()
        await ConsolidationPhase(ctx).run()
        await PersistencePhase(ctx).run()

        # Phase 5-6: best effort
        if ctx.config.generate_pages:
            self._pages_result = await PageGenerationPhase(ctx).run()
        if ctx.config.extract_relationships:
            self._relationships_result = await RelationshipPhase(ctx).run()

        ctx.current_phase = "finalize"
        await ctx.repository.set_universe_status(ctx.universe_id, UNIVERSE_ACTIVE)
        await ctx.job.complete()
        ctx.logger.milestone(f"Universe {ctx.universe_id} is {UNIVERSE_ACTIVE}")

    async def _mark_failed(self, error: PipelineError) -> None:
        """Flip the job to error unless it already reached a terminal state."""
        job = self.context.job
        if job.is_terminal:
            return
        try:
            await job.fail(error.message)
        except Exception as e:
            self.context.logger.error("Could not record job failure", exc=e)

    def _failure(self, error: PipelineError) -> PipelineResult:
        logger = self.context.logger
        return PipelineResult(
            success=False,
            stats=self._pipeline_stats(),
            duration=logger.total_seconds(),
            error=error.to_dict(),
            logs=logger.to_dicts(),
            log_summary=logger.log_summary(),
            usage=self.context.cost_tracker.to_dict(),
        )

    def _pipeline_stats(self) -> PipelineStats:
        ctx = self.context
        counts = ctx.counts()
        return PipelineStats(
            characters=counts["characters"],
            locations=counts["locations"],
            events=counts["events"],
            objects=counts["objects"],
            pages_created=ctx.state.pages_created,
            relationships_created=ctx.state.relationships_created,
            consolidations_performed=len(ctx.merges),
        )

    def get_stats(self) -> dict:
        """Get run statistics for the end-of-pipeline summary."""
        if self.context is None:
            return {}
        stats = self._pipeline_stats().model_dump()
        stats["best_effort_failures"] = [
            outcome.error.phase
            for outcome in (self._pages_result, self._relationships_result)
            if isinstance(outcome, Err)
        ]
        stats["cost"] = self.context.cost_tracker.to_dict()
        return stats


async def process_universe(
    universe_id: str,
    text: str,
    repository: Repository,
    client: OracleClient | None = None,
    run_timeout: float | None = None,
    **options,
) -> PipelineResult:
    """Entrypoint: run the pipeline for one universe.

    Args:
        universe_id: Universe the entities belong to.
        text: Decoded source text.
        repository: Entity store.
        client: Optional oracle client (defaults to the litellm-backed client).
        run_timeout: Optional limit in seconds; on expiry the job is marked
                     error with RUN_TIMEOUT.
        **options: Forwarded to Orchestrator.

    Returns:
        PipelineResult; call ``to_response()`` for the wire payload.
    """
    orchestrator = Orchestrator(repository, client=client, **options)
    return await orchestrator.run(universe_id, text, timeout=run_timeout)
