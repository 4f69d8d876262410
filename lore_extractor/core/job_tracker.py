"""Processing-job state machine.

pending -> processing -> completed | error

Every transition is recorded as a ProgressEvent and pushed to the repository
(one job-row update) and to any registered listeners. Observers that poll
read the same state through snapshot(). Progress never decreases within a
run, and a terminal job refuses further mutation; both are JobStateErrors,
which indicate a bug in the orchestrator rather than a runtime condition.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from lore_extractor.core.config import JobSteps, ProgressCheckpoints
from lore_extractor.core.errors import JobStateError
from lore_extractor.core.repository import Repository
from lore_extractor.pydantic_models.job import JobSnapshot, JobStatus, ProgressEvent

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressEvent], None]


class JobTracker:
    """Owns one universe's job row for the duration of a run."""

    def __init__(
        self,
        universe_id: str,
        repository: Repository,
        listeners: list[ProgressListener] | None = None,
    ):
        self.universe_id = universe_id
        self.repository = repository
        self.listeners = list(listeners or [])
        self.status = JobStatus.PENDING
        self.progress = 0
        self.current_step = ""
        self.error_message: str | None = None
        self.events: list[ProgressEvent] = []

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def snapshot(self) -> JobSnapshot:
        """Pull view for observers; mirrors the persisted row."""
        return JobSnapshot(
            universe_id=self.universe_id,
            status=self.status,
            progress=self.progress,
            current_step=self.current_step,
            error_message=self.error_message,
            events=list(self.events),
        )

    async def start(self, step: str = JobSteps.STARTED) -> None:
        """pending -> processing."""
        if self.status is not JobStatus.PENDING:
            raise JobStateError(f"Cannot start job in status '{self.status.value}'")
        await self._transition(JobStatus.PROCESSING, ProgressCheckpoints.STARTED, step)

    async def advance(self, progress: int, step: str) -> None:
        """Move to a later checkpoint while processing."""
        if self.status is not JobStatus.PROCESSING:
            raise JobStateError(f"Cannot advance job in status '{self.status.value}'")
        await self._transition(JobStatus.PROCESSING, progress, step)

    async def complete(self) -> None:
        """processing -> completed at 100%."""
        if self.status is not JobStatus.PROCESSING:
            raise JobStateError(f"Cannot complete job in status '{self.status.value}'")
        await self._transition(JobStatus.COMPLETED, ProgressCheckpoints.DONE, JobSteps.DONE)

    async def fail(self, message: str) -> None:
        """Any non-terminal status -> error; progress resets to 0."""
        if self.is_terminal:
            raise JobStateError(f"Job already {self.status.value}")
        await self._transition(
            JobStatus.ERROR, 0, JobSteps.FAILED, allow_reset=True, error_message=message,
        )

    async def _transition(
        self,
        status: JobStatus,
        progress: int,
        step: str,
        allow_reset: bool = False,
        error_message: str | None = None,
    ) -> None:
        if self.is_terminal:
            raise JobStateError(f"Job already {self.status.value}")
        if not 0 <= progress <= 100:
            raise JobStateError(f"Progress {progress} outside 0-100")
        if progress < self.progress and not allow_reset:
            raise JobStateError(f"Progress cannot decrease ({self.progress} -> {progress})")

        # The row is written first; a failed write leaves the tracker unchanged
        await self.repository.update_job(
            self.universe_id,
            status=status.value,
            progress=progress,
            current_step=step,
            error_message=error_message,
        )

        self.status = status
        self.progress = progress
        self.current_step = step
        self.error_message = error_message
        event = ProgressEvent(
            timestamp=datetime.now(timezone.utc),
            status=status,
            step=step,
            progress=progress,
        )
        self.events.append(event)
        logger.debug(f"Job {self.universe_id}: {status.value} {progress}% {step}")
        for listener in self.listeners:
            listener(event)
