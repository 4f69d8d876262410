"""Processing-job state as seen by progress observers."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class JobStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


class ProgressEvent(BaseModel):
    """One recorded transition of the job."""

    timestamp: datetime
    status: JobStatus
    step: str
    progress: int = Field(ge=0, le=100)


class JobSnapshot(BaseModel):
    """Pull view of the job, mirroring the persisted job row."""

    universe_id: str
    status: JobStatus
    progress: int = Field(ge=0, le=100)
    current_step: str
    error_message: str | None = None
    events: list[ProgressEvent] = []

    def to_row(self) -> dict:
        return {
            "status": self.status.value,
            "progress": self.progress,
            "current_step": self.current_step,
            "error_message": self.error_message,
        }
