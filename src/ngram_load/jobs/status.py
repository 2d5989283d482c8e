# ngram_load/jobs/status.py
"""Job handles and job status values."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

__all__ = ["JobHandle", "JobState", "JobStatus"]


@dataclass(frozen=True)
class JobHandle:
    """Opaque reference to a submitted job."""

    job_id: str
    submit_time: datetime

    def __str__(self) -> str:
        return self.job_id


class JobState(str, Enum):
    RUNNING = "RUNNING"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass(frozen=True)
class JobStatus:
    """A job's state, with the warehouse's error message when it FAILED."""

    state: JobState
    error_detail: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state is not JobState.RUNNING

    @classmethod
    def running(cls) -> "JobStatus":
        return cls(JobState.RUNNING)

    @classmethod
    def done(cls) -> "JobStatus":
        return cls(JobState.DONE)

    @classmethod
    def failed(cls, detail: Optional[str] = None) -> "JobStatus":
        return cls(JobState.FAILED, detail)

    def __str__(self) -> str:
        if self.error_detail:
            return f"{self.state.value} ({self.error_detail})"
        return self.state.value
