"""Exception hierarchy for the n-gram load pipeline."""
from __future__ import annotations

__all__ = [
    "NgramLoadError",
    "InvalidPartitionError",
    "InvalidSchemaError",
    "InvalidDestinationError",
    "SubmissionError",
    "PollTimeoutError",
    "JobFailedError",
]


class NgramLoadError(Exception):
    """Base class for every error raised by ngram_load."""


class InvalidPartitionError(NgramLoadError, ValueError):
    """A partition key falls outside the domain declared by its naming scheme."""


class InvalidSchemaError(NgramLoadError, ValueError):
    """A load schema is empty or repeats a field name."""


class InvalidDestinationError(NgramLoadError, ValueError):
    """A destination table id cannot be resolved to project.dataset.table."""


class SubmissionError(NgramLoadError):
    """
    The warehouse rejected a job or the request never reached it.

    The collaborator's exception is kept on ``cause`` and chained as
    ``__cause__``.
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.cause = cause


class PollTimeoutError(NgramLoadError, TimeoutError):
    """Polling gave up before the job reached a terminal state."""

    def __init__(self, job_id: str, elapsed_s: float):
        super().__init__(
            f"Job {job_id} not finished after {elapsed_s:.1f}s of polling"
        )
        self.job_id = job_id
        self.elapsed_s = elapsed_s


class JobFailedError(NgramLoadError):
    """A polled job finished in the FAILED state."""

    def __init__(self, job_id: str, detail: str | None = None):
        msg = f"Job {job_id} failed"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.job_id = job_id
        self.detail = detail
