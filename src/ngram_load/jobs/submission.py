# ngram_load/jobs/submission.py
"""Submit jobs through a warehouse client and wait for them to finish."""
from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from ngram_load.errors import PollTimeoutError, SubmissionError
from ngram_load.jobs.client import WarehouseClient
from ngram_load.jobs.spec import LoadJobSpec
from ngram_load.jobs.status import JobHandle, JobStatus

logger = logging.getLogger(__name__)

__all__ = ["submit", "await_completion", "DEFAULT_POLL_INTERVAL_S"]

DEFAULT_POLL_INTERVAL_S = 1.0


def _submit_with(
        submit_fn: Callable[[object], str],
        spec: object,
        target: object,
        kind: str,
) -> JobHandle:
    submit_time = datetime.now()
    try:
        job_id = submit_fn(spec)
    except Exception as exc:
        raise SubmissionError(
            f"{kind} job for {target} was not accepted: {exc}", cause=exc
        ) from exc

    if not job_id:
        raise SubmissionError(f"{kind} job for {target} returned no job id")

    logger.info("Submitted %s job %s for %s", kind, job_id, target)
    return JobHandle(job_id=str(job_id), submit_time=submit_time)


def submit(client: WarehouseClient, spec: LoadJobSpec) -> JobHandle:
    """
    Submit one load job. Never retries.

    Raises:
        SubmissionError: the client raised (transport failure, remote
            rejection) or returned no job id. The original exception is
            chained.
    """
    return _submit_with(client.submit_load_job, spec, spec.destination_table, "load")


def await_completion(
        client: WarehouseClient,
        handle: JobHandle,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        timeout: Optional[float] = None,
        *,
        sleep: Optional[Callable[[float], None]] = None,
        monotonic: Optional[Callable[[], float]] = None,
) -> JobStatus:
    """
    Poll a job until it is DONE or FAILED.

    Polls once immediately, then every ``poll_interval`` seconds, logging
    the elapsed time and state each time. Blocks the calling thread while
    sleeping but holds no lock.

    Args:
        client: Warehouse client that accepted the job
        handle: Handle returned by submit()
        poll_interval: Seconds between polls
        timeout: Give up after this many seconds; None waits indefinitely

    Returns:
        The terminal JobStatus (DONE or FAILED)

    Raises:
        PollTimeoutError: timeout elapsed first. The job keeps running
            remotely.
    """
    if poll_interval <= 0:
        raise ValueError("poll_interval must be positive")
    sleep = sleep or time.sleep
    monotonic = monotonic or time.monotonic

    start = monotonic()
    polls = 0
    while True:
        status = client.get_job_status(handle.job_id)
        polls += 1
        elapsed = monotonic() - start
        logger.info(
            "Job status (%dms) %s: %s", int(elapsed * 1000), handle.job_id, status
        )
        if status.is_terminal:
            logger.debug("Job %s finished after %d polls", handle.job_id, polls)
            return status

        if timeout is not None:
            remaining = timeout - elapsed
            if remaining <= 0:
                raise PollTimeoutError(handle.job_id, elapsed)
            sleep(min(poll_interval, remaining))
        else:
            sleep(poll_interval)
