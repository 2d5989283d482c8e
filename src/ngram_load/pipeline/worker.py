# ngram_load/pipeline/worker.py
"""Per-partition work: name, build, submit and optionally poll."""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Optional

from ngram_load.config import BatchConfig, LoadOptions
from ngram_load.errors import JobFailedError, NgramLoadError
from ngram_load.jobs.client import WarehouseClient
from ngram_load.jobs.spec import build_load_spec
from ngram_load.jobs.status import JobHandle, JobState, JobStatus
from ngram_load.jobs.submission import await_completion, submit
from ngram_load.naming.partition import AnyKey
from ngram_load.naming.schemes import NamingScheme

logger = logging.getLogger(__name__)

__all__ = ["PartitionResult", "process_partition"]


@dataclass(frozen=True)
class PartitionResult:
    """Outcome of one partition. ``index`` is its position in the enumeration."""

    index: int
    key: AnyKey
    handle: Optional[JobHandle] = None
    status: Optional[JobStatus] = None
    error: Optional[Exception] = None
    skipped: bool = False

    @property
    def submitted(self) -> bool:
        return self.handle is not None

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped


def process_partition(
        index: int,
        key: AnyKey,
        *,
        scheme: NamingScheme,
        client: WarehouseClient,
        options: LoadOptions,
        config: BatchConfig,
        cancel_event: Optional[threading.Event] = None,
) -> PartitionResult:
    """
    Run name -> build -> submit (-> poll) for a single partition.

    Failures are returned on the result instead of raised so that one bad
    partition never stops the batch. Cancellation is honoured only before
    work starts; a submission in progress is never interrupted.
    """
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Cancelled before start: %s", key)
        return PartitionResult(index, key, skipped=True)

    handle: Optional[JobHandle] = None
    try:
        source_uris, table_id = scheme.name_partition(key)
        spec = build_load_spec(source_uris, table_id, scheme.schema, options)
        handle = submit(client, spec)

        if not config.poll:
            return PartitionResult(index, key, handle=handle)

        status = await_completion(
            client,
            handle,
            poll_interval=config.poll_interval_s,
            timeout=config.poll_timeout_s,
        )
        if status.state is JobState.FAILED:
            err = JobFailedError(handle.job_id, status.error_detail)
            logger.error("Partition %s: %s", key, err)
            return PartitionResult(index, key, handle=handle, status=status, error=err)
        return PartitionResult(index, key, handle=handle, status=status)

    except (NgramLoadError, ValueError) as exc:
        logger.error("Partition %s failed: %s", key, exc)
        return PartitionResult(index, key, handle=handle, error=exc)
    except Exception as exc:
        # Status polling goes straight to the client, so transport errors land here
        logger.exception("Partition %s failed unexpectedly", key)
        return PartitionResult(index, key, handle=handle, error=exc)
