"""Main orchestration for the n-gram load batch."""
from __future__ import annotations

import logging
import threading
from dataclasses import replace
from datetime import datetime
from functools import partial
from typing import Iterable, List, Optional, Tuple, Union

import setproctitle

from ngram_load.config import BatchConfig, LoadOptions, WriteDisposition
from ngram_load.errors import NgramLoadError
from ngram_load.jobs.client import WarehouseClient
from ngram_load.jobs.spec import LoadJobSpec, build_load_spec
from ngram_load.naming.partition import (
    AnyKey,
    MonthlyRange,
    PartitionPlan,
    PartitionRange,
    iter_partitions,
)
from ngram_load.naming.schemes import NamingScheme, get_scheme
from ngram_load.pipeline.report import BatchReport, log_batch_report, log_run_summary
from ngram_load.pipeline.runner import process_partitions
from ngram_load.pipeline.worker import process_partition

logger = logging.getLogger(__name__)

__all__ = ["run_batch", "plan_batch", "resolve_scheme"]

Ranges = Union[PartitionPlan, Iterable[PartitionRange]]


def resolve_scheme(
        partition_ranges: Ranges,
        scheme: Optional[NamingScheme] = None,
) -> Tuple[NamingScheme, Tuple[PartitionRange, ...]]:
    """
    Pick the naming scheme for a batch and normalize its ranges.

    An explicit ``scheme`` wins; otherwise a PartitionPlan names its own
    scheme, and bare ranges imply monthly (MonthlyRange) or web-scale
    (ShardRange) from their type.
    """
    if isinstance(partition_ranges, PartitionPlan):
        ranges = tuple(partition_ranges.ranges)
        if scheme is None:
            scheme = get_scheme(partition_ranges.scheme)
    else:
        ranges = tuple(partition_ranges)

    if scheme is None:
        if not ranges:
            raise ValueError("Cannot infer a naming scheme from an empty range list")
        scheme = get_scheme("monthly" if isinstance(ranges[0], MonthlyRange) else "web1t")
    return scheme, ranges


def plan_batch(
        partition_ranges: Ranges,
        *,
        project: Optional[str] = None,
        scheme: Optional[NamingScheme] = None,
        options: Optional[LoadOptions] = None,
) -> List[Tuple[AnyKey, Union[LoadJobSpec, Exception]]]:
    """
    Name and build every partition without submitting anything.

    Returns ``(key, spec)`` pairs, with the validation error in place of
    the spec for partitions that cannot be built.
    """
    scheme, ranges = resolve_scheme(partition_ranges, scheme)
    options = _resolve_options(scheme, options, project)

    planned: List[Tuple[AnyKey, Union[LoadJobSpec, Exception]]] = []
    for key in iter_partitions(ranges):
        try:
            uris, table_id = scheme.name_partition(key)
            planned.append((key, build_load_spec(uris, table_id, scheme.schema, options)))
        except (NgramLoadError, ValueError) as exc:
            planned.append((key, exc))
    return planned


def run_batch(
        partition_ranges: Ranges,
        *,
        client: WarehouseClient,
        project: Optional[str] = None,
        scheme: Optional[NamingScheme] = None,
        options: Optional[LoadOptions] = None,
        config: Optional[BatchConfig] = None,
        cancel_event: Optional[threading.Event] = None,
) -> BatchReport:
    """
    Submit one load job per partition and report the outcome.

    Each partition runs name -> build -> submit, then polls to completion
    when ``config.poll`` is set. A partition that fails (invalid key or
    schema, rejected submission, failed or timed-out job) is recorded in
    the report and the batch moves on.

    Args:
        partition_ranges: A PartitionPlan or an iterable of MonthlyRange /
            ShardRange records, expanded in order
        client: Warehouse client; shared by all workers
        project: Project for "dataset.table" ids, unless options sets one
        scheme: Naming scheme; inferred from the ranges when omitted
        options: Load options; defaults to the scheme's defaults
        config: Batch configuration; defaults to BatchConfig()
        cancel_event: Set it to stop starting new partitions

    Returns:
        BatchReport with per-partition failures in enumeration order
    """
    setproctitle.setproctitle("NGRAM_LOAD")

    config = config or BatchConfig()
    scheme, ranges = resolve_scheme(partition_ranges, scheme)
    options = _resolve_options(scheme, options, project)
    keys = list(iter_partitions(ranges))

    start_time = datetime.now()
    logger.info(
        "Starting batch: %d partitions, scheme=%s, workers=%d, poll=%s",
        len(keys), scheme.name, config.workers, config.poll,
    )

    if config.log_summary:
        first_table = _table_or_none(scheme, keys[0]) if keys else None
        last_table = _table_or_none(scheme, keys[-1]) if keys else None
        log_run_summary(
            project=options.project or "(from table ids)",
            scheme=scheme.name,
            partitions=len(keys),
            first_table=first_table,
            last_table=last_table,
            workers=config.workers,
            poll=config.poll,
            write_disposition=WriteDisposition.parse(options.write_disposition).value,
            start_time=start_time,
            poll_interval_s=config.poll_interval_s,
            poll_timeout_s=config.poll_timeout_s,
        )

    work_fn = partial(
        process_partition,
        scheme=scheme,
        client=client,
        options=options,
        config=config,
        cancel_event=cancel_event,
    )
    results, skipped = process_partitions(
        keys,
        work_fn,
        workers=config.workers,
        cancel_event=cancel_event,
        progress=config.progress,
    )

    report = BatchReport(start_time=start_time, skipped=skipped)
    report.cancelled = cancel_event is not None and cancel_event.is_set()
    for res in results:
        report.attempted += 1
        if res.handle is not None:
            report.submitted += 1
            report.jobs.append((res.key, res.handle))
        if res.status is not None:
            report.statuses.append((res.key, res.status))
        if res.error is not None:
            report.failures.append((res.key, res.error))
    report.end_time = datetime.now()

    logger.info(
        "Batch finished: %d attempted, %d submitted, %d failed, %d skipped",
        report.attempted, report.submitted, report.failed, report.skipped,
    )
    if config.log_summary:
        log_batch_report(report)
    return report


def _resolve_options(
        scheme: NamingScheme,
        options: Optional[LoadOptions],
        project: Optional[str],
) -> LoadOptions:
    options = options or scheme.default_options()
    if project and not options.project:
        options = replace(options, project=project)
    return options


def _table_or_none(scheme: NamingScheme, key: AnyKey) -> Optional[str]:
    try:
        return scheme.name_partition(key)[1]
    except NgramLoadError:
        return None
