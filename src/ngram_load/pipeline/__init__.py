"""Batch driver: enumerate partitions, submit their load jobs, report."""

from ngram_load.pipeline.logger import attach_batch_log, detach_batch_log
from ngram_load.pipeline.orchestrate import plan_batch, resolve_scheme, run_batch
from ngram_load.pipeline.report import (
    BatchReport,
    format_batch_report,
    log_batch_report,
    print_batch_report,
)
from ngram_load.pipeline.runner import process_partitions
from ngram_load.pipeline.worker import PartitionResult, process_partition

__all__ = [
    "run_batch",
    "plan_batch",
    "resolve_scheme",
    "BatchReport",
    "format_batch_report",
    "print_batch_report",
    "log_batch_report",
    "process_partitions",
    "process_partition",
    "PartitionResult",
    "attach_batch_log",
    "detach_batch_log",
]
