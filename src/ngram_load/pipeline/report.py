# ngram_load/pipeline/report.py
"""Run summaries and the end-of-batch report."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from ngram_load.jobs.status import JobHandle, JobState, JobStatus
from ngram_load.naming.partition import AnyKey

logger = logging.getLogger(__name__)

__all__ = [
    "BatchReport",
    "format_run_summary",
    "print_run_summary",
    "log_run_summary",
    "format_batch_report",
    "print_batch_report",
    "log_batch_report",
]


@dataclass
class BatchReport:
    """
    Aggregate outcome of a batch run.

    ``failures`` holds ``(key, error)`` in enumeration order, so a caller can
    tell "everything was submitted" apart from "these N partitions failed,
    and why".
    """

    attempted: int = 0
    submitted: int = 0
    failures: List[Tuple[AnyKey, Exception]] = field(default_factory=list)
    jobs: List[Tuple[AnyKey, JobHandle]] = field(default_factory=list)
    statuses: List[Tuple[AnyKey, JobStatus]] = field(default_factory=list)
    skipped: int = 0
    cancelled: bool = False
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def total(self) -> int:
        return self.attempted + self.skipped

    @property
    def ok(self) -> bool:
        """True only when every enumerated partition ran without error."""
        return not self.failures and not self.skipped

    @property
    def runtime(self) -> timedelta:
        if self.start_time is None or self.end_time is None:
            return timedelta(0)
        return self.end_time - self.start_time

    def failed_keys(self) -> List[AnyKey]:
        return [key for key, _ in self.failures]


def _abbrev(s: str, width: int = 96) -> str:
    """Truncate string with ellipsis if it exceeds width."""
    return s if len(s) <= width else s[: width - 1] + "…"


def format_run_summary(
        *,
        project: str,
        scheme: str,
        partitions: int,
        first_table: Optional[str],
        last_table: Optional[str],
        workers: int,
        poll: bool,
        write_disposition: str,
        start_time: datetime,
        poll_interval_s: float = 1.0,
        poll_timeout_s: Optional[float] = None,
) -> str:
    """
    Build a formatted summary of the planned batch.

    Returns:
        Formatted summary string with newline at end
    """
    if poll:
        timeout = "none" if poll_timeout_s is None else f"{poll_timeout_s:g}s"
        poll_desc = f"every {poll_interval_s:g}s (timeout {timeout})"
    else:
        poll_desc = "off (fire-and-forget)"

    lines = [
        "N-GRAM LOAD BATCH",
        "━" * 100,
        f"Start Time: {start_time:%Y-%m-%d %H:%M:%S}",
        "",
        "Load Configuration",
        "═" * 100,
        f"Project:              {project}",
        f"Naming scheme:        {scheme}",
        f"Partitions:           {partitions}",
        f"First table:          {_abbrev(first_table or 'None')}",
        f"Last table:           {_abbrev(last_table or 'None')}",
        f"Write disposition:    {write_disposition}",
        f"Workers:              {workers}",
        f"Polling:              {poll_desc}",
        "",
    ]
    return "\n".join(lines) + "\n"


def print_run_summary(**kwargs) -> None:
    """Print the run summary to stdout."""
    print(format_run_summary(**kwargs), end="")


def log_run_summary(**kwargs) -> None:
    """Log the run summary at INFO level, one line per record."""
    for line in format_run_summary(**kwargs).rstrip("\n").splitlines():
        logger.info(line)


def format_batch_report(report: BatchReport, *, max_failures: int = 50) -> str:
    """Human-readable end-of-batch report, failures listed individually."""
    runtime = report.runtime
    if report.ok:
        outcome = f"All {report.submitted} partitions submitted"
    else:
        outcome = f"{report.failed} of {report.total} partitions failed"
        if report.skipped:
            outcome += f", {report.skipped} not started (cancelled)"

    lines = [
        "\nBatch Summary",
        "═" * 100,
        outcome,
        f"Attempted:            {report.attempted}",
        f"Submitted:            {report.submitted}",
        f"Failed:               {report.failed}",
        f"Skipped:              {report.skipped}",
    ]
    if report.statuses:
        done = sum(1 for _, s in report.statuses if s.state is JobState.DONE)
        lines.append(f"Completed (DONE):     {done}")

    if report.failures:
        lines.append("\nFailures")
        lines.append("─" * 100)
        for key, err in report.failures[:max_failures]:
            lines.append(f"{str(key):<20} {type(err).__name__}: {_abbrev(str(err), 76)}")
        if report.failed > max_failures:
            lines.append(f"... {report.failed - max_failures} more")

    lines.append(f"\nTotal Runtime: {runtime}")
    if report.attempted:
        lines.append(f"Time per partition: {runtime / report.attempted}")
    return "\n".join(lines) + "\n"


def print_batch_report(report: BatchReport, **kwargs) -> None:
    print(format_batch_report(report, **kwargs), end="")


def log_batch_report(report: BatchReport, **kwargs) -> None:
    level = logging.INFO if report.ok else logging.WARNING
    for line in format_batch_report(report, **kwargs).strip("\n").splitlines():
        logger.log(level, line)
