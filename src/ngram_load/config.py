# ngram_load/config.py
"""Configuration for load jobs and batch runs."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

__all__ = [
    "WriteDisposition",
    "LoadOptions",
    "BatchConfig",
    "TOLERATE_ALL_BAD_RECORDS",
]

# Large enough that the warehouse never rejects a file for malformed rows
TOLERATE_ALL_BAD_RECORDS = 99_999_999


class WriteDisposition(str, Enum):
    """What a load does when the destination table already holds rows."""

    APPEND = "APPEND"
    OVERWRITE = "OVERWRITE"
    EMPTY_ONLY = "EMPTY_ONLY"

    @classmethod
    def parse(cls, value: "WriteDisposition | str") -> "WriteDisposition":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(
                f"write_disposition must be one of {valid}, got {value!r}"
            ) from None


@dataclass(frozen=True)
class LoadOptions:
    """Per-job knobs applied when building a load job spec."""

    delimiter: str = ","
    max_bad_records: int = TOLERATE_ALL_BAD_RECORDS
    allow_jagged_rows: bool = False
    ignore_unknown_values: bool = False
    write_disposition: WriteDisposition = WriteDisposition.APPEND

    # Used when the destination id omits the project ("dataset.table")
    project: Optional[str] = None


@dataclass(frozen=True)
class BatchConfig:
    """Batch driver configuration."""

    # Parallelism (1 = strictly sequential, deterministic submission order)
    workers: int = 1

    # Completion polling (off = fire-and-forget)
    poll: bool = False
    poll_interval_s: float = 1.0
    poll_timeout_s: Optional[float] = None

    # Reporting
    progress: bool = True
    log_summary: bool = True

    def __post_init__(self) -> None:
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.poll_interval_s <= 0:
            raise ValueError("poll_interval_s must be positive")
        if self.poll_timeout_s is not None and self.poll_timeout_s <= 0:
            raise ValueError("poll_timeout_s must be positive or None")
