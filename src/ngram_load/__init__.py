"""
Bulk loading of n-gram corpora from Google Cloud Storage into BigQuery.

Main entry point:
    run_batch() - submit one load job per partition and report the outcome

Key components:
    - naming: partition keys, declarative ranges, naming schemes
    - jobs: load job specs, the warehouse client, submit and poll
    - pipeline: batch orchestration, worker pool, reporting, logging
"""

from ngram_load.config import BatchConfig, LoadOptions, WriteDisposition
from ngram_load.errors import (
    InvalidDestinationError,
    InvalidPartitionError,
    InvalidSchemaError,
    JobFailedError,
    NgramLoadError,
    PollTimeoutError,
    SubmissionError,
)
from ngram_load.pipeline.orchestrate import run_batch

__all__ = [
    "run_batch",
    "BatchConfig",
    "LoadOptions",
    "WriteDisposition",
    "NgramLoadError",
    "InvalidPartitionError",
    "InvalidSchemaError",
    "InvalidDestinationError",
    "SubmissionError",
    "PollTimeoutError",
    "JobFailedError",
]
