"""Load job specs, the warehouse client boundary, submission and polling."""

from ngram_load.jobs.client import BigQueryWarehouseClient, WarehouseClient, create_client
from ngram_load.jobs.extract import ExtractJobSpec, build_extract_spec, submit_extract
from ngram_load.jobs.spec import LoadJobSpec, TableRef, build_load_spec
from ngram_load.jobs.status import JobHandle, JobState, JobStatus
from ngram_load.jobs.submission import await_completion, submit

__all__ = [
    "TableRef",
    "LoadJobSpec",
    "build_load_spec",
    "JobHandle",
    "JobState",
    "JobStatus",
    "WarehouseClient",
    "BigQueryWarehouseClient",
    "create_client",
    "submit",
    "await_completion",
    "ExtractJobSpec",
    "build_extract_spec",
    "submit_extract",
]
