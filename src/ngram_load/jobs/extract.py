# ngram_load/jobs/extract.py
"""Export jobs: copy a finished topic table back out to object storage."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from ngram_load.jobs.client import WarehouseClient
from ngram_load.jobs.spec import TableRef, job_id_prefix
from ngram_load.jobs.status import JobHandle
from ngram_load.jobs.submission import _submit_with

__all__ = ["ExtractJobSpec", "build_extract_spec", "submit_extract"]


@dataclass(frozen=True)
class ExtractJobSpec:
    source_table: TableRef
    destination_uris: Tuple[str, ...]
    field_delimiter: str = ","
    print_header: bool = True

    @property
    def job_id_prefix(self) -> str:
        return job_id_prefix("extract", self.source_table.table)


def build_extract_spec(
        topic_id: int,
        project: str,
        *,
        dataset: str = "NGram",
        table_prefix: str = "AATGRAM",
        results_uri: str = "gs://ngram-dalhousie1/results",
        field_delimiter: str = ",",
        print_header: bool = True,
        destination_uris: Optional[Sequence[str]] = None,
) -> ExtractJobSpec:
    """
    Describe the export of topic table ``{dataset}.{table_prefix}_{topic_id}``.

    Output is sharded by the warehouse, so the default destination ends in a
    wildcard: ``{results_uri}/{topic_id}*``.
    """
    if len(field_delimiter) != 1:
        raise ValueError(f"field_delimiter must be a single character, got {field_delimiter!r}")
    uris = tuple(destination_uris or (f"{results_uri.rstrip('/')}/{topic_id}*",))
    return ExtractJobSpec(
        source_table=TableRef(project, dataset, f"{table_prefix}_{topic_id}"),
        destination_uris=uris,
        field_delimiter=field_delimiter,
        print_header=print_header,
    )


def submit_extract(client: WarehouseClient, spec: ExtractJobSpec) -> JobHandle:
    """Submit an export job; failures raise SubmissionError like load jobs."""
    return _submit_with(client.submit_extract_job, spec, spec.source_table, "extract")
