# ngram_load/jobs/client.py
"""
Warehouse client boundary.

The pipeline talks to the warehouse only through ``WarehouseClient``.
``BigQueryWarehouseClient`` implements it on google-cloud-bigquery; tests
and dry runs substitute their own objects with the same three methods.
"""
from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol

from google.cloud import bigquery

from ngram_load.config import WriteDisposition
from ngram_load.jobs.spec import LoadJobSpec, TableRef
from ngram_load.jobs.status import JobStatus

if TYPE_CHECKING:
    from ngram_load.jobs.extract import ExtractJobSpec

logger = logging.getLogger(__name__)

__all__ = ["WarehouseClient", "BigQueryWarehouseClient", "create_client"]

_WRITE_DISPOSITIONS = {
    WriteDisposition.APPEND: bigquery.WriteDisposition.WRITE_APPEND,
    WriteDisposition.OVERWRITE: bigquery.WriteDisposition.WRITE_TRUNCATE,
    WriteDisposition.EMPTY_ONLY: bigquery.WriteDisposition.WRITE_EMPTY,
}


class WarehouseClient(Protocol):
    def submit_load_job(self, spec: LoadJobSpec) -> str:
        ...

    def get_job_status(self, job_id: str) -> JobStatus:
        ...

    def submit_extract_job(self, spec: "ExtractJobSpec") -> str:
        ...


def _table_reference(ref: TableRef) -> bigquery.TableReference:
    return bigquery.TableReference(
        bigquery.DatasetReference(ref.project, ref.dataset), ref.table
    )


class BigQueryWarehouseClient:
    """
    WarehouseClient backed by a ``google.cloud.bigquery.Client``.

    One instance may be shared between worker threads: the underlying
    client is thread-safe for job calls and the job-to-project map is
    guarded by a lock.

    Job submission is never retried here (``retry=None``); a rejected or
    failed insert surfaces immediately as an error. Status reads keep the
    library's default retry.
    """

    def __init__(self, client: bigquery.Client, *, location: Optional[str] = None):
        self.client = client
        self.location = location
        self._job_projects: Dict[str, str] = {}
        self._lock = threading.Lock()

    @staticmethod
    def load_job_config(spec: LoadJobSpec) -> bigquery.LoadJobConfig:
        """Translate a LoadJobSpec into a BigQuery load configuration."""
        return bigquery.LoadJobConfig(
            source_format=bigquery.SourceFormat.CSV,
            schema=[bigquery.SchemaField(name, ftype) for name, ftype in spec.schema],
            field_delimiter=spec.field_delimiter,
            max_bad_records=spec.max_bad_records,
            allow_jagged_rows=spec.allow_jagged_rows,
            ignore_unknown_values=spec.ignore_unknown_values,
            write_disposition=_WRITE_DISPOSITIONS[spec.write_disposition],
        )

    def submit_load_job(self, spec: LoadJobSpec) -> str:
        project = spec.destination_table.project
        job = self.client.load_table_from_uri(
            list(spec.source_uris),
            _table_reference(spec.destination_table),
            job_config=self.load_job_config(spec),
            job_id_prefix=spec.job_id_prefix,
            project=project,
            location=self.location,
            retry=None,
        )
        self._remember(job.job_id, project)
        logger.debug("Load job %s -> %s", job.job_id, spec.destination_table)
        return job.job_id

    def submit_extract_job(self, spec: "ExtractJobSpec") -> str:
        project = spec.source_table.project
        job_config = bigquery.ExtractJobConfig(
            field_delimiter=spec.field_delimiter,
            print_header=spec.print_header,
        )
        job = self.client.extract_table(
            _table_reference(spec.source_table),
            list(spec.destination_uris),
            job_id_prefix=spec.job_id_prefix,
            project=project,
            location=self.location,
            job_config=job_config,
            retry=None,
        )
        self._remember(job.job_id, project)
        logger.debug("Extract job %s <- %s", job.job_id, spec.source_table)
        return job.job_id

    def get_job_status(self, job_id: str) -> JobStatus:
        with self._lock:
            project = self._job_projects.get(job_id)
        job = self.client.get_job(job_id, project=project, location=self.location)

        # PENDING and RUNNING are both "not finished yet"
        if job.state != "DONE":
            return JobStatus.running()
        if job.error_result:
            return JobStatus.failed(_error_message(job.error_result, job.errors))
        return JobStatus.done()

    def _remember(self, job_id: str, project: str) -> None:
        with self._lock:
            self._job_projects[job_id] = project


def _error_message(error_result: dict, errors: Optional[List[dict]]) -> str:
    msg = error_result.get("message") or error_result.get("reason") or "unknown error"
    extra = len(errors or []) - 1
    if extra > 0:
        msg = f"{msg} (+{extra} more)"
    return msg


def create_client(project: str, *, location: Optional[str] = None) -> BigQueryWarehouseClient:
    """
    Build a BigQuery-backed client using Application Default Credentials.
    """
    logger.info("Creating BigQuery client for project %s", project)
    return BigQueryWarehouseClient(bigquery.Client(project=project), location=location)
