# ngram_load/jobs/spec.py
"""Immutable descriptions of bulk-load jobs."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

from ngram_load.config import LoadOptions, WriteDisposition
from ngram_load.errors import InvalidDestinationError, InvalidSchemaError

__all__ = [
    "TableRef",
    "LoadJobSpec",
    "build_load_spec",
    "normalize_schema",
    "job_id_prefix",
]

_JOB_ID_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def job_id_prefix(kind: str, table: str) -> str:
    """Warehouse job id prefix, so a job can be traced back to its table."""
    return f"{kind}_{_JOB_ID_UNSAFE.sub('_', table)}_"


@dataclass(frozen=True)
class TableRef:
    """Fully qualified warehouse table."""

    project: str
    dataset: str
    table: str

    def __post_init__(self) -> None:
        for part in ("project", "dataset", "table"):
            if not getattr(self, part):
                raise InvalidDestinationError(f"table {part} must be non-empty: {self}")

    @classmethod
    def parse(cls, table_id: str, default_project: Optional[str] = None) -> "TableRef":
        """
        Parse ``project.dataset.table`` or ``dataset.table``.

        Domain-scoped projects ("example.com:proj") keep their dots because
        the id is split from the right.
        """
        parts = (table_id or "").strip().rsplit(".", 2)
        if len(parts) == 3:
            project, dataset, table = parts
        elif len(parts) == 2:
            if not default_project:
                raise InvalidDestinationError(
                    f"{table_id!r} has no project and no default project is set"
                )
            project = default_project
            dataset, table = parts
        else:
            raise InvalidDestinationError(
                f"table id must be dataset.table or project.dataset.table, got {table_id!r}"
            )
        return cls(project=project, dataset=dataset, table=table)

    def __str__(self) -> str:
        return f"{self.project}.{self.dataset}.{self.table}"


def normalize_schema(schema: Iterable[Tuple[str, str]]) -> Tuple[Tuple[str, str], ...]:
    """
    Return the schema as a tuple of (name, TYPE) pairs.

    Raises InvalidSchemaError when the schema is empty, a pair is malformed,
    or a field name repeats. Names are compared case-insensitively, matching
    the warehouse's own column rules.
    """
    fields = []
    seen = set()
    for item in schema or ():
        try:
            name, ftype = item
        except (TypeError, ValueError):
            raise InvalidSchemaError(f"schema entries must be (name, type) pairs, got {item!r}") from None
        name = str(name).strip()
        ftype = str(ftype).strip().upper()
        if not name or not ftype:
            raise InvalidSchemaError(f"schema field needs a name and a type, got {item!r}")
        folded = name.casefold()
        if folded in seen:
            raise InvalidSchemaError(f"duplicate schema field name: {name!r}")
        seen.add(folded)
        fields.append((name, ftype))

    if not fields:
        raise InvalidSchemaError("schema must contain at least one field")
    return tuple(fields)


@dataclass(frozen=True)
class LoadJobSpec:
    """Everything the warehouse needs to run one load, built once per partition."""

    source_uris: Tuple[str, ...]
    destination_table: TableRef
    schema: Tuple[Tuple[str, str], ...]
    field_delimiter: str = ","
    max_bad_records: int = 0
    write_disposition: WriteDisposition = WriteDisposition.APPEND
    allow_jagged_rows: bool = False
    ignore_unknown_values: bool = False
    source_format: str = "CSV"

    @property
    def job_id_prefix(self) -> str:
        return job_id_prefix("load", self.destination_table.table)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.schema)


def build_load_spec(
        source_uris: Sequence[str],
        destination_table_id: str,
        schema: Iterable[Tuple[str, str]],
        options: Optional[LoadOptions] = None,
) -> LoadJobSpec:
    """
    Validate inputs and assemble a LoadJobSpec. Submits nothing.

    Args:
        source_uris: Object storage URIs to load, in order
        destination_table_id: "project.dataset.table" or "dataset.table"
            (the latter resolved against ``options.project``)
        schema: Ordered (field_name, field_type) pairs
        options: Load knobs; defaults to LoadOptions()

    Raises:
        InvalidSchemaError: empty schema or repeated field name
        InvalidDestinationError: table id cannot be fully resolved
        ValueError: no sources, bad delimiter or negative max_bad_records
    """
    options = options or LoadOptions()
    fields = normalize_schema(schema)

    uris = tuple(u.strip() for u in source_uris if u and u.strip())
    if not uris:
        raise ValueError("source_uris must contain at least one URI")

    if len(options.delimiter) != 1:
        raise ValueError(f"delimiter must be a single character, got {options.delimiter!r}")
    if options.max_bad_records < 0:
        raise ValueError(f"max_bad_records must be >= 0, got {options.max_bad_records}")

    return LoadJobSpec(
        source_uris=uris,
        destination_table=TableRef.parse(destination_table_id, options.project),
        schema=fields,
        field_delimiter=options.delimiter,
        max_bad_records=options.max_bad_records,
        write_disposition=WriteDisposition.parse(options.write_disposition),
        allow_jagged_rows=options.allow_jagged_rows,
        ignore_unknown_values=options.ignore_unknown_values,
    )
