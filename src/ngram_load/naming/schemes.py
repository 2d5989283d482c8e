# ngram_load/naming/schemes.py
"""
Naming schemes: map a partition key to its source URIs and destination table.

Both schemes are pure. Two distinct keys of the same scheme always produce
two distinct destination tables, so re-running or extending a batch never
writes one partition's rows into another partition's table.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Collection, Dict, Optional, Sequence, Tuple, Type

from ngram_load.config import LoadOptions, WriteDisposition
from ngram_load.errors import InvalidPartitionError
from ngram_load.naming.partition import AnyKey, NgramShardKey, PartitionKey

__all__ = [
    "Schema",
    "NGRAM_COUNT_SCHEMA",
    "NamingScheme",
    "MonthlyCorpusScheme",
    "WebScaleScheme",
    "SCHEMES",
    "get_scheme",
    "name_partition",
]

Schema = Sequence[Tuple[str, str]]

NGRAM_COUNT_SCHEMA: Tuple[Tuple[str, str], ...] = (
    ("WORD", "STRING"),
    ("COUNT", "INTEGER"),
)

DEFAULT_GRAMS = range(1, 6)


class NamingScheme(ABC):
    """Base class for the partition naming strategies."""

    name: str = ""
    key_type: Type = object

    def __init__(
            self,
            *,
            dataset: str = "NGram",
            table_prefix: str,
            schema: Schema = NGRAM_COUNT_SCHEMA,
    ):
        self.dataset = dataset
        self.table_prefix = table_prefix
        self.schema = tuple(schema)

    def name_partition(self, key: AnyKey) -> Tuple[Tuple[str, ...], str]:
        """Return ``(source_uris, destination_table_id)`` for ``key``."""
        if not isinstance(key, self.key_type):
            raise InvalidPartitionError(
                f"{self.name} scheme expects {self.key_type.__name__}, "
                f"got {type(key).__name__}"
            )
        self.validate(key)
        return self._source_uris(key), self._table_id(key)

    def default_options(self, **overrides) -> LoadOptions:
        """Load options matching the source file format of this corpus."""
        return LoadOptions(**overrides)

    @abstractmethod
    def validate(self, key: AnyKey) -> None:
        """Raise InvalidPartitionError if ``key`` is outside this scheme's domain."""

    @abstractmethod
    def _source_uris(self, key: AnyKey) -> Tuple[str, ...]:
        ...

    @abstractmethod
    def _table_id(self, key: AnyKey) -> str:
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dataset={self.dataset!r}, table_prefix={self.table_prefix!r})"


def _check_member(what: str, value: int, allowed: Optional[Collection[int]]) -> None:
    if allowed is not None and value not in allowed:
        raise InvalidPartitionError(f"{what} {value} is not in the configured set")


class MonthlyCorpusScheme(NamingScheme):
    """
    Monthly comment dumps, one file per (year, month, n-gram size).

    Examples
    --------
    PartitionKey(2013, 1, 3)
      -> (("gs://reddit-corpus/GRAM/2013/RC_2013-01-comments-grams3",),
          "NGram.GRAM_2013_01_3")
    """

    name = "monthly"
    key_type = PartitionKey

    def __init__(
            self,
            *,
            bucket: str = "reddit-corpus",
            path: str = "GRAM",
            file_prefix: str = "RC",
            file_suffix: str = "comments-grams",
            dataset: str = "NGram",
            table_prefix: str = "GRAM",
            shards: Optional[Collection[int]] = DEFAULT_GRAMS,
            years: Optional[Collection[int]] = None,
            schema: Schema = NGRAM_COUNT_SCHEMA,
    ):
        super().__init__(dataset=dataset, table_prefix=table_prefix, schema=schema)
        self.bucket = bucket
        self.path = path.strip("/")
        self.file_prefix = file_prefix
        self.file_suffix = file_suffix
        self.shards = shards
        self.years = years

    def validate(self, key: PartitionKey) -> None:
        if key.year < 1:
            raise InvalidPartitionError(f"year must be positive, got {key.year}")
        if not 1 <= key.month <= 12:
            raise InvalidPartitionError(f"month must be in 1..12, got {key.month}")
        _check_member("year", key.year, self.years)
        _check_member("shard", key.shard, self.shards)

    def _source_uris(self, key: PartitionKey) -> Tuple[str, ...]:
        return (
            f"gs://{self.bucket}/{self.path}/{key.year}/"
            f"{self.file_prefix}_{key.year}-{key.month:02d}-{self.file_suffix}{key.shard}",
        )

    def _table_id(self, key: PartitionKey) -> str:
        return f"{self.dataset}.{self.table_prefix}_{key.year}_{key.month:02d}_{key.shard}"


class WebScaleScheme(NamingScheme):
    """
    Web 1T style corpus split into numbered shards per n-gram size.

    Unigrams ship as a single vocabulary file, so gram 1 always names one
    source regardless of the shard number.

    Examples
    --------
    NgramShardKey(2, 5)
      -> (("gs://ngram-dalhousie1/ngram-dalhousie/2gms/2gm-5",),
          "NGram.GRAM_WEB_1T_2_5")
    """

    name = "web1t"
    key_type = NgramShardKey

    def __init__(
            self,
            *,
            bucket: str = "ngram-dalhousie1",
            path: str = "ngram-dalhousie",
            vocab_uri: str = "gs://reddit-corpus/ngram-dalhousie/1gm/vocab",
            dataset: str = "NGram",
            table_prefix: str = "GRAM_WEB_1T",
            grams: Optional[Collection[int]] = DEFAULT_GRAMS,
            shards: Optional[Collection[int]] = None,
            schema: Schema = NGRAM_COUNT_SCHEMA,
    ):
        super().__init__(dataset=dataset, table_prefix=table_prefix, schema=schema)
        self.bucket = bucket
        self.path = path.strip("/")
        self.vocab_uri = vocab_uri
        self.grams = grams
        self.shards = shards

    def validate(self, key: NgramShardKey) -> None:
        if key.gram < 1:
            raise InvalidPartitionError(f"gram must be positive, got {key.gram}")
        if key.shard < 0:
            raise InvalidPartitionError(f"shard must be non-negative, got {key.shard}")
        _check_member("gram", key.gram, self.grams)
        _check_member("shard", key.shard, self.shards)

    def default_options(self, **overrides) -> LoadOptions:
        # Shards are tab-separated and accumulate into existing tables
        params = {"delimiter": "\t", "write_disposition": WriteDisposition.APPEND}
        params.update(overrides)
        return LoadOptions(**params)

    def _source_uris(self, key: NgramShardKey) -> Tuple[str, ...]:
        if key.gram == 1:
            return (self.vocab_uri,)
        return (
            f"gs://{self.bucket}/{self.path}/{key.gram}gms/{key.gram}gm-{key.shard}",
        )

    def _table_id(self, key: NgramShardKey) -> str:
        return f"{self.dataset}.{self.table_prefix}_{key.gram}_{key.shard}"


SCHEMES: Dict[str, Type[NamingScheme]] = {
    MonthlyCorpusScheme.name: MonthlyCorpusScheme,
    WebScaleScheme.name: WebScaleScheme,
}


def get_scheme(name: str, **kwargs) -> NamingScheme:
    """Instantiate a scheme by name ("monthly" or "web1t")."""
    try:
        cls = SCHEMES[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown naming scheme {name!r}; expected one of {sorted(SCHEMES)}"
        ) from None
    return cls(**kwargs)


_DEFAULT_BY_KEY: Dict[type, NamingScheme] = {}


def name_partition(
        key: AnyKey,
        scheme: Optional[NamingScheme] = None,
) -> Tuple[Tuple[str, ...], str]:
    """
    Name ``key`` under ``scheme``, or under the default scheme for its key type.
    """
    if scheme is None:
        scheme = _DEFAULT_BY_KEY.get(type(key))
        if scheme is None:
            for cls in SCHEMES.values():
                if isinstance(key, cls.key_type):
                    scheme = _DEFAULT_BY_KEY.setdefault(type(key), cls())
                    break
            else:
                raise InvalidPartitionError(
                    f"No naming scheme accepts {type(key).__name__}"
                )
    return scheme.name_partition(key)
