# ngram_load/naming/partition.py
"""Partition keys and the declarative ranges that enumerate them."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple, Union

from ngram_load.errors import InvalidPartitionError

__all__ = [
    "PartitionKey",
    "NgramShardKey",
    "MonthlyRange",
    "ShardRange",
    "PartitionPlan",
    "iter_partitions",
    "count_partitions",
    "load_partition_plan",
    "plan_from_dict",
    "REDDIT_COMMENTS_PLAN",
]

IntRange = Tuple[int, int]


@dataclass(frozen=True, order=True)
class PartitionKey:
    """One month of a monthly corpus at one n-gram size (``shard``)."""

    year: int
    month: int
    shard: int

    def __str__(self) -> str:
        return f"{self.year}-{self.month:02d}/{self.shard}"


@dataclass(frozen=True, order=True)
class NgramShardKey:
    """One file shard of a web-scale n-gram corpus."""

    gram: int
    shard: int

    def __str__(self) -> str:
        return f"{self.gram}gm-{self.shard}"


AnyKey = Union[PartitionKey, NgramShardKey]


def _inclusive(bounds: IntRange) -> range:
    lo, hi = bounds
    return range(lo, hi + 1)


def _check_bounds(name: str, bounds: Any) -> IntRange:
    try:
        lo, hi = bounds
    except (TypeError, ValueError):
        raise InvalidPartitionError(
            f"{name} must be a (start, end) pair, got {bounds!r}"
        ) from None
    if lo > hi:
        raise InvalidPartitionError(f"{name} range is empty: {lo}..{hi}")
    return lo, hi


@dataclass(frozen=True)
class MonthlyRange:
    """
    Inclusive year and shard ranges for a monthly corpus.

    ``month_bounds`` overrides the default 1..12 for individual years, which
    is how partial years at either end of a corpus are described. It may be
    given as a mapping; it is stored as sorted ``(year, (lo, hi))`` pairs.
    """

    years: IntRange
    shards: IntRange
    months: IntRange = (1, 12)
    month_bounds: Tuple[Tuple[int, IntRange], ...] = ()

    def __post_init__(self) -> None:
        raw = self.month_bounds
        pairs = raw.items() if isinstance(raw, Mapping) else raw
        bounds = tuple(sorted(
            (year, _check_bounds(f"month ({year})", b)) for year, b in pairs
        ))
        object.__setattr__(self, "years", _check_bounds("year", self.years))
        object.__setattr__(self, "shards", _check_bounds("shard", self.shards))
        object.__setattr__(self, "months", _check_bounds("month", self.months))
        object.__setattr__(self, "month_bounds", bounds)

        for lo, hi in [self.months, *(b for _, b in bounds)]:
            if not (1 <= lo <= 12 and 1 <= hi <= 12):
                raise InvalidPartitionError(
                    f"month bounds must lie within 1..12, got {lo}..{hi}"
                )

    def months_for(self, year: int) -> IntRange:
        return dict(self.month_bounds).get(year, self.months)

    def keys(self) -> Iterator[PartitionKey]:
        for year in _inclusive(self.years):
            for month in _inclusive(self.months_for(year)):
                for shard in _inclusive(self.shards):
                    yield PartitionKey(year, month, shard)


@dataclass(frozen=True)
class ShardRange:
    """Inclusive gram and shard ranges for a web-scale corpus."""

    grams: IntRange
    shards: IntRange

    def __post_init__(self) -> None:
        object.__setattr__(self, "grams", _check_bounds("gram", self.grams))
        object.__setattr__(self, "shards", _check_bounds("shard", self.shards))

    def keys(self) -> Iterator[NgramShardKey]:
        for gram in _inclusive(self.grams):
            for shard in _inclusive(self.shards):
                yield NgramShardKey(gram, shard)


PartitionRange = Union[MonthlyRange, ShardRange]


@dataclass(frozen=True)
class PartitionPlan:
    """A naming scheme name plus the ranges to load under it."""

    scheme: str
    ranges: Tuple[PartitionRange, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "ranges", tuple(self.ranges))

    def keys(self) -> Iterator[AnyKey]:
        return iter_partitions(self.ranges)


def iter_partitions(ranges: Iterable[PartitionRange]) -> Iterator[AnyKey]:
    """Expand ranges into keys, in range order then ascending within each."""
    for r in ranges:
        yield from r.keys()


def count_partitions(ranges: Iterable[PartitionRange]) -> int:
    return sum(1 for _ in iter_partitions(ranges))


# Reddit comment corpus availability: 2007-10 through 2015-05
REDDIT_COMMENTS_PLAN = PartitionPlan(
    scheme="monthly",
    ranges=(
        MonthlyRange(
            years=(2007, 2015),
            shards=(1, 5),
            month_bounds={2007: (10, 12), 2015: (1, 5)},
        ),
    ),
)


def _pair(value: Any, what: str) -> IntRange:
    if isinstance(value, int):
        return value, value
    try:
        lo, hi = value
        return int(lo), int(hi)
    except (TypeError, ValueError):
        raise InvalidPartitionError(
            f"{what} must be an int or a [start, end] pair, got {value!r}"
        ) from None


def _range_from_dict(doc: Mapping[str, Any]) -> PartitionRange:
    if not isinstance(doc, Mapping):
        raise InvalidPartitionError(f"range must be an object, got {doc!r}")
    try:
        if "years" in doc:
            bounds: Dict[int, IntRange] = {
                int(y): _pair(b, f"month_bounds[{y}]")
                for y, b in doc.get("month_bounds", {}).items()
            }
            return MonthlyRange(
                years=_pair(doc["years"], "years"),
                shards=_pair(doc["shards"], "shards"),
                months=_pair(doc.get("months", (1, 12)), "months"),
                month_bounds=bounds,
            )
        if "grams" in doc:
            return ShardRange(
                grams=_pair(doc["grams"], "grams"),
                shards=_pair(doc["shards"], "shards"),
            )
    except KeyError as exc:
        raise InvalidPartitionError(f"range {dict(doc)!r} is missing {exc}") from None
    raise InvalidPartitionError(
        f"range needs either 'years' or 'grams': {dict(doc)!r}"
    )


def plan_from_dict(doc: Mapping[str, Any]) -> PartitionPlan:
    """
    Build a plan from a parsed JSON document.

    Examples
    --------
    {"scheme": "monthly",
     "ranges": [{"years": [2013, 2013], "shards": [1, 5]}]}
    {"scheme": "web1t",
     "ranges": [{"grams": 2, "shards": [0, 31]}]}
    """
    if not isinstance(doc, Mapping):
        raise InvalidPartitionError(f"partition plan must be an object, got {doc!r}")
    try:
        scheme = str(doc["scheme"])
        raw_ranges: List[Mapping[str, Any]] = list(doc["ranges"])
    except KeyError as exc:
        raise InvalidPartitionError(f"partition plan is missing {exc}") from None
    except TypeError:
        raise InvalidPartitionError("partition plan 'ranges' must be a list") from None
    return PartitionPlan(
        scheme=scheme,
        ranges=tuple(_range_from_dict(r) for r in raw_ranges),
    )


def load_partition_plan(path: Union[str, Path]) -> PartitionPlan:
    """Read a JSON partition plan from disk."""
    with open(Path(path).expanduser(), "r", encoding="utf-8") as f:
        return plan_from_dict(json.load(f))
