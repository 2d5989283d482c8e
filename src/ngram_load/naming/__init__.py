"""Partition keys, declarative partition ranges and naming schemes."""

from ngram_load.naming.partition import (
    REDDIT_COMMENTS_PLAN,
    MonthlyRange,
    NgramShardKey,
    PartitionKey,
    PartitionPlan,
    ShardRange,
    count_partitions,
    iter_partitions,
    load_partition_plan,
    plan_from_dict,
)
from ngram_load.naming.schemes import (
    NGRAM_COUNT_SCHEMA,
    MonthlyCorpusScheme,
    NamingScheme,
    WebScaleScheme,
    get_scheme,
    name_partition,
)

__all__ = [
    "PartitionKey",
    "NgramShardKey",
    "MonthlyRange",
    "ShardRange",
    "PartitionPlan",
    "REDDIT_COMMENTS_PLAN",
    "iter_partitions",
    "count_partitions",
    "load_partition_plan",
    "plan_from_dict",
    "NamingScheme",
    "MonthlyCorpusScheme",
    "WebScaleScheme",
    "NGRAM_COUNT_SCHEMA",
    "get_scheme",
    "name_partition",
]
