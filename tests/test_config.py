# tests/test_config.py
import dataclasses

import pytest

from ngram_load.config import (
    TOLERATE_ALL_BAD_RECORDS,
    BatchConfig,
    LoadOptions,
    WriteDisposition,
)


def test_load_options_defaults():
    opts = LoadOptions()
    assert opts.delimiter == ","
    assert opts.max_bad_records == TOLERATE_ALL_BAD_RECORDS == 99_999_999
    assert not opts.allow_jagged_rows
    assert not opts.ignore_unknown_values
    assert opts.write_disposition is WriteDisposition.APPEND
    assert opts.project is None


def test_configs_are_frozen():
    with pytest.raises(dataclasses.FrozenInstanceError):
        LoadOptions().delimiter = "\t"
    with pytest.raises(dataclasses.FrozenInstanceError):
        BatchConfig().workers = 3


@pytest.mark.parametrize("raw, expected", [
    ("APPEND", WriteDisposition.APPEND),
    (" overwrite ", WriteDisposition.OVERWRITE),
    ("empty_only", WriteDisposition.EMPTY_ONLY),
    (WriteDisposition.APPEND, WriteDisposition.APPEND),
])
def test_write_disposition_parse(raw, expected):
    assert WriteDisposition.parse(raw) is expected


def test_write_disposition_parse_rejects_unknown():
    with pytest.raises(ValueError, match="APPEND, OVERWRITE, EMPTY_ONLY"):
        WriteDisposition.parse("WRITE_SOMETIMES")


def test_batch_config_defaults_are_sequential_fire_and_forget():
    cfg = BatchConfig()
    assert cfg.workers == 1
    assert cfg.poll is False
    assert cfg.poll_interval_s == 1.0
    assert cfg.poll_timeout_s is None


@pytest.mark.parametrize("kwargs", [
    dict(workers=0),
    dict(poll_interval_s=0),
    dict(poll_interval_s=-1.0),
    dict(poll_timeout_s=0),
])
def test_batch_config_validation(kwargs):
    with pytest.raises(ValueError):
        BatchConfig(**kwargs)
