# tests/test_cli.py
import json
import logging

import pytest

import ngram_load.cli as cli
from ngram_load.config import WriteDisposition
from ngram_load.pipeline.report import BatchReport


@pytest.fixture(autouse=True)
def _isolate(monkeypatch):
    monkeypatch.delenv("GOOGLE_CLOUD_PROJECT", raising=False)
    monkeypatch.setattr(cli.signal, "signal", lambda *a: None, raising=True)


@pytest.fixture
def fake_batch(monkeypatch):
    """Replace the client factory and batch driver, recording the call."""
    calls = {}

    def fake_create_client(project, location=None):
        calls["client_args"] = (project, location)
        calls["created"] = object()
        return calls["created"]

    def fake_run_batch(plan, **kwargs):
        calls["plan"] = plan
        calls.update(kwargs)
        return calls.get("report", BatchReport(attempted=1, submitted=1))

    monkeypatch.setattr(cli, "create_client", fake_create_client, raising=True)
    monkeypatch.setattr(cli, "run_batch", fake_run_batch, raising=True)
    return calls


def test_missing_project_exits_with_usage_error(fake_batch):
    assert cli.main([]) == 2
    assert "client_args" not in fake_batch


def test_project_from_environment(monkeypatch, fake_batch):
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "env-proj")
    assert cli.main(["--no-progress"]) == 0
    assert fake_batch["client_args"] == ("env-proj", None)
    assert fake_batch["options"].project == "env-proj"


def test_default_run_uses_reddit_plan_sequentially(fake_batch):
    rc = cli.main(["--project", "p", "--location", "US", "--no-progress"])

    assert rc == 0
    assert fake_batch["client_args"] == ("p", "US")
    assert fake_batch["client"] is fake_batch["created"]
    assert fake_batch["plan"] is cli.DEFAULT_PLANS["monthly"]
    assert fake_batch["scheme"].name == "monthly"
    config = fake_batch["config"]
    assert config.workers == 1
    assert config.poll is False
    assert config.progress is False
    assert fake_batch["cancel_event"] is not None


def test_flags_flow_into_options_and_config(tmp_path, fake_batch):
    plan = tmp_path / "plan.json"
    plan.write_text(json.dumps({"scheme": "web1t", "ranges": [{"grams": 2, "shards": [0, 3]}]}))

    rc = cli.main([
        "--project", "p", "--plan", str(plan), "--workers", "4", "--poll",
        "--poll-interval", "0.5", "--poll-timeout", "90",
        "--write-disposition", "OVERWRITE", "--no-progress",
    ])

    assert rc == 0
    assert fake_batch["plan"].scheme == "web1t"
    assert fake_batch["scheme"].name == "web1t"
    options = fake_batch["options"]
    assert options.delimiter == "\t"
    assert options.write_disposition is WriteDisposition.OVERWRITE
    config = fake_batch["config"]
    assert (config.workers, config.poll, config.poll_interval_s, config.poll_timeout_s) == (4, True, 0.5, 90.0)


def test_failed_batch_exits_nonzero(fake_batch):
    fake_batch["report"] = BatchReport(attempted=2, submitted=1, failures=[("k", ValueError("x"))])
    assert cli.main(["--project", "p", "--no-progress"]) == 1


@pytest.mark.parametrize("argv", [
    ["--workers", "0"],
    ["--poll-interval", "0"],
    ["--plan", "/nonexistent/plan.json"],
])
def test_invalid_configuration_exits_with_usage_error(fake_batch, argv):
    assert cli.main(["--project", "p", *argv]) == 2
    assert "client_args" not in fake_batch


def test_malformed_plan_file(tmp_path, fake_batch):
    plan = tmp_path / "plan.json"
    plan.write_text(json.dumps({"ranges": []}))
    assert cli.main(["--project", "p", "--plan", str(plan)]) == 2


def test_dry_run_prints_jobs_without_a_client(capsys, fake_batch):
    rc = cli.main(["--project", "p", "--dry-run"])

    assert rc == 0
    assert "client_args" not in fake_batch
    out = capsys.readouterr().out
    assert "p.NGram.GRAM_2007_10_1" in out
    assert "gs://reddit-corpus/GRAM/2007/RC_2007-10-comments-grams1" in out
    assert "GRAM_2015_05_5" in out
    assert "GRAM_2015_06_1" not in out
    assert "460 jobs planned, 0 invalid" in out


def test_dry_run_flags_invalid_partitions(tmp_path, capsys, fake_batch):
    plan = tmp_path / "plan.json"
    plan.write_text(json.dumps({"scheme": "web1t", "ranges": [{"grams": [5, 6], "shards": 0}]}))

    assert cli.main(["--project", "p", "--plan", str(plan), "--dry-run"]) == 1
    out = capsys.readouterr().out
    assert "6gm-0" in out and "INVALID" in out
    assert "1 jobs planned, 1 invalid" in out


def test_scheme_flag_overrides_plan_scheme():
    args = cli.parse_args(["--scheme", "web1t"])
    assert cli._select_plan(args) is cli.DEFAULT_PLANS["web1t"]


@pytest.mark.parametrize("doc", [
    {"scheme": "monthly", "ranges": [{"years": [2013, 2013]}]},
    {"scheme": "monthly", "ranges": [
        {"years": [2013, 2014], "shards": 1, "month_bounds": {"2014": [5, 1]}},
    ]},
])
@pytest.mark.parametrize("extra", [[], ["--dry-run"]])
def test_incomplete_or_empty_plan_ranges_exit_with_usage_error(tmp_path, fake_batch, doc, extra):
    plan = tmp_path / "plan.json"
    plan.write_text(json.dumps(doc))
    assert cli.main(["--project", "p", "--plan", str(plan), *extra]) == 2
    assert "plan" not in fake_batch


def test_sigint_handler_restored_after_batch(monkeypatch, fake_batch):
    installed = {cli.signal.SIGINT: "previous"}

    def fake_signal(signum, handler):
        prev = installed.get(signum)
        installed[signum] = handler
        return prev

    monkeypatch.setattr(cli.signal, "signal", fake_signal, raising=True)

    assert cli.main(["--project", "p", "--no-progress"]) == 0
    assert installed[cli.signal.SIGINT] == "previous"


def test_sigint_handler_restored_when_batch_raises(monkeypatch, fake_batch):
    installed = {cli.signal.SIGINT: "previous"}

    def fake_signal(signum, handler):
        prev = installed.get(signum)
        installed[signum] = handler
        return prev

    def exploding_run_batch(plan, **kwargs):
        assert callable(installed[cli.signal.SIGINT])
        raise RuntimeError("boom")

    monkeypatch.setattr(cli.signal, "signal", fake_signal, raising=True)
    monkeypatch.setattr(cli, "run_batch", exploding_run_batch, raising=True)

    with pytest.raises(RuntimeError):
        cli.main(["--project", "p", "--no-progress"])
    assert installed[cli.signal.SIGINT] == "previous"


def test_log_dir_gets_a_per_batch_file_and_handler_is_removed(tmp_path, caplog, fake_batch):
    caplog.set_level(logging.INFO)
    log_dir = tmp_path / "logs"
    pkg_logger = logging.getLogger("ngram_load")
    before = list(pkg_logger.handlers)

    assert cli.main(["--project", "p", "--no-progress", "--log-dir", str(log_dir)]) == 0

    (log_file,) = log_dir.glob("ngram_load_monthly_*.log")
    assert "Batch log:" in log_file.read_text(encoding="utf-8")
    assert pkg_logger.handlers == before
