# tests/jobs/test_submission.py
from __future__ import annotations

import time
import types
from datetime import datetime

import pytest

from ngram_load.errors import PollTimeoutError, SubmissionError
from ngram_load.jobs.spec import build_load_spec
from ngram_load.jobs.status import JobHandle, JobState, JobStatus
from ngram_load.jobs.submission import await_completion, submit


# --- Test doubles -------------------------------------------------------------

class ScriptedClient:
    """Warehouse client that replays scripted statuses and records calls."""

    def __init__(self, statuses=(), *, job_id="job_1", fail_with=None):
        self.statuses = list(statuses)
        self.job_id = job_id
        self.fail_with = fail_with
        self.submitted = []
        self.polled = []

    def submit_load_job(self, spec):
        if self.fail_with is not None:
            raise self.fail_with
        self.submitted.append(spec)
        return self.job_id

    def get_job_status(self, job_id):
        self.polled.append(job_id)
        return self.statuses.pop(0)


class FakeClock:
    """Monotonic clock that only advances when sleep() is called."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def _spec():
    return build_load_spec(["gs://b/f"], "p.d.t", [("WORD", "STRING")])


def _handle():
    return JobHandle(job_id="job_1", submit_time=datetime(2024, 1, 1))


# --- submit -------------------------------------------------------------------

def test_submit_returns_handle():
    client = ScriptedClient(job_id="abc")
    before = datetime.now()
    handle = submit(client, _spec())
    assert handle.job_id == "abc"
    assert handle.submit_time >= before
    assert client.submitted == [_spec()]


def test_submit_wraps_client_errors():
    boom = ConnectionError("network unreachable")
    client = ScriptedClient(fail_with=boom)
    with pytest.raises(SubmissionError) as ei:
        submit(client, _spec())
    assert ei.value.cause is boom
    assert ei.value.__cause__ is boom
    assert "p.d.t" in str(ei.value)


def test_submit_rejects_missing_job_id():
    with pytest.raises(SubmissionError):
        submit(ScriptedClient(job_id=""), _spec())


# --- await_completion ---------------------------------------------------------

def test_done_on_second_poll_polls_twice_at_interval():
    client = ScriptedClient([JobStatus.running(), JobStatus.done()])
    clock = FakeClock()

    status = await_completion(
        client, _handle(), poll_interval=1.0, timeout=10,
        sleep=clock.sleep, monotonic=clock.monotonic,
    )

    assert status.state is JobState.DONE
    assert client.polled == ["job_1", "job_1"]
    assert clock.sleeps == [1.0]


def test_failed_is_terminal_and_keeps_detail():
    client = ScriptedClient([JobStatus.failed("bad rows")])
    clock = FakeClock()
    status = await_completion(client, _handle(), sleep=clock.sleep, monotonic=clock.monotonic)
    assert status.state is JobState.FAILED
    assert status.error_detail == "bad rows"
    assert clock.sleeps == []


def test_timeout_raises_after_bounded_wait():
    client = ScriptedClient([JobStatus.running()] * 10)
    clock = FakeClock()
    with pytest.raises(PollTimeoutError) as ei:
        await_completion(
            client, _handle(), poll_interval=1.0, timeout=2.5,
            sleep=clock.sleep, monotonic=clock.monotonic,
        )
    assert ei.value.job_id == "job_1"
    assert clock.now == pytest.approx(2.5)
    # never sleeps past the deadline
    assert clock.sleeps == [1.0, 1.0, 0.5]
    assert isinstance(ei.value, TimeoutError)


def test_no_timeout_waits_until_terminal():
    client = ScriptedClient([JobStatus.running()] * 5 + [JobStatus.done()])
    clock = FakeClock()
    status = await_completion(
        client, _handle(), poll_interval=2.0,
        sleep=clock.sleep, monotonic=clock.monotonic,
    )
    assert status.is_terminal
    assert len(client.polled) == 6
    assert clock.sleeps == [2.0] * 5


def test_poll_interval_must_be_positive():
    with pytest.raises(ValueError):
        await_completion(ScriptedClient([JobStatus.done()]), _handle(), poll_interval=0)


def test_elapsed_time_is_logged_each_poll(caplog):
    client = ScriptedClient([JobStatus.running(), JobStatus.done()])
    clock = FakeClock()
    with caplog.at_level("INFO", logger="ngram_load.jobs.submission"):
        await_completion(client, _handle(), sleep=clock.sleep, monotonic=clock.monotonic)
    msgs = [r.getMessage() for r in caplog.records if "Job status" in r.getMessage()]
    assert msgs == ["Job status (0ms) job_1: RUNNING", "Job status (1000ms) job_1: DONE"]


def test_package_reexports_leave_submodule_importable():
    import ngram_load.jobs as jobs
    import ngram_load.jobs.submission as submission_mod

    assert isinstance(submission_mod, types.ModuleType)
    assert submission_mod.time is time
    assert jobs.submit is submission_mod.submit
    assert jobs.await_completion is submission_mod.await_completion
