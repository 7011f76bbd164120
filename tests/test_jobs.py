"""Tests for orchestration/jobs.py."""

import asyncio
from types import SimpleNamespace

import pytest

from cfchain.config.settings import get_settings
from cfchain.core.errors import JobFailedError, PollTimeoutError
from cfchain.domain.models import Job, JobState, JobStatus
from cfchain.orchestration.backoff import BackoffSchedule
from cfchain.orchestration.jobs import JobPoller, wait_for_completion


class ScriptedJobs:
    """Returns one status per poll, repeating the last one."""

    def __init__(self, statuses, error_details=None):
        self._statuses = list(statuses)
        self._error_details = error_details
        self.polls = 0

    async def get_job(self, job_id):
        status = self._statuses[min(self.polls, len(self._statuses) - 1)]
        self.polls += 1
        details = self._error_details if status == "failed" else None
        return Job(id=job_id, status=JobStatus(status), error_details=details)


def queued(job_id="job-1"):
    return Job(id=job_id, status=JobStatus.queued)


@pytest.mark.asyncio
async def test_finished_after_three_polls(fast_schedule):
    jobs = ScriptedJobs(["queued", "running", "finished"])
    poller = JobPoller(jobs, fast_schedule)

    final = await poller.wait_for_completion(queued())

    assert final.state is JobState.SUCCEEDED
    assert jobs.polls == 3


@pytest.mark.asyncio
async def test_failed_after_two_polls_carries_details(fast_schedule):
    details = {"code": 10001, "error_code": "CF-MessageParseError", "description": "bad bits"}
    jobs = ScriptedJobs(["queued", "failed"], error_details=details)
    poller = JobPoller(jobs, fast_schedule)

    with pytest.raises(JobFailedError) as exc_info:
        await poller.wait_for_completion(queued())

    assert jobs.polls == 2
    assert exc_info.value.job_id == "job-1"
    assert exc_info.value.error_details == details
    assert str(exc_info.value) == "CF-MessageParseError(10001): bad bits"


@pytest.mark.asyncio
async def test_terminal_handle_needs_no_poll(fast_schedule):
    jobs = ScriptedJobs(["queued"])
    poller = JobPoller(jobs, fast_schedule)

    final = await poller.wait_for_completion(Job(id="job-1", status=JobStatus.finished))

    assert final.id == "job-1"
    assert jobs.polls == 0


@pytest.mark.asyncio
async def test_pending_job_times_out():
    jobs = ScriptedJobs(["running"])
    poller = JobPoller(jobs, BackoffSchedule(min_delay=0.01, max_delay=0.02, timeout=5))

    with pytest.raises(PollTimeoutError):
        await poller.wait_for_completion(queued(), timeout=0.1)

    assert jobs.polls > 1


@pytest.mark.asyncio
async def test_unknown_status_keeps_polling(fast_schedule):
    jobs = ScriptedJobs(["mystery", "finished"])
    poller = JobPoller(jobs, fast_schedule)

    await poller.wait_for_completion(queued())

    assert jobs.polls == 2


@pytest.mark.asyncio
async def test_cancellation_stops_polling():
    jobs = ScriptedJobs(["running"])
    poller = JobPoller(jobs, BackoffSchedule(min_delay=0.05, max_delay=0.05, timeout=30))

    task = asyncio.create_task(poller.wait_for_completion(queued()))
    await asyncio.sleep(0.12)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    polls_at_cancel = jobs.polls

    await asyncio.sleep(0.15)

    assert polls_at_cancel >= 1
    assert jobs.polls == polls_at_cancel


def test_job_status_vocabulary():
    assert JobStatus("FINISHED") is JobStatus.finished
    assert JobStatus("something-new") is JobStatus.unknown
    assert Job(id="j", status=JobStatus.unknown).state is JobState.PENDING
    assert Job(id="j", status=JobStatus.failed).is_terminal


@pytest.mark.asyncio
async def test_module_wait_uses_settings_delays(monkeypatch):
    monkeypatch.setenv("CFCHAIN_POLL_MIN_DELAY", "0.001")
    monkeypatch.setenv("CFCHAIN_POLL_MAX_DELAY", "0.005")
    get_settings.cache_clear()
    client = SimpleNamespace(jobs=ScriptedJobs(["queued", "finished"]))

    try:
        final = await wait_for_completion(client, 2.0, queued())
    finally:
        get_settings.cache_clear()

    assert final.status is JobStatus.finished
    assert client.jobs.polls == 2
