"""Tests for cf_operations.jobs.JobPoller."""

from __future__ import annotations

import asyncio

import pytest
from conftest import no_sleep

from cf_operations.client.memory import InMemoryPlatformClient
from cf_operations.errors import JobFailedError, PollTimeoutError
from cf_operations.jobs import JobPoller
from cf_operations.models import ErrorDetails, Job, JobStatus
from cf_operations.telemetry import InMemoryTelemetrySink


class _FakeClock:
    """Clock that only advances when the poller sleeps."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _poller(client: InMemoryPlatformClient, **kwargs) -> JobPoller:
    kwargs.setdefault("sleep", no_sleep)
    return JobPoller(client, **kwargs)


class TestAwaitCompletion:
    @pytest.mark.asyncio
    async def test_finished_immediately(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.FINISHED)
        job = await _poller(client).await_completion("job-1")
        assert job.status is JobStatus.FINISHED
        assert client.call_count("get_job") == 1

    @pytest.mark.asyncio
    async def test_running_then_finished_polls_twice(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.RUNNING, JobStatus.FINISHED)
        job = await _poller(client).await_completion("job-1")
        assert job.status is JobStatus.FINISHED
        assert client.call_count("get_job") == 2

    @pytest.mark.asyncio
    async def test_running_then_failed_raises_with_error_details(self):
        client = InMemoryPlatformClient()
        client.script_job(
            "job-1",
            JobStatus.RUNNING,
            JobStatus.FAILED,
            error=ErrorDetails(code=1, description="d", error_code="test-error-code"),
        )
        with pytest.raises(JobFailedError) as exc_info:
            await _poller(client).await_completion("job-1")

        assert str(exc_info.value) == "test-error-code(1): d"
        assert exc_info.value.code == 1
        assert exc_info.value.description == "d"
        assert client.call_count("get_job") == 2

    @pytest.mark.asyncio
    async def test_failed_without_details(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.FAILED)
        with pytest.raises(JobFailedError, match="^Job job-1 failed without error details$"):
            await _poller(client).await_completion("job-1")

    @pytest.mark.asyncio
    async def test_queued_counts_as_pending(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.QUEUED, JobStatus.RUNNING, JobStatus.FINISHED)
        await _poller(client).await_completion("job-1")
        assert client.call_count("get_job") == 3

    @pytest.mark.asyncio
    async def test_sleeps_the_configured_interval(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.RUNNING, JobStatus.RUNNING, JobStatus.FINISHED)
        clock = _FakeClock()
        poller = JobPoller(client, poll_interval=2.5, sleep=clock.sleep, clock=clock)
        await poller.await_completion("job-1")
        assert clock.sleeps == [2.5, 2.5]

    @pytest.mark.asyncio
    async def test_interval_override_per_call(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.RUNNING, JobStatus.FINISHED)
        clock = _FakeClock()
        poller = JobPoller(client, poll_interval=5.0, sleep=clock.sleep, clock=clock)
        await poller.await_completion("job-1", poll_interval=0.5)
        assert clock.sleeps == [0.5]

    @pytest.mark.asyncio
    async def test_timeout_when_never_terminal(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.RUNNING)
        clock = _FakeClock()
        poller = JobPoller(
            client, poll_interval=1.0, timeout=3.0, sleep=clock.sleep, clock=clock
        )

        with pytest.raises(PollTimeoutError) as exc_info:
            await poller.await_completion("job-1")

        assert exc_info.value.job_id == "job-1"
        assert not isinstance(exc_info.value, JobFailedError)
        assert clock.sleeps == [1.0, 1.0, 1.0]
        assert client.call_count("get_job") == 4

    @pytest.mark.asyncio
    async def test_last_sleep_clamped_to_deadline(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.RUNNING)
        clock = _FakeClock()
        poller = JobPoller(
            client, poll_interval=2.0, timeout=3.0, sleep=clock.sleep, clock=clock
        )
        with pytest.raises(PollTimeoutError):
            await poller.await_completion("job-1")
        assert clock.sleeps == [2.0, 1.0]

    @pytest.mark.asyncio
    async def test_cancellation_stops_before_next_fetch(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.RUNNING, JobStatus.FINISHED)
        poller = JobPoller(client, poll_interval=60.0)

        task = asyncio.create_task(poller.await_completion("job-1"))
        while client.call_count("get_job") == 0:
            await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert client.call_count("get_job") == 1

    @pytest.mark.asyncio
    async def test_emits_telemetry(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.RUNNING, JobStatus.FINISHED)
        sink = InMemoryTelemetrySink()
        await _poller(client, telemetry_sink=sink).await_completion("job-1")
        assert sink.names() == ["job.poll", "job.poll", "job.finished"]
        assert sink.named("job.finished")[0].attributes["attempts"] == 2


class TestAwaitJob:
    @pytest.mark.asyncio
    async def test_already_finished_skips_polling(self):
        client = InMemoryPlatformClient()
        job = Job(id="job-1", status=JobStatus.FINISHED)
        assert await _poller(client).await_job(job) is job
        assert client.call_count("get_job") == 0

    @pytest.mark.asyncio
    async def test_already_failed_raises(self):
        client = InMemoryPlatformClient()
        job = Job(
            id="job-1",
            status=JobStatus.FAILED,
            error_details=ErrorDetails(code=7, description="boom", error_code="CF-Boom"),
        )
        with pytest.raises(JobFailedError, match=r"CF-Boom\(7\): boom"):
            await _poller(client).await_job(job)

    @pytest.mark.asyncio
    async def test_pending_job_is_polled(self):
        client = InMemoryPlatformClient()
        client.script_job("job-1", JobStatus.FINISHED)
        await _poller(client).await_job(Job(id="job-1", status=JobStatus.QUEUED))
        assert client.call_count("get_job") == 1


class TestValidation:
    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError, match="poll_interval"):
            JobPoller(InMemoryPlatformClient(), poll_interval=-1)

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError, match="timeout"):
            JobPoller(InMemoryPlatformClient(), timeout=0)
