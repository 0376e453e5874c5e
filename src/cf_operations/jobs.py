"""Polling of server-side asynchronous jobs to a terminal state."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from cf_operations.client.base import PlatformClient
from cf_operations.errors import JobFailedError, PollTimeoutError
from cf_operations.models import Job, JobStatus
from cf_operations.telemetry import NoOpTelemetrySink, TelemetrySink, emit

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0
DEFAULT_TIMEOUT = 300.0


def raise_for_failed(job: Job) -> None:
    if job.status is not JobStatus.FAILED:
        return
    details = job.error_details
    if details is None:
        raise JobFailedError(0, f"Job {job.id} failed without error details")
    raise JobFailedError(details.code, details.description, details.error_code)


class JobPoller:
    """Waits for a job to finish with a fixed poll interval and a deadline.

    ``sleep`` and ``clock`` are injectable so tests can drive time without
    waiting.  Cancelling the awaiting task during a sleep stops polling
    before the next fetch.
    """

    def __init__(
        self,
        client: PlatformClient,
        *,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        telemetry_sink: TelemetrySink | None = None,
    ) -> None:
        if poll_interval < 0:
            raise ValueError("poll_interval must not be negative")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.client = client
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._sleep = sleep
        self._clock = clock
        self.telemetry = telemetry_sink or NoOpTelemetrySink()

    async def await_completion(
        self,
        job_id: str,
        *,
        poll_interval: float | None = None,
        timeout: float | None = None,
    ) -> Job:
        """Poll ``job_id`` until it finishes.

        Returns:
            The finished job.

        Raises:
            JobFailedError: The job reached ``failed``; carries its error details.
            PollTimeoutError: No terminal state was observed before the deadline.
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        limit = self.timeout if timeout is None else timeout
        deadline = self._clock() + limit
        attempts = 0

        while True:
            job = await self.client.get_job(job_id)
            attempts += 1
            emit(self.telemetry, "job.poll", job_id=job_id, status=job.status.value, attempt=attempts)

            if job.status is JobStatus.FINISHED:
                logger.debug("Job %s finished after %d poll(s)", job_id, attempts)
                emit(self.telemetry, "job.finished", job_id=job_id, attempts=attempts)
                return job
            if job.status is JobStatus.FAILED:
                logger.debug("Job %s failed after %d poll(s)", job_id, attempts)
                emit(self.telemetry, "job.failed", job_id=job_id, attempts=attempts)
                raise_for_failed(job)

            remaining = deadline - self._clock()
            if remaining <= 0:
                emit(self.telemetry, "job.timeout", job_id=job_id, attempts=attempts)
                raise PollTimeoutError(job_id, limit)
            await self._sleep(min(interval, remaining))

    async def await_job(self, job: Job) -> Job:
        """Wait on a job returned by a mutation, skipping the poll if already terminal."""
        if job.status is JobStatus.FINISHED:
            return job
        raise_for_failed(job)
        return await self.await_completion(job.id)
