"""Wait for asynchronous server-side jobs to finish."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Protocol

import structlog

from cfchain.core.errors import JobFailedError
from cfchain.domain.models import Job, JobState
from cfchain.orchestration.backoff import BackoffSchedule, poll_until

if TYPE_CHECKING:
    from cfchain.clients.cloudfoundry import CloudFoundryClient

logger = structlog.get_logger()


class JobReader(Protocol):
    """Read-only access to job status snapshots."""

    async def get_job(self, job_id: str) -> Job:
        ...


class JobPoller:
    """Polls a job handle with exponential backoff until it is terminal."""

    def __init__(
        self,
        jobs: JobReader,
        schedule: BackoffSchedule,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._jobs = jobs
        self._schedule = schedule
        self._sleep = sleep

    async def wait_for_completion(self, job: Job, timeout: float | None = None) -> Job:
        """
        Block until ``job`` finishes and return its final snapshot.

        Raises:
            JobFailedError: the job reached the failed state
            PollTimeoutError: the job was still pending at the deadline
        """
        schedule = self._schedule if timeout is None else replace(self._schedule, timeout=timeout)

        if job.is_terminal:
            final = job
        else:
            final = await poll_until(
                lambda: self._read(job.id),
                lambda snapshot: snapshot.is_terminal,
                schedule,
                description=f"job {job.id}",
                sleep=self._sleep,
            )

        if final.state is JobState.FAILED:
            logger.warning("job_failed", job_id=final.id, error_details=final.error_details)
            raise JobFailedError(final.id, dict(final.error_details or {}))
        logger.info("job_finished", job_id=final.id)
        return final

    async def _read(self, job_id: str) -> Job:
        snapshot = await self._jobs.get_job(job_id)
        logger.debug("job_polled", job_id=job_id, status=snapshot.status.value)
        return snapshot


async def wait_for_completion(client: CloudFoundryClient, timeout: float, job: Job) -> Job:
    """One-off wait using the poll delays from settings."""
    from cfchain.config.settings import get_settings

    poller = JobPoller(client.jobs, get_settings().backoff_schedule(timeout))
    return await poller.wait_for_completion(job)
