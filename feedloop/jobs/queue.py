"""Delayed job queue contract.

The scheduler and the workflows hand work to each other through this
interface. Hatchet carries jobs in production; the in-memory queue
records them for tests and development.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from feedloop.jobs.payloads import JobPayload
from feedloop.observability.logging import get_logger
from feedloop.org_data.models import utc_now

logger = get_logger(__name__)


class JobQueue(ABC):
    """Abstract interface for enqueueing jobs."""

    @abstractmethod
    async def enqueue(
        self,
        job_name: str,
        payload: JobPayload,
        delay: timedelta | None = None,
    ) -> None:
        """Enqueue a job, to run after delay when given."""
        pass


@dataclass
class EnqueuedJob:
    """A job recorded by InMemoryJobQueue."""

    name: str
    payload: dict[str, Any]
    run_at: datetime


class InMemoryJobQueue(JobQueue):
    """Records jobs instead of running them."""

    def __init__(self, clock: Callable[[], datetime] = utc_now) -> None:
        self._clock = clock
        self.jobs: list[EnqueuedJob] = []

    async def enqueue(
        self,
        job_name: str,
        payload: JobPayload,
        delay: timedelta | None = None,
    ) -> None:
        run_at = self._clock() + (delay or timedelta(0))
        self.jobs.append(EnqueuedJob(name=job_name, payload=payload.to_message(), run_at=run_at))

    def by_name(self, job_name: str) -> list[EnqueuedJob]:
        return [job for job in self.jobs if job.name == job_name]

    def clear(self) -> None:
        self.jobs.clear()


class HatchetJobQueue(JobQueue):
    """Enqueues workflow runs on Hatchet.

    Delayed jobs become scheduled runs; the rest are triggered at once.
    """

    def __init__(self, hatchet: Any, clock: Callable[[], datetime] = utc_now) -> None:
        self._hatchet = hatchet
        self._clock = clock

    async def enqueue(
        self,
        job_name: str,
        payload: JobPayload,
        delay: timedelta | None = None,
    ) -> None:
        message = payload.to_message()
        if delay and delay > timedelta(0):
            trigger_at = self._clock() + delay
            await self._hatchet.scheduled.aio_create(
                workflow_name=job_name,
                trigger_at=trigger_at,
                input=message,
            )
            logger.info(
                "job_scheduled",
                job_name=job_name,
                trigger_at=trigger_at.isoformat(),
            )
        else:
            await self._hatchet.runs.aio_create(
                workflow_name=job_name,
                input=message,
            )
            logger.info("job_enqueued", job_name=job_name)
