"""Periodic background maintenance: sweeps and Tor list refresh.

Each job runs on its own timer in the worker threadpool so it never blocks
request handling. Job failures are logged by type and swallowed.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from fastapi.concurrency import run_in_threadpool

logger = logging.getLogger(__name__)


@dataclass
class PeriodicJob:
    name: str
    interval: float
    func: Callable[[], object]
    run_at_start: bool = False


class MaintenanceScheduler:
    """Runs idempotent maintenance jobs on independent intervals."""

    def __init__(self, jobs: list[PeriodicJob]):
        self.jobs = jobs
        self._tasks: list[asyncio.Task] = []

    @staticmethod
    def run_job(job: PeriodicJob) -> bool:
        """Run one job synchronously. Returns False if it raised."""
        try:
            job.func()
            return True
        except Exception as exc:
            logger.error("Maintenance job %s failed: %s", job.name, type(exc).__name__)
            return False

    def run_once(self) -> dict[str, bool]:
        """Run every job now, e.g. from tests or an admin script."""
        return {job.name: self.run_job(job) for job in self.jobs}

    async def _loop(self, job: PeriodicJob) -> None:
        if job.run_at_start:
            await run_in_threadpool(self.run_job, job)
        while True:
            await asyncio.sleep(job.interval)
            await run_in_threadpool(self.run_job, job)

    def start(self) -> None:
        """Start one task per job on the running event loop."""
        if self._tasks:
            return
        for job in self.jobs:
            self._tasks.append(asyncio.create_task(self._loop(job), name=f"maintenance:{job.name}"))
        logger.info("Started %d maintenance jobs", len(self._tasks))

    async def stop(self) -> None:
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
