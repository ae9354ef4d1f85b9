"""APScheduler-backed one-shot timers for scan stages, timeouts and celebrations.

Callbacks are wrapped in coroutines so the AsyncIOExecutor runs them as
tasks on the event loop rather than in its thread pool; state handlers
never run concurrently.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from itertools import count
from typing import Protocol

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

_scheduler: AsyncIOScheduler | None = None
_job_ids = count(1)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerService(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        ...


class ScheduledTimer:
    """Handle for a one-shot ``date`` job."""

    def __init__(self, scheduler: AsyncIOScheduler, job_id: str):
        self._scheduler = scheduler
        self.job_id = job_id
        self.cancelled = False

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        try:
            self._scheduler.remove_job(self.job_id)
        except JobLookupError:
            # Date jobs drop themselves once they have run
            pass


class SchedulerTimers:
    """TimerService on top of an AsyncIOScheduler."""

    def __init__(self, scheduler: AsyncIOScheduler):
        self._scheduler = scheduler

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> ScheduledTimer:
        job_id = f"{name or 'timer'}-{next(_job_ids)}"
        handle = ScheduledTimer(self._scheduler, job_id)

        async def _fire():
            if handle.cancelled:
                return
            logger.debug("Timer {} fired", job_id)
            callback()

        self._scheduler.add_job(
            _fire, "date",
            run_date=datetime.now() + timedelta(seconds=delay),
            id=job_id,
            misfire_grace_time=None,
        )
        return handle


def start_scheduler() -> AsyncIOScheduler:
    """Start the shared scheduler. Must be called with the event loop running."""
    global _scheduler
    if _scheduler is not None:
        return _scheduler

    _scheduler = AsyncIOScheduler()
    _scheduler.start()
    logger.info("Timer scheduler started")
    return _scheduler


def stop_scheduler():
    """Shutdown the scheduler."""
    global _scheduler
    if _scheduler:
        _scheduler.shutdown(wait=False)
        _scheduler = None
        logger.info("Timer scheduler stopped")


def get_timer_service() -> SchedulerTimers:
    return SchedulerTimers(start_scheduler())


def get_scheduler_status() -> list[dict]:
    """Get status of all pending timers."""
    if not _scheduler:
        return []

    jobs = []
    for job in _scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "next_run": str(job.next_run_time) if job.next_run_time else None,
            "trigger": str(job.trigger),
        })
    return jobs
