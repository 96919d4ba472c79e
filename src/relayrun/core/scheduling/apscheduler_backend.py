"""APScheduler-based timer registrar.

Wraps an APScheduler 3.x ``BackgroundScheduler``: every continuation is
a one-shot ``date`` job whose target is :func:`fire_entry_point`, a
module-level function that resolves the entry point by name.  Because
the target is addressed by reference, jobs survive process restarts
when a persistent job store is configured::

    registrar = APSchedulerTimerRegistrar(jobstore_url="sqlite:///jobs.db")
    registrar.start()

.. note::

    Jobs use ``misfire_grace_time=None``: a host that was down when a
    continuation fell due still runs it on the next start, however late.
"""

from __future__ import annotations

from typing import Any

from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.sqlalchemy import SQLAlchemyJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from relayrun.core.logging import get_logger
from relayrun.core.timestamps import generate_ulid, utc_after

from .protocol import TimerRegistration

logger = get_logger(__name__)


def fire_entry_point(entry_point: str, timer_id: str) -> None:
    """Job target: invoke *entry_point* as a resumption of *timer_id*."""
    from relayrun.execution.entrypoints import get_entry_point
    from relayrun.execution.events import TriggerEvent

    logger.info("timer_fired", backend="apscheduler", entry_point=entry_point, timer_id=timer_id)
    try:
        get_entry_point(entry_point)(TriggerEvent(trigger_uid=timer_id))
    except Exception:
        logger.exception("entry_point_failed", entry_point=entry_point, timer_id=timer_id)
        raise


class APSchedulerTimerRegistrar:
    """Timer registrar backed by APScheduler.

    Args:
        scheduler: Existing scheduler to use (a ``BackgroundScheduler``
            is created when omitted).
        quota: Maximum outstanding timers the host allows.
        jobstore_url: SQLAlchemy URL for a persistent job store; jobs
            are kept in memory when omitted.

    Example::

        >>> registrar = APSchedulerTimerRegistrar(quota=20)
        >>> registrar.start()
        >>> registrar.register("sync_rows", delay_seconds=60)
        >>> # … later …
        >>> registrar.shutdown()
    """

    name: str = "apscheduler"

    def __init__(
        self,
        scheduler: Any | None = None,
        *,
        quota: int = 20,
        jobstore_url: str | None = None,
    ) -> None:
        if scheduler is None:
            jobstores: dict[str, Any] = {}
            if jobstore_url:
                jobstores["default"] = SQLAlchemyJobStore(url=jobstore_url)
            scheduler = BackgroundScheduler(jobstores=jobstores, timezone="UTC")
        self._scheduler = scheduler
        self.quota = quota

    @property
    def scheduler(self) -> Any:
        return self._scheduler

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, paused: bool = False) -> None:
        """Start the scheduler; ``paused=True`` opens the job store without firing."""
        if not self._scheduler.running:
            self._scheduler.start(paused=paused)
            logger.info("apscheduler_started", paused=paused)

    def shutdown(self, wait: bool = True) -> None:
        """Stop the scheduler, waiting for running jobs by default."""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            logger.info("apscheduler_stopped")

    # ------------------------------------------------------------------
    # TimerRegistrar protocol
    # ------------------------------------------------------------------

    def register(self, entry_point: str, delay_seconds: float) -> TimerRegistration:
        timer_id = generate_ulid()
        run_date = utc_after(delay_seconds)
        self._scheduler.add_job(
            fire_entry_point,
            "date",
            run_date=run_date,
            args=[entry_point, timer_id],
            id=timer_id,
            name=entry_point,
            misfire_grace_time=None,
        )
        logger.info(
            "timer_registered",
            backend=self.name,
            entry_point=entry_point,
            timer_id=timer_id,
            fire_at=run_date.isoformat(),
        )
        return TimerRegistration(id=timer_id, entry_point=entry_point, fire_at=run_date)

    def list_pending(self) -> list[TimerRegistration]:
        return [
            TimerRegistration(
                id=job.id,
                entry_point=job.name,
                fire_at=getattr(job, "next_run_time", None),
            )
            for job in self._scheduler.get_jobs()
        ]

    def cancel(self, timer_id: str) -> bool:
        try:
            self._scheduler.remove_job(timer_id)
        except JobLookupError:
            return False
        logger.info("timer_cancelled", backend=self.name, timer_id=timer_id)
        return True


__all__ = ["APSchedulerTimerRegistrar", "fire_entry_point"]
