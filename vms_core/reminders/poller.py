# vms_core/reminders/poller.py
from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone as dt_timezone
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger
from django.conf import settings
from django.db import connection
from django.utils import timezone

from vms_core.reminders.services import ExpiryRun, ReminderService

logger = logging.getLogger(__name__)

JOB_ID = "vms_reminder_expiry"


class ReminderPoller:
    """
    Periodic reminder-expiry sweep on an APScheduler interval job.

        poller = ReminderPoller(interval_seconds=60)
        poller.tick()            # one sweep, synchronously
        poller.start()           # background scheduler, first sweep immediately
        poller.pause() / resume()
        poller.stop()
        poller.run_forever()     # blocking scheduler (management command)

    Also usable as a context manager (start on enter, stop on exit).
    The clock is injectable for tests.
    """

    def __init__(
        self,
        *,
        interval_seconds: Optional[float] = None,
        clock: Callable[[], datetime] = timezone.now,
    ):
        if interval_seconds is None:
            interval_seconds = getattr(settings, "VMS_REMINDER_POLL_INTERVAL_SECONDS", 60)
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive.")

        self.interval_seconds = float(interval_seconds)
        self.clock = clock

        self._scheduler: Optional[BaseScheduler] = None
        self._is_paused = False
        self._lock = threading.Lock()

        self.ticks = 0
        self.last_run: Optional[ExpiryRun] = None

    # -------------------------
    # State
    # -------------------------
    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def is_paused(self) -> bool:
        return self._is_paused

    # -------------------------
    # Work
    # -------------------------
    def tick(self) -> ExpiryRun:
        """
        One sweep. Per-record failures are logged inside the sweep; a failure
        of the sweep itself (e.g. database down) is logged here and the next
        tick tries again.
        """
        with self._lock:
            try:
                run = ReminderService.process_due(now=self.clock())
            except Exception:
                logger.exception("Reminder sweep failed")
                run = ExpiryRun()

            self.ticks += 1
            self.last_run = run
            return run

    def _run_job(self) -> None:
        try:
            self.tick()
        finally:
            # scheduler worker threads hold their own connection
            connection.close()

    # -------------------------
    # Lifecycle
    # -------------------------
    def _schedule(self, scheduler: BaseScheduler) -> BaseScheduler:
        scheduler.add_job(
            self._run_job,
            IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name="Reminder expiry sweep",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            # None adds the job paused
            next_run_time=None if self._is_paused else datetime.now(dt_timezone.utc),
        )
        self._scheduler = scheduler
        return scheduler

    def start(self) -> "ReminderPoller":
        if self.is_running:
            logger.warning("Reminder poller already running")
            return self

        self._schedule(BackgroundScheduler(timezone=dt_timezone.utc)).start()
        logger.info("Reminder poller started (interval=%ss)", self.interval_seconds)
        return self

    def run_forever(self) -> None:
        """Blocks the calling thread until interrupted or stop() is called."""
        scheduler = self._schedule(BlockingScheduler(timezone=dt_timezone.utc))
        logger.info("Reminder poller running in foreground (interval=%ss)", self.interval_seconds)
        scheduler.start()

    def pause(self) -> None:
        self._is_paused = True
        if self.is_running:
            self._scheduler.pause_job(JOB_ID)
        logger.info("Reminder poller paused")

    def resume(self) -> None:
        self._is_paused = False
        if self.is_running:
            self._scheduler.resume_job(JOB_ID)
        logger.info("Reminder poller resumed")

    def stop(self, wait: bool = True) -> None:
        if self.is_running:
            self._scheduler.shutdown(wait=wait)
            logger.info("Reminder poller stopped after %s ticks", self.ticks)
        self._scheduler = None

    def __enter__(self) -> "ReminderPoller":
        return self.start()

    def __exit__(self, *exc) -> bool:
        self.stop()
        return False
