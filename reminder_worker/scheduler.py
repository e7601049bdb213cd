"""
Deadline Reminder Scheduler

Periodically checks for tasks approaching their deadline and sends
Telegram / email reminders to their owners, 24 hours and 1 hour before
the deadline, exactly once per threshold.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Optional

import pytz
from apscheduler.schedulers.background import BackgroundScheduler

from .classifier import REMINDER_BANDS, classify, hours_remaining, validate_bands
from .config import config
from .dispatcher import FlagPolicy, ReminderDispatcher
from .metrics import FLAG_WRITE_FAILURES, SCAN_CYCLES
from .scheduler_config import (
    SCAN_GRACE_WINDOW_HOURS,
    SCAN_LOOKAHEAD_WINDOW_HOURS,
)
from .store import StoreUnavailable, TaskStore

logger = logging.getLogger(__name__)

JOB_ID = "deadline_reminder_job"


@dataclass
class CycleReport:
    now: Optional[datetime] = None
    candidates: int = 0
    sent: Dict[str, int] = field(default_factory=dict)
    flags_marked: int = 0
    flag_failures: int = 0
    errors: int = 0
    aborted: bool = False

    def as_dict(self) -> dict:
        return {
            "now": self.now.isoformat() if self.now else None,
            "candidates": self.candidates,
            "sent": self.sent,
            "flags_marked": self.flags_marked,
            "flag_failures": self.flag_failures,
            "errors": self.errors,
            "aborted": self.aborted,
        }


class DeadlineReminderScheduler:
    """
    Owns the reminder job.

    "now" always comes from ``store.current_time()``, read once per cycle,
    so deadlines and the current instant share the database clock.
    """

    def __init__(
        self,
        store: TaskStore,
        dispatcher: ReminderDispatcher,
        interval_seconds: Optional[int] = None,
        grace_window: timedelta = timedelta(hours=SCAN_GRACE_WINDOW_HOURS),
        lookahead_window: timedelta = timedelta(hours=SCAN_LOOKAHEAD_WINDOW_HOURS),
        flag_policy: FlagPolicy = FlagPolicy.after_attempt,
        bands=REMINDER_BANDS,
    ) -> None:
        validate_bands(bands, grace_window, lookahead_window)
        self._store = store
        self._dispatcher = dispatcher
        self._interval = interval_seconds if interval_seconds is not None else config.CHECK_INTERVAL
        self._grace = grace_window
        self._lookahead = lookahead_window
        self._policy = FlagPolicy(flag_policy)
        self._bands = bands
        self._cycle_lock = threading.Lock()
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def dispatcher(self) -> ReminderDispatcher:
        return self._dispatcher

    def run_cycle(self) -> Optional[CycleReport]:
        """
        Run one scan. Returns None when the previous cycle is still in
        progress; cycles never overlap.
        """
        if not self._cycle_lock.acquire(blocking=False):
            logger.warning("⏭️ Previous deadline check still running, skipping this tick")
            SCAN_CYCLES.labels(outcome="skipped").inc()
            return None
        try:
            report = self._run_cycle()
        finally:
            self._cycle_lock.release()

        SCAN_CYCLES.labels(outcome="aborted" if report.aborted else "completed").inc()
        return report

    def _run_cycle(self) -> CycleReport:
        logger.info("🔍 Checking task deadlines for reminders...")
        report = CycleReport()

        try:
            now = self._store.current_time()
            candidates = self._store.fetch_candidates(now, self._grace, self._lookahead)
        except StoreUnavailable as e:
            logger.error(f"❌ Deadline check aborted, store unavailable: {e}")
            report.aborted = True
            return report

        report.now = now
        report.candidates = len(candidates)
        if not candidates:
            logger.info("📭 No upcoming deadlines to notify")
            return report

        for candidate in candidates:
            try:
                self._process(candidate, now, report)
            except Exception as e:
                report.errors += 1
                logger.error(f"Error processing task {candidate.task.id}: {e}", exc_info=True)

        logger.info(
            f"✅ Deadline check complete. Processed {report.candidates} tasks, "
            f"sent {report.sent or 'nothing'}, {report.flag_failures} flag failures"
        )
        return report

    def _process(self, candidate, now: datetime, report: CycleReport) -> None:
        kind = classify(candidate, now, self._bands)
        if kind is None:
            return

        hours = hours_remaining(candidate.task.deadline, now)
        logger.info(f"Task {candidate.task.id}: {hours:.2f}h left, sending {kind.value} reminder")
        result = self._dispatcher.dispatch(candidate, kind, hours)
        if result.attempted:
            report.sent[kind.value] = report.sent.get(kind.value, 0) + 1

        if not result.should_mark(self._policy):
            logger.info(f"Task {candidate.task.id}: nothing delivered, {kind.value} flag left unset")
            return

        if self._store.mark_notified(candidate.task.id, kind):
            report.flags_marked += 1
            logger.info(f"📝 Updated {kind.value} flag for task {candidate.task.id}")
        else:
            # The task stays eligible and may be notified again next cycle
            report.flag_failures += 1
            FLAG_WRITE_FAILURES.labels(kind=kind.value).inc()
            logger.warning(f"⚠️ Could not persist {kind.value} flag for task {candidate.task.id}; a duplicate reminder may follow")

    def _run_job(self) -> None:
        try:
            self.run_cycle()
        except Exception:
            # Never let one tick kill the job
            logger.exception("Deadline check failed")

    def start(self, run_immediately: bool = True) -> None:
        """Start the interval job. Calling it twice is a no-op."""
        if self.running:
            logger.info("Reminder scheduler already running, skipping start")
            return

        job_options = {}
        if run_immediately:
            job_options["next_run_time"] = datetime.now(pytz.utc)

        self._scheduler = BackgroundScheduler(timezone=pytz.utc)
        self._scheduler.add_job(
            self._run_job,
            "interval",
            seconds=self._interval,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **job_options,
        )
        self._scheduler.start()
        logger.info(f"🚀 Scheduler started: deadline reminders every {self._interval}s")

    def stop(self, wait: bool = True) -> None:
        """Stop the scheduler, letting an in-flight cycle finish when ``wait``."""
        if not self.running:
            return
        self._scheduler.shutdown(wait=wait)
        self._scheduler = None
        logger.info("🛑 Scheduler stopped")


def build_scheduler(store: Optional[TaskStore] = None) -> DeadlineReminderScheduler:
    """Wire the reminder scheduler against the application database."""
    if store is None:
        from server.config import config as server_config
        from server.database import SessionLocal
        store = TaskStore(SessionLocal, server_config.STORE_TIMEZONE)

    return DeadlineReminderScheduler(
        store,
        ReminderDispatcher(),
        flag_policy=FlagPolicy(config.FLAG_POLICY),
    )
