"""Automation Scheduler - Drives the automation cycle on a fixed period

Two states: IDLE (waiting for the next tick) and RUNNING (one cycle in
flight). At most one cycle runs at a time; a tick that arrives while a cycle
is running is skipped. A failed cycle is logged and the scheduler returns to
IDLE, ready for the next tick.
"""
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..config.settings import Settings, settings as default_settings
from ..domain.enums import SchedulerState
from ..domain.errors import CycleInProgressError
from ..domain.models import CycleSummary
from ..engine.action_dispatcher import ActionDispatcher
from ..engine.cycle import AutomationCycle
from ..repositories.store import AutomationStore, MongoAutomationStore
from ..utils.logger import get_logger
from ..utils.time import Clock, utc_now

logger = get_logger(__name__)

JOB_ID = "run_automations"


class AutomationScheduler:
    """
    Periodic automation runner using APScheduler.

    Responsibilities:
    - Run one automation cycle every automation_interval_minutes
    - Fire one cycle immediately on start when automation_run_on_start is set
    - Guarantee a single in-flight cycle per scheduler
    - Keep the last cycle summary for status reporting
    """

    def __init__(
        self,
        store: AutomationStore,
        clock: Clock = utc_now,
        config: Optional[Settings] = None,
        cycle: Optional[AutomationCycle] = None
    ):
        self.config = config or default_settings
        self.cycle = cycle or AutomationCycle(
            store,
            dispatcher=ActionDispatcher(
                store,
                clock=clock,
                message_template=self.config.whatsapp_message_template
            ),
            clock=clock,
            max_workers=self.config.automation_max_workers
        )
        self.scheduler: Optional[BackgroundScheduler] = None
        self._cycle_lock = threading.Lock()
        self._state = SchedulerState.IDLE
        self._is_running = False
        self._cycle_count = 0
        self.last_summary: Optional[CycleSummary] = None
        self.last_error: Optional[str] = None

    def start(self) -> None:
        """Start the scheduler"""
        if self._is_running:
            logger.warning("Automation scheduler already running")
            return

        self.scheduler = BackgroundScheduler(timezone="UTC")

        job_kwargs: Dict[str, Any] = {}
        if self.config.automation_run_on_start:
            # First cycle now rather than one full period after start
            job_kwargs["next_run_time"] = datetime.now(timezone.utc)

        self.scheduler.add_job(
            self._tick,
            trigger=IntervalTrigger(minutes=self.config.automation_interval_minutes),
            id=JOB_ID,
            name="Run automation rules",
            replace_existing=True,
            max_instances=1,
            **job_kwargs
        )

        self.scheduler.start()
        self._is_running = True
        logger.info(
            f"Automation scheduler started: every {self.config.automation_interval_minutes} minutes",
            extra={"action": "scheduler_start"}
        )

    def stop(self, wait: bool = True) -> None:
        """Stop the scheduler"""
        if self.scheduler:
            self.scheduler.shutdown(wait=wait)
            self.scheduler = None
        self._is_running = False
        logger.info("Automation scheduler stopped")

    @property
    def is_running(self) -> bool:
        """Check if scheduler is running"""
        return self._is_running

    @property
    def state(self) -> SchedulerState:
        """IDLE or RUNNING"""
        return self._state

    def _tick(self) -> None:
        self.run_cycle()

    def run_cycle(self, dry_run: bool = False, raise_if_busy: bool = False) -> Optional[CycleSummary]:
        """
        Run one automation cycle now

        Args:
            dry_run: Evaluate triggers without dispatching actions
            raise_if_busy: Raise instead of skipping when a cycle is in flight

        Returns:
            The cycle summary, or None when skipped or failed

        Raises:
            CycleInProgressError: a cycle is in flight and raise_if_busy is set
        """
        if not self._cycle_lock.acquire(blocking=False):
            if raise_if_busy:
                raise CycleInProgressError("An automation cycle is already running")
            logger.warning("Automation cycle still running, skipping tick")
            return None

        self._state = SchedulerState.RUNNING
        try:
            logger.debug("Running automation check...")
            summary = self.cycle.run(dry_run=dry_run)
            self._cycle_count += 1
            self.last_summary = summary
            self.last_error = None
            return summary
        except Exception as e:
            self.last_error = str(e)
            logger.error(
                f"Automation scheduler error: {e}",
                exc_info=True,
                extra={"error_type": type(e).__name__}
            )
            return None
        finally:
            self._state = SchedulerState.IDLE
            self._cycle_lock.release()

    def status(self) -> Dict[str, Any]:
        """Scheduler status for health and API reporting"""
        next_run = None
        if self.scheduler:
            job = self.scheduler.get_job(JOB_ID)
            if job and job.next_run_time:
                next_run = job.next_run_time.isoformat()

        return {
            "running": self._is_running,
            "state": self._state.value,
            "interval_minutes": self.config.automation_interval_minutes,
            "run_on_start": self.config.automation_run_on_start,
            "cycles_completed": self._cycle_count,
            "next_run_at": next_run,
            "last_error": self.last_error,
            "last_summary": self.last_summary.model_dump(mode="json") if self.last_summary else None,
        }


# Global scheduler instance
_scheduler: Optional[AutomationScheduler] = None


def get_scheduler(store: Optional[AutomationStore] = None) -> AutomationScheduler:
    """Get or create scheduler instance"""
    global _scheduler
    if _scheduler is None:
        _scheduler = AutomationScheduler(store or MongoAutomationStore())
    return _scheduler


def get_active_scheduler() -> Optional[AutomationScheduler]:
    """The global scheduler if one has been created"""
    return _scheduler


def start_scheduler(store: Optional[AutomationStore] = None) -> AutomationScheduler:
    """Start the global scheduler"""
    scheduler = get_scheduler(store)
    scheduler.start()
    return scheduler


def stop_scheduler() -> None:
    """Stop the global scheduler"""
    global _scheduler
    if _scheduler:
        _scheduler.stop()
        _scheduler = None
