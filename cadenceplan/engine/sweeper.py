"""Background overdue sweep for cadenceplan.

Re-evaluates every non-completed task on a fixed interval (and once at
start) and writes only statuses that actually changed, so repeated runs
against an unchanged schedule are no-ops.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from cadenceplan.config import get_sweep_interval_minutes
from cadenceplan.engine.status import StatusChange, sweep_overdue_tasks
from cadenceplan.store import ScheduleStore, TaskNotFoundError

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "overdue_sweep"


class OverdueSweeper:
    """Runs the overdue sweep against a store on an interval."""

    def __init__(
        self,
        store: ScheduleStore,
        interval_minutes: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
        scheduler: Optional[BackgroundScheduler] = None,
    ):
        self.store = store
        self.interval_minutes = interval_minutes or get_sweep_interval_minutes()
        self.clock = clock
        self.scheduler = scheduler or BackgroundScheduler()

    def run_once(self) -> List[StatusChange]:
        """Sweep the current snapshot and write back changed statuses."""
        with self.store.lock:
            changes = sweep_overdue_tasks(self.store.get_schedule().tasks, now=self.clock())
            written = []
            for change in changes:
                try:
                    self.store.update_task(change.task_id, {"status": change.new_status})
                except TaskNotFoundError:
                    logger.warning(f"Task {change.task_id} disappeared before its status could be updated")
                    continue
                written.append(change)

        if written:
            logger.info(f"Overdue sweep updated {len(written)} task(s)")
        return written

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> None:
        """Schedule the sweep; the first run happens immediately."""
        if self.running:
            return
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=SWEEP_JOB_ID,
            name="Sweep overdue tasks",
            replace_existing=True,
            max_instances=1,
            next_run_time=datetime.now(),
        )
        self.scheduler.start()
        logger.info(f"Overdue sweep started (every {self.interval_minutes} minutes)")

    def stop(self) -> None:
        if not self.running:
            return
        self.scheduler.shutdown(wait=False)
        logger.info("Overdue sweep stopped")
