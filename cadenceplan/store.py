"""Schedule store contract for cadenceplan.

The engine reads one immutable WeeklySchedule snapshot at a time and writes
task updates through a store. Writers (suggestion application, overdue
sweep) take `store.lock` so only one mutation runs against a schedule at once.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from pydantic import ValidationError

from cadenceplan.models.schedule import WeeklySchedule
from cadenceplan.models.task import Task

logger = logging.getLogger(__name__)


class TaskNotFoundError(LookupError):
    """The task no longer exists in the store."""


class StoreWriteError(RuntimeError):
    """The store rejected a write."""


class ScheduleStore(ABC):
    """Read access to the current week plus a task mutation sink."""

    def __init__(self):
        self.lock = threading.RLock()

    @abstractmethod
    def get_schedule(self) -> WeeklySchedule:
        """Current snapshot of the week."""

    @abstractmethod
    def get_task(self, task_id: str) -> Optional[Task]:
        """Task by id, or None if it does not exist."""

    @abstractmethod
    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Task:
        """Apply a partial update.

        Raises:
            TaskNotFoundError: If the task does not exist
            StoreWriteError: If the write is rejected
        """

    @abstractmethod
    def delete_task(self, task_id: str) -> bool:
        """Remove a task. Returns False if it did not exist.

        Raises:
            StoreWriteError: If the write is rejected
        """


class InMemoryScheduleStore(ScheduleStore):
    """Store that keeps the week as a sequence of snapshots in memory."""

    def __init__(self, schedule: WeeklySchedule):
        super().__init__()
        self._schedule = schedule

    def get_schedule(self) -> WeeklySchedule:
        return self._schedule

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._schedule.get_task(task_id)

    def add_task(self, task: Task) -> Task:
        with self.lock:
            self._schedule = self._schedule.with_tasks([*self._schedule.tasks, task])
        return task

    def replace_schedule(self, schedule: WeeklySchedule) -> None:
        with self.lock:
            self._schedule = schedule

    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Task:
        with self.lock:
            current = self._schedule.get_task(task_id)
            if current is None:
                raise TaskNotFoundError(f"Task {task_id} not found")
            try:
                updated = Task(**{**current.model_dump(), **fields})
            except ValidationError as e:
                raise StoreWriteError(f"Rejected update of task {task_id}: {e}") from e
            tasks = [updated if task.id == task_id else task for task in self._schedule.tasks]
            self._schedule = self._schedule.with_tasks(tasks)
        logger.debug(f"Updated task {task_id}: {sorted(fields)}")
        return updated

    def delete_task(self, task_id: str) -> bool:
        with self.lock:
            tasks = [task for task in self._schedule.tasks if task.id != task_id]
            if len(tasks) == len(self._schedule.tasks):
                return False
            self._schedule = self._schedule.with_tasks(tasks)
        logger.debug(f"Deleted task {task_id}")
        return True
