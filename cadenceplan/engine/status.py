"""Task status management for cadenceplan.

Lifecycle rules:
- planned, in-progress and overdue are interchangeable through explicit updates
- a task whose scheduled end has passed becomes overdue unless it is being completed
- completed is terminal, and reachable from any state (late completion is allowed)
"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel

from cadenceplan.models.task import Task, TaskStatus, to_naive_local

logger = logging.getLogger(__name__)


class InvalidStatusTransitionError(ValueError):
    """Raised when an explicit update tries to leave the completed state."""


class StatusChange(BaseModel):
    """A status transition found by the overdue sweep."""

    task_id: str
    previous_status: TaskStatus
    new_status: TaskStatus

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class ChannelTaskStats(BaseModel):
    """Task counts per status for one channel."""

    total: int = 0
    planned: int = 0
    in_progress: int = 0
    completed: int = 0
    overdue: int = 0


class TimeAccuracy(BaseModel):
    """How close estimates were to recorded hours."""

    accuracy: int = 100
    total_estimated: float = 0.0
    total_actual: float = 0.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _now(now: Optional[datetime]) -> datetime:
    return to_naive_local(now) if now is not None else datetime.now()


def is_task_overdue(task: Task, now: Optional[datetime] = None) -> bool:
    """A task is overdue once its scheduled end has passed and it is not completed."""
    return task.status != TaskStatus.COMPLETED and _now(now) > task.scheduled_end


def compute_status(task: Task, now: Optional[datetime] = None) -> str:
    """Status the task should have at `now` without any explicit request."""
    if task.status == TaskStatus.COMPLETED:
        return TaskStatus.COMPLETED.value
    if is_task_overdue(task, now):
        return TaskStatus.OVERDUE.value
    return task.status


def update_task_status(
    task: Task,
    new_status: TaskStatus,
    actual_hours: Optional[float] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Compute the field updates for an explicit status change.

    Args:
        task: Task being updated
        new_status: Requested status
        actual_hours: Hours actually spent (only used when completing)
        now: Reference time for overdue detection (defaults to now)

    Returns:
        Dict of fields to write back to the task

    Raises:
        InvalidStatusTransitionError: If the task is completed and a different
            status is requested
    """
    requested = TaskStatus(new_status)
    if task.status == TaskStatus.COMPLETED and requested != TaskStatus.COMPLETED:
        raise InvalidStatusTransitionError(
            f"Task {task.id} is completed and cannot move to {requested.value}"
        )

    updates: Dict[str, Any] = {"status": requested.value}

    if requested == TaskStatus.COMPLETED:
        updates["actual_hours"] = actual_hours if actual_hours is not None else task.estimated_hours
    elif _now(now) > task.scheduled_end:
        updates["status"] = TaskStatus.OVERDUE.value

    return updates


def sweep_overdue_tasks(tasks: Sequence[Task], now: Optional[datetime] = None) -> List[StatusChange]:
    """Find tasks whose stored status is stale.

    Only differences are reported, so running the sweep again against the
    updated tasks yields nothing.
    """
    reference = _now(now)
    changes = []
    for task in tasks:
        if task.status == TaskStatus.COMPLETED:
            continue
        computed = compute_status(task, reference)
        if computed != task.status:
            changes.append(
                StatusChange(task_id=task.id, previous_status=task.status, new_status=computed)
            )
    return changes


def calculate_channel_completion_rate(tasks: Sequence[Task], channel_id: str) -> int:
    """Percentage of a channel's tasks that are completed, rounded half up."""
    channel_tasks = [task for task in tasks if task.channel_id == channel_id]
    if not channel_tasks:
        return 0
    completed = sum(1 for task in channel_tasks if task.status == TaskStatus.COMPLETED)
    return _round_half_up(completed / len(channel_tasks) * 100)


def get_channel_task_stats(tasks: Sequence[Task], channel_id: str) -> ChannelTaskStats:
    stats = ChannelTaskStats()
    for task in tasks:
        if task.channel_id != channel_id:
            continue
        stats.total += 1
        if task.status == TaskStatus.PLANNED:
            stats.planned += 1
        elif task.status == TaskStatus.IN_PROGRESS:
            stats.in_progress += 1
        elif task.status == TaskStatus.COMPLETED:
            stats.completed += 1
        elif task.status == TaskStatus.OVERDUE:
            stats.overdue += 1
    return stats


def get_tasks_by_status(tasks: Sequence[Task], channel_id: Optional[str] = None) -> Dict[str, List[Task]]:
    grouped: Dict[str, List[Task]] = {status.value: [] for status in TaskStatus}
    for task in tasks:
        if channel_id is not None and task.channel_id != channel_id:
            continue
        grouped[task.status].append(task)
    return grouped


def calculate_time_accuracy(tasks: Sequence[Task], channel_id: Optional[str] = None) -> TimeAccuracy:
    """Compare summed estimates with summed actual hours of completed tasks.

    Accuracy is 100 * min(estimated, actual) / max(estimated, actual). With no
    completed task carrying actual hours the baseline of 100 is returned.
    """
    completed = [
        task
        for task in tasks
        if task.status == TaskStatus.COMPLETED
        and task.actual_hours is not None
        and (channel_id is None or task.channel_id == channel_id)
    ]
    if not completed:
        return TimeAccuracy()

    total_estimated = math.fsum(task.estimated_hours for task in completed)
    total_actual = math.fsum(task.actual_hours for task in completed)
    larger = max(total_estimated, total_actual)
    accuracy = _round_half_up(min(total_estimated, total_actual) / larger * 100) if larger > 0 else 100
    return TimeAccuracy(accuracy=accuracy, total_estimated=total_estimated, total_actual=total_actual)
