"""Scheduling conflict detection for cadenceplan.

The person doing the work is the shared resource, so two tasks conflict when
their windows overlap no matter which channel they belong to.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel

from cadenceplan.models.constants import PLACEMENT_GRANULARITY_MINUTES
from cadenceplan.models.schedule import WorkingHours
from cadenceplan.models.suggestion import ScheduleWindow
from cadenceplan.models.task import Task

logger = logging.getLogger(__name__)

Interval = Tuple[datetime, datetime]


class TaskConflict(BaseModel):
    """Two tasks whose windows overlap."""

    first: Task
    second: Task
    overlap_minutes: int


def has_time_overlap(first: Task, second: Task) -> bool:
    """Half-open interval overlap: [start, end)."""
    return first.scheduled_start < second.scheduled_end and second.scheduled_start < first.scheduled_end


def calculate_overlap_minutes(first: Task, second: Task) -> int:
    overlap_start = max(first.scheduled_start, second.scheduled_start)
    overlap_end = min(first.scheduled_end, second.scheduled_end)
    if overlap_start >= overlap_end:
        return 0
    return round((overlap_end - overlap_start).total_seconds() / 60)


def detect_conflicts(tasks: Sequence[Task]) -> List[TaskConflict]:
    """Find every pair of overlapping tasks.

    Sort-and-sweep: tasks are visited by start time while an active set keeps
    the tasks that have not ended yet. Each unordered pair is reported once,
    earlier-starting task first, and a task never conflicts with itself.

    Args:
        tasks: Tasks to check

    Returns:
        List of conflicts in start-time order
    """
    ordered = sorted(tasks, key=lambda t: (t.scheduled_start, t.scheduled_end, t.id))
    active: List[Task] = []
    conflicts: List[TaskConflict] = []

    for task in ordered:
        active = [other for other in active if other.scheduled_end > task.scheduled_start]
        for other in active:
            if other.id == task.id:
                continue
            conflicts.append(
                TaskConflict(
                    first=other,
                    second=task,
                    overlap_minutes=calculate_overlap_minutes(other, task),
                )
            )
        active.append(task)

    if conflicts:
        logger.debug(f"Detected {len(conflicts)} conflicting task pairs among {len(ordered)} tasks")
    return conflicts


def can_schedule_task(new_task: Task, existing_tasks: Sequence[Task]) -> bool:
    """Whether `new_task` fits without overlapping any other task."""
    return not any(
        task.id != new_task.id and has_time_overlap(new_task, task) for task in existing_tasks
    )


def round_up_to_granularity(dt: datetime) -> datetime:
    """Round a datetime up to the placement granularity (30 minutes)."""
    floored = dt.replace(
        minute=(dt.minute // PLACEMENT_GRANULARITY_MINUTES) * PLACEMENT_GRANULARITY_MINUTES,
        second=0,
        microsecond=0,
    )
    if floored < dt:
        floored += timedelta(minutes=PLACEMENT_GRANULARITY_MINUTES)
    return floored


def find_first_slot(
    day: date,
    duration_hours: float,
    busy: Sequence[Interval],
    working_hours: WorkingHours,
) -> Optional[ScheduleWindow]:
    """First gap inside the working window of `day` that fits the duration.

    Args:
        day: Calendar day to search
        duration_hours: Length of the window needed
        busy: Occupied (start, end) intervals
        working_hours: Working window of the user

    Returns:
        ScheduleWindow, or None if no gap fits
    """
    duration = timedelta(hours=duration_hours)
    day_start = datetime.combine(day, working_hours.start)
    day_end = datetime.combine(day, working_hours.end)

    slot_start = day_start
    for start, end in sorted(busy):
        if end <= slot_start:
            continue
        if start >= day_end:
            break
        if start - slot_start >= duration:
            return ScheduleWindow(start=slot_start, end=slot_start + duration, hours=duration_hours)
        slot_start = round_up_to_granularity(max(slot_start, end))

    if day_end - slot_start >= duration:
        return ScheduleWindow(start=slot_start, end=slot_start + duration, hours=duration_hours)
    return None


def find_available_slots(
    duration_hours: float,
    existing_tasks: Sequence[Task],
    start_date: date,
    end_date: date,
    working_hours: WorkingHours,
) -> List[ScheduleWindow]:
    """First free slot of each day in [start_date, end_date) that fits the duration."""
    slots = []
    day = start_date
    while day < end_date:
        busy = [
            (task.scheduled_start, task.scheduled_end)
            for task in existing_tasks
            if task.scheduled_date == day
        ]
        slot = find_first_slot(day, duration_hours, busy, working_hours)
        if slot is not None:
            slots.append(slot)
        day += timedelta(days=1)
    return slots


def place_after_last_task(day: date, duration_hours: float, busy: Sequence[Interval], working_start: time) -> ScheduleWindow:
    """Fallback placement when the working window is full: right after the day's last task."""
    start = datetime.combine(day, working_start)
    for _, end in busy:
        if end > start:
            start = end
    start = round_up_to_granularity(start)
    return ScheduleWindow(start=start, end=start + timedelta(hours=duration_hours), hours=duration_hours)
