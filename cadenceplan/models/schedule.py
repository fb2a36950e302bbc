"""User settings and weekly schedule models for cadenceplan."""

import math
from datetime import date, time, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from cadenceplan.models.constants import (
    DAY_NAMES,
    DAYS_PER_WEEK,
    DEFAULT_WEEKLY_CAPACITY_HOURS,
    DEFAULT_WORKING_DAYS,
    DEFAULT_WORKING_HOURS_START,
    DEFAULT_WORKING_HOURS_END,
)
from cadenceplan.models.task import Task


class WorkingHours(BaseModel):
    """Daily working window (time of day)."""

    start: time = Field(DEFAULT_WORKING_HOURS_START, description="Start of the working day")
    end: time = Field(DEFAULT_WORKING_HOURS_END, description="End of the working day")

    @model_validator(mode="after")
    def _check_order(self) -> "WorkingHours":
        if self.start >= self.end:
            raise ValueError("working hours start must be before end")
        return self


class UserSettings(BaseModel):
    """Capacity and working pattern of the user."""

    weekly_capacity_hours: float = Field(
        DEFAULT_WEEKLY_CAPACITY_HOURS, ge=0, description="Total available hours per week"
    )
    working_days: List[str] = Field(
        default_factory=lambda: list(DEFAULT_WORKING_DAYS),
        description="Weekday names the user works on",
    )
    working_hours: WorkingHours = Field(default_factory=WorkingHours)

    @field_validator("working_days")
    @classmethod
    def _normalize_working_days(cls, v: List[str]) -> List[str]:
        names = set()
        for raw in v:
            name = str(raw).strip().capitalize()
            if name not in DAY_NAMES:
                raise ValueError(f"Unknown weekday: {raw!r}")
            names.add(name)
        # Keep week order regardless of input order
        return [name for name in DAY_NAMES if name in names]

    @property
    def daily_capacity_hours(self) -> float:
        """Per-day threshold. Zero working days means zero slack."""
        if not self.working_days:
            return 0.0
        return self.weekly_capacity_hours / len(self.working_days)


class WeeklySchedule(BaseModel):
    """Immutable snapshot of one week of tasks.

    Mutation never happens in place: `with_tasks()` returns a new snapshot.
    """

    week_start_date: date = Field(..., description="First calendar day of the week")
    tasks: List[Task] = Field(default_factory=list, description="Tasks in the week")
    user_capacity_hours: float = Field(..., ge=0, description="Capacity at snapshot time")

    class Config:
        """Pydantic configuration."""
        frozen = True

    @classmethod
    def from_settings(cls, week_start_date: date, tasks: List[Task], settings: UserSettings) -> "WeeklySchedule":
        return cls(
            week_start_date=week_start_date,
            tasks=list(tasks),
            user_capacity_hours=settings.weekly_capacity_hours,
        )

    @property
    def total_scheduled_hours(self) -> float:
        return math.fsum(task.estimated_hours for task in self.tasks)

    @property
    def is_overloaded(self) -> bool:
        return self.total_scheduled_hours > self.user_capacity_hours

    def days(self) -> List[date]:
        """The seven calendar days of the week, in order."""
        return [self.week_start_date + timedelta(days=i) for i in range(DAYS_PER_WEEK)]

    def get_task(self, task_id: str) -> Optional[Task]:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def with_tasks(self, tasks: List[Task]) -> "WeeklySchedule":
        return self.model_copy(update={"tasks": list(tasks)})
