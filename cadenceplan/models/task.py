"""Task data model for cadenceplan."""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator


def to_naive_local(value: datetime) -> datetime:
    """Convert a timezone-aware datetime to naive local wall-clock time.

    Schedules are stored and compared as naive local times, matching the
    working-hours window they are planned against. Naive values pass through.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


class TaskStatus(str, Enum):
    """Task status enumeration."""
    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class TaskPriority(str, Enum):
    """Task priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


PRIORITY_RANK = {
    TaskPriority.LOW.value: 1,
    TaskPriority.MEDIUM.value: 2,
    TaskPriority.HIGH.value: 3,
}


class Task(BaseModel):
    """A unit of content work scheduled into the week."""

    id: str = Field(..., description="Unique task identifier")
    channel_id: str = Field(..., description="Owning channel (weak reference)")
    template_id: Optional[str] = Field(None, description="Template the task was created from")
    title: str = Field(..., description="Task title")
    estimated_hours: float = Field(..., gt=0, description="Estimated effort in hours")
    status: TaskStatus = Field(TaskStatus.PLANNED, description="Lifecycle status")
    scheduled_start: datetime = Field(..., description="Scheduled start timestamp")
    scheduled_end: datetime = Field(..., description="Scheduled end timestamp")
    actual_hours: Optional[float] = Field(None, ge=0, description="Recorded hours once completed")
    priority: TaskPriority = Field(TaskPriority.MEDIUM, description="Task priority")
    notes: Optional[str] = Field(None, description="Free-form notes")

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @field_validator("scheduled_start", "scheduled_end")
    @classmethod
    def _normalise_timezone(cls, value: datetime) -> datetime:
        return to_naive_local(value)

    @model_validator(mode="after")
    def _check_window(self) -> "Task":
        if self.scheduled_start >= self.scheduled_end:
            raise ValueError("scheduled_start must be before scheduled_end")
        return self

    @property
    def scheduled_date(self):
        """Calendar day the task belongs to (the day it starts)."""
        return self.scheduled_start.date()
