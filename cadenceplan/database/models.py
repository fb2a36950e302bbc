"""SQLAlchemy database models for cadenceplan."""

from datetime import datetime
from typing import Type, TypeVar, Union

from sqlalchemy import Boolean, Column, DateTime, Float, String

from cadenceplan.database.database import Base
from cadenceplan.models.channel import Channel
from cadenceplan.models.task import Task, TaskPriority, TaskStatus

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def value_to_enum(value: str, enum_class: Type[T], default: T) -> T:
    """Convert string to enum with fallback to default."""
    if not value:
        return default
    try:
        return enum_class(value.lower())
    except (ValueError, AttributeError):
        return default


class ChannelDB(Base):
    """Database model for Channel."""

    __tablename__ = "channels"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    content_type = Column(String, nullable=True)

    def to_pydantic(self) -> Channel:
        return Channel(
            id=self.id,
            name=self.name,
            is_active=self.is_active,
            content_type=self.content_type,
        )

    @classmethod
    def from_pydantic(cls, channel: Channel) -> "ChannelDB":
        return cls(
            id=channel.id,
            name=channel.name,
            is_active=channel.is_active,
            content_type=channel.content_type,
        )


class TaskDB(Base):
    """Database model for Task.

    `channel_id` is a plain column: tasks may reference channels that are not
    registered, so there is no foreign key.
    """

    __tablename__ = "tasks"

    id = Column(String, primary_key=True)
    channel_id = Column(String, nullable=False, index=True)
    template_id = Column(String, nullable=True)

    title = Column(String, nullable=False)
    notes = Column(String, nullable=True)
    status = Column(String, nullable=False, default=TaskStatus.PLANNED.value)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)

    # Scheduling fields
    estimated_hours = Column(Float, nullable=False)
    actual_hours = Column(Float, nullable=True)
    scheduled_start = Column(DateTime, nullable=False, index=True)
    scheduled_end = Column(DateTime, nullable=False)

    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self) -> Task:
        """Convert database model to Pydantic model."""
        return Task(
            id=self.id,
            channel_id=self.channel_id,
            template_id=self.template_id,
            title=self.title,
            notes=self.notes,
            status=value_to_enum(self.status, TaskStatus, TaskStatus.PLANNED),
            priority=value_to_enum(self.priority, TaskPriority, TaskPriority.MEDIUM),
            estimated_hours=self.estimated_hours,
            actual_hours=self.actual_hours,
            scheduled_start=self.scheduled_start,
            scheduled_end=self.scheduled_end,
        )

    @classmethod
    def from_pydantic(cls, task: Task) -> "TaskDB":
        """Create database model from Pydantic model."""
        # Pydantic with use_enum_values=True returns strings
        return cls(
            id=task.id,
            channel_id=task.channel_id,
            template_id=task.template_id,
            title=task.title,
            notes=task.notes,
            status=enum_to_value(task.status),
            priority=enum_to_value(task.priority),
            estimated_hours=task.estimated_hours,
            actual_hours=task.actual_hours,
            scheduled_start=task.scheduled_start,
            scheduled_end=task.scheduled_end,
        )

    def apply(self, task: Task) -> None:
        """Copy the mutable fields of a validated task onto this row."""
        self.channel_id = task.channel_id
        self.template_id = task.template_id
        self.title = task.title
        self.notes = task.notes
        self.status = enum_to_value(task.status)
        self.priority = enum_to_value(task.priority)
        self.estimated_hours = task.estimated_hours
        self.actual_hours = task.actual_hours
        self.scheduled_start = task.scheduled_start
        self.scheduled_end = task.scheduled_end
