"""Derived workload models for cadenceplan.

None of these are persisted; they are recomputed from a schedule snapshot.
"""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from cadenceplan.models.task import Task


class DailyWorkload(BaseModel):
    """Load of a single calendar day."""

    date: date
    day_name: str
    scheduled_hours: float = 0.0
    tasks: List[Task] = Field(default_factory=list)
    is_overloaded: bool = False
    is_working_day: bool = True


class ChannelWorkload(BaseModel):
    """Load of a single channel across the week."""

    channel_id: str
    channel_name: str
    scheduled_hours: float = 0.0
    task_count: int = 0
    completion_rate: int = 0


class WorkloadDistribution(BaseModel):
    """How evenly hours are spread across working days."""

    efficiency: float = Field(100.0, description="0-100, 100 means perfectly even")
    variance: float = Field(0.0, description="Population variance of daily hours")


class WorkloadMetrics(BaseModel):
    """Aggregate, per-day and per-channel workload of a week."""

    total_scheduled_hours: float
    capacity_hours: float
    daily_capacity_hours: float
    utilization_percentage: float
    overload_hours: float
    is_overloaded: bool
    daily_breakdown: List[DailyWorkload] = Field(default_factory=list)
    channel_breakdown: List[ChannelWorkload] = Field(default_factory=list)
    distribution: WorkloadDistribution = Field(default_factory=WorkloadDistribution)

    def working_days_breakdown(self) -> List[DailyWorkload]:
        return [day for day in self.daily_breakdown if day.is_working_day]

    def has_overloaded_days(self) -> bool:
        """Whether any working day exceeds the per-day threshold."""
        return any(day.is_overloaded for day in self.working_days_breakdown())

    def most_overloaded_day(self) -> Optional[DailyWorkload]:
        working = self.working_days_breakdown()
        if not working:
            return None
        # max() keeps the first of equal days
        return max(working, key=lambda day: day.scheduled_hours)

    def busiest_channel(self) -> Optional[ChannelWorkload]:
        if not self.channel_breakdown:
            return None
        return max(self.channel_breakdown, key=lambda channel: channel.scheduled_hours)

    def get_day_workload(self, day: date) -> Optional[DailyWorkload]:
        for entry in self.daily_breakdown:
            if entry.date == day:
                return entry
        return None

    def get_channel_workload(self, channel_id: str) -> Optional[ChannelWorkload]:
        for entry in self.channel_breakdown:
            if entry.channel_id == channel_id:
                return entry
        return None


class WarningType(str, Enum):
    """Overload warning scope."""
    DAILY = "daily"
    WEEKLY = "weekly"
    CHANNEL = "channel"


class WarningSeverity(str, Enum):
    """Overload warning severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class OverloadWarning(BaseModel):
    """Human-readable overload notice."""

    type: WarningType
    severity: WarningSeverity
    message: str
    suggested_action: str
    affected_date: Optional[date] = None
    affected_channel_id: Optional[str] = None

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class TrendDirection(str, Enum):
    """Direction of utilization change between two weeks."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class WorkloadTrend(BaseModel):
    """Utilization change against a previous week."""

    trend: TrendDirection
    change: float
    message: str

    class Config:
        """Pydantic configuration."""
        use_enum_values = True
