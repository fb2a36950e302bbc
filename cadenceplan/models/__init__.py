"""Data models for cadenceplan."""

from cadenceplan.models.task import Task, TaskStatus, TaskPriority
from cadenceplan.models.channel import Channel
from cadenceplan.models.schedule import UserSettings, WorkingHours, WeeklySchedule
from cadenceplan.models.workload import (
    DailyWorkload,
    ChannelWorkload,
    WorkloadDistribution,
    WorkloadMetrics,
    OverloadWarning,
    WorkloadTrend,
)
from cadenceplan.models.suggestion import (
    SuggestionType,
    SuggestionPriority,
    EffortLevel,
    ActionType,
    ScheduleWindow,
    RebalancingAction,
    SuggestionImpact,
    RebalancingSuggestion,
    RebalancingOptions,
    ApplyResult,
    BatchApplyResult,
)

__all__ = [
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Channel",
    "UserSettings",
    "WorkingHours",
    "WeeklySchedule",
    "DailyWorkload",
    "ChannelWorkload",
    "WorkloadDistribution",
    "WorkloadMetrics",
    "OverloadWarning",
    "WorkloadTrend",
    "SuggestionType",
    "SuggestionPriority",
    "EffortLevel",
    "ActionType",
    "ScheduleWindow",
    "RebalancingAction",
    "SuggestionImpact",
    "RebalancingSuggestion",
    "RebalancingOptions",
    "ApplyResult",
    "BatchApplyResult",
]
