"""Rebalancing suggestion models for cadenceplan."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class SuggestionType(str, Enum):
    """Strategy that produced a suggestion."""
    REDISTRIBUTE_DAILY = "redistribute_daily"
    REDISTRIBUTE_CHANNEL = "redistribute_channel"
    REDUCE_SCOPE = "reduce_scope"
    EXTEND_TIMELINE = "extend_timeline"


class SuggestionPriority(str, Enum):
    """How strongly a suggestion is recommended."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class EffortLevel(str, Enum):
    """How much work applying a suggestion takes."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


LEVEL_RANK = {"low": 1, "medium": 2, "high": 3}


class ActionType(str, Enum):
    """Task mutation kinds."""
    MOVE_TASK = "move_task"
    REDUCE_SCOPE = "reduce_scope"
    RESCHEDULE = "reschedule"


class ScheduleWindow(BaseModel):
    """A task's time window and effort."""

    start: datetime
    end: datetime
    hours: float


class RebalancingAction(BaseModel):
    """One task mutation inside a suggestion."""

    type: ActionType
    task_id: str
    task_title: str = Field(..., description="Denormalized for display")
    channel_id: str = Field(..., description="Denormalized for effort classification")
    current_schedule: ScheduleWindow
    proposed_schedule: Optional[ScheduleWindow] = Field(
        None, description="None on a reduce_scope action means the task is dropped"
    )
    reason: str

    class Config:
        """Pydantic configuration."""
        use_enum_values = True

    @property
    def removes_task(self) -> bool:
        return self.type == ActionType.REDUCE_SCOPE and self.proposed_schedule is None


class SuggestionImpact(BaseModel):
    """Quantified effect of applying a suggestion in isolation."""

    hours_reduced: float = 0.0
    utilization_improvement: float = Field(0.0, description="Percentage points")
    affected_tasks: int = 0


class RebalancingSuggestion(BaseModel):
    """An independently applicable set of task mutations."""

    id: str
    type: SuggestionType
    priority: SuggestionPriority
    title: str
    description: str
    impact: SuggestionImpact = Field(default_factory=SuggestionImpact)
    actions: List[RebalancingAction] = Field(default_factory=list)
    estimated_effort: EffortLevel

    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class RebalancingOptions(BaseModel):
    """Caller-supplied rebalancing policy."""

    max_daily_hours: Optional[float] = Field(
        None, gt=0, description="Overrides the per-day threshold derived from settings"
    )
    allow_cross_channel_rebalancing: bool = True
    preserve_deadlines: bool = Field(
        True, description="Tasks may only move to an earlier day, never later"
    )


class ApplyResult(BaseModel):
    """Outcome of applying one suggestion."""

    success: bool
    summary: str
    applied_count: int = 0
    total_actions: int = 0
    error: Optional[str] = None


class BatchApplyResult(BaseModel):
    """Outcome of applying several suggestions in sequence."""

    success: bool = True
    applied_count: int = 0
    failed_count: int = 0
    summaries: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
