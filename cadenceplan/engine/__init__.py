"""Workload analysis and rebalancing engine for cadenceplan."""

from cadenceplan.engine.workload import calculate_workload_metrics, detect_overload_warnings, get_workload_trend
from cadenceplan.engine.conflicts import detect_conflicts, TaskConflict
from cadenceplan.engine.status import (
    update_task_status,
    sweep_overdue_tasks,
    calculate_channel_completion_rate,
    calculate_time_accuracy,
    InvalidStatusTransitionError,
)
from cadenceplan.engine.suggestions import generate_suggestions
from cadenceplan.engine.impact import get_quick_wins, total_potential_impact, rank_suggestions
from cadenceplan.engine.applier import SuggestionApplier

__all__ = [
    "calculate_workload_metrics",
    "detect_overload_warnings",
    "get_workload_trend",
    "detect_conflicts",
    "TaskConflict",
    "update_task_status",
    "sweep_overdue_tasks",
    "calculate_channel_completion_rate",
    "calculate_time_accuracy",
    "InvalidStatusTransitionError",
    "generate_suggestions",
    "get_quick_wins",
    "total_potential_impact",
    "rank_suggestions",
    "SuggestionApplier",
]
