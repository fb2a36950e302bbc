"""Library boundary of cadenceplan.

`RebalancingService` wires the store, the user settings and the channel
registry to the engine. Analysis always runs against the store's current
snapshot; suggestions are cached for that snapshot and discarded after any
mutation, since they describe a schedule that no longer exists.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Union

from cadenceplan.config import get_default_weekly_capacity_hours, load_rebalancing_options
from cadenceplan.engine import impact
from cadenceplan.engine.applier import SuggestionApplier
from cadenceplan.engine.conflicts import TaskConflict, detect_conflicts
from cadenceplan.engine.status import (
    TimeAccuracy,
    calculate_channel_completion_rate,
    calculate_time_accuracy,
    update_task_status,
)
from cadenceplan.engine.suggestions import generate_suggestions
from cadenceplan.engine.workload import calculate_workload_metrics, detect_overload_warnings
from cadenceplan.models.channel import Channel
from cadenceplan.models.schedule import UserSettings, WeeklySchedule
from cadenceplan.models.suggestion import (
    ApplyResult,
    BatchApplyResult,
    RebalancingOptions,
    RebalancingSuggestion,
    SuggestionImpact,
)
from cadenceplan.models.task import Task, TaskStatus
from cadenceplan.models.workload import OverloadWarning, WorkloadMetrics
from cadenceplan.store import ScheduleStore

logger = logging.getLogger(__name__)


class RebalancingService:
    """Workload analysis, rebalancing and status tracking for one week."""

    def __init__(
        self,
        store: ScheduleStore,
        settings: Optional[UserSettings] = None,
        channels: Optional[Sequence[Channel]] = None,
        options: Optional[RebalancingOptions] = None,
    ):
        self.store = store
        self.settings = settings or UserSettings(weekly_capacity_hours=get_default_weekly_capacity_hours())
        self.channels = list(channels or [])
        self.options = options or load_rebalancing_options()
        self.applier = SuggestionApplier(store)
        self._cached_schedule: Optional[WeeklySchedule] = None
        self._cached_suggestions: List[RebalancingSuggestion] = []

    def _invalidate(self) -> None:
        self._cached_schedule = None
        self._cached_suggestions = []

    def compute_workload_metrics(self) -> WorkloadMetrics:
        return calculate_workload_metrics(self.store.get_schedule(), self.settings, self.channels)

    def detect_conflicts(self) -> List[TaskConflict]:
        return detect_conflicts(self.store.get_schedule().tasks)

    def get_overload_warnings(self) -> List[OverloadWarning]:
        return detect_overload_warnings(self.compute_workload_metrics())

    def needs_rebalancing(self) -> bool:
        """Whether the week or any working day is over its limit."""
        metrics = self.compute_workload_metrics()
        return metrics.is_overloaded or metrics.has_overloaded_days()

    def generate_suggestions(
        self,
        options: Optional[RebalancingOptions] = None,
        now: Optional[datetime] = None,
    ) -> List[RebalancingSuggestion]:
        """Suggestions for the current snapshot.

        Passing options (or a reference time) always regenerates; otherwise the
        list cached for an unchanged snapshot is reused.
        """
        schedule = self.store.get_schedule()
        if options is None and now is None and schedule is self._cached_schedule:
            return list(self._cached_suggestions)

        metrics = calculate_workload_metrics(schedule, self.settings, self.channels)
        suggestions = generate_suggestions(
            schedule, self.settings, metrics, options or self.options, now=now
        )
        self._cached_schedule = schedule
        self._cached_suggestions = suggestions
        return list(suggestions)

    def get_quick_wins(self) -> List[RebalancingSuggestion]:
        return impact.get_quick_wins(self.generate_suggestions())

    def get_top_suggestion(self) -> Optional[RebalancingSuggestion]:
        return impact.get_top_suggestion(self.generate_suggestions())

    def get_total_potential_impact(self) -> SuggestionImpact:
        """Upper-bound sum over alternative suggestions; see engine.impact."""
        return impact.total_potential_impact(self.generate_suggestions())

    def get_suggestion_by_id(self, suggestion_id: str) -> Optional[RebalancingSuggestion]:
        return impact.get_suggestion_by_id(self.generate_suggestions(), suggestion_id)

    def apply_suggestion(self, suggestion: Union[RebalancingSuggestion, str]) -> ApplyResult:
        if isinstance(suggestion, str):
            found = self.get_suggestion_by_id(suggestion)
            if found is None:
                return ApplyResult(
                    success=False,
                    summary="Failed to apply suggestion",
                    error=f"Suggestion {suggestion} not found",
                )
            suggestion = found
        try:
            return self.applier.apply_suggestion(suggestion)
        finally:
            self._invalidate()

    def apply_multiple_suggestions(self, suggestion_ids: Sequence[str]) -> BatchApplyResult:
        suggestions = self.generate_suggestions()
        try:
            return self.applier.apply_multiple_suggestions(suggestion_ids, suggestions)
        finally:
            self._invalidate()

    def update_task_status(
        self,
        task_id: str,
        new_status: TaskStatus,
        actual_hours: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> Optional[Task]:
        """Explicit status change. Returns None if the task does not exist."""
        with self.store.lock:
            task = self.store.get_task(task_id)
            if task is None:
                logger.warning(f"Task with id {task_id} not found")
                return None
            updates = update_task_status(task, new_status, actual_hours, now=now)
            updated = self.store.update_task(task_id, updates)
        self._invalidate()
        logger.debug(f"Task {task_id} status {task.status} -> {updated.status}")
        return updated

    def get_channel_completion_rate(self, channel_id: str) -> int:
        return calculate_channel_completion_rate(self.store.get_schedule().tasks, channel_id)

    def get_time_accuracy(self, channel_id: Optional[str] = None) -> TimeAccuracy:
        return calculate_time_accuracy(self.store.get_schedule().tasks, channel_id)
