"""Tests for applying rebalancing suggestions to a store."""

import pytest
from datetime import timedelta

from cadenceplan.engine.applier import SuggestionApplier
from cadenceplan.engine.suggestions import generate_suggestions
from cadenceplan.engine.workload import calculate_workload_metrics
from cadenceplan.models.suggestion import (
    ActionType,
    EffortLevel,
    RebalancingAction,
    RebalancingOptions,
    RebalancingSuggestion,
    ScheduleWindow,
    SuggestionPriority,
    SuggestionType,
)
from cadenceplan.store import InMemoryScheduleStore, StoreWriteError


class FailingStore(InMemoryScheduleStore):
    """Store that rejects every update."""

    def update_task(self, task_id, fields):
        raise StoreWriteError(f"disk full while writing {task_id}")


@pytest.fixture
def suggestions(overloaded_schedule, tight_settings, channels, at):
    metrics = calculate_workload_metrics(overloaded_schedule, tight_settings, channels)
    return generate_suggestions(
        overloaded_schedule, tight_settings, metrics, RebalancingOptions(preserve_deadlines=False), now=at(0, 0)
    )


def _by_id(suggestions, suggestion_id):
    return next(s for s in suggestions if s.id == suggestion_id)


def _drop_suggestion(task):
    return RebalancingSuggestion(
        id="reduce_scope-manual",
        type=SuggestionType.REDUCE_SCOPE,
        priority=SuggestionPriority.LOW,
        title="Drop",
        description="Drop one task",
        actions=[
            RebalancingAction(
                type=ActionType.REDUCE_SCOPE,
                task_id=task.id,
                task_title=task.title,
                channel_id=task.channel_id,
                current_schedule=ScheduleWindow(
                    start=task.scheduled_start, end=task.scheduled_end, hours=task.estimated_hours
                ),
                proposed_schedule=None,
                reason="Drop",
            )
        ],
        estimated_effort=EffortLevel.LOW,
    )


class TestApplySuggestion:
    """Test SuggestionApplier.apply_suggestion()."""

    def test_moves_tasks(self, memory_store, suggestions, at):
        result = SuggestionApplier(memory_store).apply_suggestion(_by_id(suggestions, "redistribute_daily-2024-01-05"))

        assert result.success is True
        assert result.applied_count == 2
        assert result.total_actions == 2
        assert result.summary == "Applied 2 of 2 suggested changes"

        moved = memory_store.get_task("g1")
        assert moved.scheduled_start == at(1, 9)
        assert moved.scheduled_end == at(1, 10, 30)

    def test_trims_scope(self, memory_store, suggestions, at):
        SuggestionApplier(memory_store).apply_suggestion(_by_id(suggestions, "reduce_scope-2024-01-01"))

        trimmed = memory_store.get_task("v1")
        assert trimmed.estimated_hours == 3
        assert trimmed.scheduled_start == at(5, 9)
        assert trimmed.scheduled_end == at(5, 12)

    def test_reschedules_to_next_week(self, memory_store, suggestions, at):
        SuggestionApplier(memory_store).apply_suggestion(_by_id(suggestions, "extend_timeline-2024-01-01"))

        deferred = memory_store.get_task("v1")
        assert deferred.scheduled_start == at(12, 9)
        assert deferred.scheduled_end == at(12, 13)

    def test_drops_task(self, memory_store):
        task = memory_store.get_task("v1")
        result = SuggestionApplier(memory_store).apply_suggestion(_drop_suggestion(task))

        assert result.applied_count == 1
        assert memory_store.get_task("v1") is None

    def test_stale_suggestion_is_skipped(self, memory_store, suggestions):
        """Actions whose tasks are gone are skipped and the result still succeeds."""
        memory_store.delete_task("g1")
        memory_store.delete_task("g2")

        result = SuggestionApplier(memory_store).apply_suggestion(_by_id(suggestions, "redistribute_daily-2024-01-05"))

        assert result.success is True
        assert result.applied_count == 0
        assert result.summary == "Applied 0 of 2 suggested changes"

    def test_partially_stale_suggestion(self, memory_store, suggestions, at):
        memory_store.delete_task("g1")

        result = SuggestionApplier(memory_store).apply_suggestion(_by_id(suggestions, "redistribute_daily-2024-01-05"))

        assert result.summary == "Applied 1 of 2 suggested changes"
        assert memory_store.get_task("g2").scheduled_start == at(2, 9)

    def test_store_failure_is_reported(self, overloaded_schedule, suggestions):
        store = FailingStore(overloaded_schedule)
        result = SuggestionApplier(store).apply_suggestion(_by_id(suggestions, "redistribute_daily-2024-01-05"))

        assert result.success is False
        assert result.applied_count == 0
        assert result.summary == "Failed to apply suggestion after 0 of 2 changes"
        assert "disk full" in result.error

    def test_rejected_update_is_reported(self, memory_store, at):
        """An update that would break a task invariant surfaces as a failure."""
        task = memory_store.get_task("g1")
        bad = RebalancingSuggestion(
            id="redistribute_daily-bad",
            type=SuggestionType.REDISTRIBUTE_DAILY,
            priority=SuggestionPriority.LOW,
            title="Bad",
            description="Bad",
            actions=[
                RebalancingAction(
                    type=ActionType.MOVE_TASK,
                    task_id=task.id,
                    task_title=task.title,
                    channel_id=task.channel_id,
                    current_schedule=ScheduleWindow(
                        start=task.scheduled_start, end=task.scheduled_end, hours=task.estimated_hours
                    ),
                    proposed_schedule=ScheduleWindow(
                        start=at(1, 9), end=at(1, 9) - timedelta(hours=1), hours=1
                    ),
                    reason="Bad",
                )
            ],
            estimated_effort=EffortLevel.LOW,
        )
        result = SuggestionApplier(memory_store).apply_suggestion(bad)

        assert result.success is False
        assert memory_store.get_task("g1").scheduled_start == task.scheduled_start


class TestApplyMultipleSuggestions:
    """Test SuggestionApplier.apply_multiple_suggestions()."""

    def test_applies_in_order(self, memory_store, suggestions):
        ids = ["redistribute_daily-2024-01-05", "reduce_scope-2024-01-01"]
        result = SuggestionApplier(memory_store).apply_multiple_suggestions(ids, suggestions)

        assert result.success is True
        assert result.applied_count == 2
        assert result.failed_count == 0
        assert len(result.summaries) == 2

    def test_unknown_id_is_counted_as_failure(self, memory_store, suggestions):
        ids = ["redistribute_daily-2024-01-05", "missing"]
        result = SuggestionApplier(memory_store).apply_multiple_suggestions(ids, suggestions)

        assert result.success is False
        assert result.applied_count == 1
        assert result.failed_count == 1
        assert result.errors == ["Suggestion missing not found"]

    def test_overlapping_suggestions_apply_independently(self, memory_store, suggestions):
        """Daily and channel redistribution both move g1 and g2; the second simply re-times them."""
        ids = ["redistribute_daily-2024-01-05", "redistribute_channel-gaming"]
        result = SuggestionApplier(memory_store).apply_multiple_suggestions(ids, suggestions)

        assert result.applied_count == 2
        assert result.summaries[1] == "Applied 2 of 2 suggested changes"

    def test_earlier_suggestions_are_kept_after_failure(self, overloaded_schedule, suggestions):
        store = FailingStore(overloaded_schedule)
        task = store.get_task("v1")
        ids = ["reduce_scope-manual", "redistribute_daily-2024-01-05"]
        result = SuggestionApplier(store).apply_multiple_suggestions(ids, [*suggestions, _drop_suggestion(task)])

        assert result.applied_count == 1
        assert result.failed_count == 1
        assert store.get_task("v1") is None
