"""Tests for impact estimation, classification and suggestion lookups."""

import pytest
from datetime import timedelta

from cadenceplan.engine.impact import (
    calculate_hours_reduced,
    classify_effort,
    classify_priority,
    estimate_impact,
    filter_by_effort,
    filter_by_priority,
    filter_by_type,
    get_quick_wins,
    get_suggestion_by_id,
    get_top_suggestion,
    rank_suggestions,
    total_potential_impact,
)
from cadenceplan.models.suggestion import (
    ActionType,
    EffortLevel,
    RebalancingAction,
    RebalancingSuggestion,
    ScheduleWindow,
    SuggestionImpact,
    SuggestionPriority,
    SuggestionType,
)


@pytest.fixture
def make_action(at):
    """Factory for actions on a task starting at 09:00 on `day`."""
    def _make(task_id, hours=2.0, day=0, channel_id="gaming", action_type=ActionType.MOVE_TASK,
              proposed_hours=None, proposed_day=None):
        start = at(day, 9)
        current = ScheduleWindow(start=start, end=start + timedelta(hours=hours), hours=hours)
        proposed = None
        if proposed_hours is not None:
            proposed_start = at(proposed_day if proposed_day is not None else day, 9)
            proposed = ScheduleWindow(
                start=proposed_start,
                end=proposed_start + timedelta(hours=proposed_hours),
                hours=proposed_hours,
            )
        return RebalancingAction(
            type=action_type,
            task_id=task_id,
            task_title=f"Task {task_id}",
            channel_id=channel_id,
            current_schedule=current,
            proposed_schedule=proposed,
            reason="test",
        )
    return _make


def _suggestion(suggestion_id, priority, improvement, effort=EffortLevel.LOW,
                suggestion_type=SuggestionType.REDUCE_SCOPE, hours=1.0, affected=1):
    return RebalancingSuggestion(
        id=suggestion_id,
        type=suggestion_type,
        priority=priority,
        title=suggestion_id,
        description=suggestion_id,
        impact=SuggestionImpact(hours_reduced=hours, utilization_improvement=improvement, affected_tasks=affected),
        estimated_effort=effort,
    )


class TestEstimateImpact:
    """Test hours reduced and utilization improvement."""

    def test_move_and_trim(self, make_action):
        actions = [
            make_action("a", hours=2, proposed_hours=2, proposed_day=1),
            make_action("b", hours=4, action_type=ActionType.REDUCE_SCOPE, proposed_hours=3),
        ]
        impact = estimate_impact(actions, capacity_hours=10)

        assert impact.hours_reduced == pytest.approx(3.0)
        assert impact.utilization_improvement == pytest.approx(30.0)
        assert impact.affected_tasks == 2

    def test_drop_counts_full_task(self, make_action):
        actions = [make_action("a", hours=2.5, action_type=ActionType.REDUCE_SCOPE)]
        assert calculate_hours_reduced(actions) == 2.5

    def test_zero_capacity(self, make_action):
        assert estimate_impact([make_action("a")], capacity_hours=0).utilization_improvement == 100
        assert estimate_impact([], capacity_hours=0).utilization_improvement == 0


class TestClassification:
    """Test classify_priority() and classify_effort()."""

    def test_priority_from_resolved_share(self, make_action):
        actions = [make_action("a")]
        assert classify_priority(1, 4, actions) == SuggestionPriority.LOW
        assert classify_priority(2, 4, actions) == SuggestionPriority.MEDIUM
        assert classify_priority(3.2, 4, actions) == SuggestionPriority.HIGH
        assert classify_priority(1, 0, actions) == SuggestionPriority.LOW

    def test_many_actions_lower_priority(self, make_action):
        actions = [make_action(f"t{i}", hours=1) for i in range(4)]
        assert classify_priority(4, 4, actions) == SuggestionPriority.MEDIUM

    def test_many_days_lower_priority(self, make_action):
        actions = [
            make_action("a", day=4, proposed_hours=2, proposed_day=0),
            make_action("b", day=5, proposed_hours=2, proposed_day=1),
        ]
        assert classify_priority(4, 4, actions) == SuggestionPriority.MEDIUM

    def test_low_priority_is_not_lowered_further(self, make_action):
        actions = [make_action(f"t{i}", hours=1) for i in range(5)]
        assert classify_priority(0.1, 10, actions) == SuggestionPriority.LOW

    def test_effort(self, make_action):
        assert classify_effort([make_action("a")]) == EffortLevel.LOW
        assert classify_effort([make_action(f"t{i}") for i in range(3)]) == EffortLevel.MEDIUM
        assert classify_effort([make_action(f"t{i}") for i in range(5)]) == EffortLevel.HIGH
        assert classify_effort([make_action("a"), make_action("b", channel_id="edu")]) == EffortLevel.HIGH


class TestRankingAndLookups:
    """Test ranking, totals, quick wins and lookups."""

    def test_rank_by_priority_then_improvement(self):
        suggestions = [
            _suggestion("low", SuggestionPriority.LOW, 50),
            _suggestion("high-small", SuggestionPriority.HIGH, 5),
            _suggestion("high-big", SuggestionPriority.HIGH, 20),
            _suggestion("medium", SuggestionPriority.MEDIUM, 10),
        ]
        ranked = rank_suggestions(suggestions)
        assert [s.id for s in ranked] == ["high-big", "high-small", "medium", "low"]

    def test_rank_is_stable(self):
        suggestions = [
            _suggestion("first", SuggestionPriority.HIGH, 10),
            _suggestion("second", SuggestionPriority.HIGH, 10),
        ]
        assert [s.id for s in rank_suggestions(suggestions)] == ["first", "second"]

    def test_total_potential_impact_sums_fields(self):
        total = total_potential_impact([
            _suggestion("a", SuggestionPriority.HIGH, 20, hours=2, affected=2),
            _suggestion("b", SuggestionPriority.LOW, 10, hours=1, affected=1),
        ])
        assert total.hours_reduced == 3
        assert total.utilization_improvement == 30
        assert total.affected_tasks == 3

    def test_quick_wins(self):
        suggestions = [
            _suggestion("quick", SuggestionPriority.MEDIUM, 5),
            _suggestion("too-small", SuggestionPriority.HIGH, 4.9),
            _suggestion("too-hard", SuggestionPriority.HIGH, 30, effort=EffortLevel.MEDIUM),
        ]
        quick = get_quick_wins(suggestions)

        assert [s.id for s in quick] == ["quick"]
        assert all(s in suggestions for s in quick)

    def test_filters(self):
        suggestions = [
            _suggestion("a", SuggestionPriority.HIGH, 10, suggestion_type=SuggestionType.REDISTRIBUTE_DAILY),
            _suggestion("b", SuggestionPriority.LOW, 10, effort=EffortLevel.HIGH),
        ]
        assert [s.id for s in filter_by_priority(suggestions, SuggestionPriority.HIGH)] == ["a"]
        assert [s.id for s in filter_by_type(suggestions, "reduce_scope")] == ["b"]
        assert [s.id for s in filter_by_effort(suggestions, EffortLevel.HIGH)] == ["b"]

    def test_lookups(self):
        suggestions = [
            _suggestion("a", SuggestionPriority.LOW, 10),
            _suggestion("b", SuggestionPriority.HIGH, 10),
        ]
        assert get_suggestion_by_id(suggestions, "a").id == "a"
        assert get_suggestion_by_id(suggestions, "missing") is None
        assert get_top_suggestion(suggestions).id == "b"
        assert get_top_suggestion([]) is None
