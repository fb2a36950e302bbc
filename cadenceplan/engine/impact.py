"""Impact estimation and classification of rebalancing suggestions.

Suggestions are alternatives, not a combined plan. `total_potential_impact`
therefore sums fields across suggestions that may touch the same task and
must be read as an upper bound, never as what applying all of them achieves.
"""

import math
from typing import List, Optional, Sequence

from cadenceplan.models.constants import (
    DISRUPTIVE_ACTION_COUNT,
    DISRUPTIVE_DAY_COUNT,
    HIGH_EFFORT_MIN_ACTIONS,
    HIGH_PRIORITY_RESOLVED_RATIO,
    LOW_EFFORT_MAX_ACTIONS,
    MEDIUM_PRIORITY_RESOLVED_RATIO,
    QUICK_WIN_MIN_UTILIZATION_IMPROVEMENT,
)
from cadenceplan.models.suggestion import (
    LEVEL_RANK,
    ActionType,
    EffortLevel,
    RebalancingAction,
    RebalancingSuggestion,
    SuggestionImpact,
    SuggestionPriority,
    SuggestionType,
)


def calculate_hours_reduced(actions: Sequence[RebalancingAction]) -> float:
    """Hours taken off the overloaded day, channel or week by the actions.

    Moves and deferrals de-load the full task; a trim de-loads the difference;
    a drop de-loads the full task.
    """
    total = []
    for action in actions:
        if action.type == ActionType.REDUCE_SCOPE and action.proposed_schedule is not None:
            total.append(action.current_schedule.hours - action.proposed_schedule.hours)
        else:
            total.append(action.current_schedule.hours)
    return math.fsum(total)


def estimate_impact(actions: Sequence[RebalancingAction], capacity_hours: float) -> SuggestionImpact:
    hours_reduced = calculate_hours_reduced(actions)
    if capacity_hours > 0:
        improvement = hours_reduced / capacity_hours * 100
    else:
        improvement = 100.0 if hours_reduced > 0 else 0.0
    return SuggestionImpact(
        hours_reduced=hours_reduced,
        utilization_improvement=improvement,
        affected_tasks=len(actions),
    )


def _days_touched(actions: Sequence[RebalancingAction]) -> int:
    days = set()
    for action in actions:
        days.add(action.current_schedule.start.date())
        if action.proposed_schedule is not None:
            days.add(action.proposed_schedule.start.date())
    return len(days)


def classify_priority(
    hours_reduced: float,
    target_hours: float,
    actions: Sequence[RebalancingAction],
) -> SuggestionPriority:
    """Priority from the share of the overload resolved, lowered for disruptive plans.

    Args:
        hours_reduced: Hours the suggestion takes off
        target_hours: Overload the suggestion is trying to close
        actions: The suggestion's actions

    Returns:
        SuggestionPriority
    """
    resolved = min(1.0, hours_reduced / target_hours) if target_hours > 0 else 0.0
    if resolved >= HIGH_PRIORITY_RESOLVED_RATIO:
        rank = LEVEL_RANK["high"]
    elif resolved >= MEDIUM_PRIORITY_RESOLVED_RATIO:
        rank = LEVEL_RANK["medium"]
    else:
        rank = LEVEL_RANK["low"]

    if len(actions) > DISRUPTIVE_ACTION_COUNT or _days_touched(actions) > DISRUPTIVE_DAY_COUNT:
        rank = max(LEVEL_RANK["low"], rank - 1)

    return {1: SuggestionPriority.LOW, 2: SuggestionPriority.MEDIUM, 3: SuggestionPriority.HIGH}[rank]


def classify_effort(actions: Sequence[RebalancingAction]) -> EffortLevel:
    """Few same-channel actions are low effort; many or cross-channel are high."""
    channels = {action.channel_id for action in actions}
    if len(channels) > 1 or len(actions) >= HIGH_EFFORT_MIN_ACTIONS:
        return EffortLevel.HIGH
    if len(actions) <= LOW_EFFORT_MAX_ACTIONS:
        return EffortLevel.LOW
    return EffortLevel.MEDIUM


def rank_suggestions(suggestions: Sequence[RebalancingSuggestion]) -> List[RebalancingSuggestion]:
    """Highest priority first, then largest utilization improvement. Stable."""
    return sorted(
        suggestions,
        key=lambda s: (-LEVEL_RANK[s.priority], -s.impact.utilization_improvement),
    )


def total_potential_impact(suggestions: Sequence[RebalancingSuggestion]) -> SuggestionImpact:
    """Field-wise sum of every suggestion's impact.

    This is an upper-bound estimate: suggestions are alternatives and several
    of them can count the same task, so applying all of them achieves less.
    """
    return SuggestionImpact(
        hours_reduced=math.fsum(s.impact.hours_reduced for s in suggestions),
        utilization_improvement=math.fsum(s.impact.utilization_improvement for s in suggestions),
        affected_tasks=sum(s.impact.affected_tasks for s in suggestions),
    )


def get_quick_wins(suggestions: Sequence[RebalancingSuggestion]) -> List[RebalancingSuggestion]:
    """Low-effort suggestions that improve utilization by at least 5 points."""
    return [
        s
        for s in suggestions
        if s.estimated_effort == EffortLevel.LOW
        and s.impact.utilization_improvement >= QUICK_WIN_MIN_UTILIZATION_IMPROVEMENT
    ]


def filter_by_priority(suggestions: Sequence[RebalancingSuggestion], priority: SuggestionPriority) -> List[RebalancingSuggestion]:
    return [s for s in suggestions if s.priority == SuggestionPriority(priority)]


def filter_by_type(suggestions: Sequence[RebalancingSuggestion], suggestion_type: SuggestionType) -> List[RebalancingSuggestion]:
    return [s for s in suggestions if s.type == SuggestionType(suggestion_type)]


def filter_by_effort(suggestions: Sequence[RebalancingSuggestion], effort: EffortLevel) -> List[RebalancingSuggestion]:
    return [s for s in suggestions if s.estimated_effort == EffortLevel(effort)]


def get_suggestion_by_id(suggestions: Sequence[RebalancingSuggestion], suggestion_id: str) -> Optional[RebalancingSuggestion]:
    for suggestion in suggestions:
        if suggestion.id == suggestion_id:
            return suggestion
    return None


def get_top_suggestion(suggestions: Sequence[RebalancingSuggestion]) -> Optional[RebalancingSuggestion]:
    ranked = rank_suggestions(suggestions)
    return ranked[0] if ranked else None
