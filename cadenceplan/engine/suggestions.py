"""Rebalancing suggestion generation for cadenceplan.

Greedy, explainable strategies that each propose an alternative way to bring
an overloaded week back within capacity:

1. Daily redistribution: move tasks off days above the per-day threshold
2. Channel redistribution: re-time tasks of a disproportionately loaded channel
3. Scope reduction: trim or drop low-priority work to close the weekly gap
4. Timeline extension: defer work to next week (only when deadlines may slip)

Generation is deterministic: same inputs always produce the same suggestions,
in the same order, with the same ids.
"""

import logging
import math
from datetime import date, datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from cadenceplan.engine.conflicts import find_first_slot, place_after_last_task
from cadenceplan.engine.impact import (
    classify_effort,
    classify_priority,
    estimate_impact,
    rank_suggestions,
)
from cadenceplan.models.constants import (
    CHANNEL_IMBALANCE_FACTOR,
    HOURS_EPSILON,
    MAX_ACTIONS_PER_SUGGESTION,
    MIN_TRIMMED_TASK_HOURS,
    MOVABLE_STATUSES,
    TIMELINE_EXTENSION_DAYS,
)
from cadenceplan.models.schedule import UserSettings, WeeklySchedule, WorkingHours
from cadenceplan.models.suggestion import (
    ActionType,
    RebalancingAction,
    RebalancingOptions,
    RebalancingSuggestion,
    ScheduleWindow,
    SuggestionType,
)
from cadenceplan.models.task import PRIORITY_RANK, Task, TaskPriority, to_naive_local
from cadenceplan.models.workload import DailyWorkload, WorkloadMetrics

logger = logging.getLogger(__name__)


class _DayPlan:
    """Mutable load of one day while a strategy claims slack."""

    def __init__(self, day: DailyWorkload):
        self.date = day.date
        self.day_name = day.day_name
        self.is_working_day = day.is_working_day
        self.load = day.scheduled_hours
        self.tasks = list(day.tasks)
        self.busy = [(task.scheduled_start, task.scheduled_end) for task in day.tasks]


class _SlackPlan:
    """Per-day loads for one strategy run.

    Each strategy gets its own plan, since strategies are alternatives.
    Suggestions from the same strategy share it so they never double-book a day.
    """

    def __init__(self, metrics: WorkloadMetrics, threshold: float, working_hours: WorkingHours):
        self.threshold = threshold
        self.working_hours = working_hours
        self.days: Dict[date, _DayPlan] = {day.date: _DayPlan(day) for day in metrics.daily_breakdown}

    def excess(self, day: date) -> float:
        return max(0.0, self.days[day].load - self.threshold)

    def find_target(self, task: Task, preserve_deadlines: bool) -> Optional[_DayPlan]:
        """Least loaded working day (earliest on ties) that can absorb the task."""
        source = task.scheduled_date
        candidates = [
            plan
            for plan in self.days.values()
            if plan.is_working_day
            and plan.date != source
            and plan.load + task.estimated_hours <= self.threshold + HOURS_EPSILON
            and (not preserve_deadlines or plan.date < source)
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda plan: (plan.load, plan.date))

    def move(self, task: Task, target: _DayPlan) -> ScheduleWindow:
        hours = task.estimated_hours
        window = find_first_slot(target.date, hours, target.busy, self.working_hours)
        if window is None:
            window = place_after_last_task(target.date, hours, target.busy, self.working_hours.start)
        target.busy.append((window.start, window.end))
        target.load += hours

        source = self.days.get(task.scheduled_date)
        if source is not None:
            source.load -= hours
            interval = (task.scheduled_start, task.scheduled_end)
            if interval in source.busy:
                source.busy.remove(interval)
        return window


def _is_movable(task: Task) -> bool:
    return task.status in MOVABLE_STATUSES


def _current_window(task: Task) -> ScheduleWindow:
    return ScheduleWindow(start=task.scheduled_start, end=task.scheduled_end, hours=task.estimated_hours)


def _action(task: Task, action_type: ActionType, proposed: Optional[ScheduleWindow], reason: str) -> RebalancingAction:
    return RebalancingAction(
        type=action_type,
        task_id=task.id,
        task_title=task.title,
        channel_id=task.channel_id,
        current_schedule=_current_window(task),
        proposed_schedule=proposed,
        reason=reason,
    )


def _build_suggestion(
    suggestion_id: str,
    suggestion_type: SuggestionType,
    title: str,
    description: str,
    actions: List[RebalancingAction],
    target_hours: float,
    capacity_hours: float,
) -> RebalancingSuggestion:
    impact = estimate_impact(actions, capacity_hours)
    return RebalancingSuggestion(
        id=suggestion_id,
        type=suggestion_type,
        priority=classify_priority(impact.hours_reduced, target_hours, actions),
        title=title,
        description=description,
        impact=impact,
        actions=actions,
        estimated_effort=classify_effort(actions),
    )


def _pick_daily_move(
    plan: _SlackPlan,
    candidates: Sequence[Task],
    excess: float,
    preserve_deadlines: bool,
) -> Optional[Tuple[Task, _DayPlan]]:
    """Choose the next task to move off an overloaded day.

    The smallest task that clears the excess on its own wins. Otherwise the
    largest task that fits somewhere is moved and the search repeats.
    Candidates are sorted by (hours, id), which keeps ties stable.
    """
    for task in candidates:
        if task.estimated_hours + HOURS_EPSILON >= excess:
            target = plan.find_target(task, preserve_deadlines)
            if target is not None:
                return task, target

    for task in sorted(candidates, key=lambda t: (-t.estimated_hours, t.id)):
        target = plan.find_target(task, preserve_deadlines)
        if target is not None:
            return task, target
    return None


def generate_daily_redistribution(
    schedule: WeeklySchedule,
    settings: UserSettings,
    metrics: WorkloadMetrics,
    options: RebalancingOptions,
    threshold: float,
) -> List[RebalancingSuggestion]:
    """One suggestion per overloaded working day, largest excess first."""
    plan = _SlackPlan(metrics, threshold, settings.working_hours)
    overloaded = sorted(
        (day for day in plan.days.values() if day.is_working_day and plan.excess(day.date) > HOURS_EPSILON),
        key=lambda day: (-plan.excess(day.date), day.date),
    )

    suggestions = []
    for source in overloaded:
        initial_excess = plan.excess(source.date)
        candidates = sorted(
            (task for task in source.tasks if _is_movable(task)),
            key=lambda t: (t.estimated_hours, t.id),
        )
        actions: List[RebalancingAction] = []

        while plan.excess(source.date) > HOURS_EPSILON and candidates and len(actions) < MAX_ACTIONS_PER_SUGGESTION:
            choice = _pick_daily_move(plan, candidates, plan.excess(source.date), options.preserve_deadlines)
            if choice is None:
                break
            task, target = choice
            candidates.remove(task)
            window = plan.move(task, target)
            actions.append(
                _action(
                    task,
                    ActionType.MOVE_TASK,
                    window,
                    f"Move from overloaded {source.day_name} to available {target.day_name}",
                )
            )

        if not actions:
            logger.debug(f"No slack found for overloaded {source.day_name} {source.date}")
            continue

        suggestions.append(
            _build_suggestion(
                suggestion_id=f"{SuggestionType.REDISTRIBUTE_DAILY.value}-{source.date.isoformat()}",
                suggestion_type=SuggestionType.REDISTRIBUTE_DAILY,
                title="Redistribute Tasks Across Days",
                description=(
                    f"Move {len(actions)} task(s) off {source.day_name} "
                    f"({initial_excess:.1f}h over the daily limit) to days with spare capacity"
                ),
                actions=actions,
                target_hours=initial_excess,
                capacity_hours=schedule.user_capacity_hours,
            )
        )
    return suggestions


def generate_channel_redistribution(
    schedule: WeeklySchedule,
    settings: UserSettings,
    metrics: WorkloadMetrics,
    options: RebalancingOptions,
    threshold: float,
) -> List[RebalancingSuggestion]:
    """Re-time tasks of channels carrying more than 1.5x the average channel load.

    Tasks keep their channel; only their time window changes, and only tasks
    sitting on a day above the threshold are moved.
    """
    breakdown = metrics.channel_breakdown
    if len(breakdown) < 2:
        return []

    avg_hours = math.fsum(channel.scheduled_hours for channel in breakdown) / len(breakdown)
    heavy = sorted(
        (c for c in breakdown if c.scheduled_hours > avg_hours * CHANNEL_IMBALANCE_FACTOR),
        key=lambda c: (-c.scheduled_hours, c.channel_id),
    )

    plan = _SlackPlan(metrics, threshold, settings.working_hours)
    suggestions = []
    for channel in heavy:
        target_hours = channel.scheduled_hours - avg_hours
        channel_tasks = sorted(
            (
                task
                for task in schedule.tasks
                if task.channel_id == channel.channel_id
                and _is_movable(task)
                and task.scheduled_date in plan.days
            ),
            key=lambda t: (-plan.days[t.scheduled_date].load, t.estimated_hours, t.id),
        )

        actions: List[RebalancingAction] = []
        moved = 0.0
        for task in channel_tasks:
            if moved >= target_hours - HOURS_EPSILON or len(actions) >= MAX_ACTIONS_PER_SUGGESTION:
                break
            source = plan.days[task.scheduled_date]
            if source.load <= threshold + HOURS_EPSILON:
                continue
            target = plan.find_target(task, options.preserve_deadlines)
            if target is None:
                continue
            window = plan.move(task, target)
            moved += task.estimated_hours
            actions.append(
                _action(
                    task,
                    ActionType.MOVE_TASK,
                    window,
                    f"Re-time {channel.channel_name} task from busy {source.day_name} "
                    f"into an open slot on {target.day_name}",
                )
            )

        if not actions:
            continue

        suggestions.append(
            _build_suggestion(
                suggestion_id=f"{SuggestionType.REDISTRIBUTE_CHANNEL.value}-{channel.channel_id}",
                suggestion_type=SuggestionType.REDISTRIBUTE_CHANNEL,
                title=f"Spread {channel.channel_name} Work Across the Week",
                description=(
                    f"{channel.channel_name} carries {channel.scheduled_hours:.1f}h against an average of "
                    f"{avg_hours:.1f}h; re-time {len(actions)} of its task(s) into open slots"
                ),
                actions=actions,
                target_hours=target_hours,
                capacity_hours=schedule.user_capacity_hours,
            )
        )
    return suggestions


def generate_scope_reduction(
    schedule: WeeklySchedule,
    metrics: WorkloadMetrics,
) -> List[RebalancingSuggestion]:
    """Trim or drop low-priority, low-urgency work to close the weekly gap.

    Re-timing never changes the weekly total, so whatever the week is over
    capacity by can only be closed here (or by deferring work).
    """
    gap = metrics.overload_hours
    if gap <= HOURS_EPSILON:
        return []

    completion = {channel.channel_id: channel.completion_rate for channel in metrics.channel_breakdown}
    candidates = sorted(
        (task for task in schedule.tasks if _is_movable(task) and task.priority != TaskPriority.HIGH),
        key=lambda t: (
            PRIORITY_RANK[t.priority],
            -t.scheduled_end.timestamp(),
            -completion.get(t.channel_id, 0),
            t.id,
        ),
    )

    actions: List[RebalancingAction] = []
    remaining = gap
    for task in candidates:
        if remaining <= HOURS_EPSILON or len(actions) >= MAX_ACTIONS_PER_SUGGESTION:
            break
        if task.estimated_hours <= remaining + HOURS_EPSILON:
            actions.append(
                _action(
                    task,
                    ActionType.REDUCE_SCOPE,
                    None,
                    f"Drop {task.priority}-priority task to close the remaining {remaining:.1f}h gap",
                )
            )
            remaining -= task.estimated_hours
            continue

        new_hours = max(MIN_TRIMMED_TASK_HOURS, task.estimated_hours - remaining)
        trimmed = task.estimated_hours - new_hours
        if trimmed <= HOURS_EPSILON:
            continue
        proposed = ScheduleWindow(
            start=task.scheduled_start,
            end=task.scheduled_start + timedelta(hours=new_hours),
            hours=new_hours,
        )
        actions.append(
            _action(
                task,
                ActionType.REDUCE_SCOPE,
                proposed,
                f"Trim scope from {task.estimated_hours:g}h to {new_hours:g}h",
            )
        )
        remaining -= trimmed

    if not actions:
        logger.debug(f"No low-priority work left to trim for week of {schedule.week_start_date}")
        return []

    return [
        _build_suggestion(
            suggestion_id=f"{SuggestionType.REDUCE_SCOPE.value}-{schedule.week_start_date.isoformat()}",
            suggestion_type=SuggestionType.REDUCE_SCOPE,
            title="Reduce Scope of Low-Priority Tasks",
            description=(
                f"Trim or drop {len(actions)} low-priority task(s) to close the "
                f"{gap:.1f}h weekly overload"
            ),
            actions=actions,
            target_hours=gap,
            capacity_hours=schedule.user_capacity_hours,
        )
    ]


def generate_timeline_extension(
    schedule: WeeklySchedule,
    metrics: WorkloadMetrics,
    now: datetime,
) -> List[RebalancingSuggestion]:
    """Defer not-yet-finished, non-critical tasks to next week, latest first."""
    gap = metrics.overload_hours
    if gap <= HOURS_EPSILON:
        return []

    candidates = sorted(
        (
            task
            for task in schedule.tasks
            if _is_movable(task) and task.priority != TaskPriority.HIGH and task.scheduled_end > now
        ),
        key=lambda t: (-t.scheduled_start.timestamp(), t.id),
    )

    shift = timedelta(days=TIMELINE_EXTENSION_DAYS)
    actions: List[RebalancingAction] = []
    remaining = gap
    for task in candidates:
        if remaining <= HOURS_EPSILON or len(actions) >= MAX_ACTIONS_PER_SUGGESTION:
            break
        proposed = ScheduleWindow(
            start=task.scheduled_start + shift,
            end=task.scheduled_end + shift,
            hours=task.estimated_hours,
        )
        actions.append(
            _action(task, ActionType.RESCHEDULE, proposed, "Move to next week to reduce current week overload")
        )
        remaining -= task.estimated_hours

    if not actions:
        return []

    return [
        _build_suggestion(
            suggestion_id=f"{SuggestionType.EXTEND_TIMELINE.value}-{schedule.week_start_date.isoformat()}",
            suggestion_type=SuggestionType.EXTEND_TIMELINE,
            title="Extend Timeline",
            description=f"Move {len(actions)} task(s) to next week to reduce overload",
            actions=actions,
            target_hours=gap,
            capacity_hours=schedule.user_capacity_hours,
        )
    ]


def generate_suggestions(
    schedule: WeeklySchedule,
    settings: UserSettings,
    metrics: WorkloadMetrics,
    options: Optional[RebalancingOptions] = None,
    now: Optional[datetime] = None,
) -> List[RebalancingSuggestion]:
    """Generate ranked rebalancing suggestions for an overloaded week.

    Args:
        schedule: Week snapshot the metrics were computed from
        settings: User capacity and working pattern
        metrics: Output of calculate_workload_metrics for the snapshot
        options: Rebalancing policy (defaults to RebalancingOptions())
        now: Reference time for deferral eligibility (defaults to now)

    Returns:
        Suggestions ranked by priority then utilization improvement; empty
        when the week is not overloaded
    """
    if not metrics.is_overloaded:
        return []

    options = options or RebalancingOptions()
    now = to_naive_local(now) if now is not None else datetime.now()
    threshold = options.max_daily_hours if options.max_daily_hours is not None else metrics.daily_capacity_hours

    suggestions: List[RebalancingSuggestion] = []
    suggestions.extend(generate_daily_redistribution(schedule, settings, metrics, options, threshold))
    if options.allow_cross_channel_rebalancing:
        suggestions.extend(generate_channel_redistribution(schedule, settings, metrics, options, threshold))
    suggestions.extend(generate_scope_reduction(schedule, metrics))
    if not options.preserve_deadlines:
        suggestions.extend(generate_timeline_extension(schedule, metrics, now))

    logger.info(
        f"Generated {len(suggestions)} rebalancing suggestion(s) for week of {schedule.week_start_date} "
        f"({metrics.overload_hours:.1f}h over capacity)"
    )
    return rank_suggestions(suggestions)
