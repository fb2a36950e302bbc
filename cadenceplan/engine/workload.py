"""Workload calculation for cadenceplan.

Turns a weekly schedule and user settings into aggregate, per-day and
per-channel metrics. Every function here is pure and total: malformed
settings degrade to zero slack instead of raising.
"""

import logging
import math
from collections import defaultdict
from datetime import date
from typing import Dict, List, Optional, Sequence

from cadenceplan.models.channel import Channel
from cadenceplan.models.constants import (
    CHANNEL_IMBALANCE_FACTOR,
    DAY_NAMES,
    HIGH_SEVERITY_UTILIZATION,
    MEDIUM_SEVERITY_UTILIZATION,
    TREND_THRESHOLD_POINTS,
)
from cadenceplan.models.schedule import UserSettings, WeeklySchedule
from cadenceplan.models.task import Task
from cadenceplan.models.workload import (
    ChannelWorkload,
    DailyWorkload,
    OverloadWarning,
    TrendDirection,
    WarningSeverity,
    WarningType,
    WorkloadDistribution,
    WorkloadMetrics,
    WorkloadTrend,
)
from cadenceplan.engine.status import calculate_channel_completion_rate

logger = logging.getLogger(__name__)


def calculate_total_scheduled_hours(tasks: Sequence[Task]) -> float:
    """Sum of estimated hours over every task."""
    return math.fsum(task.estimated_hours for task in tasks)


def calculate_daily_capacity(weekly_capacity_hours: float, working_days: Sequence[str]) -> float:
    """Per-day threshold: weekly capacity spread over working days.

    No working days means no day has any capacity.
    """
    if not working_days:
        return 0.0
    return weekly_capacity_hours / len(working_days)


def calculate_utilization(total_scheduled_hours: float, capacity_hours: float) -> float:
    """Utilization percentage with zero capacity clamped.

    With no capacity, any scheduled work is reported as 100% utilization.
    """
    if capacity_hours <= 0:
        return 100.0 if total_scheduled_hours > 0 else 0.0
    return total_scheduled_hours / capacity_hours * 100


def calculate_daily_breakdown(
    tasks: Sequence[Task],
    days: Sequence[date],
    daily_capacity_hours: float,
    working_days: Sequence[str],
) -> List[DailyWorkload]:
    """One entry per calendar day; a task belongs to the day it starts on."""
    tasks_by_day: Dict[date, List[Task]] = defaultdict(list)
    for task in tasks:
        tasks_by_day[task.scheduled_date].append(task)

    breakdown = []
    for day in days:
        day_tasks = tasks_by_day.get(day, [])
        scheduled_hours = calculate_total_scheduled_hours(day_tasks)
        day_name = DAY_NAMES[day.weekday()]
        breakdown.append(
            DailyWorkload(
                date=day,
                day_name=day_name,
                scheduled_hours=scheduled_hours,
                tasks=day_tasks,
                is_overloaded=scheduled_hours > daily_capacity_hours,
                is_working_day=day_name in working_days,
            )
        )
    return breakdown


def calculate_channel_breakdown(
    tasks: Sequence[Task],
    channels: Optional[Sequence[Channel]] = None,
) -> List[ChannelWorkload]:
    """Per-channel hours, task count and completion rate.

    Registry channels come first in registry order. Channel ids that only
    appear on tasks are appended, labelled with their id.
    """
    names: Dict[str, str] = {}
    for channel in channels or []:
        names[channel.id] = channel.name
    for task in tasks:
        names.setdefault(task.channel_id, task.channel_id)

    breakdown = []
    for channel_id, channel_name in names.items():
        channel_tasks = [task for task in tasks if task.channel_id == channel_id]
        breakdown.append(
            ChannelWorkload(
                channel_id=channel_id,
                channel_name=channel_name,
                scheduled_hours=calculate_total_scheduled_hours(channel_tasks),
                task_count=len(channel_tasks),
                completion_rate=calculate_channel_completion_rate(tasks, channel_id),
            )
        )
    return breakdown


def calculate_distribution(daily_breakdown: Sequence[DailyWorkload]) -> WorkloadDistribution:
    """Score how evenly hours are spread across working days.

    Efficiency is 100 minus the variance normalised by the mean daily load,
    floored at 0. Without working days there is nothing to distribute.
    """
    working = [day for day in daily_breakdown if day.is_working_day]
    if not working:
        return WorkloadDistribution(efficiency=0.0, variance=0.0)

    hours = [day.scheduled_hours for day in working]
    avg = math.fsum(hours) / len(hours)
    variance = math.fsum((h - avg) ** 2 for h in hours) / len(hours)
    if avg <= 0:
        return WorkloadDistribution(efficiency=100.0, variance=variance)
    efficiency = max(0.0, 100.0 - (variance / avg) * 100.0)
    return WorkloadDistribution(efficiency=efficiency, variance=variance)


def calculate_workload_metrics(
    schedule: WeeklySchedule,
    settings: UserSettings,
    channels: Optional[Sequence[Channel]] = None,
    daily_capacity_hours: Optional[float] = None,
) -> WorkloadMetrics:
    """Compute workload metrics for one schedule snapshot.

    Args:
        schedule: Week to analyse
        settings: User capacity and working pattern
        channels: Channel registry used to label the channel breakdown
        daily_capacity_hours: Per-day threshold override (defaults to
            weekly capacity / number of working days)

    Returns:
        WorkloadMetrics for the snapshot
    """
    if daily_capacity_hours is None:
        daily_capacity_hours = calculate_daily_capacity(
            settings.weekly_capacity_hours, settings.working_days
        )

    total = schedule.total_scheduled_hours
    capacity = schedule.user_capacity_hours
    daily_breakdown = calculate_daily_breakdown(
        schedule.tasks, schedule.days(), daily_capacity_hours, settings.working_days
    )

    metrics = WorkloadMetrics(
        total_scheduled_hours=total,
        capacity_hours=capacity,
        daily_capacity_hours=daily_capacity_hours,
        utilization_percentage=calculate_utilization(total, capacity),
        overload_hours=max(0.0, total - capacity),
        is_overloaded=total > capacity,
        daily_breakdown=daily_breakdown,
        channel_breakdown=calculate_channel_breakdown(schedule.tasks, channels),
        distribution=calculate_distribution(daily_breakdown),
    )
    logger.debug(
        f"Workload for week of {schedule.week_start_date}: "
        f"{total:.1f}h / {capacity:.1f}h ({metrics.utilization_percentage:.1f}%)"
    )
    return metrics


def get_overload_severity(utilization_percentage: float) -> WarningSeverity:
    if utilization_percentage >= HIGH_SEVERITY_UTILIZATION:
        return WarningSeverity.HIGH
    if utilization_percentage >= MEDIUM_SEVERITY_UTILIZATION:
        return WarningSeverity.MEDIUM
    return WarningSeverity.LOW


def detect_overload_warnings(metrics: WorkloadMetrics) -> List[OverloadWarning]:
    """Weekly, daily and channel-imbalance warnings for a set of metrics."""
    warnings: List[OverloadWarning] = []

    if metrics.is_overloaded:
        severity = get_overload_severity(metrics.utilization_percentage)
        warnings.append(
            OverloadWarning(
                type=WarningType.WEEKLY,
                severity=severity,
                message=(
                    f"Weekly workload exceeds capacity by {metrics.overload_hours:.1f} hours "
                    f"({metrics.utilization_percentage:.1f}% utilization)"
                ),
                suggested_action=(
                    "Consider rescheduling tasks or extending the timeline"
                    if severity == WarningSeverity.HIGH
                    else "Monitor workload and consider minor adjustments"
                ),
            )
        )

    for day in metrics.working_days_breakdown():
        if day.is_overloaded:
            warnings.append(
                OverloadWarning(
                    type=WarningType.DAILY,
                    severity=WarningSeverity.MEDIUM,
                    message=f"{day.day_name} is overloaded with {day.scheduled_hours:.1f} hours scheduled",
                    suggested_action="Redistribute tasks to other days or reduce scope",
                    affected_date=day.date,
                )
            )

    if metrics.channel_breakdown:
        avg_channel_hours = metrics.total_scheduled_hours / len(metrics.channel_breakdown)
        for channel in metrics.channel_breakdown:
            if channel.scheduled_hours > avg_channel_hours * CHANNEL_IMBALANCE_FACTOR:
                warnings.append(
                    OverloadWarning(
                        type=WarningType.CHANNEL,
                        severity=WarningSeverity.LOW,
                        message=(
                            f"{channel.channel_name} has disproportionately high workload "
                            f"({channel.scheduled_hours:.1f} hours)"
                        ),
                        suggested_action="Consider balancing workload across channels",
                        affected_channel_id=channel.channel_id,
                    )
                )

    return warnings


def get_workload_trend(
    current: WorkloadMetrics,
    previous: Optional[WorkloadMetrics] = None,
) -> WorkloadTrend:
    """Compare utilization against a previous week."""
    if previous is None:
        return WorkloadTrend(
            trend=TrendDirection.STABLE,
            change=0.0,
            message="No previous data available for comparison",
        )

    change = current.utilization_percentage - previous.utilization_percentage
    if abs(change) < TREND_THRESHOLD_POINTS:
        sign = "+" if change > 0 else ""
        return WorkloadTrend(
            trend=TrendDirection.STABLE,
            change=change,
            message=f"Workload is stable ({sign}{change:.1f}% change)",
        )

    direction = TrendDirection.INCREASING if change > 0 else TrendDirection.DECREASING
    return WorkloadTrend(
        trend=direction,
        change=change,
        message=f"Workload is {direction.value} by {abs(change):.1f}%",
    )
