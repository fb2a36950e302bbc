"""Constants for cadenceplan.

This module centralizes all magic numbers and default values used throughout the engine.
"""

from datetime import time


# Day names indexed by date.weekday()
DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
DAYS_PER_WEEK = 7

# User settings defaults
DEFAULT_WEEKLY_CAPACITY_HOURS = 40.0
DEFAULT_WORKING_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]
DEFAULT_WORKING_HOURS_START = time(9, 0)
DEFAULT_WORKING_HOURS_END = time(17, 0)

# Task statuses that the rebalancer is allowed to move, trim or defer
MOVABLE_STATUSES = ("planned", "in-progress")

# Placement of moved tasks
PLACEMENT_GRANULARITY_MINUTES = 30

# Suggestion generation
MAX_ACTIONS_PER_SUGGESTION = 5
CHANNEL_IMBALANCE_FACTOR = 1.5
MIN_TRIMMED_TASK_HOURS = 0.5
TIMELINE_EXTENSION_DAYS = 7
HOURS_EPSILON = 1e-9

# Priority/effort classification
HIGH_PRIORITY_RESOLVED_RATIO = 0.75
MEDIUM_PRIORITY_RESOLVED_RATIO = 0.35
DISRUPTIVE_ACTION_COUNT = 3
DISRUPTIVE_DAY_COUNT = 3
LOW_EFFORT_MAX_ACTIONS = 2
HIGH_EFFORT_MIN_ACTIONS = 5

# Quick wins
QUICK_WIN_MIN_UTILIZATION_IMPROVEMENT = 5.0

# Overload warnings and trend detection
HIGH_SEVERITY_UTILIZATION = 150.0
MEDIUM_SEVERITY_UTILIZATION = 120.0
TREND_THRESHOLD_POINTS = 5.0

# Overdue sweep
OVERDUE_SWEEP_INTERVAL_MINUTES = 5
