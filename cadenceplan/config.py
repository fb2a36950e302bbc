"""Environment-driven configuration for cadenceplan.

Values are read from the process environment, with a `.env` file loaded
first when present.
"""

import os
from typing import Optional

from dotenv import load_dotenv

from cadenceplan.models.constants import DEFAULT_WEEKLY_CAPACITY_HOURS, OVERDUE_SWEEP_INTERVAL_MINUTES
from cadenceplan.models.suggestion import RebalancingOptions

load_dotenv()

# Storage - SQLite by default
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./cadenceplan.db")


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def get_default_weekly_capacity_hours() -> float:
    return float(os.getenv("DEFAULT_WEEKLY_CAPACITY_HOURS", str(DEFAULT_WEEKLY_CAPACITY_HOURS)))


def get_sweep_interval_minutes() -> int:
    """Minutes between overdue sweeps (at least 1)."""
    return max(1, int(os.getenv("OVERDUE_SWEEP_INTERVAL_MINUTES", str(OVERDUE_SWEEP_INTERVAL_MINUTES))))


def load_rebalancing_options() -> RebalancingOptions:
    """Default rebalancing policy, read at call time so tests can patch the environment."""
    raw_max_daily: Optional[str] = os.getenv("REBALANCE_MAX_DAILY_HOURS")
    return RebalancingOptions(
        max_daily_hours=float(raw_max_daily) if raw_max_daily else None,
        allow_cross_channel_rebalancing=_env_flag("REBALANCE_ALLOW_CROSS_CHANNEL", True),
        preserve_deadlines=_env_flag("REBALANCE_PRESERVE_DEADLINES", True),
    )
