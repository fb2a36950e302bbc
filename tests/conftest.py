"""Pytest fixtures and configuration for cadenceplan tests."""

import pytest
from datetime import date, datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from cadenceplan.database.database import Base, init_db
from cadenceplan.models.channel import Channel
from cadenceplan.models.schedule import UserSettings, WeeklySchedule
from cadenceplan.models.task import Task, TaskStatus, TaskPriority
from cadenceplan.store import InMemoryScheduleStore


# Monday
WEEK_START = date(2024, 1, 1)

# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


def _at(day_offset: int, hour: int, minute: int = 0) -> datetime:
    """Datetime `day_offset` days after WEEK_START at hour:minute."""
    return datetime.combine(WEEK_START + timedelta(days=day_offset), datetime.min.time()).replace(
        hour=hour, minute=minute
    )


@pytest.fixture
def week_start():
    return WEEK_START


@pytest.fixture
def at():
    """Build datetimes relative to the test week: at(day_offset, hour, minute=0)."""
    return _at


@pytest.fixture
def sample_task_base():
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    return {
        "id": "task-1",
        "channel_id": "gaming",
        "template_id": None,
        "title": "Test Task",
        "estimated_hours": 2.0,
        "status": TaskStatus.PLANNED,
        "scheduled_start": _at(0, 9),
        "scheduled_end": _at(0, 11),
        "actual_hours": None,
        "priority": TaskPriority.MEDIUM,
        "notes": None,
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def make_task(sample_task_base):
    """Factory for tasks placed by day offset, start time and length."""
    def _make(task_id, day=0, hour=9, hours=2.0, minute=0, **overrides):
        start = _at(day, hour, minute)
        return Task(**{
            **sample_task_base,
            "id": task_id,
            "title": f"Task {task_id}",
            "estimated_hours": hours,
            "scheduled_start": start,
            "scheduled_end": start + timedelta(hours=hours),
            **overrides,
        })
    return _make


@pytest.fixture
def settings():
    """Default user settings: 40h over Monday-Friday, 09:00-17:00."""
    return UserSettings()


@pytest.fixture
def tight_settings():
    """10h over Monday-Friday, so the per-day threshold is 2h."""
    return UserSettings(weekly_capacity_hours=10)


@pytest.fixture
def make_schedule():
    """Factory for a week snapshot from tasks and settings."""
    def _make(tasks, settings=None):
        return WeeklySchedule.from_settings(WEEK_START, tasks, settings or UserSettings())
    return _make


@pytest.fixture
def channels():
    return [
        Channel(id="gaming", name="Gaming", content_type="gaming"),
        Channel(id="edu", name="Educational", content_type="educational"),
    ]


@pytest.fixture
def overloaded_tasks(make_task):
    """An 11h week against 10h capacity.

    Friday carries 4.5h of gaming work against a 2h daily threshold, gaming
    holds more than 1.5x the average channel load, and a 4h vlog task sits
    on Saturday (not a working day).
    """
    return [
        make_task("g1", day=4, hour=9, hours=1.5),
        make_task("g2", day=4, hour=10, minute=30, hours=1.5),
        make_task("g3", day=4, hour=13, hours=1.5),
        make_task("g4", day=3, hour=9, hours=1.5),
        make_task("e1", day=0, hour=9, hours=1.0, channel_id="edu"),
        make_task("v1", day=5, hour=9, hours=4.0, channel_id="vlog"),
    ]


@pytest.fixture
def overloaded_schedule(overloaded_tasks, tight_settings, make_schedule):
    return make_schedule(overloaded_tasks, tight_settings)


@pytest.fixture
def memory_store(overloaded_schedule):
    return InMemoryScheduleStore(overloaded_schedule)


@pytest.fixture(scope="function")
def db_session():
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    init_db(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
