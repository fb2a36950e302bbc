"""Repository layer for database operations."""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from cadenceplan.database.models import ChannelDB, TaskDB
from cadenceplan.models.channel import Channel
from cadenceplan.models.constants import DAYS_PER_WEEK
from cadenceplan.models.schedule import WeeklySchedule
from cadenceplan.models.task import Task
from cadenceplan.store import ScheduleStore, StoreWriteError, TaskNotFoundError

logger = logging.getLogger(__name__)


class TaskRepository(ScheduleStore):
    """Schedule store backed by the tasks table, scoped to one week.

    A task belongs to the week its scheduled start falls in.
    """

    def __init__(self, db: Session, week_start_date: date, capacity_hours: float):
        super().__init__()
        self.db = db
        self.week_start_date = week_start_date
        self.capacity_hours = capacity_hours

    def _week_bounds(self):
        start = datetime.combine(self.week_start_date, time.min)
        return start, start + timedelta(days=DAYS_PER_WEEK)

    def _get_row(self, task_id: str) -> Optional[TaskDB]:
        return self.db.query(TaskDB).filter(TaskDB.id == task_id).first()

    def create(self, task: Task) -> Task:
        """Create a new task."""
        with self.lock:
            try:
                task_db = TaskDB.from_pydantic(task)
                self.db.add(task_db)
                self.db.commit()
                self.db.refresh(task_db)
                logger.debug(f"Created task {task.id}: {task.title[:50]}")
                return task_db.to_pydantic()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
                raise StoreWriteError(f"Failed to create task {task.id}") from e

    def get_task(self, task_id: str) -> Optional[Task]:
        with self.lock:
            task_db = self._get_row(task_id)
            return task_db.to_pydantic() if task_db else None

    def get_all(self) -> List[Task]:
        """Tasks of the week ordered by scheduled start.

        Reads hold the store lock: the session is shared with the sweeper thread.
        """
        start, end = self._week_bounds()
        with self.lock:
            tasks_db = self.db.query(TaskDB).filter(
                TaskDB.scheduled_start >= start,
                TaskDB.scheduled_start < end,
            ).order_by(TaskDB.scheduled_start, TaskDB.id).all()
            return [task_db.to_pydantic() for task_db in tasks_db]

    def get_schedule(self) -> WeeklySchedule:
        return WeeklySchedule(
            week_start_date=self.week_start_date,
            tasks=self.get_all(),
            user_capacity_hours=self.capacity_hours,
        )

    def update_task(self, task_id: str, fields: Dict[str, Any]) -> Task:
        with self.lock:
            task_db = self._get_row(task_id)
            if not task_db:
                raise TaskNotFoundError(f"Task {task_id} not found")

            try:
                updated = Task(**{**task_db.to_pydantic().model_dump(), **fields})
            except ValidationError as e:
                raise StoreWriteError(f"Rejected update of task {task_id}: {e}") from e

            task_db.apply(updated)
            try:
                self.db.commit()
                self.db.refresh(task_db)
                logger.debug(f"Updated task {task_id}: {sorted(fields)}")
                return task_db.to_pydantic()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to update task {task_id}: {type(e).__name__}: {str(e)}")
                raise StoreWriteError(f"Failed to update task {task_id}") from e

    def delete_task(self, task_id: str) -> bool:
        with self.lock:
            task_db = self._get_row(task_id)
            if not task_db:
                return False

            try:
                self.db.delete(task_db)
                self.db.commit()
                logger.debug(f"Deleted task {task_id}")
                return True
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"Failed to delete task {task_id}: {type(e).__name__}: {str(e)}")
                raise StoreWriteError(f"Failed to delete task {task_id}") from e


class ChannelRepository:
    """Repository for the channel registry."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, channel: Channel) -> Channel:
        try:
            channel_db = ChannelDB.from_pydantic(channel)
            self.db.add(channel_db)
            self.db.commit()
            self.db.refresh(channel_db)
            logger.debug(f"Created channel {channel.id}: {channel.name}")
            return channel_db.to_pydantic()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create channel {channel.id}: {type(e).__name__}: {str(e)}")
            raise StoreWriteError(f"Failed to create channel {channel.id}") from e

    def get(self, channel_id: str) -> Optional[Channel]:
        channel_db = self.db.query(ChannelDB).filter(ChannelDB.id == channel_id).first()
        return channel_db.to_pydantic() if channel_db else None

    def get_all(self, active_only: bool = False) -> List[Channel]:
        """All channels ordered by name."""
        query = self.db.query(ChannelDB)
        if active_only:
            query = query.filter(ChannelDB.is_active.is_(True))
        return [channel_db.to_pydantic() for channel_db in query.order_by(ChannelDB.name, ChannelDB.id).all()]
