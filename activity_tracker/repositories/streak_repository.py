"""
Streak repository - Data access layer for per-task streak counters.
"""
from typing import Iterable, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import and_

from activity_tracker.models import TaskStreak
from activity_tracker.exceptions import StorageError


class TaskStreakRepository:
    """Repository for TaskStreak data access"""

    @staticmethod
    def get(db: Session, user_id: int, task_id: str) -> Optional[TaskStreak]:
        """Get streak counters for a (user, task) pair"""
        try:
            return db.query(TaskStreak).filter(
                and_(
                    TaskStreak.user_id == user_id,
                    TaskStreak.task_id == task_id
                )
            ).first()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def get_all_for_user(db: Session, user_id: int) -> List[TaskStreak]:
        """Get all streak rows for user"""
        try:
            return db.query(TaskStreak).filter(TaskStreak.user_id == user_id).all()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def get_all(db: Session) -> List[TaskStreak]:
        """Get streak rows for every user"""
        try:
            return db.query(TaskStreak).order_by(TaskStreak.user_id, TaskStreak.task_id).all()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def get_or_create(db: Session, user_id: int, task_id: str) -> TaskStreak:
        """
        Get streak counters (creates with zeros if not exists).

        Returns:
            TaskStreak object
        """
        streak = TaskStreakRepository.get(db, user_id, task_id)
        if streak:
            return streak

        streak = TaskStreak(
            user_id=user_id,
            task_id=task_id,
            current_streak=0,
            best_streak=0,
            total_days=0,
            last_completed_date=None
        )
        try:
            db.add(streak)
            db.commit()
        except IntegrityError:
            # Created concurrently by another writer
            db.rollback()
            existing = TaskStreakRepository.get(db, user_id, task_id)
            if existing is None:
                raise StorageError("create", f"streak row for {user_id}/{task_id}")
            return existing
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("create", str(e)) from e
        db.refresh(streak)
        return streak

    @staticmethod
    def ensure_rows(db: Session, user_id: int, task_ids: Iterable[str]) -> List[TaskStreak]:
        """Create zeroed rows for every task that has none"""
        return [TaskStreakRepository.get_or_create(db, user_id, task_id) for task_id in task_ids]

    @staticmethod
    def update(db: Session, streak: TaskStreak) -> TaskStreak:
        """Persist modified streak counters"""
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("update", str(e)) from e
        db.refresh(streak)
        return streak
