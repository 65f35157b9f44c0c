"""
Activity repository - Data access layer for the Activity ledger.
Handles all database queries related to per-day task completion records.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy import and_

from activity_tracker.models import Activity
from activity_tracker.exceptions import StorageError


class ActivityRepository:
    """Repository for Activity data access"""

    @staticmethod
    def get(db: Session, user_id: int, task_id: str, target_date: date) -> Optional[Activity]:
        """Get the ledger record for a (user, task, day) key"""
        try:
            return db.query(Activity).filter(
                and_(
                    Activity.user_id == user_id,
                    Activity.task_id == task_id,
                    Activity.date == target_date
                )
            ).first()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def upsert(
        db: Session,
        user_id: int,
        task_id: str,
        target_date: date,
        completed: bool,
        source: str,
        value: Optional[str] = None
    ) -> Activity:
        """
        Create-if-absent-else-update keyed on (user_id, task_id, date).

        A concurrent insert of the same key loses on the unique constraint;
        the losing writer then overwrites the winner's row (last write wins).
        """
        try:
            activity = ActivityRepository.get(db, user_id, task_id, target_date)
            if activity is None:
                activity = Activity(
                    user_id=user_id,
                    task_id=task_id,
                    date=target_date,
                    completed=completed,
                    source=source,
                    value=value
                )
                db.add(activity)
                try:
                    db.commit()
                except IntegrityError:
                    db.rollback()
                    activity = ActivityRepository.get(db, user_id, task_id, target_date)
                    if activity is None:
                        raise
                    ActivityRepository._overwrite(activity, completed, source, value)
                    db.commit()
            else:
                ActivityRepository._overwrite(activity, completed, source, value)
                db.commit()
            db.refresh(activity)
            return activity
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("upsert", str(e)) from e

    @staticmethod
    def _overwrite(activity: Activity, completed: bool, source: str, value: Optional[str]) -> None:
        activity.completed = completed
        activity.source = source
        if value is not None:
            activity.value = value

    @staticmethod
    def find_by_user_and_date_range(
        db: Session,
        user_id: int,
        start_date: date,
        end_date: date
    ) -> List[Activity]:
        """Get records for user within [start_date, end_date], ordered by date then task"""
        try:
            return db.query(Activity).filter(
                and_(
                    Activity.user_id == user_id,
                    Activity.date >= start_date,
                    Activity.date <= end_date
                )
            ).order_by(Activity.date, Activity.task_id).all()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def count_completed(db: Session, user_id: int, target_date: date) -> int:
        """Get count of completed records for a user on a day"""
        try:
            return db.query(Activity).filter(
                and_(
                    Activity.user_id == user_id,
                    Activity.date == target_date,
                    Activity.completed == True
                )
            ).count()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def find_completed_on(db: Session, target_date: date) -> List[Activity]:
        """Get completed records of every user for a day"""
        try:
            return db.query(Activity).filter(
                and_(
                    Activity.date == target_date,
                    Activity.completed == True
                )
            ).order_by(Activity.user_id, Activity.task_id).all()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e
