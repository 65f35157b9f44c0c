"""
User repository - Data access layer for the User profile.
Exposes the narrow streak-context interface onto the profile-embedded global streak.
"""
import json
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import or_

from activity_tracker.models import User
from activity_tracker.schemas import StreakContext
from activity_tracker.constants import TASK_CATEGORIES, WHATSAPP_PREFIX, DEFAULT_MIN_TASKS_REQUIRED
from activity_tracker.exceptions import StorageError, UserNotFoundError


class UserRepository:
    """Repository for User data access"""

    @staticmethod
    def get_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID"""
        try:
            return db.query(User).filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def get_required(db: Session, user_id: int) -> User:
        """Get user by ID or raise UserNotFoundError"""
        user = UserRepository.get_by_id(db, user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    @staticmethod
    def get_all(db: Session) -> List[User]:
        """Get all users"""
        try:
            return db.query(User).order_by(User.id).all()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def get_by_phone(db: Session, address: str) -> Optional[User]:
        """
        Resolve a messaging address to a user.

        Both the bare number and the channel-prefixed form are matched,
        so "whatsapp:+15550001" finds a profile stored as "+15550001".
        """
        if not address:
            return None
        clean = address.replace(WHATSAPP_PREFIX, "").strip()
        try:
            return db.query(User).filter(
                or_(User.phone == clean, User.phone == address)
            ).first()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def get_with_phone(db: Session) -> List[User]:
        """Get all users that can be reached on the messaging channel"""
        try:
            return db.query(User).filter(
                User.phone.isnot(None),
                User.phone != ""
            ).order_by(User.id).all()
        except SQLAlchemyError as e:
            raise StorageError("read", str(e)) from e

    @staticmethod
    def create(db: Session, user: User) -> User:
        """Create new user"""
        try:
            db.add(user)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("create", str(e)) from e
        db.refresh(user)
        return user

    @staticmethod
    def update(db: Session, user: User) -> User:
        """Persist modified user"""
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise StorageError("update", str(e)) from e
        db.refresh(user)
        return user

    @staticmethod
    def set_task_selection(db: Session, user: User, selection: Dict[str, List[str]]) -> User:
        """Replace the user's selected task groups"""
        for category in TASK_CATEGORIES:
            setattr(user, f"{category}_tasks", json.dumps(list(selection.get(category, []))))
        return UserRepository.update(db, user)

    @staticmethod
    def load_streak_context(db: Session, user_id: int) -> StreakContext:
        """Read the global streak fields and threshold setting for user"""
        user = UserRepository.get_required(db, user_id)
        return StreakContext(
            current_streak=user.global_current_streak or 0,
            best_streak=user.global_best_streak or 0,
            last_completed_date=user.global_last_completed_date,
            min_tasks_required=user.min_tasks_required or DEFAULT_MIN_TASKS_REQUIRED
        )

    @staticmethod
    def save_streak_context(db: Session, user_id: int, context: StreakContext) -> StreakContext:
        """Write the global streak fields back to the profile"""
        user = UserRepository.get_required(db, user_id)
        user.global_current_streak = context.current_streak
        user.global_best_streak = context.best_streak
        user.global_last_completed_date = context.last_completed_date
        UserRepository.update(db, user)
        return context
