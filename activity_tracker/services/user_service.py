"""
User settings service.
Task selection and streak threshold updates on the user profile.
"""
import logging
from typing import Dict, List
from sqlalchemy.orm import Session

from activity_tracker.models import User
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.repositories.streak_repository import TaskStreakRepository
from activity_tracker.constants import (
    TASK_CATEGORIES, TASK_NAMES, CATEGORY_CUSTOM, MIN_TASKS_REQUIRED_FLOOR
)
from activity_tracker.exceptions import ValidationError

logger = logging.getLogger("activity_tracker.users")


class UserService:
    """Service for user-owned tracker settings"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()
        self.streak_repo = TaskStreakRepository()

    def update_min_tasks_required(self, user_id: int, min_tasks_required: int) -> User:
        """
        Change how many completed tasks make a day count for the global streak.

        Takes effect for the next evaluation only; days already recorded
        are not re-evaluated.

        Raises:
            ValidationError: If min_tasks_required < 1
        """
        if (
            isinstance(min_tasks_required, bool)
            or not isinstance(min_tasks_required, int)
            or min_tasks_required < MIN_TASKS_REQUIRED_FLOOR
        ):
            raise ValidationError("min_tasks_required", "must be at least 1")

        user = self.user_repo.get_required(self.db, user_id)
        user.min_tasks_required = min_tasks_required
        user = self.user_repo.update(self.db, user)
        logger.info(f"User {user_id} min_tasks_required set to {min_tasks_required}")
        return user

    def update_task_selection(self, user_id: int, selection: Dict[str, List[str]]) -> User:
        """
        Replace the user's selected tasks and create zeroed streak rows for new ones.

        Career and personal groups accept only catalogue ids; custom tasks are
        free text. Duplicates are dropped, first occurrence wins, so the
        ordinal task list stays stable.

        Raises:
            ValidationError: Unknown category, unknown catalogue id or empty id
        """
        unknown = set(selection) - set(TASK_CATEGORIES)
        if unknown:
            raise ValidationError("selected_tasks", f"unknown categories: {', '.join(sorted(unknown))}")

        cleaned: Dict[str, List[str]] = {}
        seen = set()
        for category in TASK_CATEGORIES:
            ids = []
            for raw_id in selection.get(category) or []:
                task_id = str(raw_id).strip()
                if not task_id:
                    raise ValidationError("task_id", "must not be empty")
                if category != CATEGORY_CUSTOM and task_id not in TASK_NAMES:
                    raise ValidationError("task_id", f"unknown {category} task {task_id!r}")
                if task_id in seen:
                    continue
                seen.add(task_id)
                ids.append(task_id)
            cleaned[category] = ids

        user = self.user_repo.get_required(self.db, user_id)
        user = self.user_repo.set_task_selection(self.db, user, cleaned)
        self.streak_repo.ensure_rows(self.db, user_id, [task_id for task_id, _ in user.ordinal_tasks()])
        logger.info(f"User {user_id} selected {len(seen)} tasks")
        return user
