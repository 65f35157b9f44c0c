from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, ForeignKey, UniqueConstraint
)
from datetime import datetime
from typing import Dict, List, Tuple
import json

from activity_tracker.database import Base
from activity_tracker.constants import (
    TASK_CATEGORIES, DEFAULT_MIN_TASKS_REQUIRED, SOURCE_INTERACTIVE
)


class User(Base):
    """User profile. Owned by the profile collaborator; streak fields are written here."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, default="")
    email = Column(String, nullable=True, unique=True)
    phone = Column(String, default="", index=True)  # E.164, without channel prefix
    is_admin = Column(Boolean, default=False)

    # Task selection (JSON arrays of task ids)
    career_tasks = Column(String, default="[]")
    personal_tasks = Column(String, default="[]")
    custom_tasks = Column(String, default="[]")

    # Streak settings
    min_tasks_required = Column(Integer, default=DEFAULT_MIN_TASKS_REQUIRED)

    # Global streak
    global_current_streak = Column(Integer, default=0)
    global_best_streak = Column(Integer, default=0)
    global_last_completed_date = Column(Date, nullable=True)

    created_at = Column(DateTime, default=datetime.now)

    def get_task_selection(self) -> Dict[str, List[str]]:
        """Selected task ids grouped by category"""
        return {
            category: _load_ids(getattr(self, f"{category}_tasks"))
            for category in TASK_CATEGORIES
        }

    def ordinal_tasks(self) -> List[Tuple[str, str]]:
        """
        Ordinal task list: career, then personal, then custom tasks.

        Returns:
            List of (task_id, category) pairs; position + 1 is the number
            users reply with on the messaging channel.
        """
        selection = self.get_task_selection()
        return [
            (task_id, category)
            for category in TASK_CATEGORIES
            for task_id in selection[category]
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


def _load_ids(raw) -> List[str]:
    if not raw:
        return []
    try:
        ids = json.loads(raw)
    except json.JSONDecodeError:
        return []
    return [str(task_id) for task_id in ids] if isinstance(ids, list) else []


class Activity(Base):
    """One ledger row per (user, task, calendar day)"""
    __tablename__ = "activities"
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", "date", name="uq_activity_user_task_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(String, nullable=False)
    date = Column(Date, nullable=False, index=True)
    completed = Column(Boolean, default=False)
    value = Column(String, nullable=True)  # JSON payload, not interpreted
    source = Column(String, default=SOURCE_INTERACTIVE)  # interactive, messaging
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class TaskStreak(Base):
    """Per-(user, task) streak counters"""
    __tablename__ = "task_streaks"
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", name="uq_task_streak_user_task"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(String, nullable=False)
    current_streak = Column(Integer, default=0)
    best_streak = Column(Integer, default=0)
    total_days = Column(Integer, default=0)  # Days ever marked complete
    last_completed_date = Column(Date, nullable=True)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)
