"""
Streak state machine.
Derives per-task and per-user global continuity counters from ledger writes.

Streaks only ever advance. Un-completing a task, or a day dropping below the
global threshold after it was counted, leaves already-recorded progress in
place; a later completion on a day that was already counted is a no-op.
"""
import logging
from datetime import date
from typing import NamedTuple, Optional, Tuple
from sqlalchemy.orm import Session

from activity_tracker.models import TaskStreak
from activity_tracker.schemas import StreakContext
from activity_tracker.repositories.activity_repository import ActivityRepository
from activity_tracker.repositories.streak_repository import TaskStreakRepository
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.services.date_service import DateService

logger = logging.getLogger("activity_tracker.streaks")


class StreakStep(NamedTuple):
    current_streak: int
    best_streak: int
    advanced: bool


def continue_streak(
    current_streak: int,
    best_streak: int,
    last_completed_date: Optional[date],
    day: date
) -> StreakStep:
    """
    Apply the continuation rule for a qualifying day.

    - day already counted (or earlier than the last counted day): unchanged
    - last counted day is yesterday, or nothing counted yet: current + 1
    - otherwise (gap of one or more days): current restarts at 1

    Returns:
        StreakStep with the new counters and whether anything changed
    """
    current_streak = current_streak or 0
    best_streak = best_streak or 0

    if last_completed_date is not None and day <= last_completed_date:
        return StreakStep(current_streak, best_streak, False)

    yesterday = DateService.previous_day(day)
    if last_completed_date == yesterday or current_streak == 0:
        current_streak += 1
    else:
        current_streak = 1

    return StreakStep(current_streak, max(best_streak, current_streak), True)


class StreakService:
    """Service for per-task and global streak updates"""

    def __init__(self, db: Session):
        self.db = db
        self.activity_repo = ActivityRepository()
        self.streak_repo = TaskStreakRepository()
        self.user_repo = UserRepository()

    def advance_task_streak(self, user_id: int, task_id: str, day: date) -> TaskStreak:
        """
        Count a completed day for a single task.

        Idempotent per day: re-completing the same task on the same day
        does not increment anything.
        """
        streak = self.streak_repo.get_or_create(self.db, user_id, task_id)
        step = continue_streak(
            streak.current_streak, streak.best_streak, streak.last_completed_date, day
        )
        if not step.advanced:
            return streak

        streak.current_streak = step.current_streak
        streak.best_streak = step.best_streak
        streak.total_days = (streak.total_days or 0) + 1
        streak.last_completed_date = day
        streak = self.streak_repo.update(self.db, streak)

        logger.info(
            f"Task streak advanced: user={user_id} task={task_id} date={day} "
            f"current={streak.current_streak} best={streak.best_streak}"
        )
        return streak

    def advance_global_streak(self, user_id: int, day: date) -> Tuple[int, StreakContext]:
        """
        Re-evaluate the global streak for a day.

        The day counts when the number of completed tasks reaches the user's
        current min_tasks_required. Below the threshold nothing changes.

        Returns:
            Tuple of (completed_count, streak context after evaluation)
        """
        context = self.user_repo.load_streak_context(self.db, user_id)
        completed_count = self.activity_repo.count_completed(self.db, user_id, day)

        if completed_count < context.min_tasks_required:
            return completed_count, context

        step = continue_streak(
            context.current_streak, context.best_streak, context.last_completed_date, day
        )
        if not step.advanced:
            return completed_count, context

        context.current_streak = step.current_streak
        context.best_streak = step.best_streak
        context.last_completed_date = day
        self.user_repo.save_streak_context(self.db, user_id, context)

        logger.info(
            f"Global streak advanced: user={user_id} date={day} "
            f"completed={completed_count}/{context.min_tasks_required} "
            f"current={context.current_streak} best={context.best_streak}"
        )
        return completed_count, context

    def get_task_streaks(self, user_id: int) -> dict:
        """Get streak rows for user keyed by task id"""
        return {
            streak.task_id: streak
            for streak in self.streak_repo.get_all_for_user(self.db, user_id)
        }
