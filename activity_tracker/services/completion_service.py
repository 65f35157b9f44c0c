"""
Completion service.
Single entry point for completion toggles from every input channel.
"""
import logging
from datetime import date
from typing import Any, Optional, Union
from sqlalchemy.orm import Session

from activity_tracker.schemas import (
    CompletionResult, GlobalStreakResponse, TaskStreakResponse
)
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.services.ledger_service import LedgerService
from activity_tracker.services.streak_service import StreakService

logger = logging.getLogger("activity_tracker.completions")


class CompletionService:
    """Applies a completion intent to the ledger and both streak granularities"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()
        self.ledger = LedgerService(db)
        self.streak_service = StreakService(db)

    def apply_completion(
        self,
        user_id: int,
        task_id: str,
        target_date: Union[date, str],
        completed: bool,
        source: str,
        value: Optional[Any] = None
    ) -> CompletionResult:
        """
        Record a completion toggle and re-evaluate streaks for that day.

        Steps (each persisted independently):
        1. Ledger upsert for (user, task, day)
        2. Per-task streak, only when completed is True
        3. Global streak for the day

        A failure after step 1 leaves the ledger written; the next event for
        the same day re-evaluates both streaks idempotently.

        Returns:
            CompletionResult with the day's completed count, the threshold,
            whether the threshold is met and the updated streak state
        """
        self.user_repo.get_required(self.db, user_id)
        activity = self.ledger.set_completion(
            user_id, task_id, target_date, completed, source, value
        )
        day = activity.date

        if activity.completed:
            task_streak = self.streak_service.advance_task_streak(user_id, activity.task_id, day)
        else:
            # Un-completing never rolls counters back
            task_streak = self.streak_service.streak_repo.get(self.db, user_id, activity.task_id)

        completed_count, context = self.streak_service.advance_global_streak(user_id, day)

        return CompletionResult(
            completed_count=completed_count,
            min_required=context.min_tasks_required,
            streak_updated=completed_count >= context.min_tasks_required,
            task_streak=TaskStreakResponse.model_validate(task_streak) if task_streak else None,
            global_streak=GlobalStreakResponse(
                current_streak=context.current_streak,
                best_streak=context.best_streak,
                last_completed_date=context.last_completed_date
            )
        )
