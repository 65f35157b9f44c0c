"""
Activity ledger service.
Single source of truth for per-(user, task, day) completion state.
"""
import json
import logging
from datetime import date
from typing import Any, List, Optional, Union
from sqlalchemy.orm import Session

from activity_tracker.models import Activity
from activity_tracker.repositories.activity_repository import ActivityRepository
from activity_tracker.services.date_service import DateService
from activity_tracker.constants import ACTIVITY_SOURCES
from activity_tracker.exceptions import ValidationError

logger = logging.getLogger("activity_tracker.ledger")


class LedgerService:
    """Service for recording and querying completion state"""

    def __init__(self, db: Session):
        self.db = db
        self.activity_repo = ActivityRepository()
        self.date_service = DateService()

    def set_completion(
        self,
        user_id: int,
        task_id: str,
        target_date: Union[date, str],
        completed: bool,
        source: str,
        value: Optional[Any] = None
    ) -> Activity:
        """
        Upsert the completion flag for (user, task, day).

        Args:
            user_id: Owner of the record
            task_id: Task identifier, must be non-empty
            target_date: Calendar day (date or "YYYY-MM-DD")
            completed: New completion flag
            source: "interactive" or "messaging"
            value: Optional JSON-serialisable payload, stored verbatim

        Returns:
            The created or updated record

        Raises:
            ValidationError: Bad date, empty task id or unknown source
            StorageError: Underlying persistence failure
        """
        day = self.date_service.parse_date(target_date)
        task_id = (task_id or "").strip()
        if not task_id:
            raise ValidationError("task_id", "must not be empty")
        if source not in ACTIVITY_SOURCES:
            raise ValidationError("source", f"must be one of {', '.join(ACTIVITY_SOURCES)}")

        payload = None
        if value is not None:
            try:
                payload = json.dumps(value)
            except (TypeError, ValueError):
                raise ValidationError("value", "must be JSON serialisable")

        activity = self.activity_repo.upsert(
            self.db, user_id, task_id, day, bool(completed), source, payload
        )
        logger.info(
            f"Ledger write: user={user_id} task={task_id} date={day} "
            f"completed={activity.completed} source={source}"
        )
        return activity

    def find_by_user_and_date_range(
        self,
        user_id: int,
        start_date: Union[date, str],
        end_date: Union[date, str]
    ) -> List[Activity]:
        """Get records for user in the inclusive [start_date, end_date] range"""
        start = self.date_service.parse_date(start_date, "start_date")
        end = self.date_service.parse_date(end_date, "end_date")
        if start > end:
            raise ValidationError("start_date", "must not be after end_date")
        return self.activity_repo.find_by_user_and_date_range(self.db, user_id, start, end)

    def count_completed(self, user_id: int, target_date: Union[date, str]) -> int:
        """Get count of tasks marked completed by user on a day"""
        day = self.date_service.parse_date(target_date)
        return self.activity_repo.count_completed(self.db, user_id, day)
