"""
Dashboard aggregation service.
Read-only rollups (7/30-day windows) and the 30-day trend series.
"""
import logging
import math
from collections import defaultdict
from datetime import date
from typing import Dict, Set, Union
from sqlalchemy.orm import Session

from activity_tracker.schemas import (
    ChartPoint, DashboardResponse, DashboardStats, DashboardTask, GlobalStreakResponse
)
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.services.date_service import DateService
from activity_tracker.services.ledger_service import LedgerService
from activity_tracker.services.messaging_service import task_display_name
from activity_tracker.services.streak_service import StreakService
from activity_tracker.constants import (
    WEEK_WINDOW_DAYS, MONTH_WINDOW_DAYS, CHART_WINDOW_DAYS
)

logger = logging.getLogger("activity_tracker.dashboard")


def percentage(part: int, total: int) -> int:
    """Rounded (half up) percentage, capped at 100; 0 when total is 0"""
    if not total:
        return 0
    return min(100, int(math.floor(part * 100 / total + 0.5)))


class DashboardService:
    """Service building the dashboard view; never writes"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()
        self.ledger = LedgerService(db)
        self.streak_service = StreakService(db)
        self.date_service = DateService()

    def get_dashboard(self, user_id: int, today: Union[date, str]) -> DashboardResponse:
        """
        Build the dashboard for a user as of `today`.

        Threshold flags in the trend series use the user's current
        min_tasks_required for every day, including days before the
        setting last changed.
        """
        today = self.date_service.parse_date(today, "today")
        user = self.user_repo.get_required(self.db, user_id)
        context = self.user_repo.load_streak_context(self.db, user_id)
        min_required = context.min_tasks_required
        ordinal_tasks = user.ordinal_tasks()

        window_days = max(WEEK_WINDOW_DAYS, MONTH_WINDOW_DAYS, CHART_WINDOW_DAYS)
        start, _ = self.date_service.get_window(today, window_days)
        activities = self.ledger.find_by_user_and_date_range(user_id, start, today)
        logger.debug(f"Dashboard for user {user_id}: {len(activities)} records in {start}..{today}")
        streaks = self.streak_service.get_task_streaks(user_id)

        completed_days: Dict[str, Set[date]] = defaultdict(set)
        completed_per_day: Dict[date, int] = defaultdict(int)
        for activity in activities:
            if activity.completed:
                completed_days[activity.task_id].add(activity.date)
                completed_per_day[activity.date] += 1

        week_start, _ = self.date_service.get_window(today, WEEK_WINDOW_DAYS)
        month_start, _ = self.date_service.get_window(today, MONTH_WINDOW_DAYS)

        tasks = []
        for task_id, category in ordinal_tasks:
            days = completed_days.get(task_id, set())
            streak = streaks.get(task_id)
            tasks.append(DashboardTask(
                id=task_id,
                type=category,
                name=task_display_name(task_id),
                completed=today in days,
                week_completed=sum(1 for day in days if week_start <= day <= today),
                month_completed=sum(1 for day in days if month_start <= day <= today),
                current_streak=(streak.current_streak or 0) if streak else 0,
                best_streak=(streak.best_streak or 0) if streak else 0
            ))

        total_tasks = len(tasks)
        completed_today = sum(1 for task in tasks if task.completed)

        chart_data = []
        for day in self.date_service.get_date_range(today, CHART_WINDOW_DAYS):
            day_completed = completed_per_day.get(day, 0)
            chart_data.append(ChartPoint(
                date=day,
                completed=day_completed,
                total=total_tasks,
                percentage=percentage(day_completed, total_tasks),
                threshold_met=day_completed >= min_required
            ))

        return DashboardResponse(
            user={"name": user.full_name, "is_admin": bool(user.is_admin)},
            tasks=tasks,
            global_streak=GlobalStreakResponse(
                current_streak=context.current_streak,
                best_streak=context.best_streak,
                last_completed_date=context.last_completed_date
            ),
            streak_settings={"min_tasks_required": min_required},
            stats=DashboardStats(
                total_tasks=total_tasks,
                completed_today=completed_today,
                completion_rate=percentage(completed_today, total_tasks),
                streak_earned=completed_today >= min_required,
                progress_to_streak=f"{completed_today}/{min_required}"
            ),
            chart_data=chart_data
        )
