"""
Admin overview service.
Read-only aggregations over every user's ledger and streak counters.
"""
import logging
from collections import defaultdict
from datetime import date
from typing import Dict, List, Union
from sqlalchemy.orm import Session

from activity_tracker.models import TaskStreak
from activity_tracker.schemas import (
    AdminUserEntry, AdminUserStats, GlobalStreakResponse, LeaderboardEntry
)
from activity_tracker.repositories.activity_repository import ActivityRepository
from activity_tracker.repositories.streak_repository import TaskStreakRepository
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.services.date_service import DateService

logger = logging.getLogger("activity_tracker.admin")


class AdminService:
    """Service for the admin user list and leaderboard; never writes"""

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository()
        self.activity_repo = ActivityRepository()
        self.streak_repo = TaskStreakRepository()

    def _streaks_by_user(self) -> Dict[int, List[TaskStreak]]:
        streaks = defaultdict(list)
        for streak in self.streak_repo.get_all(self.db):
            streaks[streak.user_id].append(streak)
        return streaks

    def list_users(self, today: Union[date, str]) -> List[AdminUserEntry]:
        """
        Every user with today's completed count and per-task streak totals.

        total_streak sums the current per-task streaks; best_streak is the
        highest per-task best (0 for users without streak rows).
        """
        day = DateService.parse_date(today, "today")
        streaks = self._streaks_by_user()
        completed_today = defaultdict(int)
        for activity in self.activity_repo.find_completed_on(self.db, day):
            completed_today[activity.user_id] += 1

        entries = []
        for user in self.user_repo.get_all(self.db):
            user_streaks = streaks.get(user.id, [])
            entries.append(AdminUserEntry(
                id=user.id,
                name=user.full_name,
                email=user.email,
                phone=user.phone or "",
                is_admin=bool(user.is_admin),
                selected_tasks=user.get_task_selection(),
                global_streak=GlobalStreakResponse(
                    current_streak=user.global_current_streak or 0,
                    best_streak=user.global_best_streak or 0,
                    last_completed_date=user.global_last_completed_date
                ),
                stats=AdminUserStats(
                    completed_today=completed_today.get(user.id, 0),
                    total_streak=sum(s.current_streak or 0 for s in user_streaks),
                    best_streak=max((s.best_streak or 0 for s in user_streaks), default=0)
                )
            ))
        logger.debug(f"Admin user list for {day}: {len(entries)} users")
        return entries

    def get_leaderboard(self) -> List[LeaderboardEntry]:
        """Users ranked by the sum of their current per-task streaks, highest first"""
        streaks = self._streaks_by_user()
        leaderboard = []
        for user in self.user_repo.get_all(self.db):
            user_streaks = streaks.get(user.id, [])
            leaderboard.append(LeaderboardEntry(
                user_id=user.id,
                name=user.full_name,
                total_streak=sum(s.current_streak or 0 for s in user_streaks),
                best_streak=max((s.best_streak or 0 for s in user_streaks), default=0),
                total_days=sum(s.total_days or 0 for s in user_streaks)
            ))
        # Stable sort keeps id order among ties
        leaderboard.sort(key=lambda entry: entry.total_streak, reverse=True)
        return leaderboard
