"""
Tests for DashboardService.

Tests cover:
1. Per-task weekly and monthly rollups
2. 30-day trend series and threshold flags
3. Stats block and read-only behaviour
"""
import logging
from datetime import timedelta

from activity_tracker.services.dashboard_service import DashboardService, percentage
from activity_tracker.services.completion_service import CompletionService
from activity_tracker.models import Activity, TaskStreak
from activity_tracker.tests.conftest import add_activity


class TestPercentage:
    """Tests for percentage helper"""

    def test_rounds_half_up(self):
        assert percentage(1, 8) == 13  # 12.5
        assert percentage(1, 3) == 33
        assert percentage(2, 3) == 67

    def test_zero_total(self):
        assert percentage(3, 0) == 0

    def test_capped_at_hundred(self):
        assert percentage(5, 3) == 100


class TestTaskRollups:
    """Tests for per-task week/month counts"""

    def test_week_window_is_seven_days_inclusive(self, db_session, make_user, today):
        user = make_user(career=["github"])
        for offset in range(0, 10):
            add_activity(db_session, user.id, "github", today - timedelta(days=offset))

        dashboard = DashboardService(db_session).get_dashboard(user.id, today)

        task = dashboard.tasks[0]
        assert task.week_completed == 7
        assert task.month_completed == 10
        assert task.completed is True

    def test_month_window_excludes_older_days(self, db_session, make_user, today):
        user = make_user(career=["github"])
        add_activity(db_session, user.id, "github", today - timedelta(days=29))
        add_activity(db_session, user.id, "github", today - timedelta(days=30))

        task = DashboardService(db_session).get_dashboard(user.id, today).tasks[0]

        assert task.month_completed == 1
        assert task.week_completed == 0
        assert task.completed is False

    def test_uncompleted_records_do_not_count(self, db_session, make_user, today):
        user = make_user(career=["github"])
        add_activity(db_session, user.id, "github", today, completed=False)

        task = DashboardService(db_session).get_dashboard(user.id, today).tasks[0]

        assert task.week_completed == 0
        assert task.completed is False

    def test_tasks_follow_ordinal_order_with_names(self, db_session, make_user, today):
        user = make_user(career=["leetcode"], personal=["gym"], custom=["journal"])

        tasks = DashboardService(db_session).get_dashboard(user.id, today).tasks

        assert [(t.id, t.type, t.name) for t in tasks] == [
            ("leetcode", "career", "LeetCode Problems"),
            ("gym", "personal", "Gym Workout"),
            ("journal", "custom", "journal"),
        ]

    def test_includes_task_streaks(self, db_session, make_user, today, yesterday):
        user = make_user(career=["github"], min_tasks_required=1)
        completions = CompletionService(db_session)
        completions.apply_completion(user.id, "github", yesterday, True, "interactive")
        completions.apply_completion(user.id, "github", today, True, "interactive")

        dashboard = DashboardService(db_session).get_dashboard(user.id, today)

        assert dashboard.tasks[0].current_streak == 2
        assert dashboard.tasks[0].best_streak == 2
        assert dashboard.global_streak.current_streak == 2


class TestChartData:
    """Tests for the 30-day trend series"""

    def test_thirty_points_ending_today(self, db_session, make_user, today):
        user = make_user(career=["github"])

        chart = DashboardService(db_session).get_dashboard(user.id, today).chart_data

        assert len(chart) == 30
        assert chart[0].date == today - timedelta(days=29)
        assert chart[-1].date == today

    def test_percentages_and_threshold(self, db_session, make_user, today, yesterday):
        user = make_user(career=["github", "chess"], personal=["gym"], min_tasks_required=2)
        add_activity(db_session, user.id, "github", today)
        add_activity(db_session, user.id, "chess", today)
        add_activity(db_session, user.id, "gym", yesterday)

        chart = DashboardService(db_session).get_dashboard(user.id, today).chart_data

        assert (chart[-1].completed, chart[-1].total, chart[-1].percentage, chart[-1].threshold_met) == (2, 3, 67, True)
        assert (chart[-2].completed, chart[-2].percentage, chart[-2].threshold_met) == (1, 33, False)
        assert chart[0].percentage == 0

    def test_threshold_uses_current_setting_for_history(self, db_session, make_user, today, yesterday):
        """Past days are judged against today's min_tasks_required"""
        user = make_user(career=["github", "chess"], min_tasks_required=2)
        add_activity(db_session, user.id, "github", yesterday)
        service = DashboardService(db_session)
        assert service.get_dashboard(user.id, today).chart_data[-2].threshold_met is False

        user.min_tasks_required = 1
        db_session.commit()

        assert service.get_dashboard(user.id, today).chart_data[-2].threshold_met is True


class TestStats:
    """Tests for the stats block"""

    def test_stats(self, db_session, make_user, today):
        user = make_user(career=["github", "chess"], personal=["gym"], min_tasks_required=2)
        add_activity(db_session, user.id, "github", today)

        dashboard = DashboardService(db_session).get_dashboard(user.id, today)

        assert dashboard.stats.total_tasks == 3
        assert dashboard.stats.completed_today == 1
        assert dashboard.stats.completion_rate == 33
        assert dashboard.stats.streak_earned is False
        assert dashboard.stats.progress_to_streak == "1/2"
        assert dashboard.streak_settings == {"min_tasks_required": 2}

    def test_no_tasks(self, db_session, make_user, today):
        user = make_user()

        dashboard = DashboardService(db_session).get_dashboard(user.id, today)

        assert dashboard.tasks == []
        assert dashboard.stats.completion_rate == 0
        assert all(point.percentage == 0 for point in dashboard.chart_data)

    def test_read_only(self, db_session, make_user, today):
        user = make_user(career=["github"])
        add_activity(db_session, user.id, "github", today)
        service = DashboardService(db_session)

        first = service.get_dashboard(user.id, today)
        second = service.get_dashboard(user.id, today.isoformat())

        assert first == second
        assert db_session.query(Activity).count() == 1
        assert db_session.query(TaskStreak).count() == 0

    def test_logs_queried_window(self, db_session, make_user, today, caplog):
        user = make_user(career=["github"])
        add_activity(db_session, user.id, "github", today)

        with caplog.at_level(logging.DEBUG, logger="activity_tracker.dashboard"):
            DashboardService(db_session).get_dashboard(user.id, today)

        assert f"1 records in {today - timedelta(days=29)}..{today}" in caplog.text
