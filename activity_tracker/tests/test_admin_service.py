"""
Tests for AdminService.

Tests cover:
1. User list with today's completions and streak totals
2. Leaderboard ordering and totals
3. Read-only behaviour
"""
from activity_tracker.services.admin_service import AdminService
from activity_tracker.models import Activity, TaskStreak
from activity_tracker.tests.conftest import add_activity, add_task_streak


class TestListUsers:
    """Tests for list_users function"""

    def test_counts_today_and_sums_streaks(self, db_session, make_user, today, yesterday):
        user = make_user(career=["github", "chess"], personal=["gym"])
        add_activity(db_session, user.id, "github", today)
        add_activity(db_session, user.id, "chess", today)
        add_activity(db_session, user.id, "gym", today, completed=False)
        add_activity(db_session, user.id, "gym", yesterday)
        add_task_streak(db_session, user.id, "github", current=3, best=5, total=9)
        add_task_streak(db_session, user.id, "chess", current=1, best=7, total=2)

        [entry] = AdminService(db_session).list_users(today)

        assert entry.id == user.id
        assert entry.name == "Asha Tester"
        assert entry.stats.completed_today == 2
        assert entry.stats.total_streak == 4
        assert entry.stats.best_streak == 7
        assert entry.selected_tasks["career"] == ["github", "chess"]

    def test_user_without_activity(self, db_session, make_user, today):
        make_user(career=["github"])

        [entry] = AdminService(db_session).list_users(today)

        assert entry.stats.completed_today == 0
        assert entry.stats.total_streak == 0
        assert entry.stats.best_streak == 0

    def test_stats_are_per_user(self, db_session, make_user, today):
        alice = make_user(career=["github"], phone="+1", first_name="Alice")
        bob = make_user(career=["github"], phone="+2", first_name="Bob")
        add_activity(db_session, bob.id, "github", today)
        add_task_streak(db_session, bob.id, "github", current=2, best=2, total=2)

        entries = {entry.id: entry for entry in AdminService(db_session).list_users(today)}

        assert entries[alice.id].stats.completed_today == 0
        assert entries[alice.id].stats.total_streak == 0
        assert entries[bob.id].stats.completed_today == 1
        assert entries[bob.id].stats.total_streak == 2


class TestLeaderboard:
    """Tests for get_leaderboard function"""

    def test_sorted_by_total_streak(self, db_session, make_user):
        alice = make_user(phone="+1", first_name="Alice")
        bob = make_user(phone="+2", first_name="Bob")
        cara = make_user(phone="+3", first_name="Cara")
        add_task_streak(db_session, alice.id, "github", current=1, best=4, total=10)
        add_task_streak(db_session, bob.id, "github", current=2, best=2, total=3)
        add_task_streak(db_session, bob.id, "gym", current=3, best=6, total=5)

        leaderboard = AdminService(db_session).get_leaderboard()

        assert [entry.user_id for entry in leaderboard] == [bob.id, alice.id, cara.id]
        assert leaderboard[0].total_streak == 5
        assert leaderboard[0].best_streak == 6
        assert leaderboard[0].total_days == 8
        assert leaderboard[2].total_days == 0

    def test_read_only(self, db_session, make_user, today):
        user = make_user(career=["github"])
        add_activity(db_session, user.id, "github", today)
        service = AdminService(db_session)

        service.get_leaderboard()
        service.list_users(today)

        assert db_session.query(Activity).count() == 1
        assert db_session.query(TaskStreak).count() == 0
