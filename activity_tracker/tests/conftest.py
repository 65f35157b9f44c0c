"""
Shared fixtures: in-memory database, fixed clock, user factory and a
messaging client that records outbound messages instead of sending them.
"""
import json
import os
import tempfile

os.environ.setdefault("ACTIVITY_TRACKER_DATABASE_URL", "sqlite://")
os.environ.setdefault("ACTIVITY_TRACKER_LOG_DIR", tempfile.mkdtemp(prefix="activity_tracker_logs_"))
os.environ.setdefault("REMINDERS_ENABLED", "false")
os.environ.pop("TWILIO_ACCOUNT_SID", None)
os.environ.pop("TWILIO_AUTH_TOKEN", None)

import pytest
from datetime import date, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from activity_tracker.database import Base
from activity_tracker.models import User, Activity, TaskStreak
from activity_tracker.schemas import DeliveryResult
from activity_tracker.services.date_service import FixedClock
from activity_tracker.services.messaging_service import MessagingClient


class RecordingMessagingClient(MessagingClient):
    """Messaging client that keeps every outbound message in memory"""

    def __init__(self):
        self.client = None
        self.from_number = "whatsapp:+10000000000"
        self.sent = []

    def send_message(self, address: str, text: str) -> DeliveryResult:
        self.sent.append((address, text))
        return DeliveryResult(success=True, mock=True)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def today():
    return date(2026, 1, 30)


@pytest.fixture
def yesterday(today):
    return today - timedelta(days=1)


@pytest.fixture
def clock(today):
    return FixedClock(today)


@pytest.fixture
def messaging():
    return RecordingMessagingClient()


@pytest.fixture
def make_user(db_session):
    """Factory creating users with a task selection"""
    def _make_user(
        career=None,
        personal=None,
        custom=None,
        min_tasks_required=3,
        phone="+15550001",
        first_name="Asha",
        is_admin=False
    ) -> User:
        user = User(
            first_name=first_name,
            last_name="Tester",
            phone=phone,
            is_admin=is_admin,
            career_tasks=json.dumps(career or []),
            personal_tasks=json.dumps(personal or []),
            custom_tasks=json.dumps(custom or []),
            min_tasks_required=min_tasks_required,
            global_current_streak=0,
            global_best_streak=0
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user
    return _make_user


def add_activity(db_session, user_id, task_id, target_date, completed=True, source="interactive"):
    """Insert a ledger row directly (history setup without streak side effects)"""
    activity = Activity(
        user_id=user_id,
        task_id=task_id,
        date=target_date,
        completed=completed,
        source=source
    )
    db_session.add(activity)
    db_session.commit()
    return activity


def add_task_streak(db_session, user_id, task_id, current=0, best=0, total=0, last=None):
    """Insert per-task streak counters directly"""
    streak = TaskStreak(
        user_id=user_id,
        task_id=task_id,
        current_streak=current,
        best_streak=best,
        total_days=total,
        last_completed_date=last
    )
    db_session.add(streak)
    db_session.commit()
    return streak
