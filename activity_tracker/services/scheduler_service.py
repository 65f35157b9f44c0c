"""
Background scheduler for check-in reminders.
Fans the daily poll out to every user with a phone at the configured hours.
"""
import logging
import os
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from activity_tracker.database import SessionLocal
from activity_tracker.services.messaging_service import MessagingClient, ReminderService
from activity_tracker.constants import DEFAULT_REMINDER_HOURS

logger = logging.getLogger("activity_tracker.scheduler")

scheduler = AsyncIOScheduler()


def _reminder_hours() -> str:
    """Comma-separated hours, e.g. '9,12,15,18,21'"""
    hours = os.getenv("REMINDER_HOURS", DEFAULT_REMINDER_HOURS).replace(" ", "")
    return hours or DEFAULT_REMINDER_HOURS


def _reminders_enabled() -> bool:
    return os.getenv("REMINDERS_ENABLED", "true").lower() not in ("0", "false", "no")


async def run_reminders(messaging: MessagingClient = None):
    """Task: send the daily check-in poll to all users"""
    db = SessionLocal()
    try:
        count = ReminderService(db, messaging or MessagingClient()).send_reminders_to_all()
        logger.info(f"Reminders sent to {count} users")
    except Exception as e:
        logger.error(f"Scheduler Error (Reminders): {e}")
    finally:
        db.close()


def start_scheduler():
    """Start the scheduler"""
    if not _reminders_enabled():
        logger.info("Reminders disabled, scheduler not started")
        return

    if not scheduler.running:
        trigger = CronTrigger(
            hour=_reminder_hours(),
            minute=0,
            timezone=os.getenv("TIMEZONE") or None
        )
        scheduler.add_job(
            run_reminders,
            trigger,
            id="daily_reminders",
            replace_existing=True
        )
        scheduler.start()
        logger.info(f"Reminders scheduled at hours {_reminder_hours()}")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
