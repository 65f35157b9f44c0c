"""
Messaging channel service.
Outbound delivery over Twilio WhatsApp, daily poll composition and reminder fan-out.
"""
import logging
import os
from typing import List, Optional
from sqlalchemy.orm import Session
from twilio.rest import Client

from activity_tracker.models import User
from activity_tracker.schemas import DeliveryResult
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.constants import (
    TASK_NAMES, WHATSAPP_PREFIX, DEFAULT_TWILIO_WHATSAPP_NUMBER
)

logger = logging.getLogger("activity_tracker.messaging")


def task_display_name(task_id: str) -> str:
    """Catalogue name for built-in tasks, the id itself for custom ones"""
    return TASK_NAMES.get(task_id, task_id)


class MessagingClient:
    """
    Send capability for the messaging channel.

    Uses the Twilio REST client when TWILIO_ACCOUNT_SID and TWILIO_AUTH_TOKEN
    are set; otherwise deliveries are logged and reported as mock successes.
    """

    def __init__(
        self,
        account_sid: Optional[str] = None,
        auth_token: Optional[str] = None,
        from_number: Optional[str] = None
    ):
        account_sid = account_sid or os.getenv("TWILIO_ACCOUNT_SID")
        auth_token = auth_token or os.getenv("TWILIO_AUTH_TOKEN")
        self.from_number = from_number or os.getenv(
            "TWILIO_WHATSAPP_NUMBER", DEFAULT_TWILIO_WHATSAPP_NUMBER
        )
        self.client = Client(account_sid, auth_token) if account_sid and auth_token else None

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def send_message(self, address: str, text: str) -> DeliveryResult:
        """
        Deliver text to a channel address. Failures are logged and returned, never raised.

        Args:
            address: Phone number, with or without the "whatsapp:" prefix
            text: Message body
        """
        number = address.replace(WHATSAPP_PREFIX, "").strip()
        if not self.client:
            logger.info(f"[WhatsApp Mock] To {number}: {text}")
            return DeliveryResult(success=True, mock=True)

        try:
            message = self.client.messages.create(
                from_=self.from_number,
                to=f"{WHATSAPP_PREFIX}{number}",
                body=text
            )
            return DeliveryResult(success=True, sid=message.sid)
        except Exception as e:
            logger.error(f"WhatsApp delivery to {number} failed: {e}")
            return DeliveryResult(success=False, error=str(e))


class ReminderService:
    """Composes daily check-in polls and fans them out to users"""

    def __init__(self, db: Session, messaging: MessagingClient):
        self.db = db
        self.messaging = messaging
        self.user_repo = UserRepository()

    @staticmethod
    def compose_daily_poll(user: User) -> Optional[str]:
        """
        Build the numbered check-in message for a user.

        Returns:
            Message text, or None if the user has no tasks or no phone
        """
        tasks = [task_id for task_id, _ in user.ordinal_tasks()]
        if not tasks or not user.phone:
            return None

        lines = [
            "🎯 *Daily Activity Check-in*",
            "",
            f"Hi {user.first_name}! Which tasks did you complete today?",
            "",
        ]
        lines.extend(f"{index}. {task_display_name(task_id)}" for index, task_id in enumerate(tasks, start=1))
        lines.extend([
            "",
            "📝 Reply with numbers (e.g., \"1,3,5\") or \"all\" / \"none\"",
            "💪 Keep your streaks going!",
        ])
        return "\n".join(lines)

    def send_daily_poll(self, user: User) -> Optional[DeliveryResult]:
        """Send the check-in poll to a user; None when there is nothing to send"""
        text = self.compose_daily_poll(user)
        if text is None:
            return None
        return self.messaging.send_message(user.phone, text)

    def send_reminders_to_all(self) -> int:
        """
        Send the check-in poll to every user with a phone number.

        Returns:
            Number of users considered
        """
        users: List[User] = self.user_repo.get_with_phone(self.db)
        logger.info(f"Sending reminders to {len(users)} users")
        for user in users:
            result = self.send_daily_poll(user)
            if result is not None and not result.success:
                logger.warning(f"Reminder to user {user.id} not delivered: {result.error}")
        return len(users)
