"""
Tests for the messaging channel services.

Tests cover:
1. Mock delivery when Twilio is not configured
2. Daily poll composition
3. Reminder fan-out
"""
from unittest.mock import MagicMock

from activity_tracker.services.messaging_service import MessagingClient, ReminderService


class TestMessagingClient:
    """Tests for MessagingClient"""

    def test_mock_delivery_without_credentials(self):
        client = MessagingClient(account_sid="", auth_token="")

        result = client.send_message("whatsapp:+15550001", "hello")

        assert client.enabled is False
        assert result.success is True
        assert result.mock is True

    def test_prefixes_recipient(self):
        client = MessagingClient(account_sid="", auth_token="")
        client.client = MagicMock()
        client.client.messages.create.return_value = MagicMock(sid="SM123")

        result = client.send_message("+15550001", "hello")

        client.client.messages.create.assert_called_once_with(
            from_=client.from_number, to="whatsapp:+15550001", body="hello"
        )
        assert result.success is True
        assert result.sid == "SM123"

    def test_delivery_failure_is_returned(self):
        client = MessagingClient(account_sid="", auth_token="")
        client.client = MagicMock()
        client.client.messages.create.side_effect = RuntimeError("network down")

        result = client.send_message("whatsapp:+15550001", "hello")

        assert result.success is False
        assert "network down" in result.error


class TestDailyPoll:
    """Tests for compose_daily_poll and send_daily_poll"""

    def test_numbers_tasks_in_ordinal_order(self, make_user):
        user = make_user(career=["github"], personal=["gym"], custom=["journal"])

        text = ReminderService.compose_daily_poll(user)

        assert "Hi Asha!" in text
        assert "1. GitHub Commits\n2. Gym Workout\n3. journal" in text
        assert '"all" / "none"' in text

    def test_no_tasks_no_poll(self, make_user):
        assert ReminderService.compose_daily_poll(make_user()) is None

    def test_no_phone_no_poll(self, make_user):
        assert ReminderService.compose_daily_poll(make_user(career=["github"], phone="")) is None

    def test_send_daily_poll(self, db_session, messaging, make_user):
        user = make_user(career=["github"])

        result = ReminderService(db_session, messaging).send_daily_poll(user)

        assert result.success is True
        assert messaging.sent[0][0] == "+15550001"


class TestReminders:
    """Tests for send_reminders_to_all"""

    def test_sends_to_users_with_phone(self, db_session, messaging, make_user):
        make_user(career=["github"], phone="+1")
        make_user(career=["gym"], phone="+2")
        make_user(career=["gym"], phone="")
        make_user(phone="+3")  # no tasks, counted but nothing sent

        count = ReminderService(db_session, messaging).send_reminders_to_all()

        assert count == 3
        assert [address for address, _ in messaging.sent] == ["+1", "+2"]
