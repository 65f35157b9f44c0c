"""
Command interpreter for the messaging channel.
Turns free-text replies into completion intents or a read-only status report.
"""
import logging
import re
from datetime import date
from typing import List, NamedTuple, Sequence, Union
from sqlalchemy.orm import Session

from activity_tracker.models import User
from activity_tracker.schemas import InterpretResult
from activity_tracker.repositories.user_repository import UserRepository
from activity_tracker.services.completion_service import CompletionService
from activity_tracker.services.date_service import DateService
from activity_tracker.services.ledger_service import LedgerService
from activity_tracker.services.messaging_service import MessagingClient, task_display_name
from activity_tracker.services.streak_service import StreakService
from activity_tracker.constants import (
    EMPTY_KEYWORDS, ALL_KEYWORDS, STATUS_KEYWORD, SOURCE_MESSAGING
)
from activity_tracker.exceptions import UserNotFoundError

logger = logging.getLogger("activity_tracker.commands")

RESULT_STATUS = "status"
RESULT_COMPLETION = "completion"
RESULT_EMPTY = "empty"

REGISTRATION_PROMPT = "❌ Phone not registered. Please register at the web app first."
EMPTY_REPLY = "👍 Got it! Reply with task numbers anytime to log progress."

_NUMBER_RE = re.compile(r"\d+")


class ParsedCommand(NamedTuple):
    kind: str  # status, completion, empty
    task_ids: List[str]


def parse_command(text: str, ordinal_tasks: Sequence[str]) -> ParsedCommand:
    """
    Parse a free-text reply against the user's ordinal task list.

    Rules, first match wins (on the lower-cased, trimmed text):
    1. "none" / "no" / "0"   -> nothing completed
    2. "all" / "done all"    -> every task
    3. "status"              -> status report, no writes
    4. every run of digits is a 1-based task number; out-of-range numbers
       are dropped, repeats count once
    Anything else is an empty completion set.
    """
    message = (text or "").lower().strip()

    if message in EMPTY_KEYWORDS:
        return ParsedCommand(RESULT_EMPTY, [])

    if message in ALL_KEYWORDS:
        task_ids = list(dict.fromkeys(ordinal_tasks))
        return ParsedCommand(RESULT_COMPLETION if task_ids else RESULT_EMPTY, task_ids)

    if message == STATUS_KEYWORD:
        return ParsedCommand(RESULT_STATUS, [])

    task_ids = []
    for number in _NUMBER_RE.findall(message):
        index = int(number)
        if 1 <= index <= len(ordinal_tasks):
            task_id = ordinal_tasks[index - 1]
            if task_id not in task_ids:
                task_ids.append(task_id)

    return ParsedCommand(RESULT_COMPLETION if task_ids else RESULT_EMPTY, task_ids)


class CommandService:
    """Resolves inbound messages to users and applies their intents"""

    def __init__(self, db: Session, messaging: MessagingClient):
        self.db = db
        self.messaging = messaging
        self.user_repo = UserRepository()
        self.ledger = LedgerService(db)
        self.streak_service = StreakService(db)
        self.completion_service = CompletionService(db)

    def interpret_message(self, address: str, text: str, today: Union[date, str]) -> InterpretResult:
        """
        Handle one inbound message.

        Args:
            address: Sender's channel address (e.g. "whatsapp:+15550001")
            text: Raw message body
            today: Reference calendar day for the completions

        Returns:
            InterpretResult of type "status", "completion" or "empty"

        Raises:
            UserNotFoundError: Sender is not registered (prompt already sent)
        """
        day = DateService.parse_date(today, "today")
        user = self.user_repo.get_by_phone(self.db, address)
        if not user:
            logger.warning(f"Message from unregistered address {address}")
            self.messaging.send_message(address, REGISTRATION_PROMPT)
            raise UserNotFoundError(address)

        ordinal_tasks = [task_id for task_id, _ in user.ordinal_tasks()]
        command = parse_command(text, ordinal_tasks)
        logger.info(f"Message from user {user.id}: {text!r} -> {command.kind} {command.task_ids}")

        if command.kind == RESULT_STATUS:
            return self._send_status(user, address, ordinal_tasks, day)

        if command.kind == RESULT_EMPTY:
            self.messaging.send_message(address, EMPTY_REPLY)
            return InterpretResult(type=RESULT_EMPTY, details={"date": day.isoformat()})

        result = None
        for task_id in command.task_ids:
            result = self.completion_service.apply_completion(
                user.id, task_id, day, True, SOURCE_MESSAGING
            )

        names = [task_display_name(task_id) for task_id in command.task_ids]
        reply = (
            f"✅ Recorded {len(names)} task(s):\n"
            + "\n".join(f"• {name}" for name in names)
            + f"\n\n🔥 Streak: {result.global_streak.current_streak} day(s) "
            + f"({result.completed_count}/{result.min_required} today)"
        )
        self.messaging.send_message(address, reply)

        return InterpretResult(
            type=RESULT_COMPLETION,
            details={
                "date": day.isoformat(),
                "task_ids": command.task_ids,
                "completed_count": result.completed_count,
                "min_required": result.min_required,
                "streak_updated": result.streak_updated,
                "global_streak": result.global_streak.current_streak,
            }
        )

    def _send_status(self, user: User, address: str, ordinal_tasks: List[str], day: date) -> InterpretResult:
        """Report today's flags and per-task streaks; writes nothing"""
        activities = self.ledger.find_by_user_and_date_range(user.id, day, day)
        done = {activity.task_id for activity in activities if activity.completed}
        streaks = self.streak_service.get_task_streaks(user.id)

        lines = ["📊 *Your Status for Today*", ""]
        tasks = []
        for task_id in ordinal_tasks:
            streak = streaks.get(task_id)
            current = streak.current_streak if streak and streak.current_streak else 0
            marker = "✅" if task_id in done else "⬜"
            lines.append(f"{marker} {task_display_name(task_id)} (🔥{current})")
            tasks.append({"task_id": task_id, "completed": task_id in done, "current_streak": current})

        report = "\n".join(lines)
        self.messaging.send_message(address, report)
        return InterpretResult(
            type=RESULT_STATUS,
            details={"date": day.isoformat(), "report": report, "tasks": tasks}
        )
