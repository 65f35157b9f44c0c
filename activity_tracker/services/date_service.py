"""
Calendar-day handling.
Provides the process-wide reference clock and date helpers used by the ledger,
the streak machine and the dashboard windows.
"""
from datetime import datetime, timedelta, date
from typing import List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging
import re
import os

from activity_tracker.constants import DATE_FORMAT
from activity_tracker.exceptions import ValidationError

logger = logging.getLogger("activity_tracker.dates")

_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Clock:
    """
    Reference clock: "today" in the single process-wide timezone.

    The timezone comes from the TIMEZONE environment variable. When it is
    unset (or unknown) the process local date is used.
    """

    def __init__(self, tz_name: Optional[str] = None):
        tz_name = tz_name if tz_name is not None else os.getenv("TIMEZONE")
        self.tz = None
        if tz_name:
            try:
                self.tz = ZoneInfo(tz_name)
            except ZoneInfoNotFoundError:
                logger.warning(f"Unknown timezone {tz_name!r}, using local time")

    def now(self) -> datetime:
        return datetime.now(self.tz) if self.tz else datetime.now()

    def today(self) -> date:
        return self.now().date()


class FixedClock(Clock):
    """Clock pinned to a given day (tests, replays)"""

    def __init__(self, current: date):
        super().__init__(tz_name="")
        self.current = current

    def now(self) -> datetime:
        return datetime.combine(self.current, datetime.min.time())

    def today(self) -> date:
        return self.current

    def advance(self, days: int = 1) -> date:
        self.current = self.current + timedelta(days=days)
        return self.current


class DateService:
    """Service for date-related operations"""

    @staticmethod
    def parse_date(value: Union[date, str, None], field: str = "date") -> date:
        """
        Normalize a calendar day.

        Args:
            value: date object or "YYYY-MM-DD" string
            field: Field name reported in the validation error

        Returns:
            date

        Raises:
            ValidationError: If value is not a valid calendar day
        """
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise ValidationError(field, f"expected YYYY-MM-DD, got {value!r}")
        value = value.strip()
        # strptime alone accepts unpadded months and days
        if not _ISO_DAY_RE.match(value):
            raise ValidationError(field, f"invalid calendar day {value!r}, expected YYYY-MM-DD")
        try:
            return datetime.strptime(value, DATE_FORMAT).date()
        except ValueError:
            raise ValidationError(field, f"invalid calendar day {value!r}, expected YYYY-MM-DD")

    @staticmethod
    def format_date(value: Optional[date]) -> Optional[str]:
        return value.strftime(DATE_FORMAT) if value else None

    @staticmethod
    def previous_day(target_date: date) -> date:
        return target_date - timedelta(days=1)

    @staticmethod
    def get_window(end_date: date, days: int) -> tuple[date, date]:
        """
        Get inclusive (start, end) range of `days` calendar days ending on end_date.

        Example: days=7, end_date=2026-01-30 -> (2026-01-24, 2026-01-30)
        """
        return end_date - timedelta(days=days - 1), end_date

    @staticmethod
    def get_date_range(end_date: date, days: int) -> List[date]:
        """List of `days` consecutive calendar days ending on end_date, oldest first"""
        return [end_date - timedelta(days=offset) for offset in range(days - 1, -1, -1)]
