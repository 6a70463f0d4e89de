"""Clock abstraction: the only source of time the engine consults."""

from datetime import UTC, date, datetime, time, timedelta, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

from dateutil import parser as dateutil_parser

from src.core.config import settings


class Clock(Protocol):
    """Supplies "now" and calendar-day boundaries."""

    @property
    def tz(self) -> tzinfo:
        """Timezone used for local calendar days."""
        ...

    def now(self) -> datetime:
        """Current timezone-aware instant."""
        ...

    def today(self) -> date:
        """Current calendar day in local time."""
        ...


class SystemClock:
    """Wall-clock time in the configured local timezone."""

    def __init__(self, tz: tzinfo | None = None) -> None:
        self._tz = tz or ZoneInfo(settings.timezone)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz)

    def today(self) -> date:
        return self.now().date()


class FixedClock:
    """Deterministic clock for tests and replays."""

    def __init__(self, now: datetime, tz: tzinfo | None = None) -> None:
        self._tz = tz or now.tzinfo or UTC
        self._now = ensure_aware(now).astimezone(self._tz)

    @property
    def tz(self) -> tzinfo:
        return self._tz

    def now(self) -> datetime:
        return self._now

    def today(self) -> date:
        return self._now.date()

    def advance(self, delta: timedelta) -> None:
        """Move the clock forward by delta."""
        self._now = self._now + delta

    def set(self, now: datetime) -> None:
        """Jump the clock to a new instant."""
        self._now = ensure_aware(now).astimezone(self._tz)


def ensure_aware(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp (with or without 'Z'), always returning an aware datetime."""
    return ensure_aware(dateutil_parser.isoparse(value))


def local_day(ts: datetime, tz: tzinfo) -> date:
    """Calendar day of an instant in local time."""
    return ensure_aware(ts).astimezone(tz).date()


def local_midnight(day: date, tz: tzinfo) -> datetime:
    """Local midnight at the start of day."""
    return datetime.combine(day, time.min, tzinfo=tz)


def next_local_midnight(now: datetime, tz: tzinfo) -> datetime:
    """Local midnight at the start of the day after now."""
    return local_midnight(local_day(now, tz) + timedelta(days=1), tz)


def week_start(day: date) -> date:
    """Monday of the week containing day."""
    return day - timedelta(days=day.weekday())
