"""Calendar-month keys and the substitutable clock used by lifecycle rules."""

from __future__ import annotations

import re
from datetime import UTC, date, datetime
from typing import Protocol, runtime_checkable

from incentives.exceptions import ValidationError

_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")


def parse_month(month: str) -> tuple[int, int]:
    """Split a ``YYYY-MM`` key into (year, month). Raises ValidationError if malformed."""
    match = _MONTH_RE.match(month)
    if match is None:
        raise ValidationError(f"Invalid month key '{month}', expected YYYY-MM")
    return int(match.group(1)), int(match.group(2))


def month_key(day: date) -> str:
    """Return the ``YYYY-MM`` key for the month containing ``day``."""
    return f"{day.year:04d}-{day.month:02d}"


def first_day(month: str) -> date:
    """Return the first calendar day of a month key."""
    year, mon = parse_month(month)
    return date(year, mon, 1)


def is_closed(month: str, current_month: str) -> bool:
    """True when ``month`` lies strictly before ``current_month``."""
    return parse_month(month) < parse_month(current_month)


@runtime_checkable
class Clock(Protocol):
    """Source of the current time for eligibility and submission-window checks."""

    def now(self) -> datetime:
        """Return the current aware datetime."""
        ...

    def current_month(self) -> str:
        """Return the ``YYYY-MM`` key of the current calendar month."""
        ...


class SystemClock:
    """Wall-clock implementation."""

    def now(self) -> datetime:
        return datetime.now(UTC)

    def current_month(self) -> str:
        return month_key(self.now().date())


class FixedClock:
    """Clock pinned to a given instant. ``set`` moves it for tests."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def current_month(self) -> str:
        return month_key(self._instant.date())

    def set(self, instant: datetime) -> None:
        self._instant = instant


_clock: Clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency for the clock."""
    return _clock


def set_clock(clock: Clock) -> None:
    """Override the clock (for testing)."""
    global _clock
    _clock = clock
