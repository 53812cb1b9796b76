"""Calendar-day boundaries in an owner's local reckoning.

Every day-sensitive calculation (streaks, "completed today", toggling, the
activity heatmap) goes through :class:`DayBoundary` so they cannot disagree
about where one day ends and the next begins.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from ..errors import InvalidInputError

ONE_DAY = timedelta(days=1)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC instant; naive values are taken as UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DayBoundary:
    """Midnight-to-midnight day reckoning for a single timezone.

    With ``tz=None`` instants are used exactly as given (naive values stay in
    their own wall-clock time). With a timezone, naive instants are treated as
    UTC and every instant is converted to the zone before its date is taken.
    """

    def __init__(self, tz: tzinfo | None = None) -> None:
        self.tz = tz

    @classmethod
    def for_timezone(cls, name: str | None) -> "DayBoundary":
        """Build a boundary from an IANA timezone name such as ``Europe/Oslo``."""

        if not name:
            return cls()
        try:
            return cls(ZoneInfo(name))
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidInputError(
                f"Unknown timezone: {name}", {"timezone": ["Unknown timezone"]}
            ) from exc

    def localize(self, value: datetime) -> datetime:
        if self.tz is None:
            return value
        return as_utc(value).astimezone(self.tz)

    def day_of(self, value: datetime) -> date:
        """Local calendar day containing ``value``."""

        return self.localize(value).date()

    def start_of_day(self, value: datetime) -> datetime:
        local = self.localize(value)
        return local.replace(hour=0, minute=0, second=0, microsecond=0)

    def end_of_day(self, value: datetime) -> datetime:
        return self.start_of_day(value) + ONE_DAY - timedelta(microseconds=1)

    def utc_range(self, day: date) -> tuple[datetime, datetime]:
        """Return ``[start, end)`` of the local ``day`` as aware UTC instants."""

        tz = self.tz or timezone.utc
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = datetime.combine(day + ONE_DAY, time.min, tzinfo=tz)
        return as_utc(start), as_utc(end)

    def noon_of(self, day: date) -> datetime:
        """Local midday of ``day`` as a UTC instant; used for back-dated toggles."""

        tz = self.tz or timezone.utc
        return as_utc(datetime.combine(day, time(hour=12), tzinfo=tz))

    def __repr__(self) -> str:
        return f"DayBoundary(tz={self.tz!r})"


def distinct_days(values, boundary: DayBoundary) -> set[date]:
    """Collapse instants to the set of local days they fall on."""

    return {boundary.day_of(value) for value in values}


__all__ = ["Clock", "DayBoundary", "ONE_DAY", "as_utc", "distinct_days", "system_clock"]
