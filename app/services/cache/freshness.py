"""Freshness policy - TTL from the recency of the queried data."""

import re
from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone

from loguru import logger

from app.models.cache import EntryClass
from app.models.common import utcnow
from settings import METADATA_TTL, OBSERVATION_LONG_TTL, OBSERVATION_SHORT_TTL, RECENT_MONTHS

_YEAR = re.compile(r"^(\d{4})$")
_MONTH = re.compile(r"^(\d{4})-M?(\d{1,2})$")
_QUARTER = re.compile(r"^(\d{4})-?Q([1-4])$")
_SEMESTER = re.compile(r"^(\d{4})-?[SH]([12])$")
_WEEK = re.compile(r"^(\d{4})-?W(\d{1,2})$")


def parse_period(period: str | None) -> datetime | None:
    """First instant of an SDMX time period, or None if unparsable."""
    if not period:
        return None
    text = period.strip().upper()

    try:
        if m := _YEAR.match(text):
            return datetime(int(m[1]), 1, 1)
        if m := _MONTH.match(text):
            return datetime(int(m[1]), int(m[2]), 1)
        if m := _QUARTER.match(text):
            return datetime(int(m[1]), (int(m[2]) - 1) * 3 + 1, 1)
        if m := _SEMESTER.match(text):
            return datetime(int(m[1]), (int(m[2]) - 1) * 6 + 1, 1)
        if m := _WEEK.match(text):
            return datetime.combine(date.fromisocalendar(int(m[1]), int(m[2]), 1), datetime.min.time())
        parsed = datetime.fromisoformat(period.strip())
    except ValueError:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def months_before(moment: datetime, months: int) -> datetime:
    """Same day-of-month ``months`` earlier, clamped to the month's end."""
    year, month = divmod(moment.year * 12 + moment.month - 1 - months, 12)
    month += 1
    day = moment.day
    while True:
        try:
            return moment.replace(year=year, month=month, day=day)
        except ValueError:
            day -= 1


class FreshnessPolicy:
    """TTL per entry class and start period."""

    def __init__(
        self,
        short_ttl: int = OBSERVATION_SHORT_TTL,
        long_ttl: int = OBSERVATION_LONG_TTL,
        metadata_ttl: int = METADATA_TTL,
        recent_months: int = RECENT_MONTHS,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.short_ttl = timedelta(seconds=short_ttl)
        self.long_ttl = timedelta(seconds=long_ttl)
        self.default_ttl = self.short_ttl
        self.metadata_ttl = timedelta(seconds=metadata_ttl)
        self._recent_months = recent_months
        self._clock = clock

    def ttl_for(self, entry_class: EntryClass, start_period: str | None = None) -> timedelta:
        """Recent data expires in a day, history in a week, structures in a month."""
        if entry_class == EntryClass.METADATA:
            return self.metadata_ttl

        start = parse_period(start_period)
        if start is None:
            if start_period:
                logger.debug("Unparsable start period {!r}, using default TTL", start_period)
            return self.default_ttl

        cutoff = months_before(self._clock(), self._recent_months)
        return self.short_ttl if start > cutoff else self.long_ttl
