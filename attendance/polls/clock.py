"""Parsing of event date text and computation of the registration deadline."""

import math
import re
from datetime import UTC, datetime, timedelta, tzinfo

from attendance.polls.dtos import InvalidFormatError

DEFAULT_DEADLINE_OFFSET = timedelta(hours=24)

# One day of headroom keeps every stored instant displayable in any zone
EARLIEST_TIMESTAMP = datetime.min.replace(tzinfo=UTC) + timedelta(days=1)
LATEST_TIMESTAMP = datetime.max.replace(tzinfo=UTC) - timedelta(days=1)

_DATE_TEXT_RE = re.compile(r"^([0-9]{4})-([0-9]{2})-([0-9]{2}) ([0-9]{2}):([0-9]{2})$")


def utc_now() -> datetime:
    return datetime.now(UTC)


def parse_event_datetime(date_text: str, tz: tzinfo = UTC) -> datetime:
    """Parse ``YYYY-MM-DD HH:MM`` in ``tz`` and return the instant in UTC.

    Day 01-31 is accepted for every month; days past the end of the month roll
    over into the next one (``2025-02-31`` is March 3rd). Dates too close to the
    ends of the calendar to carry a 24h deadline are rejected.
    """
    match = _DATE_TEXT_RE.match(date_text.strip()) if date_text else None
    if match is None:
        raise InvalidFormatError(date_text)

    year, month, day, hour, minute = (int(part) for part in match.groups())
    if not (1 <= month <= 12 and 1 <= day <= 31 and hour <= 23 and minute <= 59):
        raise InvalidFormatError(date_text)

    try:
        local = datetime(year, month, 1, hour, minute, tzinfo=tz) + timedelta(days=day - 1)
        instant = local.astimezone(UTC)
    except (ValueError, OverflowError) as e:
        raise InvalidFormatError(date_text) from e

    if not (EARLIEST_TIMESTAMP + DEFAULT_DEADLINE_OFFSET <= instant <= LATEST_TIMESTAMP):
        raise InvalidFormatError(date_text)
    return instant


def compute_deadline(
    event_date: datetime,
    explicit_minutes: float | None = None,
    now: datetime | None = None,
) -> datetime:
    """Deadline is ``now + explicit_minutes`` when given, else 24h before the event.

    Results are clamped to the supported range; a clamped late deadline is
    still rejected on creation for not being before the event.
    """
    if explicit_minutes is not None and math.isfinite(explicit_minutes):
        now = now or utc_now()
        try:
            deadline = now + timedelta(minutes=explicit_minutes)
        except OverflowError:
            return LATEST_TIMESTAMP if explicit_minutes > 0 else EARLIEST_TIMESTAMP
        return min(max(deadline, EARLIEST_TIMESTAMP), LATEST_TIMESTAMP)
    # Absolute arithmetic, so a DST switch does not shift the offset
    try:
        return max(event_date.astimezone(UTC) - DEFAULT_DEADLINE_OFFSET, EARLIEST_TIMESTAMP)
    except OverflowError:
        return EARLIEST_TIMESTAMP


def format_timestamp(ts: datetime, tz: tzinfo, fmt: str) -> str:
    return ts.astimezone(tz).strftime(fmt)
