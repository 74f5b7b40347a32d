"""Week windows, quiet days and send-time computation.

Weekday numbers follow the 0=Sunday ... 6=Saturday convention used by
user preferences.
"""

import random
from datetime import UTC, datetime, time, timedelta
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from feedloop.observability.logging import get_logger

logger = get_logger(__name__)


def sunday_based_weekday(moment: datetime) -> int:
    """Weekday with Sunday as 0."""
    return (moment.weekday() + 1) % 7


def week_window(now: datetime) -> tuple[datetime, datetime]:
    """ISO week containing now: Monday 00:00 UTC to Sunday 23:59:59.999 UTC."""
    now_utc = now.astimezone(UTC)
    monday = datetime.combine(
        now_utc.date() - timedelta(days=now_utc.weekday()), time.min, tzinfo=UTC
    )
    sunday_end = monday + timedelta(days=7) - timedelta(milliseconds=1)
    return monday, sunday_end


def is_quiet_day(now: datetime, quiet_days: list[int]) -> bool:
    """Whether today's UTC weekday is one of the quiet days."""
    return sunday_based_weekday(now.astimezone(UTC)) in quiet_days


def parse_hh_mm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("unknown_timezone", timezone=name)
        return ZoneInfo("UTC")


def compute_send_time(
    now: datetime,
    *,
    timezone: str,
    preferred_time: str,
    rng: random.Random,
    jitter_minutes: int = 15,
) -> datetime:
    """Next occurrence of the preferred local time, plus jitter, in UTC.

    The preferred time is anchored to the user's local day and rolled to
    the next day if it is not strictly after now. The jitter is a whole
    number of minutes in [0, jitter_minutes).
    """
    tz = resolve_timezone(timezone)
    local_now = now.astimezone(tz)
    at = parse_hh_mm(preferred_time)

    candidate = datetime.combine(local_now.date(), at, tzinfo=tz)
    if candidate <= local_now:
        candidate = datetime.combine(local_now.date() + timedelta(days=1), at, tzinfo=tz)

    jitter = timedelta(minutes=rng.randrange(jitter_minutes))
    return candidate.astimezone(UTC) + jitter
