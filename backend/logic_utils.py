import os
from datetime import datetime, timezone
import pytz
from dotenv import load_dotenv

load_dotenv()

DEFAULT_TIMEZONE = "America/New_York"

# Weekdays (Mon=0) on which golfer replies are forwarded to the manager
# instead of changing the roster: the weekend of the outing.
CLOSED_RESPONSE_DAYS = (5, 6)


def get_group_timezone() -> str:
    """Timezone the group plays in, defaulting to America/New_York."""
    return os.environ.get("GROUP_TIMEZONE") or DEFAULT_TIMEZONE


def get_now_utc() -> datetime:
    return datetime.now(timezone.utc)


def get_now_local(now: datetime = None) -> datetime:
    """Current time (or `now`) in the group's timezone."""
    try:
        tz = pytz.timezone(get_group_timezone())
    except pytz.UnknownTimeZoneError:
        print(f"Note: Unknown GROUP_TIMEZONE, defaulting to {DEFAULT_TIMEZONE}")
        tz = pytz.timezone(DEFAULT_TIMEZONE)

    now = now or get_now_utc()
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz)


def is_response_window_open(now: datetime = None) -> bool:
    """
    Golfers can change the roster Monday through Friday.

    After the Friday close-out the manager handles changes personally, so
    weekend replies are forwarded instead.
    """
    return get_now_local(now).weekday() not in CLOSED_RESPONSE_DAYS
