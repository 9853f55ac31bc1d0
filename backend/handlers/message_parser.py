"""
Parsers for the two free-text grammars the group speaks over SMS.

- Manager announcements:
      Golf 11-30-2025
      Red
      808/816/824/832
      In or out
- Golfer replies: IN / OUT with an optional guest suffix ("in +2", "yes plus guest").

All functions are pure. A message that does not match returns None; callers
turn that into a prompt instead of an error.
"""
from datetime import date
from typing import List, Optional, Tuple
import re

AFFIRMATIVE_REPLIES = ["in", "i'm in", "im in", "yes", "y", "count me in", "i am in"]
NEGATIVE_REPLIES = [
    "out", "i'm out", "im out", "no", "n", "count me out", "i am out",
    "can't make it", "cant make it",
]

GUEST_WORDS = {"a": 1, "one": 1, "two": 2, "three": 3}

_ANNOUNCEMENT_DATE_RE = re.compile(r'^golf\s+(\d{1,2})-(\d{1,2})-(\d{4})\b', re.IGNORECASE)
_ADD_COMMAND_RE = re.compile(r'^add\s+(.+?)\s+(\+?[\d\-\(\)\. ]{10,16})$', re.IGNORECASE)

# Longer phrases first so "i'm in" is not read as "i" + garbage
_AFFIRMATIVE_ALT = "|".join(re.escape(r) for r in sorted(AFFIRMATIVE_REPLIES, key=len, reverse=True))
_NEGATIVE_ALT = "|".join(re.escape(r) for r in sorted(NEGATIVE_REPLIES, key=len, reverse=True))

_IN_REPLY_RE = re.compile(
    rf'^(?:{_AFFIRMATIVE_ALT})'
    r'(?:(?:\s*(?:\+|plus)\s*|\s+)(?P<count>\d+|a|one|two|three)?\s*(?P<noun>guests?)?)?$'
)
_OUT_REPLY_RE = re.compile(rf'^(?:{_NEGATIVE_ALT})$')

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class Announcement:
    def __init__(self, event_date: str, course: str, times: List[str]):
        self.event_date = event_date
        self.course = course
        self.times = times

    def __repr__(self):
        return f"Announcement(event_date={self.event_date}, course={self.course}, times={self.times})"


class GolferReply:
    def __init__(self, status: str, guests: int = 0):
        self.status = status
        self.guests = guests

    def __repr__(self):
        return f"GolferReply(status={self.status}, guests={self.guests})"


def format_time(raw: str) -> Optional[str]:
    """
    Convert a compact tee time token to display form.

    "808" -> "8:08 AM", "1015" -> "10:15 AM", "1330" -> "1:30 PM", "012" -> "12:12 AM".
    """
    if raw is None:
        return None
    cleaned = raw.strip().replace(':', '', 1)
    if not re.fullmatch(r'\d{3,4}', cleaned):
        return None

    if len(cleaned) == 3:
        hours, minutes = int(cleaned[0]), cleaned[1:]
    else:
        hours, minutes = int(cleaned[:2]), cleaned[2:]

    if hours > 23 or int(minutes) > 59:
        return None

    period = "PM" if hours >= 12 else "AM"
    display_hours = hours - 12 if hours > 12 else (hours or 12)
    return f"{display_hours}:{minutes} {period}"


def parse_times(raw: str) -> List[str]:
    """Parse a tee time list separated by '/' or ',' and drop invalid tokens."""
    if not raw:
        return []
    tokens = [t.strip() for t in re.split(r'[,/]', raw) if t.strip()]
    return [t for t in (format_time(token) for token in tokens) if t]


def parse_announcement(text: str) -> Optional[Announcement]:
    """Parse a manager's tee time announcement, or return None."""
    if not text:
        return None
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if len(lines) < 3:
        return None

    date_match = _ANNOUNCEMENT_DATE_RE.match(lines[0])
    if not date_match:
        return None
    month, day, year = (int(g) for g in date_match.groups())
    try:
        event_date = date(year, month, day)
    except ValueError:
        return None

    course = lines[1]
    times = [t for t in (format_time(token) for token in lines[2].split('/')) if t]
    if not times:
        return None

    return Announcement(event_date.isoformat(), course, times)


def parse_golfer_reply(text: str) -> Optional[GolferReply]:
    """Parse an IN/OUT reply with optional guests, or return None."""
    if not text:
        return None
    cleaned = re.sub(r'\s+', ' ', text.strip().lower().replace('’', "'"))

    in_match = _IN_REPLY_RE.match(cleaned)
    if in_match:
        count = in_match.group("count")
        noun = in_match.group("noun")
        if count:
            guests = GUEST_WORDS[count] if count in GUEST_WORDS else int(count)
        elif noun:
            # "in plus guest" with no number
            guests = 1
        else:
            guests = 0
        return GolferReply("in", guests)

    if _OUT_REPLY_RE.match(cleaned):
        return GolferReply("out", 0)

    return None


def parse_add_command(text: str) -> Optional[Tuple[str, str]]:
    """Parse 'ADD <name> <phone>' into (name, raw phone), or None."""
    if not text:
        return None
    match = _ADD_COMMAND_RE.match(text.strip())
    if not match:
        return None
    return match.group(1).strip(), match.group(2).strip()


def format_date_for_display(iso_date: str) -> str:
    """Format an ISO date for SMS: '2025-11-30' -> 'Sunday 11/30'."""
    d = date.fromisoformat(iso_date)
    return f"{DAY_NAMES[d.weekday()]} {d.month}/{d.day}"
