from typing import Dict, List, Optional
import roster_store
from handlers.message_parser import format_date_for_display
from logic.allocation_engine import load_roster, get_capacity


def _bucket_roster(event: Dict) -> Dict[str, List]:
    """Split an event's roster into the four disjoint views."""
    capacity = get_capacity(event)
    entries = load_roster(event["event_id"])

    in_entries = sorted((e for e in entries if e.is_in), key=lambda e: e.sort_key())
    confirmed = [e for e in in_entries if e.position <= capacity]
    waitlist = [e for e in in_entries if e.position > capacity]
    out = [e for e in entries if e.kind == "golfer" and not e.is_in]

    responded_ids = {e.golfer_id for e in entries if e.kind == "golfer"}
    no_response = [g for g in roster_store.get_active_golfers() if g["golfer_id"] not in responded_ids]

    return {
        "confirmed": confirmed,
        "waitlist": waitlist,
        "out": out,
        "no_response": no_response,
    }


def build_event_status(event: Optional[Dict]) -> Dict:
    """Machine-readable status for the dashboard."""
    if not event:
        return {"event": None}

    capacity = get_capacity(event)
    buckets = _bucket_roster(event)
    return {
        "event": event,
        "capacity": capacity,
        "confirmed": [e.to_dict(capacity) for e in buckets["confirmed"]],
        "waitlist": [e.to_dict(capacity) for e in buckets["waitlist"]],
        "out": [e.to_dict(capacity) for e in buckets["out"]],
        "no_response": [
            {"golfer_id": g["golfer_id"], "name": g["name"], "phone_number": g["phone_number"]}
            for g in buckets["no_response"]
        ],
    }


def generate_summary(event_id) -> Optional[str]:
    """
    Condensed SMS summary of an event.

    IN always renders ("None" when empty); WAITLIST, OUT and NO RESPONSE only
    when they have members.
    """
    event = roster_store.get_event(event_id)
    if not event:
        return None

    buckets = _bucket_roster(event)
    confirmed = [e.name for e in buckets["confirmed"]]
    waitlist = [e.name for e in buckets["waitlist"]]
    out = [e.name for e in buckets["out"]]
    no_response = [g["name"] for g in buckets["no_response"]]

    display_date = format_date_for_display(event["event_date"])
    times = event.get("tee_times") or []

    lines = [
        f"Golf {display_date} {event.get('course', '')} - {len(confirmed)} confirmed",
        f"Times: {', '.join(times)}",
        "",
        f"IN ({len(confirmed)}): {', '.join(confirmed) or 'None'}",
    ]
    if waitlist:
        lines += ["", f"WAITLIST ({len(waitlist)}): {', '.join(waitlist)}"]
    if out:
        lines += ["", f"OUT ({len(out)}): {', '.join(out)}"]
    if no_response:
        lines += ["", f"NO RESPONSE ({len(no_response)}): {', '.join(no_response)}"]

    return "\n".join(lines).strip()


def get_confirmed_roster(event: Dict) -> List[Dict]:
    """Confirmed golfers and guests in position order, for building groupings."""
    capacity = get_capacity(event)
    return [e.to_dict(capacity) for e in _bucket_roster(event)["confirmed"]]
