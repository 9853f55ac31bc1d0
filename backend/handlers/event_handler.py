"""
Event lifecycle: announce, close, Friday close-out, backup invitations,
forwarding to the manager and the final groupings broadcast.
"""
from typing import Dict, List, Optional
import roster_store
import sms_constants as msg
from twilio_client import send_to_many
from handlers.message_parser import format_date_for_display
from logic.allocation_engine import load_roster, get_capacity
from logic.auth_service import get_manager_phones
from logic.summary_service import generate_summary
from redis_client import forget_event_lock


def build_announcement(event: Dict) -> str:
    return msg.MSG_ANNOUNCEMENT.format(
        display_date=format_date_for_display(event["event_date"]),
        course=event.get("course", ""),
        times=", ".join(event.get("tee_times") or []),
        capacity=get_capacity(event),
    )


def create_event_and_notify(event_date: str, course: str, times: List[str],
                            capacity: int = roster_store.DEFAULT_CAPACITY) -> Dict:
    """
    Open a new event (closing any open one) and text the preferred tier.

    Backup-tier golfers are invited later by notify_backup_golfers.
    """
    event = roster_store.create_event(event_date, course, times, capacity)
    event_id = event["event_id"]

    phones = [g["phone_number"] for g in roster_store.get_active_golfers(tier="preferred")]
    result = {"succeeded": 0, "failed": 0}
    if phones:
        result = send_to_many(phones, build_announcement(event))

    print(f"[EVENT] Event {event_id} created for {event_date}, notified {result['succeeded']} golfers")
    return {"event_id": event_id, "event": event, "notified": result["succeeded"], "failed": result["failed"]}


def close_active_event() -> Optional[Dict]:
    """Close the open event. Returns the closed event, or None if none was open."""
    event = roster_store.get_open_event()
    if not event:
        return None
    roster_store.close_event(event["event_id"])
    forget_event_lock(event["event_id"])
    print(f"[EVENT] Closed event {event['event_id']}")
    return event


def send_friday_summary() -> Dict:
    """Text the summary to every manager, then close the event."""
    event = roster_store.get_open_event()
    if not event:
        print("[EVENT] No active event for Friday summary")
        return {"success": False, "error": "No active event"}

    summary = generate_summary(event["event_id"])
    result = send_to_many(get_manager_phones(), summary) if summary else {"succeeded": 0, "failed": 0}
    roster_store.close_event(event["event_id"])
    forget_event_lock(event["event_id"])

    print(f"[EVENT] Friday summary sent for event {event['event_id']}")
    return {"success": True, "event_id": event["event_id"], "sent": result["succeeded"], "failed": result["failed"]}


def notify_backup_golfers(event_id=None) -> Dict:
    """
    Invite the backup tier when the open event still has confirmed spots.

    Runs at most once per event (tracked by backup_notified_at).
    """
    event = roster_store.get_event(event_id) if event_id else roster_store.get_open_event()
    if not event or event.get("status") != "open":
        return {"success": False, "error": "No active event"}
    if event.get("backup_notified_at"):
        return {"success": False, "error": "Backup golfers already notified"}

    capacity = get_capacity(event)
    confirmed = [e for e in load_roster(event["event_id"]) if e.is_in and e.position <= capacity]
    if len(confirmed) >= capacity:
        return {"success": True, "notified": 0, "failed": 0, "full": True}

    phones = [g["phone_number"] for g in roster_store.get_active_golfers(tier="backup")]
    result = send_to_many(phones, build_announcement(event)) if phones else {"succeeded": 0, "failed": 0}
    roster_store.mark_backup_notified(event["event_id"])

    print(f"[EVENT] Backup tier notified for event {event['event_id']}: {result['succeeded']} sent")
    return {"success": True, "notified": result["succeeded"], "failed": result["failed"], "full": False}


def forward_to_manager(golfer: Dict, body: str) -> Dict[str, int]:
    forwarded = msg.MSG_FORWARD_TO_MANAGER.format(name=golfer.get("name", "Unknown"), body=body)
    return send_to_many(get_manager_phones(), forwarded)


def build_groupings_message(event: Dict, groupings: Dict[str, List[str]]) -> str:
    lines = [msg.MSG_GROUPINGS_HEADER.format(
        display_date=format_date_for_display(event["event_date"]),
        course=event.get("course", ""),
    ), ""]
    # Announced order, so "10:15 AM" does not sort ahead of "8:08 AM"
    order = {t: i for i, t in enumerate(event.get("tee_times") or [])}
    for tee_time in sorted(groupings, key=lambda t: (order.get(t, len(order)), t)):
        players = [p for p in (groupings[tee_time] or []) if p]
        if players:
            lines.append(f"{tee_time}: {', '.join(players)}")
    lines += ["", msg.MSG_GROUPINGS_FOOTER]
    return "\n".join(lines)


def send_groupings(groupings: Dict[str, List[str]], dry_run: bool = False) -> Dict:
    """
    Text the final foursomes to every assigned golfer with a phone on file.

    Guests have no phone and are only named in the message. With dry_run
    nothing is sent and `sent` is the number of golfers who would be texted.
    """
    event = roster_store.get_latest_event()
    if not event:
        return {"success": False, "error": "No event found"}

    assigned = {name for group in groupings.values() for name in (group or []) if name}
    phones = [g["phone_number"] for g in roster_store.get_active_golfers() if g["name"] in assigned]
    if not phones:
        return {"success": False, "error": "No valid phone numbers found"}

    message = build_groupings_message(event, groupings)
    if dry_run:
        return {"success": True, "sent": len(phones), "failed": 0, "message": message}

    result = send_to_many(phones, message)
    return {"success": True, "sent": result["succeeded"], "failed": result["failed"], "message": message}
