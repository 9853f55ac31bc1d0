"""
Roster store: golfers, events, responses and guests in Supabase.

Every function is a thin key/value-style query returning plain dict rows
(the client's `result.data`). Ordering and capacity rules live in
logic/allocation_engine.py; nothing here decides positions.
"""
import os
from datetime import datetime
from typing import Dict, List, Optional
from database import supabase

DEFAULT_CAPACITY = int(os.environ.get("ROSTER_CAPACITY") or 16)
TIERS = ("preferred", "backup")


class DuplicatePhoneError(Exception):
    """Raised when a phone number already belongs to another golfer."""

    def __init__(self, phone_number: str):
        super().__init__(f"Phone number already registered: {phone_number}")
        self.phone_number = phone_number


def _now() -> str:
    return datetime.utcnow().isoformat()


def _first(result) -> Optional[Dict]:
    return result.data[0] if result.data else None


# --- Golfers ---

def get_golfer_by_phone(phone_number: str) -> Optional[Dict]:
    if not phone_number:
        return None
    return _first(supabase.table("golfers").select("*").eq("phone_number", phone_number).execute())


def get_golfer_by_id(golfer_id) -> Optional[Dict]:
    return _first(supabase.table("golfers").select("*").eq("golfer_id", golfer_id).execute())


def get_active_golfers(tier: str = None) -> List[Dict]:
    query = supabase.table("golfers").select("*").eq("active", True)
    if tier:
        query = query.eq("tier", tier)
    return query.order("name").execute().data or []


def get_golfers_by_ids(golfer_ids: List) -> Dict:
    """Map golfer_id -> golfer row for the given ids."""
    if not golfer_ids:
        return {}
    rows = supabase.table("golfers").select("*").in_("golfer_id", list(set(golfer_ids))).execute().data or []
    return {row["golfer_id"]: row for row in rows}


def add_golfer(name: str, phone_number: str, tier: str = "preferred") -> Dict:
    """
    Register a golfer.

    A deactivated golfer with the same phone is reactivated under the new
    name rather than duplicated. An active one raises DuplicatePhoneError.
    """
    existing = get_golfer_by_phone(phone_number)
    if existing:
        if existing.get("active"):
            raise DuplicatePhoneError(phone_number)
        result = supabase.table("golfers").update({
            "name": name,
            "active": True,
            "tier": tier,
        }).eq("golfer_id", existing["golfer_id"]).execute()
        print(f"[ROSTER] Reactivated golfer {name} ({phone_number})")
        return _first(result)

    result = supabase.table("golfers").insert({
        "name": name,
        "phone_number": phone_number,
        "active": True,
        "tier": tier,
    }).execute()
    print(f"[ROSTER] Added golfer {name} ({phone_number})")
    return _first(result)


def update_golfer(golfer_id, name: str, phone_number: str) -> Optional[Dict]:
    existing = get_golfer_by_phone(phone_number)
    if existing and existing["golfer_id"] != golfer_id:
        raise DuplicatePhoneError(phone_number)
    result = supabase.table("golfers").update({
        "name": name,
        "phone_number": phone_number,
    }).eq("golfer_id", golfer_id).execute()
    return _first(result)


def update_golfer_tier(golfer_id, tier: str) -> Optional[Dict]:
    if tier not in TIERS:
        raise ValueError(f"Unknown tier: {tier}")
    result = supabase.table("golfers").update({"tier": tier}).eq("golfer_id", golfer_id).execute()
    return _first(result)


def deactivate_golfer(golfer_id) -> Optional[Dict]:
    result = supabase.table("golfers").update({"active": False}).eq("golfer_id", golfer_id).execute()
    return _first(result)


# --- Events ---

def get_event(event_id) -> Optional[Dict]:
    return _first(supabase.table("events").select("*").eq("event_id", event_id).execute())


def get_open_event() -> Optional[Dict]:
    """The single open event, if any."""
    return _first(
        supabase.table("events").select("*").eq("status", "open")
        .order("created_at", desc=True).limit(1).execute()
    )


def get_latest_event() -> Optional[Dict]:
    """The open event, or else the most recently closed one."""
    event = get_open_event()
    if event:
        return event
    return _first(
        supabase.table("events").select("*").eq("status", "closed")
        .order("created_at", desc=True).limit(1).execute()
    )


def create_event(event_date: str, course: str, tee_times: List[str], capacity: int = DEFAULT_CAPACITY) -> Dict:
    """Close every open event, then open the new one."""
    closed = supabase.table("events").update({"status": "closed"}).eq("status", "open").execute()
    for event in closed.data or []:
        print(f"[EVENT] Closed event {event['event_id']} before opening a new one")

    result = supabase.table("events").insert({
        "event_date": event_date,
        "course": course,
        "tee_times": tee_times,
        "capacity": capacity,
        "status": "open",
        "created_at": _now(),
    }).execute()
    return _first(result)


def close_event(event_id) -> Optional[Dict]:
    result = supabase.table("events").update({"status": "closed"}).eq("event_id", event_id).execute()
    return _first(result)


def mark_backup_notified(event_id) -> Optional[Dict]:
    result = supabase.table("events").update({"backup_notified_at": _now()}).eq("event_id", event_id).execute()
    return _first(result)


# --- Responses ---

def get_response(event_id, golfer_id) -> Optional[Dict]:
    return _first(
        supabase.table("responses").select("*")
        .eq("event_id", event_id).eq("golfer_id", golfer_id).execute()
    )


def get_responses(event_id) -> List[Dict]:
    """All responses for an event, in the order they were recorded."""
    return supabase.table("responses").select("*").eq("event_id", event_id) \
        .order("responded_at").execute().data or []


def get_in_responses(event_id) -> List[Dict]:
    return supabase.table("responses").select("*").eq("event_id", event_id).eq("status", "in") \
        .order("position").execute().data or []


def upsert_response(event_id, golfer_id, status: str, position: Optional[int]) -> Optional[Dict]:
    """Insert or replace the single response a golfer has for an event."""
    result = supabase.table("responses").upsert({
        "event_id": event_id,
        "golfer_id": golfer_id,
        "status": status,
        "position": position,
        "responded_at": _now(),
    }, on_conflict="event_id,golfer_id").execute()
    return _first(result)


def update_response_position(response_id, position: int) -> Optional[Dict]:
    result = supabase.table("responses").update({"position": position}).eq("response_id", response_id).execute()
    return _first(result)


def delete_responses_for_event(event_id) -> int:
    result = supabase.table("responses").delete().eq("event_id", event_id).execute()
    return len(result.data or [])


# --- Guests ---

def get_guests(event_id) -> List[Dict]:
    return supabase.table("guests").select("*").eq("event_id", event_id) \
        .order("position").execute().data or []


def get_guests_by_host(event_id, host_golfer_id) -> List[Dict]:
    return supabase.table("guests").select("*").eq("event_id", event_id) \
        .eq("host_golfer_id", host_golfer_id).order("position").execute().data or []


def add_guest(event_id, host_golfer_id, name: str, position: int) -> Optional[Dict]:
    result = supabase.table("guests").insert({
        "event_id": event_id,
        "host_golfer_id": host_golfer_id,
        "name": name,
        "position": position,
        "created_at": _now(),
    }).execute()
    return _first(result)


def update_guest_position(guest_id, position: int) -> Optional[Dict]:
    result = supabase.table("guests").update({"position": position}).eq("guest_id", guest_id).execute()
    return _first(result)


def delete_guest(guest_id):
    supabase.table("guests").delete().eq("guest_id", guest_id).execute()


def delete_guests_by_host(event_id, host_golfer_id) -> int:
    result = supabase.table("guests").delete().eq("event_id", event_id) \
        .eq("host_golfer_id", host_golfer_id).execute()
    return len(result.data or [])


def delete_guests_for_event(event_id) -> int:
    result = supabase.table("guests").delete().eq("event_id", event_id).execute()
    return len(result.data or [])
