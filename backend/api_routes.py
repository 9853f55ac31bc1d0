from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Dict, List
from datetime import date
import random

import roster_store
from twilio_client import normalize_phone_number
from handlers.message_parser import parse_times
from handlers.event_handler import create_event_and_notify, close_active_event, send_groupings
from handlers.notifications import dispatch_notices
from logic.allocation_engine import record_response
from logic.auth_service import is_manager
from logic.summary_service import build_event_status, get_confirmed_roster
from error_logger import log_api_error
from redis_client import event_lock

router = APIRouter()


class VerifyRequest(BaseModel):
    phone: str

class CreateEventRequest(BaseModel):
    date: str
    course: str
    times: str
    capacity: int = roster_store.DEFAULT_CAPACITY

class RespondRequest(BaseModel):
    phone: str
    status: str
    guests: int = 0

class SimulateResponseRequest(BaseModel):
    golfer_id: int
    status: str
    guests: int = 0

class GroupingsRequest(BaseModel):
    groupings: Dict[str, List[str]]
    test_mode: bool = False

class GolferRequest(BaseModel):
    name: str
    phone: str
    tier: str = "preferred"

class TierRequest(BaseModel):
    tier: str


@router.post("/auth/verify")
async def verify_manager(request: VerifyRequest):
    """Check a phone against the manager allow-list."""
    return {"authorized": is_manager(request.phone)}


# --- Event ---

@router.get("/event/status")
async def get_event_status():
    """Current open event with confirmed / waitlist / out / no-response buckets."""
    try:
        return build_event_status(roster_store.get_open_event())
    except Exception as e:
        log_api_error(f"Event status error: {e}", "get_event_status", exception=e)
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/event/manager-status")
async def get_manager_status(phone: str):
    """One phone's own response to the open event."""
    event = roster_store.get_open_event()
    if not event:
        return {"response": None}

    golfer = roster_store.get_golfer_by_phone(normalize_phone_number(phone))
    if not golfer:
        return {"response": None}

    response = roster_store.get_response(event["event_id"], golfer["golfer_id"])
    if response:
        response["guests"] = len(roster_store.get_guests_by_host(event["event_id"], golfer["golfer_id"]))
    return {"response": response}


@router.post("/event/create")
async def create_event(request: CreateEventRequest):
    times = parse_times(request.times)
    if not times:
        return {"success": False, "error": "Invalid tee times format"}

    try:
        event_date = date.fromisoformat(request.date.strip()).isoformat()
    except ValueError:
        return {"success": False, "error": "Invalid date format"}

    try:
        result = create_event_and_notify(event_date, request.course.strip(), times, request.capacity)
        return {"success": True, "event_id": result["event_id"], "notified": result["notified"],
                "failed": result["failed"]}
    except Exception as e:
        log_api_error(f"Create event error: {e}", "create_event", exception=e)
        return {"success": False, "error": "Failed to create event"}


@router.post("/event/close")
async def close_event():
    event = close_active_event()
    if not event:
        return {"success": False, "error": "No active event to close"}
    return {"success": True, "event_id": event["event_id"]}


@router.post("/event/respond")
async def respond(request: RespondRequest):
    """Record IN/OUT for a phone from the dashboard."""
    status = request.status.strip().lower()
    if status not in ("in", "out"):
        return {"success": False, "error": "Status must be 'in' or 'out'"}

    try:
        golfer = roster_store.get_golfer_by_phone(normalize_phone_number(request.phone))
        if not golfer or not golfer.get("active", True):
            return {"success": False, "error": "Phone number not registered as a golfer"}

        event = roster_store.get_open_event()
        if not event:
            return {"success": False, "error": "No active event"}

        result = record_response(golfer, event["event_id"], status, request.guests)
        delivery = dispatch_notices(result.notices)
        data = result.to_dict()
        data["notifications"] = delivery
        return data
    except Exception as e:
        log_api_error(f"Respond error: {e}", "respond", exception=e)
        return {"success": False, "error": "Failed to record response"}


@router.get("/event/for-groupings")
async def get_event_for_groupings():
    """Open event (or the last closed one) with its confirmed roster."""
    event = roster_store.get_latest_event()
    if not event:
        return {"event": None}
    return {"event": event, "confirmed": get_confirmed_roster(event)}


@router.post("/event/send-groupings")
async def post_send_groupings(request: GroupingsRequest):
    try:
        return send_groupings(request.groupings, dry_run=request.test_mode)
    except Exception as e:
        log_api_error(f"Send groupings error: {e}", "send_groupings", exception=e)
        return {"success": False, "error": "Failed to send groupings"}


# --- Test mode: simulated responses never send notices ---

@router.post("/event/simulate-response")
async def simulate_response(request: SimulateResponseRequest):
    event = roster_store.get_open_event()
    if not event:
        return {"success": False, "error": "No active event"}
    golfer = roster_store.get_golfer_by_id(request.golfer_id)
    if not golfer:
        return {"success": False, "error": "Golfer not found"}

    result = record_response(golfer, event["event_id"], request.status.strip().lower(), request.guests)
    return result.to_dict()


@router.post("/event/random-responses")
async def random_responses():
    """Fill in random IN/OUT answers for every golfer who has not replied."""
    event = roster_store.get_open_event()
    if not event:
        return {"success": False, "error": "No active event"}

    responded = {r["golfer_id"] for r in roster_store.get_responses(event["event_id"])}
    in_count = 0
    out_count = 0
    for golfer in roster_store.get_active_golfers():
        if golfer["golfer_id"] in responded:
            continue
        status = "in" if random.random() < 0.7 else "out"
        record_response(golfer, event["event_id"], status)
        if status == "in":
            in_count += 1
        else:
            out_count += 1

    return {"success": True, "in_count": in_count, "out_count": out_count}


@router.post("/event/clear-responses")
async def clear_responses():
    event = roster_store.get_open_event()
    if not event:
        return {"success": False, "error": "No active event"}
    with event_lock(event["event_id"]):
        guests = roster_store.delete_guests_for_event(event["event_id"])
        responses = roster_store.delete_responses_for_event(event["event_id"])
    return {"success": True, "responses_cleared": responses, "guests_cleared": guests}


# --- Golfers ---

@router.get("/golfers")
async def get_golfers():
    return {"golfers": roster_store.get_active_golfers()}


@router.post("/golfers")
async def add_golfer(request: GolferRequest):
    phone = normalize_phone_number(request.phone)
    if not phone:
        return {"success": False, "error": "Invalid phone number"}
    if request.tier not in roster_store.TIERS:
        return {"success": False, "error": "Tier must be 'preferred' or 'backup'"}

    try:
        golfer = roster_store.add_golfer(request.name.strip(), phone, request.tier)
        return {"success": True, "golfer": golfer}
    except roster_store.DuplicatePhoneError:
        return {"success": False, "error": "Phone number already registered"}
    except Exception as e:
        log_api_error(f"Add golfer error: {e}", "add_golfer", exception=e)
        return {"success": False, "error": "Failed to add golfer"}


@router.put("/golfers/{golfer_id}")
async def update_golfer(golfer_id: int, request: GolferRequest):
    phone = normalize_phone_number(request.phone)
    if not phone:
        return {"success": False, "error": "Invalid phone number"}

    try:
        golfer = roster_store.update_golfer(golfer_id, request.name.strip(), phone)
        if not golfer:
            return {"success": False, "error": "Golfer not found"}
        return {"success": True, "golfer": golfer}
    except roster_store.DuplicatePhoneError:
        return {"success": False, "error": "Phone number already in use"}
    except Exception as e:
        log_api_error(f"Update golfer error: {e}", "update_golfer", exception=e)
        return {"success": False, "error": "Failed to update golfer"}


@router.put("/golfers/{golfer_id}/tier")
async def update_golfer_tier(golfer_id: int, request: TierRequest):
    if request.tier not in roster_store.TIERS:
        return {"success": False, "error": "Tier must be 'preferred' or 'backup'"}
    golfer = roster_store.update_golfer_tier(golfer_id, request.tier)
    if not golfer:
        return {"success": False, "error": "Golfer not found"}
    return {"success": True, "golfer": golfer}


@router.delete("/golfers/{golfer_id}")
async def remove_golfer(golfer_id: int):
    """Soft delete: the golfer's response history stays intact."""
    golfer = roster_store.deactivate_golfer(golfer_id)
    if not golfer:
        return {"success": False, "error": "Golfer not found"}
    return {"success": True}
