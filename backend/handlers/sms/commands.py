"""
SMS command handlers.

Each handler returns the reply text; the dispatcher sends it. Side-effect
messages (announcements, promotion notices, forwards) are sent here.
"""
from typing import Dict, Optional
import os

import roster_store
import sms_constants as msg
from twilio_client import normalize_phone_number
from handlers.message_parser import parse_announcement, parse_add_command, GolferReply
from handlers.event_handler import create_event_and_notify, close_active_event, forward_to_manager
from handlers.notifications import dispatch_notices
from logic.allocation_engine import record_response
from logic.summary_service import generate_summary
from logic_utils import is_response_window_open

GROUP_NAME = os.environ.get("GROUP_NAME", "the Sunday Golf Group")


# --- Manager commands ---

def handle_announcement(body: str) -> Optional[str]:
    """Create an event from an announcement. None if the text is not one."""
    announcement = parse_announcement(body)
    if not announcement:
        return None

    result = create_event_and_notify(announcement.event_date, announcement.course, announcement.times)
    return msg.MSG_EVENT_CREATED.format(date=announcement.event_date, count=result["notified"])


def handle_status_command() -> str:
    event = roster_store.get_open_event()
    if not event:
        return msg.MSG_NO_EVENT
    return generate_summary(event["event_id"])


def handle_closed_command() -> str:
    event = close_active_event()
    if not event:
        return msg.MSG_NO_EVENT_TO_CLOSE
    return generate_summary(event["event_id"])


def handle_list_command() -> str:
    golfers = roster_store.get_active_golfers()
    names = ", ".join(g["name"] for g in golfers)
    return msg.MSG_GOLFER_LIST.format(count=len(golfers), names=names)


def handle_add_command(body: str) -> str:
    parsed = parse_add_command(body)
    phone = normalize_phone_number(parsed[1]) if parsed else None
    if not parsed or not phone:
        return msg.MSG_ADD_FORMAT

    name = parsed[0]
    try:
        roster_store.add_golfer(name, phone)
    except roster_store.DuplicatePhoneError:
        return msg.MSG_DUPLICATE_PHONE
    return msg.MSG_GOLFER_ADDED.format(name=name, phone=phone)


def handle_help_command() -> str:
    return msg.MSG_MANAGER_HELP


def handle_manager_message(body: str) -> str:
    announcement_reply = handle_announcement(body)
    if announcement_reply:
        return announcement_reply

    cmd = body.strip().lower()
    if cmd == "status":
        return handle_status_command()
    if cmd == "closed":
        return handle_closed_command()
    if cmd == "list":
        return handle_list_command()
    if cmd.startswith("add "):
        return handle_add_command(body)
    if cmd == "help":
        return handle_help_command()
    return msg.MSG_UNRECOGNIZED_COMMAND


# --- Golfer replies ---

def handle_opt_in() -> str:
    return msg.MSG_OPT_IN.format(group_name=GROUP_NAME)


def handle_golfer_reply(golfer: Dict, body: str, reply: Optional[GolferReply]) -> str:
    """
    Apply an IN/OUT reply to the open event.

    Outside the response window (no open event, or the weekend) the raw text
    goes to the manager instead.
    """
    event = roster_store.get_open_event()
    if not event:
        forward_to_manager(golfer, body)
        return msg.MSG_FORWARDED_NO_EVENT

    if not is_response_window_open():
        forward_to_manager(golfer, body)
        return msg.MSG_FORWARDED_WINDOW_CLOSED

    if not reply:
        return msg.MSG_REPLY_IN_OR_OUT

    result = record_response(golfer, event["event_id"], reply.status, reply.guests)
    if result.notices:
        dispatch_notices(result.notices)
    return result.message
