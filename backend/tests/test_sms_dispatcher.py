from unittest.mock import patch

import pytest

import roster_store
import redis_client
from handlers.sms import IntentDispatcher, resolve_sender
from logic.allocation_engine import record_response
from conftest import MANAGER_PHONE

ANNOUNCEMENT = "Golf 11-30-2025\nRed\n808/816/824/832\nIn or out"


@pytest.fixture
def dispatcher():
    return IntentDispatcher()


@pytest.fixture
def golfer(add_golfers):
    return add_golfers(1)[0]


# --- Golfer replies ---

def test_in_reply(dispatcher, golfer, open_event, sent):
    replies = dispatcher.handle_sms(golfer["phone_number"], "In")

    assert replies == ["You're in (#1 of 16)"]
    assert sent.to(golfer["phone_number"]) == ["You're in (#1 of 16)"]
    assert roster_store.get_response(open_event["event_id"], golfer["golfer_id"])["position"] == 1


def test_in_with_guests_reply(dispatcher, golfer, open_event, sent):
    replies = dispatcher.handle_sms(golfer["phone_number"], "in +2")

    assert replies == ["You're in (#1 of 16) with 2 guests"]
    assert len(roster_store.get_guests(open_event["event_id"])) == 2


def test_too_many_guests_reply(dispatcher, golfer, open_event, sent):
    replies = dispatcher.handle_sms(golfer["phone_number"], "in +500")

    assert replies == ["You can bring up to 3 guests. Reply IN +3 or fewer."]
    assert roster_store.get_responses(open_event["event_id"]) == []
    assert roster_store.get_guests(open_event["event_id"]) == []

def test_unrecognized_reply_changes_nothing(dispatcher, golfer, open_event, sent):
    replies = dispatcher.handle_sms(golfer["phone_number"], "banana")

    assert replies == ["Reply IN or OUT"]
    assert roster_store.get_responses(open_event["event_id"]) == []
    assert sent.to(MANAGER_PHONE) == []


def test_out_reply_notifies_promoted_golfer(dispatcher, add_golfers, db, sent):
    event = roster_store.create_event("2025-11-30", "Red", ["8:08 AM"], 1)
    g1, g2 = add_golfers(2)
    record_response(g1, event["event_id"], "in")
    record_response(g2, event["event_id"], "in")

    replies = dispatcher.handle_sms(g1["phone_number"], "out")

    assert replies == ["Got it, you're out."]
    assert sent.to(g2["phone_number"]) == ["Spot opened - you're now in (#1 of 1)"]


def test_reply_without_open_event_is_forwarded(dispatcher, golfer, db, sent):
    replies = dispatcher.handle_sms(golfer["phone_number"], "in")

    assert replies == ["No active event. Your message has been forwarded to the group manager."]
    assert sent.to(MANAGER_PHONE) == ["From G1: in"]


def test_reply_outside_window_is_forwarded(dispatcher, golfer, open_event, sent):
    with patch("handlers.sms.commands.is_response_window_open", return_value=False):
        replies = dispatcher.handle_sms(golfer["phone_number"], "out")

    assert replies == ["Response window closed. Your message has been forwarded to the group manager."]
    assert sent.to(MANAGER_PHONE) == ["From G1: out"]
    assert roster_store.get_responses(open_event["event_id"]) == []


def test_unregistered_number(dispatcher, open_event, sent):
    replies = dispatcher.handle_sms("+15559998888", "in")

    assert replies == ["Your number is not registered. Contact the group manager."]


def test_deactivated_golfer_is_unregistered(dispatcher, golfer, open_event, sent):
    roster_store.deactivate_golfer(golfer["golfer_id"])

    assert resolve_sender(golfer["phone_number"])[1] is None
    assert dispatcher.handle_sms(golfer["phone_number"], "in") == [
        "Your number is not registered. Contact the group manager."
    ]


def test_opt_in_keyword(dispatcher, db, sent):
    replies = dispatcher.handle_sms("+15559998888", "START")

    assert replies[0].startswith("You have opted-in to receive weekly messages")


def test_dry_run_sends_nothing(dispatcher, golfer, open_event, sent):
    replies = dispatcher.handle_sms(golfer["phone_number"], "in", dry_run=True)

    assert replies == ["You're in (#1 of 16)"]
    assert len(sent) == 0


def test_unexpected_error_is_logged(dispatcher, golfer, open_event, sent, db):
    with patch("handlers.sms.dispatcher.handle_golfer_reply", side_effect=RuntimeError("boom")):
        replies = dispatcher.handle_sms(golfer["phone_number"], "in")

    assert replies == ["Something went wrong. Please try again."]
    errors = db.all("error_logs")
    assert errors[0]["error_type"] == "sms_processing"
    assert errors[0]["sms_body"] == "in"


def test_resolve_sender_normalizes(golfer):
    phone, found, manager = resolve_sender("(555) 100-0001")

    assert phone == golfer["phone_number"]
    assert found["golfer_id"] == golfer["golfer_id"]
    assert not manager
    assert resolve_sender("12") == (None, None, False)


# --- Manager commands ---

def test_manager_announcement_creates_event(dispatcher, add_golfers, sent):
    golfers = add_golfers(2)

    replies = dispatcher.handle_sms(MANAGER_PHONE, ANNOUNCEMENT)

    assert replies == ["Event created for 2025-11-30. Invite sent to 2 golfers."]
    event = roster_store.get_open_event()
    assert event["tee_times"] == ["8:08 AM", "8:16 AM", "8:24 AM", "8:32 AM"]
    assert len(sent.to(golfers[0]["phone_number"])) == 1


def test_manager_status(dispatcher, golfer, open_event, sent):
    record_response(golfer, open_event["event_id"], "in")

    replies = dispatcher.handle_sms(MANAGER_PHONE, "STATUS")

    assert replies[0].startswith("Golf Sunday 11/30 Red - 1 confirmed")
    assert roster_store.get_open_event() is not None


def test_manager_status_without_event(dispatcher, db, sent):
    assert dispatcher.handle_sms(MANAGER_PHONE, "status") == ["No active event."]
    assert dispatcher.handle_sms(MANAGER_PHONE, "closed") == ["No active event to close."]


def test_manager_closed(dispatcher, open_event, sent):
    replies = dispatcher.handle_sms(MANAGER_PHONE, "closed")

    assert "IN (0): None" in replies[0]
    assert roster_store.get_open_event() is None
    assert str(open_event["event_id"]) not in redis_client._local_locks


def test_manager_list(dispatcher, add_golfers, sent):
    add_golfers(2)

    assert dispatcher.handle_sms(MANAGER_PHONE, "list") == ["Golfers (2): G1, G2"]


def test_manager_add(dispatcher, db, sent):
    assert dispatcher.handle_sms(MANAGER_PHONE, "add Jay Smith 555-123-4567") == [
        "Added Jay Smith (+15551234567)"
    ]
    assert roster_store.get_golfer_by_phone("+15551234567")["name"] == "Jay Smith"

    assert dispatcher.handle_sms(MANAGER_PHONE, "add Jay 5551234567") == ["Phone number already registered"]
    assert dispatcher.handle_sms(MANAGER_PHONE, "add Jay 123") == ["Format: add Name 5551234567"]


def test_manager_help_and_unknown(dispatcher, db, sent):
    assert dispatcher.handle_sms(MANAGER_PHONE, "help")[0].startswith("Commands:")
    assert dispatcher.handle_sms(MANAGER_PHONE, "what") == ["Unrecognized command. Reply HELP for options."]


def test_manager_who_golfs_can_reply(dispatcher, open_event, sent):
    manager = roster_store.add_golfer("Manager", MANAGER_PHONE)

    replies = dispatcher.handle_sms(MANAGER_PHONE, "in")

    assert replies == ["You're in (#1 of 16)"]
    assert roster_store.get_response(open_event["event_id"], manager["golfer_id"])["status"] == "in"
    assert dispatcher.handle_sms(MANAGER_PHONE, "list") == ["Golfers (1): Manager"]
