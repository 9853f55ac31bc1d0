import roster_store
from handlers.event_handler import (
    build_announcement,
    create_event_and_notify,
    close_active_event,
    send_friday_summary,
    notify_backup_golfers,
    forward_to_manager,
    build_groupings_message,
    send_groupings,
)
from logic.allocation_engine import record_response
from conftest import MANAGER_PHONE

ANNOUNCEMENT = "Golf Sunday 11/30 at Red\nTee times: 8:08 AM, 8:16 AM\nFirst 16 in. Reply IN or OUT."


def test_create_event_texts_preferred_tier_only(add_golfers, sent):
    preferred = add_golfers(2)
    backup = add_golfers(1, tier="backup", prefix="B")

    result = create_event_and_notify("2025-11-30", "Red", ["8:08 AM", "8:16 AM"])

    assert result["notified"] == 2
    assert result["failed"] == 0
    assert result["event"]["status"] == "open"
    assert sent.to(preferred[0]["phone_number"]) == [ANNOUNCEMENT]
    assert sent.to(backup[0]["phone_number"]) == []


def test_create_event_counts_failed_sends(add_golfers, sent):
    g1, g2 = add_golfers(2)
    sent.fail_for.add(g2["phone_number"])

    result = create_event_and_notify("2025-11-30", "Red", ["8:08 AM"])

    assert result["notified"] == 1
    assert result["failed"] == 1


def test_create_event_closes_previous_open_event(db, sent):
    first = create_event_and_notify("2025-11-23", "Red", ["8:08 AM"])
    second = create_event_and_notify("2025-11-30", "Blue", ["9:00 AM"])

    assert roster_store.get_event(first["event_id"])["status"] == "closed"
    assert roster_store.get_open_event()["event_id"] == second["event_id"]


def test_build_announcement_uses_capacity(db):
    event = roster_store.create_event("2025-11-30", "Red", ["8:08 AM"], 12)

    assert build_announcement(event).endswith("First 12 in. Reply IN or OUT.")


def test_close_active_event(open_event):
    closed = close_active_event()

    assert closed["event_id"] == open_event["event_id"]
    assert roster_store.get_open_event() is None
    assert close_active_event() is None


def test_friday_summary_goes_to_manager_and_closes(add_golfers, open_event, sent):
    g1 = add_golfers(1)[0]
    record_response(g1, open_event["event_id"], "in")

    result = send_friday_summary()

    assert result["success"]
    assert result["sent"] == 1
    summary = sent.to(MANAGER_PHONE)[0]
    assert summary.startswith("Golf Sunday 11/30 Red - 1 confirmed")
    assert "IN (1): G1" in summary
    assert roster_store.get_event(open_event["event_id"])["status"] == "closed"


def test_friday_summary_without_event(db, sent):
    assert send_friday_summary() == {"success": False, "error": "No active event"}
    assert len(sent) == 0


def test_notify_backups_once_when_not_full(add_golfers, open_event, sent):
    backup = add_golfers(2, tier="backup", prefix="B")

    result = notify_backup_golfers()

    assert result == {"success": True, "notified": 2, "failed": 0, "full": False}
    assert len(sent.to(backup[1]["phone_number"])) == 1
    assert roster_store.get_event(open_event["event_id"])["backup_notified_at"]

    again = notify_backup_golfers()
    assert not again["success"]
    assert len(sent) == 2


def test_notify_backups_skipped_when_full(add_golfers, db, sent):
    event = roster_store.create_event("2025-11-30", "Red", ["8:08 AM"], 1)
    g1 = add_golfers(1)[0]
    add_golfers(1, tier="backup", prefix="B")
    record_response(g1, event["event_id"], "in")

    result = notify_backup_golfers(event["event_id"])

    assert result["full"]
    assert result["notified"] == 0
    assert len(sent) == 0


def test_notify_backups_needs_open_event(open_event, sent):
    close_active_event()

    assert notify_backup_golfers(open_event["event_id"]) == {"success": False, "error": "No active event"}
    assert notify_backup_golfers() == {"success": False, "error": "No active event"}


def test_forward_to_manager(add_golfers, sent):
    g1 = add_golfers(1)[0]

    forward_to_manager(g1, "running late")

    assert sent.to(MANAGER_PHONE) == ["From G1: running late"]


def test_groupings_message_keeps_announced_order(db):
    event = roster_store.create_event("2025-11-30", "Red", ["8:08 AM", "10:15 AM"], 16)

    message = build_groupings_message(event, {
        "10:15 AM": ["G3", "G1's Guest"],
        "8:08 AM": ["G1", "G2"],
        "8:16 AM": [],
    })

    assert message == "\n".join([
        "Golf Sunday 11/30 at Red",
        "",
        "8:08 AM: G1, G2",
        "10:15 AM: G3, G1's Guest",
        "",
        "See you on the course!",
    ])


def test_send_groupings_texts_assigned_golfers(add_golfers, open_event, sent):
    g1, g2, g3 = add_golfers(3)

    result = send_groupings({"8:08 AM": ["G1", "G2", "G1's Guest"]})

    assert result["success"]
    assert result["sent"] == 2
    assert len(sent.to(g1["phone_number"])) == 1
    assert sent.to(g3["phone_number"]) == []


def test_send_groupings_dry_run(add_golfers, open_event, sent):
    add_golfers(2)

    result = send_groupings({"8:08 AM": ["G1", "G2"]}, dry_run=True)

    assert result["sent"] == 2
    assert "8:08 AM: G1, G2" in result["message"]
    assert len(sent) == 0


def test_send_groupings_uses_last_closed_event(add_golfers, open_event, sent):
    add_golfers(1)
    close_active_event()

    assert send_groupings({"8:08 AM": ["G1"]})["success"]


def test_send_groupings_errors(add_golfers, db, sent):
    assert send_groupings({"8:08 AM": ["G1"]}) == {"success": False, "error": "No event found"}

    roster_store.create_event("2025-11-30", "Red", ["8:08 AM"], 16)
    assert send_groupings({"8:08 AM": ["Nobody"]}) == {"success": False, "error": "No valid phone numbers found"}
