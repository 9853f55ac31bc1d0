import os
import sys
from unittest.mock import patch

import pytest

# Backend modules are imported top-level, same as in production
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fake_supabase import FakeSupabase

MANAGER_PHONE = "+15550000001"


class SentMessages(list):
    """Records every outbound SMS as (to, body). Numbers in fail_for are rejected."""

    def __init__(self):
        super().__init__()
        self.fail_for = set()

    def send(self, to_number, body):
        if not to_number or to_number in self.fail_for:
            return False
        self.append((to_number, body))
        return True

    def to(self, phone_number):
        return [body for to, body in self if to == phone_number]


@pytest.fixture
def db():
    fake = FakeSupabase()
    with patch("roster_store.supabase", fake), \
            patch("error_logger.supabase", fake), \
            patch("main.supabase", fake):
        yield fake


@pytest.fixture
def sent():
    messages = SentMessages()
    with patch("twilio_client.send_sms", side_effect=messages.send), \
            patch("handlers.notifications.send_sms", side_effect=messages.send), \
            patch("handlers.sms.dispatcher.send_sms", side_effect=messages.send):
        yield messages


@pytest.fixture(autouse=True)
def environment(monkeypatch):
    monkeypatch.setenv("MANAGER_PHONE", MANAGER_PHONE)
    monkeypatch.delenv("GROUP_TIMEZONE", raising=False)
    monkeypatch.setattr("redis_client.redis_url", None)
    with patch("handlers.sms.commands.is_response_window_open", return_value=True):
        yield


@pytest.fixture
def add_golfers(db):
    """Register golfers G1..Gn. Preferred phones are +15551000001.., backup +15552000001.."""
    import roster_store

    def _add(count, tier="preferred", prefix="G", start=1):
        area = "2" if tier == "backup" else "1"
        return [
            roster_store.add_golfer(f"{prefix}{i}", f"+1555{area}{i:06d}", tier)
            for i in range(start, start + count)
        ]

    return _add


@pytest.fixture
def open_event(db):
    import roster_store
    return roster_store.create_event("2025-11-30", "Red", ["8:08 AM", "8:16 AM", "8:24 AM", "8:32 AM"], 16)
