from unittest.mock import MagicMock, patch

import pytest
from twilio.base.exceptions import TwilioRestException

import twilio_client
from twilio_client import normalize_phone_number, is_whitelisted, send_sms, send_to_many


@pytest.mark.parametrize("raw,expected", [
    ("5551234567", "+15551234567"),
    ("(555) 123-4567", "+15551234567"),
    ("555.123.4567", "+15551234567"),
    ("15551234567", "+15551234567"),
    ("+1 555 123 4567", "+15551234567"),
    ("25551234567", None),
    ("123", None),
    ("", None),
    (None, None),
])
def test_normalize_phone_number(raw, expected):
    assert normalize_phone_number(raw) == expected


def test_is_whitelisted_compares_normalized():
    with patch("twilio_client.sms_whitelist", {"5551234567"}):
        assert is_whitelisted("+1 (555) 123-4567")
        assert not is_whitelisted("+15559998888")


@pytest.fixture
def live_mode():
    with patch("twilio_client.test_mode", False), patch("twilio_client.sms_whitelist", set()):
        yield


def test_send_sms_through_twilio(live_mode):
    client = MagicMock()
    client.messages.create.return_value.sid = "SM123"

    with patch("twilio_client.get_twilio_client", return_value=client):
        assert send_sms("+15551234567", "hello")

    assert client.messages.create.call_args.kwargs["to"] == "+15551234567"
    assert client.messages.create.call_args.kwargs["body"] == "hello"


def test_send_sms_twilio_error_returns_false(live_mode):
    client = MagicMock()
    client.messages.create.side_effect = TwilioRestException(400, "/Messages", "Invalid 'To' number")

    with patch("twilio_client.get_twilio_client", return_value=client):
        assert send_sms("+15551234567", "hello") is False


def test_send_sms_without_credentials(live_mode):
    with patch("twilio_client.get_twilio_client", return_value=None):
        assert send_sms("+15551234567", "hello") is False


def test_send_sms_without_recipient(live_mode):
    assert send_sms(None, "hello") is False


def test_test_mode_routes_to_outbox(db):
    with patch("twilio_client.test_mode", True), patch("database.supabase", db):
        assert send_sms("+15551234567", "hello")

    assert [(m["to_number"], m["body"]) for m in db.all("sms_outbox")] == [("+15551234567", "hello")]


def test_non_whitelisted_routes_to_outbox(db):
    client = MagicMock()
    with patch("twilio_client.test_mode", False), \
            patch("twilio_client.sms_whitelist", {"+15550000009"}), \
            patch("twilio_client.get_twilio_client", return_value=client), \
            patch("database.supabase", db):
        assert send_sms("+15551234567", "hello")

    client.messages.create.assert_not_called()
    assert len(db.all("sms_outbox")) == 1


def test_send_to_many_continues_past_failures():
    delivered = []

    def fake_send(to, body):
        if to == "+15550000002":
            return False
        delivered.append(to)
        return True

    with patch("twilio_client.send_sms", side_effect=fake_send):
        result = send_to_many(["+15550000001", "+15550000002", "+15550000003"], "hi")

    assert result == {"succeeded": 2, "failed": 1}
    assert delivered == ["+15550000001", "+15550000003"]


def test_send_to_many_empty():
    assert twilio_client.send_to_many([], "hi") == {"succeeded": 0, "failed": 0}
