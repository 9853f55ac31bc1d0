"""
Outbound SMS.

Messages go out through the Twilio REST client unless they are diverted to
the sms_outbox table, which the dashboard simulator reads. Everything is
diverted in SMS_TEST_MODE. When SMS_WHITELIST is set, only listed numbers
get real texts.
"""
import os
import re
from typing import Dict, List, Optional
from twilio.rest import Client
from twilio.base.exceptions import TwilioRestException
from dotenv import load_dotenv

load_dotenv()

account_sid = os.environ.get("TWILIO_ACCOUNT_SID")
auth_token = os.environ.get("TWILIO_AUTH_TOKEN")
from_number = os.environ.get("TWILIO_PHONE_NUMBER")
test_mode = os.environ.get("SMS_TEST_MODE", "false").lower() == "true"
sms_whitelist = {n.strip() for n in os.environ.get("SMS_WHITELIST", "").split(",") if n.strip()}

print(f"[SMS CONFIG] test_mode={test_mode}, whitelist={sorted(sms_whitelist) or 'off'}")


def normalize_phone_number(phone: Optional[str]) -> Optional[str]:
    """
    Canonicalize a phone number to +1XXXXXXXXXX.

    Accepts 10 digits (US number without country code) or 11 digits starting
    with 1. Any formatting characters are ignored. Anything else returns None.
    """
    if not phone:
        return None
    digits = re.sub(r'\D', '', phone)
    if len(digits) == 10:
        return f"+1{digits}"
    if len(digits) == 11 and digits.startswith('1'):
        return f"+{digits}"
    return None


def is_whitelisted(phone_number: str) -> bool:
    normalized = normalize_phone_number(phone_number)
    if not normalized:
        return False
    return any(normalize_phone_number(w) == normalized for w in sms_whitelist)


def _diverted_to_outbox(to_number: str) -> bool:
    return test_mode or (bool(sms_whitelist) and not is_whitelisted(to_number))


def store_in_outbox(to_number: str, body: str) -> bool:
    """Queue a message for the simulator instead of Twilio."""
    from database import supabase
    try:
        supabase.table("sms_outbox").insert({"to_number": to_number, "body": body}).execute()
    except Exception as e:
        print(f"[SIMULATOR] Could not store SMS to {to_number}: {e}")
        return False
    print(f"[SIMULATOR] Outbox -> {to_number}: {body[:50]}")
    return True


def get_twilio_client() -> Optional[Client]:
    if not account_sid or not auth_token:
        print("[TWILIO] TWILIO_ACCOUNT_SID or TWILIO_AUTH_TOKEN not set")
        return None
    return Client(account_sid, auth_token)


def send_sms(to_number: str, body: str) -> bool:
    """
    Send one SMS.

    Returns False on any failure and never raises, so a bad number cannot
    abort a broadcast or undo a roster change that already happened.
    """
    if not to_number:
        print("[SMS] Skipping send with no recipient")
        return False

    if _diverted_to_outbox(to_number):
        return store_in_outbox(to_number, body)

    client = get_twilio_client()
    if not client:
        return False

    try:
        message = client.messages.create(to=to_number, from_=from_number, body=body)
    except TwilioRestException as e:
        print(f"[TWILIO] {e.status} sending to {to_number}: {e.msg}")
        return False
    except Exception as e:
        print(f"[TWILIO] Unexpected error sending to {to_number}: {e}")
        return False

    print(f"[TWILIO] Sent {message.sid} to {to_number}")
    return True


def send_to_many(phone_numbers: List[str], body: str) -> Dict[str, int]:
    """Same message to every number. Failures are counted, never raised."""
    succeeded = 0
    failed = 0
    for phone in phone_numbers:
        if send_sms(phone, body):
            succeeded += 1
        else:
            failed += 1

    print(f"[SMS] Bulk send: {succeeded} sent, {failed} failed")
    return {"succeeded": succeeded, "failed": failed}
