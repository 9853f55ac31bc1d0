"""
Seed the golfer list from the GOLFERS environment variable.

    GOLFERS='[{"name":"Jay","phone":"5551234567"},{"name":"Mike","phone":"+15551234568","tier":"backup"}]'
    python scripts/seed_golfers.py

Run from backend/.
"""
import os
import sys
import json
from dotenv import load_dotenv

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import roster_store
from twilio_client import normalize_phone_number

load_dotenv()


def load_golfers_from_env():
    raw = os.environ.get("GOLFERS")
    if not raw:
        print("Error: GOLFERS environment variable not set.")
        print('Set it as a JSON array: GOLFERS=\'[{"name":"Jay","phone":"+15551234567"}]\'')
        return None
    try:
        golfers = json.loads(raw)
    except json.JSONDecodeError as e:
        print(f"Error: GOLFERS is not valid JSON: {e}")
        return None
    if not isinstance(golfers, list) or not golfers:
        print("Error: GOLFERS must be a non-empty array")
        return None
    return golfers


def seed_golfers(golfers):
    added = 0
    for entry in golfers:
        name = (entry.get("name") or "").strip()
        phone = normalize_phone_number(entry.get("phone"))
        if not name or not phone:
            print(f"Skipped (missing name or invalid phone): {entry}")
            continue
        try:
            roster_store.add_golfer(name, phone, entry.get("tier", "preferred"))
            print(f"Added: {name} ({phone})")
            added += 1
        except roster_store.DuplicatePhoneError:
            print(f"Skipped (already exists): {name}")

    active = roster_store.get_active_golfers()
    print(f"\nDone. Added {added}. Active golfers: {len(active)}")
    for g in active:
        print(f"  - {g['name']}: {g['phone_number']} ({g.get('tier', 'preferred')})")
    return added


if __name__ == "__main__":
    golfers = load_golfers_from_env()
    if golfers is None:
        sys.exit(1)
    seed_golfers(golfers)
