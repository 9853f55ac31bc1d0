from typing import Dict, Optional, Tuple
import roster_store
from twilio_client import normalize_phone_number
from logic.auth_service import is_manager


def resolve_sender(from_number: str) -> Tuple[Optional[str], Optional[Dict], bool]:
    """
    Identify who texted us.

    Returns:
        (normalized phone, golfer row or None, whether the number is a manager)
    """
    normalized = normalize_phone_number(from_number)
    if not normalized:
        print(f"[SMS] Could not normalize sender number {from_number}")
        return None, None, False

    golfer = roster_store.get_golfer_by_phone(normalized)
    if golfer and not golfer.get("active", True):
        print(f"[SMS] Sender {normalized} is a deactivated golfer")
        golfer = None

    return normalized, golfer, is_manager(normalized)
