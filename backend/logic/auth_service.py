import os
from typing import List
from dotenv import load_dotenv
from twilio_client import normalize_phone_number

load_dotenv()


def get_manager_phones() -> List[str]:
    """
    Manager allow-list from MANAGER_PHONE (comma-separated).

    This is the only access control: manager numbers may run admin SMS
    commands and sign in to the dashboard.
    """
    raw = os.environ.get("MANAGER_PHONE", "")
    phones = []
    for item in raw.split(","):
        normalized = normalize_phone_number(item.strip())
        if normalized and normalized not in phones:
            phones.append(normalized)
    return phones


def is_manager(phone_number: str) -> bool:
    normalized = normalize_phone_number(phone_number)
    return bool(normalized) and normalized in get_manager_phones()
