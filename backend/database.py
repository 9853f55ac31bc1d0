"""Supabase client shared by the roster store, the error log and the SMS outbox."""
import os
from typing import Optional
from supabase import create_client, Client
from dotenv import load_dotenv

load_dotenv()

SUPABASE_URL = os.environ.get("SUPABASE_URL")
# Service role key: the backend is the only writer and bypasses row level security
SUPABASE_KEY = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")


def get_supabase_client() -> Optional[Client]:
    missing = [
        name for name, value in (("SUPABASE_URL", SUPABASE_URL), ("SUPABASE_SERVICE_ROLE_KEY", SUPABASE_KEY))
        if not value
    ]
    if missing:
        print(f"[DB] {', '.join(missing)} not set; roster queries will fail until configured")
        return None
    return create_client(SUPABASE_URL, SUPABASE_KEY)


supabase = get_supabase_client()
