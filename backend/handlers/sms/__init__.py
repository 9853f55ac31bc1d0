"""
SMS Handler Package
-------------------
Inbound SMS processing for Tee Time Sync.
"""

from .router import resolve_sender
from .dispatcher import IntentDispatcher
