"""
Persistent error log.

Webhook and cron failures have no one watching a console, so each one is
written to the Supabase error_logs table along with the sender, the event
and the SMS that triggered it.
"""
import traceback
from typing import Optional
from database import supabase

SMS_PROCESSING = "sms_processing"
ROSTER_UPDATE = "roster_update"
DASHBOARD_API = "dashboard_api"


def _format_stack(exception: Optional[BaseException]) -> Optional[str]:
    if exception is None:
        return None
    return "".join(traceback.format_exception(type(exception), exception, exception.__traceback__))


def log_error(
    error_type: str,
    error_message: str,
    phone_number: str = None,
    golfer_id=None,
    event_id=None,
    sms_body: str = None,
    handler_name: str = None,
    exception: Exception = None,
    additional_context: dict = None
):
    """
    Write one row to error_logs and echo it to stdout.

    Never raises. If the insert itself fails, the original error is still
    printed.
    """
    row = {
        "error_type": error_type,
        "error_message": str(error_message),
        "phone_number": phone_number,
        "golfer_id": golfer_id,
        "event_id": event_id,
        "sms_body": sms_body,
        "handler_name": handler_name,
        "stack_trace": _format_stack(exception),
        "additional_context": additional_context,
    }
    row = {k: v for k, v in row.items() if v is not None}

    print(f"[ERROR_LOG] {error_type}: {error_message}")
    try:
        supabase.table("error_logs").insert(row).execute()
    except Exception as log_failure:
        print(f"[ERROR_LOG] Could not persist {error_type} error: {log_failure}")


def log_sms_error(error_message: str, phone_number: str, sms_body: str = None, exception: Exception = None):
    log_error(
        SMS_PROCESSING,
        error_message,
        phone_number=phone_number,
        sms_body=sms_body,
        handler_name="sms_dispatcher",
        exception=exception,
    )


def log_roster_error(error_message: str, golfer: dict = None, event_id=None,
                     exception: Exception = None, context: dict = None):
    """Failed IN/OUT mutation; golfer is the row the reply came from."""
    golfer = golfer or {}
    log_error(
        ROSTER_UPDATE,
        error_message,
        phone_number=golfer.get("phone_number"),
        golfer_id=golfer.get("golfer_id"),
        event_id=event_id,
        handler_name="allocation_engine",
        exception=exception,
        additional_context=context,
    )


def log_api_error(error_message: str, endpoint: str, exception: Exception = None):
    log_error(DASHBOARD_API, error_message, handler_name=endpoint, exception=exception)
