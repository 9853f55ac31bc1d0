from typing import Dict, List
from twilio_client import send_sms


def dispatch_notices(notices: List) -> Dict[str, int]:
    """
    Send the notices an allocation returned.

    Runs after the roster change is committed; a failed send is only counted,
    the roster is left as it is.
    """
    succeeded = 0
    failed = 0
    for notice in notices or []:
        if send_sms(notice.to_number, notice.body):
            succeeded += 1
        else:
            failed += 1
            print(f"[NOTIFY] Failed {notice.reason} notice to {notice.to_number}")
    return {"succeeded": succeeded, "failed": failed}
