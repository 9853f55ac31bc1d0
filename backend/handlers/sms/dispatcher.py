from typing import List

from twilio_client import send_sms
from error_logger import log_sms_error
import sms_constants as msg
from handlers.message_parser import parse_golfer_reply

from .router import resolve_sender
from .commands import handle_manager_message, handle_golfer_reply, handle_opt_in


class IntentDispatcher:
    def handle_sms(self, from_number: str, body: str, dry_run: bool = False) -> List[str]:
        """
        Route one inbound SMS and reply to the sender.

        Managers get admin commands, except that an IN/OUT reply from a
        manager who is also a golfer counts as their own response.
        With dry_run the replies are returned without being sent.
        """
        body = body or ""
        replies = []

        try:
            phone, golfer, manager = resolve_sender(from_number)
            print(f"[SMS] From {phone or from_number} (manager={manager}): {body!r}")

            reply = parse_golfer_reply(body)
            cmd = body.strip().lower()

            if manager and not (golfer and reply):
                replies.append(handle_manager_message(body))
            elif cmd in msg.OPT_IN_KEYWORDS:
                replies.append(handle_opt_in())
            elif not golfer:
                replies.append(msg.MSG_NOT_REGISTERED)
            else:
                replies.append(handle_golfer_reply(golfer, body, reply))

        except Exception as e:
            log_sms_error(
                error_message=f"System error in dispatcher: {e}",
                phone_number=from_number,
                sms_body=body,
                exception=e
            )
            replies = [msg.MSG_SYSTEM_ERROR]

        if not dry_run:
            for text in replies:
                send_sms(from_number, text)
        return replies
