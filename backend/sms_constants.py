# SMS Messages

# Announcements
MSG_ANNOUNCEMENT = "Golf {display_date} at {course}\nTee times: {times}\nFirst {capacity} in. Reply IN or OUT."
MSG_EVENT_CREATED = "Event created for {date}. Invite sent to {count} golfers."

# Golfer replies
MSG_YOU_ARE_IN = "You're in (#{position} of {capacity})"
MSG_YOU_ARE_IN_WITH_GUESTS = "You're in (#{position} of {capacity}) with {guests} guest{plural}"
MSG_WAITLIST = "Waitlist #{rank}. We'll text you if a spot opens."
MSG_WAITLIST_WITH_GUESTS = "Waitlist #{rank} with {guests} guest{plural}. We'll text you if spots open."
MSG_ALREADY_IN = "You're already in (#{position} of {capacity})"
MSG_ALREADY_WAITLISTED = "You're already on waitlist #{rank}"
MSG_TOO_MANY_GUESTS = "You can bring up to {max_guests} guests. Reply IN +{max_guests} or fewer."
MSG_YOU_ARE_OUT = "Got it, you're out."
MSG_NO_ACTIVE_EVENT = "No active event"
MSG_REPLY_IN_OR_OUT = "Reply IN or OUT"
MSG_NOT_REGISTERED = "Your number is not registered. Contact the group manager."
MSG_OPT_IN = (
    "You have opted-in to receive weekly messages regarding {group_name} tee times. "
    "If you wish to opt-out, reply STOP at any time."
)
MSG_FORWARDED_NO_EVENT = "No active event. Your message has been forwarded to the group manager."
MSG_FORWARDED_WINDOW_CLOSED = "Response window closed. Your message has been forwarded to the group manager."
MSG_FORWARD_TO_MANAGER = "From {name}: {body}"

# Promotion notices
MSG_PROMOTED = "Spot opened - you're now in (#{position} of {capacity})"
MSG_GUEST_PROMOTED = "Spot opened - your guest is now in (#{position} of {capacity})"

# Manager commands
MSG_NO_EVENT = "No active event."
MSG_NO_EVENT_TO_CLOSE = "No active event to close."
MSG_GOLFER_LIST = "Golfers ({count}): {names}"
MSG_GOLFER_ADDED = "Added {name} ({phone})"
MSG_ADD_FORMAT = "Format: add Name 5551234567"
MSG_DUPLICATE_PHONE = "Phone number already registered"
MSG_UNRECOGNIZED_COMMAND = "Unrecognized command. Reply HELP for options."
MSG_MANAGER_HELP = (
    "Commands:\n"
    "• Golf announcement to create event\n"
    "• STATUS - current event summary\n"
    "• CLOSED - send summary & close event\n"
    "• LIST - all golfers\n"
    "• ADD Name Phone - add golfer"
)

# Groupings
MSG_GROUPINGS_HEADER = "Golf {display_date} at {course}"
MSG_GROUPINGS_FOOTER = "See you on the course!"

MSG_SYSTEM_ERROR = "Something went wrong. Please try again."

# Opt-in keywords handled before golfer lookup
OPT_IN_KEYWORDS = {"start", "subscribe", "join"}
