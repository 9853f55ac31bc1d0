"""
Roster allocation engine.

The single authority over positions within an event:

- A new IN takes the next position after everything already taken. Positions
  are never handed back to new sign-ups, so the waitlist order is the order
  people replied.
- Position <= capacity is confirmed, anything above is waitlisted
  (waitlist rank = position - capacity).
- Guests hold positions in the same ordering space as their host.
- When a confirmed golfer goes OUT, exactly one waitlisted entry (lowest
  position) moves into the lowest free confirmed slot.

Counts are recomputed from the store on every mutation. All mutations for an
event run under redis_client.event_lock. The engine never sends SMS: it
returns Notice objects and the caller decides whether to dispatch them.
"""
from typing import List, Optional
import roster_store
import sms_constants as msg
from redis_client import event_lock
from error_logger import log_roster_error

# Largest guest count one golfer may bring ("in +3", "in three guests")
MAX_GUESTS = 3


class In:
    """A roster entry holding a position."""

    def __init__(self, position: int):
        self.position = position

    def __eq__(self, other):
        return isinstance(other, In) and other.position == self.position

    def __repr__(self):
        return f"In({self.position})"


class Out:
    """A golfer who declined. Carries no position."""

    def __eq__(self, other):
        return isinstance(other, Out)

    def __repr__(self):
        return "Out()"


class RosterEntry:
    """
    One golfer response or one guest, viewed uniformly.

    For guests, golfer_id/phone_number belong to the host.
    """

    def __init__(self, kind: str, entry_id, golfer_id, name: str, state, recorded_at: str = None,
                 phone_number: str = None, host_name: str = None):
        self.kind = kind
        self.entry_id = entry_id
        self.golfer_id = golfer_id
        self.name = name
        self.state = state
        self.recorded_at = recorded_at
        self.phone_number = phone_number
        self.host_name = host_name

    @property
    def is_in(self) -> bool:
        return isinstance(self.state, In)

    @property
    def position(self) -> Optional[int]:
        return self.state.position if isinstance(self.state, In) else None

    def sort_key(self):
        return (self.position, self.recorded_at or "")

    def to_dict(self, capacity: int = None) -> dict:
        data = {
            "type": self.kind,
            "id": self.entry_id,
            "golfer_id": self.golfer_id,
            "name": self.name,
            "status": "in" if self.is_in else "out",
            "position": self.position,
        }
        if self.kind == "golfer":
            data["phone_number"] = self.phone_number
        else:
            data["host_name"] = self.host_name
        if capacity is not None and self.is_in and self.position > capacity:
            data["waitlist_rank"] = self.position - capacity
        return data

    def __repr__(self):
        return f"RosterEntry(kind={self.kind}, name={self.name}, state={self.state})"


class Notice:
    """An SMS the engine wants sent. The caller decides whether to send it."""

    def __init__(self, to_number: str, body: str, reason: str):
        self.to_number = to_number
        self.body = body
        self.reason = reason

    def to_dict(self) -> dict:
        return {"to_number": self.to_number, "body": self.body, "reason": self.reason}

    def __repr__(self):
        return f"Notice(to={self.to_number}, reason={self.reason})"


class AllocationResult:
    def __init__(self, success: bool, message: str, status: str = None, position: int = None,
                 capacity: int = None, guests: int = 0, already_in: bool = False,
                 promoted: RosterEntry = None, notices: List[Notice] = None):
        self.success = success
        self.message = message
        self.status = status
        self.position = position
        self.capacity = capacity
        self.guests = guests
        self.already_in = already_in
        self.promoted = promoted
        self.notices = notices or []

    @property
    def waitlist_rank(self) -> Optional[int]:
        if self.position is None or self.capacity is None or self.position <= self.capacity:
            return None
        return self.position - self.capacity

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "message": self.message,
            "status": self.status,
            "position": self.position,
            "waitlist_rank": self.waitlist_rank,
            "guests": self.guests,
            "already_in": self.already_in,
            "promoted": self.promoted.to_dict(self.capacity) if self.promoted else None,
            "notices": [n.to_dict() for n in self.notices],
        }

    def __repr__(self):
        return f"AllocationResult(success={self.success}, status={self.status}, position={self.position})"


def get_capacity(event: dict) -> int:
    return event.get("capacity") or roster_store.DEFAULT_CAPACITY


def load_roster(event_id) -> List[RosterEntry]:
    """Every response (in and out) and every guest for an event."""
    responses = roster_store.get_responses(event_id)
    guests = roster_store.get_guests(event_id)
    golfers = roster_store.get_golfers_by_ids(
        [r["golfer_id"] for r in responses] + [g["host_golfer_id"] for g in guests]
    )

    entries = []
    for r in responses:
        golfer = golfers.get(r["golfer_id"], {})
        state = In(r["position"]) if r["status"] == "in" and r.get("position") is not None else Out()
        entries.append(RosterEntry(
            kind="golfer",
            entry_id=r["response_id"],
            golfer_id=r["golfer_id"],
            name=golfer.get("name", "Unknown"),
            state=state,
            recorded_at=r.get("responded_at"),
            phone_number=golfer.get("phone_number"),
        ))
    for g in guests:
        host = golfers.get(g["host_golfer_id"], {})
        entries.append(RosterEntry(
            kind="guest",
            entry_id=g["guest_id"],
            golfer_id=g["host_golfer_id"],
            name=g.get("name") or "Guest",
            state=In(g["position"]),
            recorded_at=g.get("created_at"),
            phone_number=host.get("phone_number"),
            host_name=host.get("name"),
        ))
    return entries


def _next_position(event_id) -> int:
    """
    Position for the next entrant.

    Equals (golfers in + guests) + 1 for a gap-free roster. The max() keeps
    it above every taken position when an OUT or guest removal left a hole.
    """
    in_responses = roster_store.get_in_responses(event_id)
    guests = roster_store.get_guests(event_id)
    taken = [r["position"] for r in in_responses if r.get("position") is not None] + \
            [g["position"] for g in guests]
    total = len(in_responses) + len(guests)
    return max([total] + taken) + 1


def _plural(count: int) -> str:
    return "s" if count > 1 else ""


def _in_message(position: int, capacity: int, guests: int) -> str:
    if position <= capacity:
        if guests > 0:
            return msg.MSG_YOU_ARE_IN_WITH_GUESTS.format(
                position=position, capacity=capacity, guests=guests, plural=_plural(guests))
        return msg.MSG_YOU_ARE_IN.format(position=position, capacity=capacity)

    rank = position - capacity
    if guests > 0:
        return msg.MSG_WAITLIST_WITH_GUESTS.format(rank=rank, guests=guests, plural=_plural(guests))
    return msg.MSG_WAITLIST.format(rank=rank)


def promotion_notice(entry: RosterEntry, capacity: int) -> Optional[Notice]:
    """Notice for a promoted entry. A promoted guest's notice goes to the host."""
    if not entry.phone_number:
        return None
    if entry.kind == "guest":
        body = msg.MSG_GUEST_PROMOTED.format(position=entry.position, capacity=capacity)
        return Notice(entry.phone_number, body, "guest_promoted")
    body = msg.MSG_PROMOTED.format(position=entry.position, capacity=capacity)
    return Notice(entry.phone_number, body, "promoted")


def record_response(golfer: dict, event_id, status: str, guest_count: int = 0) -> AllocationResult:
    """
    Record a golfer's IN/OUT for an event and reconcile their guests.

    Does not check whether the event is open; callers decide whether late
    replies are accepted.
    """
    event = roster_store.get_event(event_id)
    if not event:
        return AllocationResult(False, msg.MSG_NO_ACTIVE_EVENT)

    if status not in ("in", "out"):
        return AllocationResult(False, "Invalid status")

    capacity = get_capacity(event)
    guest_count = max(0, int(guest_count or 0))
    if status == "in" and guest_count > MAX_GUESTS:
        return AllocationResult(False, msg.MSG_TOO_MANY_GUESTS.format(max_guests=MAX_GUESTS), status=status,
                                capacity=capacity, guests=guest_count)

    try:
        with event_lock(event_id):
            if status == "in":
                return _record_in(golfer, event_id, capacity, guest_count)
            return _record_out(golfer, event_id, capacity)
    except Exception as e:
        log_roster_error(f"Failed to record {status}: {e}", golfer=golfer, event_id=event_id,
                         exception=e, context={"guests": guest_count})
        raise


def _record_in(golfer: dict, event_id, capacity: int, guest_count: int) -> AllocationResult:
    golfer_id = golfer["golfer_id"]
    existing = roster_store.get_response(event_id, golfer_id)
    was_in = bool(existing and existing["status"] == "in" and existing.get("position") is not None)
    existing_guests = roster_store.get_guests_by_host(event_id, golfer_id)

    if was_in and guest_count == len(existing_guests):
        position = existing["position"]
        if position <= capacity:
            message = msg.MSG_ALREADY_IN.format(position=position, capacity=capacity)
        else:
            message = msg.MSG_ALREADY_WAITLISTED.format(rank=position - capacity)
        return AllocationResult(True, message, status="in", position=position, capacity=capacity,
                                guests=guest_count, already_in=True)

    if was_in:
        position = existing["position"]
    else:
        position = _next_position(event_id)
        roster_store.upsert_response(event_id, golfer_id, "in", position)
        print(f"[ROSTER] {golfer.get('name')} in at #{position} for event {event_id}")

    if guest_count > len(existing_guests):
        for _ in range(guest_count - len(existing_guests)):
            guest_position = _next_position(event_id)
            roster_store.add_guest(event_id, golfer_id, f"{golfer.get('name')}'s Guest", guest_position)
            print(f"[ROSTER] Guest of {golfer.get('name')} at #{guest_position}")
    elif guest_count < len(existing_guests):
        # Highest position first; freed slots stay open until the next promotion
        excess = sorted(existing_guests, key=lambda g: g["position"], reverse=True)
        for guest in excess[:len(existing_guests) - guest_count]:
            roster_store.delete_guest(guest["guest_id"])
            print(f"[ROSTER] Removed guest #{guest['position']} of {golfer.get('name')}")

    return AllocationResult(True, _in_message(position, capacity, guest_count), status="in",
                            position=position, capacity=capacity, guests=guest_count)


def _record_out(golfer: dict, event_id, capacity: int) -> AllocationResult:
    golfer_id = golfer["golfer_id"]
    existing = roster_store.get_response(event_id, golfer_id)
    previous_position = existing.get("position") if existing and existing["status"] == "in" else None

    roster_store.upsert_response(event_id, golfer_id, "out", None)
    removed = roster_store.delete_guests_by_host(event_id, golfer_id)
    if previous_position is not None:
        print(f"[ROSTER] {golfer.get('name')} out from #{previous_position} ({removed} guest(s) removed)")

    promoted = None
    notices = []
    if previous_position is not None and previous_position <= capacity:
        promoted = _promote(event_id, capacity)
        if promoted:
            notice = promotion_notice(promoted, capacity)
            if notice:
                notices.append(notice)

    return AllocationResult(True, msg.MSG_YOU_ARE_OUT, status="out", capacity=capacity,
                            promoted=promoted, notices=notices)


def promote(event_id) -> Optional[RosterEntry]:
    """Promote the first waitlisted entry into the lowest free confirmed slot."""
    event = roster_store.get_event(event_id)
    if not event:
        return None
    with event_lock(event_id):
        return _promote(event_id, get_capacity(event))


def _promote(event_id, capacity: int) -> Optional[RosterEntry]:
    entries = [e for e in load_roster(event_id) if e.is_in]

    waitlisted = sorted((e for e in entries if e.position > capacity), key=RosterEntry.sort_key)
    if not waitlisted:
        return None

    taken = {e.position for e in entries if e.position <= capacity}
    open_slot = next((p for p in range(1, capacity + 1) if p not in taken), None)
    if open_slot is None:
        return None

    candidate = waitlisted[0]
    if candidate.kind == "guest":
        roster_store.update_guest_position(candidate.entry_id, open_slot)
    else:
        roster_store.update_response_position(candidate.entry_id, open_slot)

    print(f"[ROSTER] Promoted {candidate.name} from #{candidate.position} to #{open_slot}")
    candidate.state = In(open_slot)
    return candidate
