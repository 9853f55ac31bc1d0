import os
import threading
from contextlib import contextmanager
import redis
from dotenv import load_dotenv

load_dotenv()

redis_url = os.environ.get("REDIS_URL")

# Seconds a held roster lock survives if its holder dies mid-mutation
LOCK_TIMEOUT = 10
# Seconds a caller waits for another writer before giving up
LOCK_WAIT = 5

_local_locks = {}
_local_locks_guard = threading.Lock()


def get_redis_client():
    if not redis_url:
        return None
    try:
        return redis.from_url(redis_url, decode_responses=True)
    except Exception as e:
        print(f"Error connecting to Redis: {e}")
        return None


def _get_local_lock(event_id) -> threading.Lock:
    with _local_locks_guard:
        lock = _local_locks.get(str(event_id))
        if lock is None:
            lock = threading.Lock()
            _local_locks[str(event_id)] = lock
        return lock


def forget_event_lock(event_id):
    """Drop the process-local lock of a closed event unless someone holds it."""
    with _local_locks_guard:
        lock = _local_locks.get(str(event_id))
        if lock is not None and not lock.locked():
            del _local_locks[str(event_id)]


@contextmanager
def event_lock(event_id):
    """
    Serialize roster mutations for one event.

    Always holds a process-local lock. When REDIS_URL is set, also holds a
    Redis lock so separate app instances cannot interleave position writes.
    """
    local = _get_local_lock(event_id)
    with local:
        r = get_redis_client()
        if not r:
            yield
            return

        lock = r.lock(f"event-lock:{event_id}", timeout=LOCK_TIMEOUT, blocking_timeout=LOCK_WAIT)
        if not lock.acquire():
            raise TimeoutError(f"Could not acquire roster lock for event {event_id}")
        try:
            yield
        finally:
            try:
                lock.release()
            except redis.exceptions.LockError as e:
                print(f"[REDIS] Roster lock for event {event_id} expired before release: {e}")
