import time

_last_id = 0


def next_time_id() -> int:
    """Millisecond timestamp, bumped when two ids are requested in the same millisecond."""
    global _last_id
    candidate = int(time.time() * 1000)
    if candidate <= _last_id:
        candidate = _last_id + 1
    _last_id = candidate
    return candidate
