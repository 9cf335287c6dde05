from __future__ import annotations

import time
from contextlib import contextmanager

import redis


class SessionBusy(RuntimeError):
    """Another writer holds the save slot."""


@contextmanager
def session_lock(*, r: redis.Redis, slug: str, ttl_ms: int = 5_000):
    """Best-effort per-save lock.

    Guards the read-modify-write of one save slot. Single holder only: the
    release does not check ownership.
    """

    key = f"lock:save:{slug}"
    acquired = r.set(key, "1", nx=True, px=ttl_ms)
    if not acquired:
        raise SessionBusy(f"Save slot '{slug}' is busy")
    try:
        yield
    finally:
        r.delete(key)
        # let a waiting writer in before this one retries
        time.sleep(0)
