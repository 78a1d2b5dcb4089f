from __future__ import annotations

import logging
import secrets
from contextlib import contextmanager

from django.conf import settings

from core.common.redis_client import get_redis

logger = logging.getLogger(__name__)

# delete only while the key still holds our token
RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def _lock_key(name: str) -> str:
    return f"joblock:{name}"


def _redis():
    if not getattr(settings, "JOB_LOCKS_ENABLED", True):
        return None
    try:
        return get_redis()
    except Exception:
        return None


def acquire(name: str, ttl_seconds: int | None = None) -> str | bool | None:
    """
    SET NX EX on joblock:<name> with a per-run token as the value.
    token = acquired, False = held by another run, None = Redis unavailable.
    """
    r = _redis()
    if not r:
        return None
    ttl = int(ttl_seconds or getattr(settings, "JOB_LOCK_TTL_SECONDS", 3600))
    token = secrets.token_hex(16)
    try:
        if r.set(_lock_key(name), token, nx=True, ex=ttl):
            return token
        return False
    except Exception:
        logger.warning("Redis unavailable, running %s without a lock", name)
        return None


def release(name: str, token: str) -> bool:
    """
    Compare-and-delete. A run that outlived its TTL finds another run's
    token under the key and leaves it alone.
    """
    r = _redis()
    if not r:
        return False
    try:
        released = bool(r.eval(RELEASE_SCRIPT, 1, _lock_key(name), token))
    except Exception:
        logger.warning("Could not release lock for %s", name, exc_info=True)
        return False
    if not released:
        logger.warning("Lock for %s expired before release", name)
    return released


def is_locked(name: str) -> bool:
    r = _redis()
    if not r:
        return False
    try:
        return bool(r.exists(_lock_key(name)))
    except Exception:
        return False


class LockHeld(Exception):
    pass


@contextmanager
def job_lock(name: str, ttl_seconds: int | None = None):
    """
    Serializes runs of the same job across workers.
    Raises LockHeld if another run owns the lock.
    """
    token = acquire(name, ttl_seconds)
    if token is False:
        raise LockHeld(name)
    try:
        yield
    finally:
        if token:
            release(name, token)
