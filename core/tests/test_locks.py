import pytest

from core.common import locks


class FakeRedis:
    """SET NX, EXISTS and the compare-and-delete script; `expire` drops a key."""

    def __init__(self):
        self.store = {}

    def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = value
        return True

    def exists(self, key):
        return int(key in self.store)

    def eval(self, script, numkeys, key, token):
        assert script == locks.RELEASE_SCRIPT
        if self.store.get(key) == token:
            del self.store[key]
            return 1
        return 0

    def expire(self, key):
        self.store.pop(key, None)


@pytest.fixture
def fake_redis(monkeypatch):
    r = FakeRedis()
    monkeypatch.setattr(locks, "_redis", lambda: r)
    return r


def test_acquire_returns_a_token_and_blocks_second_run(fake_redis):
    token = locks.acquire("fee-overdue-check")
    assert token
    assert locks.acquire("fee-overdue-check") is False
    assert locks.is_locked("fee-overdue-check")


def test_release_with_own_token(fake_redis):
    token = locks.acquire("fee-reminder")
    assert locks.release("fee-reminder", token) is True
    assert not locks.is_locked("fee-reminder")


def test_expired_run_does_not_release_the_next_runs_lock(fake_redis):
    slow = locks.acquire("fee-overdue-check")
    fake_redis.expire("joblock:fee-overdue-check")
    fast = locks.acquire("fee-overdue-check")
    assert fast and fast != slow

    assert locks.release("fee-overdue-check", slow) is False
    assert locks.is_locked("fee-overdue-check")
    assert locks.acquire("fee-overdue-check") is False


def test_job_lock_raises_when_held(fake_redis):
    locks.acquire("event-processor")
    with pytest.raises(locks.LockHeld):
        with locks.job_lock("event-processor"):
            pass


def test_job_lock_releases_on_exit(fake_redis):
    with locks.job_lock("event-processor"):
        assert locks.is_locked("event-processor")
    assert not locks.is_locked("event-processor")


def test_no_redis_means_no_lock(monkeypatch):
    monkeypatch.setattr(locks, "_redis", lambda: None)
    assert locks.acquire("event-processor") is None
    with locks.job_lock("event-processor"):
        pass
