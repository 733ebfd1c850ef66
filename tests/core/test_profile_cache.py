import pytest

from src.crm_core.application.profile_cache import ProfileCache
from src.crm_core.domain.models import Profile


class ManualClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def cache(clock):
    return ProfileCache(ttl_sec=1800.0, clock=clock)


def test_stored_entry_is_fresh_until_ttl(cache, clock):
    cache.store("u1", Profile(role="Verkoper"), {"quotes_view"})

    clock.now = 1799.0
    entry = cache.get("u1")
    assert entry.profile.role == "Verkoper"
    assert entry.capabilities == frozenset({"quotes_view"})
    assert cache.has_fresh()

    clock.now = 1800.0
    assert cache.get("u1") is None
    assert not cache.has_fresh()


def test_invalidate_and_clear(cache):
    cache.store("u1", Profile(role="Verkoper"), set())
    cache.store("u2", Profile(role="Bekijker"), set())

    cache.invalidate("u1")
    assert cache.get("u1") is None
    assert cache.get("u2") is not None

    cache.clear()
    assert not cache.has_fresh()


def test_missing_user(cache):
    assert cache.get("nobody") is None
    cache.invalidate("nobody")
