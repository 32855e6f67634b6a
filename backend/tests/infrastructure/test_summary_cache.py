"""Summary cache — TTL expiry, invalidation, bounded size."""

from uuid import uuid4

from chargewatch.core.verification import VerificationSummary
from chargewatch.infrastructure import summary_cache
from chargewatch.infrastructure.summary_cache import SummaryCache, get_summary_cache


def test_disabled_cache_never_stores():
    cache = SummaryCache(ttl_seconds=0)
    sid = uuid4()
    cache.put(sid, VerificationSummary(total_votes=1))
    assert cache.enabled is False
    assert cache.get(sid) is None


def test_put_get_and_invalidate():
    cache = SummaryCache(ttl_seconds=60)
    sid = uuid4()
    summary = VerificationSummary(total_votes=3)
    cache.put(sid, summary)
    assert cache.get(sid) is summary
    cache.invalidate(sid)
    assert cache.get(sid) is None


def test_entries_expire(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr(summary_cache.time, "monotonic", lambda: clock["now"])
    cache = SummaryCache(ttl_seconds=10)
    sid = uuid4()
    cache.put(sid, VerificationSummary())
    clock["now"] += 11
    assert cache.get(sid) is None


def test_oldest_entries_evicted():
    cache = SummaryCache(ttl_seconds=60, max_entries=2)
    first, second, third = uuid4(), uuid4(), uuid4()
    for sid in (first, second, third):
        cache.put(sid, VerificationSummary())
    assert cache.get(first) is None
    assert cache.get(third) is not None


def test_shared_cache_rebuilt_when_ttl_changes():
    a = get_summary_cache(30)
    assert get_summary_cache(30) is a
    assert get_summary_cache(0) is not a
