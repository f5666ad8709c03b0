import time

from distill.cache.ttl import ANTHROPIC_CACHE_TTL, TTLEntry, TTLTracker


def test_first_touch_is_cold_start():
    tracker = TTLTracker(300.0)
    assert tracker.touch("hash-abc") is False
    entry = tracker.entry("hash-abc")
    assert entry is not None
    assert entry.miss_count == 1
    assert entry.hit_count == 0


def test_second_touch_is_warm_hit():
    tracker = TTLTracker(300.0)
    tracker.touch("hash-abc")
    assert tracker.touch("hash-abc") is True
    assert tracker.entry("hash-abc").hit_count == 1


def test_expired_entry_is_cold():
    tracker = TTLTracker(0.001)
    tracker.touch("hash-xyz")
    time.sleep(0.005)
    assert tracker.touch("hash-xyz") is False
    entry = tracker.entry("hash-xyz")
    assert entry.expired is True
    assert entry.miss_count == 2


def test_time_until_expiry():
    tracker = TTLTracker(300.0)
    tracker.touch("hash-abc")
    remaining = tracker.time_until_expiry("hash-abc")
    assert 0 < remaining <= 300.0


def test_time_until_expiry_unknown():
    tracker = TTLTracker(300.0)
    assert tracker.time_until_expiry("unknown") == 0.0


def test_time_until_expiry_after_expiry_is_zero():
    tracker = TTLTracker(0.001)
    tracker.touch("a")
    time.sleep(0.005)
    assert tracker.time_until_expiry("a") == 0.0


def test_schedule_deadline():
    tracker = TTLTracker(300.0)
    tracker.touch("hash-abc")
    deadline = tracker.schedule_deadline("hash-abc", 30.0)
    assert deadline is not None
    remaining = deadline - time.time()
    assert 0 < remaining <= 270.0
    assert deadline == tracker.next_deadline("hash-abc") - 30.0


def test_schedule_deadline_unknown():
    tracker = TTLTracker(300.0)
    assert tracker.schedule_deadline("missing", 30.0) is None
    assert tracker.next_deadline("missing") is None


def test_expired_entries():
    tracker = TTLTracker(0.001)
    tracker.touch("a")
    tracker.touch("b")
    time.sleep(0.005)
    expired = tracker.expired_entries()
    assert sorted(e.prefix_hash for e in expired) == ["a", "b"]


def test_evict():
    tracker = TTLTracker(300.0)
    tracker.touch("hash-abc")
    tracker.evict("hash-abc")
    assert tracker.entry("hash-abc") is None


def test_stats():
    tracker = TTLTracker(300.0)
    tracker.touch("a")
    tracker.touch("a")
    tracker.touch("b")
    stats = tracker.stats()
    assert stats.total_prefixes == 2
    assert stats.alive_prefixes == 2
    assert stats.expired_prefixes == 0
    assert stats.total_hits == 1
    assert stats.total_misses == 2


def test_stats_counts_expired():
    tracker = TTLTracker(0.001)
    tracker.touch("a")
    time.sleep(0.005)
    stats = tracker.stats()
    assert stats.expired_prefixes == 1
    assert stats.alive_prefixes == 0


def test_default_ttl_used_for_non_positive():
    assert TTLTracker(0).ttl == ANTHROPIC_CACHE_TTL
    assert TTLTracker(-5).ttl == ANTHROPIC_CACHE_TTL
    assert ANTHROPIC_CACHE_TTL == 300.0


def test_entry_is_snapshot():
    tracker = TTLTracker(300.0)
    tracker.touch("a")
    snapshot = tracker.entry("a")
    snapshot.hit_count = 99
    assert tracker.entry("a").hit_count == 0


def test_ttl_entry_is_alive():
    assert TTLEntry(expires_at=time.time() + 60).is_alive() is True
    assert TTLEntry(expires_at=time.time() - 60).is_alive() is False