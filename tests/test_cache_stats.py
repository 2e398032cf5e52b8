import pytest

from cache_stats import CacheStats


def test_hit_rate_is_zero_before_any_access():
    assert CacheStats().hit_rate() == 0.0


def test_counters_and_hit_rate():
    stats = CacheStats()
    stats.record_hit()
    stats.record_hit()
    stats.record_miss()
    assert stats.total_accesses == 3
    assert stats.hits == 2
    assert stats.misses == 1
    assert stats.hit_rate() == pytest.approx(2 / 3)


def test_snapshot_and_utilization():
    stats = CacheStats()
    stats.record_eviction()
    stats.record_promotion()
    snap = stats.snapshot()
    assert snap["evictions"] == 1
    assert snap["promotions"] == 1
    assert snap["hit_ratio"] == 0.0
    assert CacheStats.utilization(3, 4) == 0.75
    assert CacheStats.utilization(0, 0) == 0.0
