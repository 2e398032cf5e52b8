class CacheStats:
    """
    Monotonic counters for one cache instance.

    Every `get` counts as an access, hit or miss. `clear()` on the cache does
    not touch these; only a new cache starts from zero.
    """

    def __init__(self):
        self.total_accesses = 0
        self.hits = 0
        self.misses = 0
        self.evictions = 0
        self.promotions = 0

    def record_hit(self):
        self.total_accesses += 1
        self.hits += 1

    def record_miss(self):
        self.total_accesses += 1
        self.misses += 1

    def record_eviction(self):
        self.evictions += 1

    def record_promotion(self):
        self.promotions += 1

    def hit_rate(self) -> float:
        """hits / total accesses, or 0.0 before the first access."""
        return self.hits / self.total_accesses if self.total_accesses > 0 else 0.0

    @staticmethod
    def utilization(size: int, capacity: int) -> float:
        return size / capacity if capacity > 0 else 0.0

    def snapshot(self) -> dict:
        return {
            "total_accesses": self.total_accesses,
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "promotions": self.promotions,
            "hit_ratio": self.hit_rate(),
        }
