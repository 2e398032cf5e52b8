import logging
import time
from typing import Any, Callable, List, Optional

from cache_config import LRUKConfig
from cache_entry import CacheEntry, EntryRegistry, Membership
from cache_errors import InvalidKeyError, InvariantError
from cache_stats import CacheStats
from intrusive_list import IntrusiveList
from k_policy import AccessContext, Policy, clamp_k

logger = logging.getLogger(__name__)


class LRUKCache:
    """
    An LRU-K cache: entries only earn long-term residence after they have
    been accessed K times.

    Two queues share one capacity:

    - history: entries seen fewer than K times, most recent first
    - cache:   entries that reached K, most recent first

    Eviction always takes the history tail first. An entry that has been used
    once is sacrificed before any entry that proved it is used repeatedly,
    even if the repeatedly used one is staler. Only when history is empty does
    the cache tail go.

    K comes from a policy evaluated on every access and may differ per entry.
    Reads and writes both count as accesses.

    All operations are O(1) apart from the policy call. The cache performs no
    locking; callers sharing one across threads must wrap each call in a
    single lock of their own.
    """

    def __init__(
        self,
        capacity: int,
        policy: Policy,
        strict_capacity_on_promotion: bool = False,
        clock: Callable[[], float] = time.time,
    ):
        config = LRUKConfig(
            capacity=capacity,
            policy=policy,
            strict_capacity_on_promotion=strict_capacity_on_promotion,
            clock=clock,
        ).validate()

        self._capacity = config.capacity
        self._policy = config.policy
        self._strict_capacity_on_promotion = config.strict_capacity_on_promotion
        self._clock = config.clock

        self._entries = EntryRegistry()
        self._history: IntrusiveList[CacheEntry] = IntrusiveList()
        self._cache: IntrusiveList[CacheEntry] = IntrusiveList()

        self._stats = CacheStats()

    @classmethod
    def from_config(cls, config: LRUKConfig) -> "LRUKCache":
        return cls(
            config.capacity,
            config.policy,
            strict_capacity_on_promotion=config.strict_capacity_on_promotion,
            clock=config.clock,
        )

    def get(self, key, default=None):
        """
        Return the value for `key` if present, otherwise `default`.

        A hit counts as an access: the entry moves to the front of its queue
        and is promoted to the cache queue once its access count reaches K.

        Args:
            key: The cache key
            default: Returned on a miss

        Returns:
            The cached value, or `default` if the key is not cached
        """
        entry = self._entries.get(key)
        if entry is None:
            self._stats.record_miss()
            return default

        self._touch(entry, entry.value)
        self._stats.record_hit()
        return entry.value

    def put(self, key, value):
        """
        Insert or update a key-value pair.

        Updating counts as an access exactly like `get`. Inserting a new key
        into a full cache first evicts one entry. A new entry starts with an
        access count of 1 and goes to the history queue, or straight to the
        cache queue when its K is 1.

        The policy is consulted before anything changes, so a policy that
        raises leaves the cache exactly as it was.

        Args:
            key: The cache key, any hashable value except None
            value: The value to cache

        Raises:
            InvalidKeyError: If `key` is None.
        """
        if key is None:
            raise InvalidKeyError("cache key must not be None")

        entry = self._entries.get(key)
        if entry is not None:
            self._touch(entry, value)
            return

        # Occupancy the new entry will see once it is inserted
        size_after = min(len(self._entries), self._capacity - 1) + 1
        k = self._compute_k(key, value, 1, size=size_after)

        if len(self._entries) >= self._capacity:
            self._evict_one()

        entry = self._entries.insert(key, value)
        entry.access_count = 1
        entry.current_k = k

        if entry.is_eligible_for_cache():
            entry.attach(Membership.CACHE, self._cache.push_front(entry))
        else:
            entry.attach(Membership.HISTORY, self._history.push_front(entry))

    def remove(self, key):
        """
        Remove a key from the cache.

        Statistics and access counts of other entries are untouched.

        Args:
            key: The cache key to remove

        Returns:
            The removed value, or None if the key was not cached
        """
        entry = self._entries.remove(key)
        if entry is None:
            return None
        self._unlink(entry)
        return entry.value

    def clear(self):
        """
        Remove every entry.

        Hit/miss statistics are kept; only a new cache starts from zero.
        """
        dropped = len(self._entries)
        self._entries.clear()
        self._history.clear()
        self._cache.clear()
        logger.debug("cleared %d entries", dropped)

    def contains(self, key) -> bool:
        """
        Check if a key is cached without counting it as an access.

        Args:
            key: The cache key to check

        Returns:
            True if the key is cached, False otherwise
        """
        return key in self._entries

    __contains__ = contains

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def capacity(self) -> int:
        return self._capacity

    def is_empty(self) -> bool:
        return len(self._entries) == 0

    @property
    def strict_capacity_on_promotion(self) -> bool:
        return self._strict_capacity_on_promotion

    def current_k(self, key) -> int:
        """
        Get the threshold a key is currently judged against.

        Args:
            key: The cache key

        Returns:
            The entry's current K. For a key that is not cached, the K a
            brand-new entry would start from.
        """
        entry = self._entries.get(key)
        if entry is not None:
            return entry.current_k
        return self._compute_k(key, None, 0)

    def access_count(self, key) -> int:
        """
        Get the number of accesses recorded for a key.

        Args:
            key: The cache key

        Returns:
            The access count, or -1 if the key is not cached
        """
        entry = self._entries.get(key)
        return entry.access_count if entry is not None else -1

    def in_history(self, key) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.in_history

    def in_cache(self, key) -> bool:
        entry = self._entries.get(key)
        return entry is not None and entry.in_cache

    def history_len(self) -> int:
        return len(self._history)

    def cache_len(self) -> int:
        return len(self._cache)

    def history_keys(self) -> List[Any]:
        """Keys in the history queue, most recently used first."""
        return [entry.key for entry in self._history]

    def cache_keys(self) -> List[Any]:
        """Keys in the cache queue, most recently used first."""
        return [entry.key for entry in self._cache]

    def check_invariants(self):
        """
        Verify that every cached key sits in exactly one queue.

        Raises:
            InvariantError: If the queues and the index disagree.
        """
        if len(self._history) + len(self._cache) != len(self._entries):
            raise InvariantError(
                f"queue sizes {len(self._history)}+{len(self._cache)} "
                f"!= {len(self._entries)} entries"
            )
        for membership, queue in ((Membership.HISTORY, self._history), (Membership.CACHE, self._cache)):
            for entry in queue:
                if entry.membership is not membership:
                    raise InvariantError(f"{entry!r} found in the {membership.value} queue")
                if self._entries.get(entry.key) is not entry:
                    raise InvariantError(f"{entry!r} is queued but not indexed")

    def hit_rate(self) -> float:
        return self._stats.hit_rate()

    def utilization(self) -> float:
        return CacheStats.utilization(len(self._entries), self._capacity)

    def get_stats(self) -> dict:
        """
        Get cache statistics including queue occupancy.

        Returns:
            Dictionary with total_accesses, hits, misses, evictions,
            promotions, hit_ratio, size, capacity, utilization and the
            sizes of both queues.
        """
        stats = self._stats.snapshot()
        stats.update({
            "size": len(self._entries),
            "capacity": self._capacity,
            "utilization": self.utilization(),
            "history_size": len(self._history),
            "cache_size": len(self._cache),
        })
        return stats

    def stats_summary(self) -> str:
        """
        Render `get_stats()` as a multi-line, human readable summary.
        """
        stats = self.get_stats()
        size = stats["size"]
        history_share = stats["history_size"] / size * 100 if size else 0.0
        cache_share = stats["cache_size"] / size * 100 if size else 0.0
        return "\n".join([
            "Cache statistics:",
            f"  Occupancy: {size}/{self._capacity} ({stats['utilization']:.1%})",
            f"  Accesses: total={stats['total_accesses']}, hits={stats['hits']}, misses={stats['misses']}",
            f"  Hit ratio: {stats['hit_ratio']:.2%}",
            f"  Evictions: {stats['evictions']}, promotions: {stats['promotions']}",
            f"  Queues: history={stats['history_size']} ({history_share:.1f}%), "
            f"cache={stats['cache_size']} ({cache_share:.1f}%)",
        ])

    def __repr__(self) -> str:
        return (
            f"LRUKCache(capacity={self._capacity}, size={len(self._entries)}, "
            f"history={len(self._history)}, cache={len(self._cache)}, "
            f"hit_rate={self.hit_rate():.2%})"
        )

    def _compute_k(self, key, value, access_count: int, size: Optional[int] = None) -> int:
        """
        Evaluate the policy for one access and clamp the result.

        Args:
            key: The key being accessed
            value: The value the entry will hold after the access
            access_count: The entry's count including this access
            size: Occupancy to report; defaults to the current entry count

        Returns:
            K in [MIN_K, MAX_K]
        """
        context = AccessContext(
            key=key,
            value=value,
            access_count=access_count,
            timestamp=self._clock(),
            size=len(self._entries) if size is None else size,
            capacity=self._capacity,
        )
        return clamp_k(self._policy(context))

    def _touch(self, entry: CacheEntry, value):
        """
        Count one access against an existing entry and update its position.

        The new K is computed first; the entry is only mutated once the
        policy has returned.
        """
        if not (entry.in_history or entry.in_cache):
            raise InvariantError(f"{entry!r} is indexed but in no queue")

        count = entry.access_count + 1
        k = self._compute_k(entry.key, value, count)

        entry.value = value
        entry.access_count = count
        entry.current_k = k

        if entry.in_history:
            self._history.move_to_front(entry.node)
            if entry.is_eligible_for_cache():
                self._promote(entry)
        else:
            self._cache.move_to_front(entry.node)

    def _promote(self, entry: CacheEntry):
        """
        Move an entry from history to the front of the cache queue.

        Promotion does not change the entry count. In strict mode a full cache
        still gives up one other entry first, so the promoted entry always
        lands with a free slot behind it.
        """
        self._history.remove(entry.detach())

        if self._strict_capacity_on_promotion and len(self._entries) >= self._capacity:
            self._evict_one()

        entry.attach(Membership.CACHE, self._cache.push_front(entry))
        self._stats.record_promotion()
        logger.debug(
            "promoted %r to cache queue (access_count=%d, k=%d)",
            entry.key, entry.access_count, entry.current_k,
        )

    def _evict_one(self) -> Optional[CacheEntry]:
        """
        Evict one entry: the history tail if history is non-empty, otherwise
        the cache tail.

        Returns:
            The evicted entry, or None if both queues are empty
        """
        if not self._history.is_empty():
            victim = self._history.pop_back()
            source = "history"
        elif not self._cache.is_empty():
            victim = self._cache.pop_back()
            source = "cache"
        else:
            return None

        victim.detach()
        self._entries.remove(victim.key)
        self._stats.record_eviction()
        logger.debug(
            "evicted %r from %s queue (access_count=%d)",
            victim.key, source, victim.access_count,
        )
        return victim

    def _unlink(self, entry: CacheEntry):
        membership = entry.membership
        node = entry.detach()
        if membership is Membership.HISTORY:
            self._history.remove(node)
        elif membership is Membership.CACHE:
            self._cache.remove(node)
        else:
            raise InvariantError(f"{entry!r} is in no queue")
