from enum import Enum
from typing import Any, Dict, Optional

from cache_errors import InvariantError
from intrusive_list import ListNode


class Membership(Enum):
    NONE = "none"
    HISTORY = "history"
    CACHE = "cache"


class CacheEntry:
    """
    One live key with its access bookkeeping.

    An entry sits in exactly one queue. `node` is its handle in that queue,
    which lets the cache unlink it without searching.
    """

    __slots__ = ("key", "value", "access_count", "current_k", "membership", "node")

    def __init__(self, key, value):
        self.key = key
        self.value = value
        self.access_count = 0
        self.current_k = 1
        self.membership = Membership.NONE
        self.node: Optional[ListNode["CacheEntry"]] = None

    @property
    def in_history(self) -> bool:
        return self.membership is Membership.HISTORY

    @property
    def in_cache(self) -> bool:
        return self.membership is Membership.CACHE

    def is_eligible_for_cache(self) -> bool:
        return self.access_count >= self.current_k

    def attach(self, membership: Membership, node: ListNode["CacheEntry"]):
        if self.membership is not Membership.NONE:
            raise InvariantError(f"{self.key!r} is already in the {self.membership.value} queue")
        self.membership = membership
        self.node = node

    def detach(self) -> Optional[ListNode["CacheEntry"]]:
        node = self.node
        self.membership = Membership.NONE
        self.node = None
        return node

    def __repr__(self) -> str:
        return (
            f"CacheEntry(key={self.key!r}, access_count={self.access_count}, "
            f"current_k={self.current_k}, membership={self.membership.value})"
        )


class EntryRegistry:
    """Hash index from key to CacheEntry."""

    def __init__(self):
        self._entries: Dict[Any, CacheEntry] = {}

    def get(self, key) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def insert(self, key, value) -> CacheEntry:
        """
        Create and index a new entry.

        Raises:
            InvariantError: If `key` is already indexed. Updates must mutate
                the existing entry instead.
        """
        if key in self._entries:
            raise InvariantError(f"duplicate registry insert for {key!r}")
        entry = CacheEntry(key, value)
        self._entries[key] = entry
        return entry

    def remove(self, key) -> Optional[CacheEntry]:
        return self._entries.pop(key, None)

    def clear(self):
        self._entries.clear()

    def __contains__(self, key) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

