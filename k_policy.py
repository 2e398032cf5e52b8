"""
K-threshold policies for the LRU-K cache.

A policy is any callable taking an AccessContext and returning an int: the
number of accesses an entry needs before it is protected in the cache queue.
Policies are pure and evaluated on every access. The cache clamps whatever a
policy returns into [MIN_K, MAX_K] with `clamp_k`, so a custom policy never
has to.

Built-in policies are produced by small factory functions so they can be
configured and composed:

    policy = conditional(lambda ctx: ctx.is_capacity_tight, fixed(4), adaptive())
"""

import logging
import math
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict

from cache_errors import ConfigError

logger = logging.getLogger(__name__)

MIN_K = 1
MAX_K = 10


@dataclass(frozen=True)
class AccessContext:
    """
    Read-only snapshot handed to a policy at each access.

    `access_count` is the entry's count after the current access has been
    counted (0 when asking about a key that is not cached).
    """

    key: Any
    value: Any
    access_count: int
    timestamp: float
    size: int
    capacity: int

    @property
    def utilization(self) -> float:
        return self.size / self.capacity if self.capacity > 0 else 0.0

    @property
    def is_capacity_tight(self) -> bool:
        return self.utilization > 0.8

    @property
    def is_hot(self) -> bool:
        return self.access_count > 5


Policy = Callable[[AccessContext], int]


def clamp_k(k: int) -> int:
    """
    Force a policy result into [MIN_K, MAX_K].

    Non-integer results are rounded half up first; only a rounded value
    outside the range is reported.
    """
    rounded = int(math.floor(k + 0.5))
    clamped = max(MIN_K, min(rounded, MAX_K))
    if clamped != rounded:
        logger.warning("K value %r out of range, clamped to %d", k, clamped)
    return clamped


def fixed(k: int) -> Policy:
    """Same threshold for every entry. fixed(1) degrades to plain LRU."""
    k = max(MIN_K, min(int(k), MAX_K))

    def policy(context: AccessContext) -> int:
        return k

    return policy


def default_policy() -> Policy:
    """Classic LRU-2."""
    return fixed(2)


def by_access_count() -> Policy:
    """Threshold rises in steps as an entry's access count grows."""

    def policy(context: AccessContext) -> int:
        count = context.access_count
        if count <= 2:
            return 2
        if count <= 5:
            return 3
        return 4

    return policy


def by_utilization() -> Policy:
    """Stricter admission as the cache fills up."""

    def policy(context: AccessContext) -> int:
        util = context.utilization
        if util > 0.9:
            return 5
        if util > 0.7:
            return 4
        if util > 0.5:
            return 3
        return 2

    return policy


def adaptive() -> Policy:
    """
    Utilization tiers (1..5) plus a bump for warm (2-5 accesses) and hot
    (more than 5 accesses) entries, capped at 5.
    """

    def policy(context: AccessContext) -> int:
        util = context.utilization
        if util < 0.3:
            base = 1
        elif util < 0.7:
            base = 2
        elif util < 0.85:
            base = 3
        elif util < 0.95:
            base = 4
        else:
            base = 5

        count = context.access_count
        if 2 <= count <= 5:
            adjustment = 1
        elif count > 5:
            adjustment = 2
        else:
            adjustment = 0

        return min(base + adjustment, 5)

    return policy


def advanced_adaptive() -> Policy:
    """
    Guesses how effective the cache queue is from the access count and
    lowers the bar when it looks ineffective.
    """

    def policy(context: AccessContext) -> int:
        util = context.utilization
        # Entries seen more than twice are likely already protected
        if context.access_count > 2:
            if util > 0.8:
                return 3
            return 2
        if util > 0.9:
            return 2
        return 1

    return policy


def dynamic_threshold() -> Policy:
    """Picks a K band from utilization, then a value inside it from the access count."""

    def policy(context: AccessContext) -> int:
        util = context.utilization
        count = context.access_count
        if util < 0.2:
            return 1
        if util < 0.5:
            return 2 if count > 3 else 1
        if util < 0.8:
            return 3 if count > 5 else 2
        if count <= 1:
            return 3
        if count <= 5:
            return 4
        return 5

    return policy


_TYPE_KEYWORDS = (
    (("image", "video", "file"), 4),
    (("cache", "session", "user"), 3),
    (("config", "metadata", "setting"), 1),
)


def by_value_type() -> Policy:
    """Threshold from keywords in the cached value's type name."""

    def policy(context: AccessContext) -> int:
        if context.value is None:
            return 2
        name = type(context.value).__name__.lower()
        for keywords, k in _TYPE_KEYWORDS:
            if any(word in name for word in keywords):
                return k
        return 2

    return policy


def by_value_size(small_bytes: int = 1024, large_bytes: int = 64 * 1024) -> Policy:
    """
    Large values must prove themselves more before they are protected.

    Sizing uses sys.getsizeof, which only measures the object itself and not
    anything it references. Good enough as a heuristic.
    """
    if small_bytes <= 0 or large_bytes < small_bytes:
        raise ConfigError("size breakpoints must satisfy 0 < small_bytes <= large_bytes")

    def policy(context: AccessContext) -> int:
        if context.value is None:
            return 2
        size = sys.getsizeof(context.value)
        if size < small_bytes:
            return 2
        if size < large_bytes:
            return 3
        return 4

    return policy


def by_time_of_day() -> Policy:
    """
    Threshold by local hour of the access timestamp: business peaks get 3,
    the stable evening window gets 4, everything else 2.
    """

    def policy(context: AccessContext) -> int:
        hour = datetime.fromtimestamp(context.timestamp).hour
        if 9 <= hour <= 11 or 13 <= hour <= 14 or 17 <= hour <= 19:
            return 3
        if 20 <= hour <= 22:
            return 4
        return 2

    return policy


def weighted(first: Policy, first_weight: float, second: Policy, second_weight: float) -> Policy:
    """Weighted mean of two policies, rounded half up."""
    if first is None or second is None:
        raise ConfigError("weighted() needs two policies")
    if first_weight < 0 or second_weight < 0:
        raise ConfigError("weights must be non-negative")
    total = first_weight + second_weight
    if total <= 0:
        raise ConfigError("weights must not sum to zero")

    def policy(context: AccessContext) -> int:
        k1 = first(context)
        k2 = second(context)
        return math.floor((k1 * first_weight + k2 * second_weight) / total + 0.5)

    return policy


def conditional(predicate: Callable[[AccessContext], bool], if_true: Policy, if_false: Policy) -> Policy:
    """Delegate to one of two policies depending on `predicate(context)`."""
    if predicate is None or if_true is None or if_false is None:
        raise ConfigError("conditional() needs a predicate and two policies")

    def policy(context: AccessContext) -> int:
        return if_true(context) if predicate(context) else if_false(context)

    return policy


def smart() -> Policy:
    return weighted(by_utilization(), 0.6, adaptive(), 0.4)


def business_hours() -> Policy:
    """Strict protection (K=4) during 09:00-18:59, gentle (K=2) otherwise."""

    def in_office_hours(context: AccessContext) -> bool:
        return 9 <= datetime.fromtimestamp(context.timestamp).hour <= 18

    return conditional(in_office_hours, fixed(4), fixed(2))


POLICY_FACTORIES: Dict[str, Callable[[], Policy]] = {
    "default": default_policy,
    "access_count": by_access_count,
    "utilization": by_utilization,
    "adaptive": adaptive,
    "advanced_adaptive": advanced_adaptive,
    "dynamic_threshold": dynamic_threshold,
    "value_type": by_value_type,
    "value_size": by_value_size,
    "time_of_day": by_time_of_day,
    "business_hours": business_hours,
    "smart": smart,
}


def policy_from_name(name: str) -> Policy:
    """Build a registered policy by name, e.g. "smart" or "adaptive"."""
    try:
        factory = POLICY_FACTORIES[name]
    except KeyError:
        known = ", ".join(sorted(POLICY_FACTORIES))
        raise ConfigError(f"unknown policy {name!r} (known: {known})") from None
    return factory()
