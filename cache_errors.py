"""
Typed errors raised by the LRU-K cache.

Misses are not errors: `get` and `remove` on an absent key return None.
"""

__all__ = [
    "CacheError",
    "ConfigError",
    "InvalidKeyError",
    "InvariantError",
    "format_error",
]


class CacheError(Exception):
    """Base class for every error raised by the cache modules."""
    pass


class ConfigError(CacheError, ValueError):
    """Invalid construction parameters: capacity, policy, weights, config keys."""
    pass


class InvalidKeyError(CacheError, ValueError):
    """A write was attempted with an undefined (None) key."""
    pass


class InvariantError(CacheError, RuntimeError):
    """
    Internal bookkeeping is inconsistent.

    Unreachable through the public cache API. Raised, never recovered.
    """
    pass


def format_error(e: BaseException) -> str:
    """Return a short message like 'ConfigError: capacity must be positive'."""
    name = e.__class__.__name__
    msg = str(e).strip()
    return f"{name}: {msg}" if msg else name
