import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from cache_errors import ConfigError
from k_policy import Policy, default_policy, fixed, policy_from_name

_KNOWN_KEYS = {"capacity", "policy", "strict_capacity_on_promotion"}


@dataclass(frozen=True)
class LRUKConfig:
    """
    Construction parameters for an LRUKCache.

    `clock` supplies the timestamp every AccessContext carries; tests swap it
    for a fake to make time-based policies deterministic.
    """

    capacity: int
    policy: Policy = field(default_factory=default_policy)
    strict_capacity_on_promotion: bool = False
    clock: Callable[[], float] = time.time

    def validate(self) -> "LRUKConfig":
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise ConfigError(f"capacity must be an integer, got {self.capacity!r}")
        if self.capacity <= 0:
            raise ConfigError(f"capacity must be positive, got {self.capacity}")
        if self.policy is None or not callable(self.policy):
            raise ConfigError("a K policy is required")
        if self.clock is None or not callable(self.clock):
            raise ConfigError("clock must be callable")
        return self

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LRUKConfig":
        """
        Build a config from plain data, e.g. a parsed JSON document.

        `policy` may be a registered policy name ("smart", "adaptive", ...) or
        an integer meaning a fixed K. It defaults to "default" (fixed K=2).
        """
        if not isinstance(data, Mapping):
            raise ConfigError("cache config must be a mapping")
        unknown = set(data) - _KNOWN_KEYS
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(sorted(unknown))}")
        if "capacity" not in data:
            raise ConfigError("capacity is required")

        raw_policy = data.get("policy", "default")
        if isinstance(raw_policy, bool):
            raise ConfigError(f"invalid policy {raw_policy!r}")
        if isinstance(raw_policy, int):
            policy = fixed(raw_policy)
        elif isinstance(raw_policy, str):
            policy = policy_from_name(raw_policy)
        else:
            raise ConfigError(f"policy must be a name or an integer K, got {raw_policy!r}")

        strict = data.get("strict_capacity_on_promotion", False)
        if not isinstance(strict, bool):
            raise ConfigError(f"strict_capacity_on_promotion must be true or false, got {strict!r}")

        config = cls(
            capacity=data["capacity"],
            policy=policy,
            strict_capacity_on_promotion=strict,
        )
        return config.validate()


def load_config(filepath: str) -> LRUKConfig:
    """Read an LRUKConfig from a JSON file."""
    with open(filepath, "r") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"invalid JSON in {filepath}: {e}") from e
    return LRUKConfig.from_mapping(data)
