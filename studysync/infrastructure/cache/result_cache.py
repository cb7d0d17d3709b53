"""In-process result cache for generated content.

Entries expire after a per-entry TTL. Capacity is enforced by an injectable
eviction policy; the default keeps the most recently used entries.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

    from studysync.config import CacheConfig

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_MAX_ENTRIES = 256


class EvictionPolicy(Protocol):
    def record_set(self, key: str) -> None: ...

    def record_access(self, key: str) -> None: ...

    def record_delete(self, key: str) -> None: ...

    def victims(self, size: int) -> list[str]:
        """Keys to evict so that ``size`` entries fit."""
        ...

    def clear(self) -> None: ...


class LRUEvictionPolicy:
    """Bounded least-recently-used eviction."""

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries <= 0:
            msg = "max_entries must be positive"
            raise ValueError(msg)
        self.max_entries = max_entries
        self._order: OrderedDict[str, None] = OrderedDict()

    def record_set(self, key: str) -> None:
        self._order[key] = None
        self._order.move_to_end(key)

    def record_access(self, key: str) -> None:
        if key in self._order:
            self._order.move_to_end(key)

    def record_delete(self, key: str) -> None:
        self._order.pop(key, None)

    def victims(self, size: int) -> list[str]:
        overflow = size - self.max_entries
        if overflow <= 0:
            return []
        return list(self._order)[:overflow]

    def clear(self) -> None:
        self._order.clear()


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    evictions: int
    size: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hits + self.misses
        return self.hits / lookups if lookups else 0.0


@dataclass
class _Entry:
    value: Any
    expires_at: float


class ResultCache:
    def __init__(
        self,
        policy: EvictionPolicy | None = None,
        *,
        default_ttl: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy or LRUEvictionPolicy()
        self._default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    @classmethod
    def from_config(cls, config: CacheConfig) -> ResultCache:
        return cls(LRUEvictionPolicy(config.max_entries), default_ttl=config.ttl_sec)

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if entry.expires_at <= self._clock():
            self._remove(key)
            self._misses += 1
            logger.debug("result_cache_expired", extra={"cache_key": key})
            return None
        self._hits += 1
        self._policy.record_access(key)
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl = self._default_ttl if ttl is None else ttl
        if ttl <= 0:
            msg = "ttl must be positive"
            raise ValueError(msg)
        self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl)
        self._policy.record_set(key)

        for victim in self._policy.victims(len(self._entries)):
            if victim == key:
                continue
            self._remove(victim)
            self._evictions += 1
            logger.debug("result_cache_evicted", extra={"cache_key": victim})

    def delete(self, key: str) -> bool:
        if key not in self._entries:
            return False
        self._remove(key)
        return True

    def clear(self) -> None:
        self._entries.clear()
        self._policy.clear()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def cleanup(self) -> int:
        """Drop expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            self._remove(key)
        return len(expired)

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            evictions=self._evictions,
            size=len(self._entries),
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        entry = self._entries.get(key)
        return entry is not None and entry.expires_at > self._clock()

    def _remove(self, key: str) -> None:
        self._entries.pop(key, None)
        self._policy.record_delete(key)


def make_cache_key(
    provider: str, operation: str, text: str, params: dict[str, Any] | None = None
) -> str:
    """Deterministic key: provider, operation, text digest and params digest."""
    text_hash = hashlib.sha256(text.encode("utf-8")).hexdigest()[:32]
    params_hash = ""
    if params:
        serialized = json.dumps(params, sort_keys=True, default=str, separators=(",", ":"))
        params_hash = hashlib.sha256(serialized.encode("utf-8")).hexdigest()[:16]
    return f"{provider}:{operation}:{text_hash}:{params_hash}"
