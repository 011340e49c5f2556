"""In-memory TTL cache shared by the generation and event pipelines."""

from __future__ import annotations

import hashlib
import json
import re
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    stored_at: float


class TTLCache:
    """Time-bounded cache with read-time expiry.

    An entry is readable only while ``now - stored_at < ttl``. Expired entries
    are dropped when they are looked up; there is no capacity bound and no LRU.
    Only validated results are ever stored, so callers can return hits as-is.
    """

    def __init__(self, ttl: float = 300.0, clock: Callable[[], float] = time.time):
        self._store: dict[str, CacheEntry] = {}
        self._ttl = float(ttl)
        self._clock = clock
        self._hits = 0
        self._misses = 0

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[Any]:
        entry = self._store.get(key)
        if entry is None:
            self._misses += 1
            return None
        if self._clock() - entry.stored_at >= self._ttl:
            del self._store[key]
            self._misses += 1
            return None
        self._hits += 1
        return entry.value

    def set(self, key: str, value: Any) -> None:
        self._store[key] = CacheEntry(key=key, value=value, stored_at=self._clock())

    def clear(self) -> None:
        self._store.clear()
        self._hits = 0
        self._misses = 0

    def __len__(self) -> int:
        return len(self._store)

    @property
    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "size": len(self._store),
            "ttl_seconds": self._ttl,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 3) if total > 0 else 0.0,
        }


def normalize_key_part(value: Any) -> Any:
    """Case-fold and collapse whitespace so equivalent inputs share a key."""
    if isinstance(value, str):
        return _WHITESPACE_RE.sub(" ", value).strip().casefold()
    if isinstance(value, (list, tuple)):
        return [normalize_key_part(v) for v in value]
    if isinstance(value, dict):
        return {str(k): normalize_key_part(v) for k, v in value.items()}
    return value


def make_cache_key(namespace: str, *parts: Any) -> str:
    """Build ``namespace:<digest>`` from normalized parts."""
    normalized = [normalize_key_part(p) for p in parts]
    raw = json.dumps(normalized, sort_keys=True, default=str, ensure_ascii=False)
    digest = hashlib.md5(raw.encode()).hexdigest()
    return f"{namespace}:{digest}"


__all__ = ["CacheEntry", "TTLCache", "make_cache_key", "normalize_key_part"]
