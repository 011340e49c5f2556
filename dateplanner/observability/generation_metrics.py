"""In-process metrics for generation and catalog calls."""

from __future__ import annotations

import math
from dataclasses import dataclass, field


@dataclass
class _LatencyAgg:
    total_ms: float = 0.0
    count: int = 0
    max_ms: float = 0.0
    values: list[float] = field(default_factory=list)

    def add(self, value_ms: float) -> None:
        val = max(0.0, float(value_ms))
        self.total_ms += val
        self.count += 1
        if val > self.max_ms:
            self.max_ms = val
        self.values.append(val)
        if len(self.values) > 2000:
            self.values = self.values[-2000:]

    def p95(self) -> float:
        if not self.values:
            return 0.0
        rows = sorted(self.values)
        idx = max(0, min(len(rows) - 1, math.ceil(len(rows) * 0.95) - 1))
        return rows[idx]

    def snapshot(self) -> dict[str, float]:
        avg_ms = (self.total_ms / self.count) if self.count else 0.0
        return {
            "count": self.count,
            "avg_ms": round(avg_ms, 2),
            "max_ms": round(self.max_ms, 2),
            "p95_ms": round(self.p95(), 2),
        }


@dataclass
class _KindStats:
    requests: int = 0
    sources: dict[str, int] = field(default_factory=dict)
    attempts: int = 0
    rate_limited: int = 0
    latency: _LatencyAgg = field(default_factory=_LatencyAgg)

    def snapshot(self) -> dict[str, object]:
        return {
            "requests": self.requests,
            "sources": dict(self.sources),
            "attempts": self.attempts,
            "rate_limited": self.rate_limited,
            "latency": self.latency.snapshot(),
        }


class GenerationMetrics:
    """Counters are only touched from the event loop thread, so no lock."""

    def __init__(self) -> None:
        self._kinds: dict[str, _KindStats] = {}
        self._catalogs: dict[str, dict[str, int]] = {}

    def _kind(self, kind: str) -> _KindStats:
        return self._kinds.setdefault(kind, _KindStats())

    def observe_generation(self, kind: str, *, source: str, attempts: int, latency_ms: float) -> None:
        stats = self._kind(kind)
        stats.requests += 1
        stats.sources[source] = stats.sources.get(source, 0) + 1
        stats.attempts += attempts
        stats.latency.add(latency_ms)

    def observe_rate_limited(self, kind: str) -> None:
        self._kind(kind).rate_limited += 1

    def observe_catalog(self, catalog: str, *, ok: bool, returned: int = 0) -> None:
        row = self._catalogs.setdefault(catalog, {"calls": 0, "errors": 0, "returned": 0})
        row["calls"] += 1
        if not ok:
            row["errors"] += 1
        row["returned"] += returned

    def snapshot(self) -> dict[str, object]:
        return {
            "generation": {kind: stats.snapshot() for kind, stats in self._kinds.items()},
            "catalogs": {name: dict(row) for name, row in self._catalogs.items()},
        }

    def reset(self) -> None:
        self._kinds.clear()
        self._catalogs.clear()


__all__ = ["GenerationMetrics"]
