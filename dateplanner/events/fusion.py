"""Merge independently sourced event lists into one deduplicated list.

Catalogs list the same real-world event under differently formatted names,
so exact ``(name, date)`` matching under-merges. After the exact check every
incoming record is compared with the accumulated records of the same date
using normalized-name equality, substring containment, and token overlap.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence

from dateplanner.domain.enums import CatalogName
from dateplanner.domain.models import EventRecord

DEFAULT_SIMILARITY_THRESHOLD = 0.70

_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")

# Fields overwritten by a later matching record (name and url have their own rules).
_MERGED_FIELDS = ("date", "time", "venue", "address", "category", "cost", "description")


def normalize_name(name: str) -> str:
    lowered = _NON_ALNUM_RE.sub("", (name or "").lower())
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def token_overlap(a: str, b: str) -> float:
    """Shared tokens divided by the size of the larger token set."""
    tokens_a = set(a.split())
    tokens_b = set(b.split())
    longer = max(len(tokens_a), len(tokens_b))
    if longer == 0:
        return 0.0
    return len(tokens_a & tokens_b) / longer


def names_similar(a: str, b: str, threshold: float = DEFAULT_SIMILARITY_THRESHOLD) -> bool:
    norm_a = normalize_name(a)
    norm_b = normalize_name(b)
    if not norm_a or not norm_b:
        return False
    if norm_a == norm_b:
        return True
    if norm_a in norm_b or norm_b in norm_a:
        return True
    return token_overlap(norm_a, norm_b) >= threshold


def _merge(existing: EventRecord, incoming: EventRecord) -> EventRecord:
    update: dict[str, object] = {
        field: getattr(incoming, field)
        for field in _MERGED_FIELDS
        if getattr(incoming, field)
    }
    if not existing.url and incoming.url:
        update["url"] = incoming.url
    update["source"] = CatalogName.COMBINED.value
    return existing.model_copy(update=update)


class EventFusion:
    """Accumulator of canonical events keyed by ``(name, date)``."""

    def __init__(self, similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD):
        self._threshold = similarity_threshold
        self._entries: dict[tuple[str, str], EventRecord] = {}

    def _find_match(self, record: EventRecord) -> Optional[tuple[str, str]]:
        key = (record.name, record.date)
        if key in self._entries:
            return key
        for existing_key, existing in self._entries.items():
            if existing.date != record.date:
                continue
            if names_similar(existing.name, record.name, self._threshold):
                return existing_key
        return None

    def add(self, record: EventRecord, source: str = "") -> None:
        match = self._find_match(record)
        if match is None:
            tagged = record if not source else record.model_copy(update={"source": source})
            self._entries[(record.name, record.date)] = tagged
            return
        self._entries[match] = _merge(self._entries[match], record)

    def add_all(self, records: Iterable[EventRecord], source: str = "") -> None:
        for record in records:
            self.add(record, source)

    def results(self) -> list[EventRecord]:
        return list(self._entries.values())


def _source_name(records: Sequence[EventRecord], default: str) -> str:
    for record in records:
        if record.source:
            return record.source
    return default


def fuse(
    *sources: Optional[Sequence[EventRecord]],
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
) -> list[EventRecord]:
    """Fuse any number of catalog lists; empty or missing lists are skipped.

    With a single non-empty list the records are passed through unchanged.
    """
    present = [list(s) for s in sources if s]
    if not present:
        return []
    if len(present) == 1:
        return present[0]

    fusion = EventFusion(threshold)
    for idx, records in enumerate(present):
        fusion.add_all(records, source=_source_name(records, f"catalog_{idx + 1}"))
    return fusion.results()


__all__ = [
    "DEFAULT_SIMILARITY_THRESHOLD",
    "EventFusion",
    "fuse",
    "names_similar",
    "normalize_name",
    "token_overlap",
]
