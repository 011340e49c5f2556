"""Recover structured JSON values from free-text provider output.

Provider replies may wrap the payload in prose or code fences, leave trailing
commas, drop commas between adjacent literals, put raw newlines inside
strings, or stop mid-object. Recovery is a fixed, ordered chain of pure
strategies; the first one that yields a value accepted by the caller's shape
predicate wins and the rest never run. Failure is a normal outcome: ``extract``
returns None, it never raises.

Prose trimming always happens before normalization so that comma repair never
touches text outside the payload.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

from dateplanner.parsing.shapes import ShapePredicate, any_value

_logger = logging.getLogger("date-planner.extractor")

_FENCE_RE = re.compile(r"```[A-Za-z0-9_-]*")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_WHITESPACE_RE = re.compile(r"\s+")
_CLOSERS = {"{": "}", "[": "]"}

# Token classes that end a value; a new value after one of these needs a comma.
_VALUE_END = {"}", "]", "S", "V"}


def _string_end(text: str, start: int) -> int:
    """Index just past the string literal opening at ``start`` (len(text) if unterminated)."""
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            return i + 1
        i += 1
    return n


# ── text transforms ──────────────────────────────────


def strip_fences(text: str) -> str:
    return _FENCE_RE.sub("", text)


def trim_prose(text: str) -> Optional[str]:
    """Slice from the first opening bracket/brace to the last matching closer."""
    text = strip_fences(text)
    starts = [i for i in (text.find("{"), text.find("[")) if i >= 0]
    if not starts:
        return None
    start = min(starts)
    end = text.rfind(_CLOSERS[text[start]])
    if end < start:
        return text[start:].strip()
    return text[start:end + 1]


def normalize(text: str) -> str:
    """Repair separators outside string literals.

    Drops trailing commas before closers, collapses duplicate commas, and
    inserts the comma missing between adjacent values (``}{``, ``][``,
    ``} "key"``, ``"a" "b"``).
    """
    out: list[str] = []
    last = ""
    last_idx = -1
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            end = _string_end(text, i)
            if last in _VALUE_END:
                out.append(",")
            out.append(text[i:end])
            last, last_idx = "S", len(out) - 1
            i = end
            continue
        if ch in "{[":
            if last in _VALUE_END:
                out.append(",")
            out.append(ch)
            last, last_idx = ch, len(out) - 1
        elif ch in "}]":
            if last == ",":
                out[last_idx] = ""
            out.append(ch)
            last, last_idx = ch, len(out) - 1
        elif ch == ",":
            if last in {",", "{", "[", ""}:
                i += 1
                continue
            out.append(ch)
            last, last_idx = ",", len(out) - 1
        elif ch == ":":
            out.append(ch)
            last, last_idx = ":", len(out) - 1
        elif ch.isspace():
            out.append(ch)
        else:
            out.append(ch)
            last, last_idx = "V", len(out) - 1
        i += 1
    return "".join(out)


def collapse_whitespace(text: str) -> str:
    collapsed = _WHITESPACE_RE.sub(" ", text)
    return _TRAILING_COMMA_RE.sub(r"\1", collapsed)


def leading_balanced(text: str, opener: str = "{") -> Optional[str]:
    """Cut the first complete value starting at ``opener`` by depth counting.

    When the text ends before depth returns to zero (truncated output), the
    value is cut after the last complete nested element and the still-open
    delimiters are closed.
    """
    start = text.find(opener)
    if start < 0:
        return None

    stack: list[str] = []
    safe_cut: Optional[tuple[int, tuple[str, ...]]] = None
    i = start
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == '"':
            i = _string_end(text, i)
            continue
        if ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in "}]":
            if not stack or stack[-1] != ch:
                return None
            stack.pop()
            if not stack:
                return text[start:i + 1]
            safe_cut = (i + 1, tuple(stack))
        i += 1

    if safe_cut is None:
        return None
    cut, still_open = safe_cut
    return text[start:cut] + "".join(reversed(still_open))


def _loads(text: Optional[str]) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except (ValueError, RecursionError):
        return None


# ── strategies ───────────────────────────────────────


def parse_trimmed(raw: str) -> Any:
    return _loads(trim_prose(raw))


def parse_normalized(raw: str) -> Any:
    sliced = trim_prose(raw)
    return _loads(normalize(sliced)) if sliced else None


def parse_whitespace_repaired(raw: str) -> Any:
    sliced = trim_prose(raw)
    return _loads(collapse_whitespace(normalize(sliced))) if sliced else None


def parse_brace_counted(raw: str) -> Any:
    text = strip_fences(raw)
    # the outermost value starts at whichever opener comes first
    openers = sorted(_CLOSERS, key=lambda o: (text.find(o) < 0, text.find(o)))
    for opener in openers:
        cut = leading_balanced(text, opener)
        if not cut:
            continue
        repaired = normalize(cut)
        value = _loads(repaired)
        if value is None:
            value = _loads(collapse_whitespace(repaired))
        if value is not None:
            return value
    return None


Strategy = tuple[str, Callable[[str], Any]]

DEFAULT_STRATEGIES: tuple[Strategy, ...] = (
    ("trimmed", parse_trimmed),
    ("normalized", parse_normalized),
    ("whitespace_repair", parse_whitespace_repaired),
    ("brace_count", parse_brace_counted),
)


@dataclass(frozen=True)
class ExtractionResult:
    value: Any
    strategy: str


class StructuredExtractor:
    """Run the strategy chain in order; first value passing the shape wins."""

    def __init__(self, strategies: tuple[Strategy, ...] = DEFAULT_STRATEGIES):
        self._strategies = strategies

    @property
    def strategy_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self._strategies)

    def extract_with_strategy(
        self,
        raw_text: Any,
        shape: ShapePredicate = any_value,
    ) -> Optional[ExtractionResult]:
        if not isinstance(raw_text, str) or not raw_text.strip():
            return None
        for name, strategy in self._strategies:
            value = strategy(raw_text)
            if value is None:
                continue
            try:
                accepted = bool(shape(value))
            except Exception:
                accepted = False
            if accepted:
                return ExtractionResult(value=value, strategy=name)
            _logger.debug("strategy %s parsed a value that failed the shape check", name)
        return None

    def extract(self, raw_text: Any, shape: ShapePredicate = any_value) -> Any:
        result = self.extract_with_strategy(raw_text, shape)
        return result.value if result else None


default_extractor = StructuredExtractor()


def extract(raw_text: Any, shape: ShapePredicate = any_value) -> Any:
    return default_extractor.extract(raw_text, shape)


__all__ = [
    "DEFAULT_STRATEGIES",
    "ExtractionResult",
    "StructuredExtractor",
    "collapse_whitespace",
    "default_extractor",
    "extract",
    "leading_balanced",
    "normalize",
    "trim_prose",
]
