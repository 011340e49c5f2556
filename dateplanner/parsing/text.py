"""Cleanup for provider prose that may be read aloud."""

from __future__ import annotations

import re

_UNSPEAKABLE_RE = re.compile(r"[^\w\s.,!?;:'\"$&/()-]")
_SPACES_RE = re.compile(r"\s+")


def clean_spoken_text(text: str) -> str:
    """Drop emoji and symbols that break text-to-speech, collapse whitespace."""
    if not text:
        return ""
    return _SPACES_RE.sub(" ", _UNSPEAKABLE_RE.sub("", text)).strip()


__all__ = ["clean_spoken_text"]
