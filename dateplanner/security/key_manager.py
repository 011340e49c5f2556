"""Credential access for the generation provider and the two event catalogs.

Keys are read from the environment once and kept in memory. Anything that
might end up in a log line or an exception message is passed through
``scrub_text`` first, which replaces every loaded key value by its name.
Call sites never read these variables with ``os.getenv`` themselves.
"""

from __future__ import annotations

import os
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from dateplanner.security.redact import redact_sensitive
from dateplanner.shared.exceptions import KeyMissingError

GENERATION_KEY_NAMES = ("GROQ_API_KEY", "LLM_API_KEY")
TICKETMASTER_KEY = "TICKETMASTER_CONSUMER_KEY"
TICKETMASTER_SECRET = "TICKETMASTER_CONSUMER_SECRET"
EVENTBRITE_KEY = "EVENTBRITE_API_KEY"

MANAGED_KEY_NAMES = (*GENERATION_KEY_NAMES, TICKETMASTER_KEY, TICKETMASTER_SECRET, EVENTBRITE_KEY)


@dataclass(frozen=True)
class LoadedKey:
    name: str
    value: str
    loaded_at: float = field(default_factory=time.time)


def _read_env(name: str) -> str:
    return os.getenv(name, "").strip()


class KeyManager:
    def __init__(self) -> None:
        self._loaded: dict[str, LoadedKey] = {}
        self._reads: Counter[str] = Counter()

    def get(self, name: str, *, required: bool = False) -> Optional[str]:
        """Value of ``name``; loads it on first use. ``required`` raises when unset."""
        loaded = self._loaded.get(name)
        if loaded is None:
            value = _read_env(name)
            if not value:
                if required:
                    raise KeyMissingError(name)
                return None
            loaded = self._loaded[name] = LoadedKey(name, value)
        self._reads[name] += 1
        return loaded.value

    def get_generation_key(self) -> Optional[str]:
        """GROQ_API_KEY wins over the generic LLM_API_KEY."""
        return next((v for v in map(self.get, GENERATION_KEY_NAMES) if v), None)

    def get_ticketmaster_key(self) -> Optional[str]:
        return self.get(TICKETMASTER_KEY)

    def get_eventbrite_key(self) -> Optional[str]:
        return self.get(EVENTBRITE_KEY)

    def is_configured(self, name: str) -> bool:
        """Presence check that does not count as a read."""
        return name in self._loaded or bool(_read_env(name))

    def has_generation_key(self) -> bool:
        return any(self.is_configured(name) for name in GENERATION_KEY_NAMES)

    def read_counts(self) -> dict[str, int]:
        return dict(self._reads)

    def reload(self, name: str) -> None:
        """Pick up a rotated (or removed) key from the environment."""
        value = _read_env(name)
        if value:
            self._loaded[name] = LoadedKey(name, value)
        else:
            self._loaded.pop(name, None)

    def scrub_text(self, text: str) -> str:
        scrubbed = "" if text is None else str(text)
        for loaded in self._loaded.values():
            scrubbed = scrubbed.replace(loaded.value, f"[{loaded.name}:***REDACTED***]")
        return redact_sensitive(scrubbed)


_manager: Optional[KeyManager] = None


def get_key_manager() -> KeyManager:
    global _manager
    if _manager is None:
        _manager = KeyManager()
    return _manager


__all__ = ["KeyManager", "LoadedKey", "MANAGED_KEY_NAMES", "get_key_manager"]
