"""Redaction of credentials in log lines and error strings."""

from __future__ import annotations

import re

_REDACTED = "***REDACTED***"

# key=..., apikey=..., client_secret=..., token=...
_QUERY_SECRET_RE = re.compile(
    r"(?i)(?P<prefix>\b(?:api[_-]?key|apikey|key|token|client_secret|client_id|secret|password)\s*=\s*)"
    r"(?P<value>[^&\s\"']+)"
)
_JSON_SECRET_RE = re.compile(
    r"(?i)(?P<prefix>[\"'](?:api[_-]?key|apikey|token|access_token|client_secret|secret|password)[\"']\s*:\s*[\"'])"
    r"(?P<value>[^\"']+)"
)
_BEARER_RE = re.compile(r"(?i)(?P<prefix>\bbearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)")
# Groq issues gsk_..., OpenAI-compatible gateways sk-...
_PROVIDER_KEY_RE = re.compile(r"\b(?:gsk_|sk-)[A-Za-z0-9_-]{8,}\b")
_DSN_CREDENTIAL_RE = re.compile(
    r"(?i)(?P<prefix>\b(?:mongodb(?:\+srv)?|postgres(?:ql)?|redis)://)(?P<creds>[^@/\s]+)@"
)


def _mask(pattern: re.Pattern[str], text: str) -> str:
    return pattern.sub(lambda m: f"{m.group('prefix')}{_REDACTED}", text)


def redact_sensitive(text: str) -> str:
    """Redact common secret patterns while keeping the surrounding message readable."""
    if not text:
        return text

    redacted = str(text)
    for pattern in (_QUERY_SECRET_RE, _JSON_SECRET_RE, _BEARER_RE):
        redacted = _mask(pattern, redacted)
    redacted = _PROVIDER_KEY_RE.sub(_REDACTED, redacted)
    return _DSN_CREDENTIAL_RE.sub(rf"\g<prefix>{_REDACTED}@", redacted)


__all__ = ["redact_sensitive"]
