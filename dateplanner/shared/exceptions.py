"""Shared (non-domain) exceptions."""

from __future__ import annotations


class ToolError(Exception):
    """Catalog or tool invocation failed."""

    def __init__(self, tool: str, message: str):
        self.tool = tool
        super().__init__(f"[{tool}] {message}")


class ExternalServiceError(Exception):
    """External service call failed."""


class ProviderUnavailable(ExternalServiceError):
    """Generation provider could not be reached or returned an error."""


class ProviderRateLimited(ExternalServiceError):
    """Generation provider answered HTTP 429."""

    def __init__(self, message: str = "rate limited", retry_after: float | None = None):
        self.retry_after = retry_after
        super().__init__(message)


class KeyMissingError(Exception):
    """Required key is missing."""

    def __init__(self, name: str):
        self.key_name = name
        super().__init__(f"Missing required API key: {name} (configure it in .env)")
