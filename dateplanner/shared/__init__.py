"""Shared non-domain helpers."""

from dateplanner.shared.exceptions import (
    ExternalServiceError,
    KeyMissingError,
    ProviderRateLimited,
    ProviderUnavailable,
    ToolError,
)

__all__ = [
    "ExternalServiceError",
    "KeyMissingError",
    "ProviderRateLimited",
    "ProviderUnavailable",
    "ToolError",
]
