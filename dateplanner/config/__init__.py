"""Runtime configuration helpers."""

from dateplanner.config.settings import (
    PipelineSettings,
    ProviderSnapshot,
    docs_enabled,
    load_settings,
    resolve_provider_snapshot,
)

__all__ = [
    "PipelineSettings",
    "ProviderSnapshot",
    "docs_enabled",
    "load_settings",
    "resolve_provider_snapshot",
]
