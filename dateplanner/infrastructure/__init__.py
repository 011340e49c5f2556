"""Infrastructure services and cross-cutting utilities."""

from dateplanner.infrastructure.cache import TTLCache, make_cache_key
from dateplanner.infrastructure.llm_factory import get_provider, reset_provider
from dateplanner.infrastructure.rate_gate import RateGate

__all__ = [
    "RateGate",
    "TTLCache",
    "get_provider",
    "make_cache_key",
    "reset_provider",
]
