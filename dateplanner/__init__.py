"""Date planning core: rate-gated generation, structured extraction, event fusion."""

__version__ = "1.0.0"
