"""Adapters for external event catalogs."""
