"""Shared type definitions."""

from spikeforge.foundation.types.config import (
    DEFAULT_ALIASES,
    CacheConfig,
    CatalogConfig,
    DiscoveryConfig,
    SelectionConfig,
)

__all__ = [
    "DEFAULT_ALIASES",
    "CacheConfig",
    "CatalogConfig",
    "DiscoveryConfig",
    "SelectionConfig",
]
