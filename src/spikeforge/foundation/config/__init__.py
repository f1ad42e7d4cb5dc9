"""Configuration management for Spikeforge."""

from spikeforge.foundation.config.loader import (
    SpikeforgeConfig,
    get_config,
    load_config,
    reset_config,
)

__all__ = [
    "SpikeforgeConfig",
    "get_config",
    "load_config",
    "reset_config",
]
