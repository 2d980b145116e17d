"""Bed, probe grid and marker configuration loading and validation."""

from sparse_levelling.configs.loader import (
    BedConfig,
    ConfigError,
    FilterConfig,
    InsetConfig,
    LevellingConfig,
    MarkerConfig,
    ProbeGridConfig,
    load_config,
)

__all__ = [
    "BedConfig",
    "ConfigError",
    "FilterConfig",
    "InsetConfig",
    "LevellingConfig",
    "MarkerConfig",
    "ProbeGridConfig",
    "load_config",
]
