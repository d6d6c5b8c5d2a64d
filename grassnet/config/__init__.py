"""Configuration module for GrassNet."""

from .config_loader import (
    ConfigLoader,
    PipelineConfig,
    AssetConfig,
    RuntimeConfig,
    default_models,
)

__all__ = [
    "ConfigLoader",
    "PipelineConfig",
    "AssetConfig",
    "RuntimeConfig",
    "default_models",
]
