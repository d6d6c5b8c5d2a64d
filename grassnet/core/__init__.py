"""Core types, errors and logging for GrassNet."""

from .types import EngineState, EngineOptions, FrameResult
from .logging_config import configure_logging, get_logger, LogLevel
from .exceptions import (
    GrassNetException,
    CatalogError,
    UnknownDataset,
    InvalidIndex,
    ModelLoadError,
    InferenceError,
    InvalidArgument,
)

__all__ = [
    "EngineState",
    "EngineOptions",
    "FrameResult",
    "configure_logging",
    "get_logger",
    "LogLevel",
    "GrassNetException",
    "CatalogError",
    "UnknownDataset",
    "InvalidIndex",
    "ModelLoadError",
    "InferenceError",
    "InvalidArgument",
]
