"""
Abstract base classes for inference backends.
"""

import numpy as np
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from .assets import ModelBlob
from ..core.types import EngineOptions

# Tensor shape as reported by a runtime; None marks a dynamic dimension
TensorShape = Tuple[Optional[int], ...]


class BackendSession(ABC):
    """One live interpreter bound to a loaded model."""

    @abstractmethod
    def infer(self, input_blob: np.ndarray, output_blob: np.ndarray) -> None:
        """Run inference on the input tensor, writing into output_blob in place."""
        pass

    @abstractmethod
    def cleanup(self) -> None:
        """Release resources."""
        pass

    @property
    @abstractmethod
    def is_initialized(self) -> bool:
        """Check if the session can run."""
        pass

    @property
    def input_shape(self) -> Optional[TensorShape]:
        """Input tensor shape the model expects, if known."""
        return None

    @property
    def output_shape(self) -> Optional[TensorShape]:
        """Output tensor shape the model produces, if known."""
        return None


class InferenceBackend(ABC):
    """Factory for sessions of one inference runtime."""

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def create_session(self, model: ModelBlob, options: EngineOptions) -> BackendSession:
        """Create a session from mapped model bytes. Raises on malformed models."""
        pass
