"""
Mock inference backend for testing without actual models.
"""

import numpy as np
from typing import Callable, Optional

from .assets import ModelBlob
from .base import BackendSession, InferenceBackend, TensorShape
from ..core.types import EngineOptions
from ..core.logging_config import get_logger

logger = get_logger("segmentation.mock")

InferFn = Callable[[np.ndarray, np.ndarray], None]


def color_dominance(input_blob: np.ndarray, output_blob: np.ndarray) -> None:
    """
    Fake segmentation by dominant color.

    Green-dominant pixels become class 1 (grass), red-dominant pixels
    class 2, everything else class 0. Multi-channel outputs receive a
    one-hot score per class.
    """
    red = input_blob[..., 0]
    green = input_blob[..., 1]
    blue = input_blob[..., 2]

    classes = np.zeros(red.shape, dtype=np.int32)
    classes[(green > red) & (green > blue)] = 1
    classes[(red > green) & (red > blue)] = 2

    channels = output_blob.shape[-1]
    if channels == 1:
        output_blob[..., 0] = classes
    else:
        output_blob[...] = 0
        for cls in range(min(channels, 3)):
            output_blob[..., cls][classes == cls] = 1


class MockSession(BackendSession):
    """Session that runs a Python callable instead of a model."""

    def __init__(
        self,
        infer_fn: InferFn,
        options: EngineOptions,
        input_shape: Optional[TensorShape] = None,
        output_shape: Optional[TensorShape] = None
    ):
        self._infer_fn = infer_fn
        self.options = options
        self._input_shape = input_shape
        self._output_shape = output_shape
        self._initialized = True
        self.run_count = 0

    def infer(self, input_blob: np.ndarray, output_blob: np.ndarray) -> None:
        if not self._initialized:
            raise RuntimeError("Mock session not initialized")
        self._infer_fn(input_blob, output_blob)
        self.run_count += 1

    def cleanup(self) -> None:
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def input_shape(self) -> Optional[TensorShape]:
        return self._input_shape

    @property
    def output_shape(self) -> Optional[TensorShape]:
        return self._output_shape


class MockBackend(InferenceBackend):
    """
    Backend that accepts any non-empty model file and fakes inference.

    Args:
        infer_fn: Callable(input_blob, output_blob) writing the output in place
        input_shape: Shape reported to the engine for size checks
        output_shape: Shape reported to the engine for size checks
    """

    def __init__(
        self,
        infer_fn: Optional[InferFn] = None,
        input_shape: Optional[TensorShape] = None,
        output_shape: Optional[TensorShape] = None
    ):
        self.infer_fn = infer_fn or color_dominance
        self.input_shape = input_shape
        self.output_shape = output_shape
        self.sessions: list[MockSession] = []

    def create_session(self, model: ModelBlob, options: EngineOptions) -> MockSession:
        if len(model) == 0:
            raise ValueError(f"Empty model: {model.path}")

        session = MockSession(self.infer_fn, options, self.input_shape, self.output_shape)
        self.sessions.append(session)
        logger.info("Mock backend session created (no actual inference)")
        return session
