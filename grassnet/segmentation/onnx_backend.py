"""
ONNX Runtime inference backend for cross-platform support.
"""

import numpy as np
import onnxruntime as ort
from typing import Optional

from .assets import ModelBlob
from .base import BackendSession, InferenceBackend, TensorShape
from ..core.types import EngineOptions
from ..core.logging_config import get_logger

logger = get_logger("segmentation.onnx")


def _static_shape(shape) -> TensorShape:
    # Symbolic dimensions come back as strings or None
    return tuple(d if isinstance(d, int) else None for d in shape)


def default_providers() -> list[str]:
    """GPU first when available, CPU always."""
    providers = []
    if 'CUDAExecutionProvider' in ort.get_available_providers():
        providers.append('CUDAExecutionProvider')
    providers.append('CPUExecutionProvider')
    return providers


class ONNXSession(BackendSession):
    """ONNX Runtime session bound to one model."""

    def __init__(self, session: "ort.InferenceSession"):
        self._session = session
        model_input = session.get_inputs()[0]
        model_output = session.get_outputs()[0]
        self._input_name = model_input.name
        self._output_name = model_output.name
        self._input_shape = _static_shape(model_input.shape)
        self._output_shape = _static_shape(model_output.shape)

    def infer(self, input_blob: np.ndarray, output_blob: np.ndarray) -> None:
        if self._session is None:
            raise RuntimeError("ONNX session not initialized")

        output = self._session.run([self._output_name], {self._input_name: input_blob})[0]
        # Dynamic dims are only known now; only a dropped trailing channel may be reshaped
        if output.shape != output_blob.shape and output.shape + (1,) != output_blob.shape:
            raise ValueError(
                f"Model output shape {output.shape} does not match buffer shape {output_blob.shape}"
            )
        # Argmax models emit int64; the output buffer holds 32-bit cells
        np.copyto(output_blob, output.reshape(output_blob.shape), casting="unsafe")

    def cleanup(self) -> None:
        self._session = None

    @property
    def is_initialized(self) -> bool:
        return self._session is not None

    @property
    def providers(self) -> list[str]:
        return [] if self._session is None else self._session.get_providers()

    @property
    def input_shape(self) -> Optional[TensorShape]:
        return self._input_shape

    @property
    def output_shape(self) -> Optional[TensorShape]:
        return self._output_shape


class ONNXBackend(InferenceBackend):
    """ONNX Runtime backend; models are created from the mapped file bytes."""

    def create_session(self, model: ModelBlob, options: EngineOptions) -> ONNXSession:
        session_options = ort.SessionOptions()
        if options.num_threads:
            session_options.intra_op_num_threads = options.num_threads

        providers = list(options.providers) or default_providers()

        logger.info(f"Loading ONNX model: {model.path}")
        # InferenceSession only accepts a path or bytes, so the map is copied once here
        session = ort.InferenceSession(
            model.read(),
            sess_options=session_options,
            providers=providers
        )

        wrapped = ONNXSession(session)
        logger.info(f"ONNX model loaded with providers: {wrapped.providers}")
        return wrapped
