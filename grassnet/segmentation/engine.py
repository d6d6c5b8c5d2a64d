"""
Inference engine: model handle lifecycle on top of a pluggable backend.

A handle moves UNLOADED -> LOADED -> UNLOADED. Reconfiguring a loaded
handle drops its session (UNLOADED) and opens a new one from the same
mapped model bytes.
"""

from dataclasses import dataclass
from typing import Optional

from .assets import ModelBlob
from .base import BackendSession, InferenceBackend, TensorShape
from .buffers import TensorBuffer
from ..core.exceptions import InferenceError, ModelLoadError
from ..core.logging_config import get_logger
from ..core.types import EngineOptions, EngineState

logger = get_logger("segmentation.engine")


@dataclass
class ModelHandle:
    """
    A mapped model plus the session created from it.

    Attributes:
        model: Read-only mapped model bytes
        options: Options the current session was created with
        session: Live backend session (None when unloaded)
        state: LOADED iff session is live
    """
    model: ModelBlob
    options: EngineOptions
    session: Optional[BackendSession] = None
    state: EngineState = EngineState.UNLOADED

    @property
    def is_loaded(self) -> bool:
        return self.state is EngineState.LOADED and self.session is not None


def _check_shape(kind: str, expected: Optional[TensorShape], buffer: TensorBuffer) -> None:
    """
    Compare a model's declared tensor shape with a buffer, dimension by dimension.

    Dynamic (None) dimensions match anything. A single-channel buffer also
    accepts a model shape without the trailing channel axis, e.g. (1, H, W)
    for (1, H, W, 1). Any other difference, including a channels-first
    layout with the same element count, is an InferenceError.
    """
    if expected is None:
        return
    expected = tuple(expected)
    actual = buffer.shape
    if len(expected) == len(actual) - 1 and actual[-1] == 1:
        actual = actual[:-1]

    if len(expected) != len(actual) or any(
        e is not None and e != a for e, a in zip(expected, actual)
    ):
        raise InferenceError(
            f"Model {kind} shape {expected} does not match {kind} buffer shape {buffer.shape}"
        )


class InferenceEngine:
    """
    Loads, runs and releases models through an inference backend.

    The engine never releases a handle on its own: callers release the
    previous handle before loading the next one.
    """

    def __init__(self, backend: InferenceBackend):
        self._backend = backend

    @property
    def backend(self) -> InferenceBackend:
        return self._backend

    def load(self, model: ModelBlob, options: EngineOptions) -> ModelHandle:
        """
        Create a session for mapped model bytes.

        Args:
            model: Mapped model file
            options: Execution options (threads, providers)

        Returns:
            A LOADED handle owning `model`

        Raises:
            ModelLoadError: the backend rejected the model
        """
        handle = ModelHandle(model=model, options=options)
        self._open_session(handle)
        logger.info(f"Loaded model {model.path.name} with {self._backend.name}")
        return handle

    def run(self, handle: Optional[ModelHandle], input_buffer: TensorBuffer, output_buffer: TensorBuffer) -> None:
        """
        Run inference synchronously, writing into output_buffer.

        Raises:
            InferenceError: no loaded handle, input not fully written,
                            buffer sizes disagree with the model, or the
                            backend failed
        """
        if handle is None or not handle.is_loaded:
            raise InferenceError("No model loaded; load a model before running inference")
        if input_buffer.remaining:
            raise InferenceError(
                f"Input buffer only holds {input_buffer.position} of {input_buffer.capacity} values"
            )

        session = handle.session
        _check_shape("input", session.input_shape, input_buffer)
        _check_shape("output", session.output_shape, output_buffer)

        try:
            session.infer(input_buffer.array, output_buffer.array)
        except Exception as e:
            logger.error(f"Inference failed: {e}")
            raise InferenceError(f"Inference failed: {e}") from e

    def release(self, handle: Optional[ModelHandle]) -> None:
        """Drop the session and unmap the model. No-op for None or released handles."""
        if handle is None:
            return
        was_loaded = handle.is_loaded
        self._close_session(handle)
        handle.model.close()
        if was_loaded:
            logger.info(f"Released model {handle.model.path.name}")

    def reconfigure(self, handle: Optional[ModelHandle], options: EngineOptions) -> ModelHandle:
        """
        Recreate the session of a handle with new options.

        The mapped model is kept. If the new session cannot be created the
        handle is left UNLOADED and ModelLoadError is raised.
        """
        if handle is None or handle.model.closed:
            raise InferenceError("No model to reconfigure")

        self._close_session(handle)
        handle.options = options
        self._open_session(handle)
        logger.info(f"Reconfigured model {handle.model.path.name}: {options}")
        return handle

    def _open_session(self, handle: ModelHandle) -> None:
        try:
            session = self._backend.create_session(handle.model, handle.options)
        except Exception as e:
            logger.error(f"Failed to load model {handle.model.path}: {e}")
            raise ModelLoadError(
                f"{self._backend.name} rejected model {handle.model.path}: {e}",
                path=str(handle.model.path)
            ) from e
        handle.session = session
        handle.state = EngineState.LOADED

    def _close_session(self, handle: ModelHandle) -> None:
        if handle.session is not None:
            handle.session.cleanup()
            handle.session = None
        handle.state = EngineState.UNLOADED
