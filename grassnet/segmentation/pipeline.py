"""
Segmentation pipeline: model selection and the per-frame hot path.

Composes the catalog, asset store, buffer pool, codec and inference
engine. The pipeline exclusively owns the model handle and the buffers;
it is synchronous and not safe for concurrent use.
"""

import numbers
from contextlib import ExitStack
from dataclasses import replace
from typing import Optional, TYPE_CHECKING

import numpy as np

from .assets import ModelAssetStore
from .base import InferenceBackend
from .buffers import BufferPool, TensorBuffers
from .catalog import ModelCatalog, ModelDescriptor
from .codec import decode_frame, encode_frame
from .engine import InferenceEngine, ModelHandle
from .mock_backend import MockBackend
from .onnx_backend import ONNXBackend
from ..core.exceptions import CatalogError, InferenceError, InvalidArgument, ModelLoadError
from ..core.logging_config import get_logger
from ..core.types import EngineOptions, EngineState, FrameResult

if TYPE_CHECKING:
    from ..config import PipelineConfig

logger = get_logger("segmentation.pipeline")

BACKENDS = {
    "onnx": ONNXBackend,
    "mock": MockBackend,
}


def create_backend(name: str) -> InferenceBackend:
    """Instantiate a backend by config name ("onnx" or "mock")."""
    try:
        backend_cls = BACKENDS[name.lower()]
    except KeyError:
        raise InvalidArgument(
            f"Unknown inference backend '{name}', expected one of {sorted(BACKENDS)}"
        ) from None
    return backend_cls()


class SegmentationPipeline:
    """
    Segments frames with the currently selected catalog model.

    A freshly constructed pipeline is always LOADED; construction fails
    instead of leaving a half-initialized pipeline behind.
    """

    def __init__(
        self,
        catalog: ModelCatalog,
        assets: ModelAssetStore,
        backend: InferenceBackend,
        options: Optional[EngineOptions] = None,
        initial_index: int = 0
    ):
        """
        Initialize the pipeline and load the initial model.

        Args:
            catalog: Models available for selection
            assets: Where model files are mapped from
            backend: Inference runtime
            options: Execution options (defaults to runtime defaults)
            initial_index: Catalog index loaded at construction

        Raises:
            CatalogError: the catalog is empty
            InvalidIndex: initial_index is out of range
            ModelLoadError: the initial model could not be loaded
        """
        if catalog.count() == 0:
            raise CatalogError("Model catalog is empty")
        catalog.descriptor(initial_index)

        self._catalog = catalog
        self._assets = assets
        self._engine = InferenceEngine(backend)
        self._pool = BufferPool()
        self._options = options or EngineOptions()

        self._index = initial_index
        self._handle: Optional[ModelHandle] = None
        self._buffers: Optional[TensorBuffers] = None

        self._load(initial_index)
        logger.info(f"Created segmentation pipeline with model '{self.current_model().path}'")

    @classmethod
    def from_config(
        cls,
        config: "PipelineConfig",
        backend: Optional[InferenceBackend] = None
    ) -> "SegmentationPipeline":
        """Build a pipeline from loaded configuration."""
        runtime = config.runtime
        return cls(
            catalog=ModelCatalog(config.models),
            assets=ModelAssetStore(config.assets.model_dir, config.assets.extension),
            backend=backend or create_backend(runtime.inference_backend),
            options=EngineOptions(
                num_threads=runtime.num_threads,
                providers=tuple(runtime.providers)
            ),
            initial_index=runtime.initial_model,
        )

    # -- model selection -------------------------------------------------

    def select_model(self, index: int) -> ModelDescriptor:
        """Load the model at a catalog index; reselecting the loaded model is a no-op."""
        descriptor = self._catalog.descriptor(index)
        if index == self._index and self.is_loaded:
            logger.debug(f"Model '{descriptor.path}' already loaded")
            return descriptor
        self._swap_to(index)
        return descriptor

    def change_model(self) -> ModelDescriptor:
        """Advance to the next catalog model, wrapping around."""
        next_index = (self._index + 1) % self._catalog.count()
        self._swap_to(next_index)
        return self.current_model()

    def set_thread_count(self, num_threads: int) -> None:
        """
        Set the runtime thread count and recreate the session.

        Buffers are untouched. When no model is loaded the value is kept
        for the next load.

        Raises:
            InvalidArgument: num_threads is not a positive integer
            ModelLoadError: the session could not be recreated (pipeline unloads)
        """
        if isinstance(num_threads, bool) or not isinstance(num_threads, numbers.Integral) or num_threads < 1:
            raise InvalidArgument(f"Thread count must be a positive integer, got {num_threads!r}")

        options = replace(self._options, num_threads=int(num_threads))
        if not self.is_loaded:
            self._options = options
            logger.info(f"Thread count set to {num_threads}; applies to the next model load")
            return

        try:
            self._engine.reconfigure(self._handle, options)
        except ModelLoadError:
            self._unload()
            raise
        self._options = options

    # -- hot path --------------------------------------------------------

    def segment_frame(self, image: np.ndarray) -> FrameResult:
        """
        Segment one frame.

        Args:
            image: Packed ARGB pixels sized to the current model input

        Returns:
            FrameResult backed by the pipeline's reusable class map;
            it is overwritten by the next call

        Raises:
            InferenceError: no model is loaded, the image has the wrong
                            size, or inference failed
        """
        handle = self._handle
        if handle is None or not handle.is_loaded:
            raise InferenceError("Segmentation pipeline has no model loaded")

        descriptor = self._catalog.descriptor(self._index)
        buffers = self._buffers

        encode_frame(image, descriptor, buffers.input, buffers.pixels, buffers.channel)
        buffers.output.rewind()
        self._engine.run(handle, buffers.input, buffers.output)
        return decode_frame(buffers.output, descriptor, out=buffers.class_map)

    # -- lifecycle -------------------------------------------------------

    def close(self) -> None:
        """Release the model and buffers. Safe to call more than once."""
        was_loaded = self.is_loaded
        self._unload()
        if was_loaded:
            logger.info("Segmentation pipeline closed")

    def __enter__(self) -> "SegmentationPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- state -----------------------------------------------------------

    def current_model(self) -> ModelDescriptor:
        return self._catalog.descriptor(self._index)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def catalog(self) -> ModelCatalog:
        return self._catalog

    @property
    def state(self) -> EngineState:
        return EngineState.LOADED if self.is_loaded else EngineState.UNLOADED

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None and self._handle.is_loaded

    @property
    def options(self) -> EngineOptions:
        return self._options

    @property
    def backend_name(self) -> str:
        return self._engine.backend.name

    @property
    def buffer_allocations(self) -> int:
        """How many times buffers have been (re)allocated."""
        return self._pool.allocations

    def __repr__(self) -> str:
        return (
            f"SegmentationPipeline(model='{self.current_model().path}', "
            f"state={self.state.value}, backend={self.backend_name})"
        )

    # -- internals -------------------------------------------------------

    def _load(self, index: int) -> None:
        descriptor = self._catalog.descriptor(index)
        self._index = index

        with ExitStack() as stack:
            blob = self._assets.open(descriptor)
            stack.callback(blob.close)
            handle = self._engine.load(blob, self._options)
            stack.callback(self._engine.release, handle)
            buffers = self._pool.allocate_for(descriptor)
            stack.pop_all()

        self._handle = handle
        self._buffers = buffers

    def _release_model(self) -> None:
        self._engine.release(self._handle)
        self._handle = None

    def _unload(self) -> None:
        self._release_model()
        self._pool.clear()
        self._buffers = None

    def _swap_to(self, index: int) -> None:
        previous = self.current_model().path
        self._release_model()
        try:
            self._load(index)
        except Exception:
            self._unload()
            logger.error(
                f"Failed to switch from '{previous}' to '{self.current_model().path}'; "
                f"pipeline is unloaded"
            )
            raise
        logger.info(f"Switched model '{previous}' -> '{self.current_model().path}'")
