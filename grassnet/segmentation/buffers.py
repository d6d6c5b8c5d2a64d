"""
Reusable tensor buffers for the segmentation hot path.

A TensorBuffer is a fixed-size, native-byte-order array with a write
position, so a frame can be written sequentially and the buffer rewound
for the next frame without reallocating.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .catalog import ModelDescriptor
from ..core.exceptions import InferenceError
from ..core.logging_config import get_logger

logger = get_logger("segmentation.buffers")


class TensorBuffer:
    """Fixed-size flat tensor with a sequential read/write position."""

    def __init__(self, shape: Tuple[int, ...], dtype):
        self.shape = tuple(int(d) for d in shape)
        self._data = np.zeros(int(np.prod(self.shape)), dtype=np.dtype(dtype).newbyteorder("="))
        self._position = 0

    @property
    def dtype(self) -> np.dtype:
        return self._data.dtype

    @property
    def capacity(self) -> int:
        """Number of elements the buffer holds."""
        return int(self._data.size)

    @property
    def nbytes(self) -> int:
        return int(self._data.nbytes)

    @property
    def position(self) -> int:
        return self._position

    @property
    def remaining(self) -> int:
        return self.capacity - self._position

    def rewind(self) -> None:
        """Move the head back to the start; contents are kept."""
        self._position = 0

    def claim(self, count: int) -> np.ndarray:
        """
        Reserve the next `count` elements for writing.

        Returns a view into the buffer and advances the position, so
        consecutive claims are contiguous.
        """
        if count > self.remaining:
            raise InferenceError(
                f"Buffer overflow: {count} values requested, {self.remaining} remaining"
            )
        view = self._data[self._position:self._position + count]
        self._position += count
        return view

    def read(self, count: int) -> np.ndarray:
        """Read-only alias of claim() for consuming output values."""
        view = self.claim(count)
        view.flags.writeable = False
        return view

    @property
    def array(self) -> np.ndarray:
        """Whole buffer viewed with its tensor shape (no copy)."""
        return self._data.reshape(self.shape)

    def __repr__(self) -> str:
        return f"TensorBuffer(shape={self.shape}, dtype={self.dtype}, position={self._position})"


@dataclass
class TensorBuffers:
    """
    Buffers and scratch arrays for one tensor geometry.

    Attributes:
        input: Float32 NHWC input tensor
        output: 32-bit output tensor (int32 class indices or float32 scores)
        pixels: Packed ARGB scratch, one uint32 per input pixel
        channel: Channel extraction scratch, one uint32 per input pixel
        class_map: Decoded class indices (output H x W)
    """
    input: TensorBuffer
    output: TensorBuffer
    pixels: np.ndarray
    channel: np.ndarray
    class_map: np.ndarray


def _geometry(descriptor: ModelDescriptor) -> Tuple:
    return (descriptor.input_shape, descriptor.output_shape)


def output_dtype(descriptor: ModelDescriptor) -> np.dtype:
    """Single-channel models emit class indices; multi-channel models emit scores."""
    return np.dtype(np.int32) if descriptor.output_channels == 1 else np.dtype(np.float32)


class BufferPool:
    """
    Owns the input/output buffers for the active model.

    Buffers are reallocated only when the requested tensor geometry
    differs from the one currently held.
    """

    def __init__(self):
        self._buffers: Optional[TensorBuffers] = None
        self._geometry: Optional[Tuple] = None
        self._dtype: Optional[np.dtype] = None
        self.allocations = 0

    def allocate_for(self, descriptor: ModelDescriptor) -> TensorBuffers:
        """
        Return buffers sized for the descriptor.

        Args:
            descriptor: Model whose tensor shapes the buffers must match

        Returns:
            TensorBuffers, the same object as before if the geometry is unchanged
        """
        geometry = _geometry(descriptor)
        dtype = output_dtype(descriptor)
        if self._buffers is not None and geometry == self._geometry and dtype == self._dtype:
            return self._buffers

        pixel_count = descriptor.input_width * descriptor.input_height
        self._buffers = TensorBuffers(
            input=TensorBuffer(descriptor.input_shape, np.float32),
            output=TensorBuffer(descriptor.output_shape, dtype),
            pixels=np.zeros(pixel_count, dtype=np.uint32),
            channel=np.zeros(pixel_count, dtype=np.uint32),
            class_map=np.zeros((descriptor.output_height, descriptor.output_width), dtype=np.intp),
        )
        self._geometry = geometry
        self._dtype = dtype
        self.allocations += 1

        logger.debug(
            f"Allocated buffers for '{descriptor.path}': "
            f"input {self._buffers.input.nbytes} bytes, output {self._buffers.output.nbytes} bytes"
        )
        return self._buffers

    def clear(self) -> None:
        """Drop the held buffers."""
        self._buffers = None
        self._geometry = None
        self._dtype = None

    @property
    def buffers(self) -> Optional[TensorBuffers]:
        return self._buffers
