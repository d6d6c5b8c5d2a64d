"""
Frame codec: packed ARGB pixels in, class map out.

The input side writes one float32 per color channel (R, G, B order, alpha
dropped) into the model's NHWC input buffer. The output side reads the
model's 32-bit cells back into a class index per pixel.
"""

from typing import Optional

import numpy as np

from .buffers import TensorBuffer
from .catalog import DIM_PIXEL_SIZE, ModelDescriptor
from ..core.exceptions import InferenceError, InvalidArgument
from ..core.types import FrameResult

# Bit offsets of the R, G, B bytes in a packed ARGB pixel
_CHANNEL_SHIFTS = (16, 8, 0)


def pack_argb(rgb: np.ndarray) -> np.ndarray:
    """
    Pack an RGB image into opaque ARGB pixels.

    Args:
        rgb: H x W x 3 (or x 4, extra channel ignored) uint8 image, RGB order

    Returns:
        H x W uint32 array of 0xAARRGGBB values with alpha = 0xFF
    """
    rgb = np.asarray(rgb)
    if rgb.ndim != 3 or rgb.shape[2] < DIM_PIXEL_SIZE:
        raise InvalidArgument(f"Expected an H x W x 3 image, got shape {rgb.shape}")

    channels = rgb[..., :DIM_PIXEL_SIZE].astype(np.uint32)
    return (
        np.uint32(0xFF000000)
        | (channels[..., 0] << 16)
        | (channels[..., 1] << 8)
        | channels[..., 2]
    )


def encode_frame(
    image: np.ndarray,
    descriptor: ModelDescriptor,
    input_buffer: TensorBuffer,
    pixels: Optional[np.ndarray] = None,
    channel: Optional[np.ndarray] = None
) -> None:
    """
    Write a packed-pixel image into the model input buffer.

    Args:
        image: Packed ARGB pixels, H x W or flat H*W, signed or unsigned ints.
               Must already be scaled to the descriptor's input size.
        descriptor: Model the buffer belongs to
        input_buffer: Float32 buffer of descriptor.input_size values
        pixels: Optional uint32 scratch of H*W values
        channel: Optional uint32 scratch of H*W values
    """
    height, width = descriptor.input_height, descriptor.input_width
    pixel_count = height * width

    image = np.asarray(image)
    if image.shape not in ((height, width), (pixel_count,)):
        raise InferenceError(
            f"Image shape {image.shape} does not match model '{descriptor.path}' "
            f"input {height}x{width}"
        )
    if input_buffer.capacity != descriptor.input_size:
        raise InferenceError(
            f"Input buffer holds {input_buffer.capacity} values, "
            f"model '{descriptor.path}' needs {descriptor.input_size}"
        )

    if pixels is None:
        pixels = np.empty(pixel_count, dtype=np.uint32)
    if channel is None:
        channel = np.empty(pixel_count, dtype=np.uint32)

    np.copyto(pixels, image.reshape(-1), casting="unsafe")

    input_buffer.rewind()
    values = input_buffer.claim(pixel_count * DIM_PIXEL_SIZE).reshape(pixel_count, DIM_PIXEL_SIZE)
    for column, shift in enumerate(_CHANNEL_SHIFTS):
        np.right_shift(pixels, shift, out=channel)
        np.bitwise_and(channel, 0xFF, out=channel)
        values[:, column] = channel


def decode_frame(
    output_buffer: TensorBuffer,
    descriptor: ModelDescriptor,
    out: Optional[np.ndarray] = None
) -> FrameResult:
    """
    Read the model output buffer into a class map.

    With one output channel each cell is taken as the class index. With
    several channels the cells are per-class scores and the class is the
    argmax over the channel axis.

    Args:
        output_buffer: Buffer the model wrote into
        descriptor: Model that produced the output
        out: Optional intp array (output H x W) to decode into

    Returns:
        FrameResult whose class_map is `out` when given
    """
    height, width = descriptor.output_height, descriptor.output_width
    channels = descriptor.output_channels

    if output_buffer.capacity != descriptor.output_size:
        raise InferenceError(
            f"Output buffer holds {output_buffer.capacity} values, "
            f"model '{descriptor.path}' produces {descriptor.output_size}"
        )
    if out is None:
        out = np.empty((height, width), dtype=np.intp)

    output_buffer.rewind()
    cells = output_buffer.read(height * width * channels)
    if channels == 1:
        np.copyto(out, cells.reshape(height, width), casting="unsafe")
    else:
        np.argmax(cells.reshape(height, width, channels), axis=-1, out=out)

    num_classes = descriptor.num_classes
    low, high = int(out.min()), int(out.max())
    if low < 0 or high >= num_classes:
        raise InferenceError(
            f"Model '{descriptor.path}' produced class indices in [{low}, {high}], "
            f"palette has {num_classes} classes"
        )

    return FrameResult(class_map=out, palette=descriptor.palette, model=descriptor.path)
