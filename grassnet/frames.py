"""
OpenCV adapters between image files and the pipeline's pixel formats.

The pipeline itself never resizes or renders; these helpers do the
acquisition and overlay work for the command line tool.
"""

from pathlib import Path
from typing import Union

import cv2
import numpy as np

from .core.exceptions import InvalidArgument
from .segmentation.codec import pack_argb


def load_frame(path: Union[str, Path], width: int, height: int) -> np.ndarray:
    """
    Read an image file and prepare it for a model.

    Args:
        path: Image file readable by OpenCV
        width: Model input width
        height: Model input height

    Returns:
        height x width uint32 array of packed ARGB pixels
    """
    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if bgr is None:
        raise InvalidArgument(f"Cannot read image: {path}")
    return frame_from_bgr(bgr, width, height)


def frame_from_bgr(bgr: np.ndarray, width: int, height: int) -> np.ndarray:
    """Resize a BGR frame (e.g. from cv2.VideoCapture) and pack it as ARGB."""
    if bgr.shape[:2] != (height, width):
        bgr = cv2.resize(bgr, (width, height), interpolation=cv2.INTER_LINEAR)
    rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
    return pack_argb(rgb)


def colors_to_bgra(colors: np.ndarray) -> np.ndarray:
    """Unpack uint32 ARGB colors into an H x W x 4 uint8 BGRA image."""
    colors = np.asarray(colors, dtype=np.uint32)
    bgra = np.empty(colors.shape + (4,), dtype=np.uint8)
    bgra[..., 0] = colors & 0xFF
    bgra[..., 1] = (colors >> 8) & 0xFF
    bgra[..., 2] = (colors >> 16) & 0xFF
    bgra[..., 3] = (colors >> 24) & 0xFF
    return bgra


def save_overlay(path: Union[str, Path], colors: np.ndarray) -> None:
    """Write palette colors as a PNG with alpha."""
    if not cv2.imwrite(str(path), colors_to_bgra(colors)):
        raise InvalidArgument(f"Cannot write image: {path}")
