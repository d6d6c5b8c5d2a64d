"""
GrassNet image segmentation

Wraps a pre-trained segmentation model behind a pipeline that manages
model loading and hot-swapping, tensor buffers and pixel encoding.
"""

__version__ = "1.0.0"
__author__ = "GrassNet Team"

from .core.types import EngineOptions, EngineState, FrameResult
from .segmentation import ModelCatalog, ModelDescriptor, SegmentationPipeline

__all__ = [
    "EngineOptions",
    "EngineState",
    "FrameResult",
    "ModelCatalog",
    "ModelDescriptor",
    "SegmentationPipeline",
]
