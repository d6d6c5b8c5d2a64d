"""
Segmentation module: model catalog, buffers, codec and inference.

Provides inference backends (ONNX, Mock), the InferenceEngine that manages
model handles, and the SegmentationPipeline that ties them together.
"""

from .catalog import Dataset, ModelDescriptor, ModelCatalog, PALETTES, palette_for, parse_dataset
from .buffers import BufferPool, TensorBuffer, TensorBuffers
from .codec import encode_frame, decode_frame, pack_argb
from .assets import ModelAssetStore, ModelBlob
from .base import InferenceBackend, BackendSession
from .onnx_backend import ONNXBackend
from .mock_backend import MockBackend
from .engine import InferenceEngine, ModelHandle
from .pipeline import SegmentationPipeline, create_backend

__all__ = [
    "Dataset",
    "ModelDescriptor",
    "ModelCatalog",
    "PALETTES",
    "palette_for",
    "parse_dataset",
    "BufferPool",
    "TensorBuffer",
    "TensorBuffers",
    "encode_frame",
    "decode_frame",
    "pack_argb",
    "ModelAssetStore",
    "ModelBlob",
    "InferenceBackend",
    "BackendSession",
    "ONNXBackend",
    "MockBackend",
    "InferenceEngine",
    "ModelHandle",
    "SegmentationPipeline",
    "create_backend",
]
