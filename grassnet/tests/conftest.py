"""
Shared fixtures: a temporary model directory and a mock-backed pipeline.
"""

import pytest
import sys
from pathlib import Path

import numpy as np

# Add grassnet parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from grassnet.segmentation import (
    Dataset,
    MockBackend,
    ModelAssetStore,
    ModelCatalog,
    ModelDescriptor,
    SegmentationPipeline,
)

RED = 0xFFFF0000
GREEN = 0xFF00FF00
BLUE = 0xFF0000FF

SMALL = ModelDescriptor("small", Dataset.PASCAL, 4, 4, 4, 4)
WIDE = ModelDescriptor("wide", Dataset.PASCAL, 8, 4, 8, 4)
SCORES = ModelDescriptor("scores", Dataset.PASCAL, 4, 4, 4, 4, output_channels=3)


@pytest.fixture
def model_dir(tmp_path):
    """Directory with a stand-in model file for every test descriptor."""
    directory = tmp_path / "models"
    directory.mkdir()
    for name in ("small", "wide", "scores", "grass1", "grassNet_mobilenet_v2"):
        (directory / f"{name}.onnx").write_bytes(b"mock-model-bytes")
    return directory


@pytest.fixture
def catalog():
    return ModelCatalog([SMALL, WIDE, SCORES])


@pytest.fixture
def assets(model_dir):
    return ModelAssetStore(model_dir, "onnx")


@pytest.fixture
def backend():
    return MockBackend()


@pytest.fixture
def pipeline(catalog, assets, backend):
    """Pipeline over the small test catalog, loaded with model 0."""
    p = SegmentationPipeline(catalog, assets, backend)
    yield p
    p.close()


@pytest.fixture
def make_frame():
    """Factory for solid-color packed ARGB frames."""
    def _make(color: int, width: int, height: int) -> np.ndarray:
        return np.full((height, width), color, dtype=np.uint32)
    return _make
