"""
Tests for the ONNX Runtime backend using a tiny generated ArgMax model.
"""

import numpy as np
import pytest

onnx = pytest.importorskip("onnx")
from onnx import TensorProto, helper

from grassnet.core.exceptions import InferenceError, ModelLoadError
from grassnet.core.types import EngineOptions
from grassnet.segmentation import (
    Dataset,
    ModelAssetStore,
    ModelCatalog,
    ModelDescriptor,
    ONNXBackend,
    SegmentationPipeline,
)

ARGMAX = ModelDescriptor("argmax", Dataset.PASCAL, 4, 4, 4, 4)
TRANSPOSED = ModelDescriptor("transposed", Dataset.PASCAL, 4, 4, 4, 4, output_channels=3)


def argmax_model_bytes(height: int, width: int) -> bytes:
    """NHWC float input -> per-pixel index of the largest channel (int64)."""
    node = helper.make_node("ArgMax", ["input"], ["output"], axis=3, keepdims=1)
    graph = helper.make_graph(
        [node],
        "argmax",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, height, width, 3])],
        [helper.make_tensor_value_info("output", TensorProto.INT64, [1, height, width, 1])],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    return model.SerializeToString()


def transpose_model_bytes(height: int, width: int) -> bytes:
    """NHWC float input -> the same scores laid out channels-first (NCHW)."""
    node = helper.make_node("Transpose", ["input"], ["output"], perm=[0, 3, 1, 2])
    graph = helper.make_graph(
        [node],
        "transpose",
        [helper.make_tensor_value_info("input", TensorProto.FLOAT, [1, height, width, 3])],
        [helper.make_tensor_value_info("output", TensorProto.FLOAT, [1, 3, height, width])],
    )
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    return model.SerializeToString()


@pytest.fixture
def onnx_dir(tmp_path):
    (tmp_path / "argmax.onnx").write_bytes(argmax_model_bytes(4, 4))
    return tmp_path


@pytest.fixture
def onnx_pipeline(onnx_dir):
    options = EngineOptions(providers=("CPUExecutionProvider",))
    p = SegmentationPipeline(ModelCatalog([ARGMAX]), ModelAssetStore(onnx_dir), ONNXBackend(), options)
    yield p
    p.close()


class TestONNXBackend:
    """Tests for ONNXBackend through the pipeline."""

    def test_session_shapes(self, onnx_dir):
        with ModelAssetStore(onnx_dir).open(ARGMAX) as blob:
            session = ONNXBackend().create_session(blob, EngineOptions(providers=("CPUExecutionProvider",)))

        assert session.input_shape == (1, 4, 4, 3)
        assert session.output_shape == (1, 4, 4, 1)
        assert session.providers == ["CPUExecutionProvider"]
        session.cleanup()
        assert not session.is_initialized

    @pytest.mark.parametrize("color, expected", [
        (0xFFFF0000, 0),
        (0xFF00FF00, 1),
        (0xFF0000FF, 2),
    ])
    def test_segment_solid_frames(self, onnx_pipeline, color, expected):
        frame = np.full((4, 4), color, dtype=np.uint32)

        result = onnx_pipeline.segment_frame(frame)

        assert len(result) == 16
        assert np.all(result.class_map == expected)

    def test_thread_count(self, onnx_pipeline):
        onnx_pipeline.set_thread_count(2)

        result = onnx_pipeline.segment_frame(np.full((4, 4), 0xFF00FF00, dtype=np.uint32))

        assert onnx_pipeline.options.num_threads == 2
        assert np.all(result.class_map == 1)

    def test_channels_first_output_rejected(self, tmp_path):
        (tmp_path / "transposed.onnx").write_bytes(transpose_model_bytes(4, 4))
        options = EngineOptions(providers=("CPUExecutionProvider",))
        pipeline = SegmentationPipeline(
            ModelCatalog([TRANSPOSED]), ModelAssetStore(tmp_path), ONNXBackend(), options
        )

        with pipeline, pytest.raises(InferenceError):
            pipeline.segment_frame(np.full((4, 4), 0xFF00FF00, dtype=np.uint32))

    def test_malformed_model(self, tmp_path):
        (tmp_path / "argmax.onnx").write_bytes(b"definitely not protobuf")

        with pytest.raises(ModelLoadError):
            SegmentationPipeline(ModelCatalog([ARGMAX]), ModelAssetStore(tmp_path), ONNXBackend())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
