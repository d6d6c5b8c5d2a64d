"""
Tests for tensor buffers and the buffer pool.
"""

import numpy as np
import pytest

from grassnet.core.exceptions import InferenceError
from grassnet.segmentation.buffers import BufferPool, TensorBuffer
from grassnet.segmentation.catalog import Dataset, ModelDescriptor


class TestTensorBuffer:
    """Tests for TensorBuffer."""

    def test_size_and_byte_order(self):
        buffer = TensorBuffer((1, 4, 4, 3), np.float32)

        assert buffer.capacity == 48
        assert buffer.nbytes == 48 * 4
        assert buffer.dtype.isnative
        assert buffer.array.shape == (1, 4, 4, 3)

    def test_claims_are_sequential(self):
        buffer = TensorBuffer((6,), np.float32)

        first = buffer.claim(2)
        second = buffer.claim(4)
        first[:] = [1, 2]
        second[:] = [3, 4, 5, 6]

        assert buffer.position == 6
        assert buffer.remaining == 0
        np.testing.assert_array_equal(buffer.array, [1, 2, 3, 4, 5, 6])

    def test_overflow_raises(self):
        buffer = TensorBuffer((4,), np.float32)
        buffer.claim(3)

        with pytest.raises(InferenceError):
            buffer.claim(2)

    def test_rewind_keeps_storage(self):
        buffer = TensorBuffer((4,), np.int32)
        array_before = buffer.array
        buffer.claim(4)[:] = 7

        buffer.rewind()

        assert buffer.position == 0
        assert np.shares_memory(array_before, buffer.array)
        np.testing.assert_array_equal(buffer.read(4), [7, 7, 7, 7])

    def test_read_view_is_read_only(self):
        buffer = TensorBuffer((4,), np.int32)

        view = buffer.read(4)

        with pytest.raises(ValueError):
            view[0] = 1


class TestBufferPool:
    """Tests for BufferPool."""

    @pytest.fixture
    def descriptor(self):
        return ModelDescriptor("grass1", Dataset.PASCAL, 256, 256, 256, 256)

    def test_allocates_per_descriptor(self, descriptor):
        pool = BufferPool()

        buffers = pool.allocate_for(descriptor)

        assert buffers.input.nbytes == 1 * 256 * 256 * 3 * 4
        assert buffers.output.nbytes == 1 * 256 * 256 * 4
        assert buffers.input.dtype == np.float32
        assert buffers.output.dtype == np.int32
        assert buffers.pixels.shape == (256 * 256,)
        assert buffers.class_map.shape == (256, 256)

    def test_same_descriptor_does_not_reallocate(self, descriptor):
        pool = BufferPool()

        first = pool.allocate_for(descriptor)
        second = pool.allocate_for(descriptor)

        assert first is second
        assert first.input is second.input
        assert pool.allocations == 1

    def test_same_geometry_different_model_reuses(self, descriptor):
        pool = BufferPool()
        twin = ModelDescriptor("grassNet_mobilenet_v2", Dataset.PASCAL, 256, 256, 256, 256)

        first = pool.allocate_for(descriptor)
        second = pool.allocate_for(twin)

        assert first is second
        assert pool.allocations == 1

    def test_new_geometry_reallocates(self, descriptor):
        pool = BufferPool()
        small = ModelDescriptor("small", Dataset.PASCAL, 4, 4, 4, 4)

        first = pool.allocate_for(descriptor)
        second = pool.allocate_for(small)

        assert first is not second
        assert second.input.capacity == 48
        assert pool.allocations == 2

    def test_score_outputs_are_float(self):
        pool = BufferPool()
        scores = ModelDescriptor("scores", Dataset.PASCAL, 4, 4, 4, 4, output_channels=3)

        buffers = pool.allocate_for(scores)

        assert buffers.output.dtype == np.float32
        assert buffers.output.capacity == 4 * 4 * 3
        assert buffers.class_map.shape == (4, 4)

    def test_clear(self, descriptor):
        pool = BufferPool()
        pool.allocate_for(descriptor)

        pool.clear()

        assert pool.buffers is None
        pool.allocate_for(descriptor)
        assert pool.allocations == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
