"""
Tests for the OpenCV image adapters.
"""

import cv2
import numpy as np
import pytest

from grassnet.core.exceptions import InvalidArgument
from grassnet.frames import colors_to_bgra, frame_from_bgr, load_frame, save_overlay


class TestFrameAcquisition:
    """Tests for reading images into packed pixels."""

    def test_bgr_is_packed_as_argb(self):
        bgr = np.zeros((2, 2, 3), dtype=np.uint8)
        bgr[..., 2] = 255  # red in BGR order

        frame = frame_from_bgr(bgr, 2, 2)

        assert frame.dtype == np.uint32
        assert np.all(frame == 0xFFFF0000)

    def test_resizes_to_model_input(self):
        bgr = np.full((10, 20, 3), 128, dtype=np.uint8)

        frame = frame_from_bgr(bgr, 8, 4)

        assert frame.shape == (4, 8)
        assert np.all(frame == 0xFF808080)

    def test_load_frame(self, tmp_path):
        path = tmp_path / "green.png"
        bgr = np.zeros((16, 16, 3), dtype=np.uint8)
        bgr[..., 1] = 255
        cv2.imwrite(str(path), bgr)

        frame = load_frame(path, 4, 4)

        assert frame.shape == (4, 4)
        assert np.all(frame == 0xFF00FF00)

    def test_unreadable_image(self, tmp_path):
        path = tmp_path / "broken.png"
        path.write_bytes(b"not an image")

        with pytest.raises(InvalidArgument):
            load_frame(path, 4, 4)


class TestOverlay:
    """Tests for writing palette colors."""

    def test_colors_to_bgra(self):
        colors = np.array([[0xFF228B22, 0x00FFFFFF]], dtype=np.uint32)

        bgra = colors_to_bgra(colors)

        assert bgra.shape == (1, 2, 4)
        assert bgra[0, 0].tolist() == [0x22, 0x8B, 0x22, 0xFF]
        assert bgra[0, 1].tolist() == [0xFF, 0xFF, 0xFF, 0x00]

    def test_save_overlay(self, tmp_path):
        path = tmp_path / "mask.png"
        colors = np.full((3, 5), 0xFFFF1493, dtype=np.uint32)

        save_overlay(path, colors)

        written = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        assert written.shape == (3, 5, 4)
        assert written[0, 0].tolist() == [0x93, 0x14, 0xFF, 0xFF]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
