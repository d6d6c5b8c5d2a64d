"""
Tests for the command line front end, run against the mock backend.
"""

import textwrap

import cv2
import numpy as np
import pytest

from grassnet.cli import main


@pytest.fixture
def config_path(tmp_path, model_dir):
    path = tmp_path / "pipeline.yaml"
    path.write_text(textwrap.dedent(f"""
        models:
          - path: small
            dataset: PASCAL
            input_width: 4
            input_height: 4
          - path: wide
            dataset: PASCAL
            input_width: 8
            input_height: 4
        assets:
          model_dir: {model_dir}
        runtime:
          inference_backend: mock
    """))
    return path


@pytest.fixture
def green_image(tmp_path):
    path = tmp_path / "lawn.png"
    bgr = np.zeros((32, 32, 3), dtype=np.uint8)
    bgr[..., 1] = 200
    cv2.imwrite(str(path), bgr)
    return path


class TestCli:
    """Tests for grassnet.cli.main."""

    def test_segments_and_writes_overlay(self, tmp_path, config_path, green_image):
        output = tmp_path / "out"

        code = main([str(green_image), "--config", str(config_path), "--output", str(output)])

        assert code == 0
        overlay = cv2.imread(str(output / "lawn_small.png"), cv2.IMREAD_UNCHANGED)
        assert overlay.shape == (4, 4, 4)
        assert overlay[0, 0].tolist() == [0x22, 0x8B, 0x22, 0xFF]

    def test_cycle_models(self, tmp_path, config_path, green_image):
        output = tmp_path / "out"

        code = main([
            str(green_image), "--config", str(config_path),
            "--output", str(output), "--cycle-models", "--threads", "2",
        ])

        assert code == 0
        assert (output / "lawn_small.png").exists()
        assert cv2.imread(str(output / "lawn_wide.png"), cv2.IMREAD_UNCHANGED).shape == (4, 8, 4)

    def test_unreadable_image_fails(self, tmp_path, config_path):
        missing = tmp_path / "missing.png"

        assert main([str(missing), "--config", str(config_path)]) == 1

    def test_invalid_thread_count(self, config_path, green_image):
        assert main([str(green_image), "--config", str(config_path), "--threads", "0"]) == 1

    def test_missing_models(self, tmp_path, config_path, green_image):
        empty = tmp_path / "empty"
        empty.mkdir()

        code = main([str(green_image), "--config", str(config_path), "--model-dir", str(empty)])

        assert code == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
