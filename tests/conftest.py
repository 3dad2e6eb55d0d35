from __future__ import annotations

import numpy as np
import pytest

from cutout_service import config
from cutout_service.ingestion import SegmentationResult


class FakeSegmenter:
    """Oracle stub returning a fixed probability buffer."""

    def __init__(self, probabilities, detection_count=None):
        self.probabilities = probabilities
        self.detection_count = detection_count
        self.calls = 0

    def segment(self, image):
        self.calls += 1
        return SegmentationResult(self.probabilities, self.detection_count)


@pytest.fixture
def settings(tmp_path):
    return config.Settings(model_path=None, debug=False, debug_output_dir=tmp_path / "debug")


@pytest.fixture
def rgba_image():
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(16, 24, 4), dtype=np.uint8)
    image[..., 3] = 255
    return image


@pytest.fixture
def subject_image():
    """Black backdrop with a white square subject in the middle."""
    image = np.zeros((20, 20, 4), dtype=np.uint8)
    image[..., 3] = 255
    image[6:14, 6:14, :3] = 255
    return image


@pytest.fixture
def subject_probs():
    probs = np.zeros((20, 20), dtype=np.float32)
    probs[6:14, 6:14] = 1.0
    return probs
