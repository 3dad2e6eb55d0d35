import numpy as np
import pytest

from cutout_service.errors import DimensionMismatch, EmptyMask
from cutout_service.ingestion import (
    SegmentationResult,
    ingest_probabilities,
    ingest_segmentation,
    normalize_probabilities,
)


def test_byte_buffer_is_scaled_to_unit_range():
    probs = normalize_probabilities(np.array([[0, 51, 255]], dtype=np.uint8))
    np.testing.assert_allclose(probs, [[0.0, 0.2, 1.0]], atol=1e-6)


def test_float_buffer_with_large_values_is_treated_as_bytes():
    probs = normalize_probabilities(np.array([0.0, 127.5, 255.0]))
    np.testing.assert_allclose(probs, [0.0, 0.5, 1.0], atol=1e-6)


def test_unit_float_buffer_is_clamped_not_rescaled():
    probs = normalize_probabilities(np.array([-0.5, 0.25, 1.0, np.nan]))
    np.testing.assert_allclose(probs, [0.0, 0.25, 1.0, 0.0])


@pytest.mark.parametrize("shape", [(4, 6), (24,), (4, 6, 1), (1, 4, 6)])
def test_accepted_layouts(shape):
    buffer = np.full(shape, 0.5, dtype=np.float32)
    probs = ingest_probabilities(buffer, (4, 6, 4))
    assert probs.shape == (4, 6)
    assert probs.dtype == np.float32


def test_pixel_count_mismatch():
    with pytest.raises(DimensionMismatch) as info:
        ingest_probabilities(np.zeros((4, 5)), (4, 6, 4))
    assert info.value.expected == (4, 6)


def test_transposed_buffer_is_rejected():
    with pytest.raises(DimensionMismatch):
        ingest_probabilities(np.zeros((6, 4)), (4, 6, 4))


def test_zero_detections_is_empty_mask():
    result = SegmentationResult(np.ones((2, 2)), detection_count=0)
    with pytest.raises(EmptyMask):
        ingest_segmentation(result, (2, 2, 4))


def test_all_zero_mask_without_count_is_empty():
    with pytest.raises(EmptyMask):
        ingest_segmentation(SegmentationResult(np.zeros((3, 3), dtype=np.uint8)), (3, 3, 4))


def test_reported_detections_pass_through():
    probs = ingest_segmentation(SegmentationResult(np.zeros((3, 3)), detection_count=5), (3, 3, 4))
    assert probs.shape == (3, 3)


def test_binary_label_mask_keeps_unit_scale():
    probs = normalize_probabilities(np.array([[0, 1], [1, 0]], dtype=np.uint8))
    np.testing.assert_array_equal(probs, [[0.0, 1.0], [1.0, 0.0]])


def test_slight_float_overshoot_is_clamped_not_rescaled():
    probs = normalize_probabilities(np.array([0.0, 0.5, 1.02], dtype=np.float32))
    np.testing.assert_allclose(probs, [0.0, 0.5, 1.0], atol=1e-6)


def test_integer_byte_mask_with_small_peak_is_rescaled():
    probs = normalize_probabilities(np.array([0, 2], dtype=np.int32))
    np.testing.assert_allclose(probs, [0.0, 2 / 255], atol=1e-6)
