import numpy as np
import pytest

from cutout_service.matting import resolve_alpha, smoothstep
from cutout_service.trimap import (
    TRIMAP_BACKGROUND,
    TRIMAP_FOREGROUND,
    TRIMAP_UNKNOWN,
    build_trimap,
    dilate,
    erode,
)


def test_categories_partition_pixels():
    rng = np.random.default_rng(3)
    probs = rng.random((17, 23)).astype(np.float32)
    trimap = build_trimap(probs)
    fg = trimap == TRIMAP_FOREGROUND
    bg = trimap == TRIMAP_BACKGROUND
    unknown = trimap == TRIMAP_UNKNOWN
    assert np.all(fg.astype(int) + bg.astype(int) + unknown.astype(int) == 1)


def test_uniform_buffers():
    assert np.all(build_trimap(np.ones((6, 6), np.float32)) == TRIMAP_FOREGROUND)
    assert np.all(build_trimap(np.zeros((6, 6), np.float32)) == TRIMAP_BACKGROUND)
    assert np.all(build_trimap(np.full((6, 6), 0.5, np.float32)) == TRIMAP_UNKNOWN)


def test_out_of_bounds_neighbours_are_ignored():
    probs = np.ones((5, 5), dtype=np.float32)
    probs[0, 0] = 0.0
    eroded = erode(probs, 2)
    assert eroded[2, 2] == 0.0
    assert eroded[4, 4] == 1.0
    assert eroded[0, 4] == 1.0

    spot = np.zeros((5, 5), dtype=np.float32)
    spot[4, 4] = 1.0
    dilated = dilate(spot, 2)
    assert dilated[2, 2] == 1.0
    assert dilated[1, 1] == 0.0


def test_zero_radius_is_identity():
    probs = np.array([[0.2, 0.95], [0.05, 0.5]], dtype=np.float32)
    trimap = build_trimap(probs, erosion_radius=0, dilation_radius=0)
    assert trimap.tolist() == [
        [TRIMAP_UNKNOWN, TRIMAP_FOREGROUND],
        [TRIMAP_BACKGROUND, TRIMAP_UNKNOWN],
    ]


def test_thresholds_come_from_arguments():
    probs = np.full((4, 4), 0.8, dtype=np.float32)
    assert np.all(build_trimap(probs, foreground_threshold=0.75) == TRIMAP_FOREGROUND)
    assert np.all(build_trimap(probs, background_threshold=0.85) == TRIMAP_BACKGROUND)


@pytest.mark.parametrize(
    "value,expected",
    [(0.0, 0.0), (0.3, 0.0), (0.4, 0.15625), (0.5, 0.5), (0.7, 1.0), (1.0, 1.0)],
)
def test_smoothstep(value, expected):
    assert smoothstep(np.array([value]))[0] == pytest.approx(expected, abs=1e-6)


def test_smoothstep_zero_band_is_hard_cut():
    out = smoothstep(np.array([0.29, 0.3, 0.8]), low=0.3, band=0.0)
    assert out.tolist() == [0.0, 1.0, 1.0]


def test_resolve_alpha_by_category():
    trimap = np.array([[TRIMAP_FOREGROUND, TRIMAP_BACKGROUND, TRIMAP_UNKNOWN]], dtype=np.uint8)
    probs = np.array([[0.1, 0.9, 0.5]], dtype=np.float32)
    alpha = resolve_alpha(probs, trimap)
    np.testing.assert_allclose(alpha, [[1.0, 0.0, 0.5]])


def test_binary_buffer_is_unchanged():
    probs = np.zeros((12, 12), dtype=np.float32)
    probs[:, 6:] = 1.0
    trimap = build_trimap(probs)
    alpha = resolve_alpha(probs, trimap)
    np.testing.assert_array_equal(alpha, probs)

    trimap = build_trimap(probs, erosion_radius=0, dilation_radius=0)
    assert not np.any(trimap == TRIMAP_UNKNOWN)
    np.testing.assert_array_equal(resolve_alpha(probs, trimap), probs)
