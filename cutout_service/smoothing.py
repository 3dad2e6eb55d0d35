"""Edge-aware smoothing for probability buffers and chroma-key alphas."""

from __future__ import annotations

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

WEIGHT_EPSILON = 1e-8


def _gaussian(sq_dist, sigma: float):
    """exp(-d / 2 sigma^2); a collapsed sigma gives zero weight everywhere."""
    denom = 2.0 * float(sigma) * float(sigma)
    if denom <= 0.0:
        return np.zeros_like(np.asarray(sq_dist, dtype=np.float32), dtype=np.float32)
    with np.errstate(over="ignore", under="ignore"):
        return np.exp(-np.asarray(sq_dist, dtype=np.float64) / denom).astype(np.float32)


def _window(offset: int, length: int):
    """Slices pairing destination pixels with neighbours ``offset`` away."""
    if offset >= 0:
        return slice(0, length - offset), slice(offset, length)
    return slice(-offset, length), slice(0, length + offset)


def bilateral_smooth(
    probs: np.ndarray,
    radius: int = 3,
    sigma_space: float = 2.0,
    sigma_range: float = 0.2,
) -> np.ndarray:
    """
    Bilateral filter over a square window of ``radius``.

    Out-of-bounds neighbours are skipped rather than padded, so border
    pixels simply accumulate less weight. Pixels whose weight sum collapses
    keep their original value. Returns a new buffer; ``probs`` is not
    modified.
    """
    src = np.asarray(probs, dtype=np.float32)
    height, width = src.shape
    radius = max(int(radius), 0)

    acc = np.zeros((height, width), dtype=np.float32)
    weight_sum = np.zeros((height, width), dtype=np.float32)

    for dy in range(-radius, radius + 1):
        if abs(dy) >= height:
            continue
        dst_rows, src_rows = _window(dy, height)
        for dx in range(-radius, radius + 1):
            if abs(dx) >= width:
                continue
            dst_cols, src_cols = _window(dx, width)
            center = src[dst_rows, dst_cols]
            neighbour = src[src_rows, src_cols]
            spatial = _gaussian(dy * dy + dx * dx, sigma_space)
            w = spatial * _gaussian((neighbour - center) ** 2, sigma_range)
            acc[dst_rows, dst_cols] += w * neighbour
            weight_sum[dst_rows, dst_cols] += w

    degenerate = weight_sum <= WEIGHT_EPSILON
    out = np.where(degenerate, src, acc / np.where(degenerate, 1.0, weight_sum))
    if np.any(degenerate):
        logger.debug("bilateral: %d degenerate neighbourhoods kept unsmoothed", int(degenerate.sum()))
    return np.clip(out, 0.0, 1.0).astype(np.float32)


def box_blur_edges(alpha: np.ndarray) -> np.ndarray:
    """
    3x3 mean over interior pixels whose alpha is strictly between 0 and 255.

    Means are read from the unmodified input so smoothing does not compound
    within the sweep. The outermost rows and columns are left as they are.
    """
    snapshot = np.asarray(alpha, dtype=np.float32)
    out = snapshot.copy()
    height, width = snapshot.shape
    if height < 3 or width < 3:
        return out

    means = cv2.blur(snapshot, (3, 3))
    edge = (snapshot > 0.0) & (snapshot < 255.0)
    edge[0, :] = False
    edge[-1, :] = False
    edge[:, 0] = False
    edge[:, -1] = False
    out[edge] = means[edge]
    logger.debug("box blur: smoothed %d edge pixels", int(edge.sum()))
    return out
