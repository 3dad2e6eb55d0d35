"""Trimap construction from a (smoothed) probability buffer."""

from __future__ import annotations

import logging

import cv2
import numpy as np

logger = logging.getLogger(__name__)

TRIMAP_BACKGROUND = 0
TRIMAP_UNKNOWN = 128
TRIMAP_FOREGROUND = 255


def _square_kernel(radius: int) -> np.ndarray:
    size = 2 * max(int(radius), 0) + 1
    return np.ones((size, size), np.uint8)


def erode(probs: np.ndarray, radius: int) -> np.ndarray:
    """Per-pixel minimum over the in-bounds square window (self included)."""
    src = np.ascontiguousarray(probs, dtype=np.float32)
    if radius <= 0:
        return src.copy()
    # The default constant border is +inf for erosion, i.e. ignored.
    return cv2.erode(src, _square_kernel(radius), borderType=cv2.BORDER_CONSTANT)


def dilate(probs: np.ndarray, radius: int) -> np.ndarray:
    """Per-pixel maximum over the in-bounds square window (self included)."""
    src = np.ascontiguousarray(probs, dtype=np.float32)
    if radius <= 0:
        return src.copy()
    return cv2.dilate(src, _square_kernel(radius), borderType=cv2.BORDER_CONSTANT)


def build_trimap(
    probs: np.ndarray,
    erosion_radius: int = 2,
    dilation_radius: int = 2,
    foreground_threshold: float = 0.9,
    background_threshold: float = 0.1,
) -> np.ndarray:
    """
    Classify pixels as foreground, background or unknown.

    Foreground when the eroded value exceeds ``foreground_threshold``,
    background when the dilated value is below ``background_threshold``,
    unknown otherwise. Foreground wins if both tests pass.
    """
    eroded = erode(probs, erosion_radius)
    dilated = dilate(probs, dilation_radius)

    trimap = np.full(eroded.shape, TRIMAP_UNKNOWN, dtype=np.uint8)
    trimap[dilated < background_threshold] = TRIMAP_BACKGROUND
    trimap[eroded > foreground_threshold] = TRIMAP_FOREGROUND

    unknown_fraction = float(np.mean(trimap == TRIMAP_UNKNOWN)) if trimap.size else 0.0
    logger.debug(
        "trimap: fg=%d bg=%d unknown=%.2f%%",
        int(np.count_nonzero(trimap == TRIMAP_FOREGROUND)),
        int(np.count_nonzero(trimap == TRIMAP_BACKGROUND)),
        unknown_fraction * 100.0,
    )
    return trimap
