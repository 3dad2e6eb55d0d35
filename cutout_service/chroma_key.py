"""
Colour-distance fallback used when no segmentation oracle is available.

The background colour is estimated from the four corners, which works for
studio-style shots and degrades on backgrounds sharing the subject's
colours. That trade-off is accepted for a fallback.
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


def estimate_background_color(image: np.ndarray) -> np.ndarray:
    """Mean RGB of the four corner pixels."""
    rgb = np.asarray(image)[..., :3].astype(np.float32)
    corners = np.stack([rgb[0, 0], rgb[0, -1], rgb[-1, 0], rgb[-1, -1]])
    return corners.mean(axis=0)


def chroma_key_alpha(image: np.ndarray, threshold: float = 40.0) -> np.ndarray:
    """
    Alpha on the 0-255 scale from Euclidean RGB distance to the background.

    distance < threshold is transparent, distance >= 2 * threshold is opaque
    and the band in between ramps linearly.
    """
    if threshold <= 0:
        raise ValueError("chroma threshold must be positive")
    bg_color = estimate_background_color(image)
    rgb = np.asarray(image)[..., :3].astype(np.float32)
    distance = np.sqrt(np.sum((rgb - bg_color) ** 2, axis=-1))

    alpha = np.clip((distance - threshold) / threshold * 255.0, 0.0, 255.0)
    alpha = np.where(distance < threshold, 0.0, alpha)
    alpha = np.where(distance >= 2.0 * threshold, 255.0, alpha)

    logger.debug(
        "chroma key: bg=(%.1f, %.1f, %.1f) threshold=%.1f opaque=%.2f%%",
        bg_color[0],
        bg_color[1],
        bg_color[2],
        threshold,
        float(np.mean(alpha >= 255.0)) * 100.0,
    )
    return alpha.astype(np.float32)
