"""Alpha resolution over a trimap."""

from __future__ import annotations

import logging

import numpy as np

from .trimap import TRIMAP_BACKGROUND, TRIMAP_FOREGROUND, TRIMAP_UNKNOWN

logger = logging.getLogger(__name__)


def smoothstep(probs: np.ndarray, low: float = 0.3, band: float = 0.4) -> np.ndarray:
    """Cubic ease from 0 at ``low`` to 1 at ``low + band``."""
    probs = np.asarray(probs, dtype=np.float32)
    if band <= 0:
        return (probs >= low).astype(np.float32)
    t = np.clip((probs - low) / band, 0.0, 1.0)
    return (t * t * (3.0 - 2.0 * t)).astype(np.float32)


def resolve_alpha(
    probs: np.ndarray,
    trimap: np.ndarray,
    matte_low: float = 0.3,
    matte_band: float = 0.4,
) -> np.ndarray:
    """Foreground -> 1, background -> 0, unknown -> smoothstep of the probability."""
    alpha = np.zeros(trimap.shape, dtype=np.float32)
    alpha[trimap == TRIMAP_FOREGROUND] = 1.0
    unknown = trimap == TRIMAP_UNKNOWN
    if np.any(unknown):
        alpha[unknown] = smoothstep(np.asarray(probs)[unknown], matte_low, matte_band)
    logger.debug(
        "matte: unknown=%d mean alpha=%.4f bg=%d",
        int(unknown.sum()),
        float(alpha.mean()) if alpha.size else 0.0,
        int(np.count_nonzero(trimap == TRIMAP_BACKGROUND)),
    )
    return alpha
