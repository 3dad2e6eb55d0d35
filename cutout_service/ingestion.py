"""
Probability-buffer ingestion.

Oracles disagree on layout and scale: some hand back float mattes in
[0, 1], others byte masks in [0, 255], some keep a leading channel axis.
Everything downstream works on a float32 ``(height, width)`` buffer in
[0, 1], produced here.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Optional, Tuple

import numpy as np

from .errors import DimensionMismatch, EmptyMask

logger = logging.getLogger(__name__)

# Float buffers peaking above this are read as 0-255; anything lower is clamped.
BYTE_SCALE_MIN_PEAK = 2.0


@dataclass
class SegmentationResult:
    probabilities: Any
    detection_count: Optional[int] = None  # None when the oracle does not report one


def _as_2d(buffer: np.ndarray, shape: Tuple[int, int]) -> np.ndarray:
    height, width = shape
    if buffer.size != height * width:
        raise DimensionMismatch((height, width), buffer.shape)
    if buffer.shape == (height, width):
        return buffer
    squeezed = np.squeeze(buffer)
    if squeezed.ndim <= 1:
        return squeezed.reshape(height, width)
    if squeezed.shape != (height, width):
        raise DimensionMismatch((height, width), buffer.shape)
    return squeezed


def normalize_probabilities(buffer: Any) -> np.ndarray:
    """Detect the 0-255 vs 0-1 convention and map onto clamped [0, 1] floats."""
    arr = np.asarray(buffer)
    if arr.dtype == np.bool_:
        return arr.astype(np.float32)
    integer_input = np.issubdtype(arr.dtype, np.integer)
    arr = np.nan_to_num(arr.astype(np.float32), nan=0.0, posinf=1.0, neginf=0.0)
    peak = float(arr.max()) if arr.size else 0.0
    # 0/1 label masks and slightly overshooting float mattes stay on the unit scale.
    if (integer_input and peak > 1.0) or peak > BYTE_SCALE_MIN_PEAK:
        arr = arr / 255.0
    return np.clip(arr, 0.0, 1.0)


def ingest_probabilities(buffer: Any, image_shape: Tuple[int, ...]) -> np.ndarray:
    """
    Return a float32 ``(height, width)`` probability buffer for the image.

    Raises:
        DimensionMismatch: when the pixel count or 2-D shape differs.
    """
    shape = (int(image_shape[0]), int(image_shape[1]))
    arr = np.asarray(buffer)
    arr = _as_2d(arr, shape)
    probs = normalize_probabilities(arr)
    logger.debug(
        "ingest: shape=%s dtype=%s mean=%.4f", probs.shape, np.asarray(buffer).dtype, float(probs.mean())
    )
    return np.ascontiguousarray(probs, dtype=np.float32)


def ingest_segmentation(result: SegmentationResult, image_shape: Tuple[int, ...]) -> np.ndarray:
    """
    Validate an oracle result and ingest its probabilities.

    Raises:
        EmptyMask: when the oracle reports zero detections, or reports no
            count and the mask is empty.
        DimensionMismatch: see :func:`ingest_probabilities`.
    """
    if result.detection_count is not None and result.detection_count <= 0:
        raise EmptyMask()
    probs = ingest_probabilities(result.probabilities, image_shape)
    if result.detection_count is None and not np.any(probs > 0.0):
        raise EmptyMask()
    return probs
