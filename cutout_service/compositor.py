"""Writes a resolved alpha buffer into an RGBA image."""

from __future__ import annotations

import numpy as np

from .errors import DimensionMismatch, InvalidImage


def validate_rgba(image: np.ndarray) -> None:
    if not isinstance(image, np.ndarray) or image.dtype != np.uint8:
        raise InvalidImage("image must be a uint8 numpy array")
    if image.ndim != 3 or image.shape[2] != 4:
        raise InvalidImage(f"image must have shape (height, width, 4), got {image.shape}")
    if image.shape[0] <= 0 or image.shape[1] <= 0:
        raise InvalidImage("image must have non-zero width and height")


def encode_alpha(alpha: np.ndarray) -> np.ndarray:
    """Map [0, 1] floats onto rounded 8-bit values."""
    alpha = np.nan_to_num(np.asarray(alpha, dtype=np.float32), nan=0.0)
    return np.rint(np.clip(alpha, 0.0, 1.0) * 255.0).astype(np.uint8)


def composite_alpha(image: np.ndarray, alpha: np.ndarray) -> np.ndarray:
    """
    Overwrite the alpha channel of ``image`` in place and return it.

    R, G and B are never touched. All checks run before the write so a
    failure leaves the image unchanged.
    """
    validate_rgba(image)
    alpha = np.asarray(alpha)
    if alpha.shape != image.shape[:2]:
        raise DimensionMismatch(image.shape[:2], alpha.shape)
    image[..., 3] = encode_alpha(alpha)
    return image
