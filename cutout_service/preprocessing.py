"""
Image decoding/encoding and model-input preparation.

The refinement core only sees decoded RGBA ``uint8`` arrays; bytes and PIL
objects stay in this module.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
import math
from typing import Tuple

import numpy as np
from PIL import Image, ImageOps
import torch

from .errors import InvalidImage


@dataclass
class ModelInput:
    tensor: torch.Tensor
    orig_size: Tuple[int, int]  # (width, height)


def decode_image_bytes(image_bytes: bytes) -> np.ndarray:
    """Decode any PIL-readable image into a ``(h, w, 4)`` uint8 array."""
    try:
        image = Image.open(BytesIO(image_bytes))
        image = ImageOps.exif_transpose(image)
        rgba = image.convert("RGBA")
    except Exception as exc:  # noqa: BLE001
        raise InvalidImage("Invalid image data") from exc
    if rgba.width <= 0 or rgba.height <= 0:
        raise InvalidImage("Image has no pixels")
    return np.array(rgba, dtype=np.uint8)


def to_rgba(image: np.ndarray) -> np.ndarray:
    """Promote grey or RGB arrays to RGBA with an opaque alpha channel."""
    arr = np.asarray(image)
    if arr.dtype != np.uint8:
        raise InvalidImage(f"expected uint8 pixels, got {arr.dtype}")
    if arr.ndim == 2:
        arr = np.stack([arr, arr, arr], axis=-1)
    if arr.ndim != 3 or arr.shape[2] not in (3, 4):
        raise InvalidImage(f"unsupported image shape {arr.shape}")
    if arr.shape[2] == 3:
        alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
        arr = np.concatenate([arr, alpha], axis=-1)
    return np.ascontiguousarray(arr)


def encode_png(rgba: np.ndarray) -> bytes:
    out = Image.fromarray(np.asarray(rgba, dtype=np.uint8))
    buf = BytesIO()
    out.save(buf, format="PNG")
    return buf.getvalue()


def _compute_resize_dims(width: int, height: int, max_long_edge: int) -> Tuple[int, int]:
    """Preserve aspect ratio while constraining the longest edge."""
    if max_long_edge <= 0:
        return width, height
    long_edge = max(width, height)
    scale = min(1.0, max_long_edge / long_edge)
    new_w = int(width * scale)
    new_h = int(height * scale)
    # Encoder/decoder stride chains need dimensions divisible by 32.
    new_w = max(32, math.ceil(new_w / 32) * 32)
    new_h = max(32, math.ceil(new_h / 32) * 32)
    return new_w, new_h


def prepare_model_input(image: np.ndarray, max_long_edge: int, device: torch.device) -> ModelInput:
    """
    Resize the RGB part of ``image`` and normalise it to [-1, 1], NCHW.

    Resizing on the long edge keeps people large enough for hair detail
    while keeping inference fast.
    """
    rgb = Image.fromarray(np.ascontiguousarray(np.asarray(image)[..., :3]))
    orig_w, orig_h = rgb.size
    new_w, new_h = _compute_resize_dims(orig_w, orig_h, max_long_edge)
    if (new_w, new_h) != (orig_w, orig_h):
        rgb = rgb.resize((new_w, new_h), Image.BILINEAR)

    im_np = np.asarray(rgb).astype("float32") / 255.0
    im_np = (im_np - 0.5) / 0.5
    im_np = np.transpose(im_np, (2, 0, 1))  # HWC -> CHW

    tensor = torch.from_numpy(np.ascontiguousarray(im_np)).unsqueeze(0).to(device)
    return ModelInput(tensor=tensor, orig_size=(orig_w, orig_h))
