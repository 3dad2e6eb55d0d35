"""
Segmentation oracles.

An oracle maps an RGBA image to a per-pixel foreground probability. The
refinement core only depends on the `Segmenter` protocol;
`TorchScriptSegmenter` is the bundled implementation and runs any
TorchScript portrait-matting model that takes a normalised NCHW tensor and
returns a ``(B, 1, H, W)`` matte (or a tuple whose last element is one).
"""

from __future__ import annotations

import logging
from pathlib import Path
from threading import Lock
from typing import Optional, Protocol, runtime_checkable

import numpy as np
import torch
import torch.nn.functional as F

from .errors import OracleUnavailable
from .ingestion import SegmentationResult
from .preprocessing import prepare_model_input

logger = logging.getLogger(__name__)


@runtime_checkable
class Segmenter(Protocol):
    def segment(self, image: np.ndarray) -> SegmentationResult:
        ...


def default_device() -> torch.device:
    """Prefer CUDA -> Apple MPS -> CPU."""
    if torch.cuda.is_available():
        return torch.device("cuda")
    mps = getattr(torch.backends, "mps", None)
    if mps is not None and mps.is_available():
        return torch.device("mps")
    return torch.device("cpu")


class TorchScriptSegmenter:
    def __init__(
        self,
        model: torch.nn.Module,
        device: Optional[torch.device] = None,
        long_edge: int = 512,
        detection_threshold: float = 0.7,
    ):
        self.device = device or torch.device("cpu")
        self.model = model
        self.long_edge = long_edge
        self.detection_threshold = detection_threshold
        self._lock = Lock()

    @classmethod
    def load(cls, model_path: Path, device: Optional[torch.device] = None, **kwargs) -> "TorchScriptSegmenter":
        """
        Load a TorchScript checkpoint.

        Raises:
            OracleUnavailable: when the file is missing or cannot be loaded.
        """
        device = device or default_device()
        model_path = Path(model_path)
        if not model_path.exists():
            raise OracleUnavailable(f"Segmentation model not found at {model_path}")
        try:
            model = torch.jit.load(str(model_path), map_location=device)
        except Exception as exc:  # noqa: BLE001
            raise OracleUnavailable(f"Could not load segmentation model from {model_path}") from exc
        model.eval()
        logger.info("Segmentation model loaded from %s on device: %s", model_path, device)
        return cls(model, device=device, **kwargs)

    def _forward(self, tensor: torch.Tensor) -> torch.Tensor:
        with self._lock, torch.no_grad():
            output = self.model(tensor)
        if isinstance(output, (tuple, list)):
            output = output[-1]
        if output.dim() == 3:
            output = output.unsqueeze(1)
        return output[:, :1]

    def segment(self, image: np.ndarray) -> SegmentationResult:
        """Run the model and return probabilities at the image's resolution."""
        model_input = prepare_model_input(image, self.long_edge, self.device)
        matte = self._forward(model_input.tensor)
        matte = F.interpolate(
            matte.float(),
            size=(model_input.orig_size[1], model_input.orig_size[0]),
            mode="bilinear",
            align_corners=False,
        )
        probs = np.clip(matte[0, 0].detach().cpu().numpy(), 0.0, 1.0)
        detections = int(np.count_nonzero(probs > self.detection_threshold))
        logger.debug("segment: %d pixels above %.2f", detections, self.detection_threshold)
        return SegmentationResult(probabilities=probs, detection_count=detections)
