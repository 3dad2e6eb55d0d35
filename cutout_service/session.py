"""
Explicit processing context.

A `SegmentationSession` owns the (optional) oracle and the settings used
to build refinement configs. Callers create one and pass it around; there
is no module-level model instance.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from . import config
from .config import RefinementConfig, Strategy
from .errors import OracleUnavailable
from .ingestion import ingest_segmentation
from .pipeline import RefinementPipeline, RefinementResult
from .preprocessing import decode_image_bytes, encode_png, to_rgba
from .segmenter import Segmenter, TorchScriptSegmenter

logger = logging.getLogger(__name__)


class SegmentationSession:
    def __init__(self, segmenter: Optional[Segmenter] = None, settings: Optional[config.Settings] = None):
        self.segmenter = segmenter
        self.settings = settings or config.get_settings()

    @classmethod
    def from_settings(cls, settings: Optional[config.Settings] = None) -> "SegmentationSession":
        """Build a session, loading the model when one is configured."""
        settings = settings or config.get_settings()
        segmenter = None
        if settings.model_path:
            try:
                segmenter = TorchScriptSegmenter.load(
                    settings.model_path,
                    long_edge=settings.model_input_long_edge,
                    detection_threshold=settings.detection_threshold,
                )
            except OracleUnavailable as exc:
                logger.warning("Segmentation oracle unavailable, chroma key only: %s", exc)
        else:
            logger.info("No model path configured, chroma key only")
        return cls(segmenter=segmenter, settings=settings)

    @property
    def has_oracle(self) -> bool:
        return self.segmenter is not None

    def process(self, image: np.ndarray, strategy: Optional[Strategy] = None) -> RefinementResult:
        """
        Segment (when an oracle exists and the strategy needs it) and refine.

        Raises:
            EmptyMask: when the oracle finds no subject.
            DimensionMismatch: when the oracle output does not match the image.
        """
        refinement = RefinementConfig.from_settings(self.settings, strategy=strategy)
        image = to_rgba(image)
        probabilities = None
        if self.segmenter is not None and refinement.strategy is not Strategy.CHROMA_KEY:
            result = self.segmenter.segment(image)
            probabilities = ingest_segmentation(result, image.shape)
        pipeline = RefinementPipeline(refinement, settings=self.settings)
        return pipeline.run(image, probabilities)

    def process_image_bytes(self, image_bytes: bytes, strategy: Optional[Strategy] = None) -> tuple[bytes, Strategy]:
        """
        Full pipeline from raw bytes to RGBA PNG bytes.

        Raises:
            RefinementError: when input is invalid or no subject is found.
        """
        image = decode_image_bytes(image_bytes)
        result = self.process(image, strategy=strategy)
        return encode_png(result.image), result.strategy
