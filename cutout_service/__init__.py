"""
Cutout background removal package.

Exposes the mask-refinement engine (probability ingestion, bilateral
smoothing, trimap matting, chroma-key fallback, compositing) and the thin
service shell around it: oracle session, image I/O and the FastAPI app.
"""

from .config import RefinementConfig, Strategy
from .errors import DimensionMismatch, EmptyMask, InvalidImage, NoSubjectDetected, RefinementError
from .pipeline import RefinementPipeline, RefinementResult, refine_image

__all__ = [
    "DimensionMismatch",
    "EmptyMask",
    "InvalidImage",
    "NoSubjectDetected",
    "RefinementConfig",
    "RefinementError",
    "RefinementPipeline",
    "RefinementResult",
    "Strategy",
    "refine_image",
]
