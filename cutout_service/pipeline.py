"""
Refinement pipeline.

`RefinementPipeline.run` is the core entry point used by the session, the
HTTP API and the local helper script. It keeps orchestration simple:
RGBA buffer + optional probabilities -> strategy -> alpha -> composite.

Strategies:
 - fast: oracle probabilities used directly as alpha.
 - refined: bilateral smoothing -> trimap -> smoothstep matte.
 - chroma_key: corner-colour distance -> edge box blur.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Any, Optional

import cv2
import numpy as np

from . import config
from .chroma_key import chroma_key_alpha
from .compositor import composite_alpha, encode_alpha, validate_rgba
from .config import RefinementConfig, Strategy
from .ingestion import ingest_probabilities
from .matting import resolve_alpha
from .smoothing import bilateral_smooth, box_blur_edges
from .trimap import build_trimap

logger = logging.getLogger(__name__)


@dataclass
class RefinementResult:
    image: np.ndarray
    alpha: np.ndarray
    strategy: Strategy
    trimap: Optional[np.ndarray] = None


def select_strategy(requested: Strategy, has_probabilities: bool) -> Strategy:
    """Pick the strategy for one call; without probabilities only chroma key can run."""
    if requested is Strategy.CHROMA_KEY or has_probabilities:
        return requested
    logger.info("refine: no probability buffer available, using chroma key fallback")
    return Strategy.CHROMA_KEY


def _maybe_dump_debug(alpha: np.ndarray, trimap: Optional[np.ndarray], debug_dir: Path) -> None:
    """Optionally write debug visualizations when DEBUG is enabled."""
    try:
        debug_dir.mkdir(parents=True, exist_ok=True)
        cv2.imwrite(str(debug_dir / "alpha.png"), encode_alpha(alpha))
        if trimap is not None:
            cv2.imwrite(str(debug_dir / "trimap.png"), trimap)
        logger.debug("refine: wrote debug outputs to %s", debug_dir)
    except Exception as exc:  # noqa: BLE001
        logger.warning("refine: failed to write debug outputs: %s", exc)


class RefinementPipeline:
    def __init__(self, refinement: Optional[RefinementConfig] = None, settings: Optional[config.Settings] = None):
        self.settings = settings
        self.config = refinement or RefinementConfig.from_settings(settings)

    def _refined(self, probs: np.ndarray):
        cfg = self.config
        smoothed = bilateral_smooth(
            probs,
            radius=cfg.bilateral_radius,
            sigma_space=cfg.sigma_space,
            sigma_range=cfg.sigma_range,
        )
        trimap = build_trimap(
            smoothed,
            erosion_radius=cfg.erosion_radius,
            dilation_radius=cfg.dilation_radius,
            foreground_threshold=cfg.foreground_threshold,
            background_threshold=cfg.background_threshold,
        )
        alpha = resolve_alpha(smoothed, trimap, matte_low=cfg.matte_low, matte_band=cfg.matte_band)
        return alpha, trimap

    def _chroma_key(self, image: np.ndarray) -> np.ndarray:
        alpha_255 = chroma_key_alpha(image, threshold=self.config.chroma_threshold)
        alpha_255 = box_blur_edges(alpha_255)
        return alpha_255 / 255.0

    def compute_alpha(self, image: np.ndarray, probabilities: Any = None):
        """Return ``(alpha, strategy, trimap)`` without touching ``image``."""
        validate_rgba(image)
        strategy = select_strategy(self.config.strategy, probabilities is not None)
        trimap = None

        if strategy is Strategy.CHROMA_KEY:
            alpha = self._chroma_key(image)
        else:
            probs = ingest_probabilities(probabilities, image.shape)
            if strategy is Strategy.FAST_ALPHA:
                alpha = probs
            else:
                alpha, trimap = self._refined(probs)

        alpha = np.clip(np.nan_to_num(alpha, nan=0.0), 0.0, 1.0).astype(np.float32)
        logger.debug(
            "refine: strategy=%s size=%dx%d mean alpha=%.4f",
            strategy.value,
            image.shape[1],
            image.shape[0],
            float(alpha.mean()),
        )
        return alpha, strategy, trimap

    def run(self, image: np.ndarray, probabilities: Any = None) -> RefinementResult:
        """
        Refine ``probabilities`` (or key on colour) and composite into ``image``.

        ``image`` is modified in place only after the full alpha buffer has
        been computed; any failure leaves it untouched.

        Raises:
            InvalidImage: when ``image`` is not a (h, w, 4) uint8 array.
            DimensionMismatch: when the probabilities do not match the image.
        """
        alpha, strategy, trimap = self.compute_alpha(image, probabilities)

        settings = self.settings or config.get_settings()
        if settings.debug:
            _maybe_dump_debug(alpha, trimap, Path(settings.debug_output_dir))

        composite_alpha(image, alpha)
        return RefinementResult(image=image, alpha=alpha, strategy=strategy, trimap=trimap)


def refine_image(
    image: np.ndarray,
    probabilities: Any = None,
    refinement: Optional[RefinementConfig] = None,
) -> RefinementResult:
    """Convenience wrapper around a one-off :class:`RefinementPipeline`."""
    return RefinementPipeline(refinement).run(image, probabilities)
