"""
Configuration loader for the cutout service.

Environment variables are centralized here to keep the rest of the code
focused on the refinement logic and to make operational tuning clear.
Every refinement knob can be overridden with a ``CUTOUT_`` prefixed
variable, e.g. ``CUTOUT_BILATERAL_RADIUS=2``.
"""

from __future__ import annotations

from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Strategy(str, Enum):
    FAST_ALPHA = "fast"
    REFINED_ALPHA = "refined"
    CHROMA_KEY = "chroma_key"


def parse_strategy(value) -> Strategy:
    """Accept enum members, values ("refined") or names ("REFINED_ALPHA")."""
    if isinstance(value, Strategy):
        return value
    raw = str(value).strip()
    try:
        return Strategy(raw.lower())
    except ValueError:
        pass
    try:
        return Strategy[raw.upper()]
    except KeyError:
        choices = "|".join(s.value for s in Strategy)
        raise ValueError(f"strategy must be one of {choices}, got {value!r}") from None


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CUTOUT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=("settings_",),
    )

    # Segmentation oracle
    model_path: Optional[Path] = None
    model_input_long_edge: int = 512
    detection_threshold: float = 0.7

    # Refinement defaults
    strategy: Strategy = Strategy.REFINED_ALPHA
    bilateral_radius: int = 3
    sigma_space: float = 2.0
    sigma_range: float = 0.2
    erosion_radius: int = 2
    dilation_radius: int = 2
    foreground_threshold: float = 0.9
    background_threshold: float = 0.1
    matte_low: float = 0.3
    matte_band: float = 0.4
    chroma_threshold: float = 40.0

    # API
    log_level: str = "INFO"
    max_upload_bytes: int = 10 * 1024 * 1024

    # Debugging
    debug: bool = False
    debug_output_dir: Path = Path("/tmp/cutout_debug")

    @field_validator("strategy", mode="before")
    @classmethod
    def validate_strategy(cls, v):  # noqa: B902
        return parse_strategy(v)


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings to avoid reparsing env on every call."""
    return Settings()


class RefinementConfig(BaseModel):
    """Per-call refinement parameters."""

    strategy: Strategy = Strategy.REFINED_ALPHA
    bilateral_radius: int = Field(3, ge=0)
    sigma_space: float = Field(2.0, ge=0.0)
    sigma_range: float = Field(0.2, ge=0.0)
    erosion_radius: int = Field(2, ge=0)
    dilation_radius: int = Field(2, ge=0)
    foreground_threshold: float = Field(0.9, ge=0.0, le=1.0)
    background_threshold: float = Field(0.1, ge=0.0, le=1.0)
    matte_low: float = Field(0.3, ge=0.0, le=1.0)
    matte_band: float = Field(0.4, ge=0.0)
    chroma_threshold: float = Field(40.0, gt=0.0)

    model_config = {"frozen": True}

    @field_validator("strategy", mode="before")
    @classmethod
    def validate_strategy(cls, v):  # noqa: B902
        return parse_strategy(v)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **overrides) -> "RefinementConfig":
        settings = settings or get_settings()
        values = {name: getattr(settings, name) for name in cls.model_fields}
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
