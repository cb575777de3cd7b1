"""Per-job processing settings."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ProcessingMode(str, Enum):
    """What to do with each file."""
    SPOOF_SPLIT = "spoof-split"
    SPOOF_ONLY = "spoof-only"
    SPLIT_ONLY = "split-only"
    CONVERT_ONLY = "convert-only"


class Intensity(str, Enum):
    """Magnitude tier for randomized effects."""
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"


class ClipLengthPolicy(str, Enum):
    """Clip length used when splitting videos."""
    RANDOM_6_8 = "6-8"
    FIXED_8 = "8"
    FIXED_10 = "10"
    FIXED_15 = "15"


class Quality(str, Enum):
    """Encoder quality preset."""
    LOSSLESS = "lossless"
    ULTRA = "ultra"
    HIGH = "high"
    MEDIUM = "medium"
    SMALL = "small"


class WatermarkSettings(BaseModel):
    """Optional text watermark burned into every output."""
    model_config = ConfigDict(frozen=True)

    enabled: bool = False
    text: str = ""
    size: int = Field(default=24, gt=0)
    position: str = "bottom-right"
    color: str = "#ffffff"
    opacity: int = Field(default=80, ge=0, le=100)
    background_enabled: bool = False
    background_color: str = "#000000"

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.text)


class ProcessingSettings(BaseModel):
    """Immutable settings snapshot captured when a job starts."""
    model_config = ConfigDict(frozen=True)

    mode: ProcessingMode = ProcessingMode.SPOOF_ONLY
    intensity: Intensity = Intensity.MEDIUM
    duplicates: int = Field(default=1, ge=1)
    remove_audio: bool = False
    clip_length: ClipLengthPolicy = ClipLengthPolicy.RANDOM_6_8
    naming_pattern: str = "{word}_{number}"

    # Format overrides per media kind; None keeps the source extension
    image_format: Optional[str] = None
    video_format: Optional[str] = None

    image_quality: Quality = Quality.HIGH
    video_quality: Quality = Quality.HIGH
    watermark: WatermarkSettings = Field(default_factory=WatermarkSettings)

    @model_validator(mode="before")
    @classmethod
    def _single_batch_for_convert(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("mode") in (ProcessingMode.CONVERT_ONLY, "convert-only"):
            data = {**data, "duplicates": 1}
        return data

    @field_validator("image_format", "video_format")
    @classmethod
    def _normalize_format(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lower()
        if not value or value in ("original", ".original"):
            return None
        return value if value.startswith(".") else f".{value}"

    @property
    def batch_count(self) -> int:
        return self.duplicates
