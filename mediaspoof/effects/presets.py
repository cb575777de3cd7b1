"""Intensity presets bounding the randomized spoof effects."""

from dataclasses import dataclass
from typing import Dict, Tuple, Union

from ..models import Intensity


@dataclass(frozen=True)
class IntensityRange:
    """Bounds for one intensity tier.

    Symmetric fields (rotation, brightness, hue) hold the half-width of the
    range around zero; contrast and saturation hold absolute percent bounds.
    """
    name: str
    description: str

    rotation: float  # +/- degrees
    brightness: float  # +/- percent
    contrast: Tuple[float, float]  # percent
    saturation: Tuple[float, float]  # percent
    hue: float  # +/- degrees


# Scale is independent of the tier
SCALE_RANGE: Tuple[float, float] = (1.25, 1.35)

# Available intensity tiers
PRESETS: Dict[str, IntensityRange] = {
    "light": IntensityRange(
        name="light",
        description="Barely visible changes",
        rotation=1,
        brightness=3,
        contrast=(98, 102),
        saturation=(99, 105),
        hue=3,
    ),
    "medium": IntensityRange(
        name="medium",
        description="Balanced changes (default)",
        rotation=3,
        brightness=6,
        contrast=(95, 105),
        saturation=(98, 108),
        hue=6,
    ),
    "heavy": IntensityRange(
        name="heavy",
        description="Strongest changes",
        rotation=5,
        brightness=10,
        contrast=(90, 110),
        saturation=(95, 115),
        hue=10,
    ),
}


def get_intensity_range(intensity: Union[Intensity, str, None]) -> IntensityRange:
    """Get the bounds for a tier, defaults to 'medium' if not found."""
    if isinstance(intensity, Intensity):
        intensity = intensity.value
    return PRESETS.get(intensity, PRESETS["medium"])
