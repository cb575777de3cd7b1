"""Randomized transform parameter generation."""

import random
from typing import Optional, Union

from ..models import Intensity, TransformParams
from .presets import SCALE_RANGE, get_intensity_range


def _symmetric(rng: random.Random, half_width: float) -> float:
    return rng.uniform(-half_width, half_width)


def generate_transform_params(
    intensity: Union[Intensity, str, None],
    rng: Optional[random.Random] = None,
) -> TransformParams:
    """Draw a fresh set of effect values for the given tier.

    Each field is drawn independently and uniformly from its range. Callers
    must not reuse the result across files, batches or clips.
    """
    rng = rng or random
    bounds = get_intensity_range(intensity)
    return TransformParams(
        rotation=_symmetric(rng, bounds.rotation),
        brightness=_symmetric(rng, bounds.brightness),
        contrast=rng.uniform(*bounds.contrast),
        saturation=rng.uniform(*bounds.saturation),
        hue=_symmetric(rng, bounds.hue),
        scale=rng.uniform(*SCALE_RANGE),
    )
