"""Randomized visual effects for MediaSpoof."""

from .filters import join_filters, spoof_filter, watermark_filter
from .params import generate_transform_params
from .presets import PRESETS, SCALE_RANGE, IntensityRange, get_intensity_range

__all__ = [
    "generate_transform_params",
    "spoof_filter",
    "watermark_filter",
    "join_filters",
    "IntensityRange",
    "PRESETS",
    "SCALE_RANGE",
    "get_intensity_range",
]
