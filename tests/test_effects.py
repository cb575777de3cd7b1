"""Tests for effect presets, parameter generation and filter strings."""

import random

import pytest

from mediaspoof.effects import (
    PRESETS,
    SCALE_RANGE,
    generate_transform_params,
    get_intensity_range,
    join_filters,
    spoof_filter,
    watermark_filter,
)
from mediaspoof.effects.filters import escape_drawtext, ffmpeg_color
from mediaspoof.models import Intensity, TransformParams, WatermarkSettings


def test_get_intensity_range():
    """Test preset retrieval."""
    bounds = get_intensity_range("heavy")
    assert bounds.name == "heavy"
    assert bounds.rotation == 5

    assert get_intensity_range(Intensity.LIGHT).name == "light"

    # Unknown tiers fall back to medium
    assert get_intensity_range("extreme").name == "medium"
    assert get_intensity_range(None).name == "medium"


@pytest.mark.parametrize("tier", sorted(PRESETS))
def test_generated_params_stay_in_range(tier):
    """Every drawn value lies inside the tier's bounds."""
    bounds = PRESETS[tier]
    rng = random.Random(1234)
    for _ in range(1000):
        params = generate_transform_params(tier, rng)
        assert -bounds.rotation <= params.rotation <= bounds.rotation
        assert -bounds.brightness <= params.brightness <= bounds.brightness
        assert bounds.contrast[0] <= params.contrast <= bounds.contrast[1]
        assert bounds.saturation[0] <= params.saturation <= bounds.saturation[1]
        assert -bounds.hue <= params.hue <= bounds.hue
        assert SCALE_RANGE[0] <= params.scale <= SCALE_RANGE[1]


def test_unknown_intensity_uses_medium_ranges():
    medium = PRESETS["medium"]
    rng = random.Random(7)
    for _ in range(200):
        params = generate_transform_params("bogus", rng)
        assert abs(params.rotation) <= medium.rotation
        assert medium.contrast[0] <= params.contrast <= medium.contrast[1]


def test_draws_are_fresh():
    """Two draws never share the same values."""
    first = generate_transform_params(Intensity.MEDIUM)
    second = generate_transform_params(Intensity.MEDIUM)
    assert first != second


class TestSpoofFilter:
    """Filter chain construction."""

    def test_filter_order(self):
        params = TransformParams(rotation=2.5, brightness=-4, contrast=103, saturation=101, hue=-3, scale=1.3)
        vf = spoof_filter(params)

        stages = [stage.split("=", 1)[0] for stage in vf.split(",")]
        assert stages == ["scale", "rotate", "crop", "eq", "hue"]

    def test_filter_values(self):
        params = TransformParams(rotation=2.5, brightness=-4, contrast=103, saturation=101, hue=-3, scale=1.3)
        vf = spoof_filter(params)

        assert "scale=iw*1.3:ih*1.3" in vf
        assert "rotate=2.5*PI/180" in vf
        assert "crop=iw*0.85:ih*0.85" in vf
        assert "eq=brightness=-0.04:contrast=1.03:saturation=1.01" in vf
        assert vf.endswith("hue=h=-3")


class TestWatermarkFilter:
    """drawtext overlay construction."""

    def test_disabled_watermark_is_empty(self):
        assert watermark_filter(WatermarkSettings()) == ""
        assert watermark_filter(WatermarkSettings(enabled=True, text="")) == ""
        assert watermark_filter(None) == ""

    def test_enabled_watermark(self):
        wm = WatermarkSettings(enabled=True, text="hello", size=30, position="top-left", color="#FF0000", opacity=50)
        vf = watermark_filter(wm)

        assert vf.startswith("drawtext=text='hello'")
        assert "fontsize=30" in vf
        assert "fontcolor=0xff0000@0.5" in vf
        assert "x=16:y=16" in vf
        assert "box=1" not in vf

    def test_background_box(self):
        wm = WatermarkSettings(enabled=True, text="hi", background_enabled=True, background_color="#112233")
        assert "box=1:boxcolor=0x112233@0.8" in watermark_filter(wm)

    def test_unknown_position_centers(self):
        wm = WatermarkSettings(enabled=True, text="hi", position="somewhere")
        assert "x=(w-text_w)/2:y=(h-text_h)/2" in watermark_filter(wm)

    def test_escaping(self):
        assert escape_drawtext("it's 10:30") == "it\\'s 10\\:30"

    def test_invalid_color_is_white(self):
        assert ffmpeg_color("not-a-color") == "0xffffff"
        assert ffmpeg_color("abcdef") == "0xabcdef"


def test_join_filters_skips_empty():
    assert join_filters("a=1", "", "b=2") == "a=1,b=2"
    assert join_filters("", "") == ""
