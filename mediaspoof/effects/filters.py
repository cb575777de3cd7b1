"""ffmpeg filter graph construction."""

import re
from typing import Optional

from ..models import TransformParams, WatermarkSettings

CROP_FACTOR = 0.85

_HEX_COLOR = re.compile(r"^#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})$", re.IGNORECASE)

WATERMARK_POSITIONS = {
    "top-left": "x=16:y=16",
    "top-center": "x=(w-text_w)/2:y=16",
    "top-right": "x=w-text_w-16:y=16",
    "middle-left": "x=16:y=(h-text_h)/2",
    "center": "x=(w-text_w)/2:y=(h-text_h)/2",
    "middle-right": "x=w-text_w-16:y=(h-text_h)/2",
    "bottom-left": "x=16:y=h-text_h-16",
    "bottom-center": "x=(w-text_w)/2:y=h-text_h-16",
    "bottom-right": "x=w-text_w-16:y=h-text_h-16",
}


def _num(value: float) -> str:
    return f"{value:.4f}".rstrip("0").rstrip(".") or "0"


def spoof_filter(params: TransformParams) -> str:
    """Filter chain for one spoof operation.

    Order matters: scale and rotate first, then crop away the rotation
    borders, then the colour adjustments.
    """
    return ",".join([
        f"scale=iw*{_num(params.scale)}:ih*{_num(params.scale)}",
        f"rotate={_num(params.rotation)}*PI/180",
        f"crop=iw*{CROP_FACTOR}:ih*{CROP_FACTOR}",
        "eq=brightness={}:contrast={}:saturation={}".format(
            _num(params.brightness / 100),
            _num(params.contrast / 100),
            _num(params.saturation / 100),
        ),
        f"hue=h={_num(params.hue)}",
    ])


def ffmpeg_color(value: str) -> str:
    """Convert ``#rrggbb`` to ffmpeg's ``0xRRGGBB``; invalid input becomes white."""
    match = _HEX_COLOR.match(value.strip())
    if not match:
        return "0xffffff"
    return "0x" + "".join(match.groups()).lower()


def escape_drawtext(text: str) -> str:
    return text.replace("\\", "\\\\").replace("'", "\\'").replace(":", "\\:")


def watermark_filter(watermark: Optional[WatermarkSettings]) -> str:
    """``drawtext`` filter for the watermark, or an empty string when disabled."""
    if watermark is None or not watermark.active:
        return ""

    position = WATERMARK_POSITIONS.get(watermark.position, WATERMARK_POSITIONS["center"])
    parts = [
        f"drawtext=text='{escape_drawtext(watermark.text)}'",
        f"fontsize={watermark.size}",
        f"fontcolor={ffmpeg_color(watermark.color)}@{_num(watermark.opacity / 100)}",
        position,
    ]
    if watermark.background_enabled:
        parts.append(
            f"box=1:boxcolor={ffmpeg_color(watermark.background_color)}@{_num(watermark.opacity / 100)}:boxborderw=5"
        )
    return ":".join(parts)


def join_filters(*filters: str) -> str:
    return ",".join(f for f in filters if f)
