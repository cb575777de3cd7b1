"""Argument lists for ffmpeg and ffprobe invocations.

Every ffmpeg command overwrites its output (``-y``) and strips source
metadata (``-map_metadata -1``).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..effects import join_filters, spoof_filter, watermark_filter
from ..models import Clip, ProcessingSettings, Quality, TransformParams

PathLike = Union[str, Path]

AUDIO_BITRATE = "128k"
STRIP_METADATA = ["-map_metadata", "-1"]
PIXEL_FORMAT_FILTER = "format=yuv420p"
PIXEL_FORMAT = ["-pix_fmt", "yuv420p"]


@dataclass(frozen=True)
class QualityPreset:
    """Encoder settings for one quality level."""
    crf: int
    preset: str
    webm_crf: int
    jpg_quality: int  # 1-31, lower is better
    webp_quality: int  # 0-100, higher is better


QUALITY_PRESETS: Dict[str, QualityPreset] = {
    "lossless": QualityPreset(crf=18, preset="veryslow", webm_crf=20, jpg_quality=1, webp_quality=100),
    "ultra": QualityPreset(crf=20, preset="slow", webm_crf=22, jpg_quality=2, webp_quality=95),
    "high": QualityPreset(crf=23, preset="fast", webm_crf=25, jpg_quality=3, webp_quality=90),
    "medium": QualityPreset(crf=26, preset="fast", webm_crf=28, jpg_quality=5, webp_quality=80),
    "small": QualityPreset(crf=30, preset="fast", webm_crf=32, jpg_quality=8, webp_quality=70),
}

# Qualities that always require a re-encode, even without a container change
COMPRESSING_QUALITIES = {Quality.MEDIUM, Quality.SMALL}

# Containers that need an explicit muxer
_CONTAINER_FORMATS = {".mov": "mov", ".avi": "avi", ".mkv": "matroska"}


def get_quality_preset(quality: Union[Quality, str, None]) -> QualityPreset:
    """Get a quality preset by name, defaults to 'high' if not found."""
    if isinstance(quality, Quality):
        quality = quality.value
    return QUALITY_PRESETS.get(quality, QUALITY_PRESETS["high"])


def _ext(path: PathLike) -> str:
    return Path(path).suffix.lower()


def _seconds(value: float) -> str:
    return f"{value:.3f}"


def needs_format_conversion(input_path: PathLike, output_path: PathLike) -> bool:
    return _ext(input_path) != _ext(output_path)


def video_codec_args(output_path: PathLike, quality: QualityPreset) -> List[str]:
    """Video encoder arguments for the output container."""
    ext = _ext(output_path)
    if ext == ".webm":
        return ["-c:v", "libvpx-vp9", "-crf", str(quality.webm_crf), "-b:v", "0"]
    args = ["-c:v", "libx264", "-preset", quality.preset, "-crf", str(quality.crf)]
    if ext in _CONTAINER_FORMATS:
        args += ["-f", _CONTAINER_FORMATS[ext]]
    elif ext == ".mp4":
        args += ["-movflags", "+faststart"]
    return args


def audio_codec_args(output_path: PathLike, remove_audio: bool) -> List[str]:
    """Re-encoded audio at a fixed bitrate, or no audio at all."""
    if remove_audio:
        return ["-an"]
    codec = "libopus" if _ext(output_path) == ".webm" else "aac"
    return ["-c:a", codec, "-b:a", AUDIO_BITRATE]


def image_quality_args(output_path: PathLike, quality: QualityPreset) -> List[str]:
    ext = _ext(output_path)
    if ext in (".jpg", ".jpeg"):
        return ["-q:v", str(quality.jpg_quality)]
    if ext == ".webp":
        return ["-quality", str(quality.webp_quality)]
    return []


def _video_filter(input_path: PathLike, output_path: PathLike, *filters: str) -> str:
    chain = join_filters(*filters)
    if needs_format_conversion(input_path, output_path) or _ext(input_path) == ".mov":
        chain = join_filters(chain, PIXEL_FORMAT_FILTER)
    return chain


def _input_args(input_path: PathLike, clip: Optional[Clip]) -> List[str]:
    if clip is None:
        return ["-i", str(input_path)]
    return [
        "-ss", _seconds(clip.start),
        "-i", str(input_path),
        "-t", _seconds(clip.duration),
    ]


def build_image_spoof_args(
    input_path: PathLike,
    output_path: PathLike,
    params: TransformParams,
    settings: ProcessingSettings,
) -> List[str]:
    """Apply one set of effects to an image."""
    vf = join_filters(spoof_filter(params), watermark_filter(settings.watermark))
    return [
        "-y",
        "-i", str(input_path),
        "-vf", vf,
        *PIXEL_FORMAT,
        *STRIP_METADATA,
        *image_quality_args(output_path, get_quality_preset(settings.image_quality)),
        str(output_path),
    ]


def build_video_spoof_args(
    input_path: PathLike,
    output_path: PathLike,
    params: TransformParams,
    settings: ProcessingSettings,
    clip: Optional[Clip] = None,
) -> List[str]:
    """Apply one set of effects to a whole video, or to one clip of it."""
    vf = _video_filter(input_path, output_path, spoof_filter(params), watermark_filter(settings.watermark))
    return [
        "-y",
        *_input_args(input_path, clip),
        "-vf", vf,
        *STRIP_METADATA,
        *video_codec_args(output_path, get_quality_preset(settings.video_quality)),
        *audio_codec_args(output_path, settings.remove_audio),
        str(output_path),
    ]


def build_clip_extract_args(
    input_path: PathLike,
    output_path: PathLike,
    settings: ProcessingSettings,
    clip: Optional[Clip] = None,
) -> List[str]:
    """Extract a clip (or the whole video) without effects.

    Streams are copied; audio is dropped when requested. A watermark or a
    container change forces a re-encode.
    """
    args = ["-y", *_input_args(input_path, clip), *STRIP_METADATA]
    overlay = watermark_filter(settings.watermark)
    if overlay or needs_format_conversion(input_path, output_path):
        vf = _video_filter(input_path, output_path, overlay)
        if vf:
            args += ["-vf", vf]
        args += [
            *video_codec_args(output_path, get_quality_preset(settings.video_quality)),
            *audio_codec_args(output_path, settings.remove_audio),
        ]
    else:
        args += ["-c:v", "copy"]
        args += ["-an"] if settings.remove_audio else ["-c:a", "copy"]
    args.append(str(output_path))
    return args


def build_image_convert_args(
    input_path: PathLike,
    output_path: PathLike,
    settings: ProcessingSettings,
) -> List[str]:
    """Convert an image without randomized effects."""
    args = ["-y", "-i", str(input_path), *PIXEL_FORMAT, *STRIP_METADATA]
    overlay = watermark_filter(settings.watermark)
    if overlay:
        args += ["-vf", overlay]
    args += image_quality_args(output_path, get_quality_preset(settings.image_quality))
    args.append(str(output_path))
    return args


def needs_video_reencode(input_path: PathLike, output_path: PathLike, settings: ProcessingSettings) -> bool:
    """Whether a plain conversion can get away with copying streams."""
    if needs_format_conversion(input_path, output_path):
        return True
    if settings.watermark.active:
        return True
    return settings.video_quality in COMPRESSING_QUALITIES


def build_video_convert_args(
    input_path: PathLike,
    output_path: PathLike,
    settings: ProcessingSettings,
) -> List[str]:
    """Convert a video without randomized effects or segmentation."""
    args = ["-y", "-i", str(input_path), *STRIP_METADATA]
    if needs_video_reencode(input_path, output_path, settings):
        vf = _video_filter(input_path, output_path, watermark_filter(settings.watermark))
        if vf:
            args += ["-vf", vf]
        args += video_codec_args(output_path, get_quality_preset(settings.video_quality))
        args += audio_codec_args(output_path, settings.remove_audio)
    else:
        args += ["-c:v", "copy"]
        args += ["-an"] if settings.remove_audio else ["-c:a", "copy"]
    args.append(str(output_path))
    return args


def build_probe_args(path: PathLike) -> List[str]:
    """ffprobe arguments printing the container duration as a bare float."""
    return [
        "-v", "quiet",
        "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1",
        str(path),
    ]
