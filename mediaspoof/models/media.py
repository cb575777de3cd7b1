"""Media-level value types: kinds, transform parameters, clips and tool results."""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field


class MediaKind(str, Enum):
    """Kind of media a file holds, derived from its extension."""
    IMAGE = "image"
    VIDEO = "video"
    UNKNOWN = "unknown"


IMAGE_EXTENSIONS = frozenset({
    ".jpg", ".jpeg", ".png", ".heic", ".webp", ".bmp", ".gif", ".tiff", ".tif",
    ".svg", ".ico", ".jfif", ".pjpeg", ".pjp", ".avif", ".jxl", ".raw", ".cr2",
    ".nef", ".arw", ".dng", ".orf", ".rw2", ".pef", ".srw", ".raf", ".mrw",
    ".kdc", ".dcr", ".x3f", ".mef", ".iiq", ".3fr", ".erf", ".mdc", ".mos",
    ".nrw", ".rwz", ".bay", ".crw", ".cs1", ".dc2", ".fff", ".hdr", ".k25",
    ".rwl", ".srf", ".sr2",
})

VIDEO_EXTENSIONS = frozenset({
    ".mp4", ".mov", ".avi", ".webm", ".ts", ".mkv", ".flv", ".wmv", ".m4v",
    ".3gp", ".3g2", ".3gp2", ".3gpp", ".3gpp2", ".ogv", ".mts", ".m2ts", ".vob",
    ".asf", ".rm", ".rmvb", ".divx", ".xvid", ".mpg", ".mpeg", ".mpe", ".m1v",
    ".m2v", ".mpv", ".mpv2", ".m2p", ".m2t", ".mxf", ".f4v", ".f4p", ".ogm",
    ".ogx", ".amv", ".dv", ".evo", ".hdmov", ".ivf", ".mod", ".nsv",
    ".nuv", ".tod", ".tp", ".trp", ".vp6", ".vro", ".wtv", ".wm",
})


def media_kind_for(path: Union[str, Path]) -> MediaKind:
    """Classify a path by its (case-insensitive) extension."""
    ext = Path(path).suffix.lower()
    if ext in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return MediaKind.UNKNOWN


class TransformParams(BaseModel):
    """One draw of randomized visual-effect values."""
    rotation: float  # degrees
    brightness: float  # percent, signed
    contrast: float  # percent
    saturation: float  # percent
    hue: float  # degrees
    scale: float


class Clip(BaseModel):
    """One planned segment of a video."""
    start: float = Field(ge=0)
    duration: float = Field(gt=0)
    number: int = Field(ge=1)

    @property
    def end(self) -> float:
        return self.start + self.duration


ClipPlan = List[Clip]


class TranscodeResult(BaseModel):
    """Outcome of one external tool invocation."""
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    interrupted: bool = False

    @property
    def ok(self) -> bool:
        return self.exit_code == 0 and not self.interrupted
