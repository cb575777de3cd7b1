"""Data models for MediaSpoof."""

from .job import FileStatus, FileTask, Job, JobState, JobSummary, UnitFailure
from .media import (
    Clip,
    ClipPlan,
    MediaKind,
    TranscodeResult,
    TransformParams,
    media_kind_for,
)
from .settings import (
    ClipLengthPolicy,
    Intensity,
    ProcessingMode,
    ProcessingSettings,
    Quality,
    WatermarkSettings,
)

__all__ = [
    "Clip",
    "ClipLengthPolicy",
    "ClipPlan",
    "FileStatus",
    "FileTask",
    "Intensity",
    "Job",
    "JobState",
    "JobSummary",
    "MediaKind",
    "ProcessingMode",
    "ProcessingSettings",
    "Quality",
    "TranscodeResult",
    "TransformParams",
    "UnitFailure",
    "WatermarkSettings",
    "media_kind_for",
]
