"""Job models for batch processing."""

import os
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .media import MediaKind, media_kind_for
from .settings import ProcessingSettings


class FileStatus(str, Enum):
    """Status of one file within a running job.

    Besides these members a file may carry ``batch-N-complete`` between
    batches, built with :meth:`batch_complete`.
    """
    READY = "ready"
    WAITING = "waiting"
    PROCESSING = "processing"
    PAUSED = "paused"
    COMPLETE = "complete"
    FAILED = "failed"

    @staticmethod
    def batch_complete(batch: int) -> str:
        return f"batch-{batch}-complete"


class JobState(str, Enum):
    """Lifecycle state of a job."""
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    STOPPED = "stopped"

    @property
    def terminal(self) -> bool:
        return self in (JobState.COMPLETED, JobState.STOPPED)


class FileTask(BaseModel):
    """One input file within a job."""
    path: Path
    kind: MediaKind
    name: str
    size: int = 0

    progress: float = 0.0  # 0-100
    status: str = FileStatus.READY
    error: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "FileTask":
        """Build a task for a file, deriving its kind, name and size."""
        path = Path(os.path.abspath(path))
        try:
            size = path.stat().st_size
        except OSError:
            size = 0
        return cls(path=path, kind=media_kind_for(path), name=path.name, size=size)

    @property
    def stem(self) -> str:
        return self.path.stem

    @property
    def extension(self) -> str:
        return self.path.suffix


class UnitFailure(BaseModel):
    """A (file, batch) unit that did not produce output."""
    file_index: int
    file_name: str
    batch: int
    message: str  # user-facing
    category: str
    attempts: int = 1


class Job(BaseModel):
    """Everything one start action works on. Owned by the orchestrator."""
    tasks: List[FileTask]
    settings: ProcessingSettings = Field(default_factory=ProcessingSettings)
    output_root: Path

    state: JobState = JobState.IDLE
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    current_batch: int = 0
    output_count: int = 0
    processed_count: int = 0
    failures: List[UnitFailure] = Field(default_factory=list)
    interrupted: List[UnitFailure] = Field(default_factory=list)

    @property
    def batch_count(self) -> int:
        return self.settings.batch_count

    def reset(self):
        """Clear counters and per-file state ahead of a run."""
        self.current_batch = 0
        self.output_count = 0
        self.processed_count = 0
        self.failures = []
        self.interrupted = []
        self.started_at = None
        self.completed_at = None
        for task in self.tasks:
            task.progress = 0.0
            task.status = FileStatus.WAITING
            task.error = None


class JobSummary(BaseModel):
    """Aggregate outcome reported when a job ends."""
    state: JobState
    output_root: Path
    output_count: int
    processed_count: int
    succeeded_files: List[str]
    failed_files: List[str]
    failures: List[UnitFailure]
    interrupted: List[UnitFailure]
    elapsed_seconds: float

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "state": "completed",
                "output_root": "/home/user/Videos/MediaSpoofer_Output",
                "output_count": 6,
                "processed_count": 3,
                "succeeded_files": ["a.mp4", "b.mp4", "c.jpg"],
                "failed_files": [],
                "failures": [],
                "interrupted": [],
                "elapsed_seconds": 42.5,
            }
        }
    )
