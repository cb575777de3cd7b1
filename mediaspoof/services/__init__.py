"""Processing services for MediaSpoof."""

from .executor import ExecutionContext, FileTaskExecutor, UnitResult
from .orchestrator import BatchEvent, BatchOrchestrator, ControlToken, JobCallbacks, JobEvent
from .storage import LocalStorage, collect_media_files, default_output_root
from .transcoder import Transcoder

__all__ = [
    "BatchEvent",
    "BatchOrchestrator",
    "ControlToken",
    "ExecutionContext",
    "FileTaskExecutor",
    "JobCallbacks",
    "JobEvent",
    "LocalStorage",
    "Transcoder",
    "UnitResult",
    "collect_media_files",
    "default_output_root",
]
