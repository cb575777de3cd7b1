"""Error taxonomy for the processing core.

Every error carries a ``user_message`` that is safe to show to end users.
Technical details (tool stderr, OS error text) stay in ``str(error)`` and
the logs.
"""

from typing import Optional


class MediaSpoofError(Exception):
    """Base class for all processing errors."""

    user_message = "Processing failed"

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message or self.user_message)
        if user_message is not None:
            self.user_message = user_message


class ProbeFailure(MediaSpoofError):
    """Duration probe failed. Never fatal, a default duration is used."""

    user_message = "Could not read media duration"


class TranscodeFailure(MediaSpoofError):
    """The transcoding tool exited abnormally."""

    user_message = "Processing failed"

    def __init__(self, message: str = "", stderr: str = "", exit_code: Optional[int] = None):
        super().__init__(message)
        self.stderr = stderr
        self.exit_code = exit_code


class InterruptedFailure(TranscodeFailure):
    """The tool was killed instead of exiting on its own (pause/stop artifact)."""

    user_message = "Processing interrupted"


class FilesystemFailure(MediaSpoofError):
    """A copy, mkdir or delete operation failed."""

    user_message = "File operation failed"


class UnsupportedMediaError(MediaSpoofError):
    """The file's extension maps to neither image nor video."""

    user_message = "Unsupported file type"


class ExhaustedRetries(MediaSpoofError):
    """A unit failed on every allowed attempt."""

    def __init__(self, last_error: Exception, attempts: int):
        super().__init__(f"Failed after {attempts} attempts: {last_error}")
        self.last_error = last_error
        self.attempts = attempts
        self.user_message = getattr(last_error, "user_message", MediaSpoofError.user_message)


class JobStateError(MediaSpoofError):
    """A control operation was issued in a state that does not allow it."""

    user_message = "Invalid job state"
