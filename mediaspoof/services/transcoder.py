"""Transcode invoker.

Runs ffmpeg/ffprobe as subprocesses, one at a time, and classifies the
outcome. The only blocking points are the awaits on the child process.
"""

import asyncio
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional

from ..config import Settings, settings
from ..errors import InterruptedFailure, ProbeFailure, TranscodeFailure
from ..models import TranscodeResult
from .commands import build_probe_args

logger = logging.getLogger("mediaspoof.transcoder")

# Stderr tail kept in exceptions and log lines
STDERR_TAIL = 2000


class Transcoder:
    """Async wrapper around the external transcoding tool."""

    def __init__(self, config: Optional[Settings] = None):
        """Initialize with tool paths from the given (or global) settings."""
        config = config or settings
        self.ffmpeg_path = config.ffmpeg_path
        self.ffprobe_path = config.ffprobe_path
        self.probe_default_duration = config.probe_default_duration

        self._process: Optional[asyncio.subprocess.Process] = None
        self._terminate_requested = False
        self._halted = False
        self._duration_cache: Dict[str, float] = {}

    @property
    def busy(self) -> bool:
        return self._process is not None

    async def run(self, argv: List[str], tool: Optional[str] = None) -> TranscodeResult:
        """Run the tool with ``argv`` and wait for it to exit.

        Never raises for a non-zero exit; see :meth:`check`.

        Args:
            argv: Arguments passed after the executable
            tool: Executable to run, defaults to the configured ffmpeg

        Returns:
            Exit code, decoded output and whether the process was interrupted

        Raises:
            InterruptedFailure: the transcoder is halted; nothing is spawned
            TranscodeFailure: the executable could not be started
        """
        if self._halted:
            raise InterruptedFailure("Transcoder halted, refusing new work")

        executable = tool or self.ffmpeg_path
        logger.debug(f"Running {executable} {' '.join(argv)}")

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as e:
            raise TranscodeFailure(f"Transcoding tool not found: {executable}") from e
        except OSError as e:
            raise TranscodeFailure(f"Failed to start {executable}: {e}") from e

        self._process = process
        self._terminate_requested = False
        if self._halted:
            # Halted while the process was starting
            self.terminate()
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            _kill_quietly(process)
            raise
        finally:
            self._process = None

        exit_code = process.returncode
        interrupted = exit_code is None or exit_code < 0 or self._terminate_requested
        return TranscodeResult(
            exit_code=exit_code,
            stdout=(stdout or b"").decode("utf-8", "replace"),
            stderr=(stderr or b"").decode("utf-8", "replace"),
            interrupted=interrupted,
        )

    @staticmethod
    def check(result: TranscodeResult) -> TranscodeResult:
        """Raise the matching failure unless the result is a clean exit."""
        if result.interrupted:
            raise InterruptedFailure(
                f"Process terminated without exiting (code {result.exit_code})",
                stderr=result.stderr[-STDERR_TAIL:],
                exit_code=result.exit_code,
            )
        if result.exit_code != 0:
            raise TranscodeFailure(
                f"Process exited with code {result.exit_code}",
                stderr=result.stderr[-STDERR_TAIL:],
                exit_code=result.exit_code,
            )
        return result

    async def transcode(self, argv: List[str]) -> TranscodeResult:
        """Run ffmpeg and require success."""
        result = self.check(await self.run(argv))
        logger.debug(f"ffmpeg finished: {argv[-1] if argv else ''}")
        return result

    def terminate(self) -> bool:
        """Send a termination signal to the in-flight process, if any."""
        process = self._process
        if process is None or process.returncode is not None:
            return False
        self._terminate_requested = True
        try:
            process.terminate()
        except ProcessLookupError:
            return False
        logger.info(f"Sent terminate to transcoder pid {process.pid}")
        return True

    def halt(self):
        """Terminate the in-flight process and refuse new work until reset."""
        self._halted = True
        self.terminate()

    def reset(self):
        """Accept work again and forget cached probe results."""
        self._halted = False
        self.clear_cache()

    def clear_cache(self):
        self._duration_cache.clear()

    async def _probe(self, path: Path) -> float:
        try:
            result = await self.run(build_probe_args(path), tool=self.ffprobe_path)
        except InterruptedFailure:
            raise
        except TranscodeFailure as e:
            raise ProbeFailure(str(e)) from e
        if result.interrupted:
            raise InterruptedFailure("Duration probe interrupted", exit_code=result.exit_code)
        if result.exit_code != 0:
            raise ProbeFailure(f"ffprobe exited with code {result.exit_code}: {result.stderr.strip()[-200:]}")
        try:
            duration = float(result.stdout.strip().splitlines()[0])
        except (ValueError, IndexError) as e:
            raise ProbeFailure(f"Unparseable duration output {result.stdout!r}") from e
        if not math.isfinite(duration) or duration <= 0:
            raise ProbeFailure(f"Invalid duration {duration}")
        return duration

    async def probe_duration(self, path: Path) -> float:
        """Duration of a media file in seconds.

        Falls back to the configured default when probing fails so that
        segmentation still engages for videos of unknown length.
        """
        key = str(Path(path).resolve())
        if key in self._duration_cache:
            return self._duration_cache[key]

        try:
            duration = await self._probe(Path(path))
        except ProbeFailure as e:
            logger.warning(
                f"Duration probe failed for {path}, assuming {self.probe_default_duration:.0f}s: {e}"
            )
            duration = self.probe_default_duration

        self._duration_cache[key] = duration
        return duration


def _kill_quietly(process: asyncio.subprocess.Process):
    try:
        process.kill()
    except ProcessLookupError:
        pass
