"""File task executor.

Runs one (file, batch) unit: picks the strategy for the job's mode, plans
clips and draws effects as needed, and drives the transcoder. Anything the
failed attempt wrote is deleted before the error propagates.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional

from ..effects import generate_transform_params
from ..errors import FilesystemFailure, UnsupportedMediaError
from ..models import Clip, FileTask, MediaKind, ProcessingMode, ProcessingSettings
from .clips import plan_clips
from .commands import (
    build_clip_extract_args,
    build_image_convert_args,
    build_image_spoof_args,
    build_video_convert_args,
    build_video_spoof_args,
    needs_format_conversion,
)
from .naming import resolve_output_path
from .storage import LocalStorage
from .transcoder import Transcoder

logger = logging.getLogger("mediaspoof.executor")

ProgressCallback = Callable[[float], None]


@dataclass
class ExecutionContext:
    """Where and how one unit writes its output."""
    output_dir: Path
    settings: ProcessingSettings
    sequence: int
    batch_index: int = 1
    on_progress: Optional[ProgressCallback] = None
    outputs: List[Path] = field(default_factory=list)

    def report(self, fraction: float):
        """Report unit progress as a fraction in [0, 1]."""
        if self.on_progress is not None:
            self.on_progress(max(0.0, min(1.0, fraction)))

    def output_path(self, task: FileTask, clip: Optional[Clip] = None) -> Path:
        """Resolve the next output path and remember it for cleanup."""
        path = resolve_output_path(
            task,
            self.output_dir,
            self.settings,
            self.sequence,
            batch_index=self.batch_index,
            clip_number=clip.number if clip is not None else None,
        )
        self.outputs.append(path)
        return path


@dataclass
class UnitResult:
    """Outputs produced by one successful unit."""
    task: FileTask
    outputs: List[Path]


class Strategy:
    """Processing for one mode."""

    mode: ProcessingMode

    def __init__(self, executor: "FileTaskExecutor"):
        self.executor = executor

    async def execute(self, task: FileTask, context: ExecutionContext):
        raise NotImplementedError


class SpoofOnlyStrategy(Strategy):
    """Effects once, whatever the media kind or length."""

    mode = ProcessingMode.SPOOF_ONLY

    async def execute(self, task: FileTask, context: ExecutionContext):
        await self.executor.spoof(task, context)


class SpoofSplitStrategy(Strategy):
    """Long videos are split and each clip gets its own effects."""

    mode = ProcessingMode.SPOOF_SPLIT

    async def execute(self, task: FileTask, context: ExecutionContext):
        if task.kind == MediaKind.VIDEO:
            clips = await self.executor.plan(task, context)
            if clips:
                await self.executor.split(task, context, clips, apply_spoof=True)
                return
        await self.executor.spoof(task, context)


class SplitOnlyStrategy(Strategy):
    """Long videos are split verbatim, everything else is copied."""

    mode = ProcessingMode.SPLIT_ONLY

    async def execute(self, task: FileTask, context: ExecutionContext):
        if task.kind == MediaKind.VIDEO:
            clips = await self.executor.plan(task, context)
            if clips:
                await self.executor.split(task, context, clips, apply_spoof=False)
                return
        await self.executor.copy(task, context)


class ConvertOnlyStrategy(Strategy):
    """Plain re-encode or format change, no effects, no splitting."""

    mode = ProcessingMode.CONVERT_ONLY

    async def execute(self, task: FileTask, context: ExecutionContext):
        await self.executor.convert(task, context)


STRATEGY_TYPES = (SpoofOnlyStrategy, SpoofSplitStrategy, SplitOnlyStrategy, ConvertOnlyStrategy)


class FileTaskExecutor:
    """Executes single units of work against the transcoder and filesystem."""

    def __init__(self, transcoder: Transcoder, storage: Optional[LocalStorage] = None):
        self.transcoder = transcoder
        self.storage = storage or LocalStorage()
        self.strategies: Dict[ProcessingMode, Strategy] = {
            strategy_type.mode: strategy_type(self) for strategy_type in STRATEGY_TYPES
        }

    async def execute(self, task: FileTask, context: ExecutionContext) -> UnitResult:
        """Process one file for one batch.

        Args:
            task: File to process
            context: Output directory, settings, naming sequence and progress hook

        Returns:
            The unit's output paths

        Raises:
            UnsupportedMediaError: the file is neither image nor video
            TranscodeFailure: the tool failed (InterruptedFailure if killed)
            FilesystemFailure: a copy or mkdir failed
        """
        if task.kind == MediaKind.UNKNOWN:
            raise UnsupportedMediaError(f"Unsupported file type: {task.name}")

        strategy = self.strategies[context.settings.mode]
        logger.info(
            f"Processing {task.name} ({task.kind.value}, batch {context.batch_index}) "
            f"with {strategy.mode.value}"
        )
        context.report(0.1)

        try:
            await strategy.execute(task, context)
        except (Exception, asyncio.CancelledError):
            self.cleanup(context.outputs)
            raise

        context.report(1.0)
        return UnitResult(task=task, outputs=list(context.outputs))

    async def plan(self, task: FileTask, context: ExecutionContext) -> List[Clip]:
        duration = await self.transcoder.probe_duration(task.path)
        clips = plan_clips(duration, context.settings.clip_length)
        if clips:
            lengths = ", ".join(f"{c.duration:.1f}s" for c in clips)
            logger.info(f"Splitting {task.name} ({duration:.2f}s) into {len(clips)} clips: {lengths}")
        return clips

    async def spoof(self, task: FileTask, context: ExecutionContext):
        settings = context.settings
        output = context.output_path(task)
        params = generate_transform_params(settings.intensity)
        context.report(0.3)

        if task.kind == MediaKind.IMAGE:
            argv = build_image_spoof_args(task.path, output, params, settings)
        else:
            argv = build_video_spoof_args(task.path, output, params, settings)
        await self.transcoder.transcode(argv)
        context.report(0.9)

    async def split(self, task: FileTask, context: ExecutionContext, clips: List[Clip], apply_spoof: bool):
        settings = context.settings
        for index, clip in enumerate(clips):
            context.report(0.1 + 0.8 * index / len(clips))
            output = context.output_path(task, clip)
            if apply_spoof:
                # Fresh effects for every clip
                params = generate_transform_params(settings.intensity)
                argv = build_video_spoof_args(task.path, output, params, settings, clip=clip)
            else:
                argv = build_clip_extract_args(task.path, output, settings, clip=clip)
            logger.debug(f"Clip {clip.number}: {clip.start:.1f}s to {clip.end:.1f}s ({clip.duration:.1f}s)")
            await self.transcoder.transcode(argv)

    async def copy(self, task: FileTask, context: ExecutionContext):
        settings = context.settings
        output = context.output_path(task)
        context.report(0.3)

        if needs_format_conversion(task.path, output):
            # Format override: convert instead of copying bytes
            await self.transcoder.transcode(self._convert_args(task, output, settings))
        elif task.kind == MediaKind.VIDEO and (settings.remove_audio or settings.watermark.active):
            await self.transcoder.transcode(build_clip_extract_args(task.path, output, settings))
        else:
            self.storage.copy(task.path, output)
        context.report(0.9)

    async def convert(self, task: FileTask, context: ExecutionContext):
        settings = context.settings
        output = context.output_path(task)
        context.report(0.3)

        await self.transcoder.transcode(self._convert_args(task, output, settings))
        context.report(0.9)

    @staticmethod
    def _convert_args(task: FileTask, output: Path, settings: ProcessingSettings) -> List[str]:
        if task.kind == MediaKind.IMAGE:
            return build_image_convert_args(task.path, output, settings)
        return build_video_convert_args(task.path, output, settings)

    def cleanup(self, paths: List[Path]):
        """Best-effort removal of outputs from a failed attempt."""
        for path in paths:
            try:
                if self.storage.delete(path):
                    logger.info(f"Removed partial output {path}")
            except FilesystemFailure as e:
                logger.warning(f"Could not remove partial output {path}: {e}")
