"""MediaSpoof command line driver."""

import argparse
import asyncio
import logging
import logging.handlers
import os
import signal
import sys
from typing import List, Optional

from . import __version__
from .config import Settings, load_settings
from .effects.filters import WATERMARK_POSITIONS
from .models import (
    ClipLengthPolicy,
    Intensity,
    Job,
    JobSummary,
    ProcessingMode,
    ProcessingSettings,
    Quality,
    WatermarkSettings,
)
from .services import BatchOrchestrator, JobCallbacks, LocalStorage, collect_media_files, default_output_root

logger = logging.getLogger("mediaspoof.cli")


def setup_logging(config: Settings):
    """Configure logging to the console, plus a rotating file if configured."""
    root_logger = logging.getLogger("mediaspoof")
    root_logger.setLevel(getattr(logging, config.log_level.upper(), logging.INFO))

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if config.log_file:
        log_dir = os.path.dirname(config.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.log_file,
            maxBytes=config.log_max_size_mb * 1024 * 1024,
            backupCount=config.log_backup_count,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def _choices(enum_type) -> List[str]:
    return [member.value for member in enum_type]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mediaspoof",
        description="MediaSpoof - batch spoof, split and convert images and videos with ffmpeg",
    )
    parser.add_argument("paths", nargs="+", help="Files or folders to process")
    parser.add_argument(
        "-o", "--output",
        help="Output folder (default: MediaSpoofer_Output next to the first file)",
        default=None,
    )
    parser.add_argument(
        "-c", "--config",
        help="Path to config file",
        default=None,
    )
    parser.add_argument("--mode", choices=_choices(ProcessingMode), default=ProcessingMode.SPOOF_ONLY.value)
    parser.add_argument("--intensity", choices=_choices(Intensity), default=Intensity.MEDIUM.value)
    parser.add_argument(
        "--duplicates",
        type=int,
        default=1,
        help="Number of batches (variations) per file",
    )
    parser.add_argument("--remove-audio", action="store_true", help="Drop audio from video outputs")
    parser.add_argument("--clip-length", choices=_choices(ClipLengthPolicy), default=ClipLengthPolicy.RANDOM_6_8.value)
    parser.add_argument(
        "--pattern",
        default="{word}_{number}",
        help="Output name pattern; tokens: {word} {number} {date} {original}",
    )
    parser.add_argument("--image-format", default=None, help="Image output extension, e.g. jpg")
    parser.add_argument("--video-format", default=None, help="Video output extension, e.g. mp4")
    parser.add_argument("--quality", choices=_choices(Quality), default=Quality.HIGH.value)
    parser.add_argument("--watermark", default=None, metavar="TEXT", help="Burn a text watermark into outputs")
    parser.add_argument(
        "--watermark-position",
        choices=sorted(WATERMARK_POSITIONS),
        default="bottom-right",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def settings_from_args(args: argparse.Namespace) -> ProcessingSettings:
    watermark = WatermarkSettings(
        enabled=bool(args.watermark),
        text=args.watermark or "",
        position=args.watermark_position,
    )
    return ProcessingSettings(
        mode=args.mode,
        intensity=args.intensity,
        duplicates=args.duplicates,
        remove_audio=args.remove_audio,
        clip_length=args.clip_length,
        naming_pattern=args.pattern,
        image_format=args.image_format,
        video_format=args.video_format,
        image_quality=args.quality,
        video_quality=args.quality,
        watermark=watermark,
    )


def _print_progress(file_index: int, percent: float, status: str):
    logger.debug(f"File {file_index + 1}: {percent:.0f}% {status}")


async def run_job(orchestrator: BatchOrchestrator, job: Job) -> JobSummary:
    """Run a job with SIGINT/SIGTERM wired to stop and SIGUSR1 to pause."""
    loop = asyncio.get_running_loop()
    installed = []

    def handle_stop(signum):
        logger.info(f"Received signal {signum}, stopping")
        orchestrator.stop()

    def handle_pause(signum):
        paused = orchestrator.pause_toggle()
        logger.info(f"Received signal {signum}, {'pausing' if paused else 'resuming'}")

    handlers = [(signal.SIGINT, handle_stop), (signal.SIGTERM, handle_stop)]
    if hasattr(signal, "SIGUSR1"):
        handlers.append((signal.SIGUSR1, handle_pause))
    for signum, handler in handlers:
        try:
            loop.add_signal_handler(signum, handler, signum)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform or outside the main thread
            continue
        installed.append(signum)

    try:
        return await orchestrator.start(job)
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.duplicates < 1:
        parser.error("--duplicates must be at least 1")

    try:
        config = load_settings(args.config)
    except (OSError, ValueError) as e:
        parser.error(f"could not load config: {e}")

    setup_logging(config)
    logger.info(f"MediaSpoof v{__version__} starting")

    storage = LocalStorage()
    for path in args.paths:
        if not os.path.exists(path):
            parser.error(f"no such file or directory: {path}")

    tasks = collect_media_files(args.paths, storage)
    if not tasks:
        parser.error("no supported image or video files found")

    processing = settings_from_args(args)
    output_root = args.output or default_output_root(tasks, config.output_folder_name)
    job = Job(tasks=tasks, settings=processing, output_root=os.path.abspath(output_root))

    logger.info(
        f"Settings: mode={processing.mode.value}, intensity={processing.intensity.value}, "
        f"batches={processing.batch_count}, clip length={processing.clip_length.value}, "
        f"remove audio={processing.remove_audio}"
    )

    orchestrator = BatchOrchestrator(
        config=config,
        storage=storage,
        callbacks=JobCallbacks(on_progress=_print_progress),
    )
    try:
        summary = asyncio.run(run_job(orchestrator, job))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 1

    print(
        f"{summary.state.value}: {summary.output_count} outputs from "
        f"{summary.processed_count}/{len(tasks)} files in {summary.output_root}"
    )
    for failure in summary.failures:
        print(f"  failed: {failure.file_name} (batch {failure.batch}): {failure.message}", file=sys.stderr)

    return 1 if summary.failures else 0


if __name__ == "__main__":
    sys.exit(main())
