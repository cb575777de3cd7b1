"""Batch orchestrator.

Drives every (batch, file) unit of a job one at a time, with cooperative
pause/resume/stop, per-unit retries and progress/count bookkeeping.

States: idle -> running <-> paused -> completed | stopped
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from ..config import Settings, settings
from ..errors import ExhaustedRetries, InterruptedFailure, JobStateError, UnsupportedMediaError
from ..models import FileStatus, FileTask, Job, JobState, JobSummary, MediaKind, UnitFailure
from .executor import ExecutionContext, FileTaskExecutor
from .storage import LocalStorage
from .transcoder import Transcoder

logger = logging.getLogger("mediaspoof.orchestrator")


class BatchEvent(str, Enum):
    STARTED = "started"
    COMPLETED = "completed"


class JobEvent(str, Enum):
    STARTED = "started"
    PAUSED = "paused"
    RESUMED = "resumed"
    STOP_REQUESTED = "stop-requested"
    COMPLETED = "completed"
    STOPPED = "stopped"


def _noop(*args):
    pass


@dataclass
class JobCallbacks:
    """Hooks for the presentation layer. All are optional."""
    on_progress: Callable[[int, float, str], None] = _noop
    on_batch_event: Callable[[int, BatchEvent], None] = _noop
    on_job_event: Callable[[JobEvent, Job], None] = _noop


class ControlToken:
    """Pause and stop signals checked by the run loop between units.

    Waiting is event based; nothing polls. Must be used from the event
    loop's thread.
    """

    def __init__(self):
        self._running = asyncio.Event()
        self._running.set()
        self._stopped = asyncio.Event()

    @property
    def paused(self) -> bool:
        return not self._running.is_set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def pause(self):
        self._running.clear()

    def resume(self):
        self._running.set()

    def stop(self):
        self._stopped.set()
        self._running.set()

    async def wait_until_runnable(self) -> bool:
        """Block while paused. Returns False once stopped."""
        if not self.stopped and self.paused:
            await self._running.wait()
        return not self.stopped

    async def sleep(self, delay: float) -> bool:
        """Sleep that ends early on stop. Returns False once stopped."""
        if delay > 0 and not self.stopped:
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=delay)
            except asyncio.TimeoutError:
                pass
        return not self.stopped


class BatchOrchestrator:
    """Runs jobs unit by unit and exposes start/pause/stop controls."""

    def __init__(
        self,
        executor: Optional[FileTaskExecutor] = None,
        transcoder: Optional[Transcoder] = None,
        storage: Optional[LocalStorage] = None,
        config: Optional[Settings] = None,
        callbacks: Optional[JobCallbacks] = None,
    ):
        """Initialize the orchestrator; collaborators default to real ones.

        A given executor brings its own transcoder, so ``transcoder`` is only
        used when the executor is built here.
        """
        self.config = config or settings
        self.storage = storage or LocalStorage()
        self.executor = executor or FileTaskExecutor(transcoder or Transcoder(self.config), self.storage)
        self.callbacks = callbacks or JobCallbacks()

        self.job: Optional[Job] = None
        self._control = ControlToken()
        self._successes: Dict[int, int] = {}
        logger.info("BatchOrchestrator initialized")

    @property
    def transcoder(self) -> Transcoder:
        return self.executor.transcoder

    @property
    def running(self) -> bool:
        return self.job is not None and self.job.state in (JobState.RUNNING, JobState.PAUSED)

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    async def start(self, job: Job) -> JobSummary:
        """Run a job to completion or until stopped.

        Args:
            job: Idle job holding the files, settings and output root

        Returns:
            Summary with final state, counts and per-unit failures

        Raises:
            JobStateError: the job already ran, or another job is running
            ValueError: the job has no files
        """
        if job.state != JobState.IDLE:
            raise JobStateError(f"Job already {job.state.value}; build a new job to run again")
        if self.running:
            raise JobStateError("Another job is already running")
        if not job.tasks:
            raise ValueError("No files queued")

        self.job = job
        self._control = ControlToken()
        self._successes = {}
        job.reset()
        job.state = JobState.RUNNING
        job.started_at = datetime.now()
        self.transcoder.reset()

        logger.info(
            f"Starting job: {len(job.tasks)} files x {job.batch_count} batches, "
            f"mode={job.settings.mode.value}, intensity={job.settings.intensity.value}, "
            f"output={job.output_root}"
        )
        self.callbacks.on_job_event(JobEvent.STARTED, job)

        finished = False
        try:
            self.storage.mkdir(job.output_root)
            await self._run(job)
            finished = not self._control.stopped
        except Exception:
            logger.error("Job aborted", exc_info=True)
            raise
        finally:
            job.state = JobState.COMPLETED if finished else JobState.STOPPED
            job.completed_at = datetime.now()

        summary = self.summarize(job)
        self._log_summary(summary)
        self.callbacks.on_job_event(
            JobEvent.STOPPED if job.state == JobState.STOPPED else JobEvent.COMPLETED, job
        )
        return summary

    def pause_toggle(self) -> bool:
        """Pause after the current unit, or resume. Returns True when now paused."""
        if not self.running:
            return False
        job = self.job
        if self._control.paused:
            self._control.resume()
            job.state = JobState.RUNNING
            logger.info("Processing resumed")
            self.callbacks.on_job_event(JobEvent.RESUMED, job)
            return False

        self._control.pause()
        job.state = JobState.PAUSED
        logger.info("Processing will pause after the current file")
        self.callbacks.on_job_event(JobEvent.PAUSED, job)
        return True

    def stop(self):
        """Stop the job at the next checkpoint and kill the in-flight tool."""
        if not self.running or self._control.stopped:
            return
        self._control.stop()
        self.transcoder.halt()
        logger.info("Processing stopped by user")
        self.callbacks.on_job_event(JobEvent.STOP_REQUESTED, self.job)

    # ------------------------------------------------------------------
    # Run loop
    # ------------------------------------------------------------------

    async def _run(self, job: Job):
        total_files = len(job.tasks)

        for batch in range(1, job.batch_count + 1):
            if self._control.stopped:
                break

            job.current_batch = batch
            batch_dir = self._batch_dir(job, batch)
            logger.info(f"Processing batch {batch} of {job.batch_count} in {batch_dir}")
            self.callbacks.on_batch_event(batch, BatchEvent.STARTED)

            succeeded = set()
            for index, task in enumerate(job.tasks):
                if not await self._checkpoint(index, task):
                    break
                if await self._run_unit(job, index, task, batch, batch_dir):
                    succeeded.add(index)
                if index < total_files - 1 and not await self._control.sleep(self.config.inter_file_delay):
                    break

            if self._control.stopped:
                break
            self._finish_batch(job, batch, succeeded)

    async def _checkpoint(self, index: int, task: FileTask) -> bool:
        """Hold here while paused. Returns False if the job was stopped."""
        if self._control.paused and not self._control.stopped:
            task.status = FileStatus.PAUSED
            self._emit_progress(index, task)
            await self._control.wait_until_runnable()
            task.status = FileStatus.WAITING
        return not self._control.stopped

    def _unit_span(self, job: Job, index: int, batch: int):
        """Start and width of a unit's share of the whole job, in percent."""
        total_files = len(job.tasks)
        start = ((batch - 1) / job.batch_count + index / (total_files * job.batch_count)) * 100
        width = 100 / (total_files * job.batch_count)
        return start, width

    async def _run_unit(self, job: Job, index: int, task: FileTask, batch: int, batch_dir: Path) -> bool:
        """Attempt one unit with retries. Returns True if it produced output."""
        if task.kind == MediaKind.UNKNOWN:
            error = UnsupportedMediaError(f"Unsupported file type: {task.name}")
            self._record_failure(job, index, task, batch, error, attempts=0)
            return False

        start, width = self._unit_span(job, index, batch)
        task.status = FileStatus.PROCESSING
        self._set_progress(index, task, start)

        def on_progress(fraction: float):
            self._set_progress(index, task, start + fraction * width)

        last_error: Optional[Exception] = None
        attempts = 0
        for attempt in range(1, self.config.max_attempts + 1):
            attempts = attempt
            context = ExecutionContext(
                output_dir=batch_dir,
                settings=job.settings,
                sequence=index + 1,
                batch_index=batch,
                on_progress=on_progress,
            )
            try:
                result = await self.executor.execute(task, context)
            except InterruptedFailure as e:
                # Pause/stop artifact: never retried, never a file failure
                logger.info(f"Processing of {task.name} (batch {batch}) was interrupted: {e}")
                job.interrupted.append(UnitFailure(
                    file_index=index,
                    file_name=task.name,
                    batch=batch,
                    message=e.user_message,
                    category="interrupted",
                    attempts=attempt,
                ))
                task.status = FileStatus.WAITING
                self._emit_progress(index, task)
                return False
            except Exception as e:
                last_error = e
                stderr = getattr(e, "stderr", "")
                if stderr:
                    logger.debug(f"Tool output for {task.name}:\n{stderr}")
                if attempt < self.config.max_attempts:
                    logger.warning(f"Retry {attempt}/{self.config.max_attempts - 1} for {task.name}: {e}")
                    if not await self._control.sleep(self.config.retry_delay):
                        break
                    continue
            else:
                job.output_count += 1
                self._successes[index] = self._successes.get(index, 0) + 1
                self._set_progress(index, task, start + width)
                logger.info(f"Processed {task.name} (batch {batch}): {len(result.outputs)} output(s)")
                return True

        if self._control.stopped:
            task.status = FileStatus.WAITING
            self._emit_progress(index, task)
            return False

        self._record_failure(job, index, task, batch, ExhaustedRetries(last_error, attempts), attempts)
        return False

    def _record_failure(self, job: Job, index: int, task: FileTask, batch: int, error: Exception, attempts: int):
        message = getattr(error, "user_message", "Processing failed")
        logger.error(f"Failed to process {task.name} (batch {batch}): {error}")
        task.status = FileStatus.FAILED
        task.error = message
        job.failures.append(UnitFailure(
            file_index=index,
            file_name=task.name,
            batch=batch,
            message=message,
            category=type(getattr(error, "last_error", error)).__name__,
            attempts=attempts,
        ))
        self._emit_progress(index, task)

    def _finish_batch(self, job: Job, batch: int, succeeded: set):
        last = batch == job.batch_count
        for index in sorted(succeeded):
            task = job.tasks[index]
            if last:
                task.status = FileStatus.COMPLETE
                self._set_progress(index, task, 100.0)
            else:
                task.status = FileStatus.batch_complete(batch)
                self._emit_progress(index, task)

        job.processed_count = sum(1 for task in job.tasks if task.status != FileStatus.FAILED)
        logger.info(
            f"Batch {batch} completed: {len(succeeded)}/{len(job.tasks)} files ok, "
            f"{job.output_count} outputs so far"
        )
        self.callbacks.on_batch_event(batch, BatchEvent.COMPLETED)

    def _batch_dir(self, job: Job, batch: int) -> Path:
        if not self.config.batch_subdirectories:
            return job.output_root
        timestamp = datetime.now().strftime("%Y-%m-%dT%H-%M-%S")
        return self.storage.mkdir(job.output_root / f"batch_{batch:02d}_{timestamp}")

    # ------------------------------------------------------------------
    # Progress and reporting
    # ------------------------------------------------------------------

    def _set_progress(self, index: int, task: FileTask, percent: float):
        task.progress = max(task.progress, min(100.0, percent))
        self._emit_progress(index, task)

    def _emit_progress(self, index: int, task: FileTask):
        self.callbacks.on_progress(index, task.progress, str(getattr(task.status, "value", task.status)))

    def summarize(self, job: Job) -> JobSummary:
        """Aggregate counts for the presentation layer."""
        elapsed = 0.0
        if job.started_at is not None:
            elapsed = ((job.completed_at or datetime.now()) - job.started_at).total_seconds()
        return JobSummary(
            state=job.state,
            output_root=job.output_root,
            output_count=job.output_count,
            processed_count=job.processed_count,
            succeeded_files=[
                task.name for index, task in enumerate(job.tasks)
                if self._successes.get(index) and task.status != FileStatus.FAILED
            ],
            failed_files=[task.name for task in job.tasks if task.status == FileStatus.FAILED],
            failures=list(job.failures),
            interrupted=list(job.interrupted),
            elapsed_seconds=elapsed,
        )

    def _log_summary(self, summary: JobSummary):
        if summary.state == JobState.STOPPED:
            logger.warning(f"Job stopped after {summary.output_count} outputs")
        else:
            logger.info(f"All processing completed in {summary.elapsed_seconds:.1f}s")
        if summary.succeeded_files:
            logger.info(f"Successfully processed: {len(summary.succeeded_files)} files")
        if summary.failed_files:
            logger.warning(f"Failed to process: {len(summary.failed_files)} files")
            for name in summary.failed_files:
                logger.warning(f"   - {name}")
        logger.info(f"Output saved to: {summary.output_root}")
