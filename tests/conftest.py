"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path

import pytest

from mediaspoof.config import Settings
from mediaspoof.errors import InterruptedFailure
from mediaspoof.models import TranscodeResult
from mediaspoof.services import BatchOrchestrator, FileTaskExecutor, LocalStorage


class FakeTranscoder:
    """Scripted stand-in for the transcoder.

    ``errors`` maps a source file name to a list of outcomes consumed one per
    call: an exception to raise, or None to succeed. Successful calls write a
    small file at the output path. ``on_call`` is awaited before the outcome
    is decided, so tests can pause or stop mid-unit.
    """

    def __init__(self, default_duration: float = 5.0):
        self.calls = []
        self.durations = {}
        self.default_duration = default_duration
        self.errors = {}
        self.on_call = None
        self.halted = False

    async def transcode(self, argv):
        if self.halted:
            raise InterruptedFailure("Transcoder halted, refusing new work")
        self.calls.append(argv)

        if self.on_call is not None:
            await self.on_call(argv)
        if self.halted:
            raise InterruptedFailure("Process terminated without exiting (code -15)", exit_code=-15)

        outcomes = self.errors.get(self.source_name(argv))
        if outcomes:
            error = outcomes.pop(0)
            if error is not None:
                raise error

        Path(argv[-1]).write_bytes(b"fake output")
        return TranscodeResult(exit_code=0)

    async def probe_duration(self, path):
        return self.durations.get(Path(path).name, self.default_duration)

    def calls_for(self, name):
        return [argv for argv in self.calls if self.source_name(argv) == name]

    @staticmethod
    def source_name(argv):
        return Path(argv[argv.index("-i") + 1]).name

    def terminate(self):
        return False

    def halt(self):
        self.halted = True

    def reset(self):
        self.halted = False


@pytest.fixture
def temp_dir():
    """Create a temporary directory for inputs and outputs during tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def test_config():
    """Settings without delays so retries and batches run immediately."""
    return Settings(
        max_attempts=3,
        retry_delay=0.0,
        inter_file_delay=0.0,
        batch_subdirectories=True,
    )


@pytest.fixture
def make_files(temp_dir):
    """Create input files with the given names under an ``input`` folder."""
    def _make(*names):
        input_dir = temp_dir / "input"
        input_dir.mkdir(exist_ok=True)
        paths = []
        for name in names:
            path = input_dir / name
            path.write_bytes(b"source bytes for " + name.encode())
            paths.append(path)
        return paths
    return _make


@pytest.fixture
def storage():
    return LocalStorage()


@pytest.fixture
def fake_transcoder():
    return FakeTranscoder()


@pytest.fixture
def executor(fake_transcoder, storage):
    return FileTaskExecutor(fake_transcoder, storage)


@pytest.fixture
def orchestrator(executor, test_config, storage):
    return BatchOrchestrator(executor=executor, config=test_config, storage=storage)
