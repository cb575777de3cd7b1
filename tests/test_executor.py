"""Tests for the per-unit executor and its mode strategies."""

import pytest

from mediaspoof.errors import TranscodeFailure, UnsupportedMediaError
from mediaspoof.models import FileTask, MediaKind, ProcessingSettings
from mediaspoof.services import ExecutionContext


def _context(temp_dir, **settings):
    out = temp_dir / "out"
    out.mkdir(exist_ok=True)
    return ExecutionContext(output_dir=out, settings=ProcessingSettings(**settings), sequence=1)


def _vf(argv):
    return argv[argv.index("-vf") + 1]


class TestSpoofModes:
    """spoof-only and spoof-split."""

    @pytest.mark.asyncio
    async def test_spoof_only_image(self, executor, fake_transcoder, make_files, temp_dir):
        (image,) = make_files("a.jpg")
        context = _context(temp_dir, mode="spoof-only")

        result = await executor.execute(FileTask.from_path(image), context)

        assert len(fake_transcoder.calls) == 1
        assert _vf(fake_transcoder.calls[0]).startswith("scale=iw*")
        assert len(result.outputs) == 1
        assert result.outputs[0].exists()
        assert result.outputs[0].parent == (temp_dir / "out").resolve()

    @pytest.mark.asyncio
    async def test_spoof_only_never_splits(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("long.mp4")
        fake_transcoder.durations["long.mp4"] = 120.0

        await executor.execute(FileTask.from_path(video), _context(temp_dir, mode="spoof-only"))

        assert len(fake_transcoder.calls) == 1
        assert "-ss" not in fake_transcoder.calls[0]

    @pytest.mark.asyncio
    async def test_spoof_split_long_video(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("long.mp4")
        fake_transcoder.durations["long.mp4"] = 37.0
        context = _context(temp_dir, mode="spoof-split", clip_length="8")

        result = await executor.execute(FileTask.from_path(video), context)

        calls = fake_transcoder.calls
        assert len(calls) == 5
        assert [argv[argv.index("-ss") + 1] for argv in calls] == ["0.000", "8.000", "16.000", "24.000", "32.000"]
        assert [argv[argv.index("-t") + 1] for argv in calls] == ["8.000", "8.000", "8.000", "8.000", "5.000"]
        # Every clip gets its own effects
        assert len({_vf(argv) for argv in calls}) == 5
        assert [p.stem[-7:] for p in result.outputs] == ["_part01", "_part02", "_part03", "_part04", "_part05"]

    @pytest.mark.asyncio
    async def test_spoof_split_short_video_is_spoofed_whole(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("short.mp4")
        fake_transcoder.durations["short.mp4"] = 9.0

        result = await executor.execute(FileTask.from_path(video), _context(temp_dir, mode="spoof-split"))

        assert len(fake_transcoder.calls) == 1
        assert "-ss" not in fake_transcoder.calls[0]
        assert "_part" not in result.outputs[0].name

    @pytest.mark.asyncio
    async def test_spoof_split_image(self, executor, fake_transcoder, make_files, temp_dir):
        (image,) = make_files("a.png")
        await executor.execute(FileTask.from_path(image), _context(temp_dir, mode="spoof-split"))
        assert len(fake_transcoder.calls) == 1


class TestSplitOnly:
    """split-only copies or stream-copies unless the format changes."""

    @pytest.mark.asyncio
    async def test_image_is_copied_verbatim(self, executor, fake_transcoder, make_files, temp_dir):
        (image,) = make_files("a.jpg")

        result = await executor.execute(FileTask.from_path(image), _context(temp_dir, mode="split-only"))

        assert fake_transcoder.calls == []
        assert result.outputs[0].read_bytes() == image.read_bytes()

    @pytest.mark.asyncio
    async def test_short_video_is_copied(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("short.mov")

        result = await executor.execute(FileTask.from_path(video), _context(temp_dir, mode="split-only"))

        assert fake_transcoder.calls == []
        assert result.outputs[0].suffix == ".mov"

    @pytest.mark.asyncio
    async def test_short_video_without_audio_goes_through_tool(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("short.mp4")

        await executor.execute(FileTask.from_path(video), _context(temp_dir, mode="split-only", remove_audio=True))

        argv = fake_transcoder.calls[0]
        assert argv[argv.index("-c:v") + 1] == "copy"
        assert "-an" in argv

    @pytest.mark.asyncio
    async def test_long_video_is_stream_copied(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("long.mp4")
        fake_transcoder.durations["long.mp4"] = 20.0

        result = await executor.execute(FileTask.from_path(video), _context(temp_dir, mode="split-only", clip_length="10"))

        assert len(result.outputs) == 2
        for argv in fake_transcoder.calls:
            assert "-vf" not in argv
            assert argv[argv.index("-c:v") + 1] == "copy"

    @pytest.mark.asyncio
    async def test_image_format_override_converts(self, executor, fake_transcoder, make_files, temp_dir):
        (image,) = make_files("a.jpg")

        result = await executor.execute(FileTask.from_path(image), _context(temp_dir, mode="split-only", image_format="png"))

        assert len(fake_transcoder.calls) == 1
        assert "-pix_fmt" in fake_transcoder.calls[0]
        assert result.outputs[0].suffix == ".png"
        assert result.outputs[0].read_bytes() != image.read_bytes()

    @pytest.mark.asyncio
    async def test_short_video_format_override_reencodes(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("short.mp4")

        result = await executor.execute(FileTask.from_path(video), _context(temp_dir, mode="split-only", video_format="webm"))

        assert result.outputs[0].suffix == ".webm"
        assert len(fake_transcoder.calls) == 1
        argv = fake_transcoder.calls[0]
        assert argv[argv.index("-c:v") + 1] == "libvpx-vp9"
        assert "copy" not in argv

    @pytest.mark.asyncio
    async def test_long_video_clips_into_other_container_reencode(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("long.mp4")
        fake_transcoder.durations["long.mp4"] = 20.0
        context = _context(temp_dir, mode="split-only", clip_length="10", video_format="mkv")

        result = await executor.execute(FileTask.from_path(video), context)

        assert [p.suffix for p in result.outputs] == [".mkv", ".mkv"]
        assert len(fake_transcoder.calls) == 2
        for argv in fake_transcoder.calls:
            assert argv[argv.index("-c:v") + 1] == "libx264"
            assert argv[argv.index("-f") + 1] == "matroska"
            assert "copy" not in argv


class TestConvertOnly:
    """Plain conversions."""

    @pytest.mark.asyncio
    async def test_image_format_change(self, executor, fake_transcoder, make_files, temp_dir):
        (image,) = make_files("a.png")

        result = await executor.execute(FileTask.from_path(image), _context(temp_dir, mode="convert-only", image_format="jpg"))

        assert result.outputs[0].suffix == ".jpg"
        assert "-vf" not in fake_transcoder.calls[0]

    @pytest.mark.asyncio
    async def test_long_video_is_not_split(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("long.mp4")
        fake_transcoder.durations["long.mp4"] = 300.0

        await executor.execute(FileTask.from_path(video), _context(temp_dir, mode="convert-only"))

        assert len(fake_transcoder.calls) == 1


class TestFailures:
    """Error propagation and cleanup."""

    @pytest.mark.asyncio
    async def test_failed_split_removes_partial_outputs(self, executor, fake_transcoder, make_files, temp_dir):
        (video,) = make_files("long.mp4")
        fake_transcoder.durations["long.mp4"] = 37.0
        fake_transcoder.errors["long.mp4"] = [None, None, TranscodeFailure("boom", exit_code=1)]
        context = _context(temp_dir, mode="spoof-split", clip_length="8")

        with pytest.raises(TranscodeFailure):
            await executor.execute(FileTask.from_path(video), context)

        assert len(fake_transcoder.calls) == 3
        assert len(context.outputs) == 3
        assert list((temp_dir / "out").iterdir()) == []

    @pytest.mark.asyncio
    async def test_unknown_kind(self, executor, temp_dir):
        task = FileTask(path=temp_dir / "notes.txt", kind=MediaKind.UNKNOWN, name="notes.txt")
        with pytest.raises(UnsupportedMediaError):
            await executor.execute(task, _context(temp_dir))

    @pytest.mark.asyncio
    async def test_progress_reported_in_order(self, executor, make_files, temp_dir):
        (image,) = make_files("a.jpg")
        seen = []
        context = _context(temp_dir)
        context.on_progress = seen.append

        await executor.execute(FileTask.from_path(image), context)

        assert seen == sorted(seen)
        assert seen[-1] == 1.0
