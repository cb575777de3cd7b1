"""Tests for the local filesystem collaborator and file collection."""

import pytest

from mediaspoof.errors import FilesystemFailure
from mediaspoof.models import MediaKind
from mediaspoof.services import collect_media_files, default_output_root


class TestLocalStorage:
    """File operations."""

    def test_mkdir_nested(self, storage, temp_dir):
        target = temp_dir / "a" / "b" / "c"
        assert storage.mkdir(target) == target
        assert target.is_dir()
        # Existing directories are fine
        storage.mkdir(target)

    def test_mkdir_over_file_fails(self, storage, temp_dir):
        blocker = temp_dir / "file"
        blocker.write_text("x")
        with pytest.raises(FilesystemFailure) as excinfo:
            storage.mkdir(blocker / "sub")
        assert excinfo.value.user_message == "File operation failed"

    def test_copy(self, storage, temp_dir):
        src = temp_dir / "src.jpg"
        src.write_bytes(b"\x00\x01\x02")
        dst = storage.copy(src, temp_dir / "dst.jpg")
        assert dst.read_bytes() == b"\x00\x01\x02"

    def test_copy_missing_source(self, storage, temp_dir):
        with pytest.raises(FilesystemFailure):
            storage.copy(temp_dir / "missing.jpg", temp_dir / "dst.jpg")

    def test_delete(self, storage, temp_dir):
        path = temp_dir / "out.mp4"
        path.write_bytes(b"x")
        assert storage.delete(path) is True
        assert not storage.exists(path)
        # Not found is a return value, not an error
        assert storage.delete(path) is False

    def test_list_recursive(self, storage, temp_dir):
        (temp_dir / "b").mkdir()
        (temp_dir / "a").mkdir()
        for rel in ["z.jpg", "b/2.mp4", "a/1.png", "a/0.txt"]:
            (temp_dir / rel).write_bytes(b"x")

        names = [p.relative_to(temp_dir.resolve()).as_posix() for p in storage.list_recursive(temp_dir)]
        assert names == ["z.jpg", "a/0.txt", "a/1.png", "b/2.mp4"]

    def test_list_recursive_not_a_directory(self, storage, temp_dir):
        with pytest.raises(FilesystemFailure):
            storage.list_recursive(temp_dir / "nope")


class TestCollectMediaFiles:
    """Selection expansion."""

    def test_selection_order_and_dedupe(self, make_files, temp_dir):
        video, image, notes = make_files("clip.MP4", "photo.jpg", "notes.txt")

        tasks = collect_media_files([video, temp_dir / "input", image])

        assert [t.name for t in tasks] == ["clip.MP4", "photo.jpg"]
        assert tasks[0].kind == MediaKind.VIDEO
        assert tasks[1].kind == MediaKind.IMAGE
        assert tasks[1].size == len(b"source bytes for photo.jpg")

    def test_unknown_files_skipped(self, make_files):
        (notes,) = make_files("notes.txt")
        assert collect_media_files([notes]) == []


def test_default_output_root(make_files):
    first, second = make_files("a.jpg", "b.jpg")
    tasks = collect_media_files([first, second])
    assert default_output_root(tasks, "MediaSpoofer_Output") == first.resolve().parent / "MediaSpoofer_Output"


def test_default_output_root_requires_files():
    with pytest.raises(ValueError):
        default_output_root([], "out")
