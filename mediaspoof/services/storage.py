"""Local filesystem collaborator.

OS errors are re-raised as FilesystemFailure so the orchestrator can retry
them like tool failures. "Not found" is reported through return values,
never as an error.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, List, Optional, Union

from ..errors import FilesystemFailure
from ..models import FileTask, MediaKind

logger = logging.getLogger("mediaspoof.storage")

PathLike = Union[str, Path]


class LocalStorage:
    """File operations used by the executor and orchestrator."""

    def exists(self, path: PathLike) -> bool:
        """Check if a path exists.

        Args:
            path: File or directory path

        Returns:
            True if the path exists
        """
        return Path(path).exists()

    def mkdir(self, path: PathLike) -> Path:
        """Create a directory and its parents.

        Args:
            path: Directory path

        Returns:
            The created (or already existing) directory
        """
        path = Path(path)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemFailure(f"Failed to create directory {path}: {e}") from e
        return path

    def copy(self, src: PathLike, dst: PathLike) -> Path:
        """Copy a file's bytes to ``dst``, overwriting it.

        Args:
            src: Source file
            dst: Destination file

        Returns:
            Destination path
        """
        try:
            shutil.copyfile(src, dst)
        except OSError as e:
            raise FilesystemFailure(f"Failed to copy {src} to {dst}: {e}") from e
        logger.debug(f"Copied {src} to {dst}")
        return Path(dst)

    def delete(self, path: PathLike) -> bool:
        """Delete a file.

        Args:
            path: File path

        Returns:
            True if deleted, False if not found
        """
        path = Path(path)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            raise FilesystemFailure(f"Failed to delete {path}: {e}") from e
        logger.info(f"Deleted {path}")
        return True

    def list_recursive(self, path: PathLike) -> List[Path]:
        """List every file below a directory.

        Args:
            path: Directory to walk

        Returns:
            Absolute file paths, in sorted walk order
        """
        root = Path(path)
        if not root.is_dir():
            raise FilesystemFailure(f"Not a directory: {root}")
        files: List[Path] = []
        try:
            for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
                dirnames.sort()
                for filename in sorted(filenames):
                    files.append(Path(dirpath, filename).resolve())
        except OSError as e:
            raise FilesystemFailure(f"Failed to read directory {root}: {e}") from e
        return files


def _raise(error: OSError):
    raise error


def collect_media_files(paths: Iterable[PathLike], storage: Optional[LocalStorage] = None) -> List[FileTask]:
    """Turn selected files and folders into tasks, in selection order.

    Folders are expanded recursively. Duplicates and files of unknown kind
    are skipped.
    """
    storage = storage or LocalStorage()
    tasks: List[FileTask] = []
    seen = set()

    for selected in paths:
        selected = Path(selected)
        candidates = storage.list_recursive(selected) if selected.is_dir() else [selected.resolve()]
        for candidate in candidates:
            if candidate in seen:
                continue
            seen.add(candidate)
            task = FileTask.from_path(candidate)
            if task.kind == MediaKind.UNKNOWN:
                logger.info(f"Skipping unsupported file {candidate}")
                continue
            tasks.append(task)

    return tasks


def default_output_root(tasks: List[FileTask], folder_name: str) -> Path:
    """Output folder next to the first selected file."""
    if not tasks:
        raise ValueError("No files selected for output directory creation")
    return tasks[0].path.parent / folder_name
