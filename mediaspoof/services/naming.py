"""Output file naming.

Patterns may contain ``{word}``, ``{number}``, ``{date}`` and ``{original}``.
Any other ``{token}`` is left in the name untouched.
"""

import random
import re
from datetime import date
from pathlib import Path
from typing import Optional

from ..models import FileTask, MediaKind, ProcessingSettings

DEFAULT_PATTERN = "file_{number}"
NUMBER_DIGITS = 12

_NUMBER_TOKEN = "{number}"
_TOKEN = re.compile(r"\{(word|number|date|original)\}")

WORDS = {
    MediaKind.IMAGE: "photo",
    MediaKind.VIDEO: "clip",
}


def random_number(rng: Optional[random.Random] = None) -> str:
    """A fresh 12-digit numeral with no leading zero."""
    rng = rng or random
    low = 10 ** (NUMBER_DIGITS - 1)
    return str(rng.randint(low, 10 ** NUMBER_DIGITS - 1))


def render_pattern(
    pattern: str,
    task: FileTask,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> str:
    """Substitute the known tokens; every ``{number}`` gets its own draw."""
    today = today or date.today()

    def substitute(match: "re.Match[str]") -> str:
        token = match.group(1)
        if token == "word":
            return WORDS.get(task.kind, "file")
        if token == "number":
            return random_number(rng)
        if token == "date":
            return today.strftime("%Y-%m-%d")
        return task.stem

    return _TOKEN.sub(substitute, pattern)


def format_override_for(task: FileTask, settings: ProcessingSettings) -> Optional[str]:
    """The extension override configured for the task's media kind, if any."""
    if task.kind == MediaKind.IMAGE:
        return settings.image_format
    if task.kind == MediaKind.VIDEO:
        return settings.video_format
    return None


def output_extension(task: FileTask, settings: ProcessingSettings) -> str:
    return format_override_for(task, settings) or task.extension


def resolve_output_path(
    task: FileTask,
    output_dir: Path,
    settings: ProcessingSettings,
    sequence: int,
    batch_index: int = 1,
    clip_number: Optional[int] = None,
    today: Optional[date] = None,
    rng: Optional[random.Random] = None,
) -> Path:
    """Build the output path for one file (or one clip of a file).

    Uniqueness within a job comes from the random ``{number}``, or from the
    sequence suffix when the pattern has none, plus the batch and clip
    suffixes. Collisions are not checked.
    """
    pattern = settings.naming_pattern.strip() or DEFAULT_PATTERN
    name = render_pattern(pattern, task, today=today, rng=rng)

    if _NUMBER_TOKEN not in pattern:
        name += f"_{sequence:03d}"
    if settings.batch_count > 1:
        name += f"_batch{batch_index}"
    if clip_number is not None:
        name += f"_part{clip_number:02d}"

    return Path(output_dir).resolve() / f"{name}{output_extension(task, settings)}"
