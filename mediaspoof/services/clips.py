"""Clip planning for video segmentation."""

import logging
import random
from typing import Optional, Union

from ..models import Clip, ClipLengthPolicy, ClipPlan

logger = logging.getLogger("mediaspoof.clips")

# Videos at or below this length are never split
MIN_SPLIT_DURATION = 10.0

# A remainder shorter than this is dropped instead of becoming a clip
MIN_CLIP_DURATION = 3.0

FIXED_LENGTHS = {
    ClipLengthPolicy.FIXED_8: 8.0,
    ClipLengthPolicy.FIXED_10: 10.0,
    ClipLengthPolicy.FIXED_15: 15.0,
}


def draw_clip_length(policy: Union[ClipLengthPolicy, str], rng: Optional[random.Random] = None) -> float:
    """Clip length for a policy; '6-8' (and anything unknown) draws from [6, 8)."""
    try:
        policy = ClipLengthPolicy(policy)
    except ValueError:
        policy = ClipLengthPolicy.RANDOM_6_8
    if policy in FIXED_LENGTHS:
        return FIXED_LENGTHS[policy]
    rng = rng or random
    return 6.0 + rng.random() * 2.0


def plan_clips(
    duration: float,
    policy: Union[ClipLengthPolicy, str] = ClipLengthPolicy.RANDOM_6_8,
    rng: Optional[random.Random] = None,
) -> ClipPlan:
    """Split ``[0, duration)`` into consecutive clips.

    Returns an empty plan when the video is short enough not to need
    splitting. The plan is drawn fresh on every call.
    """
    if duration <= MIN_SPLIT_DURATION:
        return []

    clips: ClipPlan = []
    cursor = 0.0
    while duration - cursor >= MIN_CLIP_DURATION:
        length = draw_clip_length(policy, rng)
        end = min(cursor + length, duration)
        clips.append(Clip(start=cursor, duration=end - cursor, number=len(clips) + 1))
        cursor = end

    logger.debug(f"Planned {len(clips)} clips for {duration:.2f}s video")
    return clips
