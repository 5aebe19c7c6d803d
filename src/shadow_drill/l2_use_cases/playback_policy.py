"""Use case: loop and end-of-clip decisions evaluated on each polling tick."""

from __future__ import annotations

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.session_state import LoopRange


def loop_seek_target(
    clip: Clip,
    loop: LoopRange,
    looping: bool,
    current_time: float,
) -> float | None:
    """Return the time to seek back to, or None if playback should continue.

    The loop is active only when enabled and the effective start precedes the
    effective end; markers set in reverse order leave it inactive.
    """
    if not looping:
        return None
    start, end = loop.effective_bounds(clip)
    if start >= end:
        return None
    if current_time >= end:
        return start
    return None


def reached_clip_end(clip: Clip, current_time: float) -> bool:
    return current_time >= clip.end_time


def is_end_of_clip_pause(clip: Clip, current_time: float, tolerance: float) -> bool:
    """A pause this close to the clip end is natural completion, not a user interruption."""
    return clip.end_time - current_time <= tolerance
