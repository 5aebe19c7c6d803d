"""Use case: map playback time to transcript lines.

Pure functions, no state. The controller calls ``active_index`` on every
polling tick; the presentation layer calls ``match_secondary`` to pair a
primary line with its translation.
"""

from __future__ import annotations

from collections.abc import Sequence

from shadow_drill.l1_entities.transcript import TranscriptSegment

SECONDARY_MATCH_WINDOW_MS = 3000


def active_index(transcript: Sequence[TranscriptSegment], time_ms: float) -> int | None:
    """Index of the last segment whose offset <= time_ms, or None before the first one."""
    for i in range(len(transcript) - 1, -1, -1):
        if transcript[i].offset <= time_ms:
            return i
    return None


def match_secondary(
    primary: Sequence[TranscriptSegment],
    secondary: Sequence[TranscriptSegment] | None,
    index: int,
    window_ms: int = SECONDARY_MATCH_WINDOW_MS,
) -> TranscriptSegment | None:
    """Best-matching secondary segment for ``primary[index]``.

    Equal segment counts are treated as positionally aligned. Otherwise the
    secondary segment nearest in offset wins, provided the distance is under
    ``window_ms``.
    """
    if not secondary:
        return None
    if len(secondary) == len(primary):
        return secondary[index]

    target = primary[index].offset
    best: TranscriptSegment | None = None
    min_diff = float('inf')
    for seg in secondary:
        diff = abs(seg.offset - target)
        if diff < min_diff:
            min_diff = diff
            best = seg
    if min_diff < window_ms:
        return best
    return None
