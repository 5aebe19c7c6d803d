"""Use case: turn raw subtitles into a finished, immutable Clip."""

from __future__ import annotations

import math
import re
from collections.abc import Sequence

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.transcript import TranscriptSegment

_VIDEO_ID_PATTERN = re.compile(r'(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/)([^&\n?#]+)')

SLOW_WPM = 100
FAST_WPM = 140


def extract_video_id(url: str) -> str | None:
    """Extract the video id from watch, youtu.be and embed URLs."""
    match = _VIDEO_ID_PATTERN.search(url)
    return match.group(1) if match else None


def clip_transcript(
    segments: Sequence[TranscriptSegment],
    start_time: float,
    end_time: float,
) -> list[TranscriptSegment]:
    """Keep segments whose offset falls within [start, end), preserving order."""
    start_ms = start_time * 1000
    end_ms = end_time * 1000
    return [seg for seg in segments if start_ms <= seg.offset < end_ms]


def calculate_wpm(transcript: Sequence[TranscriptSegment], start_time: float, end_time: float) -> int:
    total_words = sum(len(seg.text.split()) for seg in transcript)
    duration_minutes = (end_time - start_time) / 60
    if duration_minutes <= 0:
        return 0
    return math.floor(total_words / duration_minutes + 0.5)


def wpm_label(wpm: int) -> str:
    if wpm < SLOW_WPM:
        return 'slow'
    if wpm < FAST_WPM:
        return 'normal'
    return 'fast'


def build_clip(
    clip_id: str,
    video_id: str,
    start_time: float,
    end_time: float,
    transcript: Sequence[TranscriptSegment],
    *,
    transcript_secondary: Sequence[TranscriptSegment] | None = None,
    title: str = '',
    description: str | None = None,
    category: str = 'general',
) -> Clip:
    """Clip both transcripts to the time range and compute the speech rate once."""
    primary = clip_transcript(transcript, start_time, end_time)
    secondary = clip_transcript(transcript_secondary, start_time, end_time) if transcript_secondary else None
    return Clip(
        id=clip_id,
        title=title,
        video_id=video_id,
        start_time=start_time,
        end_time=end_time,
        transcript=primary,
        transcript_secondary=secondary or None,
        wpm=calculate_wpm(primary, start_time, end_time),
        description=description,
        category=category,
    )
