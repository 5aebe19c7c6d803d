"""Gateway: YouTube json3 subtitle files -> transcript segments."""

from __future__ import annotations

import json
from pathlib import Path

from shadow_drill.l1_entities.transcript import TranscriptSegment


def parse_json3(content: str) -> list[TranscriptSegment]:
    """Parse json3 ``events`` into segments, skipping events without text."""
    data = json.loads(content)
    segments: list[TranscriptSegment] = []
    for event in data.get('events') or []:
        segs = event.get('segs')
        if not segs:
            continue
        text = ''.join(seg.get('utf8', '') for seg in segs).replace('\n', ' ').strip()
        if not text:
            continue
        segments.append(
            TranscriptSegment(
                text=text,
                offset=int(event.get('tStartMs', 0)),
                duration=int(event.get('dDurationMs', 0)),
            )
        )
    return segments


def load_json3(path: Path) -> list[TranscriptSegment]:
    return parse_json3(path.read_text(encoding='utf-8'))
