"""Transcript segment entity."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


def format_clock(seconds: float) -> str:
    """Format seconds as MM:SS (or H:MM:SS past the hour) for playback display."""
    total = max(int(seconds), 0)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f'{hours}:{minutes:02d}:{secs:02d}'
    return f'{minutes:02d}:{secs:02d}'


class TranscriptSegment(BaseModel):
    """A single timed line of a clip transcript."""

    text: str
    offset: int = Field(ge=0, description='Start offset in ms, absolute within the source video')
    duration: int = Field(default=0, ge=0, description='Duration in ms')

    model_config = {'frozen': True}

    @field_validator('text')
    @classmethod
    def _strip_text(cls, value: str) -> str:
        text = value.strip()
        if not text:
            raise ValueError('Transcript segment text must not be empty')
        return text

    @property
    def end(self) -> int:
        return self.offset + self.duration
