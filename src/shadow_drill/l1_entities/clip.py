"""Clip entity — the immutable unit a practice session operates on."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from shadow_drill.l1_entities.transcript import TranscriptSegment


class Clip(BaseModel):
    """A time-bounded slice of a source video plus its transcript(s)."""

    id: str
    title: str = ''
    video_id: str
    start_time: float = Field(ge=0, description='Inclusive start, seconds')
    end_time: float = Field(description='Exclusive end, seconds')
    transcript: list[TranscriptSegment] = Field(default_factory=list)
    transcript_secondary: list[TranscriptSegment] | None = None
    wpm: int | None = None
    description: str | None = None
    category: str = 'general'

    model_config = {'frozen': True}

    @model_validator(mode='after')
    def _validate_range(self) -> Clip:
        if self.end_time <= self.start_time:
            raise ValueError(f'end_time ({self.end_time}) must be greater than start_time ({self.start_time})')
        return self

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def has_secondary(self) -> bool:
        return bool(self.transcript_secondary)
