"""Practice session runtime state — ephemeral, owned by the SessionController."""

from __future__ import annotations

import enum
from typing import Literal

from pydantic import BaseModel, Field

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.recording import AudioBlob, Recording


class PracticeMode(enum.Enum):
    PRACTICE = 'practice'
    RECORDING = 'recording'


class RecordingPhase(enum.Enum):
    IDLE = 'idle'
    RECORDING = 'recording'
    REVIEWING = 'reviewing'


class LoopRange(BaseModel):
    """A/B markers in seconds. Unset markers fall back to the clip bounds."""

    a: float | None = None
    b: float | None = None

    @property
    def is_empty(self) -> bool:
        return self.a is None and self.b is None

    def effective_bounds(self, clip: Clip) -> tuple[float, float]:
        start = self.a if self.a is not None else clip.start_time
        end = self.b if self.b is not None else clip.end_time
        return start, end


class SessionNotice(BaseModel):
    """User-visible message emitted by the controller."""

    level: Literal['info', 'warning', 'error'] = 'info'
    message: str


class SessionState(BaseModel):
    """Single authoritative state object; handlers always read through it."""

    current_time: float = 0.0
    is_playing: bool = False
    playback_rate: float = 1.0
    mode: PracticeMode = PracticeMode.PRACTICE
    phase: RecordingPhase = RecordingPhase.IDLE
    capture_pending: bool = False
    unlocked: bool = False
    loop: LoopRange = Field(default_factory=LoopRange)
    looping: bool = False
    active_index: int | None = None
    pending_blob: AudioBlob | None = None
    recording: Recording | None = None
    saving: bool = False
    is_favorite: bool = False
    last_error: str = ''

    @property
    def is_recording(self) -> bool:
        return self.phase == RecordingPhase.RECORDING
