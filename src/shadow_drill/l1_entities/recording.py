"""Recording entities — the persisted slot and the in-memory audio blob."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def recording_storage_path(user_id: str, clip_id: str) -> str:
    """Fixed storage key of the single recording slot for (user, clip)."""
    return f'{user_id}/{clip_id}.wav'


class AudioBlob(BaseModel):
    """Finite audio produced by one recorder run."""

    data: bytes
    mime_type: str = 'audio/wav'
    duration_seconds: float = 0.0

    model_config = {'frozen': True}


class Recording(BaseModel):
    """The last saved recording of a user for a clip (overwritten on every save)."""

    user_id: str
    clip_id: str
    storage_path: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float | None = None


class PlaybackUrl(BaseModel):
    """Time-limited URL for listening to a stored recording."""

    url: str
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at
