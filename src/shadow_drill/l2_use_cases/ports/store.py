"""Port: practice store — clips, recordings, history, streaks, favorites."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.recording import AudioBlob, PlaybackUrl, Recording
from shadow_drill.l1_entities.user_stats import UserStats


class PracticeStore(Protocol):
    """Abstract persistence for practice sessions. All calls may suspend."""

    async def get_clip(self, clip_id: str) -> Clip:
        """Load a clip. Raises ClipNotFoundError."""
        ...

    async def list_clips(self) -> list[Clip]: ...

    async def save_clip(self, clip: Clip) -> Clip: ...

    async def get_recording(self, user_id: str, clip_id: str) -> Recording | None: ...

    async def save_recording(self, user_id: str, clip_id: str, blob: AudioBlob) -> Recording:
        """Upsert the single recording slot for (user, clip)."""
        ...

    async def delete_recording(self, user_id: str, clip_id: str) -> None: ...

    async def get_signed_playback_url(self, storage_path: str, ttl_seconds: int) -> PlaybackUrl: ...

    async def record_practice_event(self, user_id: str, clip_id: str, timestamp: datetime) -> None: ...

    async def update_streak(self, user_id: str) -> UserStats: ...

    async def add_favorite(self, user_id: str, clip_id: str) -> None: ...

    async def remove_favorite(self, user_id: str, clip_id: str) -> None: ...

    async def is_favorite(self, user_id: str, clip_id: str) -> bool: ...
