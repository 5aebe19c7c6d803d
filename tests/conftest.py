"""Shared test fixtures and protocol-conforming fakes."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.config import AppConfig
from shadow_drill.l1_entities.errors import ClipNotFoundError, PlaybackUrlError, RecorderStartError, StoreError
from shadow_drill.l1_entities.player_state import PlayerState
from shadow_drill.l1_entities.recording import AudioBlob, PlaybackUrl, Recording, recording_storage_path
from shadow_drill.l1_entities.transcript import TranscriptSegment
from shadow_drill.l1_entities.user_stats import UserStats
from shadow_drill.l3_interface_adapters.controllers.session_controller import SessionController
from shadow_drill.l4_frameworks_and_drivers.config import build_app_config

# --- Protocol-conforming Fakes ---


class FakePlayer:
    """Fake player for controller tests. State events are fired explicitly via ``emit``."""

    def __init__(self) -> None:
        self.current_time = 0.0
        self.calls: list[tuple] = []
        self.on_ready: Callable[[], None] | None = None
        self.on_state_change: Callable[[PlayerState], None] | None = None
        self.destroyed = False

    def bind(self, on_ready, on_state_change) -> None:
        self.on_ready = on_ready
        self.on_state_change = on_state_change

    def load(self, video_id: str, start_sec: float, end_sec: float) -> None:
        self.calls.append(('load', video_id, start_sec, end_sec))
        self.current_time = start_sec

    def play(self) -> None:
        self.calls.append(('play',))

    def pause(self) -> None:
        self.calls.append(('pause',))

    def seek(self, time_sec: float) -> None:
        self.calls.append(('seek', time_sec))
        self.current_time = time_sec

    def get_current_time(self) -> float:
        return self.current_time

    def set_rate(self, multiplier: float) -> None:
        self.calls.append(('set_rate', multiplier))

    def destroy(self) -> None:
        self.calls.append(('destroy',))
        self.destroyed = True

    def emit(self, state: PlayerState) -> None:
        assert self.on_state_change is not None
        self.on_state_change(state)

    def names(self) -> list[str]:
        return [c[0] for c in self.calls]

    def seeks(self) -> list[float]:
        return [c[1] for c in self.calls if c[0] == 'seek']


class FakeRecorder:
    """Fake recorder — start can fail or be held open with ``gate``."""

    def __init__(self, blob: AudioBlob | None = None) -> None:
        self.blob = blob if blob is not None else AudioBlob(data=b'RIFF-take-1', duration_seconds=1.5)
        self.start_error: RecorderStartError | None = None
        self.gate: asyncio.Event | None = None
        self.start_calls = 0
        self.stop_calls = 0
        self.active = False

    async def start(self) -> None:
        self.start_calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.start_error is not None:
            raise self.start_error
        self.active = True

    def stop(self) -> AudioBlob | None:
        self.stop_calls += 1
        if not self.active:
            return None
        self.active = False
        return self.blob


class FakeAudioOutput:
    def __init__(self) -> None:
        self.played: list[bytes] = []
        self.stop_calls = 0

    def play(self, wav_bytes: bytes) -> None:
        self.played.append(wav_bytes)

    def stop(self) -> None:
        self.stop_calls += 1


class FakeStore:
    """In-memory practice store with switchable failures."""

    def __init__(self, clips: list[Clip] | None = None) -> None:
        self.clips: dict[str, Clip] = {c.id: c for c in clips or []}
        self.recordings: dict[tuple[str, str], Recording] = {}
        self.audio: dict[str, bytes] = {}
        self.favorites: set[tuple[str, str]] = set()
        self.history: list[tuple[str, str]] = []
        self.streak_calls: list[str] = []
        self.url_calls = 0
        self.fail_save = False
        self.fail_history = False
        self.fail_streak = False
        self.fail_url = False
        self.save_gate: asyncio.Event | None = None
        self.get_gate: asyncio.Event | None = None

    async def get_clip(self, clip_id: str) -> Clip:
        if self.get_gate is not None:
            await self.get_gate.wait()
        if clip_id not in self.clips:
            raise ClipNotFoundError(f'Clip not found: {clip_id}')
        return self.clips[clip_id]

    async def list_clips(self) -> list[Clip]:
        return list(self.clips.values())

    async def save_clip(self, clip: Clip) -> Clip:
        self.clips[clip.id] = clip
        return clip

    async def get_recording(self, user_id: str, clip_id: str) -> Recording | None:
        return self.recordings.get((user_id, clip_id))

    async def save_recording(self, user_id: str, clip_id: str, blob: AudioBlob) -> Recording:
        if self.save_gate is not None:
            await self.save_gate.wait()
        if self.fail_save:
            raise StoreError('upload failed')
        path = recording_storage_path(user_id, clip_id)
        recording = Recording(user_id=user_id, clip_id=clip_id, storage_path=path)
        self.recordings[(user_id, clip_id)] = recording
        self.audio[path] = blob.data
        return recording

    async def delete_recording(self, user_id: str, clip_id: str) -> None:
        recording = self.recordings.pop((user_id, clip_id), None)
        if recording is not None:
            self.audio.pop(recording.storage_path, None)

    async def get_signed_playback_url(self, storage_path: str, ttl_seconds: int) -> PlaybackUrl:
        self.url_calls += 1
        if self.fail_url:
            raise PlaybackUrlError('cannot sign')
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)
        return PlaybackUrl(url=f'memory://{storage_path}?n={self.url_calls}', expires_at=expires_at)

    async def record_practice_event(self, user_id: str, clip_id: str, timestamp: datetime) -> None:
        if self.fail_history:
            raise StoreError('history unavailable')
        self.history.append((user_id, clip_id))

    async def update_streak(self, user_id: str) -> UserStats:
        if self.fail_streak:
            raise StoreError('stats unavailable')
        self.streak_calls.append(user_id)
        return UserStats(user_id=user_id, current_streak=1, longest_streak=1, total_recordings=1)

    async def add_favorite(self, user_id: str, clip_id: str) -> None:
        self.favorites.add((user_id, clip_id))

    async def remove_favorite(self, user_id: str, clip_id: str) -> None:
        self.favorites.discard((user_id, clip_id))

    async def is_favorite(self, user_id: str, clip_id: str) -> bool:
        return (user_id, clip_id) in self.favorites


class FakeCall:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Collects deferred callbacks; tests decide when they fire."""

    def __init__(self) -> None:
        self.calls: list[FakeCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> FakeCall:
        call = FakeCall(delay, callback)
        self.calls.append(call)
        return call

    def pending(self) -> list[FakeCall]:
        return [c for c in self.calls if not c.cancelled]

    def run_pending(self) -> None:
        calls, self.calls = self.pending(), []
        for call in calls:
            call.callback()


# --- Builders ---


def make_segments(*items: tuple[str, int]) -> list[TranscriptSegment]:
    return [TranscriptSegment(text=text, offset=offset, duration=1000) for text, offset in items]


def make_clip(
    clip_id: str = 'clip-1',
    video_id: str = 'vid123',
    start_time: float = 10.0,
    end_time: float = 20.0,
    transcript: list[TranscriptSegment] | None = None,
    transcript_secondary: list[TranscriptSegment] | None = None,
) -> Clip:
    if transcript is None:
        transcript = make_segments(('first line', 10000), ('second line', 13000), ('third line', 16000))
    return Clip(
        id=clip_id,
        title=f'Title {clip_id}',
        video_id=video_id,
        start_time=start_time,
        end_time=end_time,
        transcript=transcript,
        transcript_secondary=transcript_secondary,
        wpm=36,
    )


class Harness:
    """A controller wired to fakes."""

    def __init__(self, config: AppConfig, clips: list[Clip] | None = None) -> None:
        self.config = config
        self.player = FakePlayer()
        self.recorder = FakeRecorder()
        self.store = FakeStore(clips if clips is not None else [make_clip()])
        self.scheduler = FakeScheduler()
        self.notices = []
        self.controller = SessionController(
            config=config,
            player=self.player,
            recorder=self.recorder,
            store=self.store,
            scheduler=self.scheduler,
            on_notice=self.notices.append,
        )

    async def open(self, clip_id: str = 'clip-1', *, unlock: bool = True) -> Clip:
        clip = await self.controller.open(clip_id)
        if unlock:
            self.player.emit(PlayerState.PLAYING)
            self.player.emit(PlayerState.PAUSED)
        return clip

    def enter_recording_mode(self) -> None:
        assert self.controller.switch_mode()
        self.scheduler.run_pending()


# --- Standard Fixtures ---


@pytest.fixture
def default_config() -> AppConfig:
    return build_app_config({})


@pytest.fixture
def sample_clip() -> Clip:
    return make_clip()


@pytest.fixture
def harness(default_config: AppConfig) -> Harness:
    return Harness(default_config)


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    d = tmp_path / 'data'
    d.mkdir()
    return d


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    content = """\
playback:
  poll_interval: 0.1
  rates: [0.5, 1.0]
  default_rate: 0.5
recording:
  sample_rate: 16000
user:
  id: "alice"
"""
    p = tmp_path / 'config.yaml'
    p.write_text(content, encoding='utf-8')
    return p


@pytest.fixture
def json3_file(tmp_path: Path) -> Path:
    content = """\
{"events": [
  {"tStartMs": 0, "dDurationMs": 2000, "segs": [{"utf8": "intro"}]},
  {"tStartMs": 10000, "dDurationMs": 2000, "segs": [{"utf8": "hello "}, {"utf8": "there"}]},
  {"tStartMs": 12500, "dDurationMs": 100, "segs": [{"utf8": "\\n"}]},
  {"tStartMs": 13000, "dDurationMs": 2000, "segs": [{"utf8": "how are\\nyou"}]},
  {"tStartMs": 14000},
  {"tStartMs": 25000, "dDurationMs": 2000, "segs": [{"utf8": "outro"}]}
]}
"""
    p = tmp_path / 'subs.json3'
    p.write_text(content, encoding='utf-8')
    return p
