"""SessionController — playback/recording state machine for one practice session."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from datetime import datetime, timezone
from typing import Any

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.config import AppConfig
from shadow_drill.l1_entities.errors import RecorderStartError, StoreError
from shadow_drill.l1_entities.player_state import PlayerState
from shadow_drill.l1_entities.recording import AudioBlob, PlaybackUrl, Recording
from shadow_drill.l1_entities.session_state import (
    PracticeMode,
    RecordingPhase,
    SessionNotice,
    SessionState,
)
from shadow_drill.l2_use_cases.playback_policy import is_end_of_clip_pause, loop_seek_target, reached_clip_end
from shadow_drill.l2_use_cases.ports.player import Player
from shadow_drill.l2_use_cases.ports.recorder import Recorder
from shadow_drill.l2_use_cases.ports.scheduler import ScheduledCall, Scheduler
from shadow_drill.l2_use_cases.ports.store import PracticeStore
from shadow_drill.l2_use_cases.transcript_index import active_index

log = logging.getLogger('shd.controller')


class SessionController:
    """Coordinates player, recorder and transcript index under one mode model.

    All handlers read and write ``self.state``, the single authoritative
    session state. Anything that resolves after an ``await`` re-checks a
    generation counter before touching it, so a superseded recorder start,
    upload or session load cannot clobber newer state.
    """

    def __init__(
        self,
        config: AppConfig,
        player: Player,
        recorder: Recorder,
        store: PracticeStore,
        scheduler: Scheduler | None = None,
        on_notice: Callable[[SessionNotice], None] | None = None,
        user_id: str | None = None,
    ) -> None:
        self._playback = config.playback
        self._url_ttl = config.storage.playback_url_ttl
        self._user_id = user_id or config.user.id
        self._player = player
        self._recorder = recorder
        self._store = store
        self._scheduler = scheduler
        self._on_notice = on_notice

        self.state = SessionState(playback_rate=config.playback.default_rate)
        self.clip: Clip | None = None

        self._loaded_video_id: str | None = None
        self._session_generation = 0
        self._recording_generation = 0
        self._pending_seek: ScheduledCall | None = None
        self._playback_url: PlaybackUrl | None = None
        self._background: set[asyncio.Task] = set()
        self._capture_inflight = False
        self._closed = False

        player.bind(on_ready=self.on_player_ready, on_state_change=self.on_player_state_change)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def rates(self) -> list[float]:
        return list(self._playback.rates)

    def set_notice_handler(self, handler: Callable[[SessionNotice], None] | None) -> None:
        self._on_notice = handler

    # --- Session lifecycle ---

    async def open(self, clip_id: str) -> Clip | None:
        """Load a clip and start a fresh session on it.

        Returns None when a newer ``open`` superseded this one while it was
        loading. Raises ClipNotFoundError for unknown ids.
        """
        self._session_generation += 1
        generation = self._session_generation

        clip = await self._store.get_clip(clip_id)
        recording = await self._store.get_recording(self._user_id, clip_id)
        favorite = await self._store.is_favorite(self._user_id, clip_id)

        if generation != self._session_generation:
            log.info('Discarding superseded session load for clip %s', clip_id)
            return None

        self._abort_capture()
        self._cancel_pending_seek()
        same_video = clip.video_id == self._loaded_video_id
        self.clip = clip
        self.state = SessionState(
            current_time=clip.start_time,
            playback_rate=self.state.playback_rate,
            unlocked=self.state.unlocked and same_video,
            recording=recording,
            is_favorite=favorite,
        )
        self._playback_url = None
        self._closed = False

        if same_video:
            self._player.seek(clip.start_time)
        else:
            self._player.load(clip.video_id, clip.start_time, clip.end_time)
            self._loaded_video_id = clip.video_id
        self._player.set_rate(self.state.playback_rate)

        log.info(
            'Session opened: clip=%s video=%s range=[%.2f, %.2f) recording=%s',
            clip.id,
            clip.video_id,
            clip.start_time,
            clip.end_time,
            recording is not None,
        )
        self._spawn_background(
            self._store.record_practice_event(self._user_id, clip.id, datetime.now(timezone.utc)),
            'Practice history append',
        )
        return clip

    def close(self) -> None:
        """Tear down: drop any recording in flight and destroy the player."""
        if self._closed:
            return
        self._closed = True
        self._session_generation += 1
        if self._abort_capture():
            log.info('Session closed mid-recording; audio discarded')
        self._cancel_pending_seek()
        self._player.destroy()
        self._loaded_video_id = None

    async def wait_background(self) -> None:
        """Wait for fire-and-forget side effects (history, streak) to settle."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # --- Player events ---

    def on_player_ready(self) -> None:
        self._player.set_rate(self.state.playback_rate)

    def on_player_state_change(self, player_state: PlayerState) -> None:
        if self._closed or self.clip is None:
            return
        state = self.state
        state.is_playing = player_state == PlayerState.PLAYING

        if player_state == PlayerState.PLAYING:
            if not state.unlocked:
                log.info('Player unlocked by first playback')
                state.unlocked = True
            return

        if state.mode == PracticeMode.PRACTICE:
            if player_state == PlayerState.ENDED:
                self._restart_loop_after_end()
            return

        if state.phase != RecordingPhase.RECORDING:
            return

        if player_state == PlayerState.ENDED:
            log.info('Player ended during recording')
            self.finish_recording()
        elif player_state == PlayerState.PAUSED:
            current = self._player.get_current_time()
            state.current_time = current
            if is_end_of_clip_pause(self.clip, current, self._playback.end_pause_tolerance):
                log.info('Pause at %.3fs treated as end of clip', current)
                self.finish_recording()
            else:
                log.info('Pause at %.3fs interrupted recording', current)
                self.give_up_recording()
                self._notify('warning', 'Recording discarded: playback was paused')

    def _restart_loop_after_end(self) -> None:
        # Some players stop on their own at the clip end before a tick sees it.
        target = loop_seek_target(self.clip, self.state.loop, self.state.looping, self.clip.end_time)
        if target is not None:
            self._player.seek(target)
            self._player.play()

    # --- Polling ---

    def tick(self) -> None:
        """Sample the playhead; drive transcript sync, A/B looping and the auto-stop check."""
        if self._closed or self.clip is None or not self.state.is_playing:
            return
        clip = self.clip
        state = self.state

        current = self._player.get_current_time()
        state.current_time = current
        state.active_index = active_index(clip.transcript, current * 1000)

        if state.mode == PracticeMode.RECORDING:
            if state.phase == RecordingPhase.RECORDING and reached_clip_end(clip, current):
                log.info('Poll reached clip end at %.3fs while recording', current)
                self.finish_recording()
        else:
            target = loop_seek_target(clip, state.loop, state.looping, current)
            if target is not None:
                log.debug('Loop: %.3fs -> %.3fs', current, target)
                self._player.seek(target)

    # --- Transport ---

    def toggle_play(self) -> None:
        if self.clip is None:
            return
        if self.state.is_playing:
            self._player.pause()
        else:
            self._player.play()

    def restart(self) -> bool:
        if self.clip is None or self.state.phase == RecordingPhase.RECORDING:
            return False
        self._seek_now(self.clip.start_time)
        self._player.play()
        return True

    def seek_to_segment(self, index: int) -> bool:
        """Jump to a transcript line and play from there."""
        if self.clip is None or self.state.phase == RecordingPhase.RECORDING:
            return False
        segment = self.clip.transcript[index]
        self._seek_now(segment.offset / 1000)
        self._player.play()
        return True

    def set_rate(self, rate: float) -> None:
        if rate not in self._playback.rates:
            raise ValueError(f'Unsupported playback rate {rate}; allowed: {self._playback.rates}')
        self.state.playback_rate = rate
        self._player.set_rate(rate)

    def cycle_rate(self) -> float:
        rates = self._playback.rates
        try:
            idx = rates.index(self.state.playback_rate)
        except ValueError:
            idx = -1
        rate = rates[(idx + 1) % len(rates)]
        self.set_rate(rate)
        return rate

    # --- A/B loop ---

    def toggle_loop_start(self) -> float | None:
        """Mark A at the current playhead, or clear it if already set."""
        loop = self.state.loop
        loop.a = self._player.get_current_time() if loop.a is None else None
        self._after_marker_toggle(marker_set=loop.a is not None)
        return loop.a

    def toggle_loop_end(self) -> float | None:
        """Mark B at the current playhead, or clear it if already set."""
        loop = self.state.loop
        loop.b = self._player.get_current_time() if loop.b is None else None
        self._after_marker_toggle(marker_set=loop.b is not None)
        return loop.b

    def toggle_looping(self) -> bool:
        self.state.looping = not self.state.looping
        return self.state.looping

    def clear_loop(self) -> None:
        self.state.loop.a = None
        self.state.loop.b = None

    def _after_marker_toggle(self, *, marker_set: bool) -> None:
        if marker_set:
            self.state.looping = True
        elif self.state.loop.is_empty:
            self.state.looping = False

    # --- Mode ---

    def switch_mode(self, mode: PracticeMode | None = None) -> bool:
        """Switch between practice and recording. Refused while recording."""
        if self.clip is None:
            return False
        state = self.state
        if state.phase == RecordingPhase.RECORDING:
            self._notify('warning', 'Finish or give up the recording before switching modes')
            return False
        if mode is None:
            mode = PracticeMode.RECORDING if state.mode == PracticeMode.PRACTICE else PracticeMode.PRACTICE

        self._player.pause()
        if state.pending_blob is not None:
            log.info('Mode switch discards the unsaved review')
        state.mode = mode
        state.phase = RecordingPhase.IDLE
        state.pending_blob = None
        self._schedule_seek(self.clip.start_time)
        log.info('Mode -> %s', mode.value)
        return True

    # --- Recording ---

    async def start_recording(self) -> bool:
        """Idle -> Recording: rewind, play, and open the microphone.

        Refused while an earlier microphone start is still pending, even one
        that was already given up.
        """
        state = self.state
        if self.clip is None or state.mode != PracticeMode.RECORDING or state.phase != RecordingPhase.IDLE:
            return False
        if self._capture_inflight:
            log.info('Recording refused: previous microphone start still pending')
            self._notify('warning', 'Microphone is still starting, try again in a moment')
            return False

        self._cancel_pending_seek()
        self._recording_generation += 1
        generation = self._recording_generation
        state.phase = RecordingPhase.RECORDING
        state.capture_pending = True
        state.pending_blob = None
        state.last_error = ''

        self._player.seek(self.clip.start_time)
        self._player.play()

        self._capture_inflight = True
        try:
            await self._recorder.start()
        except RecorderStartError as e:
            if generation != self._recording_generation:
                log.info('Recorder start failed after the attempt was superseded: %s', e)
                return False
            self.state.capture_pending = False
            self.state.phase = RecordingPhase.IDLE
            self._player.pause()
            self._report_error(e.user_message, e)
            return False
        except asyncio.CancelledError:
            if generation == self._recording_generation:
                self._recording_generation += 1
                self.state.capture_pending = False
                self.state.phase = RecordingPhase.IDLE
            raise
        finally:
            self._capture_inflight = False

        if generation != self._recording_generation:
            log.info('Recording attempt superseded while acquiring the microphone; dropping audio')
            self._recorder.stop()
            return False

        self.state.capture_pending = False
        log.info('Recording started for clip %s', self.clip.id)
        return True

    def finish_recording(self) -> bool:
        """Recording -> Reviewing: keep the blob for preview, don't persist yet."""
        if self.state.phase != RecordingPhase.RECORDING:
            return False
        blob = self._end_capture()
        if blob is None:
            self.state.phase = RecordingPhase.IDLE
            self._notify('warning', 'Nothing was recorded')
            return False
        self.state.pending_blob = blob
        self.state.phase = RecordingPhase.REVIEWING
        log.info('Recording finished (%.2fs of audio), awaiting review', blob.duration_seconds)
        return True

    def give_up_recording(self) -> bool:
        """Recording -> Idle: drop the audio immediately."""
        if self.state.phase != RecordingPhase.RECORDING:
            return False
        self._end_capture()
        self.state.phase = RecordingPhase.IDLE
        log.info('Recording discarded')
        return True

    def discard_review(self) -> bool:
        state = self.state
        if state.phase != RecordingPhase.REVIEWING or state.saving:
            return False
        state.pending_blob = None
        state.phase = RecordingPhase.IDLE
        return True

    async def save_recording(self) -> Recording | None:
        """Reviewing -> Idle: upload the blob, overwriting the previous recording.

        On failure the blob is kept and the session stays in Reviewing.
        """
        state = self.state
        if self.clip is None or state.phase != RecordingPhase.REVIEWING or state.pending_blob is None:
            return None
        if state.saving:
            return None

        blob = state.pending_blob
        clip_id = self.clip.id
        generation = self._session_generation
        state.saving = True
        try:
            recording = await self._store.save_recording(self._user_id, clip_id, blob)
        except StoreError as e:
            if generation == self._session_generation:
                self.state.saving = False
                self._report_error('Failed to save the recording', e)
            return None

        self._spawn_background(self._store.update_streak(self._user_id), 'Streak update')

        if generation != self._session_generation:
            log.info('Save for clip %s completed after the session changed', clip_id)
            return recording

        state = self.state
        state.saving = False
        state.recording = recording
        self._playback_url = None
        if state.phase == RecordingPhase.REVIEWING and state.pending_blob is blob:
            state.pending_blob = None
            state.phase = RecordingPhase.IDLE
        log.info('Recording saved to %s', recording.storage_path)
        self._notify('info', 'Recording saved')
        return recording

    async def delete_recording(self) -> bool:
        state = self.state
        if self.clip is None or state.recording is None or state.phase == RecordingPhase.RECORDING:
            return False
        generation = self._session_generation
        try:
            await self._store.delete_recording(self._user_id, self.clip.id)
        except StoreError as e:
            self._report_error('Failed to delete the recording', e)
            return False
        if generation == self._session_generation:
            self.state.recording = None
            self._playback_url = None
        return True

    async def playback_url(self) -> PlaybackUrl | None:
        """Signed URL of the saved recording, cached until it expires."""
        recording = self.state.recording
        if recording is None:
            return None
        cached = self._playback_url
        if cached is not None and not cached.is_expired():
            return cached

        generation = self._session_generation
        try:
            url = await self._store.get_signed_playback_url(recording.storage_path, self._url_ttl)
        except StoreError as e:
            self._report_error('Could not load the saved recording', e)
            return None
        if generation == self._session_generation and self.state.recording is recording:
            self._playback_url = url
        return url

    # --- Favorites ---

    async def toggle_favorite(self) -> bool:
        if self.clip is None:
            return False
        was_favorite = self.state.is_favorite
        generation = self._session_generation
        try:
            if was_favorite:
                await self._store.remove_favorite(self._user_id, self.clip.id)
            else:
                await self._store.add_favorite(self._user_id, self.clip.id)
        except StoreError as e:
            self._report_error('Failed to update favorites', e)
            return was_favorite
        if generation == self._session_generation:
            self.state.is_favorite = not was_favorite
        return not was_favorite

    # --- Internals ---

    def _end_capture(self) -> AudioBlob | None:
        self._recording_generation += 1
        self.state.capture_pending = False
        self._player.pause()
        return self._recorder.stop()

    def _abort_capture(self) -> bool:
        if self.state.phase != RecordingPhase.RECORDING:
            return False
        self._recording_generation += 1
        self.state.capture_pending = False
        self.state.phase = RecordingPhase.IDLE
        self._recorder.stop()
        return True

    def _seek_now(self, time_sec: float) -> None:
        self._cancel_pending_seek()
        self._player.seek(time_sec)
        self._sync_position(time_sec)

    def _sync_position(self, time_sec: float) -> None:
        self.state.current_time = time_sec
        if self.clip is not None:
            self.state.active_index = active_index(self.clip.transcript, time_sec * 1000)

    def _schedule_seek(self, time_sec: float) -> None:
        """Seek after the player has had time to settle its pause."""
        self._cancel_pending_seek()
        generation = self._session_generation

        def _deferred_seek() -> None:
            self._pending_seek = None
            if self._closed or generation != self._session_generation:
                return
            self._player.seek(time_sec)
            self._sync_position(time_sec)

        scheduler = self._scheduler or asyncio.get_running_loop()
        self._pending_seek = scheduler.call_later(self._playback.seek_settle_delay, _deferred_seek)

    def _cancel_pending_seek(self) -> None:
        if self._pending_seek is not None:
            self._pending_seek.cancel()
            self._pending_seek = None

    def _spawn_background(self, coro: Coroutine[Any, Any, Any], label: str) -> None:
        task = asyncio.ensure_future(coro)
        self._background.add(task)

        def _done(t: asyncio.Task) -> None:
            self._background.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                log.warning('%s failed: %s', label, exc, exc_info=exc)

        task.add_done_callback(_done)

    def _report_error(self, message: str, exc: Exception) -> None:
        log.error('%s: %s: %s', message, type(exc).__name__, exc, exc_info=exc)
        self.state.last_error = message
        self._notify('error', message)

    def _notify(self, level: str, message: str) -> None:
        if self._on_notice is not None:
            self._on_notice(SessionNotice(level=level, message=message))
