"""Gateway: wall-clock virtual player — implements Player port.

Stands in for the embedded video player when practicing from the terminal:
the playhead advances with the monotonic clock at the current rate, stops at
the loaded end time, and reports state changes asynchronously on the event
loop like a remote player would.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from shadow_drill.l1_entities.player_state import PlayerState

log = logging.getLogger('shd.player')


class VirtualClockPlayer:
    def __init__(
        self,
        loop: asyncio.AbstractEventLoop | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loop = loop
        self._clock = clock
        self._on_ready: Callable[[], None] | None = None
        self._on_state_change: Callable[[PlayerState], None] | None = None

        self._video_id: str | None = None
        self._start = 0.0
        self._end = 0.0
        self._rate = 1.0
        self._state = PlayerState.UNSTARTED
        self._anchor_pos = 0.0
        self._anchor_clock = 0.0
        self._end_timer: asyncio.TimerHandle | None = None
        self._destroyed = False

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def video_id(self) -> str | None:
        return self._video_id

    def bind(
        self,
        on_ready: Callable[[], None],
        on_state_change: Callable[[PlayerState], None],
    ) -> None:
        self._on_ready = on_ready
        self._on_state_change = on_state_change

    def load(self, video_id: str, start_sec: float, end_sec: float) -> None:
        self._cancel_end_timer()
        self._video_id = video_id
        self._start = start_sec
        self._end = end_sec
        self._anchor_pos = start_sec
        self._state = PlayerState.CUED
        self._destroyed = False
        log.info('Loaded video %s [%.2f, %.2f)', video_id, start_sec, end_sec)
        self._emit_ready()

    def play(self) -> None:
        if self._destroyed or self._video_id is None or self._state == PlayerState.PLAYING:
            return
        if self._position() >= self._end:
            self._anchor_pos = self._start
        self._anchor_clock = self._clock()
        self._set_state(PlayerState.PLAYING)
        self._arm_end_timer()

    def pause(self) -> None:
        if self._state != PlayerState.PLAYING:
            return
        self._anchor_pos = self._position()
        self._cancel_end_timer()
        self._set_state(PlayerState.PAUSED)

    def seek(self, time_sec: float) -> None:
        if self._video_id is None:
            return
        self._anchor_pos = min(max(time_sec, 0.0), self._end)
        self._anchor_clock = self._clock()
        if self._state == PlayerState.ENDED and self._anchor_pos < self._end:
            self._state = PlayerState.PAUSED
        if self._state == PlayerState.PLAYING:
            self._arm_end_timer()

    def get_current_time(self) -> float:
        position = self._position()
        if self._state == PlayerState.PLAYING and position >= self._end:
            self._reach_end()
            return self._end
        return position

    def set_rate(self, multiplier: float) -> None:
        # Re-anchor so the playhead stays continuous across the change.
        self._anchor_pos = self._position()
        self._anchor_clock = self._clock()
        self._rate = multiplier
        if self._state == PlayerState.PLAYING:
            self._arm_end_timer()

    def destroy(self) -> None:
        self._cancel_end_timer()
        self._destroyed = True
        self._video_id = None
        self._state = PlayerState.UNSTARTED

    # --- Internals ---

    def _position(self) -> float:
        if self._state != PlayerState.PLAYING:
            return self._anchor_pos
        elapsed = (self._clock() - self._anchor_clock) * self._rate
        return min(self._anchor_pos + elapsed, self._end)

    def _reach_end(self) -> None:
        self._cancel_end_timer()
        self._anchor_pos = self._end
        self._set_state(PlayerState.ENDED)

    def _arm_end_timer(self) -> None:
        self._cancel_end_timer()
        loop = self._get_loop()
        if loop is None:
            return
        remaining = max(self._end - self._position(), 0.0) / self._rate
        self._end_timer = loop.call_later(remaining, self._on_end_timer)

    def _on_end_timer(self) -> None:
        self._end_timer = None
        if self._state == PlayerState.PLAYING:
            self.get_current_time()
            if self._state == PlayerState.PLAYING:
                self._arm_end_timer()

    def _cancel_end_timer(self) -> None:
        if self._end_timer is not None:
            self._end_timer.cancel()
            self._end_timer = None

    def _set_state(self, state: PlayerState) -> None:
        if state == self._state:
            return
        self._state = state
        callback = self._on_state_change
        if callback is None or self._destroyed:
            return
        self._deliver(lambda: None if self._destroyed else callback(state))

    def _emit_ready(self) -> None:
        callback = self._on_ready
        if callback is not None:
            self._deliver(callback)

    def _deliver(self, fn: Callable[[], None]) -> None:
        loop = self._get_loop()
        if loop is None:
            fn()
            return
        loop.call_soon(fn)

    def _get_loop(self) -> asyncio.AbstractEventLoop | None:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None
