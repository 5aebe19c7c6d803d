"""Status bar — bottom bar showing mode, playhead, rate, A/B loop, and keybinding hints."""

from __future__ import annotations

from rich.cells import cell_len
from textual.reactive import reactive
from textual.widgets import Static

from shadow_drill.l1_entities.session_state import PracticeMode, RecordingPhase
from shadow_drill.l1_entities.transcript import format_clock


def _format_rate(rate: float) -> str:
    return f'{rate:g}x'


class StatusBar(Static):
    """Bottom status bar with playback state, loop markers, recording phase, and hints."""

    DEFAULT_CSS = """
    StatusBar {
        dock: bottom;
        height: auto;
        background: $surface;
        color: $text;
        padding: 0 1;
        overflow: hidden hidden;
    }
    """

    mode: reactive[PracticeMode] = reactive(PracticeMode.PRACTICE)
    phase: reactive[RecordingPhase] = reactive(RecordingPhase.IDLE)
    playing: reactive[bool] = reactive(False)
    unlocked: reactive[bool] = reactive(False)
    capture_pending: reactive[bool] = reactive(False)
    saving: reactive[bool] = reactive(False)
    current_time: reactive[float] = reactive(0.0)
    clip_start: reactive[float] = reactive(0.0)
    clip_end: reactive[float] = reactive(0.0)
    rate: reactive[float] = reactive(1.0)
    loop_a: reactive[float | None] = reactive(None)
    loop_b: reactive[float | None] = reactive(None)
    looping: reactive[bool] = reactive(False)
    has_recording: reactive[bool] = reactive(False)
    keybinding_hints: reactive[str] = reactive('')

    def _status_icon(self) -> str:
        if self.saving:
            return '⟳ Saving'
        if self.phase == RecordingPhase.RECORDING:
            return '⟳ Mic…' if self.capture_pending else '● Rec'
        if self.phase == RecordingPhase.REVIEWING:
            return '◆ Review'
        if self.playing:
            return '▶ Playing'
        if not self.unlocked:
            return '○ Press space'
        return '❚❚ Paused'

    def _loop_label(self) -> str:
        a = format_clock(self.loop_a) if self.loop_a is not None else '--:--'
        b = format_clock(self.loop_b) if self.loop_b is not None else '--:--'
        state = 'on' if self.looping else 'off'
        return f'A {a} B {b} loop {state}'

    def render(self) -> str:
        elapsed = max(self.current_time - self.clip_start, 0.0)
        total = max(self.clip_end - self.clip_start, 0.0)

        left_parts = [
            'Practice' if self.mode == PracticeMode.PRACTICE else 'Record',
            self._status_icon(),
            f'{format_clock(elapsed)} / {format_clock(total)}',
            _format_rate(self.rate),
        ]
        if self.mode == PracticeMode.PRACTICE:
            left_parts.append(self._loop_label())
        if self.has_recording:
            left_parts.append('♪ saved')
        left = ' │ '.join(left_parts)

        content_width = (self.size.width or 80) - 2

        hints = self.keybinding_hints
        if hints:
            hints_width = cell_len(hints.replace(r'\[', '['))
            gap = content_width - cell_len(left) - hints_width
            if gap >= 2:
                left = left + ' ' * gap + hints
            else:
                left = left + '\n' + hints
        return left
