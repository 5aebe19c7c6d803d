"""PracticeApp — listen, loop, and record yourself against one clip."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from textual.app import App as TextualApp
from textual.app import ComposeResult
from textual.binding import Binding
from textual.widgets import OptionList, Static

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.config import AppConfig
from shadow_drill.l1_entities.errors import ClipNotFoundError, PlaybackUrlError, StoreError
from shadow_drill.l1_entities.session_state import PracticeMode, RecordingPhase, SessionNotice
from shadow_drill.l2_use_cases.clip_authoring import wpm_label
from shadow_drill.l2_use_cases.ports.audio_output import AudioOutput
from shadow_drill.l3_interface_adapters.controllers.session_controller import SessionController
from shadow_drill.l4_frameworks_and_drivers.logging_setup import LOG_FILENAME, setup_file_logging
from shadow_drill.l4_frameworks_and_drivers.messages import SessionNoticePosted
from shadow_drill.l4_frameworks_and_drivers.widgets.help_modal import HelpModal
from shadow_drill.l4_frameworks_and_drivers.widgets.status_bar import StatusBar
from shadow_drill.l4_frameworks_and_drivers.widgets.transcript_panel import TranscriptPanel

log = logging.getLogger('shd.app')

_SEVERITY = {'info': 'information', 'warning': 'warning', 'error': 'error'}

_HELP_KEYS = [
    ('space', 'Play / pause (the first press unlocks loop and record controls)'),
    ('r', 'Restart from the clip start'),
    ('s', 'Next playback speed'),
    ('m', 'Switch practice / recording mode'),
    ('a / b', 'Set or clear loop marker A / B'),
    ('x', 'Clear both loop markers'),
    ('l', 'Toggle looping'),
    ('v', 'Start recording'),
    ('f', 'Finish recording'),
    ('g', 'Give up recording'),
    ('w', 'Save the reviewed take'),
    ('d', 'Discard the reviewed take'),
    ('p', 'Play the take under review, or your saved recording'),
    ('t', 'Toggle translation lines'),
    ('enter', 'Jump to the highlighted line'),
    ('h', 'Toggle this help'),
    ('q', 'Quit'),
]

_HELP_INDICATORS = [
    ('○ Press space', 'Player locked until the first playback'),
    ('▶ Playing  ❚❚ Paused', 'Transport state'),
    ('⟳ Mic…', 'Waiting for the microphone'),
    ('● Rec', 'Recording your attempt'),
    ('◆ Review', 'Take ready to save or discard'),
    ('A 00:00 B 00:00 loop on', 'A/B loop markers and looping flag'),
    ('♪ saved', 'A recording of this clip is stored'),
]


class PracticeApp(TextualApp):
    """Shadowing practice TUI — transcript sync, A/B loop, record and review."""

    CSS = """
    #header {
        dock: top;
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding('q', 'quit_app', 'Quit', priority=True),
        Binding('space', 'toggle_play', 'Play/Pause', priority=True),
        Binding('r', 'restart', 'Restart'),
        Binding('s', 'cycle_rate', 'Speed'),
        Binding('m', 'switch_mode', 'Mode'),
        Binding('a', 'mark_a', 'Mark A', show=False),
        Binding('b', 'mark_b', 'Mark B', show=False),
        Binding('x', 'clear_loop', 'Clear loop', show=False),
        Binding('l', 'toggle_looping', 'Loop', show=False),
        Binding('v', 'start_recording', 'Record', show=False),
        Binding('f', 'finish_recording', 'Finish', show=False),
        Binding('g', 'give_up', 'Give up', show=False),
        Binding('w', 'save_recording', 'Save', show=False),
        Binding('d', 'discard_review', 'Discard', show=False),
        Binding('p', 'play_recording', 'Play take', show=False),
        Binding('t', 'toggle_translation', 'Translation', show=False),
        Binding('h', 'show_help', 'Help', priority=True),
    ]

    def __init__(
        self,
        config: AppConfig,
        clip_id: str,
        log_dir: Path,
        controller: SessionController | None = None,
        audio_output: AudioOutput | None = None,
        url_resolver: Callable[[str], Path] | None = None,
        user_id: str | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._config = config
        self._clip_id = clip_id

        setup_file_logging(log_dir)

        if controller is not None:
            self._controller = controller
            self._audio_output = audio_output
            self._url_resolver = url_resolver
        else:  # pragma: no cover -- composition-root wiring; controller always injected in tests
            from shadow_drill.l4_frameworks_and_drivers.container import (  # noqa: PLC0415 -- deferred: only wired when no controller injected (non-test path)
                DependencyContainer,
            )

            container = DependencyContainer(config, user_id=user_id)
            self._controller = container.controller
            self._audio_output = container.audio_output
            self._url_resolver = container.store.resolve_playback_url

        self._clip: Clip | None = None
        self._quitting = False

    @property
    def controller(self) -> SessionController:
        return self._controller

    def _build_header_text(self) -> str:
        clip = self._clip
        if clip is None:
            return f'  shadow-drill | {self._clip_id}'
        header_text = f'  shadow-drill | {clip.title or clip.id}'
        if clip.wpm is not None:
            header_text += f' | {clip.wpm} wpm ({wpm_label(clip.wpm)})'
        if self._controller.state.is_favorite:
            header_text += ' ★'
        return header_text

    def compose(self) -> ComposeResult:
        yield Static(self._build_header_text(), id='header')
        yield TranscriptPanel(id='transcript-panel')
        yield StatusBar(id='status-bar')

    def on_mount(self) -> None:
        self._controller.set_notice_handler(self._post_notice)
        self._sync_view()
        self.run_worker(self._open_session, exclusive=True, group='session')
        self.set_interval(self._config.playback.poll_interval, self._on_tick)

    def _post_notice(self, notice: SessionNotice) -> None:
        self.post_message(SessionNoticePosted(notice))

    async def _open_session(self) -> None:
        try:
            clip = await self._controller.open(self._clip_id)
        except ClipNotFoundError:
            self.notify(f'Clip not found: {self._clip_id}', severity='error', timeout=8)
            return
        except StoreError as e:
            log.error('Failed to open clip %s: %s', self._clip_id, e, exc_info=True)
            self.notify(f'Could not open clip: {e} (see {LOG_FILENAME})', severity='error', timeout=8)
            return
        if clip is None:
            return
        self._clip = clip
        self.query_one('#transcript-panel', TranscriptPanel).load_clip(clip)
        self.query_one('#header', Static).update(self._build_header_text())
        self._sync_view()

    # --- View sync ---

    def _on_tick(self) -> None:
        self._controller.tick()
        self._sync_view()

    def _hints_for_state(self) -> str:
        state = self._controller.state
        if not state.unlocked:
            return r'\[Space] play  \[h] help  \[q] quit'
        if state.mode == PracticeMode.PRACTICE:
            return r'\[Space] play  \[a]/\[b] loop  \[s] speed  \[m] record mode  \[h] help'
        if state.phase == RecordingPhase.RECORDING:
            return r'\[f] finish  \[g] give up'
        if state.phase == RecordingPhase.REVIEWING:
            return r'\[p] listen  \[w] save  \[d] discard'
        return r'\[v] record  \[p] my take  \[m] practice mode  \[h] help'

    def _sync_view(self) -> None:
        state = self._controller.state
        try:
            bar = self.query_one('#status-bar', StatusBar)
            panel = self.query_one('#transcript-panel', TranscriptPanel)
        except Exception:  # noqa: S110 -- TUI race guard; widget may not exist during startup  # pragma: no cover
            return
        clip = self._clip
        if clip is not None:
            bar.clip_start = clip.start_time
            bar.clip_end = clip.end_time
        bar.mode = state.mode
        bar.phase = state.phase
        bar.playing = state.is_playing
        bar.unlocked = state.unlocked
        bar.capture_pending = state.capture_pending
        bar.saving = state.saving
        bar.current_time = state.current_time
        bar.rate = state.playback_rate
        bar.loop_a = state.loop.a
        bar.loop_b = state.loop.b
        bar.looping = state.looping
        bar.has_recording = state.recording is not None
        bar.keybinding_hints = self._hints_for_state()
        panel.show_active(state.active_index)

    # --- Message Handlers ---

    def on_session_notice_posted(self, message: SessionNoticePosted) -> None:
        notice = message.notice
        text = notice.message
        if notice.level == 'error':
            text = f'{text} (see {LOG_FILENAME})'
        self.notify(text, severity=_SEVERITY[notice.level], timeout=8 if notice.level == 'error' else 3)
        self._sync_view()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        if not self._controller.seek_to_segment(event.option_index):
            self.notify('Finish or give up the recording first', severity='warning', timeout=3)
        self._sync_view()

    # --- Actions ---

    def _require_unlocked(self) -> bool:
        if self._controller.state.unlocked:
            return True
        self.notify('Press space to start playback first', timeout=2)
        return False

    def action_toggle_play(self) -> None:
        self._controller.toggle_play()

    def action_restart(self) -> None:
        if not self._controller.restart():
            self.notify('Finish or give up the recording first', severity='warning', timeout=3)
        self._sync_view()

    def action_cycle_rate(self) -> None:
        rate = self._controller.cycle_rate()
        self.notify(f'Speed {rate:g}x', timeout=1)
        self._sync_view()

    def action_switch_mode(self) -> None:
        if self._controller.switch_mode():
            mode = self._controller.state.mode
            self.notify('Recording mode' if mode == PracticeMode.RECORDING else 'Practice mode', timeout=2)
        self._sync_view()

    def action_mark_a(self) -> None:
        if not self._require_unlocked() or self._controller.state.mode != PracticeMode.PRACTICE:
            return
        self._controller.toggle_loop_start()
        self._sync_view()

    def action_mark_b(self) -> None:
        if not self._require_unlocked() or self._controller.state.mode != PracticeMode.PRACTICE:
            return
        self._controller.toggle_loop_end()
        self._sync_view()

    def action_clear_loop(self) -> None:
        if not self._require_unlocked():
            return
        self._controller.clear_loop()
        self._sync_view()

    def action_toggle_looping(self) -> None:
        if not self._require_unlocked():
            return
        looping = self._controller.toggle_looping()
        self.notify('Loop on' if looping else 'Loop off', timeout=1)
        self._sync_view()

    def action_start_recording(self) -> None:
        if not self._require_unlocked():
            return
        state = self._controller.state
        if state.mode != PracticeMode.RECORDING:
            self.notify('Press m to switch to recording mode', timeout=2)
            return
        if state.phase != RecordingPhase.IDLE:
            return

        async def _start_task() -> None:
            await self._controller.start_recording()
            self._sync_view()

        self.run_worker(_start_task, group='recorder')
        self._sync_view()

    def action_finish_recording(self) -> None:
        self._controller.finish_recording()
        self._sync_view()

    def action_give_up(self) -> None:
        if self._controller.give_up_recording():
            self.notify('Recording discarded', timeout=2)
        self._sync_view()

    def action_save_recording(self) -> None:
        state = self._controller.state
        if state.phase != RecordingPhase.REVIEWING or state.saving:
            return

        async def _save_task() -> None:
            await self._controller.save_recording()
            self._sync_view()

        self.run_worker(_save_task, exclusive=True, group='upload')
        self._sync_view()

    def action_discard_review(self) -> None:
        if self._controller.discard_review():
            self.notify('Take discarded', timeout=2)
        self._sync_view()

    def action_play_recording(self) -> None:
        if self._audio_output is None:
            self.notify('No audio output available', severity='warning', timeout=3)
            return
        state = self._controller.state
        if state.phase == RecordingPhase.REVIEWING and state.pending_blob is not None:
            self._audio_output.play(state.pending_blob.data)
            return
        if state.recording is None:
            self.notify('No saved recording for this clip yet', timeout=2)
            return
        self.run_worker(self._play_saved_recording, exclusive=True, group='playback')

    async def _play_saved_recording(self) -> None:
        url = await self._controller.playback_url()
        if url is None or self._audio_output is None or self._url_resolver is None:
            return
        try:
            path = self._url_resolver(url.url)
            data = await asyncio.to_thread(path.read_bytes)
        except (PlaybackUrlError, OSError) as e:
            log.error('Cannot play saved recording: %s', e, exc_info=True)
            self.notify(f'Cannot play the saved recording (see {LOG_FILENAME})', severity='error', timeout=8)
            return
        self._audio_output.play(data)

    def action_toggle_translation(self) -> None:
        clip = self._clip
        if clip is None or not clip.has_secondary:
            self.notify('This clip has no translation', timeout=2)
            return
        panel = self.query_one('#transcript-panel', TranscriptPanel)
        shown = panel.toggle_secondary()
        self.notify('Translation on' if shown else 'Translation off', timeout=1)

    def action_show_help(self) -> None:
        if isinstance(self.screen, HelpModal):
            self.screen.dismiss()
            return
        title = self._clip.title if self._clip is not None else ''
        self.push_screen(
            HelpModal(
                clip_title=title,
                sections=[
                    ('Status Bar', 'Indicator', _HELP_INDICATORS),
                    ('Keybindings', 'Key', _HELP_KEYS),
                ],
            )
        )

    def action_quit_app(self) -> None:
        if self._quitting:
            return
        self._quitting = True
        if self._controller.state.phase == RecordingPhase.RECORDING:
            log.info('Quit during recording; take discarded')
        self._controller.close()
        if self._audio_output is not None:
            self._audio_output.stop()

        async def _shutdown_task() -> None:
            await self._controller.wait_background()
            self.exit()

        self.run_worker(_shutdown_task, exclusive=True, group='shutdown')
