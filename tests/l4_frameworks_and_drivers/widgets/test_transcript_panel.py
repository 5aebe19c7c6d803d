"""Tests for TranscriptPanel."""

from __future__ import annotations

import pytest
from textual.app import App, ComposeResult

from shadow_drill.l4_frameworks_and_drivers.widgets.transcript_panel import TranscriptPanel
from tests.conftest import make_clip, make_segments


class _PanelApp(App):
    def compose(self) -> ComposeResult:
        yield TranscriptPanel(id='transcript-panel')


def _prompt(panel: TranscriptPanel, index: int) -> str:
    return panel.get_option_at_index(index).prompt.plain


class TestTranscriptPanel:
    @pytest.mark.asyncio
    async def test_load_clip_lists_lines_with_times(self):
        app = _PanelApp()
        async with app.run_test():
            panel = app.query_one(TranscriptPanel)
            panel.load_clip(make_clip())

            assert panel.option_count == 3
            assert _prompt(panel, 1) == '00:13 second line'

    @pytest.mark.asyncio
    async def test_show_active_moves_highlight(self):
        app = _PanelApp()
        async with app.run_test():
            panel = app.query_one(TranscriptPanel)
            panel.load_clip(make_clip())

            panel.show_active(2)
            assert panel.highlighted == 2

            panel.show_active(None)
            assert panel.highlighted == 2

            panel.show_active(7)
            assert panel.highlighted == 2

    @pytest.mark.asyncio
    async def test_translation_lines_toggle(self):
        secondary = make_segments(('primera', 10000), ('segunda', 13100))
        app = _PanelApp()
        async with app.run_test():
            panel = app.query_one(TranscriptPanel)
            panel.load_clip(make_clip(transcript_secondary=secondary))
            assert 'segunda' not in _prompt(panel, 1)

            assert panel.toggle_secondary()
            assert panel.show_secondary
            assert 'segunda' in _prompt(panel, 1)
            # Third line at 16000ms is 2900ms from the nearest translation.
            assert 'segunda' in _prompt(panel, 2)

            assert not panel.toggle_secondary()
            assert 'segunda' not in _prompt(panel, 1)
