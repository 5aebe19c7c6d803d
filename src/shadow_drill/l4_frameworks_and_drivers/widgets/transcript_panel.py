"""Transcript panel — option list of clip lines with the spoken line highlighted."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import OptionList
from textual.widgets.option_list import Option

from shadow_drill.l1_entities.clip import Clip
from shadow_drill.l1_entities.transcript import format_clock
from shadow_drill.l2_use_cases.transcript_index import match_secondary


class TranscriptPanel(OptionList):
    """Clip transcript; highlight follows playback, enter jumps to a line."""

    DEFAULT_CSS = """
    TranscriptPanel {
        border: solid $primary;
        scrollbar-size: 1 1;
        height: 1fr;
    }
    TranscriptPanel:focus {
        border: solid $accent;
    }
    """

    def __init__(self, title: str = 'Transcript', **kwargs) -> None:
        super().__init__(**kwargs)
        self.border_title = title
        self._clip: Clip | None = None
        self._show_secondary = False

    @property
    def show_secondary(self) -> bool:
        return self._show_secondary

    def load_clip(self, clip: Clip) -> None:
        self._clip = clip
        self._rebuild()

    def toggle_secondary(self) -> bool:
        self._show_secondary = not self._show_secondary
        self._rebuild()
        return self._show_secondary

    def show_active(self, index: int | None) -> None:
        """Move the highlight to the line being spoken."""
        if index is None or index == self.highlighted:
            return
        if 0 <= index < self.option_count:
            self.highlighted = index

    def _rebuild(self) -> None:
        clip = self._clip
        highlighted = self.highlighted
        self.clear_options()
        if clip is None:
            return
        options = []
        for i, seg in enumerate(clip.transcript):
            prompt = Text()
            prompt.append(f'{format_clock(seg.offset / 1000)} ', style='dim')
            prompt.append(seg.text)
            if self._show_secondary and clip.transcript_secondary:
                match = match_secondary(clip.transcript, clip.transcript_secondary, i)
                if match is not None:
                    prompt.append(f'\n      {match.text}', style='italic dim')
            options.append(Option(prompt, id=f'line-{i}'))
        self.add_options(options)
        if highlighted is not None and highlighted < len(options):
            self.highlighted = highlighted
