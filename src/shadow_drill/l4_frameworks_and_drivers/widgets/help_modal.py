"""Help modal — dismissible overlay listing status indicators and keybindings."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Markdown, Static


def help_markdown(sections: list[tuple[str, str, list[tuple[str, str]]]]) -> str:
    """Render ``(heading, column, rows)`` sections as markdown tables."""
    lines: list[str] = []
    for heading, column, rows in sections:
        lines.append(f'### {heading}')
        lines.append(f'| {column} | Meaning |')
        lines.append('|---|---|')
        lines.extend(f'| `{key}` | {meaning} |' for key, meaning in rows)
        lines.append('')
    return '\n'.join(lines)


class HelpModal(ModalScreen[None]):
    """Modal screen with the practice screen's reference card."""

    DEFAULT_CSS = """
    HelpModal {
        align: center middle;
    }

    HelpModal > VerticalScroll {
        width: 60%;
        max-width: 80;
        height: auto;
        max-height: 80%;
        background: $surface;
        border: thick $primary;
        padding: 1 2;
    }

    HelpModal > VerticalScroll > #help-title {
        text-style: bold;
        margin-bottom: 1;
    }

    HelpModal > VerticalScroll > #help-hint {
        dock: bottom;
        text-align: center;
        color: $text-muted;
        margin-top: 1;
    }
    """

    BINDINGS = [
        ('escape', 'dismiss', 'Close'),
        ('h', 'dismiss', 'Close'),
    ]

    def __init__(self, clip_title: str, sections: list[tuple[str, str, list[tuple[str, str]]]], **kwargs) -> None:
        super().__init__(**kwargs)
        self._clip_title = clip_title
        self._sections = sections

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield Static(f'Help: {self._clip_title}' if self._clip_title else 'Help', id='help-title')
            yield Markdown(help_markdown(self._sections), id='help-body')
            yield Static('Press Escape or h to close', id='help-hint')
