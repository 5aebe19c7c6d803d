"""Textual Message subclasses — contracts between controller callbacks and the App."""

from __future__ import annotations

from textual.message import Message

from shadow_drill.l1_entities.session_state import SessionNotice


class SessionNoticePosted(Message):
    """Posted when the controller surfaces a user-visible notice."""

    def __init__(self, notice: SessionNotice) -> None:
        super().__init__()
        self.notice = notice
