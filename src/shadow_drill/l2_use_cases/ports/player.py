"""Port: embedded video player."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol

from shadow_drill.l1_entities.player_state import PlayerState


class Player(Protocol):
    """Remote, event-driven video player.

    Commands are fire-and-forget; their effects are observed later through
    the callbacks registered with ``bind``, never synchronously.
    """

    def bind(
        self,
        on_ready: Callable[[], None],
        on_state_change: Callable[[PlayerState], None],
    ) -> None:
        """Register the event callbacks."""
        ...

    def load(self, video_id: str, start_sec: float, end_sec: float) -> None:
        """Load a video cued to the given range."""
        ...

    def play(self) -> None: ...

    def pause(self) -> None: ...

    def seek(self, time_sec: float) -> None: ...

    def get_current_time(self) -> float:
        """Current playhead position in seconds."""
        ...

    def set_rate(self, multiplier: float) -> None: ...

    def destroy(self) -> None:
        """Release the player; no further events are delivered."""
        ...
