"""Port: deferred callbacks on the session event loop."""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with asyncio's ``call_later`` shape — the running loop satisfies it."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...
