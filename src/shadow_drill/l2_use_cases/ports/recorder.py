"""Port: microphone recorder."""

from __future__ import annotations

from typing import Protocol

from shadow_drill.l1_entities.recording import AudioBlob


class Recorder(Protocol):
    """Local microphone capture. One recording in flight per instance."""

    async def start(self) -> None:
        """Begin capture. Raises a RecorderStartError subclass on failure.

        Calling start while already recording is a programmer error.
        """
        ...

    def stop(self) -> AudioBlob | None:
        """Stop capture and return the recorded audio, or None if nothing was started."""
        ...
