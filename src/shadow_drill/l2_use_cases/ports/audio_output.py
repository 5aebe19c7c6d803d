"""Port: local audio output for reviewing recordings."""

from __future__ import annotations

from typing import Protocol


class AudioOutput(Protocol):
    def play(self, wav_bytes: bytes) -> None:
        """Start playing WAV audio, replacing anything currently playing."""
        ...

    def stop(self) -> None: ...
