"""L1 entity: closed set of player states reported by player adapters."""

from __future__ import annotations

import enum


class PlayerState(enum.Enum):
    UNSTARTED = 'unstarted'
    ENDED = 'ended'
    PLAYING = 'playing'
    PAUSED = 'paused'
    BUFFERING = 'buffering'
    CUED = 'cued'
