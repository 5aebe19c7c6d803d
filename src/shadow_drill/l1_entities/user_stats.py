"""Per-user practice streak bookkeeping."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel


class UserStats(BaseModel):
    user_id: str
    current_streak: int = 0
    longest_streak: int = 0
    last_practice_date: date | None = None
    total_recordings: int = 0
