"""Use case: advance a user's practice streak after a saved recording."""

from __future__ import annotations

from datetime import date, timedelta

from shadow_drill.l1_entities.user_stats import UserStats


def advance_streak(user_id: str, stats: UserStats | None, today: date) -> UserStats:
    """Return the stats after one more recording on ``today``.

    Same day only counts the recording; the next calendar day extends the
    streak; any longer gap restarts it at 1.
    """
    if stats is None:
        return UserStats(
            user_id=user_id,
            current_streak=1,
            longest_streak=1,
            last_practice_date=today,
            total_recordings=1,
        )

    if stats.last_practice_date == today:
        return stats.model_copy(update={'total_recordings': stats.total_recordings + 1})

    if stats.last_practice_date == today - timedelta(days=1):
        new_streak = stats.current_streak + 1
    else:
        new_streak = 1

    return stats.model_copy(
        update={
            'current_streak': new_streak,
            'longest_streak': max(new_streak, stats.longest_streak),
            'last_practice_date': today,
            'total_recordings': stats.total_recordings + 1,
        }
    )
