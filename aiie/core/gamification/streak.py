"""
Activity streaks.

A streak is the number of consecutive calendar days, ending today, on
which the learner completed at least one case.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Union

DateLike = Union[date, datetime]


def _as_date(value: DateLike) -> date:
    return value.date() if isinstance(value, datetime) else value


def calculate_streak(activity: Iterable[DateLike], today: Optional[date] = None) -> int:
    """
    Count consecutive activity days ending at `today`.

    Several activities on the same day count once.  No activity today
    means a streak of 0, even if yesterday was active.
    """
    today = today or date.today()
    days = {_as_date(d) for d in activity}

    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak
