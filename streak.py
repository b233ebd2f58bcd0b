"""Day-streak evaluation.

The streak is only touched when a day becomes (or stays) fully completed.
It grows when yesterday was fully completed or when no day has ever been
completed; otherwise it restarts at 1, unless the same day is being
re-evaluated, in which case it holds.
"""

from __future__ import annotations

import datetime
import logging

from sqlalchemy.orm import Session

from models import Task
from store import get_stats

logger = logging.getLogger(__name__)


def _all_completed(tasks: list[Task]) -> bool:
    return bool(tasks) and all(t.completed for t in tasks)


def evaluate_streak(session: Session, date: str) -> int | None:
    """Update ``day_streak`` and ``last_completed_day`` for ``date``.

    Returns the new streak, or ``None`` when the date is not fully completed
    (nothing is written in that case).
    """
    tasks = session.query(Task).filter_by(date=date).all()
    if not _all_completed(tasks):
        return None

    yesterday = (datetime.date.fromisoformat(date) - datetime.timedelta(days=1)).isoformat()
    yesterday_completed = _all_completed(session.query(Task).filter_by(date=yesterday).all())

    stats = get_stats(session)
    previous = stats.day_streak or 0
    streak = previous

    if yesterday_completed or not stats.last_completed_day:
        streak = previous + 1
    elif stats.last_completed_day != date:
        streak = 1

    stats.day_streak = streak
    stats.last_completed_day = date

    if streak != previous:
        logger.info("Day streak %d -> %d (date=%s)", previous, streak, date)
    return streak
