"""Running statistics: hours per category and portfolio updates."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from models import Task
from store import get_stats

logger = logging.getLogger(__name__)

# task_id -> Stats column holding its running total
CATEGORY_COLUMNS = {
    "python": "python_hours",
    "aws": "aws_hours",
    "interview": "interview_hours",
    "project": "project_hours",
    "tech": "tech_hours",
}

PORTFOLIO = "portfolio"


def apply_hours_delta(
    session: Session, category: str, delta: float, date: str | None = None
) -> None:
    """Fold an hours change for one task category into the stats.

    For the five hour-tracked categories the delta is added to the matching
    total. For ``portfolio`` the value is ignored: if the portfolio task of
    ``date`` (or, without a date, the most recently dated one) has met its
    target, ``portfolio_updates`` is incremented by one. Unknown categories
    and a zero delta do nothing.
    """
    if not delta:
        return

    column = CATEGORY_COLUMNS.get(category)
    if column is not None:
        stats = get_stats(session)
        setattr(stats, column, (getattr(stats, column) or 0.0) + delta)
        logger.debug("Stats %s %+.3f -> %.3f", column, delta, getattr(stats, column))
        return

    if category == PORTFOLIO:
        query = session.query(Task).filter_by(task_id=PORTFOLIO)
        if date is not None:
            query = query.filter_by(date=date)
        task = query.order_by(Task.date.desc()).first()
        if task is not None and task.hours_spent >= task.hours:
            stats = get_stats(session)
            stats.portfolio_updates = (stats.portfolio_updates or 0) + 1
            logger.info(
                "Portfolio update counted date=%s total=%d", task.date, stats.portfolio_updates
            )
        return

    logger.debug("Ignoring stats delta for unknown category %r", category)
