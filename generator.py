"""
Daily task generation.

Every day gets the same five tasks; days whose day-of-month is divisible
by 3 also get a portfolio task. Generation reconciles by ``(date, task_id)``
so calling it again for a populated date adds nothing.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from errors import NotFound
from models import Day, Task
from store import normalize_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskTemplate:
    task_id: str
    name: str
    hours: float


STANDARD_TASKS: tuple[TaskTemplate, ...] = (
    TaskTemplate("python", "Python/Bash/PowerShell", 2.0),
    TaskTemplate("aws", "AWS Certification Prep", 2.0),
    TaskTemplate("interview", "Interview Prep", 1.0),
    TaskTemplate("project", "Project Work", 4.5),
    TaskTemplate("tech", "Additional Tech (Terraform/Jenkins)", 1.0),
)

PORTFOLIO_TASK = TaskTemplate("portfolio", "Portfolio Website Update", 1.0)

PORTFOLIO_INTERVAL_DAYS = 3

TASK_CATEGORIES = frozenset(t.task_id for t in STANDARD_TASKS) | {PORTFOLIO_TASK.task_id}


def templates_for(date: str) -> list[TaskTemplate]:
    """Return the task templates that apply to an ISO date."""
    day_of_month = datetime.date.fromisoformat(date).day
    templates = list(STANDARD_TASKS)
    if day_of_month % PORTFOLIO_INTERVAL_DAYS == 0:
        templates.append(PORTFOLIO_TASK)
    return templates


def _existing_task_ids(session: Session, date: str) -> set[str]:
    return {
        task_id
        for (task_id,) in session.query(Task.task_id).filter_by(date=date).all()
    }


def _insert_missing(session: Session, date: str) -> int:
    """Add the day and its missing tasks, flush, and return how many tasks were added."""
    day = session.get(Day, date)
    if day is None:
        session.add(Day(date=date))
        session.flush()
        logger.info("Day created date=%s", date)

    existing = _existing_task_ids(session, date)

    added = 0
    for template in templates_for(date):
        if template.task_id in existing:
            continue
        session.add(
            Task(
                date=date,
                task_id=template.task_id,
                name=template.name,
                hours=template.hours,
                completed=False,
                hours_spent=0.0,
                notes="",
            )
        )
        added += 1

    session.flush()
    return added


def generate_day(session: Session, date: object) -> dict:
    """Create the day (if absent) and any of its tasks that are missing.

    The inserts run in a savepoint. If a concurrent request inserted the
    same day or tasks first, the unique constraints reject ours; the
    savepoint is rolled back and the missing rows are read again, so the
    call still succeeds without creating duplicates.

    Returns
    -------
    dict
        ``{"date": ..., "taskCount": ...}`` where ``taskCount`` is the number
        of tasks the day has afterwards.
    """
    date = normalize_date(date)

    try:
        with session.begin_nested():
            added = _insert_missing(session, date)
    except IntegrityError:
        logger.warning("Concurrent generation for date=%s, reconciling", date)
        added = _insert_missing(session, date)

    task_count = session.query(Task).filter_by(date=date).count()
    logger.info("Tasks generated date=%s added=%d total=%d", date, added, task_count)
    return {"date": date, "taskCount": task_count}


def get_day(session: Session, date: object) -> dict:
    """Return one day with its tasks; raises :class:`NotFound` if it was never generated."""
    date = normalize_date(date)
    day = session.get(Day, date)
    if day is None:
        raise NotFound(f"Day {date} not found")
    return {"date": day.date, "tasks": [t.to_dict() for t in day.tasks]}
