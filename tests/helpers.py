# tests/helpers.py

from __future__ import annotations

from sqlalchemy.orm import Session

from models import Task
from mutations import set_task_completion
from store import atomic


def complete_day(session: Session, date: str) -> None:
    """Mark every task of ``date`` complete, one transaction per task."""
    task_ids = [t.task_id for t in session.query(Task).filter_by(date=date).order_by(Task.id)]
    for task_id in task_ids:
        with atomic(session):
            set_task_completion(session, date, task_id, True)


def get_task(session: Session, date: str, task_id: str) -> Task:
    return session.query(Task).filter_by(date=date, task_id=task_id).one()
