"""
Task mutations: completion toggles, detail edits and timer hours.

Each mutation updates the task, then feeds the change in ``hours_spent`` to
:func:`stats.apply_hours_delta` and lets :func:`streak.evaluate_streak`
look at the day. Callers own the transaction (see :func:`store.atomic`).
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from errors import NotFound, ValidationError
from models import Task
from stats import apply_hours_delta
from store import normalize_date
from streak import evaluate_streak

logger = logging.getLogger(__name__)


def _hours_value(value: object, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{field} must be a number")
    hours = float(value)
    if hours < 0:
        raise ValidationError(f"{field} must not be negative")
    return hours


def find_task(session: Session, date: str, task_id: str) -> Task | None:
    return (
        session.query(Task)
        .filter_by(date=date, task_id=task_id)
        .with_for_update()
        .first()
    )


def _require_task(session: Session, date: object, task_id: object) -> Task:
    date = normalize_date(date)
    if not isinstance(task_id, str) or not task_id:
        raise ValidationError("taskId is required")
    task = find_task(session, date, task_id)
    if task is None:
        raise NotFound(f"Task {task_id} not found for {date}")
    return task


def set_task_completion(session: Session, date: object, task_id: object, completed: object) -> dict:
    """Mark a task complete or not complete.

    Completing a task below its target raises ``hours_spent`` to the target;
    un-completing resets it to zero. The stats receive the difference in
    both directions. The streak is evaluated only when completing.
    """
    if not isinstance(completed, bool):
        raise ValidationError("completed must be a boolean")
    task = _require_task(session, date, task_id)

    old_spent = task.hours_spent or 0.0
    if completed:
        new_spent = max(old_spent, task.hours)
    else:
        new_spent = 0.0

    task.completed = completed
    task.hours_spent = new_spent
    logger.info(
        "Task %s/%s completed=%s hours_spent %.3f -> %.3f",
        task.date,
        task.task_id,
        completed,
        old_spent,
        new_spent,
    )

    apply_hours_delta(session, task.task_id, new_spent - old_spent, date=task.date)
    if completed:
        evaluate_streak(session, task.date)

    return {"taskId": task.task_id, "completed": completed}


def edit_task_details(
    session: Session, date: object, task_id: object, hours_spent: object, notes: object
) -> dict:
    """Set a task's hours spent and notes.

    Reaching the target completes the task; dropping below it never
    un-completes one.
    """
    new_spent = _hours_value(hours_spent, "hoursSpent")
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")
    task = _require_task(session, date, task_id)

    old_spent = task.hours_spent or 0.0
    task.hours_spent = new_spent
    task.notes = notes or ""
    task.completed = True if new_spent >= task.hours else bool(task.completed)
    logger.info(
        "Task %s/%s edited hours_spent %.3f -> %.3f completed=%s",
        task.date,
        task.task_id,
        old_spent,
        new_spent,
        task.completed,
    )

    apply_hours_delta(session, task.task_id, new_spent - old_spent, date=task.date)
    evaluate_streak(session, task.date)

    return {
        "taskId": task.task_id,
        "hoursSpent": task.hours_spent,
        "notes": task.notes,
        "completed": bool(task.completed),
    }


def add_task_hours(session: Session, date: str, task_id: str, hours: float) -> Task | None:
    """Add tracked hours to a task; returns ``None`` if the task does not exist."""
    task = find_task(session, date, task_id)
    if task is None:
        logger.warning("No task %s/%s to add %.3f hours to", date, task_id, hours)
        return None

    task.hours_spent = (task.hours_spent or 0.0) + hours
    task.completed = True if task.hours_spent >= task.hours else bool(task.completed)
    logger.info(
        "Task %s/%s +%.3f hours -> %.3f completed=%s",
        date,
        task_id,
        hours,
        task.hours_spent,
        task.completed,
    )

    apply_hours_delta(session, task_id, hours, date=date)
    evaluate_streak(session, date)
    return task
