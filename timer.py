"""
The global work timer.

The timer does not tick on its own: elapsed time is computed from the stored
``start_time`` and ``elapsed_time`` whenever it is read or changed. All
timestamps are naive UTC; ``now`` can be passed in for testing.
"""

from __future__ import annotations

import datetime
import logging

from sqlalchemy.orm import Session

from errors import ValidationError
from generator import TASK_CATEGORIES
from models import TimerState, utcnow
from mutations import add_task_hours
from store import get_timer, normalize_date, today

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600.0

EPOCH = datetime.datetime(1970, 1, 1)


def _as_naive_utc(value: datetime.datetime) -> datetime.datetime:
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def elapsed_hours(
    start_time: datetime.datetime | None,
    elapsed_time: float,
    now: datetime.datetime,
) -> float:
    """Hours on the clock at ``now``: accumulated time plus the running segment."""
    total = float(elapsed_time or 0.0)
    if start_time is None:
        return total
    running = (_as_naive_utc(now) - _as_naive_utc(start_time)).total_seconds()
    return total + max(0.0, running) / SECONDS_PER_HOUR


def current_hours(timer: TimerState, now: datetime.datetime | None = None) -> float:
    if not timer.is_running:
        return float(timer.elapsed_time or 0.0)
    return elapsed_hours(timer.start_time, timer.elapsed_time, now or utcnow())


def format_elapsed(hours: float) -> str:
    """Render hours as ``HH:MM:SS``."""
    total_seconds = int(max(0.0, hours) * SECONDS_PER_HOUR)
    h, rem = divmod(total_seconds, 3600)
    m, s = divmod(rem, 60)
    return f"{h:02d}:{m:02d}:{s:02d}"


def start_timer(session: Session, task: object, now: datetime.datetime | None = None) -> TimerState:
    if not isinstance(task, str) or not task.strip():
        raise ValidationError("Please select a task first")
    task = task.strip()
    if task not in TASK_CATEGORIES:
        raise ValidationError(f"Unknown task {task!r}")

    now = _as_naive_utc(now or utcnow())
    timer = get_timer(session)
    if timer.is_running:
        # Keep the segment that was already running
        timer.elapsed_time = elapsed_hours(timer.start_time, timer.elapsed_time, now)

    timer.task = task
    timer.start_time = now
    timer.elapsed_time = float(timer.elapsed_time or 0.0)
    timer.is_running = True
    logger.info("Timer started task=%s elapsed=%.4fh", task, timer.elapsed_time)
    return timer


def pause_timer(session: Session, now: datetime.datetime | None = None) -> TimerState:
    timer = get_timer(session)
    if not timer.is_running:
        logger.debug("Timer pause ignored: not running")
        return timer

    now = _as_naive_utc(now or utcnow())
    timer.elapsed_time = elapsed_hours(timer.start_time, timer.elapsed_time, now)
    timer.start_time = None
    timer.is_running = False
    logger.info("Timer paused task=%s elapsed=%.4fh", timer.task, timer.elapsed_time)
    return timer


def reset_timer(
    session: Session,
    date: object = None,
    task: object = None,
    additional_hours: object = None,
    now: datetime.datetime | None = None,
) -> float:
    """Clear the timer, first adding its hours to the task of ``date``.

    ``task`` defaults to the timer's task and ``additional_hours`` to the
    time on the clock at ``now``. Returns the hours that were applied.
    Run inside :func:`store.atomic` so the task update and the clear are
    committed together or not at all.
    """
    date = today() if date is None else normalize_date(date)
    if additional_hours is not None and (
        isinstance(additional_hours, bool) or not isinstance(additional_hours, (int, float))
    ):
        raise ValidationError("additionalHours must be a number")
    if task is not None and not isinstance(task, str):
        raise ValidationError("taskId must be a string")

    timer = get_timer(session)
    task = task or timer.task
    if additional_hours is None:
        hours = current_hours(timer, _as_naive_utc(now or utcnow()))
    else:
        hours = float(additional_hours)

    applied = 0.0
    if task and hours > 0:
        if add_task_hours(session, date, task, hours) is not None:
            applied = hours

    timer.task = ""
    timer.start_time = None
    timer.elapsed_time = 0.0
    timer.is_running = False
    logger.info("Timer reset task=%s date=%s applied=%.4fh", task or "-", date, applied)
    return applied


def _parse_start_time(value: object) -> datetime.datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return _as_naive_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Browser clients send epoch milliseconds (Date.now())
        try:
            return EPOCH + datetime.timedelta(milliseconds=value)
        except (OverflowError, ValueError) as exc:
            raise ValidationError("startTime is out of range") from exc
    if isinstance(value, str):
        text = value.strip()
        # Date.toISOString() ends in "Z", which fromisoformat only accepts from 3.11
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return _as_naive_utc(datetime.datetime.fromisoformat(text))
        except ValueError as exc:
            raise ValidationError("startTime must be an ISO timestamp or epoch milliseconds") from exc
    raise ValidationError("startTime must be an ISO timestamp or epoch milliseconds")


def save_timer_state(
    session: Session,
    task: object,
    start_time: object,
    elapsed_time: object,
    is_running: object,
) -> TimerState:
    """Overwrite the timer with client-supplied values."""
    if task is not None and not isinstance(task, str):
        raise ValidationError("task must be a string")
    if elapsed_time is None:
        elapsed_time = 0.0
    if isinstance(elapsed_time, bool) or not isinstance(elapsed_time, (int, float)):
        raise ValidationError("elapsedTime must be a number")
    if elapsed_time < 0:
        raise ValidationError("elapsedTime must not be negative")

    parsed_start = _parse_start_time(start_time)
    running = bool(is_running)
    if running and parsed_start is None:
        raise ValidationError("startTime is required while the timer is running")

    timer = get_timer(session)
    timer.task = task or ""
    timer.start_time = parsed_start if running else None
    timer.elapsed_time = float(elapsed_time)
    timer.is_running = running
    logger.debug("Timer state written %r", timer)
    return timer
