"""
Database models for the daily progress tracker.

This module defines five SQLAlchemy models:

* ``Day`` – a calendar date (ISO ``YYYY-MM-DD``) that owns the tasks
  generated for it.
* ``Task`` – one trackable unit of work for a day. A task has a category
  tag (``task_id``), a target number of hours and the hours actually spent.
* ``Stats`` – running totals: the day streak, the last fully completed day,
  hours per category and the number of portfolio updates.
* ``Notes`` – free-text notes, replaced wholesale on save.
* ``TimerState`` – the single work timer shared by the whole application.

``Stats``, ``Notes`` and ``TimerState`` are plain records identified by a
string key; see :mod:`store` for how they are loaded and created.
"""

from __future__ import annotations

import datetime

from flask_sqlalchemy import SQLAlchemy

# create a SQLAlchemy object without an app – we'll initialize it in app.py
db = SQLAlchemy()

DEFAULT_KEY = "default"


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def epoch_millis(value: datetime.datetime) -> int:
    """Naive UTC timestamp -> epoch milliseconds, the form browser clients use."""
    return int(round(value.replace(tzinfo=datetime.timezone.utc).timestamp() * 1000))


class Day(db.Model):
    """A calendar date and the tasks generated for it."""

    __tablename__ = "days"

    date = db.Column(db.String(10), primary_key=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    # Deleting a day removes its tasks
    tasks = db.relationship(
        "Task",
        backref="day",
        cascade="all, delete-orphan",
        lazy=True,
        order_by="Task.id",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Day {self.date}>"


class Task(db.Model):
    """Tracks the progress of one task category on a given day."""

    __tablename__ = "tasks"
    __table_args__ = (db.UniqueConstraint("date", "task_id", name="uq_tasks_date_task_id"),)

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(
        db.String(10), db.ForeignKey("days.date", ondelete="CASCADE"), nullable=False, index=True
    )
    task_id = db.Column(db.String(32), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    hours = db.Column(db.Float, nullable=False)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    hours_spent = db.Column(db.Float, nullable=False, default=0.0)
    notes = db.Column(db.Text, nullable=False, default="")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "taskId": self.task_id,
            "name": self.name,
            "hours": self.hours,
            "completed": bool(self.completed),
            "hoursSpent": self.hours_spent,
            "notes": self.notes or "",
        }

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Task date={self.date} task_id={self.task_id} hours={self.hours} "
            f"hours_spent={self.hours_spent} completed={self.completed}>"
        )


class Stats(db.Model):
    """Aggregate statistics updated as tasks are completed and edited."""

    __tablename__ = "stats"

    key = db.Column(db.String(32), primary_key=True, default=DEFAULT_KEY)
    day_streak = db.Column(db.Integer, nullable=False, default=0)
    last_completed_day = db.Column(db.String(10), nullable=True)
    python_hours = db.Column(db.Float, nullable=False, default=0.0)
    aws_hours = db.Column(db.Float, nullable=False, default=0.0)
    interview_hours = db.Column(db.Float, nullable=False, default=0.0)
    project_hours = db.Column(db.Float, nullable=False, default=0.0)
    tech_hours = db.Column(db.Float, nullable=False, default=0.0)
    portfolio_updates = db.Column(db.Integer, nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "dayStreak": self.day_streak,
            "lastCompletedDay": self.last_completed_day,
            "pythonHours": self.python_hours,
            "awsHours": self.aws_hours,
            "interviewHours": self.interview_hours,
            "projectHours": self.project_hours,
            "techHours": self.tech_hours,
            "portfolioUpdates": self.portfolio_updates,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Stats streak={self.day_streak} last={self.last_completed_day}>"


class Notes(db.Model):
    """Free-text notes."""

    __tablename__ = "notes"

    key = db.Column(db.String(32), primary_key=True, default=DEFAULT_KEY)
    content = db.Column(db.Text, nullable=False, default="")
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)


class TimerState(db.Model):
    """The global work timer.

    ``start_time`` is a naive UTC timestamp set while the timer runs and is
    exposed as epoch milliseconds;
    ``elapsed_time`` holds the hours accumulated by earlier running segments.
    """

    __tablename__ = "timer_state"

    key = db.Column(db.String(32), primary_key=True, default=DEFAULT_KEY)
    task = db.Column(db.String(32), nullable=False, default="")
    start_time = db.Column(db.DateTime, nullable=True)
    elapsed_time = db.Column(db.Float, nullable=False, default=0.0)
    is_running = db.Column(db.Boolean, nullable=False, default=False)

    def to_dict(self) -> dict:
        return {
            "task": self.task or "",
            "startTime": epoch_millis(self.start_time) if self.start_time else None,
            "elapsedTime": self.elapsed_time,
            "isRunning": bool(self.is_running),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<TimerState task={self.task!r} running={self.is_running} "
            f"elapsed={self.elapsed_time}>"
        )
