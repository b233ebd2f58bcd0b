"""Read-side projection of the whole tracker state."""

from __future__ import annotations

import datetime

from sqlalchemy.orm import Session

from models import Day, Task, utcnow
from stats import CATEGORY_COLUMNS
from store import get_notes, get_stats, get_timer
from timer import current_hours, format_elapsed


def summarize(days: dict[str, dict], stats: dict) -> dict:
    """Completion rate and total hours, as shown on the dashboard."""
    total = 0
    done = 0
    for day in days.values():
        tasks = day.get("tasks", [])
        total += len(tasks)
        done += sum(1 for t in tasks if t.get("completed"))

    completion_rate = (done / total) * 100 if total else 0.0
    hours = sum(stats.get(_camel(col), 0.0) or 0.0 for col in CATEGORY_COLUMNS.values())
    return {
        "completionRate": round(completion_rate, 1),
        "completedTasks": done,
        "totalTasks": total,
        "hoursInvested": round(hours, 1),
    }


def _camel(column: str) -> str:
    head, *rest = column.split("_")
    return head + "".join(part.capitalize() for part in rest)


def full_state(session: Session, now: datetime.datetime | None = None) -> dict:
    days: dict[str, dict] = {}
    for day in session.query(Day).order_by(Day.date).all():
        days[day.date] = {"tasks": []}

    # One query for all tasks instead of one per day
    for task in session.query(Task).order_by(Task.date, Task.id).all():
        days.setdefault(task.date, {"tasks": []})["tasks"].append(task.to_dict())

    timer = get_timer(session, for_update=False)
    hours = current_hours(timer, now or utcnow())
    current_timer = timer.to_dict()
    current_timer["currentHours"] = hours
    current_timer["display"] = format_elapsed(hours)

    stats = get_stats(session, for_update=False).to_dict()
    return {
        "days": days,
        "notes": get_notes(session, for_update=False).content or "",
        "currentTimer": current_timer,
        "stats": stats,
        "summary": summarize(days, stats),
    }
