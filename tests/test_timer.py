# tests/test_timer.py

from __future__ import annotations

import datetime

import pytest

from errors import ValidationError
from generator import generate_day
from store import atomic, get_stats, get_timer
from timer import (
    elapsed_hours,
    format_elapsed,
    pause_timer,
    reset_timer,
    save_timer_state,
    start_timer,
)

from .helpers import get_task

DAY = "2025-05-04"
T0 = datetime.datetime(2025, 5, 4, 9, 0, 0)


def _hours(h: float) -> datetime.timedelta:
    return datetime.timedelta(hours=h)


@pytest.fixture()
def day(session) -> str:
    with atomic(session):
        generate_day(session, DAY)
    return DAY


def _timer_dict(session) -> dict:
    return get_timer(session).to_dict()


def test_elapsed_hours_is_pure() -> None:
    assert elapsed_hours(None, 0.75, T0) == 0.75
    assert elapsed_hours(T0, 0.5, T0 + _hours(1)) == 1.5
    # clock going backwards never subtracts
    assert elapsed_hours(T0, 0.5, T0 - _hours(1)) == 0.5


def test_elapsed_hours_accepts_aware_datetimes() -> None:
    aware_now = (T0 + _hours(2)).replace(tzinfo=datetime.timezone.utc)
    assert elapsed_hours(T0, 0.0, aware_now) == 2.0


@pytest.mark.parametrize(
    "hours, text",
    [(0, "00:00:00"), (1.5, "01:30:00"), (0.25, "00:15:00"), (12.25, "12:15:00")],
)
def test_format_elapsed(hours: float, text: str) -> None:
    assert format_elapsed(hours) == text


@pytest.mark.parametrize("task", [None, "", "  ", "gardening"])
def test_start_requires_a_known_task(session, task) -> None:
    with pytest.raises(ValidationError):
        start_timer(session, task, now=T0)
    assert _timer_dict(session)["isRunning"] is False


def test_start_and_pause(session) -> None:
    with atomic(session):
        start_timer(session, "python", now=T0)

    timer = _timer_dict(session)
    assert timer["task"] == "python"
    assert timer["isRunning"] is True
    assert timer["startTime"] == 1746349200000

    with atomic(session):
        pause_timer(session, now=T0 + _hours(0.5))

    assert _timer_dict(session) == {
        "task": "python",
        "startTime": None,
        "elapsedTime": 0.5,
        "isRunning": False,
    }


def test_pause_while_idle_changes_nothing(session) -> None:
    with atomic(session):
        save_timer_state(session, "aws", None, 0.25, False)
    with atomic(session):
        pause_timer(session, now=T0)

    assert _timer_dict(session) == {
        "task": "aws",
        "startTime": None,
        "elapsedTime": 0.25,
        "isRunning": False,
    }


def test_restart_keeps_accumulated_time(session) -> None:
    with atomic(session):
        start_timer(session, "aws", now=T0)
    with atomic(session):
        pause_timer(session, now=T0 + _hours(0.25))
    with atomic(session):
        start_timer(session, "aws", now=T0 + _hours(1))

    timer = get_timer(session)
    assert timer.elapsed_time == 0.25
    assert timer.is_running is True


def test_start_while_running_folds_the_running_segment(session) -> None:
    with atomic(session):
        start_timer(session, "python", now=T0)
    with atomic(session):
        start_timer(session, "aws", now=T0 + _hours(0.5))

    timer = get_timer(session)
    assert timer.task == "aws"
    assert timer.elapsed_time == 0.5
    assert timer.start_time == T0 + _hours(0.5)


def test_reset_adds_elapsed_hours_to_task(session, day) -> None:
    with atomic(session):
        start_timer(session, "python", now=T0)
    with atomic(session):
        applied = reset_timer(session, date=day, now=T0 + _hours(1.5))

    assert applied == 1.5
    task = get_task(session, day, "python")
    assert task.hours_spent == 1.5
    assert task.completed is False
    assert get_stats(session).python_hours == 1.5
    assert _timer_dict(session) == {
        "task": "",
        "startTime": None,
        "elapsedTime": 0.0,
        "isRunning": False,
    }


def test_reset_after_pause_uses_accumulated_time(session, day) -> None:
    with atomic(session):
        start_timer(session, "tech", now=T0)
    with atomic(session):
        pause_timer(session, now=T0 + _hours(1.25))
    with atomic(session):
        reset_timer(session, date=day, now=T0 + _hours(5))

    task = get_task(session, day, "tech")
    assert task.hours_spent == 1.25
    assert task.completed is True


def test_reset_with_explicit_task_and_hours(session, day) -> None:
    with atomic(session):
        applied = reset_timer(session, date=day, task="interview", additional_hours=0.75)

    assert applied == 0.75
    assert get_task(session, day, "interview").hours_spent == 0.75
    assert get_stats(session).interview_hours == 0.75


def test_reset_without_task_only_clears(session, day) -> None:
    with atomic(session):
        save_timer_state(session, "", None, 2.0, False)
    with atomic(session):
        applied = reset_timer(session, date=day, now=T0)

    assert applied == 0.0
    assert _timer_dict(session)["elapsedTime"] == 0.0
    assert get_stats(session).python_hours == 0.0


def test_reset_for_missing_task_still_clears(session, day) -> None:
    with atomic(session):
        start_timer(session, "portfolio", now=T0)
    with atomic(session):
        applied = reset_timer(session, date=day, now=T0 + _hours(1))

    assert applied == 0.0
    assert _timer_dict(session)["task"] == ""
    assert get_stats(session).portfolio_updates == 0


def test_reset_rejects_non_numeric_hours(session, day) -> None:
    with pytest.raises(ValidationError):
        reset_timer(session, date=day, task="python", additional_hours="1.5")


def test_save_timer_state_accepts_epoch_milliseconds(session) -> None:
    millis = int(T0.replace(tzinfo=datetime.timezone.utc).timestamp() * 1000)
    with atomic(session):
        save_timer_state(session, "project", millis, 0.5, True)

    timer = get_timer(session)
    assert timer.start_time == T0
    assert timer.is_running is True
    assert timer.elapsed_time == 0.5


@pytest.mark.parametrize(
    "start_time, elapsed, running",
    [(None, 0.0, True), ("not a time", 0.0, True), (None, -1.0, False), (None, "1", False)],
)
def test_save_timer_state_validation(session, start_time, elapsed, running) -> None:
    with pytest.raises(ValidationError):
        save_timer_state(session, "python", start_time, elapsed, running)


def test_start_time_round_trips_as_epoch_milliseconds(session) -> None:
    with atomic(session):
        save_timer_state(session, "python", 1760767200123, 0.0, True)

    assert _timer_dict(session)["startTime"] == 1760767200123
    assert get_timer(session).start_time == datetime.datetime(2025, 10, 18, 6, 0, 0, 123000)


@pytest.mark.parametrize(
    "start_time",
    ["2025-05-04T09:00:00.000Z", "2025-05-04T09:00:00z", "2025-05-04T11:00:00+02:00"],
)
def test_save_timer_state_accepts_utc_iso_strings(session, start_time: str) -> None:
    with atomic(session):
        save_timer_state(session, "aws", start_time, 0.0, True)

    assert get_timer(session).start_time == T0
    assert _timer_dict(session)["startTime"] == 1746349200000


def test_save_timer_state_rejects_out_of_range_millis(session) -> None:
    with pytest.raises(ValidationError):
        save_timer_state(session, "aws", 10**20, 0.0, True)
