"""
Persistence helpers shared by the tracker core.

Every core function takes an SQLAlchemy session as its first argument, so
the same code runs against the Flask-SQLAlchemy ``db.session`` in the app
and against any other session in tests. :func:`atomic` is the transaction
boundary used by the request layer.
"""

from __future__ import annotations

import contextlib
import datetime
import logging
from collections.abc import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from errors import StoreError, TrackerError, ValidationError
from models import DEFAULT_KEY, Notes, Stats, TimerState, utcnow

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """Run a block as one transaction: commit on success, roll back on any error.

    Database failures are re-raised as :class:`StoreError`.
    """
    try:
        yield session
        session.commit()
    except TrackerError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("Transaction rolled back")
        raise StoreError(f"database error: {exc.__class__.__name__}") from exc
    except Exception:
        session.rollback()
        raise


def normalize_date(value: object, *, field: str = "date") -> str:
    """Validate an ISO ``YYYY-MM-DD`` date and return it as a string."""
    if isinstance(value, datetime.date):
        return value.isoformat()
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    try:
        return datetime.date.fromisoformat(value.strip()).isoformat()
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)") from exc


def today() -> str:
    return datetime.date.today().isoformat()


# ---- singleton records ----


def get_stats(
    session: Session, key: str = DEFAULT_KEY, *, for_update: bool = True
) -> Stats:
    stats = session.get(Stats, key, with_for_update=True if for_update else None)
    if stats is None:
        stats = Stats(
            key=key,
            day_streak=0,
            last_completed_day=None,
            python_hours=0.0,
            aws_hours=0.0,
            interview_hours=0.0,
            project_hours=0.0,
            tech_hours=0.0,
            portfolio_updates=0,
        )
        session.add(stats)
        session.flush()
        logger.info("Created stats record key=%s", key)
    return stats


def get_notes(
    session: Session, key: str = DEFAULT_KEY, *, for_update: bool = True
) -> Notes:
    notes = session.get(Notes, key, with_for_update=True if for_update else None)
    if notes is None:
        notes = Notes(key=key, content="", updated_at=utcnow())
        session.add(notes)
        session.flush()
        logger.info("Created notes record key=%s", key)
    return notes


def get_timer(
    session: Session, key: str = DEFAULT_KEY, *, for_update: bool = True
) -> TimerState:
    timer = session.get(TimerState, key, with_for_update=True if for_update else None)
    if timer is None:
        timer = TimerState(key=key, task="", start_time=None, elapsed_time=0.0, is_running=False)
        session.add(timer)
        session.flush()
        logger.info("Created timer record key=%s", key)
    return timer


def ensure_defaults(session: Session) -> None:
    """Create the stats, notes and timer records if they do not exist yet."""
    with atomic(session):
        get_stats(session)
        get_notes(session)
        get_timer(session)


def save_notes(session: Session, content: str | None) -> Notes:
    if content is not None and not isinstance(content, str):
        raise ValidationError("content must be a string")
    notes = get_notes(session)
    notes.content = content or ""
    notes.updated_at = utcnow()
    logger.debug("Notes saved (%d chars)", len(notes.content))
    return notes
