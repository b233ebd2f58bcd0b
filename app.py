"""
Main Flask application for the daily progress tracker.

This module creates a Flask application, configures the database, and defines
the JSON API used by the tracker front end. Each mutating route runs inside a
single transaction (see :func:`store.atomic`), so stats, streak and timer
changes are committed together with the task change that caused them.

Key routes:

* ``GET /api/state`` – every day with its tasks, the notes, the timer and the
  stats, plus a derived summary.
* ``POST /api/days`` – generate the tasks for a date.
* ``GET /api/days/<date>`` – the tasks of one date.
* ``PUT /api/tasks/<date>/<task_id>/completion`` – mark a task (not) complete.
* ``PUT /api/tasks/<date>/<task_id>`` – set hours spent and notes.
* ``PUT /api/notes`` – replace the notes.
* ``PUT /api/timer`` – overwrite the timer state.
* ``POST /api/timer/start``, ``/pause``, ``/reset`` – drive the timer.

To run the app locally, install the project (``pip install -e .``) and
execute ``python app.py``. For a production WSGI server such as Gunicorn,
point it at ``app:app``.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from config import load_settings
from errors import TrackerError, ValidationError
from generator import generate_day, get_day
from logging_setup import setup_logging_once
from models import db
from mutations import edit_task_details, set_task_completion
from projector import full_state
from store import atomic, ensure_defaults, save_notes
from timer import pause_timer, reset_timer, save_timer_state, start_timer

logger = logging.getLogger(__name__)


def _json_body() -> dict[str, Any]:
    """Return the request's JSON object, or raise :class:`ValidationError`."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def create_app(test_config: Mapping[str, Any] | None = None) -> Flask:
    """Factory function for creating the Flask application.

    Parameters
    ----------
    test_config
        Optional mapping applied on top of the environment settings.

    Returns
    -------
    Flask
        A configured Flask application.
    """
    settings = load_settings()
    if settings.configure_logging:
        setup_logging_once(log_dir=settings.log_dir, console_level=settings.log_level)

    app = Flask(__name__)
    app.config["SQLALCHEMY_DATABASE_URI"] = settings.database_uri
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SQLALCHEMY_ECHO"] = settings.sql_echo
    app.config["SECRET_KEY"] = settings.secret_key
    if test_config:
        app.config.update(test_config)

    db.init_app(app)

    # Create tables and the stats/notes/timer records if they don't exist
    with app.app_context():
        db.create_all()
        ensure_defaults(db.session)

    @app.errorhandler(TrackerError)
    def handle_tracker_error(exc: TrackerError):
        if exc.status_code >= 500:
            logger.error("Request failed: %s", exc.message)
        return jsonify({"error": exc.message}), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.route("/api/state")
    def get_state():
        """Return the whole tracker state."""
        with atomic(db.session):
            state = full_state(db.session)
        return jsonify(state)

    @app.route("/api/days", methods=["POST"])
    def create_day():
        """Generate the tasks for the date in the request body."""
        body = _json_body()
        with atomic(db.session):
            result = generate_day(db.session, body.get("date"))
        return jsonify({"success": True, **result}), 201

    @app.route("/api/days/<date>")
    def show_day(date: str):
        with atomic(db.session):
            result = get_day(db.session, date)
        return jsonify(result)

    @app.route("/api/tasks/<date>/<task_id>/completion", methods=["PUT"])
    def update_completion(date: str, task_id: str):
        """Mark a task complete or not complete."""
        body = _json_body()
        if "completed" not in body:
            raise ValidationError("completed is required")
        with atomic(db.session):
            result = set_task_completion(db.session, date, task_id, body["completed"])
        return jsonify({"success": True, **result})

    @app.route("/api/tasks/<date>/<task_id>", methods=["PUT"])
    def update_details(date: str, task_id: str):
        """Set the hours spent on a task and its notes."""
        body = _json_body()
        if "hoursSpent" not in body:
            raise ValidationError("hoursSpent is required")
        with atomic(db.session):
            result = edit_task_details(
                db.session, date, task_id, body["hoursSpent"], body.get("notes", "")
            )
        return jsonify({"success": True, **result})

    @app.route("/api/notes", methods=["PUT"])
    def update_notes():
        body = _json_body()
        with atomic(db.session):
            save_notes(db.session, body.get("content", ""))
        return jsonify({"success": True})

    @app.route("/api/timer", methods=["PUT"])
    def update_timer():
        """Overwrite the timer with the state sent by the client."""
        body = _json_body()
        with atomic(db.session):
            timer = save_timer_state(
                db.session,
                body.get("task", ""),
                body.get("startTime"),
                body.get("elapsedTime", 0),
                body.get("isRunning", False),
            )
            payload = timer.to_dict()
        return jsonify({"success": True, "timer": payload})

    @app.route("/api/timer/start", methods=["POST"])
    def timer_start():
        body = _json_body()
        with atomic(db.session):
            payload = start_timer(db.session, body.get("task")).to_dict()
        return jsonify({"success": True, "timer": payload})

    @app.route("/api/timer/pause", methods=["POST"])
    def timer_pause():
        with atomic(db.session):
            payload = pause_timer(db.session).to_dict()
        return jsonify({"success": True, "timer": payload})

    @app.route("/api/timer/reset", methods=["POST"])
    def timer_reset():
        """Clear the timer and add its hours to the task, all in one transaction."""
        body = _json_body()
        with atomic(db.session):
            applied = reset_timer(
                db.session,
                date=body.get("date"),
                task=body.get("taskId"),
                additional_hours=body.get("additionalHours"),
            )
        return jsonify({"success": True, "appliedHours": applied})

    return app


# create the app at module import time so gunicorn can find `app`
app = create_app()


if __name__ == "__main__":  # pragma: no cover
    _settings = load_settings()
    app.run(host=_settings.host, port=_settings.port, debug=_settings.debug)
