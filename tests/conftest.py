# tests/conftest.py

from __future__ import annotations

import os
from collections.abc import Iterator
from pathlib import Path

# app.py builds a module-level app on import; keep it off the real database.
os.environ["TRACKER_DATABASE_URI"] = "sqlite://"
# Tests install their own handlers; don't write .local/tracker/tracker.log
os.environ["TRACKER_CONFIGURE_LOGGING"] = "0"

import pytest
from flask import Flask
from flask.testing import FlaskClient
from sqlalchemy.orm import Session

from app import create_app
from models import db


@pytest.fixture()
def app(tmp_path: Path) -> Flask:
    """
    Flask app backed by a throwaway SQLite file.

    A file (not an in-memory database) so that the test client and the
    session fixture see the same data across app contexts.
    """
    return create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'tracker.sqlite3'}",
        }
    )


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    return app.test_client()


@pytest.fixture()
def session(app: Flask) -> Iterator[Session]:
    """The Flask-SQLAlchemy session inside an app context."""
    with app.app_context():
        yield db.session
        db.session.rollback()
