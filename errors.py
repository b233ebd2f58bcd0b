"""Exceptions raised by the tracker core and rendered by the request layer."""

from __future__ import annotations


class TrackerError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(TrackerError):
    """A keyed record (day or task) does not exist."""

    status_code = 404


class ValidationError(TrackerError):
    """A required field is missing or malformed."""

    status_code = 400


class StoreError(TrackerError):
    """The database failed; the transaction was rolled back."""

    status_code = 500
