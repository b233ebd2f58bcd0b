from __future__ import annotations

import logging
import sys
from pathlib import Path

# Top-level modules of this project; their loggers are named after them.
TRACKER_LOGGERS = (
    "app",
    "generator",
    "mutations",
    "projector",
    "stats",
    "store",
    "streak",
    "timer",
)


class _ConsoleNoiseFilter(logging.Filter):
    """
    Keep the console readable:
    - tracker logs pass through
    - Python warnings (captured as 'py.warnings') only at ERROR+
    - werkzeug request lines pass through (useful while developing)
    - any other third party (sqlalchemy, ...) only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        root_name = name.split(".", 1)[0]

        if root_name in TRACKER_LOGGERS:
            return True

        if name == "py.warnings":
            return record.levelno >= logging.ERROR

        if root_name == "werkzeug":
            return True

        return record.levelno >= logging.WARNING


def setup_logging(
    *,
    log_dir: str | Path = ".local/tracker",
    console_level: int | str = logging.INFO,
    file_level: int | str = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler: filtered for interactive use
    - File handler: full logs for debugging

    Call this ONCE, before the app starts serving.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "tracker.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)


_configured = False


def setup_logging_once(**kwargs) -> bool:
    """
    Run :func:`setup_logging` the first time only.

    ``create_app`` calls this so WSGI servers (gunicorn ``app:app``) get the
    same handlers as ``python app.py``. Returns True if logging was set up now.
    """
    global _configured
    if _configured:
        return False
    setup_logging(**kwargs)
    _configured = True
    return True
