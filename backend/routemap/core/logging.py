from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Any, Dict

from routemap.core.settings import settings

# attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """Append the ``extra`` fields of a record as ``key=value`` pairs.

    Services log short event names (``trip.created``) and pass the ids
    involved through ``extra``; this keeps those ids visible in the files.
    """

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        head, newline, trace = line.partition("\n")
        return f"{head} | {pairs}{newline}{trace}"


def _build_logging_config(log_dir: Path) -> Dict[str, Any]:
    rotating = {
        "class": "logging.handlers.RotatingFileHandler",
        "formatter": "context",
        "maxBytes": settings.log_max_bytes,
        "backupCount": settings.log_backup_count,
        "encoding": "utf-8",
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "context": {
                "()": ContextFormatter,
                "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            }
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": settings.log_level,
                "formatter": "context",
            },
            "app_file": {
                **rotating,
                "level": settings.log_level,
                "filename": str(log_dir / "routemap.log"),
            },
            "error_file": {
                **rotating,
                "level": "ERROR",
                "filename": str(log_dir / "errors.log"),
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": ["console", "app_file", "error_file"],
        },
    }


def setup_logging() -> None:
    """Send console and rotating-file output through ``ContextFormatter``."""

    log_dir = Path(settings.log_directory).resolve()
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(_build_logging_config(log_dir))


def get_logger(name: str | None = None) -> logging.Logger:
    return logging.getLogger(name or "routemap")
