from __future__ import annotations

import logging
import sys
from pathlib import Path

from routemap.core.logging import ContextFormatter, _build_logging_config


def _record(message: str, **extra) -> logging.LogRecord:
    logger = logging.getLogger("routemap.test")
    return logger.makeRecord(
        logger.name, logging.INFO, __file__, 1, message, None, None, extra=extra
    )


def test_context_fields_are_appended_sorted():
    formatter = ContextFormatter("%(levelname)s | %(message)s")
    line = formatter.format(_record("trip.created", user_id=7, trip_id="trip-goa"))
    assert line == "INFO | trip.created | trip_id=trip-goa user_id=7"


def test_records_without_context_are_unchanged():
    formatter = ContextFormatter("%(levelname)s | %(message)s")
    assert formatter.format(_record("app_state.loaded")) == "INFO | app_state.loaded"


def test_context_stays_on_the_first_line_of_a_traceback():
    formatter = ContextFormatter("%(message)s")
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.getLogger("routemap.test").makeRecord(
            "routemap.test",
            logging.ERROR,
            __file__,
            1,
            "place.failed",
            None,
            sys.exc_info(),
            extra={"place_id": "p-1"},
        )
    lines = formatter.format(record).splitlines()
    assert lines[0] == "place.failed | place_id=p-1"
    assert lines[-1] == "ValueError: boom"


def test_file_handlers_write_under_log_directory(tmp_path: Path):
    config = _build_logging_config(tmp_path)
    handlers = config["handlers"]
    assert handlers["app_file"]["filename"] == str(tmp_path / "routemap.log")
    assert handlers["error_file"]["level"] == "ERROR"
    assert config["formatters"]["context"]["()"] is ContextFormatter
