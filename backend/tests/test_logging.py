"""
Tests for structured logging setup.
"""

import logging

import structlog

from studyspace.core.logging import get_logger, setup_logging


def _structlog_handlers():
    return [
        h for h in logging.getLogger().handlers
        if isinstance(h.formatter, structlog.stdlib.ProcessorFormatter)
    ]


def test_setup_logging_twice_keeps_one_handler():
    setup_logging()
    setup_logging()
    assert len(_structlog_handlers()) == 1


def test_context_is_merged_into_records(capsys):
    setup_logging()
    structlog.contextvars.bind_contextvars(request_id="req-1", library_id="library1")
    try:
        get_logger("studyspace.test").warning("booking_rejected", error="seat_conflict")
    finally:
        structlog.contextvars.clear_contextvars()

    out = capsys.readouterr().out
    assert "booking_rejected" in out
    assert "req-1" in out
    assert "library1" in out
