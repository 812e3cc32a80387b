from __future__ import annotations

import io
import logging
import pytest

from startupflame import logs
from startupflame.events import IntervalRecord, NANOS_PER_MILLI

# fixtures defined in this file will be available to all tests. see
# https://docs.pytest.org/en/4.6.x/example/simple.html#package-directory-level-fixtures-setups

MS = NANOS_PER_MILLI


@pytest.fixture
def interval():
    """Build IntervalRecords with times given in milliseconds"""
    def make(label: str, start_ms: int, end_ms: int, context: str = "main") -> IntervalRecord:
        return IntervalRecord(label, start_ms * MS, end_ms * MS, context)
    return make


@pytest.fixture
def sink():
    return io.StringIO()


@pytest.fixture
def reset_logging():
    """Drop the handlers init_logging() installs so later tests don't write to a closed capture"""
    yield
    rootLogger = logging.getLogger()
    for handler in (logs.fileHandler, logs.consoleHandler):
        if handler is not None:
            rootLogger.removeHandler(handler)
            handler.close()
    logs.fileHandler = None
    logs.consoleHandler = None
