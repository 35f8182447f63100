"""Unit tests for :mod:`call_mox.reporters`."""

from __future__ import annotations

import logging

import pytest

from call_mox.errors import UnexpectedCallError, UnfulfilledExpectationError
from call_mox.reporters import RaisingReporter


def test_error_records_and_continues(caplog: pytest.LogCaptureFixture) -> None:
    """Non-fatal reports are logged and kept."""
    reporter = RaisingReporter()
    err = UnfulfilledExpectationError("missing call")

    with caplog.at_level(logging.ERROR, logger="call_mox.reporters"):
        reporter.error(err)

    assert reporter.errors == [err]
    assert reporter.fatal_errors == []
    assert "missing call" in caplog.text


def test_fatal_records_and_raises() -> None:
    """Fatal reports raise the reported error."""
    reporter = RaisingReporter()
    err = UnexpectedCallError("no match")

    with pytest.raises(UnexpectedCallError) as excinfo:
        reporter.fatal(err)

    assert excinfo.value is err
    assert reporter.fatal_errors == [err]
