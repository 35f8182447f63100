"""Pytest plugin providing the ``call_mox`` fixture."""

from __future__ import annotations

import logging
import typing as t

import pytest

from .controller import Controller, Phase
from .errors import CallMoxError
from .reporters import RaisingReporter

logger = logging.getLogger(__name__)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("call_mox")
    group.addoption(
        "--call-mox-auto-finish",
        action="store_true",
        dest="call_mox_auto_finish",
        default=None,
        help=(
            "Call finish() on the call_mox fixture during teardown. "
            "Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--no-call-mox-auto-finish",
        action="store_false",
        dest="call_mox_auto_finish",
        default=None,
        help=(
            "Leave finish() on the call_mox fixture to the test. "
            "Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "call_mox_auto_finish",
        "Automatically call finish() on the call_mox fixture during teardown.",
        type="bool",
        default=True,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "call_mox(auto_finish: bool = True): override automatic finish() "
            "of the call_mox fixture for a single test."
        ),
    )


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[t.Any]
) -> t.Generator[None, None, None]:
    """Attach each phase report to the test item.

    Teardown inspects ``rep_call`` to skip verification when the test body
    already failed.
    """
    del call
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)


def _auto_finish_enabled(request: pytest.FixtureRequest) -> bool:
    """Resolve auto finish from the marker, fixture param, CLI, then ini file."""
    marker = request.node.get_closest_marker("call_mox")
    if marker is not None and "auto_finish" in marker.kwargs:
        return bool(marker.kwargs["auto_finish"])

    param = getattr(request, "param", None)
    if param is not None:
        return _param_auto_finish(param)

    cli_value = request.config.getoption("call_mox_auto_finish")
    if cli_value is not None:
        return bool(cli_value)
    return bool(request.config.getini("call_mox_auto_finish"))


def _param_auto_finish(param: object) -> bool:
    """Read ``auto_finish`` from an indirect fixture parameter."""
    if isinstance(param, bool):
        return param
    if isinstance(param, dict) and "auto_finish" in param:
        return bool(param["auto_finish"])
    msg = (
        "call_mox fixture param must be a bool or dict with 'auto_finish' key, "
        f"got {param!r}"
    )
    raise TypeError(msg)


@pytest.fixture
def call_mox(request: pytest.FixtureRequest) -> t.Generator[Controller, None, None]:
    """Provide a :class:`Controller` that is finished during teardown."""
    ctrl = Controller(RaisingReporter(), finish_on_exit=False)
    auto_finish = _auto_finish_enabled(request)
    yield ctrl
    _teardown_call_mox(request.node, ctrl, auto_finish=auto_finish)


def _teardown_call_mox(item: pytest.Item, ctrl: Controller, *, auto_finish: bool) -> None:
    """Finish *ctrl* unless disabled, already finished or the test failed."""
    if not auto_finish or ctrl.phase is Phase.FINISHED:
        return
    if _call_stage_failed(item):
        logger.debug("Test body failed; skipping call_mox verification")
        return
    try:
        ctrl.finish()
    except CallMoxError as err:
        logger.exception("Error during call_mox verification")
        pytest.fail(f"{type(err).__name__}: {err}", pytrace=False)


def _call_stage_failed(item: pytest.Item) -> bool:
    """Return ``True`` when the test body has already failed."""
    rep_call = getattr(item, "rep_call", None)
    return bool(rep_call and rep_call.failed)
