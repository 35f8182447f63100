"""Expectation matching for test doubles built around record, call and finish.

A :class:`Controller` records expected calls on mock receivers, dispatches the
invocations mock adapters forward to it, and verifies at teardown that every
expected call was made.
"""

from __future__ import annotations

from .call import Call, CallState, in_order
from .callset import CallSet
from .controller import Controller, Phase
from .errors import (
    ArgumentCountError,
    CallMoxError,
    LifecycleError,
    MethodNotFoundError,
    MissingCallsError,
    ProgrammerError,
    UnexpectedCallError,
    UnfulfilledExpectationError,
    VerificationError,
)
from .matchers import (
    Any,
    Contains,
    Eq,
    IsA,
    Matcher,
    Nil,
    Not,
    Predicate,
    Regex,
    StartsWith,
    as_matcher,
)
from .pytest_plugin import call_mox as call_mox_fixture
from .reporters import RaisingReporter, TestReporter

__all__ = [
    "Any",
    "ArgumentCountError",
    "Call",
    "CallMoxError",
    "CallSet",
    "CallState",
    "Contains",
    "Controller",
    "Eq",
    "IsA",
    "LifecycleError",
    "Matcher",
    "MethodNotFoundError",
    "MissingCallsError",
    "Nil",
    "Not",
    "Phase",
    "Predicate",
    "ProgrammerError",
    "RaisingReporter",
    "Regex",
    "StartsWith",
    "TestReporter",
    "UnexpectedCallError",
    "UnfulfilledExpectationError",
    "VerificationError",
    "as_matcher",
    "call_mox_fixture",
    "in_order",
]
