"""Exception hierarchy for :mod:`call_mox`."""

from __future__ import annotations


class CallMoxError(Exception):
    """Base class for all call_mox failures."""


class ProgrammerError(CallMoxError):
    """Raised when expectations are recorded incorrectly."""


class MethodNotFoundError(ProgrammerError):
    """Raised when a receiver exposes no method with the recorded name."""


class ArgumentCountError(ProgrammerError):
    """Raised when recorded arguments cannot bind to the method signature."""


class LifecycleError(CallMoxError):
    """Raised when a controller is used after :meth:`Controller.finish`."""


class VerificationError(CallMoxError):
    """Base class for replay and verification failures."""


class UnexpectedCallError(VerificationError):
    """Raised when an invocation matches no live expected call."""


class UnfulfilledExpectationError(VerificationError):
    """Raised when an expected call never reached its minimum count."""


class MissingCallsError(VerificationError):
    """Raised once at teardown when any expected call was missed."""

    DEFAULT_MESSAGE = "aborting test due to missing call(s)"


__all__ = [
    "ArgumentCountError",
    "CallMoxError",
    "LifecycleError",
    "MethodNotFoundError",
    "MissingCallsError",
    "ProgrammerError",
    "UnexpectedCallError",
    "UnfulfilledExpectationError",
    "VerificationError",
]
