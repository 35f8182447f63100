"""Controller coordinating expected calls for a family of mocks."""

from __future__ import annotations

import enum
import inspect
import logging
import threading
import types  # noqa: TC003
import typing as t

from .call import Call
from .callset import CallSet
from .errors import ArgumentCountError, CallMoxError, LifecycleError
from .matchers import as_matcher
from .reporters import RaisingReporter
from .signatures import check_arity, method_signature
from .verifiers import UnsatisfiedCallVerifier, unexpected_call_error

if t.TYPE_CHECKING:
    from .call import Action
    from .reporters import TestReporter

logger = logging.getLogger(__name__)


class Phase(enum.StrEnum):
    """Lifecycle phases for :class:`Controller`."""

    ACTIVE = "ACTIVE"
    FINISHED = "FINISHED"


def _caller_info(skip: int) -> str:
    """Return ``file:line`` of the frame *skip* levels above the caller."""
    frame = inspect.currentframe()
    try:
        for _ in range(skip + 1):
            if frame is None:
                break
            frame = frame.f_back
        if frame is None:
            return "unknown file"
        return f"{frame.f_code.co_filename}:{frame.f_lineno}"
    finally:
        del frame


class Controller:
    """Top-level control of a set of mocks and their expected calls.

    The controller owns the registry of expected calls and the reporter that
    receives failures. Its methods are safe to call from multiple threads.
    """

    def __init__(
        self,
        reporter: TestReporter | None = None,
        *,
        finish_on_exit: bool = True,
    ) -> None:
        """Create a new controller.

        Parameters
        ----------
        reporter:
            Sink receiving failures. Defaults to a :class:`RaisingReporter`.
        finish_on_exit:
            When ``True`` (the default), :meth:`__exit__` calls
            :meth:`finish`. Disable for explicit control.
        """
        self.reporter: TestReporter = (
            reporter if reporter is not None else RaisingReporter()
        )
        self._finish_on_exit = finish_on_exit
        self._lock = threading.Lock()
        self._expected_calls = CallSet()
        self._phase = Phase.ACTIVE
        self._verifier = UnsatisfiedCallVerifier()

    # ------------------------------------------------------------------
    # Lifecycle state
    # ------------------------------------------------------------------
    @property
    def phase(self) -> Phase:
        """Return the current lifecycle phase."""
        return self._phase

    @property
    def expected_calls(self) -> tuple[Call, ...]:
        """Return a snapshot of the calls still registered."""
        with self._lock:
            return tuple(self._expected_calls)

    # ------------------------------------------------------------------
    # Context manager protocol
    # ------------------------------------------------------------------
    def __enter__(self) -> Controller:
        """Enter context; expectations are verified on exit."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: types.TracebackType | None,
    ) -> None:
        """Exit context, finishing the controller unless disabled."""
        if not self._finish_on_exit or self._phase is Phase.FINISHED:
            return
        self.finish(failure=exc)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def record_call(self, receiver: object, method: str, *args: object) -> Call:
        """Register an expected call of ``receiver.method(*args)``.

        Each argument is wrapped with :func:`~call_mox.matchers.as_matcher`.
        The returned :class:`Call` can be configured further. A method the
        receiver does not expose is reported as a fatal failure.
        """
        origin = _caller_info(2)
        try:
            signature = method_signature(receiver, method)
        except CallMoxError as err:
            self._fatal(err)
        return self._record(receiver, method, signature, args, origin)

    def record_call_with_signature(
        self,
        receiver: object,
        method: str,
        signature: inspect.Signature | None,
        *args: object,
    ) -> Call:
        """Register an expected call using a signature supplied by the adapter.

        *signature* must exclude the receiver parameter. Passing ``None``
        skips the argument count check.
        """
        origin = _caller_info(2)
        return self._record(receiver, method, signature, args, origin)

    def call(self, receiver: object, method: str, *args: object) -> tuple[t.Any, ...]:
        """Dispatch an invocation of ``receiver.method(*args)``.

        Returns the values configured on the matching call, or the values
        produced by its actions. An invocation matching no expected call is
        reported as a fatal failure.
        """
        with self._lock:
            lifecycle_error = self._lifecycle_error("call")
            if lifecycle_error is None:
                outcome = self._dispatch(receiver, method, args)
        if lifecycle_error is not None:
            self._fatal(lifecycle_error)
        if isinstance(outcome, CallMoxError):
            self._fatal(outcome)
        rets, action = outcome
        if action is not None:
            # The lock is not held so actions may call back into the controller.
            produced = action()
            if produced is not None:
                return produced
        return rets

    def finish(self, *, failure: BaseException | None = None) -> None:
        """Verify that every expected call has been satisfied.

        When *failure* is given the test is already failing: verification is
        skipped and *failure* is re-raised unchanged so missing-call reports do
        not mask it. Intended to be called once, at test teardown.
        """
        if failure is not None:
            with self._lock:
                self._phase = Phase.FINISHED
            logger.debug("Skipping call verification after failure: %r", failure)
            raise failure

        with self._lock:
            lifecycle_error = self._lifecycle_error("finish")
            if lifecycle_error is None:
                missing = self._verifier.collect(self._expected_calls)
                errors = [self._verifier.error_for(call) for call in missing]
                aggregate = self._verifier.aggregate(missing) if missing else None
                self._phase = Phase.FINISHED
        if lifecycle_error is not None:
            self._fatal(lifecycle_error)

        for err in errors:
            self.reporter.error(err)
        if aggregate is not None:
            self._fatal(aggregate)
        logger.debug("All expected calls satisfied")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _record(
        self,
        receiver: object,
        method: str,
        signature: inspect.Signature | None,
        args: tuple[object, ...],
        origin: str,
    ) -> Call:
        """Build a :class:`Call` and add it to the registry."""
        matchers = [as_matcher(arg) for arg in args]
        arity_error = check_arity(signature, method, args)
        if arity_error is not None:
            self._fatal(ArgumentCountError(f"{arity_error} [{origin}]"))

        call = Call(
            receiver=receiver,
            method=method,
            args=matchers,
            origin=origin,
            signature=signature,
            owner=self,
            on_exhausted=self._retire,
        )
        with self._lock:
            lifecycle_error = self._lifecycle_error("record_call")
            if lifecycle_error is None:
                self._expected_calls.add(call)
        if lifecycle_error is not None:
            self._fatal(lifecycle_error)
        logger.debug("Recorded expected call %s", call)
        return call

    def _dispatch(
        self, receiver: object, method: str, args: tuple[object, ...]
    ) -> tuple[tuple[t.Any, ...], Action | None] | CallMoxError:
        """Match and consume an expected call; the lock must be held."""
        expected = self._expected_calls.find_match(receiver, method, args)
        if expected is None:
            return unexpected_call_error(
                receiver,
                method,
                args,
                _caller_info(3),
                self._expected_calls.candidates(receiver, method),
            )

        # The matched call no longer needs its satisfied prerequisites, and
        # those prerequisites are no longer expected.
        for prerequisite in expected.drop_prerequisites():
            self._expected_calls.remove(prerequisite)
            logger.debug("Dropped satisfied prerequisite %s", prerequisite)

        outcome = expected.consume(args)
        logger.debug("Matched %s (call %d)", expected, expected.num_calls)
        if expected.exhausted():
            self._expected_calls.remove(expected)
            logger.debug("Removed exhausted call %s", expected)
        return outcome

    def _retire(self, call: Call) -> None:
        """Drop *call* once a bound change leaves it exhausted."""
        with self._lock:
            self._expected_calls.remove(call)
        logger.debug("Removed exhausted call %s", call)

    def _lifecycle_error(self, action: str) -> LifecycleError | None:
        """Return an error when ``action`` is not allowed in the current phase."""
        if self._phase is Phase.ACTIVE:
            return None
        return LifecycleError(
            f"Cannot call {action}(): controller already finished "
            f"(current phase: {self._phase.name.lower()})"
        )

    def _fatal(self, err: CallMoxError) -> t.NoReturn:
        """Report *err* as fatal; raise it if the reporter returns."""
        self.reporter.fatal(err)
        raise err


__all__ = ["Controller", "Phase"]
