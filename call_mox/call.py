"""Expected calls and their invocation state machine."""

from __future__ import annotations

import dataclasses as dc
import enum
import itertools
import logging
import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    import inspect

    from .matchers import Matcher

Action = t.Callable[[], tuple[t.Any, ...] | None]

logger = logging.getLogger(__name__)


class CallState(enum.StrEnum):
    """Lifecycle states for a :class:`Call`."""

    PENDING = "PENDING"
    SATISFIABLE = "SATISFIABLE"
    EXHAUSTED = "EXHAUSTED"


def _check_count(name: str, count: int) -> None:
    if isinstance(count, bool) or not isinstance(count, int):
        msg = f"{name} must be an integer"
        raise TypeError(msg)
    if count < 0:
        msg = f"{name} must be >= 0"
        raise ValueError(msg)


def _arg_failure(matcher: Matcher, arg: object) -> str | None:
    """Return why *arg* fails *matcher*, or ``None`` when it matches.

    A matcher that raises rejects the argument.
    """
    try:
        if matcher.matches(arg):
            return None
    except Exception as exc:  # noqa: BLE001 - user matchers and __eq__ may raise
        logger.debug("Matcher %s raised on %r", matcher, arg, exc_info=True)
        return f"{matcher} (raised {type(exc).__name__}: {exc})"
    return str(matcher)


@dc.dataclass(eq=False, slots=True)
class Call:
    """A single expected invocation of ``method`` on ``receiver``.

    Calls are created by :meth:`Controller.record_call` and configured through
    the fluent methods below. ``max_calls`` of ``None`` means unbounded.
    ``on_exhausted`` is called when a bound change leaves the call with no
    invocations left, so the owner can stop offering it.
    """

    receiver: object
    method: str
    args: list[Matcher]
    origin: str = "unknown file"
    signature: inspect.Signature | None = dc.field(default=None, repr=False)
    owner: object = dc.field(default=None, repr=False)
    min_calls: int = 1
    max_calls: int | None = 1
    num_calls: int = 0
    prerequisites: list[Call] = dc.field(default_factory=list, repr=False)
    return_values: tuple[t.Any, ...] = dc.field(default=(), repr=False)
    actions: list[t.Callable[..., tuple[t.Any, ...] | None]] = dc.field(
        default_factory=list, repr=False
    )
    on_exhausted: t.Callable[[Call], None] | None = dc.field(
        default=None, repr=False
    )

    # ------------------------------------------------------------------
    # Call-count configuration
    # ------------------------------------------------------------------
    def times(self, count: int) -> Call:
        """Expect exactly ``count`` invocations."""
        _check_count("count", count)
        self._set_bounds(count, count)
        return self

    def min_times(self, count: int) -> Call:
        """Expect at least ``count`` invocations.

        When the upper bound is still the default of one it becomes
        unbounded.
        """
        _check_count("count", count)
        if self.max_calls == 1:
            self.max_calls = None
        self._set_bounds(count, self.max_calls)
        return self

    def max_times(self, count: int) -> Call:
        """Allow at most ``count`` invocations.

        When the lower bound is still the default of one it becomes zero.
        """
        _check_count("count", count)
        if self.min_calls == 1:
            self.min_calls = 0
        self._set_bounds(self.min_calls, count)
        return self

    def any_times(self) -> Call:
        """Allow any number of invocations, including none."""
        self._set_bounds(0, None)
        return self

    def _set_bounds(self, min_calls: int, max_calls: int | None) -> None:
        if max_calls is not None and min_calls > max_calls:
            msg = f"min_calls ({min_calls}) cannot exceed max_calls ({max_calls})"
            raise ValueError(msg)
        self.min_calls = min_calls
        self.max_calls = max_calls
        if self.exhausted() and self.on_exhausted is not None:
            self.on_exhausted(self)

    # ------------------------------------------------------------------
    # Return behaviour
    # ------------------------------------------------------------------
    def returns(self, *values: t.Any) -> Call:
        """Return ``values`` from each matching invocation."""
        self.return_values = values
        return self

    def do(self, func: t.Callable[..., object]) -> Call:
        """Run ``func(*args)`` on each matching invocation.

        The result of ``func`` is ignored.
        """

        def action(*args: t.Any) -> None:
            func(*args)

        self.actions.append(action)
        return self

    def do_and_return(self, func: t.Callable[..., object]) -> Call:
        """Run ``func(*args)`` and return its result from the invocation."""

        def action(*args: t.Any) -> tuple[t.Any, ...]:
            return (func(*args),)

        self.actions.append(action)
        return self

    def raises(self, exc: BaseException) -> Call:
        """Raise ``exc`` from each matching invocation."""

        def action(*args: t.Any) -> None:
            raise exc

        self.actions.append(action)
        return self

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------
    def after(self, *calls: Call) -> Call:
        """Require each of ``calls`` to be satisfied before this call matches."""
        for prerequisite in calls:
            if prerequisite.owner is not self.owner:
                msg = f"{prerequisite} belongs to a different controller than {self}"
                raise ValueError(msg)
            if prerequisite is self or prerequisite.depends_on(self):
                msg = f"loop in call order: {self} after {prerequisite}"
                raise ValueError(msg)
            if prerequisite not in self.prerequisites:
                self.prerequisites.append(prerequisite)
        return self

    def depends_on(self, other: Call) -> bool:
        """Return ``True`` when *other* is a direct or transitive prerequisite."""
        seen: set[int] = set()
        stack = list(self.prerequisites)
        while stack:
            call = stack.pop()
            if call is other:
                return True
            if id(call) in seen:
                continue
            seen.add(id(call))
            stack.extend(call.prerequisites)
        return False

    def drop_prerequisites(self) -> list[Call]:
        """Detach and return the prerequisites that are now satisfied."""
        dropped = [call for call in self.prerequisites if call.satisfied()]
        self.prerequisites = [
            call for call in self.prerequisites if not call.satisfied()
        ]
        return dropped

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def state(self) -> CallState:
        """Return the current lifecycle state."""
        if self.exhausted():
            return CallState.EXHAUSTED
        if self.satisfied():
            return CallState.SATISFIABLE
        return CallState.PENDING

    def satisfied(self) -> bool:
        """Return ``True`` once the minimum call count has been reached."""
        return self.num_calls >= self.min_calls

    def exhausted(self) -> bool:
        """Return ``True`` once the maximum call count has been reached."""
        return self.max_calls is not None and self.num_calls >= self.max_calls

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------
    def matches(self, args: t.Sequence[object]) -> bool:
        """Return ``True`` if an invocation with *args* may consume this call."""
        if len(args) != len(self.args):
            return False
        for matcher, arg in zip(self.args, args, strict=True):
            if _arg_failure(matcher, arg) is not None:
                return False
        if any(not call.satisfied() for call in self.prerequisites):
            return False
        return not self.exhausted()

    def explain_mismatch(self, args: t.Sequence[object]) -> str:
        """Return the reason :meth:`matches` rejects *args*."""
        if len(args) != len(self.args):
            return f"expected {len(self.args)} argument(s), got {len(args)}"
        for index, (matcher, arg) in enumerate(zip(self.args, args, strict=True)):
            reason = _arg_failure(matcher, arg)
            if reason is not None:
                return f"arg[{index}]={arg!r} failed: {reason}"
        pending = [call for call in self.prerequisites if not call.satisfied()]
        if pending:
            return "\n".join(
                [f"prerequisite call not satisfied: {call}" for call in pending]
            )
        if self.exhausted():
            return (
                "expected call has already been called the max number of times "
                f"({self.max_calls})"
            )
        return "call matches"

    def consume(
        self, args: t.Sequence[object]
    ) -> tuple[tuple[t.Any, ...], Action | None]:
        """Record one invocation with *args*.

        Returns the configured return values and, when actions are attached,
        a closure running them. The closure is for the caller to run; it
        returns replacement return values or ``None``.
        """
        self.num_calls += 1
        if not self.actions:
            return self.return_values, None
        actions = tuple(self.actions)
        call_args = tuple(args)

        def run() -> tuple[t.Any, ...] | None:
            produced: tuple[t.Any, ...] | None = None
            for action in actions:
                result = action(*call_args)
                if result is not None:
                    produced = result
            return produced

        return self.return_values, run

    def __str__(self) -> str:
        receiver = type(self.receiver).__qualname__
        matchers = ", ".join(str(matcher) for matcher in self.args)
        return f"{receiver}.{self.method}({matchers}) {self.origin}"


def in_order(*calls: Call) -> None:
    """Require ``calls`` to happen in the order given."""
    for previous, current in itertools.pairwise(calls):
        current.after(previous)


__all__ = ["Action", "Call", "CallState", "in_order"]
