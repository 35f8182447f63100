"""Unit tests for the :class:`Call` state machine."""

from __future__ import annotations

import pytest

from call_mox.call import Call, CallState, in_order
from call_mox.matchers import Eq, IsA


class _Receiver:
    """Receiver used as a mock identity."""


def _make_call(*matchers: object, owner: object = None) -> Call:
    args = [matcher if isinstance(matcher, IsA) else Eq(matcher) for matcher in matchers]
    return Call(_Receiver(), "some_method", args, origin="test.py:1", owner=owner)


def test_default_bounds_are_exactly_once() -> None:
    """A freshly recorded call must be made exactly once."""
    call = _make_call(1)
    assert (call.min_calls, call.max_calls) == (1, 1)
    assert call.state is CallState.PENDING

    call.consume([1])

    assert call.satisfied()
    assert call.exhausted()
    assert call.state is CallState.EXHAUSTED
    assert not call.matches([1])


def test_state_progresses_through_satisfiable() -> None:
    """Bounded calls move from pending through satisfiable to exhausted."""
    call = _make_call(1).min_times(2).max_times(3)
    call.consume([1])
    assert call.state is CallState.PENDING
    call.consume([1])
    assert call.state is CallState.SATISFIABLE
    call.consume([1])
    assert call.state is CallState.EXHAUSTED


def test_zero_minimum_starts_satisfiable() -> None:
    """Calls that may be skipped start out satisfied."""
    call = _make_call(1).any_times()
    assert call.state is CallState.SATISFIABLE
    assert call.max_calls is None


def test_any_times_is_never_exhausted() -> None:
    """Unbounded calls keep matching."""
    call = _make_call(1).any_times()
    for _ in range(50):
        assert call.matches([1])
        call.consume([1])
    assert not call.exhausted()


def test_min_times_makes_default_maximum_unbounded() -> None:
    """min_times() lifts the default upper bound of one."""
    call = _make_call(1).min_times(2)
    assert (call.min_calls, call.max_calls) == (2, None)


def test_max_times_drops_default_minimum() -> None:
    """max_times() relaxes the default lower bound of one."""
    call = _make_call(1).max_times(3)
    assert (call.min_calls, call.max_calls) == (0, 3)


def test_times_sets_both_bounds() -> None:
    """times() pins the invocation count."""
    call = _make_call(1).times(4)
    assert (call.min_calls, call.max_calls) == (4, 4)


def test_bound_change_to_exhausted_notifies_owner() -> None:
    """Only a change that leaves no invocations triggers on_exhausted."""
    retired: list[Call] = []
    call = _make_call(1)
    call.on_exhausted = retired.append

    call.times(2)
    assert retired == []

    call.times(0)
    assert retired == [call]


@pytest.mark.parametrize("count", [-1, -10])
def test_negative_counts_are_rejected(count: int) -> None:
    """Bounds must not be negative."""
    with pytest.raises(ValueError, match=">= 0"):
        _make_call(1).times(count)


def test_minimum_cannot_exceed_maximum() -> None:
    """Inconsistent bounds raise ``ValueError``."""
    with pytest.raises(ValueError, match="cannot exceed"):
        _make_call(1).times(2).min_times(3)


def test_matches_requires_every_argument() -> None:
    """Each positional argument must satisfy its matcher."""
    call = _make_call(1, IsA(str))
    assert call.matches([1, "x"])
    assert not call.matches([2, "x"])
    assert not call.matches([1, 2])


@pytest.mark.parametrize("args", [[], [1, 2]])
def test_argument_count_mismatch_is_not_a_match(args: list[object]) -> None:
    """Arity mismatches return ``False`` rather than raising."""
    call = _make_call(1)
    assert not call.matches(args)
    assert call.explain_mismatch(args) == f"expected 1 argument(s), got {len(args)}"


def test_explain_mismatch_names_failing_argument() -> None:
    """The explanation identifies the rejected argument and matcher."""
    call = _make_call(1, 2)
    assert call.explain_mismatch([1, 3]) == "arg[1]=3 failed: is equal to 2"


class _Uncomparable:
    """Value whose equality check always raises."""

    def __eq__(self, other: object) -> bool:
        msg = "cannot compare"
        raise TypeError(msg)

    __hash__ = object.__hash__

    def __repr__(self) -> str:
        return "<uncomparable>"


def test_raising_matcher_is_not_a_match() -> None:
    """An exception from a matcher rejects the argument instead of escaping."""
    call = _make_call(_Uncomparable())
    assert not call.matches([_Uncomparable()])
    assert call.explain_mismatch([_Uncomparable()]) == (
        "arg[0]=<uncomparable> failed: is equal to <uncomparable> "
        "(raised TypeError: cannot compare)"
    )


def test_explain_mismatch_reports_exhaustion() -> None:
    """Exhausted calls explain that their budget is spent."""
    call = _make_call(1)
    call.consume([1])
    assert "max number of times (1)" in call.explain_mismatch([1])


def test_consume_returns_static_values() -> None:
    """consume() increments the counter and yields configured values."""
    call = _make_call(1).returns("a", "b")
    rets, action = call.consume([1])
    assert rets == ("a", "b")
    assert action is None
    assert call.num_calls == 1


def test_consume_defers_actions() -> None:
    """Actions run only when the returned closure is invoked."""
    seen: list[object] = []
    call = _make_call(1).do(seen.append)
    _, action = call.consume([1])
    assert seen == []
    assert action is not None
    assert action() is None
    assert seen == [1]


def test_do_and_return_replaces_values() -> None:
    """do_and_return() produces the invocation's result."""
    call = _make_call(1).returns("static").do_and_return(lambda value: value * 10)
    rets, action = call.consume([4])
    assert rets == ("static",)
    assert action is not None
    assert action() == (40,)


def test_raises_action() -> None:
    """raises() makes the action raise the configured exception."""
    call = _make_call(1).raises(KeyError("missing"))
    _, action = call.consume([1])
    assert action is not None
    with pytest.raises(KeyError, match="missing"):
        action()


def test_after_blocks_until_prerequisite_satisfied() -> None:
    """A call with a pending prerequisite never matches."""
    first = _make_call(1)
    second = _make_call(2).after(first)

    assert not second.matches([2])
    assert "prerequisite call not satisfied" in second.explain_mismatch([2])

    first.consume([1])
    assert second.matches([2])


def test_drop_prerequisites_returns_only_satisfied() -> None:
    """Unsatisfied prerequisites stay attached."""
    done = _make_call(1)
    pending = _make_call(2)
    call = _make_call(3).after(done, pending)
    done.consume([1])

    assert call.drop_prerequisites() == [done]
    assert call.prerequisites == [pending]


def test_after_rejects_loops() -> None:
    """Ordering constraints cannot form a cycle."""
    first = _make_call(1)
    second = _make_call(2).after(first)
    third = _make_call(3).after(second)

    with pytest.raises(ValueError, match="loop in call order"):
        first.after(third)
    with pytest.raises(ValueError, match="loop in call order"):
        first.after(first)


def test_after_rejects_calls_from_other_controllers() -> None:
    """Prerequisites must share the owning controller."""
    first = _make_call(1, owner=object())
    second = _make_call(2, owner=object())
    with pytest.raises(ValueError, match="different controller"):
        second.after(first)


def test_after_ignores_duplicates() -> None:
    """Declaring the same prerequisite twice keeps a single edge."""
    first = _make_call(1)
    second = _make_call(2).after(first).after(first)
    assert second.prerequisites == [first]


def test_in_order_chains_consecutive_pairs() -> None:
    """in_order() links each call to the one before it."""
    calls = [_make_call(n) for n in range(3)]
    in_order(*calls)
    assert calls[0].prerequisites == []
    assert calls[1].prerequisites == [calls[0]]
    assert calls[2].prerequisites == [calls[1]]


def test_str_includes_receiver_method_and_origin() -> None:
    """The string form is used in failure messages."""
    call = _make_call(1)
    assert str(call) == "_Receiver.some_method(is equal to 1) test.py:1"
