"""Verification and failure message helpers for :class:`Controller`."""

from __future__ import annotations

import typing as t
from textwrap import indent

from .errors import MissingCallsError, UnexpectedCallError, UnfulfilledExpectationError

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call import Call


def format_args(args: t.Sequence[object]) -> str:
    """Return the received argument values as a call argument list."""
    return ", ".join(repr(arg) for arg in args)


def format_receiver(receiver: object) -> str:
    """Return the qualified type name of *receiver*."""
    typ = type(receiver)
    return f"{typ.__module__}.{typ.__qualname__}"


def format_invocation(receiver: object, method: str, args: t.Sequence[object]) -> str:
    return f"{format_receiver(receiver)}.{method}({format_args(args)})"


def numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=start):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def describe_call(call: Call, *, include_count: bool = False) -> str:
    """Return a human readable representation of *call*."""
    lines = [str(call)]
    if include_count:
        upper = "unbounded" if call.max_calls is None else str(call.max_calls)
        lines.append(
            f"expected calls: min={call.min_calls}, max={upper}, "
            f"observed={call.num_calls}"
        )
    return "\n".join(lines)


def unexpected_call_error(
    receiver: object,
    method: str,
    args: t.Sequence[object],
    origin: str,
    candidates: t.Sequence[Call],
) -> UnexpectedCallError:
    """Build the error reported when no expected call matches."""
    mismatches = [
        f"expected call at {call.origin} doesn't match:\n"
        + indent(call.explain_mismatch(args), "  ")
        for call in candidates
    ]
    msg = format_sections(
        "no matching expected call",
        [
            ("Actual call", f"{format_invocation(receiver, method, args)} [{origin}]"),
            ("Candidates", numbered(mismatches) if mismatches else ""),
        ],
    )
    if not candidates:
        msg += "\n\nthere are no expected calls of this method on the receiver"
    return UnexpectedCallError(msg)


class UnsatisfiedCallVerifier:
    """Check that every remaining expected call met its minimum count."""

    def collect(self, calls: t.Iterable[Call]) -> list[Call]:
        """Return the calls in *calls* that are not satisfied."""
        return [call for call in calls if not call.satisfied()]

    def error_for(self, call: Call) -> UnfulfilledExpectationError:
        """Return the non-fatal error reported for the missed *call*."""
        msg = format_sections(
            "missing call(s)",
            [("Expected", describe_call(call, include_count=True))],
        )
        return UnfulfilledExpectationError(msg)

    def aggregate(self, missing: t.Sequence[Call]) -> MissingCallsError:
        """Return the fatal error summarising *missing*."""
        msg = format_sections(
            MissingCallsError.DEFAULT_MESSAGE,
            [("Missing", numbered([str(call) for call in missing]))],
        )
        return MissingCallsError(msg)


__all__ = [
    "UnsatisfiedCallVerifier",
    "describe_call",
    "format_args",
    "format_invocation",
    "format_receiver",
    "format_sections",
    "numbered",
    "unexpected_call_error",
]
