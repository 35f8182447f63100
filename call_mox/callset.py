"""Registry of live expected calls keyed by receiver and method."""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .call import Call

_Key = tuple[int, str]


class CallSet:
    """Index of expected calls keyed by ``(receiver identity, method)``.

    Calls for one key are kept in insertion order, which decides the winner
    when several calls would match the same invocation. Receivers are compared
    by identity; each :class:`Call` holds its receiver so an identity key stays
    valid while the call is registered.
    """

    def __init__(self) -> None:
        self._expected: dict[_Key, list[Call]] = {}

    @staticmethod
    def _key(receiver: object, method: str) -> _Key:
        return (id(receiver), method)

    def add(self, call: Call) -> None:
        """Append *call* to the calls expected for its receiver and method."""
        self._expected.setdefault(self._key(call.receiver, call.method), []).append(
            call
        )

    def remove(self, call: Call) -> None:
        """Remove *call*; removing an unknown call is a no-op."""
        key = self._key(call.receiver, call.method)
        calls = self._expected.get(key)
        if calls is None:
            return
        for index, candidate in enumerate(calls):
            if candidate is call:
                del calls[index]
                break
        if not calls:
            del self._expected[key]

    def find_match(
        self, receiver: object, method: str, args: t.Sequence[object]
    ) -> Call | None:
        """Return the earliest registered call that matches, if any."""
        for call in self._expected.get(self._key(receiver, method), ()):
            if call.matches(args):
                return call
        return None

    def candidates(self, receiver: object, method: str) -> list[Call]:
        """Return the live calls registered for *receiver* and *method*."""
        return list(self._expected.get(self._key(receiver, method), ()))

    def __iter__(self) -> t.Iterator[Call]:
        for calls in self._expected.values():
            yield from calls

    def __len__(self) -> int:
        return sum(len(calls) for calls in self._expected.values())

    def __contains__(self, call: object) -> bool:
        return any(candidate is call for candidate in self)


__all__ = ["CallSet"]
