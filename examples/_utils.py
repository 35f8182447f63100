"""Shared helpers for the runnable examples."""

from __future__ import annotations

import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - typing only
    from call_mox.call import Call
    from call_mox.controller import Controller


class KeyValueStore(t.Protocol):
    """Interface the examples mock."""

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str) -> None: ...


class MockKeyValueStore:
    """Mock of :class:`KeyValueStore`, written the way a generator would."""

    def __init__(self, ctrl: Controller) -> None:
        self._ctrl = ctrl
        self._recorder = _Recorder(self, ctrl)

    def expect(self) -> _Recorder:
        """Return the recorder used to register expected calls."""
        return self._recorder

    def get(self, key: str) -> str | None:
        rets = self._ctrl.call(self, "get", key)
        return rets[0] if rets else None

    def put(self, key: str, value: str) -> None:
        self._ctrl.call(self, "put", key, value)


class _Recorder:
    def __init__(self, mock: MockKeyValueStore, ctrl: Controller) -> None:
        self._mock = mock
        self._ctrl = ctrl

    def get(self, key: object) -> Call:
        return self._ctrl.record_call(self._mock, "get", key)

    def put(self, key: object, value: object) -> Call:
        return self._ctrl.record_call(self._mock, "put", key, value)


def cache_lookup(store: KeyValueStore, key: str, compute: t.Callable[[str], str]) -> str:
    """Return the cached value for *key*, computing and storing it on a miss."""
    value = store.get(key)
    if value is None:
        value = compute(key)
        store.put(key, value)
    return value
