"""Argument matchers used when recording expected calls."""

from __future__ import annotations

import abc
import dataclasses as dc
import re
import typing as t


class Matcher(abc.ABC):
    """Predicate over a single argument value.

    Recorded arguments that are already :class:`Matcher` instances are used
    unchanged; any other value is wrapped by :func:`as_matcher`.
    """

    __slots__ = ()

    @abc.abstractmethod
    def matches(self, value: object) -> bool:
        """Return ``True`` if *value* satisfies this matcher."""

    @abc.abstractmethod
    def __str__(self) -> str:
        """Return a description used in failure messages."""

    def __call__(self, value: object) -> bool:
        """Alias for :meth:`matches`."""
        return self.matches(value)


@dc.dataclass(frozen=True, slots=True)
class Any(Matcher):
    """Match any value."""

    def matches(self, value: object) -> bool:
        """Return ``True`` for any input."""
        return True

    def __str__(self) -> str:
        return "is anything"


@dc.dataclass(frozen=True, slots=True)
class Eq(Matcher):
    """Match values of the same type as ``expected`` that compare equal to it.

    The type check keeps ``True`` and ``1.0`` from matching a recorded ``1``.
    """

    expected: object

    def matches(self, value: object) -> bool:
        """Return ``True`` when *value* has the type of ``expected`` and equals it."""
        return type(value) is type(self.expected) and bool(value == self.expected)

    def __str__(self) -> str:
        return f"is equal to {self.expected!r}"


@dc.dataclass(frozen=True, slots=True)
class Nil(Matcher):
    """Match ``None`` by identity.

    Identity is used instead of equality so that objects overriding
    ``__eq__`` never compare equal to a recorded ``None``.
    """

    def matches(self, value: object) -> bool:
        """Return ``True`` if *value* is ``None``."""
        return value is None

    def __str__(self) -> str:
        return "is None"


@dc.dataclass(frozen=True, slots=True)
class Not(Matcher):
    """Invert another matcher."""

    matcher: Matcher

    def matches(self, value: object) -> bool:
        """Return ``True`` when the wrapped matcher rejects *value*."""
        return not self.matcher.matches(value)

    def __str__(self) -> str:
        return f"not({self.matcher})"


@dc.dataclass(frozen=True, slots=True)
class IsA(Matcher):
    """Match instances of ``typ``."""

    typ: type | tuple[type, ...]

    def matches(self, value: object) -> bool:
        """Return ``True`` when *value* is an instance of ``typ``."""
        return isinstance(value, self.typ)

    def __str__(self) -> str:
        if isinstance(self.typ, tuple):
            names = ", ".join(typ.__name__ for typ in self.typ)
            return f"is an instance of ({names})"
        return f"is an instance of {self.typ.__name__}"


@dc.dataclass(frozen=True, slots=True)
class Predicate(Matcher):
    """Use a custom ``func`` to determine a match."""

    func: t.Callable[[t.Any], object]

    def matches(self, value: object) -> bool:
        """Return ``True`` if ``func(value)`` is truthy."""
        return bool(self.func(value))

    def __str__(self) -> str:
        name = getattr(self.func, "__qualname__", repr(self.func))
        return f"satisfies {name}"


@dc.dataclass(frozen=True, slots=True)
class Regex(Matcher):
    """Match strings in which ``pattern`` is found."""

    pattern: str
    _compiled: re.Pattern[str] = dc.field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_compiled", re.compile(self.pattern))

    def matches(self, value: object) -> bool:
        """Return ``True`` if *value* is a string the regex matches."""
        return isinstance(value, str) and bool(self._compiled.search(value))

    def __str__(self) -> str:
        return f"matches regex {self.pattern!r}"


@dc.dataclass(frozen=True, slots=True)
class Contains(Matcher):
    """Match containers holding ``item``."""

    item: object

    def matches(self, value: object) -> bool:
        """Return ``True`` if ``item in value``."""
        try:
            return self.item in value  # type: ignore[operator]
        except TypeError:
            return False

    def __str__(self) -> str:
        return f"contains {self.item!r}"


@dc.dataclass(frozen=True, slots=True)
class StartsWith(Matcher):
    """Match strings beginning with ``prefix``."""

    prefix: str

    def matches(self, value: object) -> bool:
        """Return ``True`` if *value* is a string starting with ``prefix``."""
        return isinstance(value, str) and value.startswith(self.prefix)

    def __str__(self) -> str:
        return f"starts with {self.prefix!r}"


def as_matcher(value: object) -> Matcher:
    """Return *value* as a :class:`Matcher`.

    Matchers pass through unchanged, ``None`` becomes :class:`Nil` and any
    other value is compared with :class:`Eq`.
    """
    if isinstance(value, Matcher):
        return value
    if value is None:
        return Nil()
    return Eq(value)


__all__ = [
    "Any",
    "Contains",
    "Eq",
    "IsA",
    "Matcher",
    "Nil",
    "Not",
    "Predicate",
    "Regex",
    "StartsWith",
    "as_matcher",
]
