"""Method lookup used when recording expected calls."""

from __future__ import annotations

import inspect

from .errors import MethodNotFoundError

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


def method_signature(receiver: object, method: str) -> inspect.Signature | None:
    """Return the signature of ``receiver.method``.

    The signature excludes the receiver itself. ``None`` is returned when the
    method exists but cannot be introspected, as with some builtins.

    Raises
    ------
    MethodNotFoundError
        If *receiver* exposes no callable attribute named *method*.
    """
    bound = getattr(receiver, method, None)
    if bound is None or not callable(bound):
        msg = f"failed finding method {method} on {type(receiver).__qualname__}"
        raise MethodNotFoundError(msg)
    try:
        return inspect.signature(bound)
    except (TypeError, ValueError):
        return None


def check_arity(
    signature: inspect.Signature | None, method: str, args: tuple[object, ...]
) -> str | None:
    """Return an error message when *args* do not fill *signature* exactly.

    Adapters forward every positional parameter on each invocation, so a
    recording must supply one matcher per positional parameter, defaults
    included. Methods taking ``*args`` only need the arguments to bind.
    """
    if signature is None:
        return None
    params = signature.parameters.values()
    if any(param.kind is param.VAR_POSITIONAL for param in params):
        try:
            signature.bind(*args)
        except TypeError as exc:
            return (
                f"cannot record {method}{signature} with {len(args)} "
                f"argument(s): {exc}"
            )
        return None
    positional = [param for param in params if param.kind in _POSITIONAL]
    if len(args) != len(positional):
        return (
            f"cannot record {method}{signature} with {len(args)} argument(s): "
            f"expected {len(positional)}"
        )
    return None


__all__ = ["check_arity", "method_signature"]
