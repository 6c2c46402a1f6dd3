"""Guarded calls into the type under test.

Foundation module used by the contract checks. Every ``__eq__``,
``__hash__`` and ``__repr__`` call made against a caller's objects goes
through here, so an exception raised by the type under test becomes an
``Outcome`` instead of escaping the run.
"""

from __future__ import annotations

import operator
from typing import Any, NamedTuple


MAX_REPR_CHARS = 200


class Outcome(NamedTuple):
    """Result of one probe: either a value or the error it raised."""
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Opaque:
    """Minimal unrelated object with a stable repr."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<opaque object>"


def describe_error(exc: BaseException) -> str:
    """``TypeName: message``, or just the type name if the message can't be built."""
    name = type(exc).__name__
    try:
        text = str(exc)
    except Exception:
        return name
    return f"{name}: {text}" if text else name


def probe_eq(left: Any, right: Any) -> Outcome:
    """Evaluate ``left == right`` and coerce the answer to bool.

    Python's reflected-operand rules apply, so ``Opaque() == x`` and
    ``None == x`` both reach ``x.__eq__``.
    """
    try:
        return Outcome(bool(operator.eq(left, right)))
    except Exception as exc:
        return Outcome(error=describe_error(exc))


def probe_hash(obj: Any) -> Outcome:
    """Evaluate ``hash(obj)``."""
    try:
        return Outcome(hash(obj))
    except Exception as exc:
        return Outcome(error=describe_error(exc))


def safe_repr(obj: Any) -> str:
    """``repr(obj)``, truncated, falling back to a type description."""
    try:
        text = repr(obj)
    except Exception as exc:
        text = f"<{type(obj).__name__} instance (repr failed: {describe_error(exc)})>"
    if len(text) > MAX_REPR_CHARS:
        text = text[:MAX_REPR_CHARS - 3] + "..."
    return text
