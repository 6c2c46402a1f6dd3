"""Fixture construction and setup validation.

A fixture is built once per verification run from three caller factories:
``make_equal`` (called three times), ``make_unequal`` (once) and
``make_foreign`` (once). A malformed fixture raises ``FixtureError``; it is
a problem with the test setup, never a contract violation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Callable

from eqcontract.probe import describe_error, safe_repr

log = logging.getLogger(__name__)

Factory = Callable[[], Any]

# Display labels, in fixture order
ROLE_LABELS: dict[str, str] = {
    "equal_a": "1st equal instance",
    "equal_b": "2nd equal instance",
    "equal_c": "3rd equal instance",
    "unequal": "not-equal instance",
    "foreign": "different-class instance",
}


class FixtureError(Exception):
    """Raised when caller factories produce a malformed fixture."""


@dataclass(frozen=True, eq=False)
class Fixture:
    """The five instances a verification run is checked against.

    Compared by identity only: comparing two fixtures by value would call
    into the type under test.
    """

    equal_a: Any
    equal_b: Any
    equal_c: Any
    unequal: Any
    foreign: Any

    @property
    def equal_instances(self) -> tuple[tuple[str, Any], ...]:
        return (
            ("1st", self.equal_a),
            ("2nd", self.equal_b),
            ("3rd", self.equal_c),
        )

    @property
    def same_type_instances(self) -> tuple[tuple[str, Any], ...]:
        """The three equal instances plus the not-equal one."""
        return self.equal_instances + (("not-equal", self.unequal),)

    @property
    def type_under_test(self) -> type:
        return type(self.equal_a)

    def __repr__(self) -> str:
        return f"Fixture({self.type_under_test.__name__})"


def _call(factory: Factory, role: str) -> Any:
    if not callable(factory):
        raise FixtureError(
            f"Factory for {ROLE_LABELS[role]} is not callable: {safe_repr(factory)}"
        )
    try:
        return factory()
    except Exception as exc:
        raise FixtureError(
            f"Factory for {ROLE_LABELS[role]} raised {describe_error(exc)}"
        ) from exc


def _validate(values: dict[str, Any]) -> None:
    for role, value in values.items():
        if value is None:
            raise FixtureError(f"Factory for {ROLE_LABELS[role]} returned None")

    for (role_x, x), (role_y, y) in combinations(values.items(), 2):
        if x is y:
            raise FixtureError(
                f"{ROLE_LABELS[role_x]} and {ROLE_LABELS[role_y]} are the same "
                f"object; factories must return a new instance on every call"
            )

    expected = type(values["equal_a"])
    for role in ("equal_b", "equal_c", "unequal"):
        actual = type(values[role])
        if actual is not expected:
            raise FixtureError(
                f"1st equal instance and {ROLE_LABELS[role]} are of different "
                f"classes: {expected.__qualname__} vs. {actual.__qualname__}"
            )


def build_fixture(
    make_equal: Factory,
    make_unequal: Factory,
    make_foreign: Factory,
) -> Fixture:
    """Call the factories and validate the resulting fixture.

    Raises
    ------
    FixtureError
        If a factory is not callable or raises, returns ``None``, returns an
        object already returned by another call, or if the equal and
        not-equal instances do not share a concrete type.
    """
    values = {
        "equal_a": _call(make_equal, "equal_a"),
        "equal_b": _call(make_equal, "equal_b"),
        "equal_c": _call(make_equal, "equal_c"),
        "unequal": _call(make_unequal, "unequal"),
        "foreign": _call(make_foreign, "foreign"),
    }
    _validate(values)

    if type(values["foreign"]) is type(values["equal_a"]):
        log.warning(
            "Foreign instance shares the type under test (%s); "
            "different_class_inequality will only test state inequality",
            type(values["equal_a"]).__qualname__,
        )

    fixture = Fixture(**values)
    log.debug("Built %r", fixture)
    return fixture
