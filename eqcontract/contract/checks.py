"""The equality/hash contract checks.

Each check is a pure function over a ``Fixture`` returning a ``CheckResult``.
Checks never raise on a contract violation: every failing comparison is
recorded as a ``Failure`` so a single run surfaces all of them.

Comparison checks (first five) share their comparison plans with
``check_consistency_across_repeats``, which replays them to detect
nondeterminism. Hash checks verify coherence and stability only; a constant
hash is coherent, and distribution quality is not checked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Callable, NamedTuple

from eqcontract.contract.fixture import Fixture
from eqcontract.probe import Opaque, Outcome, probe_eq, probe_hash, safe_repr


DEFAULT_REPEATS = 20


class Failure:
    """A single failed comparison or hash probe."""

    __slots__ = ("label", "message", "left", "right")

    def __init__(self, label: str, message: str, left: str, right: str | None = None) -> None:
        self.label = label
        self.message = message
        self.left = left
        self.right = right

    def __repr__(self) -> str:
        return f"Failure({self.label}: {self.message})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Failure):
            return NotImplemented
        return (
            self.label == other.label
            and self.message == other.message
            and self.left == other.left
            and self.right == other.right
        )

    def __hash__(self) -> int:
        return hash((self.label, self.message, self.left, self.right))

    def describe(self) -> str:
        """One-line human-readable form, operands included."""
        operands = f"<{self.left}>"
        if self.right is not None:
            operands += f" vs. <{self.right}>"
        return f"{self.label}: {self.message} ({operands})"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of one check."""

    name: str
    passed: bool
    detail: str
    failures: tuple[Failure, ...] = field(default=())

    def __repr__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"CheckResult({self.name}: {status}, {len(self.failures)} failures)"


class Comparison(NamedTuple):
    """One planned ``left == right`` evaluation and the answer it must give."""
    label: str
    left: Any
    right: Any
    expected: bool


def _validate_repeats(repeats: int) -> None:
    if isinstance(repeats, bool) or not isinstance(repeats, int) or repeats < 1:
        raise ValueError(f"repeats must be a positive integer, got {repeats!r}")


def _format(outcome: Outcome) -> str:
    if outcome.ok:
        return repr(outcome.value)
    return f"raised {outcome.error}"


def _result(
    name: str,
    failures: list[Failure],
    total: int,
    noun: str,
    violated: int | None = None,
) -> CheckResult:
    """Summarise a check. *violated* defaults to one per failure."""
    if violated is None:
        violated = len(failures)
    if failures:
        detail = f"{violated} of {total} {noun} violated the contract"
    else:
        detail = f"all {total} {noun} held"
    return CheckResult(name, not failures, detail, tuple(failures))


# -- Comparison plans ----------------------------------------------------

def plan_against_foreign_object(fixture: Fixture) -> list[Comparison]:
    opaque = Opaque()
    return [
        Comparison(f"new object vs. {name}", opaque, obj, False)
        for name, obj in fixture.same_type_instances
    ]


def plan_against_null(fixture: Fixture) -> list[Comparison]:
    return [
        Comparison(f"{name} vs. None", obj, None, False)
        for name, obj in fixture.same_type_instances
    ]


def plan_against_unequal_objects(fixture: Fixture) -> list[Comparison]:
    plan = [
        Comparison(f"{name} vs. not-equal", obj, fixture.unequal, False)
        for name, obj in fixture.equal_instances
    ]
    plan.extend(
        Comparison(f"not-equal vs. {name}", fixture.unequal, obj, False)
        for name, obj in fixture.equal_instances
    )
    return plan


def plan_reflexive(fixture: Fixture) -> list[Comparison]:
    return [
        Comparison(f"{name} vs. itself", obj, obj, True)
        for name, obj in fixture.same_type_instances
    ]


def plan_symmetric_and_transitive(fixture: Fixture) -> list[Comparison]:
    plan: list[Comparison] = []
    for (name_x, x), (name_y, y) in combinations(fixture.equal_instances, 2):
        plan.append(Comparison(f"{name_x} vs. {name_y}", x, y, True))
        plan.append(Comparison(f"{name_y} vs. {name_x}", y, x, True))
    return plan


# Replayed in this order by check_consistency_across_repeats
COMPARISON_PLANS: list[tuple[str, Callable[[Fixture], list[Comparison]]]] = [
    ("against_foreign_object", plan_against_foreign_object),
    ("against_null", plan_against_null),
    ("against_unequal_objects", plan_against_unequal_objects),
    ("reflexive", plan_reflexive),
    ("symmetric_and_transitive", plan_symmetric_and_transitive),
]


def _run_plan(name: str, plan: list[Comparison]) -> CheckResult:
    failures: list[Failure] = []
    for comparison in plan:
        outcome = probe_eq(comparison.left, comparison.right)
        if not outcome.ok:
            message = f"comparison raised {outcome.error}"
        elif outcome.value is not comparison.expected:
            message = "expected equal" if comparison.expected else "expected not equal"
        else:
            continue
        failures.append(Failure(
            comparison.label, message,
            safe_repr(comparison.left), safe_repr(comparison.right),
        ))
    return _result(name, failures, len(plan), "comparisons")


# -- Equality checks -----------------------------------------------------

def check_against_foreign_object(fixture: Fixture) -> CheckResult:
    """A fresh unrelated object must not equal any same-type instance."""
    return _run_plan("against_foreign_object", plan_against_foreign_object(fixture))


def check_against_null(fixture: Fixture) -> CheckResult:
    """``x == None`` must be False; an exception is recorded, not raised."""
    return _run_plan("against_null", plan_against_null(fixture))


def check_against_unequal_objects(fixture: Fixture) -> CheckResult:
    """The not-equal instance must be unequal to each equal one, both ways."""
    return _run_plan("against_unequal_objects", plan_against_unequal_objects(fixture))


def check_reflexive(fixture: Fixture) -> CheckResult:
    return _run_plan("reflexive", plan_reflexive(fixture))


def check_symmetric_and_transitive(fixture: Fixture) -> CheckResult:
    """The three equal instances must be pairwise equal in both directions.

    Fails for identity-only equality, since the instances are distinct.
    """
    return _run_plan("symmetric_and_transitive", plan_symmetric_and_transitive(fixture))


def check_different_class_inequality(fixture: Fixture) -> CheckResult:
    plan = [Comparison("1st vs. different-class", fixture.equal_a, fixture.foreign, False)]
    return _run_plan("different_class_inequality", plan)


def check_consistency_across_repeats(
    fixture: Fixture,
    repeats: int = DEFAULT_REPEATS,
) -> CheckResult:
    """Replay every comparison check *repeats* times; outcomes must not vary.

    Only variance is reported here. A comparison that is consistently wrong
    is already reported by the check that owns it.
    """
    _validate_repeats(repeats)

    def run_round() -> list[tuple[str, Comparison, Outcome]]:
        outcomes = []
        for plan_name, build_plan in COMPARISON_PLANS:
            for comparison in build_plan(fixture):
                outcome = probe_eq(comparison.left, comparison.right)
                outcomes.append((plan_name, comparison, outcome))
        return outcomes

    baseline = run_round()
    changed: dict[int, Failure] = {}

    for repeat in range(2, repeats + 1):
        for idx, (plan_name, comparison, outcome) in enumerate(run_round()):
            if idx in changed:
                continue
            first = baseline[idx][2]
            if outcome != first:
                changed[idx] = Failure(
                    f"{plan_name}: {comparison.label}",
                    f"result changed on repeat {repeat}: "
                    f"{_format(first)} -> {_format(outcome)}",
                    safe_repr(comparison.left), safe_repr(comparison.right),
                )

    failures = [changed[idx] for idx in sorted(changed)]
    return _result(
        "consistency_across_repeats", failures, len(baseline),
        f"comparisons over {repeats} repeats",
    )


# -- Hash checks ---------------------------------------------------------

def check_hash_coherence(fixture: Fixture) -> CheckResult:
    """Equal instances must hash identically."""
    failures: list[Failure] = []
    hashes: dict[str, Outcome] = {}

    for name, obj in fixture.equal_instances:
        outcome = probe_hash(obj)
        hashes[name] = outcome
        if not outcome.ok:
            failures.append(Failure(
                f"hash({name})", f"hash raised {outcome.error}", safe_repr(obj),
            ))

    # Counted per pair; a pair with an unhashable side cannot hold
    total = failed = 0
    for (name_x, x), (name_y, y) in combinations(fixture.equal_instances, 2):
        total += 1
        hx, hy = hashes[name_x], hashes[name_y]
        if not (hx.ok and hy.ok):
            failed += 1
            continue
        if hx.value != hy.value:
            failed += 1
            failures.append(Failure(
                f"{name_x} vs. {name_y}",
                f"equal instances have different hashes: {hx.value!r} != {hy.value!r}",
                safe_repr(x), safe_repr(y),
            ))

    return _result("hash_coherence", failures, total, "hash comparisons", violated=failed)


def check_hash_stability(
    fixture: Fixture,
    repeats: int = DEFAULT_REPEATS,
) -> CheckResult:
    """Recomputing a hash *repeats* times must always give the same value."""
    _validate_repeats(repeats)
    failures: list[Failure] = []

    for name, obj in fixture.same_type_instances:
        first = probe_hash(obj)
        if not first.ok:
            failures.append(Failure(
                f"hash({name})", f"hash raised {first.error}", safe_repr(obj),
            ))
            continue
        for repeat in range(1, repeats + 1):
            again = probe_hash(obj)
            if again != first:
                failures.append(Failure(
                    f"hash({name})",
                    f"hash changed on repeat {repeat}: "
                    f"{_format(first)} -> {_format(again)}",
                    safe_repr(obj),
                ))
                break

    return _result(
        "hash_stability", failures, len(fixture.same_type_instances),
        f"instances over {repeats} repeats",
    )
