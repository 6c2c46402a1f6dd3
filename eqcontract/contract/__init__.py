"""Equality/hash contract verification.

Main entry point: ``verify()`` builds a fixture from three factories and
runs every check, returning a ``VerificationResult`` with pass/fail and the
per-check results. ``assert_contract()`` wraps it for use inside any test
runner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from eqcontract.contract.checks import (
    DEFAULT_REPEATS,
    CheckResult,
    Failure,
    check_against_foreign_object,
    check_against_null,
    check_against_unequal_objects,
    check_consistency_across_repeats,
    check_different_class_inequality,
    check_hash_coherence,
    check_hash_stability,
    check_reflexive,
    check_symmetric_and_transitive,
)
from eqcontract.contract.fixture import Factory, Fixture, FixtureError, build_fixture

log = logging.getLogger(__name__)

# Checks that accept a ``repeats`` argument
_REPEATED = {"consistency_across_repeats", "hash_stability"}

# Run order
CHECKS: list[tuple[str, Callable[..., CheckResult]]] = [
    ("against_foreign_object", check_against_foreign_object),
    ("against_null", check_against_null),
    ("against_unequal_objects", check_against_unequal_objects),
    ("reflexive", check_reflexive),
    ("symmetric_and_transitive", check_symmetric_and_transitive),
    ("consistency_across_repeats", check_consistency_across_repeats),
    ("hash_coherence", check_hash_coherence),
    ("hash_stability", check_hash_stability),
    ("different_class_inequality", check_different_class_inequality),
]

CHECK_NAMES: tuple[str, ...] = tuple(name for name, _ in CHECKS)


class ContractViolation(AssertionError):
    """Raised by ``assert_contract`` when any check fails."""

    def __init__(self, result: VerificationResult) -> None:
        self.result = result
        super().__init__(format_failures(result))


@dataclass
class VerificationResult:
    """Result of verifying one type under test."""

    passed: bool
    results: list[CheckResult] = field(default_factory=list)

    @property
    def failed(self) -> list[CheckResult]:
        return [r for r in self.results if not r.passed]

    def __repr__(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        return f"VerificationResult({status}, {len(self.failed)} failed checks)"


def run_all_checks(
    fixture: Fixture,
    repeats: int = DEFAULT_REPEATS,
    only: Iterable[str] | None = None,
) -> list[CheckResult]:
    """Run the registered checks against *fixture*, in registry order.

    Parameters
    ----------
    fixture:
        Fixture from ``build_fixture``. Read only.
    repeats:
        Repeat count for the consistency and hash stability checks.
    only:
        Optional subset of check names. Unknown names raise ``ValueError``.

    Returns
    -------
    list[CheckResult]
        One result per check run. A failing check never stops later ones.
    """
    selected = set(CHECK_NAMES)
    if only is not None:
        selected = set(only)
        unknown = selected - set(CHECK_NAMES)
        if unknown:
            raise ValueError(
                f"Unknown check(s): {sorted(unknown)}. Known: {', '.join(CHECK_NAMES)}"
            )

    results: list[CheckResult] = []
    for name, check in CHECKS:
        if name not in selected:
            continue
        if name in _REPEATED:
            result = check(fixture, repeats=repeats)
        else:
            result = check(fixture)
        log.debug("%s: %s (%s)", name, "PASS" if result.passed else "FAIL", result.detail)
        results.append(result)
    return results


def verify(
    make_equal: Factory,
    make_unequal: Factory,
    make_foreign: Factory,
    repeats: int = DEFAULT_REPEATS,
    only: Iterable[str] | None = None,
) -> VerificationResult:
    """Build a fresh fixture and run the checks against it.

    ``FixtureError`` propagates: a malformed setup is never reported as a
    contract violation.
    """
    fixture = build_fixture(make_equal, make_unequal, make_foreign)
    results = run_all_checks(fixture, repeats=repeats, only=only)
    passed = all(r.passed for r in results)
    log.info(
        "Verified %s: %d/%d checks passed",
        fixture.type_under_test.__qualname__,
        sum(r.passed for r in results), len(results),
    )
    return VerificationResult(passed=passed, results=results)


def assert_contract(
    make_equal: Factory,
    make_unequal: Factory,
    make_foreign: Factory,
    repeats: int = DEFAULT_REPEATS,
    only: Iterable[str] | None = None,
) -> VerificationResult:
    """Like ``verify`` but raise ``ContractViolation`` if any check fails."""
    result = verify(make_equal, make_unequal, make_foreign, repeats=repeats, only=only)
    if not result.passed:
        raise ContractViolation(result)
    return result


def format_failures(result: VerificationResult) -> str:
    """Multi-line summary of every failing check and its failures."""
    lines = [f"{len(result.failed)} of {len(result.results)} contract checks failed"]
    for check in result.failed:
        lines.append(f"  {check.name}: {check.detail}")
        for failure in check.failures:
            lines.append(f"    {failure.describe()}")
    return "\n".join(lines)


__all__ = [
    "CHECKS",
    "CHECK_NAMES",
    "DEFAULT_REPEATS",
    "CheckResult",
    "ContractViolation",
    "Failure",
    "Fixture",
    "FixtureError",
    "VerificationResult",
    "assert_contract",
    "build_fixture",
    "check_against_foreign_object",
    "check_against_null",
    "check_against_unequal_objects",
    "check_consistency_across_repeats",
    "check_different_class_inequality",
    "check_hash_coherence",
    "check_hash_stability",
    "check_reflexive",
    "check_symmetric_and_transitive",
    "format_failures",
    "run_all_checks",
    "verify",
]
