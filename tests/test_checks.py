"""Tests for eqcontract.contract.checks: individual contract checks."""

from __future__ import annotations

from typing import Any

import pytest

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
from eqcontract.contract.fixture import Fixture, build_fixture


# ======================================================================
# Types under test
# ======================================================================

class Point:
    """Value type: equality and hash derived from (x, y)."""

    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        return (self.x, self.y) == (other.x, other.y)

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.x}, {self.y})"


class ConstantHashPoint(Point):
    def __hash__(self) -> int:
        return 0


class IdentityPoint:
    """Default object equality and hash."""

    def __init__(self, x: int, y: int) -> None:
        self.x = x
        self.y = y

    def __repr__(self) -> str:
        return f"IdentityPoint({self.x}, {self.y})"


class UnhashablePoint(Point):
    __hash__ = None  # type: ignore[assignment]


class CarelessPoint(Point):
    """Compares attributes without checking the other operand's type."""

    def __eq__(self, other: Any) -> bool:
        return self.x == other.x and self.y == other.y

    __hash__ = Point.__hash__


class AlwaysEqual(Point):
    def __eq__(self, other: object) -> bool:
        return True

    __hash__ = ConstantHashPoint.__hash__


class DriftingPoint(Point):
    """Stops reporting equality after a few comparisons."""

    def __init__(self, x: int, y: int) -> None:
        super().__init__(x, y)
        self.compared = 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Point):
            return NotImplemented
        self.compared += 1
        return (self.x, self.y) == (other.x, other.y) and self.compared <= 3

    __hash__ = Point.__hash__


class CountingHashPoint(Point):
    """Hash changes on every call."""

    def __init__(self, x: int, y: int) -> None:
        super().__init__(x, y)
        self.hashed = 0

    def __hash__(self) -> int:
        self.hashed += 1
        return self.hashed


def fixture_for(cls: type) -> Fixture:
    return build_fixture(lambda: cls(1, 1), lambda: cls(2, 2), lambda: "1,1")


@pytest.fixture
def point_fixture() -> Fixture:
    return fixture_for(Point)


ALL_CHECKS = [
    check_against_foreign_object,
    check_against_null,
    check_against_unequal_objects,
    check_reflexive,
    check_symmetric_and_transitive,
    check_consistency_across_repeats,
    check_hash_coherence,
    check_hash_stability,
    check_different_class_inequality,
]


# ======================================================================
# Correct type
# ======================================================================

class TestCorrectType:
    @pytest.mark.parametrize("check", ALL_CHECKS, ids=lambda c: c.__name__)
    def test_check_passes(self, point_fixture: Fixture, check: Any) -> None:
        result = check(point_fixture)
        assert result.passed, result.failures
        assert result.failures == ()

    def test_result_names(self, point_fixture: Fixture) -> None:
        names = [check(point_fixture).name for check in ALL_CHECKS]
        assert names == [c.__name__.removeprefix("check_") for c in ALL_CHECKS]

    def test_comparison_counts_in_detail(self, point_fixture: Fixture) -> None:
        assert check_against_foreign_object(point_fixture).detail == "all 4 comparisons held"
        assert check_against_null(point_fixture).detail == "all 4 comparisons held"
        assert check_against_unequal_objects(point_fixture).detail == "all 6 comparisons held"
        assert check_reflexive(point_fixture).detail == "all 4 comparisons held"
        assert check_symmetric_and_transitive(point_fixture).detail == "all 6 comparisons held"
        assert check_different_class_inequality(point_fixture).detail == "all 1 comparisons held"
        assert check_hash_coherence(point_fixture).detail == "all 3 hash comparisons held"

    def test_consistency_detail_counts_every_replayed_comparison(
        self, point_fixture: Fixture,
    ) -> None:
        result = check_consistency_across_repeats(point_fixture)
        assert result.detail == f"all 24 comparisons over {DEFAULT_REPEATS} repeats held"

    def test_frozen_dataclass_passes(self) -> None:
        from dataclasses import dataclass

        @dataclass(frozen=True)
        class Coord:
            x: int
            y: int

        fixture = fixture_for(Coord)
        assert all(check(fixture).passed for check in ALL_CHECKS)


# ======================================================================
# Contract violations
# ======================================================================

class TestIdentityEquality:
    def test_symmetric_and_transitive_fails(self) -> None:
        result = check_symmetric_and_transitive(fixture_for(IdentityPoint))
        assert not result.passed
        assert [f.label for f in result.failures] == [
            "1st vs. 2nd", "2nd vs. 1st",
            "1st vs. 3rd", "3rd vs. 1st",
            "2nd vs. 3rd", "3rd vs. 2nd",
        ]
        assert all(f.message == "expected equal" for f in result.failures)
        assert result.detail == "6 of 6 comparisons violated the contract"

    def test_reflexive_still_passes(self) -> None:
        assert check_reflexive(fixture_for(IdentityPoint)).passed

    def test_hash_coherence_fails(self) -> None:
        result = check_hash_coherence(fixture_for(IdentityPoint))
        assert not result.passed
        assert len(result.failures) == 3
        assert "different hashes" in result.failures[0].message


class TestAgainstForeignObject:
    def test_always_equal_fails(self) -> None:
        result = check_against_foreign_object(fixture_for(AlwaysEqual))
        assert not result.passed
        assert [f.label for f in result.failures] == [
            "new object vs. 1st", "new object vs. 2nd",
            "new object vs. 3rd", "new object vs. not-equal",
        ]
        assert result.failures[0].left == "<opaque object>"
        assert result.failures[0].right == "AlwaysEqual(1, 1)"

    def test_careless_eq_exception_recorded(self) -> None:
        result = check_against_foreign_object(fixture_for(CarelessPoint))
        assert not result.passed
        assert result.failures[0].message.startswith("comparison raised AttributeError")


class TestAgainstNull:
    def test_careless_eq_does_not_raise(self) -> None:
        result = check_against_null(fixture_for(CarelessPoint))
        assert not result.passed
        assert len(result.failures) == 4
        assert result.failures[0].label == "1st vs. None"
        assert result.failures[0].right == "None"
        assert "AttributeError" in result.failures[0].message

    def test_always_equal_fails(self) -> None:
        result = check_against_null(fixture_for(AlwaysEqual))
        assert [f.message for f in result.failures] == ["expected not equal"] * 4


class TestAgainstUnequalObjects:
    def test_always_equal_fails_both_directions(self) -> None:
        result = check_against_unequal_objects(fixture_for(AlwaysEqual))
        assert [f.label for f in result.failures] == [
            "1st vs. not-equal", "2nd vs. not-equal", "3rd vs. not-equal",
            "not-equal vs. 1st", "not-equal vs. 2nd", "not-equal vs. 3rd",
        ]

    def test_operands_recorded(self) -> None:
        result = check_against_unequal_objects(fixture_for(AlwaysEqual))
        first = result.failures[0]
        assert (first.left, first.right) == ("AlwaysEqual(1, 1)", "AlwaysEqual(2, 2)")


class TestReflexive:
    def test_never_equal_fails(self) -> None:
        class NeverEqual(Point):
            def __eq__(self, other: object) -> bool:
                return False

            __hash__ = Point.__hash__

        result = check_reflexive(fixture_for(NeverEqual))
        assert [f.label for f in result.failures] == [
            "1st vs. itself", "2nd vs. itself", "3rd vs. itself", "not-equal vs. itself",
        ]


class TestDifferentClassInequality:
    def test_value_type_passes(self) -> None:
        assert check_different_class_inequality(fixture_for(Point)).passed

    def test_always_equal_fails(self) -> None:
        result = check_different_class_inequality(fixture_for(AlwaysEqual))
        assert not result.passed
        assert result.failures[0].label == "1st vs. different-class"
        assert result.failures[0].right == "'1,1'"

    def test_careless_eq_exception_recorded(self) -> None:
        result = check_different_class_inequality(fixture_for(CarelessPoint))
        assert "AttributeError" in result.failures[0].message


class TestConsistencyAcrossRepeats:
    def test_drifting_equality_detected(self) -> None:
        result = check_consistency_across_repeats(fixture_for(DriftingPoint))
        assert not result.passed
        labels = [f.label for f in result.failures]
        assert "reflexive: 1st vs. itself" in labels
        failure = result.failures[labels.index("reflexive: 1st vs. itself")]
        assert failure.message == "result changed on repeat 2: True -> False"

    def test_consistently_wrong_is_not_variance(self) -> None:
        # Reported by the owning checks, not here
        assert check_consistency_across_repeats(fixture_for(AlwaysEqual)).passed
        assert check_consistency_across_repeats(fixture_for(IdentityPoint)).passed

    def test_consistent_exceptions_are_not_variance(self) -> None:
        assert check_consistency_across_repeats(fixture_for(CarelessPoint)).passed

    def test_single_repeat(self, point_fixture: Fixture) -> None:
        result = check_consistency_across_repeats(point_fixture, repeats=1)
        assert result.passed

    @pytest.mark.parametrize("repeats", [0, -1, True, 2.5])
    def test_invalid_repeats(self, point_fixture: Fixture, repeats: Any) -> None:
        with pytest.raises(ValueError, match="repeats"):
            check_consistency_across_repeats(point_fixture, repeats=repeats)


class TestHashCoherence:
    def test_constant_hash_is_coherent(self) -> None:
        # Coherence only; hash quality is out of scope
        assert check_hash_coherence(fixture_for(ConstantHashPoint)).passed

    def test_unhashable(self) -> None:
        result = check_hash_coherence(fixture_for(UnhashablePoint))
        assert not result.passed
        assert [f.label for f in result.failures] == ["hash(1st)", "hash(2nd)", "hash(3rd)"]
        assert result.failures[0].message.startswith("hash raised TypeError")
        assert result.failures[0].right is None
        assert result.detail == "3 of 3 hash comparisons violated the contract"

    def test_one_unhashable_instance_counts_pairs(self) -> None:
        class SometimesUnhashable(Point):
            broken = False

            def __hash__(self) -> int:
                if self.broken:
                    raise TypeError("cannot hash this one")
                return Point.__hash__(self)

        first = SometimesUnhashable(1, 1)
        first.broken = True
        results = iter([first, SometimesUnhashable(1, 1), SometimesUnhashable(1, 1)])
        fixture = build_fixture(
            lambda: next(results), lambda: SometimesUnhashable(2, 2), lambda: "x",
        )
        result = check_hash_coherence(fixture)
        assert not result.passed
        assert [f.label for f in result.failures] == ["hash(1st)"]
        assert result.detail == "2 of 3 hash comparisons violated the contract"

    def test_mismatched_hashes_report_values(self) -> None:
        class XOnlyEqual(Point):
            def __eq__(self, other: object) -> bool:
                return isinstance(other, Point) and self.x == other.x

            def __hash__(self) -> int:
                return self.y

        results = iter([XOnlyEqual(1, 1), XOnlyEqual(1, 1), XOnlyEqual(1, 2)])
        fixture = build_fixture(lambda: next(results), lambda: XOnlyEqual(2, 2), lambda: "x")
        result = check_hash_coherence(fixture)
        assert [f.label for f in result.failures] == ["1st vs. 3rd", "2nd vs. 3rd"]
        assert result.failures[0].message == "equal instances have different hashes: 1 != 2"


class TestHashStability:
    def test_changing_hash_detected(self) -> None:
        result = check_hash_stability(fixture_for(CountingHashPoint))
        assert not result.passed
        assert len(result.failures) == 4
        assert result.failures[0].label == "hash(1st)"
        assert result.failures[0].message == "hash changed on repeat 1: 1 -> 2"

    def test_counting_hash_still_coherent(self) -> None:
        # Each instance's first hash is 1
        assert check_hash_coherence(fixture_for(CountingHashPoint)).passed

    def test_unhashable(self) -> None:
        result = check_hash_stability(fixture_for(UnhashablePoint))
        assert len(result.failures) == 4
        assert result.failures[3].label == "hash(not-equal)"

    def test_hash_recomputed_repeats_times(self) -> None:
        fixture = fixture_for(CountingHashPoint)
        check_hash_stability(fixture, repeats=10)
        # One baseline call plus the first repeat, which already differs
        assert fixture.equal_a.hashed == 2

    def test_invalid_repeats(self, point_fixture: Fixture) -> None:
        with pytest.raises(ValueError):
            check_hash_stability(point_fixture, repeats=0)


class TestResultTypes:
    def test_failure_equality_and_hash(self) -> None:
        a = Failure("1st vs. 2nd", "expected equal", "P(1)", "P(2)")
        b = Failure("1st vs. 2nd", "expected equal", "P(1)", "P(2)")
        assert a == b
        assert hash(a) == hash(b)
        assert a != Failure("1st vs. 2nd", "expected equal", "P(1)")

    def test_failure_describe(self) -> None:
        assert Failure("1st vs. 2nd", "expected equal", "P(1)", "P(2)").describe() == (
            "1st vs. 2nd: expected equal (<P(1)> vs. <P(2)>)"
        )
        assert Failure("hash(1st)", "hash raised TypeError", "P(1)").describe() == (
            "hash(1st): hash raised TypeError (<P(1)>)"
        )

    def test_check_result_repr(self) -> None:
        result = CheckResult("reflexive", False, "1 of 4", (Failure("a", "b", "c"),))
        assert repr(result) == "CheckResult(reflexive: FAIL, 1 failures)"
