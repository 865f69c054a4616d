"""Tests for the concept grammar and evaluator."""

import pytest

from numbergame.concepts import (
    MAX_DEPTH,
    EndsIn,
    Evaluator,
    Intersect,
    Interval,
    MultipleOf,
    PowerOf,
    Primitive,
    Union,
    iter_nodes,
)
from numbergame.domain import Domain, gcd_of, is_power_of, is_prime
from numbergame.errors import InvalidConcept


class TestDomain:
    """Tests for the number domain."""

    def test_membership(self):
        """Only integers 1..size belong to the domain."""
        domain = Domain(100)
        assert 1 in domain
        assert 100 in domain
        assert 0 not in domain
        assert 101 not in domain
        assert 2.5 not in domain

    def test_bools_are_not_numbers(self):
        """True and False are not domain members."""
        assert True not in Domain(100)
        assert False not in Domain(100)

    def test_size_bounds(self):
        """Domains larger than 100 are rejected."""
        with pytest.raises(ValueError):
            Domain(101)
        with pytest.raises(ValueError):
            Domain(0)

    def test_interval_count(self):
        """N(N+1)/2 intervals."""
        assert Domain(100).interval_count() == 5050

    def test_helpers(self):
        """Number-theory helpers."""
        assert [n for n in range(1, 20) if is_prime(n)] == [2, 3, 5, 7, 11, 13, 17, 19]
        assert is_power_of(1, 3)
        assert is_power_of(81, 3)
        assert not is_power_of(12, 2)
        assert gcd_of([14, 28, 42, 56]) == 14
        assert gcd_of([]) == 0


class TestConstruction:
    """Tests for concept invariants at construction."""

    def test_interval_lo_above_hi(self):
        """lo > hi is rejected."""
        with pytest.raises(InvalidConcept):
            Interval(5, 3)

    def test_parameter_ranges(self):
        """Parameters outside the declared ranges are rejected."""
        with pytest.raises(InvalidConcept):
            PowerOf(11)
        with pytest.raises(InvalidConcept):
            PowerOf(1)
        with pytest.raises(InvalidConcept):
            MultipleOf(1)
        with pytest.raises(InvalidConcept):
            MultipleOf(21)
        with pytest.raises(InvalidConcept):
            EndsIn(10)
        with pytest.raises(InvalidConcept):
            Interval(0, 10)

    def test_unknown_primitive(self):
        """Unknown primitive names are rejected."""
        with pytest.raises(InvalidConcept):
            Primitive("fibonacci")

    def test_invalid_concept_is_value_error(self):
        """InvalidConcept can be caught as ValueError."""
        with pytest.raises(ValueError):
            MultipleOf(0)

    def test_depth(self):
        """Terminals have depth 0, combinators one more than their deepest child."""
        a, b = Primitive("odd"), PowerOf(2)
        assert a.depth == 0
        assert Union(a, b).depth == 1
        assert Intersect(Union(a, b), MultipleOf(3)).depth == 2

    def test_depth_bound(self):
        """Nesting beyond MAX_DEPTH is rejected."""
        concept = Primitive("odd")
        for _ in range(MAX_DEPTH):
            concept = Union(concept, PowerOf(2))
        assert concept.depth == MAX_DEPTH
        with pytest.raises(InvalidConcept):
            Union(concept, PowerOf(3))

    def test_non_concept_child(self):
        """Combinator children must be concepts."""
        with pytest.raises(InvalidConcept):
            Union(Primitive("odd"), 7)

    def test_str(self):
        """Readable string forms."""
        assert str(Primitive("prime")) == "prime"
        assert str(PowerOf(2)) == "power-of(2)"
        assert str(Interval(16, 19)) == "interval(16,19)"
        assert str(Union(Primitive("odd"), MultipleOf(4))) == "union(odd, multiple-of(4))"

    def test_hashable_and_equal(self):
        """Structurally equal concepts are equal and hash alike."""
        a = Intersect(Primitive("odd"), Interval(1, 10))
        b = Intersect(Primitive("odd"), Interval(1, 10))
        assert a == b
        assert len({a, b}) == 1

    def test_iter_nodes(self):
        """All nodes, root first."""
        concept = Union(Primitive("odd"), Intersect(PowerOf(2), Interval(1, 10)))
        tags = [node.tag for node in iter_nodes(concept)]
        assert tags == ["union", "odd", "intersect", "power-of", "interval"]


class TestEvaluator:
    """Tests for concept extensions."""

    def test_terminals(self):
        """Terminal extensions over 1..100."""
        ev = Evaluator()
        assert ev.extension(PowerOf(2)) == {1, 2, 4, 8, 16, 32, 64}
        assert ev.size(Primitive("prime")) == 25
        assert ev.size(Primitive("even")) == 50
        assert ev.size(Primitive("square")) == 10
        assert ev.extension(MultipleOf(20)) == {20, 40, 60, 80, 100}
        assert ev.extension(Interval(16, 19)) == {16, 17, 18, 19}
        assert ev.size(EndsIn(3)) == 10

    def test_combinators(self):
        """Union and intersect follow set semantics."""
        ev = Evaluator()
        assert ev.extension(Intersect(Primitive("prime"), Interval(10, 20))) == {11, 13, 17, 19}
        assert ev.extension(Union(PowerOf(3), Interval(5, 6))) == {1, 3, 5, 6, 9, 27, 81}

    def test_empty_extension(self):
        """Evaluation is total, even for empty results."""
        ev = Evaluator()
        assert ev.extension(Intersect(PowerOf(3), Primitive("even"))) == frozenset()

    def test_small_domain(self):
        """Extensions are clipped to the domain."""
        ev = Evaluator(Domain(20))
        assert ev.extension(PowerOf(2)) == {1, 2, 4, 8, 16}
        assert ev.extension(Interval(15, 40)) == {15, 16, 17, 18, 19, 20}

    def test_is_consistent(self):
        """Consistency means every example is a member."""
        ev = Evaluator()
        assert ev.is_consistent(PowerOf(2), [16, 8, 2, 64])
        assert not ev.is_consistent(PowerOf(2), [16, 8, 2, 63])
        assert ev.is_consistent(PowerOf(2), [])
