"""Tests for program synthesis."""

import pytest

from numbergame.concepts import (
    EndsIn,
    Intersect,
    Interval,
    MultipleOf,
    PowerOf,
    Primitive,
    Union,
    is_terminal,
)
from numbergame.errors import InvalidExamples
from numbergame.synthesis import (
    Grammar,
    candidate_bases,
    candidate_intervals,
    candidate_multiples,
    compose,
    count_concepts,
    data_to_constraints,
    enumerate_concepts,
    synthesize,
    synthesize_hypotheses,
    terminal_pool,
)

UNBOUNDED = 10**6


def rules(concepts):
    return {c for c in concepts if not isinstance(c, Interval)}


class TestParameterDiscovery:
    """Tests for deriving terminal parameters from examples."""

    def test_multiples(self):
        """Every divisor of the gcd in range is a candidate."""
        assert candidate_multiples([14, 28, 42, 56], Grammar()) == (2, 7, 14)

    def test_bases(self):
        """Bases come from integer roots of the examples."""
        assert candidate_bases([16, 8, 2, 64], Grammar()) == (2,)
        assert candidate_bases([16, 64], Grammar()) == (2, 4)
        assert candidate_bases([81, 9], Grammar()) == (3, 9)
        assert candidate_bases([6], Grammar()) == (6,)
        assert candidate_bases([12], Grammar()) == ()

    def test_bases_respect_grammar(self):
        """Bases outside the grammar are never proposed."""
        assert candidate_bases([16], Grammar(power_bases=(2, 3))) == (2,)

    def test_constraints(self):
        """Constraints summarize the examples."""
        c = data_to_constraints([14, 28, 42, 56])
        assert c.min == 14
        assert c.max == 56
        assert c.span == 42
        assert c.all_even
        assert not c.all_odd
        assert c.gcd == 14
        assert c.possible_multiples == (2, 7, 14)

    def test_intervals(self):
        """Candidate intervals contain every example, smallest first."""
        intervals = candidate_intervals([16, 19, 17], 100, 5)
        assert intervals[0] == Interval(16, 19)
        assert len(intervals) == 5
        assert all(iv.lo <= 16 and iv.hi >= 19 for iv in intervals)
        sizes = [iv.hi - iv.lo for iv in intervals]
        assert sizes == sorted(sizes)


class TestCompose:
    """Tests for canonical composition."""

    def test_commutative_canonical(self, ctx):
        """union(a, b) and union(b, a) compose to the same concept."""
        a, b = PowerOf(3), Primitive("even")
        assert compose(Union, a, b, ctx.evaluator) == compose(Union, b, a, ctx.evaluator)

    def test_identical_children(self, ctx):
        """X op X is dropped."""
        assert compose(Union, PowerOf(2), PowerOf(2), ctx.evaluator) is None

    def test_no_op(self, ctx):
        """A composition equal to a child is dropped."""
        # powers of 4 are a subset of powers of 2
        assert compose(Union, PowerOf(2), PowerOf(4), ctx.evaluator) is None

    def test_empty(self, ctx):
        """A composition with no members is dropped."""
        assert compose(Intersect, PowerOf(3), Primitive("even"), ctx.evaluator) is None


class TestSynthesize:
    """Tests for the synthesize entry point."""

    def test_empty_examples_rejected(self, ctx):
        """synthesize([]) raises InvalidExamples."""
        with pytest.raises(InvalidExamples):
            synthesize(ctx, [])

    def test_out_of_domain_rejected(self, ctx):
        """Examples outside the domain raise InvalidExamples."""
        with pytest.raises(InvalidExamples):
            synthesize(ctx, [5, 101])

    def test_unknown_strategy(self, ctx):
        """Unknown strategies raise ValueError."""
        with pytest.raises(ValueError):
            synthesize(ctx, [4], strategy="magic")

    def test_depth_out_of_range(self, ctx):
        """max_depth beyond the global bound raises ValueError."""
        with pytest.raises(ValueError):
            synthesize(ctx, [4], max_depth=4)

    @pytest.mark.parametrize("strategy", ["exact", "guided"])
    def test_multiple_parameterizations(self, ctx, strategy):
        """[14, 28, 42, 56] yields multiple-of 2, 7, 14 and even."""
        found = synthesize(ctx, [14, 28, 42, 56], strategy=strategy, max_depth=0)
        assert {MultipleOf(2), MultipleOf(7), MultipleOf(14), Primitive("even")} <= set(found)

    def test_guided_rules(self, ctx):
        """Guided search proposes exactly the consistent rule terminals."""
        found = synthesize(ctx, [14, 28, 42, 56], max_depth=0)
        assert rules(found) == {MultipleOf(2), MultipleOf(7), MultipleOf(14), Primitive("even")}

    @pytest.mark.parametrize("strategy", ["exact", "guided"])
    def test_all_consistent_and_nonempty(self, ctx, strategy):
        """Every result contains the examples and is non-empty."""
        examples = [16, 8, 2, 64]
        for concept in synthesize(ctx, examples, max_results=UNBOUNDED, strategy=strategy):
            members = ctx.evaluator.extension(concept)
            assert members
            assert members.issuperset(examples)

    @pytest.mark.parametrize("examples", [[16, 8, 2, 64], [7, 11, 13, 17], [60, 80, 10, 30], [3]])
    @pytest.mark.parametrize("depth", [0, 1])
    def test_guided_subset_of_exact(self, ctx, examples, depth):
        """Guided results are a subset of exact results."""
        exact = synthesize(ctx, examples, max_results=UNBOUNDED, max_depth=depth, strategy="exact")
        guided = synthesize(ctx, examples, max_results=UNBOUNDED, max_depth=depth, strategy="guided")
        assert guided
        assert set(guided) <= set(exact)

    def test_guided_finds_unions(self, ctx):
        """Backtracking on the residual finds unions of two rules."""
        found = synthesize(ctx, [2, 4, 8, 27], max_results=UNBOUNDED, max_depth=1)
        assert Union(PowerOf(2), PowerOf(3)) in found

    def test_no_duplicates(self, ctx):
        """No concept is returned twice."""
        found = synthesize(ctx, [7, 11, 13, 17], max_results=UNBOUNDED, max_depth=1)
        assert len(found) == len(set(found))

    def test_depth_zero_terminals_only(self, ctx):
        """max_depth=0 returns terminals only."""
        found = synthesize(ctx, [16, 8, 2, 64], max_depth=0, strategy="exact")
        assert all(is_terminal(c) for c in found)

    def test_max_results(self, ctx):
        """The result list is capped."""
        assert len(synthesize(ctx, [50], max_results=5, strategy="exact")) == 5
        assert synthesize(ctx, [50], max_results=0) == []

    def test_deterministic(self, ctx):
        """Same input, same output."""
        a = synthesize(ctx, [60, 80, 10, 30], max_results=UNBOUNDED)
        b = synthesize(ctx, [60, 80, 10, 30], max_results=UNBOUNDED)
        assert a == b

    def test_interval_cap(self, ctx):
        """max_intervals bounds the interval candidates."""
        found = synthesize(ctx, [50], max_depth=0, grammar=Grammar(max_intervals=3))
        assert sum(isinstance(c, Interval) for c in found) == 3

    def test_ends_in_optional(self, ctx):
        """EndsIn is only searched when the grammar enables it."""
        examples = [13, 23, 43]
        assert EndsIn(3) not in synthesize(ctx, examples, max_depth=0)
        found = synthesize(ctx, examples, max_depth=0, grammar=Grammar(include_ends_in=True))
        assert EndsIn(3) in found

    def test_indexed_matches_base_set(self, ctx):
        """The indexed strategy returns the consistent base hypotheses."""
        found = synthesize(ctx, [16, 17, 18, 19], max_results=UNBOUNDED, strategy="indexed")
        assert Interval(16, 19) in found
        assert all(isinstance(c, Interval) for c in found)

    def test_synthesize_hypotheses(self, ctx):
        """Hypotheses carry their extensions."""
        hyps = synthesize_hypotheses(ctx, [16, 8, 2, 64], max_depth=0)
        by_concept = {h.concept: h for h in hyps}
        assert by_concept[PowerOf(2)].size == 7

    def test_count_concepts_grows_with_depth(self, ctx):
        """Deeper search visits more concepts."""
        assert count_concepts(ctx, [4], 1) > count_concepts(ctx, [4], 0)

    def test_small_domain(self, small_ctx):
        """Synthesis respects a smaller domain."""
        found = synthesize(small_ctx, [4, 16], max_depth=0)
        assert PowerOf(2) in found
        assert PowerOf(4) in found
        assert all(small_ctx.evaluator.extension(c) <= set(range(1, 21)) for c in found)


class TestEnumeration:
    """Tests for level-by-level exact enumeration."""

    def test_each_pair_visited_once(self, small_ctx):
        """Every pair with a child from the newest level is composed exactly once."""
        grammar = Grammar(power_bases=(2,), multiples=(3,), max_intervals=3)
        evaluator = small_ctx.evaluator
        pool = terminal_pool([4], grammar, small_ctx.domain.size)

        expected = [c for c in pool if evaluator.extension(c)]
        below, newest = list(pool), set(pool)
        for depth in (1, 2):
            level = []
            for i, a in enumerate(below):
                for b in below[i + 1:]:
                    if a not in newest and b not in newest:
                        continue
                    for op in (Union, Intersect):
                        concept = compose(op, a, b, evaluator)
                        if concept is not None:
                            level.append(concept)
            expected.extend(level)
            below.extend(level)
            newest = set(level)

        assert list(enumerate_concepts([4], evaluator, 2, grammar)) == expected

    def test_depth_bound(self, small_ctx):
        """Nothing deeper than max_depth is produced."""
        grammar = Grammar(power_bases=(2,), multiples=(3,), max_intervals=2)
        found = list(enumerate_concepts([4], small_ctx.evaluator, 2, grammar))
        assert max(c.depth for c in found) == 2
