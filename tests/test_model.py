"""Tests for the generative model and sampling-based inference."""

import random

import pytest

from numbergame.concepts import MAX_DEPTH, EndsIn, Intersect, Interval, PowerOf, Primitive
from numbergame.errors import InvalidExamples, NoConsistentHypothesis
from numbergame.model import (
    infer_by_sampling,
    sample_concept,
    sample_from_extension,
    sample_hypothesis,
    simulate,
    simulate_and_infer,
)
from numbergame.priors import get_prior
from numbergame.synthesis import Grammar


class TestForwardModel:
    """Tests for forward simulation."""

    def test_sample_from_extension(self, ctx):
        """Samples are members, with replacement."""
        rng = random.Random(0)
        samples = sample_from_extension(ctx, PowerOf(2), 50, rng)
        assert len(samples) == 50
        assert set(samples) <= {1, 2, 4, 8, 16, 32, 64}

    def test_sample_from_empty(self, ctx):
        """An empty concept yields no samples."""
        assert sample_from_extension(ctx, Intersect(PowerOf(3), Primitive("even")), 5) == []

    def test_sample_hypothesis(self, ctx):
        """Sampled indexes are valid."""
        rng = random.Random(1)
        for _ in range(20):
            assert 0 <= sample_hypothesis(ctx, get_prior("type-weighted"), rng) < ctx.hypothesis_count

    def test_simulate(self, ctx):
        """Simulated examples come from the sampled hypothesis."""
        result = simulate(ctx, 6, rng=random.Random(2))
        assert len(result["examples"]) == 6
        assert set(result["examples"]) <= result["hypothesis"].members
        assert ctx.hypotheses[result["hypothesis_index"]] == result["hypothesis"]

    def test_reproducible(self, ctx):
        """Same seed, same simulation."""
        a = simulate(ctx, 4, rng=random.Random(7))
        b = simulate(ctx, 4, rng=random.Random(7))
        assert a["examples"] == b["examples"]


class TestSampleConcept:
    """Tests for sampling programs from the grammar."""

    def test_depth_bound(self):
        """Sampled programs never exceed the depth bound."""
        rng = random.Random(3)
        for _ in range(500):
            assert sample_concept(rng).depth <= MAX_DEPTH

    def test_root_is_combinator(self):
        """The root never stops at depth 0."""
        rng = random.Random(4)
        assert all(sample_concept(rng).depth >= 1 for _ in range(50))

    def test_forced_terminal(self):
        """At the depth bound a terminal is returned."""
        rng = random.Random(5)
        assert all(sample_concept(rng, depth=MAX_DEPTH).depth == 0 for _ in range(50))

    def test_respects_grammar(self):
        """Terminal parameters come from the grammar."""
        rng = random.Random(6)
        grammar = Grammar(power_bases=(3,), multiples=(5,))
        for _ in range(100):
            concept = sample_concept(rng, depth=MAX_DEPTH, grammar=grammar, domain_size=20)
            if isinstance(concept, PowerOf):
                assert concept.base == 3
            if isinstance(concept, Interval):
                assert concept.hi <= 20

    def test_ends_in_follows_grammar(self):
        """ends-in terminals appear only when the grammar includes them."""
        rng = random.Random(7)
        with_digits = Grammar(include_ends_in=True)
        drawn = [sample_concept(rng, depth=MAX_DEPTH, grammar=with_digits) for _ in range(200)]
        assert any(isinstance(c, EndsIn) for c in drawn)
        drawn = [sample_concept(rng, depth=MAX_DEPTH) for _ in range(200)]
        assert not any(isinstance(c, EndsIn) for c in drawn)


class TestInferBySampling:
    """Tests for rejection-style inference."""

    def test_accepts_consistent_only(self, ctx):
        """Accepted programs all contain the examples."""
        result = infer_by_sampling(ctx, [4], 2000, random.Random(0))
        assert 0 < result["n_consistent"] <= 2000
        assert result["acceptance_rate"] == pytest.approx(result["n_consistent"] / 2000)

        post = result["posterior"]
        assert post.probabilities().sum() == pytest.approx(1.0)
        for entry in post:
            assert 4 in entry.members

    def test_nothing_accepted(self, ctx):
        """Zero samples gives NoConsistentHypothesis."""
        result = infer_by_sampling(ctx, [4], 0, random.Random(0))
        assert result["acceptance_rate"] == 0.0
        assert isinstance(result["posterior"], NoConsistentHypothesis)

    def test_invalid_examples(self, ctx):
        """Examples outside the domain raise InvalidExamples."""
        with pytest.raises(InvalidExamples):
            infer_by_sampling(ctx, [500], 10)


class TestSimulateAndInfer:
    """Tests for generate-then-recover."""

    def test_record(self, ctx):
        """The record names both the truth and the MAP hypothesis."""
        record = simulate_and_infer(ctx, 5, get_prior("type-weighted"), random.Random(11))
        assert record["n_examples"] == 5
        assert record["map_hypothesis"] is not None
        assert 0.0 < record["map_prob"] <= 1.0
        assert isinstance(record["recovered"], bool)
        if record["recovered"]:
            assert record["recovered_extension"]

    def test_many_examples_recover_extension(self, ctx):
        """With many examples from a rule, the rule's extension is usually recovered."""
        rng = random.Random(12)
        prior = get_prior("rule-biased")
        hits = [simulate_and_infer(ctx, 40, prior, rng)["recovered_extension"] for _ in range(20)]
        assert sum(hits) >= 10
