"""Tests for generalization predictions."""

import numpy as np
import pytest

from numbergame.errors import InvalidExamples, NoConsistentHypothesis
from numbergame.generalization import (
    compare_to_targets,
    generalization_curve,
    generalization_stats,
    generalization_vector,
    most_likely_members,
    p_in_concept,
    p_in_concept_from_posterior,
    predictive_from_vector,
    sequential_generalization,
)
from numbergame.inference import posterior_full, rank
from numbergame.priors import Prior, get_prior
from numbergame.synthesis import synthesize


class TestPInConcept:
    """Tests for single-probe predictions."""

    @pytest.mark.parametrize("examples", [[16, 8, 2, 64], [60, 80, 10, 30], [16, 23, 19, 20], [1]])
    def test_bounds(self, ctx, examples):
        """Every probe gets a probability in [0, 1]."""
        curve = generalization_curve(ctx, examples)
        assert all(0.0 <= p <= 1.0 for p in curve.values())

    def test_examples_are_certain(self, ctx):
        """Observed examples have probability one."""
        for probe in (16, 8, 2, 64):
            assert p_in_concept(ctx, [16, 8, 2, 64], probe) == 1.0

    def test_powers_of_two(self, ctx):
        """After [16, 8, 2, 64], 32 is in and 3 is out."""
        assert p_in_concept(ctx, [16, 8, 2, 64], 32) > 0.99
        assert p_in_concept(ctx, [16, 8, 2, 64], 3) < 0.05

    def test_invalid_probe(self, ctx):
        """Probes outside the domain raise InvalidExamples."""
        with pytest.raises(InvalidExamples):
            p_in_concept(ctx, [16], 0)

    def test_no_consistent(self, ctx):
        """Degenerate posteriors are reported, not divided by zero."""
        prior = Prior(weights={"interval": 0.0})
        result = p_in_concept(ctx, [16, 17, 18, 19], 20, prior)
        assert isinstance(result, NoConsistentHypothesis)

    def test_from_synthesized_posterior(self, ctx):
        """Predictions also work over ranked synthesized programs."""
        examples = [7, 11, 13, 17]
        post = rank(ctx, synthesize(ctx, examples, max_depth=0), examples, get_prior("rule-biased"))
        assert p_in_concept_from_posterior(post, 19) > 0.9
        assert p_in_concept_from_posterior(post, 7) == 1.0
        assert p_in_concept_from_posterior(post, 20) < 0.01


class TestCurves:
    """Tests for whole-domain generalization."""

    def test_vector_matches_curve(self, ctx):
        """The vector is the curve in domain order."""
        curve = generalization_curve(ctx, [60, 80, 10, 30])
        vec = generalization_vector(ctx, [60, 80, 10, 30])
        assert vec.shape == (100,)
        assert vec[49] == pytest.approx(curve[50])

    def test_batch_matches_single(self, ctx):
        """Matrix-based predictions agree with per-probe sums off the examples."""
        examples = [60, 80, 10, 30]
        vec = predictive_from_vector(ctx, posterior_full(ctx, examples), ctx.domain)
        curve = generalization_curve(ctx, examples)
        for y in (1, 20, 50, 55, 90, 99):
            assert vec[y - 1] == pytest.approx(curve[y])

    def test_custom_probes(self, ctx):
        """Curves can be restricted to chosen probes."""
        curve = generalization_curve(ctx, [16], probes=[1, 2, 3])
        assert set(curve) == {1, 2, 3}

    def test_most_likely_members(self, ctx):
        """Sorted by probability, examples first."""
        members = most_likely_members(ctx, [16, 8, 2, 64], top_k=7)
        assert {n for n, _ in members} == {1, 2, 4, 8, 16, 32, 64}
        probs = [p for _, p in members]
        assert probs == sorted(probs, reverse=True)

    def test_stats(self, ctx):
        """Effective size reflects how broadly the concept generalizes."""
        narrow = generalization_stats(ctx, [16, 8, 2, 64])
        broad = generalization_stats(ctx, [16])
        assert narrow["max_prob"] == 1.0
        assert narrow["effective_size"] < broad["effective_size"]
        assert narrow["above_50"] == 7

    def test_stats_degenerate(self, ctx):
        """Stats report the reason when nothing is consistent."""
        stats = generalization_stats(ctx, [16, 17, 18, 19], Prior(weights={"interval": 0.0}))
        assert "error" in stats

    def test_compare_to_targets(self, ctx):
        """Specific test numbers are reported in order."""
        rows = compare_to_targets(ctx, [16, 8, 2, 64], [32, 3])
        assert [r["number"] for r in rows] == [32, 3]
        assert rows[0]["probability"] > rows[1]["probability"]

    def test_sequential(self, ctx):
        """One curve per prefix, sharpening as powers of 2 arrive."""
        curves = sequential_generalization(ctx, [16, 8, 2, 64])
        assert len(curves) == 4
        assert all(isinstance(c, np.ndarray) for c in curves)
        # 6 is even but not a power of 2
        assert curves[-1][5] < curves[0][5]
