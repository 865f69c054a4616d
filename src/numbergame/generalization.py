"""Generalization predictions.

Computes p(y in concept | examples), the probability that a probe number y
belongs to the same concept as the observed examples:

    p(y in C | X) = sum_h 1[y in h] * p(h | X)

The posterior is computed once per example set and reused for every probe.
"""

from typing import Any, Iterable, Sequence

import numpy as np

from numbergame.context import Context
from numbergame.errors import NoConsistentHypothesis
from numbergame.inference import Posterior, posterior_efficient, posterior_full
from numbergame.priors import Prior


def p_in_concept_from_posterior(posterior: Posterior, probe: int) -> float:
    """p(probe in concept) given a pre-computed posterior."""
    if probe in posterior.examples:
        # Every candidate with positive mass contains the examples
        return 1.0
    total = sum(e.probability for e in posterior.entries if probe in e.members)
    return float(min(1.0, max(0.0, total)))


def p_in_concept(
    ctx: Context,
    examples: Iterable[int],
    probe: int,
    prior: Prior | None = None,
) -> float | NoConsistentHypothesis:
    """Posterior predictive probability that probe is in the concept.

    Returns:
        A probability in [0, 1], or NoConsistentHypothesis when no base
        hypothesis explains the examples.
    """
    post = posterior_efficient(ctx, examples, prior)
    if isinstance(post, NoConsistentHypothesis):
        return post
    ctx.check_examples([probe])
    return p_in_concept_from_posterior(post, probe)


def predictive_from_vector(ctx: Context, posterior: np.ndarray, probes: Iterable[int]) -> np.ndarray:
    """Batch predictive probabilities from a full posterior vector.

    Builds the probe-by-hypothesis membership matrix once and takes a
    single matrix-vector product.
    """
    probes = list(probes)
    membership = np.zeros((len(probes), len(ctx.hypotheses)))
    for row, y in enumerate(probes):
        membership[row, list(ctx.index.containing(y))] = 1.0
    return np.clip(membership @ posterior, 0.0, 1.0)


def generalization_curve(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
    probes: Iterable[int] | None = None,
) -> dict[int, float] | NoConsistentHypothesis:
    """Generalization probability for every probe (default: whole domain)."""
    post = posterior_efficient(ctx, examples, prior)
    if isinstance(post, NoConsistentHypothesis):
        return post
    probes = list(ctx.domain) if probes is None else list(probes)
    return {y: p_in_concept_from_posterior(post, y) for y in probes}


def generalization_vector(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> np.ndarray | NoConsistentHypothesis:
    """Generalization probabilities as a vector (index 0 = number 1)."""
    curve = generalization_curve(ctx, examples, prior)
    if isinstance(curve, NoConsistentHypothesis):
        return curve
    return np.array([curve[y] for y in ctx.domain], dtype=float)


def most_likely_members(
    ctx: Context,
    examples: Iterable[int],
    top_k: int = 20,
    prior: Prior | None = None,
) -> list[tuple[int, float]] | NoConsistentHypothesis:
    """Numbers most likely to be in the concept, highest first."""
    curve = generalization_curve(ctx, examples, prior)
    if isinstance(curve, NoConsistentHypothesis):
        return curve
    return sorted(curve.items(), key=lambda item: (-item[1], item[0]))[:top_k]


def generalization_stats(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> dict[str, Any]:
    """Statistics about the generalization distribution."""
    examples = ctx.check_examples(examples)
    curve = generalization_curve(ctx, examples, prior)
    if isinstance(curve, NoConsistentHypothesis):
        return {"examples": list(examples), "error": curve.reason}

    probs = np.array(list(curve.values()))
    return {
        "examples": list(examples),
        "max_prob": float(probs.max()),
        "min_prob": float(probs.min()),
        "mean_prob": float(probs.mean()),
        "above_50": int((probs > 0.5).sum()),
        "above_10": int((probs > 0.1).sum()),
        "above_1": int((probs > 0.01).sum()),
        # Expected number of domain values in the concept
        "effective_size": float(probs.sum()),
    }


def compare_to_targets(
    ctx: Context,
    examples: Iterable[int],
    test_numbers: Sequence[int],
    prior: Prior | None = None,
) -> list[dict[str, float]] | NoConsistentHypothesis:
    """Generalization probabilities for specific test numbers.

    Useful for lining model predictions up against behavioural ratings.
    """
    curve = generalization_curve(ctx, examples, prior, probes=test_numbers)
    if isinstance(curve, NoConsistentHypothesis):
        return curve
    return [{"number": y, "probability": curve[y]} for y in test_numbers]


def sequential_generalization(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> list[np.ndarray | NoConsistentHypothesis]:
    """Generalization vector after each example (empty prefix excluded)."""
    examples = ctx.check_examples(examples)
    curves = []
    for i in range(1, len(examples) + 1):
        post = posterior_full(ctx, examples[:i], prior)
        if isinstance(post, NoConsistentHypothesis):
            curves.append(post)
            continue
        curves.append(predictive_from_vector(ctx, post, ctx.domain))
    return curves
