"""Bayesian ranking under the size principle.

    p(examples | h) = |h|^(-n)   if every example is in h, else 0

All arithmetic happens in log space. Normalization subtracts the maximum
log weight before exponentiating (log-sum-exp), since -n * log(100) is far
below what exp() can represent for moderate n.
"""

import math
import random
from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

import numpy as np
from scipy.special import logsumexp
from scipy.stats import entropy

from numbergame.concepts import Concept, concept_key
from numbergame.context import Context
from numbergame.errors import NoConsistentHypothesis
from numbergame.hypotheses import Hypothesis
from numbergame.index import consistent_hypotheses
from numbergame.priors import Prior, get_prior

NEG_INF = -math.inf


# =============================================================================
# Log-space primitives
# =============================================================================


def log_likelihood(size: int, n: int, consistent: bool = True) -> float:
    """Size-principle log likelihood: -n * log(size).

    Returns -inf for an inconsistent or empty hypothesis.
    """
    if not consistent or size <= 0:
        return NEG_INF
    return -n * math.log(size)


def log_sum_exp(log_weights: Sequence[float] | np.ndarray) -> float:
    """Numerically stable log(sum(exp(log_weights))).

    Returns -inf for an empty or all -inf input instead of NaN.
    """
    arr = np.asarray(log_weights, dtype=float)
    finite = arr[np.isfinite(arr)]
    if finite.size == 0:
        return NEG_INF
    return float(logsumexp(finite))


def normalize_log_weights(log_weights: Sequence[float] | np.ndarray) -> np.ndarray | None:
    """Convert log weights to probabilities summing to 1.

    Entries at -inf get probability 0. Returns None when no entry is
    finite, so the caller can report the degenerate case explicitly.
    """
    arr = np.asarray(log_weights, dtype=float)
    log_z = log_sum_exp(arr)
    if log_z == NEG_INF:
        return None
    probs = np.zeros_like(arr)
    mask = np.isfinite(arr)
    probs[mask] = np.exp(arr[mask] - log_z)
    return probs


def sample_categorical(log_weights: Sequence[float] | np.ndarray, rng: random.Random | None = None) -> int:
    """Draw an index with probability proportional to exp(log_weights).

    Raises:
        ValueError: If every weight is zero.
    """
    if rng is None:
        rng = random.Random()
    probs = normalize_log_weights(log_weights)
    if probs is None:
        raise ValueError("Cannot sample from an all-zero distribution")
    return rng.choices(range(len(probs)), weights=probs.tolist(), k=1)[0]


# =============================================================================
# Ranked posteriors
# =============================================================================


@dataclass(frozen=True)
class RankedConcept:
    """One candidate with its posterior probability."""

    concept: Concept
    probability: float
    size: int
    log_prior: float
    log_likelihood: float
    members: frozenset[int] = field(repr=False)
    index: int | None = None

    @property
    def id(self) -> str:
        return str(self.concept)

    @property
    def log_posterior(self) -> float:
        return self.log_prior + self.log_likelihood


@dataclass(frozen=True)
class Posterior:
    """An immutable, normalized posterior over a candidate set.

    Entries are sorted by descending probability, then ascending size,
    then concept string.
    """

    examples: tuple[int, ...]
    entries: tuple[RankedConcept, ...]
    log_normalizer: float

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def __getitem__(self, i: int) -> RankedConcept:
        return self.entries[i]

    @property
    def best(self) -> RankedConcept:
        return self.entries[0]

    def probabilities(self) -> np.ndarray:
        return np.array([e.probability for e in self.entries], dtype=float)

    def as_pairs(self) -> list[tuple[Concept, float]]:
        return [(e.concept, e.probability) for e in self.entries]

    def top(self, k: int) -> list[RankedConcept]:
        return list(self.entries[:k])

    def probability_of(self, concept: Concept) -> float:
        """Posterior mass on a concept (0.0 if it is not a candidate)."""
        return sum(e.probability for e in self.entries if e.concept == concept)

    def entropy(self) -> float:
        return posterior_entropy(self.probabilities())

    def to_records(self) -> list[dict[str, Any]]:
        """Flat dicts for tabular output."""
        return [
            {
                "rank": i + 1,
                "concept": e.id,
                "type": e.concept.tag,
                "size": e.size,
                "probability": e.probability,
                "log_prior": e.log_prior,
                "log_likelihood": e.log_likelihood,
            }
            for i, e in enumerate(self.entries)
        ]


RankResult = Posterior | NoConsistentHypothesis


def _rank_candidates(
    candidates: Iterable[tuple[Concept, frozenset[int], int | None]],
    examples: tuple[int, ...],
    prior: Prior,
    domain_size: int,
) -> RankResult:
    example_set = frozenset(examples)
    n = len(examples)

    rows = []
    for concept, members, index in candidates:
        if not members:
            # Empty extensions never receive probability
            continue
        size = len(members)
        lp = prior.log_prior(concept, domain_size, size)
        ll = log_likelihood(size, n, members.issuperset(example_set))
        rows.append((concept, members, index, size, lp, ll))

    log_posts = np.array([lp + ll for *_, lp, ll in rows], dtype=float)
    probs = normalize_log_weights(log_posts)
    if probs is None:
        return NoConsistentHypothesis(examples=examples)

    entries = [
        RankedConcept(
            concept=concept,
            probability=float(p),
            size=size,
            log_prior=lp,
            log_likelihood=ll,
            members=members,
            index=index,
        )
        for (concept, members, index, size, lp, ll), p in zip(rows, probs)
    ]
    entries.sort(key=lambda e: (-e.probability, e.size, concept_key(e.concept)))
    return Posterior(
        examples=examples,
        entries=tuple(entries),
        log_normalizer=log_sum_exp(log_posts),
    )


def rank(
    ctx: Context,
    concepts: Iterable[Concept],
    examples: Iterable[int],
    prior: Prior | None = None,
) -> RankResult:
    """Rank concepts by posterior probability given examples.

    Probabilities are normalized over the given concepts only. Concepts
    with empty extensions are dropped; inconsistent ones get probability 0.

    Returns:
        A Posterior, or NoConsistentHypothesis if no concept has positive
        posterior weight.
    """
    prior = prior or get_prior("type-weighted")
    examples = ctx.check_examples(examples)
    candidates = ((c, ctx.evaluator.extension(c), None) for c in concepts)
    return _rank_candidates(candidates, examples, prior, ctx.domain.size)


def rank_hypotheses(
    ctx: Context,
    ids: Iterable[int],
    examples: Iterable[int],
    prior: Prior | None = None,
) -> RankResult:
    """Rank base hypotheses selected by id."""
    prior = prior or get_prior("uniform")
    examples = ctx.check_examples(examples)
    candidates = (
        (ctx.hypotheses[i].concept, ctx.hypotheses[i].members, i) for i in sorted(ids)
    )
    return _rank_candidates(candidates, examples, prior, ctx.domain.size)


def posterior_efficient(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> RankResult:
    """Posterior over only the base hypotheses consistent with examples.

    Uses the consistency index to skip every hypothesis that would get
    zero likelihood anyway; the probabilities equal those of
    ``posterior_full`` restricted to the consistent set.
    """
    examples = ctx.check_examples(examples)
    remaining = consistent_hypotheses(ctx.index, examples)
    if not remaining:
        return NoConsistentHypothesis(examples=examples)
    return rank_hypotheses(ctx, remaining, examples, prior)


def top_hypotheses_efficient(
    ctx: Context,
    examples: Iterable[int],
    k: int = 10,
    prior: Prior | None = None,
) -> list[RankedConcept] | NoConsistentHypothesis:
    """Top-k base hypotheses using the consistency index."""
    result = posterior_efficient(ctx, examples, prior)
    if not result:
        return result
    return result.top(k)


# =============================================================================
# Full (brute-force) posterior over the base hypothesis set
# =============================================================================


def prior_vector(ctx: Context, prior: Prior | None = None) -> np.ndarray | None:
    """Normalized prior over all base hypotheses (None if all zero)."""
    prior = prior or get_prior("uniform")
    return normalize_log_weights(prior.log_weights(ctx.hypotheses, ctx.domain.size))


def posterior_log_weights(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> np.ndarray:
    """Unnormalized log(p(h) * p(examples | h)) for every base hypothesis.

    The prior part is normalized over the base set, so the log-sum-exp of
    the result is the log marginal likelihood.
    """
    prior = prior or get_prior("uniform")
    examples = ctx.check_examples(examples)
    log_prior = prior.log_weights(ctx.hypotheses, ctx.domain.size)
    log_z = log_sum_exp(log_prior)
    if log_z == NEG_INF:
        return np.full(len(ctx.hypotheses), NEG_INF)

    consistent = np.zeros(len(ctx.hypotheses), dtype=bool)
    consistent[list(consistent_hypotheses(ctx.index, examples))] = True
    sizes = np.array([h.size for h in ctx.hypotheses], dtype=float)

    log_like = np.full(len(ctx.hypotheses), NEG_INF)
    log_like[consistent] = -len(examples) * np.log(sizes[consistent])
    with np.errstate(invalid="ignore"):
        weights = (log_prior - log_z) + log_like
    weights[~np.isfinite(weights)] = NEG_INF
    return weights


def posterior_full(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> np.ndarray | NoConsistentHypothesis:
    """Posterior vector over all base hypotheses, in base-set order.

    Inconsistent hypotheses get exactly 0.
    """
    examples = ctx.check_examples(examples)
    probs = normalize_log_weights(posterior_log_weights(ctx, examples, prior))
    if probs is None:
        return NoConsistentHypothesis(examples=examples)
    return probs


def log_marginal_likelihood(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> float:
    """log p(examples) = log sum_h p(h) p(examples | h)."""
    return log_sum_exp(posterior_log_weights(ctx, examples, prior))


def posterior_entropy(probs: Sequence[float] | np.ndarray) -> float:
    """Entropy of a posterior in nats."""
    arr = np.asarray(probs, dtype=float)
    if arr.size == 0 or arr.sum() <= 0:
        return 0.0
    return float(entropy(arr))


def top_hypotheses(
    ctx: Context,
    examples: Iterable[int],
    k: int = 10,
    prior: Prior | None = None,
) -> list[tuple[Hypothesis, float]] | NoConsistentHypothesis:
    """Top-k base hypotheses from the full posterior."""
    post = posterior_full(ctx, examples, prior)
    if isinstance(post, NoConsistentHypothesis):
        return post
    order = sorted(
        range(len(post)),
        key=lambda i: (-post[i], ctx.hypotheses[i].size, ctx.hypotheses[i].id),
    )
    return [(ctx.hypotheses[i], float(post[i])) for i in order[:k]]


def posterior_summary(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> dict[str, Any]:
    """Summary of the posterior: consistent count, entropy and top 5."""
    examples = ctx.check_examples(examples)
    post = posterior_full(ctx, examples, prior)
    n_consistent = len(consistent_hypotheses(ctx.index, examples))
    if isinstance(post, NoConsistentHypothesis):
        return {
            "examples": list(examples),
            "n_examples": len(examples),
            "n_consistent": n_consistent,
            "error": post.reason,
        }

    top = top_hypotheses(ctx, examples, 5, prior)
    return {
        "examples": list(examples),
        "n_examples": len(examples),
        "n_consistent": n_consistent,
        "entropy": posterior_entropy(post),
        "top_5": [{"id": h.id, "size": h.size, "prob": p} for h, p in top],
    }


# =============================================================================
# Sequential updates
# =============================================================================


def _fold_example(ctx: Context, log_weights: np.ndarray, example: int) -> np.ndarray:
    """Add one example's log likelihood to unnormalized log weights."""
    containing = np.zeros(len(ctx.hypotheses), dtype=bool)
    containing[list(ctx.index.containing(example))] = True
    sizes = np.array([h.size for h in ctx.hypotheses], dtype=float)

    folded = np.full(len(ctx.hypotheses), NEG_INF)
    keep = containing & np.isfinite(log_weights)
    folded[keep] = log_weights[keep] - np.log(sizes[keep])
    return folded


def update_posterior(
    ctx: Context,
    current: np.ndarray,
    example: int,
) -> np.ndarray | NoConsistentHypothesis:
    """Fold one more example into a posterior vector over the base set."""
    ctx.check_examples([example])
    log_current = np.full(len(current), NEG_INF)
    positive = current > 0
    log_current[positive] = np.log(current[positive])

    probs = normalize_log_weights(_fold_example(ctx, log_current, example))
    if probs is None:
        return NoConsistentHypothesis(examples=(example,))
    return probs


def sequential_posteriors(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
) -> list[np.ndarray | NoConsistentHypothesis]:
    """Posterior after each prefix of examples, starting with the prior.

    Unnormalized log weights are carried between steps and only normalized
    for output, so a long run of examples never rounds a consistent
    hypothesis down to zero. Once no hypothesis survives, every later entry
    is NoConsistentHypothesis.
    """
    prior = prior or get_prior("uniform")
    examples = ctx.check_examples(examples)
    log_weights = np.asarray(prior.log_weights(ctx.hypotheses, ctx.domain.size), dtype=float)

    posteriors: list[np.ndarray | NoConsistentHypothesis] = []
    for i in range(len(examples) + 1):
        if i > 0:
            log_weights = _fold_example(ctx, log_weights, examples[i - 1])
        probs = normalize_log_weights(log_weights)
        posteriors.append(NoConsistentHypothesis(examples=examples[:i]) if probs is None else probs)
    return posteriors
