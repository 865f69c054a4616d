"""Generative model and sampling-based inference.

The generative story:
  1. Sample a hypothesis h from the prior.
  2. Sample n examples uniformly (with replacement) from h's members.

This module covers forward simulation and an approximate, sampling-based
alternative to exact enumeration: draw random programs from the grammar,
keep those consistent with the examples and weight them by the size
principle. It is simple but slow, since most samples are rejected.
"""

import math
import random
from collections import Counter
from typing import Any, Sequence

from numbergame.concepts import (
    DIGIT_RANGE,
    MAX_DEPTH,
    PRIMITIVE_NAMES,
    Concept,
    EndsIn,
    Intersect,
    Interval,
    MultipleOf,
    PowerOf,
    Primitive,
    Union,
    concept_key,
)
from numbergame.context import Context
from numbergame.errors import NoConsistentHypothesis
from numbergame.inference import (
    Posterior,
    RankedConcept,
    log_sum_exp,
    normalize_log_weights,
    posterior_efficient,
    sample_categorical,
)
from numbergame.priors import Prior, get_prior
from numbergame.synthesis import Grammar


def sample_from_extension(
    ctx: Context,
    concept: Concept,
    n: int,
    rng: random.Random | None = None,
) -> list[int]:
    """Draw n members of a concept uniformly with replacement.

    Returns an empty list for a concept with no members.
    """
    if rng is None:
        rng = random.Random()
    members = sorted(ctx.evaluator.extension(concept))
    if not members:
        return []
    return [rng.choice(members) for _ in range(n)]


def sample_hypothesis(ctx: Context, prior: Prior | None = None, rng: random.Random | None = None) -> int:
    """Index of a base hypothesis drawn from the prior."""
    prior = prior or get_prior("uniform")
    return sample_categorical(prior.log_weights(ctx.hypotheses, ctx.domain.size), rng)


def simulate(
    ctx: Context,
    n_examples: int,
    prior: Prior | None = None,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Run the generative model forward.

    Returns:
        Dictionary with 'hypothesis_index', 'hypothesis' and 'examples'.
    """
    if rng is None:
        rng = random.Random()
    idx = sample_hypothesis(ctx, prior, rng)
    hyp = ctx.hypotheses[idx]
    return {
        "hypothesis_index": idx,
        "hypothesis": hyp,
        "examples": sample_from_extension(ctx, hyp.concept, n_examples, rng),
    }


def sample_concept(
    rng: random.Random | None = None,
    depth: int = 0,
    grammar: Grammar | None = None,
    domain_size: int = 100,
) -> Concept:
    """Sample a random program from the grammar.

    The chance of stopping grows with depth (depth / (depth + 2)), and a
    terminal is forced once another combinator would exceed MAX_DEPTH.
    Terminal families are equally likely. ends-in joins them only when the
    grammar includes it.
    """
    if rng is None:
        rng = random.Random()
    grammar = grammar or Grammar()

    stop_prob = depth / (depth + 2.0)
    if depth >= MAX_DEPTH or rng.random() < stop_prob:
        family = rng.randrange(5 if grammar.include_ends_in else 4)
        if family == 0:
            return Primitive(rng.choice(PRIMITIVE_NAMES))
        if family == 1:
            return PowerOf(rng.choice(grammar.power_bases))
        if family == 2:
            return MultipleOf(rng.choice(grammar.multiples))
        if family == 4:
            return EndsIn(rng.randint(*DIGIT_RANGE))
        lo = rng.randint(1, domain_size)
        return Interval(lo, rng.randint(lo, domain_size))

    op = Union if rng.random() < 0.5 else Intersect
    return op(
        sample_concept(rng, depth + 1, grammar, domain_size),
        sample_concept(rng, depth + 1, grammar, domain_size),
    )


def infer_by_sampling(
    ctx: Context,
    examples: Sequence[int],
    n_samples: int,
    rng: random.Random | None = None,
    grammar: Grammar | None = None,
) -> dict[str, Any]:
    """Approximate posterior over programs by rejection-style sampling.

    1. Sample n_samples programs from the grammar.
    2. Keep those whose non-empty extension contains every example.
    3. Weight each distinct program by its sample count times |h|^(-n).

    Returns:
        Dictionary with 'n_samples', 'n_consistent', 'acceptance_rate' and
        'posterior' (a Posterior, or NoConsistentHypothesis when no sample
        was accepted).
    """
    if rng is None:
        rng = random.Random()
    examples = ctx.check_examples(examples)
    example_set = frozenset(examples)
    n = len(examples)

    counts: Counter[Concept] = Counter()
    for _ in range(n_samples):
        concept = sample_concept(rng, grammar=grammar, domain_size=ctx.domain.size)
        members = ctx.evaluator.extension(concept)
        if members and members.issuperset(example_set):
            counts[concept] += 1

    n_consistent = sum(counts.values())
    result: dict[str, Any] = {
        "n_samples": n_samples,
        "n_consistent": n_consistent,
        "acceptance_rate": n_consistent / n_samples if n_samples else 0.0,
    }
    if not counts:
        result["posterior"] = NoConsistentHypothesis(
            examples=examples, reason=f"No consistent programs in {n_samples} samples"
        )
        return result

    concepts = list(counts)
    sizes = [ctx.evaluator.size(c) for c in concepts]
    log_priors = [math.log(counts[c] / n_samples) for c in concepts]
    log_likes = [-n * math.log(s) for s in sizes]
    log_posts = [lp + ll for lp, ll in zip(log_priors, log_likes)]
    probs = normalize_log_weights(log_posts)

    entries = [
        RankedConcept(
            concept=c,
            probability=float(p),
            size=s,
            log_prior=lp,
            log_likelihood=ll,
            members=ctx.evaluator.extension(c),
        )
        for c, p, s, lp, ll in zip(concepts, probs, sizes, log_priors, log_likes)
    ]
    entries.sort(key=lambda e: (-e.probability, e.size, concept_key(e.concept)))
    result["posterior"] = Posterior(
        examples=examples,
        entries=tuple(entries),
        log_normalizer=log_sum_exp(log_posts),
    )
    return result


def simulate_and_infer(
    ctx: Context,
    n_examples: int,
    prior: Prior | None = None,
    rng: random.Random | None = None,
) -> dict[str, Any]:
    """Generate examples from a sampled hypothesis, then infer it back.

    'recovered' compares the MAP hypothesis with the generating one;
    'recovered_extension' only asks for the same members, since e.g.
    even and multiple-of(2) cannot be told apart from data.
    """
    generated = simulate(ctx, n_examples, prior, rng)
    post = posterior_efficient(ctx, generated["examples"], prior)
    truth = generated["hypothesis"]

    record: dict[str, Any] = {
        "true_hypothesis": truth.id,
        "true_size": truth.size,
        "examples": generated["examples"],
        "n_examples": n_examples,
    }
    if isinstance(post, NoConsistentHypothesis):
        record.update(map_hypothesis=None, map_prob=0.0, recovered=False, recovered_extension=False)
        return record

    best = post.best
    record.update(
        map_hypothesis=best.id,
        map_prob=best.probability,
        true_prob=post.probability_of(truth.concept),
        recovered=best.concept == truth.concept,
        recovered_extension=best.members == truth.members,
    )
    return record
