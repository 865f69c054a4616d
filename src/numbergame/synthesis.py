"""Synthesis: find concepts consistent with positive examples.

Three strategies implement the same contract, ``synthesize``:

- "exact": enumerate every concept reachable within the depth bound from
  the finite terminal pool, then keep the consistent ones. Complete within
  the bound and deterministic.
- "guided": derive candidate parameters from the examples themselves
  (e.g. k in multiple-of(k) must divide every example) and build
  combinators by backtracking on the examples a left child leaves
  uncovered. Returns a subset of what "exact" would return.
- "indexed": read the consistent base hypotheses off the consistency index.
  Terminals only.

Interval terminals are never enumerated over the whole domain: candidates
are [lo, hi] with lo <= min(examples) and hi >= max(examples), smallest
first, capped at ``max_intervals``.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from numbergame.concepts import (
    MAX_DEPTH,
    MULTIPLE_RANGE,
    POWER_BASE_RANGE,
    PRIMITIVE_NAMES,
    Concept,
    EndsIn,
    Evaluator,
    Intersect,
    Interval,
    MultipleOf,
    PowerOf,
    Primitive,
    Union,
    concept_key,
)
from numbergame.context import Context
from numbergame.domain import gcd_of, is_power_of
from numbergame.hypotheses import Hypothesis, materialize
from numbergame.index import consistent_hypotheses

STRATEGIES = ("exact", "guided", "indexed")

DEFAULT_MAX_RESULTS = 1000
DEFAULT_MAX_INTERVALS = 100


@dataclass(frozen=True)
class Grammar:
    """Which terminals the search may use."""

    power_bases: tuple[int, ...] = tuple(range(POWER_BASE_RANGE[0], POWER_BASE_RANGE[1] + 1))
    multiples: tuple[int, ...] = tuple(range(MULTIPLE_RANGE[0], MULTIPLE_RANGE[1] + 1))
    include_ends_in: bool = False
    max_intervals: int = DEFAULT_MAX_INTERVALS


@dataclass(frozen=True)
class DataConstraints:
    """Facts read directly off the examples that narrow the search."""

    min: int
    max: int
    span: int
    all_even: bool
    all_odd: bool
    gcd: int
    possible_bases: tuple[int, ...]
    possible_multiples: tuple[int, ...]


def candidate_bases(target: Iterable[int], grammar: Grammar) -> tuple[int, ...]:
    """Bases b for which every target is a power of b.

    Candidates come from the integer roots of the smallest target above 1
    rather than from the whole declared range.
    """
    target = sorted(set(target))
    pivot = next((x for x in target if x > 1), None)
    if pivot is None:
        # Only 1 (or nothing): b^0 works for every base
        return grammar.power_bases

    roots = set()
    for exp in range(1, pivot.bit_length() + 1):
        root = round(pivot ** (1.0 / exp))
        for b in (root - 1, root, root + 1):
            if b >= 2 and b**exp == pivot:
                roots.add(b)

    allowed = set(grammar.power_bases)
    return tuple(
        b for b in sorted(roots)
        if b in allowed and all(is_power_of(x, b) for x in target)
    )


def candidate_multiples(target: Iterable[int], grammar: Grammar) -> tuple[int, ...]:
    """Divisors of gcd(target) inside the declared multiple-of range."""
    g = gcd_of(target)
    if g == 0:
        return grammar.multiples
    return tuple(k for k in grammar.multiples if g % k == 0)


def data_to_constraints(examples: Sequence[int], grammar: Grammar | None = None) -> DataConstraints:
    """Extract the constraints that guide the search from the examples."""
    grammar = grammar or Grammar()
    lo, hi = min(examples), max(examples)
    return DataConstraints(
        min=lo,
        max=hi,
        span=hi - lo,
        all_even=all(x % 2 == 0 for x in examples),
        all_odd=all(x % 2 == 1 for x in examples),
        gcd=gcd_of(examples),
        possible_bases=candidate_bases(examples, grammar),
        possible_multiples=candidate_multiples(examples, grammar),
    )


def candidate_intervals(examples: Sequence[int], domain_size: int, limit: int) -> list[Interval]:
    """Intervals containing every example, smallest first."""
    lo, hi = min(examples), max(examples)
    ranges = sorted(
        ((a, b) for a in range(1, lo + 1) for b in range(hi, domain_size + 1)),
        key=lambda r: (r[1] - r[0], r[0]),
    )
    return [Interval(a, b) for a, b in ranges[:limit]]


def terminal_pool(
    examples: Sequence[int],
    grammar: Grammar,
    domain_size: int,
) -> list[Concept]:
    """Every terminal the exact search may use, in a fixed order."""
    pool: list[Concept] = [Primitive(name) for name in PRIMITIVE_NAMES]
    pool.extend(PowerOf(b) for b in grammar.power_bases)
    pool.extend(MultipleOf(k) for k in grammar.multiples)
    if grammar.include_ends_in:
        pool.extend(EndsIn(d) for d in range(10))
    pool.extend(candidate_intervals(examples, domain_size, grammar.max_intervals))
    return pool


def compose(op: type, a: Concept, b: Concept, evaluator: Evaluator) -> Concept | None:
    """Build op(a, b) in canonical form, or None if it adds nothing.

    Children are ordered by their string form so that union(a, b) and
    union(b, a) are one concept. Compositions with identical children, an
    empty extension, or an extension equal to either child are dropped.
    """
    if a == b:
        return None
    if concept_key(a) > concept_key(b):
        a, b = b, a
    if 1 + max(a.depth, b.depth) > MAX_DEPTH:
        return None

    ext_a = evaluator.extension(a)
    ext_b = evaluator.extension(b)
    ext = ext_a | ext_b if op is Union else ext_a & ext_b
    if not ext or ext == ext_a or ext == ext_b:
        return None
    return op(a, b)


# =============================================================================
# Exact enumeration
# =============================================================================


def enumerate_concepts(
    examples: Sequence[int],
    evaluator: Evaluator,
    max_depth: int,
    grammar: Grammar,
) -> Iterator[Concept]:
    """Lazily enumerate every concept up to max_depth, consistent or not.

    Terminals come first, then combinators level by level. Each level pairs
    concepts from the levels below, with at least one child from the level
    immediately below so that no pair is visited twice.
    """
    pool = terminal_pool(examples, grammar, evaluator.domain.size)
    for concept in pool:
        if evaluator.extension(concept):
            yield concept

    below = list(pool)
    frontier_start = 0
    for depth in range(1, max_depth + 1):
        level = []
        for i, a in enumerate(below):
            # Older concepts pair only with the newest level
            partners = below[max(i + 1, frontier_start):]
            for b in partners:
                for op in (Union, Intersect):
                    concept = compose(op, a, b, evaluator)
                    if concept is None:
                        continue
                    if depth < max_depth:
                        level.append(concept)
                    yield concept
        frontier_start = len(below)
        below.extend(level)


def _synthesize_exact(
    examples: Sequence[int],
    evaluator: Evaluator,
    max_results: int,
    max_depth: int,
    grammar: Grammar,
) -> list[Concept]:
    results = []
    for concept in enumerate_concepts(examples, evaluator, max_depth, grammar):
        if evaluator.is_consistent(concept, examples):
            results.append(concept)
            if len(results) >= max_results:
                break
    return results


# =============================================================================
# Guided search (parameter discovery + backtracking)
# =============================================================================


class _GuidedSearch:
    """Backtracking search driven by the examples.

    ``covering(target, depth)`` yields concepts whose extension contains
    every number in target. Terminals get their parameters from the target;
    a union picks a left terminal that covers part of the target and
    recurses on the remainder; an intersection pairs two covering concepts.
    """

    def __init__(self, examples: Sequence[int], evaluator: Evaluator, grammar: Grammar):
        self.evaluator = evaluator
        self.grammar = grammar
        self.intervals = candidate_intervals(
            examples, evaluator.domain.size, grammar.max_intervals
        )
        self._memo: dict[tuple[frozenset[int], int], list[Concept]] = {}

    def covering_terminals(self, target: frozenset[int]) -> list[Concept]:
        found: list[Concept] = [
            Primitive(name) for name in PRIMITIVE_NAMES
            if self.evaluator.is_consistent(Primitive(name), target)
        ]
        found.extend(PowerOf(b) for b in candidate_bases(target, self.grammar))
        found.extend(MultipleOf(k) for k in candidate_multiples(target, self.grammar))
        if self.grammar.include_ends_in:
            digits = {x % 10 for x in target}
            if len(digits) == 1:
                found.append(EndsIn(digits.pop()))
        found.extend(self.intervals)
        return [c for c in found if self.evaluator.extension(c)]

    def partial_terminals(self, target: frozenset[int]) -> list[Concept]:
        """Terminals covering some, but not all, of target."""
        bases: set[int] = set()
        multiples: set[int] = set()
        for x in target:
            bases.update(candidate_bases([x], self.grammar) if x > 1 else ())
            multiples.update(candidate_multiples([x], self.grammar))

        found: list[Concept] = [Primitive(name) for name in PRIMITIVE_NAMES]
        found.extend(PowerOf(b) for b in sorted(bases))
        found.extend(MultipleOf(k) for k in sorted(multiples))
        if self.grammar.include_ends_in:
            found.extend(EndsIn(d) for d in sorted({x % 10 for x in target}))

        partial = []
        for concept in found:
            hit = self.evaluator.extension(concept) & target
            if hit and hit != target:
                partial.append(concept)
        return partial

    def covering(self, target: frozenset[int], depth: int) -> list[Concept]:
        key = (target, depth)
        if key in self._memo:
            return self._memo[key]

        if depth == 0:
            results = self.covering_terminals(target)
        else:
            below = self.covering(target, depth - 1)
            results = list(below)
            seen = set(results)

            for left in self.partial_terminals(target):
                residual = target - self.evaluator.extension(left)
                for right in self.covering(residual, depth - 1):
                    concept = compose(Union, left, right, self.evaluator)
                    if concept is not None and concept not in seen:
                        seen.add(concept)
                        results.append(concept)

            for i, a in enumerate(below):
                for b in below[i + 1:]:
                    concept = compose(Intersect, a, b, self.evaluator)
                    if concept is not None and concept not in seen:
                        seen.add(concept)
                        results.append(concept)

        self._memo[key] = results
        return results


def _synthesize_guided(
    examples: Sequence[int],
    evaluator: Evaluator,
    max_results: int,
    max_depth: int,
    grammar: Grammar,
) -> list[Concept]:
    search = _GuidedSearch(examples, evaluator, grammar)
    target = frozenset(examples)
    results = []
    for concept in search.covering(target, max_depth):
        if evaluator.is_consistent(concept, target):
            results.append(concept)
            if len(results) >= max_results:
                break
    return results


def _synthesize_indexed(ctx: Context, examples: Sequence[int], max_results: int) -> list[Concept]:
    ids = sorted(consistent_hypotheses(ctx.index, examples))
    return [ctx.hypotheses[i].concept for i in ids[:max_results]]


# =============================================================================
# Public entry points
# =============================================================================


def synthesize(
    ctx: Context,
    examples: Sequence[int],
    max_results: int = DEFAULT_MAX_RESULTS,
    max_depth: int = 1,
    strategy: str = "guided",
    grammar: Grammar | None = None,
) -> list[Concept]:
    """Find concepts whose extension contains every example.

    Args:
        ctx: Shared context (domain, evaluator, base hypotheses).
        examples: Positive examples; must be non-empty and inside the domain.
        max_results: Stop after this many concepts.
        max_depth: Combinator nesting bound (0 = terminals only).
        strategy: "exact", "guided" or "indexed".
        grammar: Terminal families to search (defaults to the full grammar).

    Returns:
        Consistent concepts with non-empty extensions, in no particular
        ranking order. An empty list when nothing is consistent.

    Raises:
        InvalidExamples: If examples are empty or outside the domain.
        ValueError: If the strategy is unknown or max_depth is out of range.
    """
    examples = ctx.check_examples(examples, allow_empty=False)
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy: {strategy}. Available: {list(STRATEGIES)}")
    if not 0 <= max_depth <= MAX_DEPTH:
        raise ValueError(f"max_depth must be in [0, {MAX_DEPTH}], got {max_depth}")
    if max_results <= 0:
        return []

    grammar = grammar or Grammar()
    if strategy == "exact":
        return _synthesize_exact(examples, ctx.evaluator, max_results, max_depth, grammar)
    if strategy == "guided":
        return _synthesize_guided(examples, ctx.evaluator, max_results, max_depth, grammar)
    return _synthesize_indexed(ctx, examples, max_results)


def synthesize_hypotheses(ctx: Context, examples: Sequence[int], **kwargs) -> list[Hypothesis]:
    """Like synthesize, but with extensions attached."""
    return materialize(synthesize(ctx, examples, **kwargs), ctx.evaluator)


def count_concepts(ctx: Context, examples: Sequence[int], max_depth: int, grammar: Grammar | None = None) -> int:
    """Size of the enumerated space (consistent or not) for these examples."""
    examples = ctx.check_examples(examples, allow_empty=False)
    grammar = grammar or Grammar()
    return sum(1 for _ in enumerate_concepts(examples, ctx.evaluator, max_depth, grammar))

