"""The fixed base hypothesis set.

Hypotheses are materialized concepts: each one carries its concept and the
cached set of members. Two families make up the base set:

1. Rule-based: mathematical patterns (multiples, powers, primes, ...).
2. Interval-based: every contiguous range [lo, hi] in the domain.

Rules come first, then intervals ordered by (lo, hi). The position of a
hypothesis in this sequence is its id everywhere else in the package.
"""

from dataclasses import dataclass
from typing import Iterable

from numbergame.concepts import (
    Concept,
    EndsIn,
    Evaluator,
    Interval,
    MultipleOf,
    PowerOf,
    Primitive,
)

RULE_MULTIPLES = range(2, 13)
RULE_POWERS = (2, 3, 4)
RULE_DIGITS = range(10)


@dataclass(frozen=True)
class Hypothesis:
    """A concept together with its (immutable) extension."""

    concept: Concept
    members: frozenset[int]

    @property
    def id(self) -> str:
        return str(self.concept)

    @property
    def tag(self) -> str:
        return self.concept.tag

    @property
    def size(self) -> int:
        return len(self.members)

    @property
    def is_interval(self) -> bool:
        return isinstance(self.concept, Interval)

    def contains_all(self, examples: Iterable[int]) -> bool:
        return self.members.issuperset(examples)


def rule_concepts() -> list[Concept]:
    """Rule-based concepts in base-set order."""
    concepts: list[Concept] = [MultipleOf(k) for k in RULE_MULTIPLES]
    concepts.extend(PowerOf(b) for b in RULE_POWERS)
    concepts.extend(Primitive(name) for name in ("square", "prime", "odd", "even"))
    concepts.extend(EndsIn(d) for d in RULE_DIGITS)
    return concepts


def interval_concepts(domain_size: int) -> list[Concept]:
    """All intervals [lo, hi] with 1 <= lo <= hi <= domain_size."""
    return [
        Interval(lo, hi)
        for lo in range(1, domain_size + 1)
        for hi in range(lo, domain_size + 1)
    ]


def materialize(concepts: Iterable[Concept], evaluator: Evaluator) -> list[Hypothesis]:
    """Evaluate concepts into hypotheses, skipping empty extensions."""
    hypotheses = []
    for concept in concepts:
        members = evaluator.extension(concept)
        if members:
            hypotheses.append(Hypothesis(concept=concept, members=members))
    return hypotheses


def build_base_hypotheses(evaluator: Evaluator) -> tuple[Hypothesis, ...]:
    """Build the rules-then-intervals base set for the evaluator's domain."""
    concepts = rule_concepts() + interval_concepts(evaluator.domain.size)
    return tuple(materialize(concepts, evaluator))


def rule_hypotheses(hypotheses: Iterable[Hypothesis]) -> list[Hypothesis]:
    return [h for h in hypotheses if not h.is_interval]


def interval_hypotheses(hypotheses: Iterable[Hypothesis]) -> list[Hypothesis]:
    return [h for h in hypotheses if h.is_interval]


def hypothesis_by_id(hypotheses: Iterable[Hypothesis], hypothesis_id: str) -> Hypothesis | None:
    """Find a hypothesis by its string id."""
    for hyp in hypotheses:
        if hyp.id == hypothesis_id:
            return hyp
    return None


def hypotheses_containing_all(
    hypotheses: Iterable[Hypothesis],
    examples: Iterable[int],
) -> list[Hypothesis]:
    """Linear-scan consistency check, the reference for the index."""
    example_set = set(examples)
    return [h for h in hypotheses if h.contains_all(example_set)]
