"""Consistency index: number -> ids of base hypotheses containing it.

Filtering by an example is a single set intersection against the index, so
the consistent set can be updated one example at a time instead of
re-checking every hypothesis.
"""

from dataclasses import dataclass
from itertools import accumulate
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

from numbergame.hypotheses import Hypothesis


@dataclass(frozen=True)
class ConsistencyIndex:
    """Read-only map from domain value to hypothesis ids."""

    by_number: Mapping[int, frozenset[int]]
    all_ids: frozenset[int]

    def containing(self, n: int) -> frozenset[int]:
        """Ids of hypotheses containing n (empty outside the domain)."""
        return self.by_number.get(n, frozenset())

    def __len__(self) -> int:
        return len(self.all_ids)


def build_index(hypotheses: Sequence[Hypothesis], domain: Iterable[int]) -> ConsistencyIndex:
    """Build the index once from the base hypothesis set."""
    buckets: dict[int, set[int]] = {n: set() for n in domain}
    for idx, hyp in enumerate(hypotheses):
        for n in hyp.members:
            if n in buckets:
                buckets[n].add(idx)
    return ConsistencyIndex(
        by_number=MappingProxyType({n: frozenset(ids) for n, ids in buckets.items()}),
        all_ids=frozenset(range(len(hypotheses))),
    )


def filter_step(index: ConsistencyIndex, current: frozenset[int], example: int) -> frozenset[int]:
    """Hypotheses in current that also contain example."""
    return current & index.containing(example)


def sequential_filter(index: ConsistencyIndex, examples: Iterable[int]) -> list[frozenset[int]]:
    """Consistent id sets for every prefix of examples, empty prefix first."""
    return list(
        accumulate(
            examples,
            lambda current, example: filter_step(index, current, example),
            initial=index.all_ids,
        )
    )


def consistent_hypotheses(index: ConsistencyIndex, examples: Iterable[int]) -> frozenset[int]:
    """Ids of hypotheses consistent with all examples."""
    current = index.all_ids
    for example in examples:
        current = filter_step(index, current, example)
        if not current:
            break
    return current
