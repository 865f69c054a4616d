"""Process-wide read-only data, built once and passed to every query."""

from dataclasses import dataclass

from numbergame.concepts import Evaluator
from numbergame.domain import DEFAULT_DOMAIN_SIZE, Domain
from numbergame.errors import InvalidExamples
from numbergame.hypotheses import Hypothesis, build_base_hypotheses
from numbergame.index import ConsistencyIndex, build_index


@dataclass(frozen=True)
class Context:
    """Domain, evaluator, base hypotheses and their consistency index."""

    domain: Domain
    evaluator: Evaluator
    hypotheses: tuple[Hypothesis, ...]
    index: ConsistencyIndex

    @property
    def hypothesis_count(self) -> int:
        return len(self.hypotheses)

    def hypothesis(self, idx: int) -> Hypothesis:
        return self.hypotheses[idx]

    def check_examples(self, examples, allow_empty: bool = True) -> tuple[int, ...]:
        """Validate examples against the domain and return them as a tuple.

        Raises:
            InvalidExamples: If any example is outside the domain, or the
                sequence is empty and allow_empty is False.
        """
        examples = tuple(examples)
        if not examples and not allow_empty:
            raise InvalidExamples("At least one example is required")
        bad = [x for x in examples if x not in self.domain]
        if bad:
            raise InvalidExamples(
                f"Examples outside the domain 1..{self.domain.size}: {bad}"
            )
        return examples


def build_context(domain_size: int = DEFAULT_DOMAIN_SIZE) -> Context:
    """Build a context for the domain 1..domain_size."""
    domain = Domain(domain_size)
    evaluator = Evaluator(domain)
    hypotheses = build_base_hypotheses(evaluator)
    index = build_index(hypotheses, domain)
    return Context(domain=domain, evaluator=evaluator, hypotheses=hypotheses, index=index)
