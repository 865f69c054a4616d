"""Error types and the no-consistent-hypothesis result."""

from dataclasses import dataclass


class InvalidConcept(ValueError):
    """A concept was built with out-of-range parameters or too much nesting."""


class InvalidExamples(ValueError):
    """Examples are empty where that is not allowed, or fall outside the domain."""


@dataclass(frozen=True)
class NoConsistentHypothesis:
    """Returned instead of a posterior when nothing explains the examples.

    This is a value, not an exception: callers branch on it with
    ``isinstance`` or simply by truthiness, since it is always falsy.
    """

    examples: tuple[int, ...]
    reason: str = "No consistent hypotheses"

    def __bool__(self) -> bool:
        return False
