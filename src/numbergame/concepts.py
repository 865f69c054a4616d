"""Concept grammar: AST node types and their evaluation.

A concept is an immutable tree. Leaves are terminals (named primitives and
parameterized families); inner nodes are the binary combinators ``Union`` and
``Intersect``. Every node checks its own invariants when it is built, so a
concept that exists is always well formed:

- parameters lie inside the declared ranges below,
- ``Interval`` has ``lo <= hi``,
- nesting never exceeds ``MAX_DEPTH``.

Evaluation (``Evaluator.extension``) is therefore total.
"""

from dataclasses import dataclass, field
from typing import Iterable, Union as TypingUnion

from numbergame.domain import (
    DEFAULT_DOMAIN_SIZE,
    PRIMITIVE_PREDICATES,
    Domain,
    ends_with,
    multiples_of,
    powers_of,
)
from numbergame.errors import InvalidConcept

# Declared parameter ranges (inclusive)
POWER_BASE_RANGE = (2, 10)
MULTIPLE_RANGE = (2, 20)
DIGIT_RANGE = (0, 9)

# Terminals have depth 0, each combinator adds one level
MAX_DEPTH = 3

PRIMITIVE_NAMES = tuple(PRIMITIVE_PREDICATES)

TERMINAL_TAGS = PRIMITIVE_NAMES + ("power-of", "multiple-of", "interval", "ends-in")
COMBINATOR_TAGS = ("union", "intersect")
CONCEPT_TAGS = TERMINAL_TAGS + COMBINATOR_TAGS


def _check_range(value: int, bounds: tuple[int, int], what: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidConcept(f"{what} must be an integer, got {value!r}")
    lo, hi = bounds
    if not lo <= value <= hi:
        raise InvalidConcept(f"{what} must be in [{lo}, {hi}], got {value}")


@dataclass(frozen=True)
class Primitive:
    """A named predicate with no parameters (prime, square, even, odd)."""

    name: str

    def __post_init__(self) -> None:
        if self.name not in PRIMITIVE_PREDICATES:
            raise InvalidConcept(
                f"Unknown primitive: {self.name!r}. Available: {list(PRIMITIVE_NAMES)}"
            )

    @property
    def tag(self) -> str:
        return self.name

    @property
    def depth(self) -> int:
        return 0

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PowerOf:
    """Powers of base: 1, base, base^2, ..."""

    base: int

    def __post_init__(self) -> None:
        _check_range(self.base, POWER_BASE_RANGE, "PowerOf base")

    tag = "power-of"
    depth = 0

    def __str__(self) -> str:
        return f"power-of({self.base})"


@dataclass(frozen=True)
class MultipleOf:
    """Positive multiples of k."""

    k: int

    def __post_init__(self) -> None:
        _check_range(self.k, MULTIPLE_RANGE, "MultipleOf k")

    tag = "multiple-of"
    depth = 0

    def __str__(self) -> str:
        return f"multiple-of({self.k})"


@dataclass(frozen=True)
class Interval:
    """The contiguous range lo..hi (inclusive)."""

    lo: int
    hi: int

    def __post_init__(self) -> None:
        _check_range(self.lo, (1, DEFAULT_DOMAIN_SIZE), "Interval lo")
        _check_range(self.hi, (1, DEFAULT_DOMAIN_SIZE), "Interval hi")
        if self.lo > self.hi:
            raise InvalidConcept(f"Interval lo ({self.lo}) must not exceed hi ({self.hi})")

    tag = "interval"
    depth = 0

    def __str__(self) -> str:
        return f"interval({self.lo},{self.hi})"


@dataclass(frozen=True)
class EndsIn:
    """Numbers whose last decimal digit is digit."""

    digit: int

    def __post_init__(self) -> None:
        _check_range(self.digit, DIGIT_RANGE, "EndsIn digit")

    tag = "ends-in"
    depth = 0

    def __str__(self) -> str:
        return f"ends-in({self.digit})"


@dataclass(frozen=True)
class _Combinator:
    left: "Concept"
    right: "Concept"
    depth: int = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        for child in (self.left, self.right):
            if not isinstance(child, CONCEPT_TYPES):
                raise InvalidConcept(f"Not a concept: {child!r}")
        depth = 1 + max(self.left.depth, self.right.depth)
        if depth > MAX_DEPTH:
            raise InvalidConcept(f"Concept depth {depth} exceeds maximum of {MAX_DEPTH}")
        object.__setattr__(self, "depth", depth)

    def __str__(self) -> str:
        return f"{self.tag}({self.left}, {self.right})"


@dataclass(frozen=True)
class Union(_Combinator):
    """Members of either child."""

    tag = "union"


@dataclass(frozen=True)
class Intersect(_Combinator):
    """Members of both children."""

    tag = "intersect"


Terminal = TypingUnion[Primitive, PowerOf, MultipleOf, Interval, EndsIn]
Concept = TypingUnion[Terminal, Union, Intersect]

TERMINAL_TYPES = (Primitive, PowerOf, MultipleOf, Interval, EndsIn)
CONCEPT_TYPES = TERMINAL_TYPES + (Union, Intersect)


def is_terminal(concept: Concept) -> bool:
    return isinstance(concept, TERMINAL_TYPES)


def concept_key(concept: Concept) -> str:
    """Canonical string used for ordering and tie-breaking."""
    return str(concept)


def iter_nodes(concept: Concept):
    """Yield every node of a concept, root first."""
    yield concept
    if isinstance(concept, _Combinator):
        yield from iter_nodes(concept.left)
        yield from iter_nodes(concept.right)


class Evaluator:
    """Computes concept extensions over a fixed domain.

    Terminal extensions are memoized: there are only as many distinct
    terminals as parameter values, while search builds many combinators
    from the same terminals.
    """

    def __init__(self, domain: Domain | None = None):
        self.domain = domain or Domain()
        self._terminal_cache: dict[Terminal, frozenset[int]] = {}

    def extension(self, concept: Concept) -> frozenset[int]:
        """Return the set of domain values the concept contains."""
        if isinstance(concept, Union):
            return self.extension(concept.left) | self.extension(concept.right)
        if isinstance(concept, Intersect):
            return self.extension(concept.left) & self.extension(concept.right)

        cached = self._terminal_cache.get(concept)
        if cached is None:
            cached = self._terminal_extension(concept)
            self._terminal_cache[concept] = cached
        return cached

    def _terminal_extension(self, concept: Terminal) -> frozenset[int]:
        limit = self.domain.size
        if isinstance(concept, Primitive):
            return self.domain.members(PRIMITIVE_PREDICATES[concept.name])
        if isinstance(concept, PowerOf):
            return powers_of(concept.base, limit)
        if isinstance(concept, MultipleOf):
            return multiples_of(concept.k, limit)
        if isinstance(concept, Interval):
            return frozenset(range(concept.lo, min(concept.hi, limit) + 1))
        if isinstance(concept, EndsIn):
            return self.domain.members(lambda n: ends_with(n, concept.digit))
        raise TypeError(f"Unknown concept type: {type(concept).__name__}")

    def size(self, concept: Concept) -> int:
        return len(self.extension(concept))

    def is_consistent(self, concept: Concept, examples: Iterable[int]) -> bool:
        """True if every example is a member of the concept."""
        return self.extension(concept).issuperset(examples)
