"""The finite number domain and its base predicates."""

import math
import numbers
from dataclasses import dataclass
from functools import cached_property
from typing import Iterable

DEFAULT_DOMAIN_SIZE = 100


@dataclass(frozen=True)
class Domain:
    """The universe of numbers 1..size."""

    size: int = DEFAULT_DOMAIN_SIZE

    def __post_init__(self) -> None:
        if not 1 <= self.size <= DEFAULT_DOMAIN_SIZE:
            raise ValueError(
                f"Domain size must be between 1 and {DEFAULT_DOMAIN_SIZE}, got {self.size}"
            )

    @cached_property
    def values(self) -> frozenset[int]:
        return frozenset(range(1, self.size + 1))

    def __contains__(self, n: object) -> bool:
        if isinstance(n, bool) or not isinstance(n, numbers.Integral):
            return False
        return 1 <= n <= self.size

    def __iter__(self):
        return iter(range(1, self.size + 1))

    def __len__(self) -> int:
        return self.size

    def interval_count(self) -> int:
        """Number of distinct intervals [lo, hi] inside the domain."""
        return self.size * (self.size + 1) // 2

    def members(self, pred) -> frozenset[int]:
        """Return the domain values satisfying a predicate."""
        return frozenset(n for n in self if pred(n))


def is_prime(n: int) -> bool:
    """Return True if n is prime."""
    if n < 2:
        return False
    if n < 4:
        return True
    if n % 2 == 0:
        return False
    return all(n % d for d in range(3, math.isqrt(n) + 1, 2))


def is_perfect_square(n: int) -> bool:
    root = math.isqrt(n)
    return root * root == n


def powers_of(base: int, limit: int) -> frozenset[int]:
    """Powers base^0, base^1, ... that do not exceed limit."""
    powers = set()
    value = 1
    while value <= limit:
        powers.add(value)
        value *= base
    return frozenset(powers)


def is_power_of(n: int, base: int) -> bool:
    while n > 1 and n % base == 0:
        n //= base
    return n == 1


def multiples_of(k: int, limit: int) -> frozenset[int]:
    return frozenset(range(k, limit + 1, k))


def ends_with(n: int, digit: int) -> bool:
    return n % 10 == digit


def gcd_of(values: Iterable[int]) -> int:
    """Greatest common divisor of all values (0 for an empty iterable)."""
    result = 0
    for v in values:
        result = math.gcd(result, v)
    return result


# Named predicates with no parameters
PRIMITIVE_PREDICATES = {
    "prime": is_prime,
    "square": is_perfect_square,
    "even": lambda n: n % 2 == 0,
    "odd": lambda n: n % 2 == 1,
}
