"""Priors over concepts, keyed by concept type.

A prior assigns a non-negative weight to each concept type tag. A terminal's
prior probability is ``weight(tag) / total_weight``; a combinator multiplies
its own factor with its children's, so deeper programs cost more.

Interval weights are divided by ``interval_divisor`` before anything else.
There are thousands of intervals but only a few dozen rules, and without the
division the interval family would dominate the prior mass.
"""

import math
from typing import Any, Iterable, Literal

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from numbergame.concepts import CONCEPT_TAGS, Concept, iter_nodes
from numbergame.hypotheses import Hypothesis

# Rough count of candidate intervals; the domain has 5050
DEFAULT_INTERVAL_DIVISOR = 5000.0

NAMED_PRIORS: dict[str, dict[str, Any]] = {
    "uniform": {
        "default_weight": 1.0,
        "interval_divisor": 1.0,
    },
    "rule-biased": {
        "default_weight": 10.0,
        "weights": {"interval": 1.0, "union": 1.0, "intersect": 1.0},
        "interval_divisor": DEFAULT_INTERVAL_DIVISOR,
    },
    "type-weighted": {
        "weights": {
            "power-of": 10.0,
            "multiple-of": 10.0,
            "prime": 10.0,
            "square": 10.0,
            "even": 5.0,
            "odd": 5.0,
            "ends-in": 10.0,
            "interval": 1.0,
            "union": 1.0,
            "intersect": 1.0,
        },
        "interval_divisor": DEFAULT_INTERVAL_DIVISOR,
    },
    "size-biased": {
        "default_weight": 1.0,
        "interval_divisor": 1.0,
        "size_preference": {"preferred_size": 20.0, "spread": 1.0},
    },
}


class SizePreference(BaseModel):
    """Log-normal preference for hypotheses of a particular size."""

    preferred_size: float = Field(default=20.0, gt=0)
    spread: float = Field(default=1.0, gt=0)

    def log_weight(self, size: int) -> float:
        diff = math.log(max(1, size)) - math.log(self.preferred_size)
        return -(diff * diff) / (2 * self.spread * self.spread)


class Prior(BaseModel):
    """Type-weighted prior over concepts."""

    name: str = "custom"
    weights: dict[str, float] = Field(default_factory=dict)
    default_weight: float = Field(default=1.0, ge=0)
    interval_divisor: float | Literal["exact"] = DEFAULT_INTERVAL_DIVISOR
    size_preference: SizePreference | None = None

    @model_validator(mode="before")
    @classmethod
    def _expand_named(cls, data: Any) -> Any:
        # A bare name, or {"name": ...} alone, selects a named prior
        if isinstance(data, str):
            data = {"name": data}
        if isinstance(data, dict) and set(data) == {"name"}:
            name = data["name"]
            if name not in NAMED_PRIORS:
                raise ValueError(
                    f"Unknown prior: {name}. Available: {list(NAMED_PRIORS.keys())}"
                )
            data = {"name": name, **NAMED_PRIORS[name]}
        return data

    @field_validator("weights")
    @classmethod
    def _check_weights(cls, weights: dict[str, float]) -> dict[str, float]:
        for tag, weight in weights.items():
            if tag not in CONCEPT_TAGS:
                raise ValueError(f"Unknown concept type: {tag}. Available: {list(CONCEPT_TAGS)}")
            if weight < 0 or math.isnan(weight):
                raise ValueError(f"Weight for {tag} must be non-negative, got {weight}")
        return weights

    @field_validator("interval_divisor")
    @classmethod
    def _check_divisor(cls, divisor: float | str) -> float | str:
        if divisor != "exact" and divisor <= 0:
            raise ValueError(f"interval_divisor must be positive, got {divisor}")
        return divisor

    def divisor(self, domain_size: int) -> float:
        """The interval divisor, resolving "exact" to N(N+1)/2."""
        if self.interval_divisor == "exact":
            return domain_size * (domain_size + 1) / 2
        return float(self.interval_divisor)

    def tag_weight(self, tag: str, domain_size: int) -> float:
        weight = self.weights.get(tag, self.default_weight)
        if tag == "interval":
            weight /= self.divisor(domain_size)
        return weight

    def total_weight(self, domain_size: int) -> float:
        return sum(self.tag_weight(tag, domain_size) for tag in CONCEPT_TAGS)

    def log_prior(self, concept: Concept, domain_size: int, size: int | None = None) -> float:
        """Unnormalized log prior of a concept.

        Returns -inf when any node has zero weight.
        """
        total = self.total_weight(domain_size)
        if total <= 0:
            return -math.inf

        log_p = 0.0
        for node in iter_nodes(concept):
            weight = self.tag_weight(node.tag, domain_size)
            if weight <= 0:
                return -math.inf
            log_p += math.log(weight / total)

        if self.size_preference is not None and size is not None:
            log_p += self.size_preference.log_weight(size)
        return log_p

    def log_weights(self, hypotheses: Iterable[Hypothesis], domain_size: int) -> np.ndarray:
        """Log prior weights for a sequence of hypotheses."""
        return np.array(
            [self.log_prior(h.concept, domain_size, h.size) for h in hypotheses],
            dtype=float,
        )


def get_prior(name: str) -> Prior:
    """Get a named prior.

    Args:
        name: One of "uniform", "rule-biased", "type-weighted", "size-biased".

    Returns:
        Prior instance.

    Raises:
        ValueError: If the name is unknown.
    """
    if name not in NAMED_PRIORS:
        raise ValueError(
            f"Unknown prior: {name}. "
            f"Available: {list(NAMED_PRIORS.keys())}"
        )
    return Prior(name=name, **NAMED_PRIORS[name])
