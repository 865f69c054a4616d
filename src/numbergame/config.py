"""Configuration loading and management."""

import os
import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator

from numbergame.concepts import MAX_DEPTH, MULTIPLE_RANGE, POWER_BASE_RANGE
from numbergame.domain import DEFAULT_DOMAIN_SIZE
from numbergame.priors import Prior, get_prior
from numbergame.synthesis import DEFAULT_MAX_INTERVALS, DEFAULT_MAX_RESULTS, Grammar


class DomainConfig(BaseModel):
    """Configuration for the number domain."""

    size: int = Field(default=DEFAULT_DOMAIN_SIZE, ge=1, le=DEFAULT_DOMAIN_SIZE)


class GrammarConfig(BaseModel):
    """Which terminals the concept grammar offers."""

    power_bases: tuple[int, int] = POWER_BASE_RANGE
    multiples: tuple[int, int] = MULTIPLE_RANGE
    max_depth: int = Field(default=MAX_DEPTH, ge=0, le=MAX_DEPTH)
    include_ends_in: bool = False

    @model_validator(mode="after")
    def _check_ranges(self) -> "GrammarConfig":
        for name, (lo, hi), bounds in (
            ("power_bases", self.power_bases, POWER_BASE_RANGE),
            ("multiples", self.multiples, MULTIPLE_RANGE),
        ):
            if not bounds[0] <= lo <= hi <= bounds[1]:
                raise ValueError(f"{name} must be a sub-range of {bounds}, got {(lo, hi)}")
        return self


class SynthesisConfig(BaseModel):
    """Configuration for the synthesis engine."""

    strategy: Literal["exact", "guided", "indexed"] = "guided"
    max_depth: int = Field(default=1, ge=0, le=MAX_DEPTH)
    max_results: int = Field(default=DEFAULT_MAX_RESULTS, ge=1)
    max_intervals: int = Field(default=DEFAULT_MAX_INTERVALS, ge=0)


class ExperimentConfig(BaseModel):
    """Configuration for experiment parameters."""

    example_sets: list[list[int]] = Field(
        default_factory=lambda: [
            [16],
            [16, 8, 2, 64],
            [60, 80, 10, 30],
            [60, 52, 57, 55],
            [81, 25, 4, 36],
            [16, 23, 19, 20],
        ]
    )
    n_examples: list[int] = Field(default_factory=lambda: [1, 2, 3, 4, 6, 8, 12])
    n_repeats: int = Field(default=50, ge=1)
    n_samples: int = Field(default=10000, ge=1)
    top_k: int = Field(default=3, ge=1)


class OutputConfig(BaseModel):
    """Configuration for output settings."""

    dir: str = "results"
    save_raw: bool = True
    save_plots: bool = True


class Config(BaseModel):
    """Main configuration model."""

    domain: DomainConfig = Field(default_factory=DomainConfig)
    grammar: GrammarConfig = Field(default_factory=GrammarConfig)
    synthesis: SynthesisConfig = Field(default_factory=SynthesisConfig)
    prior: Prior = Field(default_factory=lambda: get_prior("type-weighted"))
    experiment: ExperimentConfig = Field(default_factory=ExperimentConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    seed: int = 42

    @model_validator(mode="after")
    def _check_depths(self) -> "Config":
        if self.synthesis.max_depth > self.grammar.max_depth:
            raise ValueError(
                f"synthesis.max_depth ({self.synthesis.max_depth}) exceeds "
                f"grammar.max_depth ({self.grammar.max_depth})"
            )
        return self

    def build_grammar(self) -> Grammar:
        """Search grammar for the synthesis engine."""
        lo_b, hi_b = self.grammar.power_bases
        lo_m, hi_m = self.grammar.multiples
        return Grammar(
            power_bases=tuple(range(lo_b, hi_b + 1)),
            multiples=tuple(range(lo_m, hi_m + 1)),
            include_ends_in=self.grammar.include_ends_in,
            max_intervals=self.synthesis.max_intervals,
        )


def expand_env_vars(value: Any) -> Any:
    """Recursively expand environment variables in config values.

    Supports ${VAR} and ${VAR:-default} syntax.
    """
    if isinstance(value, str):
        pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"

        def replace(match: re.Match) -> str:
            default = match.group(2)
            return os.environ.get(match.group(1), default if default is not None else "")

        return re.sub(pattern, replace, value)
    elif isinstance(value, dict):
        return {k: expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [expand_env_vars(item) for item in value]
    return value


def load_config(config_path: str | Path) -> Config:
    """Load configuration from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Parsed Config object.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        pydantic.ValidationError: If a value is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw_config = yaml.safe_load(f)

    if raw_config is None:
        raw_config = {}

    return Config(**expand_env_vars(raw_config))
