"""Experiments module for running trajectory and recovery experiments."""

from numbergame.experiments.recovery import run_recovery
from numbergame.experiments.trajectory import run_trajectory

__all__ = ["run_trajectory", "run_recovery"]
