"""Plotting functions for experiment results."""

from pathlib import Path
from typing import Any

import matplotlib.pyplot as plt
import numpy as np


def plot_generalization_curve(
    curve: np.ndarray,
    examples: list[int],
    output_path: str | Path,
    title: str | None = None,
) -> None:
    """Bar chart of p(y in concept) over the domain, examples highlighted.

    Args:
        curve: Generalization probabilities, index 0 = number 1.
        examples: The observed examples.
        output_path: Path to save the plot.
        title: Plot title (defaults to the examples).
    """
    numbers = np.arange(1, len(curve) + 1)
    example_set = set(examples)
    colors = ["tab:red" if n in example_set else "tab:blue" for n in numbers]

    fig, ax = plt.subplots(figsize=(14, 4))

    ax.bar(numbers, curve, width=0.8, color=colors, alpha=0.8)

    ax.set_xlabel("Number", fontsize=12)
    ax.set_ylabel("p(y in concept)", fontsize=12)
    ax.set_title(title or f"Generalization from {examples}", fontsize=14)
    ax.set_xlim(0, len(curve) + 1)
    ax.set_ylim(0, 1.05)
    ax.grid(True, alpha=0.3, axis="y")

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()


def plot_pruning_trajectory(
    steps: list[dict[str, Any]],
    output_path: str | Path,
    title: str = "Consistent Hypotheses vs Examples Seen",
) -> None:
    """Remaining hypothesis count per step, one line per example set.

    Args:
        steps: Step rows with 'examples', 'step' and 'remaining_count'.
        output_path: Path to save the plot.
        title: Plot title.
    """
    fig, ax = plt.subplots(figsize=(10, 6))

    labels = list(dict.fromkeys(s["examples"] for s in steps))
    colors = plt.cm.viridis(np.linspace(0, 1, max(1, len(labels))))

    for label, color in zip(labels, colors):
        rows = [s for s in steps if s["examples"] == label]
        ax.plot(
            [s["step"] for s in rows],
            [s["remaining_count"] for s in rows],
            marker="o",
            linewidth=2,
            color=color,
            label=f"[{label}]",
        )

    ax.set_xlabel("Examples Seen", fontsize=12)
    ax.set_ylabel("Consistent Hypotheses", fontsize=12)
    ax.set_yscale("log")
    ax.set_title(title, fontsize=14)
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()


def plot_recovery_curve(
    aggregated: dict[int, dict],
    output_path: str | Path,
    title: str = "Recovery Rate vs Number of Examples",
) -> None:
    """Plot the recovery rate (with error bars) against n.

    Args:
        aggregated: Dictionary mapping n to aggregated statistics.
        output_path: Path to save the plot.
        title: Plot title.
    """
    n_values = sorted(aggregated.keys())

    fig, ax = plt.subplots(figsize=(10, 6))

    for key, label in (("recovered", "Exact hypothesis"), ("recovered_extension", "Same extension")):
        if f"mean_{key}" not in aggregated[n_values[0]]:
            continue
        ax.errorbar(
            n_values,
            [aggregated[n][f"mean_{key}"] for n in n_values],
            yerr=[aggregated[n][f"stderr_{key}"] for n in n_values],
            marker="o",
            capsize=5,
            capthick=2,
            linewidth=2,
            markersize=8,
            label=label,
        )

    ax.set_xlabel("Number of Examples (n)", fontsize=12)
    ax.set_ylabel("Recovery Rate", fontsize=12)
    ax.set_title(title, fontsize=14)
    ax.set_ylim(0, 1.05)
    ax.legend(loc="best")
    ax.grid(True, alpha=0.3)
    ax.set_xticks(n_values)

    plt.tight_layout()
    plt.savefig(output_path, dpi=150, bbox_inches="tight")
    plt.close()


def generate_trajectory_plots(
    trajectory_results: dict[str, Any],
    example_sets: list[list[int]],
    output_dir: str | Path,
) -> dict[str, str]:
    """Generate all plots for a trajectory run.

    Args:
        trajectory_results: Return value of run_trajectory.
        example_sets: The configured example sets, in run order.
        output_dir: Directory to save plots.

    Returns:
        Dictionary mapping plot names to file paths.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    timestamp = trajectory_results["timestamp"]

    paths = {}

    traj_path = output_dir / f"pruning_trajectory_{timestamp}.png"
    plot_pruning_trajectory(trajectory_results["steps"], traj_path)
    paths["pruning_trajectory"] = str(traj_path)

    for set_idx, curve in trajectory_results["curves"].items():
        curve_path = output_dir / f"generalization_{set_idx}_{timestamp}.png"
        plot_generalization_curve(curve, example_sets[set_idx], curve_path)
        paths[f"generalization_{set_idx}"] = str(curve_path)

    return paths
