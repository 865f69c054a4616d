"""Metrics computation for experiment analysis."""

import numpy as np
from scipy import stats


def compute_mean(values: list[float]) -> float:
    """Compute the mean of a list of values.

    Args:
        values: Values to average.

    Returns:
        Mean value (0.0 for an empty list).
    """
    if not values:
        return 0.0
    return float(np.mean(values))


def compute_std(values: list[float]) -> float:
    """Sample standard deviation (0.0 for fewer than two values)."""
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1))


def compute_stderr(values: list[float]) -> float:
    """Compute the standard error of the mean.

    Args:
        values: Sample values.

    Returns:
        Standard error of the mean.
    """
    if len(values) < 2:
        return 0.0
    return float(np.std(values, ddof=1) / np.sqrt(len(values)))


def compute_correlation(
    x: list[float],
    y: list[float],
) -> dict[str, float]:
    """Compute Pearson and Spearman correlations between two variables.

    Used to line model generalization probabilities up against ratings.

    Args:
        x: First variable values.
        y: Second variable values.

    Returns:
        Dictionary with 'pearson_r', 'pearson_p', 'spearman_r', 'spearman_p'.
    """
    null = {
        "pearson_r": 0.0,
        "pearson_p": 1.0,
        "spearman_r": 0.0,
        "spearman_p": 1.0,
    }
    if len(x) < 3 or len(y) < 3:
        return null

    x_arr = np.array(x, dtype=float)
    y_arr = np.array(y, dtype=float)

    # Correlation is undefined for constant input
    if np.std(x_arr) == 0 or np.std(y_arr) == 0:
        return null

    pearson_r, pearson_p = stats.pearsonr(x_arr, y_arr)
    spearman_r, spearman_p = stats.spearmanr(x_arr, y_arr)

    return {
        "pearson_r": float(pearson_r),
        "pearson_p": float(pearson_p),
        "spearman_r": float(spearman_r),
        "spearman_p": float(spearman_p),
    }


def kl_divergence(p: np.ndarray, q: np.ndarray) -> float:
    """KL(p || q) in nats between two posteriors over the same hypotheses.

    Returns inf when p puts mass where q has none.
    """
    p_arr = np.asarray(p, dtype=float)
    q_arr = np.asarray(q, dtype=float)
    if p_arr.shape != q_arr.shape:
        raise ValueError(f"Shape mismatch: {p_arr.shape} vs {q_arr.shape}")
    return float(stats.entropy(p_arr, q_arr))


def aggregate_by_n(
    results: list[dict],
    n_key: str = "n_examples",
    value_key: str = "recovered",
) -> dict[int, dict]:
    """Aggregate results by number of examples.

    Args:
        results: List of result dictionaries.
        n_key: Key for the example count in results.
        value_key: Key for the value to aggregate (booleans count as 0/1).

    Returns:
        Dictionary mapping n to aggregated statistics.
    """
    by_n: dict[int, list[float]] = {}

    for result in results:
        by_n.setdefault(result[n_key], []).append(float(result[value_key]))

    aggregated = {}
    for n, values in sorted(by_n.items()):
        aggregated[n] = {
            "n_examples": n,
            f"mean_{value_key}": compute_mean(values),
            f"std_{value_key}": compute_std(values),
            f"stderr_{value_key}": compute_stderr(values),
            "n_samples": len(values),
        }

    return aggregated
