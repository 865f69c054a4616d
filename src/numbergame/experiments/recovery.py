"""Recovery experiment.

Sweeps the number of examples n. For each n, hypotheses are drawn from the
prior, n examples are sampled from each, and the MAP hypothesis under the
same prior is compared with the one that generated the data.
"""

import random
from typing import Any

import pandas as pd
from tqdm import tqdm

from numbergame.config import Config
from numbergame.context import build_context
from numbergame.metrics import aggregate_by_n, compute_correlation
from numbergame.model import simulate_and_infer
from numbergame.utils import ensure_dir, get_timestamp


def run_recovery(
    config: Config,
    verbose: bool = True,
) -> dict[str, Any]:
    """Run the recovery experiment.

    Args:
        config: Experiment configuration.
        verbose: If True, print progress and show progress bars.

    Returns:
        Dictionary with 'results', 'aggregated', 'size_correlation',
        'output_paths' and 'timestamp'.
    """
    rng = random.Random(config.seed)

    ctx = build_context(config.domain.size)
    n_values = config.experiment.n_examples
    n_repeats = config.experiment.n_repeats
    if verbose:
        print(f"n values: {n_values}")
        print(f"Repeats per n: {n_repeats}")

    results: list[dict[str, Any]] = []
    pbar = tqdm(total=len(n_values) * n_repeats, disable=not verbose, desc="Recovery")

    for n in n_values:
        pbar.set_description(f"n={n}")
        for repeat in range(n_repeats):
            record = simulate_and_infer(ctx, n, config.prior, rng)
            record["repeat"] = repeat
            record["examples"] = ",".join(str(x) for x in record["examples"])
            results.append(record)
            pbar.update(1)

    pbar.close()

    aggregated = aggregate_by_n(results, value_key="recovered")
    by_extension = aggregate_by_n(results, value_key="recovered_extension")
    map_probs = aggregate_by_n(results, value_key="map_prob")
    for n, agg in aggregated.items():
        agg.update({k: v for k, v in by_extension[n].items() if k.endswith("recovered_extension")})
        agg.update({k: v for k, v in map_probs[n].items() if k.endswith("map_prob")})

    # Smaller generating concepts should be recovered with more confidence
    size_correlation = compute_correlation(
        [r["true_size"] for r in results],
        [r["map_prob"] for r in results],
    )

    output_dir = ensure_dir(config.output.dir)
    timestamp = get_timestamp()

    output_paths = {}

    if config.output.save_raw:
        raw_path = output_dir / f"recovery_{timestamp}.csv"
        pd.DataFrame(results).to_csv(raw_path, index=False)
        output_paths["raw"] = str(raw_path)
        if verbose:
            print(f"Saved raw results to {raw_path}")

    agg_path = output_dir / f"recovery_{timestamp}_agg.csv"
    pd.DataFrame(list(aggregated.values())).to_csv(agg_path, index=False)
    output_paths["aggregated"] = str(agg_path)
    if verbose:
        print(f"Saved aggregated results to {agg_path}")

    return {
        "results": results,
        "aggregated": aggregated,
        "size_correlation": size_correlation,
        "output_paths": output_paths,
        "timestamp": timestamp,
    }
