"""Trajectory experiment.

For each configured example sequence, this experiment records how the
consistent hypothesis set shrinks as examples arrive, the generalization
curve after the full sequence, and the best synthesized program.
"""

import random
from typing import Any

import numpy as np
import pandas as pd
from tqdm import tqdm

from numbergame.config import Config
from numbergame.context import build_context
from numbergame.errors import NoConsistentHypothesis
from numbergame.generalization import generalization_stats, generalization_vector
from numbergame.inference import posterior_full, rank
from numbergame.metrics import kl_divergence
from numbergame.model import infer_by_sampling
from numbergame.priors import get_prior
from numbergame.sequential import pruning_trajectory
from numbergame.synthesis import synthesize
from numbergame.utils import ensure_dir, get_timestamp, save_jsonl


def _best_program(ctx, examples, config: Config) -> dict[str, Any]:
    concepts = synthesize(
        ctx,
        examples,
        max_results=config.synthesis.max_results,
        max_depth=config.synthesis.max_depth,
        strategy=config.synthesis.strategy,
        grammar=config.build_grammar(),
    )
    ranked = rank(ctx, concepts, examples, config.prior)
    if isinstance(ranked, NoConsistentHypothesis):
        return {"n_programs": len(concepts), "best_program": None, "best_program_prob": 0.0}
    return {
        "n_programs": len(concepts),
        "best_program": ranked.best.id,
        "best_program_prob": ranked.best.probability,
    }


def run_trajectory(
    config: Config,
    verbose: bool = True,
) -> dict[str, Any]:
    """Run the trajectory experiment.

    For each example set in config.experiment.example_sets:
    - Record the pruning trajectory over the base hypotheses
    - Compute the generalization curve for the full set
    - Synthesize programs and rank them under the configured prior
    - Compare against a sampling-based approximation

    Args:
        config: Experiment configuration.
        verbose: If True, print progress and show progress bars.

    Returns:
        Dictionary with 'results', 'steps', 'curves', 'output_paths' and
        'timestamp'.
    """
    rng = random.Random(config.seed)

    ctx = build_context(config.domain.size)
    uniform = get_prior("uniform")
    if verbose:
        print(f"Built {ctx.hypothesis_count} base hypotheses over 1..{ctx.domain.size}")
        print(f"Using prior: {config.prior.name}")

    results: list[dict[str, Any]] = []
    steps: list[dict[str, Any]] = []
    curves: dict[int, np.ndarray] = {}

    for set_idx, examples in enumerate(
        tqdm(config.experiment.example_sets, disable=not verbose, desc="Trajectories")
    ):
        label = ",".join(str(x) for x in examples)
        traj = pruning_trajectory(ctx, examples, config.prior, config.experiment.top_k)

        for step in traj["trajectory"]:
            top = step.get("top", [])
            steps.append(
                {
                    "set_idx": set_idx,
                    "examples": label,
                    "step": step["step"],
                    "after_example": step.get("after_example"),
                    "remaining_count": step["remaining_count"],
                    "eliminated": step["eliminated"],
                    "elimination_rate": step["elimination_rate"],
                    "top_hypothesis": top[0]["id"] if top else None,
                    "top_prob": top[0]["prob"] if top else None,
                }
            )

        curve = generalization_vector(ctx, examples, config.prior)
        if not isinstance(curve, NoConsistentHypothesis):
            curves[set_idx] = curve

        result: dict[str, Any] = {
            "set_idx": set_idx,
            "examples": label,
            **traj["summary"],
            **_best_program(ctx, examples, config),
        }

        stats = generalization_stats(ctx, examples, config.prior)
        result["effective_size"] = stats.get("effective_size")

        post = posterior_full(ctx, examples, config.prior)
        post_uniform = posterior_full(ctx, examples, uniform)
        if isinstance(post, np.ndarray) and isinstance(post_uniform, np.ndarray):
            result["kl_from_uniform"] = kl_divergence(post, post_uniform)

        sampled = infer_by_sampling(
            ctx,
            examples,
            config.experiment.n_samples,
            rng,
            grammar=config.build_grammar(),
        )
        result["sampling_acceptance_rate"] = sampled["acceptance_rate"]
        sampled_post = sampled["posterior"]
        result["sampling_best_program"] = None if not sampled_post else sampled_post.best.id

        results.append(result)

    output_dir = ensure_dir(config.output.dir)
    timestamp = get_timestamp()

    output_paths = {}

    if config.output.save_raw:
        raw_path = output_dir / f"trajectory_{timestamp}.jsonl"
        save_jsonl(results, raw_path)
        output_paths["raw"] = str(raw_path)
        if verbose:
            print(f"Saved raw results to {raw_path}")

    summary_path = output_dir / f"trajectory_{timestamp}_summary.csv"
    pd.DataFrame(results).to_csv(summary_path, index=False)
    output_paths["summary"] = str(summary_path)

    steps_path = output_dir / f"trajectory_{timestamp}_steps.csv"
    pd.DataFrame(steps).to_csv(steps_path, index=False)
    output_paths["steps"] = str(steps_path)
    if verbose:
        print(f"Saved pruning steps to {steps_path}")

    curves_path = output_dir / f"trajectory_{timestamp}_generalization.csv"
    df_curves = pd.DataFrame(
        {results[i]["examples"]: curve for i, curve in curves.items()},
        index=pd.Index(list(ctx.domain), name="number"),
    )
    df_curves.to_csv(curves_path)
    output_paths["generalization"] = str(curves_path)

    return {
        "results": results,
        "steps": steps,
        "curves": curves,
        "output_paths": output_paths,
        "timestamp": timestamp,
    }
