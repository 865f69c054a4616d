"""Command-line interface for the number game."""

from pathlib import Path
from typing import Optional

import typer

from numbergame.config import Config, load_config
from numbergame.context import Context, build_context
from numbergame.errors import InvalidExamples, NoConsistentHypothesis
from numbergame.experiments.recovery import run_recovery
from numbergame.experiments.trajectory import run_trajectory
from numbergame.generalization import generalization_stats, most_likely_members
from numbergame.inference import rank
from numbergame.plotting import generate_trajectory_plots, plot_recovery_curve
from numbergame.priors import get_prior
from numbergame.sequential import most_informative_examples, pruning_trajectory
from numbergame.synthesis import data_to_constraints, synthesize
from numbergame.utils import parse_examples, setup_environment

app = typer.Typer(
    name="numbergame",
    help="Number game: Bayesian concept learning over 1..100.",
    add_completion=False,
)

DEFAULT_CONFIG = Path("configs/default.yaml")

CONFIG_OPTION = typer.Option(
    DEFAULT_CONFIG,
    "--config",
    "-c",
    help="Path to configuration YAML file.",
)
PRIOR_OPTION = typer.Option(
    None,
    "--prior",
    "-p",
    help="Named prior (overrides config).",
)


def _setup(config: Path, prior: Optional[str] = None) -> Config:
    setup_environment()
    # Without the shipped config file, fall back to built-in defaults
    cfg = Config() if config == DEFAULT_CONFIG and not config.exists() else load_config(config)
    if prior is not None:
        try:
            cfg.prior = get_prior(prior)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--prior") from e
    return cfg


def _examples(ctx: Context, text: str) -> list[int]:
    try:
        examples = parse_examples(text)
        ctx.check_examples(examples, allow_empty=False)
    except (InvalidExamples, ValueError) as e:
        raise typer.BadParameter(str(e), param_hint="EXAMPLES") from e
    return examples


def _synthesize(ctx: Context, examples: list[int], cfg: Config, strategy: Optional[str], depth: Optional[int]):
    return synthesize(
        ctx,
        examples,
        max_results=cfg.synthesis.max_results,
        max_depth=cfg.synthesis.max_depth if depth is None else depth,
        strategy=strategy or cfg.synthesis.strategy,
        grammar=cfg.build_grammar(),
    )


@app.command("synthesize")
def cmd_synthesize(
    examples: str = typer.Argument(..., help="Examples, e.g. '16,8,2,64'."),
    config: Path = CONFIG_OPTION,
    strategy: Optional[str] = typer.Option(None, "--strategy", help="exact, guided or indexed."),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Combinator depth bound."),
    limit: int = typer.Option(50, "--limit", "-n", help="How many programs to print."),
) -> None:
    """List programs consistent with the examples."""
    cfg = _setup(config)
    ctx = build_context(cfg.domain.size)
    xs = _examples(ctx, examples)

    constraints = data_to_constraints(xs, cfg.build_grammar())
    typer.echo(
        f"Range {constraints.min}..{constraints.max}  gcd={constraints.gcd}  "
        f"bases={list(constraints.possible_bases)}  multiples={list(constraints.possible_multiples)}"
    )

    concepts = _synthesize(ctx, xs, cfg, strategy, depth)
    typer.echo(f"Found {len(concepts)} consistent programs")
    for concept in concepts[:limit]:
        typer.echo(f"  {concept}  (size {ctx.evaluator.size(concept)})")


@app.command("rank")
def cmd_rank(
    examples: str = typer.Argument(..., help="Examples, e.g. '16,8,2,64'."),
    config: Path = CONFIG_OPTION,
    prior: Optional[str] = PRIOR_OPTION,
    strategy: Optional[str] = typer.Option(None, "--strategy", help="exact, guided or indexed."),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Combinator depth bound."),
    top_k: int = typer.Option(10, "--top-k", "-k", help="How many programs to print."),
) -> None:
    """Synthesize programs and rank them by posterior probability."""
    cfg = _setup(config, prior)
    ctx = build_context(cfg.domain.size)
    xs = _examples(ctx, examples)

    concepts = _synthesize(ctx, xs, cfg, strategy, depth)
    result = rank(ctx, concepts, xs, cfg.prior)
    if isinstance(result, NoConsistentHypothesis):
        typer.echo(result.reason)
        raise typer.Exit(code=1)

    typer.echo(f"Prior: {cfg.prior.name}  Candidates: {len(result)}")
    for i, entry in enumerate(result.top(top_k), start=1):
        typer.echo(f"  {i:2d}. {entry.id:<40s} p={entry.probability:.4f}  size={entry.size}")


@app.command("generalize")
def cmd_generalize(
    examples: str = typer.Argument(..., help="Examples, e.g. '16,8,2,64'."),
    config: Path = CONFIG_OPTION,
    prior: Optional[str] = PRIOR_OPTION,
    top_k: int = typer.Option(20, "--top-k", "-k", help="How many numbers to print."),
) -> None:
    """Show the numbers most likely to share the examples' concept."""
    cfg = _setup(config, prior)
    ctx = build_context(cfg.domain.size)
    xs = _examples(ctx, examples)

    members = most_likely_members(ctx, xs, top_k, cfg.prior)
    if isinstance(members, NoConsistentHypothesis):
        typer.echo(members.reason)
        raise typer.Exit(code=1)

    stats = generalization_stats(ctx, xs, cfg.prior)
    typer.echo(f"Effective size: {stats['effective_size']:.1f}  Above 0.5: {stats['above_50']}")
    for number, p in members:
        typer.echo(f"  {number:3d}  {p:.4f}")


@app.command("prune")
def cmd_prune(
    examples: str = typer.Argument(..., help="Examples, in presentation order."),
    config: Path = CONFIG_OPTION,
    prior: Optional[str] = PRIOR_OPTION,
) -> None:
    """Show how each example narrows the consistent hypotheses."""
    cfg = _setup(config, prior)
    ctx = build_context(cfg.domain.size)
    xs = _examples(ctx, examples)

    traj = pruning_trajectory(ctx, xs, cfg.prior, cfg.experiment.top_k)
    for step in traj["trajectory"]:
        seen = step.get("after_example", "-")
        top = ", ".join(f"{t['id']} ({t['prob']:.3f})" for t in step.get("top", []))
        typer.echo(
            f"  step {step['step']:2d}  after {seen!s:>3}  "
            f"remaining={step['remaining_count']:5d}  eliminated={step['eliminated']:5d}  {top}"
        )

    summary = traj["summary"]
    typer.echo()
    typer.echo(
        f"{summary['initial_hypotheses']} -> {summary['final_hypotheses']} hypotheses "
        f"(efficiency gain {summary['efficiency_gain']:.1f}x)"
    )

    informative = most_informative_examples(ctx, xs, top_k=5)
    if informative:
        typer.echo("Most informative next examples:")
        for item in informative:
            typer.echo(f"  {item['number']:3d} would eliminate {item['would_eliminate']}")


@app.command("run-trajectory")
def cmd_run_trajectory(
    config: Path = CONFIG_OPTION,
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        "-s",
        help="Random seed (overrides config).",
    ),
    no_plots: bool = typer.Option(
        False,
        "--no-plots",
        help="Skip generating plots.",
    ),
) -> None:
    """Run the trajectory experiment over the configured example sets."""
    typer.echo(f"Loading configuration from {config}")
    cfg = _setup(config)

    if seed is not None:
        cfg.seed = seed
        typer.echo(f"Using seed: {seed}")

    typer.echo(f"Example sets: {len(cfg.experiment.example_sets)}")
    typer.echo()

    results = run_trajectory(cfg, verbose=True)

    typer.echo()
    typer.echo("Results summary:")
    for r in results["results"]:
        typer.echo(
            f"  [{r['examples']}]: {r['final_hypotheses']} consistent, "
            f"best program {r['best_program']} (p={r['best_program_prob']:.3f})"
        )

    if not no_plots and cfg.output.save_plots:
        typer.echo()
        typer.echo("Generating plots...")
        paths = generate_trajectory_plots(results, cfg.experiment.example_sets, cfg.output.dir)
        for name, path in paths.items():
            typer.echo(f"  {name}: {path}")

    typer.echo()
    typer.echo("Done!")


@app.command("run-recovery")
def cmd_run_recovery(
    config: Path = CONFIG_OPTION,
    seed: Optional[int] = typer.Option(
        None,
        "--seed",
        "-s",
        help="Random seed (overrides config).",
    ),
    no_plots: bool = typer.Option(
        False,
        "--no-plots",
        help="Skip generating plots.",
    ),
) -> None:
    """Run the recovery experiment: simulate, infer back, sweep n."""
    typer.echo(f"Loading configuration from {config}")
    cfg = _setup(config)

    if seed is not None:
        cfg.seed = seed
        typer.echo(f"Using seed: {seed}")

    typer.echo(f"Prior: {cfg.prior.name}")
    typer.echo()

    results = run_recovery(cfg, verbose=True)

    typer.echo()
    typer.echo("Results summary:")
    for n, agg in sorted(results["aggregated"].items()):
        typer.echo(
            f"  n={n:2d}: recovered={agg['mean_recovered']:.3f} +/- {agg['stderr_recovered']:.3f}"
        )

    if not no_plots and cfg.output.save_plots:
        typer.echo()
        typer.echo("Generating plots...")
        path = Path(cfg.output.dir) / f"recovery_{results['timestamp']}.png"
        plot_recovery_curve(results["aggregated"], path)
        typer.echo(f"  Saved: {path}")

    typer.echo()
    typer.echo("Done!")


if __name__ == "__main__":
    app()
