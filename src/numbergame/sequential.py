"""Sequential hypothesis pruning.

Rather than scoring all base hypotheses for every query, hypotheses that
cannot contain an example are dropped as each example arrives. This is
faster, and closer to how a learner watching examples one at a time might
narrow things down.
"""

from typing import Any, Iterable

from numbergame.context import Context
from numbergame.errors import NoConsistentHypothesis
from numbergame.index import consistent_hypotheses, sequential_filter
from numbergame.inference import posterior_efficient
from numbergame.priors import Prior


def pruning_trajectory(
    ctx: Context,
    examples: Iterable[int],
    prior: Prior | None = None,
    top_k: int = 3,
) -> dict[str, Any]:
    """Step-by-step record of how the consistent set shrinks.

    Args:
        ctx: Shared context.
        examples: Examples in presentation order.
        prior: Prior used for the per-step top hypotheses.
        top_k: How many top hypotheses to record per step.

    Returns:
        Dictionary with 'examples', 'trajectory' (one dict per prefix,
        including the empty prefix) and 'summary'.
    """
    examples = ctx.check_examples(examples)
    steps = sequential_filter(ctx.index, examples)
    initial = ctx.hypothesis_count

    trajectory = []
    for i, remaining in enumerate(steps):
        prev_count = initial if i == 0 else len(steps[i - 1])
        eliminated = prev_count - len(remaining)
        step: dict[str, Any] = {
            "step": i,
            "remaining_count": len(remaining),
            "eliminated": eliminated,
            "elimination_rate": eliminated / prev_count if prev_count else 0.0,
        }
        if i > 0:
            step["after_example"] = examples[i - 1]
            post = posterior_efficient(ctx, examples[:i], prior)
            if isinstance(post, NoConsistentHypothesis):
                step["top"] = []
            else:
                step["top"] = [
                    {"id": e.id, "size": e.size, "prob": e.probability}
                    for e in post.top(top_k)
                ]
        trajectory.append(step)

    final = len(steps[-1])
    return {
        "examples": list(examples),
        "trajectory": trajectory,
        "summary": {
            "initial_hypotheses": initial,
            "final_hypotheses": final,
            "total_eliminated": initial - final,
            "efficiency_gain": initial / max(1, final),
        },
    }


def eliminated_at_step(ctx: Context, examples: Iterable[int], step_idx: int) -> frozenset[int]:
    """Ids of hypotheses eliminated by the example at position step_idx."""
    examples = ctx.check_examples(examples)
    if not 0 <= step_idx < len(examples):
        raise IndexError(f"step_idx {step_idx} out of range for {len(examples)} examples")
    steps = sequential_filter(ctx.index, examples[: step_idx + 1])
    return steps[step_idx] - steps[step_idx + 1]


def sample_eliminated(ctx: Context, examples: Iterable[int], step_idx: int, n: int) -> list[str]:
    """Ids (as strings) of up to n hypotheses eliminated at a step."""
    eliminated = sorted(eliminated_at_step(ctx, examples, step_idx))
    return [ctx.hypotheses[i].id for i in eliminated[:n]]


def expected_elimination(ctx: Context, current: frozenset[int], n: int) -> int:
    """How many of the current hypotheses observing n would eliminate."""
    return len(current) - len(current & ctx.index.containing(n))


def most_informative_examples(
    ctx: Context,
    examples: Iterable[int],
    top_k: int = 10,
) -> list[dict[str, int]]:
    """Numbers that would eliminate the most currently consistent hypotheses.

    Only numbers contained in at least one consistent hypothesis are
    considered, since anything else would eliminate everything.
    """
    examples = ctx.check_examples(examples)
    remaining = consistent_hypotheses(ctx.index, examples)
    candidates: set[int] = set()
    for idx in remaining:
        candidates |= ctx.hypotheses[idx].members

    scored = [
        {"number": n, "would_eliminate": expected_elimination(ctx, remaining, n)}
        for n in candidates
    ]
    scored.sort(key=lambda d: (-d["would_eliminate"], d["number"]))
    return scored[:top_k]
