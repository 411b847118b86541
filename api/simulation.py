# =============================================================================
# simulation.py - Monte Carlo simulation engine
#
# This is the mathematical core of the service. It takes a list of deals
# (each with an amount and a win probability) and runs thousands of simulated
# "quarter-end" scenarios to produce a revenue distribution.
#
# HOW IT WORKS:
#   Every deal is a weighted coin. For each iteration we flip every coin in
#   deal order, add up the amounts of the deals that won, and record that
#   total as one revenue sample. After all iterations the samples are sorted
#   once and handed to the statistics and impact routines.
#
# WHY NUMPY?
#   A pure Python loop over 200,000 iterations × 500 deals is far too slow
#   for a request/response service. The seeded stream in rng.py can produce
#   any slice of draws directly, so we generate a block of iterations at a
#   time as a (rows, deals) matrix and compare it against the probability
#   vector in one step. Blocks are sized to keep memory flat regardless of
#   the iteration count.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from distribution import (
    confidence_intervals,
    histogram,
    sort_numbers,
    summary_statistics,
    target_probabilities,
)
from impacts import build_deal_impacts
from metadata import create_simulation_metadata, generate_run_id
from models import Deal, SimulationConfig, SimulationDefaults, SimulationResult
from normalization import (
    clamp_probability,
    normalize_confidence_levels,
    normalize_histogram_bin_count,
    normalize_iterations,
    normalize_seed,
    sanitize_amount,
)
from rng import uniform_block

logger = logging.getLogger(__name__)

# Upper bound on random draws materialized at once (8 MB of float64).
DRAWS_PER_BLOCK = 1_000_000


@dataclass
class TrialOutcome:
    """Raw output of the iteration loop, before any statistics are derived."""

    revenue_samples: np.ndarray
    win_counts: np.ndarray
    winning_iterations: List[np.ndarray]


def sanitize_deals(deals: Sequence[Deal]) -> List[Deal]:
    """
    Copies of `deals` that are safe to simulate: probability clamped to
    [0, 1], amount made finite and non-negative, and a `deal-<n>` id filled
    in where the caller gave none. The caller's objects are not modified.
    """
    sanitized = []
    for index, deal in enumerate(deals):
        deal_id = deal.id.strip() if deal.id and deal.id.strip() else f"deal-{index + 1}"
        sanitized.append(
            deal.model_copy(
                update={
                    "id": deal_id,
                    "amount": sanitize_amount(deal.amount),
                    "win_probability": clamp_probability(deal.win_probability),
                }
            )
        )
    return sanitized


def run_trials(deals: Sequence[Deal], iterations: int, seed: int) -> TrialOutcome:
    """
    Run `iterations` Bernoulli trials per deal.

    Draws are taken iteration by iteration, and within an iteration in deal
    order. Deals with a zero probability or zero amount can never add
    anything, so they are skipped and consume no draws. A deal wins when its
    draw is below its win probability.

    `deals` must already be sanitized.
    """
    iterations = max(0, int(iterations))
    revenue = np.zeros(iterations, dtype=np.float64)
    win_counts = np.zeros(len(deals), dtype=np.int64)
    winning_parts: List[List[np.ndarray]] = [[] for _ in deals]

    active = [i for i, deal in enumerate(deals) if deal.win_probability != 0 and deal.amount != 0]

    if active and iterations:
        amounts = np.array([deals[i].amount for i in active], dtype=np.float64)
        probabilities = np.array([deals[i].win_probability for i in active], dtype=np.float64)
        width = len(active)
        rows_per_block = max(1, DRAWS_PER_BLOCK // width)

        for first_row in range(0, iterations, rows_per_block):
            rows = min(rows_per_block, iterations - first_row)
            draws = uniform_block(seed, first_row * width, rows * width).reshape(rows, width)

            # won[r, c]: active deal c closed in iteration first_row + r
            won = draws < probabilities
            revenue[first_row:first_row + rows] = np.where(won, amounts, 0.0).sum(axis=1)
            win_counts[active] += won.sum(axis=0)

            for column, deal_index in enumerate(active):
                hits = np.flatnonzero(won[:, column])
                if hits.size:
                    winning_parts[deal_index].append(hits + first_row)

    winning_iterations = [
        np.concatenate(parts) if parts else np.empty(0, dtype=np.int64)
        for parts in winning_parts
    ]
    return TrialOutcome(
        revenue_samples=revenue,
        win_counts=win_counts,
        winning_iterations=winning_iterations,
    )


class PipelineSimulator:
    """
    Runs pipeline simulations against a fixed set of defaults.

    The defaults are passed in explicitly; the engine holds no other state,
    so one instance can serve any number of concurrent callers.
    """

    def __init__(self, defaults: Optional[SimulationDefaults] = None):
        self.defaults = defaults or SimulationDefaults()

    def simulate(
        self,
        deals: Sequence[Deal],
        config: Optional[SimulationConfig] = None,
    ) -> SimulationResult:
        """
        Orchestrate one full simulation and return the assembled result.

        Steps:
          1. Sanitize deals and normalize the config against the defaults
          2. Run the trials
          3. Sort once; derive histogram, summary, intervals and targets
          4. Attribute the distribution to deals (unless disabled)
          5. Stamp metadata
        """
        config = config or SimulationConfig()
        defaults = self.defaults

        # Step 1: Sanitize
        sanitized_deals = sanitize_deals(deals)
        iterations = normalize_iterations(config, default=defaults.iterations)
        levels = normalize_confidence_levels(
            config.confidence_levels,
            default=normalize_confidence_levels(defaults.confidence_levels),
        )
        bin_count = normalize_histogram_bin_count(
            config.histogram_bin_count, default=defaults.histogram_bin_count
        )
        seed = normalize_seed(config.seed)
        targets = (
            config.revenue_targets if config.revenue_targets is not None else defaults.revenue_targets
        )
        include_impacts = (
            config.include_deal_impacts
            if config.include_deal_impacts is not None
            else defaults.include_deal_impacts
        )

        logger.debug(
            "Simulating %d deals over %d iterations (seed=%d)", len(sanitized_deals), iterations, seed
        )

        # Step 2: Run the trials
        outcome = run_trials(sanitized_deals, iterations, seed)
        samples = outcome.revenue_samples

        # Step 3: Distribution statistics, all from one sort
        sorted_samples = sort_numbers(samples)
        intervals = confidence_intervals(sorted_samples, levels, presorted=True)
        bins = histogram(samples, bin_count)
        summary = summary_statistics(sorted_samples, presorted=True)
        target_analysis = target_probabilities(sorted_samples, targets)

        # Step 4: Deal attribution
        deal_impacts = []
        if include_impacts:
            deal_impacts = build_deal_impacts(
                deals=sanitized_deals,
                revenue_samples=samples,
                sorted_samples=sorted_samples,
                iterations=iterations,
                win_counts=outcome.win_counts,
                winning_iterations=outcome.winning_iterations,
            )

        # Step 5: Metadata
        metadata = create_simulation_metadata(
            config,
            iterations=iterations,
            seed=seed,
            run_id=generate_run_id(),
            deal_count=len(sanitized_deals),
        )
        logger.debug("Simulation %s complete: mean revenue %.2f", metadata.run_id, summary.mean)

        return SimulationResult(
            revenue_samples=samples.tolist(),
            histogram=bins,
            confidence_intervals=intervals,
            target_probabilities=target_analysis,
            deal_impacts=deal_impacts,
            summary=summary,
            metadata=metadata,
        )


def simulate_pipeline(
    deals: Sequence[Deal],
    config: Optional[SimulationConfig] = None,
) -> SimulationResult:
    """Simulate with the built-in defaults."""
    return PipelineSimulator().simulate(deals, config)
