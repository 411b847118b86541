# =============================================================================
# impacts.py - Per-deal attribution of simulated revenue
#
# For every deal:
#   expected_value        = f × amount
#   variance_contribution = amount² × f × (1 - f)
#   sensitivity           = share of all iterations where this deal won AND
#                           its amount alone carried total revenue from below
#                           the 80th percentile to at or above it
# where f is the deal's observed win frequency.
#
# Sensitivity looks at each deal on its own, even when several deals win in
# the same iteration. It is an approximation, not a joint attribution.
# =============================================================================

from typing import List, Sequence

import numpy as np

from distribution import Samples, percentile
from models import Deal, DealImpact

TAIL_PERCENTILE = 0.8


def build_deal_impacts(
    deals: Sequence[Deal],
    revenue_samples: Samples,
    sorted_samples: Samples,
    iterations: int,
    win_counts: Sequence[int],
    winning_iterations: Sequence[np.ndarray],
) -> List[DealImpact]:
    """
    Attribute the simulated distribution to individual deals.

    `deals` must be the engine's sanitized copies (clamped probability and
    amount, ids assigned). `win_counts[i]` and `winning_iterations[i]` belong
    to `deals[i]`.
    """
    if not deals or iterations <= 0:
        return []

    samples = np.asarray(revenue_samples, dtype=np.float64)
    tail_threshold = percentile(sorted_samples, TAIL_PERCENTILE)

    impacts = []
    for index, deal in enumerate(deals):
        wins = int(win_counts[index]) if index < len(win_counts) else 0
        win_frequency = wins / iterations

        won_in = winning_iterations[index] if index < len(winning_iterations) else None
        sensitivity_hits = 0
        if won_in is not None and len(won_in):
            revenue = samples[won_in]
            crossed = (revenue >= tail_threshold) & (revenue - deal.amount < tail_threshold)
            sensitivity_hits = int(np.count_nonzero(crossed))

        impacts.append(
            DealImpact(
                deal_id=deal.id or "",
                expected_value=win_frequency * deal.amount,
                variance_contribution=deal.amount * deal.amount * win_frequency * (1 - win_frequency),
                sensitivity=sensitivity_hits / iterations,
            )
        )
    return impacts
