# =============================================================================
# distribution.py - Statistics over simulated revenue samples
#
# Leaf numeric routines with no knowledge of deals or iterations: percentile
# interpolation, descriptive statistics, equal-width histograms, symmetric
# confidence intervals and target survival probabilities.
#
# Sorting 200,000 samples is the most expensive step after the simulation
# itself, so functions that need ordered data accept `presorted=True` and
# the engine sorts exactly once.
# =============================================================================

import math
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np

from models import ConfidenceInterval, HistogramBin, SimulationSummary, TargetProbability

Samples = Union[Sequence[float], np.ndarray]


def sort_numbers(values: Samples) -> np.ndarray:
    """Ascending, stable sort. Returns a new array and leaves `values` untouched."""
    return np.sort(np.asarray(values, dtype=np.float64), kind="stable")


def percentile(sorted_values: Samples, p: float) -> float:
    """
    Linear-interpolated percentile of already sorted values, with p in [0, 1].

    The position is (n - 1) * p; the result interpolates between the values
    at its floor and ceiling. Empty input gives 0.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    if p <= 0:
        return float(sorted_values[0])
    if p >= 1:
        return float(sorted_values[n - 1])

    index = (n - 1) * p
    lower_index = math.floor(index)
    upper_index = math.ceil(index)
    weight = index - lower_index
    lower = float(sorted_values[lower_index])
    upper = float(sorted_values[upper_index])
    return lower + (upper - lower) * weight


def summary_statistics(samples: Samples, presorted: bool = False) -> SimulationSummary:
    """Mean, median, population standard deviation, extremes and the 10th/90th percentiles."""
    if len(samples) == 0:
        return SimulationSummary()

    ordered = np.asarray(samples, dtype=np.float64) if presorted else sort_numbers(samples)
    return SimulationSummary(
        mean=float(np.mean(ordered)),
        median=percentile(ordered, 0.5),
        standard_deviation=float(np.std(ordered)),  # ddof=0: population
        min=float(ordered[0]),
        max=float(ordered[-1]),
        percentile_10=percentile(ordered, 0.1),
        percentile_90=percentile(ordered, 0.9),
    )


def confidence_intervals(
    samples: Samples,
    levels: Iterable[float],
    presorted: bool = False,
) -> List[ConfidenceInterval]:
    """
    Central intervals: for level L the bounds are the (1-L)/2 and 1-(1-L)/2
    percentiles. Empty samples give a (0, 0) interval for every level.
    """
    if len(samples) == 0:
        return [ConfidenceInterval(level=level, lower=0.0, upper=0.0) for level in levels]

    ordered = np.asarray(samples, dtype=np.float64) if presorted else sort_numbers(samples)
    intervals = []
    for level in levels:
        tail = (1 - level) / 2
        intervals.append(
            ConfidenceInterval(
                level=level,
                lower=percentile(ordered, tail),
                upper=percentile(ordered, 1 - tail),
            )
        )
    return intervals


def histogram(samples: Samples, bin_count: int) -> List[HistogramBin]:
    """
    Partition [min, max] of the samples into `bin_count` equal-width bins.

    Bins are half-open except the last, whose upper edge is exactly max. When
    every sample is identical a single bin holds them all.
    """
    values = np.asarray(samples, dtype=np.float64)
    total = values.size
    if total == 0:
        return []

    low = float(values.min())
    high = float(values.max())
    if not (math.isfinite(low) and math.isfinite(high)):
        return []

    if low == high:
        return [HistogramBin(start=low, end=high, count=total, probability=1.0)]

    bins = max(1, int(bin_count))
    width = (high - low) / bins

    clipped = np.clip(values, low, high)
    indices = np.floor((clipped - low) / width).astype(np.int64)
    np.clip(indices, 0, bins - 1, out=indices)
    counts = np.bincount(indices, minlength=bins)

    result = []
    for index in range(bins):
        start = low + index * width
        end = high if index == bins - 1 else start + width
        count = int(counts[index])
        result.append(HistogramBin(start=start, end=end, count=count, probability=count / total))
    return result


def target_probabilities(
    sorted_samples: Samples,
    targets: Optional[Iterable[float]],
) -> List[TargetProbability]:
    """
    Survival probability P(revenue >= target) for each distinct finite target,
    in ascending target order.
    """
    targets = list(targets or ())
    total = len(sorted_samples)
    if not targets or total == 0:
        return []

    unique_targets = sorted({float(t) for t in targets if math.isfinite(t)})
    if not unique_targets:
        return []

    # side="left" finds the first sample >= target.
    first_hits = np.searchsorted(np.asarray(sorted_samples, dtype=np.float64), unique_targets, side="left")
    return [
        TargetProbability(target=target, probability=(total - int(index)) / total)
        for target, index in zip(unique_targets, first_hits)
    ]
