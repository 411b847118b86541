# =============================================================================
# charts.py - Presentation helpers for simulation results
#
# Turns histogram bins into parallel label/value/tooltip lists that a chart
# library can plot directly, and formats probabilities for display.
# =============================================================================

import math
from typing import List, Sequence

from pydantic import BaseModel

from models import HistogramBin


class HistogramChartData(BaseModel):
    labels: List[str]
    values: List[float]
    tooltips: List[str]


def format_currency(value: float) -> str:
    """Whole-number amount with thousands separators, e.g. 1,250,000."""
    return f"{value:,.0f}"


def format_range(start: float, end: float) -> str:
    if start == end:
        return format_currency(start)
    return f"{format_currency(start)} – {format_currency(end)}"


def format_probability(probability: float) -> str:
    """Human-readable probability, e.g. '72.4%'."""
    return f"{probability * 100:.1f}%"


def _clamp_percentage(value: float) -> float:
    if not math.isfinite(value) or value < 0:
        return 0.0
    return min(value, 100.0)


def build_histogram_chart_data(bins: Sequence[HistogramBin]) -> HistogramChartData:
    """
    Bar-chart series for a histogram. Values are percentages (0-100) of the
    total sample count.
    """
    labels: List[str] = []
    values: List[float] = []
    tooltips: List[str] = []

    for bin_ in bins:
        label = format_range(bin_.start, bin_.end)
        percentage = _clamp_percentage(bin_.probability * 100)

        labels.append(label)
        values.append(percentage)
        tooltips.append(f"{label} • {percentage:.1f}% ({bin_.count:,} samples)")

    return HistogramChartData(labels=labels, values=values, tooltips=tooltips)
