# =============================================================================
# normalization.py - Input sanitizing for the simulation engine
#
# Every function here is total: whatever it is handed (None, NaN, infinity,
# a string, a negative number) it returns a value inside the engine's
# operating range. The engine clamps rather than rejects; strict rejection
# with diagnostics is the HTTP layer's job (see models.SimulationRequest).
# =============================================================================

import math
import time
from numbers import Integral, Real
from typing import Any, Iterable, List, Optional

from models import SimulationConfig

DEFAULT_SIMULATION_ITERATIONS = 10_000
MIN_SIMULATION_ITERATIONS = 100
MAX_SIMULATION_ITERATIONS = 200_000

DEFAULT_CONFIDENCE_LEVELS = (0.5, 0.8, 0.95)

DEFAULT_HISTOGRAM_BIN_COUNT = 40
MIN_HISTOGRAM_BIN_COUNT = 5
MAX_HISTOGRAM_BIN_COUNT = 200

UINT32_MAX = 0xFFFFFFFF


def _finite_number(value: Any) -> Optional[float]:
    """`value` as a float when it is a finite real number, else None. Booleans don't count."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    try:
        number = float(value)
    except OverflowError:
        # Integers past float range count as infinite.
        return None
    return number if math.isfinite(number) else None


def _exact_integer(value: Any) -> bool:
    return isinstance(value, Integral) and not isinstance(value, bool)


def clamp_integer(value: Any, minimum: int, maximum: int) -> int:
    """Floor `value` and clamp it into [minimum, maximum]. Non-finite input maps to `minimum`."""
    if _exact_integer(value):
        return min(max(int(value), minimum), maximum)
    number = _finite_number(value)
    if number is None:
        return minimum
    return int(math.floor(min(max(number, minimum), maximum)))


def clamp_probability(value: Any) -> float:
    number = _finite_number(value)
    if number is None:
        return 0.0
    return min(max(number, 0.0), 1.0)


def sanitize_amount(value: Any) -> float:
    """Deal amounts are non-negative and finite; anything else contributes nothing."""
    number = _finite_number(value)
    if number is None or number < 0:
        return 0.0
    return number


def normalize_iterations(
    config: Optional[SimulationConfig] = None,
    default: int = DEFAULT_SIMULATION_ITERATIONS,
) -> int:
    iterations = config.iterations if config is not None else None
    if iterations is None:
        iterations = default
    return clamp_integer(iterations, MIN_SIMULATION_ITERATIONS, MAX_SIMULATION_ITERATIONS)


def normalize_confidence_levels(
    levels: Optional[Iterable[Any]] = None,
    default: Iterable[float] = DEFAULT_CONFIDENCE_LEVELS,
) -> List[float]:
    """
    Sorted, de-duplicated confidence levels strictly inside (0, 1).

    Falls back to `default` when nothing usable is supplied.
    """
    if isinstance(levels, (str, bytes)) or not isinstance(levels, Iterable):
        levels = ()

    usable = set()
    for level in levels:
        number = _finite_number(level)
        if number is not None and 0 < number < 1:
            usable.add(number)

    if not usable:
        return sorted(default)
    return sorted(usable)


def normalize_histogram_bin_count(
    bin_count: Any = None,
    default: int = DEFAULT_HISTOGRAM_BIN_COUNT,
) -> int:
    if not _exact_integer(bin_count) and _finite_number(bin_count) is None:
        bin_count = default
    return clamp_integer(bin_count, MIN_HISTOGRAM_BIN_COUNT, MAX_HISTOGRAM_BIN_COUNT)


def normalize_seed(seed: Any = None) -> int:
    """
    An unsigned 32-bit seed. A finite, non-negative input is floored and
    wrapped; anything else is derived from the wall clock.
    """
    # Integers are wrapped exactly, however large; floats above 2**53 have already lost precision.
    if _exact_integer(seed):
        if seed >= 0:
            return int(seed) & UINT32_MAX
    else:
        number = _finite_number(seed)
        if number is not None and number >= 0:
            return int(math.floor(number)) & UINT32_MAX
    return int(time.time() * 1000) % UINT32_MAX
