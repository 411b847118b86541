# =============================================================================
# rng.py - Seeded pseudo-random stream
#
# A small 32-bit counter-and-mix generator: the state advances by a fixed odd
# increment on every draw, and the new state is pushed through two
# xor-shift/multiply rounds. The output is normalized into [0, 1).
#
# Because draw k depends only on (seed + (k + 1) * increment), any slice of
# the stream can be produced directly. uniform_block() uses that to generate
# a whole block of draws with NumPy instead of one Python call per draw.
#
# NOT cryptographically secure. Simulation variance only.
# =============================================================================

from typing import Callable

import numpy as np

RandomGenerator = Callable[[], float]

UINT32_MASK = 0xFFFFFFFF
STATE_INCREMENT = 0x6D2B79F5
_TWO_POW_32 = float(2**32)


def _mix(state: int) -> int:
    t = ((state ^ (state >> 15)) * (state | 1)) & UINT32_MASK
    t ^= (t + ((t ^ (t >> 7)) * (t | 61))) & UINT32_MASK
    return (t ^ (t >> 14)) & UINT32_MASK


def create_seeded_rng(seed: int) -> RandomGenerator:
    """
    Return a generator function yielding reproducible floats in [0, 1).

    Two generators built from the same seed produce the same sequence; they
    share no state with each other.
    """
    state = int(seed) & UINT32_MASK

    def next_value() -> float:
        nonlocal state
        state = (state + STATE_INCREMENT) & UINT32_MASK
        return _mix(state) / _TWO_POW_32

    return next_value


def uniform_block(seed: int, start: int, count: int) -> np.ndarray:
    """
    Draws start .. start+count-1 of the stream for `seed`, as a float64 array.

    Equivalent to calling create_seeded_rng(seed) start+count times and
    keeping the last `count` values.
    """
    if count <= 0:
        return np.empty(0, dtype=np.float64)

    # uint64 throughout: every product below is of two values < 2**32.
    mask = np.uint64(UINT32_MASK)
    steps = np.arange(start + 1, start + count + 1, dtype=np.uint64)
    state = (np.uint64(int(seed) & UINT32_MASK) + steps * np.uint64(STATE_INCREMENT)) & mask

    t = ((state ^ (state >> np.uint64(15))) * (state | np.uint64(1))) & mask
    t ^= (t + (((t ^ (t >> np.uint64(7))) * (t | np.uint64(61))) & mask)) & mask
    t = (t ^ (t >> np.uint64(14))) & mask

    return t.astype(np.float64) / _TWO_POW_32
