# =============================================================================
# metadata.py - Run bookkeeping
#
# Stamps each simulation with the iteration count and seed actually used,
# a UTC timestamp, the engine version and a unique run id. duration_ms is
# left for the caller, which is the only party that can measure the whole
# request.
# =============================================================================

import random
import string
import uuid
from datetime import datetime, timezone
from typing import Optional

from models import SimulationConfig, SimulationMetadata
from normalization import normalize_iterations, normalize_seed

SIMULATION_VERSION = "0.1.0-dev"

_BASE36 = string.digits + string.ascii_lowercase
_fallback_random = random.Random()


def generate_run_id(prefix: str = "simulation") -> str:
    """
    `<prefix>-<uuid4>`. When the OS has no randomness source, fall back to an
    8-character base-36 suffix from a process-local generator.
    """
    try:
        suffix = str(uuid.uuid4())
    except NotImplementedError:
        suffix = "".join(_fallback_random.choice(_BASE36) for _ in range(8))
    return f"{prefix}-{suffix}"


def create_simulation_metadata(
    config: Optional[SimulationConfig] = None,
    *,
    iterations: Optional[int] = None,
    seed: Optional[int] = None,
    generated_at: Optional[datetime] = None,
    version: str = SIMULATION_VERSION,
    run_id: Optional[str] = None,
    duration_ms: Optional[float] = None,
    deal_count: int = 0,
) -> SimulationMetadata:
    """
    Explicit keyword values win; anything left out is derived from `config`
    the same way the engine would derive it.
    """
    return SimulationMetadata(
        iterations=iterations if iterations is not None else normalize_iterations(config),
        seed=seed if seed is not None else normalize_seed(config.seed if config else None),
        generated_at=generated_at or datetime.now(timezone.utc),
        version=version,
        run_id=run_id,
        duration_ms=duration_ms,
        deal_count=deal_count,
    )
