# =============================================================================
# config.py - Application configuration
#
# All tunable settings are defined here using Pydantic's BaseSettings, so
# every value can be overridden via environment variable (or a .env file)
# without touching code.
#
# The simulation engine itself never reads these settings. The service turns
# them into an explicit SimulationDefaults value and hands that to the
# PipelineSimulator constructor.
# =============================================================================

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

from models import SimulationDefaults


class Settings(BaseSettings):
    # ── Server ────────────────────────────────────────────────────────────────
    port: int = 8000
    host: str = "0.0.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # ── Simulation defaults ───────────────────────────────────────────────────
    # 10,000 iterations keeps a typical pipeline well under a second.
    default_iterations: int = 10_000
    default_histogram_bin_count: int = 40
    default_confidence_levels: List[float] = [0.5, 0.8, 0.95]
    default_include_deal_impacts: bool = True

    # Targets reported when a request does not name its own.
    default_revenue_targets: List[float] = [
        100_000,
        200_000,
        300_000,
    ]

    # ── CORS: which origins can call this API ─────────────────────────────────
    allowed_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    # ── API metadata ──────────────────────────────────────────────────────────
    api_title: str = "Pipeline Monte Carlo API"
    api_version: str = "0.1.0"
    api_description: str = (
        "Stateless Monte Carlo simulation of closed revenue across a sales pipeline. "
        "Returns the revenue distribution, confidence intervals, target hit-probabilities "
        "and per-deal impact analytics."
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    def simulation_defaults(self) -> SimulationDefaults:
        """Engine defaults derived from these settings."""
        return SimulationDefaults(
            iterations=self.default_iterations,
            confidence_levels=list(self.default_confidence_levels),
            histogram_bin_count=self.default_histogram_bin_count,
            revenue_targets=list(self.default_revenue_targets),
            include_deal_impacts=self.default_include_deal_impacts,
        )


@lru_cache
def get_settings() -> Settings:
    return Settings()
