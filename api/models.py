# =============================================================================
# models.py - Data models
#
# Pydantic v2 models for three audiences:
#
#   * Core models (Deal, SimulationConfig, SimulationDefaults) are what the
#     simulation engine accepts. They carry no range constraints: the engine
#     clamps out-of-range values instead of rejecting them.
#   * Result models (SimulationResult and friends) are plain data handed back
#     to the caller. model_dump() gives a JSON-ready dict.
#   * Boundary models (DealInput, SimulationRequest, ...) are the strict HTTP
#     contract. A payload that violates them never reaches the engine.
# =============================================================================

import re
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_DEALS = 500
MAX_DEAL_AMOUNT = 1_000_000_000
MAX_SEED = 2**53 - 1

ISO_DATE_REGEX = re.compile(
    r"^\d{4}-\d{2}-\d{2}(?:[T ]\d{2}:\d{2}:\d{2}(?:\.\d{1,3})?(?:Z|[-+]\d{2}:\d{2})?)?$"
)


# ─── Core Input Models ────────────────────────────────────────────────────────

class Deal(BaseModel):
    """
    A single pipeline deal.

    Only `amount` and `win_probability` take part in the computation. The
    close date, stage, owner and notes are carried for the caller's benefit.
    """

    id: Optional[str] = None
    name: str = ""
    amount: float = 0.0
    win_probability: float = 0.0
    expected_close_date: str = ""
    stage: Optional[str] = None
    owner: Optional[str] = None
    notes: Optional[str] = None


class SimulationConfig(BaseModel):
    """
    Per-run overrides. Every field is optional; missing fields fall back to
    the engine's SimulationDefaults, and present ones are clamped into range.
    """

    iterations: Optional[float] = None
    seed: Optional[Union[int, float]] = None
    revenue_targets: Optional[List[float]] = None
    confidence_levels: Optional[List[float]] = None
    histogram_bin_count: Optional[float] = None
    include_deal_impacts: Optional[bool] = None


class SimulationDefaults(BaseModel):
    """Fallback values the engine applies when a SimulationConfig leaves a field unset."""

    iterations: int = 10_000
    confidence_levels: List[float] = Field(default_factory=lambda: [0.5, 0.8, 0.95])
    histogram_bin_count: int = 40
    revenue_targets: List[float] = Field(default_factory=list)
    include_deal_impacts: bool = True


# ─── Result Models ────────────────────────────────────────────────────────────

class HistogramBin(BaseModel):
    """One equal-width bucket, [start, end). The last bucket also includes `end`."""

    start: float
    end: float
    count: int
    probability: float = Field(description="Probability mass in this bucket (count / total samples).")


class ConfidenceInterval(BaseModel):
    level: float
    lower: float
    upper: float


class TargetProbability(BaseModel):
    target: float
    probability: float = Field(description="Fraction of iterations that met or exceeded the target.")


class DealImpact(BaseModel):
    deal_id: str
    expected_value: float = Field(description="Observed win frequency × amount.")
    variance_contribution: float = Field(
        description="amount² × f × (1 - f), the Bernoulli variance at the observed win frequency f."
    )
    sensitivity: float = Field(
        description=(
            "Fraction of iterations in which this deal's win alone carried total revenue "
            "across the 80th-percentile threshold."
        )
    )


class SimulationSummary(BaseModel):
    mean: float = 0.0
    median: float = 0.0
    standard_deviation: float = Field(default=0.0, description="Population standard deviation (divisor n).")
    min: float = 0.0
    max: float = 0.0
    percentile_10: float = 0.0
    percentile_90: float = 0.0


class SimulationMetadata(BaseModel):
    iterations: int
    seed: int
    generated_at: datetime
    version: str
    run_id: Optional[str] = None
    duration_ms: Optional[float] = Field(
        default=None, description="Wall-clock simulation time, stamped by the caller."
    )
    deal_count: int = 0


class SimulationResult(BaseModel):
    revenue_samples: List[float]
    histogram: List[HistogramBin]
    confidence_intervals: List[ConfidenceInterval]
    target_probabilities: List[TargetProbability]
    deal_impacts: List[DealImpact]
    summary: SimulationSummary
    metadata: SimulationMetadata


# ─── Boundary (HTTP) Models ───────────────────────────────────────────────────

class DealInput(BaseModel):
    """A deal as submitted over HTTP. Strict: bad values are rejected, not clamped."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    id: Optional[str] = Field(default=None, min_length=1, max_length=120)
    name: str = Field(min_length=1, max_length=160, examples=["Expansion - Northern Corp"])
    amount: float = Field(ge=0, le=MAX_DEAL_AMOUNT, allow_inf_nan=False, examples=[120_000.0])
    win_probability: float = Field(ge=0.0, le=1.0, examples=[0.6])
    expected_close_date: str = Field(min_length=1, max_length=50, examples=["2025-11-15"])
    stage: Optional[str] = Field(default=None, min_length=1, max_length=80)
    owner: Optional[str] = Field(default=None, min_length=1, max_length=80)
    notes: Optional[str] = Field(default=None, max_length=1_000)

    @field_validator("expected_close_date")
    @classmethod
    def close_date_must_be_iso(cls, v: str) -> str:
        if not ISO_DATE_REGEX.match(v):
            raise ValueError("expected_close_date must be an ISO-8601 date string")
        try:
            datetime.fromisoformat(v)
        except ValueError:
            raise ValueError("expected_close_date must be an ISO-8601 date string") from None
        return v


class SimulationConfigInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    iterations: Optional[int] = Field(default=None, ge=100, le=200_000)
    seed: Optional[int] = Field(default=None, ge=0, le=MAX_SEED)
    revenue_targets: Optional[List[Annotated[float, Field(allow_inf_nan=False)]]] = Field(
        default=None, max_length=20
    )
    confidence_levels: Optional[List[Annotated[float, Field(ge=0.0, le=1.0)]]] = Field(
        default=None, max_length=10
    )
    histogram_bin_count: Optional[int] = Field(default=None, ge=5, le=200)
    include_deal_impacts: Optional[bool] = None


class SimulationRequest(BaseModel):
    """Request payload for POST /api/v1/simulate."""

    model_config = ConfigDict(extra="forbid")

    deals: List[DealInput] = Field(min_length=1, max_length=MAX_DEALS)
    config: Optional[SimulationConfigInput] = None


class SimulationResponse(BaseModel):
    result: SimulationResult


class ValidationIssue(BaseModel):
    path: str
    code: str
    message: str


class ErrorResponse(BaseModel):
    message: str
    issues: Optional[List[ValidationIssue]] = None


class HealthResponse(BaseModel):
    """Simple health check, used by load balancers."""

    status: str = "ok"
    version: str
    timestamp: datetime


# ─── Client Result Union ──────────────────────────────────────────────────────
# What api/client.py hands back: exactly one of these, told apart by `kind`.

class SimulationApiSuccess(BaseModel):
    kind: Literal["success"] = "success"
    result: SimulationResult
    duration_ms: Optional[float] = None


class SimulationApiError(BaseModel):
    kind: Literal["error"] = "error"
    status: int
    message: str
    issues: Optional[List[ValidationIssue]] = None


SimulationApiResponse = Annotated[
    Union[SimulationApiSuccess, SimulationApiError],
    Field(discriminator="kind"),
]
