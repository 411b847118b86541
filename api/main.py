# =============================================================================
# main.py - FastAPI application entry point
#
# This file wires together all the pieces: routing, middleware, error
# handling and the simulation endpoint.
#
# ARCHITECTURE NOTE:
#   This service is stateless: no database, no sessions, no caching. Every
#   request is fully self-contained, and the simulator instance below holds
#   only its immutable defaults. The simulate endpoint is a plain `def`, so
#   FastAPI runs each CPU-bound simulation on its worker threadpool.
#
# ERROR CONTRACT:
#   Every failure is JSON of the form {"message": ..., "issues": [...]}.
#     415  Content-Type is not application/json
#     400  body is not valid JSON, or violates the request schema
#          (issues carry path / code / message per violation)
#     500  anything unexpected
# =============================================================================

import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import get_settings
from models import (
    Deal,
    DealInput,
    ErrorResponse,
    HealthResponse,
    SimulationConfig,
    SimulationConfigInput,
    SimulationRequest,
    SimulationResponse,
)
from simulation import PipelineSimulator

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

simulator = PipelineSimulator(defaults=settings.simulation_defaults())

# ─── App Initialization ───────────────────────────────────────────────────────

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=settings.api_description,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)

# ─── CORS Middleware ──────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Simulation-Duration-Ms"],
)


# ─── Error Handlers ───────────────────────────────────────────────────────────

def format_validation_issues(errors: List[Dict[str, Any]]) -> List[Dict[str, str]]:
    """Flatten pydantic errors into {path, code, message}, with paths like 'deals.0.amount'."""
    issues = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ())]
        if location and location[0] == "body":
            location = location[1:]
        issues.append(
            {
                "path": ".".join(location),
                "code": str(error.get("type", "invalid")),
                "message": str(error.get("msg", "Invalid value")),
            }
        )
    return issues


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        logger.warning("Rejected unparseable JSON body on %s", request.url.path)
        return JSONResponse(status_code=400, content={"message": "Invalid JSON body"})

    issues = format_validation_issues(errors)
    logger.warning("Rejected simulation payload with %d issue(s)", len(issues))
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid simulation payload", "issues": issues},
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all error handler: always return JSON, never an HTML error page.
    """
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "message": str(exc) if settings.debug else "An unexpected error occurred.",
        },
    )


# ─── Request Helpers ──────────────────────────────────────────────────────────

def require_json_content_type(request: Request) -> None:
    content_type = request.headers.get("content-type")
    if not content_type or "application/json" not in content_type.lower():
        raise HTTPException(status_code=415, detail="Content-Type must be application/json")


def to_engine_deals(deals: List[DealInput]) -> List[Deal]:
    """
    Map validated request deals onto engine deals: assign positional ids
    where none were given and drop empty optional text fields.
    """
    engine_deals = []
    for index, deal in enumerate(deals):
        engine_deals.append(
            Deal(
                id=deal.id or f"deal-{index + 1}",
                name=deal.name,
                amount=deal.amount,
                win_probability=deal.win_probability,
                expected_close_date=deal.expected_close_date,
                stage=deal.stage or None,
                owner=deal.owner or None,
                notes=deal.notes or None,
            )
        )
    return engine_deals


def to_engine_config(config: Optional[SimulationConfigInput]) -> Optional[SimulationConfig]:
    if config is None:
        return None
    return SimulationConfig(**config.model_dump())


# ─── Health Check ─────────────────────────────────────────────────────────────
@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Returns 200 OK when the service is running.",
    tags=["Operations"],
)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="ok",
        version=settings.api_version,
        timestamp=datetime.now(timezone.utc),
    )


# ─── Monte Carlo Simulation Endpoint ──────────────────────────────────────────
@app.post(
    "/api/v1/simulate",
    response_model=SimulationResponse,
    summary="Run Pipeline Monte Carlo Simulation",
    description=(
        "Accepts a list of pipeline deals and runs a Monte Carlo simulation of closed revenue. "
        "Returns the raw samples, histogram, confidence intervals, target hit-probabilities, "
        "per-deal impact analytics and run metadata."
    ),
    tags=["Simulation"],
    dependencies=[Depends(require_json_content_type)],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid JSON or schema violation"},
        415: {"model": ErrorResponse, "description": "Content-Type must be application/json"},
    },
)
def simulate(payload: SimulationRequest, response: Response) -> SimulationResponse:
    deals = to_engine_deals(payload.deals)
    config = to_engine_config(payload.config)
    logger.info("Simulation requested for %d deal(s)", len(deals))

    started = time.perf_counter()
    try:
        result = simulator.simulate(deals, config)
    except MemoryError:
        raise HTTPException(
            status_code=400,
            detail="Simulation too large. Reduce iterations or deal count.",
        )
    duration_ms = (time.perf_counter() - started) * 1000

    result.metadata.duration_ms = duration_ms
    response.headers["cache-control"] = "no-store"
    response.headers["x-simulation-duration-ms"] = f"{duration_ms:.3f}"

    logger.info(
        "Simulation %s finished: %d iterations in %.1fms",
        result.metadata.run_id,
        result.metadata.iterations,
        duration_ms,
    )
    return SimulationResponse(result=result)


# ─── Local Dev Entry Point ────────────────────────────────────────────────────
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
