# =============================================================================
# client.py - HTTP client for the simulation service
#
# post_simulation() never raises for an unsuccessful call. It returns either
# SimulationApiSuccess or SimulationApiError, tagged by `kind`, so callers
# branch on the tag instead of probing the payload shape. Transport failures
# come back as an error with status 0.
# =============================================================================

import logging
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import ValidationError

from models import (
    SimulationApiError,
    SimulationApiResponse,
    SimulationApiSuccess,
    SimulationRequest,
    SimulationResult,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

SIMULATE_PATH = "/api/v1/simulate"
DURATION_HEADER = "x-simulation-duration-ms"


def _safe_json(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _parse_duration(raw: Optional[str]) -> Optional[float]:
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _error_message(data: Dict[str, Any], response: httpx.Response) -> str:
    message = data.get("message")
    if isinstance(message, str) and message:
        return message
    return response.reason_phrase or f"Simulation request failed with status {response.status_code}"


def _parse_issues(raw: Any) -> Optional[List[ValidationIssue]]:
    if not isinstance(raw, list):
        return None
    issues = []
    for item in raw:
        try:
            issues.append(ValidationIssue.model_validate(item))
        except ValidationError:
            continue
    return issues


def post_simulation(
    payload: Union[SimulationRequest, Dict[str, Any]],
    client: httpx.Client,
) -> SimulationApiResponse:
    """
    POST a simulation request through `client` (whose base_url points at the
    service) and wrap the outcome in the success/error union.
    """
    body = (
        payload.model_dump(mode="json", exclude_none=True)
        if isinstance(payload, SimulationRequest)
        else payload
    )

    try:
        response = client.post(SIMULATE_PATH, json=body)
    except httpx.HTTPError as exc:
        logger.warning("Simulation request failed before a response arrived: %s", exc)
        return SimulationApiError(status=0, message=str(exc) or "Unknown simulation error")

    data = _safe_json(response)

    if not response.is_success:
        return SimulationApiError(
            status=response.status_code,
            message=_error_message(data, response),
            issues=_parse_issues(data.get("issues")),
        )

    try:
        result = SimulationResult.model_validate(data.get("result"))
    except ValidationError:
        logger.warning("Simulation service returned %d with an unreadable result", response.status_code)
        return SimulationApiError(status=response.status_code, message="Malformed simulation response")

    return SimulationApiSuccess(
        result=result,
        duration_ms=_parse_duration(response.headers.get(DURATION_HEADER)),
    )
