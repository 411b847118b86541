# =============================================================================
# conftest.py - Shared pytest setup
#
# The service modules live flat under api/ (they are run from that directory
# in production), so the tests put api/ on the import path first.
# =============================================================================

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

from models import Deal  # noqa: E402


@pytest.fixture
def sample_deals():
    """A realistic set of deals for testing."""
    return [
        Deal(id="deal-a", name="Deal A", amount=1_000_000, win_probability=0.9, expected_close_date="2025-11-30"),
        Deal(id="deal-b", name="Deal B", amount=500_000, win_probability=0.5, expected_close_date="2025-12-15"),
        Deal(id="deal-c", name="Deal C", amount=2_000_000, win_probability=0.25, expected_close_date="2026-01-31"),
        Deal(id="deal-d", name="Deal D", amount=750_000, win_probability=0.75, expected_close_date="2026-02-28"),
    ]


@pytest.fixture
def scenario_deals():
    """Two deals whose analytic expectation is exactly 100,000."""
    return [
        Deal(
            id="deal-1",
            name="Expansion - Northern Corp",
            amount=120_000,
            win_probability=0.6,
            expected_close_date="2025-11-15",
        ),
        Deal(
            id="deal-2",
            name="Net-new - Horizon Labs",
            amount=80_000,
            win_probability=0.35,
            expected_close_date="2025-12-01",
        ),
    ]


@pytest.fixture
def simulation_payload():
    """A valid POST /api/v1/simulate body."""
    return {
        "deals": [
            {
                "name": "Expansion - Northern Corp",
                "amount": 120_000,
                "win_probability": 0.6,
                "expected_close_date": "2025-11-15",
            },
            {
                "id": "horizon",
                "name": "Net-new - Horizon Labs",
                "amount": 80_000,
                "win_probability": 0.35,
                "expected_close_date": "2025-12-01T09:30:00Z",
                "stage": "Proposal",
            },
        ],
        "config": {"iterations": 2_000, "seed": 1337},
    }
