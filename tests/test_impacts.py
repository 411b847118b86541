# =============================================================================
# test_impacts.py - Unit tests for per-deal attribution
#
# Uses a hand-built five-iteration outcome so every number can be checked
# by hand:
#
#   iteration   A (100) wins   B (50) wins   total
#       0            x                         100
#       1            x              x          150
#       2            x                         100
#       3                           x           50
#       4                                        0
#
# Sorted totals are [0, 50, 100, 100, 150]; the 80th percentile is 110.
# =============================================================================

import numpy as np
import pytest

from distribution import sort_numbers
from impacts import build_deal_impacts
from models import Deal

REVENUE = [100.0, 150.0, 100.0, 50.0, 0.0]


@pytest.fixture
def two_deals():
    return [
        Deal(id="a", name="A", amount=100, win_probability=0.5),
        Deal(id="b", name="B", amount=50, win_probability=0.5),
    ]


def run_impacts(deals, **overrides):
    arguments = dict(
        deals=deals,
        revenue_samples=REVENUE,
        sorted_samples=sort_numbers(REVENUE),
        iterations=5,
        win_counts=[3, 2],
        winning_iterations=[np.array([0, 1, 2]), np.array([1, 3])],
    )
    arguments.update(overrides)
    return build_deal_impacts(**arguments)


class TestDealImpacts:

    def test_no_deals_or_iterations(self, two_deals):
        assert run_impacts([]) == []
        assert run_impacts(two_deals, iterations=0) == []

    def test_expected_value_uses_observed_frequency(self, two_deals):
        a, b = run_impacts(two_deals)
        assert a.deal_id == "a"
        assert a.expected_value == pytest.approx(60)
        assert b.expected_value == pytest.approx(20)

    def test_variance_contribution(self, two_deals):
        a, b = run_impacts(two_deals)
        assert a.variance_contribution == pytest.approx(100**2 * 0.6 * 0.4)
        assert b.variance_contribution == pytest.approx(50**2 * 0.4 * 0.6)

    def test_sensitivity_counts_threshold_crossings(self, two_deals):
        """
        Only iteration 1 lands above 110, and removing either deal from it
        drops the total below 110, so each deal scores 1 hit out of 5.
        """
        a, b = run_impacts(two_deals)
        assert a.sensitivity == pytest.approx(0.2)
        assert b.sensitivity == pytest.approx(0.2)

    def test_deal_that_never_wins(self, two_deals):
        _, b = run_impacts(
            two_deals,
            win_counts=[3, 0],
            winning_iterations=[np.array([0, 1, 2]), np.array([], dtype=np.int64)],
        )
        assert b.expected_value == 0
        assert b.variance_contribution == 0
        assert b.sensitivity == 0
