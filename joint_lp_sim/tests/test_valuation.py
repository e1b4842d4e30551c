#!/usr/bin/env python3
"""
Position Valuation Tests

Spot valuation of pool-share positions in want, including the empty-pool
case and a strategy's own view of its shared position.
"""

import sys
import os
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from joint_lp_sim.core.tokens import to_units
from joint_lp_sim.core.valuation import PositionValuation, position_value_in_want, read_position
from joint_lp_sim.tests.builders import deployed_joint_pair


class FixedPoolView:
    """Adapter stand-in with fixed reserves and share balances"""

    def __init__(self, reserve_want, reserve_other, total_supply, shares):
        self._reserves = (reserve_want, reserve_other)
        self._total_supply = total_supply
        self._shares = shares

    def reserves(self):
        return self._reserves

    def total_supply(self):
        return self._total_supply

    def shares_of(self, holder):
        return self._shares.get(holder, 0)


class TestPositionValuation:

    def test_reference_position(self):
        """50 of 200 shares against 1000/1000 reserves are worth 500 want"""
        assert position_value_in_want(50, 1000, 200) == 500

        position = read_position(FixedPoolView(1000, 1000, 200, {"A": 50}), "A")
        assert position.value_in_want == 500
        assert position.pool_fraction == pytest.approx(0.25)

    def test_zero_supply_is_zero_for_any_shares(self):
        for shares in (0, 1, 50, 10 ** 24):
            assert position_value_in_want(shares, 1000, 0) == 0
        assert PositionValuation(10, 1000, 1000, 0).value_in_want == 0
        assert PositionValuation(10, 1000, 1000, 0).pool_fraction == 0.0

    def test_monotonic_in_shares_and_reserve(self):
        values = [position_value_in_want(shares, 1000, 200) for shares in range(0, 201, 10)]
        assert values == sorted(values)

        by_reserve = [position_value_in_want(50, reserve, 200) for reserve in (0, 10, 500, 1000, 5000)]
        assert by_reserve == sorted(by_reserve)

    def test_shares_worth_never_exceeds_value(self):
        position = PositionValuation(shares=50, reserve_want=1000, reserve_other=1000, total_supply=200)
        for value in (1, 7, 33, 499, 500, 10_000):
            shares = position.shares_worth(value)
            assert shares <= position.shares
            assert position.value_of(shares) <= value
        assert position.shares_worth(0) == 0

    def test_strategy_reads_its_half_of_the_position(self):
        pair = deployed_joint_pair()

        assert pair.strategy_x.position_value_in_want() == to_units(100_000)
        assert pair.strategy_y.position_value_in_want() == to_units(100_000)
        assert pair.strategy_x.estimated_total_assets() == to_units(100_000)

        print(f"✅ Each side values its half at {pair.token_x.to_human(pair.strategy_x.position_value_in_want()):,.0f}")

    def test_valuation_tracks_reserves_not_a_cache(self):
        pair = deployed_joint_pair()
        before_x = pair.strategy_x.position_value_in_want()
        before_y = pair.strategy_y.position_value_in_want()

        pair.swap(pair.token_x, to_units(50_000))

        assert pair.strategy_x.position_value_in_want() > before_x
        assert pair.strategy_y.position_value_in_want() < before_y
