#!/usr/bin/env python3
"""
Pool Share Valuation

Converts a pool-share balance into an amount of one strategy's want using the
constant product invariant. Every figure is a spot estimate read from current
reserves: it ignores the slippage an actual redemption would incur and is only
suitable for approximate reporting.
"""

from dataclasses import dataclass

from .constant_product_math import share_value_in_reserve
from .pool_adapter import PoolAdapter


def position_value_in_want(shares: int, reserve_want: int, total_supply: int) -> int:
    """
    Value of `shares` pool shares in want: shares * (2 * reserve_want) // total_supply

    Returns 0 when the pool has no share supply.
    """
    return share_value_in_reserve(shares, reserve_want, total_supply)


@dataclass(frozen=True)
class PositionValuation:
    """Pool share position read at one instant; never cached between queries"""
    shares: int
    reserve_want: int
    reserve_other: int
    total_supply: int

    @property
    def value_in_want(self) -> int:
        return position_value_in_want(self.shares, self.reserve_want, self.total_supply)

    @property
    def pool_fraction(self) -> float:
        if self.total_supply <= 0:
            return 0.0
        return self.shares / self.total_supply

    def value_of(self, shares: int) -> int:
        """Spot value in want of an arbitrary share amount at these reserves"""
        return position_value_in_want(shares, self.reserve_want, self.total_supply)

    def shares_worth(self, value_in_want: int) -> int:
        """Largest share amount whose spot value does not exceed value_in_want"""
        if self.reserve_want <= 0 or self.total_supply <= 0 or value_in_want <= 0:
            return 0
        return min(self.shares, value_in_want * self.total_supply // (2 * self.reserve_want))


def read_position(adapter: PoolAdapter, holder: str) -> PositionValuation:
    """Snapshot holder's pool share position through the adapter"""
    reserve_want, reserve_other = adapter.reserves()
    return PositionValuation(
        shares=adapter.shares_of(holder),
        reserve_want=reserve_want,
        reserve_other=reserve_other,
        total_supply=adapter.total_supply(),
    )
