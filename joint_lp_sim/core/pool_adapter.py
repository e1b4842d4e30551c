#!/usr/bin/env python3
"""
Pool Adapter

Orients the pair pool around one strategy's want/other assets. Pure
integration surface: every mutating call follows the pair's transfer-then-call
pattern and nothing here holds state besides the orientation.
"""

from typing import Tuple

from .tokens import Token
from .pair_pool import ConstantProductPair
from .errors import AssetPairMismatchError
from . import constant_product_math as cpm


class PoolAdapter:
    """Want/other oriented accessors to a ConstantProductPair"""

    def __init__(self, pool: ConstantProductPair, want: Token, other: Token):
        if want is other:
            raise AssetPairMismatchError(f"want and other are both {want.symbol}")
        if {id(want), id(other)} != {id(pool.token0), id(pool.token1)}:
            raise AssetPairMismatchError(
                f"{want.symbol}/{other.symbol} does not match pool "
                f"{pool.token0.symbol}/{pool.token1.symbol}"
            )

        self.pool = pool
        self.want = want
        self.other = other
        self.want_is_token0 = pool.token0 is want

    @property
    def fee_bps(self) -> int:
        return self.pool.fee_bps

    def reserves(self) -> Tuple[int, int]:
        """Pool reserves as (reserve_want, reserve_other)"""
        reserve0, reserve1 = self.pool.get_reserves()
        if self.want_is_token0:
            return reserve0, reserve1
        return reserve1, reserve0

    def total_supply(self) -> int:
        return self.pool.total_supply()

    def shares_of(self, holder: str) -> int:
        return self.pool.balance_of(holder)

    def add_liquidity(self, holder: str, amount_want: int, amount_other: int) -> int:
        """Send both assets from holder to the pool and mint shares to holder"""
        self.want.transfer(holder, self.pool.address, amount_want)
        self.other.transfer(holder, self.pool.address, amount_other)
        return self.pool.mint(holder)

    def preview_removal(self, shares: int) -> Tuple[int, int]:
        """(want, other) a burn of shares would pay out right now"""
        reserve_want, reserve_other = self.reserves()
        return cpm.liquidity_removal(shares, self.total_supply(), reserve_want, reserve_other)

    def remove_liquidity(self, holder: str, shares: int, to: str) -> Tuple[int, int]:
        """Burn shares held by holder; returns (want_out, other_out) sent to `to`"""
        self.pool.transfer(holder, self.pool.address, shares)
        amount0, amount1 = self.pool.burn(to)
        if self.want_is_token0:
            return amount0, amount1
        return amount1, amount0

    def swap_exact_in(self, holder: str, token_in: Token, amount_in: int, to: str) -> int:
        """
        Trade an exact amount of token_in through the pool.

        Returns the output amount; a trade too small to produce any output is
        skipped and returns zero with no transfer.
        """
        reserve0, reserve1 = self.pool.get_reserves()
        if token_in is self.pool.token0:
            amount_out = cpm.get_amount_out(amount_in, reserve0, reserve1, self.fee_bps)
            outputs = (0, amount_out)
        elif token_in is self.pool.token1:
            amount_out = cpm.get_amount_out(amount_in, reserve1, reserve0, self.fee_bps)
            outputs = (amount_out, 0)
        else:
            raise AssetPairMismatchError(f"{token_in.symbol} is not traded by {self.pool.symbol}")

        if amount_out <= 0:
            return 0

        token_in.transfer(holder, self.pool.address, amount_in)
        self.pool.swap(outputs[0], outputs[1], to)
        return amount_out
