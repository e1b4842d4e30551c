#!/usr/bin/env python3
"""
Constant Product Pair Pool

Uniswap V2-style pair used as the external pool collaborator. The pair holds
real token balances, is itself the pool-share (LP) token, and follows the
transfer-then-call pattern: tokens are sent to the pair first and mint, burn
or swap settle against the balance difference.
"""

from typing import Dict, Tuple

from .tokens import Token, MAX_UINT256
from .errors import (
    InsufficientBalanceError,
    InsufficientAllowanceError,
    InsufficientLiquidityError,
)
from . import constant_product_math as cpm


DEAD_ADDRESS = "0x000000000000000000000000000000000000dEaD"


class ConstantProductPair:
    """Constant product AMM pair (x*y=k) that is also the LP token"""

    def __init__(self,
                 token0: Token,
                 token1: Token,
                 fee_bps: int = 30,
                 minimum_liquidity: int = 1000):
        """
        Initialize the pair

        Args:
            token0: First pool asset
            token1: Second pool asset
            fee_bps: Trading fee in basis points (default 0.3%)
            minimum_liquidity: LP tokens locked forever on the first mint
        """
        if token0 is token1:
            raise ValueError("pair assets must differ")

        self.token0 = token0
        self.token1 = token1
        self.fee_bps = fee_bps
        self.minimum_liquidity = minimum_liquidity
        self.symbol = f"{token0.symbol}-{token1.symbol}-LP"
        self.address = f"pool:{token0.symbol}-{token1.symbol}"

        self.reserve0 = 0
        self.reserve1 = 0
        self._total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

        # Cumulative activity for analysis
        self.total_volume0 = 0
        self.total_volume1 = 0
        self.swap_count = 0

    def __repr__(self) -> str:
        return f"ConstantProductPair({self.token0.symbol}/{self.token1.symbol})"

    # ── Pool-share token surface

    def total_supply(self) -> int:
        return self._total_supply

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        self._allowances[(owner, spender)] = amount
        return True

    def transfer(self, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0:
            raise ValueError("transfer amount cannot be negative")
        balance = self.balance_of(sender)
        if balance < amount:
            raise InsufficientBalanceError(
                f"{self.symbol}: {sender} holds {balance}, tried to send {amount}"
            )
        self._balances[sender] = balance - amount
        self._balances[recipient] = self.balance_of(recipient) + amount
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> bool:
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowanceError(
                f"{self.symbol}: {spender} may move {allowed} of {owner}'s shares, tried {amount}"
            )
        self.transfer(owner, recipient, amount)
        if allowed != MAX_UINT256:
            self._allowances[(owner, spender)] = allowed - amount
        return True

    def _mint_shares(self, to: str, amount: int):
        self._balances[to] = self.balance_of(to) + amount
        self._total_supply += amount

    def _burn_shares(self, holder: str, amount: int):
        self._balances[holder] = self.balance_of(holder) - amount
        self._total_supply -= amount

    # ── Pool surface

    def get_reserves(self) -> Tuple[int, int]:
        return self.reserve0, self.reserve1

    def price(self) -> float:
        """Spot price of token0 in token1 units (analysis only)"""
        if self.reserve0 <= 0:
            return 0.0
        scale = 10 ** (self.token0.decimals - self.token1.decimals)
        return self.reserve1 / self.reserve0 * scale

    def _update(self, balance0: int, balance1: int):
        self.reserve0 = balance0
        self.reserve1 = balance1

    def sync(self):
        """Force reserves to match balances"""
        self._update(
            self.token0.balance_of(self.address),
            self.token1.balance_of(self.address)
        )

    def mint(self, to: str) -> int:
        """Mint pool shares for tokens transferred in since the last update"""
        balance0 = self.token0.balance_of(self.address)
        balance1 = self.token1.balance_of(self.address)
        amount0 = balance0 - self.reserve0
        amount1 = balance1 - self.reserve1

        first_mint = self._total_supply == 0
        liquidity = cpm.liquidity_to_mint(
            amount0, amount1, self.reserve0, self.reserve1,
            self._total_supply, self.minimum_liquidity
        )
        if liquidity <= 0:
            raise InsufficientLiquidityError(f"{self.symbol}: insufficient liquidity minted")

        if first_mint and self.minimum_liquidity > 0:
            self._mint_shares(DEAD_ADDRESS, self.minimum_liquidity)
        self._mint_shares(to, liquidity)
        self._update(balance0, balance1)
        return liquidity

    def burn(self, to: str) -> Tuple[int, int]:
        """Burn the pool shares held by the pair and pay out both reserves pro rata"""
        balance0 = self.token0.balance_of(self.address)
        balance1 = self.token1.balance_of(self.address)
        liquidity = self.balance_of(self.address)

        amount0, amount1 = cpm.liquidity_removal(liquidity, self._total_supply, balance0, balance1)
        if amount0 <= 0 or amount1 <= 0:
            raise InsufficientLiquidityError(f"{self.symbol}: insufficient liquidity burned")

        self._burn_shares(self.address, liquidity)
        self.token0.transfer(self.address, to, amount0)
        self.token1.transfer(self.address, to, amount1)
        self.sync()
        return amount0, amount1

    def swap(self, amount0_out: int, amount1_out: int, to: str):
        """Pay out the requested outputs if the fee-adjusted k invariant still holds afterwards"""
        if amount0_out <= 0 and amount1_out <= 0:
            raise InsufficientLiquidityError(f"{self.symbol}: insufficient output amount")
        if amount0_out >= self.reserve0 or amount1_out >= self.reserve1:
            raise InsufficientLiquidityError(f"{self.symbol}: insufficient liquidity for swap")

        # Balances as they will stand once the outputs have left
        balance0 = self.token0.balance_of(self.address) - amount0_out
        balance1 = self.token1.balance_of(self.address) - amount1_out
        amount0_in = max(0, balance0 - (self.reserve0 - amount0_out))
        amount1_in = max(0, balance1 - (self.reserve1 - amount1_out))
        if amount0_in <= 0 and amount1_in <= 0:
            raise InsufficientLiquidityError(f"{self.symbol}: insufficient input amount")

        denominator = cpm.BPS_DENOMINATOR
        balance0_adjusted = balance0 * denominator - amount0_in * self.fee_bps
        balance1_adjusted = balance1 * denominator - amount1_in * self.fee_bps
        if balance0_adjusted * balance1_adjusted < self.reserve0 * self.reserve1 * denominator ** 2:
            raise InsufficientLiquidityError(f"{self.symbol}: constant product violated")

        if amount0_out > 0:
            self.token0.transfer(self.address, to, amount0_out)
        if amount1_out > 0:
            self.token1.transfer(self.address, to, amount1_out)

        self.total_volume0 += amount0_in
        self.total_volume1 += amount1_in
        self.swap_count += 1
        self._update(balance0, balance1)

    def get_market_data(self) -> Dict[str, float]:
        """Provide pool data for snapshots"""
        return {
            "reserve0": self.token0.to_human(self.reserve0),
            "reserve1": self.token1.to_human(self.reserve1),
            "total_supply": self._total_supply / 10 ** 18,
            "price": self.price(),
            "swap_count": self.swap_count,
            "fee_bps": self.fee_bps,
        }
