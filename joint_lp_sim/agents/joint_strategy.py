#!/usr/bin/env python3
"""
Joint LP Strategy

One side of a pair of strategies that jointly provide liquidity to a
constant product pool. Each side borrows its own asset from its own vault,
hands idle funds to the partner to be paired and minted, holds half of the
resulting pool shares, and resettles value with the partner on every harvest
and withdrawal.
"""

from typing import Dict, List, Optional, Tuple

from .base_strategy import BaseStrategy
from .partner_protocol import PartnerProtocolMixin
from ..core.pair_pool import ConstantProductPair
from ..core.pool_adapter import PoolAdapter
from ..core.valuation import PositionValuation
from ..core.errors import AssetPairMismatchError, UnauthorizedCallerError
from ..core import constant_product_math as cpm
from ..vault.vault import Vault


class JointLPStrategy(PartnerProtocolMixin, BaseStrategy):
    """Vault strategy sharing a pool position 50/50 with a partner strategy"""

    def __init__(self,
                 vault: Vault,
                 pool: ConstantProductPair,
                 address: str,
                 partner: Optional["JointLPStrategy"] = None,
                 keeper: str = "keeper"):
        """
        Initialize the strategy

        Args:
            vault: Vault lending this strategy its want
            pool: Pair pool whose assets are want and the partner's want
            address: Unique address of this strategy
            partner: Initial partner; usually left empty and wired with pair_strategies
            keeper: Address allowed to trigger harvests
        """
        super().__init__(vault, address, keeper)

        if vault.token is pool.token0:
            other = pool.token1
        elif vault.token is pool.token1:
            other = pool.token0
        else:
            raise AssetPairMismatchError(
                f"{vault.token.symbol} is not traded by pool {pool.token0.symbol}/{pool.token1.symbol}"
            )

        self.pool = pool
        self.other = other
        self.adapter = PoolAdapter(pool, self.want, other)
        self.want_is_token0 = self.adapter.want_is_token0

        self.partner: Optional[JointLPStrategy] = None
        self.settled_position_value: Optional[int] = None
        self.rebalance_history: List[Dict] = []
        self.provide_history: List[Dict] = []
        self.dividends_received = 0

        if partner is not None:
            self._set_partner_reference(partner)

    # ── Valuation

    def position(self) -> PositionValuation:
        return self._position()

    def position_value_in_want(self) -> int:
        """Spot value of the held pool shares in want (approximate, ignores slippage)"""
        return self._position().value_in_want

    def partner_claim(self) -> int:
        """Want value the partner collects from this side on its next rebalance"""
        if self.partner is None:
            return 0
        benefit = self.accrued_benefit()
        return benefit - benefit // 2

    def estimated_total_assets(self) -> int:
        """Idle want plus the position value net of what the partner is owed"""
        return self.balance_of_want() + self.position_value_in_want() - self.partner_claim()

    def balance_of_other(self) -> int:
        return self.other.balance_of(self.address)

    def pool_shares(self) -> int:
        return self.adapter.shares_of(self.address)

    # ── Partner coordination

    def _rebalance_partner(self) -> int:
        """Collect whatever the partner accrued since its last settlement"""
        if self.partner is None:
            return 0
        want_before = self.balance_of_want()
        benefit = self.partner.rebalance(caller=self)
        self.dividends_received += self.balance_of_want() - want_before
        return benefit

    # ── Lifecycle hooks

    def prepare_return(self, debt_outstanding: int) -> Tuple[int, int, int]:
        """
        Report idle want against the outstanding debt.

        The partner is rebalanced first so any pending dividend is idle before
        accounting. Surplus over the debt is profit, a shortfall is loss, and
        the debt payment never exceeds the idle balance.
        """
        self._rebalance_partner()

        idle = self.balance_of_want()
        if idle >= debt_outstanding:
            profit = idle - debt_outstanding
            loss = 0
            debt_payment = min(debt_outstanding, idle - profit)
        else:
            profit = 0
            loss = debt_outstanding - idle
            debt_payment = min(debt_outstanding, idle)

        return profit, loss, debt_payment

    def adjust_position(self, debt_outstanding: int):
        if self.emergency_exit or self.partner is None:
            return

        excess = self.balance_of_want() - debt_outstanding
        if excess <= 0:
            return

        settled = self._checkpoint(self._position())
        half_liquidity = self.partner.provide_and_split(caller=self, max_other=excess)
        if half_liquidity > 0:
            self.settled_position_value = settled + self._position().value_of(half_liquidity)

    def liquidate_position(self, amount_needed: int) -> Tuple[int, int]:
        """
        Free amount_needed want, burning pool shares for any idle shortfall.

        Returns:
            Tuple of (liquidated_amount, loss) with their sum equal to amount_needed
        """
        if amount_needed <= 0:
            return 0, 0

        self._rebalance_partner()

        idle = self.balance_of_want()
        if idle < amount_needed:
            self._withdraw_from_pool(amount_needed - idle)
            idle = self.balance_of_want()

        liquidated = min(amount_needed, idle)
        return liquidated, amount_needed - liquidated

    def _withdraw_from_pool(self, shortfall: int) -> int:
        position = self._position()
        shares = cpm.shares_for_want_out(
            shortfall, position.shares, position.reserve_want,
            position.reserve_other, position.total_supply, self.adapter.fee_bps
        )
        return self._burn_to_want(shares, position)

    def _burn_to_want(self, shares: int, position: PositionValuation) -> int:
        """Burn shares and swap the other-asset proceeds into want; returns want gained"""
        if shares <= 0:
            return 0

        # The pair refuses burns that pay nothing on either leg
        reserve_want, reserve_other = self.adapter.reserves()
        total_supply = self.adapter.total_supply()
        for reserve in (reserve_want, reserve_other):
            if reserve > 0:
                shares = max(shares, -(-total_supply // reserve))
        shares = min(shares, position.shares)

        want_out, other_out = self.adapter.preview_removal(shares)
        if want_out <= 0 or other_out <= 0:
            return 0

        settled = self._checkpoint(position)
        want_out, other_out = self.adapter.remove_liquidity(self.address, shares, self.address)
        swapped = self.adapter.swap_exact_in(self.address, self.other, other_out, self.address)

        self.settled_position_value = settled - settled * shares // position.shares
        return want_out + swapped

    def liquidate_all_positions(self) -> int:
        self._rebalance_partner()

        position = self._position()
        self._burn_to_want(position.shares, position)

        stray_other = self.balance_of_other()
        if stray_other > 0:
            self.adapter.swap_exact_in(self.address, self.other, stray_other, self.address)

        return self.balance_of_want()

    def prepare_migration(self, new_strategy: "JointLPStrategy"):
        """Send idle other and every pool share to the successor, then repoint the partner"""
        if new_strategy.pool is not self.pool:
            raise AssetPairMismatchError(f"{new_strategy.address} provides liquidity to a different pool")
        if self.partner is not None and new_strategy.partner is not self.partner:
            raise UnauthorizedCallerError(
                "migrate", new_strategy.address, f"a successor paired to {self.partner.address}"
            )
            # The partner must accept the hand-over before any asset leaves
            self.partner._require_partner(self, "migrate_partner")

        other_balance = self.balance_of_other()
        if other_balance > 0:
            self.other.transfer(self.address, new_strategy.address, other_balance)

        shares = self.pool_shares()
        if shares > 0:
            self.pool.transfer(self.address, new_strategy.address, shares)
        self.settled_position_value = None

        if self.partner is not None:
            self.partner.migrate_partner(caller=self, new_partner=new_strategy)

    def get_strategy_summary(self) -> Dict:
        """Summary of strategy state for snapshots"""
        position = self._position()
        return {
            "address": self.address,
            "want": self.want.symbol,
            "partner": self.partner.address if self.partner is not None else None,
            "idle_want": self.balance_of_want(),
            "idle_other": self.balance_of_other(),
            "pool_shares": position.shares,
            "position_value_in_want": position.value_in_want,
            "settled_position_value": self.settled_position_value,
            "partner_claim": self.partner_claim(),
            "total_assets": self.estimated_total_assets(),
            "emergency_exit": self.emergency_exit,
            "rebalances_paid": len(self.rebalance_history),
            "dividends_received": self.dividends_received,
        }
