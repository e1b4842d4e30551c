#!/usr/bin/env python3
"""
Partner Protocol

Privileged operations one joint strategy exposes to its paired partner:
rebalance, provide-and-split and migrate-partner. The pairing is a
bidirectional edge. Every privileged call re-reads the registered partner at
invocation time and requires the caller to be that partner and to point back
at the callee, so a half-updated pair cannot move funds. All transfers happen
inside the call that performed the check.

Pairing grants each partner an unlimited allowance on the asset it calls
`other` (this strategy's want) and on pool shares, so the partner can pull
liquidity without a second approval step.
"""

from typing import Dict, List, Optional

from ..core.tokens import MAX_UINT256
from ..core.errors import UnauthorizedCallerError, AssetPairMismatchError
from ..core.valuation import PositionValuation, read_position
from ..core import constant_product_math as cpm
from ..vault.vault import address_of


class PartnerProtocolMixin:
    """Partner-only surface of a joint strategy"""

    partner: Optional["PartnerProtocolMixin"]
    settled_position_value: Optional[int]
    rebalance_history: List[Dict]
    provide_history: List[Dict]

    # ── Pairing

    def _validate_partner(self, partner):
        if partner is self:
            raise AssetPairMismatchError(f"{self.address} cannot partner with itself")
        if partner.pool is not self.pool:
            raise AssetPairMismatchError(f"{partner.address} provides liquidity to a different pool")
        if partner.want is self.want or partner.want is not self.other:
            raise AssetPairMismatchError(
                f"{partner.address} manages {partner.want.symbol}, expected {self.other.symbol}"
            )

    def _grant_partner_allowances(self, partner):
        self.want.approve(self.address, partner.address, MAX_UINT256)
        self.pool.approve(self.address, partner.address, MAX_UINT256)

    def _revoke_partner_allowances(self, partner):
        self.want.approve(self.address, partner.address, 0)
        self.pool.approve(self.address, partner.address, 0)

    def _set_partner_reference(self, new_partner):
        self._validate_partner(new_partner)
        old_partner = self.partner
        if old_partner is not None and old_partner is not new_partner:
            self._revoke_partner_allowances(old_partner)
        self.partner = new_partner
        self._grant_partner_allowances(new_partner)

    def _require_partner(self, caller, operation: str):
        partner = self.partner
        if partner is None or caller is not partner:
            expected = partner.address if partner is not None else "a registered partner"
            raise UnauthorizedCallerError(operation, address_of(caller), expected)
        if getattr(caller, "partner", None) is not self:
            raise UnauthorizedCallerError(operation, address_of(caller), f"a partner paired back to {self.address}")

    def set_partner(self, new_partner, caller):
        """Administrative override of this end of the pair (governance only)"""
        self._require_governance(caller, "set_partner")
        self._set_partner_reference(new_partner)

    def migrate_partner(self, caller, new_partner):
        """
        Repoint this end of the pair at the caller's successor.

        Only the current partner may call it, and the successor must already
        point back at this strategy. No assets move.
        """
        self._require_partner(caller, "migrate_partner")
        if getattr(new_partner, "partner", None) is not self:
            raise UnauthorizedCallerError(
                "migrate_partner", address_of(new_partner), f"a successor paired to {self.address}"
            )
        self._set_partner_reference(new_partner)

    # ── Settlement checkpoint

    def _position(self) -> PositionValuation:
        return read_position(self.adapter, self.address)

    def _checkpoint(self, position: PositionValuation) -> int:
        """Settled position value, taking a fresh checkpoint on first touch"""
        if self.settled_position_value is None:
            self.settled_position_value = position.value_in_want
        return self.settled_position_value

    def accrued_benefit(self) -> int:
        """Position value gained in want since the last settlement"""
        position = self._position()
        if self.settled_position_value is None:
            return 0
        return max(0, position.value_in_want - self.settled_position_value)

    # ── Privileged operations

    def rebalance(self, caller) -> int:
        """
        Pay the partner its half of the value this side accrued since the last settlement.

        The shares worth the accrued benefit are burned. The burn pays half
        of it in want, which stays here as realized gain, and half in the
        caller's asset, which is transferred to the caller. Returns the spot
        value in want of the shares burned, or 0 when nothing accrued.
        """
        self._require_partner(caller, "rebalance")

        position = self._position()
        settled = self._checkpoint(position)
        benefit = position.value_in_want - settled
        if benefit <= 0:
            return 0

        shares = position.shares_worth(benefit)
        want_out, other_out = self.adapter.preview_removal(shares)
        if want_out <= 0 or other_out <= 0:
            return 0

        realized = position.value_of(shares)
        want_out, other_out = self.adapter.remove_liquidity(self.address, shares, self.address)
        self.other.transfer(self.address, caller.address, other_out)

        self.settled_position_value = self._position().value_in_want
        self.rebalance_history.append({
            "caller": caller.address,
            "benefit": realized,
            "shares_burned": shares,
            "want_kept": want_out,
            "other_paid": other_out,
        })
        return realized

    def provide_and_split(self, caller, max_other: int) -> int:
        """
        Pair the caller's asset with this side's idle want and split the new shares.

        Pulls up to max_other of the caller's asset, bounded by the equal-value
        amount of this side's deployable want (want beyond what its vault wants
        back). An empty pool pairs the assets 1:1 in units. Half of the minted
        shares go to the caller together with any pulled asset the mint did
        not consume. Returns the shares sent to the caller.
        """
        self._require_partner(caller, "provide_and_split")
        if max_other <= 0 or self.emergency_exit:
            return 0

        reserve_want, reserve_other = self.adapter.reserves()
        deployable_want = max(0, self.balance_of_want() - self.vault.debt_outstanding(self))
        max_other = min(max_other, self.other.balance_of(caller.address))

        if reserve_want > 0 and reserve_other > 0:
            other_pulled = min(max_other, cpm.quote(deployable_want, reserve_want, reserve_other))
            want_amount = cpm.quote(other_pulled, reserve_other, reserve_want)
            # Round the other leg up so want is the binding side of the mint
            other_used = min(other_pulled, -(-want_amount * reserve_other // reserve_want))
        else:
            other_pulled = want_amount = other_used = min(max_other, deployable_want)

        if self.adapter.want_is_token0:
            preview = cpm.liquidity_to_mint(
                want_amount, other_used, reserve_want, reserve_other,
                self.adapter.total_supply(), self.pool.minimum_liquidity
            )
        else:
            preview = cpm.liquidity_to_mint(
                other_used, want_amount, reserve_other, reserve_want,
                self.adapter.total_supply(), self.pool.minimum_liquidity
            )
        if preview <= 0:
            return 0

        settled = self._checkpoint(self._position())

        self.other.transfer_from(self.address, caller.address, self.address, other_pulled)
        liquidity = self.adapter.add_liquidity(self.address, want_amount, other_used)

        half_liquidity = liquidity // 2
        self.pool.transfer(self.address, caller.address, half_liquidity)

        leftover = other_pulled - other_used
        if leftover > 0:
            self.other.transfer(self.address, caller.address, leftover)

        self.settled_position_value = settled + self._position().value_of(liquidity - half_liquidity)
        self.provide_history.append({
            "caller": caller.address,
            "want_added": want_amount,
            "other_added": other_used,
            "other_returned": leftover,
            "liquidity": liquidity,
            "half_liquidity": half_liquidity,
        })
        return half_liquidity


def pair_strategies(first, second):
    """Establish both ends of a partner edge and the allowances that come with it"""
    first._validate_partner(second)
    second._validate_partner(first)
    first._set_partner_reference(second)
    second._set_partner_reference(first)
