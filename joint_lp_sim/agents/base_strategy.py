#!/usr/bin/env python3
"""
Vault-Facing Strategy Interface

Base class for strategies that borrow one token from a vault. It owns the
harvest/withdraw/migrate skeleton the vault drives; subclasses supply the
position-specific hooks.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Tuple

from ..core.tokens import MAX_UINT256
from ..core.errors import UnauthorizedCallerError, AssetPairMismatchError
from ..vault.vault import Vault, address_of


class BaseStrategy(ABC):
    """Minimal vault strategy interface"""

    def __init__(self, vault: Vault, address: str, keeper: str = "keeper"):
        self.vault = vault
        self.want = vault.token
        self.address = address
        self.keeper = keeper
        self.emergency_exit = False

        self.harvest_history: List[Dict] = []

        # The vault pulls profit and debt payments during report
        self.want.approve(self.address, vault.address, MAX_UINT256)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.address})"

    # ── Hooks

    @abstractmethod
    def estimated_total_assets(self) -> int:
        """Idle want plus the want-denominated value of deployed positions"""

    @abstractmethod
    def prepare_return(self, debt_outstanding: int) -> Tuple[int, int, int]:
        """Compute (profit, loss, debt_payment) for the vault report"""

    @abstractmethod
    def adjust_position(self, debt_outstanding: int):
        """Deploy idle want beyond what the vault wants back"""

    @abstractmethod
    def liquidate_position(self, amount_needed: int) -> Tuple[int, int]:
        """Free up to amount_needed want; returns (liquidated_amount, loss)"""

    @abstractmethod
    def liquidate_all_positions(self) -> int:
        """Unwind everything into want; returns the idle want afterwards"""

    @abstractmethod
    def prepare_migration(self, new_strategy: "BaseStrategy"):
        """Hand every non-want holding to the successor"""

    # ── Authorization

    def _require_vault(self, caller, operation: str):
        if caller is not self.vault:
            raise UnauthorizedCallerError(operation, address_of(caller), self.vault.address)

    def _require_governance(self, caller, operation: str):
        if caller != self.vault.governance:
            raise UnauthorizedCallerError(operation, address_of(caller), "vault governance")

    def _require_authorized(self, caller, operation: str):
        if caller is self.vault or caller == self.vault.governance or caller == self.keeper:
            return
        raise UnauthorizedCallerError(operation, address_of(caller), "keeper, governance or vault")

    # ── Views

    def balance_of_want(self) -> int:
        return self.want.balance_of(self.address)

    def total_assets(self) -> int:
        return self.estimated_total_assets()

    # ── Vault-driven lifecycle

    def harvest(self, caller) -> Dict:
        """
        Report to the vault and redeploy

        In emergency exit everything is unwound and the freed amount is
        reported against the full outstanding debt; otherwise the subclass
        computes the report against the debt its deployed assets do not
        cover, so idle principal is never reported as gain. The vault
        settles and returns what it still wants back, and the remainder is
        redeployed.
        """
        self._require_authorized(caller, "harvest")

        profit = loss = debt_payment = 0
        debt_outstanding = self.vault.debt_outstanding(self)

        if self.emergency_exit:
            amount_freed = self.liquidate_all_positions()
            if amount_freed < debt_outstanding:
                loss = debt_outstanding - amount_freed
            elif amount_freed > debt_outstanding:
                profit = amount_freed - debt_outstanding
            debt_payment = debt_outstanding - loss
        else:
            # Debt not backed by deployed assets has to be met from idle want
            deployed = self.estimated_total_assets() - self.balance_of_want()
            uncovered_debt = self.vault.strategy_debt(self) - deployed
            profit, loss, debt_payment = self.prepare_return(max(debt_outstanding, uncovered_debt))

        debt_outstanding = self.vault.report(profit, loss, debt_payment, caller=self)
        self.adjust_position(debt_outstanding)

        record = {
            "strategy": self.address,
            "want": self.want.symbol,
            "profit": profit,
            "loss": loss,
            "debt_payment": debt_payment,
            "debt_outstanding": debt_outstanding,
            "emergency_exit": self.emergency_exit,
            "total_assets": self.estimated_total_assets(),
        }
        self.harvest_history.append(record)
        return record

    def withdraw(self, amount_needed: int, caller) -> int:
        """Free want for the vault; returns the loss realized doing so"""
        self._require_vault(caller, "withdraw")
        liquidated, loss = self.liquidate_position(amount_needed)
        if liquidated > 0:
            self.want.transfer(self.address, self.vault.address, liquidated)
        return loss

    def migrate(self, new_strategy: "BaseStrategy", caller):
        """Move every holding to a successor strategy of the same vault"""
        self._require_vault(caller, "migrate")
        if new_strategy.vault is not self.vault or new_strategy.want is not self.want:
            raise AssetPairMismatchError(f"{new_strategy.address} is not a {self.want.symbol} strategy of {self.vault.address}")

        self.prepare_migration(new_strategy)
        self.want.transfer(self.address, new_strategy.address, self.balance_of_want())

    def set_emergency_exit(self, caller):
        """Irreversibly stop growing the position and ask the vault for everything back"""
        if caller is not self.vault and caller != self.vault.governance:
            raise UnauthorizedCallerError("set_emergency_exit", address_of(caller), "governance or vault")
        self.emergency_exit = True
        self.vault.revoke_strategy(self, caller=self)
