#!/usr/bin/env python3
"""
Single-Asset Vault

Fund manager that accepts deposits in one token, lends them to registered
strategies up to a debt ratio, and settles strategy reports. The vault is the
only party that records strategy debt: strategies compute profit, loss and
debt payment per call and hand them back here.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..core.tokens import Token
from ..core.errors import JointStrategyError, UnauthorizedCallerError, AssetPairMismatchError


MAX_BPS = 10_000


def address_of(caller) -> str:
    """Address string of a contract-like participant or an externally owned account"""
    return getattr(caller, "address", str(caller))


@dataclass
class StrategyParams:
    """Vault-side accounting for one strategy"""
    debt_ratio: int
    total_debt: int = 0
    total_gain: int = 0
    total_loss: int = 0
    last_report: int = 0
    report_count: int = 0


class Vault:
    """Vault lending a single token to its strategies"""

    def __init__(self,
                 token: Token,
                 governance: str = "governance",
                 deposit_limit: Optional[int] = None):
        self.token = token
        self.governance = governance
        self.address = f"vault:{token.symbol}"
        self.deposit_limit = deposit_limit
        self.emergency_shutdown = False

        self.total_debt = 0
        self.debt_ratio = 0
        self.strategies: Dict[str, StrategyParams] = {}
        self.withdrawal_queue: List = []

        # Vault share ledger
        self.total_share_supply = 0
        self._shares: Dict[str, int] = {}

        self.clock = 0

    def __repr__(self) -> str:
        return f"Vault({self.token.symbol})"

    # ── Authorization

    def _require_governance(self, caller, operation: str):
        if caller != self.governance:
            raise UnauthorizedCallerError(operation, address_of(caller), "vault governance")

    def _require_strategy(self, caller, operation: str) -> StrategyParams:
        params = self.strategies.get(address_of(caller))
        if params is None or caller not in self.withdrawal_queue:
            raise UnauthorizedCallerError(operation, address_of(caller), "an active vault strategy")
        return params

    # ── Accounting views

    def total_idle(self) -> int:
        return self.token.balance_of(self.address)

    def total_assets(self) -> int:
        return self.total_idle() + self.total_debt

    def balance_of(self, holder: str) -> int:
        return self._shares.get(holder, 0)

    def price_per_share(self) -> float:
        if self.total_share_supply == 0:
            return 1.0
        return self.total_assets() / self.total_share_supply

    def _shares_for_amount(self, amount: int) -> int:
        if self.total_share_supply == 0:
            return amount
        return amount * self.total_share_supply // self.total_assets()

    def _share_value(self, shares: int) -> int:
        if self.total_share_supply == 0:
            return shares
        return shares * self.total_assets() // self.total_share_supply

    def strategy_params(self, strategy) -> StrategyParams:
        return self.strategies[address_of(strategy)]

    def strategy_debt(self, strategy) -> int:
        params = self.strategies.get(address_of(strategy))
        return params.total_debt if params is not None else 0

    def debt_outstanding(self, strategy) -> int:
        """Amount the vault wants back from a strategy"""
        params = self.strategies.get(address_of(strategy))
        if params is None:
            return 0
        if self.debt_ratio == 0 or self.emergency_shutdown:
            return params.total_debt

        debt_limit = params.debt_ratio * self.total_assets() // MAX_BPS
        return max(0, params.total_debt - debt_limit)

    def credit_available(self, strategy) -> int:
        """Amount the vault is willing to lend a strategy right now"""
        params = self.strategies.get(address_of(strategy))
        if params is None or self.emergency_shutdown:
            return 0

        total_assets = self.total_assets()
        strategy_limit = params.debt_ratio * total_assets // MAX_BPS
        vault_limit = self.debt_ratio * total_assets // MAX_BPS
        if strategy_limit <= params.total_debt or vault_limit <= self.total_debt:
            return 0

        available = min(strategy_limit - params.total_debt, vault_limit - self.total_debt)
        return min(available, self.total_idle())

    # ── Depositor surface

    def deposit(self, depositor: str, amount: int) -> int:
        """Deposit tokens and mint vault shares"""
        if amount <= 0:
            return 0
        if self.emergency_shutdown:
            raise JointStrategyError(f"{self.address} is in emergency shutdown")
        if self.deposit_limit is not None and self.total_assets() + amount > self.deposit_limit:
            amount = max(0, self.deposit_limit - self.total_assets())
            if amount == 0:
                return 0

        shares = self._shares_for_amount(amount)
        self.token.transfer(depositor, self.address, amount)
        self._shares[depositor] = self.balance_of(depositor) + shares
        self.total_share_supply += shares
        return shares

    def withdraw(self, holder: str, shares: Optional[int] = None) -> int:
        """
        Redeem vault shares for tokens.

        Pulls from idle first, then from strategies in queue order. Losses the
        strategies realize while freeing funds are borne by the withdrawer.

        Returns:
            Amount of tokens sent to holder
        """
        if shares is None:
            shares = self.balance_of(holder)
        shares = min(shares, self.balance_of(holder))
        if shares <= 0:
            return 0

        value = self._share_value(shares)
        total_loss = 0

        if value > self.total_idle():
            for strategy in list(self.withdrawal_queue):
                idle = self.total_idle()
                if value - total_loss <= idle:
                    break

                params = self.strategy_params(strategy)
                amount_needed = min(value - total_loss - idle, params.total_debt)
                if amount_needed <= 0:
                    continue

                loss = strategy.withdraw(amount_needed, caller=self)
                withdrawn = self.total_idle() - idle

                if loss > 0:
                    total_loss += loss
                    self._report_loss(params, loss)

                params.total_debt -= withdrawn
                self.total_debt -= withdrawn

        amount = min(value - total_loss, self.total_idle())

        self._shares[holder] = self.balance_of(holder) - shares
        self.total_share_supply -= shares
        self.token.transfer(self.address, holder, amount)
        return amount

    # ── Strategy management

    def add_strategy(self, strategy, debt_ratio: int, caller):
        self._require_governance(caller, "add_strategy")
        if strategy.vault is not self or strategy.want is not self.token:
            raise AssetPairMismatchError(f"{address_of(strategy)} does not manage {self.token.symbol} for {self.address}")
        if self.debt_ratio + debt_ratio > MAX_BPS:
            raise ValueError("total debt ratio would exceed 100%")

        self.strategies[strategy.address] = StrategyParams(debt_ratio=debt_ratio, last_report=self.clock)
        self.withdrawal_queue.append(strategy)
        self.debt_ratio += debt_ratio

    def update_debt_ratio(self, strategy, debt_ratio: int, caller):
        self._require_governance(caller, "update_debt_ratio")
        params = self.strategy_params(strategy)
        new_total = self.debt_ratio - params.debt_ratio + debt_ratio
        if new_total > MAX_BPS:
            raise ValueError("total debt ratio would exceed 100%")
        self.debt_ratio = new_total
        params.debt_ratio = debt_ratio

    def revoke_strategy(self, strategy, caller):
        """Stop lending to a strategy; governance or the strategy itself"""
        if caller is not strategy and caller != self.governance:
            raise UnauthorizedCallerError("revoke_strategy", address_of(caller), "governance or the strategy")
        params = self.strategy_params(strategy)
        self.debt_ratio -= params.debt_ratio
        params.debt_ratio = 0

    def set_emergency_shutdown(self, active: bool, caller):
        self._require_governance(caller, "set_emergency_shutdown")
        self.emergency_shutdown = active

    def migrate_strategy(self, old_strategy, new_strategy, caller):
        """Replace a strategy, carrying its debt and ratio over to the successor"""
        self._require_governance(caller, "migrate_strategy")
        old_params = self._require_strategy(old_strategy, "migrate_strategy")
        if new_strategy.vault is not self or address_of(new_strategy) in self.strategies:
            raise AssetPairMismatchError(f"{address_of(new_strategy)} cannot replace {address_of(old_strategy)}")

        old_strategy.migrate(new_strategy, caller=self)

        self.strategies[new_strategy.address] = StrategyParams(
            debt_ratio=old_params.debt_ratio,
            total_debt=old_params.total_debt,
            last_report=old_params.last_report,
        )
        old_params.debt_ratio = 0
        old_params.total_debt = 0

        index = self.withdrawal_queue.index(old_strategy)
        self.withdrawal_queue[index] = new_strategy

    def _report_loss(self, params: StrategyParams, loss: int):
        loss = min(loss, params.total_debt)
        params.total_loss += loss
        params.total_debt -= loss
        self.total_debt -= loss

    def report(self, profit: int, loss: int, debt_payment: int, caller) -> int:
        """
        Settle a strategy harvest

        Args:
            profit: Gain realized since the last report
            loss: Loss realized since the last report
            debt_payment: Amount returned against outstanding debt
            caller: The reporting strategy

        Returns:
            Debt still outstanding after settlement
        """
        params = self._require_strategy(caller, "report")
        strategy = caller

        if loss > 0:
            self._report_loss(params, loss)
        params.total_gain += profit

        credit = self.credit_available(strategy)
        debt = self.debt_outstanding(strategy)
        debt_payment = min(debt_payment, debt)
        if debt_payment > 0:
            params.total_debt -= debt_payment
            self.total_debt -= debt_payment
            debt -= debt_payment

        if credit > 0:
            params.total_debt += credit
            self.total_debt += credit

        total_available = profit + debt_payment
        if total_available < credit:
            self.token.transfer(self.address, strategy.address, credit - total_available)
        elif total_available > credit:
            self.token.transfer_from(self.address, strategy.address, self.address, total_available - credit)

        params.last_report = self.clock
        params.report_count += 1

        if self.emergency_shutdown:
            return params.total_debt
        return debt

    def get_vault_summary(self) -> dict:
        """Summary of vault state for snapshots"""
        return {
            "token": self.token.symbol,
            "total_assets": self.total_assets(),
            "total_idle": self.total_idle(),
            "total_debt": self.total_debt,
            "debt_ratio": self.debt_ratio,
            "price_per_share": self.price_per_share(),
            "strategies": {
                address: {
                    "debt_ratio": params.debt_ratio,
                    "total_debt": params.total_debt,
                    "total_gain": params.total_gain,
                    "total_loss": params.total_loss,
                }
                for address, params in self.strategies.items()
            },
        }
