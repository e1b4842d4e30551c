#!/usr/bin/env python3
"""
Fungible Token Ledger

Minimal ERC20-style ledger used by the pool, the vaults and the strategies.
Holders are address strings and all amounts are integer base units.
"""

from typing import Dict, Tuple

from .errors import InsufficientBalanceError, InsufficientAllowanceError


MAX_UINT256 = 2 ** 256 - 1


def to_units(amount: float, decimals: int = 18) -> int:
    """Convert a human-readable amount into integer base units"""
    return int(round(amount * 10 ** decimals))


def from_units(units: int, decimals: int = 18) -> float:
    """Convert integer base units into a human-readable float"""
    return units / 10 ** decimals


class Token:
    """Fungible token with balances and allowances"""

    def __init__(self, symbol: str, decimals: int = 18):
        self.symbol = symbol
        self.decimals = decimals
        self.address = f"token:{symbol}"
        self.total_supply = 0
        self._balances: Dict[str, int] = {}
        self._allowances: Dict[Tuple[str, str], int] = {}

    def __repr__(self) -> str:
        return f"Token({self.symbol})"

    def balance_of(self, holder: str) -> int:
        return self._balances.get(holder, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            raise ValueError("allowance cannot be negative")
        self._allowances[(owner, spender)] = amount
        return True

    def mint(self, to: str, amount: int):
        """Create new units out of thin air (simulation faucet)"""
        if amount < 0:
            raise ValueError("mint amount cannot be negative")
        self._balances[to] = self.balance_of(to) + amount
        self.total_supply += amount

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
        """Move tokens on behalf of owner; unlimited allowances are never decremented"""
        allowed = self.allowance(owner, spender)
        if allowed < amount:
            raise InsufficientAllowanceError(
                f"{self.symbol}: {spender} may move {allowed} of {owner}'s tokens, tried {amount}"
            )
        self.transfer(owner, recipient, amount)
        if allowed != MAX_UINT256:
            self._allowances[(owner, spender)] = allowed - amount
        return True

    def to_human(self, units: int) -> float:
        return from_units(units, self.decimals)
