"""Lending vault the strategies borrow from"""

from .vault import Vault, StrategyParams

__all__ = ["Vault", "StrategyParams"]
