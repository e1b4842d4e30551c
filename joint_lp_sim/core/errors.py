#!/usr/bin/env python3
"""
Joint LP Strategy Errors

Exception types raised by the token ledger, the pair pool and the paired strategies.
Shortfalls are never raised: they are reported as loss to the vault.
"""


class JointStrategyError(Exception):
    """Base class for all joint strategy simulation errors"""


class UnauthorizedCallerError(JointStrategyError, PermissionError):
    """A privileged operation was invoked by a caller without the required role"""

    def __init__(self, operation: str, caller: str, expected: str):
        self.operation = operation
        self.caller = caller
        self.expected = expected
        super().__init__(f"{operation}: caller {caller} is not {expected}")


class AssetPairMismatchError(JointStrategyError, ValueError):
    """Strategy assets do not match the pool pair or collide with the partner"""


class InsufficientBalanceError(JointStrategyError):
    """Token transfer exceeds the holder's balance"""


class InsufficientAllowanceError(JointStrategyError):
    """Token transfer_from exceeds the granted allowance"""


class InsufficientLiquidityError(JointStrategyError):
    """Pool operation would mint, burn or swap zero or exceed reserves"""
