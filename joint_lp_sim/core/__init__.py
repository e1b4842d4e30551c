"""Tokens, pair pool and valuation primitives"""

from .tokens import Token, MAX_UINT256
from .pair_pool import ConstantProductPair, DEAD_ADDRESS
from .pool_adapter import PoolAdapter
from .valuation import PositionValuation, position_value_in_want, read_position

__all__ = [
    "Token", "MAX_UINT256",
    "ConstantProductPair", "DEAD_ADDRESS",
    "PoolAdapter",
    "PositionValuation", "position_value_in_want", "read_position"
]
