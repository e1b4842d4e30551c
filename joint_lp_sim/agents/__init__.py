"""Vault strategies and the partner protocol"""

from .base_strategy import BaseStrategy
from .joint_strategy import JointLPStrategy
from .partner_protocol import PartnerProtocolMixin, pair_strategies

__all__ = [
    "BaseStrategy", "JointLPStrategy",
    "PartnerProtocolMixin", "pair_strategies"
]
