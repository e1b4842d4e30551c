"""
Joint LP Strategy Simulation

Two vault strategies that pool their assets into one constant product pair,
split the resulting shares 50/50 and resettle value between themselves on
every harvest.
"""

__version__ = "1.0.0"

# Core components
from .core.tokens import Token
from .core.pair_pool import ConstantProductPair
from .core.pool_adapter import PoolAdapter
from .core.valuation import PositionValuation, position_value_in_want
from .core.errors import (
    JointStrategyError, UnauthorizedCallerError, AssetPairMismatchError,
    InsufficientBalanceError, InsufficientAllowanceError, InsufficientLiquidityError
)

# Vault and strategies
from .vault.vault import Vault, StrategyParams
from .agents.base_strategy import BaseStrategy
from .agents.joint_strategy import JointLPStrategy
from .agents.partner_protocol import pair_strategies

# Engine
from .engine.config import JointSimulationConfig
from .engine.joint_engine import JointLPSimulationEngine
from .engine.scenarios import JointStressScenarios

# Analysis
from .analysis.metrics import JointPositionMetrics

__all__ = [
    # Core
    "Token", "ConstantProductPair", "PoolAdapter",
    "PositionValuation", "position_value_in_want",
    "JointStrategyError", "UnauthorizedCallerError", "AssetPairMismatchError",
    "InsufficientBalanceError", "InsufficientAllowanceError", "InsufficientLiquidityError",

    # Vault and strategies
    "Vault", "StrategyParams", "BaseStrategy", "JointLPStrategy", "pair_strategies",

    # Engine
    "JointSimulationConfig", "JointLPSimulationEngine", "JointStressScenarios",

    # Analysis
    "JointPositionMetrics"
]
