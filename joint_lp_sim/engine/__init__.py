"""Simulation engine, configuration and scenarios"""

from .config import JointSimulationConfig, TokenConfig, PoolConfig, StrategyConfig
from .joint_engine import JointLPSimulationEngine
from .scenarios import JointStressScenarios
