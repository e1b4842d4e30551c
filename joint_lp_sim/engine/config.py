#!/usr/bin/env python3
"""
Configuration schemas for the joint LP strategy simulation.

Pydantic models for every simulation parameter: the two pool assets, the
pair pool, the paired strategies and the run itself.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class TokenConfig(BaseModel):
    """Configuration for one pool asset"""
    symbol: str = Field(min_length=1, description="Token symbol")
    decimals: int = Field(ge=0, le=36, default=18, description="Token decimals")
    initial_price_usd: float = Field(gt=0, default=1.0, description="Reference USD price for reporting")


class PoolConfig(BaseModel):
    """Pair pool configuration"""
    fee_bps: int = Field(ge=0, lt=10_000, default=30, description="Trading fee in basis points")
    minimum_liquidity: int = Field(ge=0, default=1000, description="Shares locked on the first mint")
    initial_reserve0: float = Field(gt=0, default=1_000_000.0, description="Seed reserve of token0")
    initial_reserve1: float = Field(gt=0, default=1_000_000.0, description="Seed reserve of token1")


class StrategyConfig(BaseModel):
    """Configuration for one side of the strategy pair"""
    debt_ratio_bps: int = Field(ge=0, le=10_000, default=10_000, description="Share of vault assets lent to the strategy")
    initial_deposit: float = Field(ge=0, default=100_000.0, description="Vault deposit before the first step")
    deposit_per_interval: float = Field(ge=0, default=0.0, description="Recurring vault deposit")


class JointSimulationConfig(BaseModel):
    """Complete simulation configuration"""
    token0: TokenConfig = Field(default_factory=lambda: TokenConfig(symbol="TKX"))
    token1: TokenConfig = Field(default_factory=lambda: TokenConfig(symbol="TKY"))
    pool: PoolConfig = Field(default_factory=PoolConfig)
    strategy0: StrategyConfig = Field(default_factory=StrategyConfig)
    strategy1: StrategyConfig = Field(default_factory=StrategyConfig)

    steps: int = Field(gt=0, default=720, description="Number of simulation steps")
    seed: Optional[int] = Field(default=42, description="Random seed for the price path")
    harvest_interval: int = Field(gt=0, default=24, description="Steps between harvests")
    deposit_interval: int = Field(gt=0, default=168, description="Steps between recurring deposits")
    price_volatility: float = Field(ge=0, le=1, default=0.01, description="Per-step log price standard deviation")
    price_drift: float = Field(ge=-1, le=1, default=0.0, description="Per-step log price drift")
    metrics_recording_frequency: int = Field(gt=0, default=1, description="Steps between metric snapshots")

    price_shocks: Dict[int, float] = Field(default_factory=dict, description="Step -> relative token0 price shock")
    withdrawal_events: Dict[int, float] = Field(default_factory=dict, description="Step -> fraction of depositor shares redeemed")
    emergency_exit_step: Optional[int] = Field(default=None, ge=0, description="Step at which strategy0 enters emergency exit")
    migration_step: Optional[int] = Field(default=None, ge=0, description="Step at which strategy0 migrates to a successor")

    verbose: bool = False
    output_dir: str = "results"

    @field_validator("price_shocks")
    @classmethod
    def validate_price_shocks(cls, v):
        """Shocks are relative moves that must keep the price positive"""
        for step, shock in v.items():
            if step < 0:
                raise ValueError("price shock steps must be non-negative")
            if shock <= -1:
                raise ValueError(f"price shock {shock} at step {step} would make the price non-positive")
        return v

    @field_validator("withdrawal_events")
    @classmethod
    def validate_withdrawals(cls, v):
        for step, fraction in v.items():
            if not 0 < fraction <= 1:
                raise ValueError(f"withdrawal fraction {fraction} at step {step} must be in (0, 1]")
        return v

    @model_validator(mode="after")
    def validate_distinct_tokens(self):
        if self.token0.symbol == self.token1.symbol:
            raise ValueError("pool assets must have distinct symbols")
        return self

    def scaled(self, amount: float, token_index: int) -> int:
        """Human amount in integer base units of token0 or token1"""
        decimals = (self.token0 if token_index == 0 else self.token1).decimals
        return int(round(amount * 10 ** decimals))

    def event_steps(self) -> List[int]:
        steps = set(self.price_shocks) | set(self.withdrawal_events)
        for step in (self.emergency_exit_step, self.migration_step):
            if step is not None:
                steps.add(step)
        return sorted(steps)
