#!/usr/bin/env python3
"""
Joint LP Simulation Engine

Runs the paired strategies against a seeded pair pool. Each step moves the
reference price along a random walk, lets an arbitrageur trade the pool onto
it, applies scheduled deposits, withdrawals and admin events, and harvests
both strategies on the configured cadence.
"""

import math
from typing import Dict, List, Optional

import numpy as np

from ..core.tokens import Token
from ..core.pair_pool import ConstantProductPair
from ..core.pool_adapter import PoolAdapter
from ..core import constant_product_math as cpm
from ..agents.joint_strategy import JointLPStrategy
from ..agents.partner_protocol import pair_strategies
from ..vault.vault import Vault
from .config import JointSimulationConfig


GOVERNANCE = "governance"
KEEPER = "keeper"
ARBITRAGEUR = "arbitrageur"
SEED_PROVIDER = "seed_liquidity_provider"
LP_SCALE = 10 ** 18


class JointLPSimulationEngine:
    """Step-based simulation of two vaults and their paired joint strategies"""

    def __init__(self, config: Optional[JointSimulationConfig] = None):
        self.config = config or JointSimulationConfig()
        self.rng = np.random.default_rng(self.config.seed)
        self.current_step = 0

        self.token0 = Token(self.config.token0.symbol, self.config.token0.decimals)
        self.token1 = Token(self.config.token1.symbol, self.config.token1.decimals)
        self.pool = ConstantProductPair(
            self.token0, self.token1,
            fee_bps=self.config.pool.fee_bps,
            minimum_liquidity=self.config.pool.minimum_liquidity
        )
        self.arbitrage_adapter = PoolAdapter(self.pool, self.token0, self.token1)

        self.vaults = [Vault(self.token0, GOVERNANCE), Vault(self.token1, GOVERNANCE)]
        self.strategies = self._initialize_strategies()
        self.depositors = [f"depositor_{self.token0.symbol}", f"depositor_{self.token1.symbol}"]
        self.net_deposits = [0, 0]

        self._seed_pool()
        self.initial_ratio = self._pool_ratio()
        self.target_ratio = self.initial_ratio
        self._initial_deposits()

        # Histories for analysis
        self.metrics_history: List[Dict] = []
        self.harvest_events: List[Dict] = []
        self.admin_events: List[Dict] = []
        self.retired_strategies: List[JointLPStrategy] = []
        self.withdrawal_events: List[Dict] = []

    def _initialize_strategies(self) -> List[JointLPStrategy]:
        strategy0 = JointLPStrategy(self.vaults[0], self.pool, f"strategy_{self.token0.symbol}", keeper=KEEPER)
        strategy1 = JointLPStrategy(self.vaults[1], self.pool, f"strategy_{self.token1.symbol}", keeper=KEEPER)
        pair_strategies(strategy0, strategy1)

        self.vaults[0].add_strategy(strategy0, self.config.strategy0.debt_ratio_bps, caller=GOVERNANCE)
        self.vaults[1].add_strategy(strategy1, self.config.strategy1.debt_ratio_bps, caller=GOVERNANCE)
        return [strategy0, strategy1]

    def _seed_pool(self):
        """Provide the third-party liquidity the pair trades against"""
        amount0 = self.config.scaled(self.config.pool.initial_reserve0, 0)
        amount1 = self.config.scaled(self.config.pool.initial_reserve1, 1)
        self.token0.mint(SEED_PROVIDER, amount0)
        self.token1.mint(SEED_PROVIDER, amount1)
        self.arbitrage_adapter.add_liquidity(SEED_PROVIDER, amount0, amount1)

    def _initial_deposits(self):
        for index, strategy_config in enumerate([self.config.strategy0, self.config.strategy1]):
            self._deposit(index, strategy_config.initial_deposit)

    def _deposit(self, index: int, amount: float):
        units = self.config.scaled(amount, index)
        if units <= 0:
            return
        token = self.vaults[index].token
        token.mint(self.depositors[index], units)
        self.vaults[index].deposit(self.depositors[index], units)
        self.net_deposits[index] += units

    def _pool_ratio(self) -> float:
        """Reserve ratio token1/token0 in base units"""
        reserve0, reserve1 = self.pool.get_reserves()
        if reserve0 <= 0:
            return 0.0
        return reserve1 / reserve0

    # ── Simulation loop

    def run_simulation(self, steps: Optional[int] = None) -> Dict:
        """Run simulation for the configured (or given) number of steps"""
        steps = steps or self.config.steps

        for step in range(steps):
            self.current_step = step
            for vault in self.vaults:
                vault.clock = step

            self._update_market_price(step)
            self._arbitrage_to_target()
            self._process_scheduled_events(step)

            if step > 0 and step % self.config.deposit_interval == 0:
                self._deposit(0, self.config.strategy0.deposit_per_interval)
                self._deposit(1, self.config.strategy1.deposit_per_interval)

            if step % self.config.harvest_interval == 0:
                self._harvest_all(step)

            if step % self.config.metrics_recording_frequency == 0:
                self._record_metrics(step)

            if self.config.verbose and step % 100 == 0:
                print(f"Simulation step {step}/{steps}  price={self.pool.price():.4f}")

        return self._generate_results()

    def _update_market_price(self, step: int):
        """Geometric random walk of the reference ratio plus scheduled shocks"""
        log_return = self.rng.normal(self.config.price_drift, self.config.price_volatility)
        self.target_ratio *= math.exp(log_return)

        shock = self.config.price_shocks.get(step)
        if shock is not None:
            self.target_ratio *= (1 + shock)
            if self.config.verbose:
                print(f"⚡ Price shock at step {step}: {shock:+.0%} on {self.token0.symbol}")

    def _arbitrage_to_target(self) -> int:
        """Trade the pool onto the reference ratio with freshly minted funds"""
        reserve0, reserve1 = self.pool.get_reserves()
        fee_bps = self.pool.fee_bps
        current_ratio = self._pool_ratio()

        if self.target_ratio > current_ratio:
            # token0 got more expensive: sell token1 into the pool
            amount_in = cpm.swap_amount_to_target_price(reserve1, reserve0, self.target_ratio, fee_bps)
            token_in = self.token1
        else:
            amount_in = cpm.swap_amount_to_target_price(reserve0, reserve1, 1 / self.target_ratio, fee_bps)
            token_in = self.token0

        if amount_in <= 0:
            return 0

        token_in.mint(ARBITRAGEUR, amount_in)
        return self.arbitrage_adapter.swap_exact_in(ARBITRAGEUR, token_in, amount_in, ARBITRAGEUR)

    def _process_scheduled_events(self, step: int):
        fraction = self.config.withdrawal_events.get(step)
        if fraction is not None:
            for index, vault in enumerate(self.vaults):
                depositor = self.depositors[index]
                shares = int(vault.balance_of(depositor) * fraction)
                received = vault.withdraw(depositor, shares)
                self.net_deposits[index] -= received
                self.withdrawal_events.append({
                    "step": step,
                    "vault": vault.address,
                    "shares": shares,
                    "received": vault.token.to_human(received),
                })
                if self.config.verbose:
                    print(f"💸 Withdrawal at step {step}: {vault.token.to_human(received):,.2f} {vault.token.symbol}")

        if step == self.config.emergency_exit_step:
            self.strategies[0].set_emergency_exit(caller=GOVERNANCE)
            self.admin_events.append({"step": step, "event": "emergency_exit", "strategy": self.strategies[0].address})
            if self.config.verbose:
                print(f"🚨 Emergency exit set on {self.strategies[0].address} at step {step}")

        if step == self.config.migration_step:
            self._migrate_strategy0(step)

    def _migrate_strategy0(self, step: int):
        old_strategy = self.strategies[0]
        successor = JointLPStrategy(
            self.vaults[0], self.pool, f"{old_strategy.address}@{step}",
            partner=self.strategies[1], keeper=KEEPER
        )
        self.vaults[0].migrate_strategy(old_strategy, successor, caller=GOVERNANCE)
        self.strategies[0] = successor
        self.retired_strategies.append(old_strategy)
        self.admin_events.append({
            "step": step,
            "event": "migration",
            "from": old_strategy.address,
            "to": successor.address,
        })
        if self.config.verbose:
            print(f"🔁 Migrated {old_strategy.address} -> {successor.address} at step {step}")

    def _harvest_all(self, step: int):
        for strategy in self.strategies:
            record = strategy.harvest(caller=KEEPER)
            record["step"] = step
            self.harvest_events.append(record)

    # ── Metrics

    def _record_metrics(self, step: int):
        strategy0, strategy1 = self.strategies
        summary0 = strategy0.get_strategy_summary()
        summary1 = strategy1.get_strategy_summary()

        price = self.pool.price()
        total0 = self.token0.to_human(summary0["total_assets"])
        total1 = self.token1.to_human(summary1["total_assets"])
        vault_assets0 = self.token0.to_human(self.vaults[0].total_assets())
        vault_assets1 = self.token1.to_human(self.vaults[1].total_assets())
        value0 = self.token0.to_human(self.vaults[0].total_idle() + summary0["total_assets"])
        value1 = self.token1.to_human(self.vaults[1].total_idle() + summary1["total_assets"])
        held0 = self.token0.to_human(self.net_deposits[0])
        held1 = self.token1.to_human(self.net_deposits[1])

        self.metrics_history.append({
            "step": step,
            "price": price,
            "reference_price": self.target_ratio * 10 ** (self.token0.decimals - self.token1.decimals),
            "reserve0": self.token0.to_human(self.pool.reserve0),
            "reserve1": self.token1.to_human(self.pool.reserve1),
            "pool_total_supply": self.pool.total_supply() / LP_SCALE,
            "strategy0_shares": summary0["pool_shares"] / LP_SCALE,
            "strategy1_shares": summary1["pool_shares"] / LP_SCALE,
            "strategy0_idle": self.token0.to_human(summary0["idle_want"]),
            "strategy1_idle": self.token1.to_human(summary1["idle_want"]),
            "strategy0_position_value": self.token0.to_human(summary0["position_value_in_want"]),
            "strategy1_position_value": self.token1.to_human(summary1["position_value_in_want"]),
            "strategy0_total_assets": total0,
            "strategy1_total_assets": total1,
            "vault0_total_assets": vault_assets0,
            "vault1_total_assets": vault_assets1,
            "vault0_price_per_share": self.vaults[0].price_per_share(),
            "vault1_price_per_share": self.vaults[1].price_per_share(),
            # Both sides valued in token1
            "pair_value_token1": value0 * price + value1,
            "hold_value_token1": held0 * price + held1,
            "strategy0_dividends": self.token0.to_human(summary0["dividends_received"]),
            "strategy1_dividends": self.token1.to_human(summary1["dividends_received"]),
            "emergency_exit": summary0["emergency_exit"],
        })

    def _generate_results(self) -> Dict:
        return {
            "config": self.config.model_dump(mode="json"),
            "metrics_history": self.metrics_history,
            "harvest_events": self.harvest_events,
            "withdrawal_events": self.withdrawal_events,
            "admin_events": self.admin_events,
            "rebalance_events": [
                dict(event, strategy=strategy.address)
                for strategy in self.retired_strategies + self.strategies
                for event in strategy.rebalance_history
            ],
            "final_state": {
                "pool": self.pool.get_market_data(),
                "strategies": [strategy.get_strategy_summary() for strategy in self.strategies],
                "vaults": [vault.get_vault_summary() for vault in self.vaults],
            },
        }
