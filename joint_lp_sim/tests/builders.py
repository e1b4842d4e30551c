#!/usr/bin/env python3
"""
Shared builders for the joint strategy tests: a seeded pair, two vaults and
two paired strategies wired the way the simulation engine wires them.
"""

from dataclasses import dataclass

from joint_lp_sim.core.tokens import Token, to_units
from joint_lp_sim.core.pair_pool import ConstantProductPair
from joint_lp_sim.core.pool_adapter import PoolAdapter
from joint_lp_sim.vault.vault import Vault
from joint_lp_sim.agents.joint_strategy import JointLPStrategy
from joint_lp_sim.agents.partner_protocol import pair_strategies


GOVERNANCE = "governance"
KEEPER = "keeper"
SEEDER = "seeder"
TRADER = "trader"


@dataclass
class JointPair:
    token_x: Token
    token_y: Token
    pool: ConstantProductPair
    vault_x: Vault
    vault_y: Vault
    strategy_x: JointLPStrategy
    strategy_y: JointLPStrategy

    def swap(self, token_in: Token, amount_in: int) -> int:
        """Trade through the pool from an outside account"""
        token_in.mint(TRADER, amount_in)
        adapter = PoolAdapter(self.pool, self.token_x, self.token_y)
        return adapter.swap_exact_in(TRADER, token_in, amount_in, TRADER)

    def harvest_both(self):
        self.strategy_x.harvest(caller=KEEPER)
        self.strategy_y.harvest(caller=KEEPER)


def seed_pool(pool: ConstantProductPair, amount0: int, amount1: int, provider: str = SEEDER) -> int:
    pool.token0.mint(provider, amount0)
    pool.token1.mint(provider, amount1)
    pool.token0.transfer(provider, pool.address, amount0)
    pool.token1.transfer(provider, pool.address, amount1)
    return pool.mint(provider)


def build_joint_pair(seed_x: float = 1_000_000, seed_y: float = 1_000_000,
                     deposit_x: float = 100_000, deposit_y: float = 100_000,
                     fee_bps: int = 30) -> JointPair:
    """Seeded pool plus two funded vaults with paired strategies, nothing deployed yet"""
    token_x = Token("TKX")
    token_y = Token("TKY")
    pool = ConstantProductPair(token_x, token_y, fee_bps=fee_bps)
    if seed_x > 0 and seed_y > 0:
        seed_pool(pool, to_units(seed_x), to_units(seed_y))

    vault_x = Vault(token_x, GOVERNANCE)
    vault_y = Vault(token_y, GOVERNANCE)
    strategy_x = JointLPStrategy(vault_x, pool, "strategy_TKX", keeper=KEEPER)
    strategy_y = JointLPStrategy(vault_y, pool, "strategy_TKY", keeper=KEEPER)
    pair_strategies(strategy_x, strategy_y)
    vault_x.add_strategy(strategy_x, 10_000, caller=GOVERNANCE)
    vault_y.add_strategy(strategy_y, 10_000, caller=GOVERNANCE)

    for vault, amount in ((vault_x, deposit_x), (vault_y, deposit_y)):
        units = to_units(amount)
        if units > 0:
            vault.token.mint("depositor", units)
            vault.deposit("depositor", units)

    return JointPair(token_x, token_y, pool, vault_x, vault_y, strategy_x, strategy_y)


def deployed_joint_pair(**kwargs) -> JointPair:
    """Joint pair after the harvests that fund both sides and mint the shared position"""
    pair = build_joint_pair(**kwargs)
    pair.harvest_both()
    return pair
