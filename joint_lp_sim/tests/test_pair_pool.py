#!/usr/bin/env python3
"""
Pair Pool Test Suite

Tests for the constant product pair collaborator and its pure math:
first-mint locking, pro-rata burns, fee-adjusted swaps and the adapter's
want/other orientation.
"""

import sys
import os
import math
import pytest

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from joint_lp_sim.core.tokens import Token, to_units, MAX_UINT256
from joint_lp_sim.core.pair_pool import ConstantProductPair, DEAD_ADDRESS
from joint_lp_sim.core.pool_adapter import PoolAdapter
from joint_lp_sim.core.errors import (
    AssetPairMismatchError, InsufficientAllowanceError,
    InsufficientBalanceError, InsufficientLiquidityError
)
from joint_lp_sim.core import constant_product_math as cpm
from joint_lp_sim.tests.builders import seed_pool


class TestConstantProductMath:
    """Pure function checks"""

    def test_get_amount_out_applies_fee(self):
        without_fee = cpm.get_amount_out(1_000, 1_000_000, 1_000_000, fee_bps=0)
        with_fee = cpm.get_amount_out(1_000, 1_000_000, 1_000_000, fee_bps=30)
        assert without_fee == 999
        assert with_fee < without_fee
        assert cpm.get_amount_out(0, 1_000_000, 1_000_000) == 0
        assert cpm.get_amount_out(1_000, 0, 1_000_000) == 0

    def test_first_mint_subtracts_minimum_liquidity(self):
        assert cpm.liquidity_to_mint(4_000_000, 1_000_000, 0, 0, 0, 1000) == 2_000_000 - 1000
        assert cpm.liquidity_to_mint(100, 100, 0, 0, 0, 1000) <= 0

    def test_later_mint_uses_smaller_ratio(self):
        assert cpm.liquidity_to_mint(100, 300, 1_000, 2_000, 500, 1000) == 50

    def test_share_value_zero_supply(self):
        assert cpm.share_value_in_reserve(50, 1_000, 0) == 0
        assert cpm.share_value_in_reserve(50, 1_000, 200) == 500

    def test_shares_for_want_out_is_minimal(self):
        reserve_want, reserve_other, supply = 10 ** 24, 10 ** 24, 10 ** 24
        held = 10 ** 22
        target = 5 * 10 ** 21

        shares = cpm.shares_for_want_out(target, held, reserve_want, reserve_other, supply, 30)
        assert 0 < shares < held
        assert cpm.want_out_for_burn(shares, reserve_want, reserve_other, supply, 30) >= target
        assert cpm.want_out_for_burn(shares - 1, reserve_want, reserve_other, supply, 30) < target

        print(f"✅ {shares} shares recover {target} want")

    def test_shares_for_want_out_caps_at_holding(self):
        held = 1_000
        assert cpm.shares_for_want_out(10 ** 30, held, 10 ** 6, 10 ** 6, 10 ** 6, 30) == held

    def test_swap_amount_reaches_target_ratio(self):
        reserve_in = reserve_out = 10 ** 24
        amount = cpm.swap_amount_to_target_price(reserve_in, reserve_out, 1.21, fee_bps=0)
        out = cpm.get_amount_out(amount, reserve_in, reserve_out, fee_bps=0)
        ratio = (reserve_in + amount) / (reserve_out - out)
        assert ratio == pytest.approx(1.21, rel=1e-6)
        assert cpm.swap_amount_to_target_price(reserve_in, reserve_out, 0.9) == 0

    def test_impermanent_loss(self):
        assert cpm.calculate_impermanent_loss(1.0, 1.0) == 0.0
        assert cpm.calculate_impermanent_loss(1.0, 4.0) == pytest.approx(0.2)


class TestConstantProductPair:
    """Pair pool collaborator"""

    def setup_method(self):
        self.token_x = Token("TKX")
        self.token_y = Token("TKY")
        self.pool = ConstantProductPair(self.token_x, self.token_y)

    def test_first_mint_locks_minimum_liquidity(self):
        liquidity = seed_pool(self.pool, to_units(1_000), to_units(1_000))

        assert liquidity == to_units(1_000) - 1000
        assert self.pool.balance_of(DEAD_ADDRESS) == 1000
        assert self.pool.total_supply() == to_units(1_000)
        assert self.pool.get_reserves() == (to_units(1_000), to_units(1_000))

    def test_mint_without_deposit_raises(self):
        seed_pool(self.pool, to_units(1_000), to_units(1_000))
        with pytest.raises(InsufficientLiquidityError):
            self.pool.mint("nobody")

    def test_burn_pays_pro_rata(self):
        liquidity = seed_pool(self.pool, to_units(1_000), to_units(4_000))
        supply = self.pool.total_supply()
        burn_amount = liquidity // 4

        self.pool.transfer("seeder", self.pool.address, burn_amount)
        amount0, amount1 = self.pool.burn("seeder")

        assert amount0 == burn_amount * to_units(1_000) // supply
        assert amount1 == burn_amount * to_units(4_000) // supply
        assert self.pool.total_supply() == supply - burn_amount
        assert self.pool.reserve0 == to_units(1_000) - amount0

    def test_swap_grows_k_and_moves_price(self):
        seed_pool(self.pool, to_units(1_000), to_units(1_000))
        adapter = PoolAdapter(self.pool, self.token_x, self.token_y)
        k_before = self.pool.reserve0 * self.pool.reserve1
        price_before = self.pool.price()

        self.token_y.mint("trader", to_units(10))
        out = adapter.swap_exact_in("trader", self.token_y, to_units(10), "trader")

        assert out > 0
        assert self.token_x.balance_of("trader") == out
        assert self.pool.reserve0 * self.pool.reserve1 > k_before
        assert self.pool.price() > price_before
        assert self.pool.swap_count == 1

    def test_swap_rejects_k_violation(self):
        seed_pool(self.pool, to_units(1_000), to_units(1_000))
        self.token_y.mint("thief", 1)
        self.token_y.transfer("thief", self.pool.address, 1)
        with pytest.raises(InsufficientLiquidityError):
            self.pool.swap(to_units(1), 0, "thief")

    def test_lp_transfer_from_respects_allowance(self):
        seed_pool(self.pool, to_units(1_000), to_units(1_000))
        with pytest.raises(InsufficientAllowanceError):
            self.pool.transfer_from("spender", "seeder", "spender", 1)

        self.pool.approve("seeder", "spender", MAX_UINT256)
        self.pool.transfer_from("spender", "seeder", "spender", 10)
        assert self.pool.balance_of("spender") == 10
        assert self.pool.allowance("seeder", "spender") == MAX_UINT256

    def test_token_transfer_over_balance_raises(self):
        with pytest.raises(InsufficientBalanceError):
            self.token_x.transfer("empty", "someone", 1)


class TestPoolAdapter:
    """Want/other orientation"""

    def setup_method(self):
        self.token_x = Token("TKX")
        self.token_y = Token("TKY")
        self.pool = ConstantProductPair(self.token_x, self.token_y)
        seed_pool(self.pool, to_units(1_000), to_units(2_000))

    def test_orientation_follows_want(self):
        adapter_x = PoolAdapter(self.pool, self.token_x, self.token_y)
        adapter_y = PoolAdapter(self.pool, self.token_y, self.token_x)

        assert adapter_x.want_is_token0 is True
        assert adapter_y.want_is_token0 is False
        assert adapter_x.reserves() == (to_units(1_000), to_units(2_000))
        assert adapter_y.reserves() == (to_units(2_000), to_units(1_000))

    def test_remove_liquidity_returns_want_first(self):
        adapter_y = PoolAdapter(self.pool, self.token_y, self.token_x)
        shares = self.pool.balance_of("seeder") // 10

        want_out, other_out = adapter_y.remove_liquidity("seeder", shares, "seeder")
        assert want_out == pytest.approx(2 * other_out, rel=1e-9)
        assert self.token_y.balance_of("seeder") == want_out

    def test_dust_swap_is_skipped(self):
        adapter = PoolAdapter(self.pool, self.token_x, self.token_y)
        self.token_y.mint("trader", 1)
        assert adapter.swap_exact_in("trader", self.token_y, 1, "trader") == 0
        assert self.token_y.balance_of("trader") == 1

    def test_mismatched_assets_raise(self):
        token_z = Token("TKZ")
        with pytest.raises(AssetPairMismatchError):
            PoolAdapter(self.pool, self.token_x, token_z)
        with pytest.raises(AssetPairMismatchError):
            PoolAdapter(self.pool, self.token_x, self.token_x)
        with pytest.raises(AssetPairMismatchError):
            PoolAdapter(self.pool, self.token_x, self.token_y).swap_exact_in("trader", token_z, 10, "trader")
