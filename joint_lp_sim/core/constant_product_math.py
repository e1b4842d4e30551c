#!/usr/bin/env python3
"""
Pure mathematical calculations for the constant product (x*y=k) pair.

This module contains only mathematical functions with no state mutations.
Token amounts are integer base units and every division floors, matching
what the pair contract itself computes.
"""

import math
from typing import Tuple


BPS_DENOMINATOR = 10_000


def get_amount_out(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_bps: int = 30
) -> int:
    """
    Calculate output amount for an exact-input constant product swap

    Uses the formula: amount_out = (amount_in_with_fee * reserve_out) / (reserve_in + amount_in_with_fee)

    Args:
        amount_in: Amount of input token
        reserve_in: Reserve of input token
        reserve_out: Reserve of output token
        fee_bps: Trading fee in basis points (default 0.3%)

    Returns:
        Amount of output token
    """
    if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0

    amount_in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * BPS_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Equal-value amount of token B for amount_a of token A at spot reserves"""
    if amount_a <= 0 or reserve_a <= 0 or reserve_b <= 0:
        return 0
    return amount_a * reserve_b // reserve_a


def liquidity_to_mint(
    amount0: int,
    amount1: int,
    reserve0: int,
    reserve1: int,
    total_supply: int,
    minimum_liquidity: int = 1000
) -> int:
    """
    Calculate LP tokens to mint when adding liquidity

    Args:
        amount0: Amount of token0 added
        amount1: Amount of token1 added
        reserve0: Reserve of token0 before the deposit
        reserve1: Reserve of token1 before the deposit
        total_supply: Current total LP token supply
        minimum_liquidity: LP tokens permanently locked on the first mint

    Returns:
        LP tokens to mint (may be zero or negative for dust first deposits)
    """
    if amount0 <= 0 or amount1 <= 0:
        return 0

    if total_supply == 0:
        # First liquidity provision - geometric mean minus the locked amount
        return math.isqrt(amount0 * amount1) - minimum_liquidity

    return min(
        amount0 * total_supply // reserve0,
        amount1 * total_supply // reserve1
    )


def liquidity_removal(
    liquidity: int,
    total_supply: int,
    reserve0: int,
    reserve1: int
) -> Tuple[int, int]:
    """Pro-rata token amounts returned for burning liquidity"""
    if liquidity <= 0 or total_supply <= 0:
        return 0, 0

    return liquidity * reserve0 // total_supply, liquidity * reserve1 // total_supply


def share_value_in_reserve(shares: int, reserve: int, total_supply: int) -> int:
    """
    Spot value of pool shares denominated in one reserve asset

    A pool share entitles its holder to an equal value of each reserve at the
    current price, so the holding is worth twice its claim on either reserve.
    Returns zero for an empty pool.
    """
    if total_supply <= 0 or shares <= 0:
        return 0
    return shares * (2 * reserve) // total_supply


def want_out_for_burn(
    shares: int,
    reserve_want: int,
    reserve_other: int,
    total_supply: int,
    fee_bps: int = 30
) -> int:
    """
    Want recovered by burning shares and swapping the other-asset proceeds
    back into want through the same pool.
    """
    if shares <= 0 or total_supply <= 0:
        return 0

    want_out, other_out = liquidity_removal(shares, total_supply, reserve_want, reserve_other)
    swapped = get_amount_out(
        other_out, reserve_other - other_out, reserve_want - want_out, fee_bps
    )
    return want_out + swapped


def shares_for_want_out(
    target_want: int,
    shares_held: int,
    reserve_want: int,
    reserve_other: int,
    total_supply: int,
    fee_bps: int = 30
) -> int:
    """
    Smallest share amount whose burn-and-swap yields at least target_want.

    Capped at shares_held: when even the whole holding falls short, the whole
    holding is returned and the caller reports the remainder as loss.
    """
    if target_want <= 0 or shares_held <= 0:
        return 0

    def recovered(shares: int) -> int:
        return want_out_for_burn(shares, reserve_want, reserve_other, total_supply, fee_bps)

    if recovered(shares_held) < target_want:
        return shares_held

    low, high = 0, shares_held
    while low < high:
        mid = (low + high) // 2
        if recovered(mid) >= target_want:
            high = mid
        else:
            low = mid + 1
    return low


def swap_amount_to_target_price(
    reserve_in: int,
    reserve_out: int,
    target_ratio: float,
    fee_bps: int = 30
) -> int:
    """
    Input amount that moves reserve_in / reserve_out to target_ratio.

    Solves the constant product for the new input reserve sqrt(k * target_ratio)
    and grosses the difference up for the trading fee. Returns zero when the
    pool is already at or above the target.
    """
    if reserve_in <= 0 or reserve_out <= 0 or target_ratio <= 0:
        return 0

    k = float(reserve_in) * float(reserve_out)
    new_reserve_in = math.sqrt(k * target_ratio)
    raw_amount = new_reserve_in - reserve_in
    if raw_amount <= 0:
        return 0

    return int(raw_amount * BPS_DENOMINATOR / (BPS_DENOMINATOR - fee_bps))


def calculate_impermanent_loss(
    price_ratio_initial: float,
    price_ratio_current: float
) -> float:
    """
    Calculate impermanent loss for a liquidity position

    Args:
        price_ratio_initial: Initial price ratio (price_b / price_a)
        price_ratio_current: Current price ratio (price_b / price_a)

    Returns:
        Impermanent loss as a fraction (0-1)
    """
    if price_ratio_initial <= 0 or price_ratio_current <= 0:
        return 0.0

    price_change = price_ratio_current / price_ratio_initial

    # IL = 1 - 2 * sqrt(price_change) / (1 + price_change)
    lp_value_ratio = 2 * math.sqrt(price_change) / (1 + price_change)

    return max(0.0, 1 - lp_value_ratio)
