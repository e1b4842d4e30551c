#!/usr/bin/env python3
"""
Joint Position Metrics

Summary statistics over a simulation run: how each side's assets evolved,
how far the pair fell behind simply holding the deposits, and how the
50/50 share split drifted as rebalances moved value between the sides.
"""

from typing import Dict, List

import numpy as np
import pandas as pd

from ..core.constant_product_math import calculate_impermanent_loss


class JointPositionMetrics:
    """Metrics calculator over JointLPSimulationEngine results"""

    def __init__(self, results: Dict):
        self.results = results
        self.config = results.get("config", {})

    def to_dataframe(self) -> pd.DataFrame:
        """Metrics history indexed by step"""
        df = pd.DataFrame(self.results.get("metrics_history", []))
        if df.empty:
            return df
        return df.set_index("step")

    def harvest_dataframe(self) -> pd.DataFrame:
        df = pd.DataFrame(self.results.get("harvest_events", []))
        if df.empty:
            return df

        token0 = self.config.get("token0", {})
        token1 = self.config.get("token1", {})
        decimals = {0: token0.get("decimals", 18), 1: token1.get("decimals", 18)}
        side = (df["want"] != token0.get("symbol")).astype(int)
        scale = side.map(lambda index: 10.0 ** decimals[index])
        for column in ("profit", "loss", "debt_payment", "debt_outstanding", "total_assets"):
            df[column] = df[column].astype(float) / scale
        df["side"] = side
        return df

    @staticmethod
    def max_drawdown(series: pd.Series) -> float:
        """Largest peak-to-trough decline as a fraction of the peak"""
        if series.empty:
            return 0.0
        values = series.to_numpy(dtype=float)
        running_peak = np.maximum.accumulate(values)
        with np.errstate(divide="ignore", invalid="ignore"):
            drawdowns = np.where(running_peak > 0, (running_peak - values) / running_peak, 0.0)
        return float(np.nanmax(drawdowns))

    def calculate_summary(self) -> Dict:
        df = self.to_dataframe()
        if df.empty:
            return {}

        first, last = df.iloc[0], df.iloc[-1]
        initial_price = float(first["price"])
        final_price = float(last["price"])

        hold_value = float(last["hold_value_token1"])
        pair_value = float(last["pair_value_token1"])
        shares0 = float(last["strategy0_shares"])
        shares1 = float(last["strategy1_shares"])
        total_shares = shares0 + shares1

        harvests = self.harvest_dataframe()
        profit_by_side = harvests.groupby("side")["profit"].sum() if not harvests.empty else pd.Series(dtype=float)
        loss_by_side = harvests.groupby("side")["loss"].sum() if not harvests.empty else pd.Series(dtype=float)

        return {
            "steps": int(len(df)),
            "initial_price": initial_price,
            "final_price": final_price,
            "price_change_pct": final_price / initial_price - 1 if initial_price > 0 else 0.0,
            "strategy0_final_assets": float(last["strategy0_total_assets"]),
            "strategy1_final_assets": float(last["strategy1_total_assets"]),
            "pair_value_token1": pair_value,
            "hold_value_token1": hold_value,
            "value_vs_hold_pct": pair_value / hold_value - 1 if hold_value > 0 else 0.0,
            "theoretical_il_pct": calculate_impermanent_loss(initial_price, final_price),
            "max_drawdown_pct": self.max_drawdown(df["pair_value_token1"]),
            "share_split_drift_pct": abs(shares0 - shares1) / total_shares if total_shares > 0 else 0.0,
            "strategy0_dividends": float(last["strategy0_dividends"]),
            "strategy1_dividends": float(last["strategy1_dividends"]),
            "strategy0_reported_profit": float(profit_by_side.get(0, 0.0)),
            "strategy1_reported_profit": float(profit_by_side.get(1, 0.0)),
            "strategy0_reported_loss": float(loss_by_side.get(0, 0.0)),
            "strategy1_reported_loss": float(loss_by_side.get(1, 0.0)),
            "rebalance_count": len(self.results.get("rebalance_events", [])),
            "harvest_count": len(self.results.get("harvest_events", [])),
        }

    def rebalance_breakdown(self) -> List[Dict]:
        """Per-strategy count and total benefit of the rebalances it paid"""
        df = pd.DataFrame(self.results.get("rebalance_events", []))
        if df.empty:
            return []
        df["benefit"] = df["benefit"].astype(float)
        df["other_paid"] = df["other_paid"].astype(float)
        grouped = df.groupby("strategy").agg(
            rebalances=("benefit", "size"),
            total_benefit=("benefit", "sum"),
            total_other_paid=("other_paid", "sum"),
        )
        return grouped.reset_index().to_dict(orient="records")
