#!/usr/bin/env python3
"""
Joint Position Chart Generator

Time-series charts for a joint LP run: pool price against the reference
price with the reserves underneath, each side's assets against the vaults,
and how the pool shares are split between the two strategies.
"""

from pathlib import Path
from typing import Dict, List, Any

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns
import pandas as pd


class JointPositionChartGenerator:
    """Renders the charts listed in a run's summary report"""

    def __init__(self):
        self._setup_styling()

    def _setup_styling(self):
        plt.style.use('default')
        sns.set_palette("husl")

        plt.rcParams.update({
            'figure.figsize': (12, 8),
            'font.size': 11,
            'axes.titlesize': 14,
            'axes.labelsize': 12,
            'legend.fontsize': 10,
            'xtick.labelsize': 10,
            'ytick.labelsize': 10
        })

    def generate_charts(self, scenario_name: str, results: Dict[str, Any], charts_dir: Path) -> List[Path]:
        """Render every chart for a run; returns the paths written"""
        print(f"Generating charts for: {scenario_name}")
        charts_dir = Path(charts_dir)
        charts_dir.mkdir(parents=True, exist_ok=True)

        df = pd.DataFrame(results.get("metrics_history", []))
        if df.empty:
            print("No time-series data found - skipping charts")
            return []
        df = df.set_index("step").astype(float)

        token0 = results.get("config", {}).get("token0", {}).get("symbol", "token0")
        token1 = results.get("config", {}).get("token1", {}).get("symbol", "token1")
        title = scenario_name.replace("_", " ")

        paths = [
            self._plot_price_and_reserves(df, charts_dir, title, token0, token1),
            self._plot_strategy_assets(df, charts_dir, title, token0, token1),
            self._plot_share_split(df, results, charts_dir, title),
        ]
        for path in paths:
            print(f"✅ Chart saved: {path}")
        return paths

    def _plot_price_and_reserves(self, df: pd.DataFrame, charts_dir: Path,
                                 title: str, token0: str, token1: str) -> Path:
        fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(14, 10), sharex=True)
        fig.suptitle(f'{title} - Pool Price and Reserves', fontsize=16, fontweight='bold')

        ax1.plot(df.index, df["price"], linewidth=2, label='Pool Price')
        ax1.plot(df.index, df["reference_price"], linewidth=1.5, linestyle='--', alpha=0.8, label='Reference Price')
        ax1.set_ylabel(f'{token1} per {token0}')
        ax1.legend()
        ax1.grid(True, alpha=0.3)

        ax2.plot(df.index, df["reserve0"], linewidth=2, label=f'{token0} Reserve')
        ax2.set_ylabel(token0)
        ax2_right = ax2.twinx()
        ax2_right.plot(df.index, df["reserve1"], linewidth=2, color='#E74C3C', label=f'{token1} Reserve')
        ax2_right.set_ylabel(token1)
        ax2.set_xlabel('Step')
        ax2.grid(True, alpha=0.3)

        handles, labels = ax2.get_legend_handles_labels()
        right_handles, right_labels = ax2_right.get_legend_handles_labels()
        ax2.legend(handles + right_handles, labels + right_labels, loc='upper left')

        plt.tight_layout()
        path = charts_dir / "price_and_reserves.png"
        fig.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path

    def _plot_strategy_assets(self, df: pd.DataFrame, charts_dir: Path,
                              title: str, token0: str, token1: str) -> Path:
        fig, ((ax1, ax2), (ax3, ax4)) = plt.subplots(2, 2, figsize=(14, 10))
        fig.suptitle(f'{title} - Strategy Assets', fontsize=16, fontweight='bold')

        for ax, index, symbol in ((ax1, 0, token0), (ax2, 1, token1)):
            ax.plot(df.index, df[f"strategy{index}_total_assets"], linewidth=2, label='Strategy Total Assets')
            ax.plot(df.index, df[f"strategy{index}_position_value"], linewidth=1.5, label='Pool Position Value')
            ax.plot(df.index, df[f"vault{index}_total_assets"], linewidth=1.5, linestyle='--', label='Vault Total Assets')
            ax.set_title(f'{symbol} Side')
            ax.set_ylabel(symbol)
            ax.legend()
            ax.grid(True, alpha=0.3)

        ax3.plot(df.index, df["pair_value_token1"], linewidth=2, label='Pair Value')
        ax3.plot(df.index, df["hold_value_token1"], linewidth=1.5, linestyle='--', label='Hold Value')
        ax3.set_title(f'Pair vs Hold (in {token1})')
        ax3.set_xlabel('Step')
        ax3.legend()
        ax3.grid(True, alpha=0.3)

        ax4.plot(df.index, df["vault0_price_per_share"], linewidth=2, label=f'{token0} Vault')
        ax4.plot(df.index, df["vault1_price_per_share"], linewidth=2, label=f'{token1} Vault')
        ax4.axhline(y=1.0, color='gray', linestyle=':', alpha=0.7)
        ax4.set_title('Vault Price per Share')
        ax4.set_xlabel('Step')
        ax4.legend()
        ax4.grid(True, alpha=0.3)

        plt.tight_layout()
        path = charts_dir / "strategy_assets.png"
        fig.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path

    def _plot_share_split(self, df: pd.DataFrame, results: Dict[str, Any],
                          charts_dir: Path, title: str) -> Path:
        fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(14, 6))
        fig.suptitle(f'{title} - Pool Share Split', fontsize=16, fontweight='bold')

        ax1.stackplot(
            df.index, df["strategy0_shares"], df["strategy1_shares"],
            labels=['Strategy 0', 'Strategy 1'], alpha=0.8
        )
        ax1.plot(df.index, df["pool_total_supply"], color='black', linewidth=1, label='Pool Total Supply')
        ax1.set_xlabel('Step')
        ax1.set_ylabel('LP Shares')
        ax1.legend(loc='upper left')
        ax1.grid(True, alpha=0.3)

        rebalances = pd.DataFrame(results.get("rebalance_events", []))
        if rebalances.empty:
            ax2.text(0.5, 0.5, 'No rebalances', ha='center', va='center', transform=ax2.transAxes)
        else:
            counts = rebalances.groupby("strategy").size()
            sns.barplot(x=counts.index, y=counts.values, ax=ax2)
            ax2.set_xlabel('Paying Strategy')
            ax2.set_ylabel('Rebalances')
        ax2.set_title('Rebalances Paid')

        for event in results.get("admin_events", []):
            ax1.axvline(x=event["step"], color='red', linestyle=':', alpha=0.7)

        plt.tight_layout()
        path = charts_dir / "share_split.png"
        fig.savefig(path, dpi=150, bbox_inches='tight')
        plt.close(fig)
        return path
