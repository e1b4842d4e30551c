#!/usr/bin/env python3
"""
Simulation, Analysis and CLI Tests

Short engine runs over the stress scenarios, the metrics and chart layers
built on their results, results storage and the command-line entry point.
"""

import sys
import os
import pytest
import pandas as pd
from pydantic import ValidationError

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from joint_lp_sim.engine.config import JointSimulationConfig, TokenConfig
from joint_lp_sim.engine.joint_engine import JointLPSimulationEngine
from joint_lp_sim.engine.scenarios import JointStressScenarios
from joint_lp_sim.analysis.metrics import JointPositionMetrics
from joint_lp_sim.analysis.charts import JointPositionChartGenerator
from joint_lp_sim.analysis.results_manager import ResultsManager, RunMetadata
from joint_lp_sim import main as cli


def short_config(**overrides) -> JointSimulationConfig:
    params = {"steps": 60, "harvest_interval": 6, "seed": 7}
    params.update(overrides)
    return JointSimulationConfig(**params)


class TestSimulationConfig:

    def test_defaults_are_valid(self):
        config = JointSimulationConfig()
        assert config.token0.symbol != config.token1.symbol
        assert config.pool.fee_bps == 30
        assert config.scaled(1.5, 0) == 1_500_000_000_000_000_000

    def test_rejects_duplicate_symbols(self):
        with pytest.raises(ValidationError):
            JointSimulationConfig(token0=TokenConfig(symbol="TKX"), token1=TokenConfig(symbol="TKX"))

    def test_rejects_price_wipeout(self):
        with pytest.raises(ValidationError):
            JointSimulationConfig(price_shocks={10: -1.0})

    def test_rejects_bad_withdrawal_fraction(self):
        with pytest.raises(ValidationError):
            JointSimulationConfig(withdrawal_events={10: 1.5})

    def test_event_steps(self):
        config = short_config(price_shocks={5: 0.1}, withdrawal_events={9: 0.5}, migration_step=3)
        assert config.event_steps() == [3, 5, 9]


class TestScenarios:

    def test_every_scenario_builds(self):
        for scenario in JointStressScenarios.get_all_scenarios():
            config = JointStressScenarios.build_config(scenario["name"])
            assert isinstance(config, JointSimulationConfig)

    def test_overrides_applied(self):
        config = JointStressScenarios.build_config("Token0_Rally")
        assert config.price_shocks == {100: 0.50}
        assert config.steps == JointSimulationConfig().steps

    def test_unknown_scenario(self):
        assert JointStressScenarios.get_scenario_by_name("Nope") is None
        with pytest.raises(KeyError):
            JointStressScenarios.build_config("Nope")


class TestSimulationEngine:

    def test_baseline_run(self):
        engine = JointLPSimulationEngine(short_config(price_shocks={20: 0.3}))
        results = engine.run_simulation()

        assert len(results["metrics_history"]) == 60
        assert len(results["harvest_events"]) == 2 * 10
        assert len(results["rebalance_events"]) > 0
        assert results["final_state"]["pool"]["swap_count"] > 0

        strategy0, strategy1 = engine.strategies
        assert strategy0.partner is strategy1 and strategy1.partner is strategy0
        assert strategy0.pool_shares() > 0 and strategy1.pool_shares() > 0

        print(f"✅ {len(results['rebalance_events'])} rebalances over {len(results['metrics_history'])} steps")

    def test_same_seed_same_path(self):
        first = JointLPSimulationEngine(short_config()).run_simulation()
        second = JointLPSimulationEngine(short_config()).run_simulation()
        assert [m["price"] for m in first["metrics_history"]] == [m["price"] for m in second["metrics_history"]]

    def test_emergency_unwind(self):
        engine = JointLPSimulationEngine(short_config(steps=30, emergency_exit_step=10))
        results = engine.run_simulation()

        strategy0 = engine.strategies[0]
        assert strategy0.emergency_exit
        assert strategy0.pool_shares() == 0
        assert engine.vaults[0].strategy_params(strategy0).total_debt == 0
        assert results["admin_events"][0]["event"] == "emergency_exit"

    def test_migration(self):
        engine = JointLPSimulationEngine(short_config(steps=30, migration_step=10))
        original = engine.strategies[0]
        results = engine.run_simulation()

        successor = engine.strategies[0]
        assert successor is not original
        assert successor.address == f"{original.address}@10"
        assert engine.strategies[1].partner is successor
        assert original.pool_shares() == 0
        assert successor.pool_shares() > 0
        assert results["admin_events"][0]["to"] == successor.address

        # Rebalances the retired strategy paid stay in the results
        assert engine.retired_strategies == [original]
        retired_events = [e for e in results["rebalance_events"] if e["strategy"] == original.address]
        assert len(retired_events) == len(original.rebalance_history)
        assert len(results["rebalance_events"]) == len(original.rebalance_history) + sum(
            len(strategy.rebalance_history) for strategy in engine.strategies
        )

    def test_withdrawals(self):
        engine = JointLPSimulationEngine(short_config(steps=30, withdrawal_events={15: 0.5}))
        results = engine.run_simulation()

        assert len(results["withdrawal_events"]) == 2
        for event in results["withdrawal_events"]:
            assert event["received"] > 0


class TestAnalysis:

    def setup_method(self):
        self.results = JointLPSimulationEngine(short_config(price_shocks={20: 0.3})).run_simulation()

    def test_summary(self):
        summary = JointPositionMetrics(self.results).calculate_summary()

        assert summary["steps"] == 60
        assert summary["harvest_count"] == 20
        assert summary["price_change_pct"] > 0
        assert 0 <= summary["max_drawdown_pct"] <= 1
        assert summary["theoretical_il_pct"] > 0

    def test_dataframes(self):
        metrics = JointPositionMetrics(self.results)
        df = metrics.to_dataframe()
        assert df.index.name == "step"
        assert "pair_value_token1" in df.columns

        harvests = metrics.harvest_dataframe()
        assert set(harvests["side"]) == {0, 1}

        breakdown = metrics.rebalance_breakdown()
        assert sum(row["rebalances"] for row in breakdown) == len(self.results["rebalance_events"])

    def test_max_drawdown(self):
        assert JointPositionMetrics.max_drawdown(pd.Series([100.0, 120.0, 90.0, 130.0])) == pytest.approx(0.25)
        assert JointPositionMetrics.max_drawdown(pd.Series([], dtype=float)) == 0.0

    def test_charts(self, tmp_path):
        paths = JointPositionChartGenerator().generate_charts("Baseline", self.results, tmp_path / "charts")
        assert [path.name for path in paths] == ["price_and_reserves.png", "strategy_assets.png", "share_split.png"]
        assert all(path.exists() for path in paths)

    def test_results_round_trip(self, tmp_path):
        manager = ResultsManager(str(tmp_path))
        run_dir = manager.create_run_directory("Baseline")
        metadata = RunMetadata(run_dir.name, "Baseline", "2024-01-01T00:00:00", {"steps": 60}, 1.5)

        manager.save_results(run_dir, self.results, metadata)
        manager.save_summary_report(run_dir, metadata, JointPositionMetrics(self.results).calculate_summary())

        loaded = manager.load_results(run_dir)
        assert len(loaded["metrics_history"]) == 60
        assert manager.load_metadata(run_dir) == metadata
        assert (run_dir / "summary.md").exists()
        assert manager.create_run_directory("Baseline").name.startswith("run_002_")
        assert len(manager.list_scenario_runs("Baseline")) == 2


class TestCommandLine:

    def test_list_scenarios(self, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", ["joint-lp-sim", "--list-scenarios"])
        assert cli.main() == 0
        assert "Token0_Rally" in capsys.readouterr().out

    def test_run_scenario(self, monkeypatch, tmp_path):
        monkeypatch.setattr(sys, "argv", [
            "joint-lp-sim", "--scenario", "Baseline", "--steps", "24",
            "--no-charts", "--output", str(tmp_path)
        ])
        assert cli.main() == 0
        assert len(list((tmp_path / "Baseline").iterdir())) == 1

    def test_unknown_scenario_fails(self, monkeypatch, tmp_path):
        monkeypatch.setattr(sys, "argv", ["joint-lp-sim", "--scenario", "Nope", "--output", str(tmp_path)])
        assert cli.main() == 1

    def test_no_arguments_prints_help(self, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["joint-lp-sim"])
        assert cli.main() == 1
