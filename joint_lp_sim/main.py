#!/usr/bin/env python3
"""
Joint LP Simulation - Main Entry Point

Runs a paired joint-liquidity scenario end to end: builds the pool, vaults
and strategies from a scenario configuration, simulates it, prints the key
metrics and stores results, a markdown summary and charts under a numbered
run directory.
"""

import sys
import argparse
import time
from datetime import datetime
from typing import Dict

from joint_lp_sim.engine.config import JointSimulationConfig
from joint_lp_sim.engine.joint_engine import JointLPSimulationEngine
from joint_lp_sim.engine.scenarios import JointStressScenarios
from joint_lp_sim.analysis.metrics import JointPositionMetrics
from joint_lp_sim.analysis.charts import JointPositionChartGenerator
from joint_lp_sim.analysis.results_manager import ResultsManager, RunMetadata


def main() -> int:
    """Main entry point with command-line interface"""

    parser = argparse.ArgumentParser(
        description="Joint LP Strategy Simulation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m joint_lp_sim.main --list-scenarios
  python -m joint_lp_sim.main --scenario Token0_Rally --steps 500
  python -m joint_lp_sim.main --scenario Strategy_Migration --no-charts --verbose
  python -m joint_lp_sim.main --list-results Baseline
        """
    )

    parser.add_argument('--scenario', type=str,
                        help='Run a specific scenario')

    parser.add_argument('--list-scenarios', action='store_true',
                        help='List all available scenarios')

    parser.add_argument('--list-results', type=str, metavar='SCENARIO',
                        help='List all saved results for a specific scenario')

    parser.add_argument('--steps', type=int,
                        help='Number of simulation steps (default: scenario configuration)')

    parser.add_argument('--seed', type=int,
                        help='Random seed for reproducibility')

    parser.add_argument('--no-charts', action='store_true',
                        help='Skip chart generation')

    parser.add_argument('--output', type=str, default='results',
                        help='Base directory for saved runs (default: results)')

    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Verbose output')

    args = parser.parse_args()

    if not any([args.scenario, args.list_scenarios, args.list_results]):
        parser.print_help()
        return 1

    try:
        if args.list_scenarios:
            list_scenarios()
            return 0

        elif args.list_results:
            return list_scenario_results(args.list_results, args.output)

        print(f"Running Scenario: {args.scenario}")
        print("=" * 60)
        return run_scenario(args.scenario, args)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 1
    except Exception as e:
        print(f"Error: {str(e)}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def create_simulation_config(scenario_name: str, args) -> JointSimulationConfig:
    """Scenario configuration with command-line overrides applied"""
    config = JointStressScenarios.build_config(scenario_name)

    overrides = {"verbose": args.verbose, "output_dir": args.output}
    if args.steps is not None:
        overrides["steps"] = args.steps
    if args.seed is not None:
        overrides["seed"] = args.seed

    return config.model_copy(update=overrides)


def list_scenarios():
    print("Available Scenarios:")
    print("-" * 40)

    for i, scenario in enumerate(JointStressScenarios.get_all_scenarios(), 1):
        print(f"{i:2d}. {scenario['name']}")
        print(f"    {scenario['description']}")
        print()


def list_scenario_results(scenario_name: str, base_dir: str) -> int:
    manager = ResultsManager(base_dir)
    runs = manager.list_scenario_runs(scenario_name)

    if not runs:
        print(f"No saved results for {scenario_name}")
        return 1

    print(f"Saved runs for {scenario_name}:")
    print("-" * 40)
    for run in runs:
        timestamp = run.get("timestamp", "unknown")
        execution_time = run.get("execution_time")
        duration = f"{execution_time:.1f}s" if execution_time is not None else "n/a"
        print(f"  {run['run_id']}  ({timestamp}, {duration})")
    return 0


def run_scenario(scenario_name: str, args) -> int:
    """Simulate one scenario and persist its results"""
    try:
        config = create_simulation_config(scenario_name, args)
    except KeyError as e:
        print(f"Error: {e.args[0]}")
        print("\nUse --list-scenarios to see available scenarios")
        return 1

    print(f"Configuration:")
    print(f"  Pair: {config.token0.symbol}/{config.token1.symbol} ({config.pool.fee_bps} bps fee)")
    print(f"  Steps: {config.steps}  Seed: {config.seed}")
    print(f"  Harvest interval: {config.harvest_interval}")
    if config.event_steps():
        print(f"  Scheduled events at steps: {config.event_steps()}")
    print()

    start_time = time.time()
    engine = JointLPSimulationEngine(config)
    results = engine.run_simulation()
    elapsed = time.time() - start_time

    summary = JointPositionMetrics(results).calculate_summary()
    display_summary(scenario_name, summary)

    manager = ResultsManager(config.output_dir)
    run_dir = manager.create_run_directory(scenario_name)
    metadata = RunMetadata(
        run_id=run_dir.name,
        scenario_name=scenario_name,
        timestamp=datetime.now().isoformat(),
        parameters=config.model_dump(mode="json"),
        execution_time=elapsed,
    )
    manager.save_results(run_dir, results, metadata)
    manager.save_summary_report(run_dir, metadata, summary)

    if not args.no_charts:
        JointPositionChartGenerator().generate_charts(scenario_name, results, run_dir / "charts")

    print(f"\n📁 Results saved to {run_dir}")
    print(f"Scenario completed in {elapsed:.1f}s")
    return 0


def display_summary(scenario_name: str, summary: Dict):
    print(f"\nResults for {scenario_name}:")
    print("=" * (len(scenario_name) + 12))

    if not summary:
        print("No metrics recorded")
        return

    print(f"Price: {summary['initial_price']:.4f} -> {summary['final_price']:.4f} "
          f"({summary['price_change_pct']:+.2%})")
    print(f"Pair value vs hold: {summary['value_vs_hold_pct']:+.2%} "
          f"(theoretical IL {summary['theoretical_il_pct']:.2%})")
    print(f"Max drawdown: {summary['max_drawdown_pct']:.2%}")
    print(f"Share split drift: {summary['share_split_drift_pct']:.2%}")
    print(f"Harvests: {summary['harvest_count']}  Rebalances: {summary['rebalance_count']}")

    print(f"\nPer side:")
    for index in (0, 1):
        print(f"  Strategy {index}: assets {summary[f'strategy{index}_final_assets']:,.2f}, "
              f"profit {summary[f'strategy{index}_reported_profit']:,.2f}, "
              f"loss {summary[f'strategy{index}_reported_loss']:,.2f}, "
              f"dividends {summary[f'strategy{index}_dividends']:,.2f}")


if __name__ == "__main__":
    sys.exit(main())
