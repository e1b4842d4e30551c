#!/usr/bin/env python3
"""
Joint Position Stress Scenarios

Parameter dictionaries for the scenarios the CLI can run. Each scenario only
lists what it changes relative to the default configuration.
"""

from typing import Dict, List, Optional

from .config import JointSimulationConfig


class JointStressScenarios:
    """Stress scenarios for the paired strategies"""

    BASELINE = {
        "name": "Baseline",
        "description": "Low volatility random walk with weekly deposits",
        "overrides": {
            "price_volatility": 0.005,
        },
    }

    TOKEN0_RALLY = {
        "name": "Token0_Rally",
        "description": "Token0 rallies 50% in one step, driving impermanent loss against the token0 side",
        "overrides": {
            "price_shocks": {100: 0.50},
        },
    }

    TOKEN0_CRASH = {
        "name": "Token0_Crash",
        "description": "Token0 drops 40% in one step",
        "overrides": {
            "price_shocks": {100: -0.40},
        },
    }

    HIGH_VOLATILITY = {
        "name": "High_Volatility",
        "description": "Per-step volatility of 4% with frequent harvests",
        "overrides": {
            "price_volatility": 0.04,
            "harvest_interval": 6,
        },
    }

    WITHDRAWAL_RUN = {
        "name": "Withdrawal_Run",
        "description": "Depositors redeem 30% then 50% of their shares after a price move",
        "overrides": {
            "price_shocks": {50: 0.25},
            "withdrawal_events": {200: 0.30, 400: 0.50},
        },
    }

    EMERGENCY_UNWIND = {
        "name": "Emergency_Unwind",
        "description": "Strategy 0 enters emergency exit after a crash and unwinds on its next harvest",
        "overrides": {
            "price_shocks": {100: -0.30},
            "emergency_exit_step": 150,
        },
    }

    STRATEGY_MIGRATION = {
        "name": "Strategy_Migration",
        "description": "Strategy 0 migrates to a successor mid-run; the partner follows the edge",
        "overrides": {
            "migration_step": 300,
        },
    }

    @classmethod
    def get_all_scenarios(cls) -> List[dict]:
        return [
            cls.BASELINE,
            cls.TOKEN0_RALLY,
            cls.TOKEN0_CRASH,
            cls.HIGH_VOLATILITY,
            cls.WITHDRAWAL_RUN,
            cls.EMERGENCY_UNWIND,
            cls.STRATEGY_MIGRATION,
        ]

    @classmethod
    def get_scenario_by_name(cls, name: str) -> Optional[dict]:
        for scenario in cls.get_all_scenarios():
            if scenario["name"] == name:
                return scenario
        return None

    @classmethod
    def build_config(cls, name: str, base: Optional[JointSimulationConfig] = None) -> JointSimulationConfig:
        """Apply a scenario's overrides on top of a base configuration"""
        scenario = cls.get_scenario_by_name(name)
        if scenario is None:
            raise KeyError(f"Unknown scenario: {name}")

        base = base or JointSimulationConfig()
        data: Dict = base.model_dump()
        data.update(scenario["overrides"])
        return JointSimulationConfig(**data)
