#!/usr/bin/env python3
"""
Results Management

Numbered run directories per scenario holding results.json, metadata.json,
a markdown summary and the generated charts.
"""

import json
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class RunMetadata:
    """Metadata for a single simulation run"""
    run_id: str
    scenario_name: str
    timestamp: str
    parameters: Dict[str, Any]
    execution_time: float
    status: str = "completed"


class ResultsManager:
    """Stores simulation runs under results/<scenario>/run_NNN_<timestamp>/"""

    def __init__(self, base_results_dir: str = "results"):
        self.base_results_dir = Path(base_results_dir)
        self.base_results_dir.mkdir(parents=True, exist_ok=True)

    def create_run_directory(self, scenario_name: str) -> Path:
        scenario_dir = self.base_results_dir / scenario_name
        scenario_dir.mkdir(exist_ok=True)

        run_number = self._get_next_run_number(scenario_dir)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        run_dir = scenario_dir / f"run_{run_number:03d}_{timestamp}"
        run_dir.mkdir(exist_ok=True)
        (run_dir / "charts").mkdir(exist_ok=True)
        return run_dir

    def _get_next_run_number(self, scenario_dir: Path) -> int:
        run_numbers = []
        for run_dir in scenario_dir.iterdir():
            if not run_dir.is_dir() or not run_dir.name.startswith("run_"):
                continue
            try:
                run_numbers.append(int(run_dir.name.split("_")[1]))
            except (ValueError, IndexError):
                continue
        return max(run_numbers) + 1 if run_numbers else 1

    def save_results(self, run_dir: Path, results: Dict[str, Any], metadata: RunMetadata) -> Path:
        """Write results.json and metadata.json; returns the results path"""
        results_file = run_dir / "results.json"
        with open(results_file, 'w') as f:
            json.dump(self._make_serializable(results), f, indent=2)

        with open(run_dir / "metadata.json", 'w') as f:
            json.dump(self._make_serializable(asdict(metadata)), f, indent=2)

        return results_file

    def save_summary_report(self, run_dir: Path, metadata: RunMetadata, summary: Dict[str, Any]) -> Path:
        summary_file = run_dir / "summary.md"
        with open(summary_file, 'w') as f:
            f.write(self._generate_markdown_summary(metadata, summary))
        return summary_file

    def _generate_markdown_summary(self, metadata: RunMetadata, summary: Dict[str, Any]) -> str:
        lines = ["# Joint LP Simulation Summary\n"]

        lines.append("## Run Information")
        lines.append(f"- **Scenario**: {metadata.scenario_name}")
        lines.append(f"- **Run**: {metadata.run_id}")
        lines.append(f"- **Timestamp**: {metadata.timestamp}")
        lines.append(f"- **Execution Time**: {metadata.execution_time:.2f}s")
        lines.append("")

        lines.append("## Key Metrics")
        for key, value in summary.items():
            label = key.replace('_', ' ').title()
            if isinstance(value, float):
                if key.endswith("_pct"):
                    lines.append(f"- **{label}**: {value:.2%}")
                else:
                    lines.append(f"- **{label}**: {value:,.4f}")
            else:
                lines.append(f"- **{label}**: {value}")
        lines.append("")

        lines.append("## Generated Charts")
        lines.append("- Price and reserves: `charts/price_and_reserves.png`")
        lines.append("- Strategy assets: `charts/strategy_assets.png`")
        lines.append("- Pool share split: `charts/share_split.png`")
        return "\n".join(lines)

    def list_scenario_runs(self, scenario_name: str) -> List[Dict[str, Any]]:
        scenario_dir = self.base_results_dir / scenario_name
        if not scenario_dir.exists():
            return []

        runs = []
        for run_dir in scenario_dir.iterdir():
            if not run_dir.is_dir() or not run_dir.name.startswith("run_"):
                continue
            metadata = self.load_metadata(run_dir)
            entry = {"run_id": run_dir.name, "path": str(run_dir)}
            if metadata is not None:
                entry.update(asdict(metadata))
            runs.append(entry)

        runs.sort(key=lambda run: run["path"])
        return runs

    def load_results(self, run_path: Path) -> Optional[Dict[str, Any]]:
        results_file = Path(run_path) / "results.json"
        if not results_file.exists():
            return None
        try:
            with open(results_file, 'r') as f:
                return json.load(f)
        except json.JSONDecodeError:
            return None

    def load_metadata(self, run_path: Path) -> Optional[RunMetadata]:
        metadata_file = Path(run_path) / "metadata.json"
        if not metadata_file.exists():
            return None
        try:
            with open(metadata_file, 'r') as f:
                return RunMetadata(**json.load(f))
        except (json.JSONDecodeError, TypeError):
            return None

    def _make_serializable(self, obj: Any) -> Any:
        """Convert numpy values, tuples and non-string keys into JSON-friendly types"""
        if hasattr(obj, 'tolist'):  # numpy arrays
            return obj.tolist()
        if hasattr(obj, 'item'):  # numpy scalars
            return obj.item()
        if isinstance(obj, dict):
            return {str(k): self._make_serializable(v) for k, v in obj.items()}
        if isinstance(obj, (list, tuple, set, frozenset)):
            return [self._make_serializable(item) for item in obj]
        return obj
