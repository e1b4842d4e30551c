"""Run metrics, charts and results storage"""

from .metrics import JointPositionMetrics
from .results_manager import ResultsManager, RunMetadata
