"""Projection engines."""

from qfaf.engines.projection import ProjectionEngine, project, project_with_overrides
from qfaf.engines.scenarios import analyze_scenarios, compare_strategies, sensitivity_sweep
from qfaf.engines.summary import summarize

__all__ = [
    "ProjectionEngine",
    "analyze_scenarios",
    "compare_strategies",
    "project",
    "project_with_overrides",
    "sensitivity_sweep",
    "summarize",
]
