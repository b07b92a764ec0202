"""Data models for the QFAF projector."""

from qfaf.models.enums import FilingStatus, ScenarioType, StrategyType
from qfaf.models.inputs import ClientProfile, GlobalSettings, ResolvedYear, YearOverride
from qfaf.models.reports import ProjectionResult, ProjectionSummary, YearResult

__all__ = [
    "ClientProfile",
    "FilingStatus",
    "GlobalSettings",
    "ProjectionResult",
    "ProjectionSummary",
    "ResolvedYear",
    "ScenarioType",
    "StrategyType",
    "YearOverride",
    "YearResult",
]
