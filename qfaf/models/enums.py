"""Enumerations for the QFAF projector."""

from enum import StrEnum


class FilingStatus(StrEnum):
    SINGLE = "SINGLE"
    MFJ = "MARRIED_FILING_JOINTLY"
    MFS = "MARRIED_FILING_SEPARATELY"
    HOH = "HEAD_OF_HOUSEHOLD"


class StrategyType(StrEnum):
    CORE = "CORE"  # cash funded
    OVERLAY = "OVERLAY"  # appreciated stock as collateral


class ScenarioType(StrEnum):
    BULL = "BULL"
    BASE = "BASE"
    BEAR = "BEAR"
