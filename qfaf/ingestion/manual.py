"""Loaders for advisor-prepared JSON input files.

Profile:   {"filing_status": "MARRIED_FILING_JOINTLY", "annual_income": "1000000", ...}
Settings:  partial object; unspecified fields keep their defaults
Overrides: [{"year": 3, "cash_infusion": "2000000", "note": "Liquidity event"}, ...]
"""

import json
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from qfaf.exceptions import InputFileError
from qfaf.models.inputs import ClientProfile, GlobalSettings, YearOverride


def _read_json(file_path: Path) -> Any:
    if not file_path.exists():
        raise InputFileError(str(file_path), "file not found")
    try:
        return json.loads(file_path.read_text())
    except json.JSONDecodeError as exc:
        raise InputFileError(str(file_path), f"invalid JSON: {exc}") from exc


def load_profile(file_path: Path) -> ClientProfile:
    raw = _read_json(file_path)
    if not isinstance(raw, dict):
        raise InputFileError(str(file_path), "expected a JSON object")
    try:
        return ClientProfile(**raw)
    except ValidationError as exc:
        raise InputFileError(str(file_path), str(exc)) from exc


def load_settings(file_path: Path) -> GlobalSettings:
    raw = _read_json(file_path)
    if not isinstance(raw, dict):
        raise InputFileError(str(file_path), "expected a JSON object")
    try:
        return GlobalSettings(**raw)
    except ValidationError as exc:
        raise InputFileError(str(file_path), str(exc)) from exc


def load_overrides(file_path: Path) -> list[YearOverride]:
    """Read a list of year overrides. An empty list is valid."""
    raw = _read_json(file_path)
    if isinstance(raw, dict):
        raw = raw.get("overrides", [])
    if not isinstance(raw, list):
        raise InputFileError(str(file_path), "expected a JSON list of overrides")
    try:
        return [YearOverride(**record) for record in raw]
    except (TypeError, ValidationError) as exc:
        raise InputFileError(str(file_path), str(exc)) from exc
