"""Year-override resolution.

Merges a sparse list of advisor overrides onto the default year series so the
projection engine always sees exactly one fully populated input per year.
"""

import logging
from decimal import Decimal

from qfaf.exceptions import InvalidProjectionLengthError
from qfaf.models.inputs import ResolvedYear, YearOverride

logger = logging.getLogger(__name__)


def default_years(default_income: Decimal, years: int) -> list[ResolvedYear]:
    """Baseline inputs: no infusion and the baseline income in every year."""
    if years <= 0:
        raise InvalidProjectionLengthError(years)
    return [ResolvedYear(year=y, income=default_income) for y in range(1, years + 1)]


def resolve_overrides(
    overrides: list[YearOverride] | None,
    default_income: Decimal,
    years: int,
) -> list[ResolvedYear]:
    """Resolve *overrides* into one entry per year 1..*years*.

    Overrides for years outside the horizon are dropped. When a year appears
    more than once the last entry wins.
    """
    resolved = default_years(default_income, years)
    by_year: dict[int, YearOverride] = {}
    for override in overrides or []:
        if not 1 <= override.year <= years:
            logger.warning(
                "Ignoring override for year %d outside the %d-year horizon",
                override.year, years,
            )
            continue
        if override.year in by_year:
            logger.warning("Duplicate override for year %d; using the later entry", override.year)
        by_year[override.year] = override

    for override in by_year.values():
        resolved[override.year - 1] = ResolvedYear(
            year=override.year,
            income=override.income if override.income is not None else default_income,
            cash_infusion=override.cash_infusion,
            note=override.note,
            overridden=True,
        )
    return resolved

