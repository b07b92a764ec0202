"""Marginal tax rate configuration.

2026 federal ordinary brackets, NIIT thresholds and top marginal state rates.
Keyed by filing status / state code. Never hardcode rates in computation functions.

Sources:
  - Federal: IRS Rev. Proc. 2025-32 (includes OBBBA adjustments)
  - NIIT: IRC Section 1411 (thresholds are statutory, not inflation-adjusted)
  - States: Tax Foundation 2026 top marginal rates
"""

from decimal import Decimal

from qfaf.models.enums import FilingStatus

# ---------------------------------------------------------------------------
# Federal ordinary income brackets (2026): {filing_status: [(upper_bound, rate), ...]}
# Upper bound is Decimal or None for the top bracket.
# ---------------------------------------------------------------------------
FEDERAL_BRACKETS: dict[FilingStatus, list[tuple[Decimal | None, Decimal]]] = {
    FilingStatus.SINGLE: [
        (Decimal("12400"), Decimal("0.10")),
        (Decimal("50400"), Decimal("0.12")),
        (Decimal("105700"), Decimal("0.22")),
        (Decimal("201775"), Decimal("0.24")),
        (Decimal("256225"), Decimal("0.32")),
        (Decimal("640600"), Decimal("0.35")),
        (None, Decimal("0.37")),
    ],
    FilingStatus.MFJ: [
        (Decimal("24800"), Decimal("0.10")),
        (Decimal("100800"), Decimal("0.12")),
        (Decimal("211400"), Decimal("0.22")),
        (Decimal("403550"), Decimal("0.24")),
        (Decimal("512450"), Decimal("0.32")),
        (Decimal("768700"), Decimal("0.35")),
        (None, Decimal("0.37")),
    ],
    FilingStatus.MFS: [
        (Decimal("12400"), Decimal("0.10")),
        (Decimal("50400"), Decimal("0.12")),
        (Decimal("105700"), Decimal("0.22")),
        (Decimal("201775"), Decimal("0.24")),
        (Decimal("256225"), Decimal("0.32")),
        (Decimal("384350"), Decimal("0.35")),
        (None, Decimal("0.37")),
    ],
    FilingStatus.HOH: [
        (Decimal("17650"), Decimal("0.10")),
        (Decimal("67450"), Decimal("0.12")),
        (Decimal("105700"), Decimal("0.22")),
        (Decimal("201775"), Decimal("0.24")),
        (Decimal("256225"), Decimal("0.32")),
        (Decimal("640600"), Decimal("0.35")),
        (None, Decimal("0.37")),
    ],
}

# ---------------------------------------------------------------------------
# NIIT (IRC Section 1411)
# ---------------------------------------------------------------------------
NIIT_RATE = Decimal("0.038")
NIIT_THRESHOLD: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("200000"),
    FilingStatus.MFJ: Decimal("250000"),
    FilingStatus.MFS: Decimal("125000"),
    FilingStatus.HOH: Decimal("200000"),
}

# ---------------------------------------------------------------------------
# Top marginal state income tax rates (2026). "OTHER" is not listed: callers
# supply their own rate for it.
# ---------------------------------------------------------------------------
STATE_RATES: dict[str, Decimal] = {
    # No income tax
    "AK": Decimal("0"),
    "FL": Decimal("0"),
    "NV": Decimal("0"),
    "NH": Decimal("0"),
    "SD": Decimal("0"),
    "TN": Decimal("0"),
    "TX": Decimal("0"),
    "WA": Decimal("0"),
    "WY": Decimal("0"),
    # Income tax
    "AL": Decimal("0.05"),
    "AZ": Decimal("0.025"),
    "AR": Decimal("0.039"),
    "CA": Decimal("0.133"),  # 12.3% + 1% mental health surtax
    "CO": Decimal("0.044"),
    "CT": Decimal("0.0699"),
    "DE": Decimal("0.066"),
    "DC": Decimal("0.1075"),
    "GA": Decimal("0.0519"),
    "HI": Decimal("0.11"),
    "ID": Decimal("0.058"),
    "IL": Decimal("0.0495"),
    "IN": Decimal("0.0295"),
    "IA": Decimal("0.0375"),
    "KS": Decimal("0.057"),
    "KY": Decimal("0.04"),
    "LA": Decimal("0.03"),
    "ME": Decimal("0.0715"),
    "MD": Decimal("0.0575"),
    "MA": Decimal("0.09"),  # 5% + 4% millionaire surtax
    "MI": Decimal("0.0405"),
    "MN": Decimal("0.0985"),
    "MS": Decimal("0.04"),
    "MO": Decimal("0.048"),
    "MT": Decimal("0.059"),
    "NE": Decimal("0.0455"),
    "NJ": Decimal("0.1075"),
    "NM": Decimal("0.059"),
    "NY": Decimal("0.109"),
    "NC": Decimal("0.0399"),
    "ND": Decimal("0.0225"),
    "OH": Decimal("0.0275"),
    "OK": Decimal("0.0475"),
    "OR": Decimal("0.099"),
    "PA": Decimal("0.0307"),
    "RI": Decimal("0.0599"),
    "SC": Decimal("0.064"),
    "UT": Decimal("0.0465"),
    "VT": Decimal("0.0875"),
    "VA": Decimal("0.0575"),
    "WV": Decimal("0.047"),
    "WI": Decimal("0.0765"),
}


def federal_marginal_rate(income: Decimal, filing_status: FilingStatus | str) -> Decimal:
    """Federal ordinary marginal bracket rate at *income* (NIIT excluded)."""
    brackets = FEDERAL_BRACKETS.get(filing_status, FEDERAL_BRACKETS[FilingStatus.SINGLE])
    for upper, rate in brackets:
        if upper is None or income < upper:
            return rate
    return brackets[-1][1]


def niit_rate(income: Decimal, filing_status: FilingStatus | str) -> Decimal:
    threshold = NIIT_THRESHOLD.get(filing_status, NIIT_THRESHOLD[FilingStatus.SINGLE])
    return NIIT_RATE if income > threshold else Decimal("0")


def state_marginal_rate(state_code: str, fallback_rate: Decimal) -> Decimal:
    """Top state rate from the table, or *fallback_rate* for unlisted codes."""
    return STATE_RATES.get(state_code.upper(), fallback_rate)


def combined_marginal_rate(
    income: Decimal,
    filing_status: FilingStatus | str,
    state_rate: Decimal,
    federal_rate_override: Decimal | None = None,
    include_niit: bool = True,
) -> Decimal:
    """Federal + NIIT + state marginal rate applied to deductions at *income*."""
    if federal_rate_override is not None:
        federal = federal_rate_override
    else:
        federal = federal_marginal_rate(income, filing_status)
    if include_niit:
        federal += niit_rate(income, filing_status)
    return federal + state_rate
