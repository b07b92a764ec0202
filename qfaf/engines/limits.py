"""Statutory limitation tables.

Sources:
  - §461(l) excess business loss limits for 2026 per Rev. Proc. 2025-32
    (OBBBA reset the base to $250K/$500K, indexed from 2024)
  - NOL deduction limited to 80% of taxable income per IRC Section 172(a)(2)
  - Capital loss limitation per IRC Section 1211(b)

Unknown filing statuses fall back to the single-filer values; a bad selector
must never stop a projection from rendering.
"""

from decimal import Decimal

from qfaf.models.enums import FilingStatus

SECTION_461L_LIMITS: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("256000"),
    FilingStatus.MFJ: Decimal("512000"),
    FilingStatus.MFS: Decimal("256000"),
    FilingStatus.HOH: Decimal("256000"),
}

# Not filing-status dependent
NOL_USABLE_FRACTION = Decimal("0.80")

CAPITAL_LOSS_LIMIT: dict[FilingStatus, Decimal] = {
    FilingStatus.SINGLE: Decimal("3000"),
    FilingStatus.MFJ: Decimal("3000"),
    FilingStatus.MFS: Decimal("1500"),
    FilingStatus.HOH: Decimal("3000"),
}


def section_461l_limit(
    filing_status: FilingStatus | str,
    limits: dict[FilingStatus, Decimal] | None = None,
) -> Decimal:
    """Ordinary-loss deduction cap for the projection's base year."""
    table = limits if limits is not None else SECTION_461L_LIMITS
    fallback = table.get(FilingStatus.SINGLE, SECTION_461L_LIMITS[FilingStatus.SINGLE])
    return table.get(filing_status, fallback)


def capital_loss_limit(filing_status: FilingStatus | str) -> Decimal:
    return CAPITAL_LOSS_LIMIT.get(filing_status, CAPITAL_LOSS_LIMIT[FilingStatus.SINGLE])
