"""Summary aggregation over a projected year series."""

from decimal import Decimal

from qfaf.models.reports import ProjectionSummary, YearResult

ZERO = Decimal("0")


def _total(years: list[YearResult], field: str) -> Decimal:
    return sum((getattr(y, field) for y in years), ZERO)


def summarize(years: list[YearResult]) -> ProjectionSummary:
    """Reduce *years* to cumulative totals and final balances.

    Tax alpha = total tax savings / (average total exposure x number of years).
    An empty series yields an all-zero summary.
    """
    if not years:
        return ProjectionSummary()

    count = len(years)
    last = years[-1]
    total_tax_savings = _total(years, "tax_savings")
    average_exposure = _total(years, "total_exposure") / count
    tax_alpha = (
        total_tax_savings / (average_exposure * count) if average_exposure > ZERO else ZERO
    )

    return ProjectionSummary(
        years=count,
        total_st_losses_harvested=_total(years, "st_losses_harvested"),
        total_ordinary_losses_generated=_total(years, "ordinary_losses_generated"),
        total_usable_ordinary_loss=_total(years, "usable_ordinary_loss"),
        total_excess_to_nol=_total(years, "excess_to_nol"),
        total_nol_used=_total(years, "nol_used"),
        total_capital_loss_used=_total(years, "capital_loss_used"),
        total_fees=_total(years, "total_fees"),
        total_tax_savings=total_tax_savings,
        total_net_benefit=_total(years, "net_benefit"),
        total_alpha=_total(years, "qfaf_alpha") + _total(years, "collateral_alpha"),
        final_collateral_value=last.collateral_value,
        final_qfaf_value=last.qfaf_value,
        final_total_exposure=last.total_exposure,
        final_nol_carryforward=last.nol_carryforward_end,
        average_exposure=average_exposure,
        tax_alpha=tax_alpha,
    )
