"""QFAF subscription table (test-by-year calculator).

A stand-alone validation table: each year's cash infusion buys a QFAF
subscription, the subscription generates ordinary losses, and losses above the
§461(l) limit roll into the next year. No collateral, growth or NOL 80% rule.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from qfaf.engines.limits import section_461l_limit
from qfaf.models.enums import FilingStatus

ZERO = Decimal("0")


class SubscriptionTestYearInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    cash_infusion: Decimal = ZERO
    subscription_pct: Decimal = Decimal("1.0")
    loss_rate: Decimal = Decimal("1.5")
    marginal_tax_rate: Decimal = Decimal("0.45")
    management_fee_rate: Decimal = Decimal("0.01")
    qfaf_fee_rate: Decimal = Decimal("0.015")
    section_461l_limit: Decimal = Decimal("512000")


class SubscriptionTestYearResult(SubscriptionTestYearInput):
    subscription_size: Decimal
    estimated_ordinary_loss: Decimal
    carryforward_prior: Decimal
    loss_available: Decimal
    allowed_loss: Decimal
    carryforward_next: Decimal
    tax_savings: Decimal
    management_fee: Decimal
    qfaf_fee: Decimal
    total_fees: Decimal
    net_savings_no_alpha: Decimal


class SubscriptionTestSummary(BaseModel):
    total_cash_infusion: Decimal = ZERO
    total_subscription_size: Decimal = ZERO
    total_estimated_ordinary_loss: Decimal = ZERO
    total_allowed_loss: Decimal = ZERO
    total_tax_savings: Decimal = ZERO
    total_fees: Decimal = ZERO
    total_net_savings_no_alpha: Decimal = ZERO
    final_carryforward: Decimal = ZERO


def compute_year(
    entry: SubscriptionTestYearInput,
    carryforward_prior: Decimal = ZERO,
) -> SubscriptionTestYearResult:
    subscription = entry.cash_infusion * entry.subscription_pct
    estimated_loss = subscription * entry.loss_rate
    loss_available = estimated_loss + carryforward_prior
    allowed_loss = min(loss_available, entry.section_461l_limit)
    tax_savings = allowed_loss * entry.marginal_tax_rate
    management_fee = subscription * entry.management_fee_rate
    qfaf_fee = subscription * entry.qfaf_fee_rate
    total_fees = management_fee + qfaf_fee

    return SubscriptionTestYearResult(
        **entry.model_dump(),
        subscription_size=subscription,
        estimated_ordinary_loss=estimated_loss,
        carryforward_prior=carryforward_prior,
        loss_available=loss_available,
        allowed_loss=allowed_loss,
        carryforward_next=loss_available - allowed_loss,
        tax_savings=tax_savings,
        management_fee=management_fee,
        qfaf_fee=qfaf_fee,
        total_fees=total_fees,
        net_savings_no_alpha=tax_savings - total_fees,
    )


def compute_years(
    inputs: list[SubscriptionTestYearInput],
    initial_carryforward: Decimal = ZERO,
) -> list[SubscriptionTestYearResult]:
    """Compute every year, threading the disallowed-loss carryforward."""
    results: list[SubscriptionTestYearResult] = []
    carryforward = initial_carryforward
    for entry in inputs:
        result = compute_year(entry, carryforward)
        results.append(result)
        carryforward = result.carryforward_next
    return results


def summarize_years(results: list[SubscriptionTestYearResult]) -> SubscriptionTestSummary:
    def total(field: str) -> Decimal:
        return sum((getattr(r, field) for r in results), ZERO)

    return SubscriptionTestSummary(
        total_cash_infusion=total("cash_infusion"),
        total_subscription_size=total("subscription_size"),
        total_estimated_ordinary_loss=total("estimated_ordinary_loss"),
        total_allowed_loss=total("allowed_loss"),
        total_tax_savings=total("tax_savings"),
        total_fees=total("total_fees"),
        total_net_savings_no_alpha=total("net_savings_no_alpha"),
        final_carryforward=results[-1].carryforward_next if results else ZERO,
    )


def default_inputs(
    years: int,
    filing_status: FilingStatus | str = FilingStatus.MFJ,
    start_year: int = 1,
) -> list[SubscriptionTestYearInput]:
    """Default rows with the §461(l) limit for *filing_status*."""
    limit = section_461l_limit(filing_status)
    return [
        SubscriptionTestYearInput(year=start_year + i, section_461l_limit=limit)
        for i in range(years)
    ]
