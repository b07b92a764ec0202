"""Projection output models."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

ZERO = Decimal("0")


class YearResult(BaseModel):
    """One projected year. Produced only by the projection engine."""

    model_config = ConfigDict(frozen=True)

    year: int
    calendar_year: int
    taxable_income: Decimal
    cash_infusion: Decimal
    marginal_tax_rate: Decimal
    # Portfolio values at year end
    collateral_value: Decimal
    qfaf_value: Decimal
    total_exposure: Decimal
    # Capital gains/losses
    st_losses_harvested: Decimal
    st_gains_generated: Decimal
    net_st_gain_loss: Decimal
    # Ordinary losses and §461(l)
    ordinary_losses_generated: Decimal
    usable_ordinary_loss: Decimal
    excess_to_nol: Decimal
    # NOL
    nol_carryforward_start: Decimal
    nol_used: Decimal
    nol_carryforward_end: Decimal
    # Pre-existing capital loss carryforwards (§1211(b))
    st_loss_carryforward: Decimal
    lt_loss_carryforward: Decimal
    capital_loss_used: Decimal
    income_offset: Decimal
    max_income_offset_capacity: Decimal
    # Costs and benefits
    advisor_fee: Decimal
    financing_fee: Decimal
    total_fees: Decimal
    tax_savings: Decimal
    net_benefit: Decimal
    qfaf_alpha: Decimal
    collateral_alpha: Decimal
    # Edge-condition flags
    collateral_clamped: bool = False
    qfaf_resized: bool = False


class ProjectionSummary(BaseModel):
    """Cumulative totals over a projected year series."""

    model_config = ConfigDict(frozen=True)

    years: int = 0
    total_st_losses_harvested: Decimal = ZERO
    total_ordinary_losses_generated: Decimal = ZERO
    total_usable_ordinary_loss: Decimal = ZERO
    total_excess_to_nol: Decimal = ZERO
    total_nol_used: Decimal = ZERO
    total_capital_loss_used: Decimal = ZERO
    total_fees: Decimal = ZERO
    total_tax_savings: Decimal = ZERO
    total_net_benefit: Decimal = ZERO
    total_alpha: Decimal = ZERO
    final_collateral_value: Decimal = ZERO
    final_qfaf_value: Decimal = ZERO
    final_total_exposure: Decimal = ZERO
    final_nol_carryforward: Decimal = ZERO
    average_exposure: Decimal = ZERO
    tax_alpha: Decimal = ZERO


class ProjectionResult(BaseModel):
    """Complete output of one projection run."""

    model_config = ConfigDict(frozen=True)

    strategy_id: str
    strategy_name: str
    sizing_policy: str
    initial_collateral_value: Decimal
    initial_qfaf_value: Decimal
    section_461l_limit: Decimal
    years: list[YearResult]
    summary: ProjectionSummary
    warnings: list[str] = []
