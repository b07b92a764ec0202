"""Input models: client profile, global settings and per-year overrides.

A projection is a pure function of one ClientProfile, one GlobalSettings and an
optional list of YearOverride records. All three are frozen so the same inputs
can be shared across concurrent runs.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from qfaf.models.enums import FilingStatus


def _default_section_461l_limits() -> dict[FilingStatus, Decimal]:
    from qfaf.engines.limits import SECTION_461L_LIMITS

    return dict(SECTION_461L_LIMITS)


class ClientProfile(BaseModel):
    """Client facts supplied once per projection run."""

    model_config = ConfigDict(frozen=True)

    # Unknown statuses are kept as plain strings and degrade to single-filer values.
    filing_status: FilingStatus | str
    state_code: str = "OTHER"
    state_rate: Decimal = Field(
        default=Decimal("0"),
        description="State marginal rate, used when state_code is not in the state table",
    )
    annual_income: Decimal = Field(description="Baseline annual ordinary income")

    strategy_id: str
    collateral_amount: Decimal = Field(description="Initial collateral (Core/Overlay) value")

    existing_st_loss_carryforward: Decimal = Decimal("0")
    existing_lt_loss_carryforward: Decimal = Decimal("0")
    existing_nol_carryforward: Decimal = Decimal("0")

    qfaf_enabled: bool = True
    qfaf_override: Decimal | None = Field(
        default=None,
        description="Initial QFAF subscription; None sizes it from year-1 collateral losses",
    )
    sizing_lag_years: int = Field(
        default=0,
        description="Years before QFAF sizing responds to a collateral change",
    )
    sizing_years: int = Field(
        default=5,
        description="QFAF is sized on the average ST loss rate over years 1..sizing_years",
    )
    sizing_cushion: Decimal = Field(
        default=Decimal("0"),
        description="Fractional reduction applied to the sized QFAF subscription",
    )


class GlobalSettings(BaseModel):
    """Assumption set passed explicitly into every projection.

    Two engines holding different settings never interact, which is what the
    scenario and sensitivity tools rely on.
    """

    model_config = ConfigDict(frozen=True)

    growth_rate: Decimal = Field(
        default=Decimal("0.07"),
        description="Collateral annual growth rate",
    )
    qfaf_year1_multiplier: Decimal = Field(
        default=Decimal("1.07"),
        description="Year-1 factor applied to the initial QFAF subscription",
    )
    qfaf_decay_multiplier: Decimal = Field(
        default=Decimal("0.93"),
        description="Year-over-year QFAF factor on the fixed trajectory (<= 1)",
    )
    loss_multiplier: Decimal = Field(
        default=Decimal("1.5"),
        description="Ordinary losses and ST gains generated per dollar of QFAF",
    )
    advisor_fee_rate: Decimal = Field(
        default=Decimal("0.01"),
        description="Advisor/management fee as a fraction of collateral",
    )
    financing_fee_rate: Decimal | None = Field(
        default=None,
        description="Financing fee as a fraction of collateral; None uses the strategy's rate",
    )
    qfaf_alpha_rate: Decimal = Decimal("0")
    collateral_alpha_rate: Decimal = Decimal("0")
    nol_usable_fraction: Decimal = Field(
        default=Decimal("0.80"),
        description="Share of remaining taxable income that NOL may offset",
    )
    wash_sale_disallowance_rate: Decimal = Decimal("0")
    section_461l_limits: dict[FilingStatus, Decimal] = Field(
        default_factory=_default_section_461l_limits,
    )
    federal_rate_override: Decimal | None = Field(
        default=None,
        description="Flat federal ordinary rate; None uses the bracket table",
    )
    include_niit: bool = True
    projection_years: int = 10
    base_year: int = 2026


class YearOverride(BaseModel):
    """Sparse per-year adjustment entered by the advisor."""

    model_config = ConfigDict(frozen=True)

    year: int
    income: Decimal | None = Field(
        default=None,
        description="Substitute ordinary income; None keeps the baseline income",
    )
    cash_infusion: Decimal = Field(
        default=Decimal("0"),
        description="Cash added to collateral this year; negative is a withdrawal",
    )
    note: str = ""


class ResolvedYear(BaseModel):
    """Fully populated input for one projected year."""

    model_config = ConfigDict(frozen=True)

    year: int
    income: Decimal
    cash_infusion: Decimal = Decimal("0")
    note: str = ""
    overridden: bool = False
