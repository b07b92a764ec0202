"""Shared test fixtures for the QFAF projector."""

from decimal import Decimal

import pytest

from qfaf.models.enums import FilingStatus
from qfaf.models.inputs import ClientProfile, GlobalSettings, YearOverride


@pytest.fixture
def mfj_profile() -> ClientProfile:
    """MFJ filer in California, $1M income, $5M into Core 145/45.

    Sized on the year-1 rate alone so hand-worked figures stay round.
    """
    return ClientProfile(
        filing_status=FilingStatus.MFJ,
        state_code="CA",
        annual_income=Decimal("1000000"),
        strategy_id="core-145-45",
        collateral_amount=Decimal("5000000"),
        sizing_years=1,
    )


@pytest.fixture
def single_profile() -> ClientProfile:
    return ClientProfile(
        filing_status=FilingStatus.SINGLE,
        state_code="OTHER",
        state_rate=Decimal("0.05"),
        annual_income=Decimal("400000"),
        strategy_id="overlay-45-45",
        collateral_amount=Decimal("2000000"),
    )


@pytest.fixture
def settings() -> GlobalSettings:
    return GlobalSettings()


@pytest.fixture
def year3_infusion() -> list[YearOverride]:
    return [YearOverride(year=3, cash_infusion=Decimal("2000000"), note="Liquidity event")]
