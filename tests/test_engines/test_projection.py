"""Tests for the multi-year projection engine.

Reference client (conftest.mfj_profile): MFJ, California, $1,000,000 income,
$5,000,000 collateral in Core 145/45, default settings, QFAF sized on the
year-1 ST loss rate.
"""

import logging
from decimal import Decimal

import pytest

from qfaf.engines.projection import ProjectionEngine, project, project_with_overrides
from qfaf.exceptions import (
    InvalidProjectionLengthError,
    SettingsValidationError,
    UnknownStrategyError,
)
from qfaf.models.enums import FilingStatus
from qfaf.models.inputs import ClientProfile, GlobalSettings, YearOverride

ZERO = Decimal("0")
MFJ_LIMIT = Decimal("512000")


def _collateral_series(result):
    return [y.collateral_value for y in result.years]


class TestBaselineYearOne:
    """Year 1 worked by hand.

    Collateral:   5,000,000 x 1.07            = 5,350,000
    ST losses:    5,350,000 x 28.5%           = 1,524,750
    Initial QFAF: 5,000,000 x 28.5% / 1.5     =   950,000
    QFAF year 1:  950,000 x 1.07              = 1,016,500
    Ordinary:     1,016,500 x 1.5             = 1,524,750
    Usable:       min(1,524,750, 512,000, 1M) =   512,000
    Excess -> NOL                             = 1,012,750
    Marginal:     37% + 3.8% + 13.3%          =     54.1%
    Tax savings:  512,000 x 54.1%             =   276,992
    Fees:         5,350,000 x (1% + 2.3%)     =   176,550
    """

    @pytest.fixture
    def year1(self, mfj_profile):
        return project(mfj_profile).years[0]

    def test_collateral(self, year1):
        assert year1.collateral_value == Decimal("5350000")
        assert year1.calendar_year == 2026

    def test_st_losses(self, year1):
        assert year1.st_losses_harvested == Decimal("1524750")

    def test_qfaf(self, year1):
        assert year1.qfaf_value == Decimal("1016500")
        assert year1.total_exposure == Decimal("6366500")

    def test_ordinary_losses(self, year1):
        assert year1.ordinary_losses_generated == Decimal("1524750")
        assert year1.usable_ordinary_loss == MFJ_LIMIT
        assert year1.excess_to_nol == Decimal("1012750")

    def test_nol(self, year1):
        assert year1.nol_carryforward_start == ZERO
        assert year1.nol_used == ZERO
        assert year1.nol_carryforward_end == Decimal("1012750")

    def test_savings_and_fees(self, year1):
        assert year1.marginal_tax_rate == Decimal("0.541")
        assert year1.tax_savings == Decimal("276992")
        assert year1.advisor_fee == Decimal("53500")
        assert year1.financing_fee == Decimal("123050")
        assert year1.total_fees == Decimal("176550")
        assert year1.net_benefit == Decimal("100442")

    def test_initial_values_on_result(self, mfj_profile):
        result = project(mfj_profile)
        assert result.initial_qfaf_value == Decimal("950000")
        assert result.initial_collateral_value == Decimal("5000000")
        assert result.section_461l_limit == MFJ_LIMIT
        assert result.sizing_policy == "fixed-decay"


class TestBaselineYearTwo:
    def test_nol_used(self, mfj_profile):
        """Remaining income 1,000,000 - 512,000 = 488,000; 80% = 390,400 < 1,012,750."""
        year2 = project(mfj_profile).years[1]
        assert year2.nol_carryforward_start == Decimal("1012750")
        assert year2.nol_used == Decimal("390400")

    def test_qfaf_decays(self, mfj_profile):
        result = project(mfj_profile)
        assert result.years[1].qfaf_value == Decimal("945345")
        for prev, cur in zip(result.years, result.years[1:]):
            assert cur.qfaf_value == prev.qfaf_value * Decimal("0.93")


class TestMfjTenYearScenario:
    def test_all_years_produced(self, mfj_profile):
        result = project(mfj_profile)
        assert [y.year for y in result.years] == list(range(1, 11))
        assert result.summary.years == 10

    def test_usable_capped_at_mfj_limit(self, mfj_profile):
        for y in project(mfj_profile).years:
            assert y.ordinary_losses_generated > MFJ_LIMIT
            assert y.usable_ordinary_loss == MFJ_LIMIT

    def test_custom_horizon(self, mfj_profile):
        result = project(mfj_profile, GlobalSettings(projection_years=3))
        assert len(result.years) == 3


class TestInvariants:
    @pytest.fixture
    def results(self, mfj_profile, single_profile, year3_infusion):
        return [
            project(mfj_profile),
            project(single_profile),
            project_with_overrides(mfj_profile, overrides=year3_infusion),
            project_with_overrides(
                single_profile,
                overrides=[
                    YearOverride(year=2, income=Decimal("50000")),
                    YearOverride(year=4, cash_infusion=Decimal("-3000000")),
                ],
            ),
        ]

    def test_carryforward_continuity(self, results):
        for result in results:
            for prev, cur in zip(result.years, result.years[1:]):
                assert prev.nol_carryforward_end == cur.nol_carryforward_start

    def test_cap_enforcement(self, results):
        for result in results:
            for y in result.years:
                assert y.usable_ordinary_loss <= min(
                    y.ordinary_losses_generated, result.section_461l_limit, y.taxable_income
                )

    def test_non_negative_balances(self, results):
        for result in results:
            for y in result.years:
                assert y.collateral_value >= ZERO
                assert y.qfaf_value >= ZERO
                assert y.nol_carryforward_end >= ZERO
                assert y.excess_to_nol >= ZERO

    def test_nol_used_limited_by_income(self, results):
        for result in results:
            for y in result.years:
                remaining = y.taxable_income - y.usable_ordinary_loss - y.capital_loss_used
                assert y.nol_used <= remaining * Decimal("0.80")
                assert y.nol_used <= y.nol_carryforward_start


class TestOverrideNeutrality:
    def test_empty_overrides(self, mfj_profile):
        baseline = project(mfj_profile)
        overridden = project_with_overrides(mfj_profile, overrides=[])
        assert overridden.years == baseline.years
        assert overridden.summary == baseline.summary

    def test_all_default_overrides(self, mfj_profile):
        baseline = project(mfj_profile)
        overridden = project_with_overrides(
            mfj_profile,
            overrides=[YearOverride(year=3), YearOverride(year=7, income=Decimal("1000000"))],
        )
        assert overridden.years == baseline.years


class TestCashInfusion:
    def test_year3_infusion(self, mfj_profile, year3_infusion):
        """Infusion lands after year-3 growth, so the year-3 gap is exactly 2,000,000."""
        baseline = project(mfj_profile)
        infused = project_with_overrides(mfj_profile, overrides=year3_infusion)
        gap = infused.years[2].collateral_value - baseline.years[2].collateral_value
        assert gap == Decimal("2000000")
        assert infused.years[3].st_losses_harvested > baseline.years[3].st_losses_harvested

    def test_prior_years_unaffected(self, mfj_profile, year3_infusion):
        baseline = project(mfj_profile)
        infused = project_with_overrides(mfj_profile, overrides=year3_infusion)
        assert infused.years[:2] == baseline.years[:2]

    def test_monotonic_in_infusion_amount(self, mfj_profile):
        small = project_with_overrides(
            mfj_profile, overrides=[YearOverride(year=4, cash_infusion=Decimal("100000"))]
        )
        large = project_with_overrides(
            mfj_profile, overrides=[YearOverride(year=4, cash_infusion=Decimal("200000"))]
        )
        assert _collateral_series(small)[:3] == _collateral_series(large)[:3]
        for a, b in zip(_collateral_series(small)[3:], _collateral_series(large)[3:]):
            assert b > a

    def test_infusion_adds_qfaf_at_opening_ratio(self, mfj_profile, year3_infusion):
        """2,000,000 x 950,000 / 5,000,000 = 380,000 on top of the decayed value."""
        baseline = project(mfj_profile)
        infused = project_with_overrides(mfj_profile, overrides=year3_infusion)
        year3 = infused.years[2]
        assert year3.qfaf_resized is True
        assert year3.qfaf_value == baseline.years[2].qfaf_value + Decimal("380000")
        for base, cur in zip(baseline.years[3:], infused.years[3:]):
            assert cur.qfaf_value > base.qfaf_value
            assert cur.qfaf_resized is False

    def test_infusion_never_reduces_qfaf_or_savings(self, mfj_profile, year3_infusion):
        baseline = project(mfj_profile)
        infused = project_with_overrides(mfj_profile, overrides=year3_infusion)
        for base, cur in zip(baseline.years, infused.years):
            assert cur.qfaf_value >= base.qfaf_value
        assert infused.summary.total_tax_savings >= baseline.summary.total_tax_savings

    def test_one_dollar_infusion_is_continuous(self):
        """A $1 year-5 infusion on the default five-year sizing window moves QFAF by cents."""
        profile = ClientProfile(
            filing_status=FilingStatus.MFJ,
            state_code="CA",
            annual_income=Decimal("1000000"),
            strategy_id="core-145-45",
            collateral_amount=Decimal("5000000"),
        )
        baseline = project(profile)
        infused = project_with_overrides(
            profile, overrides=[YearOverride(year=5, cash_infusion=Decimal("1"))]
        )
        gap = infused.years[4].qfaf_value - baseline.years[4].qfaf_value
        assert ZERO < gap < Decimal("1")
        assert infused.summary.total_tax_savings >= baseline.summary.total_tax_savings

    def test_withdrawal_shrinks_qfaf(self, mfj_profile):
        baseline = project(mfj_profile)
        result = project_with_overrides(
            mfj_profile, overrides=[YearOverride(year=5, cash_infusion=Decimal("-500000"))]
        )
        assert result.years[4].qfaf_value == baseline.years[4].qfaf_value - Decimal("95000")

    def test_large_withdrawal_clamps_qfaf_at_zero(self, mfj_profile):
        result = project_with_overrides(
            mfj_profile,
            overrides=[YearOverride(year=2, cash_infusion=Decimal("-100000000"))],
        )
        assert result.years[1].qfaf_value == ZERO
        assert result.years[2].qfaf_value == ZERO

    def test_sizing_lag(self, mfj_profile, year3_infusion):
        profile = mfj_profile.model_copy(update={"sizing_lag_years": 1})
        result = project_with_overrides(profile, overrides=year3_infusion)
        assert result.years[2].qfaf_resized is False
        assert result.years[3].qfaf_resized is True


class TestRetirementYear:
    def test_zero_income_year(self, mfj_profile):
        result = project_with_overrides(
            mfj_profile, overrides=[YearOverride(year=6, income=Decimal("0"))]
        )
        year6 = result.years[5]
        assert year6.usable_ordinary_loss == ZERO
        assert year6.excess_to_nol == year6.ordinary_losses_generated
        assert year6.nol_used == ZERO
        assert year6.tax_savings == ZERO

    def test_negative_income_treated_as_zero(self, mfj_profile):
        result = project_with_overrides(
            mfj_profile, overrides=[YearOverride(year=2, income=Decimal("-50000"))]
        )
        assert result.years[1].taxable_income == ZERO
        assert result.years[1].usable_ordinary_loss == ZERO


class TestWithdrawal:
    def test_year5_withdrawal(self, mfj_profile):
        baseline = project(mfj_profile)
        result = project_with_overrides(
            mfj_profile, overrides=[YearOverride(year=5, cash_infusion=Decimal("-500000"))]
        )
        assert result.years[4].collateral_value < baseline.years[4].collateral_value
        assert result.years[4].collateral_value >= ZERO
        assert result.warnings == []

    def test_withdrawal_exceeding_balance_clamps(self, mfj_profile, caplog):
        with caplog.at_level(logging.WARNING, logger="qfaf.engines.projection"):
            result = project_with_overrides(
                mfj_profile,
                overrides=[YearOverride(year=2, cash_infusion=Decimal("-100000000"))],
            )
        year2 = result.years[1]
        assert year2.collateral_value == ZERO
        assert year2.collateral_clamped is True
        assert year2.st_losses_harvested == ZERO
        assert year2.total_fees == ZERO
        assert result.years[2].collateral_value == ZERO
        assert len(result.warnings) == 1
        assert "Year 2" in result.warnings[0]
        assert "clamping to zero" in caplog.text


class TestCarryforwards:
    def test_existing_nol_used_in_year1(self, mfj_profile):
        """Remaining income 488,000 x 80% = 390,400 > 100,000 available."""
        profile = mfj_profile.model_copy(update={"existing_nol_carryforward": Decimal("100000")})
        year1 = project(profile).years[0]
        assert year1.nol_carryforward_start == Decimal("100000")
        assert year1.nol_used == Decimal("100000")
        assert year1.nol_carryforward_end == Decimal("1012750")

    def test_capital_loss_carryforward_st_first(self, mfj_profile):
        """$3,000 per year against ordinary income: ST 2,000 + LT 1,000, then LT only."""
        profile = mfj_profile.model_copy(
            update={
                "existing_st_loss_carryforward": Decimal("2000"),
                "existing_lt_loss_carryforward": Decimal("5000"),
            }
        )
        years = project(profile).years
        assert years[0].capital_loss_used == Decimal("3000")
        assert years[0].st_loss_carryforward == ZERO
        assert years[0].lt_loss_carryforward == Decimal("4000")
        assert years[1].capital_loss_used == Decimal("3000")
        assert years[2].capital_loss_used == Decimal("1000")
        assert years[3].capital_loss_used == ZERO
        assert years[0].income_offset == MFJ_LIMIT + Decimal("3000")


class TestMaxIncomeOffsetCapacity:
    def test_year1(self, mfj_profile):
        """512,000 usable + 1,012,750 NOL carried out + no capital loss carryforward."""
        year1 = project(mfj_profile).years[0]
        assert year1.max_income_offset_capacity == Decimal("1524750")

    def test_includes_next_years_capital_loss_allowance(self, mfj_profile):
        """LT 4,000 left after year 1, so min(3,000, 4,000) more is available."""
        profile = mfj_profile.model_copy(
            update={
                "existing_st_loss_carryforward": Decimal("2000"),
                "existing_lt_loss_carryforward": Decimal("5000"),
            }
        )
        years = project(profile).years
        assert years[0].max_income_offset_capacity == Decimal("1527750")
        assert years[2].lt_loss_carryforward == ZERO
        assert years[2].max_income_offset_capacity == (
            years[2].usable_ordinary_loss + years[2].nol_carryforward_end
        )

    def test_never_below_usable_loss(self, mfj_profile):
        for y in project(mfj_profile).years:
            assert y.max_income_offset_capacity >= y.usable_ordinary_loss


class TestQfafDisabled:
    def test_collateral_only(self, mfj_profile):
        profile = mfj_profile.model_copy(update={"qfaf_enabled": False})
        result = project(profile)
        assert result.sizing_policy == "disabled"
        for y in result.years:
            assert y.qfaf_value == ZERO
            assert y.ordinary_losses_generated == ZERO
            assert y.usable_ordinary_loss == ZERO
            assert y.tax_savings == ZERO
            assert y.net_benefit == -y.total_fees


class TestSettings:
    def test_financing_fee_override(self, mfj_profile):
        settings = GlobalSettings(financing_fee_rate=Decimal("0"))
        year1 = project(mfj_profile, settings).years[0]
        assert year1.financing_fee == ZERO
        assert year1.total_fees == Decimal("53500")

    def test_alpha_is_informational(self, mfj_profile):
        settings = GlobalSettings(
            qfaf_alpha_rate=Decimal("0.02"), collateral_alpha_rate=Decimal("0.01")
        )
        baseline = project(mfj_profile).years[0]
        year1 = project(mfj_profile, settings).years[0]
        assert year1.qfaf_alpha == Decimal("20330")
        assert year1.collateral_alpha == Decimal("53500")
        assert year1.net_benefit == baseline.net_benefit

    def test_engines_do_not_share_settings(self, mfj_profile):
        slow = ProjectionEngine(GlobalSettings(growth_rate=Decimal("0.02")))
        fast = ProjectionEngine(GlobalSettings(growth_rate=Decimal("0.12")))
        slow_result = slow.project(mfj_profile)
        fast_result = fast.project(mfj_profile)
        assert slow_result.years[0].collateral_value == Decimal("5100000")
        assert fast_result.years[0].collateral_value == Decimal("5600000")
        assert slow.settings.growth_rate == Decimal("0.02")


class TestValidation:
    def test_zero_years(self, mfj_profile):
        with pytest.raises(InvalidProjectionLengthError):
            project(mfj_profile, GlobalSettings(projection_years=0))

    def test_unknown_strategy(self, mfj_profile):
        profile = mfj_profile.model_copy(update={"strategy_id": "core-999-1"})
        with pytest.raises(UnknownStrategyError):
            project(profile)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("growth_rate", Decimal("-1")),
            ("qfaf_decay_multiplier", Decimal("1.2")),
            ("qfaf_decay_multiplier", Decimal("0")),
            ("loss_multiplier", Decimal("0")),
            ("advisor_fee_rate", Decimal("-0.01")),
            ("nol_usable_fraction", Decimal("1.5")),
        ],
    )
    def test_bad_settings(self, mfj_profile, field, value):
        with pytest.raises(SettingsValidationError) as exc_info:
            project(mfj_profile, GlobalSettings(**{field: value}))
        assert exc_info.value.field == field

    def test_negative_collateral(self, mfj_profile):
        profile = mfj_profile.model_copy(update={"collateral_amount": Decimal("-1")})
        with pytest.raises(SettingsValidationError):
            project(profile)

    def test_negative_sizing_lag(self, mfj_profile):
        profile = mfj_profile.model_copy(update={"sizing_lag_years": -1})
        with pytest.raises(SettingsValidationError):
            project_with_overrides(profile, overrides=[])

    def test_sizing_window_below_one(self, mfj_profile):
        profile = mfj_profile.model_copy(update={"sizing_years": 0})
        with pytest.raises(SettingsValidationError) as exc_info:
            project(profile)
        assert exc_info.value.field == "sizing_years"

    @pytest.mark.parametrize("cushion", [Decimal("-0.1"), Decimal("1")])
    def test_sizing_cushion_out_of_range(self, mfj_profile, cushion):
        profile = mfj_profile.model_copy(update={"sizing_cushion": cushion})
        with pytest.raises(SettingsValidationError) as exc_info:
            project(profile)
        assert exc_info.value.field == "sizing_cushion"


class TestSizingWindow:
    def test_default_window_sizes_on_five_year_average(self, mfj_profile):
        profile = mfj_profile.model_copy(update={"sizing_years": 5})
        result = project(profile)
        assert result.initial_qfaf_value == pytest.approx(Decimal("463333.33"), abs=Decimal("0.01"))
        assert result.years[0].qfaf_value == result.initial_qfaf_value * Decimal("1.07")

    def test_cushion_scales_whole_trajectory(self, mfj_profile):
        profile = mfj_profile.model_copy(update={"sizing_cushion": Decimal("0.10")})
        result = project(profile)
        assert result.initial_qfaf_value == Decimal("855000")
        assert result.years[0].qfaf_value == Decimal("914850")
