"""Tests for the QFAF test-by-year subscription table."""

from decimal import Decimal

from qfaf.engines.subscription_table import (
    SubscriptionTestYearInput,
    compute_year,
    compute_years,
    default_inputs,
    summarize_years,
)
from qfaf.models.enums import FilingStatus


class TestComputeYear:
    def test_one_million_subscription(self):
        """Loss 1,500,000; allowed 512,000; savings 230,400; fees 10,000 + 15,000."""
        result = compute_year(SubscriptionTestYearInput(year=1, cash_infusion=Decimal("1000000")))
        assert result.subscription_size == Decimal("1000000")
        assert result.estimated_ordinary_loss == Decimal("1500000")
        assert result.allowed_loss == Decimal("512000")
        assert result.carryforward_next == Decimal("988000")
        assert result.tax_savings == Decimal("230400")
        assert result.management_fee == Decimal("10000")
        assert result.qfaf_fee == Decimal("15000")
        assert result.net_savings_no_alpha == Decimal("205400")

    def test_partial_subscription(self):
        entry = SubscriptionTestYearInput(
            year=1, cash_infusion=Decimal("100000"), subscription_pct=Decimal("0.5")
        )
        result = compute_year(entry)
        assert result.subscription_size == Decimal("50000")
        assert result.allowed_loss == Decimal("75000")
        assert result.carryforward_next == Decimal("0")


class TestComputeYears:
    def test_carryforward_threads(self):
        inputs = [
            SubscriptionTestYearInput(year=1, cash_infusion=Decimal("1000000")),
            SubscriptionTestYearInput(year=2),
            SubscriptionTestYearInput(year=3),
        ]
        results = compute_years(inputs)
        assert [r.carryforward_prior for r in results] == [
            Decimal("0"), Decimal("988000"), Decimal("476000"),
        ]
        assert results[1].allowed_loss == Decimal("512000")
        assert results[2].allowed_loss == Decimal("476000")
        assert results[2].carryforward_next == Decimal("0")

    def test_summary(self):
        results = compute_years(
            [
                SubscriptionTestYearInput(year=1, cash_infusion=Decimal("1000000")),
                SubscriptionTestYearInput(year=2),
            ]
        )
        summary = summarize_years(results)
        assert summary.total_cash_infusion == Decimal("1000000")
        assert summary.total_allowed_loss == Decimal("1024000")
        assert summary.final_carryforward == Decimal("476000")

    def test_empty(self):
        assert summarize_years([]).final_carryforward == Decimal("0")


class TestDefaultInputs:
    def test_limit_by_filing_status(self):
        rows = default_inputs(3, FilingStatus.SINGLE, start_year=2026)
        assert [r.year for r in rows] == [2026, 2027, 2028]
        assert all(r.section_461l_limit == Decimal("256000") for r in rows)
        assert default_inputs(1)[0].section_461l_limit == Decimal("512000")
