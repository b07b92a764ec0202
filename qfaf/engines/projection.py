"""Multi-year QFAF projection engine.

Single forward pass over years 1..N. Each year takes the previous year's
ending balances (collateral, QFAF, NOL, capital loss carryforwards) and
produces one frozen YearResult:

  1. Collateral = prior x (1 + growth) + cash infusion, clamped at zero
  2. ST losses harvested = collateral x strategy rate for the year
  3. QFAF sized by the active sizing policy
  4. Ordinary losses = QFAF x loss multiplier
  5. Usable ordinary loss = min(generated, §461(l) limit, taxable income)
  6. Excess ordinary loss is added to the NOL carryforward
  7. Capital loss carryforward (§1211(b)), then NOL up to 80% of what remains
  8. Fees = collateral x (advisor rate + financing rate)
  9. Tax savings = (usable + NOL used + capital loss used) x marginal rate
 10. Offset capacity = usable + NOL carried out + capital loss usable next year

Inputs are validated once up front; a run either returns every year or raises
a ConfigurationError before computing any.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from qfaf.engines.brackets import combined_marginal_rate, state_marginal_rate
from qfaf.engines.limits import capital_loss_limit, section_461l_limit
from qfaf.engines.overrides import default_years, resolve_overrides
from qfaf.engines.sizing import QfafSizingPolicy, build_sizing_policy, initial_qfaf_value
from qfaf.engines.strategies import Strategy, get_strategy, strategy_st_loss_rate
from qfaf.engines.summary import summarize
from qfaf.exceptions import InvalidProjectionLengthError, SettingsValidationError
from qfaf.models.inputs import ClientProfile, GlobalSettings, ResolvedYear, YearOverride
from qfaf.models.reports import ProjectionResult, YearResult

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
ONE = Decimal("1")


@dataclass(frozen=True)
class _CarriedState:
    """Balances carried from one year into the next."""

    collateral: Decimal
    qfaf: Decimal
    nol: Decimal
    st_loss_carryforward: Decimal
    lt_loss_carryforward: Decimal

    @classmethod
    def from_result(cls, result: YearResult) -> "_CarriedState":
        return cls(
            collateral=result.collateral_value,
            qfaf=result.qfaf_value,
            nol=result.nol_carryforward_end,
            st_loss_carryforward=result.st_loss_carryforward,
            lt_loss_carryforward=result.lt_loss_carryforward,
        )


@dataclass(frozen=True)
class _RunContext:
    """Per-run constants resolved once before the year loop."""

    profile: ClientProfile
    strategy: Strategy
    policy: QfafSizingPolicy
    section_461l_limit: Decimal
    state_rate: Decimal
    financing_fee_rate: Decimal


class ProjectionEngine:
    """Projects QFAF + collateral tax consequences year by year."""

    def __init__(self, settings: GlobalSettings | None = None) -> None:
        self.settings = settings if settings is not None else GlobalSettings()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def project(self, profile: ClientProfile) -> ProjectionResult:
        """Baseline projection: default income every year, no cash flows."""
        strategy = self._validate(profile)
        resolved = default_years(profile.annual_income, self.settings.projection_years)
        policy = build_sizing_policy(profile, strategy, self.settings)
        return self._run(profile, strategy, resolved, policy)

    def project_with_overrides(
        self,
        profile: ClientProfile,
        overrides: list[YearOverride] | None = None,
    ) -> ProjectionResult:
        """Projection honoring per-year income and cash-infusion overrides.

        Identical to project() when *overrides* is empty or all-default.
        """
        strategy = self._validate(profile)
        resolved = resolve_overrides(
            overrides, profile.annual_income, self.settings.projection_years
        )
        policy = build_sizing_policy(profile, strategy, self.settings, resolved)
        return self._run(profile, strategy, resolved, policy)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self, profile: ClientProfile) -> Strategy:
        s = self.settings
        if s.projection_years <= 0:
            raise InvalidProjectionLengthError(s.projection_years)
        strategy = get_strategy(profile.strategy_id)

        if s.growth_rate <= -ONE:
            raise SettingsValidationError("growth_rate", "must be greater than -100%")
        if not ZERO < s.qfaf_decay_multiplier <= ONE:
            raise SettingsValidationError("qfaf_decay_multiplier", "must be in (0, 1]")
        if s.qfaf_year1_multiplier < ZERO:
            raise SettingsValidationError("qfaf_year1_multiplier", "must not be negative")
        if s.loss_multiplier <= ZERO:
            raise SettingsValidationError("loss_multiplier", "must be positive")
        if s.advisor_fee_rate < ZERO:
            raise SettingsValidationError("advisor_fee_rate", "must not be negative")
        if s.financing_fee_rate is not None and s.financing_fee_rate < ZERO:
            raise SettingsValidationError("financing_fee_rate", "must not be negative")
        if not ZERO <= s.nol_usable_fraction <= ONE:
            raise SettingsValidationError("nol_usable_fraction", "must be in [0, 1]")
        if not ZERO <= s.wash_sale_disallowance_rate <= ONE:
            raise SettingsValidationError("wash_sale_disallowance_rate", "must be in [0, 1]")
        for status, limit in s.section_461l_limits.items():
            if limit < ZERO:
                raise SettingsValidationError(
                    "section_461l_limits", f"negative limit for {status}"
                )

        if profile.collateral_amount < ZERO:
            raise SettingsValidationError("collateral_amount", "must not be negative")
        for name in (
            "existing_st_loss_carryforward",
            "existing_lt_loss_carryforward",
            "existing_nol_carryforward",
        ):
            if getattr(profile, name) < ZERO:
                raise SettingsValidationError(name, "must not be negative")
        if profile.qfaf_override is not None and profile.qfaf_override < ZERO:
            raise SettingsValidationError("qfaf_override", "must not be negative")
        if profile.sizing_lag_years < 0:
            raise SettingsValidationError("sizing_lag_years", "must not be negative")
        if profile.sizing_years < 1:
            raise SettingsValidationError("sizing_years", "must be at least 1")
        if not ZERO <= profile.sizing_cushion < ONE:
            raise SettingsValidationError("sizing_cushion", "must be in [0, 1)")
        return strategy

    # ------------------------------------------------------------------
    # Year loop
    # ------------------------------------------------------------------

    def _run(
        self,
        profile: ClientProfile,
        strategy: Strategy,
        resolved: list[ResolvedYear],
        policy: QfafSizingPolicy,
    ) -> ProjectionResult:
        s = self.settings
        ctx = _RunContext(
            profile=profile,
            strategy=strategy,
            policy=policy,
            section_461l_limit=section_461l_limit(profile.filing_status, s.section_461l_limits),
            state_rate=state_marginal_rate(profile.state_code, profile.state_rate),
            financing_fee_rate=(
                s.financing_fee_rate
                if s.financing_fee_rate is not None
                else strategy.financing_cost_rate
            ),
        )
        initial_qfaf = initial_qfaf_value(profile, strategy, s)
        logger.info(
            "Projecting %s over %d years (sizing policy: %s)",
            strategy.id, len(resolved), policy.name,
        )

        state = _CarriedState(
            collateral=profile.collateral_amount,
            qfaf=initial_qfaf,
            nol=profile.existing_nol_carryforward,
            st_loss_carryforward=profile.existing_st_loss_carryforward,
            lt_loss_carryforward=profile.existing_lt_loss_carryforward,
        )
        years: list[YearResult] = []
        warnings: list[str] = []
        for entry in resolved:
            result = self._project_year(entry, state, ctx)
            if result.collateral_clamped:
                warnings.append(
                    f"Year {result.year}: withdrawal of {-entry.cash_infusion:,.0f} "
                    "exceeds collateral; collateral clamped to $0"
                )
            years.append(result)
            state = _CarriedState.from_result(result)

        logger.info("Projection complete: %d years", len(years))
        return ProjectionResult(
            strategy_id=strategy.id,
            strategy_name=strategy.name,
            sizing_policy=policy.name,
            initial_collateral_value=profile.collateral_amount,
            initial_qfaf_value=initial_qfaf,
            section_461l_limit=ctx.section_461l_limit,
            years=years,
            summary=summarize(years),
            warnings=warnings,
        )

    def _project_year(
        self,
        entry: ResolvedYear,
        prior: _CarriedState,
        ctx: _RunContext,
    ) -> YearResult:
        s = self.settings
        profile = ctx.profile

        # --- Cash flow ---
        collateral = prior.collateral * (ONE + s.growth_rate) + entry.cash_infusion
        clamped = collateral < ZERO
        if clamped:
            logger.warning(
                "Year %d: withdrawal of %s exceeds collateral; clamping to zero",
                entry.year, -entry.cash_infusion,
            )
            collateral = ZERO

        # --- Harvest ST losses ---
        rate = strategy_st_loss_rate(ctx.strategy, entry.year)
        st_losses = collateral * rate * (ONE - s.wash_sale_disallowance_rate)

        # --- Size QFAF ---
        qfaf, resized = ctx.policy.size(entry.year, prior.qfaf)
        qfaf = max(qfaf, ZERO)
        st_gains = qfaf * s.loss_multiplier
        ordinary_losses = qfaf * s.loss_multiplier

        # --- §461(l) and income cap ---
        taxable_income = max(entry.income, ZERO)
        usable = min(ordinary_losses, ctx.section_461l_limit, taxable_income)
        excess = ordinary_losses - usable
        remaining_income = taxable_income - usable

        # --- Capital loss carryforward, ST first ---
        cap_limit = capital_loss_limit(profile.filing_status)
        capital_loss_used, st_cf, lt_cf = _apply_capital_loss_carryforward(
            remaining_income,
            prior.st_loss_carryforward,
            prior.lt_loss_carryforward,
            cap_limit,
        )
        remaining_income -= capital_loss_used

        # --- NOL: only the balance entering the year is available ---
        nol_used = min(prior.nol, remaining_income * s.nol_usable_fraction)
        nol_end = prior.nol + excess - nol_used

        # --- Fees, savings, alpha ---
        advisor_fee = collateral * s.advisor_fee_rate
        financing_fee = collateral * ctx.financing_fee_rate
        total_fees = advisor_fee + financing_fee
        marginal = combined_marginal_rate(
            entry.income,
            profile.filing_status,
            ctx.state_rate,
            s.federal_rate_override,
            s.include_niit,
        )
        income_offset = usable + nol_used + capital_loss_used
        max_capacity = usable + nol_end + min(cap_limit, st_cf + lt_cf)
        tax_savings = income_offset * marginal

        logger.debug(
            "Year %d: collateral=%s qfaf=%s usable=%s nol_end=%s",
            entry.year, collateral, qfaf, usable, nol_end,
        )

        return YearResult(
            year=entry.year,
            calendar_year=s.base_year + entry.year - 1,
            taxable_income=taxable_income,
            cash_infusion=entry.cash_infusion,
            marginal_tax_rate=marginal,
            collateral_value=collateral,
            qfaf_value=qfaf,
            total_exposure=collateral + qfaf,
            st_losses_harvested=st_losses,
            st_gains_generated=st_gains,
            net_st_gain_loss=st_gains - st_losses,
            ordinary_losses_generated=ordinary_losses,
            usable_ordinary_loss=usable,
            excess_to_nol=excess,
            nol_carryforward_start=prior.nol,
            nol_used=nol_used,
            nol_carryforward_end=nol_end,
            st_loss_carryforward=st_cf,
            lt_loss_carryforward=lt_cf,
            capital_loss_used=capital_loss_used,
            income_offset=income_offset,
            max_income_offset_capacity=max_capacity,
            advisor_fee=advisor_fee,
            financing_fee=financing_fee,
            total_fees=total_fees,
            tax_savings=tax_savings,
            net_benefit=tax_savings - total_fees,
            qfaf_alpha=qfaf * s.qfaf_alpha_rate,
            collateral_alpha=collateral * s.collateral_alpha_rate,
            collateral_clamped=clamped,
            qfaf_resized=resized,
        )


def _apply_capital_loss_carryforward(
    income: Decimal,
    st_carryforward: Decimal,
    lt_carryforward: Decimal,
    limit: Decimal,
) -> tuple[Decimal, Decimal, Decimal]:
    """Deduct capital loss carryforward against ordinary income per IRC Section 1211(b).

    Returns (used, remaining_st, remaining_lt).
    """
    used = min(st_carryforward + lt_carryforward, limit, max(income, ZERO))
    from_st = min(used, st_carryforward)
    return used, st_carryforward - from_st, lt_carryforward - (used - from_st)


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------

def project(
    profile: ClientProfile,
    settings: GlobalSettings | None = None,
) -> ProjectionResult:
    return ProjectionEngine(settings).project(profile)


def project_with_overrides(
    profile: ClientProfile,
    settings: GlobalSettings | None = None,
    overrides: list[YearOverride] | None = None,
) -> ProjectionResult:
    return ProjectionEngine(settings).project_with_overrides(profile, overrides)
