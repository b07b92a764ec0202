"""What-if analysis on top of the projection engine.

  - Strategy comparison: same client, every collateral strategy
  - Market scenarios: bull/base/bear growth with probability weighting
  - Sensitivity sweep: vary one numeric GlobalSettings field

Each run gets its own settings copy; nothing is shared between runs.
"""

from decimal import Decimal

from pydantic import BaseModel

from qfaf.engines.projection import ProjectionEngine
from qfaf.engines.strategies import STRATEGIES, get_strategy
from qfaf.exceptions import SettingsValidationError
from qfaf.models.enums import ScenarioType, StrategyType
from qfaf.models.inputs import ClientProfile, GlobalSettings, YearOverride
from qfaf.models.reports import ProjectionResult, ProjectionSummary

ZERO = Decimal("0")

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class StrategyComparison(BaseModel):
    strategy_id: str
    strategy_name: str
    strategy_type: StrategyType
    initial_qfaf_value: Decimal
    initial_exposure: Decimal
    year1_tax_savings: Decimal
    total_tax_savings: Decimal
    total_net_benefit: Decimal
    tax_alpha: Decimal
    tracking_error_display: str


class MarketScenario(BaseModel):
    growth_rate: Decimal
    probability: Decimal
    label: str


class ScenarioOutcome(BaseModel):
    scenario: ScenarioType
    label: str
    growth_rate: Decimal
    probability: Decimal
    summary: ProjectionSummary


class ScenarioAnalysis(BaseModel):
    outcomes: list[ScenarioOutcome]
    expected_tax_savings: Decimal
    expected_net_benefit: Decimal
    expected_final_collateral: Decimal


class SensitivityPoint(BaseModel):
    field: str
    value: Decimal
    summary: ProjectionSummary


DEFAULT_SCENARIOS: dict[ScenarioType, MarketScenario] = {
    ScenarioType.BULL: MarketScenario(
        growth_rate=Decimal("0.12"), probability=Decimal("0.25"), label="Bull Market"
    ),
    ScenarioType.BASE: MarketScenario(
        growth_rate=Decimal("0.07"), probability=Decimal("0.50"), label="Base Case"
    ),
    ScenarioType.BEAR: MarketScenario(
        growth_rate=Decimal("0.02"), probability=Decimal("0.25"), label="Bear Market"
    ),
}

# GlobalSettings fields a sensitivity sweep may vary
SWEEPABLE_FIELDS = (
    "growth_rate",
    "qfaf_year1_multiplier",
    "qfaf_decay_multiplier",
    "loss_multiplier",
    "advisor_fee_rate",
    "financing_fee_rate",
    "qfaf_alpha_rate",
    "collateral_alpha_rate",
    "nol_usable_fraction",
    "wash_sale_disallowance_rate",
    "federal_rate_override",
)


def _run(
    profile: ClientProfile,
    settings: GlobalSettings,
    overrides: list[YearOverride] | None,
) -> ProjectionResult:
    engine = ProjectionEngine(settings)
    if overrides:
        return engine.project_with_overrides(profile, overrides)
    return engine.project(profile)


# ---------------------------------------------------------------------------
# Strategy comparison
# ---------------------------------------------------------------------------


def compare_strategies(
    profile: ClientProfile,
    settings: GlobalSettings | None = None,
    strategy_ids: list[str] | None = None,
) -> list[StrategyComparison]:
    """Project *profile* under each strategy; best total net benefit first."""
    settings = settings if settings is not None else GlobalSettings()
    ids = strategy_ids if strategy_ids is not None else list(STRATEGIES)

    comparisons: list[StrategyComparison] = []
    for strategy_id in ids:
        strategy = get_strategy(strategy_id)
        result = _run(profile.model_copy(update={"strategy_id": strategy.id}), settings, None)
        comparisons.append(
            StrategyComparison(
                strategy_id=strategy.id,
                strategy_name=strategy.name,
                strategy_type=strategy.type,
                initial_qfaf_value=result.initial_qfaf_value,
                initial_exposure=result.initial_collateral_value + result.initial_qfaf_value,
                year1_tax_savings=result.years[0].tax_savings,
                total_tax_savings=result.summary.total_tax_savings,
                total_net_benefit=result.summary.total_net_benefit,
                tax_alpha=result.summary.tax_alpha,
                tracking_error_display=strategy.tracking_error_display,
            )
        )
    comparisons.sort(key=lambda c: c.total_net_benefit, reverse=True)
    return comparisons


# ---------------------------------------------------------------------------
# Market scenarios
# ---------------------------------------------------------------------------


def analyze_scenarios(
    profile: ClientProfile,
    settings: GlobalSettings | None = None,
    scenarios: dict[ScenarioType, MarketScenario] | None = None,
    overrides: list[YearOverride] | None = None,
) -> ScenarioAnalysis:
    """Run each market scenario and weight the outcomes by probability."""
    settings = settings if settings is not None else GlobalSettings()
    scenarios = scenarios if scenarios is not None else DEFAULT_SCENARIOS

    total_probability = sum((s.probability for s in scenarios.values()), ZERO)
    if total_probability != Decimal("1"):
        raise SettingsValidationError(
            "scenarios", f"probabilities must sum to 1, got {total_probability}"
        )

    outcomes: list[ScenarioOutcome] = []
    for scenario_type, scenario in scenarios.items():
        scenario_settings = settings.model_copy(update={"growth_rate": scenario.growth_rate})
        result = _run(profile, scenario_settings, overrides)
        outcomes.append(
            ScenarioOutcome(
                scenario=scenario_type,
                label=scenario.label,
                growth_rate=scenario.growth_rate,
                probability=scenario.probability,
                summary=result.summary,
            )
        )

    return ScenarioAnalysis(
        outcomes=outcomes,
        expected_tax_savings=sum(
            (o.probability * o.summary.total_tax_savings for o in outcomes), ZERO
        ),
        expected_net_benefit=sum(
            (o.probability * o.summary.total_net_benefit for o in outcomes), ZERO
        ),
        expected_final_collateral=sum(
            (o.probability * o.summary.final_collateral_value for o in outcomes), ZERO
        ),
    )


# ---------------------------------------------------------------------------
# Sensitivity sweep
# ---------------------------------------------------------------------------


def sensitivity_sweep(
    profile: ClientProfile,
    field: str,
    values: list[Decimal],
    settings: GlobalSettings | None = None,
    overrides: list[YearOverride] | None = None,
) -> list[SensitivityPoint]:
    """Project once per value of *field*, everything else held fixed."""
    if field not in SWEEPABLE_FIELDS:
        raise SettingsValidationError(field, "not a sweepable settings field")
    settings = settings if settings is not None else GlobalSettings()

    points: list[SensitivityPoint] = []
    for value in values:
        value = Decimal(str(value))
        result = _run(profile, settings.model_copy(update={field: value}), overrides)
        points.append(SensitivityPoint(field=field, value=value, summary=result.summary))
    return points
