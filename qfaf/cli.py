"""Typer CLI interface for the QFAF projector."""

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, NoReturn

import typer
from rich.console import Console
from rich.table import Table

from qfaf.exceptions import ProjectionError
from qfaf.models.enums import FilingStatus
from qfaf.models.inputs import ClientProfile, GlobalSettings

app = typer.Typer(
    name="qfaf",
    help="QFAF tax-loss harvesting projector.",
    no_args_is_help=True,
)

STATUS_MAP = {
    "SINGLE": "SINGLE",
    "MFJ": "MARRIED_FILING_JOINTLY",
    "MFS": "MARRIED_FILING_SEPARATELY",
    "HOH": "HEAD_OF_HOUSEHOLD",
}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """QFAF tax-loss harvesting projector."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


class _DecimalEncoder(json.JSONEncoder):
    """JSON encoder that serializes Decimal as string."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        return super().default(obj)


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(1)


def _money(value: Decimal) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def _parse_filing_status(filing_status: str) -> FilingStatus:
    fs_key = filing_status.upper()
    fs_value = STATUS_MAP.get(fs_key, fs_key)
    try:
        return FilingStatus(fs_value)
    except ValueError:
        valid = ", ".join(STATUS_MAP.keys())
        _fail(f"Invalid filing status '{filing_status}'. Valid: {valid}")


def _build_profile(
    profile_file: Path | None,
    filing_status: str,
    state: str,
    state_rate: float,
    income: float | None,
    strategy_id: str,
    collateral: float | None,
    st_loss_carryforward: float = 0.0,
    lt_loss_carryforward: float = 0.0,
    nol_carryforward: float = 0.0,
    qfaf_enabled: bool = True,
    qfaf_override: float | None = None,
    sizing_lag: int = 0,
    sizing_years: int = 5,
    sizing_cushion: float = 0.0,
) -> ClientProfile:
    from qfaf.ingestion import load_profile

    if profile_file is not None:
        return load_profile(profile_file)
    if income is None or collateral is None:
        _fail("--income and --collateral are required when --profile is not given")

    return ClientProfile(
        filing_status=_parse_filing_status(filing_status),
        state_code=state.upper(),
        state_rate=Decimal(str(state_rate)),
        annual_income=Decimal(str(income)),
        strategy_id=strategy_id,
        collateral_amount=Decimal(str(collateral)),
        existing_st_loss_carryforward=Decimal(str(st_loss_carryforward)),
        existing_lt_loss_carryforward=Decimal(str(lt_loss_carryforward)),
        existing_nol_carryforward=Decimal(str(nol_carryforward)),
        qfaf_enabled=qfaf_enabled,
        qfaf_override=Decimal(str(qfaf_override)) if qfaf_override is not None else None,
        sizing_lag_years=sizing_lag,
        sizing_years=sizing_years,
        sizing_cushion=Decimal(str(sizing_cushion)),
    )


def _build_settings(settings_file: Path | None, years: int | None) -> GlobalSettings:
    from qfaf.ingestion import load_settings

    settings = load_settings(settings_file) if settings_file is not None else GlobalSettings()
    if years is not None:
        settings = settings.model_copy(update={"projection_years": years})
    return settings


@app.command()
def project(
    profile_file: Path | None = typer.Option(
        None, "--profile", help="JSON file with the client profile"
    ),
    filing_status: str = typer.Option(
        "MFJ", "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
    ),
    state: str = typer.Option("OTHER", "--state", help="Two-letter state code"),
    state_rate: float = typer.Option(
        0.0, "--state-rate", help="State marginal rate when --state is not in the table"
    ),
    income: float | None = typer.Option(None, "--income", help="Baseline annual income"),
    strategy_id: str = typer.Option("core-145-45", "--strategy", help="Collateral strategy id"),
    collateral: float | None = typer.Option(None, "--collateral", help="Initial collateral value"),
    st_loss_carryforward: float = typer.Option(
        0.0, "--st-loss-carryforward", help="Existing short-term capital loss carryforward"
    ),
    lt_loss_carryforward: float = typer.Option(
        0.0, "--lt-loss-carryforward", help="Existing long-term capital loss carryforward"
    ),
    nol_carryforward: float = typer.Option(
        0.0, "--nol-carryforward", help="Existing NOL carryforward"
    ),
    no_qfaf: bool = typer.Option(False, "--no-qfaf", help="Project the collateral alone"),
    qfaf_override: float | None = typer.Option(
        None, "--qfaf-amount", help="Initial QFAF subscription (default: sized from collateral)"
    ),
    sizing_lag: int = typer.Option(
        0, "--sizing-lag", help="Years before QFAF sizing responds to a cash infusion"
    ),
    sizing_years: int = typer.Option(
        5, "--sizing-years", help="Average the ST loss rate over years 1..N when sizing QFAF"
    ),
    sizing_cushion: float = typer.Option(
        0.0, "--sizing-cushion", help="Fractional reduction of the sized QFAF, e.g. 0.1"
    ),
    years: int | None = typer.Option(None, "--years", "-n", help="Projection horizon in years"),
    overrides_file: Path | None = typer.Option(
        None, "--overrides", help="JSON list of per-year income / cash infusion overrides"
    ),
    settings_file: Path | None = typer.Option(
        None, "--settings", help="JSON file with assumption overrides"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    report: Path | None = typer.Option(None, "--report", help="Write a text report to FILE"),
    csv_path: Path | None = typer.Option(None, "--csv", help="Write the year series to FILE"),
) -> None:
    """Project QFAF and collateral tax consequences year by year."""
    from qfaf.engines import ProjectionEngine
    from qfaf.ingestion import load_overrides
    from qfaf.reports import ProjectionReportGenerator, write_projection_csv

    try:
        profile = _build_profile(
            profile_file, filing_status, state, state_rate, income, strategy_id, collateral,
            st_loss_carryforward, lt_loss_carryforward, nol_carryforward,
            not no_qfaf, qfaf_override, sizing_lag, sizing_years, sizing_cushion,
        )
        settings = _build_settings(settings_file, years)
        engine = ProjectionEngine(settings)
        if overrides_file is not None:
            result = engine.project_with_overrides(profile, load_overrides(overrides_file))
        else:
            result = engine.project(profile)
    except ProjectionError as exc:
        _fail(str(exc))

    if json_output:
        typer.echo(json.dumps(result.model_dump(), cls=_DecimalEncoder, indent=2))
    else:
        console = Console()
        tbl = Table(title=f"{result.strategy_name} Projection", show_header=True)
        tbl.add_column("Year", justify="right")
        tbl.add_column("Collateral", justify="right")
        tbl.add_column("QFAF", justify="right")
        tbl.add_column("Ordinary Loss", justify="right")
        tbl.add_column("Usable", justify="right")
        tbl.add_column("NOL End", justify="right")
        tbl.add_column("Tax Savings", justify="right", style="green")
        tbl.add_column("Net Benefit", justify="right", style="cyan")
        for y in result.years:
            tbl.add_row(
                str(y.calendar_year),
                _money(y.collateral_value),
                _money(y.qfaf_value),
                _money(y.ordinary_losses_generated),
                _money(y.usable_ordinary_loss),
                _money(y.nol_carryforward_end),
                _money(y.tax_savings),
                _money(y.net_benefit),
            )
        console.print(tbl)

        s = result.summary
        typer.echo(f"Total tax savings: {_money(s.total_tax_savings)}")
        typer.echo(f"Total fees:        {_money(s.total_fees)}")
        typer.echo(f"Total net benefit: {_money(s.total_net_benefit)}")
        typer.echo(f"Tax alpha:         {s.tax_alpha * 100:.2f}%")
        for w in result.warnings:
            typer.echo(f"Warning: {w}", err=True)

    if report is not None:
        report.parent.mkdir(parents=True, exist_ok=True)
        report.write_text(ProjectionReportGenerator().render(result, profile))
        typer.echo(f"Report written to {report}")
    if csv_path is not None:
        write_projection_csv(result, csv_path)
        typer.echo(f"CSV written to {csv_path}")


@app.command()
def strategies(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the collateral strategy table."""
    from qfaf.engines.strategies import STRATEGIES

    if json_output:
        typer.echo(
            json.dumps([s.model_dump() for s in STRATEGIES.values()], cls=_DecimalEncoder, indent=2)
        )
        return

    console = Console()
    tbl = Table(title="Collateral Strategies", show_header=True)
    tbl.add_column("Id", style="cyan")
    tbl.add_column("Name")
    tbl.add_column("Label")
    tbl.add_column("Year-1 ST Loss", justify="right")
    tbl.add_column("Financing", justify="right")
    tbl.add_column("Tracking Error", justify="right")
    for strategy in STRATEGIES.values():
        tbl.add_row(
            strategy.id,
            strategy.name,
            strategy.label,
            f"{strategy.st_loss_rates_by_year[0] * 100:.1f}%",
            f"{strategy.financing_cost_rate * 100:.1f}%",
            strategy.tracking_error_display,
        )
    console.print(tbl)


@app.command()
def compare(
    profile_file: Path | None = typer.Option(
        None, "--profile", help="JSON file with the client profile"
    ),
    filing_status: str = typer.Option(
        "MFJ", "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
    ),
    state: str = typer.Option("OTHER", "--state", help="Two-letter state code"),
    state_rate: float = typer.Option(0.0, "--state-rate", help="Fallback state marginal rate"),
    income: float | None = typer.Option(None, "--income", help="Baseline annual income"),
    collateral: float | None = typer.Option(None, "--collateral", help="Initial collateral value"),
    years: int | None = typer.Option(None, "--years", "-n", help="Projection horizon in years"),
    settings_file: Path | None = typer.Option(
        None, "--settings", help="JSON file with assumption overrides"
    ),
    top_n: int = typer.Option(10, "--top", help="Show top N strategies"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Compare every collateral strategy for one client, best net benefit first."""
    from qfaf.engines import compare_strategies

    try:
        profile = _build_profile(
            profile_file, filing_status, state, state_rate, income, "core-145-45", collateral
        )
        comparisons = compare_strategies(profile, _build_settings(settings_file, years))
    except ProjectionError as exc:
        _fail(str(exc))

    comparisons = comparisons[:top_n]
    if json_output:
        typer.echo(
            json.dumps([c.model_dump() for c in comparisons], cls=_DecimalEncoder, indent=2)
        )
        return

    console = Console()
    tbl = Table(title="Strategy Comparison", show_header=True)
    tbl.add_column("#", justify="right")
    tbl.add_column("Strategy", style="cyan")
    tbl.add_column("Initial QFAF", justify="right")
    tbl.add_column("Year-1 Savings", justify="right")
    tbl.add_column("Total Savings", justify="right")
    tbl.add_column("Net Benefit", justify="right", style="green")
    tbl.add_column("Tax Alpha", justify="right")
    for i, c in enumerate(comparisons, 1):
        tbl.add_row(
            str(i),
            c.strategy_name,
            _money(c.initial_qfaf_value),
            _money(c.year1_tax_savings),
            _money(c.total_tax_savings),
            _money(c.total_net_benefit),
            f"{c.tax_alpha * 100:.2f}%",
        )
    console.print(tbl)


@app.command()
def scenarios(
    profile_file: Path | None = typer.Option(
        None, "--profile", help="JSON file with the client profile"
    ),
    filing_status: str = typer.Option(
        "MFJ", "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
    ),
    state: str = typer.Option("OTHER", "--state", help="Two-letter state code"),
    state_rate: float = typer.Option(0.0, "--state-rate", help="Fallback state marginal rate"),
    income: float | None = typer.Option(None, "--income", help="Baseline annual income"),
    strategy_id: str = typer.Option("core-145-45", "--strategy", help="Collateral strategy id"),
    collateral: float | None = typer.Option(None, "--collateral", help="Initial collateral value"),
    years: int | None = typer.Option(None, "--years", "-n", help="Projection horizon in years"),
    overrides_file: Path | None = typer.Option(
        None, "--overrides", help="JSON list of per-year overrides"
    ),
    settings_file: Path | None = typer.Option(
        None, "--settings", help="JSON file with assumption overrides"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Run bull / base / bear market scenarios with probability weighting."""
    from qfaf.engines import analyze_scenarios
    from qfaf.ingestion import load_overrides

    try:
        profile = _build_profile(
            profile_file, filing_status, state, state_rate, income, strategy_id, collateral
        )
        overrides = load_overrides(overrides_file) if overrides_file is not None else None
        analysis = analyze_scenarios(
            profile, _build_settings(settings_file, years), overrides=overrides
        )
    except ProjectionError as exc:
        _fail(str(exc))

    if json_output:
        typer.echo(json.dumps(analysis.model_dump(), cls=_DecimalEncoder, indent=2))
        return

    console = Console()
    tbl = Table(title="Market Scenarios", show_header=True)
    tbl.add_column("Scenario", style="cyan")
    tbl.add_column("Growth", justify="right")
    tbl.add_column("Probability", justify="right")
    tbl.add_column("Tax Savings", justify="right")
    tbl.add_column("Net Benefit", justify="right", style="green")
    tbl.add_column("Final Collateral", justify="right")
    for o in analysis.outcomes:
        tbl.add_row(
            o.label,
            f"{o.growth_rate * 100:.0f}%",
            f"{o.probability * 100:.0f}%",
            _money(o.summary.total_tax_savings),
            _money(o.summary.total_net_benefit),
            _money(o.summary.final_collateral_value),
        )
    console.print(tbl)
    typer.echo(f"Expected tax savings: {_money(analysis.expected_tax_savings)}")
    typer.echo(f"Expected net benefit: {_money(analysis.expected_net_benefit)}")


@app.command(name="subscription-test")
def subscription_test(
    infusion: list[float] | None = typer.Option(
        None, "--infusion", "-i", help="Cash infusion per year, in order (repeatable)"
    ),
    years: int = typer.Option(5, "--years", "-n", help="Number of years in the table"),
    filing_status: str = typer.Option(
        "MFJ", "--filing-status", "-s", help="Filing status: SINGLE, MFJ, MFS, HOH"
    ),
    marginal_rate: float = typer.Option(0.45, "--marginal-rate", help="Marginal tax rate"),
    carryforward: float = typer.Option(
        0.0, "--carryforward", help="Disallowed loss carried into year 1"
    ),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Validate QFAF subscription economics year by year."""
    from qfaf.engines.subscription_table import compute_years, default_inputs, summarize_years

    infusion = infusion or []
    fs = _parse_filing_status(filing_status)
    rows = default_inputs(max(years, len(infusion)), fs)
    inputs = [
        row.model_copy(
            update={
                "cash_infusion": Decimal(str(infusion[i])) if i < len(infusion) else Decimal("0"),
                "marginal_tax_rate": Decimal(str(marginal_rate)),
            }
        )
        for i, row in enumerate(rows)
    ]
    results = compute_years(inputs, Decimal(str(carryforward)))
    summary = summarize_years(results)

    if json_output:
        payload = {
            "years": [r.model_dump() for r in results],
            "summary": summary.model_dump(),
        }
        typer.echo(json.dumps(payload, cls=_DecimalEncoder, indent=2))
        return

    console = Console()
    tbl = Table(title="QFAF Test by Year", show_header=True)
    tbl.add_column("Year", justify="right")
    tbl.add_column("Infusion", justify="right")
    tbl.add_column("Est. Loss", justify="right")
    tbl.add_column("Allowed", justify="right")
    tbl.add_column("Carryforward", justify="right")
    tbl.add_column("Tax Savings", justify="right", style="green")
    tbl.add_column("Net (no alpha)", justify="right", style="cyan")
    for r in results:
        tbl.add_row(
            str(r.year),
            _money(r.cash_infusion),
            _money(r.estimated_ordinary_loss),
            _money(r.allowed_loss),
            _money(r.carryforward_next),
            _money(r.tax_savings),
            _money(r.net_savings_no_alpha),
        )
    console.print(tbl)
    typer.echo(f"Total tax savings:  {_money(summary.total_tax_savings)}")
    typer.echo(f"Final carryforward: {_money(summary.final_carryforward)}")
