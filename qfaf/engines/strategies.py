"""Collateral strategy table.

Year-by-year net short-term capital loss rates (as a fraction of collateral) for
the Beta 1 Core and Overlay strategies, years 1-10. Rates decay as the easy
losses in the collateral are harvested; years past the table repeat the last
rate.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from qfaf.exceptions import UnknownStrategyError
from qfaf.models.enums import StrategyType


class Strategy(BaseModel):
    """A named collateral strategy."""

    model_config = ConfigDict(frozen=True)

    id: str
    type: StrategyType
    name: str
    label: str
    st_loss_rates_by_year: tuple[Decimal, ...]
    lt_gain_rate: Decimal
    tracking_error: Decimal
    tracking_error_display: str
    financing_cost_rate: Decimal


def _rates(*values: str) -> tuple[Decimal, ...]:
    return tuple(Decimal(v) for v in values)


# ---------------------------------------------------------------------------
# Net ST loss rates by year: {leverage: (year1, ..., year10)}
# ---------------------------------------------------------------------------
CORE_ST_LOSS_RATES: dict[str, tuple[Decimal, ...]] = {
    "130-30": _rates("0.230", "0.130", "0.090", "0.050", "0.040", "0.030", "0.030", "0.030", "0.030", "0.030"),
    "145-45": _rates("0.285", "0.165", "0.120", "0.070", "0.055", "0.045", "0.045", "0.045", "0.045", "0.045"),
    "175-75": _rates("0.395", "0.235", "0.180", "0.110", "0.085", "0.075", "0.075", "0.075", "0.075", "0.075"),
    "200-100": _rates("0.487", "0.293", "0.230", "0.143", "0.110", "0.100", "0.100", "0.100", "0.100", "0.100"),
    "225-125": _rates("0.578", "0.352", "0.280", "0.177", "0.135", "0.125", "0.125", "0.125", "0.125", "0.125"),
}

OVERLAY_ST_LOSS_RATES: dict[str, tuple[Decimal, ...]] = {
    "30-30": _rates("0.110", "0.070", "0.060", "0.040", "0.030", "0.030", "0.030", "0.030", "0.030", "0.030"),
    "45-45": _rates("0.165", "0.105", "0.090", "0.060", "0.045", "0.045", "0.045", "0.045", "0.045", "0.045"),
    "75-75": _rates("0.275", "0.175", "0.150", "0.100", "0.075", "0.075", "0.075", "0.075", "0.075", "0.075"),
    "100-100": _rates("0.367", "0.233", "0.200", "0.133", "0.100", "0.100", "0.100", "0.100", "0.100", "0.100"),
    "125-125": _rates("0.458", "0.292", "0.250", "0.167", "0.125", "0.125", "0.125", "0.125", "0.125", "0.125"),
}

# (leverage, label, lt_gain_rate, tracking_error, tracking_error_display, financing_cost_rate)
_CORE_ROWS = [
    ("130-30", "Conservative", "0.024", "0.014", "1.3-1.5%", "0.015"),
    ("145-45", "Moderate", "0.029", "0.019", "1.8-2.0%", "0.023"),
    ("175-75", "Enhanced", "0.038", "0.028", "2.5-3.0%", "0.035"),
    ("200-100", "Enhanced+", "0.045", "0.038", "3.5-4.0%", "0.04"),
    ("225-125", "Aggressive", "0.053", "0.043", "4.0-4.5%", "0.045"),
]

_OVERLAY_ROWS = [
    ("30-30", "Conservative", "0.009", "0.01", "1.0%", "0.01"),
    ("45-45", "Moderate", "0.014", "0.015", "1.5%", "0.015"),
    ("75-75", "Enhanced", "0.023", "0.025", "2.5%", "0.025"),
    ("100-100", "Enhanced+", "0.032", "0.035", "3.5%", "0.032"),
    ("125-125", "Aggressive", "0.038", "0.042", "4.2%", "0.04"),
]


def _build_strategies() -> dict[str, Strategy]:
    table: dict[str, Strategy] = {}
    for strategy_type, rows, rates in (
        (StrategyType.CORE, _CORE_ROWS, CORE_ST_LOSS_RATES),
        (StrategyType.OVERLAY, _OVERLAY_ROWS, OVERLAY_ST_LOSS_RATES),
    ):
        prefix = strategy_type.value.lower()
        for leverage, label, lt_rate, te, te_display, financing in rows:
            strategy = Strategy(
                id=f"{prefix}-{leverage}",
                type=strategy_type,
                name=f"{prefix.title()} {leverage.replace('-', '/')}",
                label=label,
                st_loss_rates_by_year=rates[leverage],
                lt_gain_rate=Decimal(lt_rate),
                tracking_error=Decimal(te),
                tracking_error_display=te_display,
                financing_cost_rate=Decimal(financing),
            )
            table[strategy.id] = strategy
    return table


STRATEGIES: dict[str, Strategy] = _build_strategies()


def get_strategy(strategy_id: str) -> Strategy:
    """Look up a strategy by id ("core-145-45") or display name ("Core 145/45")."""
    strategy = STRATEGIES.get(strategy_id)
    if strategy is not None:
        return strategy
    wanted = strategy_id.strip().lower()
    for candidate in STRATEGIES.values():
        if candidate.name.lower() == wanted or candidate.id == wanted:
            return candidate
    raise UnknownStrategyError(strategy_id)


def st_loss_rate(strategy_id: str, year: int) -> Decimal:
    """ST loss rate for a 1-based year; past the table the last rate repeats."""
    strategy = get_strategy(strategy_id)
    return strategy_st_loss_rate(strategy, year)


def strategy_st_loss_rate(strategy: Strategy, year: int) -> Decimal:
    rates = strategy.st_loss_rates_by_year
    index = min(max(year, 1), len(rates)) - 1
    return rates[index]


def average_st_loss_rate(strategy: Strategy, from_year: int, to_year: int) -> Decimal:
    """Mean ST loss rate over years *from_year*..*to_year* inclusive.

    A window of one year reproduces the year-1 rate.
    """
    start = max(from_year, 1)
    end = max(start, to_year)
    rates = [strategy_st_loss_rate(strategy, year) for year in range(start, end + 1)]
    return sum(rates, Decimal("0")) / len(rates)
