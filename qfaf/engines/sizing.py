"""QFAF sizing policies.

The QFAF subscription is sized so its short-term gains absorb the collateral's
harvested short-term losses. The sizing rate is the strategy's average ST loss
rate over years 1..sizing_years, and the sized value is reduced by the sizing
cushion. Two policies decide the value in each year:

  FixedDecaySizing        year 1 = initial x year-1 multiplier, then
                          prior x decay multiplier, independent of collateral.
  CollateralDrivenSizing  follows the same trajectory, and in the year a cash
                          infusion or withdrawal takes effect (plus the sizing
                          lag) adds infusion x sizing rate / loss multiplier to
                          the subscription, which then decays from there.

With no cash flows both policies produce identical values.
"""

from abc import ABC, abstractmethod
from decimal import Decimal

from qfaf.engines.strategies import Strategy, average_st_loss_rate
from qfaf.models.inputs import ClientProfile, GlobalSettings, ResolvedYear

ZERO = Decimal("0")
ONE = Decimal("1")


def sizing_rate(profile: ClientProfile, strategy: Strategy) -> Decimal:
    """Average ST loss rate over the profile's sizing window."""
    return average_st_loss_rate(strategy, 1, profile.sizing_years)


def qfaf_per_collateral_dollar(
    profile: ClientProfile,
    strategy: Strategy,
    settings: GlobalSettings,
) -> Decimal:
    """QFAF subscribed per dollar of collateral, cushion included."""
    return sizing_rate(profile, strategy) / settings.loss_multiplier * (ONE - profile.sizing_cushion)


def initial_qfaf_value(
    profile: ClientProfile,
    strategy: Strategy,
    settings: GlobalSettings,
) -> Decimal:
    """Opening subscription: QFAF = (Collateral x sizing rate) / loss multiplier x (1 - cushion).

    An explicit ``qfaf_override`` replaces the computed value but still takes
    the cushion.
    """
    if not profile.qfaf_enabled:
        return ZERO
    if profile.qfaf_override is not None:
        return profile.qfaf_override * (ONE - profile.sizing_cushion)
    return profile.collateral_amount * qfaf_per_collateral_dollar(profile, strategy, settings)


class QfafSizingPolicy(ABC):
    """Decides the QFAF subscription value for each projected year."""

    name: str = ""

    @abstractmethod
    def size(self, year: int, prior_qfaf: Decimal) -> tuple[Decimal, bool]:
        """Return (qfaf_value, resized) for *year*."""
        ...


class NoQfafSizing(QfafSizingPolicy):
    """Collateral-only projection: the overlay is switched off."""

    name = "disabled"

    def size(self, year: int, prior_qfaf: Decimal) -> tuple[Decimal, bool]:
        return ZERO, False


class FixedDecaySizing(QfafSizingPolicy):
    name = "fixed-decay"

    def __init__(self, initial_qfaf: Decimal, settings: GlobalSettings) -> None:
        self.initial_qfaf = initial_qfaf
        self.year1_multiplier = settings.qfaf_year1_multiplier
        self.decay_multiplier = settings.qfaf_decay_multiplier

    def size(self, year: int, prior_qfaf: Decimal) -> tuple[Decimal, bool]:
        if year == 1:
            return self.initial_qfaf * self.year1_multiplier, False
        return prior_qfaf * self.decay_multiplier, False


class CollateralDrivenSizing(FixedDecaySizing):
    """Fixed decay plus a QFAF adjustment for each cash flow once the lag has passed."""

    name = "collateral-driven"

    def __init__(
        self,
        initial_qfaf: Decimal,
        settings: GlobalSettings,
        resolved: list[ResolvedYear],
        per_dollar: Decimal,
        lag_years: int = 0,
    ) -> None:
        super().__init__(initial_qfaf, settings)
        horizon = len(resolved)
        adjustments: dict[int, Decimal] = {}
        for entry in resolved:
            target = entry.year + lag_years
            if entry.cash_infusion == 0 or target > horizon:
                continue
            adjustments[target] = adjustments.get(target, ZERO) + entry.cash_infusion * per_dollar
        self.adjustments = adjustments

    @property
    def resize_years(self) -> frozenset[int]:
        return frozenset(self.adjustments)

    def size(self, year: int, prior_qfaf: Decimal) -> tuple[Decimal, bool]:
        qfaf, _ = super().size(year, prior_qfaf)
        if year in self.adjustments:
            return qfaf + self.adjustments[year], True
        return qfaf, False


def build_sizing_policy(
    profile: ClientProfile,
    strategy: Strategy,
    settings: GlobalSettings,
    resolved: list[ResolvedYear] | None = None,
) -> QfafSizingPolicy:
    """Pick the policy: fixed decay for baseline runs, collateral-driven when overrides are in play."""
    if not profile.qfaf_enabled:
        return NoQfafSizing()
    initial = initial_qfaf_value(profile, strategy, settings)
    if resolved is None:
        return FixedDecaySizing(initial, settings)
    return CollateralDrivenSizing(
        initial,
        settings,
        resolved,
        qfaf_per_collateral_dollar(profile, strategy, settings),
        profile.sizing_lag_years,
    )
