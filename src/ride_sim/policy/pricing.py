# ride_sim/policy/pricing.py
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from ride_sim.app.protocols import PricingPolicy
from ride_sim.domain.ride import RideOption, RouteEstimate

CENTS = Decimal("0.01")

DEFAULT_CATALOG: tuple[RideOption, ...] = (
    RideOption("uberx", "UberX", 2.0, 1.2, 0.25, 1.0, base_eta_minutes=3),
    RideOption("comfort", "Comfort", 3.0, 1.5, 0.3, 1.05, base_eta_minutes=4),
    RideOption("xl", "XL", 4.0, 1.9, 0.35, 1.1, base_eta_minutes=5),
)


def _d(x: float | int) -> Decimal:
    # via str so 1.2 stays 1.2 and not its binary expansion
    return Decimal(str(x))


def price(option: RideOption, estimate: RouteEstimate) -> Decimal:
    """(base + per_km * km + per_min * min) * surge, rounded half-up to cents."""
    raw = (
        _d(option.base_fare)
        + _d(option.per_km) * _d(estimate.distance_km)
        + _d(option.per_min) * _d(estimate.duration_minutes)
    ) * _d(option.surge_multiplier)
    return raw.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_price(amount: Decimal | None) -> str | None:
    return None if amount is None else f"{amount.quantize(CENTS, rounding=ROUND_HALF_UP)}"


class FareEstimator(PricingPolicy):
    def __init__(self, catalog: Sequence[RideOption] = DEFAULT_CATALOG):
        if not catalog:
            raise ValueError("ride catalog is empty")
        self.catalog = tuple(catalog)
        self._by_id = {o.id: o for o in self.catalog}

    @property
    def default_option(self) -> RideOption:
        return self.catalog[0]

    def option(self, option_id: str) -> RideOption | None:
        return self._by_id.get(option_id)

    def price(self, option: RideOption, estimate: RouteEstimate) -> Decimal:
        return price(option, estimate)

    def quote_all(self, estimate: RouteEstimate | None) -> dict[str, Decimal | None]:
        return {o.id: (price(o, estimate) if estimate else None) for o in self.catalog}
