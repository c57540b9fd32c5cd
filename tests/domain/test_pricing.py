from decimal import Decimal

import pytest

from ride_sim.domain.ride import RideOption, RouteEstimate
from ride_sim.policy.pricing import DEFAULT_CATALOG, FareEstimator, format_price, price

BASIC = RideOption("basic", "Basic", 2.0, 1.2, 0.25, 1.0, base_eta_minutes=3)


def test_formula():
    amount = price(BASIC, RouteEstimate(distance_km=10, duration_minutes=20))
    assert amount == Decimal("19.00")
    assert format_price(amount) == "19.00"


def test_surge_and_half_up_rounding():
    opt = RideOption("x", "X", 0.0, 0.0, 0.0, 1.0, base_eta_minutes=1)
    # 0.125 rounds up, not to even
    half = RideOption("h", "H", 0.125, 0.0, 0.0, 1.0, base_eta_minutes=1)
    est = RouteEstimate(1.0, 1)
    assert price(opt, est) == Decimal("0.00")
    assert price(half, est) == Decimal("0.13")
    comfort = DEFAULT_CATALOG[1]
    # (3.0 + 1.5*4.2 + 0.3*13) * 1.05 = 13.2 * 1.05 = 13.86
    assert price(comfort, RouteEstimate(4.2, 13)) == Decimal("13.86")


def test_catalog_has_three_tiers_and_first_is_default():
    est = FareEstimator()
    assert [o.id for o in est.catalog] == ["uberx", "comfort", "xl"]
    assert est.default_option.id == "uberx"
    assert est.option("xl").base_eta_minutes == 5
    assert est.option("nope") is None


def test_quote_all_without_estimate_is_empty_prices():
    est = FareEstimator()
    assert est.quote_all(None) == {"uberx": None, "comfort": None, "xl": None}
    quotes = est.quote_all(RouteEstimate(10, 20))
    assert quotes["uberx"] == Decimal("19.00")
    # XL: (4 + 19 + 7) * 1.1 = 33.00
    assert quotes["xl"] == Decimal("33.00")


def test_empty_catalog_rejected():
    with pytest.raises(ValueError):
        FareEstimator([])


def test_estimate_needs_a_minute():
    with pytest.raises(ValueError):
        RouteEstimate(1.0, 0)
