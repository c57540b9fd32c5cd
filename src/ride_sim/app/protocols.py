from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from ride_sim.domain.geo import Coordinate
from ride_sim.domain.ride import RideOption, RouteEstimate


# ------------- External collaborators --------------------
@runtime_checkable
class DirectionsGateway(Protocol):
    """
    Driving directions between two points.
    Returns None ("absent") for network failure, malformed payload or zero
    results; never raises for those.
    """

    def fetch_route(self, origin: Coordinate, destination: Coordinate): ...


@runtime_checkable
class PlacesClient(Protocol):
    """
    Responsibilities:
      • Free-text query -> ranked suggestions.
      • Suggestion id -> coordinate (None when the provider has none).
    Transport or status errors raise PlacesUnavailable.
    """

    def autocomplete(self, query: str, *, near: Coordinate | None = None) -> list: ...
    def details(self, place_id: str) -> Coordinate | None: ...


@runtime_checkable
class KeyValueStore(Protocol):
    """Opaque key -> JSON value store. Missing keys read as None."""

    def get(self, key: str) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...


# --------------- Policies -------------------------


@runtime_checkable
class PricingPolicy(Protocol):
    def price(self, option: RideOption, estimate: RouteEstimate) -> Decimal: ...
