# ride_sim/services/directions.py
"""Driving directions: provider client plus the fallback to a straight line."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

import requests

from ride_sim.app.protocols import DirectionsGateway
from ride_sim.domain import polyline_codec
from ride_sim.domain.geo import Coordinate, distance_km
from ride_sim.domain.ride import DirectionStep, RouteEstimate

DIRECTIONS_URL = "https://maps.googleapis.com/maps/api/directions/json"
REQUEST_TIMEOUT = 10

STRAIGHT_LINE_MIN_PER_KM = 3.0
STRAIGHT_LINE_MIN_MINUTES = 5

logger = logging.getLogger(__name__)


class DirectionsUnavailable(RuntimeError):
    """Raised internally when a response cannot be turned into a route."""


@dataclass(frozen=True)
class RawStep:
    instruction_markup: str
    distance_meters: float
    duration_seconds: float


@dataclass(frozen=True)
class RouteResult:
    encoded_polyline: str
    distance_meters: float
    duration_seconds: float
    steps: list[RawStep] = field(default_factory=list)


@dataclass(frozen=True)
class RouteData:
    estimate: RouteEstimate
    path: list[Coordinate]
    steps: list[DirectionStep]

    @property
    def from_provider(self) -> bool:
        return self.estimate.source == "provider"


def round_half_up(x: float, places: int = 0) -> float:
    q = Decimal(1).scaleb(-places)
    return float(Decimal(str(x)).quantize(q, rounding=ROUND_HALF_UP))


def straight_line_estimate(origin: Coordinate, destination: Coordinate) -> RouteEstimate:
    km = distance_km(origin, destination)
    minutes = max(STRAIGHT_LINE_MIN_MINUTES, int(round_half_up(km * STRAIGHT_LINE_MIN_PER_KM)))
    return RouteEstimate(round_half_up(km, 1), minutes, "straight_line")


def provider_estimate(result: RouteResult) -> RouteEstimate:
    km = round_half_up(result.distance_meters / 1000.0, 1)
    minutes = max(1, int(round_half_up(result.duration_seconds / 60.0)))
    return RouteEstimate(km, minutes, "provider")


def parse_directions_payload(data: dict) -> RouteResult | None:
    """
    Pull the first route/leg out of a directions JSON body.
    ZERO_RESULTS or a missing route, leg or polyline means "no route" (None);
    any other non-OK status raises DirectionsUnavailable.
    """
    if not isinstance(data, dict):
        raise DirectionsUnavailable("payload is not an object")
    status = data.get("status", "OK")
    if status not in ("OK", "ZERO_RESULTS"):
        raise DirectionsUnavailable(f"directions status {status}")
    routes = data.get("routes") or []
    route = routes[0] if routes else None
    legs = (route or {}).get("legs") or []
    leg = legs[0] if legs else None
    encoded = ((route or {}).get("overview_polyline") or {}).get("points")
    if not route or not leg or not encoded:
        return None

    def _value(obj, key) -> float:
        return float(((obj or {}).get(key) or {}).get("value") or 0)

    steps = [
        RawStep(
            instruction_markup=str(s.get("html_instructions") or ""),
            distance_meters=_value(s, "distance"),
            duration_seconds=_value(s, "duration"),
        )
        for s in leg.get("steps") or []
    ]
    return RouteResult(
        encoded_polyline=encoded,
        distance_meters=_value(leg, "distance"),
        duration_seconds=_value(leg, "duration"),
        steps=steps,
    )


class GoogleDirectionsGateway(DirectionsGateway):
    def __init__(
        self,
        api_key: str,
        *,
        url: str = DIRECTIONS_URL,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.http = session or requests.Session()

    def fetch_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult | None:
        if not self.api_key:
            logger.info("maps API key missing, skipping directions lookup")
            return None
        params = {
            "key": self.api_key,
            "origin": f"{origin.latitude},{origin.longitude}",
            "destination": f"{destination.latitude},{destination.longitude}",
            "mode": "driving",
        }
        try:
            response = self.http.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return parse_directions_payload(response.json())
        except (requests.RequestException, ValueError, DirectionsUnavailable) as exc:
            logger.warning("Directions lookup failed: %s", exc)
            return None


class StaticDirectionsGateway(DirectionsGateway):
    """Answers every request with the same result (or None). Used offline and in tests."""

    def __init__(self, result: RouteResult | None = None):
        self.result = result
        self.calls: list[tuple[Coordinate, Coordinate]] = []

    def fetch_route(self, origin: Coordinate, destination: Coordinate) -> RouteResult | None:
        self.calls.append((origin, destination))
        return self.result


def resolve_route(
    gateway: DirectionsGateway | None, origin: Coordinate, destination: Coordinate
) -> RouteData:
    """
    Turn whatever the gateway says into display/pricing data. Absent routes,
    gateway errors and undecodable polylines all land on the straight line.
    """
    fallback = RouteData(
        estimate=straight_line_estimate(origin, destination),
        path=[origin, destination],
        steps=[],
    )
    if gateway is None:
        return fallback
    try:
        result = gateway.fetch_route(origin, destination)
    except Exception as exc:  # third-party gateways may raise anything
        logger.warning("Directions gateway raised: %s", exc)
        return fallback
    if result is None:
        return fallback
    try:
        path = polyline_codec.decode(result.encoded_polyline)
    except ValueError as exc:
        logger.warning("Discarding route with bad polyline: %s", exc)
        return fallback
    if not path:
        return fallback
    steps = [
        DirectionStep(
            instruction=polyline_codec.strip_markup(s.instruction_markup),
            distance_meters=s.distance_meters,
            duration_seconds=s.duration_seconds,
        )
        for s in result.steps
    ]
    return RouteData(estimate=provider_estimate(result), path=path, steps=steps)
