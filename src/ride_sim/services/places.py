# ride_sim/services/places.py
from __future__ import annotations

import logging
from dataclasses import dataclass

import requests

from ride_sim.app.protocols import PlacesClient
from ride_sim.domain.geo import Coordinate

AUTOCOMPLETE_URL = "https://maps.googleapis.com/maps/api/place/autocomplete/json"
DETAILS_URL = "https://maps.googleapis.com/maps/api/place/details/json"
REQUEST_TIMEOUT = 10
DEFAULT_RADIUS_M = 20_000

logger = logging.getLogger(__name__)


class PlacesUnavailable(RuntimeError):
    """Autocomplete/details could not be served."""


@dataclass(frozen=True)
class Suggestion:
    id: str
    name: str
    subtitle: str
    position: Coordinate | None = None  # None until resolved via details()


FALLBACK_SUGGESTIONS: tuple[Suggestion, ...] = (
    Suggestion("1", "Airport", "SFO International", Coordinate(37.6213, -122.379)),
    Suggestion("2", "Downtown", "San Francisco", Coordinate(37.7858, -122.401)),
)


class GooglePlacesClient(PlacesClient):
    def __init__(
        self,
        api_key: str,
        *,
        timeout: float = REQUEST_TIMEOUT,
        radius_m: int = DEFAULT_RADIUS_M,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.timeout = timeout
        self.radius_m = radius_m
        self.http = session or requests.Session()

    def _get(self, url: str, params: dict) -> dict:
        if not self.api_key:
            raise PlacesUnavailable("maps API key missing")
        try:
            response = self.http.get(url, params={"key": self.api_key, **params}, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise PlacesUnavailable(str(exc)) from exc
        if not isinstance(data, dict):
            raise PlacesUnavailable(f"unexpected payload type {type(data).__name__}")
        return data

    def autocomplete(self, query: str, *, near: Coordinate | None = None) -> list[Suggestion]:
        params = {"input": query, "types": "geocode"}
        if near is not None:
            params["location"] = f"{near.latitude},{near.longitude}"
            params["radius"] = str(self.radius_m)
        data = self._get(AUTOCOMPLETE_URL, params)
        status = data.get("status")
        if status not in ("OK", "ZERO_RESULTS"):
            raise PlacesUnavailable(f"places status {status}")
        try:
            out = []
            for p in data.get("predictions") or []:
                fmt = p.get("structured_formatting") or {}
                out.append(
                    Suggestion(
                        id=str(p.get("place_id", "")),
                        name=fmt.get("main_text") or p.get("description", ""),
                        subtitle=fmt.get("secondary_text") or "",
                    )
                )
        except (AttributeError, TypeError) as exc:
            raise PlacesUnavailable(f"malformed predictions: {exc}") from exc
        return out

    def details(self, place_id: str) -> Coordinate | None:
        data = self._get(DETAILS_URL, {"place_id": place_id, "fields": "geometry"})
        if data.get("status") != "OK":
            return None
        try:
            loc = data["result"]["geometry"]["location"]
            return Coordinate(float(loc["lat"]), float(loc["lng"]))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Place %s has no usable location: %s", place_id, exc)
            return None


class StaticPlacesClient(PlacesClient):
    """In-memory places lookup for offline runs and tests."""

    def __init__(self, places: dict[str, Suggestion] | None = None, *, fail: bool = False):
        self.places = dict(places or {})
        self.fail = fail
        self.queries: list[str] = []

    def autocomplete(self, query: str, *, near: Coordinate | None = None) -> list[Suggestion]:
        self.queries.append(query)
        if self.fail:
            raise PlacesUnavailable("offline")
        q = query.lower()
        return [
            Suggestion(s.id, s.name, s.subtitle)
            for s in self.places.values()
            if q in s.name.lower() or q in s.subtitle.lower()
        ]

    def details(self, place_id: str) -> Coordinate | None:
        if self.fail:
            raise PlacesUnavailable("offline")
        s = self.places.get(place_id)
        return s.position if s else None
