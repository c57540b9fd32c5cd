# app/events.py
from dataclasses import dataclass

from ride_sim.domain.geo import Coordinate
from ride_sim.domain.ride import Destination
from ride_sim.services.directions import RouteData
from ride_sim.services.places import Suggestion
from ride_sim.sim.event import BaseEvent


# Device location (async completions carry the generation they were asked for)
@dataclass(order=True)
class LocationPermission(BaseEvent):
    granted: bool


@dataclass(order=True)
class LocationFixed(BaseEvent):
    position: Coordinate
    generation: int | None = None  # None = whatever session is current


@dataclass(order=True)
class LocationLost(BaseEvent):
    pass


# accepted fix for the live session; drives the decoy fleet
@dataclass(order=True)
class RiderLocated(BaseEvent):
    position: Coordinate


# Search
@dataclass(order=True)
class SearchQueryChanged(BaseEvent):
    query: str


@dataclass(order=True)
class SearchDebounceElapsed(BaseEvent):
    query: str
    task_id: int


@dataclass(order=True)
class SearchResultsReady(BaseEvent):
    query: str
    results: list[Suggestion]
    task_id: int


@dataclass(order=True)
class SuggestionPicked(BaseEvent):
    suggestion: Suggestion


@dataclass(order=True)
class DestinationChosen(BaseEvent):
    destination: Destination


# Route
@dataclass(order=True)
class RouteRequested(BaseEvent):
    origin: Coordinate
    destination: Coordinate
    generation: int


@dataclass(order=True)
class RouteResolved(BaseEvent):
    route: RouteData
    generation: int


# Rider actions
@dataclass(order=True)
class RideOptionSelected(BaseEvent):
    option_id: str


@dataclass(order=True)
class RideConfirmed(BaseEvent):
    pass


@dataclass(order=True)
class TripStartRequested(BaseEvent):
    pass


@dataclass(order=True)
class TripRated(BaseEvent):
    stars: int


@dataclass(order=True)
class TripDismissed(BaseEvent):
    pass


@dataclass(order=True)
class UnitsToggled(BaseEvent):
    pass


@dataclass(order=True)
class SessionTeardown(BaseEvent):
    pass


# Timers (task_id versioning makes stale ticks harmless)
@dataclass(order=True)
class DriverMatched(BaseEvent):
    task_id: int


@dataclass(order=True)
class EtaTick(BaseEvent):
    task_id: int


@dataclass(order=True)
class PositionTick(BaseEvent):
    task_id: int


@dataclass(order=True)
class FleetTick(BaseEvent):
    task_id: int


# Observability
@dataclass(order=True)
class RideStateChanged(BaseEvent):
    prev: str
    state: str


@dataclass(order=True)
class TripReceiptSaved(BaseEvent):
    dest_name: str
    price: str | None
