# domain/ride.py
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from ride_sim.domain.geo import Coordinate

RideState = Literal["idle", "finding_driver", "driver_en_route", "at_pickup", "in_ride", "arrived"]
EstimateSource = Literal["straight_line", "provider"]


@dataclass(frozen=True)
class RideOption:
    id: str
    display_name: str
    base_fare: float
    per_km: float
    per_min: float
    surge_multiplier: float
    base_eta_minutes: int


@dataclass(frozen=True)
class RouteEstimate:
    distance_km: float
    duration_minutes: int
    source: EstimateSource = "straight_line"

    def __post_init__(self):
        if self.duration_minutes < 1:
            raise ValueError("duration_minutes must be >= 1")


@dataclass(frozen=True)
class DirectionStep:
    instruction: str
    distance_meters: float
    duration_seconds: float

    def to_json(self) -> dict:
        return {
            "instruction": self.instruction,
            "distanceMeters": self.distance_meters,
            "durationSeconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class Destination:
    id: str
    name: str
    subtitle: str
    position: Coordinate


@dataclass
class NearbyCar:
    id: str
    position: Coordinate


@dataclass
class RideSession:
    destination: Destination
    selected_option_id: str
    generation: int  # async completions from another generation are dropped
    rider_position: Coordinate | None = None
    state: RideState = "idle"
    task_id: int = 0  # bumped on every state exit; timers carry it
    assigned_driver_position: Coordinate | None = None
    eta_minutes_remaining: int | None = None
    rating: int = 0
    straight_estimate: RouteEstimate | None = None
    provider_estimate: RouteEstimate | None = None
    path: list[Coordinate] = field(default_factory=list)
    steps: list[DirectionStep] = field(default_factory=list)
    quoted_price: Decimal | None = None

    @property
    def estimate(self) -> RouteEstimate | None:
        """Freshest estimate: the provider one replaces the straight-line one."""
        return self.provider_estimate or self.straight_estimate

    def display_path(self) -> list[Coordinate]:
        if self.path:
            return self.path
        if self.rider_position is None:
            return []
        return [self.rider_position, self.destination.position]
