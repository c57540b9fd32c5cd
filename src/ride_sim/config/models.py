import os
from dataclasses import asdict
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator

from ride_sim.domain.ride import RideOption
from ride_sim.policy.pricing import DEFAULT_CATALOG
from ride_sim.sim.clock import ms


class SimModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    epoch: tuple[int, int, int, int, int, int] = (2025, 1, 1, 0, 0, 0)
    seed: int = 0


class LogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    debug: bool = False
    sample_every: int = 1


# ----------------- RIDE LIFECYCLE ---------------------


class RideModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    matching_delay_s: float = 2.0
    eta_tick_s: float = 30.0
    move_tick_s: float = 1.5
    pickup_fraction: float = 0.20  # of the remaining offset, per move tick
    dropoff_fraction: float = 0.12
    arrive_threshold_km: float = 0.05
    min_driver_eta_min: int = 2
    fallback_driver_offset: tuple[float, float] = (0.002, -0.0015)  # (dlat, dlng) from rider
    route_latency_s: float = 0.0  # delay before a directions answer is applied

    @field_validator("matching_delay_s", "eta_tick_s", "move_tick_s", "arrive_threshold_km")
    @classmethod
    def _positive(cls, v: float, info: ValidationInfo) -> float:
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("pickup_fraction", "dropoff_fraction")
    @classmethod
    def _fraction(cls, v: float, info: ValidationInfo) -> float:
        if not 0.0 < v <= 1.0:
            raise ValueError(f"{info.field_name} must be in (0, 1]")
        return v

    @field_validator("route_latency_s")
    @classmethod
    def _nonneg(cls, v: float, info: ValidationInfo) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v


class FleetModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    count: int = Field(default=5, ge=1)
    radius_deg: float = 0.002
    radius_jitter: tuple[float, float] = (0.7, 1.3)
    jitter_deg: float = 0.000125  # per axis, uniform in [-j, j]
    tick_s: float = Field(default=2.0, gt=0)

    @model_validator(mode="after")
    def _check_jitter(self):
        lo, hi = self.radius_jitter
        if lo <= 0 or hi < lo:
            raise ValueError("radius_jitter must be 0 < lo <= hi")
        return self


class RideOptionModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    id: str
    display_name: str
    base_fare: float = Field(ge=0)
    per_km: float = Field(ge=0)
    per_min: float = Field(ge=0)
    surge_multiplier: float = Field(default=1.0, gt=0)
    base_eta_minutes: int = Field(ge=0)

    def to_option(self) -> RideOption:
        return RideOption(**self.model_dump())


def _default_catalog() -> list[RideOptionModel]:
    return [RideOptionModel(**asdict(o)) for o in DEFAULT_CATALOG]


class CatalogModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    options: list[RideOptionModel] = Field(default_factory=_default_catalog)

    @model_validator(mode="after")
    def _three_tiers(self):
        if len(self.options) != 3:
            raise ValueError(f"catalog must have exactly 3 options, got {len(self.options)}")
        ids = [o.id for o in self.options]
        if len(set(ids)) != len(ids):
            raise ValueError("catalog option ids must be unique")
        return self


# ------------------ SERVICES -----------------------------


def _api_key_from_env() -> str:
    return os.getenv("GOOGLE_MAPS_API_KEY", "")


class DirectionsGoogleModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["google"] = "google"
    api_key: str = Field(default_factory=_api_key_from_env)
    timeout_s: float = 10.0


class DirectionsStraightLineModel(BaseModel):
    """No provider: every route falls back to the straight line."""

    model_config = ConfigDict(extra="forbid")
    kind: Literal["straight_line"] = "straight_line"


DirectionsUnion = Annotated[
    DirectionsGoogleModel | DirectionsStraightLineModel, Field(discriminator="kind")
]


class PlacesGoogleModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["google"] = "google"
    api_key: str = Field(default_factory=_api_key_from_env)
    timeout_s: float = 10.0
    radius_m: int = 20_000


class PlacesOfflineModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["offline"] = "offline"


PlacesUnion = Annotated[PlacesGoogleModel | PlacesOfflineModel, Field(discriminator="kind")]


class SearchModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    debounce_s: float = Field(default=ms(250), ge=0)
    latency_s: float = Field(default=0.0, ge=0)


class StoreMemoryModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["memory"] = "memory"


class StoreJsonFileModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    kind: Literal["json_file"] = "json_file"
    path: str

    @field_validator("path")
    @classmethod
    def _expand(cls, v: str) -> str:
        return os.path.expandvars(os.path.expanduser(v))


StoreUnion = Annotated[StoreMemoryModel | StoreJsonFileModel, Field(discriminator="kind")]


# ------------------------------------------------------------------


class ScenarioModel(BaseModel):
    model_config = ConfigDict(extra="forbid")
    name: str = "ride"
    run_id: str = "local"
    sim: SimModel = SimModel()
    log: LogModel = LogModel()
    ride: RideModel = RideModel()
    fleet: FleetModel = FleetModel()
    catalog: CatalogModel = Field(default_factory=CatalogModel)
    directions: DirectionsUnion = Field(default_factory=DirectionsStraightLineModel)
    places: PlacesUnion = Field(default_factory=PlacesOfflineModel)
    search: SearchModel = SearchModel()
    store: StoreUnion = Field(default_factory=StoreMemoryModel)
