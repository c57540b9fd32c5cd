# config/units.py
from typing import Literal

from ride_sim.domain.ride import DirectionStep, RouteEstimate
from ride_sim.io.store import RideStore

UnitSystem = Literal["metric", "imperial"]

KM_TO_MI = 0.621371


def km_to_miles(km: float) -> float:
    return km * KM_TO_MI


class UnitPreference:
    """
    Display unit system. Loaded once from the store when built and written back
    on every change; nothing else reads the persisted key.
    """

    def __init__(self, store: RideStore | None = None, default: UnitSystem = "metric"):
        self._store = store
        self._value: UnitSystem = default

    @classmethod
    def load(cls, store: RideStore, default: UnitSystem = "metric") -> "UnitPreference":
        pref = cls(store, default)
        saved = store.unit_preference()
        if saved is not None:
            pref._value = saved
        return pref

    @property
    def value(self) -> UnitSystem:
        return self._value

    @property
    def imperial(self) -> bool:
        return self._value == "imperial"

    def set(self, value: UnitSystem) -> None:
        if value not in ("metric", "imperial"):
            raise ValueError(f"unknown unit system {value!r}")
        self._value = value
        if self._store is not None:
            self._store.save_unit_preference(value)

    def toggle(self) -> UnitSystem:
        self.set("metric" if self.imperial else "imperial")
        return self._value

    # ---- display ----

    def distance(self, km: float) -> float:
        return km_to_miles(km) if self.imperial else km

    def format_distance(self, km: float) -> str:
        unit = "mi" if self.imperial else "km"
        return f"{self.distance(km):.1f} {unit}"

    def summary(self, estimate: RouteEstimate) -> str:
        return f"~{estimate.duration_minutes} min • {self.format_distance(estimate.distance_km)}"

    def step_line(self, step: DirectionStep) -> str:
        minutes = max(1, round(step.duration_seconds / 60))
        return f"{self.format_distance(step.distance_meters / 1000)} • {minutes} min"
