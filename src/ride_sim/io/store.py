# io/store.py
import json
import logging
import os
from pathlib import Path
from typing import Any

from ride_sim.app.protocols import KeyValueStore
from ride_sim.domain.ride import DirectionStep, Destination

LAST_RIDE = "lastRide"
RIDE_HISTORY = "rideHistory"
RECENT_DESTINATIONS = "recentDestinations"
ROUTE_STEPS = "routeSteps"
UNIT_PREFERENCE = "unitPreference"

HISTORY_CAP = 20
RECENTS_CAP = 6

logger = logging.getLogger(__name__)


class MemoryStore(KeyValueStore):
    def __init__(self, data: dict[str, Any] | None = None):
        self.data: dict[str, str] = {k: json.dumps(v) for k, v in (data or {}).items()}

    def get(self, key: str) -> Any:
        raw = self.data.get(key)
        return None if raw is None else json.loads(raw)

    def set(self, key: str, value: Any) -> None:
        # serialize on write so callers can't mutate what's stored
        self.data[key] = json.dumps(value)


class JsonFileStore(KeyValueStore):
    """Whole store in one JSON object on disk; rewritten atomically on each set."""

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def get(self, key: str) -> Any:
        return self._load().get(key)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)


class RideStore:
    """
    Typed access to the app's persisted keys. Every read/write is best effort:
    a failing store is logged and otherwise ignored so the ride flow never
    blocks on persistence.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _get(self, key: str, default=None):
        try:
            value = self.store.get(key)
        except Exception as exc:
            logger.warning("store read %s failed: %s", key, exc)
            return default
        return default if value is None else value

    def _set(self, key: str, value) -> bool:
        try:
            self.store.set(key, value)
        except Exception as exc:
            logger.warning("store write %s failed: %s", key, exc)
            return False
        return True

    def _get_list(self, key: str) -> list:
        value = self._get(key, [])
        return value if isinstance(value, list) else []

    # -------- receipts --------

    def save_receipt(self, *, dest_name: str, dest_subtitle: str, price: str | None, when: str) -> dict:
        receipt = {"destName": dest_name, "destSubtitle": dest_subtitle, "price": price, "when": when}
        if self._set(LAST_RIDE, receipt):
            history = [receipt, *self._get_list(RIDE_HISTORY)][:HISTORY_CAP]
            self._set(RIDE_HISTORY, history)
        return receipt

    def last_ride(self) -> dict | None:
        value = self._get(LAST_RIDE)
        return value if isinstance(value, dict) else None

    def ride_history(self) -> list[dict]:
        return self._get_list(RIDE_HISTORY)

    # -------- recents --------

    def remember_destination(self, dest: Destination, *, when: int) -> list[dict]:
        lat, lng = dest.position.latitude, dest.position.longitude
        entry = {
            "id": dest.id,
            "name": dest.name,
            "subtitle": dest.subtitle,
            "latitude": lat,
            "longitude": lng,
            "when": when,
        }

        def same(r: dict) -> bool:
            if r.get("id") == dest.id:
                return True
            return r.get("name") == dest.name and r.get("latitude") == lat and r.get("longitude") == lng

        recents = [entry, *(r for r in self._get_list(RECENT_DESTINATIONS) if not same(r))][:RECENTS_CAP]
        self._set(RECENT_DESTINATIONS, recents)
        return recents

    def recent_destinations(self) -> list[dict]:
        return self._get_list(RECENT_DESTINATIONS)

    # -------- route steps --------

    def save_route_steps(self, steps: list[DirectionStep]) -> None:
        self._set(ROUTE_STEPS, [s.to_json() for s in steps])

    def route_steps(self) -> list[DirectionStep]:
        out = []
        for s in self._get_list(ROUTE_STEPS):
            try:
                out.append(
                    DirectionStep(
                        instruction=str(s["instruction"]),
                        distance_meters=float(s["distanceMeters"]),
                        duration_seconds=float(s["durationSeconds"]),
                    )
                )
            except (KeyError, TypeError, ValueError):
                continue
        return out

    # -------- unit preference --------

    def unit_preference(self) -> str | None:
        value = self._get(UNIT_PREFERENCE)
        return value if value in ("imperial", "metric") else None

    def save_unit_preference(self, value: str) -> None:
        self._set(UNIT_PREFERENCE, value)
