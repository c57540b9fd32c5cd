# ride_sim/app/controllers/search.py
import logging

from ride_sim.app.events import (
    DestinationChosen,
    RiderLocated,
    SearchDebounceElapsed,
    SearchQueryChanged,
    SearchResultsReady,
    SessionTeardown,
    SuggestionPicked,
)
from ride_sim.app.protocols import PlacesClient
from ride_sim.config.models import SearchModel
from ride_sim.domain.geo import Coordinate
from ride_sim.domain.ride import Destination
from ride_sim.io.store import RideStore
from ride_sim.services.places import FALLBACK_SUGGESTIONS, PlacesUnavailable, Suggestion
from ride_sim.sim.clock import SimClock

logger = logging.getLogger(__name__)


class SearchController:
    def __init__(self, cfg: SearchModel, places: PlacesClient, store: RideStore, clock: SimClock):
        self.cfg = cfg
        self.places = places
        self.store = store
        self.clock = clock
        self.query = ""
        self.results: list[Suggestion] = list(FALLBACK_SUGGESTIONS)
        self.loading = False
        self.near: Coordinate | None = None
        self.task_id = 0  # only the latest keystroke's debounce may fire

    def on_query_changed(self, ev: SearchQueryChanged):
        self.query = ev.query
        self.task_id += 1
        return [SearchDebounceElapsed(t=ev.t + self.cfg.debounce_s, query=ev.query, task_id=self.task_id)]

    def on_debounce_elapsed(self, ev: SearchDebounceElapsed):
        if ev.task_id != self.task_id:
            return []
        q = ev.query.strip()
        if not q:
            self.results = list(FALLBACK_SUGGESTIONS)
            return []
        self.loading = True
        try:
            found = self.places.autocomplete(q, near=self.near)
        except PlacesUnavailable as exc:
            logger.warning("Autocomplete failed for %r: %s", q, exc)
            found = list(FALLBACK_SUGGESTIONS)
        return [
            SearchResultsReady(
                t=ev.t + self.cfg.latency_s, query=ev.query, results=found, task_id=ev.task_id
            )
        ]

    def on_results_ready(self, ev: SearchResultsReady):
        if ev.task_id != self.task_id:
            return []
        self.results = ev.results
        self.loading = False
        return []

    def on_rider_located(self, ev: RiderLocated):
        self.near = ev.position
        return []

    def on_session_teardown(self, ev: SessionTeardown):
        self.task_id += 1
        self.loading = False
        return []

    def recent_suggestions(self) -> list[Suggestion]:
        out = []
        for r in self.store.recent_destinations():
            try:
                pos = Coordinate(float(r["latitude"]), float(r["longitude"]))
                out.append(Suggestion(str(r["id"]), r["name"], r.get("subtitle") or "", pos))
            except (KeyError, TypeError, ValueError):
                continue
        return out

    def _resolve(self, s: Suggestion) -> Coordinate | None:
        if s.position is not None:
            return s.position
        try:
            return self.places.details(s.id)
        except PlacesUnavailable as exc:
            logger.warning("Place details failed for %s: %s", s.id, exc)
            return None

    def on_suggestion_picked(self, ev: SuggestionPicked):
        s = ev.suggestion
        position = self._resolve(s)
        if position is None:
            logger.warning("No coordinates for %r, not starting a ride", s.name)
            return []
        dest = Destination(id=s.id, name=s.name, subtitle=s.subtitle, position=position)
        when_ms = int(self.clock.to_wall(ev.t).timestamp() * 1000)
        self.store.remember_destination(dest, when=when_ms)
        return [DestinationChosen(t=ev.t, destination=dest)]
