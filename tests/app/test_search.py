# tests/app/test_search.py
from ride_sim.app.events import LocationFixed, SearchQueryChanged, SuggestionPicked
from ride_sim.domain.geo import Coordinate
from ride_sim.services.places import (
    FALLBACK_SUGGESTIONS,
    GooglePlacesClient,
    StaticPlacesClient,
    Suggestion,
)

RIDER = Coordinate(37.7749, -122.4194)
FERRY = Suggestion("ferry", "Ferry Building", "Embarcadero", Coordinate(37.7955, -122.3937))


def places(**kw):
    catalog = {s.id: s for s in (*FALLBACK_SUGGESTIONS, FERRY)}
    return StaticPlacesClient(catalog, **kw)


def test_only_the_last_keystroke_is_searched(make_app):
    client = places()
    app, trace = make_app(places=client)
    k = app.kernel
    for i, q in enumerate(["f", "fe", "fer"]):
        k.schedule(SearchQueryChanged(t=0.1 * i, query=q))
    k.run(until=1.0)
    assert client.queries == ["fer"]
    assert [s.id for s in app.search.results] == ["ferry"]
    # results from the picker come back without coordinates
    assert app.search.results[0].position is None
    assert app.search.loading is False
    assert trace.names().count("SearchDebounceElapsed") == 3


def test_debounce_waits_a_quarter_second(make_app):
    client = places()
    app, _ = make_app(places=client)
    k = app.kernel
    k.schedule(SearchQueryChanged(t=0.0, query="air"))
    k.run(until=0.2)
    assert client.queries == []
    k.run(until=0.25)
    assert client.queries == ["air"]


def test_blank_query_shows_fallbacks_without_lookup(make_app):
    client = places()
    app, _ = make_app(places=client)
    k = app.kernel
    k.schedule(SearchQueryChanged(t=0.0, query="fer"))
    k.schedule(SearchQueryChanged(t=1.0, query="   "))
    k.run(until=2.0)
    assert client.queries == ["fer"]
    assert app.search.results == list(FALLBACK_SUGGESTIONS)


def test_lookup_failure_falls_back(make_app):
    app, _ = make_app(places=places(fail=True))
    k = app.kernel
    k.schedule(SearchQueryChanged(t=0.0, query="fer"))
    k.run(until=1.0)
    assert app.search.results == list(FALLBACK_SUGGESTIONS)


def test_location_fix_biases_search(make_app):
    app, _ = make_app(places=places())
    app.kernel.schedule(LocationFixed(t=0.0, position=RIDER))
    app.kernel.run(until=0.0)
    assert app.search.near == RIDER


def test_pick_resolves_place_and_starts_session(make_app):
    app, _ = make_app(places=places())
    k = app.kernel
    k.schedule(LocationFixed(t=0.0, position=RIDER))
    k.schedule(SuggestionPicked(t=30.0, suggestion=Suggestion("ferry", "Ferry Building", "Embarcadero")))
    k.run(until=30.0)

    s = app.ride.session
    assert s.destination.name == "Ferry Building"
    assert s.destination.position == FERRY.position
    assert s.straight_estimate is not None

    recents = app.store.recent_destinations()
    assert recents[0]["id"] == "ferry"
    # epoch 2025-01-01T00:00:00Z plus 30 s, in ms
    assert recents[0]["when"] == 1_735_689_630_000
    assert app.search.recent_suggestions()[0] == FERRY


def test_pick_without_coordinates_does_nothing(make_app):
    app, _ = make_app(places=places())
    k = app.kernel
    k.schedule(SuggestionPicked(t=0.0, suggestion=Suggestion("ghost", "Nowhere", "")))
    k.run(until=1.0)
    assert app.ride.session is None
    assert app.store.recent_destinations() == []


def test_pick_when_details_lookup_fails(make_app):
    app, _ = make_app(places=places(fail=True))
    k = app.kernel
    k.schedule(SuggestionPicked(t=0.0, suggestion=Suggestion("ferry", "Ferry Building", "")))
    k.run(until=1.0)
    assert app.ride.session is None


class CannedResponse:
    def __init__(self, payload):
        self.payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self.payload


class CannedSession:
    """Answers every GET with the same JSON body."""

    def __init__(self, payload):
        self.payload = payload

    def get(self, url, params=None, timeout=None):
        return CannedResponse(self.payload)


def test_pick_with_malformed_details_keeps_running(make_app):
    bad = {"status": "OK", "result": {"geometry": {"location": {"lat": 1.5}}}}
    app, _ = make_app(places=GooglePlacesClient("k", session=CannedSession(bad)))
    k = app.kernel
    k.schedule(SuggestionPicked(t=0.0, suggestion=Suggestion("abc", "Somewhere", "")))
    k.schedule(SearchQueryChanged(t=1.0, query="air"))
    k.run(until=5.0)
    assert app.ride.session is None
    assert app.store.recent_destinations() == []
    assert k.now == 5.0


def test_list_shaped_autocomplete_body_falls_back(make_app):
    app, _ = make_app(places=GooglePlacesClient("k", session=CannedSession([{"place_id": "abc"}])))
    k = app.kernel
    k.schedule(SearchQueryChanged(t=0.0, query="fer"))
    k.run(until=1.0)
    assert app.search.results == list(FALLBACK_SUGGESTIONS)
    assert app.search.loading is False
