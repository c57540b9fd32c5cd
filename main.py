# main.py
from ride_sim.app.build import build
from ride_sim.app.events import (
    LocationFixed,
    LocationPermission,
    RideConfirmed,
    RideOptionSelected,
    SearchQueryChanged,
    SessionTeardown,
    SuggestionPicked,
    TripDismissed,
    TripRated,
    TripStartRequested,
)
from ride_sim.domain.geo import Coordinate
from ride_sim.services.places import FALLBACK_SUGGESTIONS

RIDER = Coordinate(37.7749, -122.4194)  # Civic Center, SF


def run(horizon_s: float = 900.0, *, realtime: bool = False, speed: float = 1.0):
    app = build({"run_id": "demo", "sim": {"seed": 7}})
    k = app.kernel

    k.schedule(LocationPermission(t=0.0, granted=True))
    k.schedule(LocationFixed(t=0.5, position=RIDER))
    k.schedule(SearchQueryChanged(t=1.0, query="down"))
    k.schedule(SuggestionPicked(t=2.0, suggestion=FALLBACK_SUGGESTIONS[1]))
    k.schedule(RideOptionSelected(t=3.0, option_id="comfort"))
    k.schedule(RideConfirmed(t=4.0))
    if realtime:
        k.run_realtime(until=60.0, speed=speed)
    else:
        k.run(until=60.0)

    # rider gets in once the driver is here
    if app.ride.state == "at_pickup":
        k.schedule(TripStartRequested(t=k.now))
    k.run(until=horizon_s)

    if app.ride.state == "arrived":
        k.schedule(TripRated(t=k.now, stars=5))
        k.schedule(TripDismissed(t=k.now))
    k.schedule(SessionTeardown(t=k.now))
    k.run(until=horizon_s)
    return app


if __name__ == "__main__":
    app = run()
    print(app.store.last_ride())
