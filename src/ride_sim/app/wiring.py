# ride_sim/app/wiring.py
from ride_sim.app.controllers.fleet import NearbyFleetSimulator
from ride_sim.app.controllers.ride import RideStateMachine
from ride_sim.app.controllers.search import SearchController
from ride_sim.app.events import (
    DestinationChosen,
    DriverMatched,
    EtaTick,
    FleetTick,
    LocationFixed,
    LocationLost,
    LocationPermission,
    PositionTick,
    RideConfirmed,
    RideOptionSelected,
    RiderLocated,
    RouteRequested,
    RouteResolved,
    SearchDebounceElapsed,
    SearchQueryChanged,
    SearchResultsReady,
    SessionTeardown,
    SuggestionPicked,
    TripDismissed,
    TripRated,
    TripStartRequested,
    UnitsToggled,
)
from ride_sim.sim.kernel import Kernel


def wire(
    kernel: Kernel,
    *,
    ride: RideStateMachine,
    fleet: NearbyFleetSimulator,
    search: SearchController | None = None,
) -> None:
    k = kernel

    # location
    k.on(LocationPermission, ride.on_location_permission)
    k.on(LocationFixed, ride.on_location_fixed)  # accepted fixes emit RiderLocated
    k.on(LocationLost, ride.on_location_lost)
    k.on(LocationLost, fleet.on_location_lost)
    k.on(RiderLocated, fleet.on_rider_located)

    # destination & route
    k.on(DestinationChosen, ride.on_destination_chosen)
    k.on(RouteRequested, ride.on_route_requested)
    k.on(RouteResolved, ride.on_route_resolved)

    # rider actions
    k.on(RideOptionSelected, ride.on_option_selected)
    k.on(RideConfirmed, ride.on_ride_confirmed)
    k.on(TripStartRequested, ride.on_trip_start_requested)
    k.on(TripRated, ride.on_trip_rated)
    k.on(TripDismissed, ride.on_trip_dismissed)
    k.on(UnitsToggled, ride.on_units_toggled)

    # timers
    k.on(DriverMatched, ride.on_driver_matched)
    k.on(EtaTick, ride.on_eta_tick)
    k.on(PositionTick, ride.on_position_tick)
    k.on(FleetTick, fleet.on_fleet_tick)

    # teardown cancels everything
    k.on(SessionTeardown, ride.on_session_teardown)
    k.on(SessionTeardown, fleet.on_session_teardown)

    if search:
        k.on(RiderLocated, search.on_rider_located)
        k.on(SearchQueryChanged, search.on_query_changed)
        k.on(SearchDebounceElapsed, search.on_debounce_elapsed)
        k.on(SearchResultsReady, search.on_results_ready)
        k.on(SuggestionPicked, search.on_suggestion_picked)
        k.on(SessionTeardown, search.on_session_teardown)
