# ride_sim/app/controllers/ride.py
import logging

from ride_sim.app.events import (
    DestinationChosen,
    DriverMatched,
    EtaTick,
    LocationFixed,
    LocationLost,
    LocationPermission,
    PositionTick,
    RideConfirmed,
    RideOptionSelected,
    RideStateChanged,
    RiderLocated,
    RouteRequested,
    RouteResolved,
    SessionTeardown,
    TripDismissed,
    TripRated,
    TripReceiptSaved,
    TripStartRequested,
    UnitsToggled,
)
from ride_sim.app.controllers.fleet import NearbyFleetSimulator
from ride_sim.app.protocols import DirectionsGateway
from ride_sim.config.models import RideModel
from ride_sim.config.units import UnitPreference
from ride_sim.domain.geo import Coordinate, distance_km, framing_region, move_toward
from ride_sim.domain.ride import RideSession, RideState
from ride_sim.io.store import RideStore
from ride_sim.policy.pricing import FareEstimator, format_price
from ride_sim.services.directions import resolve_route, straight_line_estimate
from ride_sim.sim.clock import SimClock

PERMISSION_DENIED_MESSAGE = "Location permission denied"

logger = logging.getLogger(__name__)


class RideStateMachine:
    """
    Owns the single ride session and every timer that drives it.

    idle -> finding_driver -> driver_en_route -> at_pickup -> in_ride -> arrived -> idle

    Timers are plain events stamped with the session's task_id. Each state exit
    bumps task_id, so ticks belonging to the exited state are dropped when they
    fire. Async completions (location fixes, directions) are stamped with the
    session generation instead, which changes when the session is replaced or
    torn down.
    """

    def __init__(
        self,
        cfg: RideModel,
        pricing: FareEstimator,
        fleet: NearbyFleetSimulator,
        store: RideStore,
        units: UnitPreference,
        clock: SimClock,
        directions: DirectionsGateway | None = None,
    ):
        self.cfg = cfg
        self.pricing = pricing
        self.fleet = fleet
        self.store = store
        self.units = units
        self.clock = clock
        self.directions = directions

        self.session: RideSession | None = None
        self.rider_position: Coordinate | None = None
        self.generation = 0
        self.permission_denied = False
        self.error_message: str | None = None

    @property
    def state(self) -> RideState:
        return self.session.state if self.session else "idle"

    # ------------ helpers --------------

    def _transition(self, s: RideSession, now: float, new_state: RideState) -> RideStateChanged:
        prev = s.state
        s.state = new_state
        # invalidate timers of the state being exited
        s.task_id += 1
        return RideStateChanged(t=now, prev=prev, state=new_state)

    def _live(self, generation: int | None) -> RideSession | None:
        s = self.session
        if s is None or (generation is not None and generation != s.generation):
            return None
        return s

    def _timer(self, task_id: int) -> RideSession | None:
        s = self.session
        if s is None or task_id != s.task_id:
            return None
        return s

    def _request_route(self, s: RideSession, now: float):
        if s.rider_position is None:
            return []
        s.straight_estimate = straight_line_estimate(s.rider_position, s.destination.position)
        return [
            RouteRequested(
                t=now,
                origin=s.rider_position,
                destination=s.destination.position,
                generation=s.generation,
            )
        ]

    def _save_receipt(self, s: RideSession, now: float) -> TripReceiptSaved:
        price = format_price(s.quoted_price)
        self.store.save_receipt(
            dest_name=s.destination.name,
            dest_subtitle=s.destination.subtitle,
            price=price,
            when=self.clock.iso_at(now),
        )
        return TripReceiptSaved(t=now, dest_name=s.destination.name, price=price)

    # ------------ location --------------

    def on_location_permission(self, ev: LocationPermission):
        if not ev.granted:
            self.permission_denied = True
            self.error_message = PERMISSION_DENIED_MESSAGE
        return []

    def on_location_fixed(self, ev: LocationFixed):
        if self.permission_denied:
            return []
        if ev.generation is not None and ev.generation != self.generation:
            logger.debug("dropping location fix for generation %s", ev.generation)
            return []
        self.rider_position = ev.position
        out: list = [RiderLocated(t=ev.t, position=ev.position)]
        s = self.session
        if s is not None:
            s.rider_position = ev.position
            if s.state == "idle":
                out += self._request_route(s, ev.t)
        return out

    def on_location_lost(self, ev: LocationLost):
        self.rider_position = None
        if self.session is not None:
            self.session.rider_position = None
        return []

    # ------------ destination & route --------------

    def on_destination_chosen(self, ev: DestinationChosen):
        if self.permission_denied:
            return []
        if self.session is not None and self.session.state != "idle":
            logger.warning("destination change ignored during %s", self.session.state)
            return []
        self.generation += 1
        self.session = RideSession(
            destination=ev.destination,
            selected_option_id=self.pricing.default_option.id,
            generation=self.generation,
            rider_position=self.rider_position,
        )
        return self._request_route(self.session, ev.t)

    def on_route_requested(self, ev: RouteRequested):
        if self._live(ev.generation) is None:
            return []
        route = resolve_route(self.directions, ev.origin, ev.destination)
        return [RouteResolved(t=ev.t + self.cfg.route_latency_s, route=route, generation=ev.generation)]

    def on_route_resolved(self, ev: RouteResolved):
        s = self._live(ev.generation)
        if s is None:
            logger.debug("dropping route for generation %s", ev.generation)
            return []
        if ev.route.from_provider:
            # replaces the straight-line estimate wholesale; a quoted price stays locked
            s.provider_estimate = ev.route.estimate
            s.path = ev.route.path
            s.steps = ev.route.steps
            self.store.save_route_steps(s.steps)
        else:
            # back to the straight line from the current origin
            s.provider_estimate = None
            s.path = []
            s.steps = []
        return []

    # ------------ rider actions --------------

    def on_option_selected(self, ev: RideOptionSelected):
        s = self.session
        if s is None or s.state != "idle":
            return []
        if self.pricing.option(ev.option_id) is None:
            logger.warning("unknown ride option %r", ev.option_id)
            return []
        s.selected_option_id = ev.option_id
        return []

    def on_ride_confirmed(self, ev: RideConfirmed):
        s = self.session
        if s is None or s.state != "idle" or self.permission_denied:
            return []
        option = self.pricing.option(s.selected_option_id)
        s.quoted_price = self.pricing.price(option, s.estimate) if s.estimate else None
        change = self._transition(s, ev.t, "finding_driver")
        return [change, DriverMatched(t=ev.t + self.cfg.matching_delay_s, task_id=s.task_id)]

    def on_driver_matched(self, ev: DriverMatched):
        s = self._timer(ev.task_id)
        if s is None or s.state != "finding_driver":
            return []
        if s.rider_position is None:
            # no fix yet: try again after another matching delay
            return [DriverMatched(t=ev.t + self.cfg.matching_delay_s, task_id=s.task_id)]

        start = self.fleet.first_position() or s.rider_position.offset(*self.cfg.fallback_driver_offset)
        option = self.pricing.option(s.selected_option_id)
        s.assigned_driver_position = start
        s.eta_minutes_remaining = max(self.cfg.min_driver_eta_min, option.base_eta_minutes)
        change = self._transition(s, ev.t, "driver_en_route")
        return [
            change,
            EtaTick(t=ev.t + self.cfg.eta_tick_s, task_id=s.task_id),
            PositionTick(t=ev.t + self.cfg.move_tick_s, task_id=s.task_id),
        ]

    def on_eta_tick(self, ev: EtaTick):
        s = self._timer(ev.task_id)
        if s is None or s.state != "driver_en_route" or s.eta_minutes_remaining is None:
            return []
        s.eta_minutes_remaining = max(1, s.eta_minutes_remaining - 1)
        if s.eta_minutes_remaining <= 1:
            return []
        return [EtaTick(t=ev.t + self.cfg.eta_tick_s, task_id=s.task_id)]

    def on_position_tick(self, ev: PositionTick):
        s = self._timer(ev.task_id)
        if s is None:
            return []
        if s.state == "driver_en_route":
            target, fraction = s.rider_position, self.cfg.pickup_fraction
        elif s.state == "in_ride":
            target, fraction = s.destination.position, self.cfg.dropoff_fraction
        else:
            return []

        again = PositionTick(t=ev.t + self.cfg.move_tick_s, task_id=s.task_id)
        if target is None or s.assigned_driver_position is None:
            return [again]

        nxt = move_toward(s.assigned_driver_position, target, fraction)
        if distance_km(nxt, target) >= self.cfg.arrive_threshold_km:
            s.assigned_driver_position = nxt
            return [again]

        s.assigned_driver_position = target
        if s.state == "driver_en_route":
            s.eta_minutes_remaining = 0
            return [self._transition(s, ev.t, "at_pickup")]
        receipt = self._save_receipt(s, ev.t)
        return [receipt, self._transition(s, ev.t, "arrived")]

    def on_trip_start_requested(self, ev: TripStartRequested):
        s = self.session
        if s is None or s.state != "at_pickup" or s.rider_position is None:
            return []
        s.assigned_driver_position = s.rider_position
        change = self._transition(s, ev.t, "in_ride")
        return [change, PositionTick(t=ev.t + self.cfg.move_tick_s, task_id=s.task_id)]

    def on_trip_rated(self, ev: TripRated):
        s = self.session
        if s is None or s.state != "arrived":
            return []
        if not 1 <= ev.stars <= 5:
            logger.warning("rating out of range: %s", ev.stars)
            return []
        s.rating = ev.stars
        return []

    def on_trip_dismissed(self, ev: TripDismissed):
        s = self.session
        if s is None or s.state != "arrived":
            return []
        change = self._transition(s, ev.t, "idle")
        s.assigned_driver_position = None
        s.eta_minutes_remaining = None
        s.rating = 0
        s.quoted_price = None
        return [change]

    def on_units_toggled(self, ev: UnitsToggled):
        self.units.toggle()
        return []

    def on_session_teardown(self, ev: SessionTeardown):
        self.generation += 1
        if self.session is not None:
            self.session.task_id += 1
        self.session = None
        self.rider_position = None
        self.permission_denied = False
        self.error_message = None
        return []

    # ------------ read model --------------

    def quotes(self) -> dict[str, str | None]:
        estimate = self.session.estimate if self.session else None
        return {k: format_price(v) for k, v in self.pricing.quote_all(estimate).items()}

    def snapshot(self) -> dict:
        s = self.session
        view: dict = {
            "state": self.state,
            "error": self.error_message,
            "rider": self.rider_position,
            "units": self.units.value,
        }
        if s is None:
            return view
        estimate = s.estimate
        view.update(
            destination=s.destination,
            region=framing_region(s.rider_position, s.destination.position) if s.rider_position else None,
            selected_option_id=s.selected_option_id,
            quotes=self.quotes() if s.state == "idle" else {},
            quoted_price=format_price(s.quoted_price),
            summary=self.units.summary(estimate) if estimate else None,
            estimate_source=estimate.source if estimate else None,
            path=s.display_path(),
            steps=[(step.instruction, self.units.step_line(step)) for step in s.steps],
            driver=s.assigned_driver_position,
            eta_minutes=s.eta_minutes_remaining,
            rating=s.rating,
            # decoys are hidden once a driver ETA is on screen
            nearby_cars=list(self.fleet.cars) if s.eta_minutes_remaining is None else [],
        )
        return view
