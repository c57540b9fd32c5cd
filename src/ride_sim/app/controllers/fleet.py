# ride_sim/app/controllers/fleet.py
import math

import numpy as np

from ride_sim.app.events import FleetTick, LocationLost, RiderLocated, SessionTeardown
from ride_sim.config.models import FleetModel
from ride_sim.domain.geo import Coordinate
from ride_sim.domain.ride import NearbyCar


class NearbyFleetSimulator:
    """
    Decoy cars around the rider, purely cosmetic. Seeded on every location fix
    and jittered on a fixed tick until the rider is lost or the session ends.
    """

    def __init__(self, cfg: FleetModel, rng: np.random.Generator):
        self.cfg = cfg
        self.rng = rng
        self.cars: list[NearbyCar] = []
        self.task_id = 0

    def seed(self, center: Coordinate) -> list[NearbyCar]:
        n = self.cfg.count
        lo, hi = self.cfg.radius_jitter
        cars = []
        for i in range(n):
            angle = 2 * math.pi * i / n
            r = self.cfg.radius_deg * float(self.rng.uniform(lo, hi))
            cars.append(
                NearbyCar(
                    id=f"car-{i}",
                    position=center.offset(r * math.cos(angle), r * math.sin(angle)),
                )
            )
        self.cars = cars
        return cars

    def jitter(self) -> None:
        j = self.cfg.jitter_deg
        for car in self.cars:
            d_lat, d_lng = self.rng.uniform(-j, j, size=2)
            car.position = car.position.offset(float(d_lat), float(d_lng))

    def first_position(self) -> Coordinate | None:
        return self.cars[0].position if self.cars else None

    def stop(self) -> None:
        # outstanding FleetTick events become stale
        self.task_id += 1

    # ------------ event handlers --------------

    def on_rider_located(self, ev: RiderLocated):
        self.stop()
        self.seed(ev.position)
        return [FleetTick(t=ev.t + self.cfg.tick_s, task_id=self.task_id)]

    def on_fleet_tick(self, ev: FleetTick):
        if ev.task_id != self.task_id:
            return []
        self.jitter()
        return [FleetTick(t=ev.t + self.cfg.tick_s, task_id=self.task_id)]

    def on_location_lost(self, ev: LocationLost):
        self.stop()
        return []

    def on_session_teardown(self, ev: SessionTeardown):
        self.stop()
        self.cars = []
        return []
