# ride_sim/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from ride_sim.app.controllers.fleet import NearbyFleetSimulator
from ride_sim.app.controllers.ride import RideStateMachine
from ride_sim.app.controllers.search import SearchController
from ride_sim.app.protocols import DirectionsGateway, KeyValueStore, PlacesClient
from ride_sim.app.wiring import wire
from ride_sim.config.models import ScenarioModel
from ride_sim.config.units import UnitPreference
from ride_sim.io.kernel_logging import KernelLogging
from ride_sim.io.store import RideStore
from ride_sim.policy.pricing import FareEstimator
from ride_sim.runtime.services_factory import make_directions, make_places, make_store
from ride_sim.sim.clock import SimClock
from ride_sim.sim.hooks import FanoutHooks, KernelHooks, NoopHooks
from ride_sim.sim.kernel import Kernel
from ride_sim.sim.rng import RNGRegistry


@dataclass
class App:
    kernel: Kernel
    clock: SimClock
    rng: RNGRegistry
    store: RideStore
    units: UnitPreference
    pricing: FareEstimator
    fleet: NearbyFleetSimulator
    ride: RideStateMachine
    search: SearchController


def build(
    cfg: ScenarioModel | Mapping | None = None,
    *,
    use_logging: bool = True,
    hooks: KernelHooks | None = None,
    directions: DirectionsGateway | None = None,
    places: PlacesClient | None = None,
    store: KeyValueStore | None = None,
) -> App:
    """
    Assemble a ride screen. Collaborators passed explicitly win over the ones
    the config describes (tests inject fakes this way).
    """
    # 0) Validate config
    if cfg is None:
        model = ScenarioModel()
    else:
        model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)

    # 1) Clock & RNG
    clock = SimClock.utc_epoch(*model.sim.epoch)
    rng_registry = RNGRegistry(model.sim.seed, scenario=model.name)

    # 2) Kernel (with hooks); caller hooks observe alongside logging
    log_hooks = (
        KernelLogging(
            run_id=model.run_id,
            clock=clock,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else None
    )
    if log_hooks is not None and hooks is not None:
        hooks = FanoutHooks(log_hooks, hooks)
    else:
        hooks = log_hooks or hooks or NoopHooks()
    kernel = Kernel(hooks=hooks)

    # 3) Collaborators
    ride_store = RideStore(store if store is not None else make_store(model.store))
    units = UnitPreference.load(ride_store)  # read once at startup
    gateway = directions if directions is not None else make_directions(model.directions)
    places_client = places if places is not None else make_places(model.places)
    pricing = FareEstimator([o.to_option() for o in model.catalog.options])

    # 4) Handlers (inject deps explicitly)
    fleet = NearbyFleetSimulator(model.fleet, rng=rng_registry.stream("fleet"))
    ride = RideStateMachine(
        cfg=model.ride,
        pricing=pricing,
        fleet=fleet,
        store=ride_store,
        units=units,
        clock=clock,
        directions=gateway,
    )
    search = SearchController(model.search, places=places_client, store=ride_store, clock=clock)

    # 5) Wiring
    wire(kernel, ride=ride, fleet=fleet, search=search)

    return App(kernel, clock, rng_registry, ride_store, units, pricing, fleet, ride, search)
