# ride_sim/runtime/services_factory.py
from ride_sim.app.protocols import DirectionsGateway, KeyValueStore, PlacesClient
from ride_sim.config.models import (
    DirectionsGoogleModel,
    DirectionsStraightLineModel,
    DirectionsUnion,
    PlacesGoogleModel,
    PlacesOfflineModel,
    PlacesUnion,
    StoreJsonFileModel,
    StoreMemoryModel,
    StoreUnion,
)
from ride_sim.io.store import JsonFileStore, MemoryStore
from ride_sim.services.directions import GoogleDirectionsGateway
from ride_sim.services.places import FALLBACK_SUGGESTIONS, GooglePlacesClient, StaticPlacesClient


def make_directions(cfg: DirectionsUnion) -> DirectionsGateway | None:
    if isinstance(cfg, DirectionsGoogleModel):
        return GoogleDirectionsGateway(cfg.api_key, timeout=cfg.timeout_s)
    elif isinstance(cfg, DirectionsStraightLineModel):
        return None
    else:
        raise TypeError(cfg)


def make_places(cfg: PlacesUnion) -> PlacesClient:
    if isinstance(cfg, PlacesGoogleModel):
        return GooglePlacesClient(cfg.api_key, timeout=cfg.timeout_s, radius_m=cfg.radius_m)
    elif isinstance(cfg, PlacesOfflineModel):
        return StaticPlacesClient({s.id: s for s in FALLBACK_SUGGESTIONS})
    else:
        raise TypeError(cfg)


def make_store(cfg: StoreUnion) -> KeyValueStore:
    if isinstance(cfg, StoreMemoryModel):
        return MemoryStore()
    elif isinstance(cfg, StoreJsonFileModel):
        return JsonFileStore(cfg.path)
    else:
        raise TypeError(cfg)
