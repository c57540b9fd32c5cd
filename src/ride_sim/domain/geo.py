# domain/geo.py
import math
from dataclasses import dataclass

EARTH_RADIUS_KM = 6371.0


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def __post_init__(self):
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)

    def offset(self, d_lat: float, d_lng: float) -> "Coordinate":
        """Shift by degrees; latitude is clamped at the poles, longitude wraps at ±180."""
        lat = min(90.0, max(-90.0, self.latitude + d_lat))
        lng = self.longitude + d_lng
        if not -180.0 <= lng <= 180.0:
            lng = (lng + 180.0) % 360.0 - 180.0
        return Coordinate(lat, lng)


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance (haversine)."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lng = math.radians(b.longitude - a.longitude)
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    h = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def move_toward(frm: Coordinate, to: Coordinate, fraction: float) -> Coordinate:
    """
    Linear interpolation in lat/lng space, not along the geodesic. Good enough
    at city scale. Longitude takes the short way across the antimeridian.
    The fraction is not clamped; callers keep it in [0, 1].
    """
    if fraction == 1:
        return to
    d_lng = to.longitude - frm.longitude
    if not -180.0 <= d_lng <= 180.0:
        d_lng = (d_lng + 180.0) % 360.0 - 180.0
    return frm.offset((to.latitude - frm.latitude) * fraction, d_lng * fraction)


@dataclass(frozen=True)
class Region:
    center: Coordinate
    latitude_delta: float
    longitude_delta: float


def framing_region(a: Coordinate, b: Coordinate | None = None, pad: float = 0.05) -> Region:
    """Map window that shows both points with some padding."""
    b = b or a
    center = Coordinate((a.latitude + b.latitude) / 2, (a.longitude + b.longitude) / 2)
    return Region(
        center=center,
        latitude_delta=abs(a.latitude - b.latitude) + pad,
        longitude_delta=abs(a.longitude - b.longitude) + pad,
    )
