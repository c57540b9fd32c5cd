# domain/polyline_codec.py
import re

import polyline

from ride_sim.domain.geo import Coordinate

PRECISION = 5  # 1e5 scale

_TAG = re.compile(r"<[^>]+>")


def decode(encoded: str) -> list[Coordinate]:
    """
    Decode an encoded polyline (delta, 5-bit chunks, zig-zag sign) into the
    ordered list of points it describes. Malformed input raises ValueError.
    """
    try:
        pairs = polyline.decode(encoded, PRECISION)
    except (IndexError, TypeError) as exc:
        raise ValueError(f"malformed polyline: {encoded!r}") from exc
    return [Coordinate(lat, lng) for lat, lng in pairs]


def encode(points: list[Coordinate]) -> str:
    return polyline.encode([p.as_tuple() for p in points], PRECISION)


def strip_markup(text: str) -> str:
    """Drop tags and unescape &nbsp; / &amp;. Other entities are left alone."""
    return _TAG.sub("", text).replace("&nbsp;", " ").replace("&amp;", "&")
