from __future__ import annotations

import math
from typing import Iterable, Mapping, TypeVar

from locator.models import Location, parse_coordinate

EARTH_RADIUS_KM = 6371.0

T = TypeVar("T", Location, Mapping[str, object])


def distance_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle (haversine) distance in kilometres."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def coordinates_of(item: Location | Mapping[str, object]) -> tuple[float, float] | None:
    if isinstance(item, Location):
        return item.coordinates
    lat = parse_coordinate(item.get("lat"))
    raw_lng = item.get("lng")
    if raw_lng in (None, ""):
        raw_lng = item.get("long")
    lng = parse_coordinate(raw_lng)
    if lat is None or lng is None:
        return None
    return lat, lng


def closest(locations: Iterable[T] | None, ref_lat: float, ref_lng: float) -> T | None:
    if not locations:
        return None

    best: T | None = None
    best_distance = math.inf
    for location in locations:
        coords = coordinates_of(location)
        if coords is None:
            continue
        distance = distance_km(ref_lat, ref_lng, coords[0], coords[1])
        if distance < best_distance:
            best_distance = distance
            best = location
    return best
