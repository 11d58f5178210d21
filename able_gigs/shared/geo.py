import math
import re
from typing import Any, Optional

EARTH_RADIUS_KM = 6371

_LABELLED = re.compile(r"Coordinates:\s*([+-]?\d+\.?\d*),\s*([+-]?\d+\.?\d*)")
_BARE = re.compile(r"([+-]?\d+\.?\d*),\s*([+-]?\d+\.?\d*)")


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres (haversine)"""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def _valid(lat: float, lng: float) -> Optional[tuple[float, float]]:
    if -90 <= lat <= 90 and -180 <= lng <= 180:
        return lat, lng
    return None


def parse_coordinates(location: Any) -> Optional[tuple[float, float]]:
    """
    Pull (lat, lng) out of an address dict or a location string such as
    "Coordinates: 51.507351, -0.127758" or "51.5, -0.12". None when absent.
    """
    if not location:
        return None

    if isinstance(location, dict):
        lat = location.get("lat")
        lng = location.get("lng", location.get("lon"))
        if lat is None or lng is None:
            return None
        try:
            return _valid(float(lat), float(lng))
        except (TypeError, ValueError):
            return None

    if isinstance(location, str):
        match = _LABELLED.search(location) or _BARE.search(location)
        if match:
            return _valid(float(match.group(1)), float(match.group(2)))

    return None


def describe_location(location: Any) -> tuple[Optional[str], Optional[dict]]:
    """
    Split a gig location as sent by the client into (readable text, raw JSON).

    Objects keep their raw form for later coordinate lookups; the readable
    text prefers coordinates, then formatted_address, then address, then the
    address components joined with commas.
    """
    if isinstance(location, dict):
        lat, lng = location.get("lat"), location.get("lng")
        if isinstance(lat, (int, float)) and isinstance(lng, (int, float)):
            return f"Coordinates: {lat:.6f}, {lng:.6f}", location
        if location.get("formatted_address"):
            return location["formatted_address"], location
        if location.get("address"):
            return location["address"], location
        components = [
            str(location[key])
            for key in (
                "street_number",
                "route",
                "locality",
                "administrative_area_level_1",
                "postal_code",
                "country",
            )
            if location.get(key)
        ]
        return (", ".join(components) or None), location

    if isinstance(location, str) and location.strip():
        return location.strip(), None

    return None, None
