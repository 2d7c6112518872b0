"""Great-circle bearing and distance to the Kaaba."""

import math

from salati.models import GeoCoordinate, QiblaResult

KAABA = GeoCoordinate(latitude=21.4225, longitude=39.8262)
EARTH_RADIUS_KM = 6371.0


def distance_km(a: GeoCoordinate, b: GeoCoordinate) -> float:
    """Haversine distance between two points on a sphere of EARTH_RADIUS_KM."""
    lat1, lat2 = math.radians(a.latitude), math.radians(b.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(b.longitude - a.longitude)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    h = min(1.0, h)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def bearing_degrees(observer: GeoCoordinate, target: GeoCoordinate) -> float:
    """
    Initial great-circle bearing from observer to target, clockwise from
    true north, in [0, 360).

    Coincident points have no defined direction; 0.0 is returned for them.
    """
    lat1, lat2 = math.radians(observer.latitude), math.radians(target.latitude)
    dlon = math.radians(target.longitude - observer.longitude)
    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    if abs(x) < 1e-12 and abs(y) < 1e-12:
        return 0.0
    bearing = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    # tiny negative atan2 results round up to exactly 360.0
    return 0.0 if bearing >= 360.0 else bearing


def qibla(observer: GeoCoordinate) -> QiblaResult:
    return QiblaResult(
        bearing_degrees=bearing_degrees(observer, KAABA),
        distance_km=distance_km(observer, KAABA),
    )


def heading_from_magnetometer(x: float, y: float) -> float:
    """Device heading in [0, 360) from the horizontal magnetometer axes."""
    heading = (math.degrees(math.atan2(y, x)) + 360.0) % 360.0
    return 0.0 if heading >= 360.0 else heading


def arrow_rotation(qibla_bearing: float, heading: float) -> float:
    """Angle to rotate the on-screen Qibla arrow for a device facing `heading`."""
    return (qibla_bearing - heading) % 360.0
