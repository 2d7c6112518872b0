"""Location lookup, manual location config and timezone helpers."""

import datetime
import json
import logging
import os
from typing import Protocol

import pytz

from salati.models import GeoCoordinate, LocationNotFoundError

logger = logging.getLogger(__name__)


DEFAULT_LOCATION = {
    "city": "Mecca",
    "country": "Saudi Arabia",
    "lat": 21.4225,
    "lon": 39.8262,
    "timezone": "Asia/Riyadh",
}

REQUIRED_KEYS = ("city", "country", "lat", "lon", "timezone")

KNOWN_CITIES = {
    "London": {"lat": 51.5074, "lon": -0.1278, "country": "United Kingdom", "timezone": "Europe/London"},
    "New York": {"lat": 40.7128, "lon": -74.0060, "country": "United States", "timezone": "America/New_York"},
    "Dubai": {"lat": 25.2048, "lon": 55.2708, "country": "United Arab Emirates", "timezone": "Asia/Dubai"},
    "Cairo": {"lat": 30.0444, "lon": 31.2357, "country": "Egypt", "timezone": "Africa/Cairo"},
    "Istanbul": {"lat": 41.0082, "lon": 28.9784, "country": "Turkey", "timezone": "Europe/Istanbul"},
    "Mecca": {"lat": 21.4225, "lon": 39.8262, "country": "Saudi Arabia", "timezone": "Asia/Riyadh"},
    "Medina": {"lat": 24.5247, "lon": 39.5692, "country": "Saudi Arabia", "timezone": "Asia/Riyadh"},
}

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".salati")
CONFIG_FILE = os.path.join(CONFIG_DIR, "location.json")


class Geocoder(Protocol):
    """Resolves a place name to a location dict. Raises LocationNotFoundError."""

    def geocode(self, name: str, country: str | None = None) -> dict:
        ...


class StaticGeocoder:
    """
    Geocoder backed by a fixed table of city names.

    A query matches a city when either name contains the other,
    case-insensitively.
    """

    def __init__(self, table: dict | None = None):
        self.table = dict(KNOWN_CITIES if table is None else table)

    def geocode(self, name: str, country: str | None = None) -> dict:
        query = (name or "").strip().lower()
        if not query:
            raise LocationNotFoundError("Empty location name")
        for city, entry in self.table.items():
            key = city.lower()
            if key in query or query in key:
                return {
                    "city": name.strip(),
                    "country": country or entry.get("country", "Unknown"),
                    "lat": entry["lat"],
                    "lon": entry["lon"],
                    "timezone": entry.get("timezone", "UTC"),
                }
        raise LocationNotFoundError(f"Location not found: {name}")


def coordinate_of(location: dict) -> GeoCoordinate:
    return GeoCoordinate(float(location["lat"]), float(location["lon"]))


def get_timezone(tz_name: str | None):
    """pytz timezone for an IANA name; UTC for None or unknown names."""
    if not tz_name:
        return pytz.utc
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        logger.warning("Unknown timezone %r, using UTC", tz_name)
        return pytz.utc


def utc_offset_for(tz, day: datetime.date) -> float:
    """UTC offset in hours in effect at noon of `day` in `tz` (name or tzinfo)."""
    if tz is None or isinstance(tz, str):
        tz = get_timezone(tz)
    noon = datetime.datetime(day.year, day.month, day.day, 12, 0, 0)
    local = tz.localize(noon) if hasattr(tz, "localize") else noon.replace(tzinfo=tz)
    offset = local.utcoffset()
    return offset.total_seconds() / 3600.0 if offset else 0.0


def save_manual_location(location: dict) -> None:
    """Save a manually-set location to the config file."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(location, f, indent=2)


def load_manual_location() -> dict | None:
    """Load a previously saved manual location, or return None."""
    if not os.path.isfile(CONFIG_FILE):
        return None
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable location file %s: %s", CONFIG_FILE, exc)
        return None
    if isinstance(data, dict) and all(k in data for k in REQUIRED_KEYS):
        return data
    return None


def clear_manual_location() -> None:
    """Remove the saved manual location config."""
    if os.path.isfile(CONFIG_FILE):
        os.remove(CONFIG_FILE)


def get_location(geocoder: Geocoder | None = None, query: str | None = None) -> dict:
    """
    Current location: the saved manual one, else `query` resolved through
    `geocoder`, else DEFAULT_LOCATION.
    """
    manual = load_manual_location()
    if manual:
        return manual
    if query:
        return (geocoder or StaticGeocoder()).geocode(query)
    return dict(DEFAULT_LOCATION)
