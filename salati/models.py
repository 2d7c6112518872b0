"""Value types shared by the solar, prayer-schedule and Qibla modules."""

import math
from dataclasses import dataclass
from enum import Enum


class InvalidInputError(ValueError):
    """Input outside the range the calculations are defined for."""


class LocationNotFoundError(LookupError):
    """Geocoder has no coordinate for the requested place name."""


class PrayerId(str, Enum):
    FAJR = "fajr"
    SUNRISE = "sunrise"
    DHUHR = "dhuhr"
    ASR = "asr"
    MAGHRIB = "maghrib"
    ISHA = "isha"


PRAYER_ORDER = (
    PrayerId.FAJR,
    PrayerId.SUNRISE,
    PrayerId.DHUHR,
    PrayerId.ASR,
    PrayerId.MAGHRIB,
    PrayerId.ISHA,
)

PRAYER_NAMES = {
    PrayerId.FAJR: "Fajr",
    PrayerId.SUNRISE: "Sunrise",
    PrayerId.DHUHR: "Dhuhr",
    PrayerId.ASR: "Asr",
    PrayerId.MAGHRIB: "Maghrib",
    PrayerId.ISHA: "Isha",
}


def _finite(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


@dataclass(frozen=True)
class GeoCoordinate:
    """A point on the Earth in decimal degrees. Validated on construction."""

    latitude: float  # [-90, 90], north positive
    longitude: float  # [-180, 180], east positive

    def __post_init__(self):
        if not _finite(self.latitude) or not -90.0 <= self.latitude <= 90.0:
            raise InvalidInputError(f"Latitude must be a number in [-90, 90], got {self.latitude!r}")
        if not _finite(self.longitude) or not -180.0 <= self.longitude <= 180.0:
            raise InvalidInputError(f"Longitude must be a number in [-180, 180], got {self.longitude!r}")


@dataclass(frozen=True)
class SolarParameters:
    """Sun position for one Julian date. Angles in degrees."""

    julian_date: float
    mean_longitude: float
    mean_anomaly: float
    ecliptic_longitude: float
    declination: float
    right_ascension: float
    equation_of_time: float  # minutes


def split_hour(local_hour: float) -> tuple:
    """
    Split a fractional hour in [0, 24) into (hour, minute).

    Minutes are rounded; a rounded 60 carries into the hour (mod 24).
    """
    hour = int(math.floor(local_hour))
    minute = int(round((local_hour - hour) * 60))
    if minute >= 60:
        return (hour + 1) % 24, 0
    return hour, max(0, min(59, minute))


@dataclass(frozen=True)
class PrayerMoment:
    """Raw computed time of day for one prayer, before formatting."""

    id: PrayerId
    local_hour: float  # [0, 24)
    fallback: bool = False  # extreme-latitude substitute was used

    @property
    def hour(self) -> int:
        return split_hour(self.local_hour)[0]

    @property
    def minute(self) -> int:
        return split_hour(self.local_hour)[1]

    @property
    def minutes(self) -> int:
        hour, minute = split_hour(self.local_hour)
        return hour * 60 + minute


@dataclass(frozen=True)
class PrayerTime:
    """Display-ready prayer entry with its status relative to "now"."""

    id: PrayerId
    name: str
    formatted_time: str  # "H:MM AM/PM"
    is_next: bool
    is_passed: bool
    minutes: int  # minutes since local midnight


@dataclass(frozen=True)
class QiblaResult:
    bearing_degrees: float  # [0, 360), clockwise from true north
    distance_km: float
