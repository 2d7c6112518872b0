"""Prayer times from a low-precision solar position model."""

import datetime
import logging
import math

from salati.models import (
    PRAYER_ORDER,
    GeoCoordinate,
    InvalidInputError,
    PrayerId,
    PrayerMoment,
    SolarParameters,
)

logger = logging.getLogger(__name__)

J2000 = 2451545.0
OBLIQUITY = 23.439

# Sun depression below the horizon, in degrees.
DEFAULT_ANGLES = {
    PrayerId.FAJR: 18.0,
    PrayerId.SUNRISE: 0.833,
    PrayerId.MAGHRIB: 0.833,
    PrayerId.ISHA: 17.0,
}

# Local times substituted when the sun never reaches the required angle.
MORNING_FALLBACK = 6.0
EVENING_FALLBACK = 18.0
ASR_FALLBACK = 15.0

SHAFII_SHADOW_FACTOR = 1
HANAFI_SHADOW_FACTOR = 2

_MORNING = {PrayerId.FAJR, PrayerId.SUNRISE}


def _sin(deg):
    return math.sin(math.radians(deg))


def _cos(deg):
    return math.cos(math.radians(deg))


def _clamp(x, lo, hi):
    return max(lo, min(hi, x))


def _fix_hour(h):
    h = h - 24.0 * math.floor(h / 24.0)
    # -1e-17 lands on 24.0 after the subtraction
    return 0.0 if h >= 24.0 else h


def utc_offset_hours(when: datetime.datetime) -> float:
    """
    UTC offset of `when` in hours.

    Naive datetimes are taken as system local time.
    """
    offset = when.utcoffset() if when.tzinfo else when.astimezone().utcoffset()
    return offset.total_seconds() / 3600.0 if offset else 0.0


def _check_offset(offset):
    if isinstance(offset, bool) or not isinstance(offset, (int, float)) or not math.isfinite(offset):
        raise InvalidInputError(f"UTC offset must be a number of hours, got {offset!r}")
    if not -14.0 <= offset <= 14.0:
        raise InvalidInputError(f"UTC offset out of range: {offset}")
    return float(offset)


def julian_date(when: datetime.datetime) -> float:
    """Julian date of the wall-clock fields of `when` (Gregorian calendar)."""
    a = (14 - when.month) // 12
    y = when.year - a
    m = when.month + 12 * a - 3
    jdn = when.day + (153 * m + 2) // 5 + 365 * y + y // 4 - y // 100 + y // 400 + 1721119
    hours = when.hour + when.minute / 60.0 + (when.second + when.microsecond / 1e6) / 3600.0
    return jdn + hours / 24.0 - 0.5


def solar_parameters(jd: float) -> SolarParameters:
    n = jd - J2000
    mean_long = (280.460 + 0.9856474 * n) % 360.0
    mean_anom = (357.528 + 0.9856003 * n) % 360.0
    ecl_long = mean_long + 1.915 * _sin(mean_anom) + 0.020 * _sin(2 * mean_anom)
    decl = math.degrees(math.asin(_sin(OBLIQUITY) * _sin(ecl_long)))
    ra = math.degrees(math.atan2(_cos(OBLIQUITY) * _sin(ecl_long), _cos(ecl_long)))
    # L and alpha can sit on opposite sides of the 0/360 seam
    diff = (mean_long - ra + 180.0) % 360.0 - 180.0
    return SolarParameters(
        julian_date=jd,
        mean_longitude=mean_long,
        mean_anomaly=mean_anom,
        ecliptic_longitude=ecl_long,
        declination=decl,
        right_ascension=ra,
        equation_of_time=4.0 * diff,
    )


def solar_noon(longitude: float, equation_of_time: float, utc_offset: float) -> float:
    """Local clock hour of solar transit. Not normalised to [0, 24)."""
    return 12.0 - longitude / 15.0 - equation_of_time / 60.0 + utc_offset


def solve_hour_angle(latitude: float, declination: float, depression: float) -> float | None:
    """
    Hours between solar noon and the sun standing `depression` degrees
    below the horizon (negative values mean above it).

    Returns None when the sun never reaches that angle on the day, which
    happens near and beyond the polar circles.
    """
    denominator = _cos(latitude) * _cos(declination)
    if denominator == 0:
        return None
    cos_h = (_sin(-depression) - _sin(latitude) * _sin(declination)) / denominator
    if abs(cos_h) > 1:
        return None
    return math.degrees(math.acos(cos_h)) / 15.0


def asr_elevation(latitude: float, declination: float, shadow_factor: float = SHAFII_SHADOW_FACTOR) -> float:
    """Sun elevation in degrees at which a gnomon's shadow reaches Asr length."""
    noon = math.asin(_clamp(
        _sin(latitude) * _sin(declination) + _cos(latitude) * _cos(declination), -1.0, 1.0
    ))
    denominator = shadow_factor + math.tan(math.pi / 2 - noon)
    if denominator == 0:
        return 90.0
    return math.degrees(math.atan(1.0 / denominator))


def asr_time(
    latitude: float,
    declination: float,
    equation_of_time: float,
    utc_offset: float,
    longitude: float = 0.0,
    shadow_factor: float = SHAFII_SHADOW_FACTOR,
) -> tuple:
    """
    Asr as a local clock hour, always after solar noon.

    Returns (hour, fallback). shadow_factor 1 is the Shafi'i/Maliki/Hanbali
    convention, 2 the Hanafi one.
    """
    if shadow_factor <= 0:
        raise InvalidInputError(f"Shadow factor must be positive, got {shadow_factor!r}")
    elevation = asr_elevation(latitude, declination, shadow_factor)
    t = solve_hour_angle(latitude, declination, -elevation)
    if t is None:
        return ASR_FALLBACK + utc_offset, True
    return solar_noon(longitude, equation_of_time, utc_offset) + t, False


def _angle_time(prayer_id, latitude, declination, noon, utc_offset):
    t = solve_hour_angle(latitude, declination, DEFAULT_ANGLES[prayer_id])
    morning = prayer_id in _MORNING
    if t is None:
        base = MORNING_FALLBACK if morning else EVENING_FALLBACK
        return base + utc_offset, True
    return (noon - t if morning else noon + t), False


def prayer_moments(
    coordinate: GeoCoordinate,
    when: datetime.datetime = None,
    utc_offset: float = None,
    shadow_factor: float = SHAFII_SHADOW_FACTOR,
) -> list:
    """
    Compute the six prayer moments for the day of `when`.

    The UTC offset defaults to the one carried by `when`. Returned in the
    order Fajr, Sunrise, Dhuhr, Asr, Maghrib, Isha, each hour in [0, 24).
    """
    if when is None:
        when = datetime.datetime.now().astimezone()
    offset = utc_offset_hours(when) if utc_offset is None else _check_offset(utc_offset)
    lat, lng = coordinate.latitude, coordinate.longitude

    params = solar_parameters(julian_date(when))
    decl, eqt = params.declination, params.equation_of_time
    noon = solar_noon(lng, eqt, offset)

    raw = {PrayerId.DHUHR: (noon, False)}
    raw[PrayerId.ASR] = asr_time(lat, decl, eqt, offset, lng, shadow_factor)
    for prayer_id in DEFAULT_ANGLES:
        raw[prayer_id] = _angle_time(prayer_id, lat, decl, noon, offset)

    moments = []
    for prayer_id in PRAYER_ORDER:
        hour, fallback = raw[prayer_id]
        if fallback:
            logger.debug(
                "No solution for %s at lat %.4f on %s, using fallback %.2f",
                prayer_id.value, lat, when.date(), hour,
            )
        moments.append(PrayerMoment(prayer_id, _fix_hour(hour), fallback))
    return moments
