"""Everything the home screen shows, computed in one call."""

import datetime
import logging
from dataclasses import dataclass

from salati.location import coordinate_of, get_location, get_timezone
from salati.models import PrayerTime, QiblaResult
from salati.notifier import cancel_all, schedule_reminders
from salati.prayer_times import (
    current_prayer_status,
    get_next_prayer,
    get_prayer_times,
    time_until_next_prayer,
)
from salati.qibla import qibla
from salati.settings import load_settings, notification_settings, shadow_factor_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dashboard:
    location: dict
    now: datetime.datetime
    prayers: list
    next_prayer: PrayerTime
    next_prayer_at: datetime.datetime
    countdown: str
    status: str
    qibla: QiblaResult
    settings: dict


def load_dashboard(now: datetime.datetime = None, geocoder=None, query: str = None, settings: dict = None) -> Dashboard:
    """
    Resolve the location, then compute prayer times and the Qibla for it.

    `now` may be naive (taken as wall time in the location's timezone) or
    aware (converted into it).
    """
    location = get_location(geocoder, query)
    settings = settings if settings is not None else load_settings()
    tz = get_timezone(location.get("timezone"))
    if now is None:
        now = datetime.datetime.now(tz)
    elif now.tzinfo is None:
        now = tz.localize(now)
    else:
        now = now.astimezone(tz)

    coordinate = coordinate_of(location)
    prayers = get_prayer_times(coordinate, now, tz, shadow_factor_for(settings["asr_method"]))
    next_prayer, next_at = get_next_prayer(prayers, now)
    logger.debug("Loaded %d prayer times for %s", len(prayers), location.get("city"))
    return Dashboard(
        location=location,
        now=now,
        prayers=prayers,
        next_prayer=next_prayer,
        next_prayer_at=next_at,
        countdown=time_until_next_prayer(prayers, now),
        status=current_prayer_status(prayers, now),
        qibla=qibla(coordinate),
        settings=settings,
    )


def refresh_notifications(dashboard: Dashboard, pending: list = None, callback=None) -> list:
    """Cancel previously scheduled timers and schedule them again for `dashboard`."""
    if pending:
        cancel_all(pending)
    return schedule_reminders(
        dashboard.prayers,
        dashboard.now,
        notification_settings(dashboard.settings),
        callback,
    )
