"""Desktop notifications for prayer reminders and adhan alerts."""

import datetime
import logging
import threading
from dataclasses import dataclass

from salati.models import PrayerId
from salati.prayer_times import next_prayer_datetime

try:
    from plyer import notification as plyer_notification
    from plyer import vibrator as plyer_vibrator
    _PLYER_AVAILABLE = True
except ImportError:
    _PLYER_AVAILABLE = False

logger = logging.getLogger(__name__)

APP_NAME = "Salati"
APP_ICON = ""  # Path to icon file; empty = default

SNOOZE_MINUTES = 5

# wait, on, off, on durations in seconds
VIBRATION_PATTERN = (0, 0.25, 0.25, 0.25)


@dataclass(frozen=True)
class NotificationSettings:
    adhan_enabled: bool = True
    vibration_enabled: bool = True
    reminder_minutes: int = 15
    notifications_enabled: bool = True


@dataclass(frozen=True)
class ScheduledNotification:
    prayer_id: PrayerId
    kind: str  # "reminder", "adhan" or "snooze"
    fire_at: datetime.datetime
    title: str
    message: str
    vibrate: bool = False


def _send_plyer(title: str, message: str, timeout: int = 10) -> None:
    """Send a desktop notification via plyer (cross-platform)."""
    if not _PLYER_AVAILABLE:
        return
    try:
        kwargs = dict(
            app_name=APP_NAME,
            title=title,
            message=message,
            timeout=timeout,
        )
        if APP_ICON:
            kwargs["app_icon"] = APP_ICON
        plyer_notification.notify(**kwargs)
    except Exception as exc:  # plyer backends raise platform-specific errors
        logger.warning("Desktop notification failed: %s", exc)


def _vibrate(pattern=VIBRATION_PATTERN) -> None:
    """Vibrate the device via plyer. Most desktops have no vibrator."""
    if not _PLYER_AVAILABLE:
        return
    try:
        plyer_vibrator.pattern(pattern=pattern, repeat=-1)
    except Exception as exc:  # NotImplementedError where no backend exists
        logger.warning("Vibration failed: %s", exc)


def reminder_text(prayer_name: str, minutes: int, prayer_time: str) -> tuple:
    return (
        f"{prayer_name} Prayer Reminder",
        f"{prayer_name} prayer is in {minutes} minutes at {prayer_time}",
    )


def adhan_text(prayer_name: str) -> tuple:
    return f"{prayer_name} Prayer Time", f"It's time for {prayer_name} prayer"


def notify(notification: ScheduledNotification, callback=None) -> None:
    """
    Send the desktop notification now, vibrating too when the item asks for
    it. Adhan alerts stay up longer.
    Optionally calls callback(title, message), e.g. to update a GUI.
    """
    timeout = 30 if notification.kind == "adhan" else 15
    _send_plyer(notification.title, notification.message, timeout=timeout)
    if notification.vibrate:
        _vibrate()
    if callback:
        callback(notification.title, notification.message)


def plan_notifications(prayers: list, now: datetime.datetime, settings: NotificationSettings = None) -> list:
    """
    Work out which notifications to fire for the given prayer list.

    Sunrise is skipped. A prayer already passed today is planned for
    tomorrow. The reminder is dropped when its time is not in the future.
    Returns ScheduledNotification items ordered by fire time.
    """
    settings = settings or NotificationSettings()
    if not settings.notifications_enabled:
        return []

    plan = []
    for prayer in prayers:
        if prayer.id == PrayerId.SUNRISE:
            continue
        prayer_dt = next_prayer_datetime(prayer, now)

        if settings.reminder_minutes > 0:
            reminder_dt = prayer_dt - datetime.timedelta(minutes=settings.reminder_minutes)
            if hasattr(reminder_dt.tzinfo, "normalize"):
                reminder_dt = reminder_dt.tzinfo.normalize(reminder_dt)
            if reminder_dt > now:
                title, message = reminder_text(prayer.name, settings.reminder_minutes, prayer.formatted_time)
                plan.append(ScheduledNotification(prayer.id, "reminder", reminder_dt, title, message))

        if settings.adhan_enabled:
            title, message = adhan_text(prayer.name)
            plan.append(ScheduledNotification(
                prayer.id, "adhan", prayer_dt, title, message, vibrate=settings.vibration_enabled,
            ))

    plan.sort(key=lambda n: n.fire_at)
    return plan


def schedule_notifications(plan: list, now: datetime.datetime, callback=None) -> list:
    """
    Start a daemon timer for every planned notification still ahead of `now`.

    Returns (notification, timer) pairs so they can be cancelled.
    """
    pending = []
    for item in plan:
        delay = (item.fire_at - now).total_seconds()
        if delay <= 0:
            logger.debug("Skipping %s for %s, fire time has passed", item.kind, item.prayer_id.value)
            continue
        t = threading.Timer(delay, notify, args=(item, callback))
        t.daemon = True
        t.start()
        logger.debug("Scheduled %s for %s at %s", item.kind, item.prayer_id.value, item.fire_at)
        pending.append((item, t))
    return pending


def schedule_reminders(prayers: list, now: datetime.datetime, settings: NotificationSettings = None, callback=None) -> list:
    """Plan and start timers for all of today's prayers."""
    plan = plan_notifications(prayers, now, settings)
    return schedule_notifications(plan, now, callback)


def cancel_all(pending: list) -> None:
    for _item, t in pending:
        t.cancel()


def cancel_prayer(pending: list, prayer_id) -> list:
    """Cancel the timers belonging to one prayer; return the rest."""
    prayer_id = PrayerId(prayer_id)
    remaining = []
    for item, t in pending:
        if item.prayer_id == prayer_id:
            t.cancel()
        else:
            remaining.append((item, t))
    return remaining


def snooze(prayer_id, prayer_name: str, now: datetime.datetime, minutes: int = SNOOZE_MINUTES, callback=None) -> list:
    """Re-notify about a prayer `minutes` from now."""
    item = ScheduledNotification(
        PrayerId(prayer_id),
        "snooze",
        now + datetime.timedelta(minutes=minutes),
        f"{prayer_name} Prayer Reminder",
        f"Don't forget {prayer_name} prayer",
    )
    return schedule_notifications([item], now, callback)
