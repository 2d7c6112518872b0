"""User settings persisted as JSON next to the manual location file."""

import json
import logging
import os

from salati.models import InvalidInputError
from salati.notifier import NotificationSettings
from salati.solar import HANAFI_SHADOW_FACTOR, SHAFII_SHADOW_FACTOR

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".salati")
SETTINGS_FILE = os.path.join(CONFIG_DIR, "settings.json")

DEFAULT_SETTINGS = {
    "asr_method": "standard",
    "notifications_enabled": True,
    "adhan_enabled": True,
    "vibration_enabled": True,
    "reminder_minutes": 15,
}

ASR_METHODS = {
    "standard": SHAFII_SHADOW_FACTOR,
    "shafi": SHAFII_SHADOW_FACTOR,
    "maliki": SHAFII_SHADOW_FACTOR,
    "hanbali": SHAFII_SHADOW_FACTOR,
    "hanafi": HANAFI_SHADOW_FACTOR,
}


def shadow_factor_for(asr_method: str) -> int:
    """Shadow-length factor for an Asr juristic method name."""
    try:
        return ASR_METHODS[(asr_method or "").lower()]
    except KeyError:
        raise InvalidInputError(f"Unknown Asr method: {asr_method}") from None


def _check_value(key: str, value) -> None:
    if key == "asr_method":
        shadow_factor_for(value if isinstance(value, str) else None)
    elif key == "reminder_minutes":
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise InvalidInputError(f"reminder_minutes must be a non-negative integer, got {value!r}")
    elif not isinstance(value, bool):
        raise InvalidInputError(f"{key} must be true or false, got {value!r}")


def load_settings() -> dict:
    """
    Saved settings merged over DEFAULT_SETTINGS.

    Unreadable files and invalid values are ignored with a warning, leaving
    the defaults in place.
    """
    settings = dict(DEFAULT_SETTINGS)
    if not os.path.isfile(SETTINGS_FILE):
        return settings
    try:
        with open(SETTINGS_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable settings file %s: %s", SETTINGS_FILE, exc)
        return settings
    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: not a JSON object", SETTINGS_FILE)
        return settings
    for key, value in data.items():
        if key not in DEFAULT_SETTINGS:
            continue
        try:
            _check_value(key, value)
        except InvalidInputError as exc:
            logger.warning("Ignoring saved setting %s: %s", key, exc)
            continue
        settings[key] = value
    return settings


def save_settings(settings: dict) -> None:
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(SETTINGS_FILE, "w", encoding="utf-8") as f:
        json.dump(settings, f, indent=2)


def update_settings(**changes) -> dict:
    """Apply `changes` to the saved settings, save and return the result."""
    unknown = set(changes) - set(DEFAULT_SETTINGS)
    if unknown:
        raise InvalidInputError(f"Unknown settings: {', '.join(sorted(unknown))}")
    for key, value in changes.items():
        _check_value(key, value)
    settings = load_settings()
    settings.update(changes)
    save_settings(settings)
    return settings


def notification_settings(settings: dict) -> NotificationSettings:
    return NotificationSettings(
        adhan_enabled=bool(settings["adhan_enabled"]),
        vibration_enabled=bool(settings["vibration_enabled"]),
        reminder_minutes=int(settings["reminder_minutes"]),
        notifications_enabled=bool(settings["notifications_enabled"]),
    )
