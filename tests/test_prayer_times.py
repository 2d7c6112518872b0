"""Tests for the prayer_times module."""

import datetime
import unittest

import pytz

from salati.models import GeoCoordinate, InvalidInputError, PrayerId, PrayerMoment
from salati.prayer_times import (
    annotate_prayers,
    current_prayer_status,
    format_countdown,
    format_time_12h,
    get_next_prayer,
    get_prayer_times,
    parse_countdown,
    parse_time_12h,
    prayer_by_id,
    seconds_until,
    time_str_to_today_dt,
    time_until_next_prayer,
)

LONDON = GeoCoordinate(51.5074, -0.1278)

MOMENTS = [
    PrayerMoment(PrayerId.FAJR, 4.5),
    PrayerMoment(PrayerId.SUNRISE, 6.0),
    PrayerMoment(PrayerId.DHUHR, 12.0),
    PrayerMoment(PrayerId.ASR, 15.5),
    PrayerMoment(PrayerId.MAGHRIB, 18.0),
    PrayerMoment(PrayerId.ISHA, 19.5),
]


def _at(hour, minute=0, tz=None):
    dt = datetime.datetime(2025, 3, 1, hour, minute)
    return tz.localize(dt) if tz else dt


class TestFormatTime(unittest.TestCase):
    def test_midnight_and_noon(self):
        self.assertEqual(format_time_12h(0, 5), "12:05 AM")
        self.assertEqual(format_time_12h(12, 0), "12:00 PM")

    def test_afternoon_wraps(self):
        self.assertEqual(format_time_12h(13, 7), "1:07 PM")
        self.assertEqual(format_time_12h(23, 59), "11:59 PM")

    def test_morning(self):
        self.assertEqual(format_time_12h(9, 30), "9:30 AM")

    def test_parse_back_every_hour(self):
        for hour in range(24):
            for minute in (0, 7, 59):
                self.assertEqual(parse_time_12h(format_time_12h(hour, minute)), (hour, minute))

    def test_parse_rejects_malformed(self):
        for text in ("noon", "7:5 AM", "13:00 PM", "0:30 AM", "12:60 PM", ""):
            with self.assertRaises(InvalidInputError, msg=text):
                parse_time_12h(text)


class TestAnnotatePrayers(unittest.TestCase):
    def test_marks_next_and_passed(self):
        prayers = annotate_prayers(MOMENTS, _at(12, 5))
        self.assertEqual([p.is_passed for p in prayers], [True, True, True, False, False, False])
        self.assertEqual([p.is_next for p in prayers], [False, False, False, True, False, False])

    def test_prayer_at_current_minute_is_passed(self):
        prayers = annotate_prayers(MOMENTS, _at(12, 0))
        dhuhr = prayer_by_id(prayers, "dhuhr")
        self.assertTrue(dhuhr.is_passed)
        self.assertFalse(dhuhr.is_next)
        self.assertTrue(prayer_by_id(prayers, PrayerId.ASR).is_next)

    def test_before_fajr(self):
        prayers = annotate_prayers(MOMENTS, _at(3))
        self.assertTrue(prayers[0].is_next)
        self.assertFalse(any(p.is_passed for p in prayers))

    def test_wraps_to_fajr_when_all_passed(self):
        prayers = annotate_prayers(MOMENTS, _at(23))
        self.assertTrue(all(p.is_passed for p in prayers))
        self.assertTrue(prayers[0].is_next)
        self.assertEqual(sum(p.is_next for p in prayers), 1)

    def test_exactly_one_next_throughout_the_day(self):
        for hour in range(24):
            prayers = annotate_prayers(MOMENTS, _at(hour, 30))
            self.assertEqual(sum(p.is_next for p in prayers), 1, hour)
            if not all(p.is_passed for p in prayers):
                self.assertFalse(any(p.is_next and p.is_passed for p in prayers), hour)

    def test_names_and_formatting(self):
        prayers = annotate_prayers(MOMENTS, _at(12))
        self.assertEqual([p.name for p in prayers], ["Fajr", "Sunrise", "Dhuhr", "Asr", "Maghrib", "Isha"])
        self.assertEqual(prayers[0].formatted_time, "4:30 AM")
        self.assertEqual(prayers[3].formatted_time, "3:30 PM")
        self.assertEqual(prayers[3].minutes, 15 * 60 + 30)


class TestGetPrayerTimes(unittest.TestCase):
    def test_london_with_timezone_name(self):
        prayers = get_prayer_times(LONDON, now=datetime.datetime(2024, 3, 20, 12, 0), tz="Europe/London")
        self.assertEqual(len(prayers), 6)
        self.assertIn(prayer_by_id(prayers, PrayerId.DHUHR).formatted_time, ("12:07 PM", "12:08 PM"))
        self.assertTrue(prayer_by_id(prayers, PrayerId.DHUHR).is_next)

    def test_summer_time_shifts_clock(self):
        winter = get_prayer_times(LONDON, now=datetime.datetime(2024, 3, 20, 12), tz="Europe/London")
        summer = get_prayer_times(LONDON, now=datetime.datetime(2024, 4, 3, 12), tz="Europe/London")
        # BST adds an hour; the equation of time moves Dhuhr by only a few minutes
        shift = prayer_by_id(summer, "dhuhr").minutes - prayer_by_id(winter, "dhuhr").minutes
        self.assertTrue(55 <= shift <= 60, shift)

    def test_aware_now_converted_to_tz(self):
        utc_now = pytz.utc.localize(datetime.datetime(2024, 3, 20, 9, 0))
        riyadh = get_prayer_times(GeoCoordinate(21.4225, 39.8262), now=utc_now, tz="Asia/Riyadh")
        # 09:00 UTC is 12:00 in Riyadh, so Fajr and Sunrise have passed
        self.assertTrue(prayer_by_id(riyadh, "fajr").is_passed)
        self.assertTrue(prayer_by_id(riyadh, "sunrise").is_passed)
        self.assertFalse(prayer_by_id(riyadh, "asr").is_passed)


class TestTimeStrToDt(unittest.TestCase):
    def test_converts_to_datetime(self):
        tz = pytz.timezone("Asia/Jakarta")
        dt = time_str_to_today_dt("12:00", tz)
        self.assertEqual(dt.hour, 12)
        self.assertEqual(dt.minute, 0)

    def test_naive_without_tz(self):
        dt = time_str_to_today_dt("18:15")
        self.assertEqual(dt.hour, 18)
        self.assertIsNone(dt.tzinfo)

    def test_twelve_hour_format(self):
        dt = time_str_to_today_dt("6:30 PM", now=_at(8))
        self.assertEqual((dt.hour, dt.minute), (18, 30))
        self.assertEqual(dt.date(), datetime.date(2025, 3, 1))

    def test_rejects_garbage(self):
        with self.assertRaises(InvalidInputError):
            time_str_to_today_dt("later")


class TestGetNextPrayer(unittest.TestCase):
    def test_returns_next_prayer(self):
        now = _at(12, 5, pytz.utc)
        prayer, dt = get_next_prayer(annotate_prayers(MOMENTS, now), now)
        self.assertEqual(prayer.id, PrayerId.ASR)
        self.assertEqual((dt.hour, dt.minute), (15, 30))
        self.assertEqual(dt.date(), now.date())

    def test_sunrise_can_be_next(self):
        now = _at(5)
        prayer, _ = get_next_prayer(annotate_prayers(MOMENTS, now), now)
        self.assertEqual(prayer.id, PrayerId.SUNRISE)

    def test_tomorrows_fajr_after_isha(self):
        now = _at(23, 0, pytz.utc)
        prayer, dt = get_next_prayer(annotate_prayers(MOMENTS, now), now)
        self.assertEqual(prayer.id, PrayerId.FAJR)
        self.assertEqual(dt.date(), datetime.date(2025, 3, 2))

    def test_tomorrow_after_clock_change(self):
        london = pytz.timezone("Europe/London")
        now = london.localize(datetime.datetime(2024, 3, 30, 23, 0))
        _, dt = get_next_prayer(annotate_prayers(MOMENTS, now), now)
        self.assertEqual((dt.day, dt.hour, dt.minute), (31, 4, 30))
        self.assertEqual(dt.utcoffset(), datetime.timedelta(hours=1))

    def test_empty_list(self):
        self.assertEqual(get_next_prayer([], _at(12)), (None, None))


class TestSecondsUntil(unittest.TestCase):
    def test_positive_seconds(self):
        tz = pytz.utc
        now = datetime.datetime.now(tz).replace(hour=10, minute=0, second=0, microsecond=0)
        target = now + datetime.timedelta(seconds=300)
        self.assertEqual(seconds_until(target, now), 300)

    def test_negative_seconds_for_past(self):
        tz = pytz.utc
        now = datetime.datetime.now(tz).replace(hour=10, minute=0, second=0, microsecond=0)
        target = now - datetime.timedelta(seconds=60)
        self.assertLess(seconds_until(target, now), 0)


class TestCountdown(unittest.TestCase):
    def test_format(self):
        self.assertEqual(format_countdown(3 * 3600 + 25 * 60 + 59), "3h 25m")
        self.assertEqual(format_countdown(59 * 60), "59m")
        self.assertEqual(format_countdown(-5), "0m")

    def test_parse(self):
        self.assertEqual(parse_countdown("3h 25m"), (3, 25))
        self.assertEqual(parse_countdown("45m"), (0, 45))
        self.assertEqual(parse_countdown("Soon"), (0, 0))

    def test_time_until_next_prayer(self):
        now = _at(12, 5)
        self.assertEqual(time_until_next_prayer(annotate_prayers(MOMENTS, now), now), "3h 25m")

    def test_time_until_tomorrows_fajr(self):
        now = _at(23, 0)
        self.assertEqual(time_until_next_prayer(annotate_prayers(MOMENTS, now), now), "5h 30m")

    def test_soon_without_prayers(self):
        self.assertEqual(time_until_next_prayer([], _at(12)), "Soon")


class TestCurrentPrayerStatus(unittest.TestCase):
    def test_statuses(self):
        prayers = annotate_prayers(MOMENTS, _at(12))
        cases = {
            (3, 0): "before_fajr",
            (5, 0): "after_fajr",
            (11, 59): "after_sunrise",
            (12, 0): "after_dhuhr",
            (16, 0): "after_asr",
            (19, 0): "after_maghrib",
            (23, 0): "after_isha",
        }
        for (hour, minute), expected in cases.items():
            self.assertEqual(current_prayer_status(prayers, _at(hour, minute)), expected)


if __name__ == "__main__":
    unittest.main()
