"""Unit tests for Datetime Helpers (routinely/utils/datetime_helpers.py)"""
import time
import pytest
from datetime import datetime, date
from zoneinfo import ZoneInfo

import tzlocal

from routinely import config
from routinely.utils.datetime_helpers import (
    MS_PER_DAY,
    end_of_day,
    end_of_month,
    format_date_key,
    from_epoch_ms,
    get_local_timezone,
    local_date_from_ms,
    parse_date_key,
    start_of_month,
    start_of_week,
    to_epoch_ms,
    whole_days_between,
)
from tests.helpers import TEST_TZ


# ============================================================================
# Timezone Tests
# ============================================================================

def test_configured_timezone_is_used(monkeypatch):
    monkeypatch.setattr(config, "TIMEZONE", "America/New_York")
    assert get_local_timezone() == ZoneInfo("America/New_York")


def test_unset_timezone_falls_back_to_device(monkeypatch):
    monkeypatch.setattr(config, "TIMEZONE", "")
    assert get_local_timezone() is not None


@pytest.fixture
def device_in_madrid(monkeypatch):
    """TIMEZONE unset, device zone Europe/Madrid (DST-observing)"""
    monkeypatch.setattr(config, "TIMEZONE", "")
    monkeypatch.setenv("TZ", "Europe/Madrid")
    time.tzset()
    tzlocal.reload_localzone()
    yield
    monkeypatch.undo()
    time.tzset()
    tzlocal.reload_localzone()


def test_device_timezone_keeps_dst_rules(device_in_madrid):
    """Winter and summer instants each use their own offset, not today's"""
    tz = get_local_timezone()

    winter = to_epoch_ms(datetime(2027, 1, 10, 22, 30, tzinfo=ZoneInfo("UTC")))
    summer = to_epoch_ms(datetime(2026, 7, 10, 22, 30, tzinfo=ZoneInfo("UTC")))

    # CET (+1): 23:30 same day. CEST (+2): 00:30 next day.
    assert local_date_from_ms(winter, tz) == date(2027, 1, 10)
    assert local_date_from_ms(summer, tz) == date(2026, 7, 11)
    assert local_date_from_ms(winter) == date(2027, 1, 10)


# ============================================================================
# Epoch Conversion Tests
# ============================================================================

def test_epoch_round_trip():
    dt = datetime(2026, 10, 14, 9, 30, tzinfo=TEST_TZ)
    assert from_epoch_ms(to_epoch_ms(dt), TEST_TZ) == dt


def test_local_date_depends_on_timezone():
    """23:30 UTC is already the next day in Madrid"""
    ms = to_epoch_ms(datetime(2026, 10, 14, 22, 30, tzinfo=ZoneInfo("UTC")))
    assert local_date_from_ms(ms, ZoneInfo("UTC")) == date(2026, 10, 14)
    assert local_date_from_ms(ms, TEST_TZ) == date(2026, 10, 15)


def test_whole_days_between_floors():
    assert whole_days_between(0, MS_PER_DAY - 1) == 0
    assert whole_days_between(0, 7 * MS_PER_DAY) == 7


# ============================================================================
# Date Key Tests
# ============================================================================

def test_format_and_parse_date_key():
    assert format_date_key(date(2026, 1, 5)) == "2026-01-05"
    assert parse_date_key("2026-01-05") == date(2026, 1, 5)


@pytest.mark.parametrize("value", [None, "", "yesterday", "2026-13-40"])
def test_parse_date_key_malformed(value):
    assert parse_date_key(value) is None


# ============================================================================
# Calendar Range Tests
# ============================================================================

def test_start_of_week_is_sunday():
    wednesday = datetime(2026, 10, 14, 9, 30, tzinfo=TEST_TZ)
    start = start_of_week(wednesday)
    assert start == datetime(2026, 10, 11, 0, 0, tzinfo=TEST_TZ)
    assert start.weekday() == 6


def test_start_of_week_on_saturday():
    saturday = datetime(2026, 10, 17, 23, 0, tzinfo=TEST_TZ)
    assert start_of_week(saturday).date() == date(2026, 10, 11)


def test_end_of_day():
    end = end_of_day(date(2026, 10, 14), TEST_TZ)
    assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 999000)


def test_month_bounds():
    now = datetime(2026, 2, 14, 12, 0, tzinfo=TEST_TZ)
    assert start_of_month(now) == datetime(2026, 2, 1, tzinfo=TEST_TZ)
    assert end_of_month(now).date() == date(2026, 2, 28)

    december = datetime(2026, 12, 31, 12, 0, tzinfo=TEST_TZ)
    assert end_of_month(december).date() == date(2026, 12, 31)
