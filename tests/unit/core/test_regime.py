from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import dataclasses
import pytest

from stockshield.core.regime import (
    DEFAULT_CALENDAR,
    NYSE_HOLIDAYS_2026,
    REGIME_RISK_LEVEL,
    REGIME_RISK_ORDER,
    HolidayCalendar,
    Regime,
    SessionWindows,
    classify,
    regime_at,
)

_ET = ZoneInfo("America/New_York")


def _et(year, month, day, hour, minute=0, second=0) -> datetime:
    return datetime(year, month, day, hour, minute, second, tzinfo=_ET)


# =============================================================================
# SECTION 1 -- Weekday session windows
# =============================================================================
#
# Tuesday 2026-03-10 (EDT). Boundaries 04:00, 09:30, 09:35, 16:00, 20:00.
# =============================================================================

class TestWeekdayWindows:

    @pytest.mark.parametrize("hour,minute,expected", [
        (0, 0,   Regime.OVERNIGHT),
        (3, 59,  Regime.OVERNIGHT),
        (4, 0,   Regime.PRE_MARKET),
        (9, 29,  Regime.PRE_MARKET),
        (9, 30,  Regime.SOFT_OPEN),
        (9, 34,  Regime.SOFT_OPEN),
        (9, 35,  Regime.CORE_SESSION),
        (15, 59, Regime.CORE_SESSION),
        (16, 0,  Regime.AFTER_HOURS),
        (19, 59, Regime.AFTER_HOURS),
        (20, 0,  Regime.OVERNIGHT),
        (23, 59, Regime.OVERNIGHT),
    ])
    def test_bucket_at_boundary(self, hour, minute, expected):
        assert classify(_et(2026, 3, 10, hour, minute)).regime == expected

    def test_seconds_before_soft_open_still_pre_market(self):
        assert classify(_et(2026, 3, 10, 9, 29, 59)).regime == Regime.PRE_MARKET

    def test_core_next_transition_is_close(self):
        result = classify(_et(2026, 3, 10, 10, 0))
        assert result.next_transition_time == _et(2026, 3, 10, 16, 0)

    def test_pre_market_next_transition_is_soft_open(self):
        result = classify(_et(2026, 3, 10, 9, 29, 59))
        assert result.next_transition_time == _et(2026, 3, 10, 9, 30)

    def test_soft_open_next_transition_is_core(self):
        result = classify(_et(2026, 3, 10, 9, 30))
        assert result.next_transition_time == _et(2026, 3, 10, 9, 35)

    def test_overnight_next_transition_is_next_pre_market(self):
        result = classify(_et(2026, 3, 10, 20, 0))
        assert result.regime == Regime.OVERNIGHT
        assert result.next_transition_time == _et(2026, 3, 11, 4, 0)

    def test_next_transition_returned_in_utc(self):
        result = classify(_et(2026, 3, 10, 10, 0))
        assert result.next_transition_time.utcoffset() == timedelta(0)


# =============================================================================
# SECTION 2 -- Weekend
# =============================================================================

class TestWeekend:

    def test_friday_after_hours_end_is_weekend(self):
        assert classify(_et(2026, 3, 13, 20, 0)).regime == Regime.WEEKEND

    def test_friday_before_after_hours_end_is_after_hours(self):
        result = classify(_et(2026, 3, 13, 19, 59))
        assert result.regime == Regime.AFTER_HOURS
        assert result.next_transition_time == _et(2026, 3, 13, 20, 0)

    @pytest.mark.parametrize("instant", [
        _et(2026, 3, 14, 12, 0),   # Saturday
        _et(2026, 3, 15, 23, 0),   # Sunday
        _et(2026, 3, 16, 3, 59),   # Monday before pre-market
    ])
    def test_weekend_span(self, instant):
        assert classify(instant).regime == Regime.WEEKEND

    def test_weekend_ends_monday_pre_market(self):
        result = classify(_et(2026, 3, 13, 20, 0))
        assert result.next_transition_time == _et(2026, 3, 16, 4, 0)

    def test_monday_pre_market_start(self):
        assert classify(_et(2026, 3, 16, 4, 0)).regime == Regime.PRE_MARKET


# =============================================================================
# SECTION 3 -- Holidays
# =============================================================================

class TestHolidays:

    def test_default_calendar_has_nine_closures(self):
        assert len(NYSE_HOLIDAYS_2026) == 9
        assert DEFAULT_CALENDAR.iso_dates() == tuple(sorted(NYSE_HOLIDAYS_2026))

    def test_thanksgiving_midday_is_holiday(self):
        assert classify(_et(2026, 11, 26, 12, 0)).regime == Regime.HOLIDAY

    def test_holiday_covers_whole_local_day(self):
        assert classify(_et(2026, 1, 1, 0, 30)).regime == Regime.HOLIDAY
        assert classify(_et(2026, 1, 1, 23, 30)).regime == Regime.HOLIDAY

    def test_holiday_ends_at_next_local_midnight(self):
        result = classify(_et(2026, 11, 26, 12, 0))
        assert result.next_transition_time == _et(2026, 11, 27, 0, 0)

    def test_weekend_checked_before_holiday(self):
        # Good Friday 2026-04-03: holiday until 20:00, weekend after.
        assert classify(_et(2026, 4, 3, 12, 0)).regime == Regime.HOLIDAY
        assert classify(_et(2026, 4, 3, 21, 0)).regime == Regime.WEEKEND

    def test_with_holiday_returns_new_calendar(self):
        extra = DEFAULT_CALENDAR.with_holiday(date(2026, 3, 10))
        assert classify(_et(2026, 3, 10, 10, 0), extra).regime == Regime.HOLIDAY
        assert classify(_et(2026, 3, 10, 10, 0)).regime == Regime.CORE_SESSION

    def test_from_iso_dates_rejects_garbage(self):
        with pytest.raises(ValueError):
            HolidayCalendar.from_iso_dates(["2026-13-45"])

    def test_empty_calendar_treats_holiday_as_weekday(self):
        empty = HolidayCalendar(holidays=frozenset())
        assert classify(_et(2026, 11, 26, 12, 0), empty).regime == Regime.CORE_SESSION


# =============================================================================
# SECTION 4 -- Daylight saving and time zones
# =============================================================================

class TestTimeZones:

    def test_core_start_in_utc_after_dst(self):
        # Monday 2026-03-09, EDT: 09:35 local == 13:35 UTC.
        assert regime_at(datetime(2026, 3, 9, 13, 35, tzinfo=timezone.utc)) == Regime.CORE_SESSION
        assert regime_at(datetime(2026, 3, 9, 13, 34, tzinfo=timezone.utc)) == Regime.SOFT_OPEN

    def test_core_start_in_utc_before_dst(self):
        # Friday 2026-03-06, EST: 09:35 local == 14:35 UTC.
        assert regime_at(datetime(2026, 3, 6, 14, 34, tzinfo=timezone.utc)) == Regime.SOFT_OPEN
        assert regime_at(datetime(2026, 3, 6, 14, 35, tzinfo=timezone.utc)) == Regime.CORE_SESSION

    def test_same_instant_any_zone_same_result(self):
        utc = datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)
        tokyo = utc.astimezone(ZoneInfo("Asia/Tokyo"))
        assert classify(utc) == classify(tokyo)

    def test_naive_datetime_rejected(self):
        with pytest.raises(ValueError, match="timezone-aware"):
            classify(datetime(2026, 3, 10, 10, 0))

    def test_non_datetime_rejected(self):
        with pytest.raises(ValueError):
            regime_at("2026-03-10T10:00:00Z")


# =============================================================================
# SECTION 5 -- Totality
# =============================================================================

class TestTotality:

    @pytest.mark.parametrize("start", [
        _et(2026, 3, 9, 0, 0),     # ordinary week
        _et(2026, 11, 23, 0, 0),   # Thanksgiving week
    ])
    def test_every_quarter_hour_of_a_week_classifies(self, start):
        instant = start
        end = start + timedelta(days=7)
        while instant < end:
            result = classify(instant)
            assert isinstance(result.regime, Regime)
            assert result.next_transition_time > instant
            assert regime_at(result.next_transition_time) != result.regime
            instant += timedelta(minutes=15)

    def test_regime_constant_until_next_transition(self):
        start = _et(2026, 3, 10, 10, 0)
        result = classify(start)
        just_before = result.next_transition_time - timedelta(seconds=1)
        assert regime_at(just_before) == result.regime


# =============================================================================
# SECTION 6 -- Tables and windows
# =============================================================================

class TestTables:

    def test_risk_order_covers_every_regime(self):
        assert set(REGIME_RISK_ORDER) == set(Regime)
        assert REGIME_RISK_ORDER[0] == Regime.CORE_SESSION

    def test_risk_level_defined_for_every_regime(self):
        assert set(REGIME_RISK_LEVEL) == set(Regime)

    def test_windows_must_increase(self):
        with pytest.raises(ValueError):
            SessionWindows(pre_market_start=600, soft_open_start=570)

    def test_windows_reject_non_int(self):
        with pytest.raises(ValueError):
            SessionWindows(core_end=960.5)

    def test_windows_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            SessionWindows().core_start = 600  # type: ignore[misc]
