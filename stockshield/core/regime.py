# stockshield/core/regime.py
# Version: 1.0.0
# SINGLE AUTHORITATIVE REGIME SOURCE FOR THE STOCKSHIELD CONTROL PLANE.
#
# All session-regime types used anywhere in the system MUST be imported from
# this file. No other file may define regime enums, session boundaries or the
# holiday calendar.
#
# Standard import pattern:
#   from stockshield.core.regime import (
#       Regime, RegimeClassification, HolidayCalendar, SessionWindows,
#       DEFAULT_CALENDAR, DEFAULT_WINDOWS, classify
#   )
#
# CLASSIFICATION ORDER (DETERMINISTIC -- NO EXCEPTIONS)
# -----------------------------------------------------
#   1. Convert the instant to reference-market local time (America/New_York,
#      DST aware via zoneinfo).
#   2. WEEKEND  : Saturday, Sunday, Friday >= after_hours_end,
#                 Monday < pre_market_start.
#   3. HOLIDAY  : local calendar date is in the HolidayCalendar.
#   4. Bucket the minute-of-day into the five weekday windows. Every window
#      is half-open [start, end): a boundary instant belongs to the LATER
#      regime.
#
# classify() is pure and total over timezone-aware datetimes. Rejecting naive
# or malformed timestamps is the caller's job (see
# stockshield.core.control_plane.engine.validate_timestamp).

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum, unique
from typing import Dict, FrozenSet, Iterable, List, Tuple
from zoneinfo import ZoneInfo


# ---------------------------------------------------------------------------
# REFERENCE MARKET
# ---------------------------------------------------------------------------

REFERENCE_TIMEZONE: str = "America/New_York"
_REFERENCE_TZ = ZoneInfo(REFERENCE_TIMEZONE)

_MINUTES_PER_DAY: int = 24 * 60

# Upper bound on the boundary walk in next-transition lookup. Covers a
# holiday-extended weekend with a wide margin.
_MAX_LOOKAHEAD_DAYS: int = 14


# ---------------------------------------------------------------------------
# CANONICAL ENUM DEFINITION
# ---------------------------------------------------------------------------

@unique
class Regime(str, Enum):
    """
    Named trading-session bucket derived from wall-clock time.

    Inherits from str so Regime.CORE_SESSION == "CORE_SESSION" holds and
    the value serialises without enum machinery.

    Derived on every read. Never persisted beyond a single evaluation.
    """
    CORE_SESSION = "CORE_SESSION"   # 09:35 - 16:00 ET
    SOFT_OPEN    = "SOFT_OPEN"      # 09:30 - 09:35 ET (gap auction window)
    PRE_MARKET   = "PRE_MARKET"     # 04:00 - 09:30 ET
    AFTER_HOURS  = "AFTER_HOURS"    # 16:00 - 20:00 ET
    OVERNIGHT    = "OVERNIGHT"      # 20:00 - 04:00 ET
    WEEKEND      = "WEEKEND"        # Fri 20:00 - Mon 04:00 ET
    HOLIDAY      = "HOLIDAY"        # Reference-market holiday (whole local day)


# Perceived session risk, lowest first. Fee tables must be monotone in this
# order (checked by stockshield.governance.policy_validator).
REGIME_RISK_ORDER: Tuple[Regime, ...] = (
    Regime.CORE_SESSION,
    Regime.SOFT_OPEN,
    Regime.PRE_MARKET,
    Regime.AFTER_HOURS,
    Regime.OVERNIGHT,
    Regime.WEEKEND,
    Regime.HOLIDAY,
)

REGIME_RISK_LEVEL: Dict[Regime, str] = {
    Regime.CORE_SESSION: "low",
    Regime.SOFT_OPEN:    "medium",
    Regime.PRE_MARKET:   "medium",
    Regime.AFTER_HOURS:  "medium",
    Regime.OVERNIGHT:    "high",
    Regime.WEEKEND:      "very-high",
    Regime.HOLIDAY:      "extreme",
}


# ---------------------------------------------------------------------------
# SESSION WINDOWS
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionWindows:
    """
    Weekday session boundaries, in minutes after local midnight.

    The five windows are fixed and non-overlapping:
      [0, pre_market_start)                -> OVERNIGHT
      [pre_market_start, soft_open_start)  -> PRE_MARKET
      [soft_open_start, core_start)        -> SOFT_OPEN
      [core_start, core_end)               -> CORE_SESSION
      [core_end, after_hours_end)          -> AFTER_HOURS
      [after_hours_end, 1440)              -> OVERNIGHT

    Raises ValueError unless 0 < pre_market_start < soft_open_start
    < core_start < core_end < after_hours_end < 1440.
    """
    pre_market_start: int = 4 * 60
    soft_open_start:  int = 9 * 60 + 30
    core_start:       int = 9 * 60 + 35
    core_end:         int = 16 * 60
    after_hours_end:  int = 20 * 60

    def __post_init__(self) -> None:
        ordered = (0,) + self.boundaries()[1:] + (_MINUTES_PER_DAY,)
        for value in ordered:
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"session boundary must be an int minute: {value!r}")
        for earlier, later in zip(ordered, ordered[1:]):
            if not earlier < later:
                raise ValueError(
                    f"session boundaries must be strictly increasing within a day: {ordered}"
                )

    def boundaries(self) -> Tuple[int, ...]:
        """Boundary table for one local day, midnight first."""
        return (
            0,
            self.pre_market_start,
            self.soft_open_start,
            self.core_start,
            self.core_end,
            self.after_hours_end,
        )

    def bucket(self, minute_of_day: int) -> Regime:
        """Weekday regime for a minute-of-day. Half-open windows."""
        if minute_of_day < self.pre_market_start:
            return Regime.OVERNIGHT
        if minute_of_day < self.soft_open_start:
            return Regime.PRE_MARKET
        if minute_of_day < self.core_start:
            return Regime.SOFT_OPEN
        if minute_of_day < self.core_end:
            return Regime.CORE_SESSION
        if minute_of_day < self.after_hours_end:
            return Regime.AFTER_HOURS
        return Regime.OVERNIGHT


# ---------------------------------------------------------------------------
# HOLIDAY CALENDAR
# ---------------------------------------------------------------------------

# NYSE full-day closures, 2026.
NYSE_HOLIDAYS_2026: Tuple[str, ...] = (
    "2026-01-01",  # New Year's Day
    "2026-01-19",  # Martin Luther King Jr. Day
    "2026-02-16",  # Presidents' Day
    "2026-04-03",  # Good Friday
    "2026-05-25",  # Memorial Day
    "2026-07-03",  # Independence Day (observed)
    "2026-09-07",  # Labor Day
    "2026-11-26",  # Thanksgiving Day
    "2026-12-25",  # Christmas Day
)


@dataclass(frozen=True)
class HolidayCalendar:
    """
    Static calendar of reference-market holidays (local dates).

    Immutable. with_holiday() returns a new calendar; the receiver is never
    modified, so a calendar can be shared across pairs and threads.
    """
    holidays: FrozenSet[date]

    @staticmethod
    def from_iso_dates(dates: Iterable[str]) -> "HolidayCalendar":
        """Build a calendar from YYYY-MM-DD strings. Raises ValueError on bad input."""
        return HolidayCalendar(holidays=frozenset(date.fromisoformat(d) for d in dates))

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays

    def with_holiday(self, day: date) -> "HolidayCalendar":
        return HolidayCalendar(holidays=self.holidays | {day})

    def iso_dates(self) -> Tuple[str, ...]:
        """Sorted YYYY-MM-DD strings. Used for config serialisation."""
        return tuple(d.isoformat() for d in sorted(self.holidays))


DEFAULT_CALENDAR: HolidayCalendar = HolidayCalendar.from_iso_dates(NYSE_HOLIDAYS_2026)
DEFAULT_WINDOWS:  SessionWindows  = SessionWindows()


# ---------------------------------------------------------------------------
# CLASSIFICATION
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RegimeClassification:
    """
    Output of classify().

    regime               : the single regime holding at the input instant.
    next_transition_time : UTC instant at which the classification next
                           changes. Always strictly after the input.
    """
    regime:               Regime
    next_transition_time: datetime


def _regime_at_local(
    local:    datetime,
    calendar: HolidayCalendar,
    windows:  SessionWindows,
) -> Regime:
    weekday = local.weekday()               # Monday == 0 ... Sunday == 6
    minute  = local.hour * 60 + local.minute

    if weekday >= 5:
        return Regime.WEEKEND
    if weekday == 4 and minute >= windows.after_hours_end:
        return Regime.WEEKEND
    if weekday == 0 and minute < windows.pre_market_start:
        return Regime.WEEKEND
    if calendar.is_holiday(local.date()):
        return Regime.HOLIDAY
    return windows.bucket(minute)


def _require_aware(timestamp: datetime) -> None:
    if not isinstance(timestamp, datetime):
        raise ValueError(f"timestamp must be a datetime: {timestamp!r}")
    if timestamp.tzinfo is None or timestamp.utcoffset() is None:
        raise ValueError(f"timestamp must be timezone-aware: {timestamp!r}")


def regime_at(
    timestamp: datetime,
    calendar:  HolidayCalendar = DEFAULT_CALENDAR,
    windows:   SessionWindows  = DEFAULT_WINDOWS,
) -> Regime:
    """Regime holding at a timezone-aware instant. No transition lookup."""
    _require_aware(timestamp)
    return _regime_at_local(timestamp.astimezone(_REFERENCE_TZ), calendar, windows)


def _day_boundaries_utc(day: date, windows: SessionWindows) -> List[datetime]:
    """Boundary instants of one local day, converted to UTC, ascending."""
    return [
        datetime.combine(day, time(minute // 60, minute % 60), tzinfo=_REFERENCE_TZ)
        .astimezone(timezone.utc)
        for minute in windows.boundaries()
    ]


def classify(
    timestamp: datetime,
    calendar:  HolidayCalendar = DEFAULT_CALENDAR,
    windows:   SessionWindows  = DEFAULT_WINDOWS,
) -> RegimeClassification:
    """
    Classify a timezone-aware instant into (Regime, next_transition_time).

    next_transition_time is read off the fixed boundary table: boundaries
    are visited in chronological order starting from the input's local day
    and the first one whose regime differs from the current regime wins.
    If the lookahead is exhausted (a pathological calendar), the first
    boundary strictly after the input is returned, so the result is always
    strictly later than the input.
    """
    _require_aware(timestamp)
    instant = timestamp.astimezone(timezone.utc)
    local   = instant.astimezone(_REFERENCE_TZ)
    current = _regime_at_local(local, calendar, windows)

    first_boundary = None
    for offset in range(_MAX_LOOKAHEAD_DAYS + 1):
        day = local.date() + timedelta(days=offset)
        for boundary in _day_boundaries_utc(day, windows):
            if boundary <= instant:
                continue
            if first_boundary is None:
                first_boundary = boundary
            if _regime_at_local(boundary.astimezone(_REFERENCE_TZ), calendar, windows) != current:
                return RegimeClassification(regime=current, next_transition_time=boundary)

    return RegimeClassification(regime=current, next_transition_time=first_boundary)


__all__ = [
    "REFERENCE_TIMEZONE",
    "Regime",
    "REGIME_RISK_ORDER",
    "REGIME_RISK_LEVEL",
    "SessionWindows",
    "HolidayCalendar",
    "NYSE_HOLIDAYS_2026",
    "DEFAULT_CALENDAR",
    "DEFAULT_WINDOWS",
    "RegimeClassification",
    "regime_at",
    "classify",
]
