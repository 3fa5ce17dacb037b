# =============================================================================
# STOCKSHIELD v1.0.0 -- CONTROL PLANE
# File:   stockshield/core/control_plane/config.py
# =============================================================================
#
# SCOPE
# -----
# Immutable configuration passed to every control-plane constructor:
#
#   FeeSchedule         -- per-regime fee tables + global coefficients.
#   BreakerThresholds   -- circuit-breaker flag thresholds + optional dwell.
#   AuctionParameters   -- gap-auction constants.
#   ControlPlaneConfig  -- the bundle, plus holiday calendar and windows.
#
#   default_config()    -- bundle built from stockshield.utils.constants.
#   load_config(path)   -- JSON override file merged onto the defaults.
#
# Field-local validation lives here (V1..V4, same order as domain.py).
# Policy-level checks (table monotonicity, threshold sanity) live in
# stockshield.governance.policy_validator and are enforced by the facade.
#
# PROHIBITED ACTIONS CONFIRMED ABSENT
# ------------------------------------
#   No logging
#   No module-level mutable state
#   No network IO (load_config reads one local file)
# =============================================================================

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, replace
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Union

from stockshield.core.regime import (
    DEFAULT_CALENDAR,
    DEFAULT_WINDOWS,
    HolidayCalendar,
    Regime,
    SessionWindows,
)
from stockshield.utils.constants import (
    BASE_FEE_BPS,
    BREAKER_MIN_DWELL_SECONDS,
    COMMIT_PHASE_SECONDS,
    DECAY_RATE_PER_MINUTE,
    FEE_ALPHA,
    FEE_BETA,
    FEE_DELTA,
    FEE_GAMMA,
    HIGH_IMBALANCE_THRESHOLD,
    HIGH_TOXICITY_THRESHOLD,
    LP_CAPTURE_RATE,
    MAX_FEE_BPS,
    MIN_GAP_THRESHOLD,
    ORACLE_LIVE_REGIMES,
    ORACLE_STALENESS_SECONDS,
    PRICE_DEVIATION_THRESHOLD,
    REGIME_MULTIPLIER,
    REVEAL_PHASE_SECONDS,
)

from .exceptions import (
    ShieldNumericalError,
    ShieldParameterConsistencyError,
    ShieldValidationError,
)


# =============================================================================
# SECTION 1 -- INTERNAL VALIDATION HELPERS
# =============================================================================

def _check_decimal(field_name: str, value: Any) -> None:
    """V1 + V3: finite Decimal."""
    if not isinstance(value, Decimal):
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a decimal.Decimal",
        )
    if not value.is_finite():
        raise ShieldNumericalError(field_name=field_name, value=value)


def _check_float(field_name: str, value: Any) -> None:
    """V1 + V3: finite real number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a real number",
        )
    if not math.isfinite(value):
        raise ShieldNumericalError(field_name=field_name, value=value)


def _check_int(field_name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be an int",
        )
    if value < minimum:
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be >= " + str(minimum),
        )


def _check_regime_table(field_name: str, table: Any) -> None:
    """V3: every Regime has exactly one finite, non-negative Decimal entry."""
    if not isinstance(table, Mapping):
        raise ShieldValidationError(
            field_name=field_name,
            value=table,
            constraint="must be a mapping keyed by Regime",
        )
    if set(table.keys()) != set(Regime):
        raise ShieldValidationError(
            field_name=field_name,
            value=sorted(str(k) for k in table.keys()),
            constraint="must have exactly one entry per Regime member",
        )
    for regime in Regime:
        entry_name = field_name + "[" + regime.value + "]"
        _check_decimal(entry_name, table[regime])
        if table[regime] < 0:
            raise ShieldValidationError(
                field_name=entry_name,
                value=table[regime],
                constraint="must be >= 0",
            )


# =============================================================================
# SECTION 2 -- FEE SCHEDULE
# =============================================================================

@dataclass(frozen=True)
class FeeSchedule:
    """
    Per-regime fee tables and the global ALPHA / BETA / GAMMA / DELTA
    coefficients. Tables are frozen into read-only mappings on construction.
    """

    base_fee_bps:      Mapping[Regime, Decimal] = field(default_factory=lambda: dict(BASE_FEE_BPS))
    regime_multiplier: Mapping[Regime, Decimal] = field(default_factory=lambda: dict(REGIME_MULTIPLIER))
    cap_bps:           Mapping[Regime, Decimal] = field(default_factory=lambda: dict(MAX_FEE_BPS))
    alpha:             Decimal = FEE_ALPHA
    beta:              Decimal = FEE_BETA
    gamma:             Decimal = FEE_GAMMA
    delta:             Decimal = FEE_DELTA

    def __post_init__(self) -> None:
        # --- V3 / V1 / V2: tables ---
        for fname in ("base_fee_bps", "regime_multiplier", "cap_bps"):
            table = getattr(self, fname)
            _check_regime_table(fname, table)
            object.__setattr__(self, fname, MappingProxyType(dict(table)))

        # --- V1 / V2: coefficients ---
        for fname in ("alpha", "beta", "gamma", "delta"):
            value = getattr(self, fname)
            _check_decimal(fname, value)
            if value < 0:
                raise ShieldValidationError(
                    field_name=fname,
                    value=value,
                    constraint="must be >= 0",
                )

        # --- V4: base fee never above its cap ---
        for regime in Regime:
            if self.base_fee_bps[regime] > self.cap_bps[regime]:
                raise ShieldParameterConsistencyError(
                    field_a="base_fee_bps[" + regime.value + "]",
                    value_a=self.base_fee_bps[regime],
                    field_b="cap_bps[" + regime.value + "]",
                    value_b=self.cap_bps[regime],
                    invariant_description="base fee must not exceed the regime cap",
                )


# =============================================================================
# SECTION 3 -- BREAKER THRESHOLDS
# =============================================================================

@dataclass(frozen=True)
class BreakerThresholds:
    """
    Flag thresholds for the circuit breaker.

    min_dwell_seconds = 0 means pure recompute. When > 0, a pair at level
    >= 3 is held there until the dwell elapses.
    """

    oracle_staleness_seconds:  int                = ORACLE_STALENESS_SECONDS
    price_deviation_threshold: float              = PRICE_DEVIATION_THRESHOLD
    high_toxicity_threshold:   float              = HIGH_TOXICITY_THRESHOLD
    high_imbalance_threshold:  float              = HIGH_IMBALANCE_THRESHOLD
    oracle_live_regimes:       FrozenSet[Regime]  = ORACLE_LIVE_REGIMES
    min_dwell_seconds:         int                = BREAKER_MIN_DWELL_SECONDS

    def __post_init__(self) -> None:
        _check_int("oracle_staleness_seconds", self.oracle_staleness_seconds, 1)
        _check_int("min_dwell_seconds", self.min_dwell_seconds, 0)

        for fname in (
            "price_deviation_threshold",
            "high_toxicity_threshold",
            "high_imbalance_threshold",
        ):
            value = getattr(self, fname)
            _check_float(fname, value)
            if not (0.0 < value <= 1.0):
                raise ShieldValidationError(
                    field_name=fname,
                    value=value,
                    constraint="must be in (0.0, 1.0]",
                )

        if not isinstance(self.oracle_live_regimes, frozenset) or not all(
            isinstance(r, Regime) for r in self.oracle_live_regimes
        ):
            raise ShieldValidationError(
                field_name="oracle_live_regimes",
                value=self.oracle_live_regimes,
                constraint="must be a frozenset of Regime members",
            )


# =============================================================================
# SECTION 4 -- AUCTION PARAMETERS
# =============================================================================

@dataclass(frozen=True)
class AuctionParameters:
    """Gap-auction protocol constants. Not negotiable per auction."""

    min_gap_threshold:     Decimal = MIN_GAP_THRESHOLD
    lp_capture_rate:       Decimal = LP_CAPTURE_RATE
    decay_rate_per_minute: Decimal = DECAY_RATE_PER_MINUTE
    commit_phase_seconds:  int     = COMMIT_PHASE_SECONDS
    reveal_phase_seconds:  int     = REVEAL_PHASE_SECONDS

    def __post_init__(self) -> None:
        _check_decimal("min_gap_threshold", self.min_gap_threshold)
        if self.min_gap_threshold <= 0:
            raise ShieldValidationError(
                field_name="min_gap_threshold",
                value=self.min_gap_threshold,
                constraint="must be > 0",
            )

        _check_decimal("lp_capture_rate", self.lp_capture_rate)
        if not (0 < self.lp_capture_rate <= 1):
            raise ShieldValidationError(
                field_name="lp_capture_rate",
                value=self.lp_capture_rate,
                constraint="must be in (0, 1]",
            )

        _check_decimal("decay_rate_per_minute", self.decay_rate_per_minute)
        if self.decay_rate_per_minute < 0:
            raise ShieldValidationError(
                field_name="decay_rate_per_minute",
                value=self.decay_rate_per_minute,
                constraint="must be >= 0",
            )

        _check_int("commit_phase_seconds", self.commit_phase_seconds, 1)
        _check_int("reveal_phase_seconds", self.reveal_phase_seconds, 1)


# =============================================================================
# SECTION 5 -- CONTROL PLANE CONFIG
# =============================================================================

@dataclass(frozen=True)
class ControlPlaneConfig:
    """Top-level immutable configuration bundle."""

    fees:     FeeSchedule       = field(default_factory=FeeSchedule)
    breaker:  BreakerThresholds = field(default_factory=BreakerThresholds)
    auction:  AuctionParameters = field(default_factory=AuctionParameters)
    calendar: HolidayCalendar   = DEFAULT_CALENDAR
    windows:  SessionWindows    = DEFAULT_WINDOWS

    def __post_init__(self) -> None:
        for fname, expected in (
            ("fees",     FeeSchedule),
            ("breaker",  BreakerThresholds),
            ("auction",  AuctionParameters),
            ("calendar", HolidayCalendar),
            ("windows",  SessionWindows),
        ):
            value = getattr(self, fname)
            if not isinstance(value, expected):
                raise ShieldValidationError(
                    field_name=fname,
                    value=value,
                    constraint="must be a " + expected.__name__ + " instance",
                )


def default_config() -> ControlPlaneConfig:
    """Configuration built entirely from stockshield.utils.constants."""
    return ControlPlaneConfig()


# =============================================================================
# SECTION 6 -- JSON LOADING
# =============================================================================
#
# File layout (every section and key optional; omitted keys keep defaults):
#
#   {
#     "fees":     {"base_fee_bps": {"CORE_SESSION": 5, ...}, "alpha": 0.5, ...},
#     "breaker":  {"oracle_staleness_seconds": 60, "oracle_live_regimes": [...], ...},
#     "auction":  {"min_gap_threshold": 0.005, "commit_phase_seconds": 30, ...},
#     "holidays": ["2026-01-01", ...],
#     "windows":  {"pre_market_start": 240, ...}
#   }
#
# JSON numbers are parsed straight into Decimal (no float round trip).

_FEE_TABLE_KEYS = ("base_fee_bps", "regime_multiplier", "cap_bps")
_TOP_LEVEL_KEYS = frozenset({"fees", "breaker", "auction", "holidays", "windows"})


def _reject_unknown(section: str, raw: Mapping[str, Any], allowed) -> None:
    unknown = sorted(set(raw) - set(allowed))
    if unknown:
        raise ShieldValidationError(
            field_name=section,
            value=unknown,
            constraint="has unknown configuration keys",
        )


def _as_decimal(field_name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ShieldValidationError(field_name, value, "must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ShieldValidationError(field_name, value, "must be a number")


def _as_int(field_name: str, value: Any) -> int:
    if isinstance(value, Decimal) and value == value.to_integral_value():
        return int(value)
    return value


def _regime_table(field_name: str, raw: Any) -> Dict[Regime, Decimal]:
    if not isinstance(raw, Mapping):
        raise ShieldValidationError(field_name, raw, "must be an object keyed by regime name")
    table: Dict[Regime, Decimal] = {}
    for key, value in raw.items():
        try:
            regime = Regime(key)
        except ValueError:
            raise ShieldValidationError(field_name, key, "must be a Regime name")
        table[regime] = _as_decimal(field_name + "[" + key + "]", value)
    return table


def _merge_fees(base: FeeSchedule, raw: Mapping[str, Any]) -> FeeSchedule:
    _reject_unknown("fees", raw, _FEE_TABLE_KEYS + ("alpha", "beta", "gamma", "delta"))
    changes: Dict[str, Any] = {}
    for key in _FEE_TABLE_KEYS:
        if key in raw:
            merged = dict(getattr(base, key))
            merged.update(_regime_table(key, raw[key]))
            changes[key] = merged
    for key in ("alpha", "beta", "gamma", "delta"):
        if key in raw:
            changes[key] = _as_decimal(key, raw[key])
    return replace(base, **changes)


def _merge_breaker(base: BreakerThresholds, raw: Mapping[str, Any]) -> BreakerThresholds:
    _reject_unknown("breaker", raw, (
        "oracle_staleness_seconds",
        "price_deviation_threshold",
        "high_toxicity_threshold",
        "high_imbalance_threshold",
        "oracle_live_regimes",
        "min_dwell_seconds",
    ))
    changes: Dict[str, Any] = {}
    for key in ("oracle_staleness_seconds", "min_dwell_seconds"):
        if key in raw:
            changes[key] = _as_int(key, raw[key])
    for key in ("price_deviation_threshold", "high_toxicity_threshold", "high_imbalance_threshold"):
        if key in raw:
            changes[key] = float(_as_decimal(key, raw[key]))
    if "oracle_live_regimes" in raw:
        try:
            changes["oracle_live_regimes"] = frozenset(Regime(r) for r in raw["oracle_live_regimes"])
        except (TypeError, ValueError):
            raise ShieldValidationError(
                "oracle_live_regimes", raw["oracle_live_regimes"], "must be a list of Regime names"
            )
    return replace(base, **changes)


def _merge_auction(base: AuctionParameters, raw: Mapping[str, Any]) -> AuctionParameters:
    _reject_unknown("auction", raw, (
        "min_gap_threshold",
        "lp_capture_rate",
        "decay_rate_per_minute",
        "commit_phase_seconds",
        "reveal_phase_seconds",
    ))
    changes: Dict[str, Any] = {}
    for key in ("min_gap_threshold", "lp_capture_rate", "decay_rate_per_minute"):
        if key in raw:
            changes[key] = _as_decimal(key, raw[key])
    for key in ("commit_phase_seconds", "reveal_phase_seconds"):
        if key in raw:
            changes[key] = _as_int(key, raw[key])
    return replace(base, **changes)


def _merge_windows(base: SessionWindows, raw: Mapping[str, Any]) -> SessionWindows:
    allowed = ("pre_market_start", "soft_open_start", "core_start", "core_end", "after_hours_end")
    _reject_unknown("windows", raw, allowed)
    changes = {key: _as_int(key, raw[key]) for key in allowed if key in raw}
    try:
        return replace(base, **changes)
    except ValueError as exc:
        raise ShieldValidationError("windows", changes, str(exc))


def config_from_mapping(raw: Mapping[str, Any]) -> ControlPlaneConfig:
    """Merge a parsed override document onto default_config()."""
    if not isinstance(raw, Mapping):
        raise ShieldValidationError("config", raw, "must be a JSON object")
    _reject_unknown("config", raw, _TOP_LEVEL_KEYS)

    base = default_config()
    calendar = base.calendar
    if "holidays" in raw:
        try:
            calendar = HolidayCalendar.from_iso_dates(raw["holidays"])
        except (TypeError, ValueError):
            raise ShieldValidationError("holidays", raw["holidays"], "must be a list of YYYY-MM-DD dates")

    return ControlPlaneConfig(
        fees=_merge_fees(base.fees, raw.get("fees", {})),
        breaker=_merge_breaker(base.breaker, raw.get("breaker", {})),
        auction=_merge_auction(base.auction, raw.get("auction", {})),
        calendar=calendar,
        windows=_merge_windows(base.windows, raw.get("windows", {})),
    )


def load_config(path: Union[str, Path]) -> ControlPlaneConfig:
    """
    Read a JSON override file and return the merged configuration.

    Raises:
        OSError                -- file cannot be read.
        json.JSONDecodeError   -- file is not valid JSON.
        ShieldError subclasses -- any value fails validation.
    """
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh, parse_float=Decimal, parse_int=Decimal)
    return config_from_mapping(raw)


__all__ = [
    "FeeSchedule",
    "BreakerThresholds",
    "AuctionParameters",
    "ControlPlaneConfig",
    "default_config",
    "config_from_mapping",
    "load_config",
]
