# =============================================================================
# STOCKSHIELD v1.0.0 -- CONTROL PLANE
# File:   stockshield/core/control_plane/domain.py
# =============================================================================
#
# SCOPE
# -----
# Frozen domain dataclasses shared by the fee engine, the circuit breaker,
# the signal store and the venue-facing facade:
#
#   RiskSignals           -- per-pair signal snapshot (read-only input).
#   PoolLiquidity         -- per-pair TVL and LP share (gap valuation input).
#   ExecutedTrade         -- adapter notification after a fill.
#   FeeQuote              -- output of the dynamic fee engine.
#   CircuitBreakerState   -- output of the circuit breaker.
#
# No fee arithmetic. No flag logic. No verdict logic.
#
# VALIDATION PHILOSOPHY
# ---------------------
# Validation is fail-fast and layered, in this fixed order per dataclass:
#
#   V1  Finiteness   -- every numeric field. Raises ShieldNumericalError.
#   V2  Sign / Range -- field-local constraints. Raises ShieldValidationError.
#   V3  Enum / Type  -- enum membership, tz-aware datetimes.
#                       Raises ShieldValidationError.
#   V4  Cross-field  -- relational invariants. Raises
#                       ShieldParameterConsistencyError.
#
# No field is clipped, clamped or defaulted silently. Invalid input is
# rejected at the boundary before any state changes.
#
# INVARIANTS ENFORCED
# -------------------
# RiskSignals
#   INV-RS-01  volatility in [0, MAX_VOLATILITY].
#   INV-RS-02  toxicity_score in [0, 1].
#   INV-RS-03  inventory_imbalance in [-1, 1].
#   INV-RS-04  last_oracle_update_time is timezone-aware.
#   INV-RS-05  last_observed_pool_price > 0, last_observed_oracle_price > 0.
#
# PoolLiquidity
#   INV-PL-01  pool_tvl > 0.
#   INV-PL-02  lp_pool_share in (0, 1].
#
# CircuitBreakerState
#   INV-CB-01  level is an int in [0, BREAKER_MAX_LEVEL].
#   INV-CB-02  active_flags is a frozenset of BreakerFlag members.
#   INV-CB-03  entered_at is timezone-aware.
#
# PROHIBITED ACTIONS CONFIRMED ABSENT
# ------------------------------------
#   No logging
#   No datetime.now() / time.time()
#   No random / secrets / uuid
#   No file IO / network IO
#   No silent coercion of any field
# =============================================================================

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, FrozenSet

from stockshield.core.regime import Regime
from stockshield.utils.constants import BREAKER_MAX_LEVEL, MAX_VOLATILITY

from .exceptions import (
    ShieldNumericalError,
    ShieldParameterConsistencyError,
    ShieldValidationError,
)


# =============================================================================
# SECTION 1 -- ENUMERATIONS
# =============================================================================

class BreakerFlag(str, Enum):
    """
    Independent boolean risk conditions. The circuit-breaker level is derived
    from the set of active flags.

    ORACLE_STALE     -- reference price older than the staleness threshold
                        while the reference market is open. Forces level 4.
    PRICE_DEVIATION  -- pool price deviates from the oracle price.
    HIGH_TOXICITY    -- order-flow toxicity above threshold.
    HIGH_IMBALANCE   -- LP inventory imbalance above threshold.
    """
    ORACLE_STALE    = "ORACLE_STALE"
    PRICE_DEVIATION = "PRICE_DEVIATION"
    HIGH_TOXICITY   = "HIGH_TOXICITY"
    HIGH_IMBALANCE  = "HIGH_IMBALANCE"


class TradeVerdict(str, Enum):
    """
    Admission decision for one trade attempt.

    ADMIT        -- trade may proceed at the quoted fee; the venue applies
                    the breaker effects for the returned level.
    REJECT_HALT  -- circuit breaker at level 4. Not an exception: the venue
                    refuses the trade and retries after re-evaluation.
    """
    ADMIT       = "ADMIT"
    REJECT_HALT = "REJECT_HALT"


# =============================================================================
# SECTION 2 -- INTERNAL VALIDATION HELPERS
# =============================================================================

def _check_numeric(field_name: str, value: Any) -> None:
    """V3 gate for numeric fields: real number, not bool."""
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a real number",
        )


def _check_finite(field_name: str, value: Any) -> None:
    """
    V1 gate: raise ShieldNumericalError if value is not finite.

    Called before any range check on the field.
    """
    _check_numeric(field_name, value)
    if not math.isfinite(value):
        raise ShieldNumericalError(field_name=field_name, value=value)


def _check_positive(field_name: str, value: Any) -> None:
    """V2: value must be strictly > 0."""
    if value <= 0:
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be > 0",
        )


def _check_range(field_name: str, value: Any, low: float, high: float) -> None:
    """V2: value must be in [low, high]."""
    if not (low <= value <= high):
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be in [" + repr(low) + ", " + repr(high) + "]",
        )


def _check_aware_datetime(field_name: str, value: Any) -> None:
    """V3: value must be a timezone-aware datetime."""
    if not isinstance(value, datetime):
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a datetime instance",
        )
    if value.tzinfo is None or value.utcoffset() is None:
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be timezone-aware",
        )


def _check_non_empty_ascii_string(field_name: str, value: Any) -> None:
    """V3: non-empty ASCII string (pair ids, bidder ids, salts)."""
    if not isinstance(value, str) or not value:
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a non-empty string",
        )
    try:
        value.encode("ascii")
    except UnicodeEncodeError:
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must contain only ASCII characters",
        )


def _check_regime(field_name: str, value: Any) -> None:
    """V3: value must be a Regime member."""
    if not isinstance(value, Regime):
        raise ShieldValidationError(
            field_name=field_name,
            value=value,
            constraint="must be a valid Regime enum member",
        )


# =============================================================================
# SECTION 3 -- RISK SIGNALS
# =============================================================================

@dataclass(frozen=True)
class RiskSignals:
    """
    Per-pair snapshot of the signals consumed by one evaluation.

    Owned by the venue adapter through RiskSignalStore. The control plane
    never mutates a snapshot; it only returns recommended next values.

    Invariants: see INV-RS-* in the module header.
    """

    volatility:                 float
    """Annualised realized volatility. Finite, in [0, MAX_VOLATILITY]."""

    toxicity_score:             float
    """VPIN-style order-flow toxicity. Finite, in [0, 1]."""

    inventory_imbalance:        float
    """Signed LP inventory imbalance. Finite, in [-1, 1]."""

    last_oracle_update_time:    datetime
    """Timezone-aware instant of the last oracle print."""

    last_observed_pool_price:   float
    """Most recent pool price. Finite, > 0."""

    last_observed_oracle_price: float
    """Most recent oracle price. Finite, > 0."""

    def __post_init__(self) -> None:
        # --- V1 + V2: signal fields ---
        _check_finite("volatility", self.volatility)
        _check_range("volatility", self.volatility, 0.0, MAX_VOLATILITY)

        _check_finite("toxicity_score", self.toxicity_score)
        _check_range("toxicity_score", self.toxicity_score, 0.0, 1.0)

        _check_finite("inventory_imbalance", self.inventory_imbalance)
        _check_range("inventory_imbalance", self.inventory_imbalance, -1.0, 1.0)

        # --- V3: oracle timestamp ---
        _check_aware_datetime("last_oracle_update_time", self.last_oracle_update_time)

        # --- V1 + V2: prices ---
        for fname, fvalue in (
            ("last_observed_pool_price",   self.last_observed_pool_price),
            ("last_observed_oracle_price", self.last_observed_oracle_price),
        ):
            _check_finite(fname, fvalue)
            _check_positive(fname, fvalue)

    def price_deviation(self) -> float:
        """
        |pool - oracle| / oracle.

        Prices may arrive as float or Decimal and a snapshot can hold one of
        each, so both sides go through Decimal(str(x)) first.
        """
        pool = Decimal(str(self.last_observed_pool_price))
        oracle = Decimal(str(self.last_observed_oracle_price))
        return float(abs(pool - oracle) / oracle)


# =============================================================================
# SECTION 4 -- POOL LIQUIDITY
# =============================================================================

@dataclass(frozen=True)
class PoolLiquidity:
    """
    Liquidity context used to value a price gap.

    gap_value = |gap| * pool_tvl * lp_pool_share
    """

    pool_tvl:      float
    """Total value locked in the pool, in quote currency. Finite, > 0."""

    lp_pool_share: float
    """Fraction of TVL exposed to the gap. Finite, in (0, 1]."""

    def __post_init__(self) -> None:
        _check_finite("pool_tvl", self.pool_tvl)
        _check_positive("pool_tvl", self.pool_tvl)

        _check_finite("lp_pool_share", self.lp_pool_share)
        if not (0 < self.lp_pool_share <= 1):
            raise ShieldValidationError(
                field_name="lp_pool_share",
                value=self.lp_pool_share,
                constraint="must be in (0.0, 1.0]",
            )


# =============================================================================
# SECTION 5 -- EXECUTED TRADE
# =============================================================================

@dataclass(frozen=True)
class ExecutedTrade:
    """
    Venue notification for one executed trade.

    Feeds the toxicity and volatility estimators. inventory_imbalance_after
    is computed by the venue (liquidity math is not part of this package).
    """

    price:                     float
    notional_usd:              float
    is_buy:                    bool
    timestamp:                 datetime
    inventory_imbalance_after: float

    def __post_init__(self) -> None:
        _check_finite("price", self.price)
        _check_positive("price", self.price)

        _check_finite("notional_usd", self.notional_usd)
        _check_positive("notional_usd", self.notional_usd)

        if not isinstance(self.is_buy, bool):
            raise ShieldValidationError(
                field_name="is_buy",
                value=self.is_buy,
                constraint="must be a bool",
            )

        _check_aware_datetime("timestamp", self.timestamp)

        _check_finite("inventory_imbalance_after", self.inventory_imbalance_after)
        _check_range("inventory_imbalance_after", self.inventory_imbalance_after, -1.0, 1.0)


# =============================================================================
# SECTION 6 -- FEE QUOTE
# =============================================================================

@dataclass(frozen=True)
class FeeQuote:
    """
    Itemised output of the dynamic fee engine. All amounts in bps (Decimal).

    total_fee_bps is the rounded and capped sum. The component fields are
    unrounded so callers can audit the arithmetic.
    """

    regime:                   Regime
    base_fee_bps:             Decimal
    volatility_component_bps: Decimal
    toxicity_component_bps:   Decimal
    regime_component_bps:     Decimal
    inventory_component_bps:  Decimal
    total_fee_bps:            Decimal
    cap_bps:                  Decimal

    def __post_init__(self) -> None:
        _check_regime("regime", self.regime)
        if self.total_fee_bps > self.cap_bps:
            raise ShieldParameterConsistencyError(
                field_a="total_fee_bps",
                value_a=self.total_fee_bps,
                field_b="cap_bps",
                value_b=self.cap_bps,
                invariant_description="total_fee_bps must not exceed cap_bps",
            )

    @property
    def is_capped(self) -> bool:
        return self.total_fee_bps == self.cap_bps


# =============================================================================
# SECTION 7 -- CIRCUIT BREAKER STATE
# =============================================================================

@dataclass(frozen=True)
class CircuitBreakerState:
    """
    Per-pair circuit-breaker state.

    Created at pair registration with level 0 and no flags. Replaced, never
    mutated, on every evaluation.
    """

    level:        int
    """Severity 0 (Normal) .. 4 (Halt)."""

    active_flags: FrozenSet[BreakerFlag]
    """Flags active at the last evaluation."""

    entered_at:   datetime
    """Instant the pair entered the current level."""

    def __post_init__(self) -> None:
        if isinstance(self.level, bool) or not isinstance(self.level, int):
            raise ShieldValidationError(
                field_name="level",
                value=self.level,
                constraint="must be an int",
            )
        if not (0 <= self.level <= BREAKER_MAX_LEVEL):
            raise ShieldValidationError(
                field_name="level",
                value=self.level,
                constraint="must be in [0, " + str(BREAKER_MAX_LEVEL) + "]",
            )
        if not isinstance(self.active_flags, frozenset) or not all(
            isinstance(flag, BreakerFlag) for flag in self.active_flags
        ):
            raise ShieldValidationError(
                field_name="active_flags",
                value=self.active_flags,
                constraint="must be a frozenset of BreakerFlag members",
            )
        _check_aware_datetime("entered_at", self.entered_at)

    @property
    def is_halted(self) -> bool:
        return self.level >= BREAKER_MAX_LEVEL


# =============================================================================
# MODULE __all__
# =============================================================================

__all__ = [
    "BreakerFlag",
    "TradeVerdict",
    "RiskSignals",
    "PoolLiquidity",
    "ExecutedTrade",
    "FeeQuote",
    "CircuitBreakerState",
]
