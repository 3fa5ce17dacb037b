# =============================================================================
# STOCKSHIELD v1.0.0 -- CONTROL PLANE
# File:   stockshield/core/control_plane/circuit_breaker.py
# =============================================================================
#
# SCOPE
# -----
# Graduated circuit breaker. Levels 0 (Normal) .. 4 (Halt), recomputed from
# the active flag set on every evaluation:
#
#   level = 4                    if ORACLE_STALE is active
#         = min(len(flags), 4)   otherwise
#
# Flags (strict '>' comparisons):
#   ORACLE_STALE     oracle age > oracle_staleness_seconds, only while the
#                    regime is in oracle_live_regimes
#   PRICE_DEVIATION  |pool - oracle| / oracle > price_deviation_threshold
#   HIGH_TOXICITY    toxicity_score > high_toxicity_threshold
#   HIGH_IMBALANCE   |inventory_imbalance| > high_imbalance_threshold
#
# Recompute, not latch. The optional min_dwell_seconds is the only memory:
# when > 0, a pair at level >= 3 cannot step down before the dwell elapses.
#
# The breaker does not execute a halt. Admission is the caller's job
# (engine.assess_trade / execution_guard.admit_trade).
#
# DETERMINISM CONSTRAINTS
# -----------------------
# DET-01  The evaluation instant is passed in. No clock reads.
# DET-02  No side effects. CircuitBreakerState is frozen.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import FrozenSet, Optional, Set

from stockshield.core.regime import Regime
from stockshield.utils.constants import (
    BREAKER_DEPTH_REDUCTION,
    BREAKER_LABEL,
    BREAKER_MAX_LEVEL,
    BREAKER_SPREAD_MULTIPLIER,
)

from .config import BreakerThresholds
from .domain import BreakerFlag, CircuitBreakerState, RiskSignals

_DWELL_LEVEL_FLOOR: int = 3


# =============================================================================
# SECTION 1 -- BREAKER EFFECTS
# =============================================================================

@dataclass(frozen=True)
class BreakerEffects:
    """
    Venue-side effects for one breaker level.

    spread_multiplier is None at the halt level: no quote is made.
    """
    level:             int
    label:             str
    spread_multiplier: Optional[Decimal]
    depth_reduction:   Decimal
    trading_allowed:   bool


BREAKER_EFFECTS = {
    level: BreakerEffects(
        level=level,
        label=BREAKER_LABEL[level],
        spread_multiplier=BREAKER_SPREAD_MULTIPLIER[level],
        depth_reduction=BREAKER_DEPTH_REDUCTION[level],
        trading_allowed=level < BREAKER_MAX_LEVEL,
    )
    for level in range(BREAKER_MAX_LEVEL + 1)
}


def breaker_effects(level: int) -> BreakerEffects:
    return BREAKER_EFFECTS[level]


# =============================================================================
# SECTION 2 -- FLAGS AND LEVEL
# =============================================================================

def compute_flags(
    signals:    RiskSignals,
    now:        datetime,
    regime:     Regime,
    thresholds: BreakerThresholds,
) -> FrozenSet[BreakerFlag]:
    """Active flag set for one evaluation."""
    flags: Set[BreakerFlag] = set()

    if regime in thresholds.oracle_live_regimes:
        age_seconds = (now - signals.last_oracle_update_time).total_seconds()
        if age_seconds > thresholds.oracle_staleness_seconds:
            flags.add(BreakerFlag.ORACLE_STALE)

    if signals.price_deviation() > thresholds.price_deviation_threshold:
        flags.add(BreakerFlag.PRICE_DEVIATION)

    if signals.toxicity_score > thresholds.high_toxicity_threshold:
        flags.add(BreakerFlag.HIGH_TOXICITY)

    if abs(signals.inventory_imbalance) > thresholds.high_imbalance_threshold:
        flags.add(BreakerFlag.HIGH_IMBALANCE)

    return frozenset(flags)


def level_for_flags(flags: FrozenSet[BreakerFlag]) -> int:
    if BreakerFlag.ORACLE_STALE in flags:
        return BREAKER_MAX_LEVEL
    return min(len(flags), BREAKER_MAX_LEVEL)


def initial_breaker_state(now: datetime) -> CircuitBreakerState:
    """State assigned at pair registration."""
    return CircuitBreakerState(level=0, active_flags=frozenset(), entered_at=now)


# =============================================================================
# SECTION 3 -- EVALUATION
# =============================================================================

def evaluate_circuit_breaker(
    signals:    RiskSignals,
    now:        datetime,
    regime:     Regime,
    thresholds: BreakerThresholds,
    previous:   Optional[CircuitBreakerState] = None,
) -> CircuitBreakerState:
    """
    Recompute the breaker state for one pair.

    entered_at is carried over from previous when the level is unchanged,
    otherwise it is set to now. With min_dwell_seconds > 0, a computed level
    below a previous level >= 3 is held at the previous level until the
    dwell has elapsed since previous.entered_at.
    """
    flags = compute_flags(signals, now, regime, thresholds)
    level = level_for_flags(flags)

    if previous is None:
        return CircuitBreakerState(level=level, active_flags=flags, entered_at=now)

    if (
        thresholds.min_dwell_seconds > 0
        and previous.level >= _DWELL_LEVEL_FLOOR
        and level < previous.level
        and (now - previous.entered_at).total_seconds() < thresholds.min_dwell_seconds
    ):
        level = previous.level

    entered_at = previous.entered_at if level == previous.level else now
    return CircuitBreakerState(level=level, active_flags=flags, entered_at=entered_at)


__all__ = [
    "BreakerEffects",
    "BREAKER_EFFECTS",
    "breaker_effects",
    "compute_flags",
    "level_for_flags",
    "initial_breaker_state",
    "evaluate_circuit_breaker",
]
