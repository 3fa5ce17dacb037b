# =============================================================================
# STOCKSHIELD v1.0.0 -- CONTROL PLANE
# File:   stockshield/core/control_plane/engine.py
# =============================================================================
#
# SCOPE
# -----
# Per-trade orchestration. One call produces the single, agreed view of
# risk for a trade attempt:
#
#   1. classify(now)                          -> regime, next transition
#   2. quote_signals(regime, signals)         -> FeeQuote
#   3. evaluate_circuit_breaker(...)          -> CircuitBreakerState
#   4. verdict = REJECT_HALT if level 4 else ADMIT
#
# No branching beyond the verdict. All policy lives in regime.py, fees.py
# and circuit_breaker.py. Pure, deterministic, stateless.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from stockshield.core.regime import Regime, classify

from .circuit_breaker import BreakerEffects, breaker_effects, evaluate_circuit_breaker
from .config import ControlPlaneConfig
from .domain import (
    CircuitBreakerState,
    FeeQuote,
    RiskSignals,
    TradeVerdict,
    _check_aware_datetime,
)
from .fees import quote_signals


@dataclass(frozen=True)
class TradeAssessment:
    """
    Immutable output of assess_trade().

    Attributes:
        regime:               Regime at the evaluation instant.
        next_transition_time: UTC instant the regime next changes.
        fee_quote:            Itemised fee for the trade.
        breaker_state:        Recomputed breaker state (store it back).
        effects:              Venue effects for breaker_state.level.
        verdict:              ADMIT or REJECT_HALT.
        evaluated_at:         Authoritative instant the assessment was made.
    """
    regime:               Regime
    next_transition_time: datetime
    fee_quote:            FeeQuote
    breaker_state:        CircuitBreakerState
    effects:              BreakerEffects
    verdict:              TradeVerdict
    evaluated_at:         datetime

    @property
    def allowed(self) -> bool:
        return self.verdict is TradeVerdict.ADMIT


def validate_timestamp(value: Any, field_name: str = "timestamp") -> datetime:
    """
    Boundary check for wall-clock inputs. Returns the value unchanged.

    Raises:
        ShieldValidationError -- not a datetime, or naive.
    """
    _check_aware_datetime(field_name, value)
    return value


def assess_trade(
    signals:  RiskSignals,
    now:      datetime,
    config:   ControlPlaneConfig,
    previous: Optional[CircuitBreakerState] = None,
) -> TradeAssessment:
    """
    Orchestrate regime, fee and breaker evaluation for one trade attempt.

    Delegates entirely to the regime, fee and breaker modules.
    """
    validate_timestamp(now, "now")
    classification = classify(now, config.calendar, config.windows)
    fee_quote = quote_signals(classification.regime, signals, config.fees)
    breaker = evaluate_circuit_breaker(
        signals, now, classification.regime, config.breaker, previous
    )
    verdict = TradeVerdict.REJECT_HALT if breaker.is_halted else TradeVerdict.ADMIT

    return TradeAssessment(
        regime=classification.regime,
        next_transition_time=classification.next_transition_time,
        fee_quote=fee_quote,
        breaker_state=breaker,
        effects=breaker_effects(breaker.level),
        verdict=verdict,
        evaluated_at=now,
    )


__all__ = [
    "TradeAssessment",
    "validate_timestamp",
    "assess_trade",
]
