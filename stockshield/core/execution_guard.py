# =============================================================================
# STOCKSHIELD v1.0.0 -- EXECUTION GUARD
# File:   stockshield/core/execution_guard.py
# =============================================================================
#
# PURPOSE
# -------
# Strict boundary adapter between the control plane and the venue.
# Translates a TradeAssessment into a TradeAdmission, or suppresses the
# admission entirely when the circuit breaker halts the pair.
#
# This module contains no risk logic. It has no knowledge of fee tables,
# breaker thresholds or regimes. All policy decisions are made by
# stockshield.core.control_plane.engine.assess_trade.
#
# WHAT IS NOT IN THIS FILE
# ------------------------
#   No fee arithmetic.
#   No threshold knowledge.
#   No logging.
#   No mutation of inputs.
#   No enforcement of the auction winner's priority (the venue does that;
#   the admission only reports it).
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from stockshield.core.control_plane.engine import TradeAssessment
from stockshield.core.regime import Regime


# =============================================================================
# SECTION 1 -- TRADE ADMISSION
# =============================================================================

@dataclass(frozen=True)
class TradeAdmission:
    """
    Immutable instruction for the venue: the trade may execute on these terms.

    Attributes:
        pair_id:           Pair the trade executes on.
        regime:            Regime the fee was quoted in.
        fee_bps:           Total fee to charge, bps.
        breaker_level:     0..3 (a halted pair never yields an admission).
        spread_multiplier: Effective spread widening for the level.
        depth_reduction:   Fraction of quoted depth to withhold.
        priority_holder:   Bidder holding the pair's priority right, if any.
        is_priority_trade: True when the trading bidder is that holder.
    """

    pair_id:           str
    regime:            Regime
    fee_bps:           Decimal
    breaker_level:     int
    spread_multiplier: Decimal
    depth_reduction:   Decimal
    priority_holder:   Optional[str]
    is_priority_trade: bool


# =============================================================================
# SECTION 2 -- BUILD TRADE ADMISSION
# =============================================================================

def build_trade_admission(
    pair_id:         str,
    assessment:      TradeAssessment,
    bidder_id:       Optional[str] = None,
    priority_holder: Optional[str] = None,
) -> Optional[TradeAdmission]:
    """
    Route an assessment to an admission.

    Returns:
        TradeAdmission if the trade is allowed (assessment.allowed is True).
        None           if the pair is halted.
    """
    if not assessment.allowed:
        return None

    effects = assessment.effects
    return TradeAdmission(
        pair_id=pair_id,
        regime=assessment.regime,
        fee_bps=assessment.fee_quote.total_fee_bps,
        breaker_level=assessment.breaker_state.level,
        spread_multiplier=effects.spread_multiplier,
        depth_reduction=effects.depth_reduction,
        priority_holder=priority_holder,
        is_priority_trade=bidder_id is not None and bidder_id == priority_holder,
    )


# =============================================================================
# SECTION 3 -- MODULE __all__
# =============================================================================

__all__ = [
    "TradeAdmission",
    "build_trade_admission",
]
