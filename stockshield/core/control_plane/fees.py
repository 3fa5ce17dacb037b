# =============================================================================
# STOCKSHIELD v1.0.0 -- CONTROL PLANE
# File:   stockshield/core/control_plane/fees.py
# =============================================================================
#
# SCOPE
# -----
# Dynamic fee engine. Maps (regime, volatility, toxicity, inventory) to a
# FeeQuote in basis points.
#
#   baseFee            = BASE_FEE[regime]
#   volComponent       = ALPHA * volatility^2 * 100
#   toxicityComponent  = BETA  * toxicity * 100
#   regimeComponent    = GAMMA * MULT[regime] * (volComponent + toxicityComponent)
#   inventoryComponent = DELTA * |imbalance| * 100
#   total              = sum of the five
#   totalFeeBps        = clamp(round_half_up(total, 0.1), 0, CAP[regime])
#
# Inputs are assumed in range (RiskSignals validates them); the engine does
# not reject, it only clamps the final result.
#
# DETERMINISM CONSTRAINTS
# -----------------------
# DET-01  All arithmetic in decimal.Decimal under a local context.
# DET-02  Float inputs enter through their shortest repr (Decimal(str(x))).
# DET-03  Rounding is ROUND_HALF_UP to FEE_QUANTUM_BPS.
# DET-04  No side effects. No I/O. No clock reads.
# =============================================================================

from __future__ import annotations

from decimal import ROUND_HALF_UP, Context, Decimal, localcontext
from typing import Any, Dict

from stockshield.core.regime import REGIME_RISK_LEVEL, Regime
from stockshield.utils.constants import FEE_QUANTUM_BPS

from .config import FeeSchedule
from .domain import FeeQuote, RiskSignals

_HUNDRED = Decimal(100)
_ZERO    = Decimal(0)

# Wide enough for toxicity=1 at MAX_VOLATILITY with any sane multiplier.
_FEE_CONTEXT = Context(prec=28, rounding=ROUND_HALF_UP)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def quote_fee(
    regime:              Regime,
    volatility:          Any,
    toxicity_score:      Any,
    inventory_imbalance: Any,
    schedule:            FeeSchedule,
) -> FeeQuote:
    """
    Compute the itemised fee quote for one trade.

    Args:
        regime:              Current session regime.
        volatility:          Annualised volatility (float or Decimal).
        toxicity_score:      Toxicity in [0, 1].
        inventory_imbalance: Signed imbalance in [-1, 1].
        schedule:            Fee tables and coefficients.

    Returns:
        FeeQuote with total_fee_bps rounded half-up to 0.1 bps and clamped
        to [0, cap].
    """
    vol = _to_decimal(volatility)
    tox = _to_decimal(toxicity_score)
    inv = _to_decimal(inventory_imbalance)

    with localcontext(_FEE_CONTEXT):
        base        = schedule.base_fee_bps[regime]
        vol_comp    = schedule.alpha * vol * vol * _HUNDRED
        tox_comp    = schedule.beta * tox * _HUNDRED
        regime_comp = schedule.gamma * schedule.regime_multiplier[regime] * (vol_comp + tox_comp)
        inv_comp    = schedule.delta * abs(inv) * _HUNDRED

        total = base + vol_comp + tox_comp + regime_comp + inv_comp
        rounded = total.quantize(FEE_QUANTUM_BPS, rounding=ROUND_HALF_UP)

    cap = schedule.cap_bps[regime]
    clamped = min(max(rounded, _ZERO), cap)

    return FeeQuote(
        regime=regime,
        base_fee_bps=base,
        volatility_component_bps=vol_comp,
        toxicity_component_bps=tox_comp,
        regime_component_bps=regime_comp,
        inventory_component_bps=inv_comp,
        total_fee_bps=clamped,
        cap_bps=cap,
    )


def quote_signals(regime: Regime, signals: RiskSignals, schedule: FeeSchedule) -> FeeQuote:
    """quote_fee() fed from a RiskSignals snapshot."""
    return quote_fee(
        regime,
        signals.volatility,
        signals.toxicity_score,
        signals.inventory_imbalance,
        schedule,
    )


def regime_info(regime: Regime, schedule: FeeSchedule) -> Dict[str, Any]:
    """Descriptive row for dashboards: fee tables and risk label for one regime."""
    return {
        "regime":       regime.value,
        "risk_level":   REGIME_RISK_LEVEL[regime],
        "base_fee_bps": schedule.base_fee_bps[regime],
        "multiplier":   schedule.regime_multiplier[regime],
        "cap_bps":      schedule.cap_bps[regime],
    }


__all__ = [
    "quote_fee",
    "quote_signals",
    "regime_info",
]
