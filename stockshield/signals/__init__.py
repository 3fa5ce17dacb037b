# stockshield/signals/__init__.py
# Per-pair estimators that turn executed trades into RiskSignals inputs.

from stockshield.signals.vpin import (
    VPINCalculator,
    VPINInterpretation,
    VPINMetrics,
    VolumeBucket,
    interpret_vpin,
)
from stockshield.signals.volatility import (
    RealizedVolatilityEstimator,
    ewma_volatility,
)

__all__ = [
    "VPINCalculator",
    "VPINInterpretation",
    "VPINMetrics",
    "VolumeBucket",
    "interpret_vpin",
    "RealizedVolatilityEstimator",
    "ewma_volatility",
]
