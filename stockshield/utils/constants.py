# stockshield/utils/constants.py
# Version: 1.0.0
# PROTOCOL CONSTANTS -- NEVER OVERWRITE DIRECTLY AT RUNTIME.
# Runtime overrides go through ControlPlaneConfig (load_config) and are
# checked by stockshield.governance.validate_control_plane_config.
# The golden vectors in stockshield/verification/vectors.py pin these values;
# CI blocks merge when a table changes without the vectors being updated.
#
# Standard import pattern:
#   from stockshield.utils.constants import (
#       BASE_FEE_BPS, REGIME_MULTIPLIER, MAX_FEE_BPS,
#       FEE_ALPHA, FEE_BETA, FEE_GAMMA, FEE_DELTA,
#       ORACLE_STALENESS_SECONDS, PRICE_DEVIATION_THRESHOLD,
#       MIN_GAP_THRESHOLD, LP_CAPTURE_RATE, DECAY_RATE_PER_MINUTE,
#   )

from decimal import Decimal
from typing import Dict, FrozenSet

from stockshield.core.regime import Regime


# ---------------------------------------------------------------------------
# DYNAMIC FEE TABLES (bps)
# ---------------------------------------------------------------------------
# Keys: canonical Regime instances from stockshield.core.regime.
# All three tables are monotone non-decreasing in REGIME_RISK_ORDER.
# Values are Decimal so the fee formula never touches binary floats.

BASE_FEE_BPS: Dict[Regime, Decimal] = {
    Regime.CORE_SESSION: Decimal("5"),
    Regime.SOFT_OPEN:    Decimal("10"),
    Regime.PRE_MARKET:   Decimal("15"),
    Regime.AFTER_HOURS:  Decimal("15"),
    Regime.OVERNIGHT:    Decimal("30"),
    Regime.WEEKEND:      Decimal("50"),
    Regime.HOLIDAY:      Decimal("50"),
}

REGIME_MULTIPLIER: Dict[Regime, Decimal] = {
    Regime.CORE_SESSION: Decimal("1.0"),
    Regime.SOFT_OPEN:    Decimal("1.5"),
    Regime.PRE_MARKET:   Decimal("2.0"),
    Regime.AFTER_HOURS:  Decimal("2.0"),
    Regime.OVERNIGHT:    Decimal("4.0"),
    Regime.WEEKEND:      Decimal("6.0"),
    Regime.HOLIDAY:      Decimal("6.0"),
}

MAX_FEE_BPS: Dict[Regime, Decimal] = {
    Regime.CORE_SESSION: Decimal("50"),
    Regime.SOFT_OPEN:    Decimal("75"),
    Regime.PRE_MARKET:   Decimal("100"),
    Regime.AFTER_HOURS:  Decimal("100"),
    Regime.OVERNIGHT:    Decimal("300"),
    Regime.WEEKEND:      Decimal("500"),
    Regime.HOLIDAY:      Decimal("500"),
}


# ---------------------------------------------------------------------------
# FEE COEFFICIENTS (global, not per-regime)
# ---------------------------------------------------------------------------

FEE_ALPHA: Decimal = Decimal("0.5")    # volatility^2 weight
FEE_BETA:  Decimal = Decimal("0.3")    # toxicity weight
FEE_GAMMA: Decimal = Decimal("0.2")    # regime x (vol + tox) interaction
FEE_DELTA: Decimal = Decimal("0.02")   # |inventory imbalance| weight

FEE_QUANTUM_BPS: Decimal = Decimal("0.1")   # round half-up to one decimal bps


# ---------------------------------------------------------------------------
# SIGNAL DOMAIN BOUNDS
# ---------------------------------------------------------------------------

MAX_VOLATILITY: float = 5.0    # 500% annualised; estimator output is clipped here


# ---------------------------------------------------------------------------
# CIRCUIT BREAKER THRESHOLDS
# ---------------------------------------------------------------------------

ORACLE_STALENESS_SECONDS:  int   = 60
PRICE_DEVIATION_THRESHOLD: float = 0.02   # |pool - oracle| / oracle
HIGH_TOXICITY_THRESHOLD:   float = 0.70
HIGH_IMBALANCE_THRESHOLD:  float = 0.40   # |inventory imbalance|

# Oracle staleness is only meaningful while the reference market prints.
ORACLE_LIVE_REGIMES: FrozenSet[Regime] = frozenset({
    Regime.CORE_SESSION,
    Regime.SOFT_OPEN,
})

BREAKER_MAX_LEVEL:         int = 4
BREAKER_MIN_DWELL_SECONDS: int = 0        # 0 = pure recompute, no hysteresis


# ---------------------------------------------------------------------------
# CIRCUIT BREAKER EFFECTS (consumed by the venue adapter)
# ---------------------------------------------------------------------------
# spread multiplier None at level 4: trading halted, no quote.

BREAKER_LABEL: Dict[int, str] = {
    0: "Normal",
    1: "Warning",
    2: "Caution",
    3: "Danger",
    4: "Halt",
}

BREAKER_SPREAD_MULTIPLIER: Dict[int, object] = {
    0: Decimal("1.0"),
    1: Decimal("2.0"),
    2: Decimal("5.0"),
    3: Decimal("10.0"),
    4: None,
}

BREAKER_DEPTH_REDUCTION: Dict[int, Decimal] = {
    0: Decimal("0"),
    1: Decimal("0"),
    2: Decimal("0.50"),
    3: Decimal("0.75"),
    4: Decimal("1.00"),
}


# ---------------------------------------------------------------------------
# GAP AUCTION
# ---------------------------------------------------------------------------

MIN_GAP_THRESHOLD:     Decimal = Decimal("0.005")   # 0.5% |gap| opens an auction
LP_CAPTURE_RATE:       Decimal = Decimal("0.70")    # LP share of the winning bid
DECAY_RATE_PER_MINUTE: Decimal = Decimal("0.4")     # MinBid exponential decay
COMMIT_PHASE_SECONDS:  int     = 30
REVEAL_PHASE_SECONDS:  int     = 30

CURRENCY_QUANTUM: Decimal = Decimal("0.01")


# ---------------------------------------------------------------------------
# VPIN TOXICITY ESTIMATOR
# ---------------------------------------------------------------------------

VPIN_NUM_BUCKETS:        int   = 50
VPIN_BUCKET_SIZE_RATIO:  int   = 50          # bucket size = ADV / ratio
VPIN_MIN_BUCKET_USD:     float = 10_000.0
VPIN_MAX_BUCKET_USD:     float = 1_000_000.0
VPIN_DEFAULT_BUCKET_USD: float = 50_000.0
VPIN_ADV_LOOKBACK_DAYS:  int   = 20

VPIN_ELEVATED_THRESHOLD: float = 0.3
VPIN_HIGH_THRESHOLD:     float = 0.5
VPIN_EXTREME_THRESHOLD:  float = 0.7


# ---------------------------------------------------------------------------
# REALIZED VOLATILITY ESTIMATOR
# ---------------------------------------------------------------------------

VOL_EWMA_HALFLIFE:     int = 20               # observations
VOL_MIN_OBSERVATIONS:  int = 2                # returns needed before estimating
VOL_MAX_OBSERVATIONS:  int = 500              # rolling price buffer length
VOL_PERIODS_PER_YEAR:  int = 252 * 390        # one observation per core-session minute
