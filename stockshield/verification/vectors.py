# stockshield/verification/vectors.py
# Version: 1.0.0
# Fixed, version-controlled golden vectors for the fee engine and the
# gap auction arithmetic.
#
# NO VECTOR IS GENERATED AT RUNTIME. NO VECTOR IS SAMPLED.
# Inputs are decimal literals; expected outputs are pinned literals worked
# out by hand from the formulas in fees.py and commitment.py.
#
# Execution order: G-FEE, G-GAP, G-MIN, G-SET, G-HASH.
# Within each group: ascending numeric order of vector ID suffix.

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Callable, List, Tuple

from stockshield.core.auction.commitment import (
    MONEY_CONTEXT,
    compute_commit_hash,
    gap_value,
    min_bid,
    to_cents,
)
from stockshield.core.control_plane.config import default_config
from stockshield.core.control_plane.fees import quote_fee
from stockshield.core.regime import Regime


@dataclass(frozen=True)
class GoldenVector:
    vector_id: str
    group_id:  str
    inputs:    tuple
    expected:  object


@dataclass(frozen=True)
class VectorResult:
    vector_id: str
    expected:  object
    actual:    object

    @property
    def passed(self) -> bool:
        return self.expected == self.actual


# ---------------------------------------------------------------------------
# G-FEE  (regime, volatility, toxicity, imbalance) -> total_fee_bps
# ---------------------------------------------------------------------------

FEE_VECTORS: Tuple[GoldenVector, ...] = (
    GoldenVector("FEE-01", "G-FEE", (Regime.CORE_SESSION, "0.35", "0.25", "0"),   Decimal("21.4")),
    GoldenVector("FEE-02", "G-FEE", (Regime.WEEKEND,      "0.35", "0.25", "0"),   Decimal("80.0")),
    GoldenVector("FEE-03", "G-FEE", (Regime.PRE_MARKET,   "0.35", "0.25", "0"),   Decimal("34.1")),
    GoldenVector("FEE-04", "G-FEE", (Regime.CORE_SESSION, "0",    "0",    "-0.5"), Decimal("6.0")),
    GoldenVector("FEE-05", "G-FEE", (Regime.WEEKEND,      "5",    "1",    "1"),   Decimal("500")),
)

# ---------------------------------------------------------------------------
# G-GAP  (gap_magnitude, pool_tvl, lp_pool_share) -> gap_value
# ---------------------------------------------------------------------------

GAP_VECTORS: Tuple[GoldenVector, ...] = (
    GoldenVector("GAP-01", "G-GAP", ("0.10", "1000000", "0.10"), Decimal("10000.00")),
    GoldenVector("GAP-02", "G-GAP", ("0.005", "250000", "1"),    Decimal("1250.00")),
)

# ---------------------------------------------------------------------------
# G-MIN  (gap_value, minutes since start) -> MinBid, default auction params
# ---------------------------------------------------------------------------

MIN_BID_VECTORS: Tuple[GoldenVector, ...] = (
    GoldenVector("MIN-01", "G-MIN", ("10000.00", "0"),    Decimal("7000.00")),
    GoldenVector("MIN-02", "G-MIN", ("10000.00", "0.75"), Decimal("5185.73")),
    GoldenVector("MIN-03", "G-MIN", ("10000.00", "1"),    Decimal("4692.24")),
    GoldenVector("MIN-04", "G-MIN", ("10000.00", "2"),    Decimal("3145.30")),
)

# ---------------------------------------------------------------------------
# G-SET  (gap_value, winning bid) -> (lp_gains, winner_share, unmitigated)
# ---------------------------------------------------------------------------

SETTLEMENT_VECTORS: Tuple[GoldenVector, ...] = (
    GoldenVector("SET-01", "G-SET", ("10000.00", "7200.00"),
                 (Decimal("5040.00"), Decimal("2160.00"), Decimal("4960.00"))),
)

# ---------------------------------------------------------------------------
# G-HASH  (amount, salt, bidder_id) -> commit hash
# ---------------------------------------------------------------------------

HASH_VECTORS: Tuple[GoldenVector, ...] = (
    GoldenVector("HASH-01", "G-HASH", ("7200", "salt-1", "alice"),
                 "dffbff3f5e2d055e6356f1971ccd63beef337d83d26dc96e8f641de5fcb873b0"),
)


def _run_fee(vector: GoldenVector) -> object:
    regime, vol, tox, inv = vector.inputs
    return quote_fee(regime, Decimal(vol), Decimal(tox), Decimal(inv),
                     default_config().fees).total_fee_bps


def _run_gap(vector: GoldenVector) -> object:
    magnitude, tvl, share = vector.inputs
    return gap_value(Decimal(magnitude), tvl, share)


def _run_min_bid(vector: GoldenVector) -> object:
    value, minutes = vector.inputs
    params = default_config().auction
    return min_bid(Decimal(value), params.lp_capture_rate,
                   params.decay_rate_per_minute, Decimal(minutes))


def _run_settlement(vector: GoldenVector) -> object:
    value, bid = (Decimal(x) for x in vector.inputs)
    rate = default_config().auction.lp_capture_rate
    with localcontext(MONEY_CONTEXT):
        lp_gains = to_cents(bid * rate)
        return (lp_gains, bid - lp_gains, max(value - lp_gains, Decimal("0.00")))


def _run_hash(vector: GoldenVector) -> object:
    return compute_commit_hash(*vector.inputs)


_GROUPS: Tuple[Tuple[Tuple[GoldenVector, ...], Callable[[GoldenVector], object]], ...] = (
    (FEE_VECTORS,        _run_fee),
    (GAP_VECTORS,        _run_gap),
    (MIN_BID_VECTORS,    _run_min_bid),
    (SETTLEMENT_VECTORS, _run_settlement),
    (HASH_VECTORS,       _run_hash),
)


def run_vectors() -> List[VectorResult]:
    """Evaluate every golden vector in execution order."""
    results: List[VectorResult] = []
    for vectors, runner in _GROUPS:
        for vector in vectors:
            results.append(VectorResult(vector.vector_id, vector.expected, runner(vector)))
    return results


__all__ = [
    "GoldenVector",
    "VectorResult",
    "FEE_VECTORS",
    "GAP_VECTORS",
    "MIN_BID_VECTORS",
    "SETTLEMENT_VECTORS",
    "HASH_VECTORS",
    "run_vectors",
]
