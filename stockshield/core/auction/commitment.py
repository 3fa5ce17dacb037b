# stockshield/core/auction/commitment.py
# Commit-reveal primitives and auction arithmetic.
#
#   commit hash   sha256("<amount:.2f>|<salt>|<bidder_id>"), 64 lowercase hex
#   gap value     |gap| * pool_tvl * lp_pool_share, rounded to cents
#   MinBid(t)     gap_value * capture_rate * exp(-decay * t_minutes), cents
#
# All money is Decimal, ROUND_HALF_UP to CURRENCY_QUANTUM.

from __future__ import annotations

import hashlib
import re
from datetime import timedelta
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from typing import Any, Optional

from stockshield.utils.constants import CURRENCY_QUANTUM

_COMMIT_HASH_RE = re.compile(r"^[0-9a-f]{64}$")
_MICROS_PER_MINUTE = Decimal(60_000_000)
MONEY_CONTEXT = Context(prec=34, rounding=ROUND_HALF_UP)


def to_cents(value: Decimal) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        return value.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)


def compute_commit_hash(amount: Any, salt: str, bidder_id: str) -> str:
    """
    Commitment a bidder publishes during the commit phase.

    amount is formatted with exactly two decimals so that 7200, "7200" and
    Decimal("7200.00") commit identically.
    """
    parsed = parse_bid_amount(amount)
    if parsed is None:
        raise ValueError("amount must be a positive number with at most two decimals")
    preimage = "{:.2f}|{}|{}".format(parsed, salt, bidder_id)
    return hashlib.sha256(preimage.encode("utf-8")).hexdigest()


def is_valid_commit_hash(value: Any) -> bool:
    return isinstance(value, str) and _COMMIT_HASH_RE.match(value) is not None


def parse_bid_amount(value: Any) -> Optional[Decimal]:
    """
    Decimal amount, or None when malformed.

    Malformed: bool, non-numeric, non-finite, <= 0, more than two
    decimal places, or too large to hold in cents at MONEY_CONTEXT precision.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float, str)):
        try:
            amount = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    else:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    try:
        cents = to_cents(amount)
    except InvalidOperation:
        # wider than MONEY_CONTEXT precision
        return None
    if amount != cents:
        return None
    return cents


def gap_value(gap_magnitude: Decimal, pool_tvl: Any, lp_pool_share: Any) -> Decimal:
    with localcontext(MONEY_CONTEXT):
        raw = gap_magnitude * Decimal(str(pool_tvl)) * Decimal(str(lp_pool_share))
    return to_cents(raw)


def elapsed_minutes(elapsed: timedelta) -> Decimal:
    """Exact minutes from a timedelta (microsecond resolution)."""
    micros = elapsed // timedelta(microseconds=1)
    with localcontext(MONEY_CONTEXT):
        return Decimal(micros) / _MICROS_PER_MINUTE


def min_bid(
    gap_val:      Decimal,
    capture_rate: Decimal,
    decay_rate:   Decimal,
    minutes:      Decimal,
) -> Decimal:
    """Time-decayed floor at `minutes` since auction start, rounded to cents."""
    with localcontext(MONEY_CONTEXT):
        decay = (-(decay_rate * minutes)).exp()
        raw = gap_val * capture_rate * decay
    return to_cents(raw)


__all__ = [
    "MONEY_CONTEXT",
    "to_cents",
    "compute_commit_hash",
    "is_valid_commit_hash",
    "parse_bid_amount",
    "gap_value",
    "elapsed_minutes",
    "min_bid",
]
