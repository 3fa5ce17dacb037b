# stockshield/signals/vpin.py
# Volume-synchronised probability of informed trading (VPIN).
#
# Trades fill fixed-notional volume buckets. Over the last N full buckets:
#
#   VPIN = sum(|buy_i - sell_i|) / sum(volume_i)        in [0, 1]
#
# Bucket size is recalibrated from average daily volume:
#   bucket = clamp(ADV / VPIN_BUCKET_SIZE_RATIO, min_bucket, max_bucket)
#
# Easley, Lopez de Prado & O'Hara (2012), "Flow Toxicity and Liquidity in a
# High-frequency World".

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from datetime import date
from typing import Deque, Optional

from stockshield.core.control_plane.exceptions import ShieldValidationError
from stockshield.utils.constants import (
    VPIN_ADV_LOOKBACK_DAYS,
    VPIN_BUCKET_SIZE_RATIO,
    VPIN_DEFAULT_BUCKET_USD,
    VPIN_ELEVATED_THRESHOLD,
    VPIN_EXTREME_THRESHOLD,
    VPIN_HIGH_THRESHOLD,
    VPIN_MAX_BUCKET_USD,
    VPIN_MIN_BUCKET_USD,
    VPIN_NUM_BUCKETS,
)


@dataclass(frozen=True)
class VolumeBucket:
    buy_volume:  float
    sell_volume: float

    @property
    def total_volume(self) -> float:
        return self.buy_volume + self.sell_volume

    @property
    def imbalance(self) -> float:
        return abs(self.buy_volume - self.sell_volume)


@dataclass(frozen=True)
class VPINMetrics:
    vpin:                  float
    buckets_filled:        int
    current_bucket_volume: float
    average_daily_volume:  float
    bucket_size:           float


@dataclass(frozen=True)
class VPINInterpretation:
    level:              str
    description:        str
    recommended_action: str


class VPINCalculator:
    """
    Rolling VPIN estimator for one pair. Not thread-safe on its own; the
    facade serialises access per pair.
    """

    def __init__(
        self,
        num_buckets:       int   = VPIN_NUM_BUCKETS,
        bucket_size_ratio: int   = VPIN_BUCKET_SIZE_RATIO,
        adv_lookback_days: int   = VPIN_ADV_LOOKBACK_DAYS,
        min_bucket_usd:    float = VPIN_MIN_BUCKET_USD,
        max_bucket_usd:    float = VPIN_MAX_BUCKET_USD,
        bucket_size_usd:   float = VPIN_DEFAULT_BUCKET_USD,
    ) -> None:
        if num_buckets < 1:
            raise ShieldValidationError("num_buckets", num_buckets, "must be >= 1")
        if bucket_size_ratio < 1:
            raise ShieldValidationError("bucket_size_ratio", bucket_size_ratio, "must be >= 1")
        if adv_lookback_days < 1:
            raise ShieldValidationError("adv_lookback_days", adv_lookback_days, "must be >= 1")
        if not (0 < min_bucket_usd <= max_bucket_usd):
            raise ShieldValidationError(
                "min_bucket_usd", min_bucket_usd, "must be > 0 and <= max_bucket_usd"
            )
        self._bucket_size_ratio = bucket_size_ratio
        self._min_bucket = min_bucket_usd
        self._max_bucket = max_bucket_usd
        self._bucket_size = min(max(bucket_size_usd, min_bucket_usd), max_bucket_usd)

        self._buckets: Deque[VolumeBucket] = deque(maxlen=num_buckets)
        self._daily_volumes: Deque[float] = deque(maxlen=adv_lookback_days)
        self._buy = 0.0
        self._sell = 0.0
        self._today_volume = 0.0
        self._last_recalibration: Optional[date] = None

    @property
    def bucket_size(self) -> float:
        return self._bucket_size

    def process_trade(self, volume_usd: float, is_buy: bool) -> float:
        """Add one trade and return the updated VPIN."""
        if not volume_usd > 0:
            raise ShieldValidationError("volume_usd", volume_usd, "must be > 0")
        if is_buy:
            self._buy += volume_usd
        else:
            self._sell += volume_usd
        self._today_volume += volume_usd

        # One trade closes at most one bucket; overflow stays in that bucket.
        if self._buy + self._sell >= self._bucket_size:
            self._buckets.append(VolumeBucket(buy_volume=self._buy, sell_volume=self._sell))
            self._buy = 0.0
            self._sell = 0.0
        return self.vpin()

    def vpin(self) -> float:
        """0.0 until the first bucket closes."""
        total = sum(b.total_volume for b in self._buckets)
        if total <= 0:
            return 0.0
        return min(sum(b.imbalance for b in self._buckets) / total, 1.0)

    def average_daily_volume(self) -> float:
        if not self._daily_volumes:
            return 0.0
        return sum(self._daily_volumes) / len(self._daily_volumes)

    def recalibrate(self, session_date: date, daily_volume: Optional[float] = None) -> float:
        """
        Close the trading day and resize buckets from ADV.

        Idempotent per session_date. Returns the bucket size in force.
        """
        if self._last_recalibration == session_date:
            return self._bucket_size
        volume = self._today_volume if daily_volume is None else daily_volume
        self._daily_volumes.append(volume)
        self._today_volume = 0.0
        self._last_recalibration = session_date

        adv = self.average_daily_volume()
        self._bucket_size = max(
            self._min_bucket,
            min(adv / self._bucket_size_ratio, self._max_bucket),
        )
        return self._bucket_size

    def metrics(self) -> VPINMetrics:
        return VPINMetrics(
            vpin=self.vpin(),
            buckets_filled=len(self._buckets),
            current_bucket_volume=self._buy + self._sell,
            average_daily_volume=self.average_daily_volume(),
            bucket_size=self._bucket_size,
        )

    def reset(self) -> None:
        self._buckets.clear()
        self._daily_volumes.clear()
        self._buy = 0.0
        self._sell = 0.0
        self._today_volume = 0.0
        self._last_recalibration = None


def interpret_vpin(vpin: float) -> VPINInterpretation:
    if vpin < VPIN_ELEVATED_THRESHOLD:
        return VPINInterpretation("normal", "Balanced two-sided flow", "Normal fees")
    if vpin < VPIN_HIGH_THRESHOLD:
        return VPINInterpretation(
            "elevated", "Some informed trading detected", "Raise toxicity fee component"
        )
    if vpin < VPIN_EXTREME_THRESHOLD:
        return VPINInterpretation(
            "high", "Significant informed flow", "Widen spreads and watch the breaker"
        )
    return VPINInterpretation(
        "extreme", "Flow dominated by informed traders", "Circuit breaker flags HIGH_TOXICITY"
    )


__all__ = [
    "VolumeBucket",
    "VPINMetrics",
    "VPINInterpretation",
    "VPINCalculator",
    "interpret_vpin",
]
