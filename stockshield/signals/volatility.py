# stockshield/signals/volatility.py
# EWMA realized volatility from trade prices.
#
#   r_i      = ln(p_i / p_{i-1})
#   decay    = exp(-ln 2 / halflife)
#   w_i      = decay^(n-1-i), normalised to sum 1   (newest weight highest)
#   sigma    = sqrt(sum(w_i * r_i^2) * periods_per_year)
#
# Output is clipped to [0, MAX_VOLATILITY] so it always fits RiskSignals.

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

import numpy as np

from stockshield.core.control_plane.exceptions import (
    ShieldNumericalError,
    ShieldValidationError,
)
from stockshield.utils.constants import (
    MAX_VOLATILITY,
    VOL_EWMA_HALFLIFE,
    VOL_MAX_OBSERVATIONS,
    VOL_MIN_OBSERVATIONS,
    VOL_PERIODS_PER_YEAR,
)


def ewma_volatility(
    log_returns:      np.ndarray,
    halflife:         int = VOL_EWMA_HALFLIFE,
    periods_per_year: int = VOL_PERIODS_PER_YEAR,
) -> float:
    """
    Annualised EWMA volatility of a return series.

    Raises ShieldValidationError on an empty series, ShieldNumericalError
    on NaN / Inf returns.
    """
    arr = np.asarray(log_returns, dtype=float)
    if arr.size == 0:
        raise ShieldValidationError("log_returns", 0, "must contain at least one return")
    if not np.all(np.isfinite(arr)):
        raise ShieldNumericalError("log_returns", arr[~np.isfinite(arr)][0].item())

    decay   = float(np.exp(-np.log(2.0) / max(halflife, 1)))
    weights = decay ** np.arange(arr.size - 1, -1, -1, dtype=float)
    weights = weights / weights.sum()

    ewma_var = float(np.sum(weights * arr ** 2))
    return float(np.sqrt(max(ewma_var, 0.0) * periods_per_year))


class RealizedVolatilityEstimator:
    """Rolling price buffer for one pair. estimate() is None until warm."""

    def __init__(
        self,
        halflife:         int = VOL_EWMA_HALFLIFE,
        periods_per_year: int = VOL_PERIODS_PER_YEAR,
        min_observations: int = VOL_MIN_OBSERVATIONS,
        max_observations: int = VOL_MAX_OBSERVATIONS,
    ) -> None:
        if min_observations < 1:
            raise ShieldValidationError("min_observations", min_observations, "must be >= 1")
        if max_observations <= min_observations:
            raise ShieldValidationError(
                "max_observations", max_observations, "must be > min_observations"
            )
        self._halflife = halflife
        self._periods_per_year = periods_per_year
        self._min_observations = min_observations
        self._prices: Deque[float] = deque(maxlen=max_observations + 1)

    def observe(self, price: float) -> Optional[float]:
        """Record a trade price and return the current estimate."""
        if not np.isfinite(price):
            raise ShieldNumericalError("price", price)
        if price <= 0:
            raise ShieldValidationError("price", price, "must be > 0")
        self._prices.append(float(price))
        return self.estimate()

    def returns_count(self) -> int:
        return max(len(self._prices) - 1, 0)

    def estimate(self) -> Optional[float]:
        if self.returns_count() < self._min_observations:
            return None
        prices = np.fromiter(self._prices, dtype=float)
        log_returns = np.diff(np.log(prices))
        sigma = ewma_volatility(log_returns, self._halflife, self._periods_per_year)
        return float(np.clip(sigma, 0.0, MAX_VOLATILITY))


__all__ = [
    "ewma_volatility",
    "RealizedVolatilityEstimator",
]
