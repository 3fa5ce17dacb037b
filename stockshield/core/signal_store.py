# =============================================================================
# STOCKSHIELD v1.0.0 -- RISK SIGNAL STORE
# File:   stockshield/core/signal_store.py
# =============================================================================
#
# SCOPE
# -----
# Keyed per-pair store of the mutable inputs to the control plane:
#
#   RiskSignals          -- latest signal snapshot
#   PoolLiquidity        -- TVL and LP share for gap valuation
#   CircuitBreakerState  -- last evaluated breaker state
#   last_regime          -- last regime observed for the pair (change events)
#
# CONCURRENCY
# -----------
# One re-entrant lock per pair serialises updates for that pair. A separate
# registry lock guards the pair table itself. Cross-pair operations never
# share a lock. Readers receive frozen snapshots, never a live reference.
#
# pair_lock(pair_id) lets a caller hold the pair's lock across a
# read -> evaluate -> write sequence so no update interleaves.
#
# INVARIANTS
# ----------
# INV-SS-01  Every stored value is a validated frozen dataclass.
# INV-SS-02  A pair is registered exactly once; unknown ids raise
#            UnknownPairError.
# INV-SS-03  Updates to one pair never observe or modify another pair.
# =============================================================================

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Tuple

from stockshield.core.control_plane.circuit_breaker import initial_breaker_state
from stockshield.core.control_plane.domain import (
    CircuitBreakerState,
    PoolLiquidity,
    RiskSignals,
)
from stockshield.core.control_plane.exceptions import (
    ShieldValidationError,
    UnknownPairError,
)
from stockshield.core.regime import Regime


@dataclass
class _PairRecord:
    signals:     RiskSignals
    liquidity:   PoolLiquidity
    breaker:     CircuitBreakerState
    last_regime: Optional[Regime]
    lock:        threading.RLock


class RiskSignalStore:
    """
    Per-pair signal registry with per-pair serialisation.

    Owned by the venue adapter. The control plane reads snapshots and writes
    back recommended next values (breaker state, estimator outputs).
    """

    def __init__(self) -> None:
        self._pairs: Dict[str, _PairRecord] = {}
        self._registry_lock = threading.Lock()

    # -----------------------------------------------------------------------
    # Registration
    # -----------------------------------------------------------------------

    def register_pair(
        self,
        pair_id:   str,
        signals:   RiskSignals,
        liquidity: PoolLiquidity,
        now:       datetime,
    ) -> None:
        """
        Register a pair with its initial signals. Breaker starts at level 0.

        Raises:
            ShieldValidationError -- pair_id empty, not a string, or already
                                     registered; signals / liquidity of the
                                     wrong type.
        """
        if not isinstance(pair_id, str) or not pair_id:
            raise ShieldValidationError("pair_id", pair_id, "must be a non-empty string")
        if not isinstance(signals, RiskSignals):
            raise ShieldValidationError("signals", signals, "must be a RiskSignals instance")
        if not isinstance(liquidity, PoolLiquidity):
            raise ShieldValidationError("liquidity", liquidity, "must be a PoolLiquidity instance")

        record = _PairRecord(
            signals=signals,
            liquidity=liquidity,
            breaker=initial_breaker_state(now),
            last_regime=None,
            lock=threading.RLock(),
        )
        with self._registry_lock:
            if pair_id in self._pairs:
                raise ShieldValidationError("pair_id", pair_id, "must not already be registered")
            self._pairs[pair_id] = record

    def has_pair(self, pair_id: str) -> bool:
        with self._registry_lock:
            return pair_id in self._pairs

    def pair_ids(self) -> Tuple[str, ...]:
        with self._registry_lock:
            return tuple(sorted(self._pairs))

    def _record(self, pair_id: str) -> _PairRecord:
        with self._registry_lock:
            record = self._pairs.get(pair_id)
        if record is None:
            raise UnknownPairError(pair_id)
        return record

    @contextmanager
    def pair_lock(self, pair_id: str) -> Iterator[None]:
        """Hold the pair's lock for a multi-step read/evaluate/write."""
        record = self._record(pair_id)
        with record.lock:
            yield

    # -----------------------------------------------------------------------
    # Reads
    # -----------------------------------------------------------------------

    def snapshot(self, pair_id: str) -> RiskSignals:
        record = self._record(pair_id)
        with record.lock:
            return record.signals

    def liquidity(self, pair_id: str) -> PoolLiquidity:
        record = self._record(pair_id)
        with record.lock:
            return record.liquidity

    def breaker_state(self, pair_id: str) -> CircuitBreakerState:
        record = self._record(pair_id)
        with record.lock:
            return record.breaker

    def last_regime(self, pair_id: str) -> Optional[Regime]:
        record = self._record(pair_id)
        with record.lock:
            return record.last_regime

    # -----------------------------------------------------------------------
    # Writes
    # -----------------------------------------------------------------------

    def replace_signals(self, pair_id: str, signals: RiskSignals) -> None:
        if not isinstance(signals, RiskSignals):
            raise ShieldValidationError("signals", signals, "must be a RiskSignals instance")
        record = self._record(pair_id)
        with record.lock:
            record.signals = signals

    def update_signals(self, pair_id: str, **changes: Any) -> RiskSignals:
        """
        Apply field changes to the pair's signals and return the new snapshot.

        The new snapshot is validated in full before it is stored; on any
        error the stored snapshot is unchanged.
        """
        record = self._record(pair_id)
        with record.lock:
            try:
                updated = replace(record.signals, **changes)
            except TypeError:
                raise ShieldValidationError(
                    "signals", sorted(changes), "must only name RiskSignals fields"
                )
            record.signals = updated
            return updated

    def record_oracle_price(self, pair_id: str, price: float, at: datetime) -> RiskSignals:
        return self.update_signals(
            pair_id,
            last_observed_oracle_price=price,
            last_oracle_update_time=at,
        )

    def record_pool_price(self, pair_id: str, price: float) -> RiskSignals:
        return self.update_signals(pair_id, last_observed_pool_price=price)

    def update_liquidity(self, pair_id: str, liquidity: PoolLiquidity) -> None:
        if not isinstance(liquidity, PoolLiquidity):
            raise ShieldValidationError("liquidity", liquidity, "must be a PoolLiquidity instance")
        record = self._record(pair_id)
        with record.lock:
            record.liquidity = liquidity

    def set_breaker_state(self, pair_id: str, state: CircuitBreakerState) -> None:
        record = self._record(pair_id)
        with record.lock:
            record.breaker = state

    def set_last_regime(self, pair_id: str, regime: Regime) -> Optional[Regime]:
        """Store the regime and return the previous one."""
        record = self._record(pair_id)
        with record.lock:
            previous = record.last_regime
            record.last_regime = regime
            return previous


__all__ = ["RiskSignalStore"]
