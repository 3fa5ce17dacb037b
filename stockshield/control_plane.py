# =============================================================================
# STOCKSHIELD v1.0.0 -- VENUE-FACING CONTROL PLANE
# File:   stockshield/control_plane.py
# =============================================================================
#
# SCOPE
# -----
# Single object the venue adapter talks to. Wires the pure components
# (regime, fees, circuit breaker) to the stateful ones (signal store,
# gap auction, per-pair estimators) and records every state change in the
# audit log.
#
#   classify(time)                    -> RegimeClassification
#   quote(regime, signals)            -> FeeQuote
#   evaluate(pair_id)                 -> CircuitBreakerState
#   assess_trade(pair_id)             -> TradeAssessment
#   admit_trade(pair_id, bidder_id)   -> AdmissionResult
#   on_trade_executed(pair_id, trade) -> RiskSignals
#   on_oracle_update(pair_id, price)  -> Optional[auction_id]
#   submit_commit / submit_reveal / get_auction_state
#
# LOCK ORDER
# ----------
# Pair lock is taken by evaluation and trade refresh only. Auction calls
# run outside it: the protocol takes its own lock and then pair locks,
# never the reverse.
#
# PROHIBITED ACTIONS
# ------------------
#   No timers, no background threads.
#   No reads of the system clock except through the injected clock.
#   No enforcement of the halt or priority right inside the venue.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Optional
from zoneinfo import ZoneInfo

from stockshield.core.auction import (
    BidReceipt,
    Clock,
    GapAuction,
    GapAuctionProtocol,
    system_clock,
)
from stockshield.core.control_plane import (
    CircuitBreakerState,
    ControlPlaneConfig,
    ExecutedTrade,
    FeeQuote,
    PoolLiquidity,
    RiskSignals,
    ShieldValidationError,
    TradeAssessment,
    TradeVerdict,
    UnknownPairError,
    assess_trade,
    default_config,
    quote_signals,
    regime_info,
    validate_timestamp,
)
from stockshield.core.execution_guard import TradeAdmission, build_trade_admission
from stockshield.core.logging_layer import EventLogger, EventType
from stockshield.core.regime import REFERENCE_TIMEZONE, Regime, RegimeClassification, classify
from stockshield.core.signal_store import RiskSignalStore
from stockshield.governance import enforce, validate_control_plane_config
from stockshield.signals import RealizedVolatilityEstimator, VPINCalculator

_REFERENCE_TZ = ZoneInfo(REFERENCE_TIMEZONE)


# =============================================================================
# SECTION 1 -- RESULT TYPES
# =============================================================================

@dataclass(frozen=True)
class AdmissionResult:
    """
    Outcome of admit_trade().

    admission is None exactly when verdict is REJECT_HALT.
    """
    verdict:    TradeVerdict
    assessment: TradeAssessment
    admission:  Optional[TradeAdmission]

    @property
    def allowed(self) -> bool:
        return self.admission is not None


@dataclass
class _PairEstimators:
    vpin:         VPINCalculator
    volatility:   RealizedVolatilityEstimator
    session_date: Optional[date] = None


# =============================================================================
# SECTION 2 -- CONTROL PLANE
# =============================================================================

class ControlPlane:
    """
    Venue-facing facade over the StockShield components.

    Args:
        config:       Immutable configuration. default_config() when omitted.
        clock:        Authoritative clock, shared with the auction protocol.
        event_logger: Audit log. A private logger is created when omitted.

    Raises:
        GovernanceViolationError -- config has blocking policy violations.
    """

    def __init__(
        self,
        config:       Optional[ControlPlaneConfig] = None,
        clock:        Optional[Clock] = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        self._config = config if config is not None else default_config()
        if not isinstance(self._config, ControlPlaneConfig):
            raise ShieldValidationError("config", self._config, "must be a ControlPlaneConfig")
        enforce(validate_control_plane_config(self._config))

        self._clock: Clock = clock if clock is not None else system_clock
        self._log = event_logger if event_logger is not None else EventLogger()
        self._store = RiskSignalStore()
        self._auctions = GapAuctionProtocol(
            self._config.auction, self._store, self._clock, self._log
        )
        self._estimators: Dict[str, _PairEstimators] = {}

    # -----------------------------------------------------------------------
    # SECTION 2.1 -- accessors
    # -----------------------------------------------------------------------

    @property
    def config(self) -> ControlPlaneConfig:
        return self._config

    @property
    def store(self) -> RiskSignalStore:
        return self._store

    @property
    def event_logger(self) -> EventLogger:
        return self._log

    @property
    def auctions(self) -> GapAuctionProtocol:
        return self._auctions

    def _now(self) -> datetime:
        return validate_timestamp(self._clock(), "clock()")

    # -----------------------------------------------------------------------
    # SECTION 2.2 -- pairs
    # -----------------------------------------------------------------------

    def register_pair(self, pair_id: str, signals: RiskSignals, liquidity: PoolLiquidity) -> None:
        """Register a pair. Its breaker starts at level 0."""
        self._store.register_pair(pair_id, signals, liquidity, self._now())
        self._estimators[pair_id] = _PairEstimators(
            vpin=VPINCalculator(),
            volatility=RealizedVolatilityEstimator(),
        )

    def _pair_estimators(self, pair_id: str) -> _PairEstimators:
        estimators = self._estimators.get(pair_id)
        if estimators is None:
            raise UnknownPairError(pair_id)
        return estimators

    # -----------------------------------------------------------------------
    # SECTION 2.3 -- pricing and risk
    # -----------------------------------------------------------------------

    def classify(self, time: Optional[datetime] = None) -> RegimeClassification:
        """Classify time, or the clock's current instant when omitted."""
        instant = self._now() if time is None else validate_timestamp(time, "time")
        return classify(instant, self._config.calendar, self._config.windows)

    def quote(self, regime: Regime, signals: RiskSignals) -> FeeQuote:
        return quote_signals(regime, signals, self._config.fees)

    def regime_info(self, regime: Regime) -> dict:
        return regime_info(regime, self._config.fees)

    def assess_trade(self, pair_id: str) -> TradeAssessment:
        """
        Evaluate the pair at the current instant and store the new breaker
        state. Logs REGIME_CHANGE and BREAKER_LEVEL_CHANGE on transitions.
        """
        with self._store.pair_lock(pair_id):
            now = self._now()
            previous = self._store.breaker_state(pair_id)
            assessment = assess_trade(
                self._store.snapshot(pair_id), now, self._config, previous
            )
            self._store.set_breaker_state(pair_id, assessment.breaker_state)
            prior_regime = self._store.set_last_regime(pair_id, assessment.regime)

            if prior_regime is not None and prior_regime != assessment.regime:
                self._log.log_event(EventType.REGIME_CHANGE, {
                    "pair_id":              pair_id,
                    "from_regime":          prior_regime,
                    "to_regime":            assessment.regime,
                    "next_transition_time": assessment.next_transition_time,
                }, now)
            if previous.level != assessment.breaker_state.level:
                self._log.log_event(EventType.BREAKER_LEVEL_CHANGE, {
                    "pair_id":    pair_id,
                    "from_level": previous.level,
                    "to_level":   assessment.breaker_state.level,
                    "flags":      sorted(f.value for f in assessment.breaker_state.active_flags),
                }, now)
            return assessment

    def evaluate(self, pair_id: str) -> CircuitBreakerState:
        """Re-evaluate the pair's circuit breaker from its latest signals."""
        return self.assess_trade(pair_id).breaker_state

    def admit_trade(self, pair_id: str, bidder_id: Optional[str] = None) -> AdmissionResult:
        """
        Decide whether a trade may execute now.

        A halted pair yields no admission and a TRADE_REJECTED event. When
        bidder_id holds the pair's priority right, the right is consumed.
        """
        assessment = self.assess_trade(pair_id)
        holder = self._auctions.priority_bidder(pair_id)
        admission = build_trade_admission(pair_id, assessment, bidder_id, holder)

        if admission is None:
            self._log.log_event(EventType.TRADE_REJECTED, {
                "pair_id":   pair_id,
                "bidder_id": bidder_id,
                "level":     assessment.breaker_state.level,
                "flags":     sorted(f.value for f in assessment.breaker_state.active_flags),
            }, assessment.evaluated_at)
        elif admission.is_priority_trade:
            self._auctions.consume_priority(pair_id, bidder_id)

        return AdmissionResult(
            verdict=assessment.verdict,
            assessment=assessment,
            admission=admission,
        )

    # -----------------------------------------------------------------------
    # SECTION 2.4 -- signal refresh
    # -----------------------------------------------------------------------

    def on_trade_executed(self, pair_id: str, trade: ExecutedTrade) -> RiskSignals:
        """
        Feed an executed trade to the pair's estimators and store the
        refreshed signals.

        The venue's post-trade imbalance and price are taken as-is. VPIN
        replaces toxicity_score once the first volume bucket has closed;
        volatility is replaced once the estimator is warm. A new session
        date closes the previous day for bucket recalibration.
        """
        if not isinstance(trade, ExecutedTrade):
            raise ShieldValidationError("trade", trade, "must be an ExecutedTrade instance")

        estimators = self._pair_estimators(pair_id)
        with self._store.pair_lock(pair_id):
            session_date = trade.timestamp.astimezone(_REFERENCE_TZ).date()
            if estimators.session_date is not None and session_date != estimators.session_date:
                estimators.vpin.recalibrate(estimators.session_date)
            estimators.session_date = session_date

            vpin = estimators.vpin.process_trade(trade.notional_usd, trade.is_buy)
            sigma = estimators.volatility.observe(trade.price)

            changes = {
                "inventory_imbalance":      trade.inventory_imbalance_after,
                "last_observed_pool_price": trade.price,
            }
            if estimators.vpin.metrics().buckets_filled > 0:
                changes["toxicity_score"] = vpin
            if sigma is not None:
                changes["volatility"] = sigma
            updated = self._store.update_signals(pair_id, **changes)

            self._log.log_event(EventType.SIGNALS_UPDATED, {
                "pair_id":             pair_id,
                "volatility":          updated.volatility,
                "toxicity_score":      updated.toxicity_score,
                "inventory_imbalance": updated.inventory_imbalance,
                "pool_price":          updated.last_observed_pool_price,
                "trade_time":          trade.timestamp,
            }, self._now())
            return updated

    def update_liquidity(self, pair_id: str, liquidity: PoolLiquidity) -> None:
        self._store.update_liquidity(pair_id, liquidity)

    # -----------------------------------------------------------------------
    # SECTION 2.5 -- gap auction
    # -----------------------------------------------------------------------

    def on_oracle_update(self, pair_id: str, new_price: float) -> Optional[str]:
        return self._auctions.on_oracle_update(pair_id, new_price)

    def on_trading_resumed(self, pair_id: str) -> Optional[str]:
        return self._auctions.on_trading_resumed(pair_id)

    def submit_commit(self, auction_id: str, bidder_id: str, commit_hash: str) -> BidReceipt:
        return self._auctions.submit_commit(auction_id, bidder_id, commit_hash)

    def submit_reveal(self, auction_id: str, bidder_id: str, amount, salt: str) -> BidReceipt:
        return self._auctions.submit_reveal(auction_id, bidder_id, amount, salt)

    def get_auction_state(self, auction_id: str) -> GapAuction:
        return self._auctions.get_auction_state(auction_id)


__all__ = [
    "AdmissionResult",
    "ControlPlane",
]
