# =============================================================================
# STOCKSHIELD v1.0.0 -- GAP AUCTION
# File:   stockshield/core/auction/protocol.py
# =============================================================================
#
# SCOPE
# -----
# Commit-reveal gap-capture auction.
#
#   on_oracle_update(pair_id, new_price)   -> Optional[auction_id]
#   on_trading_resumed(pair_id)            -> Optional[auction_id]
#   submit_commit(auction_id, bidder_id, commit_hash)   -> BidReceipt
#   submit_reveal(auction_id, bidder_id, amount, salt)  -> BidReceipt
#   get_auction_state(auction_id)          -> GapAuction
#
# TRIGGER
# -------
#   gap = (new_oracle_price - reference_pool_price) / reference_pool_price
#   open when |gap| >= min_gap_threshold and no auction is open for the pair.
#
# SETTLEMENT
# ----------
# Lazy and one-time: the first access at or after reveal_deadline settles
# the auction. Winner = highest revealed amount that meets the floor in
# force at its own reveal instant; ties go to the lowest commit sequence.
#
# CONCURRENCY
# -----------
# Every public method runs under one protocol lock, so a submission is
# accepted or rejected as a whole and the auction table is never observed
# half-updated. The injected clock is read once per call, inside the lock,
# and is the only time source for phase decisions.
#
# INVARIANTS
# ----------
# INV-GA-01  At most one non-terminal auction per pair.
# INV-GA-02  Phase is a pure function of (start, deadlines, clock()).
# INV-GA-03  Settlement is computed exactly once and never changes.
# INV-GA-04  Rejected submissions leave the auction unchanged.
# =============================================================================

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal, localcontext
from typing import Callable, Dict, List, Optional, Tuple

from stockshield.core.control_plane.config import AuctionParameters
from stockshield.core.control_plane.domain import _check_aware_datetime
from stockshield.core.control_plane.exceptions import UnknownAuctionError
from stockshield.core.logging_layer import EventLogger, EventType
from stockshield.core.signal_store import RiskSignalStore

from .commitment import (
    MONEY_CONTEXT,
    compute_commit_hash,
    elapsed_minutes,
    gap_value,
    is_valid_commit_hash,
    min_bid,
    parse_bid_amount,
    to_cents,
)
from .domain import (
    AuctionPhase,
    AuctionSettlement,
    AuctionStatus,
    Bid,
    BidReceipt,
    BidRejectionReason,
    GapAuction,
    GapDirection,
    phase_at,
)

Clock = Callable[[], datetime]

_ZERO_CENTS = Decimal("0.00")


def system_clock() -> datetime:
    """Default authoritative clock: current UTC time."""
    return datetime.now(timezone.utc)


# =============================================================================
# SECTION 1 -- INTERNAL RECORD
# =============================================================================

@dataclass
class _AuctionRecord:
    auction_id:           str
    pair_id:              str
    gap_percent:          Decimal
    gap_value:            Decimal
    reference_pool_price: Decimal
    oracle_price:         Decimal
    start_time:           datetime
    commit_deadline:      datetime
    reveal_deadline:      datetime
    bids:                 Dict[str, Bid] = field(default_factory=dict)
    settlement:           Optional[AuctionSettlement] = None
    status:               Optional[AuctionStatus] = None   # set once terminal


# =============================================================================
# SECTION 2 -- PROTOCOL
# =============================================================================

class GapAuctionProtocol:
    """
    Gap-capture auction engine for all pairs.

    Args:
        params:       AuctionParameters (thresholds, durations, rates).
        store:        RiskSignalStore holding pool / oracle prices and
                      liquidity per pair.
        clock:        Authoritative clock. Defaults to system_clock.
        event_logger: Audit log. A private logger is created when omitted.
    """

    def __init__(
        self,
        params:       AuctionParameters,
        store:        RiskSignalStore,
        clock:        Optional[Clock] = None,
        event_logger: Optional[EventLogger] = None,
    ) -> None:
        self._params = params
        self._store = store
        self._clock: Clock = clock if clock is not None else system_clock
        self._log = event_logger if event_logger is not None else EventLogger()
        self._lock = threading.RLock()
        self._auctions: Dict[str, _AuctionRecord] = {}
        self._open_by_pair: Dict[str, str] = {}
        self._priority: Dict[str, str] = {}
        self._auction_counter = 0
        self._commit_counter = 0

    # -----------------------------------------------------------------------
    # SECTION 2.1 -- clock
    # -----------------------------------------------------------------------

    def _now(self) -> datetime:
        now = self._clock()
        _check_aware_datetime("clock()", now)
        return now

    # -----------------------------------------------------------------------
    # SECTION 2.2 -- triggers
    # -----------------------------------------------------------------------

    def on_oracle_update(self, pair_id: str, new_oracle_price: float) -> Optional[str]:
        """
        Record a new oracle print and open an auction if the gap is large
        enough. Returns the new auction id, or None.

        Raises:
            UnknownPairError, ShieldValidationError (non-positive price).
        """
        with self._lock:
            now = self._now()
            reference = self._store.snapshot(pair_id).last_observed_pool_price
            self._store.record_oracle_price(pair_id, new_oracle_price, now)
            return self._maybe_open(pair_id, reference, new_oracle_price, now)

    def on_trading_resumed(self, pair_id: str) -> Optional[str]:
        """Re-check the stored oracle price against the pool after a halt."""
        with self._lock:
            now = self._now()
            signals = self._store.snapshot(pair_id)
            return self._maybe_open(
                pair_id,
                signals.last_observed_pool_price,
                signals.last_observed_oracle_price,
                now,
            )

    def _maybe_open(
        self,
        pair_id:   str,
        reference: float,
        oracle:    float,
        now:       datetime,
    ) -> Optional[str]:
        open_id = self._open_by_pair.get(pair_id)
        if open_id is not None:
            self._settle_if_due(self._auctions[open_id], now)
            if pair_id in self._open_by_pair:
                return None

        ref_dec = Decimal(str(reference))
        oracle_dec = Decimal(str(oracle))
        with localcontext(MONEY_CONTEXT):
            gap = (oracle_dec - ref_dec) / ref_dec
        if abs(gap) < self._params.min_gap_threshold:
            return None

        liquidity = self._store.liquidity(pair_id)
        self._auction_counter += 1
        auction_id = "AUC-{:08d}".format(self._auction_counter)
        commit_deadline = now + timedelta(seconds=self._params.commit_phase_seconds)
        record = _AuctionRecord(
            auction_id=auction_id,
            pair_id=pair_id,
            gap_percent=gap,
            gap_value=gap_value(abs(gap), liquidity.pool_tvl, liquidity.lp_pool_share),
            reference_pool_price=ref_dec,
            oracle_price=oracle_dec,
            start_time=now,
            commit_deadline=commit_deadline,
            reveal_deadline=commit_deadline + timedelta(seconds=self._params.reveal_phase_seconds),
        )
        self._auctions[auction_id] = record
        self._open_by_pair[pair_id] = auction_id
        # A new gap supersedes an unused priority right.
        self._priority.pop(pair_id, None)

        self._log.log_event(EventType.AUCTION_OPENED, {
            "auction_id":      auction_id,
            "pair_id":         pair_id,
            "gap_percent":     gap,
            "gap_value":       record.gap_value,
            "commit_deadline": record.commit_deadline,
            "reveal_deadline": record.reveal_deadline,
        }, now)
        return auction_id

    # -----------------------------------------------------------------------
    # SECTION 2.3 -- submissions
    # -----------------------------------------------------------------------

    def _reject(
        self,
        record:    _AuctionRecord,
        bidder_id: str,
        reason:    BidRejectionReason,
        now:       datetime,
    ) -> BidReceipt:
        self._log.log_event(EventType.BID_REJECTED, {
            "auction_id": record.auction_id,
            "pair_id":    record.pair_id,
            "bidder_id":  bidder_id,
            "reason":     reason,
        }, now)
        return BidReceipt(
            auction_id=record.auction_id,
            bidder_id=bidder_id,
            accepted=False,
            received_at=now,
            rejection=reason,
        )

    def submit_commit(self, auction_id: str, bidder_id: str, commit_hash: str) -> BidReceipt:
        """
        Record or overwrite a bidder's commitment.

        Rejected with COMMIT_AFTER_DEADLINE once the commit phase has ended,
        MALFORMED_COMMIT for a bad bidder id or hash.
        """
        with self._lock:
            now = self._now()
            record = self._get(auction_id)
            self._settle_if_due(record, now)

            phase = phase_at(record.start_time, record.commit_deadline, record.reveal_deadline, now)
            if phase is not AuctionPhase.COMMIT:
                return self._reject(record, bidder_id, BidRejectionReason.COMMIT_AFTER_DEADLINE, now)
            if not isinstance(bidder_id, str) or not bidder_id or not is_valid_commit_hash(commit_hash):
                return self._reject(record, bidder_id, BidRejectionReason.MALFORMED_COMMIT, now)

            self._commit_counter += 1
            # Overwrite moves the bidder to the back of the commit order.
            record.bids.pop(bidder_id, None)
            record.bids[bidder_id] = Bid(
                bidder_id=bidder_id,
                commit_hash=commit_hash,
                commit_sequence=self._commit_counter,
                committed_at=now,
            )
            self._log.log_event(EventType.BID_COMMITTED, {
                "auction_id":      auction_id,
                "pair_id":         record.pair_id,
                "bidder_id":       bidder_id,
                "commit_sequence": self._commit_counter,
            }, now)
            return BidReceipt(
                auction_id=auction_id,
                bidder_id=bidder_id,
                accepted=True,
                received_at=now,
            )

    def submit_reveal(self, auction_id: str, bidder_id: str, amount, salt: str) -> BidReceipt:
        """
        Open a prior commitment.

        A mismatching reveal is rejected and may be retried. A valid reveal
        below the floor is accepted but cannot win (meets_floor False).
        """
        with self._lock:
            now = self._now()
            record = self._get(auction_id)
            self._settle_if_due(record, now)

            phase = phase_at(record.start_time, record.commit_deadline, record.reveal_deadline, now)
            if phase is AuctionPhase.COMMIT:
                return self._reject(record, bidder_id, BidRejectionReason.REVEAL_BEFORE_COMMIT_DEADLINE, now)
            if phase is AuctionPhase.CLOSED:
                return self._reject(record, bidder_id, BidRejectionReason.REVEAL_AFTER_DEADLINE, now)

            bid = record.bids.get(bidder_id) if isinstance(bidder_id, str) else None
            if bid is None:
                return self._reject(record, bidder_id, BidRejectionReason.NO_COMMITMENT, now)
            if bid.is_revealed:
                return self._reject(record, bidder_id, BidRejectionReason.DUPLICATE_REVEAL, now)

            parsed = parse_bid_amount(amount)
            if parsed is None or not isinstance(salt, str) or not salt:
                return self._reject(record, bidder_id, BidRejectionReason.MALFORMED_REVEAL, now)
            if compute_commit_hash(parsed, salt, bidder_id) != bid.commit_hash:
                return self._reject(record, bidder_id, BidRejectionReason.HASH_MISMATCH, now)

            floor = min_bid(
                record.gap_value,
                self._params.lp_capture_rate,
                self._params.decay_rate_per_minute,
                elapsed_minutes(now - record.start_time),
            )
            revealed = replace(
                bid,
                revealed_amount=parsed,
                revealed_salt=salt,
                revealed_at=now,
                min_bid_at_reveal=floor,
            )
            record.bids[bidder_id] = revealed

            self._log.log_event(EventType.BID_REVEALED, {
                "auction_id":  auction_id,
                "pair_id":     record.pair_id,
                "bidder_id":   bidder_id,
                "amount":      parsed,
                "min_bid":     floor,
                "meets_floor": revealed.meets_floor,
            }, now)
            return BidReceipt(
                auction_id=auction_id,
                bidder_id=bidder_id,
                accepted=True,
                received_at=now,
                min_bid=floor,
                meets_floor=revealed.meets_floor,
            )

    # -----------------------------------------------------------------------
    # SECTION 2.4 -- settlement
    # -----------------------------------------------------------------------

    def _settle_if_due(self, record: _AuctionRecord, now: datetime) -> None:
        if record.settlement is not None or now < record.reveal_deadline:
            return

        candidates: List[Bid] = [b for b in record.bids.values() if b.meets_floor]
        settled_at = record.reveal_deadline

        if candidates:
            winner = max(candidates, key=lambda b: (b.revealed_amount, -b.commit_sequence))
            captured = winner.revealed_amount
            with localcontext(MONEY_CONTEXT):
                lp_gains = to_cents(captured * self._params.lp_capture_rate)
                winner_share = captured - lp_gains
                unmitigated = max(record.gap_value - lp_gains, _ZERO_CENTS)
            record.settlement = AuctionSettlement(
                winner=winner.bidder_id,
                winning_bid=captured,
                captured_value=captured,
                lp_gains=lp_gains,
                winner_share=winner_share,
                unmitigated_loss=unmitigated,
                settled_at=settled_at,
            )
            record.status = AuctionStatus.SETTLED
            self._priority[record.pair_id] = winner.bidder_id
            event_type = EventType.AUCTION_SETTLED
        else:
            record.settlement = AuctionSettlement(
                winner=None,
                winning_bid=None,
                captured_value=_ZERO_CENTS,
                lp_gains=_ZERO_CENTS,
                winner_share=_ZERO_CENTS,
                unmitigated_loss=record.gap_value,
                settled_at=settled_at,
            )
            record.status = AuctionStatus.EXPIRED
            event_type = EventType.AUCTION_EXPIRED

        if self._open_by_pair.get(record.pair_id) == record.auction_id:
            del self._open_by_pair[record.pair_id]

        s = record.settlement
        self._log.log_event(event_type, {
            "auction_id":       record.auction_id,
            "pair_id":          record.pair_id,
            "winner":           s.winner,
            "captured_value":   s.captured_value,
            "lp_gains":         s.lp_gains,
            "winner_share":     s.winner_share,
            "unmitigated_loss": s.unmitigated_loss,
            "valid_reveals":    sum(1 for b in record.bids.values() if b.is_revealed),
        }, settled_at)

    # -----------------------------------------------------------------------
    # SECTION 2.5 -- reads
    # -----------------------------------------------------------------------

    def _get(self, auction_id: str) -> _AuctionRecord:
        record = self._auctions.get(auction_id)
        if record is None:
            raise UnknownAuctionError(auction_id)
        return record

    def _snapshot(self, record: _AuctionRecord, now: datetime) -> GapAuction:
        if record.status is not None:
            status = record.status
        elif phase_at(record.start_time, record.commit_deadline, record.reveal_deadline, now) is AuctionPhase.COMMIT:
            status = AuctionStatus.COMMITTING
        else:
            status = AuctionStatus.REVEALING

        return GapAuction(
            auction_id=record.auction_id,
            pair_id=record.pair_id,
            gap_direction=GapDirection.UP if record.gap_percent > 0 else GapDirection.DOWN,
            gap_percent=record.gap_percent,
            gap_magnitude=abs(record.gap_percent),
            gap_value=record.gap_value,
            reference_pool_price=record.reference_pool_price,
            oracle_price=record.oracle_price,
            start_time=record.start_time,
            commit_deadline=record.commit_deadline,
            reveal_deadline=record.reveal_deadline,
            bids=tuple(sorted(record.bids.values(), key=lambda b: b.commit_sequence)),
            status=status,
            settlement=record.settlement,
        )

    def get_auction_state(self, auction_id: str) -> GapAuction:
        """Snapshot at the current clock instant. Settles a due auction."""
        with self._lock:
            now = self._now()
            record = self._get(auction_id)
            self._settle_if_due(record, now)
            return self._snapshot(record, now)

    def open_auction_for(self, pair_id: str) -> Optional[GapAuction]:
        """The pair's non-terminal auction, or None."""
        with self._lock:
            now = self._now()
            auction_id = self._open_by_pair.get(pair_id)
            if auction_id is None:
                return None
            record = self._auctions[auction_id]
            self._settle_if_due(record, now)
            if record.settlement is not None:
                return None
            return self._snapshot(record, now)

    def settled_auctions(self) -> Tuple[GapAuction, ...]:
        """All terminal auctions, oldest first."""
        with self._lock:
            now = self._now()
            for record in self._auctions.values():
                self._settle_if_due(record, now)
            return tuple(
                self._snapshot(r, now)
                for r in self._auctions.values()
                if r.settlement is not None
            )

    # -----------------------------------------------------------------------
    # SECTION 2.6 -- priority execution right
    # -----------------------------------------------------------------------

    def _settle_pair_if_due(self, pair_id: str) -> None:
        open_id = self._open_by_pair.get(pair_id)
        if open_id is not None:
            self._settle_if_due(self._auctions[open_id], self._now())

    def priority_bidder(self, pair_id: str) -> Optional[str]:
        """Winner of the pair's last settled auction, until consumed."""
        with self._lock:
            self._settle_pair_if_due(pair_id)
            return self._priority.get(pair_id)

    def consume_priority(self, pair_id: str, bidder_id: str) -> bool:
        """Use the right for one trade. True when bidder_id held it."""
        with self._lock:
            self._settle_pair_if_due(pair_id)
            if self._priority.get(pair_id) != bidder_id:
                return False
            del self._priority[pair_id]
            return True


__all__ = [
    "Clock",
    "system_clock",
    "GapAuctionProtocol",
]
