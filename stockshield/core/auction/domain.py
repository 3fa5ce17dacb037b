# =============================================================================
# STOCKSHIELD v1.0.0 -- GAP AUCTION
# File:   stockshield/core/auction/domain.py
# =============================================================================
#
# SCOPE
# -----
# Frozen value types of the gap-capture auction and the pure phase function.
#
#   GapDirection, AuctionPhase, AuctionStatus, BidRejectionReason
#   Bid, BidReceipt, AuctionSettlement, GapAuction
#   phase_at(start, commit_deadline, reveal_deadline, now) -> AuctionPhase
#
# PHASES (half-open, authoritative clock only)
# --------------------------------------------
#   [start, commit_deadline)            COMMIT
#   [commit_deadline, reveal_deadline)  REVEAL
#   [reveal_deadline, ...)              CLOSED  -> SETTLED or EXPIRED
#
# Phases are monotone. There is no re-entry and no external cancellation.
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple


# =============================================================================
# SECTION 1 -- ENUMERATIONS
# =============================================================================

class GapDirection(str, Enum):
    UP   = "UP"
    DOWN = "DOWN"


class AuctionPhase(str, Enum):
    """Time-derived phase. Output of phase_at()."""
    COMMIT = "COMMIT"
    REVEAL = "REVEAL"
    CLOSED = "CLOSED"


class AuctionStatus(str, Enum):
    """
    Observable auction status.

    COMMITTING / REVEALING follow the phase. A closed auction is SETTLED
    when a valid bid met its floor, EXPIRED otherwise.
    """
    COMMITTING = "COMMITTING"
    REVEALING  = "REVEALING"
    SETTLED    = "SETTLED"
    EXPIRED    = "EXPIRED"


class BidRejectionReason(str, Enum):
    """Why a single submission was dropped. The auction always continues."""
    COMMIT_AFTER_DEADLINE         = "COMMIT_AFTER_DEADLINE"
    MALFORMED_COMMIT              = "MALFORMED_COMMIT"
    REVEAL_BEFORE_COMMIT_DEADLINE = "REVEAL_BEFORE_COMMIT_DEADLINE"
    REVEAL_AFTER_DEADLINE         = "REVEAL_AFTER_DEADLINE"
    NO_COMMITMENT                 = "NO_COMMITMENT"
    HASH_MISMATCH                 = "HASH_MISMATCH"
    DUPLICATE_REVEAL              = "DUPLICATE_REVEAL"
    MALFORMED_REVEAL              = "MALFORMED_REVEAL"


# =============================================================================
# SECTION 2 -- PHASE FUNCTION
# =============================================================================

def phase_at(
    start:           datetime,
    commit_deadline: datetime,
    reveal_deadline: datetime,
    now:             datetime,
) -> AuctionPhase:
    """
    Phase of an auction at instant now. Pure.

    An instant before start (clock skew between callers) is treated as
    COMMIT; the protocol only ever passes its own clock.
    """
    if now < commit_deadline:
        return AuctionPhase.COMMIT
    if now < reveal_deadline:
        return AuctionPhase.REVEAL
    return AuctionPhase.CLOSED


# =============================================================================
# SECTION 3 -- BIDS AND RECEIPTS
# =============================================================================

@dataclass(frozen=True)
class Bid:
    """
    One bidder's commitment and, once revealed, its opening.

    commit_sequence orders commitments across the auction. Overwriting a
    commitment assigns a fresh sequence. min_bid_at_reveal is the floor in
    force at the reveal instant.
    """
    bidder_id:         str
    commit_hash:       str
    commit_sequence:   int
    committed_at:      datetime
    revealed_amount:   Optional[Decimal]  = None
    revealed_salt:     Optional[str]      = None
    revealed_at:       Optional[datetime] = None
    min_bid_at_reveal: Optional[Decimal]  = None

    @property
    def is_revealed(self) -> bool:
        return self.revealed_amount is not None

    @property
    def meets_floor(self) -> bool:
        return (
            self.revealed_amount is not None
            and self.min_bid_at_reveal is not None
            and self.revealed_amount >= self.min_bid_at_reveal
        )


@dataclass(frozen=True)
class BidReceipt:
    """
    Outcome of submit_commit / submit_reveal.

    accepted False carries a BidRejectionReason. For an accepted reveal,
    min_bid is the floor at the reveal instant and meets_floor tells the
    bidder whether the bid can win.
    """
    auction_id:  str
    bidder_id:   str
    accepted:    bool
    received_at: datetime
    rejection:   Optional[BidRejectionReason] = None
    min_bid:     Optional[Decimal]            = None
    meets_floor: Optional[bool]               = None


# =============================================================================
# SECTION 4 -- SETTLEMENT AND SNAPSHOT
# =============================================================================

@dataclass(frozen=True)
class AuctionSettlement:
    """
    Terminal distribution. All amounts in currency, rounded to cents.

    Winner:     captured_value = winning bid
                lp_gains       = captured_value * LP_CAPTURE_RATE
                winner_share   = captured_value - lp_gains
                unmitigated    = max(gap_value - lp_gains, 0)
    No winner:  captured_value = lp_gains = winner_share = 0
                unmitigated    = gap_value
    """
    winner:           Optional[str]
    winning_bid:      Optional[Decimal]
    captured_value:   Decimal
    lp_gains:         Decimal
    winner_share:     Decimal
    unmitigated_loss: Decimal
    settled_at:       datetime


@dataclass(frozen=True)
class GapAuction:
    """Immutable snapshot of one auction as observed at one instant."""
    auction_id:           str
    pair_id:              str
    gap_direction:        GapDirection
    gap_percent:          Decimal
    gap_magnitude:        Decimal
    gap_value:            Decimal
    reference_pool_price: Decimal
    oracle_price:         Decimal
    start_time:           datetime
    commit_deadline:      datetime
    reveal_deadline:      datetime
    bids:                 Tuple[Bid, ...]
    status:               AuctionStatus
    settlement:           Optional[AuctionSettlement] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (AuctionStatus.SETTLED, AuctionStatus.EXPIRED)


__all__ = [
    "GapDirection",
    "AuctionPhase",
    "AuctionStatus",
    "BidRejectionReason",
    "phase_at",
    "Bid",
    "BidReceipt",
    "AuctionSettlement",
    "GapAuction",
]
