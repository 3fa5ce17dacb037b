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
from .commitment import (
    compute_commit_hash,
    elapsed_minutes,
    gap_value,
    is_valid_commit_hash,
    min_bid,
    parse_bid_amount,
)
from .protocol import (
    Clock,
    GapAuctionProtocol,
    system_clock,
)

__all__ = [
    # Enumerations
    "GapDirection",
    "AuctionPhase",
    "AuctionStatus",
    "BidRejectionReason",
    # Value types
    "Bid",
    "BidReceipt",
    "AuctionSettlement",
    "GapAuction",
    "phase_at",
    # Commit-reveal arithmetic
    "compute_commit_hash",
    "is_valid_commit_hash",
    "parse_bid_amount",
    "gap_value",
    "elapsed_minutes",
    "min_bid",
    # Protocol
    "Clock",
    "system_clock",
    "GapAuctionProtocol",
]
