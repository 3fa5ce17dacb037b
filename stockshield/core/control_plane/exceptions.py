# =============================================================================
# STOCKSHIELD v1.0.0 -- CONTROL PLANE
# File:   stockshield/core/control_plane/exceptions.py
# =============================================================================
#
# Errors raised at the control-plane boundary.
#
#   ShieldError                        root; carries field_name and value
#     ShieldNumericalError             NaN / Inf where a number is required
#     ShieldValidationError            type, range, sign or tz-awareness
#     ShieldParameterConsistencyError  two valid fields that contradict
#     UnknownPairError                 pair_id never registered
#     UnknownAuctionError              auction_id never issued
#
# Halts, rejected bids and expired auctions are typed results
# (TradeVerdict, BidReceipt.rejection, AuctionStatus.EXPIRED), not errors.
# =============================================================================

from __future__ import annotations

from typing import Any


class ShieldError(Exception):
    """Root of the control-plane errors. `message` is the full text."""

    def __init__(self, message: str, field_name: str = "", value: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.field_name = field_name
        self.value = value


class ShieldNumericalError(ShieldError):

    def __init__(self, field_name: str, value: Any) -> None:
        super().__init__(
            f"{field_name}: non-finite value {value!r} (NaN / Inf rejected)",
            field_name,
            value,
        )


class ShieldValidationError(ShieldError):
    """
    A single field failed its constraint. `constraint` is the rule in words,
    e.g. "must be in [0.0, 1.0]" or "must be timezone-aware".
    """

    def __init__(self, field_name: str, value: Any, constraint: str) -> None:
        super().__init__(f"{field_name} {constraint}, got {value!r}", field_name, value)
        self.constraint = constraint


class ShieldParameterConsistencyError(ShieldError):
    """Fields a and b each pass on their own but break `invariant_description`."""

    def __init__(
        self,
        field_a:               str,
        value_a:               Any,
        field_b:               str,
        value_b:               Any,
        invariant_description: str,
    ) -> None:
        super().__init__(
            f"{invariant_description}: {field_a}={value_a!r}, {field_b}={value_b!r}",
            field_a,
            value_a,
        )
        self.field_b = field_b
        self.value_b = value_b
        self.invariant_description = invariant_description


class UnknownPairError(ShieldError):

    def __init__(self, pair_id: Any) -> None:
        super().__init__(f"pair {pair_id!r} is not registered", "pair_id", pair_id)
        self.pair_id = pair_id


class UnknownAuctionError(ShieldError):

    def __init__(self, auction_id: Any) -> None:
        super().__init__(f"auction {auction_id!r} was never opened", "auction_id", auction_id)
        self.auction_id = auction_id


__all__ = [
    "ShieldError",
    "ShieldNumericalError",
    "ShieldValidationError",
    "ShieldParameterConsistencyError",
    "UnknownPairError",
    "UnknownAuctionError",
]
