# usage_example.py
# Minimal usage example for stockshield.ControlPlane.
# This file is not part of the stockshield package. For reference only.

from datetime import datetime, timedelta, timezone

from stockshield import ControlPlane
from stockshield.core.auction import compute_commit_hash
from stockshield.core.control_plane import PoolLiquidity, RiskSignals


class SteppingClock:
    """Manually advanced clock so the auction phases can be walked through."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


# Tuesday 2026-03-10, 10:00 New York (14:00 UTC): CORE_SESSION
clock = SteppingClock(datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc))
plane = ControlPlane(clock=clock)

plane.register_pair(
    "AAPL-USDC",
    RiskSignals(
        volatility=0.35,
        toxicity_score=0.25,
        inventory_imbalance=0.0,
        last_oracle_update_time=clock.now,
        last_observed_pool_price=100.0,
        last_observed_oracle_price=100.0,
    ),
    PoolLiquidity(pool_tvl=1_000_000.0, lp_pool_share=0.10),
)

# Fee quote and admission
result = plane.admit_trade("AAPL-USDC")
print(f"regime={result.assessment.regime.value} fee={result.admission.fee_bps} bps "
      f"level={result.admission.breaker_level}")
# regime=CORE_SESSION fee=21.4 bps level=0

# Oracle prints +10% above the pool: an auction opens
auction_id = plane.on_oracle_update("AAPL-USDC", 110.0)
plane.submit_commit(auction_id, "alice", compute_commit_hash("7200", "salt-1", "alice"))

clock.advance(45)                       # reveal phase, 0.75 min after start
receipt = plane.submit_reveal(auction_id, "alice", "7200", "salt-1")
print(f"min_bid={receipt.min_bid} meets_floor={receipt.meets_floor}")
# min_bid=5185.73 meets_floor=True

clock.advance(15)                       # reveal deadline reached
settlement = plane.get_auction_state(auction_id).settlement
print(f"winner={settlement.winner} lp_gains={settlement.lp_gains} "
      f"winner_share={settlement.winner_share} unmitigated={settlement.unmitigated_loss}")
# winner=alice lp_gains=5040.00 winner_share=2160.00 unmitigated=4960.00

# Audit trail
print(f"events={plane.event_logger.event_count()} chain_ok={plane.event_logger.verify_chain()}")
