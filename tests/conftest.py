from datetime import datetime, timedelta, timezone

import pytest

from stockshield.core.control_plane import PoolLiquidity, RiskSignals, default_config
from stockshield.core.logging_layer import EventLogger
from stockshield.core.signal_store import RiskSignalStore

# Tuesday 2026-03-10, 10:00 New York (EDT, UTC-4): CORE_SESSION.
CORE_INSTANT = datetime(2026, 3, 10, 14, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced authoritative clock."""

    def __init__(self, start: datetime = CORE_INSTANT) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture
def core_instant() -> datetime:
    return CORE_INSTANT


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config():
    return default_config()


@pytest.fixture
def event_logger() -> EventLogger:
    return EventLogger()


@pytest.fixture
def make_signals():
    """
    Factory for RiskSignals. Defaults: vol 0.35, toxicity 0.25, balanced
    inventory, fresh oracle at CORE_INSTANT, pool == oracle == 100.
    """
    def _make(**overrides) -> RiskSignals:
        fields = dict(
            volatility=0.35,
            toxicity_score=0.25,
            inventory_imbalance=0.0,
            last_oracle_update_time=CORE_INSTANT,
            last_observed_pool_price=100.0,
            last_observed_oracle_price=100.0,
        )
        fields.update(overrides)
        return RiskSignals(**fields)
    return _make


@pytest.fixture
def liquidity() -> PoolLiquidity:
    """TVL 1,000,000 with a 10% LP share: a 10% gap is worth 10,000.00."""
    return PoolLiquidity(pool_tvl=1_000_000.0, lp_pool_share=0.10)


@pytest.fixture
def store(make_signals, liquidity) -> RiskSignalStore:
    """Store with one registered pair, 'AAPL-USDC'."""
    s = RiskSignalStore()
    s.register_pair("AAPL-USDC", make_signals(), liquidity, CORE_INSTANT)
    return s
