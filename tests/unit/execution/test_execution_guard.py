import dataclasses
from datetime import timedelta
from decimal import Decimal

import pytest

from stockshield.core.control_plane import assess_trade
from stockshield.core.execution_guard import TradeAdmission, build_trade_admission
from stockshield.core.regime import Regime


# =============================================================================
# SHARED HELPERS
# =============================================================================
#
# ADMIT level 0: default signals at CORE_INSTANT (fee 21.4 bps).
# ADMIT level 2: toxicity 0.9 and |imbalance| 0.6 (spread x5, depth -50%).
# HALT:          oracle two minutes stale in CORE_SESSION.
# =============================================================================

_PAIR = "AAPL-USDC"


@pytest.fixture
def admit(make_signals, core_instant, config):
    return assess_trade(make_signals(), core_instant, config)


@pytest.fixture
def caution(make_signals, core_instant, config):
    return assess_trade(
        make_signals(toxicity_score=0.9, inventory_imbalance=0.6), core_instant, config
    )


@pytest.fixture
def halted(make_signals, core_instant, config):
    return assess_trade(make_signals(), core_instant + timedelta(minutes=2), config)


class TestBuildTradeAdmission:

    def test_halted_returns_none(self, halted):
        assert build_trade_admission(_PAIR, halted) is None

    def test_halted_returns_none_for_priority_holder(self, halted):
        assert build_trade_admission(_PAIR, halted, "alice", "alice") is None

    def test_admission_fields(self, admit):
        a = build_trade_admission(_PAIR, admit)
        assert isinstance(a, TradeAdmission)
        assert a.pair_id == _PAIR
        assert a.regime == Regime.CORE_SESSION
        assert a.fee_bps == Decimal("21.4")
        assert a.breaker_level == 0
        assert a.spread_multiplier == Decimal("1.0")
        assert a.depth_reduction == Decimal("0")

    def test_breaker_effects_carried(self, caution):
        a = build_trade_admission(_PAIR, caution)
        assert a.breaker_level == 2
        assert a.spread_multiplier == Decimal("5.0")
        assert a.depth_reduction == Decimal("0.50")

    def test_admission_frozen(self, admit):
        a = build_trade_admission(_PAIR, admit)
        with pytest.raises(dataclasses.FrozenInstanceError):
            a.fee_bps = Decimal("0")  # type: ignore[misc]


class TestPriority:

    def test_no_holder(self, admit):
        a = build_trade_admission(_PAIR, admit, "alice")
        assert a.priority_holder is None
        assert a.is_priority_trade is False

    def test_holder_trading(self, admit):
        a = build_trade_admission(_PAIR, admit, "alice", "alice")
        assert a.priority_holder == "alice"
        assert a.is_priority_trade is True

    def test_other_bidder_trading(self, admit):
        a = build_trade_admission(_PAIR, admit, "bob", "alice")
        assert a.priority_holder == "alice"
        assert a.is_priority_trade is False

    def test_anonymous_trade_never_priority(self, admit):
        assert build_trade_admission(_PAIR, admit, None, "alice").is_priority_trade is False
