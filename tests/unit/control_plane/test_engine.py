from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from stockshield.core.control_plane import (
    BreakerFlag,
    ShieldValidationError,
    TradeVerdict,
    assess_trade,
    validate_timestamp,
)
from stockshield.core.regime import Regime


class TestAssessTrade:

    def test_core_session_admit(self, make_signals, core_instant, config):
        a = assess_trade(make_signals(), core_instant, config)
        assert a.regime == Regime.CORE_SESSION
        assert a.fee_quote.total_fee_bps == Decimal("21.4")
        assert a.breaker_state.level == 0
        assert a.verdict == TradeVerdict.ADMIT
        assert a.allowed
        assert a.evaluated_at == core_instant

    def test_next_transition_reported(self, make_signals, core_instant, config):
        a = assess_trade(make_signals(), core_instant, config)
        # 16:00 EDT == 20:00 UTC
        assert a.next_transition_time == datetime(2026, 3, 10, 20, 0, tzinfo=timezone.utc)

    def test_stale_oracle_rejects_halt(self, make_signals, core_instant, config):
        a = assess_trade(make_signals(), core_instant + timedelta(minutes=2), config)
        assert a.breaker_state.active_flags == frozenset({BreakerFlag.ORACLE_STALE})
        assert a.verdict == TradeVerdict.REJECT_HALT
        assert not a.allowed
        assert not a.effects.trading_allowed

    def test_fee_still_quoted_when_halted(self, make_signals, core_instant, config):
        a = assess_trade(make_signals(), core_instant + timedelta(minutes=2), config)
        assert a.fee_quote.total_fee_bps == Decimal("21.4")

    def test_effects_follow_level(self, make_signals, core_instant, config):
        a = assess_trade(make_signals(toxicity_score=0.9, inventory_imbalance=0.6), core_instant, config)
        assert a.breaker_state.level == 2
        assert a.effects.label == "Caution"

    def test_previous_state_carried(self, make_signals, core_instant, config):
        first = assess_trade(make_signals(toxicity_score=0.9), core_instant, config)
        second = assess_trade(
            make_signals(toxicity_score=0.9), core_instant + timedelta(seconds=5), config,
            first.breaker_state,
        )
        assert second.breaker_state.entered_at == core_instant

    def test_weekend_fee_and_no_staleness(self, make_signals, config):
        saturday = datetime(2026, 3, 14, 16, 0, tzinfo=timezone.utc)
        a = assess_trade(make_signals(), saturday, config)
        assert a.regime == Regime.WEEKEND
        assert a.fee_quote.total_fee_bps == Decimal("80.0")
        assert a.breaker_state.level == 0

    def test_naive_now_rejected(self, make_signals, config):
        with pytest.raises(ShieldValidationError):
            assess_trade(make_signals(), datetime(2026, 3, 10, 10, 0), config)


class TestValidateTimestamp:

    def test_returns_value(self, core_instant):
        assert validate_timestamp(core_instant) is core_instant

    def test_field_name_in_error(self):
        with pytest.raises(ShieldValidationError, match="clock"):
            validate_timestamp("now", "clock()")
