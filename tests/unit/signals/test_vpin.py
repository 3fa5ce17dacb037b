from datetime import date

import pytest

from stockshield.core.control_plane import ShieldValidationError
from stockshield.signals import VPINCalculator, interpret_vpin

# Default bucket: 50,000 USD. Bounds 10,000 .. 1,000,000, ADV / 50.

_DAY_1 = date(2026, 3, 10)
_DAY_2 = date(2026, 3, 11)


class TestProcessTrade:

    def test_zero_before_first_bucket(self):
        calc = VPINCalculator()
        assert calc.process_trade(30_000.0, True) == 0.0
        assert calc.metrics().buckets_filled == 0
        assert calc.metrics().current_bucket_volume == 30_000.0

    def test_bucket_imbalance(self):
        calc = VPINCalculator()
        calc.process_trade(30_000.0, True)
        assert calc.process_trade(20_000.0, False) == pytest.approx(0.2)
        assert calc.metrics().buckets_filled == 1
        assert calc.metrics().current_bucket_volume == 0.0

    def test_one_sided_flow_is_one(self):
        calc = VPINCalculator()
        assert calc.process_trade(50_000.0, False) == pytest.approx(1.0)

    def test_overflow_stays_in_closing_bucket(self):
        calc = VPINCalculator()
        calc.process_trade(120_000.0, True)
        assert calc.metrics().buckets_filled == 1
        assert calc.metrics().current_bucket_volume == 0.0

    def test_rolling_window_drops_oldest(self):
        calc = VPINCalculator(num_buckets=2)
        calc.process_trade(50_000.0, True)           # imbalance 1.0
        calc.process_trade(25_000.0, True)
        calc.process_trade(25_000.0, False)          # imbalance 0.0
        calc.process_trade(25_000.0, True)
        calc.process_trade(25_000.0, False)          # imbalance 0.0, evicts the first
        assert calc.vpin() == pytest.approx(0.0)

    @pytest.mark.parametrize("volume", [0.0, -10.0, float("nan")])
    def test_non_positive_volume_rejected(self, volume):
        with pytest.raises(ShieldValidationError):
            VPINCalculator().process_trade(volume, True)


class TestRecalibration:

    def test_bucket_from_adv(self):
        calc = VPINCalculator()
        assert calc.recalibrate(_DAY_1, 5_000_000.0) == pytest.approx(100_000.0)
        assert calc.average_daily_volume() == pytest.approx(5_000_000.0)

    def test_idempotent_per_session(self):
        calc = VPINCalculator()
        calc.recalibrate(_DAY_1, 5_000_000.0)
        assert calc.recalibrate(_DAY_1, 50_000_000.0) == pytest.approx(100_000.0)

    def test_uses_traded_volume_by_default(self):
        calc = VPINCalculator()
        calc.process_trade(1_000_000.0, True)
        calc.process_trade(1_500_000.0, False)
        assert calc.recalibrate(_DAY_1) == pytest.approx(50_000.0)
        assert calc.metrics().average_daily_volume == pytest.approx(2_500_000.0)

    def test_adv_averages_sessions(self):
        calc = VPINCalculator()
        calc.recalibrate(_DAY_1, 4_000_000.0)
        assert calc.recalibrate(_DAY_2, 6_000_000.0) == pytest.approx(100_000.0)

    @pytest.mark.parametrize("volume,expected", [
        (0.0, 10_000.0),
        (100_000.0, 10_000.0),
        (10_000_000_000.0, 1_000_000.0),
    ])
    def test_bucket_clamped(self, volume, expected):
        assert VPINCalculator().recalibrate(_DAY_1, volume) == pytest.approx(expected)

    def test_reset(self):
        calc = VPINCalculator()
        calc.process_trade(50_000.0, True)
        calc.recalibrate(_DAY_1, 1_000_000.0)
        calc.reset()
        assert calc.vpin() == 0.0
        assert calc.average_daily_volume() == 0.0


class TestConstruction:

    @pytest.mark.parametrize("overrides", [
        {"num_buckets": 0},
        {"bucket_size_ratio": 0},
        {"adv_lookback_days": 0},
        {"min_bucket_usd": 0.0},
        {"min_bucket_usd": 2_000_000.0},
    ])
    def test_invalid_rejected(self, overrides):
        with pytest.raises(ShieldValidationError):
            VPINCalculator(**overrides)

    def test_initial_bucket_clamped(self):
        assert VPINCalculator(bucket_size_usd=1.0).bucket_size == 10_000.0


class TestInterpretation:

    @pytest.mark.parametrize("vpin,level", [
        (0.0, "normal"),
        (0.29, "normal"),
        (0.3, "elevated"),
        (0.5, "high"),
        (0.7, "extreme"),
        (1.0, "extreme"),
    ])
    def test_levels(self, vpin, level):
        assert interpret_vpin(vpin).level == level
