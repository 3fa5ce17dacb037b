import dataclasses
import json
from datetime import date
from decimal import Decimal

import pytest

from stockshield.core.control_plane import (
    AuctionParameters,
    BreakerThresholds,
    ControlPlaneConfig,
    FeeSchedule,
    ShieldNumericalError,
    ShieldParameterConsistencyError,
    ShieldValidationError,
    config_from_mapping,
    default_config,
    load_config,
)
from stockshield.core.regime import Regime


class TestDefaults:

    def test_default_tables(self):
        cfg = default_config()
        assert cfg.fees.base_fee_bps[Regime.CORE_SESSION] == Decimal("5")
        assert cfg.fees.cap_bps[Regime.HOLIDAY] == Decimal("500")
        assert cfg.breaker.oracle_staleness_seconds == 60
        assert cfg.auction.lp_capture_rate == Decimal("0.70")

    def test_tables_read_only(self):
        with pytest.raises(TypeError):
            default_config().fees.base_fee_bps[Regime.CORE_SESSION] = Decimal("1")  # type: ignore[index]

    def test_config_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            default_config().fees = FeeSchedule()  # type: ignore[misc]


class TestFeeScheduleValidation:

    def test_missing_regime_rejected(self):
        table = {r: Decimal("5") for r in Regime if r is not Regime.HOLIDAY}
        with pytest.raises(ShieldValidationError):
            FeeSchedule(base_fee_bps=table)

    def test_float_entry_rejected(self):
        table = {r: 5.0 for r in Regime}
        with pytest.raises(ShieldValidationError):
            FeeSchedule(base_fee_bps=table)

    def test_nan_coefficient_rejected(self):
        with pytest.raises(ShieldNumericalError):
            FeeSchedule(alpha=Decimal("NaN"))

    def test_base_above_cap_rejected(self):
        base = {r: Decimal("600") for r in Regime}
        with pytest.raises(ShieldParameterConsistencyError):
            FeeSchedule(base_fee_bps=base)


class TestThresholdValidation:

    @pytest.mark.parametrize("overrides", [
        {"oracle_staleness_seconds": 0},
        {"min_dwell_seconds": -1},
        {"price_deviation_threshold": 0.0},
        {"high_toxicity_threshold": 1.5},
        {"oracle_live_regimes": {Regime.CORE_SESSION}},
    ])
    def test_breaker_rejects(self, overrides):
        with pytest.raises(ShieldValidationError):
            BreakerThresholds(**overrides)

    @pytest.mark.parametrize("overrides", [
        {"min_gap_threshold": Decimal("0")},
        {"lp_capture_rate": Decimal("1.01")},
        {"decay_rate_per_minute": Decimal("-0.1")},
        {"commit_phase_seconds": 0},
        {"reveal_phase_seconds": 2.5},
        {"lp_capture_rate": 0.7},
    ])
    def test_auction_rejects(self, overrides):
        with pytest.raises(ShieldValidationError):
            AuctionParameters(**overrides)

    def test_control_plane_config_type_checked(self):
        with pytest.raises(ShieldValidationError):
            ControlPlaneConfig(fees={})


class TestConfigFromMapping:

    def test_empty_mapping_is_default(self):
        assert config_from_mapping({}) == default_config()

    def test_partial_fee_table_merges(self):
        cfg = config_from_mapping({"fees": {"base_fee_bps": {"CORE_SESSION": 7}}})
        assert cfg.fees.base_fee_bps[Regime.CORE_SESSION] == Decimal("7")
        assert cfg.fees.base_fee_bps[Regime.WEEKEND] == Decimal("50")

    def test_breaker_overrides(self):
        cfg = config_from_mapping({"breaker": {
            "oracle_staleness_seconds": 120,
            "high_toxicity_threshold": 0.8,
            "oracle_live_regimes": ["CORE_SESSION"],
        }})
        assert cfg.breaker.oracle_staleness_seconds == 120
        assert cfg.breaker.high_toxicity_threshold == 0.8
        assert cfg.breaker.oracle_live_regimes == frozenset({Regime.CORE_SESSION})

    def test_holidays_replace_calendar(self):
        cfg = config_from_mapping({"holidays": ["2026-06-19"]})
        assert cfg.calendar.holidays == frozenset({date(2026, 6, 19)})

    @pytest.mark.parametrize("raw", [
        {"metrics": {}},
        {"fees": {"epsilon": 1}},
        {"fees": {"base_fee_bps": {"LUNCH": 5}}},
        {"breaker": {"oracle_live_regimes": ["NEVER"]}},
        {"auction": {"commit_phase_seconds": 30.5}},
        {"holidays": ["not-a-date"]},
        {"windows": {"core_start": 500}},
        [],
    ])
    def test_bad_documents_rejected(self, raw):
        with pytest.raises(ShieldValidationError):
            config_from_mapping(raw)


class TestLoadConfig:

    def test_json_numbers_parsed_as_decimal(self, tmp_path):
        path = tmp_path / "shield.json"
        path.write_text(json.dumps({
            "fees": {"alpha": 0.45, "cap_bps": {"CORE_SESSION": 60}},
            "auction": {"commit_phase_seconds": 20, "lp_capture_rate": 0.65},
        }))
        cfg = load_config(path)
        assert cfg.fees.alpha == Decimal("0.45")
        assert cfg.fees.cap_bps[Regime.CORE_SESSION] == Decimal("60")
        assert cfg.auction.commit_phase_seconds == 20
        assert cfg.auction.lp_capture_rate == Decimal("0.65")

    def test_missing_file_raises_os_error(self, tmp_path):
        with pytest.raises(OSError):
            load_config(tmp_path / "absent.json")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(json.JSONDecodeError):
            load_config(path)
