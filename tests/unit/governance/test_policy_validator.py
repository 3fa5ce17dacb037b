# =============================================================================
# STOCKSHIELD v1.0.0 -- GOVERNANCE TESTS
# File:   tests/unit/governance/test_policy_validator.py
# =============================================================================

import dataclasses
from decimal import Decimal

import pytest

from stockshield.core.control_plane import (
    AuctionParameters,
    BreakerThresholds,
    FeeSchedule,
    default_config,
)
from stockshield.core.regime import HolidayCalendar, Regime
from stockshield.governance import (
    GovernanceViolationError,
    PolicyValidationResult,
    PolicyViolation,
    enforce,
    validate_control_plane_config,
)
from stockshield.utils.constants import BASE_FEE_BPS, MAX_FEE_BPS, REGIME_MULTIPLIER


# =============================================================================
# SECTION 1 -- Helpers
# =============================================================================

def _with(**overrides):
    """Validate default_config() with sections replaced."""
    return validate_control_plane_config(dataclasses.replace(default_config(), **overrides))


def _fees_with(table_name, **entries):
    source = {
        "base_fee_bps":      BASE_FEE_BPS,
        "regime_multiplier": REGIME_MULTIPLIER,
        "cap_bps":           MAX_FEE_BPS,
    }[table_name]
    table = dict(source)
    for name, value in entries.items():
        table[Regime[name]] = Decimal(value)
    return FeeSchedule(**{table_name: table})


def _rule_ids(result):
    return [v.rule_id for v in result.violations]


# =============================================================================
# SECTION 2 -- Happy path
# =============================================================================

class TestCompliantConfig:

    def test_default_is_compliant(self):
        result = validate_control_plane_config(default_config())
        assert isinstance(result, PolicyValidationResult)
        assert result.is_compliant is True
        assert result.blocking_violations == ()

    def test_default_has_no_advisories(self):
        assert validate_control_plane_config(default_config()).warnings == ()

    def test_validated_fields_reported(self):
        fields = validate_control_plane_config(default_config()).validated_fields
        assert "base_fee_bps" in fields
        assert "lp_capture_rate" in fields
        assert "holidays" in fields


# =============================================================================
# SECTION 3 -- GOV-01..03: fee tables monotone in session risk
# =============================================================================

class TestMonotoneTables:

    def test_gov01_base_fee_decrease_blocks(self):
        result = _with(fees=_fees_with("base_fee_bps", CORE_SESSION="20"))
        assert result.is_compliant is False
        v = result.blocking_violations[0]
        assert v.rule_id == "GOV-01"
        assert v.field_name == "base_fee_bps"
        assert "SOFT_OPEN" in v.message

    def test_gov02_multiplier_decrease_blocks(self):
        result = _with(fees=_fees_with("regime_multiplier", HOLIDAY="3.0"))
        assert _rule_ids(result) == ["GOV-02"]
        assert result.is_compliant is False

    def test_gov03_cap_decrease_blocks(self):
        result = _with(fees=_fees_with("cap_bps", WEEKEND="150"))
        assert "GOV-03" in [v.rule_id for v in result.blocking_violations]

    def test_equal_neighbours_allowed(self):
        # PRE_MARKET and AFTER_HOURS already share a row in the defaults
        result = _with(fees=_fees_with("base_fee_bps", SOFT_OPEN="15"))
        assert result.is_compliant is True

    def test_every_break_named(self):
        result = _with(fees=_fees_with("base_fee_bps", CORE_SESSION="12", OVERNIGHT="14"))
        message = result.blocking_violations[0].message
        assert "SOFT_OPEN" in message
        assert "OVERNIGHT" in message


# =============================================================================
# SECTION 4 -- GOV-04..09: advisories
# =============================================================================

class TestAdvisories:

    def test_gov04_no_live_regimes(self):
        result = _with(breaker=BreakerThresholds(oracle_live_regimes=frozenset()))
        assert _rule_ids(result) == ["GOV-04"]
        assert result.is_compliant is True

    def test_gov05_deviation_below_gap_threshold(self):
        result = _with(breaker=BreakerThresholds(price_deviation_threshold=0.004))
        assert _rule_ids(result) == ["GOV-05"]

    def test_gov06_auction_longer_than_soft_open(self):
        result = _with(auction=AuctionParameters(commit_phase_seconds=200, reveal_phase_seconds=200))
        assert _rule_ids(result) == ["GOV-06"]
        assert result.warnings[0].observed_value == 400

    def test_gov07_full_capture(self):
        result = _with(auction=AuctionParameters(lp_capture_rate=Decimal("1")))
        assert _rule_ids(result) == ["GOV-07"]

    def test_gov08_dwell_noted(self):
        result = _with(breaker=BreakerThresholds(min_dwell_seconds=300))
        assert _rule_ids(result) == ["GOV-08"]
        assert result.warnings[0].is_blocking is False

    def test_gov09_empty_calendar(self):
        result = _with(calendar=HolidayCalendar(holidays=frozenset()))
        assert _rule_ids(result) == ["GOV-09"]

    def test_advisories_never_block(self):
        result = _with(
            breaker=BreakerThresholds(oracle_live_regimes=frozenset(), min_dwell_seconds=10),
            calendar=HolidayCalendar(holidays=frozenset()),
        )
        assert result.is_compliant is True
        assert len(result.warnings) == 3


# =============================================================================
# SECTION 5 -- enforce / GovernanceViolationError
# =============================================================================

class TestEnforce:

    def test_compliant_passes(self):
        enforce(validate_control_plane_config(default_config()))

    def test_advisory_only_passes(self):
        enforce(_with(calendar=HolidayCalendar(holidays=frozenset())))

    def test_blocking_raises(self):
        result = _with(fees=_fees_with("cap_bps", WEEKEND="150"))
        with pytest.raises(GovernanceViolationError) as exc_info:
            enforce(result)
        err = exc_info.value
        assert err.result is result
        assert "1 blocking violation(s)" in str(err)
        assert "[GOV-03] cap_bps" in str(err)

    def test_violation_is_frozen(self):
        v = PolicyViolation("GOV-01", "base_fee_bps", {}, "msg", True)
        with pytest.raises(dataclasses.FrozenInstanceError):
            v.rule_id = "GOV-02"  # type: ignore[misc]
