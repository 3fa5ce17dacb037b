# stockshield/governance/policy_validator.py
# Version: 1.0.0
# Configuration governance for the control plane.
#
# Rules
#   GOV-01  base_fee_bps monotone non-decreasing in REGIME_RISK_ORDER     blocking
#   GOV-02  regime_multiplier monotone non-decreasing                     blocking
#   GOV-03  cap_bps monotone non-decreasing                               blocking
#   GOV-04  oracle_live_regimes non-empty                                 advisory
#   GOV-05  price_deviation_threshold >= min_gap_threshold                advisory
#   GOV-06  commit + reveal phases fit inside the soft-open window        advisory
#   GOV-07  lp_capture_rate < 1 (winner keeps a share)                    advisory
#   GOV-08  min_dwell_seconds > 0 (hysteresis enabled)                    advisory
#   GOV-09  holiday calendar non-empty                                    advisory

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Mapping
from stockshield.core.control_plane.config import ControlPlaneConfig
from stockshield.core.regime import REGIME_RISK_ORDER, Regime

_SECONDS_PER_MINUTE: int = 60


@dataclass(frozen=True)
class PolicyViolation:
    rule_id:        str
    field_name:     str
    observed_value: object
    message:        str
    is_blocking:    bool


@dataclass(frozen=True)
class PolicyValidationResult:
    is_compliant:        bool
    violations:          tuple
    warnings:            tuple
    blocking_violations: tuple
    validated_fields:    tuple


def _monotone_breaks(table: Mapping[Regime, object]) -> List[str]:
    breaks = []
    for lower, higher in zip(REGIME_RISK_ORDER, REGIME_RISK_ORDER[1:]):
        if table[higher] < table[lower]:
            breaks.append(f"{higher.value} ({table[higher]}) < {lower.value} ({table[lower]})")
    return breaks


def validate_control_plane_config(config: ControlPlaneConfig) -> PolicyValidationResult:
    violations: List[PolicyViolation] = []
    validated_fields: List[str] = []
    fees, breaker, auction = config.fees, config.breaker, config.auction

    for rule_id, fname in (("GOV-01", "base_fee_bps"),
                           ("GOV-02", "regime_multiplier"),
                           ("GOV-03", "cap_bps")):
        validated_fields.append(fname)
        breaks = _monotone_breaks(getattr(fees, fname))
        if breaks:
            violations.append(PolicyViolation(rule_id, fname, dict(getattr(fees, fname)),
                f"{fname} must not decrease as session risk rises; violated at: {'; '.join(breaks)}.", True))

    validated_fields.append("oracle_live_regimes")
    if not breaker.oracle_live_regimes:
        violations.append(PolicyViolation("GOV-04", "oracle_live_regimes", breaker.oracle_live_regimes,
            "oracle_live_regimes is empty; ORACLE_STALE can never fire.", False))

    validated_fields.append("price_deviation_threshold")
    if breaker.price_deviation_threshold < float(auction.min_gap_threshold):
        violations.append(PolicyViolation("GOV-05", "price_deviation_threshold", breaker.price_deviation_threshold,
            f"price_deviation_threshold ({breaker.price_deviation_threshold}) is below min_gap_threshold "
            f"({auction.min_gap_threshold}); the breaker flags deviations too small to auction.", False))

    validated_fields.append("auction_duration")
    duration = auction.commit_phase_seconds + auction.reveal_phase_seconds
    soft_open_seconds = (config.windows.core_start - config.windows.soft_open_start) * _SECONDS_PER_MINUTE
    if duration > soft_open_seconds:
        violations.append(PolicyViolation("GOV-06", "auction_duration", duration,
            f"commit + reveal ({duration}s) exceeds the soft-open window ({soft_open_seconds}s).", False))

    validated_fields.append("lp_capture_rate")
    if auction.lp_capture_rate >= 1:
        violations.append(PolicyViolation("GOV-07", "lp_capture_rate", auction.lp_capture_rate,
            "lp_capture_rate of 1 leaves the winner no share; expect no bids.", False))

    validated_fields.append("min_dwell_seconds")
    if breaker.min_dwell_seconds > 0:
        violations.append(PolicyViolation("GOV-08", "min_dwell_seconds", breaker.min_dwell_seconds,
            f"Breaker hysteresis enabled: levels >= 3 hold for {breaker.min_dwell_seconds}s.", False))

    validated_fields.append("holidays")
    if not config.calendar.holidays:
        violations.append(PolicyViolation("GOV-09", "holidays", (),
            "Holiday calendar is empty; holidays classify as ordinary weekdays.", False))

    blocking = tuple(v for v in violations if v.is_blocking)
    advisory = tuple(v for v in violations if not v.is_blocking)
    return PolicyValidationResult(
        is_compliant=len(blocking) == 0,
        violations=tuple(violations),
        warnings=advisory,
        blocking_violations=blocking,
        validated_fields=tuple(validated_fields),
    )
