# stockshield/governance/exceptions.py
# Version: 1.0.0

from __future__ import annotations
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stockshield.governance.policy_validator import PolicyValidationResult


class GovernanceViolationError(Exception):
    """A ControlPlaneConfig failed at least one blocking GOV rule."""

    def __init__(self, result: "PolicyValidationResult") -> None:
        self.result = result
        summary = f"Control plane configuration rejected: {len(result.blocking_violations)} blocking violation(s)."
        details = [f"  [{v.rule_id}] {v.field_name}: {v.message}" for v in result.blocking_violations]
        super().__init__("\n".join([summary] + details))


def enforce(result: "PolicyValidationResult") -> None:
    """Raise GovernanceViolationError when result has blocking violations."""
    if not result.is_compliant:
        raise GovernanceViolationError(result)
