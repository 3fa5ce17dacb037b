# stockshield/governance/__init__.py
# Version: 1.0.0

from stockshield.governance.policy_validator import (
    validate_control_plane_config,
    PolicyValidationResult,
    PolicyViolation,
)
from stockshield.governance.exceptions import GovernanceViolationError, enforce

__all__ = [
    "validate_control_plane_config",
    "PolicyValidationResult",
    "PolicyViolation",
    "GovernanceViolationError",
    "enforce",
]
