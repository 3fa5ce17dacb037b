from .exceptions import (
    ShieldError,
    ShieldNumericalError,
    ShieldParameterConsistencyError,
    ShieldValidationError,
    UnknownAuctionError,
    UnknownPairError,
)
from .domain import (
    BreakerFlag,
    CircuitBreakerState,
    ExecutedTrade,
    FeeQuote,
    PoolLiquidity,
    RiskSignals,
    TradeVerdict,
)
from .config import (
    AuctionParameters,
    BreakerThresholds,
    ControlPlaneConfig,
    FeeSchedule,
    config_from_mapping,
    default_config,
    load_config,
)
from .fees import (
    quote_fee,
    quote_signals,
    regime_info,
)
from .circuit_breaker import (
    BREAKER_EFFECTS,
    BreakerEffects,
    breaker_effects,
    compute_flags,
    evaluate_circuit_breaker,
    initial_breaker_state,
    level_for_flags,
)
from .engine import (
    TradeAssessment,
    assess_trade,
    validate_timestamp,
)

__all__ = [
    # Exceptions
    "ShieldError",
    "ShieldNumericalError",
    "ShieldValidationError",
    "ShieldParameterConsistencyError",
    "UnknownPairError",
    "UnknownAuctionError",
    # Enumerations
    "BreakerFlag",
    "TradeVerdict",
    # Domain dataclasses
    "RiskSignals",
    "PoolLiquidity",
    "ExecutedTrade",
    "FeeQuote",
    "CircuitBreakerState",
    # Configuration
    "FeeSchedule",
    "BreakerThresholds",
    "AuctionParameters",
    "ControlPlaneConfig",
    "default_config",
    "config_from_mapping",
    "load_config",
    # Fee engine
    "quote_fee",
    "quote_signals",
    "regime_info",
    # Circuit breaker
    "BreakerEffects",
    "BREAKER_EFFECTS",
    "breaker_effects",
    "compute_flags",
    "level_for_flags",
    "initial_breaker_state",
    "evaluate_circuit_breaker",
    # Orchestration
    "TradeAssessment",
    "validate_timestamp",
    "assess_trade",
]
