# stockshield/core/__init__.py
# Core canonical types for StockShield.
# Authoritative regime source: stockshield.core.regime

from stockshield.core.regime import (
    Regime,
    RegimeClassification,
    HolidayCalendar,
    SessionWindows,
    classify,
    regime_at,
)
from stockshield.core.logging_layer import (
    EventLogger,
    Event,
    EventFilter,
    EventType,
    LoggingError,
)
from stockshield.core.signal_store import RiskSignalStore
from stockshield.core.execution_guard import TradeAdmission, build_trade_admission

__all__ = [
    # Regime
    "Regime",
    "RegimeClassification",
    "HolidayCalendar",
    "SessionWindows",
    "classify",
    "regime_at",
    # Audit log
    "EventLogger",
    "Event",
    "EventFilter",
    "EventType",
    "LoggingError",
    # Signal store
    "RiskSignalStore",
    # Execution guard
    "TradeAdmission",
    "build_trade_admission",
]
