# stockshield/core/logging_layer.py
# Audit Logging Layer
# StockShield v1.0.0 -- LP protection control plane
#
# Scope: Event-sourced audit log with a SHA-256 hash chain.
# Zero tolerance for lost events. No file IO. No global mutable state.
# All timestamps are caller-supplied. All hashes are deterministic.
#
# Canonical import:
#   from stockshield.core.logging_layer import EventLogger, Event, EventFilter, EventType
#
# Prohibited: datetime.now(), uuid, random, file IO, global mutable state

# ===========================================================================
# SECTION 1 -- STDLIB IMPORTS
# ===========================================================================

import hashlib
import math
import threading
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional

# ===========================================================================
# SECTION 2 -- EVENT TYPES
# ===========================================================================


class EventType(str, Enum):
    """Categories recorded by the control plane."""
    REGIME_CHANGE        = "REGIME_CHANGE"
    BREAKER_LEVEL_CHANGE = "BREAKER_LEVEL_CHANGE"
    TRADE_REJECTED       = "TRADE_REJECTED"
    SIGNALS_UPDATED      = "SIGNALS_UPDATED"
    AUCTION_OPENED       = "AUCTION_OPENED"
    BID_COMMITTED        = "BID_COMMITTED"
    BID_REJECTED         = "BID_REJECTED"
    BID_REVEALED         = "BID_REVEALED"
    AUCTION_SETTLED      = "AUCTION_SETTLED"
    AUCTION_EXPIRED      = "AUCTION_EXPIRED"


# ===========================================================================
# SECTION 3 -- CONSTANTS
# ===========================================================================

# Sentinel strings used when numeric sanitization detects invalid values.
# The event is never silently dropped.
_NAN_SENTINEL: str = "NaN_DETECTED"
_INF_SENTINEL: str = "Inf_DETECTED"

_HASH_SEP: str = "|"

# prev_hash of the first event in a chain.
GENESIS_HASH: str = "0" * 64

# ===========================================================================
# SECTION 4 -- DATACLASSES: Event, EventFilter
# ===========================================================================


@dataclass(frozen=True)
class Event:
    """
    Immutable record of a single control-plane event.

    Fields
    ------
    id        : Deterministic identifier derived from the logger's counter.
    type      : EventType value string.
    timestamp : Caller-supplied datetime. Never generated internally.
    data      : Sanitized payload. NaN/Inf replaced with sentinel strings,
                Decimal rendered as its exact string.
    prev_hash : hash of the preceding event (GENESIS_HASH for the first).
    hash      : SHA-256 hex digest over (id, type, timestamp, data, prev_hash).
    """
    id: str
    type: str
    timestamp: datetime
    data: Dict[str, Any]
    prev_hash: str
    hash: str


@dataclass
class EventFilter:
    """
    Filter specification for EventLogger.query_events().

    All fields are optional. Omitted fields apply no constraint.

    Fields
    ------
    event_type : Only events whose .type equals this value.
    pair_id    : Only events whose data["pair_id"] equals this value.
    start_time : timestamp >= start_time.
    end_time   : timestamp <= end_time.
    limit      : At most this many events (oldest first).
    """
    event_type: Optional[str] = None
    pair_id: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    limit: Optional[int] = None


# ===========================================================================
# SECTION 5 -- INTERNAL HELPERS
# ===========================================================================

def _sanitize_value(value: Any) -> Any:
    """
    Make one payload value safe and deterministic to hash.

    float NaN/Inf -> sentinel, Decimal -> exact string, Enum -> its value,
    datetime -> ISO string. Never raises.
    """
    if isinstance(value, float):
        if math.isnan(value):
            return _NAN_SENTINEL
        if math.isinf(value):
            return _INF_SENTINEL
        return value
    if isinstance(value, Decimal):
        if value.is_nan():
            return _NAN_SENTINEL
        if value.is_infinite():
            return _INF_SENTINEL
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple, frozenset, set)):
        items = [_sanitize_value(v) for v in value]
        if isinstance(value, (frozenset, set)):
            items = sorted(items, key=repr)
        return tuple(items)
    return value


def _sanitize_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a new dict with every value sanitized. Input is not mutated."""
    return {k: _sanitize_value(v) for k, v in data.items()}


def _compute_hash(
    event_id: str,
    event_type: str,
    timestamp: datetime,
    data: Dict[str, Any],
    prev_hash: str,
) -> str:
    """
    Deterministic SHA-256 hex digest for an event.

    Preimage: id | type | timestamp.isoformat() | repr(sorted(data)) | prev_hash
    """
    sorted_items: str = repr(sorted(data.items()))
    preimage: str = (
        event_id
        + _HASH_SEP
        + event_type
        + _HASH_SEP
        + timestamp.isoformat()
        + _HASH_SEP
        + sorted_items
        + _HASH_SEP
        + prev_hash
    )
    return hashlib.sha256(preimage.encode("ascii", errors="replace")).hexdigest()


def _make_event_id(counter: int) -> str:
    """Format: "EVT-{counter:016d}". Zero-padded for lexicographic order."""
    return "EVT-{:016d}".format(counter)


# ===========================================================================
# SECTION 6 -- EventLogger
# ===========================================================================

class EventLogger:
    """
    Event-sourced audit logger with a deterministic hash chain.

    Storage
    -------
    Events live in an instance-level list. No file IO. No global state.

    Concurrency
    -----------
    log_event() is serialised by an instance lock so concurrent bidders and
    pairs append to one consistent chain.

    Zero lost events
    ----------------
    log_event() raises LoggingError instead of silently discarding events.
    """

    def __init__(self) -> None:
        self._store: List[Event] = []
        self._counter: int = 0
        self._lock = threading.Lock()

    # -----------------------------------------------------------------------
    # SECTION 6.1 -- log_event
    # -----------------------------------------------------------------------

    def log_event(self, event_type: str, data: Dict[str, Any], timestamp: datetime) -> str:
        """
        Record one event atomically. Return the assigned event ID.

        Raises
        ------
        LoggingError : event_type empty, data not a dict, or timestamp not a
                       datetime.
        """
        if isinstance(event_type, EventType):
            event_type = event_type.value
        if not event_type or not isinstance(event_type, str):
            raise LoggingError("event_type must be a non-empty string")
        if not isinstance(data, dict):
            raise LoggingError("data must be a dict; got: {}".format(type(data)))
        if timestamp is None:
            raise LoggingError("timestamp must be caller-supplied; None is not permitted")
        if not isinstance(timestamp, datetime):
            raise LoggingError(
                "timestamp must be a datetime instance; got: {}".format(type(timestamp))
            )

        sanitized: Dict[str, Any] = _sanitize_data(data)
        with self._lock:
            self._counter += 1
            event_id: str = _make_event_id(self._counter)
            prev_hash = self._store[-1].hash if self._store else GENESIS_HASH
            event = Event(
                id=event_id,
                type=event_type,
                timestamp=timestamp,
                data=sanitized,
                prev_hash=prev_hash,
                hash=_compute_hash(event_id, event_type, timestamp, sanitized, prev_hash),
            )
            self._store.append(event)
        return event_id

    # -----------------------------------------------------------------------
    # SECTION 6.2 -- query_events
    # -----------------------------------------------------------------------

    def query_events(self, filter: EventFilter) -> List[Event]:
        """
        Return events matching the filter, oldest first.

        Filters apply in order: event_type, pair_id, start_time, end_time,
        then limit truncation.
        """
        if filter is None:
            raise LoggingError("filter must not be None")

        event_type = filter.event_type
        if isinstance(event_type, EventType):
            event_type = event_type.value

        with self._lock:
            snapshot = list(self._store)

        results: List[Event] = []
        for event in snapshot:
            if event_type is not None and event.type != event_type:
                continue
            if filter.pair_id is not None and event.data.get("pair_id") != filter.pair_id:
                continue
            if filter.start_time is not None and event.timestamp < filter.start_time:
                continue
            if filter.end_time is not None and event.timestamp > filter.end_time:
                continue
            results.append(event)

        if filter.limit is not None:
            results = results[: filter.limit]

        return results

    # -----------------------------------------------------------------------
    # SECTION 6.3 -- get_event_stream
    # -----------------------------------------------------------------------

    def get_event_stream(self, start_time: datetime) -> Iterator[Event]:
        """Yield events with timestamp >= start_time in insertion order."""
        if start_time is None:
            raise LoggingError("start_time must be caller-supplied; None is not permitted")
        if not isinstance(start_time, datetime):
            raise LoggingError(
                "start_time must be a datetime instance; got: {}".format(type(start_time))
            )
        with self._lock:
            snapshot = list(self._store)
        for event in snapshot:
            if event.timestamp >= start_time:
                yield event

    # -----------------------------------------------------------------------
    # SECTION 6.4 -- verify_chain
    # -----------------------------------------------------------------------

    def verify_chain(self) -> bool:
        """
        Recompute every hash and check each prev_hash link.

        Returns True for an empty log.
        """
        with self._lock:
            snapshot = list(self._store)
        expected_prev = GENESIS_HASH
        for event in snapshot:
            if event.prev_hash != expected_prev:
                return False
            recomputed = _compute_hash(
                event.id, event.type, event.timestamp, event.data, event.prev_hash
            )
            if recomputed != event.hash:
                return False
            expected_prev = event.hash
        return True

    # -----------------------------------------------------------------------
    # SECTION 6.5 -- event_count
    # -----------------------------------------------------------------------

    def event_count(self) -> int:
        with self._lock:
            return len(self._store)


# ===========================================================================
# SECTION 7 -- EXCEPTIONS
# ===========================================================================

class LoggingError(Exception):
    """
    Raised by EventLogger when an invariant is violated.

    Never silently swallowed. Every call site that invokes log_event()
    must handle LoggingError or let it propagate.
    """


__all__ = [
    "EventType",
    "Event",
    "EventFilter",
    "EventLogger",
    "LoggingError",
    "GENESIS_HASH",
]
