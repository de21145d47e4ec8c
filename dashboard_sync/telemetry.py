"""In-process telemetry for the synchronizer life cycle.

Events fan out to registered listeners and are mirrored to the log as a
single ``TELEMETRY {...}`` JSON line. ``record_sync`` is the entry point used
by synchronizers; it also keeps per-resource outcome counters that the CLI
reports at the end of a run.
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import RLock
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Tuple

logger = logging.getLogger("dashboard_sync.telemetry")

SYNC_EVENT = "resource_sync"
SYNC_OUTCOMES: FrozenSet[str] = frozenset({"success", "error", "timeout", "stale"})


@dataclass(frozen=True)
class TelemetryEvent:
    name: str
    payload: Dict[str, Any]
    emitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Listener = Callable[[TelemetryEvent], None]

_listeners: List[Listener] = []
_sync_counts: "Counter[Tuple[str, str]]" = Counter()
_lock = RLock()


def register_listener(listener: Listener) -> None:
    with _lock:
        _listeners.append(listener)


def clear_listeners() -> None:
    """Drop every listener and reset the outcome counters."""
    with _lock:
        _listeners.clear()
        _sync_counts.clear()


def emit_event(name: str, **fields: Any) -> TelemetryEvent:
    event = TelemetryEvent(name=name, payload=_plain(fields))

    with _lock:
        listeners = list(_listeners)

    for listener in listeners:
        try:
            listener(event)
        except Exception:  # noqa: BLE001
            logger.exception("Telemetry listener failed for %s", name)

    logger.info("TELEMETRY %s", json.dumps({"event": name, **event.payload}, default=str))
    return event


def record_sync(
    resource: Any,
    outcome: str,
    *,
    latency_ms: int,
    error_kind: Optional[str] = None,
    item_count: Optional[int] = None,
) -> TelemetryEvent:
    """Emit one ``resource_sync`` event and count it against ``resource``."""
    if outcome not in SYNC_OUTCOMES:
        raise ValueError(f"Unknown sync outcome: {outcome}")
    fields: Dict[str, Any] = {"resource": resource, "status": outcome, "latency_ms": latency_ms}
    if error_kind is not None:
        fields["error_kind"] = error_kind
    if item_count is not None:
        fields["item_count"] = item_count
    event = emit_event(SYNC_EVENT, **fields)
    with _lock:
        _sync_counts[(event.payload["resource"], outcome)] += 1
    return event


def sync_counts() -> Dict[str, Dict[str, int]]:
    """Outcome totals per resource since the last ``clear_listeners``."""
    with _lock:
        items = list(_sync_counts.items())
    summary: Dict[str, Dict[str, int]] = {}
    for (resource, outcome), count in sorted(items):
        summary.setdefault(resource, {})[outcome] = count
    return summary


def _plain(fields: Dict[str, Any]) -> Dict[str, Any]:
    plain: Dict[str, Any] = {}
    for key, value in fields.items():
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = value.isoformat()
        plain[key] = value
    return plain


__all__ = [
    "SYNC_EVENT",
    "SYNC_OUTCOMES",
    "TelemetryEvent",
    "clear_listeners",
    "emit_event",
    "record_sync",
    "register_listener",
    "sync_counts",
]
