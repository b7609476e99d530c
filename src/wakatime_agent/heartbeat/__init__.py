"""Heartbeat throttling and dispatch."""

from .dispatcher import HeartbeatDispatcher, format_date
from .models import EditorDocument, ExitStatus, HeartbeatEvent, ThrottleState
from .throttle import HEARTBEAT_INTERVAL_MS, HeartbeatThrottler

__all__ = [
    "EditorDocument",
    "ExitStatus",
    "HEARTBEAT_INTERVAL_MS",
    "HeartbeatDispatcher",
    "HeartbeatEvent",
    "HeartbeatThrottler",
    "ThrottleState",
    "format_date",
]
