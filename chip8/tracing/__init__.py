"""Tracing utilities for the CHIP-8 emulator."""

from .dispatcher import (
    TraceDispatcher,
    TraceEvent,
    TraceEventType,
    TraceObserver,
)
from .recorder import TraceRecorder

__all__ = [
    "TraceDispatcher",
    "TraceEvent",
    "TraceEventType",
    "TraceObserver",
    "TraceRecorder",
]
