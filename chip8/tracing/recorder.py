"""In-memory trace observer with JSON-lines export."""

from __future__ import annotations

import json
import logging
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional

from .dispatcher import TraceEvent, TraceEventType

logger = logging.getLogger(__name__)


class TraceRecorder:
    """Collects trace events, optionally bounded to the most recent ``limit``."""

    def __init__(self, limit: Optional[int] = None) -> None:
        self.limit = limit
        self.events: Deque[TraceEvent] = deque(maxlen=limit)
        self.dropped = 0

    def handle_event(self, event: TraceEvent) -> None:
        if self.limit is not None and len(self.events) == self.limit:
            self.dropped += 1
        self.events.append(event)

    def clear(self) -> None:
        self.events.clear()
        self.dropped = 0

    def of_type(self, event_type: TraceEventType) -> List[TraceEvent]:
        return [event for event in self.events if event.type == event_type]

    @staticmethod
    def _to_record(event: TraceEvent) -> Dict[str, Any]:
        return {
            "type": event.type.value,
            "thread": event.thread,
            "name": event.name,
            "payload": event.payload,
        }

    def save(self, path: str | Path) -> Path:
        """Write one JSON object per event."""

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        with target.open("w", encoding="utf-8") as fh:
            for event in self.events:
                fh.write(json.dumps(self._to_record(event), sort_keys=True))
                fh.write("\n")
        logger.info("Wrote %d trace events to %s", len(self.events), target)
        return target


__all__ = ["TraceRecorder"]
