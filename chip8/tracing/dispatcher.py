"""Trace events emitted by the emulator and the dispatcher fanning them out."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol


class TraceEventType(Enum):
    """Kinds of events an emulator run produces."""

    INSTRUCTION = "instruction"
    COUNTER = "counter"
    CALL = "call"
    RETURN = "return"


@dataclass
class TraceEvent:
    type: TraceEventType
    thread: str
    name: str
    payload: Dict[str, Any] = field(default_factory=dict)


class TraceObserver(Protocol):
    def handle_event(self, event: TraceEvent) -> None: ...


class TraceDispatcher:
    """Per-emulator event fan-out.

    Emission helpers are only worth calling when :meth:`has_observers` is
    True; the emulator checks once per tick and skips trace work otherwise.
    """

    def __init__(self) -> None:
        self._observers: List[TraceObserver] = []

    def register(self, observer: TraceObserver) -> None:
        if observer not in self._observers:
            self._observers.append(observer)

    def unregister(self, observer: TraceObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def has_observers(self) -> bool:
        return bool(self._observers)

    # ------------------------------------------------------------------ #
    # Emission
    # ------------------------------------------------------------------ #
    def record_instruction(
        self,
        thread: str,
        text: str,
        pc: int,
        opcode: int,
        *,
        dirty: bool = False,
        fault: Optional[str] = None,
    ) -> None:
        """One executed instruction, named by its disassembly."""

        payload: Dict[str, Any] = {"pc": pc, "opcode": opcode}
        if dirty:
            payload["dirty"] = True
        if fault is not None:
            payload["fault"] = fault
        self._emit(TraceEvent(TraceEventType.INSTRUCTION, thread, text, payload))

    def record_counter(self, thread: str, name: str, value: float) -> None:
        self._emit(
            TraceEvent(TraceEventType.COUNTER, thread, name, {"value": value})
        )

    def record_call(self, thread: str, target: int, caller_pc: int) -> None:
        self._emit(
            TraceEvent(
                TraceEventType.CALL,
                thread,
                f"sub_{target:03X}",
                {"pc": target, "caller_pc": caller_pc},
            )
        )

    def record_return(self, thread: str, pc: int) -> None:
        self._emit(TraceEvent(TraceEventType.RETURN, thread, "ret", {"pc": pc}))

    def _emit(self, event: TraceEvent) -> None:
        for observer in tuple(self._observers):
            observer.handle_event(event)


__all__ = ["TraceDispatcher", "TraceObserver", "TraceEvent", "TraceEventType"]
