"""Canonical emulator state snapshots and diff utilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from .emulator import Chip8Emulator


@dataclass(frozen=True)
class CPUState:
    """Registers, stack and execution counters."""

    registers: Tuple[int, ...]
    pc: int
    index: int
    stack: Tuple[int, ...]
    stack_pointer: int
    instruction_count: int


@dataclass(frozen=True)
class MemoryState:
    """Full 4 KiB address space."""

    ram: bytes


@dataclass(frozen=True)
class KeyboardState:
    """Keypad latch plus the FX0A wait bookkeeping."""

    pressed_keys: Tuple[int, ...]
    key_wait: Optional[int]


@dataclass(frozen=True)
class TimerState:
    """Delay/sound countdowns."""

    delay: int
    sound: int


@dataclass(frozen=True)
class EmulatorState:
    """Composite immutable snapshot of emulator subsystems."""

    cpu: CPUState
    memory: MemoryState
    keyboard: KeyboardState
    timers: TimerState
    display: bytes


@dataclass(frozen=True)
class FieldDiff:
    """Difference for a single named field."""

    name: str
    before: object
    after: object


@dataclass(frozen=True)
class StateDiff:
    """Aggregated differences between two emulator states."""

    cpu: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    memory: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    keyboard: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    timers: Tuple[FieldDiff, ...] = field(default_factory=tuple)
    display_changed: bool = False

    def is_empty(self) -> bool:
        """Return True when no differences were recorded."""

        return (
            not self.cpu
            and not self.memory
            and not self.keyboard
            and not self.timers
            and not self.display_changed
        )


def empty_state_diff() -> StateDiff:
    """Return a reusable empty diff instance."""

    return StateDiff()


def capture_state(emulator: Chip8Emulator) -> EmulatorState:
    """Capture the current emulator state as canonical snapshot."""

    state = emulator.state
    cpu_state = CPUState(
        registers=tuple(state.registers),
        pc=state.program_counter,
        index=state.index,
        stack=tuple(state.stack),
        stack_pointer=state.stack_pointer,
        instruction_count=emulator.instruction_count,
    )
    return EmulatorState(
        cpu=cpu_state,
        memory=MemoryState(ram=bytes(state.memory)),
        keyboard=KeyboardState(
            pressed_keys=emulator.keyboard.pressed_keys(),
            key_wait=state.key_wait.latched,
        ),
        timers=TimerState(delay=state.delay_timer, sound=state.sound_timer),
        display=state.display.to_bytes(),
    )


def diff_states(before: Optional[EmulatorState], after: EmulatorState) -> StateDiff:
    """Compute structured differences between two emulator states."""

    if before is None:
        return empty_state_diff()

    return StateDiff(
        cpu=_diff_cpu(before.cpu, after.cpu),
        memory=_diff_memory(before.memory, after.memory),
        keyboard=_diff_fields(
            before.keyboard, after.keyboard, ("pressed_keys", "key_wait")
        ),
        timers=_diff_fields(before.timers, after.timers, ("delay", "sound")),
        display_changed=before.display != after.display,
    )


def _diff_cpu(before: CPUState, after: CPUState) -> Tuple[FieldDiff, ...]:
    diffs: list[FieldDiff] = []
    for idx, (previous, current) in enumerate(zip(before.registers, after.registers)):
        if previous != current:
            diffs.append(FieldDiff(f"registers.v{idx:X}", previous, current))
    diffs.extend(
        _diff_fields(
            before,
            after,
            ("pc", "index", "stack", "stack_pointer", "instruction_count"),
        )
    )
    return tuple(diffs)


def _diff_memory(before: MemoryState, after: MemoryState) -> Tuple[FieldDiff, ...]:
    changed = [
        addr
        for addr, (previous, current) in enumerate(zip(before.ram, after.ram))
        if previous != current
    ]
    return tuple(
        FieldDiff(f"ram[0x{addr:03X}]", before.ram[addr], after.ram[addr])
        for addr in changed
    )


def _diff_fields(
    before: object, after: object, names: Iterable[str]
) -> Tuple[FieldDiff, ...]:
    diffs: list[FieldDiff] = []
    for name in names:
        previous = getattr(before, name)
        current = getattr(after, name)
        if previous != current:
            diffs.append(FieldDiff(name, previous, current))
    return tuple(diffs)


__all__ = [
    "CPUState",
    "MemoryState",
    "KeyboardState",
    "TimerState",
    "EmulatorState",
    "FieldDiff",
    "StateDiff",
    "capture_state",
    "diff_states",
    "empty_state_diff",
]
