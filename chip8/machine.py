"""CHIP-8 machine state: memory, registers, stack, timers and display."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .constants import (
    ADDRESS_MASK,
    DISPLAY_HEIGHT,
    DISPLAY_WIDTH,
    MEMORY_SIZE,
    PROGRAM_START,
    REGISTER_COUNT,
    STACK_SIZE,
)
from .display import FrameBuffer
from .errors import StackOverflow, StackUnderflow


@dataclass
class KeyWait:
    """Bookkeeping for the blocking FX0A instruction.

    ``latched is None`` is the idle state; otherwise it holds the key that was
    seen pressed and is now awaited to be released.
    """

    latched: Optional[int] = None

    @property
    def idle(self) -> bool:
        return self.latched is None

    def latch(self, key: int) -> None:
        self.latched = key

    def clear(self) -> None:
        self.latched = None


@dataclass
class MachineState:
    """Complete architectural state of one CHIP-8 machine."""

    memory: bytearray = field(default_factory=lambda: bytearray(MEMORY_SIZE))
    registers: bytearray = field(default_factory=lambda: bytearray(REGISTER_COUNT))
    index: int = 0
    program_counter: int = PROGRAM_START
    stack: List[int] = field(default_factory=lambda: [0] * STACK_SIZE)
    stack_pointer: int = 0
    delay_timer: int = 0
    sound_timer: int = 0
    display: FrameBuffer = field(
        default_factory=lambda: FrameBuffer(DISPLAY_WIDTH, DISPLAY_HEIGHT)
    )
    key_wait: KeyWait = field(default_factory=KeyWait)

    def reset(self) -> None:
        """Return every field to its power-on value."""
        self.memory[:] = bytes(MEMORY_SIZE)
        self.registers[:] = bytes(REGISTER_COUNT)
        self.index = 0
        self.program_counter = PROGRAM_START
        self.stack = [0] * STACK_SIZE
        self.stack_pointer = 0
        self.delay_timer = 0
        self.sound_timer = 0
        self.display.reset()
        self.key_wait.clear()

    # ------------------------------------------------------------------ #
    # Memory helpers
    # ------------------------------------------------------------------ #
    def read_byte(self, address: int) -> int:
        return self.memory[address & ADDRESS_MASK]

    def write_byte(self, address: int, value: int) -> None:
        self.memory[address & ADDRESS_MASK] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Big-endian 16-bit read."""
        return (self.read_byte(address) << 8) | self.read_byte(address + 1)

    def read_block(self, address: int, length: int) -> bytes:
        return bytes(self.read_byte(address + i) for i in range(length))

    # ------------------------------------------------------------------ #
    # Call stack
    # ------------------------------------------------------------------ #
    def push(self, address: int) -> None:
        if self.stack_pointer >= STACK_SIZE:
            raise StackOverflow(self.program_counter)
        self.stack[self.stack_pointer] = address & 0xFFFF
        self.stack_pointer += 1

    def pop(self) -> int:
        if self.stack_pointer <= 0:
            raise StackUnderflow(self.program_counter)
        self.stack_pointer -= 1
        return self.stack[self.stack_pointer]

    @property
    def sound_active(self) -> bool:
        return self.sound_timer > 0


__all__ = ["KeyWait", "MachineState"]
