"""Exception hierarchy for the CHIP-8 emulator."""

from __future__ import annotations

from typing import Optional


class Chip8Error(Exception):
    """Base class for all emulator errors."""


class RomTooLarge(Chip8Error):
    """Raised by the loader when a ROM does not fit above 0x200."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"ROM size {size} exceeds maximum {limit}")
        self.size = size
        self.limit = limit


class NoProgramLoaded(Chip8Error):
    """Raised when reset is requested before any ROM was loaded."""

    def __init__(self) -> None:
        super().__init__("No ROM has been loaded")


class StackError(Chip8Error):
    """Call/return misuse detected by the stack bounds check."""

    def __init__(self, message: str, pc: Optional[int] = None):
        super().__init__(message)
        self.pc = pc


class StackOverflow(StackError):
    def __init__(self, pc: Optional[int] = None):
        super().__init__("Call stack overflow", pc)


class StackUnderflow(StackError):
    def __init__(self, pc: Optional[int] = None):
        super().__init__("Return with empty call stack", pc)


class UnimplementedOpcode(Chip8Error):
    """Opcode without a defined meaning; executed as a no-op."""

    def __init__(self, opcode: int, pc: Optional[int] = None):
        where = f" at 0x{pc:03X}" if pc is not None else ""
        super().__init__(f"Unimplemented opcode 0x{opcode:04X}{where}")
        self.opcode = opcode
        self.pc = pc


__all__ = [
    "Chip8Error",
    "RomTooLarge",
    "NoProgramLoaded",
    "StackError",
    "StackOverflow",
    "StackUnderflow",
    "UnimplementedOpcode",
]
