"""Memory map and hardware constants for the CHIP-8 virtual machine."""

from __future__ import annotations

MEMORY_SIZE = 0x1000
ADDRESS_MASK = 0xFFF
PROGRAM_START = 0x200
MAX_ROM_SIZE = MEMORY_SIZE - PROGRAM_START

REGISTER_COUNT = 16
FLAG_REGISTER = 0xF
STACK_SIZE = 16
KEY_COUNT = 16

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32

TIMER_HZ = 60
DEFAULT_INSTRUCTIONS_PER_SECOND = 700

FONT_ADDRESS = 0x000
FONT_GLYPH_SIZE = 5

# 16 hexadecimal glyphs, 4 pixels wide (high nibble), 5 rows tall.
FONT = bytes(
    (
        0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
        0x20, 0x60, 0x20, 0x20, 0x70,  # 1
        0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
        0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
        0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
        0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
        0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
        0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
        0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
        0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
        0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
        0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
        0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
        0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
        0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
        0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
    )
)

__all__ = [
    "MEMORY_SIZE",
    "ADDRESS_MASK",
    "PROGRAM_START",
    "MAX_ROM_SIZE",
    "REGISTER_COUNT",
    "FLAG_REGISTER",
    "STACK_SIZE",
    "KEY_COUNT",
    "DISPLAY_WIDTH",
    "DISPLAY_HEIGHT",
    "TIMER_HZ",
    "DEFAULT_INSTRUCTIONS_PER_SECOND",
    "FONT_ADDRESS",
    "FONT_GLYPH_SIZE",
    "FONT",
]
