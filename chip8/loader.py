"""Program loader: font table plus ROM image into machine memory."""

from __future__ import annotations

import logging
from pathlib import Path

from .constants import FONT, FONT_ADDRESS, MAX_ROM_SIZE, PROGRAM_START
from .errors import RomTooLarge
from .machine import MachineState

logger = logging.getLogger(__name__)


def load_program(state: MachineState, rom_data: bytes) -> None:
    """Reset ``state`` and load ``rom_data`` at the program entry point.

    Raises RomTooLarge without touching ``state`` when the image does not fit
    between 0x200 and the end of memory.
    """

    if len(rom_data) > MAX_ROM_SIZE:
        raise RomTooLarge(len(rom_data), MAX_ROM_SIZE)

    state.reset()
    state.memory[FONT_ADDRESS : FONT_ADDRESS + len(FONT)] = FONT
    state.memory[PROGRAM_START : PROGRAM_START + len(rom_data)] = rom_data
    logger.debug("Loaded %d byte program at 0x%03X", len(rom_data), PROGRAM_START)


def load_program_file(state: MachineState, path: str | Path) -> bytes:
    """Read a ROM from disk, load it, and return the raw bytes."""

    rom_data = Path(path).read_bytes()
    load_program(state, rom_data)
    logger.info("Loaded ROM %s (%d bytes)", path, len(rom_data))
    return rom_data


__all__ = ["load_program", "load_program_file"]
