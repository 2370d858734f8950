"""CHIP-8 virtual machine package."""

from .config import MachineConfig, Quirks
from .cpu import Chip8CPU, StepEffect
from .emulator import Chip8Emulator
from .errors import (
    Chip8Error,
    NoProgramLoaded,
    RomTooLarge,
    StackError,
    StackOverflow,
    StackUnderflow,
    UnimplementedOpcode,
)
from .keyboard import InputLatch
from .loader import load_program, load_program_file
from .machine import KeyWait, MachineState
from .scheduler import FrameScheduler, TickReport
from .state_model import (
    CPUState,
    EmulatorState,
    FieldDiff,
    KeyboardState,
    MemoryState,
    StateDiff,
    TimerState,
    capture_state,
    diff_states,
    empty_state_diff,
)

__all__ = [
    "Chip8Emulator",
    "Chip8CPU",
    "StepEffect",
    "FrameScheduler",
    "TickReport",
    "MachineState",
    "KeyWait",
    "InputLatch",
    "MachineConfig",
    "Quirks",
    "load_program",
    "load_program_file",
    "Chip8Error",
    "RomTooLarge",
    "NoProgramLoaded",
    "StackError",
    "StackOverflow",
    "StackUnderflow",
    "UnimplementedOpcode",
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
