"""CHIP-8 emulator combining machine state, CPU, scheduler and keypad."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from .config import MachineConfig
from .cpu import Chip8CPU, StepEffect
from .disasm import disassemble
from .display import DisplayRenderer, FrameBuffer
from .errors import NoProgramLoaded
from .keyboard import InputLatch, resolve_key
from .loader import load_program, load_program_file
from .machine import MachineState
from .scheduler import FrameScheduler, TickReport
from .tracing import TraceDispatcher

logger = logging.getLogger(__name__)


class Chip8Emulator:
    """Single CHIP-8 machine instance.

    Owns the machine state exclusively; hosts feed keys through
    :meth:`press_key`/:meth:`release_key` and drive execution with
    :meth:`run_tick` once per 1/60 s.
    """

    def __init__(
        self,
        config: Optional[MachineConfig] = None,
        *,
        dispatcher: Optional[TraceDispatcher] = None,
    ):
        self.config = config or MachineConfig()
        self.state = MachineState(
            display=FrameBuffer(self.config.width, self.config.height)
        )
        self.keyboard = InputLatch()
        self.cpu = Chip8CPU(quirks=self.config.quirks, seed=self.config.seed)
        self._scheduler = FrameScheduler(
            cpu=self.cpu,
            instructions_per_second=self.config.instructions_per_second,
            tick_rate=self.config.tick_rate,
        )
        self._dispatcher = dispatcher if dispatcher is not None else TraceDispatcher()
        self._rom: Optional[bytes] = None

        self.instruction_count = 0
        self.fault_count = 0
        self.last_tick: Optional[TickReport] = None

    # ------------------------------------------------------------------ #
    # Program loading and reset control
    # ------------------------------------------------------------------ #
    def load_rom(self, rom_data: bytes) -> None:
        """Load ``rom_data`` and reset the machine to the entry point."""

        rom = bytes(rom_data)
        load_program(self.state, rom)
        self._loaded(rom)

    def load_rom_file(self, path: str | Path) -> None:
        self._loaded(load_program_file(self.state, path))

    def _loaded(self, rom: bytes) -> None:
        self._rom = rom
        self._reset_counters()
        logger.info("ROM loaded (%d bytes)", len(rom))

    def reset(self) -> None:
        """Reload the currently loaded ROM from scratch."""

        if self._rom is None:
            raise NoProgramLoaded()
        load_program(self.state, self._rom)
        self._reset_counters()
        logger.info("Machine reset")

    def _reset_counters(self) -> None:
        self.instruction_count = 0
        self.fault_count = 0
        self.last_tick = None
        self._scheduler.reset()
        if self.config.seed is not None:
            self.cpu.rng.seed(self.config.seed)

    @property
    def rom(self) -> Optional[bytes]:
        return self._rom

    @property
    def dispatcher(self) -> TraceDispatcher:
        return self._dispatcher

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def step(self) -> StepEffect:
        """Execute a single instruction without touching the timers."""

        effect = self.cpu.step(self.state, self.keyboard)
        self._account([effect])
        return effect

    def run_tick(self) -> TickReport:
        """Run one 60 Hz frame: the instruction batch plus a timer tick."""

        effects: Optional[List[StepEffect]] = (
            [] if self._dispatcher.has_observers() else None
        )
        report = self._scheduler.run_tick(self.state, self.keyboard, effects=effects)
        self.instruction_count += report.instructions
        self.fault_count += len(report.faults)
        if effects is not None:
            self._trace_effects(effects)
            self._dispatcher.record_counter(
                "Emulation", "instructions", self.instruction_count
            )
        self.last_tick = report
        return report

    def run(self, ticks: int) -> bool:
        """Run ``ticks`` frames; return True when any of them drew."""

        dirty = False
        for _ in range(ticks):
            dirty = self.run_tick().dirty or dirty
        return dirty

    def _account(self, effects: List[StepEffect]) -> None:
        self.instruction_count += len(effects)
        self.fault_count += sum(1 for effect in effects if effect.fault is not None)
        if self._dispatcher.has_observers():
            self._trace_effects(effects)

    def _trace_effects(self, effects: List[StepEffect]) -> None:
        dispatcher = self._dispatcher
        for effect in effects:
            fault = str(effect.fault) if effect.fault is not None else None
            dispatcher.record_instruction(
                "Execution",
                disassemble(effect.opcode),
                effect.pc,
                effect.opcode,
                dirty=effect.dirty,
                fault=fault,
            )
            if fault is not None:
                continue
            if effect.opcode >> 12 == 0x2:
                dispatcher.record_call("Execution", effect.opcode & 0x0FFF, effect.pc)
            elif effect.opcode == 0x00EE:
                dispatcher.record_return("Execution", effect.pc)

    @property
    def instructions_per_second(self) -> int:
        return self._scheduler.instructions_per_second

    @instructions_per_second.setter
    def instructions_per_second(self, value: int) -> None:
        if value < 0:
            raise ValueError(f"instructions_per_second must be >= 0, got {value}")
        self._scheduler.instructions_per_second = int(value)

    @property
    def tick_count(self) -> int:
        return self._scheduler.tick_count

    @property
    def tick_period(self) -> float:
        return self._scheduler.tick_period

    # ------------------------------------------------------------------ #
    # Input
    # ------------------------------------------------------------------ #
    def press_key(self, key: int | str) -> None:
        """Press a keypad key given as nibble or host key name (``"q"``)."""
        self.keyboard.press(resolve_key(key))

    def release_key(self, key: int | str) -> None:
        self.keyboard.release(resolve_key(key))

    def release_all_keys(self) -> None:
        self.keyboard.release_all()

    # ------------------------------------------------------------------ #
    # Outputs
    # ------------------------------------------------------------------ #
    @property
    def display(self) -> FrameBuffer:
        return self.state.display

    @property
    def sound_active(self) -> bool:
        """Tone gate for the audio collaborator."""
        return self.state.sound_active

    def get_display_buffer(self) -> np.ndarray:
        return self.state.display.get_display_buffer()

    def renderer(self) -> DisplayRenderer:
        return DisplayRenderer(
            scale=self.config.scale,
            fg_color=self.config.foreground,
            bg_color=self.config.background,
        )

    def save_display(self, path: str | Path) -> Path:
        """Save the current display as a scaled PNG."""

        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        self.renderer().save_display(self.state.display, str(target))
        return target

    def get_cpu_state(self) -> Dict[str, Any]:
        state = self.state
        return {
            "pc": state.program_counter,
            "i": state.index,
            "sp": state.stack_pointer,
            "v": list(state.registers),
            "stack": list(state.stack[: state.stack_pointer]),
            "dt": state.delay_timer,
            "st": state.sound_timer,
            "key_wait": state.key_wait.latched,
            "instructions": self.instruction_count,
            "ticks": self.tick_count,
        }

    def get_performance_stats(self, elapsed: float) -> Dict[str, float]:
        ips = self.instruction_count / elapsed if elapsed > 0 else 0.0
        fps = self.tick_count / elapsed if elapsed > 0 else 0.0
        return {
            "instructions": float(self.instruction_count),
            "ticks": float(self.tick_count),
            "elapsed": elapsed,
            "instructions_per_second": ips,
            "ticks_per_second": fps,
        }


__all__ = ["Chip8Emulator"]
