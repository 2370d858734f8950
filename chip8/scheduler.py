"""Frame scheduler tying instruction throughput to the 60 Hz timer tick."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .constants import DEFAULT_INSTRUCTIONS_PER_SECOND, TIMER_HZ
from .cpu import Chip8CPU, StepEffect
from .errors import Chip8Error
from .keyboard import InputLatch
from .machine import MachineState


def _check_rate(value: int) -> int:
    if value < 0:
        raise ValueError(f"instructions_per_second must be >= 0, got {value}")
    return int(value)


@dataclass(frozen=True)
class TickReport:
    """Result of one 60 Hz tick."""

    dirty: bool
    sound_active: bool
    instructions: int = 0
    faults: Tuple[Chip8Error, ...] = ()


@dataclass
class FrameScheduler:
    """Deterministic per-tick instruction budget and timer countdown.

    Runs ``instructions_per_second // tick_rate`` instructions per tick. It
    never sleeps; real-time pacing belongs to the host loop.
    """

    cpu: Chip8CPU = field(default_factory=Chip8CPU)
    instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND
    tick_rate: int = TIMER_HZ

    def __post_init__(self) -> None:
        self.instructions_per_second = _check_rate(self.instructions_per_second)
        self.tick_rate = int(self.tick_rate)
        if self.tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {self.tick_rate}")
        self.tick_count = 0

    @property
    def instructions_per_tick(self) -> int:
        return self.instructions_per_second // self.tick_rate

    @property
    def tick_period(self) -> float:
        """Wall-clock length of one tick in seconds."""
        return 1.0 / self.tick_rate

    def reset(self) -> None:
        self.tick_count = 0

    def run_tick(
        self,
        state: MachineState,
        input_latch: InputLatch,
        instructions_per_second: Optional[int] = None,
        effects: Optional[List[StepEffect]] = None,
    ) -> TickReport:
        """Execute one tick's instruction batch, then count the timers down.

        ``sound_active`` reports the sound timer as it was before this tick's
        decrement. When ``effects`` is given every step result is appended.
        """

        ips = _check_rate(
            self.instructions_per_second
            if instructions_per_second is None
            else instructions_per_second
        )
        budget = ips // self.tick_rate

        dirty = False
        faults: List[Chip8Error] = []
        for _ in range(budget):
            effect = self.cpu.step(state, input_latch)
            dirty = dirty or effect.dirty
            if effect.fault is not None:
                faults.append(effect.fault)
            if effects is not None:
                effects.append(effect)

        sound_active = state.sound_timer > 0
        if state.delay_timer > 0:
            state.delay_timer -= 1
        if state.sound_timer > 0:
            state.sound_timer -= 1
        self.tick_count += 1

        return TickReport(
            dirty=dirty,
            sound_active=sound_active,
            instructions=budget,
            faults=tuple(faults),
        )


__all__ = ["FrameScheduler", "TickReport"]
