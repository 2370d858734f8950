#!/usr/bin/env python3
"""Headless host loop for running CHIP-8 ROMs."""

from __future__ import annotations

import logging
import time
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping, Optional

from .config import MachineConfig
from .emulator import Chip8Emulator
from .keyboard import resolve_key
from .scheduler import TickReport
from .tracing import TraceRecorder

logger = logging.getLogger(__name__)

FrameCallback = Callable[["HostLoop", Optional[TickReport]], None]


class HostState(Enum):
    RUNNING = auto()
    PAUSED = auto()
    QUIT = auto()


class HostLoop:
    """Drives an emulator one frame at a time with optional real-time pacing.

    ``on_frame`` runs after every frame (``report`` is None while paused) and
    is where a presentation layer polls its events, redraws when the report
    is dirty, and gates its tone on ``report.sound_active``.
    """

    def __init__(
        self,
        emulator: Chip8Emulator,
        *,
        realtime: bool = False,
        on_frame: Optional[FrameCallback] = None,
        key_script: Optional[Mapping[int, Iterable[int | str]]] = None,
    ):
        self.emulator = emulator
        self.realtime = realtime
        self.on_frame = on_frame
        self.key_script: Dict[int, tuple] = {
            int(frame): tuple(resolve_key(key) for key in keys)
            for frame, keys in (key_script or {}).items()
        }
        self.state = HostState.RUNNING
        self.frames = 0
        self.redraws = 0
        self.sound_frames = 0

    def toggle_pause(self) -> None:
        if self.state == HostState.PAUSED:
            self.state = HostState.RUNNING
            logger.info("Unpaused")
        elif self.state == HostState.RUNNING:
            self.state = HostState.PAUSED
            logger.info("Paused")

    def quit(self) -> None:
        self.state = HostState.QUIT

    def run_frame(self) -> Optional[TickReport]:
        """Run one host frame; returns None when paused or quitting."""

        if self.frames in self.key_script:
            self.emulator.keyboard.set_keys(self.key_script[self.frames])

        report: Optional[TickReport] = None
        if self.state == HostState.RUNNING:
            report = self.emulator.run_tick()
            if report.dirty:
                self.redraws += 1
            if report.sound_active:
                self.sound_frames += 1
        self.frames += 1
        if self.on_frame is not None:
            self.on_frame(self, report)
        return report

    def run(
        self,
        frames: Optional[int] = None,
        timeout_secs: Optional[float] = None,
    ) -> int:
        """Run until quit, ``frames`` host frames, or the wall-clock timeout."""

        period = self.emulator.tick_period
        start = time.perf_counter()
        executed = 0
        while self.state != HostState.QUIT:
            if frames is not None and executed >= frames:
                break
            elapsed = time.perf_counter() - start
            if timeout_secs is not None and elapsed >= timeout_secs:
                logger.info("Timeout after %.2fs", timeout_secs)
                break
            frame_start = time.perf_counter()
            self.run_frame()
            executed += 1
            if self.realtime:
                remaining = period - (time.perf_counter() - frame_start)
                if remaining > 0:
                    time.sleep(remaining)
        return executed


def run_emulator(
    rom_path: str | Path,
    ticks: Optional[int] = 600,
    *,
    config: Optional[MachineConfig] = None,
    realtime: bool = False,
    timeout_secs: Optional[float] = None,
    save_png: Optional[str | Path] = None,
    trace_file: Optional[str | Path] = None,
    key_script: Optional[Mapping[int, Iterable[int | str]]] = None,
    print_stats: bool = True,
    print_display: bool = False,
) -> Chip8Emulator:
    """Load ``rom_path``, run it headless, and return the emulator.

    Args:
        rom_path: ROM image to load at 0x200
        ticks: Number of 60 Hz frames to run (None runs until timeout)
        config: Machine configuration (defaults to MachineConfig())
        realtime: Pace frames to the tick rate instead of running flat out
        timeout_secs: Wall-clock limit
        save_png: Save the final display here
        trace_file: Record per-instruction trace events as JSON lines
        key_script: Frame index -> keys held from that frame on
        print_stats: Print statistics to stdout
        print_display: Print the final display as text
    """

    emu = Chip8Emulator(config)
    emu.load_rom_file(rom_path)

    recorder: Optional[TraceRecorder] = None
    if trace_file:
        recorder = TraceRecorder()
        emu.dispatcher.register(recorder)

    loop = HostLoop(emu, realtime=realtime, key_script=key_script)
    start = time.perf_counter()
    try:
        loop.run(frames=ticks, timeout_secs=timeout_secs)
    finally:
        if recorder is not None:
            emu.dispatcher.unregister(recorder)
    elapsed = time.perf_counter() - start

    if recorder is not None:
        recorder.save(trace_file)
    if save_png:
        emu.save_display(save_png)

    if print_stats:
        stats = emu.get_performance_stats(elapsed)
        print(f"ROM: {rom_path}")
        print(
            f"Executed {emu.instruction_count} instructions in "
            f"{emu.tick_count} ticks ({elapsed:.3f}s, "
            f"{stats['instructions_per_second']:.0f} instr/s)"
        )
        print(f"Redraws: {loop.redraws}  Sound frames: {loop.sound_frames}")
        if emu.fault_count:
            print(f"Faults: {emu.fault_count}")
        cpu = emu.get_cpu_state()
        print(f"PC: 0x{cpu['pc']:03X}  I: 0x{cpu['i']:03X}  SP: {cpu['sp']}")
        if save_png:
            print(f"Display saved to {save_png}")
        if trace_file:
            print(f"Trace saved to {trace_file}")
    if print_display:
        print(emu.renderer().render_text(emu.display, border="+"))

    return emu


__all__ = ["HostLoop", "HostState", "run_emulator"]
