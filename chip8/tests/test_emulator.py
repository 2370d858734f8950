"""Tests for the Chip8Emulator facade: loading, reset, keys and tracing."""

from pathlib import Path

import pytest

from chip8.config import MachineConfig
from chip8.emulator import Chip8Emulator
from chip8.errors import NoProgramLoaded, RomTooLarge, StackUnderflow
from chip8.tracing import TraceDispatcher, TraceEventType, TraceRecorder


def _rom(*opcodes: int) -> bytes:
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


def _emulator(**config) -> Chip8Emulator:
    return Chip8Emulator(MachineConfig(**config), dispatcher=TraceDispatcher())


def test_reset_without_rom_raises() -> None:
    emu = _emulator()
    with pytest.raises(NoProgramLoaded):
        emu.reset()


def test_reset_reloads_program() -> None:
    emu = _emulator()
    emu.load_rom(_rom(0x6005, 0x7001, 0x1202))
    emu.run(3)
    assert emu.state.registers[0] > 5
    assert emu.tick_count == 3

    emu.reset()
    assert emu.state.registers[0] == 0
    assert emu.state.program_counter == 0x200
    assert emu.instruction_count == 0
    assert emu.tick_count == 0
    assert emu.state.memory[0x200:0x206] == _rom(0x6005, 0x7001, 0x1202)


def test_failed_load_keeps_previous_rom() -> None:
    emu = _emulator()
    emu.load_rom(_rom(0x6001))
    with pytest.raises(RomTooLarge):
        emu.load_rom(bytes(4000))
    assert emu.rom == _rom(0x6001)


def test_load_rom_file(tmp_path: Path) -> None:
    path = tmp_path / "prog.ch8"
    path.write_bytes(_rom(0x6A07))
    emu = _emulator()
    emu.load_rom_file(path)
    emu.step()
    assert emu.state.registers[0xA] == 7
    assert emu.instruction_count == 1
    assert emu.rom == _rom(0x6A07)


def test_oversized_rom_file_keeps_previous_rom(tmp_path: Path) -> None:
    path = tmp_path / "big.ch8"
    path.write_bytes(bytes(3585))
    emu = _emulator()
    emu.load_rom(_rom(0x6001))
    with pytest.raises(RomTooLarge):
        emu.load_rom_file(path)
    assert emu.rom == _rom(0x6001)
    assert emu.state.memory[0x200] == 0x60


def test_run_tick_instruction_count_follows_config() -> None:
    emu = _emulator(instructions_per_second=600)
    emu.load_rom(_rom(0x7001, 0x1200))
    report = emu.run_tick()
    assert report.instructions == 10
    assert emu.state.registers[0] == 5
    assert emu.last_tick is report


def test_instructions_per_second_setter() -> None:
    emu = _emulator()
    emu.instructions_per_second = 1200
    assert emu.instructions_per_second == 1200
    with pytest.raises(ValueError):
        emu.instructions_per_second = -1


def test_keys_by_nibble_and_host_name() -> None:
    emu = _emulator()
    # SKP V0 with V0 = 4 ; host key "q" is keypad 4.
    emu.load_rom(_rom(0x6004, 0xE09E))
    emu.press_key("q")
    emu.step()
    emu.step()
    assert emu.state.program_counter == 0x206

    emu.release_key(4)
    assert not emu.keyboard.is_pressed(4)
    emu.press_key(1)
    emu.press_key(2)
    emu.release_all_keys()
    assert emu.keyboard.pressed_keys() == ()


def test_seeded_runs_are_reproducible() -> None:
    rom = _rom(0xC0FF, 0xC1FF, 0xC2FF, 0x1206)
    first = _emulator(seed=42)
    first.load_rom(rom)
    first.run(1)
    values = bytes(first.state.registers[:3])

    first.reset()
    first.run(1)
    assert bytes(first.state.registers[:3]) == values

    second = _emulator(seed=42)
    second.load_rom(rom)
    second.run(1)
    assert bytes(second.state.registers[:3]) == values


def test_display_and_sound_outputs() -> None:
    emu = _emulator(instructions_per_second=240)
    # LD I, 0 ; DRW V0, V0, 5 ; LD V1, 2 ; LD ST, V1
    emu.load_rom(_rom(0xA000, 0xD005, 0x6102, 0xF118))
    report = emu.run_tick()
    assert report.dirty
    assert report.sound_active
    assert emu.sound_active
    buffer = emu.get_display_buffer()
    assert buffer.shape == (32, 64)
    assert buffer[0, 0] and buffer[0, 3] and not buffer[1, 1]


def test_save_display(tmp_path: Path) -> None:
    emu = _emulator(scale=2)
    emu.load_rom(_rom(0xA000, 0xD005))
    emu.run(1)
    target = emu.save_display(tmp_path / "out" / "frame.png")
    assert target.exists()

    from PIL import Image

    with Image.open(target) as img:
        assert img.size == (128, 64)


def test_cpu_state_and_stats() -> None:
    emu = _emulator()
    emu.load_rom(_rom(0x2204, 0x1202, 0x6A01, 0x1206))
    emu.step()
    cpu = emu.get_cpu_state()
    assert cpu["pc"] == 0x204
    assert cpu["sp"] == 1
    assert cpu["stack"] == [0x202]
    assert cpu["key_wait"] is None

    stats = emu.get_performance_stats(0.0)
    assert stats["instructions_per_second"] == 0.0
    assert stats["instructions"] == 1.0


def test_fault_count_accumulates() -> None:
    emu = _emulator(instructions_per_second=120)
    emu.load_rom(_rom(0x00EE, 0x1202))
    emu.run_tick()
    assert emu.fault_count == 1
    assert isinstance(emu.last_tick.faults[0], StackUnderflow)


class TestTracing:
    def setup_method(self) -> None:
        self.dispatcher = TraceDispatcher()
        self.recorder = TraceRecorder()
        self.dispatcher.register(self.recorder)
        self.emu = Chip8Emulator(
            MachineConfig(instructions_per_second=180), dispatcher=self.dispatcher
        )

    def test_instructions_are_traced(self) -> None:
        self.emu.load_rom(_rom(0x6001, 0x00E0, 0x1204))
        self.emu.run_tick()

        executed = self.recorder.of_type(TraceEventType.INSTRUCTION)
        assert [event.name for event in executed] == ["LD V0, 0x01", "CLS", "JP 0x204"]
        assert executed[0].payload == {"pc": 0x200, "opcode": 0x6001}
        assert executed[1].payload["dirty"] is True

        counters = self.recorder.of_type(TraceEventType.COUNTER)
        assert counters[-1].name == "instructions"
        assert counters[-1].payload["value"] == 3

    def test_calls_and_returns_are_traced(self) -> None:
        # CALL 0x206 ; JP 0x202 ; pad ; RET
        self.emu.load_rom(_rom(0x2206, 0x1202, 0x0000, 0x00EE))
        self.emu.run_tick()

        calls = self.recorder.of_type(TraceEventType.CALL)
        returns = self.recorder.of_type(TraceEventType.RETURN)
        assert calls[0].name == "sub_206"
        assert calls[0].payload == {"pc": 0x206, "caller_pc": 0x200}
        assert returns[0].payload == {"pc": 0x206}

    def test_faults_are_traced(self) -> None:
        self.emu.load_rom(_rom(0x00EE, 0x1202))
        self.emu.run_tick()
        first = self.recorder.of_type(TraceEventType.INSTRUCTION)[0]
        assert first.name == "RET"
        assert "empty call stack" in first.payload["fault"]
        assert self.recorder.of_type(TraceEventType.RETURN) == []

    def test_step_is_traced(self) -> None:
        self.emu.load_rom(_rom(0x6001))
        self.emu.step()
        assert len(self.recorder.of_type(TraceEventType.INSTRUCTION)) == 1

    def test_no_events_without_observers(self) -> None:
        self.dispatcher.unregister(self.recorder)
        self.emu.load_rom(_rom(0x6001, 0x1202))
        self.emu.run_tick()
        assert len(self.recorder.events) == 0


def test_emulators_do_not_share_trace_observers() -> None:
    first = Chip8Emulator(MachineConfig())
    second = Chip8Emulator(MachineConfig())
    assert first.dispatcher is not second.dispatcher

    recorder = TraceRecorder()
    first.dispatcher.register(recorder)
    second.load_rom(_rom(0x6001, 0x1202))
    second.run_tick()
    assert len(recorder.events) == 0
    assert not second.dispatcher.has_observers()


class TestTraceRecorder:
    def setup_method(self) -> None:
        self.dispatcher = TraceDispatcher()

    def test_limit_keeps_most_recent_events(self) -> None:
        recorder = TraceRecorder(limit=3)
        self.dispatcher.register(recorder)
        for value in range(5):
            self.dispatcher.record_counter("Emulation", "instructions", value)
        assert [event.payload["value"] for event in recorder.events] == [2, 3, 4]
        assert recorder.dropped == 2

        recorder.clear()
        assert len(recorder.events) == 0
        assert recorder.dropped == 0

    def test_register_is_idempotent(self) -> None:
        recorder = TraceRecorder()
        self.dispatcher.register(recorder)
        self.dispatcher.register(recorder)
        self.dispatcher.record_return("Execution", 0x206)
        assert len(recorder.events) == 1
        assert recorder.events[0].name == "ret"
