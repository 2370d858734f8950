from chip8.config import MachineConfig
from chip8.emulator import Chip8Emulator
from chip8.state_model import capture_state, diff_states, empty_state_diff
from chip8.tracing import TraceDispatcher


def _rom(*opcodes: int) -> bytes:
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


def _make_emulator(*opcodes: int) -> Chip8Emulator:
    emu = Chip8Emulator(MachineConfig(), dispatcher=TraceDispatcher())
    emu.load_rom(_rom(*opcodes))
    return emu


def test_capture_state_reflects_machine() -> None:
    emu = _make_emulator(0x6A12, 0xA345)
    emu.step()
    emu.step()
    snapshot = capture_state(emu)

    assert snapshot.cpu.registers[0xA] == 0x12
    assert snapshot.cpu.pc == 0x204
    assert snapshot.cpu.index == 0x345
    assert snapshot.cpu.instruction_count == 2
    assert len(snapshot.memory.ram) == 0x1000
    assert len(snapshot.display) == 64 * 32
    assert snapshot.keyboard.pressed_keys == ()
    assert snapshot.keyboard.key_wait is None


def test_diff_states_detects_changes() -> None:
    emu = _make_emulator(0x6A12, 0xA300, 0xFA33, 0xD005)
    before = capture_state(emu)
    for _ in range(4):
        emu.step()
    emu.press_key(5)
    after = capture_state(emu)

    diff = diff_states(before, after)
    cpu_names = {field.name for field in diff.cpu}
    assert "registers.vA" in cpu_names
    assert "pc" in cpu_names
    assert "index" in cpu_names
    assert "instruction_count" in cpu_names

    mem = {field.name: field.after for field in diff.memory}
    assert mem == {"ram[0x301]": 1, "ram[0x302]": 8}

    assert [field.name for field in diff.keyboard] == ["pressed_keys"]
    assert diff.display_changed
    assert not diff.is_empty()


def test_diff_timers() -> None:
    emu = _make_emulator(0x6003, 0xF015, 0x1204)
    before = capture_state(emu)
    emu.run_tick()
    after = capture_state(emu)
    diff = diff_states(before, after)
    assert diff.timers[0].name == "delay"
    assert (diff.timers[0].before, diff.timers[0].after) == (0, 2)


def test_diff_without_baseline_is_empty() -> None:
    emu = _make_emulator(0x6001)
    snapshot = capture_state(emu)
    assert diff_states(None, snapshot).is_empty()
    assert diff_states(snapshot, snapshot).is_empty()
    assert empty_state_diff().is_empty()
