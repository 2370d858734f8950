"""Keypad skip opcodes and the blocking FX0A press-and-release wait."""

from __future__ import annotations

import pytest

from chip8.cpu import Chip8CPU
from chip8.keyboard import DEFAULT_KEYMAP, InputLatch, resolve_key
from chip8.loader import load_program
from chip8.machine import MachineState


def _rom(*opcodes: int) -> bytes:
    return b"".join(op.to_bytes(2, "big") for op in opcodes)


class TestKeyWait:
    def setup_method(self) -> None:
        self.state = MachineState()
        self.cpu = Chip8CPU()
        self.latch = InputLatch()
        # 0x200: LD V5, K ; 0x202: LD V0, 1
        load_program(self.state, _rom(0xF50A, 0x6001))

    def _step(self) -> None:
        self.cpu.step(self.state, self.latch)

    def test_blocks_without_keys(self) -> None:
        for _ in range(10):
            self._step()
        assert self.state.program_counter == 0x200
        assert self.state.key_wait.idle

    def test_completes_only_after_release(self) -> None:
        self._step()
        assert self.state.program_counter == 0x200

        self.latch.press(3)
        self._step()
        assert self.state.program_counter == 0x200
        assert self.state.key_wait.latched == 3

        # Still held: keeps waiting.
        self._step()
        self._step()
        assert self.state.program_counter == 0x200
        assert self.state.registers[5] == 0

        self.latch.release(3)
        self._step()
        assert self.state.registers[5] == 3
        assert self.state.program_counter == 0x202
        assert self.state.key_wait.idle

        self._step()
        assert self.state.registers[0] == 1
        assert self.state.program_counter == 0x204

    def test_other_keys_do_not_complete_the_wait(self) -> None:
        self.latch.press(7)
        self._step()
        self.latch.press(2)
        self._step()
        assert self.state.key_wait.latched == 7

        self.latch.release(2)
        self._step()
        assert self.state.program_counter == 0x200

        self.latch.release(7)
        self._step()
        assert self.state.registers[5] == 7

    def test_lowest_pressed_key_is_latched(self) -> None:
        self.latch.set_keys([0xB, 0x4])
        self._step()
        assert self.state.key_wait.latched == 0x4

    def test_wait_state_cleared_by_reload(self) -> None:
        self.latch.press(1)
        self._step()
        assert not self.state.key_wait.idle
        load_program(self.state, _rom(0xF50A))
        assert self.state.key_wait.idle


class TestKeySkips:
    def setup_method(self) -> None:
        self.state = MachineState()
        self.cpu = Chip8CPU()
        self.latch = InputLatch()

    def _run(self, *opcodes: int) -> None:
        load_program(self.state, _rom(*opcodes))
        for _ in opcodes:
            self.cpu.step(self.state, self.latch)

    def test_ex9e_skips_when_pressed(self) -> None:
        self.latch.press(0xA)
        self._run(0x600A, 0xE09E)
        assert self.state.program_counter == 0x206

    def test_ex9e_no_skip_when_released(self) -> None:
        self._run(0x600A, 0xE09E)
        assert self.state.program_counter == 0x204

    def test_exa1_skips_when_released(self) -> None:
        self._run(0x600A, 0xE0A1)
        assert self.state.program_counter == 0x206

    def test_exa1_no_skip_when_pressed(self) -> None:
        self.latch.press(0xA)
        self._run(0x600A, 0xE0A1)
        assert self.state.program_counter == 0x204

    def test_only_low_nibble_of_register_selects_key(self) -> None:
        self.latch.press(0x3)
        self._run(0x6013, 0xE09E)
        assert self.state.program_counter == 0x206


class TestInputLatch:
    def test_press_release(self) -> None:
        latch = InputLatch()
        latch.press(0xF)
        assert latch.is_pressed(0xF)
        assert latch[0xF]
        assert latch.pressed_keys() == (0xF,)
        latch.release(0xF)
        assert latch.first_pressed() is None
        assert len(latch) == 16

    def test_set_keys_replaces_vector(self) -> None:
        latch = InputLatch()
        latch.press(1)
        latch.set_keys([2, 3])
        assert latch.pressed_keys() == (2, 3)
        latch.release_all()
        assert latch.snapshot() == (False,) * 16

    def test_rejects_out_of_range(self) -> None:
        latch = InputLatch()
        with pytest.raises(ValueError):
            latch.press(16)
        with pytest.raises(ValueError):
            latch.set_keys([-1])

    def test_resolve_host_keys(self) -> None:
        assert resolve_key("q") == 0x4
        assert resolve_key("V") == 0xF
        assert resolve_key(0xC) == 0xC
        assert sorted(DEFAULT_KEYMAP.values()) == list(range(16))
        with pytest.raises(ValueError):
            resolve_key("p")
        with pytest.raises(ValueError):
            resolve_key(20)
