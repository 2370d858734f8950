"""CHIP-8 instruction decoder and executor."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .config import Quirks
from .constants import FLAG_REGISTER, FONT_ADDRESS, FONT_GLYPH_SIZE
from .errors import Chip8Error, StackError, UnimplementedOpcode
from .keyboard import InputLatch
from .machine import MachineState

logger = logging.getLogger(__name__)

VF = FLAG_REGISTER


@dataclass(frozen=True)
class Decoded:
    """Fields shared by every opcode layout."""

    opcode: int
    nnn: int
    nn: int
    n: int
    x: int
    y: int

    @classmethod
    def from_opcode(cls, opcode: int) -> "Decoded":
        return cls(
            opcode=opcode,
            nnn=opcode & 0x0FFF,
            nn=opcode & 0x00FF,
            n=opcode & 0x000F,
            x=(opcode >> 8) & 0xF,
            y=(opcode >> 4) & 0xF,
        )


@dataclass(frozen=True)
class StepEffect:
    """Outcome of executing a single instruction."""

    opcode: int
    pc: int
    dirty: bool = False
    fault: Optional[Chip8Error] = None


Handler = Callable[[MachineState, InputLatch, Decoded], bool]


class Chip8CPU:
    """Fetch/decode/execute engine operating on a :class:`MachineState`.

    Each handler returns True when it mutated the display. Timers are left
    alone; they belong to the frame scheduler.
    """

    def __init__(
        self,
        *,
        quirks: Optional[Quirks] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        self.quirks = quirks or Quirks()
        self.rng = rng if rng is not None else random.Random(seed)

        # Primary dispatch on the top nibble.
        self._operations: List[Handler] = [
            self._0_opcodes, self._op_1nnn, self._op_2nnn, self._op_3xnn,
            self._op_4xnn, self._op_5xy0, self._op_6xnn, self._op_7xnn,
            self._8_opcodes, self._op_9xy0, self._op_annn, self._op_bnnn,
            self._op_cxnn, self._op_dxyn, self._e_opcodes, self._f_opcodes,
        ]
        # 8XYN selects on N.
        self._8_operations: Dict[int, Handler] = {
            0x0: self._op_8xy0,
            0x1: self._op_8xy1,
            0x2: self._op_8xy2,
            0x3: self._op_8xy3,
            0x4: self._op_8xy4,
            0x5: self._op_8xy5,
            0x6: self._op_8xy6,
            0x7: self._op_8xy7,
            0xE: self._op_8xye,
        }
        # EXNN and FXNN select on NN.
        self._e_operations: Dict[int, Handler] = {
            0x9E: self._op_ex9e,
            0xA1: self._op_exa1,
        }
        self._f_operations: Dict[int, Handler] = {
            0x07: self._op_fx07,
            0x0A: self._op_fx0a,
            0x15: self._op_fx15,
            0x18: self._op_fx18,
            0x1E: self._op_fx1e,
            0x29: self._op_fx29,
            0x33: self._op_fx33,
            0x55: self._op_fx55,
            0x65: self._op_fx65,
        }

    # ------------------------------------------------------------------ #
    # Fetch / decode / execute
    # ------------------------------------------------------------------ #
    def fetch(self, state: MachineState) -> int:
        return state.read_word(state.program_counter)

    def step(self, state: MachineState, input_latch: InputLatch) -> StepEffect:
        """Execute exactly one instruction.

        Never raises for opcode-level problems: stack misuse and unknown
        opcodes are logged and reported through ``StepEffect.fault``.
        """

        pc = state.program_counter
        opcode = self.fetch(state)
        state.program_counter = (pc + 2) & 0xFFFF
        decoded = Decoded.from_opcode(opcode)

        try:
            dirty = self._operations[opcode >> 12](state, input_latch, decoded)
        except StackError as exc:
            exc.pc = pc
            logger.warning("%s at 0x%03X (opcode 0x%04X)", exc, pc, opcode)
            return StepEffect(opcode=opcode, pc=pc, dirty=False, fault=exc)
        except UnimplementedOpcode as exc:
            exc.pc = pc
            logger.debug("Ignoring unimplemented opcode 0x%04X at 0x%03X", opcode, pc)
            return StepEffect(opcode=opcode, pc=pc, dirty=False, fault=exc)
        return StepEffect(opcode=opcode, pc=pc, dirty=dirty)

    def _unimplemented(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        raise UnimplementedOpcode(op.opcode)

    # ------------------------------------------------------------------ #
    # Secondary dispatch
    # ------------------------------------------------------------------ #
    def _0_opcodes(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        if op.opcode == 0x00E0:
            return self._op_00e0(state, latch, op)
        if op.opcode == 0x00EE:
            return self._op_00ee(state, latch, op)
        # 0NNN machine-code calls are not supported.
        return self._unimplemented(state, latch, op)

    def _8_opcodes(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        handler = self._8_operations.get(op.n, self._unimplemented)
        return handler(state, latch, op)

    def _e_opcodes(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        handler = self._e_operations.get(op.nn, self._unimplemented)
        return handler(state, latch, op)

    def _f_opcodes(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        handler = self._f_operations.get(op.nn, self._unimplemented)
        return handler(state, latch, op)

    # ------------------------------------------------------------------ #
    # Flow control
    # ------------------------------------------------------------------ #
    def _op_00e0(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        # CLS
        state.display.clear()
        return True

    def _op_00ee(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        # RET
        state.program_counter = state.pop()
        return False

    def _op_1nnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        # JP addr
        state.program_counter = op.nnn
        return False

    def _op_2nnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        # CALL addr; the pushed value is the already-advanced PC.
        state.push(state.program_counter)
        state.program_counter = op.nnn
        return False

    def _skip(self, state: MachineState, condition: bool) -> bool:
        if condition:
            state.program_counter = (state.program_counter + 2) & 0xFFFF
        return False

    def _op_3xnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        return self._skip(state, state.registers[op.x] == op.nn)

    def _op_4xnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        return self._skip(state, state.registers[op.x] != op.nn)

    def _op_5xy0(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        return self._skip(state, v[op.x] == v[op.y])

    def _op_9xy0(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        return self._skip(state, v[op.x] != v[op.y])

    def _op_bnnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        # JP V0, addr
        state.program_counter = (op.nnn + state.registers[0]) & 0xFFFF
        return False

    # ------------------------------------------------------------------ #
    # Register loads and arithmetic
    # ------------------------------------------------------------------ #
    def _op_6xnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.registers[op.x] = op.nn
        return False

    def _op_7xnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        # No carry flag.
        state.registers[op.x] = (state.registers[op.x] + op.nn) & 0xFF
        return False

    def _op_8xy0(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.registers[op.x] = state.registers[op.y]
        return False

    def _op_8xy1(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        v[op.x] = v[op.x] | v[op.y]
        return False

    def _op_8xy2(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        v[op.x] = v[op.x] & v[op.y]
        return False

    def _op_8xy3(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        v[op.x] = v[op.x] ^ v[op.y]
        return False

    # Flag-producing operations read both operands, write VF, then write VX;
    # with X == F the arithmetic result is what remains in VF.

    def _op_8xy4(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        total = v[op.x] + v[op.y]
        v[VF] = 1 if total > 0xFF else 0
        v[op.x] = total & 0xFF
        return False

    def _op_8xy5(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        vx, vy = v[op.x], v[op.y]
        v[VF] = 1 if vx > vy else 0
        v[op.x] = (vx - vy) & 0xFF
        return False

    def _op_8xy6(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        mask = 0xF if self.quirks.legacy_shift_flag_mask else 0x1
        vx = v[op.x]
        v[VF] = vx & mask
        v[op.x] = vx >> 1
        return False

    def _op_8xy7(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        vx, vy = v[op.x], v[op.y]
        v[VF] = 1 if vy > vx else 0
        v[op.x] = (vy - vx) & 0xFF
        return False

    def _op_8xye(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        vx = v[op.x]
        v[VF] = vx >> 7
        v[op.x] = (vx << 1) & 0xFF
        return False

    # ------------------------------------------------------------------ #
    # Index register, random, display
    # ------------------------------------------------------------------ #
    def _op_annn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.index = op.nnn
        return False

    def _op_cxnn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.registers[op.x] = self.rng.randrange(256) & op.nn
        return False

    def _op_dxyn(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        v = state.registers
        x, y = v[op.x], v[op.y]
        rows = state.read_block(state.index, op.n)
        v[VF] = 0
        if state.display.draw_sprite(x, y, rows):
            v[VF] = 1
        return True

    # ------------------------------------------------------------------ #
    # Keypad
    # ------------------------------------------------------------------ #
    def _op_ex9e(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        return self._skip(state, latch.is_pressed(state.registers[op.x]))

    def _op_exa1(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        return self._skip(state, not latch.is_pressed(state.registers[op.x]))

    def _op_fx0a(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        """Wait for a full press-and-release of any key.

        The instruction re-executes itself by rewinding PC until the latched
        key is released; the waiting key survives in ``state.key_wait``.
        """

        wait = state.key_wait
        if wait.idle:
            key = latch.first_pressed()
            if key is not None:
                wait.latch(key)
        elif not latch.is_pressed(wait.latched):
            state.registers[op.x] = wait.latched
            wait.clear()
            return False
        state.program_counter = (state.program_counter - 2) & 0xFFFF
        return False

    # ------------------------------------------------------------------ #
    # Timers, memory transfers
    # ------------------------------------------------------------------ #
    def _op_fx07(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.registers[op.x] = state.delay_timer
        return False

    def _op_fx15(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.delay_timer = state.registers[op.x]
        return False

    def _op_fx18(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.sound_timer = state.registers[op.x]
        return False

    def _op_fx1e(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.index = (state.index + state.registers[op.x]) & 0xFFFF
        return False

    def _op_fx29(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        state.index = FONT_ADDRESS + state.registers[op.x] * FONT_GLYPH_SIZE
        return False

    def _op_fx33(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        value = state.registers[op.x]
        state.write_byte(state.index, value // 100)
        state.write_byte(state.index + 1, (value // 10) % 10)
        state.write_byte(state.index + 2, value % 10)
        return False

    def _op_fx55(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        for i in range(op.x + 1):
            state.write_byte(state.index + i, state.registers[i])
        return False

    def _op_fx65(self, state: MachineState, latch: InputLatch, op: Decoded) -> bool:
        for i in range(op.x + 1):
            state.registers[i] = state.read_byte(state.index + i)
        return False


__all__ = ["Chip8CPU", "Decoded", "StepEffect"]
