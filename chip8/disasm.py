"""Opcode disassembler using the conventional CHIP-8 mnemonics."""

from __future__ import annotations

from typing import Iterator, Tuple

from .constants import PROGRAM_START

_ALU_MNEMONICS = {
    0x0: "LD",
    0x1: "OR",
    0x2: "AND",
    0x3: "XOR",
    0x4: "ADD",
    0x5: "SUB",
    0x6: "SHR",
    0x7: "SUBN",
    0xE: "SHL",
}

_F_FORMATS = {
    0x07: "LD V{x:X}, DT",
    0x0A: "LD V{x:X}, K",
    0x15: "LD DT, V{x:X}",
    0x18: "LD ST, V{x:X}",
    0x1E: "ADD I, V{x:X}",
    0x29: "LD F, V{x:X}",
    0x33: "LD B, V{x:X}",
    0x55: "LD [I], V{x:X}",
    0x65: "LD V{x:X}, [I]",
}


def disassemble(opcode: int) -> str:
    """Return the mnemonic text for a 16-bit opcode."""

    opcode &= 0xFFFF
    top = opcode >> 12
    nnn = opcode & 0x0FFF
    nn = opcode & 0x00FF
    n = opcode & 0x000F
    x = (opcode >> 8) & 0xF
    y = (opcode >> 4) & 0xF

    if opcode == 0x00E0:
        return "CLS"
    if opcode == 0x00EE:
        return "RET"
    if top == 0x1:
        return f"JP 0x{nnn:03X}"
    if top == 0x2:
        return f"CALL 0x{nnn:03X}"
    if top == 0x3:
        return f"SE V{x:X}, 0x{nn:02X}"
    if top == 0x4:
        return f"SNE V{x:X}, 0x{nn:02X}"
    if top == 0x5:
        return f"SE V{x:X}, V{y:X}"
    if top == 0x6:
        return f"LD V{x:X}, 0x{nn:02X}"
    if top == 0x7:
        return f"ADD V{x:X}, 0x{nn:02X}"
    if top == 0x8 and n in _ALU_MNEMONICS:
        return f"{_ALU_MNEMONICS[n]} V{x:X}, V{y:X}"
    if top == 0x9:
        return f"SNE V{x:X}, V{y:X}"
    if top == 0xA:
        return f"LD I, 0x{nnn:03X}"
    if top == 0xB:
        return f"JP V0, 0x{nnn:03X}"
    if top == 0xC:
        return f"RND V{x:X}, 0x{nn:02X}"
    if top == 0xD:
        return f"DRW V{x:X}, V{y:X}, {n}"
    if top == 0xE and nn == 0x9E:
        return f"SKP V{x:X}"
    if top == 0xE and nn == 0xA1:
        return f"SKNP V{x:X}"
    if top == 0xF and nn in _F_FORMATS:
        return _F_FORMATS[nn].format(x=x)
    return f"DW 0x{opcode:04X}"


def disassemble_program(
    data: bytes, base: int = PROGRAM_START
) -> Iterator[Tuple[int, int, str]]:
    """Yield ``(address, opcode, text)`` for each 16-bit word in ``data``.

    A trailing odd byte is reported as a zero-padded word.
    """

    for offset in range(0, len(data), 2):
        hi = data[offset]
        lo = data[offset + 1] if offset + 1 < len(data) else 0
        opcode = (hi << 8) | lo
        yield base + offset, opcode, disassemble(opcode)


__all__ = ["disassemble", "disassemble_program"]
