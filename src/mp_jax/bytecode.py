"""Byte-oriented instruction stream for the stack machine.

Layout: one opcode byte, then the operand if any. PUSH_NUM carries an
8-byte little-endian IEEE-754 double, PUSH_VAR a 1-byte slot index.
Operands sit at arbitrary offsets, so they are always read with
`struct.unpack_from` rather than by reinterpreting memory.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator

from .variables import VARIABLE_NAMES


class Opcode(IntEnum):
    INVALID = 0
    PUSH_NUM = 1
    PUSH_VAR = 2
    ADD = 3
    SUB = 4
    MUL = 5
    DIV = 6
    POW = 7
    NEG = 8


_F64 = struct.Struct("<d")
_U8 = struct.Struct("<B")

CONST_WIDTH = _F64.size
VAR_WIDTH = _U8.size

_OPERAND_WIDTHS = {
    Opcode.PUSH_NUM: CONST_WIDTH,
    Opcode.PUSH_VAR: VAR_WIDTH,
}


def instruction_width(opcode: Opcode) -> int:
    return 1 + _OPERAND_WIDTHS.get(opcode, 0)


def encode_f64(value: float) -> bytes:
    return _F64.pack(value)


def decode_f64(code: bytes, offset: int) -> float:
    return _F64.unpack_from(code, offset)[0]


def encode_u8(value: int) -> bytes:
    return _U8.pack(value)


def decode_u8(code: bytes, offset: int) -> int:
    return _U8.unpack_from(code, offset)[0]


@dataclass(frozen=True)
class Instruction:
    offset: int
    opcode: Opcode
    operand: float | int | None = None


@dataclass(frozen=True)
class Program:
    """Immutable compiled expression; constants are embedded by value."""

    code: bytes = b""

    def __len__(self) -> int:
        return len(self.code)

    def instructions(self) -> Iterator[Instruction]:
        """Decode instructions in order.

        Raises ValueError on an unknown opcode or a truncated operand.
        """
        ip = 0
        code = self.code
        while ip < len(code):
            try:
                opcode = Opcode(code[ip])
            except ValueError as exc:
                raise ValueError(f"Unknown opcode {code[ip]} at offset {ip}") from exc
            width = instruction_width(opcode)
            if ip + width > len(code):
                raise ValueError(f"Truncated {opcode.name} operand at offset {ip}")
            operand: float | int | None = None
            if opcode is Opcode.PUSH_NUM:
                operand = decode_f64(code, ip + 1)
            elif opcode is Opcode.PUSH_VAR:
                operand = decode_u8(code, ip + 1)
            yield Instruction(offset=ip, opcode=opcode, operand=operand)
            ip += width


class ProgramBuilder:
    def __init__(self) -> None:
        self._code = bytearray()

    def emit(self, opcode: Opcode) -> None:
        self._code.append(int(opcode))

    def emit_const(self, value: float) -> None:
        self.emit(Opcode.PUSH_NUM)
        self._code += encode_f64(value)

    def emit_var(self, index: int) -> None:
        self.emit(Opcode.PUSH_VAR)
        self._code += encode_u8(index)

    def build(self) -> Program:
        return Program(code=bytes(self._code))


def disassemble(program: Program) -> str:
    """One numbered line per instruction, e.g. ``0: PUSH_NUM 2.000000``."""
    lines: list[str] = []
    code = program.code
    ip = 0
    count = 0
    while ip < len(code):
        try:
            opcode = Opcode(code[ip])
        except ValueError:
            opcode = Opcode.INVALID
        if opcode is Opcode.INVALID:
            lines.append(f"{count}: ?")
            ip += 1
            count += 1
            continue
        width = instruction_width(opcode)
        if ip + width > len(code):
            lines.append(f"{count}: {opcode.name} <truncated>")
            break
        if opcode is Opcode.PUSH_NUM:
            lines.append(f"{count}: PUSH_NUM {decode_f64(code, ip + 1):f}")
        elif opcode is Opcode.PUSH_VAR:
            index = decode_u8(code, ip + 1)
            name = VARIABLE_NAMES[index] if index < len(VARIABLE_NAMES) else f"#{index}"
            lines.append(f"{count}: PUSH_VAR {name}")
        else:
            lines.append(f"{count}: {opcode.name}")
        ip += width
        count += 1
    return "\n".join(lines)
