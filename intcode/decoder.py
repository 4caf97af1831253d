"""intcode decoder — addressing-mode resolver and instruction decoder.

Decode once: ``decode`` turns the cells at the instruction pointer into an
``Instruction`` whose operands are ``(Mode, raw)`` pairs. Resolution of
those operands against the tape happens later, in the evaluator, through
``resolve_value`` and ``resolve_address``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

from intcode.isa import (
    INSTRUCTION_SIZE,
    MNEMONICS,
    InvalidAddressMode,
    Mode,
    Opcode,
    OutOfBounds,
    UnknownAddressingModeDigit,
    UnknownOpcode,
    operand_count,
)
from intcode.memory import Tape

Operand = Tuple[Mode, int]


# ── Resolver ──────────────────────────────────────────────────────────────────

def resolve_address(mode: Mode, operand: int, relative_base: int) -> int:
    if mode is Mode.POSITION:
        address = operand
    elif mode is Mode.RELATIVE:
        address = relative_base + operand
    else:
        raise InvalidAddressMode(
            f"Operand {operand} in IMMEDIATE mode cannot be used as an address"
        )
    if address < 0:
        raise OutOfBounds(address)
    return address


def resolve_value(mode: Mode, operand: int, relative_base: int, tape: Tape) -> int:
    if mode is Mode.IMMEDIATE:
        return operand
    return tape.read(resolve_address(mode, operand, relative_base))


# ── Instruction ───────────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class Instruction:
    """One decoded instruction.

    ``operands`` holds the sources first and the destination (if any) last,
    in tape order; HALT has none.
    """
    op:       Opcode
    operands: Tuple[Operand, ...] = ()

    @property
    def size(self) -> int:
        return INSTRUCTION_SIZE[self.op]

    @property
    def mnemonic(self) -> str:
        return MNEMONICS[self.op]

    def __str__(self) -> str:
        if not self.operands:
            return self.mnemonic
        return f"{self.mnemonic:<5} " + ", ".join(format_operand(m, v) for m, v in self.operands)


def format_operand(mode: Mode, value: int) -> str:
    if mode is Mode.IMMEDIATE:
        return f"#{value}"
    if mode is Mode.RELATIVE:
        return f"[rb{value:+d}]"
    return f"[{value}]"


# ── Decoder ───────────────────────────────────────────────────────────────────

def _mode(cell: int, index: int, ip: int) -> Mode:
    digit = (cell // (100 * 10 ** index)) % 10
    try:
        return Mode(digit)
    except ValueError:
        raise UnknownAddressingModeDigit(
            f"Unknown addressing mode {digit} for operand {index + 1} "
            f"in cell {cell} at ip={ip}",
            ip=ip, cell=cell,
        ) from None


def decode(tape: Tape, ip: int) -> Instruction:
    cell = tape.read(ip)
    if cell < 0:
        raise UnknownOpcode(f"Unknown opcode in cell {cell} at ip={ip}", ip=ip, cell=cell)
    try:
        op = Opcode(cell % 100)
    except ValueError:
        raise UnknownOpcode(
            f"Unknown opcode {cell % 100} in cell {cell} at ip={ip}",
            ip=ip, cell=cell,
        ) from None

    operands = tuple(
        (_mode(cell, i, ip), tape.read(ip + 1 + i))
        for i in range(operand_count(op))
    )
    return Instruction(op, operands)
