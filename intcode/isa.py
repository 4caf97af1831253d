"""intcode ISA — opcode table, addressing modes and the error taxonomy.

Instruction cell layout (decimal):

    ABCDE
      DE   opcode            (cell % 100)
      C    mode of operand 1 (hundreds)
      B    mode of operand 2 (thousands)
      A    mode of operand 3 (ten-thousands)

Missing mode digits read as POSITION.

These types are imported by the lexer, decoder, vm and pipeline modules,
so they live here to avoid circular imports.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Optional


# ── Opcodes ────────────────────────────────────────────────────────────────────

class Opcode(IntEnum):
    ADD               = 1
    MULTIPLY          = 2
    INPUT             = 3
    OUTPUT            = 4
    JUMP_IF_TRUE      = 5
    JUMP_IF_FALSE     = 6
    LESS_THAN         = 7
    EQUALS            = 8
    SET_RELATIVE_BASE = 9
    HALT              = 99


# Opcode → instruction size in tape cells (opcode cell included)
INSTRUCTION_SIZE: dict[Opcode, int] = {
    Opcode.ADD:               4,
    Opcode.MULTIPLY:          4,
    Opcode.INPUT:             2,
    Opcode.OUTPUT:            2,
    Opcode.JUMP_IF_TRUE:      3,
    Opcode.JUMP_IF_FALSE:     3,
    Opcode.LESS_THAN:         4,
    Opcode.EQUALS:            4,
    Opcode.SET_RELATIVE_BASE: 2,
    Opcode.HALT:              1,
}

# Short mnemonics used by the tracer and the disassembler
MNEMONICS: dict[Opcode, str] = {
    Opcode.ADD:               "ADD",
    Opcode.MULTIPLY:          "MUL",
    Opcode.INPUT:             "IN",
    Opcode.OUTPUT:            "OUT",
    Opcode.JUMP_IF_TRUE:      "JNZ",
    Opcode.JUMP_IF_FALSE:     "JZ",
    Opcode.LESS_THAN:         "LT",
    Opcode.EQUALS:            "EQ",
    Opcode.SET_RELATIVE_BASE: "ARB",
    Opcode.HALT:              "HALT",
}


def operand_count(op: Opcode) -> int:
    return INSTRUCTION_SIZE[op] - 1


# ── Addressing modes ──────────────────────────────────────────────────────────

class Mode(IntEnum):
    POSITION  = 0   # operand is an address
    IMMEDIATE = 1   # operand is the value; never a write target
    RELATIVE  = 2   # operand + relative base is an address


# ── Tape capacity ─────────────────────────────────────────────────────────────
#   Zero cells appended after the loaded program. Large enough for every
#   program seen so far; pass growable=True to the VM to lift the limit.

DEFAULT_EXTRA_CELLS = 1_000_000


# ── Errors ─────────────────────────────────────────────────────────────────────

class VMError(Exception):
    """Base class for every failure raised by the intcode package."""


class ParseError(VMError):
    """Program text is not a comma-separated list of integers."""

    def __init__(self, message: str, *, index: Optional[int] = None,
                 token: Optional[str] = None):
        super().__init__(message)
        self.index = index
        self.token = token


class DecodeError(VMError):
    """Tape content at the instruction pointer is not a valid instruction."""

    def __init__(self, message: str, *, ip: Optional[int] = None,
                 cell: Optional[int] = None):
        super().__init__(message)
        self.ip   = ip
        self.cell = cell


class UnknownOpcode(DecodeError):
    pass


class UnknownAddressingModeDigit(DecodeError):
    pass


class OutOfBounds(VMError):
    """Address resolved outside the allocated tape."""

    def __init__(self, address: int, capacity: Optional[int] = None):
        if address < 0:
            message = f"Negative address {address}"
        else:
            message = f"Address {address} outside tape of {capacity} cells"
        super().__init__(message)
        self.address  = address
        self.capacity = capacity


class InvalidAddressMode(VMError):
    """IMMEDIATE mode used where a writable address is required."""


class InputOverflow(VMError):
    """A second input was supplied while one is still held."""


class PipelineError(VMError):
    pass


class PipelineDeadlock(PipelineError):
    """No stage can make progress and at least one is still awaiting input."""

    def __init__(self, message: str, blocked: list[int]):
        super().__init__(message)
        self.blocked = blocked
