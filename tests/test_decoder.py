"""
tests/test_decoder.py — intcode/decoder.py and intcode/disassembler.py
=====================================================================

Test categories
---------------
Unit  — resolve_value / resolve_address (all three modes, bounds)
Unit  — decode         (opcode + mode digits, operand counts, errors)
Unit  — Instruction    (size, mnemonic, str)
Unit  — disassemble    (instructions, relative operands, DATA cells)

Run
---
    pytest tests/test_decoder.py -v
"""

from __future__ import annotations

import pytest

from intcode.decoder import Instruction, decode, resolve_address, resolve_value
from intcode.disassembler import disassemble
from intcode.isa import (
    InvalidAddressMode,
    Mode,
    Opcode,
    OutOfBounds,
    UnknownAddressingModeDigit,
    UnknownOpcode,
)
from intcode.memory import Tape

P, I, R = Mode.POSITION, Mode.IMMEDIATE, Mode.RELATIVE


def _tape(*cells, extra=0) -> Tape:
    return Tape(list(cells), extra_cells=extra)


# ══════════════════════════════════════════════════════════════════════════════
# Resolver
# ══════════════════════════════════════════════════════════════════════════════

class TestResolver:

    def test_position_value(self):
        tape = _tape(10, 20, 30)
        assert resolve_value(P, 2, 0, tape) == 30

    def test_immediate_value(self):
        tape = _tape(10, 20, 30)
        assert resolve_value(I, 2, 0, tape) == 2

    def test_relative_value(self):
        tape = _tape(10, 20, 30)
        assert resolve_value(R, -1, 3, tape) == 30

    def test_relative_ignores_base_for_position(self):
        tape = _tape(10, 20, 30)
        assert resolve_value(P, 0, 2, tape) == 10

    def test_position_address(self):
        assert resolve_address(P, 7, 100) == 7

    def test_relative_address(self):
        assert resolve_address(R, 7, 100) == 107
        assert resolve_address(R, -7, 100) == 93

    def test_immediate_address_invalid(self):
        with pytest.raises(InvalidAddressMode):
            resolve_address(I, 7, 0)

    def test_negative_address(self):
        with pytest.raises(OutOfBounds):
            resolve_address(P, -1, 0)
        with pytest.raises(OutOfBounds):
            resolve_address(R, 2, -5)

    def test_value_past_capacity(self):
        tape = _tape(1, 2, 3)
        with pytest.raises(OutOfBounds):
            resolve_value(P, 3, 0, tape)


# ══════════════════════════════════════════════════════════════════════════════
# Decoder
# ══════════════════════════════════════════════════════════════════════════════

class TestDecode:

    def test_add_with_modes(self):
        tape = _tape(1001, 4, 3, 4, 99)
        assert decode(tape, 0) == Instruction(Opcode.ADD, ((P, 4), (I, 3), (P, 4)))

    def test_halt_at_offset(self):
        tape = _tape(1001, 4, 3, 4, 99)
        assert decode(tape, 4) == Instruction(Opcode.HALT)

    def test_missing_digits_are_position(self):
        instr = decode(_tape(2, 3, 0, 3, 99), 0)
        assert instr.op is Opcode.MULTIPLY
        assert [m for m, _ in instr.operands] == [P, P, P]

    def test_third_operand_mode(self):
        instr = decode(_tape(21101, 1, 2, 3), 0)
        assert instr.operands == ((I, 1), (I, 2), (R, 3))

    @pytest.mark.parametrize("cells,op,count", [
        ((3, 0), Opcode.INPUT, 1),
        ((4, 0), Opcode.OUTPUT, 1),
        ((1105, 1, 9), Opcode.JUMP_IF_TRUE, 2),
        ((1106, 0, 9), Opcode.JUMP_IF_FALSE, 2),
        ((1107, 1, 2, 0), Opcode.LESS_THAN, 3),
        ((1108, 1, 2, 0), Opcode.EQUALS, 3),
        ((109, 5), Opcode.SET_RELATIVE_BASE, 1),
        ((99,), Opcode.HALT, 0),
    ])
    def test_operand_counts(self, cells, op, count):
        instr = decode(_tape(*cells), 0)
        assert instr.op is op
        assert len(instr.operands) == count
        assert instr.size == count + 1

    def test_relative_input(self):
        assert decode(_tape(203, 1), 0) == Instruction(Opcode.INPUT, ((R, 1),))

    def test_unused_mode_digits_ignored(self):
        # 3rd-operand digit on a one-operand instruction
        instr = decode(_tape(10104, 5), 0)
        assert instr == Instruction(Opcode.OUTPUT, ((I, 5),))

    @pytest.mark.parametrize("cell", [0, 10, 42, 98, 100])
    def test_unknown_opcode(self, cell):
        with pytest.raises(UnknownOpcode) as exc:
            decode(_tape(cell, 0, 0, 0), 0)
        assert exc.value.ip == 0
        assert exc.value.cell == cell

    def test_negative_cell(self):
        with pytest.raises(UnknownOpcode):
            decode(_tape(-1, 0, 0, 0), 0)

    @pytest.mark.parametrize("cell", [301, 3001, 30001, 904])
    def test_unknown_mode_digit(self, cell):
        with pytest.raises(UnknownAddressingModeDigit):
            decode(_tape(cell, 0, 0, 0), 0)

    def test_truncated_instruction(self):
        with pytest.raises(OutOfBounds):
            decode(_tape(1, 0, 0), 0)

    def test_ip_past_end(self):
        with pytest.raises(OutOfBounds):
            decode(_tape(99), 1)


class TestInstruction:

    def test_str(self):
        instr = Instruction(Opcode.ADD, ((P, 4), (I, 3), (R, -2)))
        assert str(instr) == "ADD   [4], #3, [rb-2]"

    def test_halt_str(self):
        assert str(Instruction(Opcode.HALT)) == "HALT"

    def test_mnemonic(self):
        assert Instruction(Opcode.SET_RELATIVE_BASE, ((I, 1),)).mnemonic == "ARB"


# ══════════════════════════════════════════════════════════════════════════════
# Disassembler
# ══════════════════════════════════════════════════════════════════════════════

class TestDisassemble:

    def test_listing(self):
        lines = disassemble([1001, 4, 3, 4, 99]).splitlines()
        assert len(lines) == 2
        assert "00000:" in lines[0]
        assert "ADD   [4], #3, [4]" in lines[0]
        assert "00004:" in lines[1]
        assert lines[1].rstrip().endswith("HALT")

    def test_relative_operands(self):
        lines = disassemble([109, 19, 204, -34, 99]).splitlines()
        assert "ARB   #19" in lines[0]
        assert "OUT   [rb-34]" in lines[1]

    def test_data_cells(self):
        lines = disassemble([1, 0, 0, 0, 99, 42]).splitlines()
        assert lines[-1].rstrip().endswith("DATA 42")

    def test_truncated_tail_is_data(self):
        lines = disassemble([1, 0]).splitlines()
        assert len(lines) == 2
        assert all("DATA" in line for line in lines)

    def test_range(self):
        lines = disassemble([1, 0, 0, 0, 99], start=4).splitlines()
        assert len(lines) == 1
        assert "HALT" in lines[0]

    def test_end_clamped_to_tape(self):
        lines = disassemble([1, 0, 0], end=5).splitlines()
        assert len(lines) == 3
        assert all("DATA" in line for line in lines)

    def test_negative_start(self):
        with pytest.raises(ValueError):
            disassemble([99], start=-1)
