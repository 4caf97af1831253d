"""
tests/test_lexer.py — intcode/lexer.py
======================================

Test categories
---------------
Unit  — parse_program    (whitespace, signs, malformed tokens)
Unit  — format_program   (text form of a tape)

Run
---
    pytest tests/test_lexer.py -v
"""

from __future__ import annotations

import pytest

from intcode.isa import ParseError
from intcode.lexer import format_program, parse_program


# ══════════════════════════════════════════════════════════════════════════════
# Lexer
# ══════════════════════════════════════════════════════════════════════════════

class TestParseProgram:

    def test_simple(self):
        assert parse_program("1,0,0,3,99") == [1, 0, 0, 3, 99]

    def test_trailing_newline(self):
        assert parse_program("1,9,10,3,2,3,11,0,99,30,40,50\n") == \
            [1, 9, 10, 3, 2, 3, 11, 0, 99, 30, 40, 50]

    def test_whitespace_around_entries(self):
        assert parse_program(" 1 , -2 ,\t3 ") == [1, -2, 3]

    def test_signs(self):
        assert parse_program("-1,+5,0") == [-1, 5, 0]

    def test_large_values(self):
        assert parse_program("104,1125899906842624,99")[1] == 1125899906842624

    def test_non_integer_token(self):
        with pytest.raises(ParseError) as exc:
            parse_program("1,x,3")
        assert exc.value.index == 1
        assert exc.value.token == "x"

    def test_empty_entry(self):
        with pytest.raises(ParseError) as exc:
            parse_program("1,,2")
        assert exc.value.index == 1

    def test_float_rejected(self):
        with pytest.raises(ParseError):
            parse_program("1,2.5,3")

    @pytest.mark.parametrize("src", ["", "   ", "\n"])
    def test_empty_program(self, src):
        with pytest.raises(ParseError):
            parse_program(src)

    def test_format_program(self):
        src = "109,1,204,-1,1001,100,1,100,1008,100,16,101,1006,101,0,99"
        assert format_program(parse_program(src)) == src
