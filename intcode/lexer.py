"""intcode lexer — reads program text into an initial tape.

Load format: decimal integers separated by commas, each optionally
surrounded by whitespace. A single trailing newline (or any trailing
whitespace) is allowed.
"""
from __future__ import annotations
import re
from typing import Iterable, List

from intcode.isa import ParseError


_INT_RE = re.compile(r'[+-]?\d+')


def parse_program(source: str) -> List[int]:
    text = source.strip()
    if not text:
        raise ParseError("Empty program")

    tape: List[int] = []
    for index, raw in enumerate(text.split(",")):
        token = raw.strip()
        if not _INT_RE.fullmatch(token):
            raise ParseError(
                f"Cell {index}: expected an integer, got {token!r}",
                index=index, token=token,
            )
        tape.append(int(token))
    return tape


def format_program(tape: Iterable[int]) -> str:
    """Render a tape back into the load format."""
    return ",".join(str(v) for v in tape)
