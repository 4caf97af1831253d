"""intcode disassembler — renders a tape as a human-readable listing."""
from __future__ import annotations
from typing import List, Optional, Sequence, Union

from intcode.decoder import decode
from intcode.isa import DecodeError, OutOfBounds
from intcode.memory import Tape


def disassemble(program: Union[Sequence[int], Tape], start: int = 0,
                end: Optional[int] = None) -> str:
    """Walk ``program`` from ``start`` and list one instruction per line.

    Self-modifying programs mix code and data, so anything that does not
    decode (or would run past ``end``) is listed as a single DATA cell.
    """
    tape = program if isinstance(program, Tape) else Tape(program, extra_cells=0)
    if start < 0:
        raise ValueError(f"start must be >= 0, got {start}")
    if end is None:
        end = tape.program_length
    end = min(end, len(tape))

    lines: List[str] = []
    addr = start
    while addr < end:
        try:
            instr = decode(tape, addr)
        except (DecodeError, OutOfBounds):
            instr = None
        if instr is None or addr + instr.size > end:
            lines.append(f"  {addr:05d}:  {tape.read(addr):<24} DATA {tape.read(addr)}")
            addr += 1
            continue
        raw = ",".join(str(c) for c in tape[addr: addr + instr.size])
        lines.append(f"  {addr:05d}:  {raw:<24} {instr}")
        addr += instr.size

    return "\n".join(lines)
