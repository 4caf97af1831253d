"""intcode memory — the VM tape.

A single flat list of Python ints: the loaded program followed by
``extra_cells`` zeros. Every access is bounds-checked against the current
length. A growable tape extends itself with zeros on writes past the end
and reads cells past the end as 0.
"""
from __future__ import annotations
from typing import Iterable, List

from intcode.isa import DEFAULT_EXTRA_CELLS, OutOfBounds


class Tape:
    def __init__(self, program: Iterable[int], *,
                 extra_cells: int = DEFAULT_EXTRA_CELLS,
                 growable: bool = False):
        if extra_cells < 0:
            raise ValueError(f"extra_cells must be >= 0, got {extra_cells}")
        self._cells: List[int] = [int(v) for v in program]
        self.program_length = len(self._cells)
        self._cells.extend([0] * extra_cells)
        self.growable = growable

    # ── Core read/write ───────────────────────────────────────────────────────

    def read(self, address: int) -> int:
        if 0 <= address < len(self._cells):
            return self._cells[address]
        if self.growable and address >= 0:
            return 0
        raise OutOfBounds(address, len(self._cells))

    def write(self, address: int, value: int):
        if 0 <= address < len(self._cells):
            self._cells[address] = value
            return
        if self.growable and address >= 0:
            self._cells.extend([0] * (address + 1 - len(self._cells)))
            self._cells[address] = value
            return
        raise OutOfBounds(address, len(self._cells))

    def check(self, address: int) -> int:
        """Validate ``address`` as a write target and return it."""
        if address < 0 or (address >= len(self._cells) and not self.growable):
            raise OutOfBounds(address, len(self._cells))
        return address

    # ── Inspection ────────────────────────────────────────────────────────────

    @property
    def capacity(self) -> int:
        return len(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __getitem__(self, key):
        if isinstance(key, slice):
            return self._cells[key]
        return self.read(key)

    def used(self) -> List[int]:
        """Cells up to the last non-zero one, never shorter than the program."""
        end = len(self._cells)
        while end > self.program_length and self._cells[end - 1] == 0:
            end -= 1
        return self._cells[:end]

    def copy(self) -> "Tape":
        clone = Tape.__new__(Tape)
        clone._cells         = list(self._cells)
        clone.program_length = self.program_length
        clone.growable       = self.growable
        return clone

    def __repr__(self) -> str:
        return (f"Tape(program={self.program_length}, capacity={len(self._cells)}, "
                f"growable={self.growable})")
