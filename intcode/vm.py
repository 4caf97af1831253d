"""intcode Virtual Machine — evaluates decoded instructions against a tape.

Execution model:
  1. Decode the instruction at ``ip``
  2. Evaluate it → ``Outcome`` (the evaluator never touches ``ip`` or the
     relative base, and never consumes input)
  3. Apply the outcome: advance, jump, adjust the base, buffer an output,
     write a held input, halt or suspend

The machine yields control at exactly two points:
  - HALT          terminal; further ``run`` calls do nothing
  - NEEDS_INPUT   with no value held → suspend with ``ip`` parked on the
                  INPUT instruction so the next ``run`` re-decodes it

Everything needed to resume lives on the instance (tape, ip, relative
base, held input), so an instance can be snapshotted between runs.
"""
from __future__ import annotations
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from intcode.decoder import Instruction, decode, resolve_address, resolve_value
from intcode.isa import DEFAULT_EXTRA_CELLS, InputOverflow, Opcode, UnknownOpcode
from intcode.memory import Tape

log = logging.getLogger(__name__)


# ── Evaluation outcome ────────────────────────────────────────────────────────

class Flow(Enum):
    CONTINUE    = auto()   # advance by instruction size
    JUMP        = auto()   # value = new ip
    ADJUST_BASE = auto()   # value = delta added to the relative base
    HALT        = auto()
    NEEDS_INPUT = auto()   # value = address the input must be written to
    OUTPUT      = auto()   # value = produced output


@dataclass(frozen=True, slots=True)
class Outcome:
    flow:  Flow
    value: Optional[int] = None


CONTINUE = Outcome(Flow.CONTINUE)
HALTED   = Outcome(Flow.HALT)


# ── Evaluator ─────────────────────────────────────────────────────────────────

def evaluate(instr: Instruction, tape: Tape, relative_base: int) -> Outcome:
    """Execute one instruction.

    Only ADD, MULTIPLY, LESS_THAN and EQUALS write to the tape, and only to
    their destination cell. INPUT reports where its value must go; the
    caller performs the write once a value is available.
    """
    op   = instr.op
    args = instr.operands
    rb   = relative_base

    # ── ADD / MULTIPLY / LESS_THAN / EQUALS ────────────────────────────────
    if op is Opcode.ADD:
        (lm, lv), (rm, rv), (dm, dv) = args
        result = resolve_value(lm, lv, rb, tape) + resolve_value(rm, rv, rb, tape)
        tape.write(resolve_address(dm, dv, rb), result)
        return CONTINUE

    elif op is Opcode.MULTIPLY:
        (lm, lv), (rm, rv), (dm, dv) = args
        result = resolve_value(lm, lv, rb, tape) * resolve_value(rm, rv, rb, tape)
        tape.write(resolve_address(dm, dv, rb), result)
        return CONTINUE

    elif op is Opcode.LESS_THAN:
        (lm, lv), (rm, rv), (dm, dv) = args
        result = resolve_value(lm, lv, rb, tape) < resolve_value(rm, rv, rb, tape)
        tape.write(resolve_address(dm, dv, rb), int(result))
        return CONTINUE

    elif op is Opcode.EQUALS:
        (lm, lv), (rm, rv), (dm, dv) = args
        result = resolve_value(lm, lv, rb, tape) == resolve_value(rm, rv, rb, tape)
        tape.write(resolve_address(dm, dv, rb), int(result))
        return CONTINUE

    # ── INPUT / OUTPUT ─────────────────────────────────────────────────────
    elif op is Opcode.INPUT:
        ((dm, dv),) = args
        return Outcome(Flow.NEEDS_INPUT, tape.check(resolve_address(dm, dv, rb)))

    elif op is Opcode.OUTPUT:
        ((sm, sv),) = args
        return Outcome(Flow.OUTPUT, resolve_value(sm, sv, rb, tape))

    # ── Jumps ──────────────────────────────────────────────────────────────
    elif op is Opcode.JUMP_IF_TRUE:
        (cm, cv), (tm, tv) = args
        if resolve_value(cm, cv, rb, tape) != 0:
            return Outcome(Flow.JUMP, resolve_value(tm, tv, rb, tape))
        return CONTINUE

    elif op is Opcode.JUMP_IF_FALSE:
        (cm, cv), (tm, tv) = args
        if resolve_value(cm, cv, rb, tape) == 0:
            return Outcome(Flow.JUMP, resolve_value(tm, tv, rb, tape))
        return CONTINUE

    # ── SET_RELATIVE_BASE ──────────────────────────────────────────────────
    elif op is Opcode.SET_RELATIVE_BASE:
        ((sm, sv),) = args
        return Outcome(Flow.ADJUST_BASE, resolve_value(sm, sv, rb, tape))

    # ── HALT ───────────────────────────────────────────────────────────────
    elif op is Opcode.HALT:
        return HALTED

    raise UnknownOpcode(f"No evaluator for opcode {op!r}")


# ── Machine state ─────────────────────────────────────────────────────────────

class VMState(Enum):
    """
    Lifecycle of one VM instance.

        RUNNING ──► HALTED
          │  ▲
          ▼  │ run(value)
        AWAITING_INPUT
    """
    RUNNING        = auto()
    AWAITING_INPUT = auto()
    HALTED         = auto()


@dataclass
class VMSnapshot:
    """Plain-data copy of everything an instance needs to resume.

    ``memory`` is trimmed of trailing zeros; ``capacity`` restores the
    full tape length.
    """
    ip:             int
    relative_base:  int
    state:          VMState
    memory:         List[int]
    capacity:       int
    program_length: int
    growable:       bool          = False
    held_input:     Optional[int] = None
    outputs_total:  int           = 0
    inputs_total:   int           = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ip":             self.ip,
            "relative_base":  self.relative_base,
            "state":          self.state.name,
            "memory":         list(self.memory),
            "capacity":       self.capacity,
            "program_length": self.program_length,
            "growable":       self.growable,
            "held_input":     self.held_input,
            "outputs_total":  self.outputs_total,
            "inputs_total":   self.inputs_total,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VMSnapshot":
        return cls(
            ip=d["ip"],
            relative_base=d["relative_base"],
            state=VMState[d["state"]],
            memory=list(d["memory"]),
            capacity=d["capacity"],
            program_length=d["program_length"],
            growable=d.get("growable", False),
            held_input=d.get("held_input"),
            outputs_total=d.get("outputs_total", 0),
            inputs_total=d.get("inputs_total", 0),
        )


# ── VM ─────────────────────────────────────────────────────────────────────────

class IntcodeVM:
    """One resumable VM instance.

    Usage:
        vm = IntcodeVM(parse_program(text))
        state, out = vm.run()          # runs until HALT or the first INPUT
        state, out = vm.run(42)        # resumes, feeding one value
    """

    def __init__(self, program: Union[Sequence[int], Tape], *,
                 extra_cells: Optional[int] = None,
                 growable: Optional[bool] = None,
                 trace: bool = False):
        if isinstance(program, Tape):
            if extra_cells is not None or growable is not None:
                raise ValueError(
                    "extra_cells/growable cannot be applied to an existing Tape"
                )
            self.memory = program.copy()
        else:
            self.memory = Tape(
                program,
                extra_cells=DEFAULT_EXTRA_CELLS if extra_cells is None else extra_cells,
                growable=bool(growable),
            )

        self.ip            = 0
        self.relative_base = 0
        self.state         = VMState.RUNNING

        self.trace = trace
        self.trace_log: List[str] = []

        self._held: Optional[int] = None

        # Lifetime counters, read by the pipeline to measure progress
        self.outputs_total = 0
        self.inputs_total  = 0

    # ── Main loop ─────────────────────────────────────────────────────────────

    def run(self, value: Optional[int] = None) -> Tuple[VMState, List[int]]:
        """Run until HALT or until an INPUT finds no value.

        ``value`` is held until the first INPUT needs it. Returns the state
        and the outputs produced during this call. A halted instance
        executes nothing and leaves ``value`` with the caller.
        """
        if self.state is VMState.HALTED:
            return self.state, []

        if value is not None:
            if self._held is not None:
                raise InputOverflow(
                    f"Input {value} supplied while {self._held} is still held"
                )
            self._held = value

        self.state = VMState.RUNNING
        outputs: List[int] = []
        mem = self.memory

        while True:
            instr = decode(mem, self.ip)
            if self.trace:
                self._trace(instr)

            outcome = evaluate(instr, mem, self.relative_base)
            flow    = outcome.flow

            if flow is Flow.CONTINUE:
                self.ip += instr.size

            elif flow is Flow.JUMP:
                self.ip = outcome.value

            elif flow is Flow.ADJUST_BASE:
                self.relative_base += outcome.value
                self.ip += instr.size

            elif flow is Flow.OUTPUT:
                outputs.append(outcome.value)
                self.outputs_total += 1
                self.ip += instr.size

            elif flow is Flow.NEEDS_INPUT:
                if self._held is None:
                    self.state = VMState.AWAITING_INPUT
                    return self.state, outputs
                mem.write(outcome.value, self._held)
                self._held = None
                self.inputs_total += 1
                self.ip += instr.size

            elif flow is Flow.HALT:
                self.state = VMState.HALTED
                return self.state, outputs

    def run_with(self, values: Iterable[int]) -> Tuple[VMState, List[int]]:
        """Feed ``values`` one per resume until they run out or the VM halts.

        Values left over after a halt are not consumed.
        """
        pending = deque(values)
        state, outputs = self.run(pending.popleft() if pending else None)
        while pending and state is VMState.AWAITING_INPUT:
            state, out = self.run(pending.popleft())
            outputs.extend(out)
        return state, outputs

    def take_unconsumed(self) -> Optional[int]:
        """Return and clear a held input the program never asked for."""
        value, self._held = self._held, None
        return value

    # ── Inspection ────────────────────────────────────────────────────────────

    @property
    def halted(self) -> bool:
        return self.state is VMState.HALTED

    @property
    def awaiting_input(self) -> bool:
        return self.state is VMState.AWAITING_INPUT

    def peek(self, address: int) -> int:
        return self.memory.read(address)

    def poke(self, address: int, value: int):
        self.memory.write(address, value)

    def _trace(self, instr: Instruction):
        line = f"{self.ip:>6}  {str(instr):<40} rb={self.relative_base}"
        self.trace_log.append(line)
        log.debug("%s", line)

    # ── Snapshots ─────────────────────────────────────────────────────────────

    def snapshot(self) -> VMSnapshot:
        return VMSnapshot(
            ip=self.ip,
            relative_base=self.relative_base,
            state=self.state,
            memory=self.memory.used(),
            capacity=self.memory.capacity,
            program_length=self.memory.program_length,
            growable=self.memory.growable,
            held_input=self._held,
            outputs_total=self.outputs_total,
            inputs_total=self.inputs_total,
        )

    @classmethod
    def from_snapshot(cls, snap: VMSnapshot, *, trace: bool = False) -> "IntcodeVM":
        tape = Tape(snap.memory,
                    extra_cells=max(0, snap.capacity - len(snap.memory)),
                    growable=snap.growable)
        tape.program_length = snap.program_length
        vm = cls(tape, trace=trace)
        vm.ip            = snap.ip
        vm.relative_base = snap.relative_base
        vm.state         = snap.state
        vm._held         = snap.held_input
        vm.outputs_total = snap.outputs_total
        vm.inputs_total  = snap.inputs_total
        return vm

    def __repr__(self) -> str:
        return (f"IntcodeVM(ip={self.ip}, rb={self.relative_base}, "
                f"state={self.state.name}, held={self._held})")


# ── Public operations ─────────────────────────────────────────────────────────

def construct(initial_tape: Sequence[int], **config) -> IntcodeVM:
    """Build a fresh instance from a copy of ``initial_tape``."""
    return IntcodeVM(initial_tape, **config)


def run(vm: IntcodeVM, value: Optional[int] = None) -> Tuple[VMState, List[int]]:
    return vm.run(value)
