"""
intcode
=======
A resumable tape VM and a cooperative pipeline of VM instances.

Exports:
    parse_program   — comma-separated text → initial tape
    IntcodeVM       — one VM instance (run / snapshot / from_snapshot)
    construct, run  — functional entry points over IntcodeVM
    Pipeline        — round-robin chain or feedback loop of instances
    run_pipeline    — build a Pipeline and run it to quiescence
    disassemble     — human-readable tape listing
"""

from .isa import (
    Opcode, Mode, DEFAULT_EXTRA_CELLS,
    VMError, ParseError, DecodeError, UnknownOpcode, UnknownAddressingModeDigit,
    OutOfBounds, InvalidAddressMode, InputOverflow, PipelineError, PipelineDeadlock,
)
from .lexer import parse_program, format_program
from .memory import Tape
from .decoder import Instruction, decode, resolve_value, resolve_address
from .vm import Flow, Outcome, VMState, VMSnapshot, IntcodeVM, evaluate, construct, run
from .pipeline import Stage, Pipeline, run_pipeline, seed_inputs
from .disassembler import disassemble

__all__ = [
    # ISA
    "Opcode", "Mode", "DEFAULT_EXTRA_CELLS",
    # Errors
    "VMError", "ParseError", "DecodeError", "UnknownOpcode",
    "UnknownAddressingModeDigit", "OutOfBounds", "InvalidAddressMode",
    "InputOverflow", "PipelineError", "PipelineDeadlock",
    # Loading
    "parse_program", "format_program", "Tape",
    # Decode / evaluate
    "Instruction", "decode", "resolve_value", "resolve_address",
    "Flow", "Outcome", "evaluate",
    # VM
    "VMState", "VMSnapshot", "IntcodeVM", "construct", "run",
    # Pipeline
    "Stage", "Pipeline", "run_pipeline", "seed_inputs",
    "disassemble",
]
