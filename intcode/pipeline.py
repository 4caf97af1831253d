"""
intcode.pipeline
================
Cooperative composition of several VM instances.

Stage *i* owns an input queue and writes its outputs into stage *i+1*'s
queue. The last stage writes either into stage 0's queue (feedback) or
into an external sink (chain):

    seeds[0] ─► [ VM 0 ] ─► [ VM 1 ] ─► … ─► [ VM n-1 ] ─┐
                   ▲                                      │
                   └──────────── feedback ────────────────┘

Stages are driven round-robin, one at a time, each until it halts or is
blocked on an empty queue. A round in which no stage consumed an input
or produced an output ends the run; at that point every stage must have
halted.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterable, List, Sequence, Union

from intcode.isa import PipelineDeadlock, PipelineError
from intcode.memory import Tape
from intcode.vm import IntcodeVM, VMState

log = logging.getLogger(__name__)

Program = Union[Sequence[int], Tape]


# ─────────────────────────────────────────────
# One (instance, queue) pair
# ─────────────────────────────────────────────

@dataclass
class Stage:
    index  : int
    vm     : IntcodeVM
    inbox  : Deque[int]
    outbox : Deque[int] = field(repr=False)

    def drain(self) -> int:
        """Drive the VM until it halts or blocks on an empty inbox.

        Returns the number of inputs consumed plus outputs produced.
        """
        vm = self.vm
        before = vm.inputs_total + vm.outputs_total
        while not vm.halted:
            state, out = vm.run(self.inbox.popleft() if self.inbox else None)
            self.outbox.extend(out)
            leftover = vm.take_unconsumed()
            if leftover is not None:
                self.inbox.appendleft(leftover)
            if state is VMState.HALTED or not self.inbox:
                break
        return vm.inputs_total + vm.outputs_total - before

    @property
    def state(self) -> VMState:
        return self.vm.state


# ─────────────────────────────────────────────
# Pipeline
# ─────────────────────────────────────────────

def _is_single_program(programs) -> bool:
    if isinstance(programs, Tape):
        return True
    return len(programs) > 0 and isinstance(programs[0], int)


class Pipeline:
    """
    Round-robin driver for a chain or feedback loop of VM instances.

    ``programs`` is either one tape shared by every stage (each stage
    gets its own copy) or one tape per stage. ``seeds[i]`` is pre-loaded
    into stage *i*'s queue; the number of stages is ``len(seeds)``.
    """

    def __init__(self, programs: Union[Program, Sequence[Program]],
                 seeds: Sequence[Iterable[int]], *,
                 feedback: bool = True, **vm_config):
        queues: List[Deque[int]] = [deque(s) for s in seeds]
        n = len(queues)
        if n == 0:
            raise PipelineError("A pipeline needs at least one stage")

        if _is_single_program(programs):
            tapes = [programs] * n
        else:
            tapes = list(programs)
            if len(tapes) != n:
                raise PipelineError(
                    f"Got {len(tapes)} programs for {n} seed queues"
                )

        self.feedback = feedback
        self.sink: Deque[int] = queues[0] if feedback else deque()
        self.stages: List[Stage] = []
        for i, tape in enumerate(tapes):
            outbox = queues[i + 1] if i + 1 < n else self.sink
            vm = IntcodeVM(tape, **vm_config)
            self.stages.append(Stage(i, vm, queues[i], outbox))
        self.rounds = 0

    def step(self) -> int:
        """Run one round over every stage; return the round's progress."""
        self.rounds += 1
        progress = 0
        for stage in self.stages:
            progress += stage.drain()
        log.debug("Pipeline round %d: progress=%d states=%s", self.rounds,
                  progress, [s.state.name for s in self.stages])
        return progress

    def run(self) -> int:
        """Run to quiescence and return the last value written to the sink."""
        while self.step():
            pass

        blocked = [s.index for s in self.stages if s.state is not VMState.HALTED]
        if blocked:
            log.warning("Pipeline deadlocked after %d rounds; blocked stages %s",
                        self.rounds, blocked)
            raise PipelineDeadlock(
                f"Stages {blocked} are awaiting input with every queue empty",
                blocked,
            )
        if not self.sink:
            raise PipelineError("Every stage halted without producing a final output")

        result = self.sink[-1]
        log.info("Pipeline of %d stages halted after %d rounds; output=%d",
                 len(self.stages), self.rounds, result)
        return result


# ─────────────────────────────────────────────
# Public operations
# ─────────────────────────────────────────────

def seed_inputs(phases: Sequence[int], initial: int = 0) -> List[List[int]]:
    """One seed queue per phase value; the first queue also gets ``initial``."""
    seeds = [[p] for p in phases]
    if seeds:
        seeds[0].append(initial)
    return seeds


def run_pipeline(programs: Union[Program, Sequence[Program]],
                 seed_inputs_per_instance: Sequence[Iterable[int]], *,
                 feedback: bool = True, **vm_config) -> int:
    return Pipeline(programs, seed_inputs_per_instance,
                    feedback=feedback, **vm_config).run()
