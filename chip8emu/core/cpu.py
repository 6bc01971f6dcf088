"""
Chip8CPU -- the fetch-decode-execute cycle.

The CPU holds no machine state of its own.  Each call to :meth:`step`
receives the :class:`~chip8emu.core.machine_state.MachineState` to run
against, reads the two bytes at ``pc``, decodes them and hands the
instruction to the :class:`~chip8emu.core.opcodes.Dispatcher`.

Timers are *not* touched by :meth:`step`; the driver calls
:meth:`tick_timers` once per 60 Hz frame regardless of how many
instructions ran in it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import numpy as np

from chip8emu.core.errors import AddressOutOfBounds
from chip8emu.core.opcodes import Dispatcher, Instruction, decode, disassemble
from chip8emu.core.types import MEMORY_SIZE

if TYPE_CHECKING:
    from chip8emu.core.machine_state import MachineState

logger = logging.getLogger(__name__)


class Chip8CPU:
    """CHIP-8 instruction cycle.

    Parameters
    ----------
    seed:
        Seed for the ``CXNN`` random source.  Ignored when *rng* is given.
    rng:
        An explicit :class:`numpy.random.Generator` to use.
    """

    def __init__(self, seed: Optional[int] = None, rng: Optional[np.random.Generator] = None) -> None:
        if rng is None:
            rng = np.random.default_rng(seed)
        self.dispatcher: Dispatcher = Dispatcher(rng)
        self.cycles: int = 0

    def fetch(self, state: MachineState) -> int:
        """Return the 16-bit word at ``pc``.

        Raises:
            AddressOutOfBounds: If ``pc`` or ``pc + 1`` is outside memory.
        """
        pc = state.pc
        if pc < 0 or pc + 1 >= MEMORY_SIZE:
            raise AddressOutOfBounds(pc, f"cannot fetch instruction at 0x{pc:X}")
        return (state.memory[pc] << 8) | state.memory[pc + 1]

    def step(self, state: MachineState) -> Instruction:
        """Execute exactly one instruction and return it."""
        opcode = self.fetch(state)
        ins = decode(opcode)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%03X: %04X  %s", state.pc, opcode, disassemble(opcode))
        self.dispatcher.execute(state, ins)
        self.cycles += 1
        return ins

    def run(self, state: MachineState, cycles: int) -> None:
        """Execute *cycles* instructions back to back."""
        for _ in range(cycles):
            self.step(state)

    @staticmethod
    def tick_timers(state: MachineState) -> None:
        """Decrement the delay and sound timers, floored at zero."""
        state.tick_timers()

    def __repr__(self) -> str:
        return f"Chip8CPU(cycles={self.cycles})"
