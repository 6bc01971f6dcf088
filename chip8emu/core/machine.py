"""
Chip8Machine -- a loaded, runnable interpreter.

The machine ties together the pieces the host needs each frame:

* **state** -- the current :class:`~chip8emu.core.machine_state.MachineState`.
* **cpu** -- the :class:`~chip8emu.core.cpu.Chip8CPU` that steps it.
* **rom** -- the ROM image, kept so :meth:`reset` can reload it.

:meth:`compute_next_frame` is the driver loop contract in one call: run
``cycles_per_frame`` instructions, then tick the timers once.

Typical usage::

    machine = Chip8Machine(cycles_per_frame=10)
    machine.load_rom(rom_bytes)
    while running:
        machine.compute_next_frame()
        draw(machine.frame_buffer)
"""

from __future__ import annotations

import logging
from typing import Optional

from chip8emu.core.cpu import Chip8CPU
from chip8emu.core.errors import Chip8Error
from chip8emu.core.frame_buffer import FrameBuffer
from chip8emu.core.keypad import Keypad
from chip8emu.core.machine_state import MachineState
from chip8emu.core.types import DEFAULT_CYCLES_PER_FRAME, TIMER_HZ

logger = logging.getLogger(__name__)


class Chip8Machine:
    """A CHIP-8 interpreter plus its frame driver.

    Parameters
    ----------
    cycles_per_frame:
        Instructions executed per call to :meth:`compute_next_frame`.
        Must be >= 1.
    frame_hz:
        Frames per second the host is expected to run at.  Clamped to >= 1.
    seed:
        Seed for the ``CXNN`` random source; ``None`` for a random seed.
    """

    def __init__(
        self,
        cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME,
        frame_hz: int = TIMER_HZ,
        seed: Optional[int] = None,
    ) -> None:
        if cycles_per_frame < 1:
            raise ValueError(f"cycles_per_frame must be >= 1, got {cycles_per_frame}")

        self.cycles_per_frame: int = cycles_per_frame
        self.frame_hz: int = max(1, frame_hz)
        self.seed: Optional[int] = seed

        self.cpu: Chip8CPU = Chip8CPU(seed=seed)
        self.state: MachineState = MachineState()
        self.rom: bytes = b""
        self.rom_name: str = ""

        # Machine run-state.
        self.machine_halt: bool = False
        self.halt_reason: Optional[Chip8Error] = None
        self.frame_number: int = 0

    # ------------------------------------------------------------------
    # Convenience accessors for the host
    # ------------------------------------------------------------------

    @property
    def frame_buffer(self) -> FrameBuffer:
        return self.state.frame_buffer

    @property
    def keypad(self) -> Keypad:
        return self.state.keypad

    @property
    def sound_active(self) -> bool:
        """``True`` while the sound timer is running."""
        return self.state.sound_timer > 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load_rom(self, rom: bytes, name: str = "") -> None:
        """Discard the current state and load *rom* into a fresh one.

        Raises:
            RomTooLarge: If *rom* does not fit in memory.  The previous
                state is kept in that case.
        """
        state = MachineState()
        state.load(rom)
        self.state = state
        self.rom = bytes(rom)
        self.rom_name = name
        self.cpu = Chip8CPU(seed=self.seed)
        self.machine_halt = False
        self.halt_reason = None
        self.frame_number = 0
        logger.info("Loaded ROM %s (%d bytes)", name or "<anonymous>", len(rom))

    def reset(self) -> None:
        """Restart the current ROM from power-on state."""
        self.load_rom(self.rom, self.rom_name)

    def compute_next_frame(self) -> None:
        """Advance emulation by one frame.

        Runs :attr:`cycles_per_frame` instructions and then one timer tick.
        Does nothing while :attr:`machine_halt` is set.

        Raises:
            Chip8Error: If an instruction violates the machine's contract.
                The machine is halted before the error propagates.
        """
        if self.machine_halt:
            return
        try:
            for _ in range(self.cycles_per_frame):
                self.cpu.step(self.state)
        except Chip8Error as exc:
            self.machine_halt = True
            self.halt_reason = exc
            logger.error("Machine halted at frame %d: %s", self.frame_number, exc)
            raise
        self.cpu.tick_timers(self.state)
        self.frame_number += 1

    def run_frames(self, count: int) -> None:
        """Run *count* frames back to back (headless)."""
        for _ in range(count):
            self.compute_next_frame()

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"rom={self.rom_name!r}, "
            f"cycles_per_frame={self.cycles_per_frame}, "
            f"frame_hz={self.frame_hz}, "
            f"frame={self.frame_number})"
        )
