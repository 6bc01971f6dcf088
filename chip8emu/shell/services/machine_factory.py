"""
Machine creation factory for chip8emu.

Creates a loaded :class:`~chip8emu.core.machine.Chip8Machine` from a ROM
file path plus optional timing overrides.

Typical usage::

    machine = MachineFactory.create("pong.ch8")
    machine = MachineFactory.create("pong.ch8", cycles_per_frame=20, seed=1)
"""

from __future__ import annotations

import logging
from typing import Optional

from chip8emu.core.machine import Chip8Machine
from chip8emu.core.types import DEFAULT_CYCLES_PER_FRAME, TIMER_HZ
from chip8emu.shell.services.rom_bytes_service import RomBytesService

logger = logging.getLogger(__name__)


class MachineFactory:
    """Create a CHIP-8 machine from a ROM file."""

    @staticmethod
    def create(
        rom_path: str,
        cycles_per_frame: Optional[int] = None,
        frame_hz: Optional[int] = None,
        seed: Optional[int] = None,
    ) -> Chip8Machine:
        """Build and return a machine with *rom_path* loaded.

        Parameters
        ----------
        rom_path:
            Filesystem path to the ROM image.
        cycles_per_frame:
            Instructions per frame.  ``None`` uses the default of 10.
        frame_hz:
            Frame / timer rate in Hz.  ``None`` uses 60.
        seed:
            Seed for the random-number instruction.

        Raises
        ------
        FileNotFoundError
            If *rom_path* does not exist.
        RomTooLarge
            If the ROM does not fit in memory.
        ValueError
            If *cycles_per_frame* is less than 1.
        """
        logger.info("Loading ROM: %s", rom_path)
        rom_bytes = RomBytesService.read(rom_path)

        machine = Chip8Machine(
            cycles_per_frame=DEFAULT_CYCLES_PER_FRAME if cycles_per_frame is None else cycles_per_frame,
            frame_hz=TIMER_HZ if frame_hz is None else frame_hz,
            seed=seed,
        )
        machine.load_rom(rom_bytes, RomBytesService.title_for(rom_path))
        logger.info("Machine created: %r", machine)
        return machine
