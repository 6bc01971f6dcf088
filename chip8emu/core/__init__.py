# chip8emu interpreter core
"""
The CHIP-8 interpreter core: machine state, instruction cycle and opcode
dispatch.  Has no display, file or keyboard dependencies.

Use :class:`Chip8Machine <machine.Chip8Machine>` to load a ROM and run it
frame by frame, or drive :class:`Chip8CPU <cpu.Chip8CPU>` against a
:class:`MachineState <machine_state.MachineState>` directly.
"""

from chip8emu.core.cpu import Chip8CPU
from chip8emu.core.errors import (
    AddressOutOfBounds,
    Chip8Error,
    RomTooLarge,
    StackOverflow,
    StackUnderflow,
)
from chip8emu.core.frame_buffer import FrameBuffer
from chip8emu.core.keypad import Keypad
from chip8emu.core.machine import Chip8Machine
from chip8emu.core.machine_state import MachineState
from chip8emu.core.opcodes import Dispatcher, Instruction, decode, disassemble

__all__ = [
    "AddressOutOfBounds",
    "Chip8CPU",
    "Chip8Error",
    "Chip8Machine",
    "Dispatcher",
    "FrameBuffer",
    "Instruction",
    "Keypad",
    "MachineState",
    "RomTooLarge",
    "StackOverflow",
    "StackUnderflow",
    "decode",
    "disassemble",
]
