"""
MachineState -- all mutable state of one interpreter instance.

A ``MachineState`` is a plain value owned by its caller (normally
:class:`~chip8emu.core.machine.Chip8Machine`) and passed explicitly to the
CPU and dispatcher.  It holds:

* **memory** -- 4 KB, font at 0x000, program at 0x200.
* **v** -- sixteen 8-bit registers V0..VF (VF doubles as the flag register).
* **i** -- the index register.
* **pc** -- the program counter.
* **stack** -- saved return addresses, at most 16 deep.
* **delay_timer** / **sound_timer** -- 8-bit down-counters.
* **keypad** -- :class:`~chip8emu.core.keypad.Keypad`.
* **frame_buffer** -- :class:`~chip8emu.core.frame_buffer.FrameBuffer`.

Memory reads and writes made on behalf of instructions go through
:meth:`read` / :meth:`write` / :meth:`read_block`, which raise
:class:`~chip8emu.core.errors.AddressOutOfBounds` instead of wrapping.
"""

from __future__ import annotations

from chip8emu.core.errors import (
    AddressOutOfBounds,
    Chip8Error,
    RomTooLarge,
    StackOverflow,
    StackUnderflow,
)
from chip8emu.core.frame_buffer import FrameBuffer
from chip8emu.core.keypad import Keypad
from chip8emu.core.types import (
    FLAG_REGISTER,
    FONT_SET,
    FONT_START,
    MAX_ROM_SIZE,
    MEMORY_SIZE,
    PROGRAM_START,
    REGISTER_COUNT,
    STACK_DEPTH,
)


class MachineState:
    """Memory, registers, timers, stack, keypad and display of the machine.

    A new instance is already reset: the font is in place and ``pc`` is
    0x200, ready for :meth:`load`.
    """

    def __init__(self) -> None:
        self.memory: bytearray = bytearray(MEMORY_SIZE)
        self.v: bytearray = bytearray(REGISTER_COUNT)
        self.i: int = 0
        self.pc: int = PROGRAM_START
        self.stack: list[int] = []
        self.delay_timer: int = 0
        self.sound_timer: int = 0
        self.keypad: Keypad = Keypad()
        self.frame_buffer: FrameBuffer = FrameBuffer()

        self.rom_size: int = 0
        self._rom_loaded: bool = False

        self.reset()

    # ------------------------------------------------------------------
    # Loader
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Return to the power-on state.

        Memory is zeroed and the font table rewritten at 0x000-0x04F; all
        registers, timers, the stack, the keypad and the display are
        cleared, and ``pc`` is set to 0x200.
        """
        self.memory[:] = bytes(MEMORY_SIZE)
        self.memory[FONT_START:FONT_START + len(FONT_SET)] = FONT_SET
        self.v[:] = bytes(REGISTER_COUNT)
        self.i = 0
        self.pc = PROGRAM_START
        self.stack.clear()
        self.delay_timer = 0
        self.sound_timer = 0
        self.keypad.clear_all()
        self.frame_buffer.clear()
        self.rom_size = 0
        self._rom_loaded = False

    def load(self, rom: bytes) -> None:
        """Copy *rom* into memory starting at 0x200.

        Raises:
            RomTooLarge: If *rom* is longer than 0xE00 bytes.
            Chip8Error: If a ROM was already loaded since the last reset.
        """
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLarge(len(rom))
        if self._rom_loaded:
            raise Chip8Error("a ROM is already loaded; reset() before loading another")
        self.memory[PROGRAM_START:PROGRAM_START + len(rom)] = bytes(rom)
        self.rom_size = len(rom)
        self._rom_loaded = True

    @property
    def rom_loaded(self) -> bool:
        return self._rom_loaded

    # ------------------------------------------------------------------
    # Bounds-checked memory access
    # ------------------------------------------------------------------

    @staticmethod
    def check_address(addr: int) -> None:
        if not 0 <= addr < MEMORY_SIZE:
            raise AddressOutOfBounds(addr)

    def read(self, addr: int) -> int:
        self.check_address(addr)
        return self.memory[addr]

    def write(self, addr: int, value: int) -> None:
        self.check_address(addr)
        self.memory[addr] = value & 0xFF

    def read_block(self, addr: int, length: int) -> bytes:
        """Return *length* bytes starting at *addr*.

        Raises:
            AddressOutOfBounds: If any byte of the block lies outside memory.
        """
        if length <= 0:
            return b""
        self.check_address(addr)
        self.check_address(addr + length - 1)
        return bytes(self.memory[addr:addr + length])

    def write_block(self, addr: int, data: bytes) -> None:
        if not data:
            return
        self.check_address(addr)
        self.check_address(addr + len(data) - 1)
        self.memory[addr:addr + len(data)] = data

    # ------------------------------------------------------------------
    # Call stack
    # ------------------------------------------------------------------

    def push(self, address: int, target: int) -> None:
        """Save *address* as a return address for a call to *target*.

        Raises:
            StackOverflow: If the stack already holds 16 entries.
        """
        if len(self.stack) >= STACK_DEPTH:
            raise StackOverflow(target)
        self.stack.append(address)

    def pop(self) -> int:
        """Remove and return the most recent return address.

        Raises:
            StackUnderflow: If the stack is empty.
        """
        if not self.stack:
            raise StackUnderflow(self.pc)
        return self.stack.pop()

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def tick_timers(self) -> None:
        """Decrement both timers by one, stopping at zero."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    @property
    def vf(self) -> int:
        return self.v[FLAG_REGISTER]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[FLAG_REGISTER] = value & 0xFF

    def registers_dump(self) -> str:
        """One-line register summary used in debug output."""
        regs = " ".join(f"V{n:X}={val:02X}" for n, val in enumerate(self.v))
        return (
            f"PC={self.pc:03X} I={self.i:03X} SP={len(self.stack)} "
            f"DT={self.delay_timer} ST={self.sound_timer} {regs}"
        )

    def __repr__(self) -> str:
        return (
            f"MachineState("
            f"pc=0x{self.pc:03X}, "
            f"i=0x{self.i:03X}, "
            f"stack_depth={len(self.stack)}, "
            f"rom_size={self.rom_size})"
        )
