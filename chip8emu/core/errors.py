"""
Exceptions raised by the interpreter core.

Unknown opcodes are not errors (they are logged and skipped); everything here
is a contract violation that halts the machine until it is reset.
"""

from __future__ import annotations

from chip8emu.core.types import MAX_ROM_SIZE, MEMORY_SIZE, STACK_DEPTH


class Chip8Error(Exception):
    """Base class for all interpreter errors."""


class StackOverflow(Chip8Error):
    """A subroutine call was made with the call stack already full."""

    def __init__(self, address: int, depth: int = STACK_DEPTH) -> None:
        self.address = address
        self.depth = depth
        super().__init__(
            f"call to 0x{address:03X} exceeds stack depth of {depth}"
        )


class StackUnderflow(Chip8Error):
    """A return was executed with an empty call stack."""

    def __init__(self, pc: int) -> None:
        self.pc = pc
        super().__init__(f"return at 0x{pc:03X} with empty call stack")


class AddressOutOfBounds(Chip8Error, IndexError):
    """A memory access fell outside 0x000..0xFFF."""

    def __init__(self, address: int, message: str | None = None) -> None:
        self.address = address
        if message is None:
            message = (
                f"address 0x{address:X} outside memory [0x000, 0x{MEMORY_SIZE:03X})"
            )
        super().__init__(message)


class RomTooLarge(AddressOutOfBounds):
    """A ROM image does not fit between 0x200 and 0xFFF."""

    def __init__(self, size: int) -> None:
        self.size = size
        super().__init__(
            MEMORY_SIZE,
            f"ROM is {size} bytes; at most {MAX_ROM_SIZE} bytes fit at 0x200",
        )
