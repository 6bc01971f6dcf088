"""
Core constants and small value types for chip8emu.

The memory map of the interpreter:

===========  ========================================
Range        Contents
===========  ========================================
0x000-0x04F  Built-in hexadecimal font (16 x 5 bytes)
0x050-0x1FF  Reserved (zero)
0x200-0xFFF  ROM code and data
===========  ========================================
"""

from enum import IntEnum


MEMORY_SIZE: int = 0x1000
PROGRAM_START: int = 0x200
MAX_ROM_SIZE: int = MEMORY_SIZE - PROGRAM_START  # 0xE00

FONT_START: int = 0x000
FONT_GLYPH_SIZE: int = 5

REGISTER_COUNT: int = 16
FLAG_REGISTER: int = 0xF
KEY_COUNT: int = 16
STACK_DEPTH: int = 16

DISPLAY_WIDTH: int = 64
DISPLAY_HEIGHT: int = 32

INSTRUCTION_SIZE: int = 2

# Driver defaults: ~10 instructions per 60 Hz frame.
TIMER_HZ: int = 60
DEFAULT_CYCLES_PER_FRAME: int = 10

# fmt: off
FONT_SET: bytes = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])
# fmt: on

assert len(FONT_SET) == 16 * FONT_GLYPH_SIZE, f"font must have 80 bytes, got {len(FONT_SET)}"


class HostCommand(IntEnum):
    """Requests from the input layer that act on the emulator, not the keypad."""
    Quit = 0
    Reset = 1
    Pause = 2
