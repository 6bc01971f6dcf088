"""
FrameBuffer -- the 64x32 monochrome display of the interpreter.

The buffer is a flat ``bytearray`` of 2048 cells, one per pixel, each 0 or 1,
laid out row by row::

    pixels[(x % 64) + (y % 32) * 64]

Sprites are XOR-ed into the buffer and wrap around both edges.  The renderer
in :mod:`chip8emu.shell.frame_renderer` maps the 0/1 values to colours.
"""

from __future__ import annotations

from typing import Iterable

from chip8emu.core.types import DISPLAY_HEIGHT, DISPLAY_WIDTH


class FrameBuffer:
    """Holds one frame of 1-bit video output.

    Parameters
    ----------
    width, height:
        Display geometry.  Defaults to the standard 64x32.
    """

    SPRITE_WIDTH: int = 8

    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT) -> None:
        if width <= 0:
            raise ValueError(f"width must be positive, got {width}")
        if height <= 0:
            raise ValueError(f"height must be positive, got {height}")

        self.width: int = width
        self.height: int = height
        self.pixels: bytearray = bytearray(width * height)

    # ------------------------------------------------------------------
    # Pixel helpers
    # ------------------------------------------------------------------

    def offset(self, x: int, y: int) -> int:
        """Return the index into :attr:`pixels` for ``(x, y)``, wrapping both axes."""
        return (x % self.width) + (y % self.height) * self.width

    def read_pixel(self, x: int, y: int) -> int:
        return self.pixels[self.offset(x, y)]

    def xor_pixel(self, x: int, y: int) -> bool:
        """Toggle the pixel at ``(x, y)``.

        Returns:
            ``True`` if the pixel was set and is now cleared (a collision).
        """
        idx = self.offset(x, y)
        was_set = self.pixels[idx] == 1
        self.pixels[idx] ^= 1
        return was_set

    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """XOR an 8-pixel-wide sprite into the buffer at ``(x, y)``.

        Each element of *rows* is one byte; bit 7 is the leftmost pixel.
        Only set bits touch the buffer.

        Returns:
            ``True`` if any pixel flipped from set to unset.
        """
        collision = False
        for row, bits in enumerate(rows):
            for col in range(self.SPRITE_WIDTH):
                if bits & (0x80 >> col):
                    if self.xor_pixel(x + col, y + row):
                        collision = True
        return collision

    # ------------------------------------------------------------------
    # Buffer management
    # ------------------------------------------------------------------

    def clear(self) -> None:
        """Turn every pixel off."""
        self.pixels[:] = bytes(len(self.pixels))

    def lit_count(self) -> int:
        """Number of pixels currently on."""
        return sum(self.pixels)

    def rows(self) -> list[bytes]:
        """Return the buffer as *height* immutable rows of *width* cells."""
        w = self.width
        return [bytes(self.pixels[y * w:(y + 1) * w]) for y in range(self.height)]

    # ------------------------------------------------------------------
    # Dunder helpers
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.pixels)

    def __repr__(self) -> str:
        return (
            f"FrameBuffer("
            f"width={self.width}, "
            f"height={self.height}, "
            f"lit={self.lit_count()})"
        )
