"""
Frame renderer for chip8emu.
Converts the machine's 0/1 FrameBuffer into an RGB pygame Surface.

The core produces one byte per pixel, either 0 (off) or 1 (on).  A
two-entry numpy look-up table maps those values to the background and
foreground colours, and the result is blitted into a Surface at native
64x32 resolution.  Scaling to the window size is the window's job.

The default colours are the classic green-on-black.
"""

from __future__ import annotations

import logging

import numpy as np
import pygame

logger = logging.getLogger(__name__)


DEFAULT_FOREGROUND: int = 0x00FF00
DEFAULT_BACKGROUND: int = 0x000000


def parse_colour(text: str) -> int:
    """Parse ``"#RRGGBB"``, ``"0xRRGGBB"`` or ``"RRGGBB"`` into an int.

    Raises:
        ValueError: If *text* is not a 24-bit hex colour.
    """
    cleaned = text.strip().lower()
    if cleaned.startswith("#"):
        cleaned = cleaned[1:]
    elif cleaned.startswith("0x"):
        cleaned = cleaned[2:]
    if len(cleaned) != 6:
        raise ValueError(f"expected a 6-digit hex colour, got {text!r}")
    return int(cleaned, 16)


class FrameRenderer:
    """Convert a machine's :class:`~chip8emu.core.frame_buffer.FrameBuffer`
    into an RGB :class:`pygame.Surface` each frame.

    Parameters
    ----------
    machine:
        The emulated machine.  Only ``machine.frame_buffer`` is used; it is
        looked up on every :meth:`render` call so a ROM reload (which
        replaces the machine state) is picked up automatically.
    foreground, background:
        ``0xRRGGBB`` colours for lit and unlit pixels.
    """

    def __init__(
        self,
        machine: object,
        foreground: int = DEFAULT_FOREGROUND,
        background: int = DEFAULT_BACKGROUND,
    ) -> None:
        self._machine = machine
        fb = machine.frame_buffer  # type: ignore[attr-defined]

        self._width: int = fb.width
        self._height: int = fb.height

        self._lut: np.ndarray = np.zeros((2, 3), dtype=np.uint8)
        self.set_colours(foreground, background)

        self._surface: pygame.Surface = pygame.Surface((self._width, self._height))

        logger.info(
            "FrameRenderer: %dx%d, fg=#%06X bg=#%06X",
            self._width,
            self._height,
            foreground,
            background,
        )

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def surface(self) -> pygame.Surface:
        """The internal pygame Surface (updated on each :meth:`render` call)."""
        return self._surface

    def set_colours(self, foreground: int, background: int) -> None:
        """Replace the two display colours."""
        for idx, colour in ((0, background), (1, foreground)):
            self._lut[idx, 0] = (colour >> 16) & 0xFF
            self._lut[idx, 1] = (colour >> 8) & 0xFF
            self._lut[idx, 2] = colour & 0xFF

    def to_rgb(self) -> np.ndarray:
        """Return the current frame as a ``(height, width, 3)`` uint8 array."""
        fb = self._machine.frame_buffer  # type: ignore[attr-defined]
        raw = np.frombuffer(bytes(fb.pixels), dtype=np.uint8)
        frame = raw.reshape((self._height, self._width))
        return self._lut[frame]

    def render(self) -> pygame.Surface:
        """Render the current frame and return the surface.

        The same :class:`pygame.Surface` object is reused every frame.
        """
        rgb = self.to_rgb()
        # pygame surfarray expects (W, H, 3).
        pygame.surfarray.blit_array(self._surface, rgb.transpose(1, 0, 2))
        return self._surface
