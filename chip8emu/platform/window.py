"""
Main application window for chip8emu.
Uses pygame to create a display, drive the emulation main loop, and
coordinate video and input.

Each iteration of the loop is one 60 Hz frame:

1. Poll keyboard events into the keypad (between instruction cycles).
2. ``machine.compute_next_frame()`` -- N instructions, then one timer tick.
3. Render the framebuffer, scale it to the window and flip.
4. Throttle to the frame rate.

Typical usage::

    from chip8emu.platform.window import Window

    machine = MachineFactory.create("pong.ch8")
    window = Window(machine, scale=10)
    window.run()
"""

from __future__ import annotations

import logging
import time

import pygame

from chip8emu.core.errors import Chip8Error
from chip8emu.core.types import HostCommand
from chip8emu.platform.input_handler import InputHandler
from chip8emu.shell.frame_renderer import DEFAULT_BACKGROUND, DEFAULT_FOREGROUND, FrameRenderer

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_WINDOW_TITLE: str = "chip8emu"

# Minimum / maximum allowed display scale factors.
MIN_SCALE: int = 1
MAX_SCALE: int = 20

_DEFAULT_HZ: int = 60


class Window:
    """Pygame window that owns the emulation main loop.

    Parameters
    ----------
    machine:
        A loaded :class:`~chip8emu.core.machine.Chip8Machine`.
    scale:
        Integer scale factor applied to the native 64x32 resolution.
    foreground, background:
        ``0xRRGGBB`` pixel colours.
    """

    def __init__(
        self,
        machine: object,
        scale: int = 10,
        *,
        foreground: int = DEFAULT_FOREGROUND,
        background: int = DEFAULT_BACKGROUND,
    ) -> None:
        # ---- basic state -------------------------------------------------
        self._machine = machine
        self._scale: int = max(MIN_SCALE, min(MAX_SCALE, scale))
        self._running: bool = False
        self._paused: bool = False

        # ---- extract machine geometry ------------------------------------
        fb = machine.frame_buffer  # type: ignore[attr-defined]
        self._native_width: int = fb.width
        self._native_height: int = fb.height
        self._frame_hz: int = getattr(machine, "frame_hz", _DEFAULT_HZ)

        # ---- init pygame display -----------------------------------------
        if not pygame.get_init():
            pygame.init()

        self._display_width: int = self._native_width * self._scale
        self._display_height: int = self._native_height * self._scale

        self._screen: pygame.Surface = pygame.display.set_mode(
            (self._display_width, self._display_height),
            pygame.RESIZABLE,
        )
        pygame.display.set_caption(self._build_title())

        self._clock: pygame.time.Clock = pygame.time.Clock()

        # ---- subsystems --------------------------------------------------
        self._frame_renderer: FrameRenderer = FrameRenderer(
            machine, foreground=foreground, background=background
        )
        self._input: InputHandler = InputHandler(machine)

        # ---- performance counters ----------------------------------------
        self._frame_count: int = 0
        self._fps_update_time: float = 0.0
        self._fps_display: float = 0.0

        logger.info(
            "Window: %dx%d native, %dx%d display (scale=%d, %d Hz)",
            self._native_width,
            self._native_height,
            self._display_width,
            self._display_height,
            self._scale,
            self._frame_hz,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._running

    @property
    def paused(self) -> bool:
        return self._paused

    @paused.setter
    def paused(self, value: bool) -> None:
        self._paused = value

    @property
    def scale(self) -> int:
        return self._scale

    @property
    def fps(self) -> float:
        """The measured frames-per-second (updated once per second)."""
        return self._fps_display

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> None:
        """Enter the main emulation loop.

        Blocks until the user closes the window or presses Escape.
        """
        self._running = True
        self._fps_update_time = time.monotonic()
        self._frame_count = 0

        logger.info("Entering main loop (target %d fps)", self._frame_hz)

        try:
            while self._running:
                self._tick()
        except KeyboardInterrupt:
            logger.info("Interrupted by user")
        finally:
            self._shutdown()

    # ------------------------------------------------------------------
    # Per-frame tick
    # ------------------------------------------------------------------

    def _tick(self) -> None:
        """Execute one iteration of the main loop."""
        # ---- input -------------------------------------------------------
        commands = self._input.poll()
        if self._input.quit_requested:
            self._running = False
            return
        for command in commands:
            self._apply_command(command)

        # ---- emulation ---------------------------------------------------
        if not self._paused:
            try:
                self._machine.compute_next_frame()  # type: ignore[attr-defined]
            except Chip8Error as exc:
                # The machine is halted; keep the last frame up until F1.
                logger.error("Emulation halted: %s (F1 to reset)", exc)
                pygame.display.set_caption(f"{self._build_title()}  [halted]")

        # ---- video -------------------------------------------------------
        surface = self._frame_renderer.render()

        current_size = self._screen.get_size()
        if surface.get_size() != current_size:
            scaled = pygame.transform.scale(surface, current_size)
        else:
            scaled = surface
        self._screen.blit(scaled, (0, 0))
        pygame.display.flip()

        # ---- timing ------------------------------------------------------
        self._clock.tick(self._frame_hz)
        self._update_fps()

    def _apply_command(self, command: HostCommand) -> None:
        if command == HostCommand.Reset:
            logger.info("Reset requested")
            self._machine.reset()  # type: ignore[attr-defined]
            pygame.display.set_caption(self._build_title())
        elif command == HostCommand.Pause:
            self._paused = not self._paused
            logger.info("Paused" if self._paused else "Resumed")

    # ------------------------------------------------------------------
    # FPS tracking
    # ------------------------------------------------------------------

    def _update_fps(self) -> None:
        """Update the displayed FPS counter roughly once per second."""
        self._frame_count += 1
        now = time.monotonic()
        elapsed = now - self._fps_update_time
        if elapsed >= 1.0:
            self._fps_display = self._frame_count / elapsed
            self._frame_count = 0
            self._fps_update_time = now

            if not getattr(self._machine, "machine_halt", False):
                suffix = "  [paused]" if self._paused else ""
                pygame.display.set_caption(
                    f"{self._build_title()}  [{self._fps_display:.1f} fps]{suffix}"
                )

    # ------------------------------------------------------------------
    # Shutdown
    # ------------------------------------------------------------------

    def _shutdown(self) -> None:
        logger.info("Shutting down")
        pygame.quit()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_title(self) -> str:
        """Build the window title string from the loaded ROM name."""
        name = getattr(self._machine, "rom_name", "")
        if name:
            return f"{_WINDOW_TITLE}  ({name})"
        return _WINDOW_TITLE
