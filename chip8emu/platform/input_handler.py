"""
Input handler for chip8emu.
Maps keyboard keys to keypad flags and host commands.

Keyboard layout
---------------

The left-hand block of a QWERTY keyboard mirrors the COSMAC VIP keypad:

=================  =================
Keyboard           Keypad
=================  =================
1  2  3  4         1  2  3  C
Q  W  E  R         4  5  6  D
A  S  D  F         7  8  9  E
Z  X  C  V         A  0  B  F
=================  =================

The arrow keys alias keypad 2 / 8 / 4 / 6, which most games use for
up / down / left / right.

===========  ==========================
Host key     Action
===========  ==========================
Escape       Quit
F1           Reset (reload the ROM)
P            Pause / resume
===========  ==========================
"""

from __future__ import annotations

import logging

import pygame

from chip8emu.core.types import HostCommand

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Keyboard -> keypad mappings
# ---------------------------------------------------------------------------

_KEY_MAP: dict[int, int] = {
    pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3, pygame.K_4: 0xC,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_r: 0xD,
    pygame.K_a: 0x7, pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_f: 0xE,
    pygame.K_z: 0xA, pygame.K_x: 0x0, pygame.K_c: 0xB, pygame.K_v: 0xF,

    # -- Arrow aliases -----------------------------------------------------
    pygame.K_UP:    0x2,
    pygame.K_DOWN:  0x8,
    pygame.K_LEFT:  0x4,
    pygame.K_RIGHT: 0x6,
}

_COMMAND_MAP: dict[int, HostCommand] = {
    pygame.K_ESCAPE: HostCommand.Quit,
    pygame.K_F1:     HostCommand.Reset,
    pygame.K_p:      HostCommand.Pause,
}


class InputHandler:
    """Translates pygame keyboard events into keypad state and host commands.

    Parameters
    ----------
    machine:
        The emulated machine.  ``machine.keypad`` is looked up on every
        event, so a ROM reload is picked up automatically.
    """

    def __init__(self, machine: object) -> None:
        self._machine = machine
        self._quit_requested: bool = False
        self._pending: list[HostCommand] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    @property
    def quit_requested(self) -> bool:
        """``True`` if the user pressed Escape or closed the window."""
        return self._quit_requested

    def poll(self) -> list[HostCommand]:
        """Pump the pygame event queue and process all pending events.

        Called once at the top of each frame, before any instruction runs.

        Returns:
            Host commands (reset, pause) raised since the last poll.
        """
        for event in pygame.event.get():
            self.handle_event(event)
        return self.take_commands()

    def take_commands(self) -> list[HostCommand]:
        commands, self._pending = self._pending, []
        return commands

    def handle_event(self, event: pygame.event.Event) -> None:
        """Process a single pygame event."""
        if event.type == pygame.QUIT:
            self._quit_requested = True
            return

        if event.type == pygame.KEYDOWN:
            self._on_key(event.key, down=True)
        elif event.type == pygame.KEYUP:
            self._on_key(event.key, down=False)

    def clear_all(self) -> None:
        """Release every keypad key."""
        self._machine.keypad.clear_all()  # type: ignore[attr-defined]

    # ------------------------------------------------------------------
    # Keyboard handlers
    # ------------------------------------------------------------------

    def _on_key(self, key: int, *, down: bool) -> None:
        command = _COMMAND_MAP.get(key)
        if command is not None:
            # Commands fire on key-down only.
            if down:
                if command == HostCommand.Quit:
                    self._quit_requested = True
                self._pending.append(command)
            return

        pad_key = _KEY_MAP.get(key)
        if pad_key is None:
            return
        self._machine.keypad.set_key(pad_key, down)  # type: ignore[attr-defined]
        logger.debug("Keypad %X %s", pad_key, "down" if down else "up")
