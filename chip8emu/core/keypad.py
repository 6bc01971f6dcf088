"""
Keypad -- the 16-key hexadecimal input of the interpreter.

Host code (see :mod:`chip8emu.platform.input_handler`) sets and clears keys
between instruction cycles; the CPU only reads them.

Key layout of the original COSMAC VIP pad::

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F
"""

from __future__ import annotations

from typing import Optional

from chip8emu.core.types import KEY_COUNT


class Keypad:
    """Sixteen independent pressed/released flags indexed 0x0..0xF."""

    def __init__(self) -> None:
        self._keys: list[bool] = [False] * KEY_COUNT

    # ------------------------------------------------------------------
    # Host-side mutation
    # ------------------------------------------------------------------

    def press(self, key: int) -> None:
        self.set_key(key, True)

    def release(self, key: int) -> None:
        self.set_key(key, False)

    def set_key(self, key: int, down: bool) -> None:
        """Set the state of *key*.

        Raises:
            IndexError: If *key* is not in 0x0..0xF.
        """
        if not 0 <= key < KEY_COUNT:
            raise IndexError(f"key {key} out of range [0, {KEY_COUNT})")
        self._keys[key] = down

    def clear_all(self) -> None:
        """Release every key."""
        for i in range(KEY_COUNT):
            self._keys[i] = False

    # ------------------------------------------------------------------
    # Interpreter-side sampling
    # ------------------------------------------------------------------

    def is_pressed(self, key: int) -> bool:
        return self._keys[key & 0xF]

    def first_pressed(self) -> Optional[int]:
        """Return the lowest-numbered pressed key, or ``None``."""
        for key in range(KEY_COUNT):
            if self._keys[key]:
                return key
        return None

    def __getitem__(self, key: int) -> bool:
        return self._keys[key]

    def __setitem__(self, key: int, down: bool) -> None:
        self.set_key(key, down)

    def __len__(self) -> int:
        return KEY_COUNT

    def __repr__(self) -> str:
        held = [f"{k:X}" for k in range(KEY_COUNT) if self._keys[k]]
        return f"Keypad(pressed=[{', '.join(held)}])"
