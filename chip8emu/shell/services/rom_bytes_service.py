"""
ROM loading service for chip8emu.

Responsibilities:
  - Read ROM files from disk (raw bytes, no header, byte 0 maps to 0x200).
  - Reject images that do not fit in memory before they reach the core.
  - Produce a short human-readable description of a ROM for ``--info``.
"""

from __future__ import annotations

import os

from chip8emu.core.errors import RomTooLarge
from chip8emu.core.opcodes import disassemble
from chip8emu.core.types import INSTRUCTION_SIZE, MAX_ROM_SIZE, PROGRAM_START


# Extensions commonly used for CHIP-8 program images.
ROM_EXTENSIONS: frozenset[str] = frozenset({".ch8", ".c8", ".rom", ".bin"})

# Number of leading instructions shown by :meth:`RomBytesService.describe`.
_PREVIEW_INSTRUCTIONS: int = 8


class RomBytesService:
    """Static utility for loading ROM files and inspecting them."""

    # -- reading -----------------------------------------------------------

    @staticmethod
    def read(path: str) -> bytes:
        """Read the ROM image at *path*.

        Raises:
            FileNotFoundError: If *path* does not exist.
            RomTooLarge: If the file is larger than 0xE00 bytes.
            OSError: On general I/O failure.
        """
        with open(path, "rb") as fh:
            data = fh.read(MAX_ROM_SIZE + 1)
        RomBytesService.validate(data)
        return data

    @staticmethod
    def validate(rom: bytes) -> None:
        """Raise :class:`RomTooLarge` if *rom* does not fit at 0x200."""
        if len(rom) > MAX_ROM_SIZE:
            raise RomTooLarge(len(rom))

    # -- inspection --------------------------------------------------------

    @staticmethod
    def title_for(path: str) -> str:
        """Return a display title derived from the file name."""
        stem, ext = os.path.splitext(os.path.basename(path))
        if ext.lower() in ROM_EXTENSIONS:
            return stem
        return os.path.basename(path)

    @staticmethod
    def preview(rom: bytes, count: int = _PREVIEW_INSTRUCTIONS) -> list[str]:
        """Disassemble the first *count* instruction words of *rom*.

        Each line reads ``"0x200  6A02  LD VA, 0x02"``.  A trailing odd byte
        is ignored.
        """
        lines: list[str] = []
        limit = min(count * INSTRUCTION_SIZE, len(rom) - len(rom) % INSTRUCTION_SIZE)
        for offset in range(0, limit, INSTRUCTION_SIZE):
            word = (rom[offset] << 8) | rom[offset + 1]
            lines.append(
                f"0x{PROGRAM_START + offset:03X}  {word:04X}  {disassemble(word)}"
            )
        return lines

    @staticmethod
    def describe(path: str) -> dict[str, str]:
        """Return a human-readable description of a ROM file.

        Returns a dict with keys: ``title``, ``rom_size``, ``free_bytes``,
        ``end_address`` and ``preview`` (newline-joined disassembly).
        """
        rom = RomBytesService.read(path)
        end = PROGRAM_START + len(rom) - 1 if rom else PROGRAM_START
        return {
            "title": RomBytesService.title_for(path),
            "rom_size": str(len(rom)),
            "free_bytes": str(MAX_ROM_SIZE - len(rom)),
            "end_address": f"0x{end:03X}",
            "preview": "\n".join(RomBytesService.preview(rom)),
        }
