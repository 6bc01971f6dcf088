"""
chip8emu -- CHIP-8 interpreter.

Command-line entry point.  Parses arguments, creates the machine from a ROM
file, and launches the pygame display window.

Usage examples::

    # Run a ROM with the default speed (10 instructions per frame)
    chip8emu roms/pong.ch8

    # Faster CPU, bigger window, amber on black
    chip8emu roms/pong.ch8 --cycles 20 --scale 15 --fg FFB000

    # Show ROM size and a disassembly preview without launching
    chip8emu roms/pong.ch8 --info

    # Run 120 frames headless and dump the machine state
    chip8emu roms/pong.ch8 --debug 120 --seed 1
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from chip8emu.core.errors import Chip8Error
from chip8emu.core.machine import Chip8Machine
from chip8emu.core.opcodes import disassemble
from chip8emu.core.types import DEFAULT_CYCLES_PER_FRAME, TIMER_HZ
from chip8emu.shell.frame_renderer import DEFAULT_BACKGROUND, DEFAULT_FOREGROUND, parse_colour
from chip8emu.shell.services.machine_factory import MachineFactory
from chip8emu.shell.services.rom_bytes_service import RomBytesService


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _colour_arg(text: str) -> int:
    try:
        return parse_colour(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {value}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chip8emu",
        description=(
            "chip8emu -- CHIP-8 interpreter.  "
            "Load a ROM file and play it in a pygame window."
        ),
    )

    parser.add_argument(
        "rom",
        help="Path to the ROM file (.ch8, .c8, .rom)",
    )

    # Timing
    parser.add_argument(
        "--cycles", "-c",
        type=_positive_int,
        default=DEFAULT_CYCLES_PER_FRAME,
        help=f"Instructions executed per frame.  Default: {DEFAULT_CYCLES_PER_FRAME}.",
    )
    parser.add_argument(
        "--hz",
        type=_positive_int,
        default=TIMER_HZ,
        help=f"Frame and timer rate in Hz.  Default: {TIMER_HZ}.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random-number instruction (for reproducible runs).",
    )

    # Display
    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=10,
        help="Display scale factor (1-20).  Default: 10.",
    )
    parser.add_argument(
        "--fg",
        type=_colour_arg,
        default=DEFAULT_FOREGROUND,
        metavar="RRGGBB",
        help="Colour of lit pixels.  Default: 00FF00.",
    )
    parser.add_argument(
        "--bg",
        type=_colour_arg,
        default=DEFAULT_BACKGROUND,
        metavar="RRGGBB",
        help="Colour of unlit pixels.  Default: 000000.",
    )

    # Debugging / info
    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print ROM metadata and exit without launching the emulator.",
    )
    parser.add_argument(
        "--debug",
        type=_positive_int,
        default=None,
        metavar="FRAMES",
        help="Run FRAMES frames without a window, print machine state and exit.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Info mode
# ---------------------------------------------------------------------------

def _print_rom_info(rom_path: str) -> int:
    """Print human-readable metadata for a ROM."""
    try:
        info = RomBytesService.describe(rom_path)
    except (OSError, Chip8Error) as exc:
        print(f"Error reading ROM: {exc}", file=sys.stderr)
        return 1

    preview = info.pop("preview")
    print("chip8emu ROM Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("-" * 40)
    for line in preview.splitlines():
        print(f"  {line}")
    print("=" * 40)
    return 0


# ---------------------------------------------------------------------------
# Debug mode
# ---------------------------------------------------------------------------

def _run_debug(machine: Chip8Machine, frames: int) -> int:
    """Run *frames* frames headless and print the resulting state."""
    print("=" * 60)
    print("chip8emu Debug Diagnostics")
    print("=" * 60)
    print(f"Machine: {machine}")

    status = 0
    try:
        machine.run_frames(frames)
    except Chip8Error as exc:
        print(f"Halted: {exc}")
        status = 1

    state = machine.state
    print(f"Frames run: {machine.frame_number}  Instructions: {machine.cpu.cycles}")
    print(f"  {state.registers_dump()}")
    print(f"  Stack: {[f'0x{a:03X}' for a in state.stack]}")
    if state.pc + 1 < len(state.memory):
        word = (state.memory[state.pc] << 8) | state.memory[state.pc + 1]
        print(f"  Next: {word:04X}  {disassemble(word)}")
    print(f"  Unknown opcodes skipped: {machine.cpu.dispatcher.unknown_count}")

    fb = machine.frame_buffer
    print(f"  Display: {fb.lit_count()}/{len(fb)} pixels lit")
    for row in fb.rows():
        print("  |" + "".join("#" if p else " " for p in row) + "|")

    print("=" * 60)
    return status


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("chip8emu.main")

    rom_path: str = os.path.expanduser(args.rom)
    if not os.path.isfile(rom_path):
        print(f"Error: ROM file not found: {rom_path}", file=sys.stderr)
        return 1

    if args.info:
        return _print_rom_info(rom_path)

    try:
        machine = MachineFactory.create(
            rom_path=rom_path,
            cycles_per_frame=args.cycles,
            frame_hz=args.hz,
            seed=args.seed,
        )
    except (OSError, Chip8Error) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.debug is not None:
        return _run_debug(machine, args.debug)

    # Imported here so --info / --debug work without a display.
    from chip8emu.platform.window import Window

    logger.info("Starting emulation ...")
    try:
        window = Window(
            machine,
            scale=args.scale,
            foreground=args.fg,
            background=args.bg,
        )
        window.run()
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        logger.exception("Fatal error during emulation")
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1

    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":
    sys.exit(main())
