# chip8emu
"""
CHIP-8 interpreter with a pygame front-end.

The interpreter core lives in :mod:`chip8emu.core`; ROM loading and
rendering in :mod:`chip8emu.shell`; the window and keyboard in
:mod:`chip8emu.platform`.
"""

__version__ = "1.0.0"
