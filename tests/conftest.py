"""
Shared fixtures for the chip8emu test-suite.

Run with::

    python -m pytest tests -v
"""

import os
import sys

import pytest

# Add the project root so ``chip8emu`` imports without installing.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chip8emu.core.cpu import Chip8CPU
from chip8emu.core.machine_state import MachineState


def assemble(*words):
    """Pack 16-bit instruction words into big-endian ROM bytes."""
    out = bytearray()
    for word in words:
        out.append((word >> 8) & 0xFF)
        out.append(word & 0xFF)
    return bytes(out)


@pytest.fixture
def cpu():
    return Chip8CPU(seed=1234)


@pytest.fixture
def load():
    """Return a function that builds a MachineState with the given words at 0x200."""
    def _load(*words):
        state = MachineState()
        state.load(assemble(*words))
        return state
    return _load


@pytest.fixture
def run(cpu, load):
    """Load the given words and execute the first one; returns the state."""
    def _run(*words, setup=None):
        state = load(*words)
        if setup is not None:
            setup(state)
        cpu.step(state)
        return state
    return _run
