"""
Opcode decoding and dispatch for the CHIP-8 instruction set.

Every instruction is one big-endian 16-bit word.  :func:`decode` splits it
once into its operand fields:

======  ==========  =====================================
Field   Mask        Meaning
======  ==========  =====================================
x       ``0x0F00``  first register index
y       ``0x00F0``  second register index
n       ``0x000F``  4-bit immediate (sprite height, ALU op)
nn      ``0x00FF``  8-bit immediate
nnn     ``0x0FFF``  12-bit address
======  ==========  =====================================

and computes a *dispatch key*: the opcode masked down to the bits that
identify the instruction.  Which bits matter depends on the high nibble,
e.g. ``0x8XY4`` is keyed on ``opcode & 0xF00F`` = ``0x8004`` while
``0xFX33`` is keyed on ``opcode & 0xF0FF`` = ``0xF033``.

:class:`Dispatcher` maps dispatch keys to handler methods.  Each handler
mutates the :class:`~chip8emu.core.machine_state.MachineState` it is given
and leaves ``pc`` at the next instruction to fetch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from chip8emu.core.types import FLAG_REGISTER, FONT_GLYPH_SIZE, FONT_START, INSTRUCTION_SIZE

if TYPE_CHECKING:
    from chip8emu.core.machine_state import MachineState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------

# High nibble -> mask selecting the identifying bits of the opcode.
_FAMILY_MASKS: dict[int, int] = {
    0x0: 0xFFFF,
    0x5: 0xF00F,
    0x8: 0xF00F,
    0x9: 0xF00F,
    0xE: 0xF0FF,
    0xF: 0xF0FF,
}
_DEFAULT_MASK: int = 0xF000

# Exact 0x0??? words that are not machine-code calls.
_SYSTEM_OPCODES: frozenset[int] = frozenset({0x00E0, 0x00EE})
_SYS_KEY: int = 0x0000


@dataclass(frozen=True)
class Instruction:
    """A decoded instruction word with its operand fields."""

    opcode: int
    key: int
    x: int
    y: int
    n: int
    nn: int
    nnn: int


def dispatch_key(opcode: int) -> int:
    """Return the dispatch key for *opcode*."""
    family = opcode >> 12
    if family == 0 and opcode not in _SYSTEM_OPCODES:
        return _SYS_KEY
    return opcode & _FAMILY_MASKS.get(family, _DEFAULT_MASK)


def decode(opcode: int) -> Instruction:
    """Split a 16-bit instruction word into an :class:`Instruction`."""
    opcode &= 0xFFFF
    return Instruction(
        opcode=opcode,
        key=dispatch_key(opcode),
        x=(opcode & 0x0F00) >> 8,
        y=(opcode & 0x00F0) >> 4,
        n=opcode & 0x000F,
        nn=opcode & 0x00FF,
        nnn=opcode & 0x0FFF,
    )


# ---------------------------------------------------------------------------
# Disassembly
# ---------------------------------------------------------------------------

# fmt: off
_MNEMONICS: dict[int, str] = {
    0x0000: "SYS 0x{nnn:03X}",
    0x00E0: "CLS",
    0x00EE: "RET",
    0x1000: "JP 0x{nnn:03X}",
    0x2000: "CALL 0x{nnn:03X}",
    0x3000: "SE V{x:X}, 0x{nn:02X}",
    0x4000: "SNE V{x:X}, 0x{nn:02X}",
    0x5000: "SE V{x:X}, V{y:X}",
    0x6000: "LD V{x:X}, 0x{nn:02X}",
    0x7000: "ADD V{x:X}, 0x{nn:02X}",
    0x8000: "LD V{x:X}, V{y:X}",
    0x8001: "OR V{x:X}, V{y:X}",
    0x8002: "AND V{x:X}, V{y:X}",
    0x8003: "XOR V{x:X}, V{y:X}",
    0x8004: "ADD V{x:X}, V{y:X}",
    0x8005: "SUB V{x:X}, V{y:X}",
    0x8006: "SHR V{x:X}",
    0x8007: "SUBN V{x:X}, V{y:X}",
    0x800E: "SHL V{x:X}",
    0x9000: "SNE V{x:X}, V{y:X}",
    0xA000: "LD I, 0x{nnn:03X}",
    0xB000: "JP V0, 0x{nnn:03X}",
    0xC000: "RND V{x:X}, 0x{nn:02X}",
    0xD000: "DRW V{x:X}, V{y:X}, {n}",
    0xE09E: "SKP V{x:X}",
    0xE0A1: "SKNP V{x:X}",
    0xF007: "LD V{x:X}, DT",
    0xF00A: "LD V{x:X}, K",
    0xF015: "LD DT, V{x:X}",
    0xF018: "LD ST, V{x:X}",
    0xF01E: "ADD I, V{x:X}",
    0xF029: "LD F, V{x:X}",
    0xF033: "LD B, V{x:X}",
    0xF055: "LD [I], V{x:X}",
    0xF065: "LD V{x:X}, [I]",
}
# fmt: on


def disassemble(opcode: int) -> str:
    """Return a mnemonic for *opcode*, e.g. ``"DRW V0, V1, 5"``.

    Words that are not part of the instruction set render as
    ``"???? 0xNNNN"``.
    """
    ins = decode(opcode)
    fmt = _MNEMONICS.get(ins.key)
    if fmt is None:
        return f"???? 0x{ins.opcode:04X}"
    return fmt.format(x=ins.x, y=ins.y, n=ins.n, nn=ins.nn, nnn=ins.nnn)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

Handler = Callable[["MachineState", Instruction], None]


class Dispatcher:
    """Executes decoded instructions against a machine state.

    Parameters
    ----------
    rng:
        Random source for ``CXNN``.  A seeded generator makes runs
        reproducible; ``None`` draws fresh OS entropy.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None) -> None:
        self.rng: np.random.Generator = rng if rng is not None else np.random.default_rng()
        self.unknown_count: int = 0
        self._table: dict[int, Handler] = self._build_table()

    def _build_table(self) -> dict[int, Handler]:
        return {
            0x0000: self.op_sys,
            0x00E0: self.op_cls,
            0x00EE: self.op_ret,
            0x1000: self.op_jp,
            0x2000: self.op_call,
            0x3000: self.op_se_byte,
            0x4000: self.op_sne_byte,
            0x5000: self.op_se_reg,
            0x6000: self.op_ld_byte,
            0x7000: self.op_add_byte,
            0x8000: self.op_ld_reg,
            0x8001: self.op_or,
            0x8002: self.op_and,
            0x8003: self.op_xor,
            0x8004: self.op_add_reg,
            0x8005: self.op_sub,
            0x8006: self.op_shr,
            0x8007: self.op_subn,
            0x800E: self.op_shl,
            0x9000: self.op_sne_reg,
            0xA000: self.op_ld_i,
            0xB000: self.op_jp_v0,
            0xC000: self.op_rnd,
            0xD000: self.op_drw,
            0xE09E: self.op_skp,
            0xE0A1: self.op_sknp,
            0xF007: self.op_ld_from_dt,
            0xF00A: self.op_ld_key,
            0xF015: self.op_ld_dt,
            0xF018: self.op_ld_st,
            0xF01E: self.op_add_i,
            0xF029: self.op_ld_font,
            0xF033: self.op_ld_bcd,
            0xF055: self.op_store_regs,
            0xF065: self.op_load_regs,
        }

    def handler_for(self, ins: Instruction) -> Optional[Handler]:
        return self._table.get(ins.key)

    def execute(self, state: MachineState, ins: Instruction) -> None:
        """Run *ins* against *state*.

        Unrecognised instructions are logged and skipped.
        """
        handler = self._table.get(ins.key)
        if handler is None:
            self.unknown_count += 1
            logger.warning("Unknown opcode 0x%04X at 0x%03X", ins.opcode, state.pc)
            state.pc += INSTRUCTION_SIZE
            return
        handler(state, ins)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _next(state: MachineState) -> None:
        state.pc += INSTRUCTION_SIZE

    @staticmethod
    def _skip_if(state: MachineState, cond: bool) -> None:
        state.pc += 2 * INSTRUCTION_SIZE if cond else INSTRUCTION_SIZE

    @staticmethod
    def _set_with_flag(state: MachineState, x: int, value: int, flag: int) -> None:
        # Flag goes last so VF holds it even when X is F.
        state.v[x] = value & 0xFF
        state.v[FLAG_REGISTER] = flag

    # ------------------------------------------------------------------
    # 0x0 -- system
    # ------------------------------------------------------------------

    def op_sys(self, state: MachineState, ins: Instruction) -> None:
        """0NNN: call machine code at NNN.  Not supported; treated as a no-op."""
        logger.debug("Ignoring SYS 0x%03X at 0x%03X", ins.nnn, state.pc)
        self._next(state)

    def op_cls(self, state: MachineState, ins: Instruction) -> None:
        state.frame_buffer.clear()
        self._next(state)

    def op_ret(self, state: MachineState, ins: Instruction) -> None:
        """00EE: return to the instruction after the matching call."""
        state.pc = state.pop() + INSTRUCTION_SIZE

    # ------------------------------------------------------------------
    # Flow control
    # ------------------------------------------------------------------

    def op_jp(self, state: MachineState, ins: Instruction) -> None:
        state.pc = ins.nnn

    def op_call(self, state: MachineState, ins: Instruction) -> None:
        """2NNN: push the address of this instruction, then jump to NNN."""
        state.push(state.pc, ins.nnn)
        state.pc = ins.nnn

    def op_jp_v0(self, state: MachineState, ins: Instruction) -> None:
        state.pc = ins.nnn + state.v[0]

    def op_se_byte(self, state: MachineState, ins: Instruction) -> None:
        self._skip_if(state, state.v[ins.x] == ins.nn)

    def op_sne_byte(self, state: MachineState, ins: Instruction) -> None:
        self._skip_if(state, state.v[ins.x] != ins.nn)

    def op_se_reg(self, state: MachineState, ins: Instruction) -> None:
        self._skip_if(state, state.v[ins.x] == state.v[ins.y])

    def op_sne_reg(self, state: MachineState, ins: Instruction) -> None:
        self._skip_if(state, state.v[ins.x] != state.v[ins.y])

    # ------------------------------------------------------------------
    # Register loads
    # ------------------------------------------------------------------

    def op_ld_byte(self, state: MachineState, ins: Instruction) -> None:
        state.v[ins.x] = ins.nn
        self._next(state)

    def op_add_byte(self, state: MachineState, ins: Instruction) -> None:
        """7XNN: VX += NN, wrapping.  VF is not affected."""
        state.v[ins.x] = (state.v[ins.x] + ins.nn) & 0xFF
        self._next(state)

    # ------------------------------------------------------------------
    # 0x8 -- ALU
    # ------------------------------------------------------------------

    def op_ld_reg(self, state: MachineState, ins: Instruction) -> None:
        state.v[ins.x] = state.v[ins.y]
        self._next(state)

    def op_or(self, state: MachineState, ins: Instruction) -> None:
        state.v[ins.x] |= state.v[ins.y]
        self._next(state)

    def op_and(self, state: MachineState, ins: Instruction) -> None:
        state.v[ins.x] &= state.v[ins.y]
        self._next(state)

    def op_xor(self, state: MachineState, ins: Instruction) -> None:
        state.v[ins.x] ^= state.v[ins.y]
        self._next(state)

    def op_add_reg(self, state: MachineState, ins: Instruction) -> None:
        """8XY4: VX += VY, VF = carry."""
        total = state.v[ins.x] + state.v[ins.y]
        self._set_with_flag(state, ins.x, total, 1 if total > 0xFF else 0)
        self._next(state)

    def op_sub(self, state: MachineState, ins: Instruction) -> None:
        """8XY5: VX -= VY, VF = 1 when VX > VY (no borrow)."""
        vx, vy = state.v[ins.x], state.v[ins.y]
        self._set_with_flag(state, ins.x, vx - vy, 1 if vx > vy else 0)
        self._next(state)

    def op_shr(self, state: MachineState, ins: Instruction) -> None:
        """8XY6: VX >>= 1, VF = the bit shifted out."""
        vx = state.v[ins.x]
        self._set_with_flag(state, ins.x, vx >> 1, vx & 0x1)
        self._next(state)

    def op_subn(self, state: MachineState, ins: Instruction) -> None:
        """8XY7: VX = VY - VX, VF = 1 when VY > VX (no borrow)."""
        vx, vy = state.v[ins.x], state.v[ins.y]
        self._set_with_flag(state, ins.x, vy - vx, 1 if vy > vx else 0)
        self._next(state)

    def op_shl(self, state: MachineState, ins: Instruction) -> None:
        """8XYE: VX <<= 1, VF = the bit shifted out."""
        vx = state.v[ins.x]
        self._set_with_flag(state, ins.x, vx << 1, (vx & 0x80) >> 7)
        self._next(state)

    # ------------------------------------------------------------------
    # Index register, random, display
    # ------------------------------------------------------------------

    def op_ld_i(self, state: MachineState, ins: Instruction) -> None:
        state.i = ins.nnn
        self._next(state)

    def op_rnd(self, state: MachineState, ins: Instruction) -> None:
        state.v[ins.x] = int(self.rng.integers(0, 256)) & ins.nn
        self._next(state)

    def op_drw(self, state: MachineState, ins: Instruction) -> None:
        """DXYN: XOR an N-row sprite from memory[I] at (VX, VY).

        VF is set to 1 if any lit pixel was turned off, else 0.
        """
        rows = state.read_block(state.i, ins.n)
        collision = state.frame_buffer.draw_sprite(state.v[ins.x], state.v[ins.y], rows)
        state.v[FLAG_REGISTER] = 1 if collision else 0
        self._next(state)

    # ------------------------------------------------------------------
    # 0xE -- keypad skips
    # ------------------------------------------------------------------

    def op_skp(self, state: MachineState, ins: Instruction) -> None:
        self._skip_if(state, state.keypad.is_pressed(state.v[ins.x]))

    def op_sknp(self, state: MachineState, ins: Instruction) -> None:
        self._skip_if(state, not state.keypad.is_pressed(state.v[ins.x]))

    # ------------------------------------------------------------------
    # 0xF -- timers, keys, memory
    # ------------------------------------------------------------------

    def op_ld_from_dt(self, state: MachineState, ins: Instruction) -> None:
        state.v[ins.x] = state.delay_timer
        self._next(state)

    def op_ld_key(self, state: MachineState, ins: Instruction) -> None:
        """FX0A: wait for a key.

        If no key is down ``pc`` stays put, so the driver re-executes this
        instruction on the next step.
        """
        key = state.keypad.first_pressed()
        if key is None:
            return
        state.v[ins.x] = key
        self._next(state)

    def op_ld_dt(self, state: MachineState, ins: Instruction) -> None:
        state.delay_timer = state.v[ins.x]
        self._next(state)

    def op_ld_st(self, state: MachineState, ins: Instruction) -> None:
        state.sound_timer = state.v[ins.x]
        self._next(state)

    def op_add_i(self, state: MachineState, ins: Instruction) -> None:
        state.i = (state.i + state.v[ins.x]) & 0xFFFF
        self._next(state)

    def op_ld_font(self, state: MachineState, ins: Instruction) -> None:
        state.i = FONT_START + (state.v[ins.x] & 0xF) * FONT_GLYPH_SIZE
        self._next(state)

    def op_ld_bcd(self, state: MachineState, ins: Instruction) -> None:
        """FX33: memory[I..I+2] = hundreds, tens, ones of VX."""
        value = state.v[ins.x]
        state.write_block(state.i, bytes((value // 100, (value // 10) % 10, value % 10)))
        self._next(state)

    def op_store_regs(self, state: MachineState, ins: Instruction) -> None:
        """FX55: memory[I..I+X] = V0..VX.  I is left unchanged."""
        state.write_block(state.i, bytes(state.v[:ins.x + 1]))
        self._next(state)

    def op_load_regs(self, state: MachineState, ins: Instruction) -> None:
        """FX65: V0..VX = memory[I..I+X].  I is left unchanged."""
        state.v[:ins.x + 1] = state.read_block(state.i, ins.x + 1)
        self._next(state)
