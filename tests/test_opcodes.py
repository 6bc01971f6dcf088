"""
Instruction tests -- one group per opcode family.

Each test hand-assembles a few instruction words at 0x200, optionally
prepares registers, runs one step and checks the result.
"""

import logging

import pytest

from chip8emu.core.errors import AddressOutOfBounds, StackOverflow, StackUnderflow
from chip8emu.core.opcodes import decode, disassemble, dispatch_key


# ═══════════════════════════════════════════════
# Decoding
# ═══════════════════════════════════════════════

class TestDecode:
    def test_operand_fields(self):
        ins = decode(0xD12F)
        assert (ins.x, ins.y, ins.n, ins.nn, ins.nnn) == (0x1, 0x2, 0xF, 0x2F, 0x12F)

    def test_dispatch_keys(self):
        assert dispatch_key(0x00E0) == 0x00E0
        assert dispatch_key(0x00EE) == 0x00EE
        assert dispatch_key(0x0123) == 0x0000
        assert dispatch_key(0x1ABC) == 0x1000
        assert dispatch_key(0x8AB4) == 0x8004
        assert dispatch_key(0xE59E) == 0xE09E
        assert dispatch_key(0xF733) == 0xF033

    def test_disassemble(self):
        assert disassemble(0x00E0) == "CLS"
        assert disassemble(0x6A2B) == "LD VA, 0x2B"
        assert disassemble(0xD015) == "DRW V0, V1, 5"
        assert disassemble(0xF155) == "LD [I], V1"
        assert disassemble(0x5121) == "???? 0x5121"
        assert disassemble(0xE0FF) == "???? 0xE0FF"


# ═══════════════════════════════════════════════
# 0x0 / flow control
# ═══════════════════════════════════════════════

class TestFlowControl:
    def test_cls(self, run):
        def setup(s):
            s.frame_buffer.xor_pixel(10, 10)
        state = run(0x00E0, setup=setup)
        assert state.frame_buffer.lit_count() == 0
        assert state.pc == 0x202

    def test_jump(self, run):
        state = run(0x1ABC)
        assert state.pc == 0xABC

    def test_call_pushes_current_pc(self, run):
        state = run(0x2400)
        assert state.pc == 0x400
        assert state.stack == [0x200]

    def test_call_then_return(self, cpu, load):
        state = load(0x2204, 0x0000, 0x00EE)
        cpu.step(state)
        assert state.pc == 0x204
        cpu.step(state)
        assert state.pc == 0x202
        assert state.stack == []

    def test_return_on_empty_stack(self, run):
        with pytest.raises(StackUnderflow):
            run(0x00EE)

    def test_call_beyond_depth(self, cpu, load):
        state = load(0x2200)  # calls itself forever
        for _ in range(16):
            cpu.step(state)
        assert len(state.stack) == 16
        with pytest.raises(StackOverflow):
            cpu.step(state)

    def test_jump_plus_v0(self, run):
        state = run(0xB300, setup=lambda s: s.v.__setitem__(0, 0x10))
        assert state.pc == 0x310

    def test_sys_is_ignored(self, run):
        state = run(0x0123)
        assert state.pc == 0x202


class TestSkips:
    @pytest.mark.parametrize("word,vx,expected_pc", [
        (0x3142, 0x42, 0x204),
        (0x3142, 0x41, 0x202),
        (0x4142, 0x42, 0x202),
        (0x4142, 0x41, 0x204),
    ])
    def test_compare_immediate(self, run, word, vx, expected_pc):
        state = run(word, setup=lambda s: s.v.__setitem__(1, vx))
        assert state.pc == expected_pc

    @pytest.mark.parametrize("word,vy,expected_pc", [
        (0x5120, 7, 0x204),
        (0x5120, 8, 0x202),
        (0x9120, 7, 0x202),
        (0x9120, 8, 0x204),
    ])
    def test_compare_registers(self, run, word, vy, expected_pc):
        def setup(s):
            s.v[1] = 7
            s.v[2] = vy
        state = run(word, setup=setup)
        assert state.pc == expected_pc


# ═══════════════════════════════════════════════
# Loads and ALU
# ═══════════════════════════════════════════════

class TestLoads:
    def test_ld_byte(self, run):
        state = run(0x6A2B)
        assert state.v[0xA] == 0x2B
        assert state.pc == 0x202

    def test_add_byte_wraps_without_flag(self, run):
        def setup(s):
            s.v[2] = 0xFF
            s.v[0xF] = 0x55
        state = run(0x7202, setup=setup)
        assert state.v[2] == 0x01
        assert state.v[0xF] == 0x55

    def test_ld_i(self, run):
        state = run(0xA123)
        assert state.i == 0x123


class TestALU:
    def _regs(self, vx, vy):
        def setup(s):
            s.v[1] = vx
            s.v[2] = vy
        return setup

    def test_ld_reg(self, run):
        state = run(0x8120, setup=self._regs(1, 9))
        assert state.v[1] == 9

    def test_or_and_xor(self, run):
        assert run(0x8121, setup=self._regs(0b1100, 0b1010)).v[1] == 0b1110
        assert run(0x8122, setup=self._regs(0b1100, 0b1010)).v[1] == 0b1000
        assert run(0x8123, setup=self._regs(0b1100, 0b1010)).v[1] == 0b0110

    def test_add_with_carry(self, run):
        state = run(0x8124, setup=self._regs(0xFF, 0x01))
        assert state.v[1] == 0x00
        assert state.v[0xF] == 1

    def test_add_without_carry(self, run):
        state = run(0x8124, setup=self._regs(0x10, 0x01))
        assert state.v[1] == 0x11
        assert state.v[0xF] == 0

    def test_sub_with_borrow(self, run):
        state = run(0x8125, setup=self._regs(0x01, 0x02))
        assert state.v[1] == 0xFF
        assert state.v[0xF] == 0

    def test_sub_without_borrow(self, run):
        state = run(0x8125, setup=self._regs(0x05, 0x02))
        assert state.v[1] == 0x03
        assert state.v[0xF] == 1

    def test_sub_equal_operands(self, run):
        state = run(0x8125, setup=self._regs(0x07, 0x07))
        assert state.v[1] == 0
        assert state.v[0xF] == 0

    def test_shift_right(self, run):
        state = run(0x8126, setup=self._regs(0x05, 0))
        assert state.v[1] == 0x02
        assert state.v[0xF] == 1

    def test_subn(self, run):
        state = run(0x8127, setup=self._regs(0x02, 0x05))
        assert state.v[1] == 0x03
        assert state.v[0xF] == 1
        state = run(0x8127, setup=self._regs(0x05, 0x02))
        assert state.v[1] == 0xFD
        assert state.v[0xF] == 0

    def test_shift_left(self, run):
        state = run(0x812E, setup=self._regs(0x81, 0))
        assert state.v[1] == 0x02
        assert state.v[0xF] == 1

    def test_flag_wins_when_target_is_vf(self, run):
        def setup(s):
            s.v[0xF] = 0xFF
            s.v[1] = 0x01
        state = run(0x8F14, setup=setup)
        assert state.v[0xF] == 1

    def test_undefined_alu_op_is_skipped(self, run, caplog):
        with caplog.at_level(logging.WARNING, logger="chip8emu.core.opcodes"):
            state = run(0x8128, setup=self._regs(3, 4))
        assert state.pc == 0x202
        assert state.v[1] == 3
        assert "Unknown opcode 0x8128" in caplog.text


class TestRandom:
    def test_masked_by_nn(self, run):
        state = run(0xC30F)
        assert 0 <= state.v[3] <= 0x0F

    def test_zero_mask(self, run):
        state = run(0xC300, setup=lambda s: s.v.__setitem__(3, 0xAA))
        assert state.v[3] == 0

    def test_seeded_runs_repeat(self, load):
        from chip8emu.core.cpu import Chip8CPU

        def sequence(seed):
            cpu = Chip8CPU(seed=seed)
            state = load(*([0xC0FF] * 8))
            values = []
            for _ in range(8):
                cpu.step(state)
                values.append(state.v[0])
            return values

        assert sequence(7) == sequence(7)


# ═══════════════════════════════════════════════
# Display
# ═══════════════════════════════════════════════

class TestDraw:
    def test_draw_twice_toggles_and_collides(self, cpu, load):
        state = load(0xD011, 0xD011)
        state.i = 0x300
        state.memory[0x300] = 0xFF

        cpu.step(state)
        assert state.v[0xF] == 0
        assert list(state.frame_buffer.pixels[0:8]) == [1] * 8

        cpu.step(state)
        assert state.v[0xF] == 1
        assert state.frame_buffer.lit_count() == 0
        assert state.pc == 0x204

    def test_font_glyph_zero(self, cpu, load):
        state = load(0xF029, 0xD015)
        cpu.step(state)
        assert state.i == 0
        cpu.step(state)
        rows = state.frame_buffer.rows()
        assert rows[0][:4] == bytes([1, 1, 1, 1])
        assert rows[1][:4] == bytes([1, 0, 0, 1])
        assert rows[4][:4] == bytes([1, 1, 1, 1])

    def test_wraps_around_edges(self, run):
        def setup(s):
            s.i = 0x300
            s.memory[0x300] = 0xFF
            s.memory[0x301] = 0x80
            s.v[0] = 60
            s.v[1] = 31
        state = run(0xD012, setup=setup)
        fb = state.frame_buffer
        for x in (60, 61, 62, 63, 0, 1, 2, 3):
            assert fb.read_pixel(x, 31) == 1
        assert fb.read_pixel(60, 0) == 1
        assert fb.lit_count() == 9

    def test_coordinates_beyond_screen_wrap(self, run):
        def setup(s):
            s.i = 0x300
            s.memory[0x300] = 0x80
            s.v[0] = 64 + 5
            s.v[1] = 32 + 2
        state = run(0xD011, setup=setup)
        assert state.frame_buffer.read_pixel(5, 2) == 1

    def test_sprite_past_end_of_memory(self, run):
        with pytest.raises(AddressOutOfBounds):
            run(0xD015, setup=lambda s: setattr(s, "i", 0xFFD))

    def test_zero_height_draws_nothing(self, run):
        state = run(0xD010, setup=lambda s: s.v.__setitem__(0xF, 1))
        assert state.frame_buffer.lit_count() == 0
        assert state.v[0xF] == 0


# ═══════════════════════════════════════════════
# Keypad
# ═══════════════════════════════════════════════

class TestKeys:
    def test_skp(self, run):
        def setup(s):
            s.v[4] = 0xA
            s.keypad.press(0xA)
        assert run(0xE49E, setup=setup).pc == 0x204
        assert run(0xE49E, setup=lambda s: s.v.__setitem__(4, 0xA)).pc == 0x202

    def test_sknp(self, run):
        def setup(s):
            s.v[4] = 0xA
            s.keypad.press(0xA)
        assert run(0xE4A1, setup=setup).pc == 0x202
        assert run(0xE4A1, setup=lambda s: s.v.__setitem__(4, 0xA)).pc == 0x204

    def test_wait_for_key_blocks(self, cpu, load):
        state = load(0xF50A)
        for _ in range(5):
            cpu.step(state)
            assert state.pc == 0x200
        state.keypad.press(0x9)
        state.keypad.press(0x3)
        cpu.step(state)
        assert state.v[5] == 0x3
        assert state.pc == 0x202


# ═══════════════════════════════════════════════
# 0xF -- timers and memory
# ═══════════════════════════════════════════════

class TestTimersAndMemory:
    def test_timer_read_write(self, cpu, load):
        state = load(0xF115, 0xF218, 0xF307)
        state.v[1] = 30
        state.v[2] = 40
        cpu.step(state)
        cpu.step(state)
        state.delay_timer = 12
        cpu.step(state)
        assert state.sound_timer == 40
        assert state.v[3] == 12

    def test_delay_timer_set(self, run):
        state = run(0xF115, setup=lambda s: s.v.__setitem__(1, 30))
        assert state.delay_timer == 30

    def test_add_i(self, run):
        def setup(s):
            s.i = 0x100
            s.v[2] = 0x20
            s.v[0xF] = 7
        state = run(0xF21E, setup=setup)
        assert state.i == 0x120
        assert state.v[0xF] == 7

    def test_font_address_uses_low_nibble(self, run):
        state = run(0xF129, setup=lambda s: s.v.__setitem__(1, 0x1B))
        assert state.i == 0xB * 5

    def test_bcd(self, run):
        def setup(s):
            s.i = 0x300
            s.v[6] = 123
        state = run(0xF633, setup=setup)
        assert list(state.memory[0x300:0x303]) == [1, 2, 3]
        assert state.i == 0x300

    def test_bcd_of_small_value(self, run):
        def setup(s):
            s.i = 0x300
            s.v[6] = 7
        state = run(0xF633, setup=setup)
        assert list(state.memory[0x300:0x303]) == [0, 0, 7]

    def test_store_registers_inclusive(self, run):
        def setup(s):
            s.i = 0x300
            for n in range(16):
                s.v[n] = n + 1
        state = run(0xF355, setup=setup)
        assert list(state.memory[0x300:0x305]) == [1, 2, 3, 4, 0]
        assert state.i == 0x300

    def test_load_registers_inclusive(self, run):
        def setup(s):
            s.i = 0x300
            s.memory[0x300:0x304] = bytes([9, 8, 7, 6])
        state = run(0xF265, setup=setup)
        assert list(state.v[0:4]) == [9, 8, 7, 0]

    def test_store_past_end_of_memory(self, run):
        with pytest.raises(AddressOutOfBounds):
            run(0xF555, setup=lambda s: setattr(s, "i", 0xFFC))

    def test_load_past_end_of_memory(self, run):
        with pytest.raises(AddressOutOfBounds):
            run(0xFF65, setup=lambda s: setattr(s, "i", 0xFF1))

    def test_unknown_f_opcode_is_skipped(self, run, caplog):
        with caplog.at_level(logging.WARNING):
            state = run(0xF0FF)
        assert state.pc == 0x202
        assert "Unknown opcode" in caplog.text
