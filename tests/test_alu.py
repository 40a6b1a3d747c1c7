"""Tests for ALU operations (8xxx)."""

import pytest
from chip8core import execute, create_state
from chip8core.constants import FAULT_NONE, FAULT_UNKNOWN_OPCODE


class TestBasicALU:
    """Test basic ALU operations."""

    def test_alu_set_basic(self, fresh_state):
        """8XY0 - Set VX = VY."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x42))
        state = state.replace(V=state.V.at[2].set(0x99))

        state = execute(state, 0x8120)  # V1 = V2

        assert state.V[1] == 0x99
        assert state.V[2] == 0x99

    def test_alu_or_basic(self, fresh_state):
        """8XY1 - OR operation."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0xF0))
        state = state.replace(V=state.V.at[2].set(0x0F))

        state = execute(state, 0x8121)  # V1 |= V2

        assert state.V[1] == 0xFF

    def test_alu_and_basic(self, fresh_state):
        """8XY2 - AND operation."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0xF0))
        state = state.replace(V=state.V.at[2].set(0xF1))

        state = execute(state, 0x8122)  # V1 &= V2

        assert state.V[1] == 0xF0

    def test_alu_xor_basic(self, fresh_state):
        """8XY3 - XOR operation."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0xFF))
        state = state.replace(V=state.V.at[2].set(0xF0))

        state = execute(state, 0x8123)  # V1 ^= V2

        assert state.V[1] == 0x0F

    def test_logic_ops_keep_vf(self, fresh_state):
        """8XY1/2/3 leave VF alone by default."""
        for instruction in (0x8121, 0x8122, 0x8123):
            state = fresh_state.replace(V=fresh_state.V.at[15].set(0x42))
            state = execute(state, instruction)
            assert state.V[15] == 0x42, f"{instruction:04X} changed VF"

    def test_logic_quirk_resets_vf(self):
        """With logic_quirk, 8XY1/2/3 clear VF."""
        base = create_state(logic_quirk=True)
        for instruction in (0x8121, 0x8122, 0x8123):
            state = base.replace(V=base.V.at[15].set(0x42))
            state = execute(state, instruction)
            assert state.V[15] == 0, f"{instruction:04X} did not reset VF"


class TestALUArithmetic:
    """Test arithmetic ALU operations."""

    def test_alu_add_no_carry(self, fresh_state):
        """8XY4 - Add without carry."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x10))
        state = state.replace(V=state.V.at[2].set(0x20))

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x30
        assert state.V[15] == 0

    def test_alu_add_with_carry(self, fresh_state):
        """8XY4 - Add with carry."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0xFF))
        state = state.replace(V=state.V.at[2].set(0x01))

        state = execute(state, 0x8124)  # V1 += V2

        assert state.V[1] == 0x00  # 256 wraps to 0
        assert state.V[15] == 1  # Carry set

    def test_alu_sub_xy_no_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, no borrow."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x30))
        state = state.replace(V=state.V.at[2].set(0x10))

        state = execute(state, 0x8125)  # V1 -= V2

        assert state.V[1] == 0x20
        assert state.V[15] == 1  # No borrow (VX >= VY)

    def test_alu_sub_xy_with_borrow(self, fresh_state):
        """8XY5 - Subtract VX - VY, with borrow."""
        state = fresh_state
        state = state.replace(V=state.V.at[3].set(0x10))
        state = state.replace(V=state.V.at[4].set(0x30))

        state = execute(state, 0x8345)  # V3 -= V4

        assert state.V[3] == 0xE0  # 16 - 48 = -32 → 224
        assert state.V[15] == 0  # Borrow (VX < VY)

    def test_alu_sub_yx_no_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX, no borrow."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x10))
        state = state.replace(V=state.V.at[2].set(0x30))

        state = execute(state, 0x8127)  # V1 = V2 - V1

        assert state.V[1] == 0x20  # 48 - 16 = 32
        assert state.V[15] == 1  # No borrow (VY >= VX)

    def test_alu_sub_yx_with_borrow(self, fresh_state):
        """8XY7 - Subtract VY - VX, with borrow."""
        state = fresh_state
        state = state.replace(V=state.V.at[1].set(0x30))
        state = state.replace(V=state.V.at[2].set(0x10))

        state = execute(state, 0x8127)  # V1 = V2 - V1

        assert state.V[1] == 0xE0
        assert state.V[15] == 0


class TestALUShifts:
    """Test shift operations with and without the shift quirk."""

    def test_shift_right_even(self, fresh_state):
        """8XY6 - Shift right, even number."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x04))
        state = state.replace(V=state.V.at[2].set(0xFF))  # Should be ignored

        state = execute(state, 0x8126)  # V1 >>= 1

        assert state.V[1] == 0x02
        assert state.V[15] == 0  # LSB was 0

    def test_shift_right_odd(self, fresh_state):
        """8XY6 - Shift right, odd number."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x05))
        state = state.replace(V=state.V.at[4].set(0xFF))  # Should be ignored

        state = execute(state, 0x8346)  # V3 >>= 1

        assert state.V[3] == 0x02
        assert state.V[15] == 1  # LSB was 1

    def test_shift_right_quirk(self, shift_quirk_state):
        """8XY6 - Shift right, VX = VY >> 1 with the shift quirk."""
        state = shift_quirk_state.replace(V=shift_quirk_state.V.at[5].set(0x08))  # Should be ignored
        state = state.replace(V=state.V.at[6].set(0x03))

        state = execute(state, 0x8566)  # V5 = V6 >> 1

        assert state.V[5] == 0x01
        assert state.V[15] == 1  # LSB of V6 was 1

    def test_shift_left_overflow(self, fresh_state):
        """8XYE - Shift left with the MSB going to VF."""
        state = fresh_state.replace(V=fresh_state.V.at[3].set(0x81))  # 10000001
        state = state.replace(V=state.V.at[4].set(0xFF))  # Should be ignored

        state = execute(state, 0x834E)  # V3 <<= 1

        assert state.V[3] == 0x02  # 129 << 1 = 258 → 2
        assert state.V[15] == 1  # MSB was 1

    def test_shift_left_quirk(self, shift_quirk_state):
        """8XYE - Shift left, VX = VY << 1 with the shift quirk."""
        state = shift_quirk_state.replace(V=shift_quirk_state.V.at[1].set(0x01))
        state = state.replace(V=state.V.at[2].set(0x40))

        state = execute(state, 0x812E)

        assert state.V[1] == 0x80
        assert state.V[15] == 0


class TestALUEdgeCases:
    """Test edge cases and comprehensive scenarios."""

    def test_alu_undefined_operations(self, fresh_state):
        """8XY8-8XYD and 8XYF are unknown opcodes."""
        undefined_ops = [0x8, 0x9, 0xA, 0xB, 0xC, 0xD, 0xF]

        for op in undefined_ops:
            state = fresh_state
            state = state.replace(V=state.V.at[1].set(0x42))
            state = state.replace(V=state.V.at[2].set(0x99))

            state = execute(state, 0x8120 | op)

            assert state.fault == FAULT_UNKNOWN_OPCODE, f"Undefined op {op:X} not flagged"
            assert state.V[1] == 0x42, f"Undefined op {op:X} changed VX"
            assert state.V[15] == 0, f"Undefined op {op:X} changed VF"

    def test_defined_operations_do_not_fault(self, fresh_state):
        for op in [0x0, 0x1, 0x2, 0x3, 0x4, 0x5, 0x6, 0x7, 0xE]:
            state = execute(fresh_state, 0x8120 | op)
            assert state.fault == FAULT_NONE, f"Op {op:X} flagged"

    def test_alu_self_operations(self, fresh_state):
        """Test operations where VX and VY are the same register."""
        state = fresh_state.replace(V=fresh_state.V.at[5].set(0xAA))

        state = execute(state, 0x8553)  # V5 ^= V5
        assert state.V[5] == 0x00, "Self XOR should result in 0"

        state = state.replace(V=state.V.at[5].set(0x80))
        state = execute(state, 0x8554)  # V5 += V5
        assert state.V[5] == 0x00, "Self ADD should wrap on overflow"
        assert state.V[15] == 1, "Self ADD should set carry flag"

    def test_vf_register_operations(self, fresh_state):
        """Test that operations on VF work correctly."""
        state = fresh_state
        state = state.replace(V=state.V.at[15].set(0x42))  # VF = 0x42
        state = state.replace(V=state.V.at[1].set(0x10))

        state = execute(state, 0x81F4)  # V1 += VF
        assert state.V[1] == 0x52, "Addition with VF as source failed"
        assert state.V[15] == 0, "VF should be overwritten by operation result"

    def test_flag_written_after_result(self, fresh_state):
        """8FY4 - when VX is VF the carry overwrites the sum."""
        state = fresh_state.replace(V=fresh_state.V.at[15].set(0xFF))
        state = state.replace(V=state.V.at[1].set(0x02))

        state = execute(state, 0x8F14)  # VF += V1 → 0x01, then VF = carry

        assert state.V[15] == 1

    def test_assign_into_vf(self, fresh_state):
        """8FY0 - plain assignment into VF keeps the assigned value."""
        state = fresh_state.replace(V=fresh_state.V.at[1].set(0x33))

        state = execute(state, 0x8F10)

        assert state.V[15] == 0x33
