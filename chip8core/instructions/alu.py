"""CHIP-8 ALU operations (8xxx).

Every operation returns ``(result, vf)``. ``vf`` is ``None`` when the
operation leaves the flag register alone; otherwise the flag is written
after the result, so ``8FY4`` ends with VF holding the carry.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.constants import FAULT_UNKNOWN_OPCODE
from chip8core.state import EmulatorState, flag_fault
from chip8core.decode import DecodedInstruction


def _u8(value) -> jnp.ndarray:
    return jnp.astype(value, jnp.uint8)


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, None


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, None


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, None


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, None


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, set carry flag."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    carry = result > 255
    return _u8(result & 0xFF), _u8(carry)


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = 1 when there is no borrow."""
    no_borrow = vx >= vy
    result = (jnp.astype(vx, jnp.int32) - jnp.astype(vy, jnp.int32)) & 0xFF
    return _u8(result), _u8(no_borrow)


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1, VF = shifted out bit."""
    return _u8(vx >> 1), _u8(vx & 1)


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when there is no borrow."""
    no_borrow = vy >= vx
    result = (jnp.astype(vy, jnp.int32) - jnp.astype(vx, jnp.int32)) & 0xFF
    return _u8(result), _u8(no_borrow)


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1, VF = shifted out bit."""
    shifted_bit = (vx & 0x80) >> 7
    result = (jnp.astype(vx, jnp.int32) << 1) & 0xFF
    return _u8(result), _u8(shifted_bit)


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]

    def wrap(op, reset_vf=False):
        def run(vx, vy):
            result, vf = op(vx, vy)
            writes_vf = vf is not None or reset_vf
            if vf is None:
                vf = jnp.zeros((), dtype=jnp.uint8)
            return _u8(result), vf, jnp.asarray(writes_vf)
        return run

    def shift(op):
        def run(vx, vy):
            if state.shift_quirk:
                vx = vy
            return op(vx, vy)
        return wrap(run)

    def undefined(vx, vy):
        return _u8(vx), jnp.zeros((), dtype=jnp.uint8), jnp.asarray(False)

    # 0-7 map to themselves, E maps to 8, everything else is undefined
    valid_ops = jnp.array([1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 0], dtype=bool)
    valid = valid_ops[instruction.n]
    branch = jnp.where(instruction.n == 14, 8, jnp.where(instruction.n < 8, instruction.n, 9))

    result, vf, writes_vf = jax.lax.switch(
        branch,
        [
            wrap(alu_set),
            wrap(alu_or, state.logic_quirk),
            wrap(alu_and, state.logic_quirk),
            wrap(alu_xor, state.logic_quirk),
            wrap(alu_add),
            wrap(alu_sub_xy),
            shift(alu_shift_right),
            wrap(alu_sub_yx),
            shift(alu_shift_left),
            undefined,
        ],
        vx, vy
    )

    new_V = state.V.at[instruction.x].set(result)
    new_V = jnp.where(writes_vf, new_V.at[15].set(vf), new_V)
    return flag_fault(state.replace(V=new_V), ~valid, FAULT_UNKNOWN_OPCODE)
