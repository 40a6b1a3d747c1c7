"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.constants import FAULT_STACK_OVERFLOW, FAULT_UNKNOWN_OPCODE, FAULT_INVALID_KEY, NUM_KEYS
from chip8core.state import EmulatorState, flag_fault
from chip8core.decode import DecodedInstruction
from chip8core.stack import push


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    stack, overflow = push(state.stack, state.pc)
    state = flag_fault(state.replace(stack=stack), overflow, FAULT_STACK_OVERFLOW)
    return execute_jump(state, instruction)


def make_skip_instruction(condition_fn, valid_fn=None):
    """Factory for skip instructions.

    ``valid_fn`` marks encodings of the family that are not real instructions
    (e.g. 5XY1), which are flagged as unknown opcodes.
    """
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        state = jax.lax.cond(
            condition,
            lambda s: s.replace(pc=s.pc + 2),
            lambda s: s,
            state
        )
        if valid_fn is not None:
            state = flag_fault(state, ~valid_fn(instruction), FAULT_UNKNOWN_OPCODE)
        return state
    return skip_instruction


def _register_form(instruction: DecodedInstruction):
    return jnp.asarray(instruction.n == 0)


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y],
    _register_form,
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y],
    _register_form,
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0."""
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jump_address)


def execute_jump_with_offset_quirk(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BXNN - Jump to address XNN + VX (CHIP-48 behavior)."""
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[instruction.x], jnp.uint16)
    return state.replace(pc=jump_address)


def execute_skip_if_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """EX9E/EXA1 - Skip if key pressed/not pressed."""
    key = state.V[instruction.x]
    key_pressed = state.keypad[key & 0xF]
    is_not_instruction = (instruction.nn == 0xA1)
    condition = key_pressed ^ is_not_instruction

    state = jax.lax.cond(
        condition,
        lambda state: state.replace(pc=state.pc + 2),
        lambda state: state,
        state
    )
    state = flag_fault(state, key >= NUM_KEYS, FAULT_INVALID_KEY)
    known = (instruction.nn == 0x9E) | (instruction.nn == 0xA1)
    return flag_fault(state, ~jnp.asarray(known), FAULT_UNKNOWN_OPCODE)
