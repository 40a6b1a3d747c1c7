"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.constants import FAULT_UNKNOWN_OPCODE, FAULT_STACK_UNDERFLOW
from chip8core.state import EmulatorState, flag_fault, flag
from chip8core.decode import DecodedInstruction
from chip8core.stack import pop


def unknown_opcode(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Flag the instruction as unrecognized."""
    return flag_fault(state, True, FAULT_UNKNOWN_OPCODE)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display), draw_flag=flag(True))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address, underflow = pop(state.stack)
    state = state.replace(stack=stack, pc=address)
    return flag_fault(state, underflow, FAULT_STACK_UNDERFLOW)


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch system instructions. 0NNN machine-code calls are not supported."""
    return jax.lax.cond(
        0x00E0 == instruction.raw,
        execute_clear_screen,
        lambda state, instruction: jax.lax.cond(
            0x00EE == instruction.raw,
            execute_return,
            unknown_opcode,
            state, instruction
        ),
        state, instruction
    )
