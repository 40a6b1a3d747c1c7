"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.state import EmulatorState, flag_fault, u8, u16
from chip8core.decode import DecodedInstruction
from chip8core.constants import (
    FONT_START, FONT_CHAR_SIZE, MEMORY_SIZE, NUM_REGISTERS, ADDRESS_MASK, KEY_WAITING,
    FAULT_MEMORY_ACCESS,
)
from chip8core.instructions.system import unknown_opcode


def _index_out_of_range(state: EmulatorState, last_offset) -> jnp.ndarray:
    """Whether I + last_offset falls outside memory."""
    return jnp.astype(state.I, jnp.int32) + last_offset >= MEMORY_SIZE


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register, wrapping at 16 bits."""
    new_i = (jnp.astype(state.I, jnp.int32) + jnp.astype(state.V[instruction.x], jnp.int32)) & ADDRESS_MASK
    return state.replace(I=jnp.astype(new_i, jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press (blocking).

    The program counter is moved back onto this instruction and the state
    enters the waiting mode; ``set_key`` completes the instruction.
    """
    return state.replace(
        pc=state.pc - 2,
        key_wait=u8(KEY_WAITING),
        key_wait_register=jnp.astype(instruction.x, jnp.uint8),
    )


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = jnp.astype(state.V[instruction.x] & 0xF, jnp.uint16)
    return state.replace(I=u16(FONT_START) + digit * FONT_CHAR_SIZE)


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    new_memory = state.memory.at[indices].set(digits, mode="drop")
    return flag_fault(state.replace(memory=new_memory), _index_out_of_range(state, 2), FAULT_MEMORY_ACCESS)


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    # Registers above X keep whatever memory held; masked slots are dropped
    target = jnp.where(register_mask, base_indices, MEMORY_SIZE)
    new_memory = state.memory.at[target].set(state.V, mode="drop")

    faulted = _index_out_of_range(state, instruction.x)
    state = state.replace(memory=new_memory)
    if state.load_store_quirk:
        state = state.replace(I=jnp.astype(state.I + instruction.x + 1, jnp.uint16))
    return flag_fault(state, faulted, FAULT_MEMORY_ACCESS)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    memory_values = state.memory[jnp.minimum(base_indices, MEMORY_SIZE - 1)]
    new_V = jnp.where(register_mask, memory_values, state.V)

    faulted = _index_out_of_range(state, instruction.x)
    state = state.replace(V=new_V)
    if state.load_store_quirk:
        state = state.replace(I=jnp.astype(state.I + instruction.x + 1, jnp.uint16))
    return flag_fault(state, faulted, FAULT_MEMORY_ACCESS)


MISC_HANDLERS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch misc instructions on the low byte, unknown bytes fault."""
    codes = jnp.array(list(MISC_HANDLERS), dtype=jnp.int32)
    matches = codes == instruction.nn
    switch_index = jnp.where(jnp.any(matches), jnp.argmax(matches), len(MISC_HANDLERS))

    return jax.lax.switch(
        switch_index,
        [*MISC_HANDLERS.values(), unknown_opcode],
        state, instruction
    )
