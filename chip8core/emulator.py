"""Main CHIP-8 emulator execution engine.

All functions here are pure: they take an ``EmulatorState`` and return a new
one. ``step`` and ``tick_timers`` are traceable and are jitted by the
``Chip8`` facade and by the batched runner.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chip8core.state import EmulatorState, u8, u16, flag
from chip8core.decode import decode
from chip8core.errors import RomTooLargeError
from chip8core.constants import (
    PROGRAM_START, MAX_ROM_SIZE, MEMORY_SIZE,
    KEY_NOT_WAITING, KEY_WAITING, KEY_CAPTURED, FAULT_NONE, FAULT_MEMORY_ACCESS,
)
from chip8core.instructions.system import execute_system_instruction
from chip8core.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_jump_with_offset_quirk, execute_skip_if_key
)
from chip8core.instructions.alu import execute_alu_operation
from chip8core.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8core.instructions.display import execute_display
from chip8core.instructions.misc import execute_misc_instruction


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    The program counter is expected to already point past the instruction
    (see ``fetch``). Malformed instructions set ``state.fault``; use ``step``
    to get the rollback-on-fault behaviour.
    """
    decoded_instruction = decode(instruction)

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset_quirk if state.jump_quirk else execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory (big-endian) and advance the PC."""
    pc = jnp.minimum(jnp.astype(state.pc, jnp.int32), MEMORY_SIZE - 2)
    instruction = _pack_u16(state.memory[pc], state.memory[pc + 1])
    return state.replace(pc=state.pc + 2), instruction


def _cycle(state: EmulatorState) -> EmulatorState:
    """Fetch, decode and execute one instruction, rolling back on fault."""
    pc_out_of_range = jnp.astype(state.pc, jnp.int32) > MEMORY_SIZE - 2
    fetched, instruction = fetch(state)
    executed = execute(fetched, instruction)
    fault = jnp.where(pc_out_of_range, u8(FAULT_MEMORY_ACCESS), executed.fault)
    # Nothing was fetched from past the end of memory
    opcode = jnp.where(pc_out_of_range, u16(0), instruction)

    return jax.lax.cond(
        fault != FAULT_NONE,
        lambda: state.replace(fault=fault, fault_opcode=opcode, fault_pc=state.pc),
        lambda: executed,
    )


def step(state: EmulatorState) -> EmulatorState:
    """Run one fetch-decode-execute cycle.

    While a key-wait is pending the state is returned unchanged. A step
    that hits malformed program behaviour leaves the machine as it was and
    records the fault code, opcode and PC on the state.
    """
    state = state.replace(fault=u8(FAULT_NONE))
    state = state.replace(
        key_wait=jnp.where(state.key_wait == KEY_CAPTURED, u8(KEY_NOT_WAITING), state.key_wait)
    )
    return jax.lax.cond(state.key_wait == KEY_WAITING, lambda s: s, _cycle, state)


def skip_instruction(state: EmulatorState) -> EmulatorState:
    """Move past the instruction at PC without executing it."""
    return state.replace(pc=state.pc + 2, fault=u8(FAULT_NONE))


def tick_timers(state: EmulatorState) -> EmulatorState:
    """60Hz timer tick. ``state.beep`` is true only on the tick where the sound timer hits 0."""
    beep = state.sound_timer == 1
    return state.replace(
        delay_timer=jnp.astype(jnp.where(state.delay_timer > 0, state.delay_timer - 1, 0), jnp.uint8),
        sound_timer=jnp.astype(jnp.where(state.sound_timer > 0, state.sound_timer - 1, 0), jnp.uint8),
        beep=beep,
    )


def set_key(state: EmulatorState, key: int, pressed: bool) -> EmulatorState:
    """Update a key latch, completing a pending FX0A on press."""
    state = state.replace(keypad=state.keypad.at[key].set(pressed))
    resolves = jnp.logical_and(pressed, state.key_wait == KEY_WAITING)

    def capture(s: EmulatorState) -> EmulatorState:
        return s.replace(
            V=s.V.at[s.key_wait_register].set(jnp.astype(key, jnp.uint8)),
            pc=s.pc + 2,
            key_wait=u8(KEY_CAPTURED),
        )

    return jax.lax.cond(resolves, capture, lambda s: s, state)


def clear_draw_flag(state: EmulatorState) -> EmulatorState:
    return state.replace(draw_flag=flag(False))


def load_rom(state: EmulatorState, rom_data: bytes) -> EmulatorState:
    """Load ROM bytes into CHIP-8 memory starting at 0x200."""
    if len(rom_data) > MAX_ROM_SIZE:
        raise RomTooLargeError(len(rom_data))
    if len(rom_data) == 0:
        return state
    rom_array = jnp.array(list(rom_data), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom_data)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom_file(state: EmulatorState, filename: str) -> EmulatorState:
    """Load a raw .ch8 file into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_rom(state, rom_data)
