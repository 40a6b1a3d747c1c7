"""CHIP-8 display operations."""

import jax.numpy as jnp
from chip8core.state import EmulatorState, flag_fault, flag
from chip8core.decode import DecodedInstruction
from chip8core.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, MEMORY_SIZE, FAULT_MEMORY_ACCESS

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, wrapping around the screen edges."""
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT

    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < instruction.n)

    sprite_rows = jnp.astype(state.I, jnp.int32) + row_offset
    sprite_bytes = state.memory[jnp.minimum(sprite_rows, MEMORY_SIZE - 1)]
    sprite = (((sprite_bytes >> (7 - jnp.minimum(col_offset, 7))) & 1) == 1) & in_sprite

    state = state.replace(
        display=state.display ^ sprite,
        V=state.V.at[15].set(jnp.astype(jnp.any(state.display & sprite), jnp.uint8)),
        draw_flag=flag(True),
    )
    last_row = jnp.astype(state.I, jnp.int32) + instruction.n - 1
    return flag_fault(state, (instruction.n > 0) & (last_row >= MEMORY_SIZE), FAULT_MEMORY_ACCESS)
