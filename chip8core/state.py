"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chip8core.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT, STACK_SIZE,
    MEMORY_SIZE, NUM_REGISTERS, NUM_KEYS, KEY_NOT_WAITING, FAULT_NONE,
)


def u8(value) -> jnp.ndarray:
    """Scalar uint8 array."""
    return jnp.asarray(value, dtype=jnp.uint8)


def u16(value) -> jnp.ndarray:
    """Scalar uint16 array."""
    return jnp.asarray(value, dtype=jnp.uint16)


def flag(value) -> jnp.ndarray:
    """Scalar bool array."""
    return jnp.asarray(value, dtype=jnp.bool_)


@dataclass(frozen=True)
class StackState:
    """Return-address stack for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    Every field except the quirk switches is a fixed-shape array so the state
    can be carried through ``jax.lax.scan`` and ``jax.jit``. The quirk
    switches are static: changing one retraces the compiled step.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    draw_flag: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    beep: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    key_wait: jnp.ndarray = field(default_factory=lambda: jnp.asarray(KEY_NOT_WAITING, dtype=jnp.uint8))
    key_wait_register: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    fault: jnp.ndarray = field(default_factory=lambda: jnp.asarray(FAULT_NONE, dtype=jnp.uint8))
    fault_opcode: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    fault_pc: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    shift_quirk: bool = field(pytree_node=False, default=False)
    jump_quirk: bool = field(pytree_node=False, default=False)
    load_store_quirk: bool = field(pytree_node=False, default=False)
    logic_quirk: bool = field(pytree_node=False, default=False)

    @property
    def quirks(self) -> dict:
        return {
            "shift_quirk": self.shift_quirk,
            "jump_quirk": self.jump_quirk,
            "load_store_quirk": self.load_store_quirk,
            "logic_quirk": self.logic_quirk,
        }


def flag_fault(state: EmulatorState, condition, code: int) -> EmulatorState:
    """Record ``code`` as the state's fault where ``condition`` holds."""
    return state.replace(fault=jnp.where(condition, u8(code), state.fault))


def create_state(rng: jax.random.PRNGKey = None, **quirks) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    state = EmulatorState(rng, **quirks)
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))


def reset_state(state: EmulatorState) -> EmulatorState:
    """Return the post-create state, keeping quirks and the random stream."""
    return create_state(state.rng, **state.quirks)
