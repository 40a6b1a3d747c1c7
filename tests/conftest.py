"""Test configuration and fixtures for CHIP-8 emulator tests."""

import jax
import pytest
import jax.numpy as jnp
from chip8core import create_state, load_rom, step, Chip8


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def shift_quirk_state():
    """Fresh state with COSMAC shifts (VX = VY >> 1)."""
    return create_state(shift_quirk=True)


@pytest.fixture
def load_store_quirk_state():
    """Fresh state where FX55/FX65 advance I."""
    return create_state(load_store_quirk=True)


@pytest.fixture
def machine():
    """Provide a fresh stateful machine."""
    return Chip8.create()


@pytest.fixture(scope="session")
def jit_step():
    """Compiled single step, shared across tests."""
    return jax.jit(step)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Assemble 16-bit instruction words into big-endian ROM bytes."""
    return b"".join(word.to_bytes(2, "big") for word in words)


def state_with_program(state, *words):
    """Load instruction words at 0x200."""
    return load_rom(state, program(*words))
