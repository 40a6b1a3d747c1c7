"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chip8core.constants import ADDRESS_MASK, STACK_SIZE
from chip8core.state import StackState


def push(stack: StackState, address: jnp.ndarray) -> tuple[StackState, jnp.ndarray]:
    """Push address onto stack. Also returns whether the stack was already full."""
    overflow = stack.pointer >= STACK_SIZE
    slot = jnp.minimum(stack.pointer, STACK_SIZE - 1)
    masked_address = jnp.astype(address & ADDRESS_MASK, jnp.uint16)
    new_data = jnp.where(overflow, stack.data, stack.data.at[slot].set(masked_address))
    new_pointer = jnp.where(overflow, stack.pointer, stack.pointer + 1)
    return stack.replace(data=new_data, pointer=jnp.astype(new_pointer, jnp.uint8)), overflow


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray, jnp.ndarray]:
    """Pop address from stack. Also returns whether the stack was empty."""
    underflow = stack.pointer == 0
    new_pointer = jnp.where(underflow, stack.pointer, stack.pointer - 1)
    popped_address = stack.data[new_pointer]
    new_data = stack.data.at[new_pointer].set(jnp.where(underflow, popped_address, 0))
    return (
        stack.replace(data=new_data, pointer=jnp.astype(new_pointer, jnp.uint8)),
        popped_address,
        underflow,
    )
