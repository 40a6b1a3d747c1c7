"""Batched execution: run whole 60Hz frames inside a single compiled scan."""

from functools import partial

import jax
import jax.numpy as jnp

from chip8core.state import EmulatorState
from chip8core.emulator import step, tick_timers
from chip8core.logging import scan_with_progress

FPS = 60


def run_instruction(state: EmulatorState, _):
    state = step(state)
    return state, None


def _frame(state: EmulatorState, instructions_per_frame: int) -> EmulatorState:
    state, _ = jax.lax.scan(run_instruction, state, length=instructions_per_frame)
    return tick_timers(state)


@partial(jax.jit, static_argnums=1)
def run_frame(state: EmulatorState, instructions_per_frame: int) -> EmulatorState:
    """Execute one frame: ``instructions_per_frame`` steps, then one timer tick.

    Faults do not interrupt the scan: the faulting instruction is retried on
    every remaining step, so the returned state still carries the fault
    record. Check it with ``errors.raise_for_fault``.
    """
    return _frame(state, instructions_per_frame)


@partial(jax.jit, static_argnums=(1, 2, 3))
def run_frames(
    state: EmulatorState,
    num_frames: int,
    instructions_per_frame: int,
    progress: bool = False,
) -> tuple[EmulatorState, jnp.ndarray, jnp.ndarray]:
    """Run ``num_frames`` frames.

    Returns:
        Tuple of:
            - final state
            - framebuffers after each frame, shape (num_frames, 64, 32)
            - beep flags for each frame, shape (num_frames,)
    """
    def body(state, _):
        state = _frame(state, instructions_per_frame)
        return state, (state.display, state.beep)

    if progress:
        body = scan_with_progress(num_frames)(body)

    state, (displays, beeps) = jax.lax.scan(body, state, jnp.arange(num_frames))
    return state, displays, beeps
