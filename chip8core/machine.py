"""Host-facing emulator contract and the stateful CHIP-8 machine.

The pure functions in ``chip8core.emulator`` are wrapped by ``Chip8``, which
keeps the current state, compiles the hot paths with ``jax.jit`` and turns
fault records into exceptions. Hosts are written against ``Emulator`` so
other machines can be dropped in later.

Example:
    ```python
    from chip8core import Chip8

    machine = Chip8.create()
    machine.load(rom_bytes)
    while running:
        for key, pressed in poll_keys():
            machine.set_key(key, pressed)
        machine.run_frame(instructions_per_frame=10)
        if machine.redraw_pending():
            draw(machine.framebuffer())
            machine.clear_redraw_pending()
    ```
"""

from typing import Any, Mapping, Optional, Protocol, runtime_checkable

import jax
import numpy as np

from chip8core.constants import NUM_KEYS, QUIRKS, FAULT_NONE
from chip8core.emulator import (
    step, tick_timers, set_key, skip_instruction, clear_draw_flag, load_rom, load_rom_file,
)
from chip8core.errors import error_for_fault
from chip8core.logging import ConsoleLogger
from chip8core.runner import run_frame
from chip8core.state import EmulatorState, create_state, reset_state

_step = jax.jit(step)
_tick_timers = jax.jit(tick_timers)
_set_key = jax.jit(set_key)


@runtime_checkable
class Emulator(Protocol):
    """Operations every emulated machine offers to a host adapter."""

    @classmethod
    def create(cls) -> "Emulator": ...

    def load(self, data: bytes) -> None: ...

    def step(self) -> None: ...

    def tick_timers(self) -> bool: ...

    def set_key(self, index: int, pressed: bool) -> None: ...

    def framebuffer(self) -> np.ndarray: ...

    def redraw_pending(self) -> bool: ...

    def clear_redraw_pending(self) -> None: ...

    def reset(self) -> None: ...

    def set_metadata(self, metadata: Mapping[str, Any]) -> None: ...


class Chip8:
    """Stateful CHIP-8 machine implementing ``Emulator``.

    Args:
        state: Initial emulator state (defaults to ``create_state()``)
        logger: Logger for load/reset/fault messages
    """

    def __init__(self, state: Optional[EmulatorState] = None, logger: Optional[ConsoleLogger] = None):
        self._state = state if state is not None else create_state()
        self.logger = logger or ConsoleLogger("chip8", log_level="WARNING")
        self.cycles = 0

    @classmethod
    def create(cls, seed: int = 0, **quirks) -> "Chip8":
        """Fresh machine: PC at 0x200, font loaded, empty program area."""
        return cls(create_state(jax.random.PRNGKey(seed), **quirks))

    @property
    def state(self) -> EmulatorState:
        """Current immutable state snapshot."""
        return self._state

    @property
    def pc(self) -> int:
        return int(self._state.pc)

    @property
    def index(self) -> int:
        return int(self._state.I)

    @property
    def registers(self) -> np.ndarray:
        return np.asarray(self._state.V)

    @property
    def quirks(self) -> dict:
        return self._state.quirks

    def load(self, data: bytes) -> None:
        """Copy ROM bytes to 0x200. Raises ``RomTooLargeError`` without touching memory."""
        self._state = load_rom(self._state, bytes(data))
        self.logger.info(f"Loaded {len(data)} byte ROM")

    def load_file(self, filename: str) -> None:
        self._state = load_rom_file(self._state, filename)
        self.logger.info(f"Loaded ROM from {filename}")

    def step(self) -> None:
        """Execute one instruction.

        Raises:
            Chip8Error: the instruction at PC is malformed. The machine is
                left exactly as before the call; use ``skip_instruction`` to
                move past it or stop running.
        """
        self._state = _step(self._state)
        self._raise_fault()
        self.cycles += 1

    def skip_instruction(self) -> None:
        self._state = skip_instruction(self._state)

    def run_frame(self, instructions_per_frame: int) -> bool:
        """Run one 60Hz frame and return whether to beep."""
        self._state = run_frame(self._state, instructions_per_frame)
        self._raise_fault()
        self.cycles += instructions_per_frame
        return bool(self._state.beep)

    def tick_timers(self) -> bool:
        """Decrement the timers once. Returns True when the sound timer just expired."""
        self._state = _tick_timers(self._state)
        return bool(self._state.beep)

    def set_key(self, index: int, pressed: bool) -> None:
        if not 0 <= index < NUM_KEYS:
            raise ValueError(f"Key index must be in 0..{NUM_KEYS - 1}, got {index}")
        self._state = _set_key(self._state, index, bool(pressed))

    def framebuffer(self) -> np.ndarray:
        """Read-only boolean pixels indexed ``[x, y]``, shape (64, 32)."""
        return np.asarray(self._state.display)

    def redraw_pending(self) -> bool:
        return bool(self._state.draw_flag)

    def clear_redraw_pending(self) -> None:
        self._state = clear_draw_flag(self._state)

    def reset(self) -> None:
        """Back to the post-create state. The ROM has to be loaded again."""
        self._state = reset_state(self._state)
        self.cycles = 0
        self.logger.info("Machine reset")

    def set_metadata(self, metadata: Mapping[str, Any]) -> None:
        """Apply options: quirk switches and ``seed``. Unknown keys are ignored."""
        quirks = {}
        for key, value in metadata.items():
            if key in QUIRKS:
                quirks[key] = bool(value)
            elif key == "seed":
                self._state = self._state.replace(rng=jax.random.PRNGKey(int(value)))
            else:
                self.logger.debug(f"Ignoring unknown metadata key '{key}'")
        if quirks:
            self._state = self._state.replace(**quirks)
            self.logger.info(f"Quirks: {self.quirks}")

    def _raise_fault(self) -> None:
        fault = int(self._state.fault)
        if fault == FAULT_NONE:
            return
        error = error_for_fault(fault, int(self._state.fault_opcode), int(self._state.fault_pc))
        self.logger.debug(f"{error} [{error.instruction}]")
        raise error
