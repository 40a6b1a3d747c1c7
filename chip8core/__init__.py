"""CHIP-8 interpreter core."""

from chip8core.state import EmulatorState, StackState, create_state, reset_state
from chip8core.emulator import (
    execute, fetch, step, skip_instruction, tick_timers, set_key, load_rom, load_rom_file,
)
from chip8core.decode import DecodedInstruction, decode, mnemonic
from chip8core.errors import (
    Chip8Error, UnknownOpcodeError, StackOverflowError, StackUnderflowError,
    MemoryAccessError, InvalidKeyError, RomTooLargeError, raise_for_fault,
)
from chip8core.machine import Emulator, Chip8
from chip8core.constants import (
    PROGRAM_START, FONT_START, SCREEN_WIDTH, SCREEN_HEIGHT, MEMORY_SIZE, MAX_ROM_SIZE, STACK_SIZE,
)

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "reset_state",
    "fetch",
    "execute",
    "step",
    "skip_instruction",
    "tick_timers",
    "set_key",
    "load_rom",
    "load_rom_file",
    "DecodedInstruction",
    "decode",
    "mnemonic",
    "Chip8Error",
    "UnknownOpcodeError",
    "StackOverflowError",
    "StackUnderflowError",
    "MemoryAccessError",
    "InvalidKeyError",
    "RomTooLargeError",
    "raise_for_fault",
    "Emulator",
    "Chip8",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "MEMORY_SIZE",
    "MAX_ROM_SIZE",
    "STACK_SIZE",
]
