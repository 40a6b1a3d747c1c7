"""CHIP-8 error types and fault-code translation."""

from typing import Optional

from chip8core.constants import (
    FAULT_NONE, FAULT_UNKNOWN_OPCODE, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW,
    FAULT_MEMORY_ACCESS, FAULT_INVALID_KEY, MAX_ROM_SIZE, MEMORY_SIZE,
)
from chip8core.decode import mnemonic


class Chip8Error(Exception):
    """Base error for malformed program behaviour.

    Attributes:
        opcode: The 16-bit instruction word that failed, if known
        pc: Address the instruction was fetched from, if known
    """

    description = "CHIP-8 error"

    def __init__(self, opcode: Optional[int] = None, pc: Optional[int] = None, message: Optional[str] = None):
        self.opcode = opcode
        self.pc = pc
        if message is None:
            message = self.description
            if opcode is not None and pc is not None:
                message = f"{message}: opcode 0x{opcode:04X} at 0x{pc:03X}"
            elif pc is not None:
                message = f"{message}: PC at 0x{pc:03X}"
        super().__init__(message)

    @property
    def instruction(self) -> str:
        """Disassembly of the failing opcode, for log lines."""
        return mnemonic(self.opcode) if self.opcode is not None else "no instruction"


class UnknownOpcodeError(Chip8Error):
    description = "Unknown opcode"


class StackOverflowError(Chip8Error):
    description = "Stack overflow"


class StackUnderflowError(Chip8Error):
    description = "Return with empty stack"


class MemoryAccessError(Chip8Error):
    description = "Memory access out of range"


class InvalidKeyError(Chip8Error):
    description = "Key index out of range"


class RomTooLargeError(Chip8Error):
    """ROM payload does not fit between 0x200 and the end of memory."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(message=f"ROM is {size} bytes, at most {MAX_ROM_SIZE} fit in memory")


FAULT_ERRORS = {
    FAULT_UNKNOWN_OPCODE: UnknownOpcodeError,
    FAULT_STACK_OVERFLOW: StackOverflowError,
    FAULT_STACK_UNDERFLOW: StackUnderflowError,
    FAULT_MEMORY_ACCESS: MemoryAccessError,
    FAULT_INVALID_KEY: InvalidKeyError,
}


def error_for_fault(fault: int, opcode: int, pc: int) -> Chip8Error:
    """Build the exception matching a fault code.

    A PC past the last full word faults before anything is fetched, so that
    error carries no opcode.
    """
    if fault == FAULT_MEMORY_ACCESS and pc > MEMORY_SIZE - 2:
        opcode = None
    return FAULT_ERRORS.get(fault, Chip8Error)(opcode=opcode, pc=pc)


def raise_for_fault(state) -> None:
    """Raise the exception recorded on ``state``, if any."""
    fault = int(state.fault)
    if fault != FAULT_NONE:
        raise error_for_fault(fault, int(state.fault_opcode), int(state.fault_pc))
